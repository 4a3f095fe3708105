"""Chat store module for newschat.

Owns the durable map of chats keyed by thread id.
"""

from .base import ChatPersistence
from .factory import create_chat_persistence, create_chat_store
from .models import Chat, ChatListItem, ChatMessage, MessageRole, derive_title
from .store import ChatStore

__all__ = [
    "Chat",
    "ChatListItem",
    "ChatMessage",
    "ChatPersistence",
    "ChatStore",
    "MessageRole",
    "create_chat_persistence",
    "create_chat_store",
    "derive_title",
]
