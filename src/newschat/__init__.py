"""
Newschat: a streaming conversational client for a news-analysis backend.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .answer import ArticleSource, StructuredAnswer, extract_citations
from .chat import Chat, ChatListItem, ChatMessage, ChatStore, create_chat_store
from .session import SessionController, ThreadReconciler
from .stream import SessionPhase, SSEEvent, StreamingSessionEngine, StreamingState

__all__ = [
    "ArticleSource",
    "Chat",
    "ChatListItem",
    "ChatMessage",
    "ChatStore",
    "SSEEvent",
    "SessionController",
    "SessionPhase",
    "StreamingSessionEngine",
    "StreamingState",
    "StructuredAnswer",
    "ThreadReconciler",
    "create_chat_store",
    "extract_citations",
]
