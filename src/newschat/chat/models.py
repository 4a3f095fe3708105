"""Data models for the chat store.

These models define the structure of chats and messages, independent of
the persistence backend used. The persisted form is camelCase JSON.
"""

import time
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import Field

from ..answer.models import StructuredAnswer, WireModel
from ..config import DEFAULT_CHAT_TITLE, TITLE_ELLIPSIS, TITLE_MAX_LENGTH


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_id() -> str:
    """Generate an opaque message/chat identifier."""
    return f"{int(time.time() * 1000)}-{uuid4().hex[:7]}"


def generate_thread_id() -> str:
    """Generate a client-side thread identifier.

    The millisecond prefix matches the backend's ``thread-<ms>`` format; the
    random suffix keeps ids created in the same millisecond distinct.
    """
    return f"thread-{int(time.time() * 1000)}-{uuid4().hex[:6]}"


def derive_title(message: str) -> str:
    """Derive a chat title from the first user message.

    The trimmed message is cut to 50 characters and marked with ``...``
    when something was cut off.
    """
    stripped = message.strip()
    title = stripped[:TITLE_MAX_LENGTH]
    if len(title) < len(stripped):
        return f"{title}{TITLE_ELLIPSIS}"
    return title


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(WireModel):
    """A single message inside a chat."""

    id: str = Field(default_factory=generate_id)
    role: MessageRole
    content: str = ""
    timestamp: datetime = Field(default_factory=utc_now)
    answer: StructuredAnswer | None = None


class ChatListItem(WireModel):
    """Listing projection of a chat. Derived on demand, never stored."""

    id: str
    thread_id: str
    title: str
    last_message: str
    updated_at: datetime


class Chat(WireModel):
    """A conversation thread and its messages.

    Messages are append-only; ``updated_at`` increases with every mutation.
    """

    id: str = Field(default_factory=generate_id)
    thread_id: str
    title: str = DEFAULT_CHAT_TITLE
    messages: list[ChatMessage] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def last_message(self) -> ChatMessage | None:
        return self.messages[-1] if self.messages else None

    def to_list_item(self) -> ChatListItem:
        """Project the chat for listing."""
        last = self.last_message
        return ChatListItem(
            id=self.id,
            thread_id=self.thread_id,
            title=self.title,
            last_message=last.content if last else "",
            updated_at=self.updated_at,
        )
