"""The chat store: single source of truth for all chats.

Chats are keyed by thread id. Every mutation runs under one lock: the
in-memory read-modify-write completes first, then the whole map is
serialized and written to the persistence backend. Persistence failures
are logged and the store carries on in memory.

Targets that do not exist (unknown thread id, no current chat, empty chat)
turn mutations into silent no-ops. These happen during thread creation
races and are expected.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from pydantic import ValidationError

from ..answer.models import StructuredAnswer
from ..config import DEFAULT_CHAT_TITLE, STORAGE_KEY
from ..errors import StorageError
from .base import ChatPersistence
from .models import (
    Chat,
    ChatListItem,
    ChatMessage,
    MessageRole,
    derive_title,
    generate_thread_id,
    utc_now,
)

logger = logging.getLogger(__name__)

ChangeListener = Callable[[], None]


class ChatStore:
    """Persisted multi-chat store.

    Lifecycle:
        store = ChatStore(persistence)
        await store.connect()      # loads the map
        thread_id = await store.create_chat()
        await store.add_message("user", "What moved BTC today?")
        await store.disconnect()
    """

    def __init__(self, persistence: ChatPersistence, key: str = STORAGE_KEY):
        self._persistence = persistence
        self._key = key
        self._chats: dict[str, Chat] = {}
        self._current_thread_id: str | None = None
        self._lock = asyncio.Lock()
        self._listeners: list[ChangeListener] = []

    async def connect(self) -> None:
        """Connect the backend and load the persisted chats."""
        try:
            await self._persistence.connect()
        except StorageError as e:
            logger.error("Storage unavailable, keeping chats in memory only: %s", e)
            self._chats = {}
            return
        self._chats = await self._load()
        logger.debug("Loaded %d chat(s) from %s store", len(self._chats), self.backend_type)

    async def disconnect(self) -> None:
        await self._persistence.disconnect()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    async def _load(self) -> dict[str, Chat]:
        try:
            raw = await self._persistence.read(self._key)
        except StorageError as e:
            logger.error("Failed to read chats from storage: %s", e)
            return {}

        if not raw:
            return {}

        try:
            return self.deserialize(raw)
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning("Discarding corrupt chat store: %s", e)
            return {}

    @staticmethod
    def deserialize(raw: str) -> dict[str, Chat]:
        """Parse a serialized chat map.

        Raises:
            ValueError: If the payload is not a JSON object of chats
        """
        parsed = json.loads(raw)
        if not isinstance(parsed, dict):
            raise ValueError("chat store payload must be a JSON object")
        return {thread_id: Chat.model_validate(data) for thread_id, data in parsed.items()}

    def serialize(self) -> str:
        """Serialize the full chat map to JSON."""
        return json.dumps({
            thread_id: chat.to_wire()
            for thread_id, chat in self._chats.items()
        })

    async def _flush(self) -> None:
        try:
            await self._persistence.write(self._key, self.serialize())
        except StorageError as e:
            logger.error("Failed to save chats to storage: %s", e)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    @staticmethod
    def _touch(chat: Chat) -> None:
        now = utc_now()
        if now <= chat.updated_at:
            now = chat.updated_at + timedelta(microseconds=1)
        chat.updated_at = now

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def chats(self) -> list[ChatListItem]:
        """Chats for listing, most recently updated first."""
        ordered = sorted(self._chats.values(), key=lambda c: c.updated_at, reverse=True)
        return [chat.to_list_item() for chat in ordered]

    @property
    def current_thread_id(self) -> str | None:
        return self._current_thread_id

    @property
    def current_chat(self) -> Chat | None:
        if self._current_thread_id is None:
            return None
        return self._chats.get(self._current_thread_id)

    def get_chat(self, thread_id: str) -> Chat | None:
        return self._chats.get(thread_id)

    def __contains__(self, thread_id: object) -> bool:
        return thread_id in self._chats

    def __len__(self) -> int:
        return len(self._chats)

    def add_listener(self, listener: ChangeListener) -> None:
        """Register a callback invoked after every mutation."""
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_chat(self) -> str:
        """Create an empty chat, make it current and return its thread id."""
        async with self._lock:
            thread_id = generate_thread_id()
            while thread_id in self._chats:
                thread_id = generate_thread_id()

            now = utc_now()
            self._chats[thread_id] = Chat(
                thread_id=thread_id,
                title=DEFAULT_CHAT_TITLE,
                created_at=now,
                updated_at=now,
            )
            self._current_thread_id = thread_id
            await self._flush()

        logger.debug("Created chat %s", thread_id)
        self._notify()
        return thread_id

    def load_chat(self, thread_id: str) -> Chat | None:
        """Select an existing chat as current.

        Unknown ids leave the current selection unchanged.
        """
        chat = self._chats.get(thread_id)
        if chat is not None:
            self._current_thread_id = thread_id
        return chat

    def clear_current(self) -> None:
        """Deselect the current chat."""
        self._current_thread_id = None

    async def register_thread(self, thread_id: str, seed_title: str = "") -> bool:
        """Ensure a chat exists for a backend-assigned thread id.

        Idempotent: a known thread id is left untouched.

        Args:
            thread_id: Thread id assigned by the backend
            seed_title: Text the title is derived from (usually the question)

        Returns:
            True if a chat was created
        """
        async with self._lock:
            if thread_id in self._chats:
                return False

            now = utc_now()
            self._chats[thread_id] = Chat(
                thread_id=thread_id,
                title=derive_title(seed_title) if seed_title.strip() else DEFAULT_CHAT_TITLE,
                created_at=now,
                updated_at=now,
            )
            await self._flush()

        logger.debug("Registered backend thread %s", thread_id)
        self._notify()
        return True

    async def add_message(
        self,
        role: MessageRole | str,
        content: str = "",
        thread_id: str | None = None,
        answer: StructuredAnswer | None = None,
    ) -> ChatMessage | None:
        """Append a message to a chat.

        The first user message of an empty chat also sets the chat title.

        Args:
            role: Message author
            content: Message text
            thread_id: Target chat (defaults to the current chat)
            answer: Optional structured answer attached to the message

        Returns:
            The appended message, or None if the target chat does not exist
        """
        message = ChatMessage(role=MessageRole(role), content=content, answer=answer)

        async with self._lock:
            target = thread_id or self._current_thread_id
            chat = self._chats.get(target) if target else None
            if chat is None:
                return None

            if not chat.messages and message.role == MessageRole.USER:
                chat.title = derive_title(content)
            chat.messages.append(message)
            self._touch(chat)
            await self._flush()

        self._notify()
        return message

    async def update_last_message(self, **fields: Any) -> ChatMessage | None:
        """Merge fields into the last message of the current chat.

        The message id is never replaced.

        Returns:
            The updated message, or None if there was nothing to update
        """
        fields.pop("id", None)

        async with self._lock:
            chat = self.current_chat
            if chat is None or not chat.messages:
                return None

            merged = {**chat.messages[-1].model_dump(), **fields}
            updated = ChatMessage.model_validate(merged)
            chat.messages[-1] = updated
            self._touch(chat)
            await self._flush()

        self._notify()
        return updated

    async def delete_chat(self, thread_id: str) -> bool:
        """Remove a chat; clears the selection if it was current.

        Returns:
            True if a chat was removed
        """
        async with self._lock:
            if thread_id not in self._chats:
                return False

            del self._chats[thread_id]
            if self._current_thread_id == thread_id:
                self._current_thread_id = None
            await self._flush()

        logger.debug("Deleted chat %s", thread_id)
        self._notify()
        return True

    @property
    def backend_type(self) -> str:
        return self._persistence.backend_type
