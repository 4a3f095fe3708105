"""Factory for creating chat persistence backends and stores."""

from typing import Any

from ..config import STORAGE_KEY
from .base import ChatPersistence
from .store import ChatStore


def create_chat_persistence(
    backend: str = "memory",
    **kwargs: Any
) -> ChatPersistence:
    """Create a chat persistence backend.

    Args:
        backend: Backend type ("memory", "file" or "sqlite")
        **kwargs: Backend-specific configuration
            For file:
                - path: directory holding the JSON files
            For sqlite:
                - path: database file

    Returns:
        ChatPersistence instance

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "memory":
        from .in_memory import InMemoryChatPersistence
        return InMemoryChatPersistence(**kwargs)

    elif backend == "file":
        from .file import JsonFileChatPersistence
        return JsonFileChatPersistence(**kwargs)

    elif backend == "sqlite":
        from .sqlite import SQLiteChatPersistence
        return SQLiteChatPersistence(**kwargs)

    raise ValueError(
        f"Unsupported chat store backend: {backend}. "
        f"Supported backends: memory, file, sqlite"
    )


def create_chat_store(
    backend: str = "memory",
    key: str = STORAGE_KEY,
    **kwargs: Any
) -> ChatStore:
    """Create a chat store over the given persistence backend.

    The store is not loaded until ``await store.connect()``.
    """
    return ChatStore(create_chat_persistence(backend, **kwargs), key=key)
