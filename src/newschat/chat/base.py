"""Abstract base class for chat persistence backends.

This module defines the interface for the key-value slot that holds the
serialized chat map. The abstraction hides:
- Storage medium (memory, JSON file, SQLite)
- Connection management
- Write atomicity
"""

from abc import ABC, abstractmethod


class ChatPersistence(ABC):
    """Abstract key-value persistence for the chat store.

    Values are opaque strings; the store owns the serialization format.
    Backends raise ``StorageError`` when the medium fails.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the backend gracefully."""

    @abstractmethod
    async def read(self, key: str) -> str | None:
        """Read the value stored under key, or None if absent."""

    @abstractmethod
    async def write(self, key: str, value: str) -> None:
        """Replace the value stored under key."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""
