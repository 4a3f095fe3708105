"""In-memory chat persistence.

Data is lost when the application exits. Suitable for testing and
one-shot CLI runs.
"""

from .base import ChatPersistence


class InMemoryChatPersistence(ChatPersistence):
    """Dict-backed persistence (process lifetime only)."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._slots: dict[str, str] = dict(initial or {})

    async def connect(self) -> None:
        pass

    async def disconnect(self) -> None:
        pass

    async def read(self, key: str) -> str | None:
        return self._slots.get(key)

    async def write(self, key: str, value: str) -> None:
        self._slots[key] = value

    @property
    def backend_type(self) -> str:
        return "memory"
