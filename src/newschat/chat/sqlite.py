"""SQLite chat persistence.

Stores the serialized chat map in a single key-value table.
Uses aiosqlite for async access.
"""

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from ..errors import StorageError
from .base import ChatPersistence


class SQLiteChatPersistence(ChatPersistence):
    """SQLite-backed persistence.

    Supports persistent storage across sessions in a single database file.
    """

    def __init__(self, path: str | Path = "./newschat.db"):
        self._db_path = Path(path).expanduser()
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database and create the schema."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create {self._db_path.parent}: {e}") from e

        try:
            self._connection = await aiosqlite.connect(self._db_path)
            await self._connection.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            await self._connection.commit()
        except aiosqlite.Error as e:
            await self.disconnect()
            raise StorageError(f"Cannot open {self._db_path}: {e}") from e

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise StorageError("SQLite persistence is not connected")
        return self._connection

    async def read(self, key: str) -> str | None:
        connection = self._require_connection()
        try:
            async with connection.execute(
                "SELECT value FROM kv_store WHERE key = ?",
                (key,)
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError(f"Cannot read {key!r}: {e}") from e
        return row[0] if row else None

    async def write(self, key: str, value: str) -> None:
        connection = self._require_connection()
        try:
            await connection.execute("""
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """, (key, value, datetime.now(timezone.utc).isoformat()))
            await connection.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Cannot write {key!r}: {e}") from e

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
