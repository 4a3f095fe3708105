"""JSON file chat persistence.

Each key is stored as ``<directory>/<key>.json``. Writes go to a temporary
file first and are then moved into place, so a crash mid-write never leaves
a truncated store behind.
"""

from pathlib import Path

import aiofiles

from ..errors import StorageError
from .base import ChatPersistence


class JsonFileChatPersistence(ChatPersistence):
    """File-backed persistence in a local directory."""

    def __init__(self, path: str | Path = "./.newschat"):
        self._directory = Path(path).expanduser()

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}.json"

    async def connect(self) -> None:
        """Create the storage directory if needed."""
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create {self._directory}: {e}") from e

    async def disconnect(self) -> None:
        pass

    async def read(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return await f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    async def write(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(value)
            tmp_path.replace(path)
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from e

    @property
    def backend_type(self) -> str:
        return "file"

    @property
    def directory(self) -> Path:
        return self._directory
