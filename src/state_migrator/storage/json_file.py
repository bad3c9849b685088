"""JSON file storage backend.

Each store is one JSON object on disk mapping keys to values. Writes go
to a temporary file that atomically replaces the original, and the
blocking file work runs in the default executor so the event loop stays
responsive during startup.
"""

import asyncio
import contextlib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import orjson

from state_migrator.exceptions import StorageError
from state_migrator.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class JsonFileStorage:
    """Key-value store persisted as a single orjson document."""

    def __init__(self, file_path: Path) -> None:
        """Initialize the store.

        Args:
            file_path: JSON file backing the store. Created on first write.

        """
        self.file_path = file_path
        self._lock = asyncio.Lock()

    def _read(self) -> dict[str, Any]:
        if not self.file_path.exists():
            return {}

        try:
            data = orjson.loads(self.file_path.read_bytes())
        except orjson.JSONDecodeError as e:
            msg = f"Invalid JSON: {e}"
            raise StorageError(msg, target=str(self.file_path), cause=e) from e
        except OSError as e:
            msg = f"Cannot read file: {e}"
            raise StorageError(msg, target=str(self.file_path), cause=e) from e

        if not isinstance(data, dict):
            msg = "Top-level JSON value must be an object"
            raise StorageError(msg, target=str(self.file_path))
        return data

    def _write(self, data: dict[str, Any]) -> None:
        temp_file = self.file_path.with_suffix(".tmp")
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            temp_file.write_bytes(
                orjson.dumps(data, option=orjson.OPT_INDENT_2)
            )
            temp_file.replace(self.file_path)
        except (OSError, TypeError) as e:
            # orjson raises TypeError for values it cannot serialize
            with contextlib.suppress(OSError):
                temp_file.unlink()
            msg = f"Cannot write file: {e}"
            raise StorageError(msg, target=str(self.file_path), cause=e) from e

    async def _run(self, func: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            data = await self._run(self._read)
        return data.get(key)

    async def save(self, key: str, value: Any) -> None:
        def _save() -> None:
            data = self._read()
            data[key] = value
            self._write(data)

        async with self._lock:
            await self._run(_save)
        logger.debug("Saved %s to %s", key, self.file_path.name)

    async def remove(self, key: str) -> None:
        def _remove() -> bool:
            data = self._read()
            if key not in data:
                return False
            del data[key]
            self._write(data)
            return True

        async with self._lock:
            removed = await self._run(_remove)
        if removed:
            logger.debug("Removed %s from %s", key, self.file_path.name)
