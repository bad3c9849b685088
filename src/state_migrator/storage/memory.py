"""In-memory storage backend."""

import copy
from typing import Any


class MemoryStorage:
    """Dict backed store.

    Values are deep-copied on the way in and out so callers cannot mutate
    stored data by accident, which matches what a serializing backend does.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    async def save(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        """Return stored keys in insertion order."""
        return list(self._data)

    def snapshot(self) -> dict[str, Any]:
        """Return a deep copy of everything stored."""
        return copy.deepcopy(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)
