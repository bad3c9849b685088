"""Storage protocol shared by every key-value backend.

Migration code talks to three independent stores through this interface.
Values are JSON-compatible Python objects (dict, list, str, int, float,
bool); ``None`` from ``get`` means the key is absent.
"""

from enum import Enum
from typing import Any, Protocol, runtime_checkable


class Store(Enum):
    """The three stores a client application persists state into."""

    DOCUMENT = "document"
    PREFERENCES = "preferences"
    SECURE = "secure"


@runtime_checkable
class StorageService(Protocol):
    """Async key-value store.

    Implementations must treat removal of a missing key as a no-op and
    must never raise for a plain cache miss.
    """

    async def get(self, key: str) -> Any | None:
        """Return the stored value or None if the key is absent."""
        ...

    async def save(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    async def remove(self, key: str) -> None:
        """Delete ``key`` if present."""
        ...
