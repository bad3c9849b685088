"""Store routing shared by the detector and every migration step."""

from typing import Any

from state_migrator.constants import STATE_VERSION_KEY
from state_migrator.exceptions import MigrationError
from state_migrator.logger import get_logger
from state_migrator.storage import StorageService, Store
from state_migrator.token import TokenService

logger = get_logger(__name__)


class MigrationContext:
    """Access to the three stores plus the optional token service.

    ``set_value`` with ``None`` removes the key: migrated data never
    contains null placeholders.
    """

    def __init__(
        self,
        document: StorageService,
        preferences: StorageService,
        secure: StorageService,
        token_service: TokenService | None = None,
    ) -> None:
        """Initialize the context.

        Args:
            document: General purpose document store
            preferences: Lightweight preference store (holds the marker)
            secure: Secure/encrypted store
            token_service: Resolves identity claims from access tokens

        """
        self._stores: dict[Store, StorageService] = {
            Store.DOCUMENT: document,
            Store.PREFERENCES: preferences,
            Store.SECURE: secure,
        }
        self.token_service = token_service

    async def get_value(self, store: Store, key: str) -> Any | None:
        return await self._stores[store].get(key)

    async def set_value(self, store: Store, key: str, value: Any) -> None:
        if value is None:
            await self.remove_value(store, key)
            return
        await self._stores[store].save(key, value)

    async def remove_value(self, store: Store, key: str) -> None:
        await self._stores[store].remove(key)

    async def get_state_version(self) -> int | None:
        """Read the version marker from the preference store.

        Raises:
            MigrationError: If the marker holds something other than an int

        """
        value = await self.get_value(Store.PREFERENCES, STATE_VERSION_KEY)
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            msg = f"Version marker must be an integer, got {value!r}"
            raise MigrationError(msg, target=STATE_VERSION_KEY)
        return value

    async def set_state_version(self, version: int) -> None:
        await self.set_value(Store.PREFERENCES, STATE_VERSION_KEY, version)
        logger.debug("State version marker set to %d", version)
