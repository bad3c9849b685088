"""Secure storage on top of the system keyring.

Each key becomes one keyring entry (service = configured service name,
username = storage key). Values are serialized with orjson so any
JSON-compatible value round-trips.
"""

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

import keyring
import keyring.errors
import orjson
from keyring.backends import fail

from state_migrator.constants import DEFAULT_KEYRING_SERVICE
from state_migrator.exceptions import (
    SecureStorageUnavailableError,
    StorageError,
)
from state_migrator.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class KeyringStorage:
    """Key-value store backed by the system keyring.

    Values are never logged; only key names are.
    """

    def __init__(self, service: str = DEFAULT_KEYRING_SERVICE) -> None:
        """Initialize the keyring store.

        Args:
            service: Keyring service name under which entries are stored.

        """
        self.service = service
        self._checked = False

    def _ensure_available(self) -> None:
        """Fail fast when keyring has no usable backend.

        Raises:
            SecureStorageUnavailableError: If only the fail backend is
                present (headless environment, no DBUS).

        """
        if self._checked:
            return

        backend = keyring.get_keyring()
        if isinstance(backend, fail.Keyring):
            msg = "No keyring backend available"
            raise SecureStorageUnavailableError(msg, target=self.service)
        logger.debug("Using keyring backend %s", type(backend).__name__)
        self._checked = True

    async def _run(self, func: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    async def get(self, key: str) -> Any | None:
        def _get() -> str | None:
            self._ensure_available()
            try:
                return keyring.get_password(self.service, key)
            except keyring.errors.KeyringError as e:
                msg = "Keyring read failed"
                raise StorageError(msg, target=key, cause=e) from e

        raw = await self._run(_get)
        if raw is None:
            return None

        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            msg = "Stored secret is not valid JSON"
            raise StorageError(msg, target=key, cause=e) from e

    async def save(self, key: str, value: Any) -> None:
        payload = orjson.dumps(value).decode("utf-8")

        def _save() -> None:
            self._ensure_available()
            try:
                keyring.set_password(self.service, key, payload)
            except keyring.errors.KeyringError as e:
                msg = "Keyring write failed"
                raise StorageError(msg, target=key, cause=e) from e

        await self._run(_save)
        logger.debug("Saved secret %s to keyring (value hidden)", key)

    async def remove(self, key: str) -> None:
        def _remove() -> None:
            self._ensure_available()
            try:
                keyring.delete_password(self.service, key)
            except keyring.errors.PasswordDeleteError:
                # Nothing stored under this key
                return
            except keyring.errors.KeyringError as e:
                msg = "Keyring delete failed"
                raise StorageError(msg, target=key, cause=e) from e

        await self._run(_remove)
