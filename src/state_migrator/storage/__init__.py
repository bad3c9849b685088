"""Key-value storage backends consumed by the migration engine."""

from state_migrator.storage.base import StorageService, Store
from state_migrator.storage.json_file import JsonFileStorage
from state_migrator.storage.memory import MemoryStorage
from state_migrator.storage.secure import KeyringStorage

__all__ = [
    "JsonFileStorage",
    "KeyringStorage",
    "MemoryStorage",
    "StorageService",
    "Store",
]
