"""state-migrator: versioned migration of a client's locally persisted state.

Usage:
    >>> from state_migrator import create_migration_service, load_config
    >>> service = create_migration_service(load_config())
    >>> await service.migrate_if_needed()
"""

from importlib.metadata import PackageNotFoundError, version

from state_migrator.config import (
    MigratorConfig,
    create_migration_service,
    load_config,
)
from state_migrator.exceptions import (
    MigrationError,
    MissingKeyError,
    SchemaValidationError,
    StateMigratorError,
    StorageError,
    UnsupportedVersionError,
)
from state_migrator.migration import MigrationResult, StateMigrationService

try:
    __version__ = version("state-migrator")
except PackageNotFoundError:
    # Source checkout without an installed distribution
    __version__ = "dev"

__all__ = [
    "MigrationError",
    "MigrationResult",
    "MigratorConfig",
    "MissingKeyError",
    "SchemaValidationError",
    "StateMigrationService",
    "StateMigratorError",
    "StorageError",
    "UnsupportedVersionError",
    "create_migration_service",
    "load_config",
]
