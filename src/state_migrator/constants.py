"""Centralized constants module for state-migrator.

This module is the single source of truth for constants shared across the
package. Constants are grouped by category and use typing.Final annotations
to ensure immutability.

Usage:
    from state_migrator.constants import STATE_VERSION
"""

from typing import Final

# =============================================================================
# State Schema Constants
# =============================================================================

# Latest schema version understood by this build
STATE_VERSION: Final[int] = 4

# Fresh installs report this version before the marker is written
FRESH_INSTALL_VERSION: Final[int] = 0

# Preference store key holding the schema version marker
STATE_VERSION_KEY: Final[str] = "stateVersion"

# Document store key holding the serialized State aggregate
STATE_KEY: Final[str] = "state"

# Separator between a field name and the user id in per-user keys
USER_KEY_SEPARATOR: Final[str] = "_"

# =============================================================================
# Configuration Constants
# =============================================================================

CONFIG_FILE_NAME: Final[str] = "settings.conf"
CONFIG_DIR_NAME: Final[str] = ".config"
DEFAULT_CONFIG_SUBDIR: Final[str] = "state-migrator"
DEFAULT_DATA_SUBPATH: Final[tuple[str, ...]] = (
    ".local",
    "share",
    "state-migrator",
)

DEFAULT_LOG_LEVEL: Final[str] = "INFO"
DEFAULT_CONSOLE_LOG_LEVEL: Final[str] = "WARNING"
DEFAULT_DOCUMENT_FILE: Final[str] = "document.json"
DEFAULT_PREFERENCES_FILE: Final[str] = "preferences.json"
DEFAULT_KEYRING_SERVICE: Final[str] = "state-migrator"

SECTION_STORAGE: Final[str] = "storage"

KEY_LOG_LEVEL: Final[str] = "log_level"
KEY_CONSOLE_LOG_LEVEL: Final[str] = "console_log_level"
KEY_DATA_DIR: Final[str] = "data_dir"
KEY_DOCUMENT_FILE: Final[str] = "document_file"
KEY_PREFERENCES_FILE: Final[str] = "preferences_file"
KEY_KEYRING_SERVICE: Final[str] = "keyring_service"

VALID_LOG_LEVELS: Final[tuple[str, ...]] = (
    "DEBUG",
    "INFO",
    "WARNING",
    "ERROR",
    "CRITICAL",
)

# Environment overrides
ENV_CONFIG_DIR: Final[str] = "STATE_MIGRATOR_CONFIG_DIR"
ENV_LOG_DIR: Final[str] = "STATE_MIGRATOR_LOG_DIR"

# =============================================================================
# Logging Constants
# =============================================================================

ROOT_LOGGER_NAME: Final[str] = "state_migrator"
LOG_FILE_NAME: Final[str] = "state-migrator.log"

# Maximum size for rotated log files (bytes)
LOG_ROTATION_THRESHOLD_BYTES: Final[int] = 1024 * 1024  # 1 MB

LOG_BACKUP_COUNT: Final[int] = 3

LOG_CONSOLE_FORMAT: Final[str] = (
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
LOG_CONSOLE_DATE_FORMAT: Final[str] = "%H:%M:%S"
LOG_FILE_FORMAT: Final[str] = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "%(funcName)s:%(lineno)d - %(message)s"
)
LOG_FILE_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

LOG_COLORS: Final[dict[str, str]] = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",
}
