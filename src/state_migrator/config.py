"""Settings loading and service wiring.

Settings live in an INI file (``settings.conf``) under the config
directory. Missing options fall back to defaults, so an absent file is a
valid configuration.

Example settings.conf:

    [DEFAULT]
    log_level = INFO
    console_log_level = WARNING

    [storage]
    data_dir = ~/.local/share/state-migrator
    document_file = document.json
    preferences_file = preferences.json
    keyring_service = state-migrator
"""

import configparser
import os
from dataclasses import dataclass
from pathlib import Path

from state_migrator.constants import (
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_CONFIG_SUBDIR,
    DEFAULT_CONSOLE_LOG_LEVEL,
    DEFAULT_DATA_SUBPATH,
    DEFAULT_DOCUMENT_FILE,
    DEFAULT_KEYRING_SERVICE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PREFERENCES_FILE,
    ENV_CONFIG_DIR,
    KEY_CONSOLE_LOG_LEVEL,
    KEY_DATA_DIR,
    KEY_DOCUMENT_FILE,
    KEY_KEYRING_SERVICE,
    KEY_LOG_LEVEL,
    KEY_PREFERENCES_FILE,
    SECTION_STORAGE,
    VALID_LOG_LEVELS,
)
from state_migrator.exceptions import ConfigurationError
from state_migrator.logger import get_logger, setup_logging
from state_migrator.migration import StateMigrationService
from state_migrator.storage import JsonFileStorage, KeyringStorage
from state_migrator.token import JwtTokenService, TokenService

logger = get_logger(__name__)


def default_config_dir() -> Path:
    """Return the config directory, honoring ``STATE_MIGRATOR_CONFIG_DIR``."""
    env_dir = os.getenv(ENV_CONFIG_DIR)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / CONFIG_DIR_NAME / DEFAULT_CONFIG_SUBDIR


def default_data_dir() -> Path:
    """Return the default directory for the JSON stores."""
    return Path.home().joinpath(*DEFAULT_DATA_SUBPATH)


@dataclass(frozen=True)
class MigratorConfig:
    """Resolved settings."""

    data_dir: Path
    document_file: str = DEFAULT_DOCUMENT_FILE
    preferences_file: str = DEFAULT_PREFERENCES_FILE
    keyring_service: str = DEFAULT_KEYRING_SERVICE
    log_level: str = DEFAULT_LOG_LEVEL
    console_log_level: str = DEFAULT_CONSOLE_LOG_LEVEL

    @property
    def document_path(self) -> Path:
        return self.data_dir / self.document_file

    @property
    def preferences_path(self) -> Path:
        return self.data_dir / self.preferences_file


def _validate_level(value: str, key: str, fallback: str) -> str:
    level = value.strip().upper()
    if level in VALID_LOG_LEVELS:
        return level
    logger.warning(
        "Invalid %s '%s' in settings, using %s", key, value, fallback
    )
    return fallback


def load_config(config_dir: Path | None = None) -> MigratorConfig:
    """Load settings from ``<config_dir>/settings.conf``.

    Args:
        config_dir: Directory holding settings.conf
            (default: see default_config_dir())

    Returns:
        Resolved configuration

    Raises:
        ConfigurationError: If the file exists but cannot be parsed

    """
    settings_file = (config_dir or default_config_dir()) / CONFIG_FILE_NAME
    parser = configparser.ConfigParser()

    if settings_file.exists():
        try:
            with settings_file.open(encoding="utf-8") as f:
                parser.read_file(f)
        except (configparser.Error, OSError, UnicodeDecodeError) as e:
            msg = f"Cannot read settings: {e}"
            raise ConfigurationError(msg, target=str(settings_file)) from e
        logger.debug("Loaded settings from %s", settings_file)
    else:
        logger.debug("No settings file at %s, using defaults", settings_file)

    defaults = parser.defaults()
    storage = (
        parser[SECTION_STORAGE]
        if parser.has_section(SECTION_STORAGE)
        else defaults
    )

    data_dir_value = storage.get(KEY_DATA_DIR)
    data_dir = (
        Path(data_dir_value).expanduser()
        if data_dir_value
        else default_data_dir()
    )

    return MigratorConfig(
        data_dir=data_dir,
        document_file=storage.get(KEY_DOCUMENT_FILE, DEFAULT_DOCUMENT_FILE),
        preferences_file=storage.get(
            KEY_PREFERENCES_FILE, DEFAULT_PREFERENCES_FILE
        ),
        keyring_service=storage.get(
            KEY_KEYRING_SERVICE, DEFAULT_KEYRING_SERVICE
        ),
        log_level=_validate_level(
            defaults.get(KEY_LOG_LEVEL, DEFAULT_LOG_LEVEL),
            KEY_LOG_LEVEL,
            DEFAULT_LOG_LEVEL,
        ),
        console_log_level=_validate_level(
            defaults.get(KEY_CONSOLE_LOG_LEVEL, DEFAULT_CONSOLE_LOG_LEVEL),
            KEY_CONSOLE_LOG_LEVEL,
            DEFAULT_CONSOLE_LOG_LEVEL,
        ),
    )


def create_migration_service(
    config: MigratorConfig,
    token_service: TokenService | None = None,
) -> StateMigrationService:
    """Wire JSON file and keyring stores into a migration service.

    Also applies the configured log levels.

    Args:
        config: Loaded settings
        token_service: Identity resolver (default: JwtTokenService)

    Returns:
        Service ready for ``await service.migrate_if_needed()``

    """
    setup_logging(
        console_level=config.console_log_level,
        file_level=config.log_level,
    )
    return StateMigrationService(
        document=JsonFileStorage(config.document_path),
        preferences=JsonFileStorage(config.preferences_path),
        secure=KeyringStorage(config.keyring_service),
        token_service=token_service or JwtTokenService(),
    )
