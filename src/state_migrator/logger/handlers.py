"""Handler creation and management for the logging system.

All handlers hang off a QueueListener so coroutines never block on the
console stream or the log file.
"""

import logging
import queue
import sys
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from state_migrator.constants import (
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_DATE_FORMAT,
    LOG_CONSOLE_FORMAT,
    LOG_FILE_DATE_FORMAT,
    LOG_FILE_FORMAT,
    LOG_ROTATION_THRESHOLD_BYTES,
    ROOT_LOGGER_NAME,
)
from state_migrator.exceptions import ConfigurationError
from state_migrator.logger.formatters import HybridConsoleFormatter

if TYPE_CHECKING:
    from state_migrator.logger.state import _LoggerState


def _create_console_handler(console_level: str) -> logging.StreamHandler:
    """Create console handler with hybrid formatting.

    Args:
        console_level: Log level for console (e.g., "INFO", "WARNING")

    Returns:
        Configured StreamHandler writing to stdout

    """
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        HybridConsoleFormatter(
            LOG_CONSOLE_FORMAT,
            datefmt=LOG_CONSOLE_DATE_FORMAT,
        )
    )
    console_handler.setLevel(getattr(logging, console_level, logging.WARNING))
    return console_handler


def _create_file_handler(
    log_file: Path, file_level: str
) -> RotatingFileHandler:
    """Create rotating file handler.

    Args:
        log_file: Path to log file
        file_level: Log level for file (e.g., "DEBUG", "INFO")

    Returns:
        Configured RotatingFileHandler

    Raises:
        ConfigurationError: If the log directory or file cannot be opened

    """
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=LOG_ROTATION_THRESHOLD_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        msg = f"Failed to setup file logging: {e}"
        raise ConfigurationError(msg, target=str(log_file)) from e

    file_handler.setFormatter(
        logging.Formatter(LOG_FILE_FORMAT, datefmt=LOG_FILE_DATE_FORMAT)
    )
    file_handler.setLevel(getattr(logging, file_level, logging.INFO))
    return file_handler


def setup_root_logger(
    state: "_LoggerState",
    console_level: str,
    file_level: str,
    log_file: Path,
    enable_file_logging: bool,  # noqa: FBT001
) -> None:
    """Initialize the root ``state_migrator`` logger exactly once.

    Args:
        state: Logger state object (from logger.state module)
        console_level: Console log level
        file_level: File log level
        log_file: Path to log file
        enable_file_logging: Whether to attach the rotating file handler

    Raises:
        ConfigurationError: If handler setup fails

    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)  # Capture all, filter at handlers
    root_logger.propagate = False

    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    handlers: list[logging.Handler] = [_create_console_handler(console_level)]
    if enable_file_logging:
        handlers.append(_create_file_handler(log_file, file_level))

    state.log_queue = queue.Queue(-1)
    state.queue_listener = QueueListener(
        state.log_queue,
        *handlers,
        respect_handler_level=True,
    )
    state.queue_listener.start()

    root_logger.addHandler(QueueHandler(state.log_queue))
    state.root_initialized = True


def apply_levels(
    state: "_LoggerState", console_level: str, file_level: str
) -> None:
    """Update handler levels on an already initialized listener.

    Only levels change; handlers are never added or removed here.
    """
    if state.queue_listener is None:
        return

    for handler in state.queue_listener.handlers:
        if isinstance(handler, RotatingFileHandler):
            handler.setLevel(getattr(logging, file_level, logging.INFO))
        elif isinstance(handler, logging.StreamHandler):
            handler.setLevel(getattr(logging, console_level, logging.WARNING))
