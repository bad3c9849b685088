"""Main logger module providing the public logging API.

- setup_logging(): configure the QueueHandler based root logger
- get_logger(): module-level convenience wrapper
- flush_all_handlers(): drain the queue and flush handlers
- clear_logger_state(): reset everything between tests
"""

import atexit
import contextlib
import logging
import os
import time
from pathlib import Path

from state_migrator.constants import (
    CONFIG_DIR_NAME,
    DEFAULT_CONFIG_SUBDIR,
    DEFAULT_CONSOLE_LOG_LEVEL,
    DEFAULT_LOG_LEVEL,
    ENV_LOG_DIR,
    LOG_FILE_NAME,
    ROOT_LOGGER_NAME,
)
from state_migrator.logger.handlers import apply_levels, setup_root_logger
from state_migrator.logger.state import get_state


def default_log_file() -> Path:
    """Return the log file path, honoring ``STATE_MIGRATOR_LOG_DIR``."""
    env_log_dir = os.getenv(ENV_LOG_DIR)
    if env_log_dir:
        return Path(env_log_dir).expanduser() / LOG_FILE_NAME
    return (
        Path.home()
        / CONFIG_DIR_NAME
        / DEFAULT_CONFIG_SUBDIR
        / "logs"
        / LOG_FILE_NAME
    )


def flush_all_handlers() -> None:
    """Wait for queued records and flush every listener handler.

    Waits at most five seconds for the queue to drain.
    """
    state = get_state()
    if state.queue_listener is None or state.log_queue is None:
        return

    deadline = time.time() + 5.0
    while not state.log_queue.empty() and time.time() < deadline:
        time.sleep(0.01)

    # Listener may have dequeued the last record without writing it yet
    time.sleep(0.1)

    for handler in state.queue_listener.handlers:
        with contextlib.suppress(OSError, ValueError):
            handler.flush()


def _cleanup_logging() -> None:
    """Stop the QueueListener on interpreter exit."""
    state = get_state()
    if state.queue_listener is not None:
        flush_all_handlers()
        state.queue_listener.stop()
        state.queue_listener = None


atexit.register(_cleanup_logging)


def setup_logging(
    name: str = ROOT_LOGGER_NAME,
    console_level: str | None = None,
    file_level: str | None = None,
    log_file: Path | None = None,
    enable_file_logging: bool = True,  # noqa: FBT001, FBT002
) -> logging.Logger:
    """Configure logging and return the logger named ``name``.

    The root ``state_migrator`` logger is initialized once; child loggers
    propagate to it. When the root is already set up and explicit levels
    are given, only the handler levels are updated.

    Args:
        name: Logger name, typically __name__
        console_level: Console log level ("DEBUG", "INFO", "WARNING")
        file_level: File log level ("DEBUG", "INFO")
        log_file: Path to log file (default: see default_log_file())
        enable_file_logging: Whether to enable file logging

    Returns:
        Logger instance

    Raises:
        ConfigurationError: If file logging setup fails

    """
    state = get_state()
    with state.lock:
        if not state.root_initialized:
            setup_root_logger(
                state,
                console_level or DEFAULT_CONSOLE_LOG_LEVEL,
                file_level or DEFAULT_LOG_LEVEL,
                log_file or default_log_file(),
                enable_file_logging,
            )
        elif console_level is not None or file_level is not None:
            apply_levels(
                state,
                console_level or DEFAULT_CONSOLE_LOG_LEVEL,
                file_level or DEFAULT_LOG_LEVEL,
            )

    return logging.getLogger(name)


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a logger, initializing the root logger on first use.

    Always use ``logger = get_logger(__name__)`` at module level.
    """
    return setup_logging(name=name)


def clear_logger_state() -> None:
    """Clear global logger state. Intended for tests only."""
    state = get_state()
    with state.lock:
        if state.queue_listener is not None:
            flush_all_handlers()
            state.queue_listener.stop()
            state.queue_listener = None

        state.log_queue = None
        state.root_initialized = False

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in root_logger.handlers[:]:
            handler.close()
            root_logger.removeHandler(handler)
