"""Logging utilities for state-migrator.

Architecture:
    Application -> QueueHandler -> Queue -> QueueListener Thread
                                                |
                                     Console + File Handlers

Usage:
    >>> from state_migrator.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Migrating from v%d", version)  # %-style, never f-strings

Environment Variables:
    STATE_MIGRATOR_LOG_DIR: Override the log directory (used by the tests).

Rules:
    1. Always use: logger = get_logger(__name__)
    2. Never call logging.basicConfig()
    3. Handlers are only attached to the root 'state_migrator' logger
"""

from state_migrator.logger.formatters import (
    ColoredConsoleFormatter,
    HybridConsoleFormatter,
)
from state_migrator.logger.logger import (
    clear_logger_state,
    default_log_file,
    flush_all_handlers,
    get_logger,
    setup_logging,
)
from state_migrator.logger.state import get_state

__all__ = [
    "ColoredConsoleFormatter",
    "HybridConsoleFormatter",
    "clear_logger_state",
    "default_log_file",
    "flush_all_handlers",
    "get_logger",
    "get_state",
    "setup_logging",
]
