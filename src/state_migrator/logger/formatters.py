"""Logging formatters for console output.

- ColoredConsoleFormatter: adds ANSI color codes to level names
- HybridConsoleFormatter: bare message for INFO, colored structure otherwise
"""

import logging

from state_migrator.constants import LOG_COLORS


class ColoredConsoleFormatter(logging.Formatter):
    """Console formatter with ANSI color support for different log levels.

    The level name is swapped for its colored variant only for the duration
    of ``format()`` so the shared record is left untouched for other handlers.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with a colored level name."""
        color = LOG_COLORS.get(record.levelname)
        if color is None:
            return super().format(record)

        original_levelname = record.levelname
        record.levelname = f"{color}{original_levelname}{LOG_COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


class HybridConsoleFormatter(logging.Formatter):
    """Console formatter with simple format for INFO, structured for others.

    Example Output:
        INFO:     "Migrated local state from v2 to v4"
        WARNING:  "12:30:45 - state_migrator.config - WARNING - Bad level"

    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
    ) -> None:
        """Initialize hybrid formatter.

        Args:
            fmt: Format string for structured messages (non-INFO levels)
            datefmt: Date format string for timestamps

        """
        super().__init__(fmt, datefmt)
        self._colored_formatter = ColoredConsoleFormatter(fmt, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        """Format log record using simple or structured format by level."""
        if record.levelno == logging.INFO:
            return record.getMessage()
        return self._colored_formatter.format(record)
