"""Pytest configuration and fixtures for state-migrator tests."""

import logging
import os
import tempfile

# Must be set before state_migrator creates its file handler
os.environ.setdefault(
    "STATE_MIGRATOR_LOG_DIR",
    tempfile.mkdtemp(prefix="state-migrator-test-logs-"),
)

import pytest  # noqa: E402

from state_migrator.storage import MemoryStorage  # noqa: E402


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Enable log propagation so caplog sees state_migrator records.

    The root ``state_migrator`` logger is created with propagate=False in
    production code.
    """
    original_propagation = {}
    for name in list(logging.Logger.manager.loggerDict.keys()):
        if name.startswith("state_migrator"):
            logger = logging.getLogger(name)
            original_propagation[name] = logger.propagate
            logger.propagate = True

    yield

    for name, propagate_value in original_propagation.items():
        logging.getLogger(name).propagate = propagate_value


@pytest.fixture
def document() -> MemoryStorage:
    """Empty document store."""
    return MemoryStorage()


@pytest.fixture
def preferences() -> MemoryStorage:
    """Empty preference store."""
    return MemoryStorage()


@pytest.fixture
def secure() -> MemoryStorage:
    """Empty secure store."""
    return MemoryStorage()
