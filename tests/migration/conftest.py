"""Fixtures shared by the migration tests."""

from unittest.mock import AsyncMock

import pytest

from state_migrator.migration import MigrationContext, StateMigrationService
from state_migrator.storage import MemoryStorage
from state_migrator.token import TokenIdentity


@pytest.fixture
def token_service() -> AsyncMock:
    """Token service returning a fixed identity."""
    service = AsyncMock()
    service.resolve_identity.return_value = TokenIdentity(
        user_id="token-user",
        email="token@example.com",
        name="Token User",
        premium=True,
    )
    return service


@pytest.fixture
def context(
    document: MemoryStorage,
    preferences: MemoryStorage,
    secure: MemoryStorage,
    token_service: AsyncMock,
) -> MigrationContext:
    """Context over the in-memory stores."""
    return MigrationContext(document, preferences, secure, token_service)


@pytest.fixture
def service(
    document: MemoryStorage,
    preferences: MemoryStorage,
    secure: MemoryStorage,
    token_service: AsyncMock,
) -> StateMigrationService:
    """Migration service over the in-memory stores."""
    return StateMigrationService(document, preferences, secure, token_service)
