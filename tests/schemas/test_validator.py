"""Tests for stored state schema validation."""

import pytest

from state_migrator.exceptions import MigrationError, SchemaValidationError
from state_migrator.schemas import (
    StateValidator,
    get_validator,
    validate_state_v3,
)
from tests.migration.data import v3_account


@pytest.fixture
def validator() -> StateValidator:
    return StateValidator()


class TestValidateStateV3:
    def test_accepts_written_state(self, validator: StateValidator) -> None:
        state = {
            "accounts": {
                "u1": v3_account("u1", 15, 1, True),
                "ghost": None,
                "bare": {},
            },
            "activeUserId": "u1",
        }

        validator.validate_state_v3(state)

    def test_accepts_unknown_fields(self, validator: StateValidator) -> None:
        """Fields added by newer clients are tolerated."""
        account = v3_account("u1")
        account["profile"]["orgIdentifier"] = "acme"

        validator.validate_state_v3({"accounts": {"u1": account}, "x": 1})

    def test_accepts_unlisted_kdf_type(
        self, validator: StateValidator
    ) -> None:
        account = v3_account("u1")
        account["profile"]["kdfType"] = 2

        validator.validate_state_v3({"accounts": {"u1": account}})

    def test_rejects_non_object(self, validator: StateValidator) -> None:
        with pytest.raises(SchemaValidationError) as exc_info:
            validator.validate_state_v3(["u1"])

        assert exc_info.value.path is None
        assert exc_info.value.target == "state"
        assert "Expected type" in str(exc_info.value)

    def test_reports_path_of_bad_value(
        self, validator: StateValidator
    ) -> None:
        account = v3_account("u1")
        account["settings"]["vaultTimeout"] = "15"

        with pytest.raises(SchemaValidationError) as exc_info:
            validator.validate_state_v3({"accounts": {"u1": account}})

        assert exc_info.value.path.startswith("accounts.u1")

    def test_rejects_unknown_timeout_action(
        self, validator: StateValidator
    ) -> None:
        account = v3_account("u1", vault_timeout_action=7)

        with pytest.raises(SchemaValidationError):
            validator.validate_state_v3({"accounts": {"u1": account}})


def test_shared_validator_is_reused() -> None:
    assert get_validator() is get_validator()


def test_error_is_a_migration_error() -> None:
    with pytest.raises(MigrationError):
        validate_state_v3({"activeUserId": 5})
