"""JSON Schema validation for stored state documents.

Only the schema 3 ``state`` aggregate is validated: it is the one
structured document a step parses before fanning its contents out.
"""

from pathlib import Path
from typing import Any

import orjson
from jsonschema import Draft7Validator, ValidationError
from jsonschema.exceptions import best_match

from state_migrator.exceptions import SchemaValidationError
from state_migrator.logger import get_logger

logger = get_logger(__name__)

SCHEMA_DIR = Path(__file__).parent
STATE_V3_SCHEMA_PATH = SCHEMA_DIR / "state_v3.schema.json"


class StateValidator:
    """Validates stored documents against bundled JSON schemas."""

    def __init__(self) -> None:
        self._state_v3_validator = Draft7Validator(
            self._load_schema(STATE_V3_SCHEMA_PATH)
        )

    @staticmethod
    def _load_schema(schema_path: Path) -> dict[str, Any]:
        """Load a JSON schema bundled with the package.

        Raises:
            FileNotFoundError: If the schema file is missing
            ValueError: If the schema is not valid JSON

        """
        if not schema_path.exists():
            msg = f"Schema file not found: {schema_path}"
            raise FileNotFoundError(msg)

        try:
            return orjson.loads(schema_path.read_bytes())
        except orjson.JSONDecodeError as e:
            msg = f"Invalid JSON in schema file {schema_path}: {e}"
            raise ValueError(msg) from e

    @staticmethod
    def _format_validation_error(error: ValidationError) -> str:
        """Turn a jsonschema error into a short message with its path."""
        path = (
            ".".join(str(p) for p in error.absolute_path)
            if error.absolute_path
            else "root"
        )

        message = error.message
        if error.validator == "enum":
            message = f"Invalid value. {error.message}"
        elif error.validator == "type":
            expected_type = error.validator_value
            actual = type(error.instance).__name__
            message = f"Expected type '{expected_type}', got '{actual}'"

        return f"{message} (at '{path}')"

    def validate_state_v3(self, state: Any) -> None:
        """Validate a schema 3 ``state`` document.

        Raises:
            SchemaValidationError: If the document does not match

        """
        errors = list(self._state_v3_validator.iter_errors(state))
        if errors:
            best_error = best_match(errors)
            path = (
                ".".join(str(p) for p in best_error.absolute_path)
                if best_error.absolute_path
                else None
            )
            raise SchemaValidationError(
                self._format_validation_error(best_error),
                target="state",
                path=path,
            )

        logger.debug("State document validation passed (v3)")


_validator: StateValidator | None = None


def get_validator() -> StateValidator:
    """Get or create the shared validator instance."""
    global _validator  # noqa: PLW0603
    if _validator is None:
        _validator = StateValidator()
    return _validator


def validate_state_v3(state: Any) -> None:
    """Validate a schema 3 ``state`` document (convenience function).

    Raises:
        SchemaValidationError: If the document does not match

    """
    get_validator().validate_state_v3(state)
