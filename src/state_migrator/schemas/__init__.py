"""JSON Schema validation for stored state documents.

Usage:
    from state_migrator.schemas import validate_state_v3

    validate_state_v3(raw_state)  # raises SchemaValidationError
"""

from state_migrator.schemas.validator import (
    StateValidator,
    get_validator,
    validate_state_v3,
)

__all__ = ["StateValidator", "get_validator", "validate_state_v3"]
