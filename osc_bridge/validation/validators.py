"""
Client payload validators.

This module provides validation functions to ensure JSON payloads
received from WebSocket clients conform to a known event schema.
"""

from typing import Any, Dict, List, Tuple, Optional
import logging

from .schemas import EVENT_SCHEMAS, EventSchema
from ..constants import ANALYSIS_EVENT_TYPE

logger = logging.getLogger(__name__)


class ValidationResult:
    """Result of validation with detailed error information."""

    def __init__(self, valid: bool, errors: List[str] = None):
        self.valid = valid
        self.errors = errors or []

    def __bool__(self):
        return self.valid

    def __str__(self):
        if self.valid:
            return "Validation passed"
        return f"Validation failed: {'; '.join(self.errors)}"


def validate_type(value: Any, expected_type: type, field_name: str = None) -> Tuple[bool, Optional[str]]:
    """
    Validate that a value is of expected type.

    Args:
        value: Value to validate
        expected_type: Expected type
        field_name: Optional field name for error message

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, expected_type):
        field_label = f"'{field_name}'" if field_name else "Value"
        error_msg = (
            f"{field_label} has type {type(value).__name__}, "
            f"expected {expected_type.__name__}"
        )
        return False, error_msg

    return True, None


def validate_against_schema(payload: Dict[str, Any], schema: EventSchema) -> ValidationResult:
    """
    Validate a payload dictionary against a schema.

    Args:
        payload: Decoded JSON object
        schema: Schema to check against

    Returns:
        ValidationResult with success status and any errors
    """
    errors = []

    missing = [key for key in schema.required if key not in payload]
    if missing:
        errors.append(f"Missing required fields: {', '.join(missing)}")

    for key, value in payload.items():
        expected_type = schema.types.get(key)
        if expected_type is None:
            continue
        valid, error = validate_type(value, expected_type, key)
        if not valid:
            errors.append(error)
        elif key in schema.non_empty and not value:
            errors.append(f"Field '{key}' must not be empty")

    return ValidationResult(valid=len(errors) == 0, errors=errors)


def validate_event(payload: Any) -> ValidationResult:
    """
    Validate a client payload against the schema named by its "type".

    Args:
        payload: Decoded JSON value

    Returns:
        ValidationResult; payloads without a known type are invalid

    Example:
        >>> result = validate_event({"type": "analysis", "address": "/a", "args": [1]})
        >>> bool(result)
        True
    """
    if not isinstance(payload, dict):
        return ValidationResult(
            valid=False,
            errors=[f"Payload has type {type(payload).__name__}, expected dict"]
        )

    event_type = payload.get("type")
    schema = EVENT_SCHEMAS.get(event_type) if isinstance(event_type, str) else None
    if schema is None:
        return ValidationResult(valid=False, errors=[f"Unknown event type: {event_type!r}"])

    return validate_against_schema(payload, schema)


def is_analysis_event(payload: Any) -> bool:
    """Check whether a payload is a well-formed analysis event."""
    if not isinstance(payload, dict) or payload.get("type") != ANALYSIS_EVENT_TYPE:
        return False

    result = validate_event(payload)
    if not result:
        logger.debug(f"Rejected analysis event: {result}")
    return result.valid
