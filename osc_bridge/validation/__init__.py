"""
Validation package for client payloads.

This package provides schema definitions and validators to ensure
events sent by WebSocket clients conform to expected formats.
"""

from .validators import (
    ValidationResult,
    validate_event,
    validate_against_schema,
    validate_type,
    is_analysis_event,
)
from .schemas import EVENT_SCHEMAS, EventSchema, ANALYSIS_SCHEMA

__all__ = [
    "ValidationResult",
    "validate_event",
    "validate_against_schema",
    "validate_type",
    "is_analysis_event",
    "EVENT_SCHEMAS",
    "EventSchema",
    "ANALYSIS_SCHEMA",
]
