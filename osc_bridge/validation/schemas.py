"""
Schema definitions for client payload validation.

This module defines the expected structure and types of the JSON
events WebSocket clients send to the bridge.
"""

from typing import Dict, List
from dataclasses import dataclass

from ..constants import ANALYSIS_EVENT_TYPE


@dataclass
class EventSchema:
    """
    Schema definition for an event type.

    Attributes:
        required: List of required field names
        types: Dict mapping field names to expected types
        non_empty: Fields that must not be empty
    """
    required: List[str]
    types: Dict[str, type] = None
    non_empty: List[str] = None

    def __post_init__(self):
        if self.types is None:
            self.types = {}
        if self.non_empty is None:
            self.non_empty = []


# Computed visual/audio metrics destined for outbound OSC
ANALYSIS_SCHEMA = EventSchema(
    required=["type", "address", "args"],
    types={"type": str, "address": str, "args": list},
    non_empty=["address"],
)

# Schema registry mapping the "type" field to schemas
EVENT_SCHEMAS: Dict[str, EventSchema] = {
    ANALYSIS_EVENT_TYPE: ANALYSIS_SCHEMA,
}
