"""Serializers for converting between OSC messages and WebSocket payloads."""

import json
import logging
from typing import Any, Dict, Optional, Union

from ..osc import OSCMessage


logger = logging.getLogger(__name__)


def serialize_message(message: OSCMessage) -> Dict[str, Any]:
    """
    Serialize a decoded OSC message to the JSON event sent to clients.

    Args:
        message: Decoded OSC message

    Returns:
        Dictionary of the form {"address": ..., "args": [...]}
    """
    return message.to_dict()


def parse_client_payload(raw: Union[str, bytes]) -> Optional[Any]:
    """
    Decode a frame received from a client.

    Args:
        raw: Text or binary WebSocket frame

    Returns:
        The decoded JSON value, or None if the frame isn't valid JSON
    """
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        logger.debug(f"Invalid JSON from client: {e}")
        return None
