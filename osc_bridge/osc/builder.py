"""
OSC (Open Sound Control) message builder for UDP communication.

This module provides utilities for encoding messages in the OSC protocol format.
OSC messages consist of an address pattern, type tags, and arguments.

Reference: http://opensoundcontrol.org/spec-1_0
"""

import struct
from typing import Any, List, Sequence, Tuple

from ..constants import OSCConstants


def _pad_to_multiple_of_4(data: bytes) -> bytes:
    """Pad bytes to a multiple of 4 bytes with null bytes."""
    remainder = len(data) % 4
    if remainder != 0:
        data += b'\x00' * (4 - remainder)
    return data


def _encode_string(s: str) -> bytes:
    """Encode a string as OSC string (null-terminated, padded to 4 bytes)."""
    encoded = s.encode('utf-8') + b'\x00'
    return _pad_to_multiple_of_4(encoded)


def _encode_int(i: int) -> Tuple[str, bytes]:
    """Encode an integer as int32, or int64 when it doesn't fit."""
    if OSCConstants.INT32_MIN <= i <= OSCConstants.INT32_MAX:
        return 'i', struct.pack('>i', i)
    if OSCConstants.INT64_MIN <= i <= OSCConstants.INT64_MAX:
        return 'h', struct.pack('>q', i)
    raise ValueError(f"Integer out of OSC int64 range: {i}")


def _encode_float(f: float) -> bytes:
    """Encode a float as OSC float32 (big-endian)."""
    try:
        return struct.pack('>f', f)
    except OverflowError:
        raise ValueError(f"Float out of OSC float32 range: {f}")


def encode_argument(arg: Any) -> Tuple[str, bytes]:
    """
    Encode a single argument.

    Returns:
        Tuple of (type_tag, payload). Booleans and None have an empty payload.

    Raises:
        TypeError: If the argument type has no OSC encoding
        ValueError: If an integer does not fit in 64 bits or a float in float32
    """
    # bool is a subclass of int, so it must be checked first
    if isinstance(arg, bool):
        return ('T' if arg else 'F'), b''
    if arg is None:
        return 'N', b''
    if isinstance(arg, int):
        return _encode_int(arg)
    if isinstance(arg, float):
        return 'f', _encode_float(arg)
    if isinstance(arg, str):
        return 's', _encode_string(arg)
    raise TypeError(f"Unsupported OSC argument type: {type(arg).__name__}")


def encode_message(address: str, args: Sequence[Any] = ()) -> bytes:
    """
    Build an OSC message with the given address pattern and arguments.

    Args:
        address: OSC address pattern (e.g., "/fractal/zoom")
        args: Arguments (int, float, str, bool, None)

    Returns:
        bytes: Complete OSC message ready to send via UDP

    Example:
        >>> encode_message("/analysis/energy", [0.5, 3])
        b'/analysis/energy\\x00\\x00\\x00\\x00,fi\\x00?\\x00\\x00\\x00\\x00\\x00\\x00\\x03'
    """
    type_tags = ','
    payloads: List[bytes] = []

    for arg in args:
        tag, payload = encode_argument(arg)
        type_tags += tag
        payloads.append(payload)

    return _encode_string(address) + _encode_string(type_tags) + b''.join(payloads)
