"""
OSC (Open Sound Control) packet parser.

Parses binary OSC messages and bundles received via UDP into structured
Python data. Input comes from untrusted peers, so parsing never raises:
truncated or malformed packets yield the longest prefix that could be read.

Reference: http://opensoundcontrol.org/spec-1_0
"""

import struct
from typing import Callable, Dict, List, Optional, Tuple

from ..constants import OSCConstants
from .types import OSCArgument, OSCMessage

_INT32 = struct.Struct('>i')
_INT64 = struct.Struct('>q')
_FLOAT32 = struct.Struct('>f')
_FLOAT64 = struct.Struct('>d')

# (value, new_offset), or None when the buffer is too short
ReadResult = Optional[Tuple[OSCArgument, int]]


def _align(offset: int) -> int:
    """Round offset up to the next multiple of 4."""
    return (offset + OSCConstants.ALIGNMENT - 1) // OSCConstants.ALIGNMENT * OSCConstants.ALIGNMENT


def _read_string(data: bytes, offset: int) -> ReadResult:
    """
    Read OSC string from bytes (null-terminated, padded to 4 bytes).

    Returns:
        Tuple of (string, new_offset), or None if no terminator is found
    """
    null_idx = data.find(b'\x00', offset)
    if null_idx == -1:
        return None

    string = data[offset:null_idx].decode('utf-8', errors='replace')

    # Padding counts from the terminator, so the new offset is always
    # strictly past it
    return string, _align(null_idx + 1)


def _read_fixed(codec: struct.Struct, data: bytes, offset: int) -> ReadResult:
    """Read a fixed-width big-endian value if enough bytes remain."""
    if offset + codec.size > len(data):
        return None
    return codec.unpack_from(data, offset)[0], offset + codec.size


def _read_int32(data: bytes, offset: int) -> ReadResult:
    return _read_fixed(_INT32, data, offset)


def _read_int64(data: bytes, offset: int) -> ReadResult:
    return _read_fixed(_INT64, data, offset)


def _read_float32(data: bytes, offset: int) -> ReadResult:
    return _read_fixed(_FLOAT32, data, offset)


def _read_float64(data: bytes, offset: int) -> ReadResult:
    return _read_fixed(_FLOAT64, data, offset)


def _read_true(data: bytes, offset: int) -> ReadResult:
    return True, offset


def _read_false(data: bytes, offset: int) -> ReadResult:
    return False, offset


def _read_nil(data: bytes, offset: int) -> ReadResult:
    return None, offset


ARGUMENT_READERS: Dict[str, Callable[[bytes, int], ReadResult]] = {
    'f': _read_float32,
    'i': _read_int32,
    's': _read_string,
    'd': _read_float64,
    'T': _read_true,
    'F': _read_false,
    'N': _read_nil,
    'h': _read_int64,
}


def decode_message(data: bytes) -> OSCMessage:
    """
    Parse a binary OSC message.

    Args:
        data: Raw bytes from a UDP packet or a bundle element

    Returns:
        OSCMessage: Parsed message. An empty address means the packet
        could not be parsed at all.

    Example:
        >>> data = b'/fractal/zoom\\x00\\x00\\x00,f\\x00\\x00@ \\x00\\x00'
        >>> decode_message(data)
        OSCMessage(address='/fractal/zoom', args=(2.5,))
    """
    if not isinstance(data, bytes):
        data = bytes(data)

    if len(data) < 4:
        return OSCMessage(address="")

    # Address pattern
    address_end = data.find(b'\x00')
    if address_end == -1:
        return OSCMessage(address="")
    address = data[:address_end].decode('utf-8', errors='replace')
    offset = _align(address_end + 1)

    # Messages without a type tag string carry no arguments
    if offset >= len(data) or data[offset] != OSCConstants.TYPE_TAG_PREFIX:
        return OSCMessage(address=address)

    tags_end = data.find(b'\x00', offset + 1)
    if tags_end == -1:
        return OSCMessage(address=address)
    type_tags = data[offset + 1:tags_end].decode('ascii', errors='replace')
    offset = _align(tags_end + 1)

    arguments: List[OSCArgument] = []
    for tag in type_tags:
        reader = ARGUMENT_READERS.get(tag)
        if reader is None:
            # Width of an unknown tag is unknown; later offsets can't be trusted
            break

        result = reader(data, offset)
        if result is None:
            break

        value, offset = result
        arguments.append(value)

    return OSCMessage(address=address, args=tuple(arguments))


def decode_bundle(data: bytes) -> List[OSCMessage]:
    """
    Parse an OSC bundle (or a bare message) into a flat list of messages.

    Nested bundles are flattened depth-first, preserving element order.
    The bundle time tag is skipped and not interpreted. Elements whose
    declared size is non-positive or overruns the buffer end the walk;
    messages decoded so far are kept.

    Args:
        data: Raw bytes from a UDP packet

    Returns:
        List of parsed messages with non-empty addresses
    """
    if not isinstance(data, bytes):
        data = bytes(data)

    if len(data) < 8:
        return []

    if not data.startswith(OSCConstants.BUNDLE_MARKER):
        message = decode_message(data)
        return [message] if message.address else []

    messages: List[OSCMessage] = []
    offset = OSCConstants.BUNDLE_HEADER_SIZE

    while offset + _INT32.size <= len(data):
        size = _INT32.unpack_from(data, offset)[0]
        offset += _INT32.size

        if size <= 0 or offset + size > len(data):
            break

        # Each element is a strict sub-slice, so recursion always terminates
        element = data[offset:offset + size]
        if element.startswith(OSCConstants.BUNDLE_MARKER):
            messages.extend(decode_bundle(element))
        else:
            message = decode_message(element)
            if message.address:
                messages.append(message)

        offset += size

    return messages


def decode_packet(data: bytes) -> List[OSCMessage]:
    """Decode any inbound datagram, bundle or message, into messages."""
    return decode_bundle(data)
