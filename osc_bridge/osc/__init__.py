"""
OSC codec: binary message/bundle decoding and message encoding.
"""

from .types import OSCArgument, OSCMessage
from .parser import decode_message, decode_bundle, decode_packet
from .builder import encode_message, encode_argument

__all__ = [
    "OSCArgument",
    "OSCMessage",
    "decode_message",
    "decode_bundle",
    "decode_packet",
    "encode_message",
    "encode_argument",
]
