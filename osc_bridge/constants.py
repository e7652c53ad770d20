"""
Constants for the OSC bridge.

This module centralizes magic values and defaults used throughout
the codec, the UDP transports and the WebSocket server.
"""

from enum import Enum


class BridgeDefaults:
    """Default network endpoints and timing values."""

    # Inbound OSC (UDP)
    OSC_HOST = "0.0.0.0"
    OSC_PORT = 9000

    # WebSocket server
    WS_HOST = "0.0.0.0"
    WS_PORT = 8080

    # Outbound OSC (UDP)
    OUT_HOST = "127.0.0.1"
    OUT_PORT = 9001

    # Liveness probing of WebSocket clients
    PING_INTERVAL_SECONDS = 30.0

    # Inbound processing
    EVENT_QUEUE_SIZE = 1000
    RECV_BUFFER_SIZE = 65536

    # Shutdown
    CLOSE_GRACE_SECONDS = 0.25
    SHUTDOWN_TIMEOUT_SECONDS = 0.5


class OSCConstants:
    """Wire-format constants of the OSC 1.0 encoding."""

    BUNDLE_MARKER = b"#bundle\x00"
    BUNDLE_HEADER_SIZE = 16  # marker + 64-bit time tag
    TYPE_TAG_PREFIX = 0x2C  # ','
    ALIGNMENT = 4

    INT32_MIN = -(2 ** 31)
    INT32_MAX = 2 ** 31 - 1
    INT64_MIN = -(2 ** 63)
    INT64_MAX = 2 ** 63 - 1


class ConnectionStatus(Enum):
    """Transport state of a registered WebSocket client."""
    OPEN = "open"
    CLOSED = "closed"


class Liveness(Enum):
    """Result of the most recent liveness probe of a client."""
    CONFIRMED = "confirmed"
    UNCONFIRMED = "unconfirmed"


ANALYSIS_EVENT_TYPE = "analysis"
