"""
UDP sender for emitting OSC messages built from client analysis events.

This module provides a non-blocking UDP socket for sending OSC packets
without blocking the event loop. Sending is best-effort: failures are
logged and counted, never raised.
"""

import logging
import socket
from typing import Any, Dict, Optional, Sequence

from ..constants import BridgeDefaults
from ..osc import encode_message


logger = logging.getLogger(__name__)


class UDPSender:
    """
    Non-blocking UDP sender for OSC messages.

    Sends fire-and-forget UDP packets to a fixed default target, which
    each call may override. Never blocks - if send fails, logs error and
    continues.
    """

    def __init__(self, host: str = BridgeDefaults.OUT_HOST, port: int = BridgeDefaults.OUT_PORT):
        """
        Initialize UDP sender.

        Args:
            host: Default target host (default: localhost)
            port: Default target UDP port (default: 9001)
        """
        self.host = host
        self.port = port
        self.socket: Optional[socket.socket] = None
        self.enabled = False

        # Statistics
        self.sent_count = 0
        self.error_count = 0

    def start(self) -> None:
        """Initialize UDP socket and enable sending."""
        self.socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.socket.setblocking(False)
        self.enabled = True
        logger.info(f"UDP sender started, default target {self.host}:{self.port}")

    def stop(self) -> None:
        """Close UDP socket and disable sending."""
        self.enabled = False
        if self.socket:
            try:
                self.socket.close()
            except OSError as e:
                logger.error(f"Error closing UDP socket: {e}")
            finally:
                self.socket = None
        logger.info("UDP sender stopped")

    def send(
        self,
        address: str,
        args: Sequence[Any] = (),
        host: Optional[str] = None,
        port: Optional[int] = None
    ) -> bool:
        """
        Encode and send an OSC message via UDP (fire-and-forget).

        Args:
            address: OSC address pattern (e.g., "/analysis/energy")
            args: Message arguments (int, float, str, bool, None)
            host: Target host, defaults to the configured host
            port: Target port, defaults to the configured port

        Returns:
            bool: True if sent successfully, False otherwise
        """
        if not self.enabled or not self.socket:
            logger.warning(f"UDP sender not started, dropping {address}")
            return False

        target = (host or self.host, port or self.port)

        try:
            packet = encode_message(address, args)
        except (TypeError, ValueError) as e:
            self.error_count += 1
            logger.error(f"Failed to encode OSC message {address}: {e}")
            return False

        try:
            self.socket.sendto(packet, target)
        except (OSError, OverflowError) as e:
            # OverflowError: port override outside 0-65535
            self.error_count += 1
            logger.error(f"Failed to send UDP message to {target[0]}:{target[1]}: {e}")
            return False

        self.sent_count += 1
        logger.debug(f"Sent: {address} {list(args)} -> {target[0]}:{target[1]}")
        return True

    def get_stats(self) -> Dict[str, Any]:
        """
        Get sender statistics.

        Returns:
            dict: Statistics including sent_count, error_count and target
        """
        return {
            "enabled": self.enabled,
            "sent_count": self.sent_count,
            "error_count": self.error_count,
            "host": self.host,
            "port": self.port
        }
