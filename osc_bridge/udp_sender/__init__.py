"""
UDP sender for outbound OSC messages.
"""

from .sender import UDPSender

__all__ = ["UDPSender"]
