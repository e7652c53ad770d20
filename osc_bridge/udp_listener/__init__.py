"""
UDP Listener service for receiving OSC packets.
"""

from .listener import UDPListener

__all__ = ["UDPListener"]
