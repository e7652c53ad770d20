"""
Bidirectional bridge between OSC over UDP and WebSocket clients.
"""

__version__ = "0.1.0"
