"""WebSocket server module for streaming OSC messages to web clients."""

from .server import BridgeWebSocketServer
from .serializers import serialize_message, parse_client_payload
from .broadcaster import ClientRegistry, ClientState

__all__ = [
    'BridgeWebSocketServer',
    'serialize_message',
    'parse_client_payload',
    'ClientRegistry',
    'ClientState',
]
