"""WebSocket server bridging clients to the OSC transports."""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from websockets.asyncio.server import serve, Server, ServerConnection
from websockets.exceptions import ConnectionClosed

from .broadcaster import ClientRegistry
from .serializers import serialize_message, parse_client_payload
from ..constants import BridgeDefaults
from ..osc import OSCMessage
from ..validation import is_analysis_event


logger = logging.getLogger(__name__)

# handler(address, args); may be a plain function or a coroutine function
AnalysisHandler = Callable[[str, List[Any]], Union[Any, Awaitable[Any]]]


class BridgeWebSocketServer:
    """
    WebSocket server for the OSC bridge.

    Registers every client with the ClientRegistry so decoded OSC messages
    can be broadcast to it, and forwards analysis events sent by clients to
    the analysis handler. Anything else a client sends is ignored without
    a reply.
    """

    def __init__(
        self,
        host: str = BridgeDefaults.WS_HOST,
        port: int = BridgeDefaults.WS_PORT,
        ping_interval: float = BridgeDefaults.PING_INTERVAL_SECONDS
    ):
        """
        Initialize the WebSocket server.

        Args:
            host: Host address to bind to
            port: Port to listen on (0 picks a free port)
            ping_interval: Seconds between client liveness sweeps
        """
        self.host = host
        self.port = port
        self.broadcaster = ClientRegistry(ping_interval=ping_interval)
        self.server: Optional[Server] = None
        self._on_analysis: Optional[AnalysisHandler] = None
        self._running = False

        # Statistics
        self.stats = {
            "payloads_received": 0,
            "payloads_ignored": 0,
            "analysis_forwarded": 0,
        }

    def set_analysis_handler(self, handler: AnalysisHandler) -> None:
        """
        Set the handler for analysis events.

        Args:
            handler: Called with (address, args) for each analysis event
        """
        self._on_analysis = handler

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually bound, useful when started with port 0."""
        if self.server is None:
            return None
        for sock in self.server.sockets:
            return sock.getsockname()[1]
        return None

    async def start(self) -> None:
        """
        Start the WebSocket server.

        Raises:
            OSError: If the port can't be bound
        """
        if self._running:
            logger.warning("Server is already running")
            return

        logger.info(f"Starting WebSocket server on {self.host}:{self.port}")
        # The registry runs its own liveness sweep, so the library keepalive is off
        self.server = await serve(
            self._handle_client,
            self.host,
            self.port,
            ping_interval=None,
        )
        self._running = True
        self.broadcaster.start_liveness_checks()
        logger.info(f"WebSocket server started on ws://{self.host}:{self.bound_port}")

    async def stop(self, grace: float = BridgeDefaults.CLOSE_GRACE_SECONDS) -> None:
        """
        Stop the WebSocket server.

        Args:
            grace: Seconds each client gets to complete the closing handshake
        """
        if not self._running:
            return

        logger.info("Stopping WebSocket server")
        self._running = False

        await self.broadcaster.stop_liveness_checks()

        # Close all client connections
        await self.broadcaster.close_all(grace)

        # Stop the server
        if self.server:
            self.server.close()
            await self.server.wait_closed()

        logger.info("WebSocket server stopped")

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """
        Handle a client connection.

        Args:
            websocket: WebSocket connection
        """
        await self.broadcaster.register(websocket)

        try:
            # Frames are handled in arrival order
            async for raw in websocket:
                await self.handle_payload(raw)

        except ConnectionClosed:
            logger.info("Client connection closed")
        except Exception as e:
            logger.error(f"Error in client handler: {e}")
        finally:
            await self.broadcaster.unregister(websocket)

    async def handle_payload(self, raw: Union[str, bytes]) -> bool:
        """
        Process one frame received from a client.

        Args:
            raw: Text or binary frame

        Returns:
            True if an analysis event was forwarded
        """
        self.stats["payloads_received"] += 1

        payload = parse_client_payload(raw)
        if payload is None or not is_analysis_event(payload) or self._on_analysis is None:
            self.stats["payloads_ignored"] += 1
            return False

        try:
            result = self._on_analysis(payload["address"], payload["args"])
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Error forwarding analysis event {payload['address']}: {e}")
            return False

        self.stats["analysis_forwarded"] += 1
        return True

    async def broadcast_message(self, message: OSCMessage) -> int:
        """
        Broadcast a decoded OSC message to all clients.

        Args:
            message: Decoded OSC message

        Returns:
            Number of clients it was delivered to
        """
        return await self.broadcaster.broadcast(serialize_message(message))

    def get_client_count(self) -> int:
        """
        Get the number of connected clients.

        Returns:
            Number of connected clients
        """
        return self.broadcaster.get_client_count()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get server statistics.

        Returns:
            dict: Payload counters plus the registry statistics
        """
        return {**self.stats, "registry": self.broadcaster.get_stats()}

    def is_running(self) -> bool:
        """
        Check if the server is running.

        Returns:
            True if running, False otherwise
        """
        return self._running
