"""Client registry and message broadcasting for WebSocket clients."""

import asyncio
import functools
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from websockets.asyncio.server import ServerConnection

from ..constants import BridgeDefaults, ConnectionStatus, Liveness


logger = logging.getLogger(__name__)


@dataclass
class ClientState:
    """Registry bookkeeping for one connection."""
    status: ConnectionStatus = ConnectionStatus.OPEN
    liveness: Liveness = Liveness.CONFIRMED
    remote_address: Optional[Any] = None


class ClientRegistry:
    """
    Owns the set of live WebSocket connections.

    Every mutation of the set goes through this class and is guarded by a
    single asyncio lock, so a broadcast always iterates over a consistent
    snapshot. Connections are removed when they close, when a send to them
    fails, or when they miss a liveness probe:

    1. Each sweep terminates clients that did not answer the previous ping
    2. All remaining clients are marked unconfirmed and pinged again
    3. A pong marks the client confirmed until the next sweep
    """

    def __init__(self, ping_interval: float = BridgeDefaults.PING_INTERVAL_SECONDS):
        """
        Initialize the registry.

        Args:
            ping_interval: Seconds between liveness sweeps (<= 0 disables them)
        """
        self.clients: Dict[ServerConnection, ClientState] = {}
        self.ping_interval = ping_interval
        self._lock = asyncio.Lock()
        self._sweep_task: Optional[asyncio.Task] = None

        # Statistics
        self.stats = {
            "messages_broadcast": 0,
            "deliveries": 0,
            "delivery_failures": 0,
            "evicted": 0,
        }

    async def register(self, websocket: ServerConnection) -> None:
        """
        Register a new client as open and alive.

        Args:
            websocket: WebSocket connection to register
        """
        async with self._lock:
            if websocket not in self.clients:
                self.clients[websocket] = ClientState(remote_address=websocket.remote_address)
                logger.info(
                    f"Client connected from {websocket.remote_address}. "
                    f"Total clients: {len(self.clients)}"
                )

    async def unregister(self, websocket: ServerConnection) -> bool:
        """
        Remove a client. Safe to call more than once.

        Args:
            websocket: WebSocket connection to unregister

        Returns:
            True if the client was registered
        """
        async with self._lock:
            state = self.clients.pop(websocket, None)

        if state is None:
            return False

        state.status = ConnectionStatus.CLOSED
        logger.info(f"Client disconnected. Total clients: {len(self.clients)}")
        return True

    def acknowledge(self, websocket: ServerConnection) -> None:
        """Mark a client as alive after a pong."""
        state = self.clients.get(websocket)
        if state is not None:
            state.liveness = Liveness.CONFIRMED

    def is_registered(self, websocket: ServerConnection) -> bool:
        """Check whether a connection is currently in the registry."""
        return websocket in self.clients

    async def broadcast(self, message: Dict[str, Any]) -> int:
        """
        Send a message to all open clients.

        The message is serialized once. Sends run concurrently; a client
        whose send fails is dropped without affecting the others.

        Args:
            message: Message dictionary to broadcast

        Returns:
            Number of clients the message was delivered to
        """
        try:
            message_json = json.dumps(message, allow_nan=False)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize message: {e}")
            return 0

        async with self._lock:
            targets = [
                ws for ws, state in self.clients.items()
                if state.status is ConnectionStatus.OPEN
            ]

        if not targets:
            return 0

        self.stats["messages_broadcast"] += 1
        results = await asyncio.gather(
            *(ws.send(message_json) for ws in targets),
            return_exceptions=True
        )

        delivered = 0
        for ws, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning(f"Failed to send to client {ws.remote_address}: {result}")
                self.stats["delivery_failures"] += 1
                await self.unregister(ws)
            else:
                delivered += 1

        self.stats["deliveries"] += delivered
        return delivered

    async def sweep(self) -> int:
        """
        Run one liveness sweep.

        Returns:
            Number of clients evicted
        """
        async with self._lock:
            stale = [
                ws for ws, state in self.clients.items()
                if state.liveness is not Liveness.CONFIRMED
            ]
            for ws in stale:
                self.clients.pop(ws).status = ConnectionStatus.CLOSED

            probed = list(self.clients.keys())
            for ws in probed:
                self.clients[ws].liveness = Liveness.UNCONFIRMED

        for ws in stale:
            logger.info(f"Evicting unresponsive client {ws.remote_address}")
            self._terminate(ws)
        self.stats["evicted"] += len(stale)

        results = await asyncio.gather(
            *(ws.ping() for ws in probed),
            return_exceptions=True
        )
        for ws, result in zip(probed, results):
            if isinstance(result, BaseException):
                logger.warning(f"Failed to ping client {ws.remote_address}: {result}")
                await self.unregister(ws)
            else:
                result.add_done_callback(functools.partial(self._on_pong, ws))

        return len(stale)

    def _on_pong(self, websocket: ServerConnection, pong_waiter: asyncio.Future) -> None:
        if pong_waiter.cancelled() or pong_waiter.exception() is not None:
            return
        self.acknowledge(websocket)

    def _terminate(self, websocket: ServerConnection) -> None:
        """Drop a connection without a closing handshake."""
        try:
            websocket.transport.abort()
        except Exception as e:
            logger.debug(f"Error aborting connection: {e}")

    async def _liveness_loop(self) -> None:
        while True:
            await asyncio.sleep(self.ping_interval)
            try:
                evicted = await self.sweep()
                if evicted:
                    logger.info(f"Liveness sweep evicted {evicted} client(s)")
            except Exception as e:
                logger.error(f"Error in liveness sweep: {e}")

    def start_liveness_checks(self) -> None:
        """Start the periodic liveness sweep."""
        if self._sweep_task is not None or self.ping_interval <= 0:
            return
        self._sweep_task = asyncio.create_task(self._liveness_loop())

    async def stop_liveness_checks(self) -> None:
        """Stop the periodic liveness sweep."""
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None

    def get_client_count(self) -> int:
        """
        Get the number of connected clients.

        Returns:
            Number of connected clients
        """
        return len(self.clients)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get registry statistics.

        Returns:
            dict: Broadcast and eviction counters plus the current client count
        """
        return {**self.stats, "clients": len(self.clients)}

    async def close_all(self, grace: float = BridgeDefaults.CLOSE_GRACE_SECONDS) -> None:
        """
        Close all client connections.

        Each client gets a closing handshake bounded by ``grace`` seconds;
        clients that don't finish in time are aborted.
        """
        async with self._lock:
            websockets: List[ServerConnection] = list(self.clients.keys())
            for state in self.clients.values():
                state.status = ConnectionStatus.CLOSED
            self.clients.clear()

        async def close_one(ws: ServerConnection) -> None:
            try:
                await asyncio.wait_for(ws.close(1001, "Server shutting down"), timeout=grace)
            except Exception as e:
                logger.debug(f"Graceful close failed, aborting: {e}")
                self._terminate(ws)

        await asyncio.gather(*(close_one(ws) for ws in websockets))
        logger.info("All clients disconnected")
