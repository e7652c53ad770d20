"""
UDP listener service for receiving OSC packets.

Listens on a UDP port for OSC messages and bundles, decodes them, and
forwards each decoded message to a callback (normally the WebSocket
broadcast) from a separate processor task.
"""

import asyncio
import socket
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from ..constants import BridgeDefaults
from ..osc import OSCMessage, decode_packet


logger = logging.getLogger(__name__)

MessageCallback = Callable[[OSCMessage], Awaitable[Any]]


class UDPListener:
    """
    Async UDP listener for OSC packets.

    Receives UDP packets, decodes OSC messages and bundles, and forwards
    every decoded message to a callback for processing. A single processor
    task drains the queue, so messages are delivered in arrival order.
    """

    def __init__(
        self,
        host: str = BridgeDefaults.OSC_HOST,
        port: int = BridgeDefaults.OSC_PORT,
        message_callback: Optional[MessageCallback] = None,
        queue_size: int = BridgeDefaults.EVENT_QUEUE_SIZE,
        buffer_size: int = BridgeDefaults.RECV_BUFFER_SIZE
    ):
        """
        Initialize UDP listener.

        Args:
            host: Host to bind to (default: 0.0.0.0 for all interfaces)
            port: UDP port to listen on (default: 9000, 0 picks a free port)
            message_callback: Async callback for decoded messages:
                              callback(message)
            queue_size: Maximum number of decoded messages waiting for the callback
            buffer_size: Maximum datagram size read from the socket
        """
        self.host = host
        self.port = port
        self.message_callback = message_callback
        self.queue_size = queue_size
        self.buffer_size = buffer_size
        self.running = False
        self.socket: Optional[socket.socket] = None

        # Event queue for non-blocking processing
        # This prevents slow WebSocket broadcasts from blocking UDP receives
        self._event_queue: Optional[asyncio.Queue] = None
        self._receive_task: Optional[asyncio.Task] = None
        self._processor_task: Optional[asyncio.Task] = None

        # Statistics
        self.stats = {
            "packets_received": 0,
            "messages_decoded": 0,
            "messages_processed": 0,
            "messages_dropped": 0,
            "parse_errors": 0,
            "queue_size": 0,
            "queue_max": 0
        }

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually bound, useful when started with port 0."""
        if self.socket is None:
            return None
        return self.socket.getsockname()[1]

    async def start(self) -> None:
        """
        Bind the socket and start the receive and processor tasks.

        Raises:
            OSError: If the port can't be bound
        """
        self._event_queue = asyncio.Queue(maxsize=self.queue_size)

        # Create UDP socket
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((self.host, self.port))
        except OSError:
            sock.close()
            raise
        sock.setblocking(False)
        self.socket = sock
        self.running = True

        logger.info(f"UDP listener started on {self.host}:{self.bound_port}")

        self._processor_task = asyncio.create_task(self._event_processor())
        self._receive_task = asyncio.create_task(self._receive_loop())

    async def stop(self) -> None:
        """Stop the UDP listener."""
        self.running = False

        for task in (self._receive_task, self._processor_task):
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._receive_task = None
        self._processor_task = None

        # Log queue stats before shutting down
        if self._event_queue:
            queue_size = self._event_queue.qsize()
            if queue_size > 0:
                logger.warning(f"Shutting down with {queue_size} messages still in queue")

        if self.socket:
            self.socket.close()
            self.socket = None
        logger.info("UDP listener stopped")

    async def _receive_loop(self) -> None:
        """Main receive loop."""
        loop = asyncio.get_running_loop()

        while self.running:
            try:
                data, addr = await loop.sock_recvfrom(self.socket, self.buffer_size)
                self.stats["packets_received"] += 1
                self.process_datagram(data, addr)

            except asyncio.CancelledError:
                break
            except OSError as e:
                if not self.running:
                    break
                logger.error(f"Error in receive loop: {e}")
                await asyncio.sleep(0.1)

    async def _event_processor(self) -> None:
        """
        Deliver queued messages to the callback in a separate task.

        This runs concurrently with UDP reception, preventing slow WebSocket
        broadcasts from blocking UDP packet receives.
        """
        logger.debug("Event processor started")

        while True:
            message = await self._event_queue.get()
            try:
                if self.message_callback:
                    await self.message_callback(message)
                self.stats["messages_processed"] += 1
            except Exception as e:
                logger.error(f"Error processing {message.address}: {e}")
            finally:
                self._event_queue.task_done()
                self.stats["queue_size"] = self._event_queue.qsize()

    def process_datagram(self, data: bytes, addr: Tuple[str, int]) -> int:
        """
        Decode a received UDP packet and queue its messages.

        Args:
            data: Raw packet data
            addr: Source address tuple

        Returns:
            Number of messages queued
        """
        messages = decode_packet(data)
        if not messages:
            self.stats["parse_errors"] += 1
            logger.debug(f"Unparseable OSC packet from {addr[0]}:{addr[1]} ({len(data)} bytes)")
            return 0

        self.stats["messages_decoded"] += len(messages)

        queued = 0
        for message in messages:
            logger.debug(f"[OSC] {message.address} {list(message.args)}")
            try:
                self._event_queue.put_nowait(message)
                queued += 1
            except asyncio.QueueFull:
                logger.error(f"Event queue full! Dropping message {message.address}")
                self.stats["messages_dropped"] += 1

        self.stats["queue_size"] = self._event_queue.qsize()
        self.stats["queue_max"] = max(self.stats["queue_max"], self.stats["queue_size"])
        return queued

    async def wait_idle(self) -> None:
        """Wait until every queued message has been processed."""
        if self._event_queue:
            await self._event_queue.join()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get listener statistics.

        Returns:
            dict: Packet and message counters
        """
        return dict(self.stats)
