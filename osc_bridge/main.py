import asyncio
import sys
import signal
import logging
from pathlib import Path
from typing import List, Optional

from .banner import render_banner
from .config import BridgeConfig, ConfigError, USAGE, parse_args
from .constants import BridgeDefaults
from .osc import OSCMessage
from .udp_listener import UDPListener
from .udp_sender import UDPSender
from .websocket import BridgeWebSocketServer


# Configure logging
logger = logging.getLogger(__name__)


def setup_logging(log_file: Path = None, level: str = "INFO"):
    """
    Configure logging to both file and console.

    Args:
        log_file: Path to log file (optional)
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    # Create formatters
    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    simple_formatter = logging.Formatter(
        '%(levelname)s: %(message)s'
    )

    # Root logger configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    root_logger.handlers = []

    # Console handler (simple format)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(simple_formatter)
    root_logger.addHandler(console_handler)

    # File handler (detailed format)
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")

    return root_logger


async def shutdown_bridge(
    udp_listener: UDPListener,
    ws_server: BridgeWebSocketServer,
    sender: UDPSender,
    timeout: float = BridgeDefaults.SHUTDOWN_TIMEOUT_SECONDS
):
    """
    Stop all components, giving up on graceful close after ``timeout``.

    Inbound work stops first, then clients get a closing handshake, then
    the outbound socket is closed. Both UDP sockets are closed even if the
    graceful part times out.
    """
    async def graceful():
        await udp_listener.stop()
        await ws_server.stop(BridgeDefaults.CLOSE_GRACE_SECONDS)
        sender.stop()

    try:
        await asyncio.wait_for(graceful(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Graceful shutdown did not finish in {timeout}s, forcing exit")
    finally:
        if udp_listener.socket:
            udp_listener.socket.close()
            udp_listener.socket = None
        if sender.socket:
            sender.stop()


async def run_bridge(config: BridgeConfig, started: Optional[asyncio.Event] = None) -> int:
    """
    Run the bridge until a stop signal or an unhandled fault.

    Args:
        config: Bridge settings
        started: Optional event set once every component is listening

    Returns:
        Process exit code (0 on clean shutdown, 1 on failure)
    """
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    exit_code = [0]  # Use list for closure mutability

    sender = UDPSender(host=config.out_host, port=config.out_port)
    ws_server = BridgeWebSocketServer(
        host=config.ws_host,
        port=config.ws_port,
        ping_interval=config.ping_interval
    )
    # Client analysis events go straight out as OSC
    ws_server.set_analysis_handler(sender.send)

    async def on_osc_message(message: OSCMessage):
        """Broadcast a decoded OSC message to all WebSocket clients."""
        delivered = await ws_server.broadcast_message(message)
        logger.debug(f"[OSC] {message.address} delivered to {delivered} client(s)")

    udp_listener = UDPListener(
        host=config.osc_host,
        port=config.osc_port,
        message_callback=on_osc_message
    )

    def fault_handler(loop, context):
        exception = context.get("exception")
        logger.error(f"Unhandled error: {context.get('message')} {exception or ''}")
        exit_code[0] = 1
        stop_event.set()

    def signal_handler():
        print("\nShutting down...")
        stop_event.set()

    loop.set_exception_handler(fault_handler)

    signals = []
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, signal_handler)
            signals.append(sig)
        except (NotImplementedError, RuntimeError):
            # No signal support in this loop (Windows, or not the main thread)
            pass

    try:
        try:
            sender.start()
            await udp_listener.start()
            await ws_server.start()
        except OSError as e:
            logger.error(f"Failed to start bridge: {e}")
            exit_code[0] = 1
        else:
            print(f"Bridge running: OSC udp://{config.osc_host}:{udp_listener.bound_port} "
                  f"<-> ws://{config.ws_host}:{ws_server.bound_port} "
                  f"-> OSC udp://{config.out_host}:{config.out_port}")
            print("Press Ctrl+C to stop.")
            if started is not None:
                started.set()

            # Wait for stop signal
            await stop_event.wait()

        await shutdown_bridge(udp_listener, ws_server, sender)
    finally:
        for sig in signals:
            loop.remove_signal_handler(sig)
        loop.set_exception_handler(None)

    # Print statistics
    listener_stats = udp_listener.get_stats()
    sender_stats = sender.get_stats()
    registry_stats = ws_server.broadcaster.get_stats()
    print("\nBridge Statistics:")
    print(f"  Packets received: {listener_stats['packets_received']}")
    print(f"  Messages decoded: {listener_stats['messages_decoded']}")
    print(f"  Parse errors: {listener_stats['parse_errors']}")
    print(f"  Messages dropped: {listener_stats['messages_dropped']}")
    print(f"  Client deliveries: {registry_stats['deliveries']}")
    print(f"  Clients evicted: {registry_stats['evicted']}")
    print(f"  OSC sent: {sender_stats['sent_count']}")
    print(f"  OSC send errors: {sender_stats['error_count']}")

    return exit_code[0]


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    try:
        config = parse_args(argv)
    except ConfigError as e:
        print(f"Error: {e}\n")
        print(USAGE)
        return 2

    if config.show_help:
        print(USAGE)
        return 0

    # Setup logging
    setup_logging(log_file=config.log_file, level=config.log_level)

    if config.show_banner:
        print(render_banner(config.osc_port, config.ws_port, config.out_host, config.out_port))

    try:
        return asyncio.run(run_bridge(config))
    except KeyboardInterrupt:
        print("\nShutdown complete.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
