"""
Runtime configuration for the OSC bridge.

Options come from the command line, either in the short positional form
``osc-bridge [osc-port] [ws-port]`` or as ``--key=value`` flags.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .constants import BridgeDefaults


USAGE = """Usage: osc-bridge [osc-port] [ws-port] [OPTIONS]

Network Options:
  --osc-host=HOST       - Inbound OSC host (default: 0.0.0.0)
  --osc-port=PORT       - Inbound OSC UDP port (default: 9000)
  --ws-host=HOST        - WebSocket host (default: 0.0.0.0)
  --ws-port=PORT        - WebSocket port (default: 8080)
  --out-host=HOST       - Outbound OSC target host (default: 127.0.0.1)
  --out-port=PORT       - Outbound OSC target port (default: 9001)
  --ping-interval=SECS  - Seconds between client liveness checks (default: 30, 0 disables)

Logging Options:
  --log-file=PATH       - Log to file (default: stdout only)
  --log-level=LEVEL     - Logging level: DEBUG, INFO, WARNING, ERROR (default: INFO)
  --no-banner           - Don't print the address banner on startup
  --help                - Show this message"""

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised when command line options are invalid."""
    pass


@dataclass
class BridgeConfig:
    """Settings for one bridge process."""
    osc_host: str = BridgeDefaults.OSC_HOST
    osc_port: int = BridgeDefaults.OSC_PORT
    ws_host: str = BridgeDefaults.WS_HOST
    ws_port: int = BridgeDefaults.WS_PORT
    out_host: str = BridgeDefaults.OUT_HOST
    out_port: int = BridgeDefaults.OUT_PORT
    ping_interval: float = BridgeDefaults.PING_INTERVAL_SECONDS
    log_file: Optional[Path] = None
    log_level: str = "INFO"
    show_banner: bool = True
    show_help: bool = False


def _parse_port(value: str, name: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if not 0 <= port <= 65535:
        raise ConfigError(f"{name} must be between 0 and 65535, got {port}")
    return port


def _parse_interval(value: str) -> float:
    try:
        interval = float(value)
    except ValueError:
        raise ConfigError(f"ping-interval must be a number, got {value!r}")
    if interval < 0:
        raise ConfigError(f"ping-interval must not be negative, got {interval}")
    return interval


def parse_args(argv: List[str]) -> BridgeConfig:
    """
    Build a BridgeConfig from command line arguments.

    Args:
        argv: Arguments without the program name

    Returns:
        BridgeConfig with defaults for everything not given

    Raises:
        ConfigError: If an option is unknown or has an invalid value

    Example:
        >>> parse_args(["9000", "8080", "--out-port=7000"]).out_port
        7000
    """
    config = BridgeConfig()
    positional = []

    for arg in argv:
        if not arg.startswith("--"):
            positional.append(arg)
            continue

        key, _, value = arg[2:].partition("=")
        if key == "help":
            config.show_help = True
        elif key == "no-banner":
            config.show_banner = False
        elif key == "osc-host":
            config.osc_host = value
        elif key == "osc-port":
            config.osc_port = _parse_port(value, "osc-port")
        elif key == "ws-host":
            config.ws_host = value
        elif key == "ws-port":
            config.ws_port = _parse_port(value, "ws-port")
        elif key == "out-host":
            config.out_host = value
        elif key == "out-port":
            config.out_port = _parse_port(value, "out-port")
        elif key == "ping-interval":
            config.ping_interval = _parse_interval(value)
        elif key == "log-file":
            config.log_file = Path(value)
        elif key == "log-level":
            if value.upper() not in LOG_LEVELS:
                raise ConfigError(f"Unknown log level: {value}")
            config.log_level = value.upper()
        else:
            raise ConfigError(f"Unknown option: {arg}")

    if len(positional) > 2:
        raise ConfigError(f"Too many arguments: {' '.join(positional)}")
    if len(positional) >= 1:
        config.osc_port = _parse_port(positional[0], "osc-port")
    if len(positional) == 2:
        config.ws_port = _parse_port(positional[1], "ws-port")

    return config
