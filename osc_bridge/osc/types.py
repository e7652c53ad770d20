"""OSC message type shared by the parser and the builder."""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

# Python values for the wire types: f/d -> float, i/h -> int, s -> str,
# T/F -> bool, N -> None
OSCArgument = Optional[Union[float, int, str, bool]]


def _json_safe(arg: OSCArgument) -> OSCArgument:
    # JSON has no NaN or Infinity
    if isinstance(arg, float) and not math.isfinite(arg):
        return None
    return arg


@dataclass(frozen=True)
class OSCMessage:
    """Decoded OSC message."""
    address: str
    args: Tuple[OSCArgument, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """
        Return the JSON-compatible ``{address, args}`` shape.

        Non-finite floats (NaN, +/-Infinity) become None.
        """
        return {
            'address': self.address,
            'args': [_json_safe(arg) for arg in self.args],
        }
