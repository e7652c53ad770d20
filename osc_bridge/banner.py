"""
Startup banner listing the fractal visualizer's control addresses.

The table is documentation for the operator only; the bridge forwards
every address unchanged.
"""

from typing import Dict, List, Tuple

# section -> [(address, argument hint, description)]
FRACTAL_CONTROLS: Dict[str, List[Tuple[str, str, str]]] = {
    "FRACTAL TYPE": [
        ("/fractal/type", "0-5", "Select fractal"),
        ("/fractal/mandelbrot", "", "Type 0"),
        ("/fractal/burningship", "", "Type 1"),
        ("/fractal/multibrot", "", "Type 2"),
        ("/fractal/newton", "", "Type 3"),
        ("/fractal/clifford", "", "Type 4"),
        ("/fractal/domain", "", "Type 5"),
    ],
    "NAVIGATION": [
        ("/fractal/centerX", "float", "Center X"),
        ("/fractal/centerY", "float", "Center Y"),
        ("/fractal/zoom", "float", "Zoom (log2)"),
        ("/fractal/reset", "", "Reset view"),
    ],
    "COLORS": [
        ("/fractal/colorScheme", "0-6", "Palette"),
        ("/fractal/colorOffset", "0-1", "Phase"),
        ("/fractal/colorFreq", "float", "Frequency"),
    ],
    "JULIA (types 0-2)": [
        ("/fractal/juliaMode", "0/1", "Toggle"),
        ("/fractal/juliaX", "float", "C real"),
        ("/fractal/juliaY", "float", "C imag"),
    ],
    "MULTIBROT (type 2)": [
        ("/fractal/power", "float", "Exponent (2-8)"),
    ],
    "NEWTON (type 3)": [
        ("/fractal/newtonPoly", "0-3", "Polynomial"),
        ("/fractal/newtonRelax", "0-2", "Relaxation"),
    ],
    "CLIFFORD (type 4)": [
        ("/fractal/cliffordA", "float", "Param a"),
        ("/fractal/cliffordB", "float", "Param b"),
        ("/fractal/cliffordC", "float", "Param c"),
        ("/fractal/cliffordD", "float", "Param d"),
    ],
    "DOMAIN (type 5)": [
        ("/fractal/domainFunc", "0-9", "Function"),
        ("/fractal/domainGrid", "0/1", "Grid"),
    ],
    "ANIMATION": [
        ("/fractal/autoZoom", "0/1", "Auto-zoom"),
        ("/fractal/colorCycle", "0/1", "Color cycle"),
        ("/fractal/animateParams", "0/1", "Param animation"),
        ("/fractal/animSpeed", "float", "Speed (0.1-3)"),
    ],
    "RENDERING": [
        ("/fractal/maxIter", "int", "Iterations (50-5000)"),
    ],
}

WIDTH = 66


def _row(text: str = "") -> str:
    return f"║{text.ljust(WIDTH)}║"


def render_banner(osc_port: int, ws_port: int, out_host: str, out_port: int) -> str:
    """
    Render the startup banner.

    Args:
        osc_port: Inbound OSC UDP port
        ws_port: WebSocket port
        out_host: Outbound OSC target host
        out_port: Outbound OSC target port

    Returns:
        Multi-line banner text
    """
    rule = "═" * WIDTH
    lines = [
        f"╔{rule}╗",
        _row("OSC <-> WebSocket Bridge for Fractal Visualizer".center(WIDTH)),
        f"╠{rule}╣",
        _row(f"  OSC Input:     UDP port {osc_port}"),
        _row(f"  WebSocket:     ws://localhost:{ws_port}"),
        _row(f"  OSC Output:    UDP {out_host}:{out_port}"),
        f"╠{rule}╣",
    ]

    sections = list(FRACTAL_CONTROLS.items())
    for index, (section, controls) in enumerate(sections):
        lines.append(_row(f"  {section}"))
        for address, hint, description in controls:
            command = f"{address} {hint}".rstrip()
            lines.append(_row(f"    {command.ljust(29)}{description}"))
        if index < len(sections) - 1:
            lines.append(_row())

    lines.append(f"╚{rule}╝")
    return "\n".join(lines)
