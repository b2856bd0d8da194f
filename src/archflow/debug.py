"""
Debug utilities for archflow.

This module provides tools for understanding what presentation playback
does to a canvas. The main component is TracedSurface, which wraps any
canvas surface and records every call made on it.

Key Components:
- TracedSurface: Surface wrapper that records all canvas operations
- SurfaceCall: One recorded operation
- describe_surface: Text table of node positions and opacities

Usage:
    >>> canvas = InMemoryCanvas(nodes)
    >>> traced = TracedSurface(canvas)
    >>> playback = PresentationPlayback(traced, scheduler=ManualScheduler())
    >>> playback.load(presentation, scenarios, nodes, edges)
    >>> playback.go_next()
    >>> print(traced.format_calls())
    >>> print(describe_surface(canvas))
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .canvas import CanvasSurface, InMemoryCanvas
from .models import Node, Position, Viewport


@dataclass
class SurfaceCall:
    """
    One recorded canvas operation.

    Attributes:
        method: Name of the surface method that was called
        args: Arguments the call was made with
        source: Context set by the caller when the call was made
    """

    method: str
    args: Dict[str, Any] = field(default_factory=dict)
    source: str = "unknown"

    def __str__(self) -> str:
        rendered = ", ".join(f"{key}={value!r}" for key, value in self.args.items())
        if len(rendered) > 100:
            rendered = rendered[:100] + "..."
        return f"[{self.source}] {self.method}({rendered})"


class TracedSurface:
    """
    Surface wrapper that records every call before delegating it.

    The wrapper keeps a "current source" context so recorded calls can be
    attributed to the part of the code that made them. Use set_source()
    to update it.

    Example:
        >>> traced = TracedSurface(InMemoryCanvas(nodes))
        >>> traced.set_source("overview")
        >>> traced.set_node_opacity({"api": 1.0})
        >>> traced.calls[-1].method
        'set_node_opacity'
    """

    def __init__(self, surface: CanvasSurface):
        self._surface = surface
        self._current_source = "unknown"
        self.calls: List[SurfaceCall] = []

    def set_source(self, source: str) -> None:
        self._current_source = source

    def _record(self, method: str, **args: Any) -> None:
        self.calls.append(SurfaceCall(method, args, self._current_source))

    def set_node_positions(self, positions: Dict[str, Position]) -> None:
        self._record("set_node_positions", positions=dict(positions))
        self._surface.set_node_positions(positions)

    def set_node_opacity(self, opacities: Dict[str, float]) -> None:
        self._record("set_node_opacity", opacities=dict(opacities))
        self._surface.set_node_opacity(opacities)

    def set_viewport(self, viewport: Viewport, duration: float = 0.0) -> None:
        self._record("set_viewport", viewport=viewport, duration=duration)
        self._surface.set_viewport(viewport, duration)

    def fit_view(
        self, node_ids: List[str], padding: float = 0.0, duration: float = 0.0
    ) -> None:
        self._record("fit_view", node_ids=list(node_ids), padding=padding, duration=duration)
        self._surface.fit_view(node_ids, padding, duration)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._surface.get_node(node_id)

    def node_ids(self) -> List[str]:
        return self._surface.node_ids()

    def calls_to(self, method: str) -> List[SurfaceCall]:
        """All recorded calls of one surface method."""
        return [call for call in self.calls if call.method == method]

    def clear(self) -> None:
        self.calls = []

    def format_calls(self, limit: int = 50) -> str:
        lines = [f"Surface calls: {len(self.calls)}"]
        for call in self.calls[-limit:]:
            lines.append(f"  {call}")
        return "\n".join(lines)


def describe_surface(canvas: InMemoryCanvas) -> str:
    """
    Text table of every node on an in-memory canvas.

    Example:
        >>> print(describe_surface(canvas))
        Viewport: x=0.0 y=0.0 zoom=1.00
        id          x         y         opacity
        api         -90.0     -40.0     1.00
    """
    viewport = canvas.viewport
    lines = [
        f"Viewport: x={viewport.x:.1f} y={viewport.y:.1f} zoom={viewport.zoom:.2f}",
        f"{'id':<12}{'x':<10}{'y':<10}opacity",
    ]
    for node in canvas.nodes:
        lines.append(f"{node.id:<12}{node.x:<10.1f}{node.y:<10.1f}{node.opacity:.2f}")
    return "\n".join(lines)
