"""
Canvas-control surface used by presentation playback.

Playback never draws anything itself. It asks a surface to move nodes,
change their opacity and move the viewport. ``CanvasSurface`` is the
protocol an application implements; ``InMemoryCanvas`` is a complete
reference implementation that keeps the state in memory, which is what
the PNG exporter and the tests drive.
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Protocol

from .models import LayoutBounds, Node, Position, Viewport

logger = logging.getLogger(__name__)

# =============================================================================
# VIEWPORT CONFIGURATION
# =============================================================================

DEFAULT_VIEW_WIDTH = 1920
DEFAULT_VIEW_HEIGHT = 1080
MIN_ZOOM = 0.5
MAX_ZOOM = 2.0

# =============================================================================


class CanvasSurface(Protocol):
    """Protocol for canvas-control surfaces."""

    def set_node_positions(self, positions: Dict[str, Position]) -> None:
        """Move the given nodes; unknown ids are ignored."""
        ...

    def set_node_opacity(self, opacities: Dict[str, float]) -> None:
        """Set the visual opacity of the given nodes."""
        ...

    def set_viewport(self, viewport: Viewport, duration: float = 0.0) -> None:
        """Move the viewport, optionally animated over ``duration`` seconds."""
        ...

    def fit_view(
        self, node_ids: List[str], padding: float = 0.0, duration: float = 0.0
    ) -> None:
        """Fit the viewport around the given nodes."""
        ...

    def get_node(self, node_id: str) -> Optional[Node]:
        """Current state of a node, or None if it does not exist."""
        ...

    def node_ids(self) -> List[str]:
        """Ids of every node on the canvas."""
        ...


def fit_viewport(
    bounds: LayoutBounds,
    view_width: float,
    view_height: float,
    padding: float = 0.0,
    min_zoom: float = MIN_ZOOM,
    max_zoom: float = MAX_ZOOM,
) -> Viewport:
    """
    Viewport showing ``bounds`` centered, with ``padding`` as a fraction of
    the bounds size, zoom clamped to [min_zoom, max_zoom].
    """
    width = max(bounds.width, 1.0) * (1 + padding)
    height = max(bounds.height, 1.0) * (1 + padding)
    zoom = min(view_width / width, view_height / height)
    zoom = max(min_zoom, min(max_zoom, zoom))
    return centered_viewport(bounds.center, view_width, view_height, zoom)


def centered_viewport(center, view_width: float, view_height: float, zoom: float) -> Viewport:
    """Viewport placing canvas point ``center`` in the middle of the view."""
    cx, cy = center
    return Viewport(x=view_width / 2 - cx * zoom, y=view_height / 2 - cy * zoom, zoom=zoom)


class InMemoryCanvas:
    """
    A canvas surface that keeps nodes and viewport in memory.

    Attributes:
        view_width: Width of the visible area in screen units
        view_height: Height of the visible area in screen units
        viewport: Current viewport

    Example:
        >>> canvas = InMemoryCanvas(nodes)
        >>> canvas.set_node_opacity({"api": 0.15})
        >>> canvas.get_node("api").opacity
        0.15
    """

    def __init__(
        self,
        nodes: Iterable[Node] = (),
        view_width: float = DEFAULT_VIEW_WIDTH,
        view_height: float = DEFAULT_VIEW_HEIGHT,
    ):
        self._nodes: Dict[str, Node] = {node.id: node for node in nodes}
        self.view_width = view_width
        self.view_height = view_height
        self.viewport = Viewport(0.0, 0.0, 1.0)

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    def node_ids(self) -> List[str]:
        return list(self._nodes)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def set_nodes(self, nodes: Iterable[Node]) -> None:
        """Replace the canvas contents."""
        self._nodes = {node.id: node for node in nodes}

    def set_node_positions(self, positions: Dict[str, Position]) -> None:
        for node_id, position in positions.items():
            node = self._nodes.get(node_id)
            if node is None:
                continue
            self._nodes[node_id] = node.moved_to(position.x, position.y)

    def set_node_opacity(self, opacities: Dict[str, float]) -> None:
        for node_id, opacity in opacities.items():
            node = self._nodes.get(node_id)
            if node is None:
                continue
            self._nodes[node_id] = replace(node, opacity=opacity)

    def set_viewport(self, viewport: Viewport, duration: float = 0.0) -> None:
        self.viewport = viewport

    def fit_view(
        self, node_ids: List[str], padding: float = 0.0, duration: float = 0.0
    ) -> None:
        nodes = [self._nodes[node_id] for node_id in node_ids if node_id in self._nodes]
        bounds = LayoutBounds.of_nodes(nodes)
        if bounds is None:
            logger.debug("fit_view with no known nodes; viewport unchanged")
            return
        self.viewport = fit_viewport(bounds, self.view_width, self.view_height, padding)

    def to_screen(self, x: float, y: float):
        """Project a canvas point through the current viewport."""
        zoom = self.viewport.zoom
        return (x * zoom + self.viewport.x, y * zoom + self.viewport.y)
