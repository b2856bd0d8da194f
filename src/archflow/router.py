"""
Edge port routing for the sectioned layout.

Handles where edges attach to nodes and how their paths are drawn:
- Side selection from the relative position of node centers
- Even distribution of ports sharing a node side
- Direct curves between facing ports, rounded orthogonal paths otherwise

Routing state lives on an explicit LayoutContext that the caller owns and
passes around; nothing is kept at module level.
"""

import logging
from typing import Dict, List, Optional, Tuple

from .edge_paths import EdgePath, is_opposite, routed_port_path, simple_bezier, smooth_curve
from .models import Edge, EdgePorts, Node, NodeBox, Port, PortSide, SectionLayoutMeta
from .tracer import LayoutTrace

logger = logging.getLogger(__name__)

# Distance kept between distributed ports and the node corners
PORT_CORNER_PADDING = 15


class LayoutContext:
    """
    Layout metadata and port assignments for one canvas.

    The sectioned layout fills ``meta``; the router fills ``node_boxes`` and
    ``edge_ports``. A context without metadata is inactive and every router
    query falls back to plain curves.
    """

    def __init__(self, meta: Optional[SectionLayoutMeta] = None):
        self.meta: Optional[SectionLayoutMeta] = meta
        self.node_boxes: Dict[str, NodeBox] = {}
        self.edge_ports: Dict[str, EdgePorts] = {}

    @property
    def is_active(self) -> bool:
        """Whether port-based routing applies."""
        return self.meta is not None

    def set_meta(self, meta: Optional[SectionLayoutMeta]) -> None:
        """Replace the metadata. Port assignments from an older layout are dropped."""
        self.meta = meta
        self.node_boxes = {}
        self.edge_ports = {}

    def clear(self) -> None:
        self.set_meta(None)


def choose_sides(source: NodeBox, target: NodeBox) -> Tuple[PortSide, PortSide]:
    """
    Pick port sides from the centers of two boxes.

    The axis with the larger absolute delta decides horizontal vs vertical
    attachment; ties go vertical.
    """
    (sx, sy), (tx, ty) = source.center, target.center
    dx = tx - sx
    dy = ty - sy

    if abs(dx) > abs(dy):
        if dx > 0:
            return PortSide.RIGHT, PortSide.LEFT
        return PortSide.LEFT, PortSide.RIGHT
    if dy > 0:
        return PortSide.BOTTOM, PortSide.TOP
    return PortSide.TOP, PortSide.BOTTOM


def port_position(box: NodeBox, side: PortSide, index: int, total: int) -> Port:
    """
    Place the index-th of ``total`` ports on a box side.

    A lone port sits in the middle; n ports sit at (i+1)/(n+1) of the side
    length between the corner paddings.
    """
    fraction = (index + 1) / (total + 1) if total > 1 else 0.5
    pad = PORT_CORNER_PADDING

    if side == PortSide.TOP:
        x, y = box.x + pad + (box.width - 2 * pad) * fraction, box.y
    elif side == PortSide.BOTTOM:
        x, y = box.x + pad + (box.width - 2 * pad) * fraction, box.y + box.height
    elif side == PortSide.LEFT:
        x, y = box.x, box.y + pad + (box.height - 2 * pad) * fraction
    else:
        x, y = box.x + box.width, box.y + pad + (box.height - 2 * pad) * fraction

    return Port(node=box.node_id, side=side, fraction=fraction, x=x, y=y)


class EdgePortRouter:
    """
    Assigns ports to edges and builds their paths.

    Example:
        >>> context = LayoutContext()
        >>> nodes = apply_layout("presentation", nodes, edges, context=context)
        >>> router = EdgePortRouter(context)
        >>> router.calculate_edge_ports(nodes, edges)
        >>> router.edge_path("e1", 0, 0, 100, 200).path
    """

    def __init__(self, context: LayoutContext, trace: Optional[LayoutTrace] = None):
        self.context = context
        self.trace = trace

    def calculate_edge_ports(self, nodes: List[Node], edges: List[Edge]) -> None:
        """
        Compute port assignments for every edge between known nodes.

        Does nothing when the context has no layout metadata.
        """
        if not self.context.is_active:
            return

        boxes: Dict[str, NodeBox] = {}
        for node in nodes:
            width, height = node.dimensions()
            boxes[node.id] = NodeBox(node.id, node.x, node.y, width, height)
        self.context.node_boxes = boxes

        # First pass: pick sides and register each edge on both node sides
        side_usage: Dict[Tuple[str, PortSide], List[str]] = {}
        edge_sides: Dict[str, Tuple[PortSide, PortSide]] = {}
        skipped = 0

        for edge in edges:
            source = boxes.get(edge.source)
            target = boxes.get(edge.target)
            if source is None or target is None:
                skipped += 1
                continue

            sides = choose_sides(source, target)
            edge_sides[edge.id] = sides
            side_usage.setdefault((edge.source, sides[0]), []).append(edge.id)
            side_usage.setdefault((edge.target, sides[1]), []).append(edge.id)

        # Second pass: spread ports that share a node side
        edge_ports: Dict[str, EdgePorts] = {}
        for edge in edges:
            sides = edge_sides.get(edge.id)
            if sides is None:
                continue
            source_side, target_side = sides

            on_source = side_usage[(edge.source, source_side)]
            on_target = side_usage[(edge.target, target_side)]

            edge_ports[edge.id] = EdgePorts(
                source_port=port_position(
                    boxes[edge.source], source_side, on_source.index(edge.id), len(on_source)
                ),
                target_port=port_position(
                    boxes[edge.target], target_side, on_target.index(edge.id), len(on_target)
                ),
            )

        self.context.edge_ports = edge_ports

        if skipped:
            logger.debug("Skipped %d edge(s) with unknown endpoints", skipped)
        if self.trace is not None:
            self.trace.add_stage(
                "ports",
                {
                    "edges": len(edge_ports),
                    "skipped": skipped,
                    "shared_sides": sum(1 for ids in side_usage.values() if len(ids) > 1),
                },
            )

    def port_info(self, edge_id: Optional[str]) -> Optional[EdgePorts]:
        """Pre-calculated ports for an edge, if any."""
        if edge_id is None or not self.context.is_active:
            return None
        return self.context.edge_ports.get(edge_id)

    def edge_path(
        self,
        edge_id: Optional[str],
        source_x: float,
        source_y: float,
        target_x: float,
        target_y: float,
    ) -> EdgePath:
        """
        Path for an edge.

        Uses the edge's assigned ports when available and falls back to a
        plain bezier between the given anchors otherwise.
        """
        ports = self.port_info(edge_id)
        if ports is None:
            return simple_bezier(source_x, source_y, target_x, target_y)
        return self.port_path(ports)

    @staticmethod
    def port_path(ports: EdgePorts) -> EdgePath:
        """Path between two assigned ports."""
        if is_opposite(ports.source_port.side, ports.target_port.side):
            return smooth_curve(ports.source_port, ports.target_port)
        return routed_port_path(ports.source_port, ports.target_port)

    def route_all(self, edges: List[Edge]) -> Dict[str, EdgePath]:
        """
        Paths for all edges, using node centers as fallback anchors.
        """
        boxes = self.context.node_boxes
        paths: Dict[str, EdgePath] = {}
        for edge in edges:
            ports = self.port_info(edge.id)
            if ports is not None:
                paths[edge.id] = self.port_path(ports)
                continue
            source = boxes.get(edge.source)
            target = boxes.get(edge.target)
            if source is None or target is None:
                continue
            (sx, sy), (tx, ty) = source.center, target.center
            paths[edge.id] = simple_bezier(sx, sy, tx, ty)
        return paths


def route_edges(
    nodes: List[Node],
    edges: List[Edge],
    context: Optional[LayoutContext] = None,
) -> Dict[str, EdgePath]:
    """
    Route every edge of a canvas.

    With an active context, ports are assigned and port paths returned;
    otherwise each edge gets a fallback bezier between node centers.
    """
    context = context or LayoutContext()
    router = EdgePortRouter(context)
    router.calculate_edge_ports(nodes, edges)

    if not context.is_active:
        centers = {node.id: node.center() for node in nodes}
        paths: Dict[str, EdgePath] = {}
        for edge in edges:
            if edge.source in centers and edge.target in centers:
                (sx, sy), (tx, ty) = centers[edge.source], centers[edge.target]
                paths[edge.id] = simple_bezier(sx, sy, tx, ty)
        return paths

    return router.route_all(edges)
