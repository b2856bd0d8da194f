"""
Hierarchical layout using networkx for rank assignment.

Uses networkx for:
- Graph representation
- Cycle detection
- Topological generations as longest-path ranks

Crossing reduction within ranks uses the barycenter heuristic over the
nodes' real cross-axis extents, so wide nodes pull their neighbours the
way they will actually be drawn. Coordinate assignment turns ranks and
in-rank order into canvas positions for any of the four rank directions.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

import networkx as nx

from .models import (
    DEFAULT_NODE_HEIGHT,
    DEFAULT_NODE_WIDTH,
    Edge,
    LayoutDirection,
    LayoutOptions,
    Node,
)

# Hierarchical layout defaults
DEFAULT_NODE_SPACING = 80
DEFAULT_RANK_SPACING = 120
LAYOUT_MARGIN = 50
BARYCENTER_PASSES = 4

Size = Tuple[float, float]


@dataclass
class NodeRank:
    """A node's rank assignment."""

    name: str
    rank: int = 0
    order: int = 0  # Position within rank


@dataclass
class RankingResult:
    """Result of rank assignment and crossing reduction."""

    nodes: Dict[str, NodeRank] = field(default_factory=dict)
    ranks: List[List[str]] = field(default_factory=list)
    edges: List[Tuple[str, str]] = field(default_factory=list)
    back_edges: Set[Tuple[str, str]] = field(default_factory=set)
    has_cycles: bool = False


def _extent(size: Size, horizontal: bool) -> Size:
    """(cross, main) extent of a node for a rank direction."""
    width, height = size
    return (height, width) if horizontal else (width, height)


def _rank_span(cross_sizes: List[float], node_spacing: float) -> float:
    return sum(cross_sizes) + node_spacing * max(len(cross_sizes) - 1, 0)


def _cross_centers(
    rank: List[str], cross_size: Dict[str, float], node_spacing: float
) -> Dict[str, float]:
    """Cross-axis centers of a rank's nodes, relative to the rank's middle."""
    cursor = -_rank_span([cross_size[n] for n in rank], node_spacing) / 2
    centers = {}
    for name in rank:
        centers[name] = cursor + cross_size[name] / 2
        cursor += cross_size[name] + node_spacing
    return centers


class RankedLayout:
    """
    Layered rank assignment using networkx.

    For DAGs: longest-path ranks from the topological generations.
    For cyclic graphs: identifies back edges with a DFS, ignores them for
    ranking, then ranks the remaining DAG.

    Args:
        sizes: Node id -> (width, height); missing nodes use the default size
        node_spacing: Gap between neighbours in a rank
        horizontal: True when ranks run left to right (LR/RL)
    """

    def __init__(
        self,
        sizes: Optional[Dict[str, Size]] = None,
        node_spacing: float = DEFAULT_NODE_SPACING,
        horizontal: bool = False,
    ):
        self.sizes = sizes or {}
        self.node_spacing = node_spacing
        self.horizontal = horizontal
        self.graph: Optional[nx.DiGraph] = None
        self.back_edges: Set[Tuple[str, str]] = set()

    def rank(
        self, node_ids: List[str], connections: List[Tuple[str, str]]
    ) -> RankingResult:
        """
        Compute ranks for the given nodes and connections.

        Args:
            node_ids: All node ids, including ones without edges
            connections: List of (source, target) tuples between known nodes

        Returns:
            RankingResult with rank and in-rank order per node
        """
        self.graph = nx.DiGraph()
        self.graph.add_nodes_from(node_ids)
        self.graph.add_edges_from(connections)

        has_cycles = not nx.is_directed_acyclic_graph(self.graph)
        self.back_edges = set()
        if has_cycles:
            self._break_cycles()

        # One acyclic view serves both ranking and ordering
        dag = self.graph.copy()
        dag.remove_edges_from(self.back_edges)

        ranks = self._order_ranks(self._assign_ranks(dag), dag)

        result = RankingResult(
            ranks=ranks,
            edges=list(connections),
            back_edges=set(self.back_edges),
            has_cycles=has_cycles,
        )
        for rank_idx, rank in enumerate(ranks):
            for order_idx, name in enumerate(rank):
                result.nodes[name] = NodeRank(name=name, rank=rank_idx, order=order_idx)
        return result

    def _break_cycles(self) -> None:
        """
        Identify back edges with an iterative DFS.

        Starts from nodes with no predecessors, then from anything left.
        Self loops are always back edges.
        """
        visited: Set[str] = set()
        on_stack: Set[str] = set()

        roots = [n for n in self.graph.nodes() if self.graph.in_degree(n) == 0]
        starts = roots + [n for n in self.graph.nodes() if n not in roots]

        for start in starts:
            if start in visited:
                continue
            visited.add(start)
            on_stack.add(start)
            stack = [(start, iter(list(self.graph.successors(start))))]

            while stack:
                node, successors = stack[-1]
                advanced = False
                for successor in successors:
                    if successor in on_stack:
                        self.back_edges.add((node, successor))
                    elif successor not in visited:
                        visited.add(successor)
                        on_stack.add(successor)
                        stack.append(
                            (successor, iter(list(self.graph.successors(successor))))
                        )
                        advanced = True
                        break
                if not advanced:
                    stack.pop()
                    on_stack.discard(node)

    @staticmethod
    def _assign_ranks(dag: nx.DiGraph) -> List[List[str]]:
        """
        Longest-path ranks: generation k holds the nodes whose deepest
        predecessor sits in generation k - 1. Each rank starts out in
        input order.
        """
        input_order = {name: i for i, name in enumerate(dag.nodes())}
        return [
            sorted(generation, key=input_order.__getitem__)
            for generation in nx.topological_generations(dag)
        ]

    def _cross_size(self, name: str) -> float:
        size = self.sizes.get(name, (DEFAULT_NODE_WIDTH, DEFAULT_NODE_HEIGHT))
        return _extent(size, self.horizontal)[0]

    def _order_ranks(self, ranks: List[List[str]], dag: nx.DiGraph) -> List[List[str]]:
        """Alternate down and up barycenter sweeps to reduce crossings."""
        if len(ranks) <= 1:
            return ranks

        cross_size = {name: self._cross_size(name) for rank in ranks for name in rank}

        for _ in range(BARYCENTER_PASSES):
            for i in range(1, len(ranks)):
                ranks[i] = self._sweep(ranks[i], ranks[i - 1], dag.predecessors, cross_size)
            for i in range(len(ranks) - 2, -1, -1):
                ranks[i] = self._sweep(ranks[i], ranks[i + 1], dag.successors, cross_size)
        return ranks

    def _sweep(self, rank, ref_rank, neighbours, cross_size) -> List[str]:
        """
        Reorder ``rank`` by the mean cross-axis center of each node's
        neighbours in ``ref_rank``. Both ranks are centered on the same
        axis, as they will be when drawn. Nodes with no neighbour there
        keep their current center.
        """
        ref_centers = _cross_centers(ref_rank, cross_size, self.node_spacing)
        own_centers = _cross_centers(rank, cross_size, self.node_spacing)

        def barycenter(name: str) -> float:
            linked = [ref_centers[n] for n in neighbours(name) if n in ref_centers]
            if not linked:
                return own_centers[name]
            return sum(linked) / len(linked)

        return sorted(rank, key=barycenter)


def _assign_coordinates(
    ranking: RankingResult,
    sizes: Dict[str, Size],
    direction: LayoutDirection,
    node_spacing: float,
    rank_spacing: float,
) -> Dict[str, Tuple[float, float]]:
    """
    Compute node centers from ranks.

    Works in a rank-aligned frame (cross axis, main axis) and maps it to
    canvas axes for the requested direction. The result is shifted so the
    top-left of the whole drawing sits at the layout margin.
    """
    horizontal = direction.is_horizontal
    cross_size = {name: _extent(size, horizontal)[0] for name, size in sizes.items()}
    widest = max(
        (_rank_span([cross_size[n] for n in rank], node_spacing) for rank in ranking.ranks),
        default=0.0,
    )

    centers: Dict[str, Tuple[float, float]] = {}
    main_cursor = 0.0
    for rank in ranking.ranks:
        thickness = max((_extent(sizes[n], horizontal)[1] for n in rank), default=0.0)
        main_center = main_cursor + thickness / 2
        for name, cross in _cross_centers(rank, cross_size, node_spacing).items():
            centers[name] = (widest / 2 + cross, main_center)
        main_cursor += thickness + rank_spacing

    total_main = max(main_cursor - rank_spacing, 0.0)
    placed: Dict[str, Tuple[float, float]] = {}
    for name, (cross, main) in centers.items():
        if direction in (LayoutDirection.BT, LayoutDirection.RL):
            main = total_main - main
        if horizontal:
            placed[name] = (main + LAYOUT_MARGIN, cross + LAYOUT_MARGIN)
        else:
            placed[name] = (cross + LAYOUT_MARGIN, main + LAYOUT_MARGIN)
    return placed


def hierarchical_layout(
    nodes: List[Node],
    edges: List[Edge],
    options: Optional[LayoutOptions] = None,
) -> List[Node]:
    """
    Layered (Sugiyama-style) layout.

    Edges only drive ranking and ordering; nodes without edges still get
    placed on the first rank.

    Args:
        nodes: Nodes to lay out
        edges: Edges; dangling ones are ignored
        options: Direction and spacing (defaults TB, 80, 120)

    Returns:
        New nodes with top-left positions
    """
    if not nodes:
        return []

    resolved = (options or LayoutOptions()).resolve(
        node_spacing=DEFAULT_NODE_SPACING, rank_spacing=DEFAULT_RANK_SPACING
    )

    node_ids = [node.id for node in nodes]
    known = set(node_ids)
    connections = [
        (edge.source, edge.target)
        for edge in edges
        if edge.source in known and edge.target in known and edge.source != edge.target
    ]

    sizes = {node.id: node.dimensions() for node in nodes}
    ranking = RankedLayout(
        sizes, resolved.node_spacing, resolved.direction.is_horizontal
    ).rank(node_ids, connections)
    centers = _assign_coordinates(
        ranking,
        sizes,
        resolved.direction,
        resolved.node_spacing,
        resolved.rank_spacing,
    )

    laid_out = []
    for node in nodes:
        width, height = sizes[node.id]
        cx, cy = centers[node.id]
        laid_out.append(node.moved_to(cx - width / 2, cy - height / 2))
    return laid_out
