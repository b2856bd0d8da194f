"""
Node traversal ordering for guided walkthroughs.

Orders the highlighted nodes of a step for node-by-node playback:
breadth-first from the entry points of every connected component, with
isolated nodes appended last in reading order (left-to-right, then
top-to-bottom). Nodes that fan out to more than one target are reported as
branch points so the presenter can pick a path.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Set

from .graph import SubsetGraph, create_subset_graph
from .models import BranchPoint, Edge, Position


@dataclass
class TraversalResult:
    """Result of a traversal: visit order plus branch points in visit order."""

    ordered_node_ids: List[str] = field(default_factory=list)
    branch_points: List[BranchPoint] = field(default_factory=list)


def _pick_roots(graph: SubsetGraph) -> List[str]:
    roots = graph.get_roots()
    root_set = set(roots)
    # Pure cycles have no zero in-degree member; enter them from their first node
    for component in graph.undirected_components():
        if not root_set.intersection(component):
            roots.append(component[0])
    return roots


def build_node_traversal_order(
    node_ids: Iterable[str],
    edges: Iterable[Edge],
    positions: Optional[Mapping[str, Position]] = None,
) -> TraversalResult:
    """
    Build the visit order for a subset of nodes.

    Args:
        node_ids: Highlighted node ids of the step
        edges: The full edge list; edges leaving the subset are ignored
        positions: Optional saved positions used to order isolated nodes

    Returns:
        TraversalResult covering every input id exactly once
    """
    graph = create_subset_graph(node_ids, edges)
    if not graph.nodes:
        return TraversalResult()

    visited: Set[str] = set()
    ordered: List[str] = []
    branch_points: List[BranchPoint] = []

    def bfs(starts: List[str]) -> None:
        queue = deque(starts)
        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited.add(current)
            ordered.append(current)

            targets = graph.get_successors(current)
            if len(targets) > 1:
                # Recorded with every target, visited or not
                branch_points.append(
                    BranchPoint(
                        source_node_id=current,
                        target_node_ids=list(targets),
                        target_labels=list(targets),
                    )
                )
            queue.extend(t for t in targets if t not in visited)

    bfs(_pick_roots(graph))

    # Members only reachable through a cycle hanging off a rooted component
    for node in graph.get_nodes():
        if node in graph.connected and node not in visited:
            bfs([node])

    positions = positions or {}
    origin = Position(0.0, 0.0)

    def reading_order(node_id: str):
        pos = positions.get(node_id) or origin
        return (pos.x, pos.y)

    ordered.extend(sorted(graph.get_isolated(), key=reading_order))
    return TraversalResult(ordered_node_ids=ordered, branch_points=branch_points)


def resolve_branch_labels(
    branch_points: List[BranchPoint], labels: Mapping[str, str]
) -> List[BranchPoint]:
    """Return copies of the branch points with node labels filled in."""
    return [
        BranchPoint(
            source_node_id=bp.source_node_id,
            target_node_ids=list(bp.target_node_ids),
            target_labels=[labels.get(t) or t for t in bp.target_node_ids],
        )
        for bp in branch_points
    ]


def node_labels(nodes: Iterable) -> Dict[str, str]:
    """Map node id to display label."""
    return {node.id: node.display_label for node in nodes}
