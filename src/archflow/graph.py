"""
Graph module for the playback traversal.

Provides a directed graph restricted to a subset of node ids. Edges whose
source or target falls outside the subset are dropped silently.
"""

import logging
from collections import deque
from typing import Dict, Iterable, List, Set

from .models import Edge

logger = logging.getLogger(__name__)


class SubsetGraph:
    """Directed graph over a subset of node ids, keyed by node id."""

    def __init__(self, node_ids: Iterable[str]):
        # dict keeps input order and collapses duplicates
        self.nodes: Dict[str, None] = dict.fromkeys(node_ids)
        self.adjacency: Dict[str, List[str]] = {n: [] for n in self.nodes}
        self.in_degree: Dict[str, int] = {n: 0 for n in self.nodes}
        self.connected: Set[str] = set()

    def add_edge(self, source: str, target: str) -> bool:
        """
        Add a directed edge if both endpoints are in the subset.

        Repeated targets are kept once in the adjacency list but still
        count towards the in-degree.

        Returns:
            True if the edge was accepted.
        """
        if source not in self.nodes or target not in self.nodes:
            return False

        targets = self.adjacency[source]
        if target not in targets:
            targets.append(target)
        self.in_degree[target] += 1
        self.connected.add(source)
        self.connected.add(target)
        return True

    def get_nodes(self) -> List[str]:
        """Return node ids in input order."""
        return list(self.nodes)

    def get_successors(self, node: str) -> List[str]:
        return self.adjacency.get(node, [])

    def get_roots(self) -> List[str]:
        """Connected nodes with no incoming edge, in input order."""
        return [
            node
            for node in self.nodes
            if node in self.connected and self.in_degree[node] == 0
        ]

    def get_isolated(self) -> List[str]:
        """Nodes with no edge at all inside the subset, in input order."""
        return [node for node in self.nodes if node not in self.connected]

    def undirected_components(self) -> List[List[str]]:
        """Connected components among connected nodes, treating edges as undirected."""
        neighbours: Dict[str, Set[str]] = {n: set() for n in self.connected}
        for source, targets in self.adjacency.items():
            for target in targets:
                neighbours[source].add(target)
                neighbours[target].add(source)

        seen: Set[str] = set()
        components: List[List[str]] = []
        for start in self.nodes:
            if start not in self.connected or start in seen:
                continue
            component = []
            queue = deque([start])
            seen.add(start)
            while queue:
                current = queue.popleft()
                component.append(current)
                for neighbour in neighbours[current]:
                    if neighbour not in seen:
                        seen.add(neighbour)
                        queue.append(neighbour)
            components.append(component)
        return components


def create_subset_graph(node_ids: Iterable[str], edges: Iterable[Edge]) -> SubsetGraph:
    """
    Create a SubsetGraph from node ids and the full edge list.

    Args:
        node_ids: Ids of the active subset
        edges: All edges; dangling ones are dropped

    Returns:
        SubsetGraph object
    """
    graph = SubsetGraph(node_ids)
    dropped = 0
    for edge in edges:
        if not graph.add_edge(edge.source, edge.target):
            dropped += 1
    if dropped:
        logger.debug("Dropped %d edge(s) outside the active subset", dropped)
    return graph
