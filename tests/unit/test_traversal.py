"""Unit tests for the subset graph and traversal ordering."""

from archflow.graph import create_subset_graph
from archflow.models import BranchPoint, Edge, Node, Position
from archflow.traversal import (
    build_node_traversal_order,
    node_labels,
    resolve_branch_labels,
)


class TestSubsetGraph:
    """Tests for SubsetGraph construction."""

    def test_dangling_edges_dropped(self, edge_factory):
        """Test edges leaving the subset are ignored."""
        graph = create_subset_graph(["A", "B"], edge_factory([("A", "B"), ("B", "X")]))
        assert graph.get_successors("A") == ["B"]
        assert graph.get_successors("B") == []
        assert graph.connected == {"A", "B"}

    def test_duplicate_ids_collapsed(self):
        """Test repeated ids in the subset keep their first position."""
        graph = create_subset_graph(["A", "B", "A"], [])
        assert graph.get_nodes() == ["A", "B"]

    def test_duplicate_edges_single_target(self, edge_factory):
        """Test parallel edges keep one adjacency entry."""
        graph = create_subset_graph(["A", "B"], edge_factory([("A", "B"), ("A", "B")]))
        assert graph.get_successors("A") == ["B"]
        assert graph.in_degree["B"] == 2

    def test_roots_and_isolated(self, diamond_edges):
        """Test roots and isolated nodes."""
        graph = create_subset_graph(["A", "B", "C", "D", "E"], diamond_edges)
        assert graph.get_roots() == ["A"]
        assert graph.get_isolated() == ["E"]

    def test_undirected_components(self, edge_factory):
        """Test components ignore edge direction."""
        graph = create_subset_graph(
            ["A", "B", "C", "D"], edge_factory([("B", "A"), ("C", "D")])
        )
        assert [sorted(c) for c in graph.undirected_components()] == [["A", "B"], ["C", "D"]]


class TestTraversalOrder:
    """Tests for build_node_traversal_order."""

    def test_diamond_order(self, diamond_edges):
        """Test A first, D after both B and C."""
        result = build_node_traversal_order(["A", "B", "C", "D"], diamond_edges)
        order = result.ordered_node_ids
        assert order[0] == "A"
        assert order.index("D") > order.index("B")
        assert order.index("D") > order.index("C")
        assert sorted(order) == ["A", "B", "C", "D"]

    def test_diamond_branch_point(self, diamond_edges):
        """Test a branch point at A with targets B and C."""
        result = build_node_traversal_order(["A", "B", "C", "D"], diamond_edges)
        assert len(result.branch_points) == 1
        branch = result.branch_points[0]
        assert branch.source_node_id == "A"
        assert branch.target_node_ids == ["B", "C"]

    def test_isolated_node_appended(self, diamond_edges):
        """Test an isolated node comes after every connected node."""
        result = build_node_traversal_order(["E", "A", "B", "C", "D"], diamond_edges)
        assert result.ordered_node_ids[-1] == "E"
        assert result.ordered_node_ids[:4].count("E") == 0

    def test_isolated_sorted_by_position(self, diamond_edges):
        """Test isolated nodes sort by x, then y."""
        positions = {
            "E": Position(300, 0),
            "F": Position(100, 50),
            "G": Position(100, 10),
        }
        result = build_node_traversal_order(
            ["A", "B", "C", "D", "E", "F", "G"], diamond_edges, positions
        )
        assert result.ordered_node_ids[4:] == ["G", "F", "E"]

    def test_isolated_without_positions_keeps_input_order(self):
        """Test missing positions default to the origin with a stable sort."""
        result = build_node_traversal_order(["X", "Y", "Z"], [])
        assert result.ordered_node_ids == ["X", "Y", "Z"]
        assert result.branch_points == []

    def test_empty_input(self, diamond_edges):
        """Test empty subset gives empty output."""
        result = build_node_traversal_order([], diamond_edges)
        assert result.ordered_node_ids == []
        assert result.branch_points == []

    def test_pure_cycle_is_reachable(self, cycle_edges):
        """Test a component without roots is entered from its first member."""
        result = build_node_traversal_order(["B", "C", "A"], cycle_edges)
        assert result.ordered_node_ids == ["B", "C", "A"]

    def test_cycle_alongside_rooted_component(self, cycle_edges):
        """Test a pure cycle is still visited when another component has a root."""
        edges = cycle_edges + [Edge("x", "P", "Q")]
        result = build_node_traversal_order(["P", "Q", "A", "B", "C"], edges)
        order = result.ordered_node_ids
        assert sorted(order) == ["A", "B", "C", "P", "Q"]
        assert order[:2] == ["P", "A"]

    def test_every_id_exactly_once(self, edge_factory):
        """Test coverage with a self loop, a cycle tail and isolated nodes."""
        edges = edge_factory([("A", "A"), ("B", "C"), ("C", "D"), ("D", "C"), ("X", "Y")])
        ids = ["A", "B", "C", "D", "E", "F"]
        result = build_node_traversal_order(ids, edges)
        assert sorted(result.ordered_node_ids) == sorted(ids)
        assert len(result.ordered_node_ids) == len(ids)

    def test_branch_point_with_all_targets_visited(self, edge_factory):
        """
        Flag: a node is reported as a branch point even when every target
        was already visited, so no forward branch remains.
        """
        edges = edge_factory([("A", "B"), ("B", "C"), ("C", "A"), ("C", "B")])
        result = build_node_traversal_order(["A", "B", "C"], edges)
        assert result.ordered_node_ids == ["A", "B", "C"]
        assert [bp.source_node_id for bp in result.branch_points] == ["C"]
        assert result.branch_points[0].target_node_ids == ["A", "B"]

    def test_branch_targets_include_visited(self, edge_factory):
        """Test the full target list is recorded, not the unvisited remainder."""
        edges = edge_factory([("A", "B"), ("A", "C"), ("B", "C"), ("B", "D")])
        result = build_node_traversal_order(["A", "B", "C", "D"], edges)
        by_source = {bp.source_node_id: bp for bp in result.branch_points}
        assert by_source["B"].target_node_ids == ["C", "D"]

    def test_deterministic(self, diamond_edges):
        """Test repeated calls give identical results."""
        first = build_node_traversal_order(["A", "B", "C", "D"], diamond_edges)
        second = build_node_traversal_order(["A", "B", "C", "D"], diamond_edges)
        assert first == second


class TestBranchLabels:
    """Tests for branch label resolution."""

    def test_labels_resolved(self):
        """Test known labels replace ids, unknown ones keep the id."""
        branch = BranchPoint("A", ["B", "C"], ["B", "C"])
        labels = node_labels([Node("B", label="Orders"), Node("C")])
        resolved = resolve_branch_labels([branch], labels)
        assert resolved[0].target_labels == ["Orders", "C"]
        assert branch.target_labels == ["B", "C"]
