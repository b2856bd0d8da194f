"""Unit tests for the layout dispatcher."""

import pytest

from archflow.dispatcher import apply_layout, parse_layout_type, partition_nodes
from archflow.models import LayoutOptions, LayoutType, Node, SectionLayoutMeta
from archflow.router import LayoutContext
from archflow.tracer import LayoutTrace

GENERAL_LAYOUTS = ["hierarchical", "force", "circular", "grid"]


class TestParseLayoutType:
    """Tests for parse_layout_type."""

    def test_strings_and_enums(self):
        """Test both strings and enum members are accepted."""
        assert parse_layout_type("grid") == LayoutType.GRID
        assert parse_layout_type(LayoutType.FORCE) == LayoutType.FORCE

    def test_unknown(self):
        """Test unknown tags give None."""
        assert parse_layout_type("spiral") is None
        assert parse_layout_type(None) is None


class TestPartition:
    """Tests for partition_nodes."""

    def test_partition(self, mixed_nodes):
        """Test containers and nested nodes are passed through."""
        top_level, others = partition_nodes(mixed_nodes)
        assert [n.id for n in top_level] == ["api", "db", "billing", "queue"]
        assert [n.id for n in others] == ["vpc", "worker"]


class TestApplyLayout:
    """Tests for apply_layout."""

    @pytest.mark.parametrize("layout_type", GENERAL_LAYOUTS)
    def test_same_node_set(self, layout_type, mixed_nodes, edge_factory):
        """Test every layout returns exactly the input ids."""
        edges = edge_factory([("api", "db"), ("api", "billing"), ("queue", "worker")])
        result = apply_layout(layout_type, mixed_nodes, edges, LayoutOptions(seed=1))
        assert sorted(n.id for n in result) == sorted(n.id for n in mixed_nodes)
        assert len(result) == len(mixed_nodes)

    @pytest.mark.parametrize("layout_type", GENERAL_LAYOUTS + ["presentation"])
    def test_nested_nodes_untouched(self, layout_type, mixed_nodes):
        """Test nested nodes and containers keep their positions and trail the result."""
        result = apply_layout(layout_type, mixed_nodes, [], LayoutOptions(seed=1))
        assert [n.id for n in result[-2:]] == ["vpc", "worker"]
        worker = result[-1]
        assert (worker.x, worker.y) == (20, 30)

    def test_unknown_type_returns_input(self, mixed_nodes):
        """Test an unknown layout type is a no-op."""
        assert apply_layout("spiral", mixed_nodes, []) is mixed_nodes

    def test_presentation_sets_context(self, mixed_nodes):
        """Test the presentation layout stores section metadata."""
        context = LayoutContext()
        apply_layout("presentation", mixed_nodes, [], context=context)
        assert context.is_active
        assert [s.category for s in context.meta.sections] == ["tech", "database", "business"]

    def test_other_layouts_clear_context(self, mixed_nodes):
        """Test switching away from the presentation layout clears metadata."""
        context = LayoutContext(SectionLayoutMeta())
        apply_layout("grid", mixed_nodes, [], context=context)
        assert not context.is_active

    def test_empty_nodes(self):
        """Test empty input yields empty output."""
        for layout_type in GENERAL_LAYOUTS + ["presentation"]:
            assert apply_layout(layout_type, [], []) == []

    def test_invalid_options_fall_back(self, mixed_nodes):
        """Test invalid options never fail."""
        options = LayoutOptions(node_spacing=-1, rank_spacing=0, direction="up")
        result = apply_layout("hierarchical", mixed_nodes, [], options)
        assert len(result) == len(mixed_nodes)

    def test_trace_stages(self, mixed_nodes):
        """Test a trace records partition, metadata and algorithm stages."""
        trace = LayoutTrace()
        apply_layout("presentation", mixed_nodes, [], context=LayoutContext(), trace=trace)
        assert [s.name for s in trace.stages] == ["partition", "metadata", "presentation"]
        assert trace.layout_type == "presentation"
        assert trace.get_stage("partition").data == {"top_level": 4, "passed_through": 2}
        assert set(trace.get_positions_at_stage("presentation")) == {
            "api",
            "db",
            "billing",
            "queue",
        }

    def test_input_not_mutated(self):
        """Test the input nodes are not moved."""
        nodes = [Node("a", x=5, y=5), Node("b", x=7, y=7)]
        apply_layout("grid", nodes, [])
        assert [(n.x, n.y) for n in nodes] == [(5, 5), (7, 7)]
