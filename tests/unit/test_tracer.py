"""
Tests for the tracer module.

These tests verify the debug tracing infrastructure used to capture
information about a layout run.
"""

from archflow.models import Node
from archflow.tracer import LayoutTrace, PipelineStage


class TestPipelineStage:
    """Tests for PipelineStage dataclass."""

    def test_creation_basic(self):
        """Test basic creation without positions."""
        stage = PipelineStage(name="partition", data={"top_level": 3})
        assert stage.name == "partition"
        assert stage.data == {"top_level": 3}
        assert stage.positions is None

    def test_str_truncates_long_values(self):
        """Test long values are shortened in the string form."""
        stage = PipelineStage(name="ports", data={"edges": "x" * 200})
        text = str(stage)
        assert "=== Stage: ports ===" in text
        assert "..." in text

    def test_str_includes_positions(self):
        """Test positions are listed."""
        stage = PipelineStage(name="grid", data={}, positions={"a": (1.0, 2.0)})
        assert "a: (1.0, 2.0)" in str(stage)


class TestLayoutTrace:
    """Tests for LayoutTrace."""

    def test_add_stage_snapshots_positions(self):
        """Test node positions are captured when nodes are given."""
        trace = LayoutTrace()
        trace.add_stage("grid", {"nodes": 1}, [Node("a", x=3, y=4)])
        assert trace.get_positions_at_stage("grid") == {"a": (3, 4)}

    def test_add_stage_copies_data(self):
        """Test later changes to the data dict do not leak into the stage."""
        trace = LayoutTrace()
        data = {"count": 1}
        trace.add_stage("partition", data)
        data["count"] = 2
        assert trace.get_stage("partition").data == {"count": 1}

    def test_missing_stage(self):
        """Test lookups of unknown stages."""
        trace = LayoutTrace()
        assert trace.get_stage("nope") is None
        assert trace.get_positions_at_stage("nope") is None

    def test_summary(self):
        """Test the summary lists stages and the layout type."""
        trace = LayoutTrace(layout_type="grid")
        trace.add_stage("partition", {})
        trace.add_stage("grid", {}, [Node("a")])
        summary = trace.summary()
        assert "Layout: grid" in summary
        assert "[-] partition" in summary
        assert "[+] grid" in summary

    def test_dump_to_file(self, tmp_path):
        """Test the dump is written to a file."""
        trace = LayoutTrace()
        trace.add_stage("partition", {"top_level": 2})
        target = tmp_path / "trace.txt"
        trace.dump_to_file(str(target))
        content = target.read_text(encoding="utf-8")
        assert "DETAILED TRACE" in content
        assert "top_level: 2" in content
