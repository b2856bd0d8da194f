"""Unit tests for PNG export."""

import pytest
from PIL import Image

from archflow.canvas import InMemoryCanvas
from archflow.export import CATEGORY_COLORS, LayoutExporter
from archflow.models import Edge, Node
from archflow.positioning import sectioned_layout
from archflow.router import LayoutContext


@pytest.fixture
def exporter():
    return LayoutExporter()


@pytest.fixture
def two_nodes():
    return [Node("a", "tech", x=0, y=0), Node("b", "database", x=300, y=0)]


class TestRenderImage:
    """Tests for render_image."""

    def test_size_covers_bounds(self, exporter, two_nodes):
        """Test the image spans the node bounds plus padding."""
        img = exporter.render_image(two_nodes)
        assert img.size == (480 + 80, 80 + 80)
        assert img.mode == "RGB"

    def test_scale(self, exporter, two_nodes):
        """Test scale multiplies the resolution."""
        img = exporter.render_image(two_nodes, scale=2)
        assert img.size == ((480 + 80) * 2, (80 + 80) * 2)

    def test_minimum_size(self, exporter):
        """Test an empty drawing still gets a usable image."""
        assert exporter.render_image([]).size == (100, 100)

    def test_node_fill(self, exporter, two_nodes):
        """Test node boxes are filled with their category color."""
        img = exporter.render_image(two_nodes)
        # Inside node "a", clear of its label
        red, green, blue = img.getpixel((40 + 170, 40 + 70))
        expected = CATEGORY_COLORS["tech"].lstrip("#")
        assert (red, green, blue) == tuple(int(expected[i : i + 2], 16) for i in (0, 2, 4))

    def test_background(self, exporter, two_nodes):
        """Test the background color fills the padding."""
        img = exporter.render_image(two_nodes, bg_color="#000000")
        assert img.getpixel((2, 2)) == (0, 0, 0)

    def test_dimmed_node_faded(self, exporter):
        """Test a dimmed node is blended towards the background."""
        nodes = [Node("a", "tech", opacity=0.15), Node("b", "tech", x=300)]
        img = exporter.render_image(nodes)
        dimmed = img.getpixel((40 + 170, 40 + 70))
        full = img.getpixel((40 + 300 + 170, 40 + 70))
        assert dimmed != full
        assert all(d >= f for d, f in zip(dimmed, full))
        assert sum(dimmed) > sum(full) + 200

    def test_edges_drawn(self, exporter, two_nodes):
        """Test an edge adds pixels between the nodes."""
        plain = exporter.render_image(two_nodes)
        with_edge = exporter.render_image(two_nodes, [Edge("e", "a", "b")])
        assert plain.tobytes() != with_edge.tobytes()

    def test_dangling_edges_ignored(self, exporter, two_nodes):
        """Test edges to unknown nodes do not fail."""
        img = exporter.render_image(two_nodes, [Edge("e", "a", "ghost")])
        assert img.size == (560, 160)

    def test_with_sectioned_context(self, exporter):
        """Test rendering with port routing after a sectioned layout."""
        context = LayoutContext()
        nodes = sectioned_layout([Node("api", "tech"), Node("db", "database")], context=context)
        img = exporter.render_image(nodes, [Edge("e", "api", "db")], context)
        assert img.size[0] > 100


class TestSavePng:
    """Tests for writing PNG files."""

    def test_save_png(self, exporter, two_nodes, tmp_path):
        """Test the PNG is written as RGB."""
        target = tmp_path / "layout.png"
        exporter.save_png(two_nodes, str(target), edges=[Edge("e", "a", "b")])
        with Image.open(target) as img:
            assert img.format == "PNG"
            assert img.mode == "RGB"
            assert img.size == (560, 160)

    def test_save_canvas_png(self, exporter, two_nodes, tmp_path):
        """Test a canvas snapshot reflects dimmed nodes."""
        canvas = InMemoryCanvas(two_nodes)
        canvas.set_node_opacity({"a": 0.0})
        target = tmp_path / "canvas.png"
        exporter.save_canvas_png(canvas, str(target))
        with Image.open(target) as img:
            assert img.getpixel((40 + 170, 40 + 70)) == (255, 255, 255)
