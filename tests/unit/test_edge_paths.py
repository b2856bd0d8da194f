"""Unit tests for edge path geometry."""

import pytest

from archflow.edge_paths import (
    CURVE_CONTROL_MAX,
    PORT_EXIT_OFFSET,
    EdgePath,
    is_opposite,
    points_to_smooth_path,
    routed_port_path,
    simple_bezier,
    smooth_curve,
)
from archflow.models import Port, PortSide


def _port(side, x, y, node="n"):
    return Port(node=node, side=side, x=x, y=y)


class TestOppositeSides:
    """Tests for is_opposite."""

    def test_opposite_pairs(self):
        """Test the facing side pairs."""
        assert is_opposite(PortSide.BOTTOM, PortSide.TOP)
        assert is_opposite(PortSide.RIGHT, PortSide.LEFT)

    def test_adjacent_pairs(self):
        """Test non-facing pairs."""
        assert not is_opposite(PortSide.RIGHT, PortSide.TOP)
        assert not is_opposite(PortSide.TOP, PortSide.TOP)


class TestSmoothCurve:
    """Tests for opposite-side curves."""

    def test_no_waypoints(self):
        """Test a bottom -> top curve has no intermediate waypoints."""
        path = smooth_curve(_port(PortSide.BOTTOM, 100, 100), _port(PortSide.TOP, 100, 300))
        assert path.kind == "curve"
        assert path.waypoints == []
        assert path.path.startswith("M 100 100 C")

    def test_control_points_perpendicular(self):
        """Test control points project out of each port side."""
        path = smooth_curve(_port(PortSide.BOTTOM, 0, 0), _port(PortSide.TOP, 0, 100))
        assert path.controls == [(0, 40), (0, 60)]

    def test_control_distance_capped(self):
        """Test control distance never exceeds the cap."""
        path = smooth_curve(_port(PortSide.RIGHT, 0, 0), _port(PortSide.LEFT, 1000, 0))
        assert path.controls[0] == (CURVE_CONTROL_MAX, 0)
        assert path.controls[1] == (1000 - CURVE_CONTROL_MAX, 0)

    def test_label_midpoint(self):
        """Test the label anchor sits between the ports."""
        path = smooth_curve(_port(PortSide.BOTTOM, 0, 0), _port(PortSide.TOP, 100, 200))
        assert (path.label_x, path.label_y) == (50, 100)


class TestRoutedPath:
    """Tests for orthogonal paths between non-facing ports."""

    def test_mixed_has_corner(self):
        """Test right -> top produces one corner waypoint."""
        source = _port(PortSide.RIGHT, 0, 0)
        target = _port(PortSide.TOP, 200, 200)
        path = routed_port_path(source, target)
        assert path.kind == "routed"
        assert (200, 0) in path.waypoints
        assert "Q" in path.path

    def test_exit_offsets(self):
        """Test the path leaves and enters straight through the offsets."""
        path = routed_port_path(_port(PortSide.RIGHT, 0, 0), _port(PortSide.TOP, 200, 200))
        assert path.points[1] == (PORT_EXIT_OFFSET, 0)
        assert path.points[-2] == (200, 200 - PORT_EXIT_OFFSET)
        assert path.points[-1] == (200, 200)

    def test_both_horizontal(self):
        """Test two horizontal exits join with a vertical middle segment."""
        path = routed_port_path(_port(PortSide.RIGHT, 0, 0), _port(PortSide.RIGHT, 100, 200))
        mid_x = (30 + 130) / 2
        assert (mid_x, 0) in path.points
        assert (mid_x, 200) in path.points

    def test_both_vertical(self):
        """Test two vertical exits join with a horizontal middle segment."""
        path = routed_port_path(_port(PortSide.BOTTOM, 0, 0), _port(PortSide.BOTTOM, 300, 100))
        mid_y = (30 + 130) / 2
        assert (0, mid_y) in path.points
        assert (300, mid_y) in path.points


class TestSmoothPathString:
    """Tests for points_to_smooth_path."""

    def test_two_points_is_line(self):
        """Test a two point polyline is a straight line."""
        assert points_to_smooth_path([(0, 0), (10, 0)]) == "M 0 0 L 10 0"

    def test_corner_radius_clamped(self):
        """Test the corner radius is clamped to half the shorter segment."""
        path = points_to_smooth_path([(0, 0), (10, 0), (10, 100)])
        assert path == "M 0 0 L 5 0 Q 10 0 10 5 L 10 100"

    def test_full_radius(self):
        """Test long segments use the full radius."""
        path = points_to_smooth_path([(0, 0), (100, 0), (100, 100)])
        assert path == "M 0 0 L 84 0 Q 100 0 100 16 L 100 100"

    def test_degenerate_segment_straight(self):
        """Test zero-length segments are drawn straight through."""
        path = points_to_smooth_path([(0, 0), (0, 0), (10, 0)])
        assert "Q" not in path

    def test_empty(self):
        """Test fewer than two points gives no path."""
        assert points_to_smooth_path([(1, 1)]) == ""


class TestSimpleBezier:
    """Tests for the fallback bezier."""

    def test_vertical_bend(self):
        """Test mostly vertical edges bend at the vertical midpoint."""
        path = simple_bezier(0, 0, 10, 100)
        assert path.kind == "fallback"
        assert path.controls == [(0, 50), (10, 50)]
        assert (path.label_x, path.label_y) == (5, 50)

    def test_horizontal_bend(self):
        """Test mostly horizontal edges bend at the horizontal midpoint."""
        path = simple_bezier(0, 0, 100, 10)
        assert path.controls == [(50, 0), (50, 10)]

    def test_path_string(self):
        """Test SVG path data."""
        assert simple_bezier(0, 0, 0, 100).path == "M 0 0 C 0 50, 0 50, 0 100"


class TestPolyline:
    """Tests for EdgePath.polyline flattening."""

    def test_curve_samples(self):
        """Test curves flatten into samples + 1 points between the endpoints."""
        flat = simple_bezier(0, 0, 0, 100).polyline(samples=8)
        assert len(flat) == 9
        assert flat[0] == (0, 0)
        assert flat[-1] == pytest.approx((0, 100))

    def test_routed_uses_points(self):
        """Test routed paths flatten to their waypoints."""
        path = EdgePath("", 0, 0, "routed", points=[(0, 0), (5, 0), (5, 5)])
        assert path.polyline() == [(0, 0), (5, 0), (5, 5)]
