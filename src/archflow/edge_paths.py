"""
Edge path geometry.

Builds renderable SVG path strings between edge ports:
- Opposite sides (bottom -> top, right -> left, ...) get one cubic curve
  whose control points project perpendicular to each port side
- Other side pairs get an orthogonal polyline through exit/entry points,
  drawn with rounded corners (quadratic curve at each corner)
- Without port information, a plain two-control-point bezier between the
  raw anchors is used

Every path result also carries its geometry (polyline points and curve
control points) so non-SVG consumers can draw it.
"""

import math
from dataclasses import dataclass, field
from typing import List, Tuple

from .models import Port, PortSide

# =============================================================================
# PATH GEOMETRY CONFIGURATION
# =============================================================================

# Control point distance for opposite-side curves: min(distance * ratio, cap)
CURVE_CONTROL_RATIO = 0.4
CURVE_CONTROL_MAX = 80

# Distance a routed path travels straight out of / into a port
PORT_EXIT_OFFSET = 30

# Corner rounding radius, clamped to half the shorter adjoining segment
CORNER_RADIUS = 16

# Segments shorter than this are drawn straight through the corner
MIN_CORNER_SEGMENT = 1

# =============================================================================

Point = Tuple[float, float]


def _fmt(value: float) -> str:
    text = ("%.2f" % value).rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _pt(x: float, y: float) -> str:
    return f"{_fmt(x)} {_fmt(y)}"


@dataclass
class EdgePath:
    """
    A renderable edge path.

    Attributes:
        path: SVG path data.
        label_x: Label anchor x.
        label_y: Label anchor y.
        kind: "curve" (opposite ports), "routed" (orthogonal) or "fallback".
        points: Polyline through the path, endpoints included.
        controls: Cubic control points for curve and fallback paths.
    """

    path: str
    label_x: float
    label_y: float
    kind: str
    points: List[Point] = field(default_factory=list)
    controls: List[Point] = field(default_factory=list)

    @property
    def waypoints(self) -> List[Point]:
        """Intermediate points between the two endpoints."""
        return self.points[1:-1]

    def polyline(self, samples: int = 16) -> List[Point]:
        """Flatten the path into line segments."""
        if len(self.controls) == 2 and len(self.points) == 2:
            (x0, y0), (x3, y3) = self.points
            (x1, y1), (x2, y2) = self.controls
            flat = []
            for i in range(samples + 1):
                t = i / samples
                u = 1 - t
                flat.append(
                    (
                        u ** 3 * x0 + 3 * u * u * t * x1 + 3 * u * t * t * x2 + t ** 3 * x3,
                        u ** 3 * y0 + 3 * u * u * t * y1 + 3 * u * t * t * y2 + t ** 3 * y3,
                    )
                )
            return flat
        return list(self.points)


def is_opposite(source_side: PortSide, target_side: PortSide) -> bool:
    """True when the sides face each other (a direct curve works)."""
    return source_side.opposite == target_side


def _project(x: float, y: float, side: PortSide, distance: float) -> Point:
    if side == PortSide.TOP:
        return (x, y - distance)
    if side == PortSide.BOTTOM:
        return (x, y + distance)
    if side == PortSide.LEFT:
        return (x - distance, y)
    return (x + distance, y)


def smooth_curve(source: Port, target: Port) -> EdgePath:
    """Single cubic curve between ports on opposite sides."""
    sx, sy, tx, ty = source.x, source.y, target.x, target.y
    distance = math.hypot(tx - sx, ty - sy)
    control_distance = min(distance * CURVE_CONTROL_RATIO, CURVE_CONTROL_MAX)

    c1 = _project(sx, sy, source.side, control_distance)
    c2 = _project(tx, ty, target.side, control_distance)

    path = f"M {_pt(sx, sy)} C {_pt(*c1)}, {_pt(*c2)}, {_pt(tx, ty)}"
    return EdgePath(
        path=path,
        label_x=(sx + tx) / 2,
        label_y=(sy + ty) / 2,
        kind="curve",
        points=[(sx, sy), (tx, ty)],
        controls=[c1, c2],
    )


def routed_port_path(source: Port, target: Port) -> EdgePath:
    """
    Orthogonal path for ports that do not face each other.

    The path leaves the source straight out for PORT_EXIT_OFFSET, enters the
    target the same way, and joins the two with:
    - both horizontal: a vertical middle segment (two corners)
    - both vertical: a horizontal middle segment (two corners)
    - mixed: a single corner
    """
    points: List[Point] = [(source.x, source.y)]
    exit_point = _project(source.x, source.y, source.side, PORT_EXIT_OFFSET)
    entry_point = _project(target.x, target.y, target.side, PORT_EXIT_OFFSET)
    points.append(exit_point)

    horizontal_exit = source.side.is_horizontal
    horizontal_entry = target.side.is_horizontal

    if horizontal_exit and horizontal_entry:
        mid_x = (exit_point[0] + entry_point[0]) / 2
        points.append((mid_x, exit_point[1]))
        points.append((mid_x, entry_point[1]))
    elif not horizontal_exit and not horizontal_entry:
        mid_y = (exit_point[1] + entry_point[1]) / 2
        points.append((exit_point[0], mid_y))
        points.append((entry_point[0], mid_y))
    elif horizontal_exit:
        points.append((entry_point[0], exit_point[1]))
    else:
        points.append((exit_point[0], entry_point[1]))

    points.append(entry_point)
    points.append((target.x, target.y))

    return EdgePath(
        path=points_to_smooth_path(points),
        label_x=(source.x + target.x) / 2,
        label_y=(source.y + target.y) / 2,
        kind="routed",
        points=points,
    )


def points_to_smooth_path(points: List[Point]) -> str:
    """
    Convert a polyline into SVG path data with rounded corners.

    Each interior point becomes a line to just before the corner followed
    by a quadratic curve through it.
    """
    if len(points) < 2:
        return ""
    if len(points) == 2:
        return f"M {_pt(*points[0])} L {_pt(*points[1])}"

    parts = [f"M {_pt(*points[0])}"]
    for i in range(1, len(points) - 1):
        px, py = points[i - 1]
        cx, cy = points[i]
        nx, ny = points[i + 1]

        d1x, d1y = cx - px, cy - py
        d2x, d2y = nx - cx, ny - cy
        len1 = math.hypot(d1x, d1y)
        len2 = math.hypot(d2x, d2y)

        if len1 < MIN_CORNER_SEGMENT or len2 < MIN_CORNER_SEGMENT:
            parts.append(f"L {_pt(cx, cy)}")
            continue

        radius = min(CORNER_RADIUS, len1 / 2, len2 / 2)
        before = (cx - d1x / len1 * radius, cy - d1y / len1 * radius)
        after = (cx + d2x / len2 * radius, cy + d2y / len2 * radius)
        parts.append(f"L {_pt(*before)}")
        parts.append(f"Q {_pt(cx, cy)} {_pt(*after)}")

    parts.append(f"L {_pt(*points[-1])}")
    return " ".join(parts)


def simple_bezier(
    source_x: float, source_y: float, target_x: float, target_y: float
) -> EdgePath:
    """Plain bezier between raw anchors, bending along the dominant axis."""
    dx = target_x - source_x
    dy = target_y - source_y

    if abs(dx) > abs(dy):
        mid_x = (source_x + target_x) / 2
        controls = [(mid_x, source_y), (mid_x, target_y)]
        label = (mid_x, (source_y + target_y) / 2)
    else:
        mid_y = (source_y + target_y) / 2
        controls = [(source_x, mid_y), (target_x, mid_y)]
        label = ((source_x + target_x) / 2, mid_y)

    path = (
        f"M {_pt(source_x, source_y)} C {_pt(*controls[0])}, "
        f"{_pt(*controls[1])}, {_pt(target_x, target_y)}"
    )
    return EdgePath(
        path=path,
        label_x=label[0],
        label_y=label[1],
        kind="fallback",
        points=[(source_x, source_y), (target_x, target_y)],
        controls=controls,
    )
