"""
PNG export of laid-out canvases.

This module draws a positioned node set to an image:
- Node boxes filled by category, faded by their opacity
- Edge paths from the router (port paths when a sectioned layout context
  is active, plain curves otherwise), flattened to polylines
- Node labels

The LayoutExporter class is used to snapshot a layout result or the state
of an InMemoryCanvas after playback has applied a sub-slide.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from PIL import Image, ImageDraw, ImageFont

from .canvas import InMemoryCanvas
from .models import Edge, LayoutBounds, Node
from .router import LayoutContext, route_edges

CATEGORY_COLORS: Dict[str, str] = {
    "tech": "#3B82F6",
    "database": "#10B981",
    "business": "#F59E0B",
    "editable": "#8B5CF6",
    "comment": "#FACC15",
    "shape": "#64748B",
    "group": "#CBD5E1",
}
DEFAULT_NODE_COLOR = "#94A3B8"


def _rgba(color: str, opacity: float):
    color = color.lstrip("#")
    red, green, blue = (int(color[i : i + 2], 16) for i in (0, 2, 4))
    alpha = int(round(255 * max(0.0, min(1.0, opacity))))
    return (red, green, blue, alpha)


class LayoutExporter:
    """
    Exports positioned nodes and their edges as PNG images.

    Attributes:
        default_font: Default font name for node labels.
    """

    def __init__(self, default_font: Optional[str] = None):
        self.default_font = default_font

    def render_image(
        self,
        nodes: Sequence[Node],
        edges: Sequence[Edge] = (),
        context: Optional[LayoutContext] = None,
        scale: int = 1,
        padding: int = 40,
        bg_color: str = "#FFFFFF",
        edge_color: str = "#475569",
        font_size: int = 14,
    ) -> Image.Image:
        """
        Render nodes and edges to an RGB image.

        Node fills, outlines and labels are blended onto the background by
        the node opacity, so dimmed nodes come out faded.

        The image covers the bounds of the nodes plus ``padding`` on every
        side, at ``scale`` pixels per canvas unit.

        Args:
            nodes: Positioned nodes to draw.
            edges: Edges to route and draw; dangling edges are skipped.
            context: Layout context for port routing, if any.
            scale: Resolution multiplier.
            padding: Margin around the drawing in canvas units.
            bg_color: Background color as hex string.
            edge_color: Edge stroke color as hex string.
            font_size: Label font size in points.

        Returns:
            The rendered PIL image.
        """
        nodes = list(nodes)
        bounds = LayoutBounds.of_nodes(nodes) or LayoutBounds(0, 0, 0, 0)
        offset_x = padding - bounds.min_x
        offset_y = padding - bounds.min_y

        img_width = max(int((bounds.width + padding * 2) * scale), 100 * scale)
        img_height = max(int((bounds.height + padding * 2) * scale), 100 * scale)

        img = Image.new("RGB", (img_width, img_height), _rgba(bg_color, 1.0)[:3])
        # An RGBA draw on an RGB image blends each fill by its alpha
        draw = ImageDraw.Draw(img, "RGBA")

        def project(point):
            return ((point[0] + offset_x) * scale, (point[1] + offset_y) * scale)

        paths = route_edges(nodes, list(edges), context)
        for path in paths.values():
            draw.line(
                [project(p) for p in path.polyline()],
                fill=_rgba(edge_color, 1.0),
                width=max(1, 2 * scale),
            )

        font = self._load_font(font_size * scale)
        for node in nodes:
            width, height = node.dimensions()
            left, top = project((node.x, node.y))
            box = [left, top, left + width * scale, top + height * scale]
            color = CATEGORY_COLORS.get(node.category, DEFAULT_NODE_COLOR)
            draw.rounded_rectangle(
                box,
                radius=8 * scale,
                fill=_rgba(color, node.opacity),
                outline=_rgba("#1E293B", node.opacity),
                width=max(1, scale),
            )
            draw.text(
                (left + 8 * scale, top + 8 * scale),
                node.display_label,
                font=font,
                fill=_rgba("#0F172A", node.opacity),
            )

        return img

    def save_png(
        self,
        nodes: Sequence[Node],
        filename: str,
        edges: Sequence[Edge] = (),
        context: Optional[LayoutContext] = None,
        scale: int = 1,
        padding: int = 40,
    ) -> None:
        """
        Save nodes and edges as a PNG image.

        Example:
            >>> exporter = LayoutExporter()
            >>> nodes = apply_layout("grid", nodes, edges)
            >>> exporter.save_png(nodes, "layout.png", edges=edges, scale=2)
        """
        img = self.render_image(nodes, edges, context, scale=scale, padding=padding)
        img.save(Path(filename), "PNG")

    def save_canvas_png(
        self,
        canvas: InMemoryCanvas,
        filename: str,
        edges: Sequence[Edge] = (),
        scale: int = 1,
    ) -> None:
        """Snapshot the current state of an in-memory canvas."""
        self.save_png(canvas.nodes, filename, edges=edges, scale=scale)

    def _load_font(self, font_size: int) -> ImageFont.ImageFont:
        """
        Load a label font.

        Tries the configured font, then common sans fonts, then Pillow's
        default font.
        """
        fonts_to_try: List[str] = []
        if self.default_font:
            fonts_to_try.append(self.default_font)
        fonts_to_try.extend(
            [
                "DejaVuSans",
                "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
                "Helvetica",
                "/System/Library/Fonts/Helvetica.ttc",
                "Arial",
                "C:/Windows/Fonts/arial.ttf",
            ]
        )

        for font in fonts_to_try:
            try:
                return ImageFont.truetype(font, font_size)
            except OSError:
                continue

        try:
            return ImageFont.load_default(size=font_size)
        except TypeError:
            # Older Pillow versions don't support size parameter
            return ImageFont.load_default()
