"""
Position calculation for the geometric layouts.

This module handles the layouts that place nodes purely from their count,
size and category, without looking at edges:
- Circular: nodes evenly spaced on a circle sized to fit them
- Grid: square-ish grid centered on the origin
- Sectioned ("presentation"): one band per category, stacked vertically,
  with band boundaries recorded for edge routing

All functions return new Node objects; the input list is never mutated.
"""

import math
from collections import OrderedDict
from typing import TYPE_CHECKING, List, Optional, Tuple

from .models import (
    DEFAULT_NODE_HEIGHT,
    DEFAULT_NODE_WIDTH,
    Edge,
    LayoutBounds,
    LayoutOptions,
    Node,
    NodeCategory,
    SectionInfo,
    SectionLayoutMeta,
)

if TYPE_CHECKING:
    from .router import LayoutContext

# --- Circular ---
CIRCULAR_NODE_SPACING = 120
CIRCULAR_MIN_RADIUS = 200

# --- Grid ---
GRID_NODE_SPACING = 80

# --- Sectioned ---
SECTION_NODE_SPACING = 80
SECTION_GAP = 120  # Default rank spacing between bands
CARDS_PER_ROW = 3
CARD_WIDTH = 220
CARD_HEIGHT = 140
SECTION_PADDING = 60

SECTION_ORDER = [category.value for category in NodeCategory]


def circular_layout(
    nodes: List[Node],
    edges: Optional[List[Edge]] = None,
    options: Optional[LayoutOptions] = None,
) -> List[Node]:
    """
    Place nodes evenly around a circle, starting at the top.

    The radius fits every node's largest dimension plus spacing around the
    circumference, but never drops below CIRCULAR_MIN_RADIUS. A single node
    is centered on the origin.

    Args:
        nodes: Nodes to lay out
        edges: Unused
        options: node_spacing (default 120)

    Returns:
        New nodes with top-left positions
    """
    if not nodes:
        return []

    if len(nodes) == 1:
        width, height = nodes[0].dimensions()
        return [nodes[0].moved_to(-width / 2, -height / 2)]

    spacing = (options or LayoutOptions()).resolve(
        node_spacing=CIRCULAR_NODE_SPACING
    ).node_spacing

    max_size = float(DEFAULT_NODE_WIDTH)
    for node in nodes:
        max_size = max(max_size, *node.dimensions())

    circumference = len(nodes) * (max_size + spacing)
    radius = max(circumference / (2 * math.pi), CIRCULAR_MIN_RADIUS)
    angle_step = 2 * math.pi / len(nodes)

    laid_out = []
    for index, node in enumerate(nodes):
        angle = index * angle_step - math.pi / 2
        width, height = node.dimensions()
        laid_out.append(
            node.moved_to(
                math.cos(angle) * radius - width / 2,
                math.sin(angle) * radius - height / 2,
            )
        )
    return laid_out


def grid_layout(
    nodes: List[Node],
    edges: Optional[List[Edge]] = None,
    options: Optional[LayoutOptions] = None,
) -> List[Node]:
    """
    Arrange nodes in a square-ish grid centered on the origin.

    Columns = ceil(sqrt(n)). Every cell has the size of the largest node
    (never smaller than the default node size) plus spacing, and each node
    is centered in its cell.

    Args:
        nodes: Nodes to lay out
        edges: Unused
        options: node_spacing (default 80)

    Returns:
        New nodes with top-left positions
    """
    if not nodes:
        return []

    spacing = (options or LayoutOptions()).resolve(
        node_spacing=GRID_NODE_SPACING
    ).node_spacing

    max_width = float(DEFAULT_NODE_WIDTH)
    max_height = float(DEFAULT_NODE_HEIGHT)
    for node in nodes:
        width, height = node.dimensions()
        max_width = max(max_width, width)
        max_height = max(max_height, height)

    cols = math.ceil(math.sqrt(len(nodes)))
    rows = math.ceil(len(nodes) / cols)
    cell_width = max_width + spacing
    cell_height = max_height + spacing

    offset_x = -(cols * cell_width) / 2 + cell_width / 2
    offset_y = -(rows * cell_height) / 2 + cell_height / 2

    laid_out = []
    for index, node in enumerate(nodes):
        row, col = divmod(index, cols)
        width, height = node.dimensions()
        laid_out.append(
            node.moved_to(
                offset_x + col * cell_width - width / 2,
                offset_y + row * cell_height - height / 2,
            )
        )
    return laid_out


def group_by_section(nodes: List[Node]) -> "OrderedDict[str, List[Node]]":
    """
    Group nodes by category in band order.

    Known categories come first in SECTION_ORDER; unknown ones follow in
    first-seen order.
    """
    by_category: "OrderedDict[str, List[Node]]" = OrderedDict()
    for node in nodes:
        by_category.setdefault(node.category or NodeCategory.DEFAULT.value, []).append(node)

    ordered: "OrderedDict[str, List[Node]]" = OrderedDict()
    for category in SECTION_ORDER:
        if category in by_category:
            ordered[category] = by_category[category]
    for category, members in by_category.items():
        if category not in ordered:
            ordered[category] = members
    return ordered


def compute_sectioned_layout(
    nodes: List[Node],
    options: Optional[LayoutOptions] = None,
) -> Tuple[List[Node], Optional[SectionLayoutMeta]]:
    """
    Lay out nodes in category bands and return the band metadata.

    Each band holds its nodes in rows of CARDS_PER_ROW fixed-size cards; the
    last partial row is centered. Bands stack top to bottom separated by the
    rank spacing and the composition is centered on the origin.

    Returns:
        (new nodes in band order, metadata), or ([], None) for no nodes
    """
    if not nodes:
        return [], None

    resolved = (options or LayoutOptions()).resolve(
        node_spacing=SECTION_NODE_SPACING, rank_spacing=SECTION_GAP
    )
    spacing = resolved.node_spacing
    section_gap = resolved.rank_spacing
    section_width = (
        CARDS_PER_ROW * CARD_WIDTH + (CARDS_PER_ROW - 1) * spacing + SECTION_PADDING * 2
    )

    sections = group_by_section(nodes)
    placed: List[Tuple[Node, float, float]] = []
    bands: List[SectionInfo] = []
    current_y = 0.0

    for category, members in sections.items():
        rows = math.ceil(len(members) / CARDS_PER_ROW)
        section_height = rows * CARD_HEIGHT + (rows - 1) * spacing + SECTION_PADDING * 2

        bands.append(
            SectionInfo(
                category=category,
                y_start=current_y,
                y_end=current_y + section_height,
                x_start=0.0,
                x_end=section_width,
            )
        )

        for index, node in enumerate(members):
            row, col = divmod(index, CARDS_PER_ROW)
            in_row = min(CARDS_PER_ROW, len(members) - row * CARDS_PER_ROW)
            row_width = in_row * CARD_WIDTH + (in_row - 1) * spacing
            row_offset_x = (section_width - SECTION_PADDING * 2 - row_width) / 2
            width, height = node.dimensions()
            placed.append(
                (
                    node,
                    SECTION_PADDING
                    + row_offset_x
                    + col * (CARD_WIDTH + spacing)
                    + (CARD_WIDTH - width) / 2,
                    current_y
                    + SECTION_PADDING
                    + row * (CARD_HEIGHT + spacing)
                    + (CARD_HEIGHT - height) / 2,
                )
            )

        current_y += section_height + section_gap

    total_height = current_y - section_gap
    offset_x = -section_width / 2
    offset_y = -total_height / 2

    laid_out = [node.moved_to(x + offset_x, y + offset_y) for node, x, y in placed]

    for band in bands:
        band.x_start += offset_x
        band.x_end += offset_x
        band.y_start += offset_y
        band.y_end += offset_y

    meta = SectionLayoutMeta(
        sections=bands,
        section_width=section_width,
        total_height=total_height,
        bounds=LayoutBounds.of_nodes(laid_out),
    )
    return laid_out, meta


def sectioned_layout(
    nodes: List[Node],
    edges: Optional[List[Edge]] = None,
    options: Optional[LayoutOptions] = None,
    context: Optional["LayoutContext"] = None,
) -> List[Node]:
    """
    Sectioned layout. Stores band metadata on ``context`` when given.

    An empty node list clears the context metadata and returns [].
    """
    laid_out, meta = compute_sectioned_layout(nodes, options)
    if context is not None:
        context.set_meta(meta)
    return laid_out


def calculate_center_offset(nodes: List[Node]) -> Tuple[float, float]:
    """Center of the nodes' bounding box, or the origin for no nodes."""
    bounds = LayoutBounds.of_nodes(nodes)
    if bounds is None:
        return (0.0, 0.0)
    return bounds.center
