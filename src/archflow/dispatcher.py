"""
Layout dispatcher.

Selects a layout algorithm by type tag and applies it to the top-level
nodes of a canvas. Nested nodes (with a parent) and containers are passed
through untouched and appended after the laid-out nodes.
"""

import logging
from typing import Callable, Dict, List, Optional, Union

from .force import force_directed_layout
from .layout import hierarchical_layout
from .models import Edge, LayoutOptions, LayoutType, Node
from .positioning import circular_layout, grid_layout, sectioned_layout
from .router import LayoutContext
from .tracer import LayoutTrace

logger = logging.getLogger(__name__)

LayoutFunction = Callable[[List[Node], List[Edge], Optional[LayoutOptions]], List[Node]]

LAYOUTS: Dict[LayoutType, LayoutFunction] = {
    LayoutType.HIERARCHICAL: hierarchical_layout,
    LayoutType.FORCE: force_directed_layout,
    LayoutType.CIRCULAR: circular_layout,
    LayoutType.GRID: grid_layout,
}


def parse_layout_type(layout_type: Union[LayoutType, str, None]) -> Optional[LayoutType]:
    """Return the LayoutType for a tag, or None if it is not recognized."""
    if isinstance(layout_type, LayoutType):
        return layout_type
    try:
        return LayoutType(layout_type)
    except ValueError:
        return None


def partition_nodes(nodes: List[Node]):
    """Split nodes into (top-level, nested-or-container)."""
    top_level = [node for node in nodes if node.is_top_level]
    others = [node for node in nodes if not node.is_top_level]
    return top_level, others


def apply_layout(
    layout_type: Union[LayoutType, str],
    nodes: List[Node],
    edges: List[Edge],
    options: Optional[LayoutOptions] = None,
    context: Optional[LayoutContext] = None,
    trace: Optional[LayoutTrace] = None,
) -> List[Node]:
    """
    Apply a layout algorithm to a canvas.

    Args:
        layout_type: One of the LayoutType values (enum or string)
        nodes: All canvas nodes
        edges: All canvas edges
        options: Optional tuning values; invalid ones fall back to defaults
        context: Receives sectioned-layout metadata; cleared for other layouts
        trace: Optional trace to record pipeline stages into

    Returns:
        Laid-out top-level nodes followed by the untouched remainder, or the
        original list unchanged for an unknown layout type
    """
    resolved_type = parse_layout_type(layout_type)
    if resolved_type is None:
        logger.debug("Unknown layout type %r; leaving nodes unchanged", layout_type)
        return nodes

    top_level, others = partition_nodes(nodes)
    if trace is not None:
        trace.layout_type = resolved_type.value
        trace.add_stage(
            "partition", {"top_level": len(top_level), "passed_through": len(others)}
        )

    if resolved_type == LayoutType.PRESENTATION:
        laid_out = sectioned_layout(top_level, edges, options, context)
        if trace is not None and context is not None and context.meta is not None:
            trace.add_stage(
                "metadata",
                {
                    "sections": [s.category for s in context.meta.sections],
                    "section_width": context.meta.section_width,
                    "total_height": context.meta.total_height,
                },
            )
    else:
        if context is not None:
            context.clear()
        laid_out = LAYOUTS[resolved_type](top_level, edges, options)

    if trace is not None:
        trace.add_stage(resolved_type.value, {"nodes": len(laid_out)}, laid_out)

    logger.debug(
        "Applied %s layout to %d node(s), passed through %d",
        resolved_type.value,
        len(laid_out),
        len(others),
    )
    return laid_out + others
