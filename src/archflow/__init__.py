"""
archflow - Layout and guided playback for architecture diagrams

A Python library that positions the nodes of an architecture canvas with
one of five layouts, routes edges between node ports, and walks an
audience through the diagram scenario by scenario.

Example:
    >>> from archflow import Edge, Node, apply_layout
    >>> nodes = [Node("api", "tech"), Node("db", "database")]
    >>> edges = [Edge("e1", "api", "db")]
    >>> nodes = apply_layout("hierarchical", nodes, edges)

Presentation Example:
    >>> from archflow import InMemoryCanvas, ManualScheduler, PresentationPlayback
    >>> scheduler = ManualScheduler()
    >>> playback = PresentationPlayback(InMemoryCanvas(nodes), scheduler)
    >>> playback.load(presentation, scenarios, nodes, edges)
    >>> playback.go_next()

Debug Mode Example:
    >>> trace = LayoutTrace()
    >>> nodes = apply_layout("presentation", nodes, edges, context=context, trace=trace)
    >>> print(trace.summary())
"""

from .canvas import CanvasSurface, InMemoryCanvas
from .debug import SurfaceCall, TracedSurface, describe_surface
from .dispatcher import apply_layout
from .edge_paths import EdgePath
from .export import LayoutExporter
from .force import force_directed_layout
from .layout import RankedLayout, hierarchical_layout
from .models import (
    BranchPoint,
    Edge,
    EdgePorts,
    LayoutDirection,
    LayoutOptions,
    LayoutType,
    Node,
    Port,
    PortSide,
    Position,
    Presentation,
    PresentationSettings,
    RecordedPath,
    Scenario,
    SectionInfo,
    SectionLayoutMeta,
    Step,
    StepNotes,
    SubSlide,
    SubSlideType,
    Viewport,
)
from .playback import (
    PlaybackConfig,
    PresentationPlayback,
    SubSlideCache,
    SubSlideEntry,
    build_step_branch_points,
    build_sub_slides,
)
from .positioning import circular_layout, grid_layout, sectioned_layout
from .router import EdgePortRouter, LayoutContext, route_edges
from .scheduler import AsyncioScheduler, ManualScheduler, Scheduler, Ticker, Timeout
from .tracer import LayoutTrace, PipelineStage
from .traversal import TraversalResult, build_node_traversal_order

__version__ = "0.1.0"

__all__ = [
    # Main API
    "apply_layout",
    "build_node_traversal_order",
    "TraversalResult",
    # Models
    "Node",
    "Edge",
    "LayoutType",
    "LayoutDirection",
    "LayoutOptions",
    "SectionInfo",
    "SectionLayoutMeta",
    "PortSide",
    "Port",
    "EdgePorts",
    "Position",
    "Viewport",
    "Step",
    "Scenario",
    "StepNotes",
    "Presentation",
    "PresentationSettings",
    "SubSlide",
    "SubSlideType",
    "BranchPoint",
    "RecordedPath",
    # Layouts
    "hierarchical_layout",
    "RankedLayout",
    "force_directed_layout",
    "circular_layout",
    "grid_layout",
    "sectioned_layout",
    # Router
    "LayoutContext",
    "EdgePortRouter",
    "EdgePath",
    "route_edges",
    # Playback
    "PresentationPlayback",
    "PlaybackConfig",
    "SubSlideEntry",
    "SubSlideCache",
    "build_sub_slides",
    "build_step_branch_points",
    "CanvasSurface",
    "InMemoryCanvas",
    "Scheduler",
    "AsyncioScheduler",
    "ManualScheduler",
    "Ticker",
    "Timeout",
    # Export
    "LayoutExporter",
    # Debug/Tracing (for development and debugging)
    "LayoutTrace",
    "PipelineStage",
    "TracedSurface",
    "SurfaceCall",
    "describe_surface",
]
