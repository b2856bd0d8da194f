"""
Data models for canvas layout and presentation playback.

This module contains the dataclasses shared by the layout algorithms, the
edge port router and the playback engine. Canvas records (nodes, edges) are
owned by the surrounding application; everything here is a plain value that
the core reads and derives new values from.

Classes:
    Node: A node on the canvas with category, position and dimensions.
    Edge: A directed connection between two nodes.
    LayoutOptions: Optional tuning values for the layout algorithms.
    SectionInfo: Boundary of one category band in the sectioned layout.
    LayoutBounds: Axis-aligned bounds of a set of positioned nodes.
    SectionLayoutMeta: Metadata produced by the sectioned layout.
    Port / EdgePorts: Where an edge attaches to its source and target.
    Step / Scenario / Presentation: Walkthrough records.
    SubSlide / BranchPoint / RecordedPath: Playback units.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

DEFAULT_NODE_WIDTH = 180
DEFAULT_NODE_HEIGHT = 80


class NodeCategory(Enum):
    """Known node categories, in sectioned-layout priority order."""

    TECH = "tech"
    DATABASE = "database"
    BUSINESS = "business"
    EDITABLE = "editable"
    COMMENT = "comment"
    SHAPE = "shape"
    GROUP = "group"
    DEFAULT = "default"


CONTAINER_CATEGORY = NodeCategory.GROUP.value


class LayoutType(Enum):
    """Layout algorithm selector."""

    HIERARCHICAL = "hierarchical"
    FORCE = "force"
    CIRCULAR = "circular"
    GRID = "grid"
    PRESENTATION = "presentation"


class LayoutDirection(Enum):
    """Rank axis for the hierarchical layout."""

    TB = "TB"
    BT = "BT"
    LR = "LR"
    RL = "RL"

    @property
    def is_horizontal(self) -> bool:
        return self in (LayoutDirection.LR, LayoutDirection.RL)


class PortSide(Enum):
    """Which side of a node an edge attaches to."""

    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"

    @property
    def is_horizontal(self) -> bool:
        return self in (PortSide.LEFT, PortSide.RIGHT)

    @property
    def opposite(self) -> "PortSide":
        return _OPPOSITE_SIDES[self]


_OPPOSITE_SIDES = {
    PortSide.TOP: PortSide.BOTTOM,
    PortSide.BOTTOM: PortSide.TOP,
    PortSide.LEFT: PortSide.RIGHT,
    PortSide.RIGHT: PortSide.LEFT,
}


@dataclass(frozen=True)
class Position:
    """A point in canvas coordinates."""

    x: float
    y: float


@dataclass(frozen=True)
class Viewport:
    """Canvas viewport: translation plus zoom factor."""

    x: float
    y: float
    zoom: float = 1.0


@dataclass
class Node:
    """
    A node on the canvas.

    Dimensions come from rendering (``width``/``height``) when the node has
    been measured, otherwise from its declared style size, otherwise from
    the defaults.

    Attributes:
        id: Unique node id.
        category: Category tag used for grouping ("tech", "database", ...).
        x: Left edge.
        y: Top edge.
        width: Measured width, if known.
        height: Measured height, if known.
        style_width: Declared width, if any.
        style_height: Declared height, if any.
        parent_id: Container this node is nested in.
        label: Display label.
        opacity: Current visual opacity.
    """

    id: str
    category: str = NodeCategory.DEFAULT.value
    x: float = 0.0
    y: float = 0.0
    width: Optional[float] = None
    height: Optional[float] = None
    style_width: Optional[float] = None
    style_height: Optional[float] = None
    parent_id: Optional[str] = None
    label: str = ""
    opacity: float = 1.0

    def dimensions(self) -> Tuple[float, float]:
        """Resolve (width, height): measured, then declared, then default."""
        width = self.width or self.style_width or DEFAULT_NODE_WIDTH
        height = self.height or self.style_height or DEFAULT_NODE_HEIGHT
        return float(width), float(height)

    def center(self) -> Tuple[float, float]:
        width, height = self.dimensions()
        return (self.x + width / 2, self.y + height / 2)

    @property
    def display_label(self) -> str:
        return self.label or self.id

    @property
    def is_top_level(self) -> bool:
        """True when the node is neither nested nor a container."""
        return not self.parent_id and self.category != CONTAINER_CATEGORY

    def moved_to(self, x: float, y: float) -> "Node":
        """Return a copy of this node at a new position."""
        return replace(self, x=x, y=y)


@dataclass(frozen=True)
class Edge:
    """A directed edge between two nodes."""

    id: str
    source: str
    target: str
    label: Optional[str] = None


def _positive(value, fallback: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    if math.isnan(value) or math.isinf(value) or value <= 0:
        return fallback
    return value


@dataclass
class LayoutOptions:
    """
    Optional layout tuning values.

    Every field may be left unset; ``resolve`` substitutes per-algorithm
    defaults for anything missing or invalid.

    Attributes:
        direction: Rank direction for the hierarchical layout.
        node_spacing: Gap between neighbouring nodes.
        rank_spacing: Gap between ranks / sections.
        iterations: Tick count for the force simulation.
        seed: Seed for the force layout's random initial positions.
    """

    direction: Optional[object] = None
    node_spacing: Optional[float] = None
    rank_spacing: Optional[float] = None
    iterations: Optional[int] = None
    seed: Optional[int] = None

    def resolve(
        self,
        node_spacing: float,
        rank_spacing: float = 120,
        iterations: int = 300,
        direction: LayoutDirection = LayoutDirection.TB,
    ) -> "ResolvedLayoutOptions":
        """Return concrete values, falling back to the given defaults."""
        resolved_direction = direction
        if isinstance(self.direction, LayoutDirection):
            resolved_direction = self.direction
        elif isinstance(self.direction, str):
            try:
                resolved_direction = LayoutDirection(self.direction.upper())
            except ValueError:
                resolved_direction = direction

        # Fractions below one would truncate to zero ticks
        resolved_iterations = int(_positive(self.iterations, iterations))
        if resolved_iterations < 1:
            resolved_iterations = iterations
        return ResolvedLayoutOptions(
            direction=resolved_direction,
            node_spacing=float(_positive(self.node_spacing, node_spacing)),
            rank_spacing=float(_positive(self.rank_spacing, rank_spacing)),
            iterations=resolved_iterations,
            seed=self.seed,
        )


@dataclass(frozen=True)
class ResolvedLayoutOptions:
    """Layout options with every value filled in."""

    direction: LayoutDirection
    node_spacing: float
    rank_spacing: float
    iterations: int
    seed: Optional[int] = None


@dataclass
class SectionInfo:
    """
    Boundary of one category band in the sectioned layout.

    Attributes:
        category: Category whose nodes live in this band.
        y_start: Top of the band.
        y_end: Bottom of the band.
        x_start: Left edge of the band.
        x_end: Right edge of the band.
    """

    category: str
    y_start: float
    y_end: float
    x_start: float
    x_end: float

    def contains(self, x: float, y: float) -> bool:
        return self.x_start <= x <= self.x_end and self.y_start <= y <= self.y_end


@dataclass
class LayoutBounds:
    """Axis-aligned bounds of a set of nodes."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)

    @classmethod
    def of_nodes(cls, nodes: List[Node]) -> Optional["LayoutBounds"]:
        if not nodes:
            return None
        min_x = min_y = math.inf
        max_x = max_y = -math.inf
        for node in nodes:
            width, height = node.dimensions()
            min_x = min(min_x, node.x)
            max_x = max(max_x, node.x + width)
            min_y = min(min_y, node.y)
            max_y = max(max_y, node.y + height)
        return cls(min_x=min_x, max_x=max_x, min_y=min_y, max_y=max_y)


@dataclass
class SectionLayoutMeta:
    """Metadata produced by the sectioned layout for edge routing."""

    sections: List[SectionInfo] = field(default_factory=list)
    section_width: float = 0.0
    total_height: float = 0.0
    bounds: Optional[LayoutBounds] = None

    def section_for(self, category: str) -> Optional[SectionInfo]:
        for section in self.sections:
            if section.category == category:
                return section
        return None


@dataclass
class NodeBox:
    """Position and size of a node as seen by the router."""

    node_id: str
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass
class Port:
    """
    A connection point on a node side.

    Attributes:
        node: Node id.
        side: Side of the node.
        fraction: Position along the side, 0..1.
        x: Absolute x coordinate.
        y: Absolute y coordinate.
    """

    node: str
    side: PortSide
    fraction: float = 0.5
    x: float = 0.0
    y: float = 0.0


@dataclass
class EdgePorts:
    """Source and target ports assigned to one edge."""

    source_port: Port
    target_port: Port


# --- Walkthrough records ---


@dataclass
class Step:
    """
    An ordered unit within a scenario.

    Attributes:
        id: Step id.
        name: Display name.
        order: Ordering index inside the scenario.
        node_ids: Highlighted node ids.
        node_positions: Saved node positions to restore for this step.
        viewport: Saved viewport to restore for this step.
        description: Free text.
    """

    id: str
    name: str = ""
    order: int = 0
    node_ids: List[str] = field(default_factory=list)
    node_positions: Optional[Dict[str, Position]] = None
    viewport: Optional[Viewport] = None
    description: str = ""


@dataclass
class Scenario:
    """A named, colored, ordered list of steps."""

    id: str
    name: str = ""
    color: str = "#3b82f6"
    steps: List[Step] = field(default_factory=list)
    description: str = ""

    def ordered_steps(self) -> List[Step]:
        return sorted(self.steps, key=lambda step: step.order)


class SubSlideType(Enum):
    """Kinds of navigable units in a presentation."""

    TITLE = "title"
    OVERVIEW = "overview"
    NODE = "node"


@dataclass(frozen=True)
class SubSlide:
    """
    The atomic navigable unit of a presentation.

    Attributes:
        type: title, overview or node.
        scenario_id: Owning scenario.
        step_id: Owning step (first step of the scenario for titles).
        node_id: Focused node, for node sub-slides.
        scenario_name: Scenario name, for title sub-slides.
        scenario_description: Scenario description, for title sub-slides.
    """

    type: SubSlideType
    scenario_id: str
    step_id: str
    node_id: Optional[str] = None
    scenario_name: Optional[str] = None
    scenario_description: Optional[str] = None

    @property
    def notes_key(self) -> str:
        """Key into ``Presentation.notes`` for this sub-slide."""
        if self.type == SubSlideType.NODE and self.node_id:
            return f"{self.scenario_id}:{self.step_id}:{self.node_id}"
        return f"{self.scenario_id}:{self.step_id}"


@dataclass
class BranchPoint:
    """A traversal node with more than one outgoing target in its step."""

    source_node_id: str
    target_node_ids: List[str] = field(default_factory=list)
    target_labels: List[str] = field(default_factory=list)


@dataclass
class StepNotes:
    """Caption and speaker notes attached to a sub-slide."""

    caption: str = ""
    speaker_notes: str = ""


@dataclass
class RecordedPath:
    """A frozen sub-slide sequence for linear public playback."""

    sub_slide_sequence: List[SubSlide] = field(default_factory=list)
    recorded_at: str = ""

    def stale_node_ids(self, existing_node_ids: Set[str]) -> List[str]:
        """Node ids referenced by node sub-slides that no longer exist."""
        return [
            slide.node_id
            for slide in self.sub_slide_sequence
            if slide.type == SubSlideType.NODE
            and slide.node_id
            and slide.node_id not in existing_node_ids
        ]


DEFAULT_AUTOPLAY_INTERVAL = 5.0


@dataclass
class PresentationSettings:
    """Autoplay settings. ``autoplay_interval`` is in seconds."""

    autoplay: bool = False
    autoplay_interval: float = DEFAULT_AUTOPLAY_INTERVAL

    @property
    def interval(self) -> float:
        return _positive(self.autoplay_interval, DEFAULT_AUTOPLAY_INTERVAL)


@dataclass
class Presentation:
    """An ordered list of scenarios plus playback settings and notes."""

    id: str
    name: str = ""
    scenario_ids: List[str] = field(default_factory=list)
    settings: PresentationSettings = field(default_factory=PresentationSettings)
    notes: Dict[str, StepNotes] = field(default_factory=dict)
    recorded_path: Optional[RecordedPath] = None
