"""
Presentation playback.

Turns a presentation (an ordered list of scenarios, each an ordered list of
steps) into a flat sequence of sub-slides and drives navigation over it:

- title: scenario intro, auto-advances after a short delay
- overview: a whole step, highlighted nodes at full opacity
- node: one highlighted node of a step, in traversal order

Navigation, branch selection and autoplay are a small state machine on
PresentationPlayback. Every transition is applied to an external canvas
surface (positions, opacity, viewport). Timers go through a Scheduler so
playback runs on an asyncio loop or on a manually advanced clock.
"""

import hashlib
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from .canvas import CanvasSurface, centered_viewport
from .models import (
    DEFAULT_AUTOPLAY_INTERVAL,
    BranchPoint,
    Edge,
    Node,
    Presentation,
    RecordedPath,
    Scenario,
    Step,
    StepNotes,
    SubSlide,
    SubSlideType,
)
from .scheduler import AsyncioScheduler, Scheduler, Ticker, Timeout
from .traversal import build_node_traversal_order, node_labels, resolve_branch_labels

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaybackConfig:
    """
    Playback timing and presentation constants. Times are in seconds.

    Attributes:
        title_delay: Delay before a title sub-slide advances on its own
        autoplay_tick: Period of the autoplay progress tick
        elapsed_tick: Period of the elapsed-time counter
        dim_opacity: Opacity of nodes outside the focus
        focus_zoom: Zoom factor used when centering on a single node
        view_width: Width of the visible area
        view_height: Height of the visible area
        fit_padding: Padding fraction when fitting a step's nodes
        transition_duration: Duration passed to animated viewport moves
        focus_fallback_width: Node width used when a node has no size
        focus_fallback_height: Node height used when a node has no size
    """

    title_delay: float = 2.0
    autoplay_tick: float = 0.05
    elapsed_tick: float = 1.0
    dim_opacity: float = 0.15
    focus_zoom: float = 1.5
    view_width: float = 1920
    view_height: float = 1080
    fit_padding: float = 0.3
    transition_duration: float = 0.6
    focus_fallback_width: float = 200
    focus_fallback_height: float = 100

    def __post_init__(self):
        for name in ("title_delay", "autoplay_tick", "elapsed_tick", "focus_zoom"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value!r}")


@dataclass
class SubSlideEntry:
    """A sub-slide together with the records needed to show it."""

    sub_slide: SubSlide
    scenario_name: str
    scenario_color: str
    step: Step
    focused_node_id: Optional[str] = None

    @property
    def type(self) -> SubSlideType:
        return self.sub_slide.type

    @property
    def step_key(self) -> str:
        return f"{self.sub_slide.scenario_id}:{self.step.id}"


def _scenario_map(scenarios: Sequence[Scenario]) -> Dict[str, Scenario]:
    return {scenario.id: scenario for scenario in scenarios}


def _has_recorded_path(presentation: Presentation) -> bool:
    recorded = presentation.recorded_path
    return recorded is not None and len(recorded.sub_slide_sequence) > 0


def _entries_from_recorded_path(
    presentation: Presentation, scenarios: Sequence[Scenario]
) -> List[SubSlideEntry]:
    by_id = _scenario_map(scenarios)
    entries = []
    for slide in presentation.recorded_path.sub_slide_sequence:
        scenario = by_id.get(slide.scenario_id)
        step = None
        if scenario is not None:
            step = next((s for s in scenario.steps if s.id == slide.step_id), None)
        if step is None:
            logger.debug(
                "Recorded sub-slide %s:%s no longer resolves; skipped",
                slide.scenario_id,
                slide.step_id,
            )
            continue
        entries.append(
            SubSlideEntry(
                sub_slide=slide,
                scenario_name=scenario.name,
                scenario_color=scenario.color,
                step=step,
                focused_node_id=slide.node_id if slide.type == SubSlideType.NODE else None,
            )
        )
    return entries


def build_sub_slides(
    presentation: Presentation,
    scenarios: Sequence[Scenario],
    edges: Sequence[Edge],
) -> List[SubSlideEntry]:
    """
    Build the ordered sub-slide sequence of a presentation.

    Each scenario contributes one title, then per step (by order) one
    overview followed by one node sub-slide per highlighted node in
    traversal order. Scenario ids without a scenario, and scenarios
    without steps, contribute nothing. A presentation carrying a recorded
    path plays that path instead.
    """
    if _has_recorded_path(presentation):
        return _entries_from_recorded_path(presentation, scenarios)

    by_id = _scenario_map(scenarios)
    entries: List[SubSlideEntry] = []

    for scenario_id in presentation.scenario_ids:
        scenario = by_id.get(scenario_id)
        if scenario is None or not scenario.steps:
            continue

        first_step = scenario.steps[0]
        entries.append(
            SubSlideEntry(
                sub_slide=SubSlide(
                    type=SubSlideType.TITLE,
                    scenario_id=scenario_id,
                    step_id=first_step.id,
                    scenario_name=scenario.name,
                    scenario_description=scenario.description,
                ),
                scenario_name=scenario.name,
                scenario_color=scenario.color,
                step=first_step,
            )
        )

        for step in scenario.ordered_steps():
            entries.append(
                SubSlideEntry(
                    sub_slide=SubSlide(
                        type=SubSlideType.OVERVIEW, scenario_id=scenario_id, step_id=step.id
                    ),
                    scenario_name=scenario.name,
                    scenario_color=scenario.color,
                    step=step,
                )
            )
            if not step.node_ids:
                continue

            order = build_node_traversal_order(step.node_ids, edges, step.node_positions)
            for node_id in order.ordered_node_ids:
                entries.append(
                    SubSlideEntry(
                        sub_slide=SubSlide(
                            type=SubSlideType.NODE,
                            scenario_id=scenario_id,
                            step_id=step.id,
                            node_id=node_id,
                        ),
                        scenario_name=scenario.name,
                        scenario_color=scenario.color,
                        step=step,
                        focused_node_id=node_id,
                    )
                )

    return entries


def build_step_branch_points(
    presentation: Presentation,
    scenarios: Sequence[Scenario],
    edges: Sequence[Edge],
    nodes: Sequence[Node] = (),
) -> Dict[str, List[BranchPoint]]:
    """
    Branch points per step, keyed "scenario_id:step_id", with target labels
    resolved from the node labels. Steps without branch points are omitted.
    """
    by_id = _scenario_map(scenarios)
    labels = node_labels(nodes)
    result: Dict[str, List[BranchPoint]] = {}

    for scenario_id in presentation.scenario_ids:
        scenario = by_id.get(scenario_id)
        if scenario is None:
            continue
        for step in scenario.steps:
            if not step.node_ids:
                continue
            order = build_node_traversal_order(step.node_ids, edges, step.node_positions)
            if order.branch_points:
                result[f"{scenario_id}:{step.id}"] = resolve_branch_labels(
                    order.branch_points, labels
                )
    return result


def content_key(
    presentation: Presentation,
    scenarios: Sequence[Scenario],
    edges: Sequence[Edge],
    nodes: Sequence[Node] = (),
) -> str:
    """Hash of everything the sub-slide sequence is derived from."""
    material = repr(
        (
            presentation.scenario_ids,
            presentation.recorded_path,
            list(scenarios),
            [(e.source, e.target) for e in edges],
            sorted(node_labels(nodes).items()),
        )
    )
    return hashlib.sha1(material.encode("utf-8")).hexdigest()


@dataclass
class PlaybackPlan:
    """Derived playback data: the sub-slides and the per-step branch points."""

    sub_slides: List[SubSlideEntry] = field(default_factory=list)
    branch_points: Dict[str, List[BranchPoint]] = field(default_factory=dict)


class SubSlideCache:
    """
    Memoizes playback plans by presentation id and content hash.

    A plan is rebuilt only when the presentation's scenarios, the edges,
    the node labels or the recorded path change.
    """

    def __init__(self):
        self._plans: Dict[str, Tuple[str, PlaybackPlan]] = {}
        self.hits = 0
        self.misses = 0

    def get(
        self,
        presentation: Presentation,
        scenarios: Sequence[Scenario],
        edges: Sequence[Edge],
        nodes: Sequence[Node] = (),
    ) -> PlaybackPlan:
        key = content_key(presentation, scenarios, edges, nodes)
        cached = self._plans.get(presentation.id)
        if cached is not None and cached[0] == key:
            self.hits += 1
            return cached[1]

        self.misses += 1
        # Recorded paths play linearly, so they carry no branch points
        if _has_recorded_path(presentation):
            branch_points = {}
        else:
            branch_points = build_step_branch_points(presentation, scenarios, edges, nodes)
        plan = PlaybackPlan(
            sub_slides=build_sub_slides(presentation, scenarios, edges),
            branch_points=branch_points,
        )
        self._plans[presentation.id] = (key, plan)
        return plan

    def invalidate(self, presentation_id: Optional[str] = None) -> None:
        if presentation_id is None:
            self._plans.clear()
        else:
            self._plans.pop(presentation_id, None)


def format_elapsed(seconds: int) -> str:
    """Format an elapsed time as MM:SS."""
    minutes, secs = divmod(max(int(seconds), 0), 60)
    return f"{minutes:02d}:{secs:02d}"


class PresentationPlayback:
    """
    Navigation state machine for one presentation.

    Example:
        >>> scheduler = ManualScheduler()
        >>> playback = PresentationPlayback(InMemoryCanvas(nodes), scheduler)
        >>> playback.load(presentation, scenarios, nodes, edges)
        >>> scheduler.advance(2.0)   # title advances on its own
        >>> playback.current.type
        <SubSlideType.OVERVIEW: 'overview'>
        >>> playback.go_next()
        >>> playback.current.focused_node_id
        'api'
    """

    def __init__(
        self,
        surface: CanvasSurface,
        scheduler: Optional[Scheduler] = None,
        config: Optional[PlaybackConfig] = None,
        cache: Optional[SubSlideCache] = None,
    ):
        self.surface = surface
        self.scheduler = scheduler or AsyncioScheduler()
        self.config = config or PlaybackConfig()
        self.cache = cache or SubSlideCache()

        self.presentation: Optional[Presentation] = None
        self.sub_slides: List[SubSlideEntry] = []
        self._branch_points: Dict[str, List[BranchPoint]] = {}
        self._index = 0

        self._autoplay = False
        self._autoplay_elapsed = 0.0
        self._interval = DEFAULT_AUTOPLAY_INTERVAL
        self._elapsed_seconds = 0
        self._started_at = 0.0

        self._title_timeout: Optional[Timeout] = None
        self._autoplay_ticker = Ticker(
            self.scheduler, self.config.autoplay_tick, self._on_autoplay_tick
        )
        self._elapsed_ticker = Ticker(
            self.scheduler, self.config.elapsed_tick, self._on_elapsed_tick
        )

        self._recording: Optional[List[SubSlide]] = None

    # --- Loading and teardown ---

    def load(
        self,
        presentation: Presentation,
        scenarios: Sequence[Scenario],
        nodes: Sequence[Node] = (),
        edges: Sequence[Edge] = (),
    ) -> None:
        """
        Load (or reload) a presentation and show its first sub-slide.

        All timers from a previous load are torn down first, and a recording
        in progress is dropped so a path never spans two presentations.
        """
        self._teardown()
        if self._recording is not None:
            logger.debug("Recording discarded by load of %s", presentation.id)
        self._recording = None
        plan = self.cache.get(presentation, scenarios, edges, nodes)

        self.presentation = presentation
        self.sub_slides = plan.sub_slides
        self._branch_points = plan.branch_points
        self._index = 0
        self._autoplay = presentation.settings.autoplay
        self._interval = presentation.settings.interval
        self._elapsed_seconds = 0
        self._started_at = self.scheduler.now()

        logger.debug(
            "Loaded presentation %s with %d sub-slide(s)", presentation.id, len(self.sub_slides)
        )
        if not self.sub_slides:
            return

        self._elapsed_ticker.start()
        self._land(0)

    def close(self) -> None:
        """Stop every timer. The loaded sequence stays readable."""
        self._teardown()

    def _teardown(self) -> None:
        self._cancel_title_timeout()
        self._autoplay_ticker.stop()
        self._elapsed_ticker.stop()
        self._autoplay_elapsed = 0.0

    # --- State ---

    @property
    def current(self) -> Optional[SubSlideEntry]:
        if 0 <= self._index < len(self.sub_slides):
            return self.sub_slides[self._index]
        return None

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def total(self) -> int:
        return len(self.sub_slides)

    @property
    def current_branch_point(self) -> Optional[BranchPoint]:
        """Branch point at the focused node of the current node sub-slide."""
        entry = self.current
        if entry is None or entry.type != SubSlideType.NODE:
            return None
        for branch_point in self._branch_points.get(entry.step_key, []):
            if branch_point.source_node_id == entry.focused_node_id:
                return branch_point
        return None

    @property
    def current_notes(self) -> StepNotes:
        """Notes for the current sub-slide; node notes fall back to step notes."""
        entry = self.current
        if entry is None or self.presentation is None:
            return StepNotes()
        notes = self.presentation.notes
        if entry.type == SubSlideType.NODE and entry.sub_slide.notes_key in notes:
            return notes[entry.sub_slide.notes_key]
        return notes.get(f"{entry.sub_slide.scenario_id}:{entry.sub_slide.step_id}", StepNotes())

    @property
    def is_autoplay_active(self) -> bool:
        return self._autoplay

    @property
    def autoplay_progress(self) -> float:
        """Progress towards the next autoplay advance, 0-100."""
        return min(self._autoplay_elapsed / self._interval * 100, 100.0)

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed_seconds

    @property
    def is_recording(self) -> bool:
        return self._recording is not None

    # --- Navigation ---

    def go_next(self) -> None:
        if self._index >= len(self.sub_slides) - 1:
            return
        self._land(self._index + 1)

    def go_prev(self) -> None:
        if self._index <= 0:
            return
        prev_index = self._index - 1
        if prev_index > 0 and self.sub_slides[prev_index].type == SubSlideType.TITLE:
            prev_index -= 1
        self._land(prev_index)

    def go_to_index(self, index: int) -> None:
        if index < 0 or index >= len(self.sub_slides):
            return
        self._land(index)

    def select_branch(self, target_node_id: str) -> None:
        """
        Jump forward to the node sub-slide of a branch target.

        Only sub-slides after the current one, in the same scenario and
        step, are considered; nothing happens if none matches.
        """
        entry = self.current
        if entry is None:
            return
        scenario_id = entry.sub_slide.scenario_id
        step_id = entry.sub_slide.step_id

        for index in range(self._index + 1, len(self.sub_slides)):
            slide = self.sub_slides[index].sub_slide
            if (
                slide.type == SubSlideType.NODE
                and slide.node_id == target_node_id
                and slide.scenario_id == scenario_id
                and slide.step_id == step_id
            ):
                self._land(index)
                return
        logger.debug("Branch target %s not found ahead of %d", target_node_id, self._index)

    def toggle_autoplay(self) -> None:
        self._autoplay = not self._autoplay
        self._autoplay_elapsed = 0.0
        self._sync_autoplay()

    # --- Recording ---

    def start_recording(self) -> None:
        """Record every sub-slide landed on from now on, starting with the current one."""
        self._recording = []
        if self.current is not None:
            self._recording.append(self.current.sub_slide)

    def stop_recording(self) -> RecordedPath:
        """Stop recording and return the visited sequence."""
        sequence = self._recording or []
        self._recording = None
        return RecordedPath(
            sub_slide_sequence=list(sequence),
            recorded_at=datetime.now(timezone.utc).isoformat(),
        )

    # --- Internals ---

    def _land(self, index: int) -> None:
        """Make ``index`` the current sub-slide and apply it."""
        self._cancel_title_timeout()
        self._index = index
        entry = self.sub_slides[index]

        self.apply_sub_slide(entry)
        if self._recording is not None:
            self._recording.append(entry.sub_slide)

        if entry.type == SubSlideType.TITLE and index < len(self.sub_slides) - 1:
            self._title_timeout = Timeout(
                self.scheduler, self.config.title_delay, self._on_title_timeout
            )

        self._autoplay_elapsed = 0.0
        self._sync_autoplay()
        logger.debug("Sub-slide %d/%d (%s)", index + 1, len(self.sub_slides), entry.type.value)

    def _cancel_title_timeout(self) -> None:
        if self._title_timeout is not None:
            self._title_timeout.cancel()
            self._title_timeout = None

    def _on_title_timeout(self) -> None:
        self._title_timeout = None
        if self._index + 1 < len(self.sub_slides):
            self._land(self._index + 1)

    def _autoplay_suspended(self) -> bool:
        entry = self.current
        if entry is None or self.presentation is None:
            return True
        return entry.type == SubSlideType.TITLE or self.current_branch_point is not None

    def _sync_autoplay(self) -> None:
        """Start a fresh autoplay period, or stop the tick if autoplay cannot run."""
        if self._autoplay and not self._autoplay_suspended():
            self._autoplay_ticker.start()
        else:
            self._autoplay_ticker.stop()

    def _on_autoplay_tick(self) -> None:
        self._autoplay_elapsed += self.config.autoplay_tick
        if self._autoplay_elapsed < self._interval - 1e-9:
            return

        if self._index < len(self.sub_slides) - 1:
            self._land(self._index + 1)
        else:
            self._autoplay = False
            self._autoplay_elapsed = 0.0
            self._autoplay_ticker.stop()

    def _on_elapsed_tick(self) -> None:
        self._elapsed_seconds = int(math.floor(self.scheduler.now() - self._started_at + 1e-9))

    def apply_sub_slide(self, entry: SubSlideEntry) -> None:
        """
        Apply a sub-slide to the canvas surface.

        Saved step positions are restored first. Overviews highlight the
        step's nodes and fit the view (or restore the saved viewport); node
        sub-slides highlight the focused node and center on it. Titles leave
        the canvas alone.
        """
        if entry.type == SubSlideType.TITLE:
            return

        config = self.config
        step = entry.step
        if step.node_positions:
            self.surface.set_node_positions(dict(step.node_positions))

        all_ids = self.surface.node_ids()

        if entry.type == SubSlideType.OVERVIEW:
            highlighted = set(step.node_ids)
            self.surface.set_node_opacity(
                {
                    node_id: 1.0
                    if not highlighted or node_id in highlighted
                    else config.dim_opacity
                    for node_id in all_ids
                }
            )
            if step.viewport is not None:
                self.surface.set_viewport(step.viewport, config.transition_duration)
            elif step.node_ids:
                self.surface.fit_view(
                    list(step.node_ids), config.fit_padding, config.transition_duration
                )
            return

        focused_id = entry.focused_node_id
        if not focused_id:
            return
        self.surface.set_node_opacity(
            {
                node_id: 1.0 if node_id == focused_id else config.dim_opacity
                for node_id in all_ids
            }
        )
        node = self.surface.get_node(focused_id)
        if node is None:
            logger.debug("Focused node %s is not on the canvas", focused_id)
            return
        width = node.width or node.style_width or config.focus_fallback_width
        height = node.height or node.style_height or config.focus_fallback_height
        center = (node.x + width / 2, node.y + height / 2)
        self.surface.set_viewport(
            centered_viewport(center, config.view_width, config.view_height, config.focus_zoom),
            config.transition_duration,
        )
