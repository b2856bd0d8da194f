"""
Debug tracing infrastructure for archflow.

A LayoutTrace is an optional recorder handed to ``apply_layout`` and to
``EdgePortRouter``. Each step of a layout run appends a PipelineStage with
the numbers that explain it and, where nodes moved, a snapshot of their
positions.

Recorded stages:
- partition: how many nodes were laid out and how many passed through
- <layout type>: the algorithm's own stage, with positions
- metadata: section bands from the sectioned layout
- ports: how many edges got ports and how many were skipped

Usage:
    >>> trace = LayoutTrace()
    >>> nodes = apply_layout("grid", nodes, edges, trace=trace)
    >>> print(trace.summary())
    >>> trace.dump_to_file("layout_trace.txt")
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

PositionSnapshot = Dict[str, Tuple[float, float]]

# Longest value rendered in full by PipelineStage.__str__
MAX_VALUE_WIDTH = 100
# Number of node positions listed per stage in a dump
MAX_LISTED_POSITIONS = 15
RULE = "=" * 60


def _shorten(value: Any) -> str:
    text = str(value)
    if len(text) > MAX_VALUE_WIDTH:
        return text[:MAX_VALUE_WIDTH] + "..."
    return text


@dataclass
class PipelineStage:
    """
    One recorded step of a layout run.

    Attributes:
        name: Stage name ("partition", "grid", "ports", ...)
        data: Values describing the stage, copied when recorded
        positions: Node id -> (x, y) after the stage, if nodes moved
    """

    name: str
    data: Dict[str, Any]
    positions: Optional[PositionSnapshot] = None

    def __str__(self) -> str:
        lines = [f"=== Stage: {self.name} ==="]
        lines.extend(f"  {key}: {_shorten(value)}" for key, value in self.data.items())
        if self.positions:
            shown = list(self.positions.items())[:MAX_LISTED_POSITIONS]
            lines.append(f"  Positions ({len(shown)} of {len(self.positions)}):")
            lines.extend(f"    {node_id}: ({x:.1f}, {y:.1f})" for node_id, (x, y) in shown)
        return "\n".join(lines)


@dataclass
class LayoutTrace:
    """
    Ordered record of the stages of one layout run.

    Attributes:
        stages: Recorded stages, in the order they ran
        layout_type: Layout type the run was dispatched to
    """

    stages: List[PipelineStage] = field(default_factory=list)
    layout_type: str = ""

    def add_stage(
        self,
        name: str,
        data: Dict[str, Any],
        nodes: Optional[Iterable[Any]] = None,
    ) -> None:
        """Record a stage; ``nodes``, when given, are snapshotted by id."""
        snapshot = None
        if nodes is not None:
            snapshot = {node.id: (node.x, node.y) for node in nodes}
        self.stages.append(PipelineStage(name, dict(data), snapshot))

    @property
    def stage_names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    def get_stage(self, name: str) -> Optional[PipelineStage]:
        """First stage recorded under ``name``."""
        return next((stage for stage in self.stages if stage.name == name), None)

    def get_positions_at_stage(self, name: str) -> Optional[PositionSnapshot]:
        stage = self.get_stage(name)
        return stage.positions if stage is not None and stage.positions else None

    def summary(self) -> str:
        lines = [
            RULE,
            "LAYOUT TRACE SUMMARY",
            RULE,
            "",
            f"Layout: {self.layout_type or '-'}",
            f"Pipeline stages: {len(self.stages)}",
        ]
        # [+] marks stages that carry a position snapshot
        for stage in self.stages:
            marker = "+" if stage.positions else "-"
            lines.append(f"  [{marker}] {stage.name}")
        return "\n".join(lines)

    def dump(self) -> str:
        """Summary followed by every stage in full."""
        parts = [self.summary(), "", RULE, "DETAILED TRACE", RULE, ""]
        for stage in self.stages:
            parts.extend([str(stage), ""])
        return "\n".join(parts)

    def dump_to_file(self, filename: str) -> None:
        Path(filename).write_text(self.dump(), encoding="utf-8")
