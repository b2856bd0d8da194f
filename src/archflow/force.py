"""
Force-directed layout.

A fixed-tick particle simulation with four forces applied in order on
every tick:

- link: springs along edges pulling endpoints to the rest length
- charge: pairwise repulsion, ignored beyond a maximum distance
- center: translates the whole graph so its mean sits at the origin
- collision: pushes apart nodes whose bounding circles overlap

The tick count is fixed rather than convergence-driven so the cost of a
layout is bounded and predictable.
"""

import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import Edge, LayoutOptions, Node

# =============================================================================
# FORCE CONFIGURATION
# =============================================================================

DEFAULT_NODE_SPACING = 250  # Link rest length
DEFAULT_ITERATIONS = 300

LINK_STRENGTH = 0.3
CHARGE_STRENGTH = -800
CHARGE_DISTANCE_MAX = 500
CHARGE_DISTANCE_MIN = 1
COLLISION_PADDING = 40
COLLISION_STRENGTH = 1.0

# Random seed positions for nodes without one
INITIAL_POSITION_RANGE = 500

# Cooling schedule
ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
VELOCITY_DECAY = 0.4

# =============================================================================


@dataclass
class Particle:
    """Simulation state for one node. ``x``/``y`` are the node center."""

    id: str
    x: float
    y: float
    radius: float
    vx: float = 0.0
    vy: float = 0.0


@dataclass
class Link:
    source: Particle
    target: Particle
    bias: float = 0.5


class ForceSimulation:
    """
    Particle simulation over nodes and links.

    Attributes:
        particles: Simulation particles in node order.
        links: Springs between particles.
        alpha: Current cooling factor.
    """

    def __init__(
        self,
        particles: List[Particle],
        links: List[Link],
        link_distance: float = DEFAULT_NODE_SPACING,
        rng: Optional[random.Random] = None,
    ):
        self.particles = particles
        self.links = links
        self.link_distance = link_distance
        self.alpha = 1.0
        self.rng = rng or random.Random()
        self._init_link_bias()

    def _init_link_bias(self) -> None:
        degree: Dict[str, int] = {}
        for link in self.links:
            degree[link.source.id] = degree.get(link.source.id, 0) + 1
            degree[link.target.id] = degree.get(link.target.id, 0) + 1
        for link in self.links:
            src = degree[link.source.id]
            link.bias = src / (src + degree[link.target.id])

    def _jiggle(self) -> float:
        return (self.rng.random() - 0.5) * 1e-6

    def tick(self) -> None:
        """Advance the simulation by one step."""
        self.alpha += (0 - self.alpha) * ALPHA_DECAY
        self._apply_links()
        self._apply_charge()
        self._apply_center()
        self._apply_collision()

        for p in self.particles:
            p.vx *= 1 - VELOCITY_DECAY
            p.vy *= 1 - VELOCITY_DECAY
            p.x += p.vx
            p.y += p.vy

    def run(self, ticks: int) -> None:
        for _ in range(ticks):
            self.tick()

    def _apply_links(self) -> None:
        for link in self.links:
            source, target = link.source, link.target
            dx = target.x + target.vx - source.x - source.vx or self._jiggle()
            dy = target.y + target.vy - source.y - source.vy or self._jiggle()
            length = math.sqrt(dx * dx + dy * dy)
            scale = (length - self.link_distance) / length * self.alpha * LINK_STRENGTH
            dx *= scale
            dy *= scale
            target.vx -= dx * link.bias
            target.vy -= dy * link.bias
            source.vx += dx * (1 - link.bias)
            source.vy += dy * (1 - link.bias)

    def _apply_charge(self) -> None:
        max2 = CHARGE_DISTANCE_MAX * CHARGE_DISTANCE_MAX
        min2 = CHARGE_DISTANCE_MIN * CHARGE_DISTANCE_MIN
        for p in self.particles:
            for other in self.particles:
                if other is p:
                    continue
                dx = other.x - p.x
                dy = other.y - p.y
                dist2 = dx * dx + dy * dy
                if dist2 >= max2:
                    continue
                if dx == 0:
                    dx = self._jiggle()
                    dist2 += dx * dx
                if dy == 0:
                    dy = self._jiggle()
                    dist2 += dy * dy
                if dist2 < min2:
                    dist2 = math.sqrt(min2 * dist2)
                weight = CHARGE_STRENGTH * self.alpha / dist2
                p.vx += dx * weight
                p.vy += dy * weight

    def _apply_center(self) -> None:
        if not self.particles:
            return
        mean_x = sum(p.x for p in self.particles) / len(self.particles)
        mean_y = sum(p.y for p in self.particles) / len(self.particles)
        for p in self.particles:
            p.x -= mean_x
            p.y -= mean_y

    def _apply_collision(self) -> None:
        count = len(self.particles)
        for i in range(count):
            a = self.particles[i]
            ax, ay = a.x + a.vx, a.y + a.vy
            for j in range(i + 1, count):
                b = self.particles[j]
                reach = a.radius + b.radius
                dx = ax - b.x - b.vx
                dy = ay - b.y - b.vy
                dist2 = dx * dx + dy * dy
                if dist2 >= reach * reach:
                    continue
                if dx == 0:
                    dx = self._jiggle()
                    dist2 += dx * dx
                if dy == 0:
                    dy = self._jiggle()
                    dist2 += dy * dy
                dist = math.sqrt(dist2)
                push = (reach - dist) / dist * COLLISION_STRENGTH
                dx *= push
                dy *= push
                share = b.radius * b.radius / (a.radius * a.radius + b.radius * b.radius)
                a.vx += dx * share
                a.vy += dy * share
                b.vx -= dx * (1 - share)
                b.vy -= dy * (1 - share)


def force_directed_layout(
    nodes: List[Node],
    edges: List[Edge],
    options: Optional[LayoutOptions] = None,
) -> List[Node]:
    """
    Force-directed layout run for a fixed number of ticks.

    Existing positions seed the simulation. A coordinate of exactly 0 is
    treated as unset and replaced with a random value in
    [0, INITIAL_POSITION_RANGE).

    Args:
        nodes: Nodes to lay out
        edges: Edges; dangling ones are ignored
        options: node_spacing (link length), iterations, seed

    Returns:
        New nodes with top-left positions
    """
    if not nodes:
        return []

    resolved = (options or LayoutOptions()).resolve(
        node_spacing=DEFAULT_NODE_SPACING, iterations=DEFAULT_ITERATIONS
    )
    rng = random.Random(resolved.seed)

    particles: Dict[str, Particle] = {}
    for node in nodes:
        width, height = node.dimensions()
        particles[node.id] = Particle(
            id=node.id,
            x=node.x or rng.random() * INITIAL_POSITION_RANGE,
            y=node.y or rng.random() * INITIAL_POSITION_RANGE,
            radius=max(width, height) / 2 + COLLISION_PADDING,
        )

    links = [
        Link(source=particles[edge.source], target=particles[edge.target])
        for edge in edges
        if edge.source in particles
        and edge.target in particles
        and edge.source != edge.target
    ]

    simulation = ForceSimulation(
        list(particles.values()), links, resolved.node_spacing, rng
    )
    simulation.run(resolved.iterations)

    laid_out = []
    for node in nodes:
        p = particles[node.id]
        width, height = node.dimensions()
        laid_out.append(node.moved_to(p.x - width / 2, p.y - height / 2))
    return laid_out
