"""Pytest configuration and shared fixtures for archflow tests."""

import pytest

from archflow import (
    Edge,
    InMemoryCanvas,
    ManualScheduler,
    Node,
    Position,
    Presentation,
    Scenario,
    Step,
)


def make_edges(pairs):
    """Edges e1..eN from (source, target) pairs."""
    return [Edge(f"e{i}", source, target) for i, (source, target) in enumerate(pairs, 1)]


@pytest.fixture
def edge_factory():
    """Builds edges from (source, target) pairs."""
    return make_edges


@pytest.fixture
def diamond_edges():
    """A -> B, A -> C, B -> D, C -> D."""
    return make_edges([("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])


@pytest.fixture
def cycle_edges():
    """A -> B -> C -> A."""
    return make_edges([("A", "B"), ("B", "C"), ("C", "A")])


@pytest.fixture
def diamond_nodes():
    """Nodes for the diamond graph, plus an isolated node E."""
    return [
        Node("A", "tech", label="Gateway"),
        Node("B", "tech", label="Orders"),
        Node("C", "tech", label="Billing"),
        Node("D", "database", label="Postgres"),
        Node("E", "comment", label="Note"),
    ]


@pytest.fixture
def mixed_nodes():
    """Top-level nodes of several categories, a container and a nested node."""
    return [
        Node("api", "tech", width=200, height=90),
        Node("db", "database"),
        Node("billing", "business", style_width=240, style_height=100),
        Node("queue", "tech"),
        Node("vpc", "group", width=600, height=400),
        Node("worker", "tech", parent_id="vpc", x=20, y=30),
    ]


@pytest.fixture
def checkout_scenario():
    """Scenario with two steps; the first fans out from A."""
    return Scenario(
        id="s1",
        name="Checkout",
        color="#ef4444",
        description="How an order flows",
        steps=[
            Step(id="st2", name="Persist", order=2, node_ids=["D"]),
            Step(
                id="st1",
                name="Route",
                order=1,
                node_ids=["A", "B", "C", "D"],
                node_positions={"A": Position(10, 20)},
            ),
        ],
    )


@pytest.fixture
def presentation():
    """Presentation over the checkout scenario."""
    return Presentation(id="p1", name="Demo", scenario_ids=["s1"])


@pytest.fixture
def scheduler():
    """Virtual-clock scheduler."""
    return ManualScheduler()


@pytest.fixture
def canvas(diamond_nodes):
    """In-memory canvas holding the diamond nodes."""
    return InMemoryCanvas(diamond_nodes)
