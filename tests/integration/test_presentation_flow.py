"""
Integration tests: layout, routing, playback and export together.

These tests run a small architecture diagram through the full pipeline
the way an application would use the package.
"""

import pytest
from PIL import Image

from archflow import (
    Edge,
    InMemoryCanvas,
    LayoutContext,
    LayoutExporter,
    LayoutOptions,
    LayoutTrace,
    ManualScheduler,
    Node,
    Presentation,
    PresentationPlayback,
    Scenario,
    Step,
    SubSlideType,
    TracedSurface,
    apply_layout,
    route_edges,
)


@pytest.fixture
def diagram():
    nodes = [
        Node("web", "tech", label="Web"),
        Node("api", "tech", label="API"),
        Node("auth", "business", label="Auth rules"),
        Node("orders", "tech", label="Orders"),
        Node("db", "database", label="Postgres"),
        Node("note", "comment", label="Remember caching"),
    ]
    edges = [
        Edge("e1", "web", "api"),
        Edge("e2", "api", "auth"),
        Edge("e3", "api", "orders"),
        Edge("e4", "orders", "db"),
    ]
    return nodes, edges


@pytest.mark.parametrize("layout_type", ["hierarchical", "force", "circular", "grid"])
def test_layout_then_route(layout_type, diagram):
    """Test every general layout feeds the router."""
    nodes, edges = diagram
    trace = LayoutTrace()
    laid_out = apply_layout(layout_type, nodes, edges, LayoutOptions(seed=7), trace=trace)
    paths = route_edges(laid_out, edges)
    assert set(paths) == {"e1", "e2", "e3", "e4"}
    assert all(p.path.startswith("M ") for p in paths.values())
    assert trace.get_stage(layout_type) is not None


def test_presentation_layout_routes_through_ports(diagram):
    """Test the sectioned layout gives port-based routes."""
    nodes, edges = diagram
    context = LayoutContext()
    laid_out = apply_layout("presentation", nodes, edges, context=context)
    paths = route_edges(laid_out, edges, context)
    assert {p.kind for p in paths.values()} <= {"curve", "routed"}
    for edge in edges:
        ports = context.edge_ports[edge.id]
        assert ports.source_port.node == edge.source
        assert ports.target_port.node == edge.target


def test_full_walkthrough(diagram, tmp_path):
    """Test a presenter walking through a scenario and exporting snapshots."""
    nodes, edges = diagram
    context = LayoutContext()
    laid_out = apply_layout("presentation", nodes, edges, context=context)

    scenario = Scenario(
        id="checkout",
        name="Checkout",
        steps=[
            Step(id="request", name="Request", order=1, node_ids=["web", "api", "auth", "orders"]),
            Step(id="store", name="Store", order=2, node_ids=["orders", "db"]),
        ],
    )
    presentation = Presentation(id="demo", scenario_ids=["checkout"])

    canvas = InMemoryCanvas(laid_out)
    traced = TracedSurface(canvas)
    scheduler = ManualScheduler()
    playback = PresentationPlayback(traced, scheduler)
    playback.load(presentation, [scenario], laid_out, edges)

    assert playback.total == 1 + (1 + 4) + (1 + 2)
    scheduler.advance(2.0)
    assert playback.current.type == SubSlideType.OVERVIEW
    assert canvas.get_node("note").opacity == 0.15

    playback.go_next()
    playback.go_next()
    assert playback.current.focused_node_id == "api"
    branch = playback.current_branch_point
    assert branch.target_labels == ["Auth rules", "Orders"]

    playback.select_branch("orders")
    assert playback.current.focused_node_id == "orders"
    assert canvas.get_node("orders").opacity == 1.0
    assert canvas.get_node("api").opacity == 0.15
    assert canvas.viewport.zoom == 1.5

    target = tmp_path / "orders.png"
    LayoutExporter().save_canvas_png(canvas, str(target), edges=edges)
    with Image.open(target) as img:
        assert img.size[0] > 100

    assert traced.calls_to("set_viewport")
    playback.close()
