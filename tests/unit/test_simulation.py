"""Unit tests for the force simulation."""

import math

import numpy as np
import pytest

from vaultgraph.errors import SimulationStateError
from vaultgraph.graph.settings import GraphSettings
from vaultgraph.models import GraphSnapshot, Link, LinkKind, Node
from vaultgraph.simulation import ForceSimulation, SimulationState
from vaultgraph.simulation.force_simulation import ALPHA_MIN, MAX_SUBSTEPS, REHEAT_ALPHA


def make_snapshot(node_ids: list[str], edges: list[tuple[str, str]] = ()) -> GraphSnapshot:
    nodes = tuple(Node(id=n, display_name=n) for n in node_ids)
    links = tuple(
        Link(id=f"ref:{s}->{t}", source=s, target=t, kind=LinkKind.EXPLICIT_REFERENCE)
        for s, t in edges
    )
    return GraphSnapshot(nodes=nodes, links=links)


def distance(sim: ForceSimulation, a: str, b: str) -> float:
    (ax, ay), (bx, by) = sim.position(a), sim.position(b)
    return math.hypot(ax - bx, ay - by)


class TestLifecycle:
    """Tests for the simulation state machine."""

    def test_starts_uninitialized(self, graph_settings) -> None:
        sim = ForceSimulation(graph_settings)
        assert sim.state == SimulationState.UNINITIALIZED
        with pytest.raises(SimulationStateError):
            sim.tick(1 / 60)
        with pytest.raises(SimulationStateError):
            sim.toggle_animation(True)

    def test_initialize(self, simulation) -> None:
        assert simulation.state == SimulationState.RUNNING
        assert simulation.alpha == 1.0

    def test_initialize_twice(self, simulation, chain_snapshot) -> None:
        with pytest.raises(SimulationStateError):
            simulation.initialize(chain_snapshot)

    def test_pause_resume(self, simulation) -> None:
        simulation.toggle_animation(False)
        assert simulation.state == SimulationState.PAUSED
        before = simulation.positions()
        assert simulation.tick(1.0) == 0
        assert simulation.positions() == before

        simulation.toggle_animation()
        assert simulation.state == SimulationState.RUNNING
        assert simulation.tick(1 / 60) == 1

    def test_destroy(self, simulation, chain_snapshot) -> None:
        """Test destroy is terminal, idempotent and makes tick a no-op."""
        simulation.destroy()
        simulation.destroy()

        assert simulation.state == SimulationState.DESTROYED
        assert simulation.tick(1 / 60) == 0
        assert simulation.positions() == {}
        assert simulation.snapshot is None
        for operation in (
            lambda: simulation.update_data(chain_snapshot),
            lambda: simulation.toggle_animation(True),
            lambda: simulation.step(),
            lambda: simulation.pin("A.md", 0, 0),
            lambda: simulation.resize(10, 10),
            lambda: simulation.initialize(chain_snapshot),
        ):
            with pytest.raises(SimulationStateError):
                operation()

    def test_update_data_keeps_state(self, simulation) -> None:
        simulation.toggle_animation(False)
        simulation.update_data(make_snapshot(["x", "y"]))

        assert simulation.state == SimulationState.PAUSED
        assert set(simulation.positions()) == {"x", "y"}
        assert simulation.alpha == 1.0


class TestTick:
    """Tests for fixed-timestep ticking."""

    def test_one_frame_one_step(self, simulation) -> None:
        assert simulation.tick(1 / 60) == 1

    def test_long_frame_capped(self, simulation) -> None:
        assert simulation.tick(1.0) == MAX_SUBSTEPS
        # Backlog is dropped
        assert simulation.tick(0.0) == 0

    def test_short_frames_accumulate(self, simulation) -> None:
        assert simulation.tick(0.01) == 0
        assert simulation.tick(0.01) == 1

    def test_converges(self, simulation) -> None:
        """Test alpha decays below the minimum and ticking stops."""
        for _ in range(2000):
            if simulation.converged:
                break
            simulation.step()

        assert simulation.converged
        assert simulation.alpha < ALPHA_MIN
        assert simulation.tick(1 / 60) == 0

    def test_update_forces_reheats(self, simulation) -> None:
        while not simulation.converged:
            simulation.step()
        simulation.update_forces(GraphSettings(link_distance=50.0))

        assert simulation.alpha == pytest.approx(REHEAT_ALPHA)
        assert not simulation.converged
        assert simulation.settings.link_distance == 50.0

    def test_resize_moves_center_and_reheats(self, simulation) -> None:
        while not simulation.converged:
            simulation.step()
        simulation.resize(1000, 400)
        assert simulation.center == (500.0, 200.0)
        assert simulation.alpha == pytest.approx(REHEAT_ALPHA)

    def test_alpha_target_prevents_convergence(self, simulation) -> None:
        simulation.set_alpha_target(0.3)
        for _ in range(2000):
            simulation.step()
        assert not simulation.converged
        assert simulation.alpha == pytest.approx(0.3, abs=1e-3)


class TestLayout:
    """Tests for the initial circular layout."""

    def test_circle_around_center(self, graph_settings) -> None:
        sim = ForceSimulation(graph_settings, width=800, height=600, seed=1)
        sim.initialize(make_snapshot(["a", "b", "c", "d"]))
        for x, y in sim.positions().values():
            assert math.hypot(x - 400, y - 300) == pytest.approx(210.0, abs=1.0)

    def test_crowded_circle_is_widened(self, graph_settings) -> None:
        """Test neighbours keep at least four node sizes apart."""
        ids = [f"n{i}" for i in range(100)]
        sim = ForceSimulation(graph_settings, seed=1)
        sim.initialize(make_snapshot(ids))
        for a, b in zip(ids, ids[1:]):
            assert distance(sim, a, b) >= 4 * graph_settings.node_size - 1.5

    def test_single_node_at_center(self, graph_settings) -> None:
        sim = ForceSimulation(graph_settings, width=200, height=100)
        sim.initialize(make_snapshot(["only"]))
        assert sim.position("only") == (100.0, 50.0)

    def test_empty_snapshot(self, graph_settings) -> None:
        sim = ForceSimulation(graph_settings)
        sim.initialize(GraphSnapshot())
        sim.step()
        assert sim.positions() == {}


class TestForces:
    """Tests for the individual forces."""

    def test_positions_written_to_nodes(self, simulation) -> None:
        simulation.step()
        for node in simulation.nodes:
            assert (node.x, node.y) == simulation.position(node.id)

    def test_spring_pulls_linked_nodes(self) -> None:
        settings = GraphSettings(center_force=0.0)
        sim = ForceSimulation(settings, seed=3)
        sim.initialize(make_snapshot(["a", "b"], [("a", "b")]))
        start = distance(sim, "a", "b")

        for _ in range(100):
            sim.step()

        assert distance(sim, "a", "b") < start

    def test_repulsion_pushes_apart(self) -> None:
        settings = GraphSettings(center_force=0.0, repulsion_force=5000.0)
        sim = ForceSimulation(settings, width=100, height=100, seed=3)
        sim.initialize(make_snapshot(["a", "b"]))
        start = distance(sim, "a", "b")

        for _ in range(20):
            sim.step()

        assert distance(sim, "a", "b") > start

    def test_coincident_nodes_separate(self, graph_settings) -> None:
        """Test nodes at the same spot get pushed apart without NaNs."""
        sim = ForceSimulation(graph_settings, seed=3)
        sim.initialize(make_snapshot(["a", "b"]))
        sim.pin("a", 400, 300)
        sim.pin("b", 400, 300)
        sim.unpin("a")
        sim.unpin("b")

        sim.step()

        (ax, ay), (bx, by) = sim.position("a"), sim.position("b")
        assert all(math.isfinite(v) for v in (ax, ay, bx, by))
        assert distance(sim, "a", "b") > 0

    def test_link_to_missing_node_is_skipped(self, graph_settings) -> None:
        """Test a dangling link contributes no force and does not crash."""
        nodes = (Node(id="a", display_name="a"),)
        links = (Link(id="ref:a->gone", source="a", target="gone", kind=LinkKind.EXPLICIT_REFERENCE),)
        sim = ForceSimulation(graph_settings)
        sim.initialize(GraphSnapshot(nodes=nodes, links=links))
        for _ in range(10):
            sim.step()
        assert all(math.isfinite(v) for v in sim.position("a"))


class TestPinning:
    """Tests for pinned nodes."""

    def test_pinned_node_does_not_move(self, simulation) -> None:
        simulation.pin("B.md", 100.0, 100.0)
        for _ in range(50):
            simulation.step()

        node = simulation.snapshot.node("B.md")
        assert simulation.position("B.md") == (100.0, 100.0)
        assert (node.vx, node.vy) == (0.0, 0.0)
        assert simulation.is_pinned("B.md")

    def test_unpin_releases(self, simulation) -> None:
        simulation.pin("B.md", 100.0, 100.0)
        simulation.unpin("B.md")
        for _ in range(10):
            simulation.step()
        assert not simulation.is_pinned("B.md")
        assert simulation.position("B.md") != (100.0, 100.0)

    def test_pin_unknown_node(self, simulation) -> None:
        with pytest.raises(KeyError):
            simulation.pin("nope", 0, 0)
        assert simulation.position("nope") is None


def all_pairs_forces(positions: np.ndarray, settings: GraphSettings, cutoff: float) -> np.ndarray:
    """Repulsion and collision summed over every pair, for comparison."""
    n = len(positions)
    force = np.zeros_like(positions)
    collide = 2.0 * settings.node_size
    for a in range(n):
        for b in range(n):
            if a == b:
                continue
            delta = positions[b] - positions[a]
            dist = math.hypot(*delta)
            magnitude = 0.0
            if dist < cutoff:
                magnitude += settings.repulsion_force / dist ** 2
            if dist < collide:
                magnitude += (collide - dist) / 2.0
            force[a] -= delta / dist * magnitude
    return force


class TestInteractionCutoff:
    """Tests for the neighbour grid behind pairwise forces."""

    def test_pairs_beyond_cutoff_exert_no_force(self) -> None:
        settings = GraphSettings(center_force=0.0)
        sim = ForceSimulation(settings, width=800, height=600, seed=3)
        sim.initialize(make_snapshot(["a", "b"]))
        assert distance(sim, "a", "b") > sim.max_interaction_distance
        before = sim.positions()

        sim.step()

        assert sim.positions() == before

        near = ForceSimulation(settings, width=800, height=600, seed=3, max_interaction_distance=1000.0)
        near.initialize(make_snapshot(["a", "b"]))
        near.step()
        assert distance(near, "a", "b") > distance(sim, "a", "b")

    def test_grid_matches_all_pairs(self, graph_settings) -> None:
        """Test grid neighbours give the same forces as summing every pair."""
        ids = [f"n{i}" for i in range(80)]
        sim = ForceSimulation(graph_settings, seed=11, max_interaction_distance=150.0)
        sim.initialize(make_snapshot(ids))

        rng = np.random.default_rng(5)
        points = rng.uniform(-300.0, 900.0, size=(len(ids), 2))
        # A few overlapping pairs to exercise collision
        points[1] = points[0] + (3.0, 4.0)
        points[41] = points[40] + (-6.0, 1.0)
        for node_id, (x, y) in zip(ids, points):
            sim.pin(node_id, x, y)
            sim.unpin(node_id)

        expected = all_pairs_forces(points, graph_settings, 150.0)
        np.testing.assert_allclose(sim._pairwise_forces(), expected, rtol=1e-9, atol=1e-12)

    def test_large_graph_step_is_finite(self, graph_settings) -> None:
        ids = [f"n{i}" for i in range(2000)]
        sim = ForceSimulation(graph_settings, seed=1)
        sim.initialize(make_snapshot(ids))
        sim.step()
        assert all(math.isfinite(v) for xy in sim.positions().values() for v in xy)
