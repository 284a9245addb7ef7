"""Force-directed layout integrator.

Positions and velocities are held in numpy arrays for the duration of a
snapshot and written back to the ``Node`` objects after every step, so the
renderer and the interaction layer always read plain node attributes.

Per step:
1. Inverse-square repulsion between node pairs within a cutoff radius,
   found through a uniform grid so distant pairs are never measured
2. Weak pull toward the viewport centre
3. Hooke springs along links toward ``link_distance``
4. Collision push for pairs closer than two node radii
5. Damped integration, scaled by alpha; pinned nodes snap to their pin
6. Alpha decays toward its target
"""

import logging
import math
from enum import Enum

import numpy as np

from vaultgraph.errors import SimulationStateError
from vaultgraph.graph.settings import GraphSettings
from vaultgraph.models.graph import GraphSnapshot, Node

logger = logging.getLogger(__name__)

# Integration
FIXED_TIMESTEP = 1.0 / 60.0
MAX_SUBSTEPS = 4
VELOCITY_DECAY = 0.85
STEP_SCALE = 0.1

# Force scaling
CENTER_SCALE = 0.0001
SPRING_STRENGTH = 0.1
MAX_INTERACTION_DISTANCE = 400.0

# Convergence
ALPHA_MIN = 0.001
ALPHA_DECAY = 1.0 - ALPHA_MIN ** (1.0 / 300.0)
REHEAT_ALPHA = 0.3

# Circle layout
LAYOUT_RADIUS_RATIO = 0.7
MIN_LAYOUT_SPACING = 4.0  # In node sizes

GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))
COINCIDENT_EPSILON = 1e-6

# Cell offsets that visit each pair of adjacent grid cells once
HALF_NEIGHBOURHOOD = ((1, -1), (1, 0), (1, 1), (0, 1))


class SimulationState(str, Enum):
    """Lifecycle of a force simulation."""

    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    PAUSED = "paused"
    DESTROYED = "destroyed"


class ForceSimulation:
    """
    Iterative physics layout over one graph snapshot at a time.

    The simulation only advances when ``tick`` (frame driven, fixed timestep)
    or ``step`` (one integration step) is called. It never schedules itself.
    """

    def __init__(
        self,
        settings: GraphSettings,
        width: float = 800.0,
        height: float = 600.0,
        seed: int | None = None,
        max_interaction_distance: float = MAX_INTERACTION_DISTANCE,
    ) -> None:
        self.settings = settings
        self.width = width
        self.height = height
        self.max_interaction_distance = max_interaction_distance
        self.state = SimulationState.UNINITIALIZED
        self.alpha = 0.0
        self.alpha_target = 0.0
        self.steps_taken = 0

        self._rng = np.random.default_rng(seed)
        self._accumulator = 0.0
        self._snapshot: GraphSnapshot | None = None
        self._nodes: list[Node] = []
        self._index: dict[str, int] = {}
        self._pos = np.zeros((0, 2))
        self._vel = np.zeros((0, 2))
        self._link_source = np.zeros(0, dtype=np.intp)
        self._link_target = np.zeros(0, dtype=np.intp)

    # ------------------------------------------------------------------
    # State helpers

    @property
    def center(self) -> tuple[float, float]:
        return self.width / 2.0, self.height / 2.0

    @property
    def snapshot(self) -> GraphSnapshot | None:
        return self._snapshot

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes)

    @property
    def converged(self) -> bool:
        return self.alpha < ALPHA_MIN and self.alpha_target == 0.0

    @property
    def is_running(self) -> bool:
        return self.state == SimulationState.RUNNING

    def _require_live(self, operation: str) -> None:
        if self.state == SimulationState.DESTROYED:
            raise SimulationStateError(f"Cannot {operation}: simulation is destroyed")

    def _require_initialized(self, operation: str) -> None:
        self._require_live(operation)
        if self.state == SimulationState.UNINITIALIZED:
            raise SimulationStateError(f"Cannot {operation}: simulation is not initialized")

    # ------------------------------------------------------------------
    # Lifecycle

    def initialize(self, snapshot: GraphSnapshot) -> None:
        """Load the first snapshot and start running."""
        self._require_live("initialize")
        if self.state != SimulationState.UNINITIALIZED:
            raise SimulationStateError(f"Cannot initialize: simulation is {self.state.value}")
        self._load(snapshot)
        self.state = SimulationState.RUNNING
        logger.debug(f"Simulation initialized with {len(self._nodes)} nodes")

    def update_data(self, snapshot: GraphSnapshot) -> None:
        """Replace the graph, lay it out again and restart at full energy."""
        self._require_initialized("update data")
        self._load(snapshot)

    def update_forces(self, settings: GraphSettings) -> None:
        """Swap force parameters and re-energize the layout."""
        self._require_live("update forces")
        self.settings = settings
        if self.state != SimulationState.UNINITIALIZED:
            self.reheat()

    def toggle_animation(self, run: bool | None = None) -> None:
        """Switch between RUNNING and PAUSED. ``None`` flips the current state."""
        self._require_initialized("toggle animation")
        if run is None:
            run = self.state == SimulationState.PAUSED
        self.state = SimulationState.RUNNING if run else SimulationState.PAUSED
        self._accumulator = 0.0

    def resize(self, width: float, height: float) -> None:
        """Move the centre to the new viewport and re-energize."""
        self._require_live("resize")
        if width <= 0 or height <= 0:
            raise ValueError("Viewport size must be positive")
        self.width = width
        self.height = height
        if self.state != SimulationState.UNINITIALIZED:
            self.reheat()

    def destroy(self) -> None:
        """Stop for good and release all arrays. Safe to call twice."""
        if self.state == SimulationState.DESTROYED:
            return
        self.state = SimulationState.DESTROYED
        self._snapshot = None
        self._nodes = []
        self._index = {}
        self._pos = np.zeros((0, 2))
        self._vel = np.zeros((0, 2))
        self._link_source = np.zeros(0, dtype=np.intp)
        self._link_target = np.zeros(0, dtype=np.intp)
        self.alpha = 0.0
        self.alpha_target = 0.0
        logger.debug("Simulation destroyed")

    # ------------------------------------------------------------------
    # Energy

    def reheat(self, alpha: float = REHEAT_ALPHA) -> None:
        self._require_live("reheat")
        self.alpha = max(self.alpha, alpha)

    def set_alpha_target(self, value: float) -> None:
        self._require_live("set alpha target")
        self.alpha_target = max(0.0, min(1.0, value))

    # ------------------------------------------------------------------
    # Pinning

    def pin(self, node_id: str, x: float, y: float) -> None:
        """Fix a node at (x, y); it is exempt from integration until unpinned."""
        self._require_initialized("pin")
        i = self._index[node_id]
        node = self._nodes[i]
        node.fx, node.fy = float(x), float(y)
        node.x, node.y = node.fx, node.fy
        node.vx = node.vy = 0.0
        self._pos[i] = (node.fx, node.fy)
        self._vel[i] = 0.0

    def unpin(self, node_id: str) -> None:
        self._require_initialized("unpin")
        node = self._nodes[self._index[node_id]]
        node.fx = None
        node.fy = None

    def is_pinned(self, node_id: str) -> bool:
        i = self._index.get(node_id)
        return i is not None and self._nodes[i].is_pinned

    # ------------------------------------------------------------------
    # Positions

    def position(self, node_id: str) -> tuple[float, float] | None:
        i = self._index.get(node_id)
        if i is None:
            return None
        return float(self._pos[i, 0]), float(self._pos[i, 1])

    def positions(self) -> dict[str, tuple[float, float]]:
        return {
            node.id: (float(self._pos[i, 0]), float(self._pos[i, 1]))
            for i, node in enumerate(self._nodes)
        }

    # ------------------------------------------------------------------
    # Stepping

    def tick(self, delta_time: float) -> int:
        """Advance by wall-clock time using a fixed timestep.

        Returns the number of integration steps performed (at most
        MAX_SUBSTEPS). Paused, converged or destroyed simulations do nothing.
        """
        if self.state == SimulationState.DESTROYED:
            return 0
        if self.state == SimulationState.UNINITIALIZED:
            raise SimulationStateError("Cannot tick: simulation is not initialized")
        if self.state == SimulationState.PAUSED or self.converged:
            self._accumulator = 0.0
            return 0

        self._accumulator += max(delta_time, 0.0)
        steps = 0
        while self._accumulator + 1e-9 >= FIXED_TIMESTEP and steps < MAX_SUBSTEPS:
            self.step()
            self._accumulator -= FIXED_TIMESTEP
            steps += 1
            if self.converged:
                break
        if steps == MAX_SUBSTEPS or self.converged:
            # Drop the backlog instead of spiralling after a long frame
            self._accumulator = 0.0
        return steps

    def step(self) -> None:
        """Run exactly one integration step."""
        self._require_initialized("step")
        n = len(self._nodes)
        if n == 0:
            self._decay_alpha()
            return

        force = np.zeros((n, 2))
        if n > 1:
            force += self._pairwise_forces()
        force += self._center_force()
        force += self._spring_force()

        pinned = np.array([node.is_pinned for node in self._nodes], dtype=bool)

        self._vel += force * self.alpha
        self._vel *= VELOCITY_DECAY
        self._pos += self._vel * STEP_SCALE

        if pinned.any():
            self._pos[pinned] = [(node.fx, node.fy) for node in self._nodes if node.is_pinned]
            self._vel[pinned] = 0.0

        self._decay_alpha()
        self._write_back()
        self.steps_taken += 1

    # ------------------------------------------------------------------
    # Internals

    def _decay_alpha(self) -> None:
        self.alpha += (self.alpha_target - self.alpha) * ALPHA_DECAY

    def _load(self, snapshot: GraphSnapshot) -> None:
        self._snapshot = snapshot
        self._nodes = list(snapshot.nodes)
        self._index = {node.id: i for i, node in enumerate(self._nodes)}
        self._pos = self._circle_layout(len(self._nodes))
        self._vel = np.zeros_like(self._pos)

        for i, node in enumerate(self._nodes):
            if node.is_pinned:
                self._pos[i] = (node.fx, node.fy)

        sources: list[int] = []
        targets: list[int] = []
        missing = 0
        for link in snapshot.links:
            s = self._index.get(link.source)
            t = self._index.get(link.target)
            if s is None or t is None:
                missing += 1
                continue
            sources.append(s)
            targets.append(t)
        if missing:
            logger.debug(f"Ignoring {missing} links with a missing endpoint")
        self._link_source = np.array(sources, dtype=np.intp)
        self._link_target = np.array(targets, dtype=np.intp)

        self.alpha = 1.0
        self._accumulator = 0.0
        self._write_back()

    def _circle_layout(self, n: int) -> np.ndarray:
        """Nodes evenly spaced on a circle around the centre, lightly jittered."""
        cx, cy = self.center
        if n == 0:
            return np.zeros((0, 2))
        if n == 1:
            return np.array([[cx, cy]], dtype=np.float64)

        radius = LAYOUT_RADIUS_RATIO * min(cx, cy)
        # Keep neighbours apart on crowded circles
        min_spacing = MIN_LAYOUT_SPACING * self.settings.node_size
        radius = max(radius, min_spacing / (2.0 * math.sin(math.pi / n)))

        angles = 2.0 * math.pi * np.arange(n) / n
        pos = np.column_stack((cx + radius * np.cos(angles), cy + radius * np.sin(angles)))
        pos += self._rng.uniform(-0.5, 0.5, size=pos.shape)
        return pos

    def _neighbour_pairs(self, radius: float) -> tuple[np.ndarray, np.ndarray]:
        """Unordered index pairs closer than ``radius``.

        Nodes are bucketed into a uniform grid of ``radius``-sized cells, so
        only pairs in the same or adjacent cells are ever measured.
        """
        cells = np.floor(self._pos / radius).astype(np.int64)
        buckets: dict[tuple[int, int], list[int]] = {}
        for i, (cx, cy) in enumerate(cells.tolist()):
            buckets.setdefault((cx, cy), []).append(i)

        left: list[np.ndarray] = []
        right: list[np.ndarray] = []
        for (cx, cy), members in buckets.items():
            here = np.array(members, dtype=np.intp)
            if len(here) > 1:
                a, b = np.triu_indices(len(here), 1)
                left.append(here[a])
                right.append(here[b])
            for dx, dy in HALF_NEIGHBOURHOOD:
                others = buckets.get((cx + dx, cy + dy))
                if others is None:
                    continue
                there = np.array(others, dtype=np.intp)
                left.append(np.repeat(here, len(there)))
                right.append(np.tile(there, len(here)))

        if not left:
            empty = np.zeros(0, dtype=np.intp)
            return empty, empty
        i = np.concatenate(left)
        j = np.concatenate(right)
        delta = self._pos[j] - self._pos[i]
        close = np.hypot(delta[:, 0], delta[:, 1]) < radius
        return i[close], j[close]

    def _pairwise_forces(self) -> np.ndarray:
        """Repulsion and collision for node pairs within the interaction radius."""
        n = len(self._nodes)
        force = np.zeros((n, 2))
        collide_distance = 2.0 * self.settings.node_size
        i, j = self._neighbour_pairs(max(self.max_interaction_distance, collide_distance))
        if len(i) == 0:
            return force

        # delta points from node i to node j
        delta = self._pos[j] - self._pos[i]
        dist = np.hypot(delta[:, 0], delta[:, 1])

        coincident = dist < COINCIDENT_EPSILON
        if coincident.any():
            angles = (i[coincident] * n + j[coincident]) * GOLDEN_ANGLE
            delta[coincident] = np.column_stack((np.cos(angles), np.sin(angles)))
            dist[coincident] = 1.0

        unit = delta / dist[:, np.newaxis]
        repulsion = np.where(
            dist < self.max_interaction_distance, self.settings.repulsion_force / dist ** 2, 0.0
        )
        collision = np.where(dist < collide_distance, (collide_distance - dist) / 2.0, 0.0)

        push = unit * (repulsion + collision)[:, np.newaxis]
        np.add.at(force, i, -push)
        np.add.at(force, j, push)
        return force

    def _center_force(self) -> np.ndarray:
        cx, cy = self.center
        strength = self.settings.center_force * CENTER_SCALE
        return (np.array([cx, cy]) - self._pos) * strength

    def _spring_force(self) -> np.ndarray:
        force = np.zeros_like(self._pos)
        if len(self._link_source) == 0:
            return force
        delta = self._pos[self._link_target] - self._pos[self._link_source]
        dist = np.hypot(delta[:, 0], delta[:, 1])
        dist = np.where(dist > COINCIDENT_EPSILON, dist, 1.0)
        magnitude = (dist - self.settings.link_distance) * SPRING_STRENGTH
        pull = delta / dist[:, np.newaxis] * magnitude[:, np.newaxis]
        np.add.at(force, self._link_source, pull)
        np.add.at(force, self._link_target, -pull)
        return force

    def _write_back(self) -> None:
        for i, node in enumerate(self._nodes):
            node.x = float(self._pos[i, 0])
            node.y = float(self._pos[i, 1])
            node.vx = float(self._vel[i, 0])
            node.vy = float(self._vel[i, 1])
