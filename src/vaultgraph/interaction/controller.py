"""Pointer interaction: hover, drag, pan, click, selection.

All pointer coordinates are screen coordinates; they are mapped to world
coordinates through the camera before hit-testing.

Drag state machine::

    IDLE --down on node--> PRESSED --move >= threshold--> DRAGGING --up--> IDLE
    IDLE --down on background--> PANNING --up--> IDLE
    PRESSED --up--> IDLE (click)

A released node stays pinned where it was dropped. Double-clicking a pinned
node unpins it so it rejoins the simulation.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from vaultgraph.graph.links import effective_thickness
from vaultgraph.graph.settings import GraphSettings
from vaultgraph.interaction.camera import Camera
from vaultgraph.interaction.hit_test import link_at, node_at
from vaultgraph.interfaces import DocumentOpener
from vaultgraph.models.graph import GraphSnapshot, Link, Node, NodeKind
from vaultgraph.simulation.force_simulation import ForceSimulation, SimulationState

logger = logging.getLogger(__name__)

DRAG_THRESHOLD = 3.0  # Screen pixels before a press becomes a drag
NODE_HIT_PADDING = 5.0  # World units beyond node_size
LINK_HIT_TOLERANCE = 10.0  # Screen pixels
DRAG_ALPHA_TARGET = 0.3


class DragState(str, Enum):
    """Pointer gesture in progress."""

    IDLE = "idle"
    PRESSED = "pressed"  # Pointer down on a node, not moved yet
    DRAGGING = "dragging"
    PANNING = "panning"


@dataclass
class Selection:
    """Currently selected node or link (at most one of them)."""

    node_id: str | None = None
    link_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.node_id is None and self.link_id is None


class InteractionController:
    """Translates pointer events into simulation pins, camera moves and selection."""

    def __init__(
        self,
        simulation: ForceSimulation,
        camera: Camera,
        settings: GraphSettings,
        opener: DocumentOpener | None = None,
    ) -> None:
        self.simulation = simulation
        self.camera = camera
        self.settings = settings
        self.opener = opener

        self.state = DragState.IDLE
        self.selection = Selection()
        self.hovered_node_id: str | None = None

        self._drag_node_id: str | None = None
        self._grab_offset = (0.0, 0.0)
        self._press = (0.0, 0.0)
        self._last = (0.0, 0.0)
        self._moved = False

    # ------------------------------------------------------------------
    # Lookups

    @property
    def snapshot(self) -> GraphSnapshot | None:
        if self.simulation.state == SimulationState.DESTROYED:
            return None
        return self.simulation.snapshot

    def node_at_screen(self, x: float, y: float) -> Node | None:
        snapshot = self.snapshot
        if snapshot is None:
            return None
        wx, wy = self.camera.screen_to_world(x, y)
        return node_at(snapshot.nodes, wx, wy, self.settings.node_size, NODE_HIT_PADDING)

    def link_at_screen(self, x: float, y: float) -> Link | None:
        snapshot = self.snapshot
        if snapshot is None:
            return None
        wx, wy = self.camera.screen_to_world(x, y)
        return link_at(snapshot, wx, wy, LINK_HIT_TOLERANCE / self.camera.zoom)

    def update_settings(self, settings: GraphSettings) -> None:
        self.settings = settings

    # ------------------------------------------------------------------
    # Pointer events

    def pointer_down(self, x: float, y: float) -> None:
        self._press = (x, y)
        self._last = (x, y)
        self._moved = False

        node = self.node_at_screen(x, y)
        if node is not None:
            wx, wy = self.camera.screen_to_world(x, y)
            self._drag_node_id = node.id
            self._grab_offset = (node.x - wx, node.y - wy)
            self.state = DragState.PRESSED
        else:
            self._drag_node_id = None
            self.state = DragState.PANNING

    def pointer_move(self, x: float, y: float) -> None:
        if self.state == DragState.IDLE:
            node = self.node_at_screen(x, y)
            self.hovered_node_id = node.id if node else None
            return

        if math.hypot(x - self._press[0], y - self._press[1]) >= DRAG_THRESHOLD:
            self._moved = True

        if self.state == DragState.PRESSED:
            if not self._moved:
                return
            self._start_drag()

        if self.state == DragState.DRAGGING:
            self._drag_to(x, y)
        elif self.state == DragState.PANNING:
            self.camera.pan(x - self._last[0], y - self._last[1])
        self._last = (x, y)

    def pointer_up(self, x: float, y: float) -> None:
        state = self.state
        if state == DragState.DRAGGING:
            self._drag_to(x, y)
            self._end_drag()
        elif state == DragState.PRESSED:
            self._reset_gesture()
            self.click(x, y)
        elif state == DragState.PANNING:
            self._reset_gesture()
            if not self._moved:
                self.click(x, y)

    def pointer_leave(self) -> None:
        """Pointer left the viewport: finish any gesture without clicking."""
        if self.state == DragState.DRAGGING:
            self._end_drag()
        else:
            self._reset_gesture()
        self.hovered_node_id = None

    def click(self, x: float, y: float) -> Selection:
        """Select the node or link under the pointer, or clear the selection."""
        node = self.node_at_screen(x, y)
        if node is not None:
            self.selection = Selection(node_id=node.id)
            if node.kind == NodeKind.DOCUMENT and self.opener is not None:
                self.opener.open_document(node.id)
            return self.selection

        link = self.link_at_screen(x, y)
        if link is not None:
            self.selection = Selection(link_id=link.id)
        else:
            self.selection = Selection()
        return self.selection

    def double_click(self, x: float, y: float) -> bool:
        """Unpin the node under the pointer. Returns True if one was released."""
        node = self.node_at_screen(x, y)
        if node is None or not self.simulation.is_pinned(node.id):
            return False
        self.simulation.unpin(node.id)
        self.simulation.reheat()
        logger.debug(f"Unpinned {node.id}")
        return True

    def wheel(self, delta_y: float, x: float, y: float) -> None:
        self.camera.wheel(delta_y, x, y)

    def clear_selection(self) -> None:
        self.selection = Selection()

    # ------------------------------------------------------------------
    # Details

    def selected_link_details(self) -> dict[str, Any] | None:
        """Similarity, thickness and endpoint names of the selected link."""
        snapshot = self.snapshot
        if snapshot is None or self.selection.link_id is None:
            return None
        link = snapshot.link(self.selection.link_id)
        if link is None:
            return None
        endpoints = snapshot.endpoints(link)
        if endpoints is None:
            return None
        source, target = endpoints
        return {
            "id": link.id,
            "kind": link.kind.value,
            "similarity": link.similarity,
            "thickness": effective_thickness(link, self.settings),
            "has_override": link.id in self.settings.link_thickness,
            "source": source.display_name,
            "target": target.display_name,
        }

    # ------------------------------------------------------------------
    # Internals

    def _start_drag(self) -> None:
        self.state = DragState.DRAGGING
        self.simulation.set_alpha_target(DRAG_ALPHA_TARGET)
        self.simulation.reheat(DRAG_ALPHA_TARGET)

    def _drag_to(self, x: float, y: float) -> None:
        if self._drag_node_id is None or self._drag_node_id not in (self.snapshot or ()):
            return
        wx, wy = self.camera.screen_to_world(x, y)
        self.simulation.pin(self._drag_node_id, wx + self._grab_offset[0], wy + self._grab_offset[1])

    def _end_drag(self) -> None:
        if self.simulation.state != SimulationState.DESTROYED:
            self.simulation.set_alpha_target(0.0)
        self._reset_gesture()

    def _reset_gesture(self) -> None:
        self.state = DragState.IDLE
        self._drag_node_id = None
        self._grab_offset = (0.0, 0.0)
