"""Interaction layer: hit-testing, camera and pointer controller."""

from vaultgraph.interaction.camera import Camera
from vaultgraph.interaction.controller import DragState, InteractionController, Selection
from vaultgraph.interaction.hit_test import distance_to_segment, link_at, node_at, node_radius

__all__ = [
    "Camera",
    "DragState",
    "InteractionController",
    "Selection",
    "distance_to_segment",
    "link_at",
    "node_at",
    "node_radius",
]
