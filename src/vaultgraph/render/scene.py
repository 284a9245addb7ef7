"""Renderer-facing scene: everything a frame needs, already resolved.

A ``Scene`` is built once per frame from the current snapshot. Renderers
draw it as-is and never look up settings or nodes themselves.
"""

from dataclasses import dataclass, field

from vaultgraph.graph.links import effective_thickness
from vaultgraph.graph.settings import GraphSettings
from vaultgraph.graph.similarity import similarity_hue
from vaultgraph.interaction.camera import Camera
from vaultgraph.interaction.hit_test import node_radius
from vaultgraph.models.graph import GraphSnapshot, LinkKind, NodeKind

LABEL_MIN_ZOOM = 0.5
HOVER_SCALE = 1.2


@dataclass
class SceneNode:
    id: str
    label: str
    kind: NodeKind
    x: float
    y: float
    radius: float
    has_embedding: bool = False
    pinned: bool = False
    hovered: bool = False
    selected: bool = False
    show_label: bool = False


@dataclass
class SceneLink:
    id: str
    kind: LinkKind
    x1: float
    y1: float
    x2: float
    y2: float
    thickness: float
    similarity: float | None = None
    hue: float | None = None  # None means neutral colour
    selected: bool = False


@dataclass
class Scene:
    """One frame worth of drawable data in world coordinates."""

    nodes: list[SceneNode] = field(default_factory=list)
    links: list[SceneLink] = field(default_factory=list)
    camera_x: float = 0.0
    camera_y: float = 0.0
    zoom: float = 1.0

    @property
    def zoom_label(self) -> str:
        return f"Zoom: {self.zoom * 100:.0f}%"


def build_scene(
    snapshot: GraphSnapshot | None,
    settings: GraphSettings,
    camera: Camera,
    hovered_node_id: str | None = None,
    selected_node_id: str | None = None,
    selected_link_id: str | None = None,
) -> Scene:
    """Resolve visible nodes and links of ``snapshot`` for drawing.

    Hidden nodes are left out, as are links with a hidden or missing endpoint.
    """
    scene = Scene(camera_x=camera.x, camera_y=camera.y, zoom=camera.zoom)
    if snapshot is None:
        return scene

    for link in snapshot.links:
        endpoints = snapshot.endpoints(link)
        if endpoints is None:
            continue
        source, target = endpoints
        if not (source.visible and target.visible):
            continue
        scene.links.append(SceneLink(
            id=link.id,
            kind=link.kind,
            x1=source.x,
            y1=source.y,
            x2=target.x,
            y2=target.y,
            thickness=effective_thickness(link, settings),
            similarity=link.similarity,
            hue=similarity_hue(link.similarity) if link.similarity is not None else None,
            selected=link.id == selected_link_id,
        ))

    for node in snapshot.nodes:
        if not node.visible:
            continue
        hovered = node.id == hovered_node_id
        selected = node.id == selected_node_id
        radius = node_radius(node, settings.node_size)
        if hovered:
            radius *= HOVER_SCALE
        scene.nodes.append(SceneNode(
            id=node.id,
            label=node.display_name,
            kind=node.kind,
            x=node.x,
            y=node.y,
            radius=radius,
            has_embedding=node.embedding is not None,
            pinned=node.is_pinned,
            hovered=hovered,
            selected=selected,
            show_label=hovered or selected or camera.zoom > LABEL_MIN_ZOOM,
        ))

    return scene
