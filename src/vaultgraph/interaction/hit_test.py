"""Pointer hit-testing against nodes and links in world coordinates."""

import math
from collections.abc import Iterable

from vaultgraph.models.graph import GraphSnapshot, Link, Node, NodeKind

TAG_SIZE_STEP = 0.1  # Extra radius fraction per tagged document
MAX_TAG_SCALE = 2.0


def node_radius(node: Node, node_size: float) -> float:
    """Drawn radius of a node: tags grow with the number of tagged documents."""
    if node.kind == NodeKind.TAG:
        return node_size * min(1.0 + TAG_SIZE_STEP * node.tag_connection_count, MAX_TAG_SCALE)
    return node_size


def node_at(
    nodes: Iterable[Node],
    x: float,
    y: float,
    node_size: float,
    padding: float = 0.0,
) -> Node | None:
    """Closest visible node whose drawn circle, grown by ``padding``, contains (x, y)."""
    best: Node | None = None
    best_dist = math.inf
    for node in nodes:
        if not node.visible:
            continue
        reach = node_radius(node, node_size) + padding
        dist = (node.x - x) ** 2 + (node.y - y) ** 2
        if dist <= reach * reach and dist <= best_dist:
            best = node
            best_dist = dist
    return best


def distance_to_segment(
    px: float, py: float,
    x1: float, y1: float,
    x2: float, y2: float,
) -> float:
    """Euclidean distance from point P to segment (x1, y1)-(x2, y2)."""
    dx = x2 - x1
    dy = y2 - y1
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return math.hypot(px - x1, py - y1)

    # Projection parameter clamped onto the segment
    t = ((px - x1) * dx + (py - y1) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(px - (x1 + t * dx), py - (y1 + t * dy))


def link_at(snapshot: GraphSnapshot, x: float, y: float, tolerance: float) -> Link | None:
    """Closest visible link within ``tolerance`` of (x, y).

    Links with a missing or hidden endpoint are never hit.
    """
    best: Link | None = None
    best_dist = tolerance
    for link in snapshot.links:
        endpoints = snapshot.endpoints(link)
        if endpoints is None:
            continue
        source, target = endpoints
        if not (source.visible and target.visible):
            continue
        dist = distance_to_segment(x, y, source.x, source.y, target.x, target.y)
        if dist <= best_dist:
            best = link
            best_dist = dist
    return best
