"""Scene snapshots consumed by external renderers."""

from vaultgraph.render.scene import Scene, SceneLink, SceneNode, build_scene

__all__ = ["Scene", "SceneLink", "SceneNode", "build_scene"]
