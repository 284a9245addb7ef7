"""Immutable graph settings snapshot and its JSON persistence.

Every component receives a ``GraphSettings`` instance per operation instead of
holding a live mutable reference. A settings change means building a new
snapshot (``model_copy``) and pushing it explicitly to the model, the
simulation and the interaction layer.
"""

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)

# Fields whose change requires a structural rebuild of the graph
LINK_FIELDS = ("use_embedding_linking", "similarity_threshold", "show_tags")

# Fields the force simulation reads
FORCE_FIELDS = ("node_size", "link_distance", "repulsion_force", "center_force")


class GraphSettings(BaseModel):
    """User-tunable graph parameters."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Physics
    node_size: float = Field(default=5.0, gt=0)
    link_distance: float = Field(default=100.0, gt=0)
    repulsion_force: float = Field(default=300.0, ge=0)
    center_force: float = Field(default=0.3, ge=0)

    # Link appearance
    default_link_thickness: float = Field(default=1.0, gt=0)
    min_link_thickness: float = Field(default=0.5, gt=0)
    max_link_thickness: float = Field(default=8.0, gt=0)

    # Link derivation
    similarity_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Minimum cosine similarity for a semantic link (inclusive)"
    )
    use_embedding_linking: bool = Field(
        default=False,
        description="Derive document links from embeddings instead of references"
    )
    show_tags: bool = False

    # Per-link thickness overrides keyed by link id
    link_thickness: dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_thickness_range(self) -> "GraphSettings":
        if self.max_link_thickness < self.min_link_thickness:
            raise ValueError("max_link_thickness must be >= min_link_thickness")
        return self

    def with_link_thickness(self, link_id: str, thickness: float) -> "GraphSettings":
        """New snapshot with a thickness override for one link."""
        if thickness <= 0:
            raise ValueError("thickness must be positive")
        overrides = {**self.link_thickness, link_id: float(thickness)}
        return self.model_copy(update={"link_thickness": overrides})

    def without_link_thickness(self, link_id: str) -> "GraphSettings":
        """New snapshot with one override removed ("reset to auto")."""
        overrides = {k: v for k, v in self.link_thickness.items() if k != link_id}
        return self.model_copy(update={"link_thickness": overrides})

    def reset_link_thickness(self) -> "GraphSettings":
        """New snapshot with every override removed."""
        return self.model_copy(update={"link_thickness": {}})

    def affects_links(self, other: "GraphSettings") -> bool:
        """True if switching to ``other`` changes the derived link set."""
        return any(getattr(self, f) != getattr(other, f) for f in LINK_FIELDS)

    def affects_forces(self, other: "GraphSettings") -> bool:
        """True if switching to ``other`` changes the simulation forces."""
        return any(getattr(self, f) != getattr(other, f) for f in FORCE_FIELDS)


def load_graph_settings(path: Path) -> GraphSettings:
    """Load settings from a JSON file.

    Missing files yield defaults. Unreadable or invalid files are logged and
    also yield defaults, so a corrupt file never blocks opening the graph.
    Both a flat object and the plugin layout ``{"settings": {...}}`` are
    accepted; unknown keys are ignored.
    """
    path = Path(path)
    if not path.exists():
        return GraphSettings()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Could not read graph settings from {path}: {e}")
        return GraphSettings()

    if isinstance(data, dict) and isinstance(data.get("settings"), dict):
        data = data["settings"]
    if not isinstance(data, dict):
        logger.warning(f"Graph settings in {path} are not an object, using defaults")
        return GraphSettings()

    try:
        return GraphSettings.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Invalid graph settings in {path}, using defaults: {e}")
        return GraphSettings()


def save_graph_settings(graph_settings: GraphSettings, path: Path) -> None:
    """Write settings as JSON, replacing the file atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(
        json.dumps(graph_settings.model_dump(mode="json"), indent=2, sort_keys=True),
        encoding="utf-8",
    )
    os.replace(tmp_path, path)
    logger.debug(f"Saved graph settings to {path}")
