"""Graph construction: settings, similarity, link derivation and the model.

Provides:
- Immutable graph settings with JSON persistence
- Cosine similarity and thickness mapping
- Explicit-reference, semantic-similarity and tag link building
- The graph model holding the current snapshot
"""

from vaultgraph.graph.links import LinkBuilder, ReferenceResolver, effective_thickness
from vaultgraph.graph.model import GraphFilters, GraphModel
from vaultgraph.graph.settings import GraphSettings, load_graph_settings, save_graph_settings
from vaultgraph.graph.similarity import cosine_similarity, similarity_hue, thickness_from_similarity
from vaultgraph.graph.tags import normalize_tag, parse_ai_tags, parse_ai_tags_strict

__all__ = [
    # Settings
    "GraphSettings",
    "load_graph_settings",
    "save_graph_settings",
    # Similarity
    "cosine_similarity",
    "similarity_hue",
    "thickness_from_similarity",
    # Tags
    "normalize_tag",
    "parse_ai_tags",
    "parse_ai_tags_strict",
    # Links
    "LinkBuilder",
    "ReferenceResolver",
    "effective_thickness",
    # Model
    "GraphFilters",
    "GraphModel",
]
