"""vaultgraph data models."""

from vaultgraph.models.document import AI_TAGS_FIELD, Document
from vaultgraph.models.graph import TAG_MARKER, GraphSnapshot, Link, LinkKind, Node, NodeKind

__all__ = [
    "AI_TAGS_FIELD",
    "Document",
    "TAG_MARKER",
    "GraphSnapshot",
    "Link",
    "LinkKind",
    "Node",
    "NodeKind",
]
