"""Graph nodes, links and the snapshot that pairs them."""

from dataclasses import dataclass, field
from enum import Enum

TAG_MARKER = "#"


class NodeKind(str, Enum):
    """What a node stands for."""

    DOCUMENT = "document"
    TAG = "tag"


class LinkKind(str, Enum):
    """How a link was derived."""

    EXPLICIT_REFERENCE = "explicit_reference"  # [[wiki-link]] or markdown link
    SEMANTIC_SIMILARITY = "semantic_similarity"  # Embedding cosine >= threshold
    TAG_MEMBERSHIP = "tag_membership"  # Document carries the tag


@dataclass
class Node:
    """
    A graph vertex: a document or a tag.

    Position and velocity belong to the force simulation once it has started.
    ``fx``/``fy`` pin the node (drag or lock) and exempt it from integration.
    """

    id: str
    display_name: str
    kind: NodeKind = NodeKind.DOCUMENT

    # Physics state
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    fx: float | None = None
    fy: float | None = None

    # Document nodes only
    embedding: list[float] | None = None
    is_attachment: bool = False
    exists: bool = True

    # Tag nodes only
    tag_connection_count: int = 0

    visible: bool = True

    @property
    def is_tag(self) -> bool:
        return self.kind == NodeKind.TAG

    @property
    def is_pinned(self) -> bool:
        return self.fx is not None and self.fy is not None

    def to_dict(self) -> dict:
        """Convert to a renderer/JSON friendly dictionary."""
        return {
            "id": self.id,
            "name": self.display_name,
            "kind": self.kind.value,
            "x": self.x,
            "y": self.y,
            "pinned": self.is_pinned,
            "has_embedding": self.embedding is not None,
            "tag_connection_count": self.tag_connection_count,
            "visible": self.visible,
        }


@dataclass
class Link:
    """An edge between two node ids (never node objects)."""

    id: str
    source: str
    target: str
    kind: LinkKind
    similarity: float | None = None  # Semantic links only
    thickness: float | None = None

    def to_dict(self) -> dict:
        """Convert to a renderer/JSON friendly dictionary."""
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "kind": self.kind.value,
            "similarity": self.similarity,
            "thickness": self.thickness,
        }


@dataclass(frozen=True)
class GraphSnapshot:
    """
    The full node set and link set of one graph build.

    Replacing the snapshot is the only way to change the graph structure.
    Nodes are looked up by id through an index built once at construction.
    """

    nodes: tuple[Node, ...] = ()
    links: tuple[Link, ...] = ()
    _index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: dict[str, int] = {}
        for i, node in enumerate(self.nodes):
            if node.id in index:
                raise ValueError(f"Duplicate node id in snapshot: {node.id}")
            index[node.id] = i
        object.__setattr__(self, "_index", index)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def __len__(self) -> int:
        return len(self.nodes)

    def index_of(self, node_id: str) -> int | None:
        """Position of a node in ``nodes`` or None."""
        return self._index.get(node_id)

    def node(self, node_id: str) -> Node | None:
        """Look up a node by id."""
        i = self._index.get(node_id)
        return self.nodes[i] if i is not None else None

    def link(self, link_id: str) -> Link | None:
        """Look up a link by id (linear scan)."""
        for link in self.links:
            if link.id == link_id:
                return link
        return None

    def endpoints(self, link: Link) -> tuple[Node, Node] | None:
        """Resolve both endpoints of a link, or None if either is missing."""
        source = self.node(link.source)
        target = self.node(link.target)
        if source is None or target is None:
            return None
        return source, target

    @property
    def node_ids(self) -> set[str]:
        return set(self._index)

    @property
    def link_ids(self) -> set[str]:
        return {link.id for link in self.links}

    @property
    def document_nodes(self) -> list[Node]:
        return [n for n in self.nodes if n.kind == NodeKind.DOCUMENT]

    @property
    def tag_nodes(self) -> list[Node]:
        return [n for n in self.nodes if n.kind == NodeKind.TAG]

    def linked_node_ids(self) -> set[str]:
        """Ids of nodes that touch at least one link."""
        linked: set[str] = set()
        for link in self.links:
            linked.add(link.source)
            linked.add(link.target)
        return linked

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON export."""
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [link.to_dict() for link in self.links],
        }
