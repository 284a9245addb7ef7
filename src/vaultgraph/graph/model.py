"""Graph model - owns the current snapshot and its view-level visibility."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from vaultgraph.graph.links import LinkBuilder, Resolver
from vaultgraph.graph.settings import GraphSettings
from vaultgraph.interfaces import EmbeddingCache
from vaultgraph.models.document import Document
from vaultgraph.models.graph import TAG_MARKER, GraphSnapshot, Link, Node, NodeKind

logger = logging.getLogger(__name__)

NodePredicate = Callable[[Node], bool]


@dataclass
class GraphFilters:
    """View filters applied on top of a snapshot without rebuilding it."""

    search_query: str = ""
    show_orphans: bool = True
    show_attachments: bool = False
    existing_files_only: bool = True

    def predicate(self, snapshot: GraphSnapshot) -> NodePredicate:
        """Visibility predicate for the nodes of ``snapshot``."""
        query = self.search_query.strip().lower()
        linked = snapshot.linked_node_ids()

        def is_visible(node: Node) -> bool:
            if query and query not in node.display_name.lower() and query not in node.id.lower():
                return False
            if not self.show_orphans and node.id not in linked:
                return False
            if node.kind == NodeKind.TAG:
                return True
            if node.is_attachment and not self.show_attachments:
                return False
            if self.existing_files_only and not node.exists:
                return False
            return True

        return is_visible


class GraphModel:
    """
    Builds snapshots and holds the current one.

    ``snapshot`` is replaced in one assignment at the end of ``rebuild`` so
    readers never see a partially built graph.
    """

    def __init__(self, embedding_cache: EmbeddingCache | None = None) -> None:
        self.embedding_cache = embedding_cache
        self.snapshot: GraphSnapshot | None = None

    def _cached_embedding(self, document_id: str) -> list[float] | None:
        if self.embedding_cache is None:
            return None
        try:
            return self.embedding_cache.get_cached_embedding(document_id)
        except Exception as e:
            logger.warning(f"Embedding cache lookup failed for {document_id}: {e}")
            return None

    def rebuild(
        self,
        documents: Sequence[Document],
        settings: GraphSettings,
        resolver: Resolver | None = None,
    ) -> GraphSnapshot:
        """Build a fresh snapshot from documents and a settings snapshot."""
        nodes: list[Node] = []
        kept: list[Document] = []
        seen: set[str] = set()

        for doc in documents:
            if doc.id.startswith(TAG_MARKER):
                raise ValueError(f"Document id must not start with '{TAG_MARKER}': {doc.id}")
            if doc.id in seen:
                logger.warning(f"Duplicate document id ignored: {doc.id}")
                continue
            seen.add(doc.id)
            kept.append(doc)
            nodes.append(Node(
                id=doc.id,
                display_name=doc.display_name,
                kind=NodeKind.DOCUMENT,
                embedding=self._cached_embedding(doc.id),
                is_attachment=doc.is_attachment,
                exists=doc.exists,
            ))

        builder = LinkBuilder(settings)
        links: list[Link] = builder.build(kept, nodes, resolver)

        if settings.show_tags:
            tag_nodes, tag_links = builder.build_tag_graph(kept)
            nodes.extend(tag_nodes)
            links.extend(tag_links)

        snapshot = GraphSnapshot(nodes=tuple(nodes), links=tuple(links))
        logger.info(
            f"Rebuilt graph: {len(snapshot.document_nodes)} documents, "
            f"{len(snapshot.tag_nodes)} tags, {len(snapshot.links)} links"
        )
        self.snapshot = snapshot
        return snapshot

    def apply_visibility(self, predicate: NodePredicate) -> int:
        """Flag nodes visible or hidden. Returns the number of hidden nodes."""
        if self.snapshot is None:
            return 0
        hidden = 0
        for node in self.snapshot.nodes:
            node.visible = bool(predicate(node))
            if not node.visible:
                hidden += 1
        return hidden

    def apply_filters(self, filters: GraphFilters) -> int:
        if self.snapshot is None:
            return 0
        return self.apply_visibility(filters.predicate(self.snapshot))

    def is_link_visible(self, link: Link) -> bool:
        """A link is visible only when both endpoints exist and are visible."""
        if self.snapshot is None:
            return False
        endpoints = self.snapshot.endpoints(link)
        if endpoints is None:
            return False
        source, target = endpoints
        return source.visible and target.visible

    def visible_links(self) -> list[Link]:
        if self.snapshot is None:
            return []
        return [link for link in self.snapshot.links if self.is_link_visible(link)]

    def invalidate(self) -> None:
        """Drop the current snapshot."""
        self.snapshot = None
