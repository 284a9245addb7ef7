"""Link derivation: explicit references, semantic similarity and tags.

All links carry a kind-prefixed deterministic id so that identical inputs
always produce identical id sets and links of different kinds never collide.
"""

import logging
import re
from collections.abc import Callable, Iterable, Sequence

import numpy as np

from vaultgraph.errors import DimensionMismatchError
from vaultgraph.graph.settings import GraphSettings
from vaultgraph.graph.similarity import cosine_similarity, thickness_from_similarity
from vaultgraph.graph.tags import collect_tags
from vaultgraph.models.document import Document
from vaultgraph.models.graph import Link, LinkKind, Node, NodeKind

logger = logging.getLogger(__name__)

# Resolves a raw reference found in source_id to a document id, or None
Resolver = Callable[[str, str], str | None]

# [[target#section|alias]] -> target
WIKILINK_PATTERN = re.compile(r"^\[\[(.+?)\]\]$")


def reference_link_id(source: str, target: str) -> str:
    return f"ref:{source}->{target}"


def similarity_link_id(a: str, b: str) -> str:
    first, second = sorted((a, b))
    return f"sim:{first}<->{second}"


def tag_link_id(document_id: str, tag: str) -> str:
    return f"tag:{document_id}->{tag}"


def _strip_extension(name: str) -> str:
    base = name.rsplit("/", 1)[-1]
    return base.rsplit(".", 1)[0] if "." in base else base


class ReferenceResolver:
    """
    Resolve raw link text to a document id from a fixed id set.

    Resolution order: exact id, id with ``.md`` appended, then a
    case-insensitive match on the file name without extension. When several
    documents share a name the shortest path wins, then the lexicographically
    smallest one.
    """

    def __init__(self, document_ids: Iterable[str]) -> None:
        self._ids = set(document_ids)
        self._by_basename: dict[str, list[str]] = {}
        for doc_id in self._ids:
            self._by_basename.setdefault(_strip_extension(doc_id).lower(), []).append(doc_id)
        for candidates in self._by_basename.values():
            candidates.sort(key=lambda p: (len(p), p))

    @staticmethod
    def clean(reference: str) -> str:
        """Strip wiki-link brackets, section anchors and aliases."""
        text = reference.strip()
        match = WIKILINK_PATTERN.match(text)
        if match:
            text = match.group(1)
        text = text.split("|", 1)[0]
        text = text.split("#", 1)[0]
        return text.strip()

    def resolve(self, reference: str, source_id: str = "") -> str | None:
        target = self.clean(reference)
        if not target:
            return None
        if target in self._ids:
            return target
        if f"{target}.md" in self._ids:
            return f"{target}.md"
        candidates = self._by_basename.get(_strip_extension(target).lower())
        if candidates:
            return candidates[0]
        return None

    def __call__(self, reference: str, source_id: str = "") -> str | None:
        return self.resolve(reference, source_id)


class LinkBuilder:
    """Builds the link set of one snapshot from a settings snapshot."""

    def __init__(self, settings: GraphSettings) -> None:
        self.settings = settings

    def build_reference_links(
        self,
        documents: Sequence[Document],
        node_ids: set[str],
        resolver: Resolver | None = None,
    ) -> list[Link]:
        """One ExplicitReference link per resolvable (source, target) pair."""
        if resolver is None:
            resolver = ReferenceResolver(doc.id for doc in documents if doc.id in node_ids)

        links: dict[str, Link] = {}
        unresolved = 0
        for doc in documents:
            if doc.id not in node_ids:
                continue
            for reference in doc.outbound_references:
                target = resolver(reference, doc.id)
                if target is None or target not in node_ids:
                    unresolved += 1
                    continue
                if target == doc.id:
                    continue
                link_id = reference_link_id(doc.id, target)
                if link_id not in links:
                    links[link_id] = Link(
                        id=link_id,
                        source=doc.id,
                        target=target,
                        kind=LinkKind.EXPLICIT_REFERENCE,
                        thickness=self.settings.default_link_thickness,
                    )

        if unresolved:
            logger.debug(f"Skipped {unresolved} unresolved references")
        return list(links.values())

    def build_similarity_links(self, nodes: Sequence[Node]) -> list[Link]:
        """Pairwise cosine similarity over document nodes with embeddings.

        Documents without an embedding are left out of the pairing. The pair
        loop is O(n^2) and dominates rebuild time on large collections.
        """
        candidates = [
            n for n in nodes
            if n.kind == NodeKind.DOCUMENT and n.embedding is not None
        ]
        skipped = len([n for n in nodes if n.kind == NodeKind.DOCUMENT]) - len(candidates)
        if skipped:
            logger.debug(f"{skipped} documents have no embedding and are not paired")

        vectors = [np.asarray(n.embedding, dtype=np.float64) for n in candidates]
        threshold = self.settings.similarity_threshold
        links: list[Link] = []
        mismatches = 0

        for i in range(len(candidates)):
            for j in range(i + 1, len(candidates)):
                try:
                    similarity = cosine_similarity(vectors[i], vectors[j])
                except DimensionMismatchError:
                    mismatches += 1
                    continue
                if similarity < threshold:
                    continue
                a, b = candidates[i].id, candidates[j].id
                links.append(Link(
                    id=similarity_link_id(a, b),
                    source=a,
                    target=b,
                    kind=LinkKind.SEMANTIC_SIMILARITY,
                    similarity=similarity,
                    thickness=thickness_from_similarity(
                        similarity,
                        threshold,
                        self.settings.min_link_thickness,
                        self.settings.max_link_thickness,
                    ),
                ))

        if mismatches:
            logger.warning(f"Skipped {mismatches} document pairs with mismatched embedding dimensions")
        logger.debug(
            f"Compared {len(candidates) * (len(candidates) - 1) // 2} pairs, "
            f"{len(links)} above threshold {threshold}"
        )
        return links

    def build_tag_graph(self, documents: Sequence[Document]) -> tuple[list[Node], list[Link]]:
        """Tag nodes (sorted by id) and one membership link per document/tag."""
        members: dict[str, set[str]] = {}
        links: list[Link] = []
        for doc in documents:
            for tag in collect_tags(doc.tags, doc.ai_tags_field):
                members.setdefault(tag, set()).add(doc.id)
                links.append(Link(
                    id=tag_link_id(doc.id, tag),
                    source=doc.id,
                    target=tag,
                    kind=LinkKind.TAG_MEMBERSHIP,
                    thickness=self.settings.default_link_thickness,
                ))

        tag_nodes = [
            Node(
                id=tag,
                display_name=tag,
                kind=NodeKind.TAG,
                tag_connection_count=len(members[tag]),
            )
            for tag in sorted(members)
        ]
        return tag_nodes, links

    def uses_semantic_links(self, nodes: Sequence[Node]) -> bool:
        """Semantic linking is on and at least one document has an embedding."""
        if not self.settings.use_embedding_linking:
            return False
        return any(n.kind == NodeKind.DOCUMENT and n.embedding is not None for n in nodes)

    def build(
        self,
        documents: Sequence[Document],
        nodes: Sequence[Node],
        resolver: Resolver | None = None,
    ) -> list[Link]:
        """Document-to-document links for the active strategy.

        Falls back to explicit references when semantic linking is enabled but
        no document has an embedding yet. Tag links are built separately by
        ``build_tag_graph`` since they add nodes as well.
        """
        if self.uses_semantic_links(nodes):
            return self.build_similarity_links(nodes)

        if self.settings.use_embedding_linking:
            logger.info("No embeddings cached, falling back to explicit reference links")
        node_ids = {n.id for n in nodes if n.kind == NodeKind.DOCUMENT}
        return self.build_reference_links(documents, node_ids, resolver)


def effective_thickness(link: Link, settings: GraphSettings) -> float:
    """Thickness to draw: per-link override, then the link's own, then the default."""
    override = settings.link_thickness.get(link.id)
    if override is not None:
        return override
    if link.thickness is not None:
        return link.thickness
    return settings.default_link_thickness
