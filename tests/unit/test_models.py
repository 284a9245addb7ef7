"""Unit tests for data models and the JSON document source."""

import json

import pytest

from vaultgraph.models import Document, GraphSnapshot, Link, LinkKind, Node, NodeKind
from vaultgraph.sources import JsonDocumentSource


class TestDocument:
    """Tests for Document model."""

    def test_from_dict_minimal(self) -> None:
        doc = Document.from_dict({"id": "notes/docker.md"})
        assert doc.display_name == "docker"
        assert doc.tags == []
        assert doc.exists
        assert not doc.is_attachment

    def test_round_trip(self) -> None:
        doc = Document(
            id="a.md",
            display_name="Alpha",
            tags=["#x"],
            outbound_references=["b"],
            frontmatter={"ai-tags": ["y"]},
            content="# Alpha",
        )
        assert Document.from_dict(doc.to_dict()) == doc

    def test_ai_tags_field(self) -> None:
        assert Document(id="a", display_name="a", frontmatter={"ai-tags": '["x"]'}).ai_tags_field == '["x"]'
        assert Document(id="a", display_name="a").ai_tags_field is None


class TestNode:
    """Tests for Node model."""

    def test_pinned(self) -> None:
        node = Node(id="a", display_name="a")
        assert not node.is_pinned
        node.fx, node.fy = 1.0, 2.0
        assert node.is_pinned

    def test_to_dict(self) -> None:
        data = Node(id="#x", display_name="#x", kind=NodeKind.TAG, tag_connection_count=3).to_dict()
        assert data["kind"] == "tag"
        assert data["tag_connection_count"] == 3
        assert data["has_embedding"] is False


class TestGraphSnapshot:
    """Tests for the snapshot container."""

    @pytest.fixture
    def snapshot(self) -> GraphSnapshot:
        nodes = (
            Node(id="a", display_name="a"),
            Node(id="b", display_name="b"),
            Node(id="#t", display_name="#t", kind=NodeKind.TAG),
        )
        links = (
            Link(id="ref:a->b", source="a", target="b", kind=LinkKind.EXPLICIT_REFERENCE),
            Link(id="ref:a->gone", source="a", target="gone", kind=LinkKind.EXPLICIT_REFERENCE),
        )
        return GraphSnapshot(nodes=nodes, links=links)

    def test_duplicate_ids_rejected(self) -> None:
        with pytest.raises(ValueError):
            GraphSnapshot(nodes=(Node(id="a", display_name="a"), Node(id="a", display_name="a")))

    def test_lookup(self, snapshot) -> None:
        assert snapshot.node("b").id == "b"
        assert snapshot.node("nope") is None
        assert snapshot.index_of("#t") == 2
        assert "a" in snapshot
        assert len(snapshot) == 3
        assert snapshot.link("ref:a->b").target == "b"

    def test_missing_endpoint(self, snapshot) -> None:
        assert snapshot.endpoints(snapshot.link("ref:a->gone")) is None
        source, target = snapshot.endpoints(snapshot.link("ref:a->b"))
        assert (source.id, target.id) == ("a", "b")

    def test_partitions(self, snapshot) -> None:
        assert [n.id for n in snapshot.document_nodes] == ["a", "b"]
        assert [n.id for n in snapshot.tag_nodes] == ["#t"]
        assert snapshot.linked_node_ids() == {"a", "b", "gone"}

    def test_to_dict(self, snapshot) -> None:
        data = snapshot.to_dict()
        assert len(data["nodes"]) == 3
        assert data["links"][0] == {
            "id": "ref:a->b",
            "source": "a",
            "target": "b",
            "kind": "explicit_reference",
            "similarity": None,
            "thickness": None,
        }


class TestJsonDocumentSource:
    """Tests for the JSON-file document source."""

    def test_list_documents(self, documents_file) -> None:
        source = JsonDocumentSource(documents_file)
        assert [d.id for d in source.list_documents()] == ["A.md", "B.md", "C.md"]

    @pytest.mark.asyncio
    async def test_read_text(self, documents_file) -> None:
        source = JsonDocumentSource(documents_file)
        assert await source.read_text("C.md") == "# Gamma\nabout gamma"
        with pytest.raises(KeyError):
            await source.read_text("missing.md")

    def test_wrapped_layout(self, tmp_path) -> None:
        path = tmp_path / "docs.json"
        path.write_text(json.dumps({"documents": [{"id": "x.md"}]}), encoding="utf-8")
        assert JsonDocumentSource(path).list_documents()[0].display_name == "x"

    def test_invalid_layout(self, tmp_path) -> None:
        path = tmp_path / "docs.json"
        path.write_text(json.dumps({"documents": "nope"}), encoding="utf-8")
        with pytest.raises(ValueError):
            JsonDocumentSource(path).list_documents()
