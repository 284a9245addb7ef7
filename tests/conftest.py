"""Pytest configuration and fixtures."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from vaultgraph.config import Settings, get_test_settings
from vaultgraph.embeddings.store import InMemoryEmbeddingStore
from vaultgraph.graph.model import GraphModel
from vaultgraph.graph.settings import GraphSettings
from vaultgraph.models import Document, GraphSnapshot
from vaultgraph.simulation import ForceSimulation, ManualFrameScheduler


class FakeDocumentSource:
    """In-memory document source."""

    def __init__(self, documents: list[Document]) -> None:
        self.documents = documents

    def list_documents(self) -> list[Document]:
        return list(self.documents)

    async def read_text(self, document_id: str) -> str:
        for doc in self.documents:
            if doc.id == document_id:
                return doc.content or ""
        raise KeyError(document_id)


@pytest.fixture
def test_settings() -> Settings:
    """Process settings without network key or request delay."""
    return get_test_settings()


@pytest.fixture
def graph_settings() -> GraphSettings:
    """Default graph settings."""
    return GraphSettings()


@pytest.fixture
def chain_documents() -> list[Document]:
    """Three documents: A -> B, B -> C."""
    return [
        Document(id="A.md", display_name="A", outbound_references=["B"], content="# Alpha\nabout alpha"),
        Document(id="B.md", display_name="B", outbound_references=["[[C]]"], content="# Beta\nabout beta"),
        Document(id="C.md", display_name="C", content="# Gamma\nabout gamma"),
    ]


@pytest.fixture
def tagged_documents() -> list[Document]:
    """Documents with structured and AI-generated tags."""
    return [
        Document(
            id="docker.md",
            display_name="docker",
            tags=["#docker", "#devops"],
            frontmatter={"ai-tags": ["containers", "devops"]},
        ),
        Document(
            id="k8s.md",
            display_name="k8s",
            tags=["#devops"],
            frontmatter={"ai-tags": '["orchestration", "containers"]'},
        ),
        Document(
            id="notes.md",
            display_name="notes",
            frontmatter={"ai-tags": "not json [unterminated"},
        ),
    ]


@pytest.fixture
def embedding_store() -> InMemoryEmbeddingStore:
    """Cache with embeddings for B and C only."""
    return InMemoryEmbeddingStore({
        "B.md": [1.0, 0.0, 0.0],
        "C.md": [0.9, 0.1, 0.0],
    })


@pytest.fixture
def chain_snapshot(chain_documents, graph_settings) -> GraphSnapshot:
    """Reference snapshot of the A -> B -> C chain."""
    return GraphModel().rebuild(chain_documents, graph_settings)


@pytest.fixture
def simulation(graph_settings, chain_snapshot) -> ForceSimulation:
    """Running simulation over the chain snapshot."""
    sim = ForceSimulation(graph_settings, width=800, height=600, seed=7)
    sim.initialize(chain_snapshot)
    return sim


@pytest.fixture
def manual_scheduler() -> ManualFrameScheduler:
    return ManualFrameScheduler()


@pytest.fixture
def fake_source(chain_documents) -> FakeDocumentSource:
    return FakeDocumentSource(chain_documents)


@pytest.fixture
def notices() -> MagicMock:
    """Notice sink recording every message."""
    sink = MagicMock()
    sink.notify = MagicMock()
    return sink


@pytest.fixture
def documents_file(tmp_path: Path, chain_documents) -> Path:
    """Chain documents written as a JSON collection."""
    path = tmp_path / "documents.json"
    path.write_text(json.dumps([d.to_dict() for d in chain_documents]), encoding="utf-8")
    return path
