"""Collaborator protocols implemented by the host application.

The engine never talks to the document store, the embedding service, the UI
or the renderer directly; it is handed objects satisfying these protocols.
"""

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from vaultgraph.models.document import Document

if TYPE_CHECKING:
    from vaultgraph.render.scene import Scene


@runtime_checkable
class DocumentSource(Protocol):
    """Lists documents with their metadata and reads their text."""

    def list_documents(self) -> list[Document]: ...

    async def read_text(self, document_id: str) -> str: ...


@runtime_checkable
class EmbeddingCache(Protocol):
    """Opaque key-value persistence for embedding vectors."""

    def get_cached_embedding(self, document_id: str) -> list[float] | None: ...

    def put_cached_embedding(self, document_id: str, vector: list[float]) -> None: ...


class EmbeddingComputer(Protocol):
    """Remote embedding model. Raises RemoteServiceError on failure."""

    async def compute_embedding(self, text: str) -> list[float]: ...


class RemoteVectorStore(Protocol):
    """Optional remote persistence of vectors."""

    async def upsert(self, document_id: str, vector: list[float], metadata: dict[str, Any]) -> None: ...


class NoticeSink(Protocol):
    def notify(self, message: str) -> None: ...


class DocumentOpener(Protocol):
    def open_document(self, document_id: str) -> None: ...


class Renderer(Protocol):
    def render(self, scene: "Scene") -> None: ...
