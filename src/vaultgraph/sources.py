"""JSON-file document source used by scripts and tests."""

import json
import logging
from pathlib import Path

from vaultgraph.models.document import Document

logger = logging.getLogger(__name__)


class JsonDocumentSource:
    """
    Documents loaded from a JSON file.

    The file holds either a list of document records or an object with a
    ``documents`` list. Each record follows ``Document.to_dict``; only ``id``
    is required. Text is served from the optional ``content`` field.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._documents: list[Document] | None = None

    def _load(self) -> list[Document]:
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("documents", [])
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of documents in {self.path}")
        documents = [Document.from_dict(record) for record in data]
        logger.info(f"Loaded {len(documents)} documents from {self.path}")
        return documents

    def list_documents(self) -> list[Document]:
        if self._documents is None:
            self._documents = self._load()
        return list(self._documents)

    async def read_text(self, document_id: str) -> str:
        for doc in self.list_documents():
            if doc.id == document_id:
                return doc.content or ""
        raise KeyError(document_id)
