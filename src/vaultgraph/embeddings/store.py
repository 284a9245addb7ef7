"""Embedding caches keyed by document id."""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class InMemoryEmbeddingStore:
    """Dictionary-backed cache."""

    def __init__(self, embeddings: dict[str, list[float]] | None = None) -> None:
        self._embeddings = dict(embeddings or {})

    def get_cached_embedding(self, document_id: str) -> list[float] | None:
        return self._embeddings.get(document_id)

    def put_cached_embedding(self, document_id: str, vector: list[float]) -> None:
        self._embeddings[document_id] = list(vector)

    def __len__(self) -> int:
        return len(self._embeddings)


class JsonEmbeddingStore:
    """
    JSON-file cache: ``{"embeddings": {document_id: [floats]}}``.

    The file is read lazily on first access and rewritten atomically on every
    put. Other top-level keys in the file (such as stored settings) are kept.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._data: dict | None = None

    def _load(self) -> dict:
        if self._data is not None:
            return self._data

        data: dict = {}
        if self.path.exists():
            try:
                loaded = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Could not read embedding cache {self.path}: {e}")
            else:
                if isinstance(loaded, dict):
                    data = loaded
                else:
                    logger.warning(f"Embedding cache {self.path} is not an object, starting empty")
        if not isinstance(data.get("embeddings"), dict):
            data["embeddings"] = {}
        self._data = data
        return data

    @property
    def embeddings(self) -> dict[str, list[float]]:
        return self._load()["embeddings"]

    def get_cached_embedding(self, document_id: str) -> list[float] | None:
        vector = self.embeddings.get(document_id)
        return list(vector) if isinstance(vector, list) else None

    def put_cached_embedding(self, document_id: str, vector: list[float]) -> None:
        self.embeddings[document_id] = [float(v) for v in vector]
        self._write()

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._load()), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def __len__(self) -> int:
        return len(self.embeddings)
