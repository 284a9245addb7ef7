"""Embedding text preparation, remote compute client, caches and generation."""

from vaultgraph.embeddings.client import EmbeddingClient
from vaultgraph.embeddings.generator import EmbeddingGenerator, GenerationResult
from vaultgraph.embeddings.store import InMemoryEmbeddingStore, JsonEmbeddingStore
from vaultgraph.embeddings.text import (
    clean_text_for_embedding,
    estimate_token_count,
    extract_headings_and_first_words,
    is_within_token_limit,
)

__all__ = [
    "EmbeddingClient",
    "EmbeddingGenerator",
    "GenerationResult",
    "InMemoryEmbeddingStore",
    "JsonEmbeddingStore",
    "clean_text_for_embedding",
    "estimate_token_count",
    "extract_headings_and_first_words",
    "is_within_token_limit",
]
