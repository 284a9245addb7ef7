"""Sequential embedding generation for a document collection.

Documents are processed one at a time with a delay between requests to stay
under the remote service's rate limits. A failing document is reported and
counted; generation continues with the next one. Cache write failures are
handled the same way.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from vaultgraph.config import settings
from vaultgraph.embeddings.text import (
    CHARS_PER_TOKEN,
    clean_text_for_embedding,
    is_within_token_limit,
)
from vaultgraph.errors import RemoteServiceError
from vaultgraph.interfaces import (
    DocumentSource,
    EmbeddingCache,
    EmbeddingComputer,
    NoticeSink,
    RemoteVectorStore,
)
from vaultgraph.models.document import Document

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Tally of one generation run."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: bool = False
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def processed(self) -> int:
        return self.succeeded + self.failed + self.skipped

    def summary(self) -> str:
        text = f"Generated embeddings for {self.succeeded}/{self.total} documents"
        if self.failed:
            text += f", {self.failed} failed"
        if self.skipped:
            text += f", {self.skipped} skipped"
        if self.cancelled:
            text += " (cancelled)"
        return text


class EmbeddingGenerator:
    """Computes and caches embeddings for documents that need them."""

    def __init__(
        self,
        source: DocumentSource,
        computer: EmbeddingComputer,
        cache: EmbeddingCache,
        notices: NoticeSink | None = None,
        remote_store: RemoteVectorStore | None = None,
        delay: float | None = None,
        word_limit: int | None = None,
        max_tokens: int | None = None,
        is_active: Callable[[], bool] | None = None,
        on_progress: Callable[[int, int], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.source = source
        self.computer = computer
        self.cache = cache
        self.notices = notices
        self.remote_store = remote_store
        self.delay = settings.embedding_request_delay if delay is None else delay
        self.word_limit = word_limit or settings.embedding_word_limit
        self.max_tokens = max_tokens or settings.embedding_max_tokens
        self.is_active = is_active or (lambda: True)
        self.on_progress = on_progress
        self._sleep = sleep

    def _notify(self, message: str) -> None:
        if self.notices is not None:
            self.notices.notify(message)

    def _prepare_text(self, content: str) -> str:
        text = clean_text_for_embedding(content, self.word_limit)
        if not is_within_token_limit(text, self.max_tokens):
            logger.debug(f"Truncating embedding text to about {self.max_tokens} tokens")
            text = text[: self.max_tokens * CHARS_PER_TOKEN]
        return text

    async def generate(
        self,
        documents: Sequence[Document] | None = None,
        only_missing: bool = False,
    ) -> GenerationResult:
        """Embed every eligible document and store the vectors in the cache."""
        if documents is None:
            documents = self.source.list_documents()
        eligible = [d for d in documents if d.exists and not d.is_attachment]
        if only_missing:
            eligible = [d for d in eligible if self.cache.get_cached_embedding(d.id) is None]

        result = GenerationResult(total=len(eligible))
        logger.info(f"Generating embeddings for {result.total} documents")

        for i, doc in enumerate(eligible):
            if not self.is_active():
                logger.info("Embedding generation abandoned: view is no longer active")
                result.cancelled = True
                break

            await self._process(doc, result)
            logger.debug(f"Embedding progress {i + 1}/{result.total}")
            if self.on_progress is not None:
                self.on_progress(i + 1, result.total)

            if self.delay > 0 and i < len(eligible) - 1:
                await self._sleep(self.delay)

        logger.info(result.summary())
        if not result.cancelled:
            self._notify(result.summary())
        return result

    async def _process(self, doc: Document, result: GenerationResult) -> None:
        try:
            content = await self.source.read_text(doc.id)
        except (OSError, KeyError, UnicodeDecodeError) as e:
            result.failed += 1
            result.errors[doc.id] = f"read failed: {e}"
            logger.warning(f"Could not read {doc.id}: {e}")
            self._notify(f"Could not read {doc.display_name}")
            return

        text = self._prepare_text(content)
        if not text:
            result.skipped += 1
            return

        try:
            vector = await self.computer.compute_embedding(text)
        except RemoteServiceError as e:
            result.failed += 1
            result.errors[doc.id] = str(e)
            logger.warning(f"Embedding failed for {doc.id}: {e}")
            self._notify(f"Embedding failed for {doc.display_name}: {e}")
            return

        if self.remote_store is not None:
            try:
                await self.remote_store.upsert(
                    doc.id, vector, {"title": doc.display_name, "path": doc.id}
                )
            except RemoteServiceError as e:
                # Local cache still gets the vector
                logger.warning(f"Remote vector store upsert failed for {doc.id}: {e}")

        try:
            self.cache.put_cached_embedding(doc.id, vector)
        except (OSError, TypeError, ValueError) as e:
            result.failed += 1
            result.errors[doc.id] = f"cache write failed: {e}"
            logger.error(f"Could not cache embedding for {doc.id}: {e}")
            self._notify(f"Could not save embedding for {doc.display_name}")
            return
        result.succeeded += 1
