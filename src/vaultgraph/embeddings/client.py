"""HTTP client for an OpenAI-compatible embeddings endpoint."""

import logging

import httpx

from vaultgraph.config import settings
from vaultgraph.errors import RemoteServiceError

logger = logging.getLogger(__name__)


class EmbeddingClient:
    """
    Computes embedding vectors with ``POST {base_url}/embeddings``.

    Usage:
        async with EmbeddingClient(api_key="sk-...") as client:
            vector = await client.compute_embedding("some text")
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.embedding_base_url).rstrip("/")
        self.api_key = settings.embedding_api_key if api_key is None else api_key
        self.model = model or settings.embedding_model
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.embedding_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "EmbeddingClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def compute_embedding(self, text: str) -> list[float]:
        """Return the embedding of ``text``. Raises RemoteServiceError on any failure."""
        if not self.api_key:
            raise RemoteServiceError("Embedding API key is not configured")

        try:
            response = await self.client.post(
                "/embeddings",
                json={"input": text, "model": self.model},
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as e:
            raise RemoteServiceError(f"Embedding request failed: {e}") from e

        if response.is_error:
            raise RemoteServiceError(
                f"Embedding API error: {response.status_code} {_error_message(response)}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
            vector = data["data"][0]["embedding"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise RemoteServiceError(
                f"Malformed embedding response: {e}",
                status_code=response.status_code,
            ) from e

        if not isinstance(vector, list) or not vector:
            raise RemoteServiceError("Embedding response contains no vector", status_code=response.status_code)
        return [float(v) for v in vector]


def _error_message(response: httpx.Response) -> str:
    """Best-effort error text from an API error body."""
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.reason_phrase or "Unknown error"
