"""Configuration management using Pydantic Settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-level settings loaded from environment variables.

    Graph tunables (forces, thresholds, thickness) are not here: they live in
    the immutable ``GraphSettings`` snapshot that is persisted separately.
    """

    model_config = SettingsConfigDict(
        env_prefix="VAULTGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Embedding service (remote OpenAI-compatible endpoint)
    embedding_base_url: str = "https://api.openai.com/v1"
    embedding_api_key: str = ""
    embedding_model: str = "text-embedding-ada-002"
    embedding_timeout: float = 30.0
    embedding_request_delay: float = Field(
        default=0.2,
        description="Seconds to wait between embedding requests (rate limiting)"
    )
    embedding_word_limit: int = Field(
        default=100,
        description="Body words kept after headings when preparing embedding text"
    )
    embedding_max_tokens: int = Field(
        default=8191,
        description="Approximate token limit of the embedding model"
    )

    # Local persistence
    embedding_cache_path: Path = Path(".vaultgraph/embeddings.json")
    graph_settings_path: Path = Path(".vaultgraph/settings.json")

    # Animation / viewport
    frame_interval: float = Field(
        default=1.0 / 60.0,
        description="Seconds between animation frames"
    )
    viewport_width: float = 800.0
    viewport_height: float = 600.0

    log_level: str = "INFO"


def get_test_settings() -> Settings:
    """Settings for tests: no network key, no rate-limit delay."""
    return Settings(
        embedding_api_key="",
        embedding_request_delay=0.0,
    )


settings = Settings()
