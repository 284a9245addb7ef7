#!/usr/bin/env python3
"""Generate embeddings for a JSON document collection.

Usage:
    python scripts/generate_embeddings.py documents.json
    python scripts/generate_embeddings.py --missing-only documents.json

Reads the API key and endpoint from VAULTGRAPH_* environment variables or
the project .env file. Vectors are stored in the JSON embedding cache.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from tqdm import tqdm

project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")
sys.path.insert(0, str(project_root / "src"))

from vaultgraph.config import settings
from vaultgraph.embeddings.client import EmbeddingClient
from vaultgraph.embeddings.generator import EmbeddingGenerator
from vaultgraph.embeddings.store import JsonEmbeddingStore
from vaultgraph.sources import JsonDocumentSource

logging.basicConfig(
    level=logging.WARNING,  # Reduce noise during progress bar
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class ConsoleNotices:
    """Print notices above the progress bar."""

    def notify(self, message: str) -> None:
        tqdm.write(message)


async def run(args: argparse.Namespace) -> int:
    source = JsonDocumentSource(args.documents)
    cache = JsonEmbeddingStore(args.cache)

    async with EmbeddingClient(model=args.model) as client:
        if not client.is_configured:
            print("Please set VAULTGRAPH_EMBEDDING_API_KEY first")
            return 1

        with tqdm(desc="Embedding", unit="doc") as progress:
            def on_progress(done: int, total: int) -> None:
                progress.total = total
                progress.update(done - progress.n)

            generator = EmbeddingGenerator(
                source,
                client,
                cache,
                notices=ConsoleNotices(),
                delay=args.delay,
                on_progress=on_progress,
            )
            result = await generator.generate(only_missing=args.missing_only)

    print(result.summary())
    for doc_id, error in result.errors.items():
        print(f"  {doc_id}: {error}")
    return 0 if result.failed == 0 else 2


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate document embeddings")
    parser.add_argument("documents", type=Path, help="JSON file with documents (including content)")
    parser.add_argument("--cache", type=Path, default=settings.embedding_cache_path, help="Embedding cache file")
    parser.add_argument("--model", default=None, help="Embedding model override")
    parser.add_argument("--delay", type=float, default=None, help="Seconds between requests")
    parser.add_argument("--missing-only", action="store_true", help="Skip documents already cached")
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
