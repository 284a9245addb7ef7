"""Compute graph layout positions headlessly and write them as JSON.

This script:
1. Loads a JSON document collection
2. Builds the graph (references or embeddings, optional tags)
3. Runs the force simulation frame by frame until it converges
4. Writes {node_id: [x, y]} to the output file

Usage:
    python scripts/compute_layout.py documents.json -o layout.json
    python scripts/compute_layout.py documents.json --embeddings --tags
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

# Add src to path
sys.path.insert(0, str(project_root / "src"))

from vaultgraph.config import settings
from vaultgraph.embeddings.store import JsonEmbeddingStore
from vaultgraph.graph.model import GraphModel
from vaultgraph.graph.settings import GraphSettings, load_graph_settings
from vaultgraph.simulation import AnimationLoop, ForceSimulation, ManualFrameScheduler
from vaultgraph.sources import JsonDocumentSource

logger = logging.getLogger(__name__)


def compute_layout(args: argparse.Namespace) -> dict[str, list[float]]:
    """Build the graph and run the simulation to convergence."""
    graph_settings = load_graph_settings(args.settings)
    updates = {}
    if args.embeddings:
        updates["use_embedding_linking"] = True
    if args.tags:
        updates["show_tags"] = True
    if args.threshold is not None:
        updates["similarity_threshold"] = args.threshold
    if updates:
        graph_settings = GraphSettings.model_validate({**graph_settings.model_dump(), **updates})

    source = JsonDocumentSource(args.documents)
    model = GraphModel(JsonEmbeddingStore(args.cache))
    snapshot = model.rebuild(source.list_documents(), graph_settings)

    simulation = ForceSimulation(graph_settings, width=args.width, height=args.height, seed=args.seed)
    simulation.initialize(snapshot)

    scheduler = ManualFrameScheduler()
    loop = AnimationLoop(simulation, scheduler)
    loop.start()

    frames = 0
    while frames < args.max_frames and not simulation.converged:
        scheduler.advance(1, settings.frame_interval)
        frames += 1
    loop.stop()

    logger.info(
        f"Layout finished after {frames} frames, {simulation.steps_taken} steps "
        f"(alpha={simulation.alpha:.4f}, converged={simulation.converged})"
    )
    positions = {node_id: [x, y] for node_id, (x, y) in simulation.positions().items()}
    simulation.destroy()
    return positions


def main() -> None:
    parser = argparse.ArgumentParser(description="Compute a force-directed layout for a document graph")
    parser.add_argument("documents", type=Path, help="JSON file with the document collection")
    parser.add_argument("-o", "--output", type=Path, default=Path("layout.json"), help="Output JSON file")
    parser.add_argument("--cache", type=Path, default=settings.embedding_cache_path, help="Embedding cache file")
    parser.add_argument("--settings", type=Path, default=settings.graph_settings_path, help="Graph settings file")
    parser.add_argument("--embeddings", action="store_true", help="Link documents by embedding similarity")
    parser.add_argument("--tags", action="store_true", help="Include tag nodes")
    parser.add_argument("--threshold", type=float, default=None, help="Similarity threshold override")
    parser.add_argument("--width", type=float, default=settings.viewport_width)
    parser.add_argument("--height", type=float, default=settings.viewport_height)
    parser.add_argument("--max-frames", type=int, default=3000, help="Stop after this many frames")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    positions = compute_layout(args)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    with open(args.output, "w", encoding="utf-8") as f:
        json.dump(positions, f, indent=2)

    print(f"Wrote {len(positions)} node positions to {args.output}")
    if positions:
        xs = [p[0] for p in positions.values()]
        ys = [p[1] for p in positions.values()]
        print(f"Bounding box: x=[{min(xs):.1f}, {max(xs):.1f}], y=[{min(ys):.1f}, {max(ys):.1f}]")


if __name__ == "__main__":
    main()
