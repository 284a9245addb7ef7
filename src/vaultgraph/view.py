"""GraphView - wires the model, simulation, interaction and render loop.

One view corresponds to one open visualization. It owns the animation loop
and tears everything down on ``close``; an embedding generation task still
running at that point finishes on its own and its result is ignored.
"""

import asyncio
import logging
from pathlib import Path

from vaultgraph.config import settings as app_settings
from vaultgraph.embeddings.generator import EmbeddingGenerator, GenerationResult
from vaultgraph.graph.links import Resolver
from vaultgraph.graph.model import GraphFilters, GraphModel
from vaultgraph.graph.settings import GraphSettings, load_graph_settings, save_graph_settings
from vaultgraph.interaction.camera import Camera
from vaultgraph.interaction.controller import InteractionController
from vaultgraph.interfaces import (
    DocumentOpener,
    DocumentSource,
    EmbeddingCache,
    EmbeddingComputer,
    NoticeSink,
    RemoteVectorStore,
    Renderer,
)
from vaultgraph.models.graph import GraphSnapshot
from vaultgraph.render.scene import Scene, build_scene
from vaultgraph.simulation.force_simulation import ForceSimulation, SimulationState
from vaultgraph.simulation.scheduler import AnimationLoop, AsyncioFrameScheduler, FrameScheduler

logger = logging.getLogger(__name__)


class GraphView:
    """Open/refresh/close lifecycle around one graph visualization."""

    def __init__(
        self,
        source: DocumentSource,
        cache: EmbeddingCache,
        settings: GraphSettings | None = None,
        scheduler: FrameScheduler | None = None,
        renderer: Renderer | None = None,
        notices: NoticeSink | None = None,
        opener: DocumentOpener | None = None,
        computer: EmbeddingComputer | None = None,
        remote_store: RemoteVectorStore | None = None,
        resolver: Resolver | None = None,
        settings_path: Path | None = None,
        width: float | None = None,
        height: float | None = None,
        seed: int | None = None,
    ) -> None:
        self.source = source
        self.cache = cache
        self.renderer = renderer
        self.notices = notices
        self.computer = computer
        self.remote_store = remote_store
        self.resolver = resolver
        self.settings_path = settings_path

        if settings is None:
            settings = load_graph_settings(settings_path) if settings_path else GraphSettings()
        self.settings = settings

        self.model = GraphModel(cache)
        self.filters = GraphFilters()
        self.simulation = ForceSimulation(
            settings,
            width=width or app_settings.viewport_width,
            height=height or app_settings.viewport_height,
            seed=seed,
        )
        self.camera = Camera()
        self.controller = InteractionController(self.simulation, self.camera, settings, opener)
        self.scheduler = scheduler or AsyncioFrameScheduler(app_settings.frame_interval)
        self.loop = AnimationLoop(self.simulation, self.scheduler, self.render_frame)

        self.is_active = False
        self.last_scene: Scene | None = None
        self.generation_task: asyncio.Task | None = None

    @property
    def snapshot(self) -> GraphSnapshot | None:
        return self.model.snapshot

    # ------------------------------------------------------------------
    # Lifecycle

    def open(self) -> GraphSnapshot:
        """Build the graph, start the simulation and the animation loop."""
        if self.simulation.state == SimulationState.DESTROYED:
            raise RuntimeError("GraphView was closed and cannot be reopened")
        snapshot = self.refresh()
        self.is_active = True
        self.loop.start()
        logger.info("Graph view opened")
        return snapshot

    def refresh(self) -> GraphSnapshot:
        """Rebuild from the current documents and restart the layout."""
        documents = self.source.list_documents()
        snapshot = self.model.rebuild(documents, self.settings, self.resolver)
        self.model.apply_filters(self.filters)
        if self.simulation.state == SimulationState.UNINITIALIZED:
            self.simulation.initialize(snapshot)
        else:
            self.simulation.update_data(snapshot)
        return snapshot

    def close(self) -> None:
        """Stop the loop, destroy the simulation and drop the snapshot."""
        if not self.is_active and self.simulation.state == SimulationState.DESTROYED:
            return
        self.is_active = False
        self.loop.stop()
        self.controller.pointer_leave()
        self.simulation.destroy()
        self.model.invalidate()
        logger.info("Graph view closed")

    # ------------------------------------------------------------------
    # Settings and filters

    def on_settings_changed(self, settings: GraphSettings) -> None:
        """Push a new settings snapshot to every component that needs it."""
        previous = self.settings
        self.settings = settings
        self.controller.update_settings(settings)

        if self.is_active:
            if previous.affects_links(settings):
                self.simulation.update_forces(settings)
                self.refresh()
            elif previous.affects_forces(settings):
                self.simulation.update_forces(settings)
            else:
                # Render-only change (thickness), keep the layout energy as is
                self.simulation.settings = settings
        else:
            self.simulation.settings = settings

        if self.settings_path is not None:
            save_graph_settings(settings, self.settings_path)

    def set_link_thickness(self, link_id: str, thickness: float) -> None:
        self.on_settings_changed(self.settings.with_link_thickness(link_id, thickness))

    def reset_link_thickness(self, link_id: str | None = None) -> None:
        """Reset one link to automatic thickness, or every link when no id is given."""
        if link_id is None:
            self.on_settings_changed(self.settings.reset_link_thickness())
        else:
            self.on_settings_changed(self.settings.without_link_thickness(link_id))

    def set_filters(self, filters: GraphFilters) -> int:
        """Apply view filters without rebuilding. Returns the hidden node count."""
        self.filters = filters
        return self.model.apply_filters(filters)

    # ------------------------------------------------------------------
    # Viewport

    def resize(self, width: float, height: float) -> None:
        if self.is_active:
            self.simulation.resize(width, height)

    def toggle_animation(self, run: bool | None = None) -> None:
        if self.is_active:
            self.simulation.toggle_animation(run)

    def render_frame(self) -> Scene:
        """Build this frame's scene and hand it to the renderer."""
        selection = self.controller.selection
        scene = build_scene(
            self.simulation.snapshot,
            self.settings,
            self.camera,
            hovered_node_id=self.controller.hovered_node_id,
            selected_node_id=selection.node_id,
            selected_link_id=selection.link_id,
        )
        self.last_scene = scene
        if self.renderer is not None:
            self.renderer.render(scene)
        return scene

    # ------------------------------------------------------------------
    # Embeddings

    def start_embedding_generation(self, only_missing: bool = False) -> asyncio.Task | None:
        """Start generating embeddings in the background.

        Must be called from a running event loop. Only one run exists at a
        time: while it is in progress the running task is returned. When the
        task completes and the view is still open, the graph is rebuilt once.
        """
        if self.computer is None or not getattr(self.computer, "is_configured", True):
            self._notify("Please configure the embedding API key first")
            return None
        if self.generation_task is not None and not self.generation_task.done():
            self._notify("Embedding generation is already running")
            return self.generation_task

        generator = EmbeddingGenerator(
            self.source,
            self.computer,
            self.cache,
            notices=self.notices,
            remote_store=self.remote_store,
            is_active=lambda: self.is_active,
        )
        self.generation_task = asyncio.create_task(self._run_generation(generator, only_missing))
        self.generation_task.add_done_callback(_log_generation_failure)
        return self.generation_task

    async def _run_generation(
        self,
        generator: EmbeddingGenerator,
        only_missing: bool,
    ) -> GenerationResult:
        self._notify("Generating embeddings...")
        result = await generator.generate(only_missing=only_missing)

        if not self.is_active:
            logger.info("Ignoring embedding results for a closed view")
            return result
        if result.succeeded:
            self.refresh()
        return result

    def _notify(self, message: str) -> None:
        if self.notices is not None:
            self.notices.notify(message)


def _log_generation_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Embedding generation failed: {error}", exc_info=error)
