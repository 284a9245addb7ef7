"""Frame scheduling and the animation loop.

The simulation never owns a timer. A ``FrameScheduler`` supplied by the
caller decides when the next frame runs: a manual scheduler for tests and
headless layout, an asyncio one for interactive hosts.
"""

import asyncio
import itertools
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from vaultgraph.simulation.force_simulation import FIXED_TIMESTEP, ForceSimulation, SimulationState

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]


class FrameScheduler(ABC):
    """Requests one-shot frame callbacks that receive the elapsed seconds."""

    @abstractmethod
    def request_frame(self, callback: FrameCallback) -> Any:
        """Schedule ``callback`` for the next frame and return a handle."""

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a pending callback. Unknown or fired handles are ignored."""


class ManualFrameScheduler(FrameScheduler):
    """Deterministic scheduler advanced explicitly by the caller."""

    def __init__(self) -> None:
        self._pending: dict[int, FrameCallback] = {}
        self._ids = itertools.count(1)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: Any) -> None:
        self._pending.pop(handle, None)

    def advance(self, frames: int = 1, delta_time: float = FIXED_TIMESTEP) -> int:
        """Run ``frames`` frames. Returns how many callbacks fired."""
        fired = 0
        for _ in range(frames):
            if not self._pending:
                break
            due = list(self._pending.values())
            self._pending.clear()
            for callback in due:
                callback(delta_time)
                fired += 1
        return fired


class AsyncioFrameScheduler(FrameScheduler):
    """Frames driven by the running asyncio event loop."""

    def __init__(self, interval: float = FIXED_TIMESTEP, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self.interval = interval
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def request_frame(self, callback: FrameCallback) -> asyncio.TimerHandle:
        requested_at = self.loop.time()

        def fire() -> None:
            callback(self.loop.time() - requested_at)

        return self.loop.call_later(self.interval, fire)

    def cancel(self, handle: Any) -> None:
        if handle is not None:
            handle.cancel()


class AnimationLoop:
    """
    One simulation tick plus one render callback per frame.

    The loop re-requests a frame only while running. ``stop`` cancels the
    pending frame, so after it returns nothing else ticks or renders.
    """

    def __init__(
        self,
        simulation: ForceSimulation,
        scheduler: FrameScheduler,
        on_frame: Callable[[], None] | None = None,
    ) -> None:
        self.simulation = simulation
        self.scheduler = scheduler
        self.on_frame = on_frame
        self.frames_rendered = 0
        self.ticks = 0
        self._running = False
        self._handle: Any = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._handle = self.scheduler.request_frame(self._frame)

    def stop(self) -> None:
        self._running = False
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
            self._handle = None

    def _frame(self, delta_time: float) -> None:
        self._handle = None
        if not self._running:
            return
        if self.simulation.state == SimulationState.DESTROYED:
            logger.debug("Simulation destroyed, stopping animation loop")
            self.stop()
            return

        self.simulation.tick(delta_time)
        self.ticks += 1
        if self.on_frame is not None:
            self.on_frame()
        self.frames_rendered += 1

        if self._running:
            self._handle = self.scheduler.request_frame(self._frame)
