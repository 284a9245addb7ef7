"""Force simulation and frame scheduling."""

from vaultgraph.simulation.force_simulation import ForceSimulation, SimulationState
from vaultgraph.simulation.scheduler import (
    AnimationLoop,
    AsyncioFrameScheduler,
    FrameScheduler,
    ManualFrameScheduler,
)

__all__ = [
    "ForceSimulation",
    "SimulationState",
    "AnimationLoop",
    "AsyncioFrameScheduler",
    "FrameScheduler",
    "ManualFrameScheduler",
]
