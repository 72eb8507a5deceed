"""
popsim - spatial multi-species birth-death simulator on the unit torus

Individuals of several species are born and die in continuous time. Birth
and death rates depend on neighbour density through truncated Gaussian
kernels, and events are simulated with the Gillespie Stochastic Simulation
Algorithm (SSA).

Features:
- Exact toroidal geometry on [0, 1)^2
- Sparse neighbour lists maintained incrementally on every birth and death
- Explicit, seedable random generator threaded through every draw
- Checkpoint history with JSON export
- Worker-style driver with periodic flushing of checkpoints
"""

from .checkpoint import Checkpoint, CheckpointRecorder, History
from .config import SimulationConfig, single_species_config, two_species_config
from .ensemble import ReplicateResult, run_replicates
from .geometry import toroidal_distance, wrap_unit
from .individual import Individual
from .mutator import PopulationMutator
from .neighbor_weights import NeighborWeightEngine, RateTable
from .population import Population, StepResult
from .scheduler import EventKind, EventScheduler, MoveHandling, SimulationState
from .spatial_index import SpatialIndex
from .species import MalformedInputError, Species, SpeciesCatalog, kernel_norm
from .worker import SimulationRequest, SimulationWorker, WorkerResponse, WorkerStatus

__all__ = [
    "Checkpoint",
    "CheckpointRecorder",
    "History",
    "SimulationConfig",
    "single_species_config",
    "two_species_config",
    "ReplicateResult",
    "run_replicates",
    "toroidal_distance",
    "wrap_unit",
    "Individual",
    "PopulationMutator",
    "NeighborWeightEngine",
    "RateTable",
    "Population",
    "StepResult",
    "EventKind",
    "EventScheduler",
    "MoveHandling",
    "SimulationState",
    "SpatialIndex",
    "MalformedInputError",
    "Species",
    "SpeciesCatalog",
    "kernel_norm",
    "SimulationRequest",
    "SimulationWorker",
    "WorkerResponse",
    "WorkerStatus",
]

__version__ = "1.0.0"
