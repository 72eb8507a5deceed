"""
Spatial birth-death population on the unit torus, simulated with the
Gillespie Stochastic Simulation Algorithm (SSA).

Each accepted event runs:

    neighbour weights -> choose event -> execute -> advance time -> checkpoint

The engine owns no timers and performs no I/O inside ``step``; a caller can
stop at any point by no longer calling it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable

import numpy as np
from tqdm import tqdm

from .checkpoint import Checkpoint, CheckpointRecorder, History
from .config import SimulationConfig
from .individual import Individual
from .mutator import PopulationMutator
from .neighbor_weights import NeighborWeightEngine, RateTable
from .scheduler import ChosenEvent, EventKind, EventScheduler, SimulationState
from .spatial_index import SpatialIndex
from .species import MalformedInputError, Species, SpeciesCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepResult:
    checkpoint: Checkpoint
    total_rate: float
    event: EventKind
    actor_id: int


def _validate_horizon(max_t: float) -> float:
    max_t = float(max_t)
    if math.isnan(max_t) or max_t <= 0.0:
        raise MalformedInputError(f"max_t must be positive, got {max_t!r}")
    return max_t


class Population:
    """Owns the live individuals, the clock and the checkpoint history."""

    def __init__(
        self,
        species_list: Iterable[Species],
        max_t: float = math.inf,
        config: SimulationConfig | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.config = config if config is not None else SimulationConfig()
        self.catalog = SpeciesCatalog(species_list)
        self.max_t = _validate_horizon(max_t)
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

        self.index = SpatialIndex(self.catalog)
        self.weights = NeighborWeightEngine(self.catalog)
        self.scheduler = EventScheduler(self.rng, self.config.move_handling)
        self.mutator = PopulationMutator(self.catalog, self.index, self.rng)
        self.recorder = CheckpointRecorder(self.catalog, keep_history=self.config.keep_history)

        self.t = 0.0
        self.state = SimulationState.INITIALIZED
        self.individuals: dict[int, Individual] = {}

        # Uniform initial placement, species in list order
        for species in self.catalog:
            for _ in range(species.initial_count):
                ind = Individual(self.mutator.next_id, species.id, self.rng.random(), self.rng.random())
                self.individuals[ind.id] = ind
                self.mutator.next_id += 1

        self.index.build(self.individuals)
        self.recorder.record(self.individuals, self.t)
        logger.info(
            "population initialised: %d species, %d individuals", len(self.catalog), self.size
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        return len(self.individuals)

    @property
    def history(self) -> History:
        return self.recorder.history

    def species_counts(self) -> dict[int, int]:
        counts = {species_id: 0 for species_id in self.catalog.ids}
        for ind in self.individuals.values():
            counts[ind.species_id] += 1
        return counts

    def rates(self) -> RateTable:
        """Refresh every individual's intensities from its neighbour maps."""
        return self.weights.compute(self.individuals)

    def checkpoint(self) -> Checkpoint:
        """Snapshot of the current state, not added to the history."""
        return self.recorder.snapshot(self.individuals, self.t)

    # ------------------------------------------------------------------
    # SSA primitives
    # ------------------------------------------------------------------

    def execute_event(self) -> ChosenEvent | None:
        """Choose and apply one birth or death without moving the clock.

        Returns None, and marks the population exhausted, when the total
        rate is zero.
        """
        chosen = self.scheduler.choose(self.rates())
        if chosen is None:
            self.state = SimulationState.EXHAUSTED
            logger.debug("no possible events at t=%.6f with %d individuals", self.t, self.size)
            return None

        if chosen.kind is EventKind.BIRTH:
            self.mutator.execute_birth(chosen.actor_id, self.individuals)
        else:
            self.mutator.execute_death(chosen.actor_id, self.individuals)
        return chosen

    def advance_time(self, total_rate: float) -> float:
        """Add an Exp(total_rate) waiting time to the clock."""
        self.t = self.scheduler.advance_time(self.t, total_rate)
        if self.t >= self.max_t:
            self.state = SimulationState.COMPLETE
        return self.t

    def step(self) -> StepResult | None:
        """Perform exactly one event transition.

        Returns the checkpoint taken after the event (stamped with the
        advanced time) and the total rate R used, or None once the run has
        reached a terminal state.
        """
        if self.state.terminal:
            return None
        self.state = SimulationState.RUNNING

        chosen = self.execute_event()
        if chosen is None:
            return None
        self.advance_time(chosen.total_rate)
        checkpoint = self.recorder.record(self.individuals, self.t)
        return StepResult(
            checkpoint=checkpoint,
            total_rate=chosen.total_rate,
            event=chosen.kind,
            actor_id=chosen.actor_id,
        )

    def simulate(self, max_t: float | None = None) -> History:
        """Step until the horizon is reached or no event is possible."""
        if max_t is not None:
            self.max_t = _validate_horizon(max_t)
            if self.state is SimulationState.COMPLETE and self.t < self.max_t:
                self.state = SimulationState.RUNNING
        if not math.isfinite(self.max_t):
            raise ValueError("simulate() needs a finite horizon")
        if not self.state.terminal and self.t >= self.max_t:
            self.state = SimulationState.COMPLETE

        steps = 0
        bar = None
        if self.config.progress and math.isfinite(self.max_t):
            bar = tqdm(total=int(self.max_t), desc="Simulating", unit="t")
        try:
            while self.step() is not None:
                steps += 1
                if bar is not None:
                    whole = min(int(self.t), bar.total)
                    if whole > bar.n:
                        bar.update(whole - bar.n)
        finally:
            if bar is not None:
                bar.close()

        logger.info(
            "simulation %s after %d steps: t=%.6f, size=%d",
            self.state.value,
            steps,
            self.t,
            self.size,
        )
        return self.history
