"""
Gillespie event selection and time advance.

The next event type is drawn with weights proportional to the aggregate
birth and death intensities, the actor proportionally to its own intensity,
and the waiting time from Exp(R) with R the total rate.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .geometry import sample_weighted
from .neighbor_weights import RateTable


class EventKind(Enum):
    BIRTH = "birth"
    DEATH = "death"


class MoveHandling(Enum):
    """How the (never executed) movement intensity enters event selection.

    FOLD_INTO_DEATH: movement weight counts as extra death weight and is
        part of the total rate R. This is the default weighting.
    IGNORE: movement is left out of both the type draw and R.
    """
    FOLD_INTO_DEATH = "fold_into_death"
    IGNORE = "ignore"


class SimulationState(Enum):
    INITIALIZED = "initialized"
    RUNNING = "running"
    EXHAUSTED = "exhausted"
    COMPLETE = "complete"

    @property
    def terminal(self) -> bool:
        return self in (SimulationState.EXHAUSTED, SimulationState.COMPLETE)


@dataclass(frozen=True)
class ChosenEvent:
    kind: EventKind
    actor_id: int
    total_rate: float


class EventScheduler:
    def __init__(self, rng: np.random.Generator, move_handling: MoveHandling = MoveHandling.FOLD_INTO_DEATH):
        self.rng = rng
        self.move_handling = move_handling

    def total_rate(self, rates: RateTable) -> float:
        total = rates.birth_sum + rates.death_sum
        if self.move_handling is MoveHandling.FOLD_INTO_DEATH:
            total += rates.move_sum
        return total

    def choose(self, rates: RateTable) -> ChosenEvent | None:
        """Pick the next event type and actor, or None if R is zero."""
        birth_sum = rates.birth_sum
        death_sum = rates.death_sum
        total = self.total_rate(rates)
        if len(rates) == 0 or not total > 0.0:
            return None

        if self.move_handling is MoveHandling.FOLD_INTO_DEATH:
            type_weights = np.array([birth_sum, death_sum, rates.move_sum], dtype=np.float64)
            choices = (EventKind.BIRTH, EventKind.DEATH, EventKind.DEATH)
        else:
            type_weights = np.array([birth_sum, death_sum], dtype=np.float64)
            choices = (EventKind.BIRTH, EventKind.DEATH)
        kind = choices[sample_weighted(type_weights, self.rng.random())]

        actor_weights = rates.p_birth if kind is EventKind.BIRTH else rates.p_death
        idx = sample_weighted(actor_weights, self.rng.random())
        if idx < 0:
            # Type chosen through folded movement weight with no death intensity
            idx = int(self.rng.integers(len(rates)))
        return ChosenEvent(kind=kind, actor_id=int(rates.ids[idx]), total_rate=total)

    def draw_delta_t(self, total_rate: float) -> float:
        """Exponential waiting time -ln(U)/R with U strictly inside (0, 1)."""
        if not total_rate > 0.0:
            raise ValueError(f"total rate must be positive, got {total_rate!r}")
        u = self.rng.random()
        while u == 0.0:
            u = self.rng.random()
        delta_t = -math.log(u) / total_rate
        if delta_t <= 0.0:
            delta_t = np.nextafter(0.0, 1.0)
        return delta_t

    def advance_time(self, t: float, total_rate: float) -> float:
        """New time t + dt, always strictly greater than t."""
        new_t = t + self.draw_delta_t(total_rate)
        if new_t <= t:
            new_t = float(np.nextafter(t, math.inf))
        return new_t
