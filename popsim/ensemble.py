"""
Independent replicate runs of the same species set, one seed each.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from joblib import Parallel, delayed

from .config import SimulationConfig
from .population import Population
from .species import Species


@dataclass(frozen=True)
class ReplicateResult:
    seed: int
    final_time: float
    final_state: str
    species_counts: dict[int, int]
    steps: int


def _run_one(species_list: Sequence[Species], max_t: float, seed: int, config: SimulationConfig) -> ReplicateResult:
    run_config = SimulationConfig(
        seed=seed,
        move_handling=config.move_handling,
        flush_interval=config.flush_interval,
        keep_history=False,
        progress=False,
    )
    population = Population(species_list, max_t, config=run_config)
    steps = 0
    while population.step() is not None:
        steps += 1
    return ReplicateResult(
        seed=seed,
        final_time=population.t,
        final_state=population.state.value,
        species_counts=population.species_counts(),
        steps=steps,
    )


def run_replicates(
    species_list: Sequence[Species],
    max_t: float,
    seeds: Sequence[int],
    n_jobs: int = 1,
    config: SimulationConfig | None = None,
) -> list[ReplicateResult]:
    """Run one simulation per seed; results are returned in seed order."""
    config = config if config is not None else SimulationConfig()
    species_list = list(species_list)
    if n_jobs == 1:
        return [_run_one(species_list, max_t, seed, config) for seed in seeds]
    return Parallel(n_jobs=n_jobs)(
        delayed(_run_one)(species_list, max_t, seed, config) for seed in seeds
    )
