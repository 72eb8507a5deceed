"""
Run configuration and predefined species sets.
"""
from __future__ import annotations

from dataclasses import dataclass

from .scheduler import MoveHandling
from .species import Species


@dataclass
class SimulationConfig:
    """Engine and driver settings."""
    seed: int | None = None                 # None = fresh OS entropy
    move_handling: MoveHandling = MoveHandling.FOLD_INTO_DEATH
    flush_interval: float = 1.0             # Worker flush cadence (simulated time units)
    keep_history: bool = True               # Append every checkpoint to the history
    progress: bool = False                  # tqdm bar in Population.simulate


# =============================================================================
# Predefined species sets
# =============================================================================

def single_species_config() -> list[Species]:
    """
    One species with local competition.
    b0=0.4, d0=0.2, d1=0.1, death kernel std 0.05 up to radius 0.15.
    """
    return [
        Species(
            id=0,
            b0=0.4,
            c1=50,
            d0=0.2,
            d1=0.1,
            mbsd=0.05,
            birth_radius_max=0.15,
            birth_std=0.05,
            death_radius_max=0.15,
            death_std=0.05,
        ),
    ]


def two_species_config(c1: float = 10) -> list[Species]:
    """
    Two species with identical, symmetric rates and kernels.
    """
    return [
        Species(
            id=species_id,
            b0=0.4,
            b1=0.05,
            c1=c1,
            d0=0.2,
            d1=0.1,
            mbsd=0.05,
            birth_radius_max=0.2,
            birth_std=0.1,
            death_radius_max=0.2,
            death_std=0.1,
        )
        for species_id in (0, 1)
    ]
