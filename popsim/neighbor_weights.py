"""
Aggregates sparse neighbour weights into per-individual event intensities.

    neighbor_effect = coefficient * sum(kernel weights) / norm   (0 if norm is 0)
    p_birth = b0 + birth effect,  p_death = d0 + death effect,  p_move = mintegral
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import numpy as np
from numpy.typing import NDArray

from .individual import Individual
from .species import SpeciesCatalog


@dataclass(frozen=True)
class RateTable:
    """Per-individual intensities aligned with ``ids``."""
    ids: NDArray[np.int64]
    p_birth: NDArray[np.float64]
    p_death: NDArray[np.float64]
    p_move: NDArray[np.float64]

    @property
    def birth_sum(self) -> float:
        return float(self.p_birth.sum())

    @property
    def death_sum(self) -> float:
        return float(self.p_death.sum())

    @property
    def move_sum(self) -> float:
        return float(self.p_move.sum())

    def __len__(self) -> int:
        return self.ids.shape[0]


def _effect(coef: NDArray, sums: NDArray, norm: NDArray) -> NDArray[np.float64]:
    out = np.zeros_like(sums)
    np.divide(coef * sums, norm, out=out, where=norm != 0.0)
    return out


class NeighborWeightEngine:
    def __init__(self, catalog: SpeciesCatalog):
        self.catalog = catalog

    def compute(self, individuals: Mapping[int, Individual]) -> RateTable:
        """Recompute every individual's intensities from its neighbour maps.

        Cost is proportional to the total size of the neighbour maps.
        Intensities are stored back on each Individual and returned as arrays.
        """
        members = list(individuals.values())
        n = len(members)
        cat = self.catalog

        ids = np.fromiter((ind.id for ind in members), dtype=np.int64, count=n)
        species_idx = np.fromiter(
            (cat.index_of(ind.species_id) for ind in members), dtype=np.int64, count=n
        )
        birth_sums = np.fromiter(
            (sum(ind.birth_neighbors.values()) for ind in members), dtype=np.float64, count=n
        )
        death_sums = np.fromiter(
            (sum(ind.death_neighbors.values()) for ind in members), dtype=np.float64, count=n
        )

        birth_effect = _effect(cat.b1[species_idx], birth_sums, cat.birth_norm[species_idx])
        death_effect = _effect(cat.d1[species_idx], death_sums, cat.death_norm[species_idx])

        # Negative coefficients may not push an intensity below zero
        p_birth = np.maximum(cat.b0[species_idx] + birth_effect, 0.0)
        p_death = np.maximum(cat.d0[species_idx] + death_effect, 0.0)
        p_move = cat.mintegral[species_idx].copy()

        for k, ind in enumerate(members):
            ind.p_birth = float(p_birth[k])
            ind.p_death = float(p_death[k])
            ind.p_move = float(p_move[k])

        return RateTable(ids=ids, p_birth=p_birth, p_death=p_death, p_move=p_move)
