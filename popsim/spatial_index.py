"""
Sparse birth/death neighbour lists, built once and then maintained
incrementally on every birth and death.

Individual i lists j in its birth map iff dist(i, j) < birth_radius(i) and
birth_std(i) != 0, with weight exp(-dist^2 / 2 birth_var(i)). The death map
follows the same rule with the death kernel. Entries are keyed by stable id.
"""

from __future__ import annotations

import math
from typing import Mapping

import numpy as np
from numpy.typing import NDArray

from .geometry import distances_from, pairwise_distances
from .individual import Individual
from .species import SpeciesCatalog


def _positions(individuals: list[Individual]) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    n = len(individuals)
    xs = np.fromiter((ind.x for ind in individuals), dtype=np.float64, count=n)
    ys = np.fromiter((ind.y for ind in individuals), dtype=np.float64, count=n)
    return xs, ys


class SpatialIndex:
    """Maintains the neighbour maps stored on each Individual."""

    def __init__(self, catalog: SpeciesCatalog):
        self.catalog = catalog

    def _kernel_params(self, individuals: list[Individual]):
        species_idx = np.fromiter(
            (self.catalog.index_of(ind.species_id) for ind in individuals),
            dtype=np.int64,
            count=len(individuals),
        )
        cat = self.catalog
        return (
            cat.birth_radius[species_idx],
            cat.birth_var[species_idx],
            cat.death_radius[species_idx],
            cat.death_var[species_idx],
        )

    def build(self, individuals: Mapping[int, Individual]) -> None:
        """Initial all-pairs pass. Only ever run once per population."""
        members = list(individuals.values())
        n = len(members)
        for ind in members:
            ind.birth_neighbors.clear()
            ind.death_neighbors.clear()
        if n < 2:
            return

        xs, ys = _positions(members)
        dist = pairwise_distances(xs, ys)
        birth_r, birth_v, death_r, death_v = self._kernel_params(members)
        ids = [ind.id for ind in members]
        off_diag = ~np.eye(n, dtype=bool)

        for kind_radius, kind_var, attr in (
            (birth_r, birth_v, "birth_neighbors"),
            (death_r, death_v, "death_neighbors"),
        ):
            # Row i uses the kernel of individual i
            mask = (dist < kind_radius[:, None]) & (kind_var[:, None] != 0.0) & off_diag
            safe_var = np.where(kind_var == 0.0, 1.0, kind_var)
            weights = np.exp(-(dist * dist) / (2.0 * safe_var[:, None]))
            rows, cols = np.nonzero(mask)
            for i, j in zip(rows.tolist(), cols.tolist()):
                getattr(members[i], attr)[ids[j]] = float(weights[i, j])

    def insert(self, child: Individual, individuals: Mapping[int, Individual]) -> None:
        """Link a newly born individual with every live individual. O(n)."""
        others = [ind for ind in individuals.values() if ind.id != child.id]
        child.birth_neighbors.clear()
        child.death_neighbors.clear()
        if not others:
            return

        xs, ys = _positions(others)
        dist = distances_from(child.x, child.y, xs, ys)
        dist_sq = dist * dist

        # Child's own maps, using the child's kernels
        child_idx = self.catalog.index_of(child.species_id)
        for radius, var, own in (
            (self.catalog.birth_radius[child_idx], self.catalog.birth_var[child_idx], child.birth_neighbors),
            (self.catalog.death_radius[child_idx], self.catalog.death_var[child_idx], child.death_neighbors),
        ):
            if var == 0.0:
                continue
            hits = np.nonzero(dist < radius)[0]
            weights = np.exp(-dist_sq[hits] / (2.0 * var))
            for k, w in zip(hits.tolist(), weights.tolist()):
                own[others[k].id] = w

        # Reciprocal entries, using each existing individual's kernels
        birth_r, birth_v, death_r, death_v = self._kernel_params(others)
        for radius, var, attr in (
            (birth_r, birth_v, "birth_neighbors"),
            (death_r, death_v, "death_neighbors"),
        ):
            hits = np.nonzero((dist < radius) & (var != 0.0))[0]
            if hits.size == 0:
                continue
            weights = np.exp(-dist_sq[hits] / (2.0 * var[hits]))
            for k, w in zip(hits.tolist(), weights.tolist()):
                getattr(others[k], attr)[child.id] = w

    def remove(self, victim_id: int, individuals: Mapping[int, Individual]) -> None:
        """Purge every reference to a dead individual from the survivors."""
        for ind in individuals.values():
            if ind.id != victim_id:
                ind.forget(victim_id)

    def verify(self, individuals: Mapping[int, Individual], rel_tol: float = 1e-9) -> bool:
        """Recompute all neighbour maps from scratch and compare.

        Expensive; intended for tests and debugging.
        """
        reference = {
            ind.id: Individual(ind.id, ind.species_id, ind.x, ind.y) for ind in individuals.values()
        }
        self.build(reference)
        for ind in individuals.values():
            ref = reference[ind.id]
            for got, expected in (
                (ind.birth_neighbors, ref.birth_neighbors),
                (ind.death_neighbors, ref.death_neighbors),
            ):
                if got.keys() != expected.keys():
                    return False
                for key, value in expected.items():
                    if not math.isclose(got[key], value, rel_tol=rel_tol, abs_tol=1e-300):
                        return False
        return True
