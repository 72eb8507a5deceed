from __future__ import annotations

from typing import MutableMapping

import numpy as np

from .geometry import wrap_unit
from .individual import Individual
from .spatial_index import SpatialIndex
from .species import SpeciesCatalog


class PopulationMutator:
    """Applies birth and death events to the live set.

    Neither operation touches the simulation clock or records a checkpoint.
    """

    def __init__(self, catalog: SpeciesCatalog, index: SpatialIndex, rng: np.random.Generator, next_id: int = 0):
        self.catalog = catalog
        self.index = index
        self.rng = rng
        self.next_id = next_id

    def spawn(self, species_id: int, x: float, y: float, individuals: MutableMapping[int, Individual]) -> Individual:
        """Place a new individual at (x, y) and link it into the index."""
        ind = Individual(self.next_id, species_id, wrap_unit(float(x)), wrap_unit(float(y)))
        self.next_id += 1
        self.index.insert(ind, individuals)
        individuals[ind.id] = ind
        return ind

    def execute_birth(self, parent_id: int, individuals: MutableMapping[int, Individual]) -> Individual:
        """Gaussian dispersal around the parent with the species' mbsd."""
        parent = individuals[parent_id]
        sd = self.catalog[parent.species_id].mbsd
        x = self.rng.normal(parent.x, sd)
        y = self.rng.normal(parent.y, sd)
        return self.spawn(parent.species_id, x, y, individuals)

    def execute_death(self, victim_id: int, individuals: MutableMapping[int, Individual]) -> Individual:
        victim = individuals.pop(victim_id)
        self.index.remove(victim_id, individuals)
        return victim
