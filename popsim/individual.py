from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(eq=False)
class Individual:
    """One live individual on the torus.

    ``species_id`` refers into the shared SpeciesCatalog. The two neighbour
    maps hold ``neighbour id -> kernel weight`` for every other individual
    within this individual's birth (resp. death) kernel radius.
    """
    id: int
    species_id: int
    x: float
    y: float
    p_birth: float = 0.0
    p_death: float = 0.0
    p_move: float = 0.0
    birth_neighbors: dict[int, float] = field(default_factory=dict)
    death_neighbors: dict[int, float] = field(default_factory=dict)

    def forget(self, other_id: int) -> None:
        """Drop any reference to another individual."""
        self.birth_neighbors.pop(other_id, None)
        self.death_neighbors.pop(other_id, None)
