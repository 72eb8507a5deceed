"""
Immutable population snapshots and the run history.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping

import numpy as np
from numpy.typing import NDArray

from .individual import Individual
from .species import SpeciesCatalog


def _frozen(values) -> NDArray[np.float64]:
    arr = np.array(values, dtype=np.float64)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class Checkpoint:
    """Positions of all live individuals at one instant.

    ``species_individuals[k]`` is the (x_coords, y_coords) pair of the k-th
    species in catalog order.
    """
    time: float
    species_individuals: tuple[tuple[NDArray[np.float64], NDArray[np.float64]], ...]

    @property
    def size(self) -> int:
        return sum(xs.shape[0] for xs, _ in self.species_individuals)

    def species_counts(self) -> list[int]:
        return [xs.shape[0] for xs, _ in self.species_individuals]

    def to_dict(self) -> dict:
        return {
            "time": float(self.time),
            "species_individuals": [[xs.tolist(), ys.tolist()] for xs, ys in self.species_individuals],
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "Checkpoint":
        return cls(
            time=float(data["time"]),
            species_individuals=tuple(
                (_frozen(xs), _frozen(ys)) for xs, ys in data["species_individuals"]
            ),
        )


class History:
    """Ordered sequence of checkpoints collected during a run."""

    def __init__(self, checkpoints: list[Checkpoint] | None = None):
        self.checkpoints: list[Checkpoint] = list(checkpoints) if checkpoints else []

    def append(self, checkpoint: Checkpoint) -> None:
        self.checkpoints.append(checkpoint)

    def __len__(self) -> int:
        return len(self.checkpoints)

    def __iter__(self) -> Iterator[Checkpoint]:
        return iter(self.checkpoints)

    def __getitem__(self, idx):
        return self.checkpoints[idx]

    @property
    def times(self) -> NDArray[np.float64]:
        return np.array([cp.time for cp in self.checkpoints], dtype=np.float64)

    def to_json(self) -> str:
        return json.dumps([cp.to_dict() for cp in self.checkpoints])

    @classmethod
    def from_json(cls, text: str) -> "History":
        return cls([Checkpoint.from_dict(item) for item in json.loads(text)])

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json())
        return path

    @classmethod
    def load(cls, path: str | Path) -> "History":
        return cls.from_json(Path(path).read_text())


class CheckpointRecorder:
    def __init__(self, catalog: SpeciesCatalog, history: History | None = None, keep_history: bool = True):
        self.catalog = catalog
        self.history = history if history is not None else History()
        self.keep_history = keep_history

    def snapshot(self, individuals: Mapping[int, Individual], time: float) -> Checkpoint:
        """Group live positions by species without touching the history."""
        xs: list[list[float]] = [[] for _ in range(len(self.catalog))]
        ys: list[list[float]] = [[] for _ in range(len(self.catalog))]
        for ind in individuals.values():
            k = self.catalog.index_of(ind.species_id)
            xs[k].append(ind.x)
            ys[k].append(ind.y)
        return Checkpoint(
            time=float(time),
            species_individuals=tuple((_frozen(x), _frozen(y)) for x, y in zip(xs, ys)),
        )

    def record(self, individuals: Mapping[int, Individual], time: float) -> Checkpoint:
        checkpoint = self.snapshot(individuals, time)
        if self.keep_history:
            self.history.append(checkpoint)
        return checkpoint
