"""
Species parameters and the shared, immutable species table.

Each species carries its base rates, neighbour-effect coefficients and the
radius/std of its birth and death interaction kernels. The kernel
normalisation constants are derived locally and never serialised.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Iterable, Mapping

import numpy as np
from numpy.typing import NDArray
from numba import njit


class MalformedInputError(ValueError):
    """Raised when species parameters or a simulation request are invalid."""


@njit(cache=True)
def kernel_norm(radius: float, std: float) -> float:
    """Mass of an isotropic 2D Gaussian kernel truncated to a disk.

    Returns 0.0 when std is zero, meaning the kernel contributes nothing.
    """
    if std == 0.0:
        return 0.0
    var = std * std
    return 2.0 * var * math.pi * (1.0 - math.exp(-(radius * radius) / (2.0 * var)))


# Parameters that must be non-negative (rates, radii, standard deviations)
_NON_NEGATIVE = (
    "b0",
    "c1",
    "d0",
    "mbrmax",
    "mbsd",
    "mintegral",
    "move_radius_max",
    "move_std",
    "birth_radius_max",
    "birth_std",
    "death_radius_max",
    "death_std",
)


@dataclass(frozen=True)
class Species:
    """Rate and kernel parameters of one species.

    ``birth_norm`` and ``death_norm`` are recomputed on every construction,
    including ``dataclasses.replace``, so they always match radius and std.
    """
    id: int
    b0: float = 0.0
    b1: float = 0.0
    c1: float = 0.0
    d0: float = 0.0
    d1: float = 0.0
    mbrmax: float = 0.0
    mbsd: float = 0.0
    mintegral: float = 0.0
    move_radius_max: float = 0.0
    move_std: float = 0.0
    birth_radius_max: float = 0.0
    birth_std: float = 0.0
    death_radius_max: float = 0.0
    death_std: float = 0.0

    birth_norm: float = field(init=False, repr=False, compare=False)
    death_norm: float = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "birth_norm", kernel_norm(float(self.birth_radius_max), float(self.birth_std)))
        object.__setattr__(self, "death_norm", kernel_norm(float(self.death_radius_max), float(self.death_std)))

    @property
    def initial_count(self) -> int:
        return int(self.c1)

    @property
    def birth_var(self) -> float:
        return self.birth_std * self.birth_std

    @property
    def death_var(self) -> float:
        return self.death_std * self.death_std

    def validate(self) -> None:
        """Reject negative or non-finite parameters."""
        for name in _NON_NEGATIVE:
            value = getattr(self, name)
            if not math.isfinite(value):
                raise MalformedInputError(f"species {self.id}: {name} must be finite, got {value!r}")
            if value < 0:
                raise MalformedInputError(f"species {self.id}: {name} must be non-negative, got {value!r}")
        for name in ("b1", "d1"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise MalformedInputError(f"species {self.id}: {name} must be finite, got {value!r}")

    @classmethod
    def from_dict(cls, data: Mapping) -> "Species":
        """Build a species from a mapping of transmitted fields.

        Derived norms are ignored if present; they are always rederived.
        """
        if "id" not in data:
            raise MalformedInputError("species entry is missing 'id'")
        kwargs = {"id": int(data["id"])}
        for f in fields(cls):
            if f.init and f.name != "id" and f.name in data:
                kwargs[f.name] = float(data[f.name])
        return cls(**kwargs)

    def to_dict(self) -> dict:
        """Transmitted fields only, without derived norms."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.init}


class SpeciesCatalog:
    """ID-indexed, immutable table of species shared by all individuals."""

    def __init__(self, species_list: Iterable[Species]):
        species = tuple(species_list)
        if len(species) == 0:
            raise MalformedInputError("species list is empty")

        seen = set()
        for sp in species:
            if not isinstance(sp, Species):
                raise MalformedInputError(f"expected Species, got {type(sp).__name__}")
            if sp.id in seen:
                raise MalformedInputError(f"duplicate species id {sp.id}")
            seen.add(sp.id)
            sp.validate()

        self._species = species
        self._index = {sp.id: idx for idx, sp in enumerate(species)}

        # Per-species parameter columns, in species_list order
        self.b0 = self._column("b0")
        self.b1 = self._column("b1")
        self.d0 = self._column("d0")
        self.d1 = self._column("d1")
        self.mbsd = self._column("mbsd")
        self.mintegral = self._column("mintegral")
        self.birth_radius = self._column("birth_radius_max")
        self.birth_std = self._column("birth_std")
        self.birth_norm = self._column("birth_norm")
        self.death_radius = self._column("death_radius_max")
        self.death_std = self._column("death_std")
        self.death_norm = self._column("death_norm")
        self.birth_var = self.birth_std * self.birth_std
        self.death_var = self.death_std * self.death_std

    def _column(self, name: str) -> NDArray[np.float64]:
        arr = np.array([getattr(sp, name) for sp in self._species], dtype=np.float64)
        arr.flags.writeable = False
        return arr

    def __len__(self) -> int:
        return len(self._species)

    def __iter__(self):
        return iter(self._species)

    def __getitem__(self, species_id: int) -> Species:
        return self._species[self._index[species_id]]

    def __contains__(self, species_id: int) -> bool:
        return species_id in self._index

    @property
    def ids(self) -> tuple[int, ...]:
        return tuple(sp.id for sp in self._species)

    def index_of(self, species_id: int) -> int:
        """Position of a species in the catalog (and in checkpoint order)."""
        return self._index[species_id]
