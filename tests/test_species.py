import dataclasses
import math

import numpy as np
import pytest
from scipy.integrate import quad

from popsim import MalformedInputError, Species, SpeciesCatalog, kernel_norm

NORM_REL_TOL = 1e-6


def _disk_integral(radius: float, std: float) -> float:
    """Integral of exp(-d^2 / 2 std^2) over a disk, in polar coordinates."""
    value, _ = quad(
        lambda r: math.exp(-(r * r) / (2.0 * std * std)) * 2.0 * math.pi * r,
        0.0,
        radius,
        points=[std] if std < radius else None,
        epsabs=1e-14,
        epsrel=1e-12,
        limit=200,
    )
    return value


@pytest.mark.parametrize(
    "radius,std",
    [(0.1, 0.05), (0.2, 0.1), (0.05, 0.2), (0.5, 0.01), (1.0, 1.0)],
)
def test_kernel_norm_matches_numerical_integration(radius, std):
    expected = _disk_integral(radius, std)
    got = kernel_norm(radius, std)
    assert math.isclose(got, expected, rel_tol=NORM_REL_TOL), (
        f"radius={radius}, std={std}: closed form {got}, quadrature {expected}"
    )


def test_kernel_norm_zero_std_contributes_nothing():
    assert kernel_norm(0.3, 0.0) == 0.0
    sp = Species(id=0, birth_radius_max=0.3, birth_std=0.0, death_radius_max=0.3, death_std=0.0)
    assert sp.birth_norm == 0.0
    assert sp.death_norm == 0.0


def test_norms_follow_radius_and_std():
    sp = Species(id=0, birth_radius_max=0.1, birth_std=0.05, death_radius_max=0.2, death_std=0.1)
    assert sp.birth_norm == kernel_norm(0.1, 0.05)
    assert sp.death_norm == kernel_norm(0.2, 0.1)

    wider = dataclasses.replace(sp, death_radius_max=0.4)
    assert wider.death_norm == kernel_norm(0.4, 0.1)
    assert wider.birth_norm == sp.birth_norm


def test_transmitted_fields_exclude_norms():
    sp = Species(id=3, b0=0.4, c1=12, birth_radius_max=0.1, birth_std=0.05)
    data = sp.to_dict()
    assert "birth_norm" not in data and "death_norm" not in data
    assert data["c1"] == 12

    data["birth_norm"] = 123.0
    restored = Species.from_dict(data)
    assert restored == sp
    assert restored.birth_norm == kernel_norm(0.1, 0.05)


def test_from_dict_requires_id():
    with pytest.raises(MalformedInputError):
        Species.from_dict({"b0": 1.0})


def test_catalog_lookup_and_columns():
    catalog = SpeciesCatalog([
        Species(id=7, b0=0.1, birth_std=0.1, birth_radius_max=0.2),
        Species(id=2, b0=0.3, d0=0.5),
    ])
    assert len(catalog) == 2
    assert catalog.ids == (7, 2)
    assert catalog.index_of(2) == 1
    assert catalog[7].b0 == 0.1
    assert 2 in catalog and 5 not in catalog
    assert np.array_equal(catalog.b0, [0.1, 0.3])
    assert np.allclose(catalog.birth_var, [0.01, 0.0])
    assert catalog.birth_norm[1] == 0.0
    with pytest.raises(KeyError):
        catalog[5]


def test_catalog_columns_are_read_only():
    catalog = SpeciesCatalog([Species(id=0, b0=0.1)])
    with pytest.raises(ValueError):
        catalog.b0[0] = 5.0


def test_empty_species_list_rejected():
    with pytest.raises(MalformedInputError):
        SpeciesCatalog([])


def test_duplicate_species_ids_rejected():
    with pytest.raises(MalformedInputError):
        SpeciesCatalog([Species(id=1), Species(id=1)])


@pytest.mark.parametrize(
    "field_name",
    ["c1", "birth_radius_max", "birth_std", "death_radius_max", "death_std", "mbsd", "b0", "d0"],
)
def test_negative_parameters_rejected(field_name):
    sp = Species(id=0, **{field_name: -0.1})
    with pytest.raises(MalformedInputError):
        SpeciesCatalog([sp])


def test_non_finite_parameters_rejected():
    with pytest.raises(MalformedInputError):
        SpeciesCatalog([Species(id=0, d1=float("nan"))])
    with pytest.raises(MalformedInputError):
        SpeciesCatalog([Species(id=0, c1=float("inf"))])


def test_negative_effect_coefficients_allowed():
    catalog = SpeciesCatalog([Species(id=0, b1=-0.5, d1=-0.2)])
    assert catalog.b1[0] == -0.5
