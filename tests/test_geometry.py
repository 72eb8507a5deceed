import math
import numpy as np

from popsim.geometry import (
    distances_from,
    pairwise_distances,
    sample_weighted,
    toroidal_distance,
    wrap_unit,
)


def test_wraparound_pairs_use_short_distance():
    assert math.isclose(toroidal_distance(0.01, 0.3, 0.99, 0.3), 0.02, abs_tol=1e-12)
    assert math.isclose(toroidal_distance(0.3, 0.01, 0.3, 0.99), 0.02, abs_tol=1e-12)
    expected = math.hypot(0.02, 0.02)
    assert math.isclose(toroidal_distance(0.01, 0.99, 0.99, 0.01), expected, abs_tol=1e-12)


def test_half_unit_separation_is_maximal():
    assert toroidal_distance(0.0, 0.0, 0.5, 0.0) == 0.5
    assert toroidal_distance(0.25, 0.1, 0.75, 0.1) == 0.5
    # Largest possible distance on the unit torus
    assert math.isclose(toroidal_distance(0.0, 0.0, 0.5, 0.5), math.sqrt(0.5))


def test_distance_is_symmetric_and_zero_on_self():
    rng = np.random.default_rng(11)
    pts = rng.random((50, 4))
    for x1, y1, x2, y2 in pts:
        assert toroidal_distance(x1, y1, x2, y2) == toroidal_distance(x2, y2, x1, y1)
        assert toroidal_distance(x1, y1, x1, y1) == 0.0
        assert toroidal_distance(x1, y1, x2, y2) <= math.sqrt(0.5) + 1e-15


def test_vectorised_distances_match_scalar():
    rng = np.random.default_rng(12)
    xs = rng.random(40)
    ys = rng.random(40)
    row = distances_from(0.97, 0.02, xs, ys)
    matrix = pairwise_distances(xs, ys)
    for k in range(xs.shape[0]):
        assert math.isclose(row[k], toroidal_distance(0.97, 0.02, xs[k], ys[k]), rel_tol=1e-14)
        assert matrix[k, k] == 0.0
        for j in range(xs.shape[0]):
            assert matrix[k, j] == matrix[j, k]
            if j != k:
                assert math.isclose(matrix[k, j], toroidal_distance(xs[k], ys[k], xs[j], ys[j]), rel_tol=1e-14)


def test_wrap_unit_stays_in_half_open_interval():
    assert wrap_unit(0.25) == 0.25
    assert math.isclose(wrap_unit(1.25), 0.25)
    assert math.isclose(wrap_unit(-0.25), 0.75)
    assert math.isclose(wrap_unit(-3.75), 0.25)
    assert wrap_unit(1.0) == 0.0
    for value in (-1e-20, -1e-17, 1.0 - 1e-17, 2.0, -2.0):
        wrapped = wrap_unit(value)
        assert 0.0 <= wrapped < 1.0, f"wrap_unit({value}) = {wrapped}"


def test_sample_weighted_zero_total():
    assert sample_weighted(np.zeros(5), 0.3) == -1
    assert sample_weighted(np.empty(0), 0.3) == -1


def test_sample_weighted_skips_zero_weights():
    values = np.array([0.0, 2.0, 0.0, 1.0, 0.0])
    for u in np.linspace(0.0, 1.0 - 1e-12, 101):
        idx = sample_weighted(values, u)
        assert values[idx] > 0.0
    assert sample_weighted(values, 0.0) == 1
    assert sample_weighted(values, 0.99) == 3


def test_sample_weighted_frequencies():
    rng = np.random.default_rng(2024)
    values = np.array([1.0, 3.0, 6.0])
    draws = 20_000
    counts = np.zeros(3)
    for u in rng.random(draws):
        counts[sample_weighted(values, u)] += 1
    freq = counts / draws
    assert np.allclose(freq, values / values.sum(), atol=0.015), f"frequencies {freq}"
