"""
Geometry on the unit torus [0, 1)^2 and sampling helpers (JIT compiled).
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray
from numba import njit


@njit(cache=True, inline='always')
def _axis_delta(a: float, b: float) -> float:
    """Shortest separation along one periodic axis of unit length."""
    diff = abs(a - b)
    wrap = 1.0 - diff
    if wrap < diff:
        diff = wrap
    return diff


@njit(cache=True)
def toroidal_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two points with wrap-around on both axes."""
    dx = _axis_delta(x1, x2)
    dy = _axis_delta(y1, y2)
    return math.sqrt(dx * dx + dy * dy)


@njit(cache=True)
def distances_from(
    x: float,
    y: float,
    xs: NDArray[np.float64],
    ys: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Toroidal distances from (x, y) to every point in (xs, ys)."""
    n = xs.shape[0]
    out = np.empty(n, dtype=np.float64)
    for idx in range(n):
        dx = _axis_delta(x, xs[idx])
        dy = _axis_delta(y, ys[idx])
        out[idx] = math.sqrt(dx * dx + dy * dy)
    return out


@njit(cache=True)
def pairwise_distances(xs: NDArray[np.float64], ys: NDArray[np.float64]) -> NDArray[np.float64]:
    """Symmetric toroidal distance matrix. Diagonal is zero."""
    n = xs.shape[0]
    out = np.zeros((n, n), dtype=np.float64)
    for i in range(n):
        for j in range(i + 1, n):
            dx = _axis_delta(xs[i], xs[j])
            dy = _axis_delta(ys[i], ys[j])
            dist = math.sqrt(dx * dx + dy * dy)
            out[i, j] = dist
            out[j, i] = dist
    return out


@njit(cache=True)
def wrap_unit(pos: float) -> float:
    """Wrap a coordinate into [0, 1)."""
    wrapped = math.fmod(pos, 1.0)
    if wrapped < 0.0:
        wrapped += 1.0
    # -tiny + 1.0 rounds to 1.0
    if wrapped >= 1.0:
        wrapped = 0.0
    return wrapped


@njit(cache=True)
def sample_weighted(values: NDArray[np.float64], u: float) -> int:
    """Index drawn proportionally to values using a uniform draw u in [0, 1).

    Returns -1 if the weights sum to zero.
    """
    n = values.shape[0]
    total = 0.0
    for idx in range(n):
        total += values[idx]
    if total <= 0.0:
        return -1
    r = u * total
    cumulative = 0.0
    for idx in range(n):
        cumulative += values[idx]
        if r < cumulative:
            return idx
    # Rounding can leave r at the very top; pick the last positive weight
    for idx in range(n - 1, -1, -1):
        if values[idx] > 0.0:
            return idx
    return n - 1
