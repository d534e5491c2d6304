"""
Shared fixtures for grid_edt tests.

Provides the small obstacle map used throughout the suite together with its
known horizontal and squared distance rows, and a few synthetic maps whose
array edges are all sources.
"""

import pytest

import numpy as np

from grid_edt.maps import circle_map, parse_map


SCENARIO_ROWS = [
    "0000000000",
    "0001111000",
    "0011111110",
    "0011111100",
    "0001111000",
]


def parse_digits(rows):
    """Rows like "0012343210" to a (H, W) float array."""
    return np.array([[float(c) for c in r] for r in rows])


# ============================================================================
# Maps
# ============================================================================


@pytest.fixture
def scenario_grid():
    """10x5 obstacle map (True = target)."""
    return parse_map(SCENARIO_ROWS)


@pytest.fixture
def scenario_horizontal():
    return parse_digits([
        "0000000000",
        "0001221000",
        "0012343210",
        "0012332100",
        "0001221000",
    ])


@pytest.fixture
def scenario_squared():
    return parse_digits([
        "0000000000",
        "0001111000",
        "0012442110",
        "0012442100",
        "0001111000",
    ])


@pytest.fixture
def padded_circle():
    """Disc map with a two-cell source border."""
    return np.pad(circle_map(24), 2)


@pytest.fixture
def random_bordered_grid():
    """Random 20x30 map whose edge cells are all sources."""
    rng = np.random.default_rng(7)
    grid = rng.random((20, 30)) < 0.7
    grid[[0, -1], :] = False
    grid[:, [0, -1]] = False
    return grid
