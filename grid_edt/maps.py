# grid_edt/maps.py
from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray


def circle_map(size: int) -> NDArray[np.bool_]:
    """Filled disc of radius size/2 centred in a size x size grid."""
    half = size // 2
    rows, cols = np.mgrid[0:size, 0:size]
    return (cols - half) ** 2 + (rows - half) ** 2 < half * half


def cross_map(size: int) -> NDArray[np.bool_]:
    """Horizontal and vertical bars of half-width size/4 through the centre."""
    half = size // 2
    quarter = size // 4
    rows, cols = np.mgrid[0:size, 0:size]
    return (np.abs(cols - half) < quarter) | (np.abs(rows - half) < quarter)


def parse_map(rows: Sequence[str]) -> NDArray[np.bool_]:
    """Parse rows like "0011100" into a (H, W) grid; '1' marks a set cell."""
    if len({len(r) for r in rows}) > 1:
        raise ValueError("All map rows must have the same length")
    return np.array([[c == "1" for c in r] for r in rows], dtype=bool).reshape(
        len(rows), len(rows[0]) if rows else 0
    )
