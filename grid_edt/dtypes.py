# grid_edt/dtypes.py
from __future__ import annotations

from typing import NamedTuple, TypeAlias

import numpy as np
from numpy.typing import NDArray


# Type Aliases
OccupancyGrid: TypeAlias = NDArray[np.bool_]
"""Binary class grid. Shape: (H, W). True=target (gets a distance), False=source."""

DistanceField: TypeAlias = NDArray[np.float64]
"""Distance to the nearest source cell. Shape: (H, W) or flat. 0 at sources."""

SpeedField: TypeAlias = NDArray[np.float64]
"""Per-cell propagation cost multiplier for the wavefront solver. Shape: (H, W)."""

PixelField: TypeAlias = NDArray[np.void]
"""Structured array of PIXEL_DTYPE records. Shape: (H, W) or flat."""


# Structured record for provenance outputs
PIXEL_DTYPE = np.dtype([
    ("value", np.float64),
    ("offset_x", np.int32),   # source column - cell column
    ("offset_y", np.int32),   # source row - cell row
])

# Value of target cells the wavefront has not reached yet
UNREACHED: float = float("inf")


# Data Containers
class GridPos(NamedTuple):
    """Cell position in (column, row) order."""
    col: int
    row: int


class Pixel(NamedTuple):
    """Distance of one cell together with the offset to its nearest source."""
    value: float
    offset_x: int
    offset_y: int

    @classmethod
    def from_record(cls, record: np.void) -> "Pixel":
        return cls(
            float(record["value"]),
            int(record["offset_x"]),
            int(record["offset_y"]),
        )
