# grid_edt/grid.py
from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import ndimage

from .dtypes import OccupancyGrid, GridPos, PixelField, SpeedField, PIXEL_DTYPE
from .errors import ShapeMismatch


logger = logging.getLogger(__name__)

# 4-connectivity (von Neumann neighbourhood)
_CROSS_STRUCTURE = ndimage.generate_binary_structure(2, 1)


def resolve_shape(
    values: NDArray[Any],
    shape: Optional[Tuple[int, int]],
) -> Tuple[int, int]:
    """Return (width, height) for a buffer, validating it against its size."""
    if shape is None:
        if values.ndim != 2:
            raise ShapeMismatch(
                f"A {values.ndim}-D buffer needs an explicit (width, height) shape",
                size=int(values.size),
            )
        height, width = values.shape
        return int(width), int(height)

    width, height = (int(s) for s in shape)
    if width < 0 or height < 0:
        raise ShapeMismatch(
            f"Negative grid dimensions: {width}x{height}",
            shape=(width, height),
            size=int(values.size),
        )
    if width * height != values.size:
        raise ShapeMismatch(
            f"Shape {width}x{height} needs {width * height} cells, "
            f"buffer holds {values.size}",
            shape=(width, height),
            size=int(values.size),
        )
    return width, height


def as_occupancy(
    grid: ArrayLike,
    shape: Optional[Tuple[int, int]] = None,
    invert: bool = False,
) -> Tuple[OccupancyGrid, Tuple[int, ...]]:
    """Coerce an input buffer into a (H, W) target mask.

    Any value is truthy when nonzero. A cell is a target (it receives a
    distance) when its truthiness differs from ``invert``; the other class
    are the sources. Also returns the caller's original array shape so
    outputs can be handed back with the same indexing.
    """
    values = np.asarray(grid)
    width, height = resolve_shape(values, shape)
    occupied = values.astype(bool).reshape(height, width) != invert
    return occupied, values.shape


def as_speed_field(
    speed: Optional[ArrayLike],
    dims: Tuple[int, int],
) -> Optional[SpeedField]:
    """Validate an optional speed field against the (H, W) grid dims."""
    if speed is None:
        return None
    height, width = dims
    values = np.asarray(speed, dtype=np.float64)
    if values.size != width * height:
        raise ShapeMismatch(
            f"Speed field holds {values.size} cells, grid is {width}x{height}",
            shape=(width, height),
            size=int(values.size),
        )
    return values.reshape(height, width)


def find_boundary(occupied: OccupancyGrid) -> List[GridPos]:
    """Target cells with a source 4-neighbour or lying on the array edge."""
    if occupied.size == 0:
        return []
    # Outside the array counts as source (border_value=0)
    interior = ndimage.binary_erosion(
        occupied, structure=_CROSS_STRUCTURE, border_value=0
    )
    rows, cols = np.nonzero(occupied & ~interior)
    logger.debug("boundary size: %d", len(rows))
    return [GridPos(int(c), int(r)) for r, c in zip(rows, cols)]


def in_bounds(occupied: OccupancyGrid, col: int, row: int) -> bool:
    height, width = occupied.shape
    return 0 <= col < width and 0 <= row < height


def empty_pixel_field(dims: Tuple[int, int]) -> PixelField:
    """Zero-initialised provenance field of (H, W) records."""
    return np.zeros(dims, dtype=PIXEL_DTYPE)


def restore_shape(field: NDArray[Any], input_shape: Tuple[int, ...]) -> NDArray[Any]:
    """Reshape an (H, W) result back to the caller's buffer layout."""
    return field.reshape(input_shape)
