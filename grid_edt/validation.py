# grid_edt/validation.py
from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .dtypes import DistanceField, PixelField
from .grid import as_occupancy


# Constants
_DEFAULT_TOLERANCE: float = 0.2    # Empirical exact-vs-FMM relative error bound
_EPSILON: float = 1e-12            # Denominator floor for relative error
_PROVENANCE_ATOL: float = 1e-9     # Absolute tolerance for value vs |offset|


def relative_error(
    exact: DistanceField,
    approx: DistanceField,
    epsilon: float = _EPSILON,
) -> NDArray[np.float64]:
    """Per-cell |exact - approx| / max(exact, approx, epsilon).

    Cells whose exact distance is zero report 0. Cells the approximation never
    reached (infinite) report 1.
    """
    exact = np.asarray(exact, dtype=np.float64)
    approx = np.asarray(approx, dtype=np.float64)

    with np.errstate(invalid="ignore"):
        denom = np.maximum(np.maximum(exact, approx), epsilon)
        err = np.abs(exact - approx) / denom

    err = np.where(np.isfinite(approx), err, 1.0)
    return np.where(exact == 0, 0.0, err)


def check_fmm_accuracy(
    exact: DistanceField,
    approx: DistanceField,
    tolerance: float = _DEFAULT_TOLERANCE,
) -> float:
    """Fraction of cells with nonzero exact distance within ``tolerance``."""
    exact = np.asarray(exact, dtype=np.float64)
    considered = exact != 0
    if not np.any(considered):
        return 1.0
    err = relative_error(exact, approx)
    return float(np.mean(err[considered] < tolerance))


def check_provenance(
    pixels: PixelField,
    squared: bool = False,
    atol: float = _PROVENANCE_ATOL,
) -> NDArray[np.bool_]:
    """Mask of cells whose value matches the norm of their offset."""
    off_x = pixels["offset_x"].astype(np.float64)
    off_y = pixels["offset_y"].astype(np.float64)
    norm_sq = off_x ** 2 + off_y ** 2
    expected = norm_sq if squared else np.sqrt(norm_sq)

    value = pixels["value"]
    finite = np.isfinite(value)
    return finite & np.isclose(np.where(finite, value, 0.0), expected, rtol=0.0, atol=atol)


def source_cells_valid(
    pixels: PixelField,
    grid: ArrayLike,
    shape: Optional[Tuple[int, int]] = None,
    invert: bool = False,
) -> NDArray[np.bool_]:
    """Mask of reached target cells whose offset lands on a source.

    A source is an opposite-class cell or any position outside the grid.
    Source cells and unreached cells report True.
    """
    occupied, _ = as_occupancy(grid, shape, invert)
    H, W = occupied.shape
    pixels = pixels.reshape(H, W)

    rows, cols = np.mgrid[0:H, 0:W]
    src_col = cols + pixels["offset_x"]
    src_row = rows + pixels["offset_y"]

    inside = (src_col >= 0) & (src_col < W) & (src_row >= 0) & (src_row < H)
    landed_on_target = np.zeros((H, W), dtype=bool)
    landed_on_target[inside] = occupied[src_row[inside], src_col[inside]]

    checked = occupied & np.isfinite(pixels["value"])
    return ~(checked & landed_on_target)
