# grid_edt/exact.py
from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .dtypes import (
    OccupancyGrid,
    DistanceField,
    PixelField,
)
from .grid import as_occupancy, empty_pixel_field, restore_shape


class ExactTransform:
    """Exact separable Euclidean distance transform (Saito's two-pass scheme).

    The horizontal pass finds, per row, the distance to the nearest source in
    that row. The vertical pass takes, per column, the lower envelope of the
    parabolas ``(y2 - y)**2 + horz[y2]**2``. Both array edges of a row act as
    sources one cell outside it; vertically the envelope is clamped by ``y**2``
    and ``(height - y)**2``.
    """

    @staticmethod
    def _horizontal_pass(occupied: OccupancyGrid) -> DistanceField:
        """Per-row distance to the nearest source, via two linear sweeps."""
        H, W = occupied.shape
        # Sentinel larger than any in-grid distance
        horz = np.where(occupied, float(occupied.size), 0.0)

        running = np.zeros(H, dtype=np.float64)
        for x in range(W):
            horz[:, x] = np.minimum(horz[:, x], running + 1.0)
            running = horz[:, x]

        running = np.zeros(H, dtype=np.float64)
        for x in range(W - 1, -1, -1):
            horz[:, x] = np.minimum(horz[:, x], running + 1.0)
            running = horz[:, x]

        return horz

    @staticmethod
    def _horizontal_pass_relpos(
        occupied: OccupancyGrid,
    ) -> Tuple[DistanceField, NDArray[np.int64]]:
        """Horizontal pass that also tracks the column offset to the source."""
        H, W = occupied.shape
        horz = np.where(occupied, float(occupied.size), 0.0)
        offset_x = np.zeros((H, W), dtype=np.int64)

        # Left-to-right: the source lies at smaller columns (offset -1 per step)
        sweeps = ((range(W), -1), (range(W - 1, -1, -1), 1))
        for columns, step in sweeps:
            running = np.zeros(H, dtype=np.float64)
            running_off = np.zeros(H, dtype=np.int64)
            for x in columns:
                candidate = running + 1.0
                better = candidate < horz[:, x]
                horz[better, x] = candidate[better]
                offset_x[better, x] = running_off[better] + step
                running = horz[:, x]
                running_off = offset_x[:, x]

        return horz, offset_x

    @staticmethod
    def _vertical_pass(horz: DistanceField) -> DistanceField:
        """Squared EDT from the horizontal distances (lower parabola envelope)."""
        H, W = horz.shape
        rows = np.arange(H, dtype=np.float64)
        horz_sq = horz ** 2
        result = np.empty((H, W), dtype=np.float64)

        for y in range(H):
            envelope = ((rows - y) ** 2)[:, None] + horz_sq   # (H, W)
            edge = min(float(y) ** 2, float(H - y) ** 2)
            result[y] = np.minimum(envelope.min(axis=0), edge)

        return result

    @staticmethod
    def _vertical_pass_relpos(
        horz: DistanceField,
        offset_x: NDArray[np.int64],
    ) -> PixelField:
        """Vertical pass that reports the offset of the winning parabola."""
        H, W = horz.shape
        rows = np.arange(H, dtype=np.float64)
        cols = np.arange(W)
        horz_sq = horz ** 2
        result = empty_pixel_field((H, W))

        for y in range(H):
            envelope = ((rows - y) ** 2)[:, None] + horz_sq
            winner = envelope.argmin(axis=0)                    # first of tied minima; tied values are equal
            value = envelope[winner, cols]
            off_x = offset_x[winner, cols]
            off_y = winner - y

            # Virtual sources just above row 0 and just below the last row
            top = float(y) ** 2
            bottom = float(H - y) ** 2
            use_top = (top < value) & (top <= bottom)
            use_bottom = (bottom < value) & ~use_top

            value = np.where(use_top, top, np.where(use_bottom, bottom, value))
            off_x = np.where(use_top | use_bottom, 0, off_x)
            off_y = np.where(use_top, -y, np.where(use_bottom, H - y, off_y))

            result["value"][y] = value
            result["offset_x"][y] = off_x
            result["offset_y"][y] = off_y

        return result

    @classmethod
    def horizontal(
        cls,
        grid: ArrayLike,
        shape: Optional[Tuple[int, int]] = None,
        invert: bool = False,
    ) -> DistanceField:
        """Horizontal pass alone: per-row distance to the nearest source."""
        occupied, input_shape = as_occupancy(grid, shape, invert)
        return restore_shape(cls._horizontal_pass(occupied), input_shape)

    @classmethod
    def transform_sq(
        cls,
        grid: ArrayLike,
        shape: Optional[Tuple[int, int]] = None,
        invert: bool = False,
    ) -> DistanceField:
        """Squared EDT. Cheaper than ``transform`` when only ordering matters."""
        occupied, input_shape = as_occupancy(grid, shape, invert)
        horz = cls._horizontal_pass(occupied)
        return restore_shape(cls._vertical_pass(horz), input_shape)

    @classmethod
    def transform(
        cls,
        grid: ArrayLike,
        shape: Optional[Tuple[int, int]] = None,
        invert: bool = False,
    ) -> DistanceField:
        """Euclidean distance from every cell to the nearest source cell.

        ``grid`` is any array-like whose nonzero cells are targets (or sources
        when ``invert`` is set). ``shape`` is ``(width, height)`` and may be
        omitted for 2-D input. The result has the same shape as ``grid``.
        """
        return np.sqrt(cls.transform_sq(grid, shape, invert))

    @classmethod
    def transform_relpos_sq(
        cls,
        grid: ArrayLike,
        shape: Optional[Tuple[int, int]] = None,
        invert: bool = False,
    ) -> PixelField:
        """Squared EDT with the (column, row) offset to the nearest source."""
        occupied, input_shape = as_occupancy(grid, shape, invert)
        horz, offset_x = cls._horizontal_pass_relpos(occupied)
        return restore_shape(cls._vertical_pass_relpos(horz, offset_x), input_shape)

    @classmethod
    def transform_relpos(
        cls,
        grid: ArrayLike,
        shape: Optional[Tuple[int, int]] = None,
        invert: bool = False,
    ) -> PixelField:
        """EDT with the (column, row) offset to the nearest source."""
        pixels = cls.transform_relpos_sq(grid, shape, invert)
        pixels["value"] = np.sqrt(pixels["value"])
        return pixels
