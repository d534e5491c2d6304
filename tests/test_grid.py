"""Tests for buffer coercion, shape checks and boundary extraction."""

import pytest

import numpy as np

from grid_edt.dtypes import PIXEL_DTYPE, GridPos, Pixel
from grid_edt.errors import ShapeMismatch
from grid_edt.grid import (
    as_occupancy,
    as_speed_field,
    empty_pixel_field,
    find_boundary,
    in_bounds,
    resolve_shape,
)
from grid_edt.maps import circle_map, cross_map, parse_map


class TestResolveShape:
    def test_2d_without_shape(self):
        assert resolve_shape(np.zeros((5, 10)), None) == (10, 5)

    def test_flat_with_shape(self):
        assert resolve_shape(np.zeros(50), (10, 5)) == (10, 5)

    def test_flat_without_shape_rejected(self):
        with pytest.raises(ShapeMismatch):
            resolve_shape(np.zeros(50), None)

    def test_size_mismatch(self):
        with pytest.raises(ShapeMismatch) as exc_info:
            resolve_shape(np.zeros(49), (10, 5))
        assert exc_info.value.shape == (10, 5)
        assert exc_info.value.size == 49

    def test_negative_dimension(self):
        with pytest.raises(ShapeMismatch):
            resolve_shape(np.zeros(0), (-1, 0))

    def test_shape_mismatch_is_value_error(self):
        with pytest.raises(ValueError):
            resolve_shape(np.zeros(3), (2, 2))


class TestAsOccupancy:
    def test_truthiness(self):
        occupied, shape = as_occupancy(np.array([[0, 3], [-1, 0]]))
        assert shape == (2, 2)
        np.testing.assert_array_equal(occupied, [[False, True], [True, False]])

    def test_invert(self):
        occupied, _ = as_occupancy(np.array([[0.0, 0.5]]), invert=True)
        np.testing.assert_array_equal(occupied, [[True, False]])

    def test_flat_buffer_is_row_major(self):
        occupied, shape = as_occupancy([1, 0, 0, 0, 0, 1], shape=(3, 2))
        assert shape == (6,)
        np.testing.assert_array_equal(occupied, [[True, False, False], [False, False, True]])

    def test_input_not_mutated(self):
        grid = np.array([[1, 0], [0, 1]])
        as_occupancy(grid, invert=True)
        np.testing.assert_array_equal(grid, [[1, 0], [0, 1]])


class TestSpeedField:
    def test_none_passthrough(self):
        assert as_speed_field(None, (2, 3)) is None

    def test_reshaped(self):
        speed = as_speed_field(np.arange(6), (2, 3))
        assert speed.shape == (2, 3)
        assert speed.dtype == np.float64

    def test_size_mismatch(self):
        with pytest.raises(ShapeMismatch):
            as_speed_field(np.ones(5), (2, 3))


class TestBoundary:
    def test_scenario_boundary(self, scenario_grid):
        boundary = set(find_boundary(scenario_grid))
        # 21 targets, 8 of which have only target neighbours
        assert len(boundary) == 13
        assert GridPos(7, 2) in boundary
        assert GridPos(4, 2) not in boundary
        assert all(isinstance(p, GridPos) for p in boundary)

    def test_edge_cells_are_boundary(self):
        grid = np.ones((3, 3), dtype=bool)
        boundary = set(find_boundary(grid))
        assert GridPos(1, 1) not in boundary
        assert len(boundary) == 8

    def test_empty(self):
        assert find_boundary(np.zeros((0, 0), dtype=bool)) == []

    def test_in_bounds(self):
        grid = np.zeros((2, 3), dtype=bool)
        assert in_bounds(grid, 2, 1)
        assert not in_bounds(grid, 3, 1)
        assert not in_bounds(grid, 0, -1)


class TestDataContainers:
    def test_empty_pixel_field(self):
        pixels = empty_pixel_field((2, 3))
        assert pixels.dtype == PIXEL_DTYPE
        assert pixels.shape == (2, 3)
        assert np.all(pixels["value"] == 0)

    def test_pixel_from_record(self):
        pixels = empty_pixel_field((1, 1))
        pixels[0, 0] = (2.5, -1, 3)
        assert Pixel.from_record(pixels[0, 0]) == Pixel(2.5, -1, 3)


class TestMaps:
    def test_circle(self):
        grid = circle_map(16)
        assert grid.shape == (16, 16)
        assert grid[8, 8]
        assert not grid[0, 0]
        assert not grid[0, 8]

    def test_cross(self):
        grid = cross_map(16)
        assert grid[8, 0] and grid[0, 8]
        assert not grid[0, 0]
        assert not grid[15, 15]

    def test_parse_map(self):
        np.testing.assert_array_equal(parse_map(["01", "10"]), [[False, True], [True, False]])

    def test_parse_ragged(self):
        with pytest.raises(ValueError):
            parse_map(["010", "10"])
