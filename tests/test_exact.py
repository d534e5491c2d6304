"""Tests for the exact separable distance transform."""

import pytest

import numpy as np
from scipy import ndimage

from grid_edt import ExactTransform, PIXEL_DTYPE, ShapeMismatch, check_provenance
from grid_edt.validation import source_cells_valid


class TestScenario:
    def test_horizontal_pass(self, scenario_grid, scenario_horizontal):
        np.testing.assert_array_equal(
            ExactTransform.horizontal(scenario_grid), scenario_horizontal
        )

    def test_squared_transform(self, scenario_grid, scenario_squared):
        np.testing.assert_array_equal(
            ExactTransform.transform_sq(scenario_grid), scenario_squared
        )

    def test_transform_is_sqrt(self, scenario_grid, scenario_squared):
        np.testing.assert_allclose(
            ExactTransform.transform(scenario_grid), np.sqrt(scenario_squared)
        )

    def test_relpos_squared_values(self, scenario_grid, scenario_squared):
        pixels = ExactTransform.transform_relpos_sq(scenario_grid)
        assert pixels.dtype == PIXEL_DTYPE
        np.testing.assert_array_equal(pixels["value"], scenario_squared)

    def test_flat_buffer(self, scenario_grid, scenario_squared):
        flat = ExactTransform.transform_sq(scenario_grid.ravel(), shape=(10, 5))
        assert flat.shape == (50,)
        np.testing.assert_array_equal(flat, scenario_squared.ravel())


class TestProperties:
    def test_sources_are_zero(self, random_bordered_grid):
        edt = ExactTransform.transform(random_bordered_grid)
        assert np.all(edt[~random_bordered_grid] == 0)
        assert np.all(edt[random_bordered_grid] >= 1)

    def test_invert_matches_negated_grid(self, scenario_grid):
        image = np.where(scenario_grid, 255, 0).astype(np.uint8)
        np.testing.assert_array_equal(
            ExactTransform.transform(image, invert=True),
            ExactTransform.transform(image == 0),
        )

    def test_numeric_truthiness(self, scenario_grid):
        values = np.where(scenario_grid, -3.5, 0.0)
        np.testing.assert_array_equal(
            ExactTransform.transform(values), ExactTransform.transform(scenario_grid)
        )

    @pytest.mark.parametrize("grid_name", ["padded_circle", "random_bordered_grid"])
    def test_matches_scipy(self, grid_name, request):
        grid = request.getfixturevalue(grid_name)
        np.testing.assert_allclose(
            ExactTransform.transform(grid), ndimage.distance_transform_edt(grid)
        )

    def test_top_edge_clamp(self):
        # The virtual source above row 0 sits at distance 0, below the last row at 1
        grid = np.ones((3, 1), dtype=bool)
        np.testing.assert_array_equal(ExactTransform.transform_sq(grid).ravel(), [0, 1, 1])

    def test_input_not_mutated(self, scenario_grid):
        before = scenario_grid.copy()
        ExactTransform.transform_relpos(scenario_grid, invert=True)
        np.testing.assert_array_equal(scenario_grid, before)


class TestDegenerate:
    def test_empty(self):
        assert ExactTransform.transform(np.zeros((0, 0))).shape == (0, 0)
        assert ExactTransform.transform([], shape=(0, 0)).shape == (0,)
        assert ExactTransform.transform_relpos([], shape=(0, 4)).shape == (0,)

    def test_single_source(self):
        np.testing.assert_array_equal(ExactTransform.transform([[0]]), [[0.0]])

    def test_single_target(self):
        np.testing.assert_array_equal(ExactTransform.horizontal([[1]]), [[1.0]])
        np.testing.assert_array_equal(ExactTransform.transform([[1]]), [[0.0]])

    def test_all_source(self):
        assert np.all(ExactTransform.transform(np.zeros((4, 6))) == 0)

    def test_all_target(self):
        np.testing.assert_array_equal(
            ExactTransform.transform_sq(np.ones((3, 3))),
            [[0, 0, 0], [1, 1, 1], [1, 1, 1]],
        )


class TestProvenance:
    @pytest.mark.parametrize("grid_name", ["scenario_grid", "padded_circle", "random_bordered_grid"])
    def test_value_equals_offset_norm(self, grid_name, request):
        grid = request.getfixturevalue(grid_name)
        pixels = ExactTransform.transform_relpos_sq(grid)
        norm_sq = pixels["offset_x"].astype(np.int64) ** 2 + pixels["offset_y"].astype(np.int64) ** 2
        np.testing.assert_array_equal(pixels["value"], norm_sq)
        assert np.all(check_provenance(pixels, squared=True))

    def test_unsquared_values_match_transform(self, random_bordered_grid):
        pixels = ExactTransform.transform_relpos(random_bordered_grid)
        np.testing.assert_array_equal(
            pixels["value"], ExactTransform.transform(random_bordered_grid)
        )
        assert np.all(check_provenance(pixels))

    def test_offsets_point_at_sources(self, scenario_grid):
        pixels = ExactTransform.transform_relpos(scenario_grid)
        assert np.all(source_cells_valid(pixels, scenario_grid))

    def test_sources_have_zero_offset(self, scenario_grid):
        pixels = ExactTransform.transform_relpos(scenario_grid)
        assert np.all(pixels["offset_x"][~scenario_grid] == 0)
        assert np.all(pixels["offset_y"][~scenario_grid] == 0)

    def test_offset_direction(self):
        grid = np.zeros((7, 4), dtype=bool)
        grid[1:6, 1:] = True
        pixels = ExactTransform.transform_relpos(grid)
        # Offsets are source minus cell, in (column, row) order
        assert (pixels["offset_x"][3, 1], pixels["offset_y"][3, 1]) == (-1, 0)
        assert (pixels["offset_x"][1, 2], pixels["offset_y"][1, 2]) == (0, -1)
        # Right array edge acts as a source one column outside
        assert (pixels["offset_x"][3, 3], pixels["offset_y"][3, 3]) == (1, 0)


class TestShapeMismatch:
    @pytest.mark.parametrize(
        "method",
        ["horizontal", "transform", "transform_sq", "transform_relpos", "transform_relpos_sq"],
    )
    def test_rejects_wrong_length(self, method):
        with pytest.raises(ShapeMismatch):
            getattr(ExactTransform, method)(np.zeros(49), shape=(10, 5))

    def test_rejects_flat_without_shape(self):
        with pytest.raises(ShapeMismatch):
            ExactTransform.transform(np.zeros(50))
