# grid_edt/__init__.py

from grid_edt.dtypes import (
    OccupancyGrid,
    DistanceField,
    SpeedField,
    PixelField,
    PIXEL_DTYPE,
    UNREACHED,
    GridPos,
    Pixel,
)
from grid_edt.errors import ShapeMismatch, InternalInvariantViolation
from grid_edt.exact import ExactTransform
from grid_edt.fast_marching import FastMarcher, WavefrontSolver, solve_eikonal
from grid_edt.validation import (
    relative_error,
    check_fmm_accuracy,
    check_provenance,
    source_cells_valid,
)


__version__ = "1.0.0"
__author__ = "Grid EDT Team"

__all__ = [
    # Type aliases
    "OccupancyGrid",
    "DistanceField",
    "SpeedField",
    "PixelField",
    # Data containers
    "PIXEL_DTYPE",
    "UNREACHED",
    "GridPos",
    "Pixel",
    # Errors
    "ShapeMismatch",
    "InternalInvariantViolation",
    # Solvers
    "ExactTransform",
    "FastMarcher",
    "WavefrontSolver",
    "solve_eikonal",
    # Validation utilities
    "relative_error",
    "check_fmm_accuracy",
    "check_provenance",
    "source_cells_valid",
]
