# grid_edt/errors.py
from __future__ import annotations

from typing import Optional, Tuple


class ShapeMismatch(ValueError):
    """Raised when the declared (width, height) does not describe the buffer."""

    def __init__(
        self,
        message: str,
        shape: Optional[Tuple[int, int]] = None,
        size: Optional[int] = None,
    ):
        super().__init__(message)
        self.shape = shape
        self.size = size


class InternalInvariantViolation(RuntimeError):
    """A relaxed cell had no known upwind neighbour on either axis.

    Boundary seeding plus 4-connectivity rules this out, so hitting it means
    the solver state is corrupt. It is never caught inside the package.
    """
