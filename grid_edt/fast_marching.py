# grid_edt/fast_marching.py
"""
Fast Marching approximation of the Euclidean distance transform.

The wavefront starts at the boundary target cells and advances in order of
increasing arrival cost. Each freeze relaxes the 4-neighbours with the
discretised Eikonal update

    (cost - u_h)**2 + (cost - u_v)**2 = speed

where u_h and u_v are the cheapest known neighbours along each axis. The
frontier is a binary heap with lazy deletion: a cell may sit in the heap
several times and entries whose cost exceeds the cost table are discarded
when popped.

A ``FastMarcher`` is a resumable session. It can be advanced a bounded
number of freezes at a time or under an observer callback, and resuming a
stopped session yields exactly the field of an uninterrupted run.
"""
from __future__ import annotations

import heapq
import logging
import math
import time
from typing import Callable, Iterator, List, Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .dtypes import (
    OccupancyGrid,
    DistanceField,
    GridPos,
    SpeedField,
    UNREACHED,
)
from .errors import InternalInvariantViolation
from .grid import (
    as_occupancy,
    as_speed_field,
    empty_pixel_field,
    find_boundary,
    in_bounds,
    restore_shape,
)


logger = logging.getLogger(__name__)


# Constants

# Arrival cost of a boundary cell at unit speed (one cell away from its source)
_SEED_COST: float = 1.0

# Relaxation order: left, up, right, down
_NEIGHBORS_4: Tuple[Tuple[int, int], ...] = ((-1, 0), (0, -1), (1, 0), (0, 1))

Observer = Callable[[NDArray, Iterator[GridPos]], bool]


def solve_eikonal(
    u_h: Optional[float],
    u_v: Optional[float],
    speed: float = 1.0,
) -> float:
    """Arrival cost of a cell from its upwind horizontal/vertical costs."""
    if u_h is not None and u_v is not None:
        delta = 2.0 * speed - (u_v - u_h) ** 2
        if delta < 0.0:
            # Upwind estimates too far apart for a diagonal solution
            return min(u_h, u_v) + math.sqrt(speed)
        return (u_h + u_v + math.sqrt(delta)) / 2.0
    if u_h is not None:
        return u_h + math.sqrt(speed)
    if u_v is not None:
        return u_v + math.sqrt(speed)
    raise InternalInvariantViolation("relaxed a cell with no known upwind neighbour")


class FastMarcher:
    """Resumable Fast Marching session over one occupancy grid."""

    def __init__(
        self,
        occupied: OccupancyGrid,
        speed: Optional[SpeedField] = None,
        relpos: bool = False,
        output_shape: Optional[Tuple[int, ...]] = None,
    ):
        H, W = occupied.shape
        self._occupied = occupied
        self._speed = speed
        self._relpos = relpos
        self._output_shape = output_shape if output_shape is not None else (H, W)

        # Authoritative cost table; inf means unknown (sources stay inf)
        self._cost = np.full((H, W), np.inf, dtype=np.float64)
        self._frozen = np.zeros((H, W), dtype=bool)
        self._heap: List[Tuple[float, int, int]] = []
        self.steps = 0

        if relpos:
            # Absolute (col, row) of the source each cell descends from
            self._source = np.zeros((H, W, 2), dtype=np.int64)
            self._field = empty_pixel_field((H, W))
            self._field["value"][occupied] = UNREACHED
        else:
            self._source = None
            self._field = np.where(occupied, UNREACHED, 0.0)

        for pos in find_boundary(occupied):
            cost = _SEED_COST * math.sqrt(self._speed_at(pos.col, pos.row))
            self._update(pos.col, pos.row, cost, self._adjacent_source(pos))

    @classmethod
    def from_grid(
        cls,
        grid: ArrayLike,
        shape: Optional[Tuple[int, int]] = None,
        invert: bool = False,
        speed: Optional[ArrayLike] = None,
        relpos: bool = False,
    ) -> "FastMarcher":
        """Start a session on a caller buffer (copied, never mutated)."""
        occupied, input_shape = as_occupancy(grid, shape, invert)
        speed_field = as_speed_field(speed, occupied.shape)
        return cls(occupied, speed_field, relpos=relpos, output_shape=input_shape)

    # Session state

    @property
    def field(self) -> NDArray:
        """Read-only live view of the field in the caller's layout."""
        view = self._field.view()
        view.flags.writeable = False
        return view.reshape(self._output_shape)

    @property
    def costs(self) -> DistanceField:
        """Read-only view of the authoritative (H, W) cost table."""
        view = self._cost.view()
        view.flags.writeable = False
        return view

    @property
    def done(self) -> bool:
        """True once no further ``step`` can relax a cell."""
        self._discard_idle()
        return not self._heap

    def frontier(self) -> Iterator[GridPos]:
        """Positions of the live (non-stale) heap entries."""
        return (
            GridPos(col, row)
            for cost, row, col in self._heap
            if cost <= self._cost[row, col]
        )

    def result(self) -> NDArray:
        """Copy of the current field in the caller's layout."""
        return restore_shape(self._field.copy(), self._output_shape)

    # Propagation

    def _speed_at(self, col: int, row: int) -> float:
        if self._speed is None:
            return 1.0
        return float(self._speed[row, col])

    def _adjacent_source(self, pos: GridPos) -> Tuple[int, int]:
        """First source (or off-grid) 4-neighbour of a boundary cell."""
        for dc, dr in _NEIGHBORS_4:
            col, row = pos.col + dc, pos.row + dr
            if not in_bounds(self._occupied, col, row) or not self._occupied[row, col]:
                return col, row
        return pos.col, pos.row

    def _upwind(
        self,
        first: Tuple[int, int],
        second: Tuple[int, int],
    ) -> Optional[Tuple[int, int]]:
        """The cheaper known cell of an opposite pair, or None if neither is."""
        best = None
        best_cost = np.inf
        for col, row in (first, second):
            if in_bounds(self._occupied, col, row) and self._cost[row, col] < best_cost:
                best = (col, row)
                best_cost = self._cost[row, col]
        return best

    def _update(
        self,
        col: int,
        row: int,
        cost: float,
        source: Tuple[int, int],
    ) -> None:
        self._cost[row, col] = cost
        if self._relpos:
            self._source[row, col] = source
            self._field[row, col] = (cost, source[0] - col, source[1] - row)
        else:
            self._field[row, col] = cost
        heapq.heappush(self._heap, (cost, row, col))

    def _candidate(
        self,
        col: int,
        row: int,
    ) -> Optional[Tuple[float, Tuple[int, int]]]:
        """Improved (cost, source) for a cell, or None if relaxing it is a no-op."""
        if not in_bounds(self._occupied, col, row) or not self._occupied[row, col]:
            return None
        # Only the provenance variant may reopen a frozen cell
        if self._frozen[row, col] and not self._relpos:
            return None

        horizontal = self._upwind((col - 1, row), (col + 1, row))
        vertical = self._upwind((col, row - 1), (col, row + 1))
        u_h = None if horizontal is None else float(self._cost[horizontal[1], horizontal[0]])
        u_v = None if vertical is None else float(self._cost[vertical[1], vertical[0]])
        cost = solve_eikonal(u_h, u_v, self._speed_at(col, row))

        if not cost < self._cost[row, col]:
            return None

        source = (0, 0)
        if self._relpos:
            # Inherit the provenance of the cheaper upwind neighbour
            if u_v is not None and (u_h is None or u_v < u_h):
                upwind = vertical
            else:
                upwind = horizontal
            source = tuple(self._source[upwind[1], upwind[0]])
        return cost, source

    def _relax(self, col: int, row: int) -> bool:
        candidate = self._candidate(col, row)
        if candidate is None:
            return False
        self._update(col, row, *candidate)
        return True

    def _is_live(self, cost: float, row: int, col: int) -> bool:
        return cost <= self._cost[row, col] and bool(self._occupied[row, col])

    def _discard_idle(self) -> None:
        """Pop stale entries and freezes that would relax nothing.

        Neighbours of one cell are never 4-adjacent to each other, so the
        check on the heap top matches what popping it would do. Afterwards
        the heap is empty or ``step`` is guaranteed to make progress.
        """
        while self._heap:
            cost, row, col = self._heap[0]
            if self._is_live(cost, row, col):
                if any(
                    self._candidate(col + dc, row + dr) is not None
                    for dc, dr in _NEIGHBORS_4
                ):
                    return
                self._frozen[row, col] = True
            heapq.heappop(self._heap)

    def step(self) -> bool:
        """Freeze cells until one relaxes a neighbour. False once exhausted."""
        while self._heap:
            cost, row, col = heapq.heappop(self._heap)
            if not self._is_live(cost, row, col):
                continue
            self._frozen[row, col] = True

            changed = False
            for dc, dr in _NEIGHBORS_4:
                changed |= self._relax(col + dc, row + dr)
            if changed:
                self.steps += 1
                return True
        return False

    def evolve(self, max_steps: Optional[int] = None) -> bool:
        """Advance up to ``max_steps`` productive freezes (all if None).

        Returns whether work remains: True means the next ``step`` will
        relax at least one cell.
        """
        start = time.perf_counter()
        taken = 0
        more = True
        while max_steps is None or taken < max_steps:
            if not self.step():
                more = False
                break
            taken += 1
        else:
            more = not self.done

        logger.debug(
            "FastMarcher.evolve: steps %d, heap %d, time %.6fs",
            taken, len(self._heap), time.perf_counter() - start,
        )
        return more

    def evolve_cb(self, observer: Observer) -> bool:
        """Advance while ``observer(field, frontier)`` returns True.

        The observer runs after every productive freeze. It gets a read-only
        view of the field and a generator over the frontier; neither should
        be kept past the call. Returns True when the observer stopped the
        run, in which case the session can be resumed.
        """
        while self.step():
            if not observer(self.field, self.frontier()):
                logger.debug("FastMarcher.evolve_cb: stopped at step %d", self.steps)
                return True
        return False


class WavefrontSolver:
    """One-call entry points over ``FastMarcher`` sessions."""

    @staticmethod
    def solve(
        grid: ArrayLike,
        shape: Optional[Tuple[int, int]] = None,
        invert: bool = False,
        speed: Optional[ArrayLike] = None,
        relpos: bool = False,
    ) -> NDArray:
        """Approximate EDT by Fast Marching.

        Returns a float field, or a PIXEL_DTYPE field carrying the offset to
        the inherited source when ``relpos`` is set. ``speed`` optionally
        weights the propagation cost per cell.
        """
        marcher = FastMarcher.from_grid(grid, shape, invert, speed, relpos)
        marcher.evolve()
        return marcher.result()

    @staticmethod
    def solve_steps(
        grid: ArrayLike,
        shape: Optional[Tuple[int, int]] = None,
        invert: bool = False,
        max_steps: Optional[int] = None,
        speed: Optional[ArrayLike] = None,
        relpos: bool = False,
    ) -> Tuple[NDArray, bool]:
        """Run at most ``max_steps`` freezes; returns (field, more_work_remaining)."""
        marcher = FastMarcher.from_grid(grid, shape, invert, speed, relpos)
        more = marcher.evolve(max_steps)
        return marcher.result(), more

    @staticmethod
    def solve_with_callback(
        grid: ArrayLike,
        shape: Optional[Tuple[int, int]] = None,
        invert: bool = False,
        observer: Optional[Observer] = None,
        speed: Optional[ArrayLike] = None,
        relpos: bool = False,
    ) -> NDArray:
        """Run under an observer; unreached cells keep UNREACHED if it stops early."""
        marcher = FastMarcher.from_grid(grid, shape, invert, speed, relpos)
        if observer is None:
            marcher.evolve()
        else:
            marcher.evolve_cb(observer)
        return marcher.result()
