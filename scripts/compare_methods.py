# scripts/compare_methods.py
from __future__ import annotations

import argparse
import logging
import time
from dataclasses import dataclass, field

import matplotlib.pyplot as plt
import numpy as np
from tqdm import tqdm

from grid_edt import ExactTransform, WavefrontSolver, check_fmm_accuracy, relative_error
from grid_edt.maps import circle_map, cross_map

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

# Constants
PLOT_COLORS = ["#1f77b4", "#ff7f0e"]
MAP_BUILDERS = {
    "circle": circle_map,
    "cross": cross_map,
}
DEFAULT_SIZES = (32, 64, 128)


@dataclass
class MethodMetrics:
    """Aggregated metrics for one map type."""

    sizes: list[int] = field(default_factory=list)
    exact_times: list[float] = field(default_factory=list)
    fmm_times: list[float] = field(default_factory=list)
    accuracy: list[float] = field(default_factory=list)
    max_error: list[float] = field(default_factory=list)


def _timed(fn, *args, **kwargs) -> tuple[np.ndarray, float]:
    start = time.perf_counter()
    out = fn(*args, **kwargs)
    return out, (time.perf_counter() - start) * 1000


def run_comparison(
    map_names: list[str],
    sizes: list[int],
    tolerance: float,
) -> dict[str, MethodMetrics]:
    """Run both transforms on every (map, size) pair and collect metrics."""
    results = {name: MethodMetrics() for name in map_names}
    jobs = [(name, size) for name in map_names for size in sizes]

    for name, size in tqdm(jobs, desc="Comparing Methods"):
        grid = MAP_BUILDERS[name](size)

        exact, exact_ms = _timed(ExactTransform.transform, grid)
        approx, fmm_ms = _timed(WavefrontSolver.solve, grid)

        res = results[name]
        res.sizes.append(size)
        res.exact_times.append(exact_ms)
        res.fmm_times.append(fmm_ms)
        res.accuracy.append(check_fmm_accuracy(exact, approx, tolerance) * 100)
        res.max_error.append(float(relative_error(exact, approx).max(initial=0.0)))

    return results


def print_results_table(results: dict[str, MethodMetrics]) -> None:
    """Print results in a formatted table."""
    print("\n" + "=" * 72)
    print(
        f"{'Map':<8} | {'Size':<6} | {'Exact (ms)':<11} | {'FMM (ms)':<11} | "
        f"{'Within (%)':<11} | {'Max err':<8}"
    )
    print("-" * 72)

    for name, res in results.items():
        for i, size in enumerate(res.sizes):
            print(
                f"{name:<8} | {size:<6} | {res.exact_times[i]:<11.2f} | "
                f"{res.fmm_times[i]:<11.2f} | {res.accuracy[i]:<11.2f} | "
                f"{res.max_error[i]:<8.3f}"
            )
    print("=" * 72)


def plot_metrics(results: dict[str, MethodMetrics], output_path: str) -> None:
    """Plot runtime against grid size for each map."""
    fig, axes = plt.subplots(1, len(results), figsize=(6 * len(results), 4), squeeze=False)

    for ax, (name, res) in zip(axes[0], results.items()):
        ax.plot(res.sizes, res.exact_times, "o-", color=PLOT_COLORS[0], label="Exact")
        ax.plot(res.sizes, res.fmm_times, "s-", color=PLOT_COLORS[1], label="Fast Marching")
        ax.set_title(f"{name} map\n(Lower is better)")
        ax.set_xlabel("size")
        ax.set_ylabel("ms")
        ax.grid(linestyle="--", alpha=0.5)
        ax.legend()

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    logger.info(f"Metrics plot saved to: {output_path}")
    plt.close(fig)


def main() -> None:
    """Main entry point for method comparison."""
    parser = argparse.ArgumentParser(
        description="Compare the exact transform against Fast Marching"
    )
    parser.add_argument(
        "--maps", type=str, nargs="+", default=list(MAP_BUILDERS),
        choices=list(MAP_BUILDERS),
    )
    parser.add_argument(
        "--sizes", type=int, nargs="+", default=list(DEFAULT_SIZES),
        help="Square grid sizes to test",
    )
    parser.add_argument(
        "--tolerance", type=float, default=0.2,
        help="Relative error counted as a match (default: 0.2)",
    )
    parser.add_argument(
        "--plot", type=str, default=None,
        help="Save a runtime plot to this path",
    )
    args = parser.parse_args()

    logger.info(f"Maps: {args.maps}, sizes: {args.sizes}")
    results = run_comparison(args.maps, args.sizes, args.tolerance)

    print_results_table(results)
    if args.plot:
        plot_metrics(results, args.plot)


if __name__ == "__main__":
    main()

# Usage:
# python scripts/compare_methods.py
# python scripts/compare_methods.py --maps circle --sizes 64 256 --plot comparison_metrics.png
