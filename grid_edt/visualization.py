# grid_edt/visualization.py
from __future__ import annotations

import argparse
import logging
import os
import time
from typing import Iterable, Optional, Tuple

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from .dtypes import DistanceField, GridPos, Pixel, PixelField
from .exact import ExactTransform
from .fast_marching import FastMarcher
from .validation import relative_error


logger = logging.getLogger(__name__)

# Constants
_FRONTIER_COLOR = (255, 0, 0)
_MIN_DISPLAY_MAX: float = 1.0


# Encoding Functions
def to_grayscale(field: DistanceField) -> NDArray[np.uint8]:
    """Scale distances to 0..255 by the largest finite value.

    Unreached (infinite) cells are drawn black.
    """
    field = np.asarray(field, dtype=np.float64)
    finite = np.isfinite(field)
    max_value = max(float(field[finite].max()) if finite.any() else 0.0, _MIN_DISPLAY_MAX)
    scaled = np.where(finite, field / max_value * 255.0, 0.0)
    return scaled.astype(np.uint8)


def relpos_to_rgb(pixels: PixelField) -> NDArray[np.uint8]:
    """Encode a provenance field as RGB.

    Red is the distance, green the column offset and blue the row offset,
    both centred on 127.
    """
    red = to_grayscale(pixels["value"])
    off_x = pixels["offset_x"].astype(np.int64)
    off_y = pixels["offset_y"].astype(np.int64)
    max_offset = max(int(np.abs(off_x).max(initial=0)), int(np.abs(off_y).max(initial=0)), 1)
    green = (off_x * 127 // max_offset + 127).astype(np.uint8)
    blue = (off_y * 127 // max_offset + 127).astype(np.uint8)
    return np.stack([red, green, blue], axis=-1)


def overlay_frontier(
    gray: NDArray[np.uint8],
    frontier: Iterable[GridPos],
) -> NDArray[np.uint8]:
    """Grayscale (H, W) image to RGB with frontier cells painted red."""
    rgb = np.repeat(gray[:, :, None], 3, axis=2)
    for pos in frontier:
        rgb[pos.row, pos.col] = _FRONTIER_COLOR
    return rgb


def farthest_pixel(pixels: PixelField) -> Optional[Tuple[GridPos, Pixel]]:
    """Position and record of the reached cell farthest from any source."""
    if pixels.size == 0:
        return None
    values = pixels["value"]
    ranked = np.where(np.isfinite(values), values, -np.inf)
    row, col = np.unravel_index(int(np.argmax(ranked)), pixels.shape)
    return GridPos(int(col), int(row)), Pixel.from_record(pixels[row, col])


# Visualization Functions
def visualize_result(
    occupancy: NDArray,
    exact: DistanceField,
    approx: DistanceField,
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    show: bool = True,
) -> None:
    """Plot the map, both distance fields and their relative error."""
    import matplotlib.pyplot as plt

    fig, axes = plt.subplots(2, 2, figsize=(12, 11))
    if title is not None:
        fig.suptitle(title, fontsize=14, fontweight="bold")

    err = relative_error(exact, approx)
    panels = [
        (occupancy, "Occupancy", "gray"),
        (exact, "Exact EDT", "viridis"),
        (np.where(np.isfinite(approx), approx, np.nan), "Fast Marching", "viridis"),
        (err, "Relative Error", "magma"),
    ]

    for ax, (data, name, cmap) in zip(axes.ravel(), panels):
        ax.set_title(name, fontsize=12)
        im = ax.imshow(data, cmap=cmap, interpolation="nearest")
        if name != "Occupancy":
            plt.colorbar(im, ax=ax, fraction=0.046, pad=0.04)
        ax.axis("off")

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        logger.info(f"Figure saved to: {save_path}")

    if show:
        plt.show()
    plt.close(fig)


def load_image_grid(path: str) -> NDArray[np.uint8]:
    """Load an image as an (H, W) luma array."""
    with Image.open(path) as img:
        return np.asarray(img.convert("L"))


def transform_image(
    path: str,
    output_path: str = "edt.png",
    fast_marching: bool = False,
    invert: bool = False,
    progress_steps: Optional[int] = None,
    relpos: bool = False,
) -> None:
    """Compute the distance field of an image file and save it as PNG."""
    grid = load_image_grid(path)
    H, W = grid.shape
    logger.info(f"dimensions {W}x{H}")

    output_dir = os.path.dirname(output_path)
    start = time.perf_counter()

    if fast_marching:
        marcher = FastMarcher.from_grid(grid, invert=invert, relpos=relpos)
        if progress_steps:
            frame_idx = 0

            def save_progress(field, frontier) -> bool:
                nonlocal frame_idx
                if frame_idx % progress_steps == 0:
                    values = field["value"] if relpos else field
                    frame = overlay_frontier(to_grayscale(values), frontier)
                    Image.fromarray(frame).save(os.path.join(output_dir, f"edt{frame_idx}.png"))
                frame_idx += 1
                return True

            marcher.evolve_cb(save_progress)
        else:
            marcher.evolve()
        field = marcher.result()
    elif relpos:
        field = ExactTransform.transform_relpos(grid, invert=invert)
    else:
        field = ExactTransform.transform(grid, invert=invert)

    logger.info(f"time: {(time.perf_counter() - start) * 1e3:.3f}ms")

    if relpos:
        farthest = farthest_pixel(field.reshape(H, W))
        if farthest is not None:
            pos, pixel = farthest
            logger.info(
                f"farthest cell ({pos.col}, {pos.row}): distance {pixel.value:.3f}, "
                f"source offset ({pixel.offset_x}, {pixel.offset_y})"
            )

    image = relpos_to_rgb(field) if relpos else to_grayscale(field)
    Image.fromarray(image).save(output_path)
    logger.info(f"Distance image saved to: {output_path}")


def main() -> None:
    """Command-line interface for image distance transforms."""
    parser = argparse.ArgumentParser(
        description="Grid EDT - Euclidean distance transform of an image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples:
        python -m grid_edt.visualization logo.png --invert

        python -m grid_edt.visualization logo.png --fast_marching \\
            --progress_steps 500 --output_path out/edt.png
                """,
    )
    parser.add_argument(
        "file_name",
        type=str,
        help="Image file to transform (converted to grayscale)",
    )
    parser.add_argument(
        "--output_path",
        type=str,
        default="edt.png",
        help="Where to write the distance image (default: edt.png)",
    )
    parser.add_argument(
        "--fast_marching",
        action="store_true",
        help="Use the Fast Marching approximation",
    )
    parser.add_argument(
        "--invert",
        action="store_true",
        help="Treat nonzero pixels as sources instead of targets",
    )
    parser.add_argument(
        "--progress_steps",
        type=int,
        default=None,
        help="With --fast_marching, save a frame every N steps. "
             "Small values produce many images.",
    )
    parser.add_argument(
        "--relpos",
        action="store_true",
        help="Encode the offset to the nearest source as RGB",
    )

    args = parser.parse_args()

    if args.progress_steps is not None and args.progress_steps < 1:
        parser.error("--progress_steps must be >= 1")

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    transform_image(
        args.file_name,
        args.output_path,
        fast_marching=args.fast_marching,
        invert=args.invert,
        progress_steps=args.progress_steps,
        relpos=args.relpos,
    )


if __name__ == "__main__":
    main()

# Example usage:
# python -m grid_edt.visualization Rust_Logo.png --invert
# python -m grid_edt.visualization Rust_Logo.png --invert --fast_marching --progress_steps 1000
