# scripts/create_progress_gif.py
from __future__ import annotations

import argparse
import os
import time
from dataclasses import dataclass

import numpy as np
from moviepy import ImageSequenceClip
from PIL import Image, ImageDraw, ImageFont

from grid_edt import ExactTransform, FastMarcher
from grid_edt.maps import circle_map, cross_map
from grid_edt.visualization import load_image_grid, overlay_frontier, to_grayscale


# Constants
MAP_BUILDERS = {
    "circle": circle_map,
    "cross": cross_map,
}
DEFAULT_FPS = 15
PAUSE_FRAMES = 15


# Data Classes
@dataclass
class MarchRecording:
    """Frames captured while a FastMarcher session ran."""
    frames: list[np.ndarray]
    time_ms: float
    steps: int


# Font Utilities
def get_font(size: int = 16) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Get a font for drawing text, with fallback to default."""
    font_candidates = ["arial.ttf", "DejaVuSans.ttf"]
    for font_name in font_candidates:
        try:
            return ImageFont.truetype(font_name, size)
        except (IOError, OSError):
            continue
    return ImageFont.load_default()


# Frame Processing Functions
def upscale(frame: np.ndarray, scale: int) -> np.ndarray:
    """Nearest-neighbour upscale of an (H, W, 3) frame."""
    return frame.repeat(scale, axis=0).repeat(scale, axis=1)


def add_title_to_frame(
    frame: np.ndarray,
    title: str,
    steps: int,
    header_height: int = 40,
) -> np.ndarray:
    """Add title and step count to the top of a frame."""
    height, width = frame.shape[:2]

    header = np.ones((header_height, width, 3), dtype=np.uint8) * 255
    header_img = Image.fromarray(header)
    draw = ImageDraw.Draw(header_img)

    title_font = get_font(14)
    title_bbox = draw.textbbox((0, 0), title, font=title_font)
    title_x = (width - (title_bbox[2] - title_bbox[0])) // 2
    draw.text((title_x, 5), title, fill=(0, 0, 0), font=title_font)

    metrics_font = get_font(11)
    metrics_text = f"Steps: {steps}"
    metrics_bbox = draw.textbbox((0, 0), metrics_text, font=metrics_font)
    metrics_x = (width - (metrics_bbox[2] - metrics_bbox[0])) // 2
    draw.text((metrics_x, 22), metrics_text, fill=(0, 0, 0), font=metrics_font)

    return np.vstack([np.array(header_img), frame])


def create_side_by_side_frame(
    frames_list: list[np.ndarray], separator_width: int = 8
) -> np.ndarray:
    """Create a side-by-side frame with separators."""
    height = frames_list[0].shape[0]
    separator = np.ones((height, separator_width, 3), dtype=np.uint8) * 255

    result = []
    for i, frame in enumerate(frames_list):
        if i > 0:
            result.append(separator)
        result.append(frame)
    return np.hstack(result)


# Recording
def record_march(
    grid: np.ndarray,
    every: int,
    invert: bool = False,
    scale: int = 4,
) -> MarchRecording:
    """Run Fast Marching and keep a frame every ``every`` steps."""
    marcher = FastMarcher.from_grid(grid, invert=invert)
    frames: list[np.ndarray] = []

    def capture(field, frontier) -> bool:
        if marcher.steps % every == 0:
            frame = overlay_frontier(to_grayscale(field), frontier)
            frames.append(upscale(frame, scale))
        return True

    start = time.perf_counter()
    marcher.evolve_cb(capture)
    time_ms = (time.perf_counter() - start) * 1000

    final = np.repeat(to_grayscale(marcher.result())[:, :, None], 3, axis=2)
    frames.append(upscale(final, scale))
    return MarchRecording(frames=frames, time_ms=time_ms, steps=marcher.steps)


def create_progress_gif(
    recording: MarchRecording,
    exact_frame: np.ndarray,
    output_path: str,
) -> None:
    """Save the wavefront frames next to the exact field as a GIF."""
    exact_titled = add_title_to_frame(exact_frame, "Exact EDT", 0)
    frames = []
    for frame in recording.frames:
        titled = add_title_to_frame(frame, "Fast Marching", recording.steps)
        frames.append(create_side_by_side_frame([titled, exact_titled]))

    # Add pause at the end
    frames_with_pause = frames + [frames[-1]] * PAUSE_FRAMES

    clip = ImageSequenceClip(frames_with_pause, fps=DEFAULT_FPS)
    clip.write_gif(output_path)


def main() -> None:
    """Main entry point for GIF creation."""
    parser = argparse.ArgumentParser(
        description="Render the Fast Marching wavefront as a GIF",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--map", type=str, default="circle", choices=list(MAP_BUILDERS))
    source.add_argument("--image", type=str, default=None, help="Image file to use as grid")
    parser.add_argument("--size", type=int, default=64, help="Synthetic map size")
    parser.add_argument("--every", type=int, default=20, help="Keep one frame per N steps")
    parser.add_argument("--scale", type=int, default=4)
    parser.add_argument("--invert", action="store_true")
    parser.add_argument("--resultdir", type=str, default="results")
    args = parser.parse_args()

    if args.every < 1:
        parser.error("--every must be >= 1")

    if args.image is not None:
        grid = load_image_grid(args.image)
        name = os.path.splitext(os.path.basename(args.image))[0]
    else:
        grid = MAP_BUILDERS[args.map](args.size)
        name = f"{args.map}_{args.size:04d}"

    print(f"\n{'=' * 60}")
    print(f"Creating progress GIF for {name}")
    print(f"{'=' * 60}\n")

    recording = record_march(grid, args.every, args.invert, args.scale)
    print(
        f"  [OK] Fast Marching: {recording.time_ms:.2f}ms, "
        f"Steps: {recording.steps}, Frames: {len(recording.frames)}"
    )

    exact = ExactTransform.transform(grid, invert=args.invert)
    exact_frame = upscale(np.repeat(to_grayscale(exact)[:, :, None], 3, axis=2), args.scale)

    os.makedirs(args.resultdir, exist_ok=True)
    output_path = os.path.join(args.resultdir, f"progress_{name}.gif")
    create_progress_gif(recording, exact_frame, output_path)

    print(f"\n{'=' * 60}")
    print(f"[OK] Progress GIF saved: {output_path}")
    print(f"{'=' * 60}\n")


if __name__ == "__main__":
    main()

# Usage:
# python scripts/create_progress_gif.py --map circle --size 64 --every 20
# python scripts/create_progress_gif.py --image Rust_Logo.png --invert --every 500 --scale 1
#
# Note:
# - Steps: Number of productive freezes of the wavefront.
