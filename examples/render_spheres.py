#!/usr/bin/env python3
"""Render the three-sphere scene and show it in a window.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH         Image width in pixels (default: 600)
    --aspect RATIO        Width / height (default: 16/9)
    --samples SAMPLES     Samples per pixel (default: 40)
    --depth DEPTH         Maximum bounces per sample (default: 10)
    --seed SEED           Frame seed (default: random)
    --rows-per-task N     Rows per kernel launch (default: 16)
    --arch {cpu,gpu}      Taichi backend (default: cpu)
    --threads N           CPU worker threads (default: all cores)
    --no-window           Render only, do not open a window
    -v, --verbose         Debug logging

Example:
    python -m examples.render_spheres --width 400 --samples 20 --seed 7
"""

from __future__ import annotations

import argparse
import logging
import sys

import taichi as ti

logger = logging.getLogger("render_spheres")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the three-sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=600, help="Image width in pixels")
    parser.add_argument("--aspect", type=float, default=16.0 / 9.0, help="Width / height")
    parser.add_argument("--samples", type=int, default=40, help="Samples per pixel")
    parser.add_argument("--depth", type=int, default=10, help="Maximum bounces per sample")
    parser.add_argument("--seed", type=int, default=None, help="Frame seed (default: random)")
    parser.add_argument("--rows-per-task", type=int, default=16, help="Rows per kernel launch")
    parser.add_argument("--arch", choices=("cpu", "gpu"), default="cpu", help="Taichi backend")
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="CPU worker threads (default: all cores)",
    )
    parser.add_argument(
        "--no-window",
        action="store_true",
        help="Render only, do not open a window",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args()


def init_taichi(arch: str, threads: int | None) -> None:
    """Initialize Taichi, falling back to the CPU if no GPU backend works."""
    cpu_options = {} if threads is None else {"cpu_max_num_threads": threads}

    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu)
            logger.info("Using GPU backend")
            return
        except Exception:
            logger.warning("GPU backend unavailable, falling back to CPU")

    ti.init(arch=ti.cpu, **cpu_options)
    logger.info("Using CPU backend")


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    init_taichi(args.arch, args.threads)

    # Package modules allocate Taichi fields on import
    from spherecast.camera.pinhole import setup_camera
    from spherecast.core.renderer import FrameRenderer, RenderConfig
    from spherecast.preview.window import show_pixel_buffer
    from spherecast.scene.three_spheres import create_three_spheres_scene

    config = RenderConfig(
        width=args.width,
        aspect_ratio=args.aspect,
        samples_per_pixel=args.samples,
        max_depth=args.depth,
        seed=args.seed,
        rows_per_task=args.rows_per_task,
    )

    try:
        renderer = FrameRenderer(config)
        _, camera = create_three_spheres_scene(config.aspect_ratio)
        setup_camera(camera)

        def progress(rows_done: int, total_rows: int) -> None:
            logger.debug("Progress: %d/%d rows", rows_done, total_rows)

        pixels = renderer.render(callback=progress)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    logger.info("Rendered with seed %d", renderer.last_seed)

    if not args.no_window:
        show_pixel_buffer(pixels, title=f"spherecast {config.width}x{config.height}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
