"""Frame driver: renders a whole image into a packed pixel buffer.

FrameRenderer owns the render configuration, sets up the render target and
launches the row kernels band by band. Each launch covers rows_per_task
rows; inside a launch the rows run in parallel on the Taichi worker pool
(or serially when parallel is off). Between launches the optional progress
callback receives the number of finished rows.

The camera and scene are global Taichi state and must be installed before
render() is called.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spherecast.camera.pinhole import setup_camera
    >>> from spherecast.core.renderer import FrameRenderer, RenderConfig
    >>> from spherecast.scene.three_spheres import create_three_spheres_scene
    >>>
    >>> config = RenderConfig(width=400, samples_per_pixel=20, seed=1)
    >>> scene, camera = create_three_spheres_scene(config.aspect_ratio)
    >>> setup_camera(camera)
    >>> pixels = FrameRenderer(config).render()  # (225, 400) uint32
"""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from spherecast.core.integrator import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    get_color_numpy,
    get_pixels_numpy,
    render_rows,
    setup_render_target,
)

logger = logging.getLogger(__name__)

# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderConfig:
    """Parameters of a single frame.

    Attributes:
        width: Image width in pixels.
        aspect_ratio: Width divided by height. The height is derived from it.
        samples_per_pixel: Jittered samples averaged per pixel.
        max_depth: Bounce budget per sample.
        seed: 32-bit frame seed. None draws a fresh seed for every render.
        rows_per_task: Rows per kernel launch.
        parallel: Render the rows of a launch on all worker threads.
    """

    width: int = 600
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 40
    max_depth: int = 10
    seed: int | None = None
    rows_per_task: int = 16
    parallel: bool = True

    @property
    def height(self) -> int:
        """Image height, width / aspect_ratio rounded to the nearest pixel."""
        return int(round(self.width / self.aspect_ratio))

    def validate(self) -> None:
        """Check that the configuration describes a renderable frame.

        Raises:
            ValueError: If any parameter is out of range.
        """
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio = {self.aspect_ratio} must be positive")
        if self.width < 1 or self.width > MAX_IMAGE_WIDTH:
            raise ValueError(f"width = {self.width} must be in [1, {MAX_IMAGE_WIDTH}]")
        if self.height < 1 or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"height = {self.height} (from width / aspect_ratio) must be in "
                f"[1, {MAX_IMAGE_HEIGHT}]"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel = {self.samples_per_pixel} must be at least 1")
        if self.max_depth < 0:
            raise ValueError(f"max_depth = {self.max_depth} must be non-negative")
        if self.rows_per_task < 1:
            raise ValueError(f"rows_per_task = {self.rows_per_task} must be at least 1")
        if self.seed is not None and not 0 <= self.seed <= 0xFFFFFFFF:
            raise ValueError(f"seed = {self.seed} must fit in 32 bits")


class FrameRenderer:
    """Renders frames of the installed scene with a fixed configuration.

    Attributes:
        config: The render configuration.
    """

    def __init__(self, config: RenderConfig | None = None) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config if config is not None else RenderConfig()
        self.config.validate()
        self._last_seed: int | None = None

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.config.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.config.height

    @property
    def last_seed(self) -> int | None:
        """The seed used by the most recent render, None before the first."""
        return self._last_seed

    def _resolve_seed(self) -> int:
        if self.config.seed is not None:
            return self.config.seed
        seed = random.getrandbits(32)
        logger.info("No seed configured, using seed %d", seed)
        return seed

    def render(self, callback: ProgressCallback | None = None) -> npt.NDArray[np.uint32]:
        """Render one frame.

        Args:
            callback: Optional function called after each band of rows with
                (rows_done, total_rows).

        Returns:
            The packed 0x00RRGGBB pixels as a uint32 array of shape
            (height, width), row 0 at the top.
        """
        config = self.config
        width, height = config.width, config.height
        seed = self._resolve_seed()
        self._last_seed = seed

        setup_render_target(width, height)
        logger.info(
            "Rendering %dx%d, %d samples/pixel, depth %d, seed %d (%s)",
            width,
            height,
            config.samples_per_pixel,
            config.max_depth,
            seed,
            "parallel" if config.parallel else "serial",
        )

        start = time.perf_counter()
        for row_start in range(0, height, config.rows_per_task):
            row_end = min(row_start + config.rows_per_task, height)
            render_rows(
                row_start,
                row_end,
                config.samples_per_pixel,
                config.max_depth,
                seed,
                parallel=config.parallel,
            )
            logger.debug("Rendered rows %d-%d of %d", row_start, row_end - 1, height)

            if callback is not None:
                callback(row_end, height)

        elapsed = time.perf_counter() - start
        logger.info("Frame finished in %.2fs", elapsed)

        return get_pixels_numpy()

    def get_color_numpy(self) -> npt.NDArray[np.float32]:
        """Get the averaged linear colors of the last frame, (height, width, 3)."""
        return get_color_numpy()

    def __repr__(self) -> str:
        return (
            f"FrameRenderer(width={self.width}, height={self.height}, "
            f"samples_per_pixel={self.config.samples_per_pixel}, "
            f"max_depth={self.config.max_depth})"
        )
