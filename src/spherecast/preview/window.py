"""Display a finished pixel buffer in a Taichi GGUI window.

The renderer produces packed 0x00RRGGBB pixels with row 0 at the top. The
window shows them unchanged (they are already gamma corrected) until it is
closed or Escape is pressed. vsync caps the redraw loop at the display rate.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spherecast.preview.window import show_pixel_buffer
    >>> show_pixel_buffer(pixels, title="spheres")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def unpack_pixels(buffer: npt.NDArray[np.uint32]) -> npt.NDArray[np.float32]:
    """Split packed 0x00RRGGBB pixels into float channels.

    Args:
        buffer: Packed pixels of shape (height, width).

    Returns:
        Array of shape (height, width, 3) with values in [0, 1].

    Raises:
        ValueError: If the buffer is not two-dimensional.
    """
    buffer = np.asarray(buffer, dtype=np.uint32)
    if buffer.ndim != 2:
        raise ValueError(f"Pixel buffer must be 2D (height, width), got shape {buffer.shape}")

    channels = np.stack(
        [(buffer >> 16) & 0xFF, (buffer >> 8) & 0xFF, buffer & 0xFF],
        axis=-1,
    )
    return (channels.astype(np.float32) / 255.0).astype(np.float32)


def to_display_layout(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Reorder a (height, width, 3) image into the (width, height, 3) layout
    GGUI expects, whose origin is the bottom-left corner."""
    return np.ascontiguousarray(np.transpose(np.flipud(image), (1, 0, 2)))


def show_pixel_buffer(buffer: npt.NDArray[np.uint32], title: str = "spherecast") -> None:
    """Open a window showing the buffer and block until it is dismissed.

    Args:
        buffer: Packed pixels of shape (height, width).
        title: Window title.
    """
    image = unpack_pixels(buffer)
    height, width = image.shape[:2]

    display_image = ti.Vector.field(3, dtype=ti.f32, shape=(width, height))
    display_image.from_numpy(to_display_layout(image))

    window = ti.ui.Window(name=title, res=(width, height), vsync=True)
    canvas = window.get_canvas()
    logger.info("Showing %dx%d image, press Escape or close the window to exit", width, height)

    while window.running:
        if window.is_pressed(ti.ui.ESCAPE):
            break
        canvas.set_image(display_image)
        window.show()

    window.destroy()
