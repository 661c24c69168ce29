"""Preview module: showing finished frames.

Components:
    window: Unpack 0x00RRGGBB buffers and display them in a GGUI window
"""

from .window import show_pixel_buffer, unpack_pixels

__all__ = ["show_pixel_buffer", "unpack_pixels"]
