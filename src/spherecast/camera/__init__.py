"""Camera model for primary ray generation.

Components:
    pinhole: Look-at pinhole camera with per-pixel jittered rays

Ray generation uses normalized viewport coordinates:
    s in [0, 1]: left to right across the image
    t in [0, 1]: bottom to top across the image
"""

from .pinhole import (
    PinholeCamera,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "get_camera_info",
]
