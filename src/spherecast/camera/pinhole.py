"""Pinhole camera model for perspective projection ray generation.

The camera is configured once from look-at parameters and is read-only for
the rest of the render. It builds an orthonormal basis (u, v, w) from the
view parameters:

- w: points from lookat toward lookfrom (opposite the view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits at unit distance along -w (focal length 1). There is no
lens aperture, so everything is in focus.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spherecast.camera.pinhole import PinholeCamera, setup_camera, get_ray
    >>>
    >>> camera = PinholeCamera(
    ...     lookfrom=(-2.0, 2.0, 1.0),
    ...     lookat=(0.0, 0.0, -1.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=16.0 / 9.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through the viewport center
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from spherecast.core.ray import Ray, make_ray
from spherecast.core.sampler import random_float

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
            Must not be parallel to lookat - lookfrom.
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors for ray computation
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())  # Lower-left of viewport


# =============================================================================
# Camera Setup (host side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: PinholeCamera) -> None:
    """Compute and store the camera basis and viewport.

    Args:
        camera: Camera configuration with position, orientation, and FOV.

    Note:
        A vup parallel to the view direction makes cross(vup, w) zero. The
        resulting non-finite basis is stored as is and only logged.
    """
    theta = math.radians(camera.vfov)
    viewport_height = 2.0 * math.tan(theta / 2.0)
    viewport_width = camera.aspect_ratio * viewport_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    with np.errstate(divide="ignore", invalid="ignore"):
        w = lookfrom - lookat
        w = w / np.linalg.norm(w)

        u = np.cross(vup, w)
        u = u / np.linalg.norm(u)

        v = np.cross(w, u)

    horizontal = viewport_width * u
    vertical = viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - w

    if not np.all(np.isfinite(lower_left)):
        logger.warning(
            "Camera basis is not finite (lookfrom=%s, lookat=%s, vup=%s); "
            "rendered rays will be NaN",
            camera.lookfrom,
            camera.lookat,
            camera.vup,
        )

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()

    logger.debug(
        "Camera set up: vfov=%.1f aspect=%.4f viewport=%.4fx%.4f",
        camera.vfov,
        camera.aspect_ratio,
        viewport_width,
        viewport_height,
    )


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized viewport coordinates (s, t).

    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    The direction is left unnormalized.

    Args:
        s: Horizontal coordinate, roughly in [0, 1].
        t: Vertical coordinate, roughly in [0, 1].

    Returns:
        A Ray from the camera origin through the viewport point.
    """
    origin = _camera_origin[None]
    direction = (
        _lower_left_corner[None]
        + s * _viewport_horizontal[None]
        + t * _viewport_vertical[None]
        - origin
    )
    return make_ray(origin, direction)


@ti.func
def get_ray_jittered(
    pixel_x: ti.i32,
    pixel_y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    stream: ti.i32,
) -> Ray:
    """Generate a jittered primary ray for one anti-aliasing sample.

    The pixel coordinate is offset by a uniform amount in [-0.5, 0.5) on
    each axis (x drawn first). Image rows count down from the top while the
    camera's t grows upward, so the vertical coordinate is flipped.

    Args:
        pixel_x: Pixel column (0 = left).
        pixel_y: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.
        stream: Random stream to draw the jitter from.

    Returns:
        A Ray through a random point of the pixel's footprint.
    """
    jitter_x = random_float(stream) - 0.5
    jitter_y = random_float(stream) - 0.5

    u = (ti.cast(pixel_x, ti.f32) + jitter_x) / ti.cast(width, ti.f32)
    v = (ti.cast(pixel_y, ti.f32) + jitter_y) / ti.cast(height, ti.f32)

    return get_ray(u, 1.0 - v)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left.
    """
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info = {}
    for name, field in fields.items():
        vec = field[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    return info
