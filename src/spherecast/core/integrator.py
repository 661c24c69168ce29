"""Color integrator and row-parallel frame kernels.

ray_color() estimates the light arriving along a ray: it follows the ray
through the scene, multiplying in each surface's attenuation, until the ray
escapes to the sky, is absorbed, or runs out of bounces. Escaped rays pick
up a vertical white-to-blue gradient; absorbed and exhausted rays are black.

The frame kernels render whole rows. Row r always draws its random numbers
from stream r, reseeded from (seed, r) before the row starts, so a frame
depends only on the seed and never on how rows are grouped into launches or
which worker renders them.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spherecast.camera.pinhole import setup_camera
    >>> from spherecast.core.integrator import render_rows, setup_render_target
    >>> from spherecast.scene.three_spheres import create_three_spheres_scene
    >>>
    >>> scene, camera = create_three_spheres_scene(16.0 / 9.0)
    >>> setup_camera(camera)
    >>> setup_render_target(320, 180)
    >>> render_rows(0, 180, samples_per_pixel=10, max_depth=10, seed=7)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from spherecast.camera.pinhole import get_ray_jittered
from spherecast.core.ray import unit_vector
from spherecast.core.sampler import MAX_STREAMS, reseed_stream
from spherecast.materials.dielectric import scatter_dielectric_by_id
from spherecast.materials.lambertian import scatter_lambertian_by_id
from spherecast.materials.metal import scatter_metal_by_id
from spherecast.scene.intersection import intersect_scene
from spherecast.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Accepted hit window; the lower bound keeps scattered rays off their own surface
T_MIN = 1e-4
T_MAX = tm.inf

# Sky gradient endpoints (t = 0 at the bottom, t = 1 at the top)
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffers)
# =============================================================================

# Preallocated so that changing the image size never recompiles a kernel
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = MAX_STREAMS

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Row-major, row 0 at the top of the image
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))
_pixel_buffer = ti.field(dtype=ti.u32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image size and clear the buffers.

    Args:
        width: Image width in pixels (1 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (1 to MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If either dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear both image buffers to zero."""
    _color_buffer.fill(0.0)
    _pixel_buffer.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    outside: ti.i32,
    stream: ti.i32,
):
    """Dispatch a scatter call on the material's type tag.

    Returns:
        A tuple of (did_scatter, attenuation, scattered_direction). Unknown
        material ids absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    did_scatter = 0
    attenuation = vec3(0.0, 0.0, 0.0)
    scattered_direction = vec3(0.0, 0.0, 0.0)

    if mat_type == int(MaterialType.LAMBERTIAN):
        did_scatter, attenuation, scattered_direction = scatter_lambertian_by_id(
            type_index, normal, stream
        )

    elif mat_type == int(MaterialType.METAL):
        did_scatter, attenuation, scattered_direction = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        did_scatter, attenuation, scattered_direction = scatter_dielectric_by_id(
            type_index, incident_direction, normal, outside, stream
        )

    return did_scatter, attenuation, scattered_direction


# =============================================================================
# Color Integration
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky color seen along a direction that escapes the scene.

    Blends linearly from white at straight down to light blue at straight up
    by the unit direction's y component.
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


@ti.func
def ray_color(ray_origin: vec3, ray_direction: vec3, depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the color carried back along a ray.

    Each surface hit consumes one unit of depth. The attenuations of every
    bounce are multiplied together and applied to the sky color once the
    ray escapes.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (any length).
        depth: Remaining bounce budget. Zero or less yields black.
        stream: Random stream used by the scatter functions.

    Returns:
        The linear RGB estimate. Black if the ray is absorbed or the depth
        runs out before it escapes.
    """
    origin = ray_origin
    direction = ray_direction
    remaining = depth

    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    active = 1
    while active == 1:
        if remaining <= 0:
            active = 0
        else:
            rec = intersect_scene(origin, direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(direction)
                active = 0
            else:
                did_scatter, attenuation, scattered_direction = _scatter_material(
                    rec.material_id, direction, rec.normal, rec.outside, stream
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = rec.point
                    direction = scattered_direction
                    remaining -= 1

    return color


# =============================================================================
# Output Packing
# =============================================================================


@ti.func
def pack_color(color: vec3) -> ti.u32:
    """Gamma-correct and pack a linear color into 0x00RRGGBB.

    Each channel is clamped to [0, 1], square-rooted (gamma 2) and scaled
    by 255 with truncation. NaN channels become 0.
    """
    packed = ti.u32(0)
    for c in ti.static(range(3)):
        value = color[c]
        channel = ti.u32(0)
        if not tm.isnan(value):
            channel = ti.cast(ti.sqrt(tm.clamp(value, 0.0, 1.0)) * 255.0, ti.u32)
        packed = (packed << ti.u32(8)) | channel
    return packed


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.func
def _render_row(
    row: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
):
    """Render every pixel of one row into the image buffers."""
    reseed_stream(seed, row)

    for col in range(width):
        color = vec3(0.0, 0.0, 0.0)
        for _ in range(samples_per_pixel):
            ray = get_ray_jittered(col, row, width, height, row)
            color += ray_color(ray.origin, ray.direction, max_depth, row)

        color /= ti.cast(samples_per_pixel, ti.f32)
        _color_buffer[row, col] = color
        _pixel_buffer[row, col] = pack_color(color)


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
):
    """Render rows [row_start, row_end), one row per parallel task."""
    for row in range(row_start, row_end):
        _render_row(row, width, height, samples_per_pixel, max_depth, seed)


@ti.kernel
def _render_rows_serial(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
):
    """Render rows [row_start, row_end) one after another on one thread."""
    ti.loop_config(serialize=True)
    for row in range(row_start, row_end):
        _render_row(row, width, height, samples_per_pixel, max_depth, seed)


@ti.kernel
def _trace_ray_kernel(
    origin: vec3,
    direction: vec3,
    depth: ti.i32,
    seed: ti.u32,
    stream: ti.i32,
) -> vec3:
    reseed_stream(seed, stream)
    return ray_color(origin, direction, depth, stream)


@ti.kernel
def _pack_color_kernel(color: vec3) -> ti.u32:
    return pack_color(color)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(
    row_start: int,
    row_end: int,
    samples_per_pixel: int,
    max_depth: int,
    seed: int,
    parallel: bool = True,
) -> None:
    """Render a band of rows of the current render target.

    Args:
        row_start: First row to render (0 = top).
        row_end: One past the last row to render.
        samples_per_pixel: Jittered samples averaged per pixel (>= 1).
        max_depth: Bounce budget per sample.
        seed: Frame seed; only the low 32 bits are used.
        parallel: Spread rows over the Taichi worker pool if True.

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If the row range or sample count is invalid.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if row_start < 0 or row_end > height or row_start > row_end:
        raise ValueError(f"Row range [{row_start}, {row_end}) is outside [0, {height})")
    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel = {samples_per_pixel} must be at least 1")

    kernel = _render_rows if parallel else _render_rows_serial
    kernel(row_start, row_end, width, height, samples_per_pixel, max_depth, seed & 0xFFFFFFFF)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int,
    seed: int = 0,
    stream: int = 0,
) -> tuple[float, float, float]:
    """Evaluate ray_color for a single ray from the host.

    The stream is reseeded from (seed, stream) first, so repeated calls with
    the same arguments return the same color.

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    color = _trace_ray_kernel(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        depth,
        seed & 0xFFFFFFFF,
        stream,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def pack_pixel(color: tuple[float, float, float]) -> int:
    """Pack a linear color exactly as the frame kernels do."""
    return int(_pack_color_kernel(vec3(color[0], color[1], color[2])))


def get_pixels_numpy() -> npt.NDArray[np.uint32]:
    """Get the packed 0x00RRGGBB pixels of the active region.

    Returns:
        A uint32 array of shape (height, width), row 0 at the top.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return np.ascontiguousarray(_pixel_buffer.to_numpy()[:height, :width], dtype=np.uint32)


def get_color_numpy() -> npt.NDArray[np.float32]:
    """Get the averaged linear colors of the active region.

    Returns:
        A float32 array of shape (height, width, 3), before gamma correction.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return np.ascontiguousarray(_color_buffer.to_numpy()[:height, :width, :], dtype=np.float32)
