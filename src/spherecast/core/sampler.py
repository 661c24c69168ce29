"""Deterministic per-stream random number generation.

Every image row owns one random stream: a single 32-bit xorshift state stored
in ``_rng_states[row]``. The frame driver reseeds the row's slot from
``(seed, row)`` before tracing it, and no other row touches that slot, so the
parallel row loop needs no synchronization and two renders with the same seed
produce identical pixels whatever the thread count or the row chunking.

Seeds are mixed with the Wang integer hash so that neighbouring rows
(``seed + row``) start from unrelated states.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spherecast.core.sampler import sample_floats, seed_stream
    >>> seed_stream(0, seed=1234)
    >>> values = sample_floats(0, 4)  # four floats in [0, 1)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from spherecast.core.ray import length_squared

# Type alias for 3D vectors
vec3 = tm.vec3

# One stream per image row; matches MAX_IMAGE_HEIGHT of the render target
MAX_STREAMS = 2048

# Returned by the seed hash in place of zero, which xorshift cannot leave
_ZERO_STATE_REPLACEMENT = 0x9E3779B9 >> 1

# 2^-24: maps the top 24 bits of a state onto [0, 1)
_INV_2_24 = 1.0 / 16777216.0

_rng_states = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


@ti.func
def seed_stream_state(seed: ti.u32, stream: ti.i32) -> ti.u32:
    """Derive the initial state of a stream from a global seed.

    Args:
        seed: The render-wide 32-bit seed.
        stream: The stream (row) index combined with the seed.

    Returns:
        A non-zero 32-bit xorshift state.
    """
    x = seed + ti.cast(stream, ti.u32)
    x = (x ^ ti.u32(61)) ^ ti.bit_shr(x, ti.u32(16))
    x = x * ti.u32(9)
    x = x ^ ti.bit_shr(x, ti.u32(4))
    x = x * ti.u32(0x27D4EB2D)
    x = x ^ ti.bit_shr(x, ti.u32(15))
    if x == ti.u32(0):
        x = ti.u32(_ZERO_STATE_REPLACEMENT)
    return x


@ti.func
def reseed_stream(seed: ti.u32, stream: ti.i32):
    """Reset a stream's state from the global seed."""
    _rng_states[stream] = seed_stream_state(seed, stream)


@ti.func
def random_float(stream: ti.i32) -> ti.f32:
    """Draw a uniform float in [0, 1) and advance the stream.

    Args:
        stream: Index of the stream to draw from.

    Returns:
        A float in [0, 1) with 24 bits of resolution.
    """
    x = _rng_states[stream]
    x = x ^ (x << ti.u32(13))
    x = x ^ ti.bit_shr(x, ti.u32(17))
    x = x ^ (x << ti.u32(5))
    _rng_states[stream] = x
    return ti.cast(ti.bit_shr(x, ti.u32(8)), ti.f32) * _INV_2_24


@ti.func
def random_in_range(stream: ti.i32, lo: ti.f32, hi: ti.f32) -> ti.f32:
    """Draw a uniform float in [lo, hi)."""
    return lo + (hi - lo) * random_float(stream)


@ti.func
def random_vec3(stream: ti.i32, lo: ti.f32, hi: ti.f32) -> vec3:
    """Draw a vector with each component uniform in [lo, hi)."""
    x = random_in_range(stream, lo, hi)
    y = random_in_range(stream, lo, hi)
    z = random_in_range(stream, lo, hi)
    return vec3(x, y, z)


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit sphere.

    Rejection sampling: components are drawn uniformly in [-1, 1) until the
    squared length is at most 1.

    Args:
        stream: Index of the stream to draw from.

    Returns:
        A random point p with |p|^2 <= 1.
    """
    p = random_vec3(stream, -1.0, 1.0)
    while length_squared(p) > 1.0:
        p = random_vec3(stream, -1.0, 1.0)
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Generate a random unit vector for diffuse scattering.

    Same rejection loop as random_in_unit_sphere() but with a strict
    |p|^2 < 1 test; the accepted sample is normalized.

    Args:
        stream: Index of the stream to draw from.

    Returns:
        A random unit vector.
    """
    p = random_vec3(stream, -1.0, 1.0)
    while length_squared(p) >= 1.0:
        p = random_vec3(stream, -1.0, 1.0)
    return tm.normalize(p)


# =============================================================================
# Host-side helpers
# =============================================================================


def _check_stream(stream: int) -> None:
    if stream < 0 or stream >= MAX_STREAMS:
        raise ValueError(f"Stream index {stream} is outside [0, {MAX_STREAMS})")


@ti.kernel
def _seed_stream_kernel(seed: ti.u32, stream: ti.i32):
    reseed_stream(seed, stream)


@ti.kernel
def _draw_floats_kernel(stream: ti.i32, count: ti.i32, out: ti.types.ndarray()):
    ti.loop_config(serialize=True)
    for i in range(count):
        out[i] = random_float(stream)


def seed_stream(stream: int, seed: int) -> None:
    """Seed a single stream from the host.

    Args:
        stream: The stream index in [0, MAX_STREAMS).
        seed: Any integer; only the low 32 bits are used.

    Raises:
        ValueError: If the stream index is out of range.
    """
    _check_stream(stream)
    _seed_stream_kernel(seed & 0xFFFFFFFF, stream)


def sample_floats(stream: int, count: int) -> npt.NDArray[np.float32]:
    """Draw consecutive floats from a stream on the host.

    Args:
        stream: The stream index in [0, MAX_STREAMS).
        count: How many values to draw.

    Returns:
        A float32 array of shape (count,).
    """
    _check_stream(stream)
    out = np.zeros(count, dtype=np.float32)
    _draw_floats_kernel(stream, count, out)
    return out
