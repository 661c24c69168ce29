"""Core rendering module.

Components:
    ray: Ray data structure and vector helpers (reflect, refract, Schlick)
    sampler: Deterministic per-row random streams and rejection samplers
    integrator: ray_color, render target buffers and row kernels
    renderer: RenderConfig and the FrameRenderer frame driver
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)
from .sampler import (
    MAX_STREAMS,
    random_float,
    random_in_unit_sphere,
    random_unit_vector,
    sample_floats,
    seed_stream,
)

# integrator and renderer pull in the scene and materials; import them directly:
#   from spherecast.core.renderer import FrameRenderer, RenderConfig

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "MAX_STREAMS",
    "random_float",
    "random_in_unit_sphere",
    "random_unit_vector",
    "seed_stream",
    "sample_floats",
]
