"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters every incoming ray. The new direction is the
surface normal plus a random unit vector, which yields a cosine-weighted
distribution about the normal, and the ray is tinted by the material's
attenuation color.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spherecast.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # did_scatter, attenuation, direction = scatter_lambertian(
    >>> #     attenuation, normal, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from spherecast.core.ray import near_zero
from spherecast.core.sampler import random_unit_vector

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class LambertianMaterial:
    """Lambertian (ideal diffuse) material properties.

    Attributes:
        attenuation: The diffuse reflectance color (RGB, each in [0, 1]).
    """

    attenuation: vec3


@ti.func
def scatter_lambertian(
    attenuation: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Sample a scattered direction for a Lambertian surface.

    Args:
        attenuation: The diffuse reflectance color.
        normal: The surface normal at the hit point (unit, facing the ray).
        stream: Random stream to draw from.

    Returns:
        A tuple of (did_scatter, attenuation, scattered_direction) where
        did_scatter is always 1.
    """
    scattered_direction = normal + random_unit_vector(stream)

    # A random vector almost opposite the normal cancels it out
    if near_zero(scattered_direction):
        scattered_direction = normal

    did_scatter = 1
    return did_scatter, attenuation, scattered_direction


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

lambertian_attenuations = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(attenuation: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        attenuation: The diffuse reflectance color as (R, G, B).
            Each component must be in [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any attenuation component is outside [0, 1].
    """
    for i, component in enumerate(attenuation):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Attenuation component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_attenuations[idx] = vec3(attenuation[0], attenuation[1], attenuation[2])
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_attenuation(material_idx: ti.i32) -> vec3:
    """Get the attenuation color for a Lambertian material by index."""
    return lambertian_attenuations[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, normal: vec3, stream: ti.i32):
    """Scatter off a registered Lambertian material.

    Args:
        material_idx: The index of the material in the Lambertian registry.
        normal: The surface normal at the hit point.
        stream: Random stream to draw from.

    Returns:
        A tuple of (did_scatter, attenuation, scattered_direction).
    """
    attenuation = get_lambertian_attenuation(material_idx)
    return scatter_lambertian(attenuation, normal, stream)
