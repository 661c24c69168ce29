"""Metal (specular reflective) material implementation.

The incoming direction is mirrored about the surface normal:

    R = I - 2(I . N)N

The unit reflection is then perturbed by a random point in the unit sphere
scaled by the fuzz factor. A perturbed direction that points back into the
surface is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spherecast.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # did_scatter, attenuation, direction = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from spherecast.core.ray import reflect, unit_vector
from spherecast.core.sampler import random_in_unit_sphere

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class MetalMaterial:
    """Metal material properties.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Reflection roughness, >= 0. 0 is a perfect mirror.
    """

    albedo: vec3
    fuzz: ti.f32


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Compute the scattered direction for a metal surface.

    Args:
        albedo: The reflective color.
        fuzz: The reflection roughness (0 = perfect mirror).
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal (unit, facing the incoming ray).
        stream: Random stream to draw from.

    Returns:
        A tuple of (did_scatter, attenuation, scattered_direction) where
        did_scatter is 0 if the fuzzed reflection points into the surface.
        The scattered direction is not normalized.
    """
    reflected = unit_vector(reflect(incident_direction, normal))
    scattered_direction = reflected + fuzz * random_in_unit_sphere(stream)

    did_scatter = 1
    if tm.dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0

    return did_scatter, albedo, scattered_direction


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 256

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B). Each component must be
            in [0, 1].
        fuzz: Reflection roughness. Default is 0 (perfect mirror). Must be
            non-negative.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
        ValueError: If fuzz is negative.
    """
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    if fuzz < 0.0:
        raise ValueError(f"Fuzz = {fuzz} is negative. Fuzz must be >= 0 (0 = perfect mirror).")

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    """Get the fuzz for a metal material by index."""
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter off a registered metal material.

    Args:
        material_idx: The index of the material in the metal registry.
        incident_direction: The incoming ray direction.
        normal: The surface normal at the hit point.
        stream: Random stream to draw from.

    Returns:
        A tuple of (did_scatter, attenuation, scattered_direction).
    """
    albedo = get_metal_albedo(material_idx)
    fuzz = get_metal_fuzz(material_idx)
    return scatter_metal(albedo, fuzz, incident_direction, normal, stream)
