"""Dielectric (glass/water) material implementation.

Dielectrics refract by Snell's law and reflect with a probability given by
Schlick's approximation of the Fresnel term. When refraction is impossible
(total internal reflection) the ray always reflects.

Attenuation is a flat gray set by the material's darkening factor, applied
on every bounce whether the ray reflects or refracts. A darkening factor of
1 gives perfectly clear glass.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spherecast.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # did_scatter, attenuation, direction = scatter_dielectric(
    >>> #     ir, darken, incident_dir, normal, outside, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from spherecast.core.ray import reflect, refract, schlick_reflectance, unit_vector
from spherecast.core.sampler import random_float

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class DielectricMaterial:
    """Dielectric material properties.

    Attributes:
        ir: Index of refraction (air 1.0, water 1.33, glass 1.5).
        darken: Gray attenuation in [0, 1] applied at every bounce.
    """

    ir: ti.f32
    darken: ti.f32


@ti.func
def refraction_ratio_for(ir: ti.f32, outside: ti.i32) -> ti.f32:
    """Ratio of refractive indices for a ray entering (outside=1) or leaving."""
    ratio = ir
    if outside == 1:
        ratio = 1.0 / ir
    return ratio


@ti.func
def scatter_dielectric(
    ir: ti.f32,
    darken: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    outside: ti.i32,
    stream: ti.i32,
):
    """Compute the scattered direction for a dielectric surface.

    Args:
        ir: Index of refraction of the material.
        darken: Gray attenuation factor.
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal facing the incoming ray (unit).
        outside: 1 if the ray hit the outward-facing side, 0 if from within.
        stream: Random stream to draw from.

    Returns:
        A tuple of (did_scatter, attenuation, scattered_direction) where
        did_scatter is always 1.
    """
    refraction_ratio = refraction_ratio_for(ir, outside)

    unit_direction = unit_vector(incident_direction)
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)

    # Snell's law has no solution past the critical angle
    cannot_refract = refraction_ratio * sin_theta > 1.0
    reflectance = schlick_reflectance(cos_theta, refraction_ratio)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or random_float(stream) < reflectance:
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, refraction_ratio)

    attenuation = vec3(darken, darken, darken)
    did_scatter = 1

    return did_scatter, attenuation, scattered_direction


@ti.func
def will_reflect(ir: ti.f32, incident_direction: vec3, normal: vec3, outside: ti.i32) -> ti.i32:
    """Determine if total internal reflection will occur.

    Returns:
        1 if the ray cannot refract, 0 otherwise.
    """
    refraction_ratio = refraction_ratio_for(ir, outside)
    cos_theta = tm.min(tm.dot(-unit_vector(incident_direction), normal), 1.0)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)
    result = 0
    if refraction_ratio * sin_theta > 1.0:
        result = 1
    return result


@ti.func
def fresnel_reflectance(
    ir: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    outside: ti.i32,
) -> ti.f32:
    """Schlick reflectance for a ray striking the surface."""
    refraction_ratio = refraction_ratio_for(ir, outside)
    cos_theta = tm.min(tm.dot(-unit_vector(incident_direction), normal), 1.0)
    return schlick_reflectance(cos_theta, refraction_ratio)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

dielectric_irs = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
dielectric_darkens = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ir: float = 1.5, darken: float = 1.0) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ir: Index of refraction. Default is 1.5 (typical glass). Must be
            positive.
        darken: Gray attenuation in [0, 1]. Default is 1 (clear).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If ir is not positive or darken is outside [0, 1].
    """
    if ir <= 0.0:
        raise ValueError(f"Index of refraction = {ir} must be positive.")

    if darken < 0.0 or darken > 1.0:
        raise ValueError(
            f"Darkening factor = {darken} is outside [0, 1]. "
            "This would violate energy conservation."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_irs[idx] = ir
    dielectric_darkens[idx] = darken
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ir(material_idx: ti.i32) -> ti.f32:
    """Get the index of refraction for a dielectric material by index."""
    return dielectric_irs[material_idx]


@ti.func
def get_dielectric_darken(material_idx: ti.i32) -> ti.f32:
    """Get the darkening factor for a dielectric material by index."""
    return dielectric_darkens[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    outside: ti.i32,
    stream: ti.i32,
):
    """Scatter off a registered dielectric material.

    Args:
        material_idx: The index of the material in the dielectric registry.
        incident_direction: The incoming ray direction.
        normal: The surface normal at the hit point.
        outside: 1 if the ray hit the outward-facing side.
        stream: Random stream to draw from.

    Returns:
        A tuple of (did_scatter, attenuation, scattered_direction).
    """
    ir = get_dielectric_ir(material_idx)
    darken = get_dielectric_darken(material_idx)
    return scatter_dielectric(ir, darken, incident_direction, normal, outside, stream)
