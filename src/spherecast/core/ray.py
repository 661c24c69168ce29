"""Ray data structure and vector utilities for the path tracer.

This module provides the Ray dataclass and the vector helpers used by the
camera, the sphere intersection routine and the materials. Vectors are plain
``taichi.math.vec3`` values and stand in for points, directions and colors
alike; color blending is the component-wise ``*`` on vec3.

All functions are Taichi functions and must be called from inside a kernel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spherecast.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def point_on_ray() -> vec3:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -2.0))
    ...     return ray_at(ray, 1.5)  # (0, 0, -3)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; intersection tests compare ray parameters, not
            distances.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    Computed as v / |v| with no zero check: a zero vector yields non-finite
    components, which callers either rule out or let propagate.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.
    """
    return v / length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes v - 2 * dot(v, n) * n. For a unit normal the result has the
    same length as the incident vector and dot(reflect(v, n), n) equals
    -dot(v, n).

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be unit length).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta_ratio: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface (Snell's law).

    The incident direction is split into the components perpendicular and
    parallel to the normal. The perpendicular part is scaled by eta_ratio
    and the parallel part is rebuilt from the squared length of the result.

    The absolute value under the square root only absorbs small negative
    values from floating-point error. Total internal reflection is not
    detected here; callers check it before choosing to refract.

    Args:
        incident: The incoming direction (unit length).
        normal: The surface normal facing the incident ray (unit length).
        eta_ratio: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction vector.
    """
    cos_theta = tm.min(tm.dot(-incident, normal), 1.0)
    r_out_perp = eta_ratio * (incident + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, refraction_ratio: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between the incident direction and normal.
        refraction_ratio: Ratio of refractive indices across the surface.

    Returns:
        The approximate reflectance r0 + (1 - r0) * (1 - cosine)^5.
    """
    r0 = (1.0 - refraction_ratio) / (1.0 + refraction_ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s
