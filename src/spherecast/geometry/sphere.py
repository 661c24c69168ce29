"""Sphere primitive and ray-sphere intersection.

The sphere is the only geometric primitive. Its radius is signed: a negative
radius flips the outward normal, which turns the sphere into the inner wall
of a hollow shell (used for thin glass bubbles).

The intersection solves the quadratic in half-b form and checks both roots
against an open parameter window, nearest first.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spherecast.geometry.sphere import Sphere, hit_sphere, vec3
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point, signed radius and material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius. Negative values make the normal point inward.
        material_id: Unified material id (index into the scene's material
            table, never a copy of the material).
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: The unit surface normal, always facing against the incoming
            ray. Only valid if hit == 1.
        outside: 1 if the ray approached from the outward-facing side, 0 if
            it struck the surface from within. Only valid if hit == 1.
        material_id: Material id of the surface, -1 for a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    outside: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        outside=0,
        material_id=-1,
    )


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    With oc = origin - center the intersection satisfies

        a*t^2 + 2*b*t + c = 0

    where a = |direction|^2, b = dot(oc, direction), c = |oc|^2 - radius^2.
    The roots are (-b -/+ sqrt(b^2 - a*c)) / a. The smaller root is used if
    it lies strictly inside (t_min, t_max), otherwise the larger one.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be unit).
        sphere: The sphere to test intersection against.
        t_min: Lower bound of the accepted parameter window (exclusive).
        t_max: Upper bound of the accepted parameter window (exclusive).

    Returns:
        A HitRecord; check its hit field to see whether it is valid.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = b * b - a * c

    result = make_miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        root_near = (-b - sqrt_d) / a
        root_far = (-b + sqrt_d) / a

        t = root_near
        valid = (t > t_min) and (t < t_max)
        if not valid:
            t = root_far
            valid = (t > t_min) and (t < t_max)

        if valid:
            hit_point = ray_origin + t * ray_direction

            # Dividing by the signed radius flips the normal of hollow spheres
            outward_normal = (hit_point - sphere.center) / sphere.radius

            is_outside = 0
            hit_normal = -outward_normal
            if tm.dot(ray_direction, outward_normal) < 0.0:
                is_outside = 1
                hit_normal = outward_normal

            result = HitRecord(
                hit=1,
                t=t,
                point=hit_point,
                normal=hit_normal,
                outside=is_outside,
                material_id=sphere.material_id,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32, material_id: ti.i32) -> Sphere:
    """Create a sphere within a Taichi kernel."""
    return Sphere(center=center, radius=radius, material_id=material_id)
