"""Scene-level nearest-hit queries over the sphere list.

Spheres are stored in Taichi fields in insertion order. A query scans every
sphere (no acceleration structure) and keeps the intersection with the
smallest ray parameter by shrinking the accepted window as hits are found.
Order does not change the result, only how quickly the window shrinks.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spherecast.scene.intersection import add_sphere, clear_scene, vec3
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from spherecast.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Resets the sphere count to zero; stale field data is overwritten as new
    spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Append a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The signed radius of the sphere.
        material_id: The unified material id of the sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere(index: ti.i32) -> Sphere:
    """Load a stored sphere by index."""
    return Sphere(
        center=sphere_centers[index],
        radius=sphere_radii[index],
        material_id=sphere_material_ids[index],
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Find the nearest intersection of a ray with the scene.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Lower bound of the accepted parameter window (exclusive).
        t_max: Upper bound of the accepted parameter window (exclusive).

    Returns:
        The HitRecord with the smallest t, or a miss record (hit == 0,
        material_id == -1) if no sphere is hit.
    """
    closest_t = t_max
    result = make_miss_record()

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray_origin, ray_direction, get_sphere(i), t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result
