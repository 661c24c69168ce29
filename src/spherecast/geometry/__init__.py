"""Geometry module: the sphere primitive and its intersection routine."""

from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "make_miss_record",
]
