"""Scene module: sphere storage, material ids and scene construction.

Components:
    intersection: Sphere fields and the nearest-hit linear scan
    manager: Unified material ids and the SceneManager builder
    three_spheres: The default ground-plus-three-spheres scene
"""

from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .three_spheres import create_three_spheres_scene

__all__ = [
    # Intersection module
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Default scene
    "create_three_spheres_scene",
]
