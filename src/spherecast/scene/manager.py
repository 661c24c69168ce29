"""Unified scene manager for coordinating spheres and materials.

Each material type keeps its parameters in its own registry. The manager
layers a single material id space on top of them: for every id it records
the material type and the index inside that type's registry, which is all
the integrator needs to dispatch a scatter call.

Spheres reference materials by id, so several spheres can share one
material (the hollow glass shell in the default scene does exactly that).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spherecast.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> glass = scene.add_dielectric_material(ir=1.5, darken=0.97)
    >>> scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    >>> scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)
"""

import logging
from dataclasses import asdict, dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from spherecast.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from spherecast.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from spherecast.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from spherecast.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Tag for the closed set of material variants."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# 256 per type * 3 types
MAX_MATERIALS = 768

# material_types[i] is the MaterialType of material id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] is the index of material id i inside its type registry
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material id.

    Returns:
        The MaterialType value, or -1 for an unknown id.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the index into the type-specific registry for a material id.

    Returns:
        The registry index, or -1 for an unknown id.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material id.
        material_type: The material variant.
        type_index: The index within the type-specific registry.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage fields.
        center: The center of the sphere.
        radius: The signed radius of the sphere.
        material_id: The material id assigned to the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """In-memory description of a scene.

    Attributes:
        materials: Material descriptions, in material id order. Each is a
            dict with a "type" key plus that type's parameters.
        spheres: Sphere descriptions with "center", "radius" and
            "material_id" keys.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_triple(values: Any) -> tuple[float, float, float]:
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Builds a scene of spheres with shared, id-addressed materials.

    The scene lives in module-level Taichi fields, so there is effectively
    one scene per process. Creating a SceneManager clears it.

    Attributes:
        materials: MaterialInfo for every registered material, indexed by id.
        spheres: SphereInfo for every sphere, in insertion order.
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    def clear(self) -> None:
        """Remove every sphere and material from the scene."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        logger.debug("Registered %s material %d: %s", material_type.name, material_id, params)
        return material_id

    def add_lambertian_material(self, attenuation: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material.

        Args:
            attenuation: The diffuse reflectance color as (R, G, B), each in
                [0, 1].

        Returns:
            The unified material id.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any attenuation component is outside [0, 1].
        """
        type_index = add_lambertian_material(attenuation)
        return self._register_material(
            MaterialType.LAMBERTIAN, type_index, {"attenuation": tuple(attenuation)}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal (specular reflective) material.

        Args:
            albedo: The reflective color as (R, G, B), each in [0, 1].
            fuzz: Reflection roughness, >= 0. Default is a perfect mirror.

        Returns:
            The unified material id.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If albedo is outside [0, 1] or fuzz is negative.
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL, type_index, {"albedo": tuple(albedo), "fuzz": fuzz}
        )

    def add_dielectric_material(self, ir: float = 1.5, darken: float = 1.0) -> int:
        """Add a dielectric (glass/water) material.

        Args:
            ir: Index of refraction. Default is 1.5 (typical glass).
            darken: Gray attenuation in [0, 1]. Default is 1 (clear).

        Returns:
            The unified material id.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If ir is not positive or darken is outside [0, 1].
        """
        type_index = add_dielectric_material(ir, darken)
        return self._register_material(
            MaterialType.DIELECTRIC, type_index, {"ir": ir, "darken": darken}
        )

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by id, or None if unknown."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a material id on the host.

        Kernels use the get_material_type() Taichi function instead.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id].material_type
        return None

    # =========================================================================
    # Sphere Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The signed radius. Negative radii produce inward-facing
                normals (hollow shells). Zero is rejected.
            material_id: The unified material id to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id is invalid or radius is zero.
        """
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")
        if radius == 0.0:
            raise ValueError("Sphere radius must be non-zero")

        sphere_index = add_sphere(vec3(center[0], center[1], center[2]), radius, material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=tuple(center),
                radius=radius,
                material_id=material_id,
            )
        )
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        attenuation: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(attenuation)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ir: float = 1.5,
        darken: float = 1.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new dielectric material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_dielectric_material(ir, darken)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    # =========================================================================
    # Scene Description
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Describe the scene as a SceneConfig that from_config() accepts."""
        materials = [
            {"type": info.material_type.name.lower(), **info.params} for info in self.materials
        ]
        spheres = [
            {"center": list(s.center), "radius": s.radius, "material_id": s.material_id}
            for s in self.spheres
        ]
        return SceneConfig(materials=materials, spheres=spheres)

    def _build_material(self, description: dict[str, Any]) -> int:
        kind = str(description.get("type", "")).upper()
        if kind not in MaterialType.__members__:
            raise ValueError(f"Unknown material type: {kind.lower()!r}")

        material_type = MaterialType[kind]
        if material_type is MaterialType.LAMBERTIAN:
            return self.add_lambertian_material(
                _as_triple(description.get("attenuation", (0.5, 0.5, 0.5)))
            )
        if material_type is MaterialType.METAL:
            return self.add_metal_material(
                _as_triple(description.get("albedo", (0.8, 0.8, 0.8))),
                float(description.get("fuzz", 0.0)),
            )
        return self.add_dielectric_material(
            float(description.get("ir", 1.5)), float(description.get("darken", 1.0))
        )

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with the contents of a SceneConfig.

        Materials are registered in list order, so a sphere's material_id
        is the position of its material in config.materials.

        Raises:
            ValueError: If a material type is unknown or a parameter is out
                of range.
        """
        self.clear()

        for description in config.materials:
            self._build_material(description)
        for description in config.spheres:
            self.add_sphere(
                _as_triple(description.get("center", (0.0, 0.0, 0.0))),
                float(description.get("radius", 1.0)),
                int(description.get("material_id", 0)),
            )

        logger.info(
            "Loaded scene with %d materials and %d spheres",
            len(self.materials),
            len(self.spheres),
        )

    def to_dict(self) -> dict[str, Any]:
        """Describe the scene as a plain dictionary."""
        return asdict(self.to_config())

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with "materials" and "spheres" lists."""
        self.from_config(SceneConfig(data.get("materials", []), data.get("spheres", [])))

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
