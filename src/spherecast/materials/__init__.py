"""Materials module: the closed set of scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection with optional fuzz
    dielectric: Refraction with Schlick-weighted reflection

Each material provides a scatter function returning
(did_scatter, attenuation, scattered_direction) and a registry of material
parameters addressed by index.
"""

from .dielectric import (
    DielectricMaterial,
    add_dielectric_material,
    clear_dielectric_materials,
    fresnel_reflectance,
    get_dielectric_darken,
    get_dielectric_ir,
    get_dielectric_material_count,
    scatter_dielectric,
    scatter_dielectric_by_id,
    will_reflect,
)
from .lambertian import (
    LambertianMaterial,
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_attenuation,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    MetalMaterial,
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "LambertianMaterial",
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_attenuation",
    # Metal
    "MetalMaterial",
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "DielectricMaterial",
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ir",
    "get_dielectric_darken",
    "fresnel_reflectance",
    "will_reflect",
]
