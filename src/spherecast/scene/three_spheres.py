"""The default three-sphere scene.

A large matte ground sphere carries three unit-diameter spheres side by side:

- center: matte blue (Lambertian)
- left: slightly tinted glass, built as a hollow bubble from an outer sphere
  and an inner sphere with negative radius that share one material
- right: polished gold (Metal, no fuzz)

The camera looks down at the group from the upper left with a narrow field
of view.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spherecast.camera.pinhole import setup_camera
    >>> from spherecast.scene.three_spheres import create_three_spheres_scene
    >>> scene, camera = create_three_spheres_scene(aspect_ratio=16.0 / 9.0)
    >>> setup_camera(camera)
"""

import logging

from spherecast.camera.pinhole import PinholeCamera
from spherecast.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Materials
GROUND_ATTENUATION = (0.8, 0.8, 0.0)
CENTER_ATTENUATION = (0.1, 0.2, 0.5)
GLASS_IR = 1.5
GLASS_DARKEN = 0.97
GOLD_ALBEDO = (0.8, 0.6, 0.2)
GOLD_FUZZ = 0.0

# Geometry
GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0
CENTER_SPHERE = (0.0, 0.0, -1.0)
LEFT_SPHERE = (-1.0, 0.0, -1.0)
RIGHT_SPHERE = (1.0, 0.0, -1.0)
SPHERE_RADIUS = 0.5
BUBBLE_INNER_RADIUS = -0.45

# Camera
LOOKFROM = (-2.0, 2.0, 1.0)
LOOKAT = (0.0, 0.0, -1.0)
VUP = (0.0, 1.0, 0.0)
VFOV = 20.0


def create_three_spheres_scene(
    aspect_ratio: float = 16.0 / 9.0,
) -> tuple[SceneManager, PinholeCamera]:
    """Build the default scene and its camera.

    Args:
        aspect_ratio: Width over height of the image the camera renders.

    Returns:
        A tuple of (SceneManager, PinholeCamera). The camera still has to be
        installed with setup_camera() before rendering.
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(GROUND_ATTENUATION)
    center = scene.add_lambertian_material(CENTER_ATTENUATION)
    glass = scene.add_dielectric_material(ir=GLASS_IR, darken=GLASS_DARKEN)
    gold = scene.add_metal_material(GOLD_ALBEDO, fuzz=GOLD_FUZZ)

    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, ground)
    scene.add_sphere(CENTER_SPHERE, SPHERE_RADIUS, center)
    scene.add_sphere(LEFT_SPHERE, SPHERE_RADIUS, glass)
    scene.add_sphere(LEFT_SPHERE, BUBBLE_INNER_RADIUS, glass)
    scene.add_sphere(RIGHT_SPHERE, SPHERE_RADIUS, gold)

    camera = PinholeCamera(
        lookfrom=LOOKFROM,
        lookat=LOOKAT,
        vup=VUP,
        vfov=VFOV,
        aspect_ratio=aspect_ratio,
    )

    logger.info(
        "Built three-sphere scene: %d spheres, %d materials",
        scene.get_sphere_count(),
        scene.get_material_count(),
    )
    return scene, camera
