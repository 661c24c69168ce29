"""Pytest configuration for spherecast tests.

Taichi must be initialized once per session before any package module is
imported, because the modules allocate their fields at import time. Test
modules therefore import package code inside the test functions.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Repeated ti.init() calls reset the runtime and invalidate fields held by
    already-imported modules.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Reset the global scene, material and render target state around each test."""
    from spherecast.core.integrator import clear_render_target
    from spherecast.materials.dielectric import clear_dielectric_materials
    from spherecast.materials.lambertian import clear_lambertian_materials
    from spherecast.materials.metal import clear_metal_materials
    from spherecast.scene.intersection import clear_scene
    from spherecast.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        clear_render_target()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def forward_camera():
    """A square 90-degree camera at the origin looking down -z."""
    from spherecast.camera.pinhole import PinholeCamera, setup_camera

    camera = PinholeCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=1.0,
    )
    setup_camera(camera)
    return camera
