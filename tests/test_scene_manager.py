"""Tests for the unified scene manager."""

import pytest
import taichi as ti


class TestMaterialIds:
    """Tests for the unified material id space."""

    def test_ids_are_sequential_across_types(self):
        from spherecast.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        lam = scene.add_lambertian_material((0.8, 0.8, 0.0))
        metal = scene.add_metal_material((0.8, 0.6, 0.2), fuzz=0.1)
        glass = scene.add_dielectric_material(ir=1.5, darken=0.97)
        lam2 = scene.add_lambertian_material((0.1, 0.2, 0.5))

        assert (lam, metal, glass, lam2) == (0, 1, 2, 3)
        assert scene.get_material_count() == 4
        assert scene.get_material_type_python(metal) == MaterialType.METAL
        assert scene.get_material_type_python(glass) == MaterialType.DIELECTRIC
        # Second Lambertian is index 1 in its own registry
        assert scene.get_material_info(lam2).type_index == 1

    def test_unknown_id(self):
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        assert scene.get_material_info(0) is None
        assert scene.get_material_type_python(-1) is None

    def test_kernel_lookup(self):
        from spherecast.scene.manager import (
            MaterialType,
            SceneManager,
            get_material_type,
            get_material_type_index,
        )

        scene = SceneManager()
        scene.add_metal_material((0.5, 0.5, 0.5))
        scene.add_dielectric_material(1.33)
        scene.add_dielectric_material(1.5)

        types = ti.field(dtype=ti.i32, shape=4)
        indices = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            for i in range(4):
                types[i] = get_material_type(i)
                indices[i] = get_material_type_index(i)

        test_kernel()
        assert types[0] == int(MaterialType.METAL)
        assert types[2] == int(MaterialType.DIELECTRIC)
        assert indices[2] == 1
        # Past the end
        assert types[3] == -1
        assert indices[3] == -1

    def test_validation_propagates(self):
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError):
            scene.add_metal_material((0.5, 0.5, 0.5), fuzz=-1.0)
        with pytest.raises(ValueError):
            scene.add_dielectric_material(ir=0.0)
        assert scene.get_material_count() == 0


class TestSpheres:
    """Tests for adding spheres through the manager."""

    def test_add_sphere(self):
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        idx = scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat)

        assert idx == 0
        assert scene.get_sphere_count() == 1
        assert scene.spheres[0].material_id == mat

    def test_shared_material(self):
        """Two spheres may reference the same material id."""
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        glass = scene.add_dielectric_material(1.5)
        scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
        scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)

        assert scene.get_sphere_count() == 2
        assert scene.get_material_count() == 1

    def test_invalid_material_id(self):
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError, match="material_id"):
            scene.add_sphere((0.0, 0.0, 0.0), 1.0, 0)

    def test_zero_radius_rejected(self):
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="radius"):
            scene.add_sphere((0.0, 0.0, 0.0), 0.0, mat)

    def test_convenience_methods(self):
        from spherecast.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        _, lam = scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.1, 0.2, 0.5))
        _, metal = scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, (0.8, 0.6, 0.2), fuzz=0.3)
        sphere_idx, glass = scene.add_dielectric_sphere((-1.0, 0.0, -1.0), 0.5, ir=1.5)

        assert sphere_idx == 2
        assert scene.get_material_type_python(lam) == MaterialType.LAMBERTIAN
        assert scene.get_material_type_python(metal) == MaterialType.METAL
        assert scene.get_material_type_python(glass) == MaterialType.DIELECTRIC

    def test_new_manager_clears_scene(self):
        from spherecast.scene.manager import SceneManager

        first = SceneManager()
        first.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5))

        second = SceneManager()
        assert second.get_sphere_count() == 0
        assert second.get_material_count() == 0

    def test_capacity(self):
        from spherecast.scene.intersection import MAX_SPHERES
        from spherecast.scene.manager import MAX_MATERIALS, SceneManager

        assert SceneManager.get_max_spheres() == MAX_SPHERES
        assert SceneManager.get_max_materials() == MAX_MATERIALS


class TestSceneConfig:
    """Tests for scene description round trips."""

    def _build(self):
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
        glass = scene.add_dielectric_material(1.5, darken=0.97)
        gold = scene.add_metal_material((0.8, 0.6, 0.2), fuzz=0.0)
        scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
        scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)
        scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)
        return scene

    def test_to_dict(self):
        data = self._build().to_dict()

        assert [m["type"] for m in data["materials"]] == ["lambertian", "dielectric", "metal"]
        assert data["materials"][1]["darken"] == 0.97
        assert data["spheres"][1]["radius"] == -0.45
        assert data["spheres"][2]["material_id"] == 2

    def test_from_dict_rebuilds_scene(self):
        from spherecast.scene.manager import MaterialType, SceneManager

        data = self._build().to_dict()

        scene = SceneManager()
        scene.from_dict(data)

        assert scene.get_sphere_count() == 3
        assert scene.get_material_count() == 3
        assert scene.get_material_type_python(1) == MaterialType.DIELECTRIC
        assert scene.materials[1].params == {"ir": 1.5, "darken": 0.97}
        assert scene.to_dict() == data

    def test_unknown_material_type(self):
        from spherecast.scene.manager import SceneConfig, SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError, match="Unknown material type"):
            scene.from_config(SceneConfig(materials=[{"type": "plastic"}]))
