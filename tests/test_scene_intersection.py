"""Tests for scene-level nearest-hit queries."""

import pytest
import taichi as ti


def _query(origin, direction, t_min=0.001, t_max=float("inf")):
    from spherecast.scene.intersection import intersect_scene, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    mat = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel():
        rec = intersect_scene(
            vec3(origin[0], origin[1], origin[2]),
            vec3(direction[0], direction[1], direction[2]),
            t_min,
            t_max,
        )
        hit[None] = rec.hit
        t_val[None] = rec.t
        mat[None] = rec.material_id

    test_kernel()
    return hit[None], t_val[None], mat[None]


class TestSceneStorage:
    """Tests for adding and clearing spheres."""

    def test_add_and_count(self):
        from spherecast.scene.intersection import add_sphere, get_sphere_count, vec3

        assert get_sphere_count() == 0
        assert add_sphere(vec3(0, 0, -1), 0.5, material_id=0) == 0
        assert add_sphere(vec3(1, 0, -1), 0.5, material_id=1) == 1
        assert get_sphere_count() == 2

    def test_clear(self):
        from spherecast.scene.intersection import add_sphere, clear_scene, get_sphere_count, vec3

        add_sphere(vec3(0, 0, -1), 0.5)
        clear_scene()
        assert get_sphere_count() == 0

    def test_capacity_exceeded(self):
        from spherecast.scene.intersection import MAX_SPHERES, add_sphere, num_spheres, vec3

        num_spheres[None] = MAX_SPHERES
        with pytest.raises(RuntimeError):
            add_sphere(vec3(0, 0, 0), 1.0)


class TestIntersectScene:
    """Tests for intersect_scene()."""

    def test_empty_scene_misses(self):
        hit, _, mat = _query((0, 0, 0), (0, 0, -1))

        assert hit == 0
        assert mat == -1

    def test_distant_ray_misses(self):
        from spherecast.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
        hit, _, _ = _query((100, 100, 100), (0, 1, 0))

        assert hit == 0

    def test_nearest_of_overlapping_spheres(self):
        """The nearer sphere wins and the record carries its material."""
        from spherecast.scene.intersection import add_sphere, vec3

        # Farther sphere added first
        add_sphere(vec3(0, 0, -3), 1.0, material_id=1)
        add_sphere(vec3(0, 0, -2), 1.0, material_id=2)

        hit, t, mat = _query((0, 0, 0), (0, 0, -1))

        assert hit == 1
        assert abs(t - 1.0) < 1e-5
        assert mat == 2

    def test_order_does_not_matter(self):
        from spherecast.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0, 0, -2), 1.0, material_id=2)
        add_sphere(vec3(0, 0, -3), 1.0, material_id=1)

        hit, t, mat = _query((0, 0, 0), (0, 0, -1))

        assert hit == 1
        assert abs(t - 1.0) < 1e-5
        assert mat == 2

    def test_t_min_skips_surface_at_origin(self):
        """A ray leaving a surface does not re-hit it at t ~ 0."""
        from spherecast.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0, 0, 0), 1.0, material_id=4)
        hit, t, mat = _query((0, 0, 1), (0, 0, 1), t_min=1e-4)

        assert hit == 0

    def test_hollow_shell_inner_surface(self):
        """A ray inside a glass bubble hits the negative-radius inner wall first."""
        from spherecast.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0, 0, 0), 0.5, material_id=0)
        add_sphere(vec3(0, 0, 0), -0.45, material_id=0)

        hit, t, _ = _query((0, 0, 0), (1, 0, 0))

        assert hit == 1
        assert abs(t - 0.45) < 1e-5
