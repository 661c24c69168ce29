"""Tests for the color integrator and the row kernels.

Note: Imports are done inside test methods because the package modules
allocate Taichi fields on import and Taichi is initialized by conftest.py.
"""

import math

import numpy as np
import pytest


def _sky(direction):
    """Reference sky gradient computed on the host."""
    norm = math.sqrt(sum(c * c for c in direction))
    t = 0.5 * (direction[1] / norm + 1.0)
    return ((1.0 - t) + 0.5 * t, (1.0 - t) + 0.7 * t, 1.0)


class TestRenderTargetSetup:
    """Test render target initialization and management."""

    def test_setup_render_target(self):
        from spherecast.core.integrator import get_image_dimensions, setup_render_target

        setup_render_target(64, 48)
        assert get_image_dimensions() == (64, 48)

    def test_too_large_raises(self):
        from spherecast.core.integrator import MAX_IMAGE_WIDTH, setup_render_target

        with pytest.raises(ValueError, match="exceed"):
            setup_render_target(MAX_IMAGE_WIDTH + 1, 10)

    def test_non_positive_raises(self):
        from spherecast.core.integrator import setup_render_target

        with pytest.raises(ValueError, match="positive"):
            setup_render_target(0, 10)

    def test_render_without_target_raises(self):
        from spherecast.core.integrator import _render_target_initialized, render_rows

        _render_target_initialized[None] = 0
        with pytest.raises(RuntimeError, match="not set up"):
            render_rows(0, 1, 1, 1, seed=0)

    def test_invalid_row_range(self):
        from spherecast.core.integrator import render_rows, setup_render_target

        setup_render_target(4, 4)
        with pytest.raises(ValueError, match="Row range"):
            render_rows(0, 5, 1, 1, seed=0)
        with pytest.raises(ValueError, match="samples_per_pixel"):
            render_rows(0, 4, 0, 1, seed=0)


class TestBackground:
    """Tests for rays that escape an empty scene."""

    @pytest.mark.parametrize(
        "direction",
        [(0.0, 1.0, 0.0), (0.0, -1.0, 0.0), (1.0, 0.0, 0.0), (0.3, 0.4, -2.0)],
    )
    def test_sky_gradient(self, direction):
        from spherecast.core.integrator import trace_ray

        color = trace_ray((0.0, 0.0, 0.0), direction, depth=5)
        np.testing.assert_allclose(color, _sky(direction), atol=1e-5)

    def test_gradient_endpoints(self):
        """Straight up is (0.5, 0.7, 1.0); straight down is white."""
        from spherecast.core.integrator import trace_ray

        np.testing.assert_allclose(
            trace_ray((0.0, 0.0, 0.0), (0.0, 2.0, 0.0), depth=1), (0.5, 0.7, 1.0), atol=1e-6
        )
        np.testing.assert_allclose(
            trace_ray((0.0, 0.0, 0.0), (0.0, -0.5, 0.0), depth=1), (1.0, 1.0, 1.0), atol=1e-6
        )


class TestRayColor:
    """Tests for ray_color() bounce handling."""

    def test_depth_zero_is_black(self):
        from spherecast.core.integrator import trace_ray

        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), depth=0) == (0.0, 0.0, 0.0)
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), depth=-3) == (0.0, 0.0, 0.0)

    def test_mirror_bounce_multiplies_attenuation(self):
        """A ray straight down onto a mirror returns albedo * sky(up)."""
        from spherecast.core.integrator import trace_ray
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, -1000.0, 0.0), 1000.0, (0.5, 0.4, 0.2), fuzz=0.0)

        color = trace_ray((0.0, 1.0, 0.0), (0.0, -1.0, 0.0), depth=2)
        np.testing.assert_allclose(color, (0.25, 0.28, 0.2), atol=1e-5)

    def test_depth_exhausted_before_escape_is_black(self):
        from spherecast.core.integrator import trace_ray
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, -1000.0, 0.0), 1000.0, (0.5, 0.4, 0.2), fuzz=0.0)

        assert trace_ray((0.0, 1.0, 0.0), (0.0, -1.0, 0.0), depth=1) == (0.0, 0.0, 0.0)

    def test_trapped_ray_is_black(self):
        """A ray inside a closed diffuse sphere never reaches the sky."""
        from spherecast.core.integrator import trace_ray
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, 0.0), 1.0, (0.9, 0.9, 0.9))

        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), depth=10, seed=3) == (0.0, 0.0, 0.0)

    def test_absorbed_ray_is_black(self):
        """A fuzzy metal that scatters into its surface absorbs the ray."""
        from spherecast.core.integrator import trace_ray
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        # Grazing hit: the reflection hugs the surface and fuzz pushes some samples below it
        scene.add_metal_sphere((0.0, -1000.0, 0.0), 1000.0, (0.9, 0.9, 0.9), fuzz=1.0)

        colors = [
            trace_ray((-10.0, 0.01, 0.0), (1.0, -0.001, 0.0), depth=5, seed=s) for s in range(64)
        ]
        assert (0.0, 0.0, 0.0) in colors
        assert any(c != (0.0, 0.0, 0.0) for c in colors)

    def test_glass_passthrough_with_matching_index(self):
        """A clear ir = 1 sphere hit head-on is invisible."""
        from spherecast.core.integrator import trace_ray
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_dielectric_sphere((0.0, 0.0, -3.0), 1.0, ir=1.0, darken=1.0)

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), depth=10)
        np.testing.assert_allclose(color, _sky((0.0, 0.0, -1.0)), atol=1e-5)

    def test_same_seed_same_color(self):
        from spherecast.core.integrator import trace_ray
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5))

        a = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), depth=10, seed=77)
        b = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), depth=10, seed=77)
        assert a == b


class TestPacking:
    """Tests for pack_color()."""

    @pytest.mark.parametrize(
        ("color", "expected"),
        [
            ((0.0, 0.0, 0.0), 0x000000),
            ((1.0, 1.0, 1.0), 0xFFFFFF),
            ((0.25, 1.0, 0.0), 0x7FFF00),
            ((2.0, -1.0, 0.0), 0xFF0000),
            ((0.0, 0.0, 0.25), 0x00007F),
        ],
    )
    def test_pack(self, color, expected):
        from spherecast.core.integrator import pack_pixel

        assert pack_pixel(color) == expected

    def test_nan_channel_packs_to_zero(self):
        from spherecast.core.integrator import pack_pixel

        assert pack_pixel((float("nan"), 1.0, 1.0)) == 0x00FFFF

    def test_top_byte_is_zero(self):
        from spherecast.core.integrator import pack_pixel

        assert pack_pixel((1.0, 1.0, 1.0)) >> 24 == 0


class TestRenderRows:
    """Tests for the row kernels."""

    def test_empty_scene_renders_sky(self, forward_camera):
        from spherecast.core.integrator import (
            get_color_numpy,
            get_pixels_numpy,
            render_rows,
            setup_render_target,
        )

        setup_render_target(8, 6)
        render_rows(0, 6, samples_per_pixel=4, max_depth=5, seed=1)
        pixels = get_pixels_numpy()
        colors = get_color_numpy()

        assert pixels.shape == (6, 8)
        assert pixels.dtype == np.uint32
        assert colors.shape == (6, 8, 3)
        # Blue channel saturates everywhere in the sky
        assert np.all((pixels & 0xFF) == 0xFF)
        # Row 0 is the top of the image: less red than the bottom row
        red = (pixels >> 16) & 0xFF
        assert red[0].mean() < red[-1].mean()

    def test_partial_rows(self, forward_camera):
        """Rows outside the requested band are left untouched."""
        from spherecast.core.integrator import get_pixels_numpy, render_rows, setup_render_target

        setup_render_target(4, 4)
        render_rows(1, 3, samples_per_pixel=1, max_depth=2, seed=5)
        pixels = get_pixels_numpy()

        assert np.all(pixels[0] == 0)
        assert np.all(pixels[3] == 0)
        assert np.all(pixels[1:3] != 0)

    def test_pixels_match_linear_colors(self, forward_camera):
        from spherecast.core.integrator import (
            get_color_numpy,
            get_pixels_numpy,
            render_rows,
            setup_render_target,
        )
        from spherecast.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5))

        setup_render_target(6, 6)
        render_rows(0, 6, samples_per_pixel=3, max_depth=4, seed=9)
        colors = get_color_numpy()
        pixels = get_pixels_numpy()

        channels = np.floor(np.sqrt(np.clip(colors, 0.0, 1.0)) * 255.0).astype(np.uint32)
        expected = (channels[..., 0] << 16) | (channels[..., 1] << 8) | channels[..., 2]
        # Allow off-by-one from float32 rounding at channel boundaries
        diff = np.abs(expected.astype(np.int64) - pixels.astype(np.int64))
        assert np.all((diff == 0) | (diff == 1) | (diff == 256) | (diff == 65536))
