"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (analytic t, point and normal)
- Tangent ray (single root)
- Ray starting inside sphere (far root)
- Ray missing sphere, sphere behind the ray, t_max cutoff
- Self-intersection suppression for secondary rays
- Python-side geometry validation and measures
"""

import math

import numpy as np
import pytest
import taichi as ti


def _run_hit(origin, direction, center, radius, t_min=0.0, t_max=1e30):
    """Run hit_sphere in a kernel and return (hit, t, point, normal, front_face)."""
    from src.raycore.geometry.sphere import Sphere, hit_sphere, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel():
        sphere = Sphere(center=vec3(center[0], center[1], center[2]), radius=radius)
        record = hit_sphere(
            vec3(origin[0], origin[1], origin[2]),
            vec3(direction[0], direction[1], direction[2]),
            sphere,
            t_min,
            t_max,
        )
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal
        front_face[None] = record.front_face

    test_kernel()
    return hit[None], t_val[None], point[None].to_numpy(), normal[None].to_numpy(), front_face[None]


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_make_sphere(self):
        """Test make_sphere convenience function."""
        from src.raycore.geometry.sphere import make_sphere, vec3

        center_result = ti.field(dtype=ti.math.vec3, shape=())
        radius_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, 3.0), 0.5)
            center_result[None] = sphere.center
            radius_result[None] = sphere.radius

        test_kernel()
        c = center_result[None]
        assert abs(c[0] - 1.0) < 1e-6
        assert abs(c[1] - 2.0) < 1e-6
        assert abs(c[2] - 3.0) < 1e-6
        assert abs(radius_result[None] - 0.5) < 1e-6


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_direct_hit_analytic(self):
        """Test the head-on case: t=4, point (0,0,-4), normal (0,0,1)."""
        hit, t, point, normal, front_face = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -5.0), 1.0)

        assert hit == 1
        assert abs(t - 4.0) < 1e-6
        assert np.allclose(point, (0.0, 0.0, -4.0), atol=1e-6)
        assert np.allclose(normal, (0.0, 0.0, 1.0), atol=1e-6)
        assert front_face == 1

    def test_tangent_single_root(self):
        """Test a tangent ray touches the sphere exactly once at t=5."""
        hit, t, point, normal, _ = _run_hit((1.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -5.0), 1.0)

        assert hit == 1
        assert abs(t - 5.0) < 1e-5
        assert np.allclose(point, (1.0, 0.0, -5.0), atol=1e-5)
        assert np.allclose(normal, (1.0, 0.0, 0.0), atol=1e-5)

    def test_origin_inside_returns_far_root(self):
        """Test a ray starting inside the sphere returns the far root."""
        hit, t, point, normal, front_face = _run_hit((0.0, 0.0, -4.5), (0.0, 0.0, -1.0), (0.0, 0.0, -5.0), 1.0)

        assert hit == 1
        assert t > 0.0
        assert abs(t - 1.5) < 1e-5
        assert np.allclose(point, (0.0, 0.0, -6.0), atol=1e-5)
        # Outward normal, hit from the inside
        assert np.allclose(normal, (0.0, 0.0, -1.0), atol=1e-5)
        assert front_face == 0

    def test_miss(self):
        """Test a ray passing beside the sphere misses."""
        hit, _, _, _, _ = _run_hit((2.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -5.0), 1.0)
        assert hit == 0

    def test_sphere_behind_ray(self):
        """Test a sphere entirely behind the origin is not hit."""
        hit, _, _, _, _ = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, -5.0), 1.0)
        assert hit == 0

    def test_t_max_cutoff(self):
        """Test hits beyond t_max are rejected."""
        hit, _, _, _, _ = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -5.0), 1.0, t_max=3.0)
        assert hit == 0

    def test_t_min_selects_far_root(self):
        """Test a t_min past the near root yields the far root."""
        hit, t, _, _, _ = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -5.0), 1.0, t_min=4.5)
        assert hit == 1
        assert abs(t - 6.0) < 1e-5

    def test_large_distance_stability(self):
        """Test a small sphere far away is still hit accurately."""
        hit, t, _, normal, _ = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1000.0), 0.5)
        assert hit == 1
        assert abs(t - 999.5) < 1e-2
        assert abs(np.linalg.norm(normal) - 1.0) < 1e-5


class TestSelfIntersection:
    """Tests for self-intersection suppression."""

    def test_secondary_ray_from_analytic_hit(self):
        """Test a ray leaving the hit point along its normal misses the sphere."""
        hit, _, _, _, _ = _run_hit((0.0, 0.0, -4.0), (0.0, 0.0, 1.0), (0.0, 0.0, -5.0), 1.0)
        assert hit == 0

    def test_secondary_rays_never_hit_below_epsilon(self, rng):
        """Test rays re-cast from many hit points never report t < EPSILON_BIAS."""
        from src.raycore.core.constants import EPSILON_BIAS
        from src.raycore.geometry.sphere import Sphere, hit_sphere

        n = 512
        centers = rng.uniform(-20.0, 20.0, (n, 3)).astype(np.float32)
        centers[:, 2] -= 40.0
        radii = rng.uniform(0.5, 5.0, n).astype(np.float32)

        center_field = ti.Vector.field(3, dtype=ti.f32, shape=n)
        radius_field = ti.field(dtype=ti.f32, shape=n)
        primary_hit = ti.field(dtype=ti.i32, shape=n)
        secondary_hit = ti.field(dtype=ti.i32, shape=n)
        secondary_t = ti.field(dtype=ti.f32, shape=n)
        center_field.from_numpy(centers)
        radius_field.from_numpy(radii)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                sphere = Sphere(center=center_field[i], radius=radius_field[i])
                origin = ti.math.vec3(0.0, 0.0, 0.0)
                direction = ti.math.normalize(sphere.center - origin)
                rec = hit_sphere(origin, direction, sphere, 0.0, 1e30)
                primary_hit[i] = rec.hit
                secondary_hit[i] = 0
                secondary_t[i] = 0.0
                if rec.hit == 1:
                    again = hit_sphere(rec.point, rec.normal, sphere, 0.0, 1e30)
                    secondary_hit[i] = again.hit
                    secondary_t[i] = again.t

        test_kernel()
        assert np.all(primary_hit.to_numpy() == 1)
        hits = secondary_hit.to_numpy() == 1
        assert np.all(secondary_t.to_numpy()[hits] >= EPSILON_BIAS)


class TestSphereValidation:
    """Tests for Python-side sphere helpers."""

    @pytest.mark.parametrize(
        "center,radius,expected",
        [
            ((0.0, 0.0, -5.0), 1.0, True),
            ((0.0, 0.0, -5.0), 0.0, False),
            ((0.0, 0.0, -5.0), -1.0, False),
            ((0.0, 0.0, -5.0), math.inf, False),
            ((0.0, 0.0, -5.0), math.nan, False),
            ((math.nan, 0.0, 0.0), 1.0, False),
            ((0.0, math.inf, 0.0), 1.0, False),
            ((0.0, 0.0), 1.0, False),
        ],
    )
    def test_validate_sphere(self, center, radius, expected):
        """Test finite centers and finite positive radii are accepted."""
        from src.raycore.geometry.sphere import validate_sphere

        assert validate_sphere(center, radius) is expected

    def test_surface_area_and_volume(self):
        """Test sphere measures."""
        from src.raycore.geometry.sphere import surface_area, volume

        assert surface_area(2.0) == pytest.approx(16.0 * math.pi)
        assert volume(3.0) == pytest.approx(36.0 * math.pi)
