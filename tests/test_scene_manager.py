"""Unit tests for the Scene builder.

Tests cover:
- Material registration, clamping of out-of-range parameters
- Sphere addition with geometry and material-reference validation (-1 on failure)
- Light addition with emission and area-light geometry validation
- Camera setup (non-finite cameras refused) and single-ray intersection queries
- Material dispatch through the registry (evaluate_brdf / scatter_light)
- Scene serialization (to_dict, from_dict) and clearing
- Stale Scenes after another Scene takes over the storage
"""

import logging
import math

import numpy as np
import pytest
import taichi as ti


@pytest.fixture
def fresh_scene():
    """Create a fresh Scene for each test."""
    from src.raycore.scene.manager import Scene

    scene = Scene()
    yield scene
    scene.clear()


class TestMaterialRegistration:
    """Tests for material registration."""

    def test_add_materials_sequential_ids(self, fresh_scene):
        """Test materials receive stable sequential ids."""
        id0 = fresh_scene.add_lambert_material((0.8, 0.3, 0.3))
        id1 = fresh_scene.add_cook_torrance_material((0.9, 0.6, 0.2), roughness=0.3, metallic=1.0)
        id2 = fresh_scene.add_lambert_material((0.1, 0.8, 0.1))

        assert (id0, id1, id2) == (0, 1, 2)
        assert fresh_scene.get_material_count() == 3

    def test_out_of_range_material_is_clamped(self, fresh_scene, caplog):
        """Test invalid parameters are clamped, logged at INFO, and still stored."""
        from src.raycore.materials.cook_torrance import CookTorranceMaterial

        with caplog.at_level(logging.INFO):
            mat_id = fresh_scene.add_cook_torrance_material((1.5, 0.5, -0.2), roughness=0.0, metallic=2.0)

        assert mat_id == 0
        stored = fresh_scene.get_material(mat_id)
        assert isinstance(stored, CookTorranceMaterial)
        assert stored.validate()
        assert stored.base_color == (1.0, 0.5, 0.0)
        assert stored.roughness == 0.01
        assert stored.metallic == 1.0
        assert "Clamped" in caplog.text

    def test_unsupported_material_rejected(self, fresh_scene):
        """Test an unknown material object returns -1."""
        assert fresh_scene.add_material("glass") == -1
        assert fresh_scene.get_material_count() == 0

    def test_get_material_unknown_id(self, fresh_scene):
        """Test unknown ids return None."""
        assert fresh_scene.get_material(0) is None
        assert fresh_scene.get_material(-1) is None


class TestSphereAddition:
    """Tests for Scene.add_sphere validation."""

    def test_add_valid_sphere(self, fresh_scene):
        """Test a valid sphere gets index 0 and is tracked."""
        mat = fresh_scene.add_lambert_material((0.5, 0.5, 0.5))
        idx = fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, mat)

        assert idx == 0
        assert fresh_scene.get_sphere_count() == 1
        assert fresh_scene.spheres[0].center == (0.0, 0.0, -5.0)

    @pytest.mark.parametrize(
        "center,radius",
        [
            ((0.0, 0.0, -5.0), 0.0),
            ((0.0, 0.0, -5.0), -1.0),
            ((0.0, 0.0, -5.0), math.inf),
            ((0.0, 0.0, -5.0), math.nan),
            ((math.nan, 0.0, -5.0), 1.0),
            ((0.0, -math.inf, -5.0), 1.0),
        ],
    )
    def test_invalid_geometry_rejected(self, fresh_scene, caplog, center, radius):
        """Test degenerate geometry returns -1 and never enters the scene."""
        mat = fresh_scene.add_lambert_material((0.5, 0.5, 0.5))

        with caplog.at_level(logging.WARNING):
            assert fresh_scene.add_sphere(center, radius, mat) == -1
        assert fresh_scene.get_sphere_count() == 0
        assert "Rejected sphere" in caplog.text

    @pytest.mark.parametrize("material_id", [-1, 1, 5, 1.0, None])
    def test_invalid_material_reference_rejected(self, fresh_scene, material_id):
        """Test a material id that does not exist returns -1."""
        fresh_scene.add_lambert_material((0.5, 0.5, 0.5))

        assert fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, material_id) == -1
        assert fresh_scene.get_sphere_count() == 0

    def test_rejection_does_not_shift_indices(self, fresh_scene):
        """Test a rejected sphere does not consume an index."""
        mat = fresh_scene.add_lambert_material((0.5, 0.5, 0.5))

        assert fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, mat) == 0
        assert fresh_scene.add_sphere((0.0, 0.0, -5.0), -1.0, mat) == -1
        assert fresh_scene.add_sphere((3.0, 0.0, -5.0), 1.0, mat) == 1

    def test_convenience_methods(self, fresh_scene):
        """Test add_*_sphere create material and sphere together."""
        s0, m0 = fresh_scene.add_lambert_sphere((0.0, 0.0, -5.0), 1.0, (0.8, 0.2, 0.2))
        s1, m1 = fresh_scene.add_cook_torrance_sphere((2.0, 0.0, -5.0), 0.5, (0.9, 0.9, 0.9), roughness=0.2)

        assert (s0, m0, s1, m1) == (0, 0, 1, 1)
        assert fresh_scene.get_primitive_count() == 2


class TestLightAddition:
    """Tests for Scene light management."""

    def test_add_lights(self, fresh_scene):
        """Test valid lights are stored in order."""
        assert fresh_scene.add_point_light((0.0, 5.0, 0.0), (1.0, 1.0, 1.0), 100.0) == 0
        assert fresh_scene.add_directional_light((0.0, -1.0, 0.0), (1.0, 1.0, 1.0), 1.0) == 1
        assert fresh_scene.get_light_count() == 2

    @pytest.mark.parametrize(
        "color,intensity",
        [((-1.0, 1.0, 1.0), 1.0), ((1.0, 1.0, 1.0), -1.0), ((1.0, math.nan, 1.0), 1.0)],
    )
    def test_invalid_point_light_rejected(self, fresh_scene, color, intensity):
        """Test negative or non-finite emission returns -1."""
        assert fresh_scene.add_point_light((0.0, 5.0, 0.0), color, intensity) == -1
        assert fresh_scene.get_light_count() == 0

    def test_invalid_directional_light_rejected(self, fresh_scene):
        """Test a zero direction returns -1."""
        assert fresh_scene.add_directional_light((0.0, 0.0, 0.0)) == -1

    def test_add_area_light(self, fresh_scene):
        """Test an area light registers all of its samples."""
        from src.raycore.lights.area_light import AreaLight
        from src.raycore.lights.light import get_light_sample_count

        counts = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            for i in range(2):
                counts[i] = get_light_sample_count(i)

        assert fresh_scene.add_point_light((0.0, 5.0, 0.0)) == 0
        assert fresh_scene.add_area_light((0.0, 4.0, -5.0), (0.0, -1.0, 0.0), 2.0, 1.0, samples_per_axis=3) == 1
        test_kernel()

        assert isinstance(fresh_scene.lights[1], AreaLight)
        assert counts.to_numpy().tolist() == [1, 9]

    @pytest.mark.parametrize(
        "normal,width,height,samples",
        [
            ((0.0, 0.0, 0.0), 1.0, 1.0, 4),
            ((0.0, -1.0, 0.0), 0.0, 1.0, 4),
            ((0.0, -1.0, 0.0), 1.0, -2.0, 4),
            ((0.0, -1.0, 0.0), 1.0, 1.0, 0),
        ],
    )
    def test_invalid_area_light_rejected(self, fresh_scene, caplog, normal, width, height, samples):
        """Test degenerate area lights return -1 with a warning."""
        with caplog.at_level(logging.WARNING):
            index = fresh_scene.add_area_light((0.0, 4.0, 0.0), normal, width, height, samples_per_axis=samples)
        assert index == -1
        assert fresh_scene.get_light_count() == 0
        assert "Rejected invalid light" in caplog.text


class TestCameraAndQueries:
    """Tests for set_camera and Scene.intersect."""

    def test_set_camera(self, fresh_scene):
        """Test set_camera stores the camera and initializes the basis."""
        from src.raycore.camera.pinhole import PinholeCamera, is_camera_initialized

        camera = PinholeCamera(eye=(0.0, 0.0, 5.0), target=(0.0, 0.0, 0.0))

        assert fresh_scene.set_camera(camera) is True
        assert fresh_scene.camera == camera
        assert is_camera_initialized()

    def test_degenerate_camera_warns(self, fresh_scene, caplog):
        """Test a camera needing fallbacks is accepted with a warning."""
        from src.raycore.camera.pinhole import PinholeCamera

        with caplog.at_level(logging.WARNING):
            accepted = fresh_scene.set_camera(PinholeCamera(target=(0.0, 1.0, 0.0), up=(0.0, 1.0, 0.0)))
        assert accepted is True
        assert "fallback" in caplog.text

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"eye": (math.nan, 0.0, 0.0)},
            {"target": (0.0, math.inf, -1.0)},
            {"up": (0.0, math.nan, 0.0)},
        ],
    )
    def test_non_finite_camera_rejected(self, fresh_scene, caplog, kwargs):
        """Test a camera with a non-finite vector is refused and the previous camera kept."""
        from src.raycore.camera.pinhole import PinholeCamera, is_camera_initialized

        with caplog.at_level(logging.WARNING):
            assert fresh_scene.set_camera(PinholeCamera(**kwargs)) is False
        assert fresh_scene.camera is None
        assert not is_camera_initialized()
        assert "non-finite" in caplog.text

        previous = PinholeCamera(eye=(0.0, 0.0, 5.0), target=(0.0, 0.0, 0.0))
        fresh_scene.set_camera(previous)
        assert fresh_scene.set_camera(PinholeCamera(**kwargs)) is False
        assert fresh_scene.camera == previous

    def test_intersect(self, fresh_scene):
        """Test the analytic hit through the scene query."""
        mat = fresh_scene.add_lambert_material((0.5, 0.5, 0.5))
        fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, mat)

        hit = fresh_scene.intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit.hit
        assert abs(hit.t - 4.0) < 1e-5
        assert np.allclose(hit.point, (0.0, 0.0, -4.0), atol=1e-5)
        assert np.allclose(hit.normal, (0.0, 0.0, 1.0), atol=1e-5)
        assert hit.material_id == mat
        assert hit.primitive_id == 0

        miss = fresh_scene.intersect((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert not miss.hit
        assert miss.material_id == -1


class TestMaterialDispatch:
    """Tests for GPU-side dispatch on the material tag."""

    def test_evaluate_brdf_dispatch(self, fresh_scene):
        """Test evaluate_brdf picks the model matching each material id."""
        from src.raycore.materials.material import evaluate_brdf, get_material_type

        lambert = fresh_scene.add_lambert_material((0.6, 0.6, 0.6))
        metal = fresh_scene.add_cook_torrance_material((1.0, 1.0, 1.0), roughness=0.5, metallic=1.0)

        types = ti.field(dtype=ti.i32, shape=3)
        values = ti.Vector.field(3, dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            n = ti.math.vec3(0.0, 0.0, 1.0)
            for i in ti.static(range(3)):
                types[i] = get_material_type(i)
                values[i] = evaluate_brdf(i, n, n, n)

        test_kernel()
        assert types[lambert] == 0
        assert types[metal] == 1
        # Out-of-range id: unknown tag, zero BRDF
        assert types[2] == -1
        v = values.to_numpy()
        assert np.allclose(v[lambert], 0.6 / math.pi, rtol=1e-5)
        # Mirror configuration: D(1) * V1(1)^2 * F0 = 1 / (pi alpha^2) / 4
        assert np.allclose(v[metal], 1.0 / (math.pi * 0.0625) / 4.0, rtol=1e-4)
        assert np.all(v[2] == 0.0)

    def test_scatter_light_applies_cosine_and_irradiance(self, fresh_scene):
        """Test scatter_light multiplies BRDF, irradiance and cos per channel."""
        from src.raycore.materials.material import scatter_light

        mat = fresh_scene.add_lambert_material((1.0, 0.5, 0.25))
        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            n = ti.math.vec3(0.0, 1.0, 0.0)
            l = ti.math.vec3(0.0, 0.5, ti.sqrt(3.0) / 2.0)
            result[None] = scatter_light(mat, l, n, n, ti.math.vec3(2.0, 2.0, 4.0))

        test_kernel()
        expected = np.array([1.0 * 2.0, 0.5 * 2.0, 0.25 * 4.0]) / math.pi * 0.5
        assert np.allclose(result[None].to_numpy(), expected, rtol=1e-5)


class TestSceneSerialization:
    """Tests for to_dict / from_dict."""

    def test_round_trip(self, fresh_scene):
        """Test export then import reproduces materials, spheres, lights and camera."""
        from src.raycore.camera.pinhole import PinholeCamera

        red = fresh_scene.add_lambert_material((0.8, 0.1, 0.1))
        gold = fresh_scene.add_cook_torrance_material((1.0, 0.8, 0.3), roughness=0.4, metallic=1.0)
        fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, red)
        fresh_scene.add_sphere((2.0, 0.0, -6.0), 0.5, gold)
        fresh_scene.add_point_light((0.0, 5.0, 0.0), (1.0, 1.0, 1.0), 200.0)
        fresh_scene.add_directional_light((0.0, -1.0, -1.0), (0.5, 0.5, 0.5), 1.0)
        fresh_scene.add_area_light((0.0, 4.0, -5.0), (0.0, -1.0, 0.0), 2.0, 1.0, (1.0, 0.9, 0.8), 30.0, 3)
        fresh_scene.set_camera(PinholeCamera(eye=(0.0, 1.0, 3.0), target=(0.0, 0.0, -5.0), vfov=50.0))

        data = fresh_scene.to_dict()
        fresh_scene.clear()
        assert fresh_scene.get_sphere_count() == 0
        assert fresh_scene.camera is None

        fresh_scene.from_dict(data)
        assert fresh_scene.get_material_count() == 2
        assert fresh_scene.get_sphere_count() == 2
        assert fresh_scene.get_light_count() == 3
        assert fresh_scene.lights[2].samples_per_axis == 3
        assert fresh_scene.camera.vfov == 50.0
        assert fresh_scene.to_dict() == data

    def test_unknown_material_type(self, fresh_scene):
        """Test an unknown material type raises ValueError."""
        with pytest.raises(ValueError, match="Unknown material type"):
            fresh_scene.from_dict({"materials": [{"type": "glass"}]})

    def test_invalid_entries_skipped(self, fresh_scene):
        """Test invalid spheres and lights in a config are skipped, not raised."""
        fresh_scene.from_dict(
            {
                "materials": [{"type": "lambert", "base_color": [0.5, 0.5, 0.5]}],
                "spheres": [
                    {"center": [0, 0, -5], "radius": 1.0, "material_id": 0},
                    {"center": [0, 0, -5], "radius": -1.0, "material_id": 0},
                    {"center": [0, 0, -5], "radius": 1.0, "material_id": 3},
                ],
                "lights": [{"type": "point", "position": [0, 5, 0], "intensity": -1.0}],
            }
        )
        assert fresh_scene.get_sphere_count() == 1
        assert fresh_scene.get_light_count() == 0

    def test_clear(self, fresh_scene):
        """Test clear empties everything."""
        fresh_scene.add_lambert_sphere((0.0, 0.0, -5.0), 1.0, (0.5, 0.5, 0.5))
        fresh_scene.add_point_light((0.0, 5.0, 0.0))
        fresh_scene.clear()

        assert fresh_scene.get_sphere_count() == 0
        assert fresh_scene.get_material_count() == 0
        assert fresh_scene.get_light_count() == 0
        assert repr(fresh_scene) == "Scene(spheres=0, materials=0, lights=0)"


class TestStaleScene:
    """Tests for a Scene whose storage was taken over by another."""

    def test_new_scene_makes_old_one_stale(self, fresh_scene):
        """Test building on a superseded Scene raises instead of desynchronizing."""
        from src.raycore.camera.pinhole import PinholeCamera
        from src.raycore.scene.manager import Scene

        mat = fresh_scene.add_lambert_material((0.5, 0.5, 0.5))
        fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, mat)

        other = Scene()
        assert other.is_active
        assert not fresh_scene.is_active

        with pytest.raises(RuntimeError, match="stale"):
            fresh_scene.add_lambert_material((0.1, 0.1, 0.1))
        with pytest.raises(RuntimeError, match="stale"):
            fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, 0)
        with pytest.raises(RuntimeError, match="stale"):
            fresh_scene.add_point_light((0.0, 5.0, 0.0))
        with pytest.raises(RuntimeError, match="stale"):
            fresh_scene.set_camera(PinholeCamera())
        with pytest.raises(RuntimeError, match="stale"):
            fresh_scene.intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        # The active scene is untouched by the failed calls
        assert other.get_material_count() == 0
        assert other.get_sphere_count() == 0

    def test_clear_reclaims_storage(self, fresh_scene):
        """Test clear() makes a stale Scene active again and the other one stale."""
        from src.raycore.scene.manager import Scene

        other = Scene()
        other.add_lambert_material((0.5, 0.5, 0.5))

        fresh_scene.clear()
        assert fresh_scene.is_active
        assert not other.is_active
        assert fresh_scene.get_material_count() == 0
        assert fresh_scene.add_lambert_material((0.2, 0.2, 0.2)) == 0
        assert fresh_scene.materials[0].base_color == (0.2, 0.2, 0.2)
