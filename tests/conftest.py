"""Pytest configuration for raycore tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear spheres, materials, lights and the camera around each test."""
    # Import here so Taichi is initialized first
    from src.raycore.camera.pinhole import reset_camera
    from src.raycore.lights.light import clear_lights
    from src.raycore.materials.material import clear_materials
    from src.raycore.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_materials()
        clear_lights()
        reset_camera()

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def rng():
    """Seeded NumPy generator for randomized tests."""
    import numpy as np

    return np.random.default_rng(12345)
