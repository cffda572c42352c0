"""Scene module for primitive storage, traversal and scene building.

Components:
    intersection: Sphere storage, closest-hit and any-hit traversal
    manager: Scene builder coordinating primitives, materials, lights and camera

Scene data is organized as Structure-of-Arrays Taichi fields; the scene
builder is the only writer and validates everything it stores.
"""

from .intersection import (
    MAX_SPHERES,
    Intersection,
    SceneHitRecord,
    clear_scene,
    get_sphere_count,
    intersect_scene,
    intersect_scene_any,
    query_closest_hit,
)
from .manager import Scene, SceneConfig, SphereInfo

__all__ = [
    "SceneHitRecord",
    "Intersection",
    "MAX_SPHERES",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "intersect_scene_any",
    "query_closest_hit",
    "Scene",
    "SceneConfig",
    "SphereInfo",
]
