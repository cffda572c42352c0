"""Scene-level primitive storage and intersection testing.

This module stores the traversable spheres in Taichi fields and provides the
closest-hit query used for primary rays and the any-hit query used for
shadow rays. Traversal is brute force: every query tests every sphere, so
cost is linear in the primitive count.

Spheres only enter storage through the scene builder, which validates
geometry and material references first. Traversal therefore never checks
indices.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycore.scene.intersection import add_sphere, intersect_scene, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -5.0), 1.0, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import logging
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.raycore.core.constants import T_MAX, T_MIN
from src.raycore.core.vector import safe_normalize, to_tuple3
from src.raycore.geometry.sphere import HitRecord, Sphere, hit_sphere

logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Extends the sphere HitRecord with the material and primitive ids.

    Attributes:
        hit: Whether the ray intersected any primitive (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The outward surface normal at the intersection point.
            Only valid if hit == 1.
        front_face: Whether the ray hit the outside (1) or inside (0).
            Only valid if hit == 1.
        material_id: Index into the material registry, -1 on a miss.
        primitive_id: Index into the sphere storage, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32
    primitive_id: ti.i32


# Maximum number of primitives supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive count to zero. The field data is overwritten when
    new primitives are added.
    """
    num_spheres[None] = 0


def add_sphere(center, radius: float, material_id: int) -> int:
    """Append a sphere to primitive storage.

    No validation happens here; use Scene.add_sphere from the builder.

    Args:
        center: The center point as a 3-element sequence.
        radius: The radius of the sphere.
        material_id: The material id to associate with this sphere.

    Returns:
        The index of the added sphere, or -1 if storage is full.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        logger.warning("Maximum number of spheres (%d) exceeded", MAX_SPHERES)
        return -1
    sphere_centers[idx] = [float(center[0]), float(center[1]), float(center[2])]
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def _to_scene_hit_record(rec: HitRecord, material_id: ti.i32, primitive_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
        primitive_id=primitive_id,
    )


@ti.func
def make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection.

    Returns:
        A record with hit=0 and material/primitive ids of -1.
    """
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
        primitive_id=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Closest-hit query against every sphere in the scene.

    Each sphere is tested with the closest t found so far as its upper
    bound, so the surviving record has the minimal valid t.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        The closest intersection, or a miss record.
    """
    closest_t = t_max
    result = make_miss_record()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _to_scene_hit_record(rec, sphere_material_ids[i], i)

    return result


@ti.func
def intersect_scene_any(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.i32:
    """Test if the ray hits any primitive in (t_min, t_max) (shadow query).

    Returns:
        1 if any primitive was hit, 0 otherwise.
    """
    hit_any = 0

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        if hit_any == 0:
            sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
            rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
            if rec.hit == 1:
                hit_any = 1

    return hit_any


# =============================================================================
# Python-side queries
# =============================================================================


@dataclass(frozen=True)
class Intersection:
    """Result of a closest-hit query made from Python.

    Attributes:
        hit: Whether any primitive was hit.
        t: Distance along the normalized ray (0 on a miss).
        point: Hit point (zero on a miss).
        normal: Outward unit normal at the hit point (zero on a miss).
        front_face: True if the ray hit the outside of the surface.
        material_id: Material id of the hit primitive, -1 on a miss.
        primitive_id: Sphere index of the hit primitive, -1 on a miss.
    """

    hit: bool
    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    front_face: bool
    material_id: int
    primitive_id: int


_query_result = SceneHitRecord.field(shape=())


@ti.kernel
def _query_closest_kernel(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
):
    direction = safe_normalize(vec3(dx, dy, dz))
    _query_result[None] = intersect_scene(vec3(ox, oy, oz), direction, t_min, t_max)


def query_closest_hit(origin, direction, t_min: float = T_MIN, t_max: float = T_MAX) -> Intersection:
    """Run a closest-hit query for one ray outside of a render.

    The direction is normalized before traversal, so t is a world-space
    distance. A zero direction never hits.
    """
    o = to_tuple3(origin)
    d = to_tuple3(direction)
    _query_closest_kernel(o[0], o[1], o[2], d[0], d[1], d[2], float(t_min), float(t_max))
    rec = _query_result[None]
    return Intersection(
        hit=bool(rec.hit),
        t=float(rec.t),
        point=to_tuple3(rec.point),
        normal=to_tuple3(rec.normal),
        front_face=bool(rec.front_face),
        material_id=int(rec.material_id),
        primitive_id=int(rec.primitive_id),
    )
