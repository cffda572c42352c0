"""Ray data structure for GPU-accelerated ray tracing.

A Ray is an origin point, a normalized direction and the valid parameter
range [t_min, t_max]. Rays are created per query (one per pixel by the
camera, one per light by the shadow test) and are never persisted.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycore.core.ray import Ray, make_ray, ray_at
    >>> # Inside a Taichi kernel:
    >>> # ray = make_ray(vec3(0, 0, 0), vec3(0, 0, -1))
    >>> # point = ray_at(ray, 5.0)  # (0, 0, -5)
"""

import taichi as ti
import taichi.math as tm

from src.raycore.core.constants import T_MAX, T_MIN
from src.raycore.core.vector import safe_normalize

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point, a direction and a valid parameter range.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3). Normalized by make_ray.
        t_min: Smallest parameter accepted as a hit.
        t_max: Largest parameter accepted as a hit.
    """

    origin: vec3
    direction: vec3
    t_min: ti.f32
    t_max: ti.f32


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray with a normalized direction and the default range.

    A zero direction stays zero; such a ray never intersects anything.
    """
    return Ray(origin=origin, direction=safe_normalize(direction), t_min=T_MIN, t_max=T_MAX)


@ti.func
def make_ray_range(origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32) -> Ray:
    """Create a ray with a normalized direction and an explicit range."""
    return Ray(origin=origin, direction=safe_normalize(direction), t_min=t_min, t_max=t_max)
