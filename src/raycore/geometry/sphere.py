"""Sphere primitive with closed-form ray-sphere intersection.

This module provides a Sphere dataclass and intersection function. The ray
parameter is found by solving

    |O + t*D - C|^2 = r^2

which expands to a*t^2 + b*t + c = 0 with a = D.D, b = 2*(oc.D),
c = oc.oc - r^2 and oc = O - C. The roots are computed with the robust
quadratic formula from Ray Tracing Gems (half-b form) to avoid catastrophic
cancellation when b^2 is nearly equal to 4ac; they are the same roots as
(-b -/+ sqrt(b^2 - 4ac)) / 2a.

Root selection:
    - discriminant < 0: miss
    - otherwise take the smaller root if it exceeds t_min (at least
      EPSILON_BIAS), else the larger root (ray origin inside the sphere),
      else miss.

The reported normal is always the outward normal normalize(P - C).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycore.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -5), radius=1.0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import math

import taichi as ti
import taichi.math as tm

from src.raycore.core.constants import EPSILON_BIAS
from src.raycore.core.vector import is_finite_tuple, safe_normalize

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (finite, positive).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the sphere.
            Only valid if hit == 1.
        normal: The outward surface normal at the intersection point
            (unit length, points away from the sphere center).
            Only valid if hit == 1.
        front_face: Whether the ray hit the outside (1) or the inside (0)
            of the sphere. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve quadratic equation using robust formula from Ray Tracing Gems.

    Solves a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent ray through the center plane: fall back to the textbook form
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def _make_sphere_miss() -> HitRecord:
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (expected normalized).
        sphere: The sphere to test intersection against.
        t_min: Minimum t value to accept. Values below EPSILON_BIAS are
            raised to EPSILON_BIAS so a ray never re-hits its own surface.
        t_max: Maximum t value to accept (closest hit so far, light distance).

    Returns:
        A HitRecord containing intersection information. Check the hit field
        to determine if intersection occurred.
    """
    oc = ray_origin - sphere.center

    # Half-b formulation: a*t^2 + 2*h*t + c = 0 with h = b / 2
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    # h^2 - ac is (b^2 - 4ac) / 4, so it has the sign of the full discriminant
    discriminant = h * h - a * c

    result = _make_sphere_miss()
    lower = ti.max(t_min, EPSILON_BIAS)

    if discriminant >= 0.0 and a > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = (t > lower) and (t < t_max)
        if not valid:
            t = t1
            valid = (t > lower) and (t < t_max)

        if valid:
            hit_point = ray_origin + t * ray_direction
            outward_normal = safe_normalize(hit_point - sphere.center)
            front_face = 1
            if tm.dot(ray_direction, outward_normal) > 0.0:
                front_face = 0
            result = HitRecord(
                hit=1,
                t=t,
                point=hit_point,
                normal=outward_normal,
                front_face=front_face,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius inside a Taichi kernel."""
    return Sphere(center=center, radius=radius)


# =============================================================================
# Python-side geometry helpers
# =============================================================================


def validate_sphere(center, radius) -> bool:
    """Report whether sphere geometry may enter the traversable set.

    Args:
        center: The center point as a 3-element sequence.
        radius: The radius.

    Returns:
        True if the center is finite and the radius is finite and positive.
    """
    if not is_finite_tuple(center) or len(center) != 3:
        return False
    try:
        r = float(radius)
    except (TypeError, ValueError):
        return False
    return math.isfinite(r) and r > 0.0


def surface_area(radius: float) -> float:
    """Surface area 4*pi*r^2."""
    return 4.0 * math.pi * radius * radius


def volume(radius: float) -> float:
    """Volume (4/3)*pi*r^3."""
    return (4.0 / 3.0) * math.pi * radius * radius * radius
