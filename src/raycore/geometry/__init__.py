"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection

Intersection routines are Taichi functions returning a HitRecord and serve
both closest-hit and any-hit (shadow) queries.
"""

from .sphere import (
    HitRecord,
    Sphere,
    hit_sphere,
    make_sphere,
    surface_area,
    validate_sphere,
    volume,
)

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "validate_sphere",
    "surface_area",
    "volume",
]
