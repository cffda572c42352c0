"""Core rendering module.

Components:
    constants: Named epsilons and numeric limits shared by every module
    vector: vec3 helpers (dot, cross, safe normalization, finiteness checks)
    ray: Ray data structure with its valid t range
    options: Caller-supplied render options (verbosity, shadows, background)
    integrator: Direct-lighting shading and the render kernels

All per-ray work is done in Taichi functions so the render kernel can
parallelize over pixels.
"""

from .constants import (
    EPSILON_BIAS,
    MAX_FOV_DEGREES,
    MIN_FOV_DEGREES,
    MIN_LIGHT_DISTANCE,
    SHADOW_BIAS,
    T_MAX,
    T_MIN,
)
from .options import RenderOptions
from .ray import Ray, make_ray, make_ray_range, ray_at
from .vector import (
    cross,
    dot,
    length,
    length_squared,
    near_zero,
    reflect,
    safe_normalize,
    vec3,
)

# Note: integrator is NOT imported here to avoid circular imports.
# Import directly from src.raycore.core.integrator when needed.

__all__ = [
    "EPSILON_BIAS",
    "SHADOW_BIAS",
    "MIN_LIGHT_DISTANCE",
    "MIN_FOV_DEGREES",
    "MAX_FOV_DEGREES",
    "T_MIN",
    "T_MAX",
    "RenderOptions",
    "Ray",
    "ray_at",
    "make_ray",
    "make_ray_range",
    "vec3",
    "dot",
    "cross",
    "length",
    "length_squared",
    "safe_normalize",
    "reflect",
    "near_zero",
]
