"""Shared pieces of the material models.

Materials form a closed tagged variant: MaterialType names every model, and
each model module provides a parameter dataclass plus Taichi functions for
its BRDF. Dispatch on the tag happens in materials.material.
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from src.raycore.core.vector import is_finite_tuple, mul

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Enumeration of supported material models.

    Used for material dispatch in the shading code to determine which BRDF
    to evaluate.
    """

    LAMBERT = 0
    COOK_TORRANCE = 1


@ti.func
def cosine_term(normal: vec3, light_dir: vec3) -> ti.f32:
    """Rendering-equation cosine factor max(0, n . l)."""
    return ti.max(0.0, tm.dot(normal, light_dir))


@ti.func
def apply_light(brdf: vec3, incident_radiance: vec3, cos_theta: ti.f32) -> vec3:
    """Combine BRDF, incident radiance and cosine term per color channel."""
    return mul(brdf, incident_radiance) * cos_theta


def clamp01(value: float) -> float:
    """Clamp a scalar to [0, 1]; NaN becomes 0."""
    value = float(value)
    if value != value:
        return 0.0
    return max(0.0, min(1.0, value))


def clamp_color(color) -> tuple[float, float, float]:
    """Clamp each channel of an RGB triple to [0, 1]."""
    return (clamp01(color[0]), clamp01(color[1]), clamp01(color[2]))


def color_in_unit_range(color) -> bool:
    """Report whether an RGB triple is finite with every channel in [0, 1]."""
    if len(color) != 3 or not is_finite_tuple(color):
        return False
    return all(0.0 <= float(c) <= 1.0 for c in color)
