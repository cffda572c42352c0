"""Lambert (ideal diffuse) material implementation.

This module implements the Lambertian BRDF, which models ideal diffuse reflection
where incident light is scattered uniformly in all directions.

The Lambertian BRDF is:
    f_r(wi, wo) = base_color / pi

The pi divisor makes the hemisphere integral of f_r * cos(theta) equal
base_color exactly, so any base_color channel in [0, 1] conserves energy.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycore.materials.lambertian import eval_lambertian, scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # radiance = scatter_lambertian(base_color, light_dir, view_dir, normal, irradiance)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.raycore.materials.base import (
    MaterialType,
    apply_light,
    clamp_color,
    color_in_unit_range,
    cosine_term,
)

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class LambertMaterial:
    """Lambert (ideal diffuse) material parameters.

    Attributes:
        base_color: The diffuse reflectance (albedo) as (R, G, B), each
            channel in [0, 1] for energy conservation.
    """

    base_color: tuple[float, float, float] = (0.7, 0.7, 0.7)

    material_type = MaterialType.LAMBERT

    def validate(self) -> bool:
        """Report whether every parameter is already in range."""
        return color_in_unit_range(self.base_color)

    def clamped(self) -> "LambertMaterial":
        """Return a copy with out-of-range parameters auto-corrected."""
        return LambertMaterial(base_color=clamp_color(self.base_color))

    def to_dict(self) -> dict:
        return {"type": "lambert", "base_color": list(self.base_color)}


@ti.func
def eval_lambertian(base_color: vec3) -> vec3:
    """Evaluate the Lambertian BRDF.

    The BRDF is constant for all directions:
        f_r = base_color / pi

    This returns the BRDF value only; the cosine term is applied by
    scatter_lambertian.

    Args:
        base_color: The diffuse reflectance color (RGB).

    Returns:
        The BRDF value (base_color / pi).
    """
    return base_color / tm.pi


@ti.func
def evaluate_lambert_brdf(base_color: vec3, wi: vec3, wo: vec3, normal: vec3) -> vec3:
    """Evaluate the Lambertian BRDF through the common material signature.

    The direction arguments are accepted for interface symmetry with
    Cook-Torrance and do not affect the result.
    """
    return eval_lambertian(base_color)


@ti.func
def scatter_lambertian(
    base_color: vec3,
    light_dir: vec3,
    view_dir: vec3,
    normal: vec3,
    incident_radiance: vec3,
) -> vec3:
    """Outgoing radiance from one light sample on a Lambertian surface.

    Computes f_r * L_i * max(0, n . l) independently per color channel.

    Args:
        base_color: The diffuse reflectance color (RGB).
        light_dir: Unit direction from the surface toward the light.
        view_dir: Unit direction from the surface toward the viewer.
        normal: Unit surface normal.
        incident_radiance: Irradiance arriving from the light (RGB).

    Returns:
        The reflected radiance (RGB).
    """
    brdf = evaluate_lambert_brdf(base_color, light_dir, view_dir, normal)
    return apply_light(brdf, incident_radiance, cosine_term(normal, light_dir))
