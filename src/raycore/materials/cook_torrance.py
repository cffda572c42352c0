"""Cook-Torrance microfacet material implementation.

The Cook-Torrance BRDF models a rough surface as a statistical distribution
of perfectly specular microfacets:

    f_r(wi, wo) = D(h) * G(wi, wo) * F(v.h) / (4 * (n.l) * (n.v))

with h = normalize(wi + wo) and:

    D: GGX / Trowbridge-Reitz normal distribution
        D(n.h, alpha) = alpha^2 / (pi * ((n.h)^2 * (alpha^2 - 1) + 1)^2)
    G: Smith masking-shadowing, separable form G = G1(n.l) * G1(n.v) with
        G1(c) = 2 / (1 + sqrt(1 + alpha^2 * tan^2(theta)))
    F: Schlick Fresnel
        F(v.h) = F0 + (1 - F0) * (1 - v.h)^5
        F0 = lerp(specular, base_color, metallic) per channel

Roughness convention: alpha = roughness^2 everywhere (D, G1 and the BRDF).
The user-facing roughness lives in [0.01, 1], so alpha lies in [1e-4, 1].

All terms are evaluated in algebraically equivalent forms that stay finite in
single precision:
    - D uses (1 - (n.h)^2) + (n.h)^2 * alpha^2 for the inner denominator,
      which is exact at n.h = 1 where (alpha^2 - 1) would round to -1.
    - G1 uses 2c / (c + sqrt(alpha^2 + (1 - alpha^2) c^2)), with no tan^2.
    - The BRDF folds G / (4 (n.l)(n.v)) into a visibility term so the
      grazing-angle 1 / (n.l) never overflows.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycore.materials.cook_torrance import ggx_distribution
    >>> # Use within a Taichi kernel:
    >>> # d = ggx_distribution(n_dot_h, alpha_from_roughness(0.5))
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.raycore.core.constants import DIELECTRIC_F0, MAX_ROUGHNESS, MIN_ROUGHNESS
from src.raycore.core.vector import safe_normalize
from src.raycore.materials.base import (
    MaterialType,
    apply_light,
    clamp01,
    clamp_color,
    color_in_unit_range,
    cosine_term,
)

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class CookTorranceMaterial:
    """Cook-Torrance microfacet material parameters.

    Attributes:
        base_color: Surface color as (R, G, B), each channel in [0, 1].
            Blended into F0 in proportion to metallic.
        roughness: Perceptual roughness in [0.01, 1]. The lower bound avoids
            the singular perfect-mirror case.
        metallic: 0 for dielectrics, 1 for conductors, interpolated between.
        specular: Dielectric reflectance at normal incidence, in [0, 1].
    """

    base_color: tuple[float, float, float] = (0.7, 0.7, 0.7)
    roughness: float = 0.5
    metallic: float = 0.0
    specular: float = DIELECTRIC_F0

    material_type = MaterialType.COOK_TORRANCE

    def validate(self) -> bool:
        """Report whether every parameter is already in range."""
        return (
            color_in_unit_range(self.base_color)
            and MIN_ROUGHNESS <= self.roughness <= MAX_ROUGHNESS
            and 0.0 <= self.metallic <= 1.0
            and 0.0 <= self.specular <= 1.0
        )

    def clamped(self) -> "CookTorranceMaterial":
        """Return a copy with out-of-range parameters auto-corrected."""
        roughness = float(self.roughness)
        if roughness != roughness:
            roughness = MAX_ROUGHNESS
        return CookTorranceMaterial(
            base_color=clamp_color(self.base_color),
            roughness=max(MIN_ROUGHNESS, min(MAX_ROUGHNESS, roughness)),
            metallic=clamp01(self.metallic),
            specular=clamp01(self.specular),
        )

    @property
    def alpha(self) -> float:
        """Microfacet alpha (roughness squared)."""
        return self.roughness * self.roughness

    def to_dict(self) -> dict:
        return {
            "type": "cook_torrance",
            "base_color": list(self.base_color),
            "roughness": self.roughness,
            "metallic": self.metallic,
            "specular": self.specular,
        }


def f0_from_ior(ior: float) -> float:
    """Dielectric reflectance at normal incidence, ((n - 1) / (n + 1))^2."""
    return ((ior - 1.0) / (ior + 1.0)) ** 2


# =============================================================================
# BRDF Terms (Taichi functions)
# =============================================================================


@ti.func
def alpha_from_roughness(roughness: ti.f32) -> ti.f32:
    """Convert perceptual roughness to the microfacet alpha (roughness^2)."""
    return roughness * roughness


@ti.func
def ggx_distribution(n_dot_h: ti.f32, alpha: ti.f32) -> ti.f32:
    """GGX / Trowbridge-Reitz normal distribution function.

    Args:
        n_dot_h: Cosine between the normal and the half-vector.
        alpha: Microfacet alpha (roughness^2).

    Returns:
        The microfacet density D >= 0. Zero for n_dot_h <= 0. For a fixed
        alpha the maximum is at n_dot_h = 1.
    """
    d = 0.0
    if n_dot_h > 0.0:
        alpha2 = alpha * alpha
        cos2 = ti.min(n_dot_h * n_dot_h, 1.0)
        sin2 = 1.0 - cos2
        # equals (n.h)^2 * (alpha^2 - 1) + 1
        inner = sin2 + cos2 * alpha2
        if inner > 0.0:
            d = alpha2 / (tm.pi * inner * inner)
    return d


@ti.func
def smith_g1(n_dot_v: ti.f32, alpha: ti.f32) -> ti.f32:
    """Smith masking term for a single direction.

    Equals 2 / (1 + sqrt(1 + alpha^2 tan^2(theta))). Returns 1 at normal
    incidence, falls toward 0 at grazing angles, and 0 for back-facing
    directions.
    """
    g = 0.0
    if n_dot_v > 0.0:
        c = ti.min(n_dot_v, 1.0)
        alpha2 = alpha * alpha
        g = 2.0 * c / (c + ti.sqrt(alpha2 + (1.0 - alpha2) * c * c))
    return g


@ti.func
def smith_g(n_dot_l: ti.f32, n_dot_v: ti.f32, alpha: ti.f32) -> ti.f32:
    """Separable Smith masking-shadowing G = G1(n.l) * G1(n.v)."""
    return smith_g1(n_dot_l, alpha) * smith_g1(n_dot_v, alpha)


@ti.func
def _smith_visibility1(c: ti.f32, alpha2: ti.f32) -> ti.f32:
    # G1(c) / (2c) for c in (0, 1]
    return 1.0 / (c + ti.sqrt(alpha2 + (1.0 - alpha2) * c * c))


@ti.func
def schlick_fresnel(v_dot_h: ti.f32, f0: vec3) -> vec3:
    """Schlick approximation of Fresnel reflectance.

    Returns exactly f0 at v_dot_h = 1 and approaches 1 as v_dot_h -> 0.
    """
    c = ti.min(ti.max(v_dot_h, 0.0), 1.0)
    weight = (1.0 - c) ** 5
    return f0 + (vec3(1.0, 1.0, 1.0) - f0) * weight


@ti.func
def f0_from_metallic(base_color: vec3, metallic: ti.f32, specular: ti.f32) -> vec3:
    """Interpolate F0 between the dielectric specular value and base_color."""
    dielectric = vec3(specular, specular, specular)
    return dielectric * (1.0 - metallic) + base_color * metallic


@ti.func
def evaluate_cook_torrance_brdf(
    base_color: vec3,
    roughness: ti.f32,
    metallic: ti.f32,
    specular: ti.f32,
    wi: vec3,
    wo: vec3,
    normal: vec3,
) -> vec3:
    """Evaluate the Cook-Torrance BRDF for one direction pair.

    Args:
        base_color: Surface color (RGB).
        roughness: Perceptual roughness, already clamped to [0.01, 1].
        metallic: Metallic parameter in [0, 1].
        specular: Dielectric F0 in [0, 1].
        wi: Unit direction toward the light (away from the surface).
        wo: Unit direction toward the viewer (away from the surface).
        normal: Unit surface normal.

    Returns:
        D * G * F / (4 (n.l)(n.v)) per channel, or zero when either
        direction is at or below the surface.
    """
    n_dot_l = tm.dot(normal, wi)
    n_dot_v = tm.dot(normal, wo)

    result = vec3(0.0, 0.0, 0.0)
    if n_dot_l > 0.0 and n_dot_v > 0.0:
        n_dot_l = ti.min(n_dot_l, 1.0)
        n_dot_v = ti.min(n_dot_v, 1.0)
        halfway = safe_normalize(wi + wo)
        n_dot_h = ti.max(tm.dot(normal, halfway), 0.0)
        v_dot_h = ti.max(tm.dot(wo, halfway), 0.0)

        alpha = alpha_from_roughness(roughness)
        alpha2 = alpha * alpha

        d = ggx_distribution(n_dot_h, alpha)
        # G / (4 (n.l)(n.v)) evaluated without the 1 / (n.l) singularity
        vis = _smith_visibility1(n_dot_l, alpha2) * _smith_visibility1(n_dot_v, alpha2)
        f = schlick_fresnel(v_dot_h, f0_from_metallic(base_color, metallic, specular))

        result = d * vis * f
    return result


@ti.func
def scatter_cook_torrance(
    base_color: vec3,
    roughness: ti.f32,
    metallic: ti.f32,
    specular: ti.f32,
    light_dir: vec3,
    view_dir: vec3,
    normal: vec3,
    incident_radiance: vec3,
) -> vec3:
    """Outgoing radiance from one light sample on a Cook-Torrance surface.

    Computes f_r * L_i * max(0, n . l) independently per color channel.
    """
    brdf = evaluate_cook_torrance_brdf(
        base_color, roughness, metallic, specular, light_dir, view_dir, normal
    )
    return apply_light(brdf, incident_radiance, cosine_term(normal, light_dir))
