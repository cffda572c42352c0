"""Materials module for BRDF models.

Components:
    base: MaterialType tag and helpers shared by every model
    lambertian: Ideal diffuse reflection, f_r = base_color / pi
    cook_torrance: GGX / Smith / Schlick microfacet reflection
    material: Material registry and tagged dispatch by material id

Every model takes the light and view directions pointing away from the
surface and returns radiance per color channel.
"""

from .base import MaterialType
from .cook_torrance import (
    CookTorranceMaterial,
    evaluate_cook_torrance_brdf,
    f0_from_ior,
    ggx_distribution,
    schlick_fresnel,
    smith_g,
    smith_g1,
)
from .lambertian import LambertMaterial, eval_lambertian, evaluate_lambert_brdf
from .material import (
    MAX_MATERIALS,
    Material,
    add_material_record,
    clear_materials,
    evaluate_brdf,
    get_material_count,
    scatter_light,
)

__all__ = [
    "MaterialType",
    "Material",
    "MAX_MATERIALS",
    # Lambert
    "LambertMaterial",
    "eval_lambertian",
    "evaluate_lambert_brdf",
    # Cook-Torrance
    "CookTorranceMaterial",
    "ggx_distribution",
    "smith_g1",
    "smith_g",
    "schlick_fresnel",
    "f0_from_ior",
    "evaluate_cook_torrance_brdf",
    # Registry
    "add_material_record",
    "clear_materials",
    "get_material_count",
    "evaluate_brdf",
    "scatter_light",
]
