"""Material storage and tagged dispatch.

Materials are stored in a single Structure-of-Arrays registry indexed by a
stable material id. Each slot holds the MaterialType tag and the union of the
model parameters (base_color for both models; roughness, metallic and
specular for Cook-Torrance). The shading code never holds a reference into
this storage, only the integer id carried by the hit record.

Dispatch is a closed match on the tag: adding a model means adding a
MaterialType member, a parameter dataclass and one branch below.

Example:
    >>> from src.raycore.materials.lambertian import LambertMaterial
    >>> material_id = add_material_record(LambertMaterial(base_color=(0.8, 0.2, 0.2)))
    >>> # In a Taichi kernel:
    >>> # radiance = scatter_light(material_id, light_dir, view_dir, normal, irradiance)
"""

import logging
from typing import Union

import taichi as ti
import taichi.math as tm

from src.raycore.materials.base import MaterialType
from src.raycore.materials.cook_torrance import (
    CookTorranceMaterial,
    evaluate_cook_torrance_brdf,
    scatter_cook_torrance,
)
from src.raycore.materials.lambertian import (
    LambertMaterial,
    evaluate_lambert_brdf,
    scatter_lambertian,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

Material = Union[LambertMaterial, CookTorranceMaterial]

# Maximum number of materials in the scene
MAX_MATERIALS = 1024

# Material storage (Structure of Arrays)
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_base_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_roughness = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_metallic = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_specular = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def get_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_materials[None])


def add_material_record(material: Material) -> int:
    """Store an already-validated material and return its id.

    Parameters are written as given; range correction is the caller's job
    (see Scene.add_material).

    Args:
        material: A LambertMaterial or CookTorranceMaterial.

    Returns:
        The new material id, or -1 if the registry is full or the material
        type is unknown.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        logger.warning("Maximum number of materials (%d) exceeded", MAX_MATERIALS)
        return -1

    if isinstance(material, CookTorranceMaterial):
        material_types[idx] = int(MaterialType.COOK_TORRANCE)
        material_roughness[idx] = material.roughness
        material_metallic[idx] = material.metallic
        material_specular[idx] = material.specular
    elif isinstance(material, LambertMaterial):
        material_types[idx] = int(MaterialType.LAMBERT)
        material_roughness[idx] = 0.0
        material_metallic[idx] = 0.0
        material_specular[idx] = 0.0
    else:
        logger.warning("Unsupported material type: %s", type(material).__name__)
        return -1

    material_base_colors[idx] = list(material.base_color)
    num_materials[None] = idx + 1
    return idx


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the MaterialType tag for a material id, or -1 if out of range."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_base_color(material_id: ti.i32) -> vec3:
    """Get the base color for a material id."""
    return material_base_colors[material_id]


@ti.func
def evaluate_brdf(material_id: ti.i32, wi: vec3, wo: vec3, normal: vec3) -> vec3:
    """Evaluate the BRDF of a stored material.

    Args:
        material_id: The material id (validated at scene-build time).
        wi: Unit direction toward the light, pointing away from the surface.
        wo: Unit direction toward the viewer, pointing away from the surface.
        normal: Unit surface normal.

    Returns:
        The BRDF value per channel; zero for an unknown tag.
    """
    mat_type = get_material_type(material_id)
    result = vec3(0.0, 0.0, 0.0)

    if mat_type == int(MaterialType.LAMBERT):
        result = evaluate_lambert_brdf(material_base_colors[material_id], wi, wo, normal)

    elif mat_type == int(MaterialType.COOK_TORRANCE):
        result = evaluate_cook_torrance_brdf(
            material_base_colors[material_id],
            material_roughness[material_id],
            material_metallic[material_id],
            material_specular[material_id],
            wi,
            wo,
            normal,
        )

    return result


@ti.func
def scatter_light(
    material_id: ti.i32,
    light_dir: vec3,
    view_dir: vec3,
    normal: vec3,
    incident_radiance: vec3,
) -> vec3:
    """Outgoing radiance for one light sample on a stored material.

    Applies cos(theta) = max(0, n . l), the BRDF and the incident radiance
    independently per color channel.
    """
    mat_type = get_material_type(material_id)
    result = vec3(0.0, 0.0, 0.0)

    if mat_type == int(MaterialType.LAMBERT):
        result = scatter_lambertian(
            material_base_colors[material_id], light_dir, view_dir, normal, incident_radiance
        )

    elif mat_type == int(MaterialType.COOK_TORRANCE):
        result = scatter_cook_torrance(
            material_base_colors[material_id],
            material_roughness[material_id],
            material_metallic[material_id],
            material_specular[material_id],
            light_dir,
            view_dir,
            normal,
            incident_radiance,
        )

    return result
