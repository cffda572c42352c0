"""Light storage and tagged dispatch.

All lights live in one ordered Structure-of-Arrays registry. The shading code
iterates the registry in index order, so multi-light sums are reproducible.
Each slot stores the LightType tag, the color and the intensity, plus:

- point lights: the position
- directional lights: the unit travel direction
- area lights: the center, unit normal, unit U/V axes, extents and grid
  resolution

Every light is evaluated as get_light_sample_count(light_id) samples; point
and directional lights have exactly one.
"""

import logging
from typing import Union

import taichi as ti
import taichi.math as tm

from src.raycore.core.vector import normalize_tuple
from src.raycore.lights.area_light import AreaLight, area_light_illuminate
from src.raycore.lights.base import LightType
from src.raycore.lights.directional_light import (
    DirectionalLight,
    directional_light_illuminate,
)
from src.raycore.lights.point_light import PointLight, point_light_illuminate

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

Light = Union[PointLight, DirectionalLight, AreaLight]

# Maximum number of lights in the scene
MAX_LIGHTS = 64

light_types = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_directions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_intensities = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
light_u_axes = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_v_axes = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_sizes = ti.Vector.field(2, dtype=ti.f32, shape=MAX_LIGHTS)
light_samples_per_axis = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Remove all lights."""
    num_lights[None] = 0


def get_light_count() -> int:
    """Get the number of lights in the registry."""
    return int(num_lights[None])


def add_light_record(light: Light) -> int:
    """Store an already-validated light and return its index.

    Args:
        light: A PointLight, DirectionalLight or AreaLight.

    Returns:
        The new light index, or -1 if the registry is full or the light
        type is unknown.
    """
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        logger.warning("Maximum number of lights (%d) exceeded", MAX_LIGHTS)
        return -1

    light_u_axes[idx] = [0.0, 0.0, 0.0]
    light_v_axes[idx] = [0.0, 0.0, 0.0]
    light_sizes[idx] = [0.0, 0.0]
    light_samples_per_axis[idx] = 1

    if isinstance(light, PointLight):
        light_types[idx] = int(LightType.POINT)
        light_positions[idx] = list(light.position)
        light_directions[idx] = [0.0, 0.0, 0.0]
    elif isinstance(light, DirectionalLight):
        light_types[idx] = int(LightType.DIRECTIONAL)
        light_positions[idx] = [0.0, 0.0, 0.0]
        light_directions[idx] = list(normalize_tuple(light.direction))
    elif isinstance(light, AreaLight):
        normal, u_axis, v_axis = light.basis()
        light_types[idx] = int(LightType.AREA)
        light_positions[idx] = list(light.center)
        light_directions[idx] = list(normal)
        light_u_axes[idx] = list(u_axis)
        light_v_axes[idx] = list(v_axis)
        light_sizes[idx] = [float(light.width), float(light.height)]
        light_samples_per_axis[idx] = int(light.samples_per_axis)
    else:
        logger.warning("Unsupported light type: %s", type(light).__name__)
        return -1

    light_colors[idx] = list(light.color)
    light_intensities[idx] = light.intensity
    num_lights[None] = idx + 1
    return idx


@ti.func
def get_light_sample_count(light_id: ti.i32) -> ti.i32:
    """Number of samples illuminate() takes for a light (1 unless it is an area light)."""
    n = light_samples_per_axis[light_id]
    return n * n


@ti.func
def illuminate(light_id: ti.i32, point: vec3, sample_index: ti.i32):
    """Evaluate one sample of a stored light at a surface point.

    Args:
        light_id: Index into the light registry.
        point: The surface point being shaded.
        sample_index: Sample in [0, get_light_sample_count(light_id)); ignored
            by point and directional lights.

    Returns:
        A tuple (direction, irradiance, distance): the unit direction toward
        the light, the irradiance arriving at the point (RGB, already
        weighted so the samples of one light sum to its total) and the
        distance to the light (T_MAX for directional lights). Degenerate
        configurations return zero irradiance.
    """
    kind = light_types[light_id]
    direction = vec3(0.0, 0.0, 0.0)
    irradiance = vec3(0.0, 0.0, 0.0)
    distance = 0.0

    if kind == int(LightType.POINT):
        direction, irradiance, distance = point_light_illuminate(
            light_positions[light_id],
            light_colors[light_id],
            light_intensities[light_id],
            point,
        )

    elif kind == int(LightType.DIRECTIONAL):
        direction, irradiance, distance = directional_light_illuminate(
            light_directions[light_id],
            light_colors[light_id],
            light_intensities[light_id],
            point,
        )

    elif kind == int(LightType.AREA):
        size = light_sizes[light_id]
        direction, irradiance, distance = area_light_illuminate(
            light_positions[light_id],
            light_directions[light_id],
            light_u_axes[light_id],
            light_v_axes[light_id],
            size[0],
            size[1],
            light_samples_per_axis[light_id],
            light_colors[light_id],
            light_intensities[light_id],
            point,
            sample_index,
        )

    return direction, irradiance, distance
