"""Lights module.

Components:
    base: LightType tag and emission validation
    point_light: Isotropic point light with inverse-square falloff
    directional_light: Distant light with constant irradiance
    area_light: Rectangular area light sampled on a stratified grid
    light: Light registry and tagged dispatch by light index
"""

from .area_light import AreaLight
from .base import LightType
from .directional_light import DirectionalLight
from .light import (
    MAX_LIGHTS,
    Light,
    add_light_record,
    clear_lights,
    get_light_count,
    get_light_sample_count,
    illuminate,
)
from .point_light import PointLight

__all__ = [
    "LightType",
    "Light",
    "PointLight",
    "DirectionalLight",
    "AreaLight",
    "MAX_LIGHTS",
    "add_light_record",
    "clear_lights",
    "get_light_count",
    "get_light_sample_count",
    "illuminate",
]
