"""Isotropic point light with inverse-square falloff.

The irradiance a point light delivers to a surface point at distance d is

    E = intensity * color / (4 * pi * d^2)

i.e. the light's radiant intensity spread over the sphere of radius d.
Closer than MIN_LIGHT_DISTANCE the light is treated as coincident with the
point and contributes nothing, so the result is never unbounded.

Example:
    >>> light = PointLight(position=(0.0, 5.0, 0.0), color=(1.0, 1.0, 1.0), intensity=100.0)
    >>> light.validate()
    True
    >>> # In a Taichi kernel:
    >>> # direction, irradiance, distance = point_light_illuminate(pos, color, intensity, p)
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.raycore.core.constants import MIN_LIGHT_DISTANCE
from src.raycore.core.vector import is_finite_tuple
from src.raycore.lights.base import LightType, emission_is_valid

# Type alias for 3D vectors
vec3 = tm.vec3

_INV_FOUR_PI = 1.0 / (4.0 * math.pi)


@dataclass(frozen=True)
class PointLight:
    """Isotropic point emitter.

    Attributes:
        position: Light position in world space.
        color: Emitted color (RGB), every channel non-negative.
        intensity: Scalar power multiplier, non-negative.
    """

    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    intensity: float = 1.0

    light_type = LightType.POINT

    def validate(self) -> bool:
        """Report whether the light may be added to a scene."""
        return (
            len(self.position) == 3
            and is_finite_tuple(self.position)
            and emission_is_valid(self.color, self.intensity)
        )

    def irradiance_at(self, point) -> tuple[float, float, float]:
        """Python-side irradiance at a point (same formula as the kernel path)."""
        d2 = sum((float(p) - float(q)) ** 2 for p, q in zip(self.position, point))
        if math.sqrt(d2) < MIN_LIGHT_DISTANCE:
            return (0.0, 0.0, 0.0)
        scale = self.intensity * _INV_FOUR_PI / d2
        return (self.color[0] * scale, self.color[1] * scale, self.color[2] * scale)

    def to_dict(self) -> dict:
        return {
            "type": "point",
            "position": list(self.position),
            "color": list(self.color),
            "intensity": self.intensity,
        }


@ti.func
def point_light_illuminate(position: vec3, color: vec3, intensity: ti.f32, point: vec3):
    """Direction, irradiance and distance from a surface point to a point light.

    Args:
        position: Light position.
        color: Light color (RGB).
        intensity: Light intensity.
        point: The surface point being shaded.

    Returns:
        A tuple (direction, irradiance, distance) where direction is the unit
        vector from the point toward the light. At distances below
        MIN_LIGHT_DISTANCE both direction and irradiance are zero.
    """
    to_light = position - point
    distance = tm.length(to_light)

    direction = vec3(0.0, 0.0, 0.0)
    irradiance = vec3(0.0, 0.0, 0.0)
    if distance >= MIN_LIGHT_DISTANCE:
        direction = to_light / distance
        irradiance = color * (intensity * _INV_FOUR_PI / (distance * distance))

    return direction, irradiance, distance
