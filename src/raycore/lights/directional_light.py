"""Directional light: parallel rays from an infinitely distant source.

Irradiance is intensity * color everywhere, with no distance falloff. The
stored direction is the direction the light travels; surfaces see the light
along its negation.
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.raycore.core.constants import T_MAX, ZERO_LENGTH_SQUARED
from src.raycore.core.vector import is_finite_tuple
from src.raycore.lights.base import LightType, emission_is_valid

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class DirectionalLight:
    """Distant light shining along a fixed direction.

    Attributes:
        direction: Direction the light travels (need not be unit length, must
            not be zero).
        color: Emitted color (RGB), every channel non-negative.
        intensity: Scalar power multiplier, non-negative.
    """

    direction: tuple[float, float, float] = (0.0, -1.0, 0.0)
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    intensity: float = 1.0

    light_type = LightType.DIRECTIONAL

    def validate(self) -> bool:
        """Report whether the light may be added to a scene."""
        if len(self.direction) != 3 or not is_finite_tuple(self.direction):
            return False
        if sum(float(c) * float(c) for c in self.direction) < ZERO_LENGTH_SQUARED:
            return False
        return emission_is_valid(self.color, self.intensity)

    def to_dict(self) -> dict:
        return {
            "type": "directional",
            "direction": list(self.direction),
            "color": list(self.color),
            "intensity": self.intensity,
        }


@ti.func
def directional_light_illuminate(direction: vec3, color: vec3, intensity: ti.f32, point: vec3):
    """Direction, irradiance and distance for a directional light.

    Args:
        direction: Unit direction the light travels.
        color: Light color (RGB).
        intensity: Light intensity.
        point: The surface point being shaded (unused; no falloff).

    Returns:
        A tuple (-direction, intensity * color, T_MAX).
    """
    return -direction, color * intensity, T_MAX
