"""Shared pieces of the light models.

Lights form a closed tagged variant like materials: LightType names every
kind, each kind module provides a parameter dataclass and a Taichi
illumination function, and lights.light dispatches on the tag.
"""

import math
from enum import IntEnum

from src.raycore.core.vector import is_finite_tuple


class LightType(IntEnum):
    """Enumeration of supported light kinds."""

    POINT = 0
    DIRECTIONAL = 1
    AREA = 2


def emission_is_valid(color, intensity) -> bool:
    """Report whether color and intensity describe a physical emitter.

    Every color channel and the intensity must be finite and non-negative;
    negative light is rejected, not clamped.
    """
    if len(color) != 3 or not is_finite_tuple(color):
        return False
    if any(float(c) < 0.0 for c in color):
        return False
    try:
        value = float(intensity)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value >= 0.0
