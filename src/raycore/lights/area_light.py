"""Rectangular area light sampled on a fixed stratified grid.

The light is a one-sided rectangle centered at `center`, facing along
`normal`, spanning `width` along its local U axis and `height` along its
local V axis. Its contribution to a surface point is estimated with
samples_per_axis x samples_per_axis points, one at the center of each
stratum of the rectangle. Each sample at distance d, seen from the light at
angle theta_l to its normal, delivers

    E_k = intensity * color * cos(theta_l) * area / d^2 / N

where N is the total sample count, so summing E_k over k gives the
irradiance estimate. Samples behind the emitting side contribute nothing.
The grid is fixed, so the same scene always renders the same image, and each
sample is shadow-tested separately, which gives soft shadow edges.

The local basis is built from the normal and the world X axis (or the world
Y axis when the normal is close to X).

Example:
    >>> light = AreaLight(center=(0.0, 4.0, -5.0), normal=(0.0, -1.0, 0.0), width=2.0, height=1.0)
    >>> light.area
    2.0
    >>> # In a Taichi kernel:
    >>> # for k in range(n * n):
    >>> #     direction, irradiance, distance = area_light_illuminate(..., point, k)
"""

import math
import numbers
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.raycore.core.constants import MIN_LIGHT_DISTANCE, ZERO_LENGTH_SQUARED
from src.raycore.core.vector import is_finite_tuple, to_tuple3
from src.raycore.lights.base import LightType, emission_is_valid

# Type alias for 3D vectors
vec3 = tm.vec3

# Upper bound on samples_per_axis (256 shadow rays per light per hit)
MAX_SAMPLES_PER_AXIS = 16


@dataclass(frozen=True)
class AreaLight:
    """One-sided rectangular emitter.

    Attributes:
        center: Center of the rectangle in world space.
        normal: Emitting direction (need not be unit length).
        width: Extent along the local U axis, positive.
        height: Extent along the local V axis, positive.
        color: Emitted color (RGB), every channel non-negative.
        intensity: Scalar power multiplier, non-negative.
        samples_per_axis: Grid resolution; the light is sampled
            samples_per_axis ** 2 times per shaded point.
    """

    center: tuple[float, float, float] = (0.0, 0.0, 0.0)
    normal: tuple[float, float, float] = (0.0, -1.0, 0.0)
    width: float = 1.0
    height: float = 1.0
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    intensity: float = 1.0
    samples_per_axis: int = 4

    light_type = LightType.AREA

    def validate(self) -> bool:
        """Report whether the light may be added to a scene."""
        if len(self.center) != 3 or not is_finite_tuple(self.center):
            return False
        if len(self.normal) != 3 or not is_finite_tuple(self.normal):
            return False
        if sum(float(c) * float(c) for c in self.normal) < ZERO_LENGTH_SQUARED:
            return False
        try:
            width = float(self.width)
            height = float(self.height)
        except (TypeError, ValueError):
            return False
        if not (math.isfinite(width) and math.isfinite(height) and width > 0.0 and height > 0.0):
            return False
        if not isinstance(self.samples_per_axis, numbers.Integral):
            return False
        if not 1 <= self.samples_per_axis <= MAX_SAMPLES_PER_AXIS:
            return False
        return emission_is_valid(self.color, self.intensity)

    @property
    def area(self) -> float:
        return float(self.width) * float(self.height)

    @property
    def sample_count(self) -> int:
        return int(self.samples_per_axis) ** 2

    def basis(self):
        """Unit (normal, u_axis, v_axis) of the rectangle as float tuples."""
        n = np.asarray(self.normal, dtype=np.float64)
        n = n / np.linalg.norm(n)
        arbitrary = np.array([1.0, 0.0, 0.0]) if abs(n[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
        u = np.cross(n, arbitrary)
        u = u / np.linalg.norm(u)
        v = np.cross(n, u)
        return to_tuple3(n), to_tuple3(u), to_tuple3(v)

    def sample_points(self) -> list[tuple[float, float, float]]:
        """World-space sample positions in kernel order."""
        _, u_axis, v_axis = self.basis()
        n = int(self.samples_per_axis)
        points = []
        for k in range(n * n):
            su = ((k % n) + 0.5) / n - 0.5
            sv = ((k // n) + 0.5) / n - 0.5
            points.append(
                tuple(
                    float(c) + su * self.width * float(a) + sv * self.height * float(b)
                    for c, a, b in zip(self.center, u_axis, v_axis)
                )
            )
        return points

    def irradiance_at(self, point) -> tuple[float, float, float]:
        """Python-side unoccluded irradiance estimate (same formula as the kernel path)."""
        normal, _, _ = self.basis()
        total = 0.0
        for sample in self.sample_points():
            to_light = np.subtract(sample, point).astype(np.float64)
            distance = float(np.linalg.norm(to_light))
            if distance < MIN_LIGHT_DISTANCE:
                continue
            cos_light = -float(np.dot(normal, to_light)) / distance
            if cos_light > 0.0:
                total += cos_light * self.area / (distance * distance)
        scale = self.intensity * total / self.sample_count
        return (self.color[0] * scale, self.color[1] * scale, self.color[2] * scale)

    def to_dict(self) -> dict:
        return {
            "type": "area",
            "center": list(self.center),
            "normal": list(self.normal),
            "width": self.width,
            "height": self.height,
            "color": list(self.color),
            "intensity": self.intensity,
            "samples_per_axis": self.samples_per_axis,
        }


@ti.func
def area_light_sample_point(
    center: vec3,
    u_axis: vec3,
    v_axis: vec3,
    width: ti.f32,
    height: ti.f32,
    samples_per_axis: ti.i32,
    sample_index: ti.i32,
) -> vec3:
    """Center of stratum sample_index on the light rectangle (row-major in U)."""
    n = ti.cast(samples_per_axis, ti.f32)
    su = (ti.cast(sample_index % samples_per_axis, ti.f32) + 0.5) / n - 0.5
    sv = (ti.cast(sample_index // samples_per_axis, ti.f32) + 0.5) / n - 0.5
    return center + (su * width) * u_axis + (sv * height) * v_axis


@ti.func
def area_light_illuminate(
    center: vec3,
    normal: vec3,
    u_axis: vec3,
    v_axis: vec3,
    width: ti.f32,
    height: ti.f32,
    samples_per_axis: ti.i32,
    color: vec3,
    intensity: ti.f32,
    point: vec3,
    sample_index: ti.i32,
):
    """Direction, weighted irradiance and distance for one area-light sample.

    Args:
        center, normal, u_axis, v_axis: The rectangle and its unit basis.
        width, height: Rectangle extents.
        samples_per_axis: Grid resolution.
        color: Light color (RGB).
        intensity: Light intensity.
        point: The surface point being shaded.
        sample_index: Which stratum to sample, in [0, samples_per_axis ** 2).

    Returns:
        A tuple (direction, irradiance, distance). The irradiance already
        carries the 1 / N weight. It is zero when the point is behind the
        emitting side or coincides with the sample.
    """
    sample = area_light_sample_point(center, u_axis, v_axis, width, height, samples_per_axis, sample_index)
    to_light = sample - point
    distance = tm.length(to_light)

    direction = vec3(0.0, 0.0, 0.0)
    irradiance = vec3(0.0, 0.0, 0.0)
    if distance >= MIN_LIGHT_DISTANCE:
        direction = to_light / distance
        cos_light = -tm.dot(normal, direction)
        if cos_light > 0.0:
            n_samples = ti.cast(samples_per_axis * samples_per_axis, ti.f32)
            irradiance = color * (
                intensity * cos_light * width * height / (distance * distance * n_samples)
            )

    return direction, irradiance, distance
