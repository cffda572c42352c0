"""Vector utilities for GPU-accelerated ray tracing.

This module provides the 3D vector/point arithmetic used by every other part
of the core: dot and cross products, lengths, a normalize that never produces
NaN, and validity predicates used by invariant checks. The Taichi functions
are usable inside kernels; the tuple helpers at the bottom run on the Python
side and back build-time validation in the scene builder.

Points and vectors share the same representation (vec3).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycore.core.vector import vec3, safe_normalize
    >>> @ti.kernel
    ... def k() -> vec3:
    ...     return safe_normalize(vec3(0.0, 3.0, 4.0))  # (0, 0.6, 0.8)
"""

import math

import numpy as np
import taichi as ti
import taichi.math as tm

from src.raycore.core.constants import (
    FLOAT_MAX,
    NEAR_ZERO,
    UNIT_LENGTH_TOLERANCE,
    ZERO_LENGTH_SQUARED,
)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


# =============================================================================
# Taichi Vector Functions
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b.

    The result is orthogonal to both inputs and anticommutative:
    cross(a, b) == -cross(b, a).
    """
    return tm.cross(a, b)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def safe_normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Unlike tm.normalize, a zero or near-zero input yields the zero vector
    instead of NaN or infinity.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the direction of v, or (0, 0, 0) if v is near zero.
    """
    len_sq = length_squared(v)
    result = vec3(0.0, 0.0, 0.0)
    if len_sq > ZERO_LENGTH_SQUARED:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def mul(a: vec3, b: vec3) -> vec3:
    """Component-wise (per color channel) product."""
    return vec3(a.x * b.x, a.y * b.y, a.z * b.z)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal."""
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    return ti.abs(v.x) < NEAR_ZERO and ti.abs(v.y) < NEAR_ZERO and ti.abs(v.z) < NEAR_ZERO


@ti.func
def is_finite(v: vec3) -> ti.i32:
    """Check that no component is NaN or infinite.

    NaN compares false against everything, so the bound check rejects it too.

    Returns:
        1 if all three components are finite, 0 otherwise.
    """
    return ti.abs(v.x) <= FLOAT_MAX and ti.abs(v.y) <= FLOAT_MAX and ti.abs(v.z) <= FLOAT_MAX


@ti.func
def is_unit_length(v: vec3) -> ti.i32:
    """Check that a vector has unit length within UNIT_LENGTH_TOLERANCE.

    Returns:
        1 if | |v| - 1 | <= tolerance, 0 otherwise.
    """
    return ti.abs(length(v) - 1.0) <= UNIT_LENGTH_TOLERANCE


# =============================================================================
# Python-side helpers (build-time validation, camera setup)
# =============================================================================


def is_finite_tuple(values) -> bool:
    """Return True if every component of a Python sequence is a finite number."""
    try:
        return all(math.isfinite(float(x)) for x in values)
    except (TypeError, ValueError):
        return False


def normalize_tuple(values) -> tuple[float, float, float]:
    """Normalize a 3-tuple on the Python side.

    Near-zero input returns (0, 0, 0), mirroring safe_normalize.
    """
    arr = np.asarray(values, dtype=np.float64)
    len_sq = float(np.dot(arr, arr))
    if len_sq <= ZERO_LENGTH_SQUARED:
        return (0.0, 0.0, 0.0)
    arr = arr / math.sqrt(len_sq)
    return (float(arr[0]), float(arr[1]), float(arr[2]))


def to_tuple3(values) -> tuple[float, float, float]:
    """Convert any 3-element sequence (tuple, list, array, vec3) to a float tuple."""
    return (float(values[0]), float(values[1]), float(values[2]))
