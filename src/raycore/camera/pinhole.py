"""Pinhole camera model for perspective projection ray generation.

This module implements a pinhole camera that generates primary rays for rendering.
The camera supports:
- Look-at positioning (eye, target, up hint)
- Vertical field of view specification, clamped to [1, 179] degrees
- Arbitrary aspect ratios, set directly or derived from a resolution
- Pixel-center sampling

The camera builds an orthonormal basis from the view parameters:
- forward: normalize(target - eye)
- right: normalize(forward x up_hint)
- up: right x forward

Ray generation maps pixel (px, py) of a width x height image to normalized
device offsets in [-1, 1] through the pixel center, scales them by
tan(vfov / 2) vertically and tan(vfov / 2) * aspect_ratio horizontally, and
combines them with the basis. Pixel row 0 is the top of the image. The
resulting horizontal field of view is exactly
2 * atan(tan(vfov / 2) * aspect_ratio).

Basis construction runs once on the Python side (NumPy) and is stored in
Taichi fields; get_ray is a Taichi function.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycore.camera.pinhole import PinholeCamera, setup_camera, get_ray
    >>>
    >>> camera = PinholeCamera(
    ...     eye=(0.0, 0.0, 3.0),
    ...     target=(0.0, 0.0, 0.0),
    ...     up=(0.0, 1.0, 0.0),
    ...     vfov=60.0,
    ...     aspect_ratio=16.0 / 9.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(320, 180, 640, 360)
"""

import logging
import math
from dataclasses import dataclass, replace

import numpy as np
import taichi as ti
import taichi.math as tm

from src.raycore.core.constants import (
    MAX_FOV_DEGREES,
    MIN_FOV_DEGREES,
    PARALLEL_UP_THRESHOLD,
    ZERO_LENGTH_SQUARED,
)
from src.raycore.core.ray import Ray, make_ray
from src.raycore.core.vector import is_finite_tuple, to_tuple3

logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        eye: Camera position in world space (x, y, z).
        target: Point the camera is looking at in world space (x, y, z).
        up: Up hint for camera orientation (typically (0, 1, 0)). Need not be
            orthogonal to the view direction or unit length.
        vfov: Vertical field of view in degrees. Clamped to [1, 179] when
            the camera is set up.
        aspect_ratio: Width divided by height of the output image.
    """

    eye: tuple[float, float, float] = (0.0, 0.0, 0.0)
    target: tuple[float, float, float] = (0.0, 0.0, -1.0)
    up: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 60.0
    aspect_ratio: float = 1.0

    def with_resolution(self, width: int, height: int) -> "PinholeCamera":
        """Return a copy whose aspect ratio matches a target resolution."""
        return replace(self, aspect_ratio=aspect_from_resolution(width, height))


@dataclass(frozen=True)
class CameraBasis:
    """Orthonormal view basis and projection scales derived from a camera.

    Attributes:
        origin: The eye position.
        forward: Unit view direction.
        right: Unit vector pointing right in the image plane.
        up: Unit vector pointing up in the image plane.
        tan_half_vfov: tan(vfov / 2) for the clamped vfov.
        aspect_ratio: Width / height used for the horizontal scale.
    """

    origin: tuple[float, float, float]
    forward: tuple[float, float, float]
    right: tuple[float, float, float]
    up: tuple[float, float, float]
    tan_half_vfov: float
    aspect_ratio: float


def clamp_fov(vfov: float) -> float:
    """Clamp a vertical field of view to [MIN_FOV_DEGREES, MAX_FOV_DEGREES]."""
    if not math.isfinite(vfov):
        return MIN_FOV_DEGREES if vfov < 0 else MAX_FOV_DEGREES
    return max(MIN_FOV_DEGREES, min(MAX_FOV_DEGREES, float(vfov)))


def aspect_from_resolution(width: int, height: int) -> float:
    """Derive width / height from an image resolution.

    Raises:
        ValueError: If either dimension is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Resolution must be positive, got {width}x{height}")
    return float(width) / float(height)


def horizontal_fov(camera: PinholeCamera) -> float:
    """Horizontal field of view in degrees implied by vfov and aspect ratio.

    Returns:
        2 * atan(tan(vfov / 2) * aspect_ratio), in degrees.
    """
    half = math.radians(clamp_fov(camera.vfov)) / 2.0
    return math.degrees(2.0 * math.atan(math.tan(half) * camera.aspect_ratio))


def has_finite_vectors(camera: PinholeCamera) -> bool:
    """Report whether eye, target and up are finite 3-vectors."""
    return all(
        is_finite_tuple(v) and len(v) == 3 for v in (camera.eye, camera.target, camera.up)
    )


def validate_camera(camera: PinholeCamera) -> bool:
    """Report whether a camera is usable without any fallback.

    A camera is valid when eye, target and up are finite, up is not zero,
    the unclamped vfov lies in (0, 180), the aspect ratio is positive and the
    up hint is not parallel to the view direction.
    """
    if not has_finite_vectors(camera):
        return False
    if not (0.0 < camera.vfov < 180.0):
        return False
    if not (math.isfinite(camera.aspect_ratio) and camera.aspect_ratio > 0.0):
        return False

    forward = np.subtract(camera.target, camera.eye).astype(np.float64)
    up = np.asarray(camera.up, dtype=np.float64)
    if np.dot(forward, forward) < ZERO_LENGTH_SQUARED or np.dot(up, up) < ZERO_LENGTH_SQUARED:
        return False

    forward /= np.linalg.norm(forward)
    up /= np.linalg.norm(up)
    return abs(float(np.dot(forward, up))) <= PARALLEL_UP_THRESHOLD


def _fallback_up(forward: np.ndarray) -> np.ndarray:
    """Pick the world axis least aligned with forward as an up hint."""
    axes = np.eye(3)
    return axes[int(np.argmin(np.abs(forward)))]


def compute_camera_basis(camera: PinholeCamera) -> CameraBasis:
    """Build the orthonormal view basis for a camera.

    Degenerate inputs are handled with documented fallbacks rather than NaNs:
    - eye == target: forward defaults to (0, 0, -1).
    - up hint parallel to forward (or zero): the world axis least aligned with
      forward is used as the up hint.
    - non-positive aspect ratio: 1.0 is used.
    Each fallback logs a warning. Non-finite positions or up hints have no
    meaningful fallback and are rejected.

    Args:
        camera: Camera configuration.

    Returns:
        The basis with pairwise orthogonal unit vectors forward, right, up.

    Raises:
        ValueError: If eye, target or up is not a finite 3-vector.
    """
    if not has_finite_vectors(camera):
        raise ValueError(
            f"Camera eye, target and up must be finite, got eye={camera.eye} "
            f"target={camera.target} up={camera.up}"
        )

    eye = np.asarray(camera.eye, dtype=np.float64)
    target = np.asarray(camera.target, dtype=np.float64)
    up_hint = np.asarray(camera.up, dtype=np.float64)

    forward = target - eye
    if np.dot(forward, forward) < ZERO_LENGTH_SQUARED:
        logger.warning("Camera eye %s equals target; looking down -z", camera.eye)
        forward = np.array([0.0, 0.0, -1.0])
    forward = forward / np.linalg.norm(forward)

    right = np.cross(forward, up_hint)
    if np.dot(right, right) < (1.0 - PARALLEL_UP_THRESHOLD**2) * max(
        float(np.dot(up_hint, up_hint)), ZERO_LENGTH_SQUARED
    ):
        fallback = _fallback_up(forward)
        logger.warning(
            "Camera up hint %s is parallel to the view direction; using %s instead",
            camera.up,
            tuple(fallback.tolist()),
        )
        right = np.cross(forward, fallback)
    right = right / np.linalg.norm(right)

    # right and forward are orthonormal, so their cross product is unit length
    true_up = np.cross(right, forward)

    aspect = camera.aspect_ratio
    if not (math.isfinite(aspect) and aspect > 0.0):
        logger.warning("Camera aspect ratio %r is invalid; using 1.0", aspect)
        aspect = 1.0

    vfov = clamp_fov(camera.vfov)
    if vfov != camera.vfov:
        logger.info("Clamped camera vfov from %r to %r degrees", camera.vfov, vfov)

    return CameraBasis(
        origin=to_tuple3(eye),
        forward=to_tuple3(forward),
        right=to_tuple3(right),
        up=to_tuple3(true_up),
        tan_half_vfov=math.tan(math.radians(vfov) / 2.0),
        aspect_ratio=float(aspect),
    )


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_forward = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())

# Half-extents of the image plane at unit distance
_half_height = ti.field(dtype=ti.f32, shape=())
_half_width = ti.field(dtype=ti.f32, shape=())

_camera_initialized = ti.field(dtype=ti.i32, shape=())


def setup_camera(camera: PinholeCamera) -> CameraBasis:
    """Initialize camera state from configuration.

    Computes the basis with compute_camera_basis and writes it to Taichi
    fields. Must be called before rendering.

    Args:
        camera: Camera configuration with position, orientation and FOV.

    Returns:
        The computed basis (useful for diagnostics).

    Raises:
        ValueError: If eye, target or up is not finite. The camera state is
            left unchanged.
    """
    basis = compute_camera_basis(camera)

    _camera_origin[None] = list(basis.origin)
    _camera_forward[None] = list(basis.forward)
    _camera_right[None] = list(basis.right)
    _camera_up[None] = list(basis.up)
    _half_height[None] = basis.tan_half_vfov
    _half_width[None] = basis.tan_half_vfov * basis.aspect_ratio
    _camera_initialized[None] = 1

    return basis


def is_camera_initialized() -> bool:
    """Check whether setup_camera has been called since the last reset."""
    return bool(_camera_initialized[None])


def reset_camera() -> None:
    """Mark the camera as not set up."""
    _camera_initialized[None] = 0


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def pixel_to_ndc(px: ti.f32, py: ti.f32, width: ti.i32, height: ti.i32):
    """Map a pixel to normalized device offsets through its center.

    Args:
        px: Pixel column (0 = left).
        py: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A tuple (ndc_x, ndc_y), each in [-1, 1]; ndc_y is +1 at the top.
    """
    ndc_x = 2.0 * (px + 0.5) / ti.cast(width, ti.f32) - 1.0
    ndc_y = 1.0 - 2.0 * (py + 0.5) / ti.cast(height, ti.f32)
    return ndc_x, ndc_y


@ti.func
def get_ray(px: ti.f32, py: ti.f32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the primary ray through the center of pixel (px, py).

    Args:
        px: Pixel column (0 = left).
        py: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray from the eye with a unit-length direction.
    """
    ndc_x, ndc_y = pixel_to_ndc(px, py, width, height)
    direction = (
        ndc_x * _half_width[None] * _camera_right[None]
        + ndc_y * _half_height[None] * _camera_up[None]
        + _camera_forward[None]
    )
    return make_ray(_camera_origin[None], direction)


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera position in world space."""
    return _camera_origin[None]


@ti.func
def get_camera_basis():
    """Get the camera basis as a tuple (right, up, forward)."""
    return _camera_right[None], _camera_up[None], _camera_forward[None]


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, forward, right, up, half_width, half_height.
    """
    return {
        "origin": to_tuple3(_camera_origin[None]),
        "forward": to_tuple3(_camera_forward[None]),
        "right": to_tuple3(_camera_right[None]),
        "up": to_tuple3(_camera_up[None]),
        "half_width": float(_half_width[None]),
        "half_height": float(_half_height[None]),
    }
