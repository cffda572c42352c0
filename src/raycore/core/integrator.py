"""Direct-lighting integrator: camera ray -> closest hit -> shaded radiance.

Each pixel runs the same fixed three-stage pipeline with no state carried
between pixels:

    1. generate: the camera produces the primary ray through the pixel center
    2. intersect: brute-force closest-hit traversal over every sphere
    3. shade: for each light in registry order, the light provides direction
       and irradiance at the hit point (one sample for point and directional
       lights, a fixed grid of samples for area lights), an optional shadow
       ray tests occlusion, and the hit material turns BRDF * cos(theta) * irradiance
       into outgoing radiance; contributions are summed

The render kernel's outer loop over pixels is the parallelization boundary:
every iteration reads only the immutable scene fields and writes only its own
pixel of the output buffers.

Output is linear-space RGB radiance (unclamped, no gamma) together with the
hit mask, hit distance and normal per pixel. Encoding to an image format is
left to the caller.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycore.scene.manager import Scene
    >>> from src.raycore.camera.pinhole import PinholeCamera
    >>> from src.raycore.core.integrator import render
    >>> scene = Scene()
    >>> mat = scene.add_lambert_material((0.8, 0.2, 0.2))
    >>> scene.add_sphere((0.0, 0.0, -5.0), 1.0, mat)
    >>> scene.add_point_light((0.0, 5.0, 0.0), (1.0, 1.0, 1.0), 500.0)
    >>> scene.set_camera(PinholeCamera(eye=(0, 0, 0), target=(0, 0, -1), vfov=45.0))
    >>> result = render(scene, 64, 64)
    >>> result.radiance.shape
    (64, 64, 3)
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.raycore.camera.pinhole import get_ray, setup_camera
from src.raycore.core.constants import EPSILON_BIAS, SHADOW_BIAS
from src.raycore.core.options import RenderOptions
from src.raycore.core.vector import to_tuple3
from src.raycore.lights.light import get_light_sample_count, illuminate, num_lights
from src.raycore.materials.material import scatter_light
from src.raycore.scene.intersection import (
    SceneHitRecord,
    intersect_scene,
    intersect_scene_any,
)

if TYPE_CHECKING:
    from src.raycore.scene.manager import Scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Render Target (Output Buffers)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 1024
MAX_IMAGE_HEIGHT = 1024

# Buffers are indexed [row, column]; row 0 is the top of the image
_radiance_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))
_hit_buffer = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))
_distance_buffer = ti.field(dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))
_normal_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Single-pixel result slots for trace_pixel
_pixel_radiance = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_hit = ti.field(dtype=ti.i32, shape=())
_pixel_distance = ti.field(dtype=ti.f32, shape=())
_pixel_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_material_id = ti.field(dtype=ti.i32, shape=())
_pixel_primitive_id = ti.field(dtype=ti.i32, shape=())


@dataclass(frozen=True)
class RenderStatistics:
    """Per-render counters.

    Attributes:
        rays_cast: Primary rays generated (one per pixel).
        primary_hits: Primary rays that hit a primitive.
        intersection_tests: Ray-sphere tests performed by primary traversal
            (rays_cast * primitives, since traversal is brute force).
        primitives: Spheres in the scene.
        lights: Lights in the scene.
    """

    rays_cast: int
    primary_hits: int
    intersection_tests: int
    primitives: int
    lights: int

    @property
    def hit_ratio(self) -> float:
        return self.primary_hits / self.rays_cast if self.rays_cast else 0.0


@dataclass
class RenderResult:
    """Per-pixel output of a render.

    Attributes:
        radiance: Linear RGB radiance, shape (height, width, 3), unclamped.
        hit: Primary-ray hit mask, shape (height, width).
        distance: Primary hit distance t (0 on a miss), shape (height, width).
        normal: Outward normal at the primary hit (zero on a miss),
            shape (height, width, 3).
        statistics: Render counters.
    """

    radiance: npt.NDArray[np.float32]
    hit: npt.NDArray[np.bool_]
    distance: npt.NDArray[np.float32]
    normal: npt.NDArray[np.float32]
    statistics: RenderStatistics

    @property
    def width(self) -> int:
        return int(self.radiance.shape[1])

    @property
    def height(self) -> int:
        return int(self.radiance.shape[0])


@dataclass(frozen=True)
class PixelSample:
    """Radiance and diagnostics for one pixel."""

    radiance: tuple[float, float, float]
    hit: bool
    distance: float
    normal: tuple[float, float, float]
    material_id: int
    primitive_id: int


# =============================================================================
# Shading
# =============================================================================


@ti.func
def shading_normal(rec: SceneHitRecord) -> vec3:
    """The surface normal on the side the ray arrived from.

    Interior hits (front_face == 0) are shaded with the inward normal, so
    only lights inside the closed surface can reach them.
    """
    normal = rec.normal
    if rec.front_face == 0:
        normal = -rec.normal
    return normal


@ti.func
def shade_hit(rec: SceneHitRecord, view_dir: vec3, shadows: ti.i32) -> vec3:
    """Sum the contribution of every light sample at a hit point.

    Args:
        rec: A hit record with hit == 1.
        view_dir: Unit direction from the hit point toward the viewer.
        shadows: 1 to test each light sample for occlusion.

    Returns:
        The outgoing radiance (RGB).
    """
    radiance = vec3(0.0, 0.0, 0.0)
    normal = shading_normal(rec)
    shadow_origin = rec.point + SHADOW_BIAS * normal

    for light_id in range(num_lights[None]):
        for sample in range(get_light_sample_count(light_id)):
            light_dir, irradiance, light_distance = illuminate(light_id, rec.point, sample)

            # Lights behind the shaded side cannot contribute
            lit = 0
            if ti.max(irradiance[0], irradiance[1], irradiance[2]) > 0.0 and tm.dot(normal, light_dir) > 0.0:
                lit = 1
                if shadows == 1:
                    if intersect_scene_any(shadow_origin, light_dir, EPSILON_BIAS, light_distance - SHADOW_BIAS) == 1:
                        lit = 0
            if lit == 1:
                radiance += scatter_light(rec.material_id, light_dir, view_dir, normal, irradiance)

    return radiance


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Replace NaN/Inf channels with zero."""
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            color[c] = 0.0
    return color


@ti.func
def trace_ray(
    origin: vec3,
    direction: vec3,
    shadows: ti.i32,
    background: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
):
    """Intersect one ray with the scene and shade the closest hit.

    Returns:
        A tuple (radiance, record): background radiance and a miss record
        when nothing is hit.
    """
    rec = intersect_scene(origin, direction, t_min, t_max)
    radiance = background
    if rec.hit == 1:
        radiance = _sanitize(shade_hit(rec, -direction, shadows))
    return radiance, rec


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_kernel(
    width: ti.i32,
    height: ti.i32,
    shadows: ti.i32,
    bg_r: ti.f32,
    bg_g: ti.f32,
    bg_b: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
):
    """Render every pixel of a width x height image into the output buffers."""
    for row, col in ti.ndrange(height, width):
        ray = get_ray(ti.cast(col, ti.f32), ti.cast(row, ti.f32), width, height)
        radiance, rec = trace_ray(
            ray.origin, ray.direction, shadows, vec3(bg_r, bg_g, bg_b), t_min, t_max
        )
        _radiance_buffer[row, col] = radiance
        _hit_buffer[row, col] = rec.hit
        _distance_buffer[row, col] = rec.t
        _normal_buffer[row, col] = rec.normal


@ti.kernel
def _trace_pixel_kernel(
    px: ti.f32,
    py: ti.f32,
    width: ti.i32,
    height: ti.i32,
    shadows: ti.i32,
    bg_r: ti.f32,
    bg_g: ti.f32,
    bg_b: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
):
    """Trace a single pixel into the single-pixel result slots."""
    ray = get_ray(px, py, width, height)
    radiance, rec = trace_ray(ray.origin, ray.direction, shadows, vec3(bg_r, bg_g, bg_b), t_min, t_max)
    _pixel_radiance[None] = radiance
    _pixel_hit[None] = rec.hit
    _pixel_distance[None] = rec.t
    _pixel_normal[None] = rec.normal
    _pixel_material_id[None] = rec.material_id
    _pixel_primitive_id[None] = rec.primitive_id


# =============================================================================
# Public Rendering API
# =============================================================================


def _check_resolution(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )


def _prepare(scene: "Scene") -> None:
    if not scene.is_active:
        raise RuntimeError("Scene is stale: another Scene has taken over the render storage.")
    if scene.camera is None:
        raise RuntimeError("Scene has no camera. Call scene.set_camera() first.")
    setup_camera(scene.camera)


def _kernel_args(options: RenderOptions) -> tuple:
    bg = to_tuple3(options.background)
    return (
        1 if options.shadows else 0,
        bg[0],
        bg[1],
        bg[2],
        float(options.t_min),
        float(options.t_max),
    )


def render(
    scene: "Scene",
    width: int,
    height: int,
    options: RenderOptions | None = None,
) -> RenderResult:
    """Render the scene's camera view at the given resolution.

    The camera's own aspect ratio is used; pass
    camera.with_resolution(width, height) to the scene to match it to the
    image.

    Args:
        scene: The scene to render (must have a camera).
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).
        options: Render options; defaults to RenderOptions().

    Returns:
        A RenderResult with (height, width) shaped buffers.

    Raises:
        ValueError: If the resolution is non-positive or too large.
        RuntimeError: If the scene has no camera.
    """
    options = options or RenderOptions()
    _check_resolution(width, height)
    _prepare(scene)

    if options.verbose:
        scene.log_summary()

    _render_kernel(width, height, *_kernel_args(options))

    radiance = _radiance_buffer.to_numpy()[:height, :width, :]
    hit = _hit_buffer.to_numpy()[:height, :width].astype(bool)
    distance = _distance_buffer.to_numpy()[:height, :width]
    normal = _normal_buffer.to_numpy()[:height, :width, :]

    primitives = scene.get_sphere_count()
    rays = width * height
    statistics = RenderStatistics(
        rays_cast=rays,
        primary_hits=int(np.count_nonzero(hit)),
        intersection_tests=rays * primitives,
        primitives=primitives,
        lights=scene.get_light_count(),
    )

    if options.verbose:
        logger.debug(
            "Rendered %dx%d: %d rays, %d hits (%.1f%%), %d intersection tests, %d lights",
            width,
            height,
            statistics.rays_cast,
            statistics.primary_hits,
            100.0 * statistics.hit_ratio,
            statistics.intersection_tests,
            statistics.lights,
        )

    return RenderResult(
        radiance=radiance.astype(np.float32),
        hit=hit,
        distance=distance.astype(np.float32),
        normal=normal.astype(np.float32),
        statistics=statistics,
    )


def trace_pixel(
    scene: "Scene",
    px: float,
    py: float,
    width: int,
    height: int,
    options: RenderOptions | None = None,
) -> PixelSample:
    """Evaluate a single pixel.

    Args:
        scene: The scene to render (must have a camera).
        px: Pixel column (0 = left).
        py: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.
        options: Render options; defaults to RenderOptions().

    Returns:
        The pixel's radiance and hit diagnostics.
    """
    options = options or RenderOptions()
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    _prepare(scene)

    _trace_pixel_kernel(float(px), float(py), width, height, *_kernel_args(options))

    sample = PixelSample(
        radiance=to_tuple3(_pixel_radiance[None]),
        hit=bool(_pixel_hit[None]),
        distance=float(_pixel_distance[None]),
        normal=to_tuple3(_pixel_normal[None]),
        material_id=int(_pixel_material_id[None]),
        primitive_id=int(_pixel_primitive_id[None]),
    )
    if options.verbose:
        logger.debug("Pixel (%s, %s) of %dx%d: %s", px, py, width, height, sample)
    return sample
