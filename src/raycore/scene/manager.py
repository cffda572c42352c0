"""Scene builder coordinating primitives, materials, lights and the camera.

The Scene is the only way geometry, materials and lights enter the render
storage. Every add operation validates its input and returns the new index,
or -1 when the input is rejected, so a scene that renders never holds a
degenerate sphere or a dangling material reference:

- Materials with out-of-range parameters are clamped into range (logged at
  INFO) and still receive an id.
- Spheres with a non-finite center, a non-positive or non-finite radius, or
  a material id that does not exist are rejected (logged at WARNING).
- Lights with negative or non-finite emission, a zero direction, or
  non-positive area-light extents are rejected (logged at WARNING).
- Cameras with a non-finite eye, target or up are rejected (logged at
  WARNING) and the previous camera is kept.

All storage lives in module-level Taichi fields, so only one Scene is active
at a time: constructing a Scene, or calling clear(), resets that storage and
makes every other Scene stale. Building, querying or rendering a stale Scene
raises RuntimeError.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycore.scene.manager import Scene
    >>> scene = Scene()
    >>> red = scene.add_lambert_material((0.8, 0.1, 0.1))
    >>> scene.add_sphere((0.0, 0.0, -5.0), 1.0, red)
    0
    >>> scene.add_sphere((0.0, 0.0, -5.0), -1.0, red)
    -1
"""

import logging
import numbers
from dataclasses import dataclass, field
from typing import Any

from src.raycore.camera.pinhole import (
    PinholeCamera,
    has_finite_vectors,
    horizontal_fov,
    reset_camera,
    setup_camera,
    validate_camera,
)
from src.raycore.core.constants import T_MAX, T_MIN
from src.raycore.core.vector import to_tuple3
from src.raycore.geometry.sphere import validate_sphere
from src.raycore.lights.area_light import AreaLight
from src.raycore.lights.directional_light import DirectionalLight
from src.raycore.lights.light import Light, add_light_record, clear_lights, get_light_count
from src.raycore.lights.point_light import PointLight
from src.raycore.materials.cook_torrance import CookTorranceMaterial
from src.raycore.materials.lambertian import LambertMaterial
from src.raycore.materials.material import (
    Material,
    add_material_record,
    clear_materials,
    get_material_count,
)
from src.raycore.scene.intersection import (
    Intersection,
    add_sphere,
    clear_scene,
    get_sphere_count,
    query_closest_hit,
)

logger = logging.getLogger(__name__)

# Generation of the Scene that currently owns the shared render storage
_active_generation = 0


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere.
        material_id: The material ID assigned to the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Plain-data description of a scene, suitable for JSON.

    Attributes:
        materials: Material dictionaries in id order.
        spheres: Sphere dictionaries in index order.
        lights: Light dictionaries in registry order.
        camera: Camera dictionary, or None if no camera is set.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    lights: list[dict[str, Any]] = field(default_factory=list)
    camera: dict[str, Any] | None = None


class Scene:
    """Scene builder and owner of the render storage.

    Attributes:
        materials: Materials in id order, as stored (after any clamping).
        spheres: SphereInfo for every accepted sphere.
        lights: Lights in registry order.
        camera: The active camera, or None.
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[Material] = []
        self.spheres: list[SphereInfo] = []
        self.lights: list[Light] = []
        self.camera: PinholeCamera | None = None
        self._generation = 0
        self._clear_all()

    @property
    def is_active(self) -> bool:
        """True while this Scene owns the render storage.

        Constructing or clearing another Scene takes the storage over and
        makes this one stale until its own clear() is called.
        """
        return self._generation == _active_generation

    def _require_active(self) -> None:
        if not self.is_active:
            raise RuntimeError(
                "Scene is stale: another Scene has taken over the render storage. "
                "Call clear() to reuse this one."
            )

    def _clear_all(self) -> None:
        global _active_generation
        _active_generation += 1
        self._generation = _active_generation
        clear_scene()
        clear_materials()
        clear_lights()
        reset_camera()
        self.materials.clear()
        self.spheres.clear()
        self.lights.clear()
        self.camera = None

    def clear(self) -> None:
        """Remove every primitive, material and light and unset the camera."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(self, material: Material) -> int:
        """Register a material and return its id.

        Out-of-range parameters are clamped into range before storage.

        Args:
            material: A LambertMaterial or CookTorranceMaterial.

        Returns:
            The material id, or -1 if the registry is full or the material
            type is not supported.
        """
        self._require_active()
        if not isinstance(material, (LambertMaterial, CookTorranceMaterial)):
            logger.warning("Rejected material of unsupported type %s", type(material).__name__)
            return -1

        if not material.validate():
            clamped = material.clamped()
            logger.info("Clamped material parameters %s -> %s", material, clamped)
            material = clamped

        material_id = add_material_record(material)
        if material_id >= 0:
            self.materials.append(material)
        return material_id

    def add_lambert_material(self, base_color: tuple[float, float, float]) -> int:
        """Register a Lambertian material.

        Args:
            base_color: Diffuse color (R, G, B), each channel in [0, 1].

        Returns:
            The material id, or -1 on failure.
        """
        return self.add_material(LambertMaterial(base_color=to_tuple3(base_color)))

    def add_cook_torrance_material(
        self,
        base_color: tuple[float, float, float],
        roughness: float = 0.5,
        metallic: float = 0.0,
        specular: float = 0.04,
    ) -> int:
        """Register a Cook-Torrance material.

        Args:
            base_color: Surface color (R, G, B), each channel in [0, 1].
            roughness: Perceptual roughness in [0.01, 1].
            metallic: Metallic parameter in [0, 1].
            specular: Dielectric reflectance at normal incidence in [0, 1].

        Returns:
            The material id, or -1 on failure.
        """
        return self.add_material(
            CookTorranceMaterial(
                base_color=to_tuple3(base_color),
                roughness=float(roughness),
                metallic=float(metallic),
                specular=float(specular),
            )
        )

    def get_material_count(self) -> int:
        """Get the number of registered materials."""
        return get_material_count()

    def get_material(self, material_id: int) -> Material | None:
        """Get the stored parameters of a material, or None if the id is unknown."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere, finite and positive.
            material_id: An id previously returned by an add_*_material call.

        Returns:
            The sphere index, or -1 if the geometry is invalid, the material
            id does not exist, or sphere storage is full.
        """
        self._require_active()
        if not validate_sphere(center, radius):
            logger.warning("Rejected sphere with center=%s radius=%s", center, radius)
            return -1

        if not isinstance(material_id, numbers.Integral) or not 0 <= material_id < self.get_material_count():
            logger.warning(
                "Rejected sphere with invalid material_id %s (have %d materials)",
                material_id,
                self.get_material_count(),
            )
            return -1

        center = to_tuple3(center)
        material_id = int(material_id)
        sphere_index = add_sphere(center, float(radius), material_id)
        if sphere_index >= 0:
            self.spheres.append(
                SphereInfo(
                    sphere_index=sphere_index,
                    center=center,
                    radius=float(radius),
                    material_id=material_id,
                )
            )
        return sphere_index

    def add_lambert_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        base_color: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (sphere_index, material_id); either may be -1.
        """
        material_id = self.add_lambert_material(base_color)
        return self.add_sphere(center, radius, material_id), material_id

    def add_cook_torrance_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        base_color: tuple[float, float, float],
        roughness: float = 0.5,
        metallic: float = 0.0,
        specular: float = 0.04,
    ) -> tuple[int, int]:
        """Add a sphere with a new Cook-Torrance material.

        Returns:
            Tuple of (sphere_index, material_id); either may be -1.
        """
        material_id = self.add_cook_torrance_material(base_color, roughness, metallic, specular)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def get_primitive_count(self) -> int:
        """Get the total number of traversable primitives."""
        return self.get_sphere_count()

    # =========================================================================
    # Light Management
    # =========================================================================

    def add_light(self, light: Light) -> int:
        """Add a light to the scene.

        Args:
            light: A PointLight, DirectionalLight or AreaLight.

        Returns:
            The light index, or -1 if the light is invalid or the registry
            is full.
        """
        self._require_active()
        if not isinstance(light, (PointLight, DirectionalLight, AreaLight)):
            logger.warning("Rejected light of unsupported type %s", type(light).__name__)
            return -1

        if not light.validate():
            logger.warning("Rejected invalid light %s", light)
            return -1

        light_index = add_light_record(light)
        if light_index >= 0:
            self.lights.append(light)
        return light_index

    def add_point_light(
        self,
        position: tuple[float, float, float],
        color: tuple[float, float, float] = (1.0, 1.0, 1.0),
        intensity: float = 1.0,
    ) -> int:
        """Add an isotropic point light.

        Args:
            position: Light position in world space.
            color: Emitted color (RGB), non-negative.
            intensity: Scalar power multiplier, non-negative.

        Returns:
            The light index, or -1 on failure.
        """
        return self.add_light(PointLight(position=position, color=color, intensity=intensity))

    def add_directional_light(
        self,
        direction: tuple[float, float, float],
        color: tuple[float, float, float] = (1.0, 1.0, 1.0),
        intensity: float = 1.0,
    ) -> int:
        """Add a directional light.

        Args:
            direction: Direction the light travels (need not be unit length).
            color: Emitted color (RGB), non-negative.
            intensity: Irradiance scale, non-negative.

        Returns:
            The light index, or -1 on failure.
        """
        return self.add_light(
            DirectionalLight(direction=direction, color=color, intensity=intensity)
        )

    def add_area_light(
        self,
        center: tuple[float, float, float],
        normal: tuple[float, float, float],
        width: float,
        height: float,
        color: tuple[float, float, float] = (1.0, 1.0, 1.0),
        intensity: float = 1.0,
        samples_per_axis: int = 4,
    ) -> int:
        """Add a one-sided rectangular area light.

        Args:
            center: Center of the rectangle.
            normal: Emitting direction (need not be unit length).
            width: Extent along the light's U axis, positive.
            height: Extent along the light's V axis, positive.
            color: Emitted color (RGB), non-negative.
            intensity: Scalar power multiplier, non-negative.
            samples_per_axis: Shadow-sample grid resolution per axis.

        Returns:
            The light index, or -1 on failure.
        """
        return self.add_light(
            AreaLight(
                center=center,
                normal=normal,
                width=width,
                height=height,
                color=color,
                intensity=intensity,
                samples_per_axis=samples_per_axis,
            )
        )

    def get_light_count(self) -> int:
        """Get the number of lights in the scene."""
        return get_light_count()

    # =========================================================================
    # Camera
    # =========================================================================

    def set_camera(self, camera: PinholeCamera) -> bool:
        """Set the camera used by render().

        The basis is computed immediately. Degenerate cameras are accepted
        with the fallbacks described in compute_camera_basis.

        Returns:
            True if the camera was set; False if eye, target or up is not
            finite, in which case the previous camera is kept.
        """
        self._require_active()
        if not has_finite_vectors(camera):
            logger.warning("Rejected camera with non-finite eye, target or up: %s", camera)
            return False
        if not validate_camera(camera):
            logger.warning("Camera %s needs fallbacks to produce a usable basis", camera)
        setup_camera(camera)
        self.camera = camera
        return True

    # =========================================================================
    # Queries
    # =========================================================================

    def intersect(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        t_min: float = T_MIN,
        t_max: float = T_MAX,
    ) -> Intersection:
        """Find the closest primitive hit by a ray.

        Args:
            origin: Ray origin.
            direction: Ray direction (normalized before traversal).
            t_min: Minimum accepted distance.
            t_max: Maximum accepted distance.

        Returns:
            The closest Intersection; hit is False if nothing is hit.
        """
        self._require_active()
        return query_closest_hit(origin, direction, t_min, t_max)

    def log_summary(self) -> None:
        """Log the scene contents at DEBUG level."""
        logger.debug(
            "Scene: %d spheres, %d materials, %d lights",
            self.get_sphere_count(),
            self.get_material_count(),
            self.get_light_count(),
        )
        if self.camera is not None:
            logger.debug(
                "Camera: eye=%s target=%s vfov=%.2f hfov=%.2f aspect=%.4f",
                self.camera.eye,
                self.camera.target,
                self.camera.vfov,
                horizontal_fov(self.camera),
                self.camera.aspect_ratio,
            )

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()
        config.materials = [material.to_dict() for material in self.materials]
        config.spheres = [
            {
                "center": list(sphere.center),
                "radius": sphere.radius,
                "material_id": sphere.material_id,
            }
            for sphere in self.spheres
        ]
        config.lights = [light.to_dict() for light in self.lights]
        if self.camera is not None:
            config.camera = {
                "eye": list(self.camera.eye),
                "target": list(self.camera.target),
                "up": list(self.camera.up),
                "vfov": self.camera.vfov,
                "aspect_ratio": self.camera.aspect_ratio,
            }
        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene first. Entries are added through the same
        validating add operations, so invalid entries are skipped with a
        warning, and material ids keep their meaning only if every material
        entry is accepted.

        Raises:
            ValueError: If a material or light has an unknown type.
        """
        self.clear()

        for mat_config in config.materials:
            mat_type = str(mat_config.get("type", "")).lower()
            base_color = to_tuple3(mat_config.get("base_color", [0.7, 0.7, 0.7]))
            if mat_type == "lambert":
                self.add_lambert_material(base_color)
            elif mat_type == "cook_torrance":
                self.add_cook_torrance_material(
                    base_color,
                    roughness=mat_config.get("roughness", 0.5),
                    metallic=mat_config.get("metallic", 0.0),
                    specular=mat_config.get("specular", 0.04),
                )
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for sphere_config in config.spheres:
            self.add_sphere(
                to_tuple3(sphere_config.get("center", [0.0, 0.0, 0.0])),
                sphere_config.get("radius", 1.0),
                sphere_config.get("material_id", 0),
            )

        for light_config in config.lights:
            light_type = str(light_config.get("type", "")).lower()
            color = to_tuple3(light_config.get("color", [1.0, 1.0, 1.0]))
            intensity = light_config.get("intensity", 1.0)
            if light_type == "point":
                position = to_tuple3(light_config.get("position", [0.0, 0.0, 0.0]))
                self.add_point_light(position, color, intensity)
            elif light_type == "directional":
                direction = to_tuple3(light_config.get("direction", [0.0, -1.0, 0.0]))
                self.add_directional_light(direction, color, intensity)
            elif light_type == "area":
                self.add_area_light(
                    to_tuple3(light_config.get("center", [0.0, 0.0, 0.0])),
                    to_tuple3(light_config.get("normal", [0.0, -1.0, 0.0])),
                    light_config.get("width", 1.0),
                    light_config.get("height", 1.0),
                    color,
                    intensity,
                    light_config.get("samples_per_axis", 4),
                )
            else:
                raise ValueError(f"Unknown light type: {light_type}")

        if config.camera is not None:
            self.set_camera(
                PinholeCamera(
                    eye=to_tuple3(config.camera.get("eye", [0.0, 0.0, 0.0])),
                    target=to_tuple3(config.camera.get("target", [0.0, 0.0, -1.0])),
                    up=to_tuple3(config.camera.get("up", [0.0, 1.0, 0.0])),
                    vfov=config.camera.get("vfov", 60.0),
                    aspect_ratio=config.camera.get("aspect_ratio", 1.0),
                )
            )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
            "lights": config.lights,
            "camera": config.camera,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary (from JSON deserialization)."""
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
            lights=data.get("lights", []),
            camera=data.get("camera"),
        )
        self.from_config(config)

    def __repr__(self) -> str:
        return (
            f"Scene(spheres={self.get_sphere_count()}, "
            f"materials={self.get_material_count()}, "
            f"lights={self.get_light_count()})"
        )
