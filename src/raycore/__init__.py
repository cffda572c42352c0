"""CPU ray-tracing core built on Taichi.

This package turns a camera description and a set of spheres with
physically-based materials into per-pixel outgoing radiance, with support for:
- Pinhole camera ray generation with exact vertical/horizontal field of view
- Closed-form ray-sphere intersection with self-intersection suppression
- Brute-force closest-hit scene traversal
- Lambert and Cook-Torrance (GGX / Smith / Schlick) material models
- Point and directional lights with optional shadow rays

Subpackages:
    core: Named constants, vector utilities, rays, render options, shading kernels
    camera: Pinhole camera basis construction and ray generation
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambert and Cook-Torrance BRDFs with tagged material dispatch
    lights: Point and directional lights with tagged light dispatch
    scene: Primitive storage, scene traversal and the scene builder
"""

__version__ = "0.1.0"
