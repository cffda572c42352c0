#!/usr/bin/env python3
"""Render a small demo scene of Lambert and Cook-Torrance spheres.

Builds a scene with a ground sphere, a row of spheres of increasing roughness
and three lights (point, directional, area), renders it with direct lighting
and saves the linear radiance buffer as a NumPy .npy file (shape
height x width x 3, row 0 at the top).

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH       Image width in pixels (default: 320)
    --height HEIGHT     Image height in pixels (default: 240)
    --output OUTPUT     Output file path (default: spheres.npy)
    --scene-json PATH   Also write the scene description as JSON
    --no-shadows        Disable shadow rays
    --verbose           Log scene and render diagnostics

Example:
    python -m examples.render_spheres --width 160 --height 120 --verbose
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

import numpy as np
import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a demo scene of spheres.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=320, help="Image width in pixels (default: 320)")
    parser.add_argument("--height", type=int, default=240, help="Image height in pixels (default: 240)")
    parser.add_argument("--output", type=str, default="spheres.npy", help="Output file path (default: spheres.npy)")
    parser.add_argument("--scene-json", type=str, default=None, help="Also write the scene as JSON")
    parser.add_argument("--no-shadows", action="store_true", help="Disable shadow rays")
    parser.add_argument("--verbose", action="store_true", help="Log scene and render diagnostics")
    return parser.parse_args()


def build_demo_scene(width: int, height: int):
    """Create the demo scene and return it."""
    # Lazy imports to allow Taichi initialization first
    from src.raycore.camera.pinhole import PinholeCamera
    from src.raycore.scene.manager import Scene

    scene = Scene()

    ground = scene.add_lambert_material((0.6, 0.6, 0.6))
    scene.add_sphere((0.0, -100.5, -5.0), 100.0, ground)

    for i, roughness in enumerate((0.1, 0.35, 0.6, 0.9)):
        scene.add_cook_torrance_sphere(
            center=(-2.4 + 1.6 * i, 0.0, -5.0),
            radius=0.5,
            base_color=(0.95, 0.65, 0.3),
            roughness=roughness,
            metallic=1.0,
        )
    scene.add_lambert_sphere((0.0, 0.3, -7.0), 0.8, (0.2, 0.3, 0.8))

    scene.add_point_light((2.0, 4.0, -2.0), (1.0, 0.95, 0.9), 400.0)
    scene.add_directional_light((-0.3, -1.0, -0.4), (0.4, 0.45, 0.5), 0.6)
    scene.add_area_light((-1.5, 3.0, -4.0), (0.3, -1.0, 0.0), 1.5, 1.0, (1.0, 1.0, 1.0), 40.0, samples_per_axis=4)

    scene.set_camera(
        PinholeCamera(eye=(0.0, 1.0, 1.0), target=(0.0, 0.0, -5.0), vfov=45.0).with_resolution(width, height)
    )
    return scene


def render_spheres(
    width: int = 320,
    height: int = 240,
    output_path: str = "spheres.npy",
    scene_json: str | None = None,
    shadows: bool = True,
    verbose: bool = False,
) -> Path:
    """Render the demo scene and save the radiance buffer.

    Returns:
        Path to the saved .npy file.
    """
    from src.raycore.core.integrator import render
    from src.raycore.core.options import RenderOptions

    print(f"Creating demo scene ({width}x{height})...")
    scene = build_demo_scene(width, height)
    print(f"  {scene}")

    if scene_json is not None:
        Path(scene_json).write_text(json.dumps(scene.to_dict(), indent=2))
        print(f"Scene written to: {scene_json}")

    start_time = time.time()
    result = render(scene, width, height, RenderOptions(verbose=verbose, shadows=shadows))
    elapsed = time.time() - start_time

    stats = result.statistics
    print(
        f"Rendered {stats.rays_cast} rays in {elapsed:.2f}s "
        f"({stats.primary_hits} hits, {stats.intersection_tests} intersection tests)"
    )

    output_file = Path(output_path)
    np.save(output_file, result.radiance)
    print(f"Saved to: {output_file.absolute()}")
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    ti.init(arch=ti.cpu)

    try:
        render_spheres(
            width=args.width,
            height=args.height,
            output_path=args.output,
            scene_json=args.scene_json,
            shadows=not args.no_shadows,
            verbose=args.verbose,
        )
        return 0
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
