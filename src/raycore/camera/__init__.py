"""Camera module for view and ray generation.

Components:
    pinhole: Pinhole (perspective) camera model

Ray generation maps pixel centers to normalized device offsets:
    x in (-1, 1): left to right across the image
    y in (-1, 1): bottom to top across the image (row 0 is the top row)
"""

from .pinhole import (
    CameraBasis,
    PinholeCamera,
    aspect_from_resolution,
    clamp_fov,
    compute_camera_basis,
    get_camera_basis,
    has_finite_vectors,
    get_camera_info,
    get_camera_origin,
    get_ray,
    horizontal_fov,
    setup_camera,
    validate_camera,
)

__all__ = [
    "PinholeCamera",
    "CameraBasis",
    "clamp_fov",
    "aspect_from_resolution",
    "horizontal_fov",
    "has_finite_vectors",
    "validate_camera",
    "compute_camera_basis",
    "setup_camera",
    "get_ray",
    "get_camera_origin",
    "get_camera_basis",
    "get_camera_info",
]
