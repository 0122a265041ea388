"""Camera module for primary ray generation.

Components:
    perspective: Look-at perspective camera with thin-lens depth of field,
        sub-pixel jitter and shutter-time sampling
"""

from .perspective import (
    Camera,
    CameraBasis,
    CameraData,
    compute_camera_basis,
    generate_camera_ray,
    upload_camera,
)

__all__ = [
    "Camera",
    "CameraBasis",
    "CameraData",
    "compute_camera_basis",
    "generate_camera_ray",
    "upload_camera",
]
