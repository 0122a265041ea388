"""Perspective camera with optional thin-lens depth of field.

This module generates the primary path segments of every iteration. The camera
supports:
- Look-at positioning (position, look_at, up)
- Vertical field of view specification
- Arbitrary resolutions (square pixels)
- Sub-pixel jitter for anti-aliasing
- Thin-lens depth of field
- Random shutter times for motion blur

The camera builds a basis (view, right, up) from the view parameters:
- view: points from the camera position toward look_at
- right: points right in the image plane
- up: points up in the image plane

Pixel (x, y) with y = 0 on the top row is traced along
    normalize(view + right * px * (x - width / 2) - up * py * (y - height / 2))
where (px, py) is the per-axis extent of one pixel on the unit-distance image
plane.

Example:
    >>> camera = Camera(
    ...     resolution=(64, 48),
    ...     position=(0.0, 0.0, 3.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     fovy=45.0,
    ... )
    >>> basis = compute_camera_basis(camera)
    >>> direction = basis.pixel_direction(32, 24)  # straight down the view axis
"""

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from wavetrace.core.ray import PathSegment, make_ray, random_in_unit_disk, vec3
from wavetrace.core.sampler import CAMERA_STREAM, next_float, next_float2, seed_sampler

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration for a perspective camera.

    Attributes:
        resolution: Image size in pixels (width, height).
        position: Camera position in world space (x, y, z).
        look_at: Point the camera is looking at in world space (x, y, z).
        up: Up direction vector for camera orientation (typically (0, 1, 0)).
        fovy: Vertical field of view in degrees.
        lens_radius: Radius of the thin lens. 0 is a pinhole.
        focal_distance: Distance along the view axis that is in focus.
    """

    resolution: tuple[int, int]
    position: tuple[float, float, float]
    look_at: tuple[float, float, float]
    up: tuple[float, float, float] = (0.0, 1.0, 0.0)
    fovy: float = 45.0
    lens_radius: float = 0.0
    focal_distance: float = 1.0

    @property
    def width(self) -> int:
        return self.resolution[0]

    @property
    def height(self) -> int:
        return self.resolution[1]


@dataclass(frozen=True)
class CameraBasis:
    """Derived camera frame used for ray generation.

    Attributes:
        position: Camera position.
        view: Unit vector toward look_at.
        right: Unit vector to the right in the image plane.
        up: Unit vector up in the image plane.
        pixel_length: Per-axis size (px, py) of one pixel on the image plane
            at unit distance.
        resolution: Image size in pixels (width, height).
    """

    position: npt.NDArray[np.float64]
    view: npt.NDArray[np.float64]
    right: npt.NDArray[np.float64]
    up: npt.NDArray[np.float64]
    pixel_length: tuple[float, float]
    resolution: tuple[int, int]

    def pixel_direction(self, x: float, y: float) -> npt.NDArray[np.float64]:
        """Compute the unjittered primary ray direction for pixel (x, y)."""
        width, height = self.resolution
        px, py = self.pixel_length
        d = (
            self.view
            + self.right * px * (x - width * 0.5)
            - self.up * py * (y - height * 0.5)
        )
        return d / np.linalg.norm(d)


def compute_camera_basis(camera: Camera) -> CameraBasis:
    """Build the camera frame and pixel extents.

    Args:
        camera: Camera configuration.

    Returns:
        The CameraBasis of the camera.

    Raises:
        ValueError: If the resolution is not positive, the camera looks at
            its own position, or the up vector is parallel to the view.
    """
    width, height = camera.resolution
    if width <= 0 or height <= 0:
        raise ValueError(f"Camera resolution must be positive, got {camera.resolution}")

    position = np.array(camera.position, dtype=np.float64)
    view = np.array(camera.look_at, dtype=np.float64) - position
    view_length = np.linalg.norm(view)
    if view_length == 0.0:
        raise ValueError("Camera look_at must differ from its position")
    view = view / view_length

    right = np.cross(view, np.array(camera.up, dtype=np.float64))
    right_length = np.linalg.norm(right)
    if right_length < 1e-12:
        raise ValueError(f"Camera up {camera.up} is parallel to the view direction")
    right = right / right_length

    up = np.cross(right, view)

    yscaled = math.tan(math.radians(camera.fovy) * 0.5)
    xscaled = yscaled * width / height
    pixel_length = (2.0 * xscaled / width, 2.0 * yscaled / height)

    return CameraBasis(
        position=position,
        view=view,
        right=right,
        up=up,
        pixel_length=pixel_length,
        resolution=(width, height),
    )


# =============================================================================
# Device-side Camera State
# =============================================================================


@ti.dataclass
class CameraData:
    """Camera frame as seen by the ray generation kernel."""

    position: vec3
    view: vec3
    right: vec3
    up: vec3
    pixel_length: tm.vec2
    width: ti.i32
    height: ti.i32
    lens_radius: ti.f32
    focal_distance: ti.f32


def upload_camera(camera_field, camera: Camera) -> CameraBasis:
    """Write a camera into a 0-D CameraData field.

    Args:
        camera_field: A CameraData struct field of shape ().
        camera: Camera configuration.

    Returns:
        The CameraBasis that was uploaded.
    """
    basis = compute_camera_basis(camera)
    camera_field.position[None] = basis.position.tolist()
    camera_field.view[None] = basis.view.tolist()
    camera_field.right[None] = basis.right.tolist()
    camera_field.up[None] = basis.up.tolist()
    camera_field.pixel_length[None] = list(basis.pixel_length)
    camera_field.width[None] = basis.resolution[0]
    camera_field.height[None] = basis.resolution[1]
    camera_field.lens_radius[None] = camera.lens_radius
    camera_field.focal_distance[None] = camera.focal_distance
    return basis


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def generate_camera_ray(
    cam: CameraData,
    x: ti.i32,
    y: ti.i32,
    iteration: ti.i32,
    index: ti.i32,
    max_depth: ti.i32,
    antialiasing: ti.i32,
    depth_of_field: ti.i32,
    motion_blur: ti.i32,
) -> PathSegment:
    """Generate the primary path segment for pixel (x, y).

    Camera samples come from the CAMERA_STREAM slot of the pixel's stream,
    and the same draws are consumed whether or not a feature is enabled.

    Args:
        cam: Device camera state.
        x: Pixel column, 0 on the left.
        y: Pixel row, 0 on the top.
        iteration: Iteration number, seeds the jitter, lens and time.
        index: Pixel index x + y * width.
        max_depth: Bounce budget of the new path.
        antialiasing: 1 to jitter the sample inside the pixel by [-0.5, 0.5).
        depth_of_field: 1 to sample the lens disk and focus at focal_distance.
        motion_blur: 1 to give the ray a random shutter time in [0, 1).

    Returns:
        A PathSegment with color (1, 1, 1) and max_depth bounces remaining.
    """
    state = seed_sampler(iteration, index, CAMERA_STREAM)
    s1, jitter_x, jitter_y = next_float2(state)
    s2, disk = random_in_unit_disk(s1)
    _, shutter = next_float(s2)

    fx = ti.cast(x, ti.f32)
    fy = ti.cast(y, ti.f32)
    if antialiasing == 1:
        fx += jitter_x - 0.5
        fy += jitter_y - 0.5

    direction = tm.normalize(
        cam.view
        + cam.right * cam.pixel_length.x * (fx - ti.cast(cam.width, ti.f32) * 0.5)
        - cam.up * cam.pixel_length.y * (fy - ti.cast(cam.height, ti.f32) * 0.5)
    )
    origin = cam.position

    if depth_of_field == 1 and cam.lens_radius > 0.0:
        focal_t = cam.focal_distance / tm.dot(direction, cam.view)
        focus = origin + focal_t * direction
        lens = cam.lens_radius * disk
        origin = cam.position + cam.right * lens.x + cam.up * lens.y
        direction = tm.normalize(focus - origin)

    time = 0.0
    if motion_blur == 1:
        time = shutter

    return PathSegment(
        ray=make_ray(origin, direction, time),
        color=vec3(1.0, 1.0, 1.0),
        pixel_index=index,
        remaining_bounces=max_depth,
    )
