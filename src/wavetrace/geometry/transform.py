"""Object transforms for scene primitives.

Host side, transforms are built with NumPy from translation, Euler rotation
(degrees) and scale, composed as T * Rx * Ry * Rz * S. Device side, the
helpers here move rays into a primitive's object space and hit points back
out, including the rigid motion offset used for motion blur.
"""

import math

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from .geom import Geom

vec3 = tm.vec3
vec4 = tm.vec4
mat4 = tm.mat4


def build_transform(
    translation: tuple[float, float, float],
    rotation: tuple[float, float, float],
    scale: tuple[float, float, float],
) -> npt.NDArray[np.float32]:
    """Build an object-to-world matrix.

    Args:
        translation: Translation (x, y, z).
        rotation: Rotation about the x, y and z axes in degrees.
        scale: Per-axis scale factors. Must be nonzero.

    Returns:
        A 4x4 float32 matrix T * Rx * Ry * Rz * S.

    Raises:
        ValueError: If any scale component is zero.
    """
    if any(s == 0.0 for s in scale):
        raise ValueError(f"Scale components must be nonzero, got {scale}")

    rx, ry, rz = (math.radians(a) for a in rotation)

    t = np.identity(4)
    t[:3, 3] = translation

    rot_x = np.identity(4)
    rot_x[1, 1], rot_x[1, 2] = math.cos(rx), -math.sin(rx)
    rot_x[2, 1], rot_x[2, 2] = math.sin(rx), math.cos(rx)

    rot_y = np.identity(4)
    rot_y[0, 0], rot_y[0, 2] = math.cos(ry), math.sin(ry)
    rot_y[2, 0], rot_y[2, 2] = -math.sin(ry), math.cos(ry)

    rot_z = np.identity(4)
    rot_z[0, 0], rot_z[0, 1] = math.cos(rz), -math.sin(rz)
    rot_z[1, 0], rot_z[1, 1] = math.sin(rz), math.cos(rz)

    s = np.diag([scale[0], scale[1], scale[2], 1.0])

    return (t @ rot_x @ rot_y @ rot_z @ s).astype(np.float32)


def transform_matrices(
    transform: npt.NDArray[np.floating],
) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.float32], npt.NDArray[np.float32]]:
    """Derive the matrices a Geom stores from its object-to-world matrix.

    Args:
        transform: A 4x4 object-to-world matrix.

    Returns:
        Tuple of (transform, inverse, inverse_transpose) as float32.
    """
    m = np.asarray(transform, dtype=np.float64)
    inverse = np.linalg.inv(m)
    return (
        m.astype(np.float32),
        inverse.astype(np.float32),
        inverse.T.astype(np.float32),
    )


@ti.func
def multiply_mv(m: mat4, v: vec3, w: ti.f32) -> vec3:
    """Multiply a 4x4 matrix by (v, w) and drop the fourth component.

    Use w = 1 for points and w = 0 for directions and normals.
    """
    r = m @ vec4(v.x, v.y, v.z, w)
    return vec3(r.x, r.y, r.z)


@ti.func
def motion_offset(geom: Geom, time: ti.f32) -> vec3:
    """Translation of a moving primitive at a shutter time, relative to time 0."""
    offset = vec3(0.0, 0.0, 0.0)
    if geom.moving == 1:
        offset = time * (geom.target - geom.translation)
    return offset


@ti.func
def to_object_space(geom: Geom, origin: vec3, direction: vec3, time: ti.f32):
    """Bring a world-space ray into a primitive's object space.

    The origin is first moved back by the primitive's motion offset, then
    both origin and direction go through the inverse transform. The returned
    direction is renormalized.

    Returns:
        A tuple (object_origin, object_direction).
    """
    ro = multiply_mv(geom.inverse_transform, origin - motion_offset(geom, time), 1.0)
    rd = tm.normalize(multiply_mv(geom.inverse_transform, direction, 0.0))
    return ro, rd


@ti.func
def to_world_point(geom: Geom, point: vec3, time: ti.f32) -> vec3:
    """Bring an object-space point back to world space at a shutter time."""
    return multiply_mv(geom.transform, point, 1.0) + motion_offset(geom, time)


@ti.func
def to_world_normal(geom: Geom, normal: vec3) -> vec3:
    """Bring an object-space normal to world space and renormalize it."""
    return tm.normalize(multiply_mv(geom.inverse_transpose, normal, 0.0))
