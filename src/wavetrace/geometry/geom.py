"""Device-side geometry records.

Geometry is stored in Taichi struct fields of Geom and Triangle records. A
Geom is a tagged variant over sphere, box and mesh; every kind carries its
object-to-world transform, the inverse, and the inverse transpose used to
bring normals back to world space.

Untransformed primitives are:
    sphere: radius 0.5, centered at the origin
    box: the unit cube [-0.5, 0.5]^3
    mesh: triangles [triangle_start, triangle_end) in object space,
        enclosed by the object-space box [bbox_min, bbox_max]
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

# Type aliases for Taichi vector and matrix types
vec3 = tm.vec3
mat4 = tm.mat4

# Ray parameter reported for a miss
MISS_T = -1.0

# Distance a hit point is pulled back toward the ray origin
HIT_BACKOFF = 1e-4


class GeomType(IntEnum):
    """Primitive kinds stored in Geom.kind."""

    SPHERE = 0
    BOX = 1
    MESH = 2


@ti.dataclass
class Geom:
    """A transformed scene primitive.

    Attributes:
        kind: The GeomType of the primitive.
        material_id: Index into the material table.
        transform: Object-to-world matrix.
        inverse_transform: World-to-object matrix.
        inverse_transpose: Transpose of inverse_transform, for normals.
        translation: Translation at shutter time 0.
        target: Translation at shutter time 1 (moving geometry only).
        moving: 1 if the primitive moves from translation to target.
        triangle_start: First triangle of a mesh.
        triangle_end: One past the last triangle of a mesh.
        bbox_min: Object-space minimum corner of a mesh's bounding box.
        bbox_max: Object-space maximum corner of a mesh's bounding box.
    """

    kind: ti.i32
    material_id: ti.i32
    transform: mat4
    inverse_transform: mat4
    inverse_transpose: mat4
    translation: vec3
    target: vec3
    moving: ti.i32
    triangle_start: ti.i32
    triangle_end: ti.i32
    bbox_min: vec3
    bbox_max: vec3


@ti.dataclass
class Triangle:
    """A mesh triangle with per-vertex shading normals.

    Attributes:
        p1, p2, p3: Vertex positions in the mesh's object space.
        n1, n2, n3: Vertex normals matching p1, p2, p3.
    """

    p1: vec3
    p2: vec3
    p3: vec3
    n1: vec3
    n2: vec3
    n3: vec3


@ti.dataclass
class HitRecord:
    """Result of a single primitive intersection test.

    Attributes:
        t: World-space distance from the ray origin to the hit point,
            or MISS_T if the primitive was not hit.
        point: World-space hit point. Only valid if t > 0.
        normal: World-space unit normal. Only valid if t > 0.
    """

    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def make_miss_hit() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(t=MISS_T, point=vec3(0.0, 0.0, 0.0), normal=vec3(0.0, 0.0, 0.0))
