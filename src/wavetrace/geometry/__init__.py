"""Geometry primitives: records, transforms and ray intersection tests."""

from .box import hit_aabb, hit_box, slab_interval
from .geom import (
    HIT_BACKOFF,
    MISS_T,
    Geom,
    GeomType,
    HitRecord,
    Triangle,
    make_miss_hit,
)
from .mesh import hit_mesh, intersect_triangle
from .sphere import SPHERE_RADIUS, hit_sphere
from .transform import (
    build_transform,
    motion_offset,
    multiply_mv,
    to_object_space,
    to_world_normal,
    to_world_point,
    transform_matrices,
)

__all__ = [
    "HIT_BACKOFF",
    "MISS_T",
    "SPHERE_RADIUS",
    "Geom",
    "GeomType",
    "HitRecord",
    "Triangle",
    "build_transform",
    "hit_aabb",
    "hit_box",
    "hit_mesh",
    "hit_sphere",
    "intersect_triangle",
    "make_miss_hit",
    "motion_offset",
    "multiply_mv",
    "slab_interval",
    "to_object_space",
    "to_world_normal",
    "to_world_point",
    "transform_matrices",
]
