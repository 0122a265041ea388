"""Triangle mesh primitive.

A mesh Geom owns the triangle range [triangle_start, triangle_end) of the
scene's triangle field. Rays are tested in the mesh's object space: first
against its bounding box (when culling is enabled), then against every
triangle in the range with the Moller-Trumbore algorithm. The shading normal
is interpolated from the vertex normals with barycentric weights and flipped
to face the incoming ray.
"""

import taichi as ti
import taichi.math as tm

from wavetrace.core.ray import Ray

from .box import hit_aabb
from .geom import HIT_BACKOFF, Geom, HitRecord, make_miss_hit
from .transform import to_object_space, to_world_normal, to_world_point

vec3 = tm.vec3

# Determinant threshold below which a ray is parallel to a triangle
TRIANGLE_EPSILON = 1e-8

_FAR = 3.4e38


@ti.func
def intersect_triangle(ro: vec3, rd: vec3, p1: vec3, p2: vec3, p3: vec3):
    """Moller-Trumbore ray-triangle intersection.

    Args:
        ro: Ray origin.
        rd: Ray direction.
        p1, p2, p3: Triangle vertices.

    Returns:
        A tuple (hit, t, u, v). The hit point is
        (1 - u - v) * p1 + u * p2 + v * p3 = ro + t * rd.
        hit is 0 if the ray misses or is parallel to the triangle.
    """
    hit = 0
    t = 0.0
    u = 0.0
    v = 0.0

    edge1 = p2 - p1
    edge2 = p3 - p1
    p = tm.cross(rd, edge2)
    det = tm.dot(edge1, p)

    if ti.abs(det) > TRIANGLE_EPSILON:
        inv_det = 1.0 / det
        s = ro - p1
        u = tm.dot(s, p) * inv_det
        if u >= 0.0 and u <= 1.0:
            q = tm.cross(s, edge1)
            v = tm.dot(rd, q) * inv_det
            if v >= 0.0 and u + v <= 1.0:
                t = tm.dot(edge2, q) * inv_det
                hit = 1

    return hit, t, u, v


@ti.func
def hit_mesh(geom: Geom, ray: Ray, triangles: ti.template(), culling: ti.i32) -> HitRecord:
    """Intersect a ray with a transformed, possibly moving triangle mesh.

    Args:
        geom: A Geom with kind MESH.
        ray: The world-space ray.
        triangles: Field of Triangle records indexed by the Geom's range.
        culling: 1 to reject rays missing the mesh's bounding box before
            any triangle is tested.

    Returns:
        A HitRecord for the nearest triangle with positive t, or a miss
        record.
    """
    result = make_miss_hit()

    ro, rd = to_object_space(geom, ray.origin, ray.direction, ray.time)

    if culling == 0 or hit_aabb(ro, rd, geom.bbox_min, geom.bbox_max) == 1:
        t_best = _FAR
        best = -1
        best_u = 0.0
        best_v = 0.0
        for i in range(geom.triangle_start, geom.triangle_end):
            tri = triangles[i]
            hit, t, u, v = intersect_triangle(ro, rd, tri.p1, tri.p2, tri.p3)
            if hit == 1 and t > 0.0 and t < t_best:
                t_best = t
                best = i
                best_u = u
                best_v = v

        if best >= 0:
            tri = triangles[best]
            normal = tri.n1 * (1.0 - best_u - best_v) + tri.n2 * best_u + tri.n3 * best_v
            if tm.dot(normal, rd) > 0.0:
                normal = -normal
            object_point = ro + (t_best - HIT_BACKOFF) * rd
            point = to_world_point(geom, object_point, ray.time)
            result.t = tm.length(ray.origin - point)
            result.point = point
            result.normal = to_world_normal(geom, normal)

    return result
