"""Axis-aligned box primitive using the slab method.

The untransformed box is the unit cube [-0.5, 0.5]^3. The same slab
interval routine backs the mesh bounding-box test.
"""

import taichi as ti
import taichi.math as tm

from wavetrace.core.ray import Ray

from .geom import HIT_BACKOFF, Geom, HitRecord, make_miss_hit
from .transform import to_object_space, to_world_normal, to_world_point

vec3 = tm.vec3

_FAR = 1e38


@ti.func
def slab_interval(ro: vec3, rd: vec3, box_min: vec3, box_max: vec3):
    """Clip a ray against the three slabs of an axis-aligned box.

    Entry distances are only accepted when positive, so an origin inside the
    box leaves tmin at -_FAR. A zero direction component constrains nothing
    when the origin lies within that slab and rejects the ray otherwise.

    Returns:
        A tuple (valid, tmin, tmax, entry_normal, exit_normal). valid is 0 if
        a parallel slab rejected the ray. The normals are the outward face
        normals of the entry and exit faces.
    """
    valid = 1
    tmin = -_FAR
    tmax = _FAR
    entry_normal = vec3(0.0, 0.0, 0.0)
    exit_normal = vec3(0.0, 0.0, 0.0)

    for axis in ti.static(range(3)):
        d = rd[axis]
        o = ro[axis]
        if d == 0.0:
            if o < box_min[axis] or o > box_max[axis]:
                valid = 0
        else:
            t1 = (box_min[axis] - o) / d
            t2 = (box_max[axis] - o) / d
            ta = tm.min(t1, t2)
            tb = tm.max(t1, t2)
            n = vec3(0.0, 0.0, 0.0)
            n[axis] = ti.select(t2 < t1, 1.0, -1.0)
            if ta > 0.0 and ta > tmin:
                tmin = ta
                entry_normal = n
            if tb < tmax:
                tmax = tb
                exit_normal = -n

    return valid, tmin, tmax, entry_normal, exit_normal


@ti.func
def hit_aabb(ro: vec3, rd: vec3, box_min: vec3, box_max: vec3) -> ti.i32:
    """Return 1 if the ray overlaps the box in front of its origin."""
    valid, tmin, tmax, _, _ = slab_interval(ro, rd, box_min, box_max)
    return valid == 1 and tmax >= tmin and tmax > 0.0


@ti.func
def hit_box(geom: Geom, ray: Ray) -> HitRecord:
    """Intersect a ray with a transformed, possibly moving unit cube.

    If the ray starts inside the box the exit face is reported.

    Args:
        geom: A Geom with kind BOX.
        ray: The world-space ray.

    Returns:
        A HitRecord whose t is the world-space distance from ray.origin to
        the hit point, or a miss record.
    """
    result = make_miss_hit()

    ro, rd = to_object_space(geom, ray.origin, ray.direction, ray.time)
    valid, tmin, tmax, entry_normal, exit_normal = slab_interval(
        ro, rd, vec3(-0.5, -0.5, -0.5), vec3(0.5, 0.5, 0.5)
    )

    if valid == 1 and tmax >= tmin and tmax > 0.0:
        t = tmin
        normal = entry_normal
        if tmin <= 0.0:
            t = tmax
            normal = exit_normal
        object_point = ro + (t - HIT_BACKOFF) * rd
        point = to_world_point(geom, object_point, ray.time)
        result.t = tm.length(ray.origin - point)
        result.point = point
        result.normal = to_world_normal(geom, normal)

    return result
