"""Sphere primitive with robust ray-sphere intersection.

The untransformed sphere has radius 0.5 and is centered at the origin. Rays
are moved into object space with the primitive's inverse transform, the
quadratic is solved there with the robust formula from Ray Tracing Gems, and
the hit point and normal are carried back to world space.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from wavetrace.geometry.sphere import hit_sphere
    >>> # Use hit_sphere(geom, ray) within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from wavetrace.core.ray import Ray

from .geom import HIT_BACKOFF, Geom, HitRecord, make_miss_hit
from .transform import to_object_space, to_world_normal, to_world_point

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Radius of the untransformed sphere
SPHERE_RADIUS = 0.5


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 with the robust quadratic formula.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(geom: Geom, ray: Ray) -> HitRecord:
    """Intersect a ray with a transformed, possibly moving sphere.

    The nearer root is used when both roots are positive, otherwise the
    farther one, so rays starting inside the sphere hit its far side. The
    object-space hit point is pulled back by HIT_BACKOFF along the ray
    before it is transformed to world space.

    Args:
        geom: A Geom with kind SPHERE.
        ray: The world-space ray.

    Returns:
        A HitRecord whose t is the world-space distance from ray.origin to
        the hit point, or a miss record.
    """
    result = make_miss_hit()

    ro, rd = to_object_space(geom, ray.origin, ray.direction, ray.time)

    # rd is unit length, so a = 1
    h = tm.dot(rd, ro)
    c = tm.dot(ro, ro) - SPHERE_RADIUS * SPHERE_RADIUS
    discriminant = h * h - c

    if discriminant >= 0.0:
        t0, t1 = _solve_quadratic_robust(h, 1.0, c, ti.sqrt(discriminant))
        if t1 >= 0.0:
            t = t1
            if t0 > 0.0:
                t = t0
            object_point = ro + (t - HIT_BACKOFF) * rd
            point = to_world_point(geom, object_point, ray.time)
            result.t = tm.length(ray.origin - point)
            result.point = point
            result.normal = to_world_normal(geom, object_point)

    return result
