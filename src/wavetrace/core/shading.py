"""Shading stage of the wavefront pipeline.

Each active path is shaded against the intersection found for it in the
current bounce:

    miss         -> color *= sky(direction) (or 0 without ambient light),
                    remaining = 0
    light hit    -> color *= material.color * emittance,
                    remaining = PATH_TERMINATED
    surface hit  -> the BSDF samples a new direction and weight, the ray is
                    re-spawned off the surface and remaining decreases by one;
                    a path whose budget runs out escapes to the sky

The per-path random stream is seeded from (iteration, pixel_index, depth), so
shading does not depend on the order in which paths are stored.
"""

import taichi as ti
import taichi.math as tm

from wavetrace.core.ray import PATH_TERMINATED, PathSegment, make_ray, offset_ray_origin
from wavetrace.core.sampler import seed_sampler
from wavetrace.materials.bsdf import Material, scatter_ray
from wavetrace.scene.intersection import ShadeableIntersection

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Sky Model
# =============================================================================

# Sky gradient endpoints
SKY_HORIZON = vec3(1.0, 1.0, 1.0)
SKY_ZENITH = vec3(0.5, 0.7, 1.0)


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Ambient sky radiance seen along a unit direction.

    Blends linearly from SKY_HORIZON (looking straight down) to SKY_ZENITH
    (looking straight up).
    """
    t = 0.5 * (direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON + t * SKY_ZENITH


@ti.func
def escape_color(direction: vec3, ambient: ti.i32) -> vec3:
    """Radiance picked up by a path leaving the scene."""
    color = vec3(0.0, 0.0, 0.0)
    if ambient == 1:
        color = sky_color(direction)
    return color


# =============================================================================
# Path Shading
# =============================================================================


@ti.func
def shade_path(
    path: PathSegment,
    hit: ShadeableIntersection,
    material: Material,
    iteration: ti.i32,
    depth: ti.i32,
    ambient: ti.i32,
) -> PathSegment:
    """Shade one active path at its current intersection.

    Args:
        path: An active path (remaining_bounces > 0).
        hit: The path's intersection for this bounce.
        material: Material of the hit. Ignored on a miss.
        iteration: Iteration number, seeds the scatter stream.
        depth: Bounce depth, seeds the scatter stream.
        ambient: 1 to light escaping paths with the sky.

    Returns:
        The updated path.
    """
    result = path

    if hit.t <= 0.0:
        result.color = path.color * escape_color(path.ray.direction, ambient)
        result.remaining_bounces = 0
    elif material.emittance > 0.0:
        result.color = path.color * material.color * material.emittance
        result.remaining_bounces = PATH_TERMINATED
    else:
        state = seed_sampler(iteration, path.pixel_index, depth)
        _, direction, weight, did_scatter = scatter_ray(
            material, path.ray.direction, hit.normal, state
        )
        if did_scatter == 0:
            result.color = vec3(0.0, 0.0, 0.0)
            result.remaining_bounces = 0
        else:
            origin = offset_ray_origin(hit.point, hit.normal, direction)
            result.ray = make_ray(origin, direction, path.ray.time)
            result.color = path.color * weight
            result.remaining_bounces = path.remaining_bounces - 1
            if result.remaining_bounces == 0:
                result.color = result.color * escape_color(direction, ambient)

    return result


@ti.kernel
def shade_paths(
    paths: ti.template(),
    intersections: ti.template(),
    materials: ti.template(),
    num_paths: ti.i32,
    iteration: ti.i32,
    depth: ti.i32,
    ambient: ti.i32,
):
    """Shade every active path in paths[0:num_paths] in place.

    Paths that are already terminated are left untouched.
    """
    for i in range(num_paths):
        path = paths[i]
        if path.remaining_bounces > 0:
            hit = intersections[i]
            material = materials[ti.max(hit.material_id, 0)]
            paths[i] = shade_path(path, hit, material, iteration, depth, ambient)
