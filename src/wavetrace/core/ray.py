"""Ray and path segment data structures plus vector utilities.

This module provides the Ray and PathSegment dataclasses that flow through the
wavefront pipeline, and the vector and sampling helpers used by the camera and
the materials. All helpers are Taichi functions for use inside kernels.

Sampling helpers never call ti.random(); they take a sampler state from
wavetrace.core.sampler and return the advanced state with their result, so
each path's randomness stays a pure function of its seed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction, time=0.0)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from wavetrace.core.sampler import next_float, next_float2

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Remaining-bounce value for paths that reached a light
PATH_TERMINATED = -1

# Offset applied to scattered ray origins
RAY_EPSILON = 1e-3


@ti.dataclass
class Ray:
    """A ray with an origin point, a unit direction and a sample time.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The unit direction of the ray (vec3).
        time: Shutter time in [0, 1) used to place moving geometry.
            Zero when motion blur is disabled.
    """

    origin: vec3
    direction: vec3
    time: ti.f32


@ti.dataclass
class PathSegment:
    """One light-transport path tracked through the bounce loop.

    Attributes:
        ray: The ray for the next intersection query.
        color: Multiplicative throughput, starts at (1, 1, 1).
        pixel_index: Index of the pixel this path contributes to.
        remaining_bounces: Bounces left. The path is active while this is
            positive; PATH_TERMINATED marks a path that hit a light.
    """

    ray: Ray
    color: vec3
    pixel_index: ti.i32
    remaining_bounces: ti.i32


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3, time: ti.f32) -> Ray:
    """Create a ray from origin, direction and sample time.

    Args:
        origin: The starting point of the ray.
        direction: The direction vector (should typically be normalized).
        time: The shutter time of the ray.

    Returns:
        A new Ray instance.
    """
    return Ray(origin=origin, direction=direction, time=time)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length."""
    return tm.normalize(v)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product of two vectors."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Refract an incident vector through a surface.

    Computes the refracted direction using Snell's law. If total internal
    reflection occurs, returns a zero vector.

    Args:
        incident: The incoming direction vector (should be normalized).
        normal: The surface normal facing the incident side (normalized).
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction vector, or zero vector on total internal
        reflection.
    """
    cos_i = -tm.dot(incident, normal)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    result = vec3(0.0, 0.0, 0.0)
    if sin2_t <= 1.0:
        cos_t = ti.sqrt(1.0 - sin2_t)
        result = eta * incident + (eta * cos_i - cos_t) * normal
    return result


@ti.func
def schlick_fresnel(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if all components of v are near zero, 0 otherwise."""
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def offset_ray_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Offset a new ray origin off the surface it leaves.

    Pushes the point along the normal on the side the new ray travels
    (above the surface for reflection, below for refraction).

    Args:
        point: The intersection point.
        normal: The surface normal.
        direction: The scattered ray direction.

    Returns:
        The offset origin point.
    """
    offset_dir = normal
    if tm.dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + RAY_EPSILON * offset_dir


# =============================================================================
# Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_unit_vector(state: ti.u32):
    """Sample a direction uniformly on the unit sphere.

    Args:
        state: The sampler state.

    Returns:
        A tuple (new_state, direction).
    """
    new_state, u1, u2 = next_float2(state)
    z = 1.0 - 2.0 * u1
    r = ti.sqrt(tm.max(0.0, 1.0 - z * z))
    phi = 2.0 * tm.pi * u2
    return new_state, vec3(r * ti.cos(phi), r * ti.sin(phi), z)


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Sample a point uniformly inside the unit sphere.

    Returns:
        A tuple (new_state, point) with length(point) <= 1.
    """
    s1, direction = random_unit_vector(state)
    s2, u = next_float(s1)
    radius = u ** (1.0 / 3.0)
    return s2, radius * direction


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Sample a point uniformly inside the unit disk in the xy-plane.

    Used for thin-lens depth of field.

    Returns:
        A tuple (new_state, point) with point = (x, y, 0), x^2 + y^2 <= 1.
    """
    new_state, u1, u2 = next_float2(state)
    r = ti.sqrt(u1)
    theta = 2.0 * tm.pi * u2
    return new_state, vec3(r * ti.cos(theta), r * ti.sin(theta), 0.0)


@ti.func
def random_cosine_direction(state: ti.u32):
    """Sample a cosine-weighted direction in the local z-up frame.

    The distribution has PDF = cos(theta) / pi.

    Returns:
        A tuple (new_state, direction).
    """
    new_state, r1, r2 = next_float2(state)
    phi = 2.0 * tm.pi * r1
    sqrt_r2 = ti.sqrt(r2)
    x = ti.cos(phi) * sqrt_r2
    y = ti.sin(phi) * sqrt_r2
    z = ti.sqrt(tm.max(0.0, 1.0 - r2))
    return new_state, vec3(x, y, z)


@ti.func
def build_onb_from_normal(normal: vec3):
    """Build an orthonormal basis from a normal vector.

    Args:
        normal: The surface normal (should be normalized).

    Returns:
        A tuple (tangent, bitangent, normal) forming an orthonormal basis.
    """
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = normalize(cross(a, normal))
    bitangent = cross(normal, tangent)
    return tangent, bitangent, normal


@ti.func
def local_to_world(local_dir: vec3, tangent: vec3, bitangent: vec3, normal: vec3) -> vec3:
    """Transform a direction from a local z-up frame to world coordinates."""
    return local_dir.x * tangent + local_dir.y * bitangent + local_dir.z * normal


@ti.func
def sample_cosine_hemisphere(normal: vec3, state: ti.u32):
    """Cosine-weighted hemisphere sampling for diffuse surfaces.

    Args:
        normal: The surface normal defining the hemisphere orientation.
        state: The sampler state.

    Returns:
        A tuple (new_state, direction, pdf) where pdf = cos(theta) / pi.
    """
    new_state, local_dir = random_cosine_direction(state)
    tangent, bitangent, n = build_onb_from_normal(normal)
    world_dir = local_to_world(local_dir, tangent, bitangent, n)
    pdf = tm.dot(world_dir, normal) / tm.pi
    return new_state, world_dir, pdf
