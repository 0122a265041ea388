"""Metal (specular reflective) material implementation.

This module implements the metal BSDF, which models specular reflection with
optional roughness (fuzziness). Perfect metals (roughness=0) produce mirror-like
reflections, while rougher metals scatter reflected rays within a cone.

The reflection formula is:
    R = I - 2(I . N)N

where I is the incident direction and N is the surface normal.

For rough metals, the reflected direction is perturbed by a random offset scaled
by the roughness parameter, modeling microfacet scattering.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from wavetrace.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # state, direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, roughness, incident_dir, normal, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from wavetrace.core.ray import (
    random_in_unit_sphere,
    reflect,
)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    roughness: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Compute scattered ray direction for metal material.

    Reflects the incident ray about the surface normal, then perturbs the
    reflected direction by a random point in the unit sphere scaled by
    roughness. The ray is absorbed if the scattered direction ends up below
    the surface.

    A perfect mirror (roughness 0) still consumes the same random draws, so
    every path advances its stream identically regardless of material.

    Args:
        albedo: The reflective color (RGB, each component in [0, 1]).
        roughness: The surface roughness in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (should be normalized).
        normal: The surface normal (should be normalized).
        state: The sampler state.

    Returns:
        A tuple of (state, scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The reflected direction (normalized).
        - attenuation: The color attenuation (equals albedo for metals).
        - did_scatter: 1 if the ray scattered above surface, 0 if absorbed.
    """
    reflected = reflect(incident_direction, normal)

    new_state, fuzz = random_in_unit_sphere(state)
    scattered_direction = tm.normalize(reflected + roughness * fuzz)

    did_scatter = 1
    if tm.dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0
        scattered_direction = vec3(0.0, 0.0, 0.0)

    attenuation = albedo

    return new_state, scattered_direction, attenuation, did_scatter
