"""Lambertian (ideal diffuse) material implementation.

This module implements the Lambertian BRDF, which models ideal diffuse reflection
where incident light is scattered uniformly in all directions weighted by the
cosine of the angle from the surface normal.

The Lambertian BRDF is:
    f_r(wi, wo) = albedo / pi

The probability density function for cosine-weighted hemisphere sampling is:
    pdf(wi) = cos(theta) / pi

where theta is the angle between the sampled direction and the surface normal.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from wavetrace.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # state, direction, attenuation, pdf = scatter_lambertian(albedo, normal, state)
"""

import taichi as ti
import taichi.math as tm

from wavetrace.core.ray import (
    near_zero,
    sample_cosine_hemisphere,
)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, state: ti.u32):
    """Sample a scattered ray direction for Lambertian material.

    Uses cosine-weighted hemisphere sampling, so the BRDF, the cosine term
    and the PDF cancel and the attenuation is simply the albedo:
        (albedo / pi) * cos_theta / (cos_theta / pi) = albedo

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The surface normal at the hit point (should be normalized).
        state: The sampler state.

    Returns:
        A tuple of (state, scattered_direction, attenuation, pdf).
    """
    new_state, scattered_direction, pdf = sample_cosine_hemisphere(normal, state)

    # Degenerate sample (floating point)
    if near_zero(scattered_direction):
        scattered_direction = normal

    attenuation = albedo

    return new_state, tm.normalize(scattered_direction), attenuation, pdf
