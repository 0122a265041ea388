"""Dielectric (glass/water) material implementation.

This module implements the dielectric BSDF, which models transparent materials
like glass and water with refraction and Fresnel reflectance.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when sin(theta_t) > 1

The material randomly chooses between reflection and refraction based on
the Fresnel reflectance probability, which increases at grazing angles.
"""

import taichi as ti
import taichi.math as tm

from wavetrace.core.ray import (
    reflect,
    refract,
    schlick_fresnel,
)
from wavetrace.core.sampler import next_float

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio n_incident / n_transmitted for a ray entering or leaving."""
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def will_reflect(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Determine if total internal reflection will occur.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (should be normalized).
        normal: The surface normal facing the incident ray (normalized).
        front_face: 1 if ray is hitting the outside of the surface,
            0 if ray is inside the material hitting from within.

    Returns:
        1 if total internal reflection will occur, 0 otherwise.
    """
    ratio = refraction_ratio(ior, front_face)
    cos_theta = tm.min(-tm.dot(incident_direction, normal), 1.0)
    sin_theta = tm.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))
    return ti.select(ratio * sin_theta > 1.0, 1, 0)


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Compute scattered ray direction for dielectric material.

    Dielectrics (glass, water, etc.) both reflect and refract light.
    The probability of reflection vs refraction is determined by the
    Fresnel equations (using Schlick's approximation).

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (should be normalized).
        normal: The surface normal (should be normalized, pointing toward
            the incident ray).
        front_face: 1 if ray is hitting the outside of the surface,
            0 if ray is inside the material hitting from within.
        state: The sampler state.

    Returns:
        A tuple of (state, scattered_direction, attenuation) where
        attenuation is white (clear glass). Dielectrics always scatter.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    ratio = refraction_ratio(ior, front_face)
    cos_theta = tm.min(-tm.dot(incident_direction, normal), 1.0)
    reflectance = schlick_fresnel(cos_theta, ratio)

    # One draw per call, reflected or refracted
    new_state, u = next_float(state)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if will_reflect(ior, incident_direction, normal, front_face) == 1 or u < reflectance:
        scattered_direction = reflect(incident_direction, normal)
    else:
        scattered_direction = refract(incident_direction, normal, ratio)

    return new_state, tm.normalize(scattered_direction), attenuation
