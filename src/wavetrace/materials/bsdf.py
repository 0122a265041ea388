"""Material record and BSDF dispatch.

A Material carries a diffuse color and an emittance plus the parameters of
the specular lobes. scatter_ray picks one lobe per bounce:

    refractive == 1           -> dielectric, weighted by specular_color
    u < reflectivity          -> metal fuzzed by roughness, weighted by
                                 specular_color
    otherwise                 -> Lambertian, weighted by color

Emissive materials (emittance > 0) never reach scatter_ray; the shading stage
terminates paths that hit them.
"""

import taichi as ti
import taichi.math as tm

from wavetrace.core.sampler import next_float

from .dielectric import scatter_dielectric
from .lambertian import scatter_lambertian
from .metal import scatter_metal

vec3 = tm.vec3


@ti.dataclass
class Material:
    """Surface material.

    Attributes:
        color: Diffuse albedo, also the emitted color of lights.
        emittance: Emitted radiance scale. Greater than 0 marks a light.
        specular_color: Tint of the metal and dielectric lobes.
        reflectivity: Probability of taking the metal lobe, in [0, 1].
        roughness: Fuzz radius of the metal lobe, in [0, 1].
        refractive: 1 for a dielectric, 0 otherwise.
        ior: Index of refraction of a dielectric.
    """

    color: vec3
    emittance: ti.f32
    specular_color: vec3
    reflectivity: ti.f32
    roughness: ti.f32
    refractive: ti.i32
    ior: ti.f32


@ti.func
def scatter_ray(material: Material, incident_direction: vec3, normal: vec3, state: ti.u32):
    """Importance-sample the next direction of a path at a surface.

    The geometric normal may face either side of the surface; it is flipped
    toward the incident ray first, and front_face records whether it was.

    Args:
        material: The surface material.
        incident_direction: The incoming ray direction (normalized).
        normal: The surface normal from the intersection (normalized).
        state: The sampler state.

    Returns:
        A tuple of (state, direction, weight, did_scatter). weight multiplies
        the path throughput. did_scatter is 0 when a rough metal sends the
        ray below the surface, in which case the path is absorbed.
    """
    front_face = 1
    facing_normal = normal
    if tm.dot(incident_direction, normal) > 0.0:
        front_face = 0
        facing_normal = -normal

    new_state, lobe = next_float(state)

    direction = vec3(0.0, 0.0, 0.0)
    weight = vec3(0.0, 0.0, 0.0)
    did_scatter = 1

    if material.refractive == 1:
        s, d, attenuation = scatter_dielectric(
            material.ior, incident_direction, facing_normal, front_face, new_state
        )
        new_state = s
        direction = d
        weight = material.specular_color * attenuation
    elif lobe < material.reflectivity:
        s, d, attenuation, scattered = scatter_metal(
            material.specular_color, material.roughness, incident_direction, facing_normal, new_state
        )
        new_state = s
        direction = d
        weight = attenuation
        did_scatter = scattered
    else:
        s, d, attenuation, pdf = scatter_lambertian(material.color, facing_normal, new_state)
        new_state = s
        direction = d
        weight = attenuation

    return new_state, direction, weight, did_scatter
