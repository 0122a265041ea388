"""Materials module: BSDF lobes and the per-bounce scatter dispatch.

Components:
    lambertian: Ideal diffuse reflection with cosine-weighted sampling
    metal: Specular reflection fuzzed by roughness
    dielectric: Fresnel-weighted reflection and refraction
    bsdf: Material record and scatter_ray, which picks a lobe per bounce

Every sampling function takes a sampler state and returns the advanced state
first, so material evaluation stays deterministic per path.
"""

from .bsdf import Material, scatter_ray
from .dielectric import refraction_ratio, scatter_dielectric, will_reflect
from .lambertian import scatter_lambertian
from .metal import scatter_metal

__all__ = [
    "Material",
    "scatter_ray",
    "scatter_lambertian",
    "scatter_metal",
    "scatter_dielectric",
    "refraction_ratio",
    "will_reflect",
]
