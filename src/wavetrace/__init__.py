"""Wavefront path tracer built on Taichi.

This package renders static scenes with unidirectional Monte Carlo path
tracing. Each iteration runs a staged pipeline over flat Taichi fields:

- Ray generation from a pinhole or thin-lens camera
- Brute-force intersection against spheres, boxes and triangle meshes
- Material scattering with a deterministic per-path sampler
- Optional first-bounce caching, material sorting and path compaction
- Accumulation into a persistent image

Subpackages:
    core: Ray types, sampler, shading, compaction, accumulation and the session loop
    geometry: Sphere, box and mesh intersection plus transform utilities
    materials: BSDF models (Lambertian, metal, dielectric) and dispatch
    scene: Scene builder, device-side scene tables and sample scenes
    camera: Camera model and primary ray generation
    preview: Image export utilities
"""

__version__ = "0.1.0"
