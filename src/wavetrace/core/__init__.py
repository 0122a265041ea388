"""Core rendering module.

This module contains the fundamental building blocks of the wavefront path
tracer:

Components:
    ray: Ray and PathSegment structures plus vector and sampling helpers
    sampler: Hash-seeded deterministic random streams
    config: RenderConfig feature toggles
    errors: Exception types raised by the render session
    shading: Per-path shading stage and the sky model
    compaction: Material sort gather and active-path compaction
    accumulator: Gather into the accumulation image and display conversion
    session: RenderSession, which owns device buffers and runs iterations
    progressive: ProgressiveRenderer driving a session

All compute-intensive operations use Taichi kernels.
"""

from .config import RenderConfig
from .errors import RenderError, RenderStageError, SessionStateError
from .ray import (
    PATH_TERMINATED,
    RAY_EPSILON,
    PathSegment,
    Ray,
    build_onb_from_normal,
    cross,
    local_to_world,
    make_ray,
    near_zero,
    normalize,
    offset_ray_origin,
    random_cosine_direction,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    sample_cosine_hemisphere,
    schlick_fresnel,
    vec3,
)
from .sampler import CAMERA_STREAM, next_float, next_float2, seed_sampler, wang_hash

# Note: shading, compaction, accumulator, session and progressive are NOT
# imported here to avoid circular imports with the geometry and scene packages.
# Import them directly, e.g.:
#   from wavetrace.core.session import RenderSession

__all__ = [
    "RenderConfig",
    "RenderError",
    "RenderStageError",
    "SessionStateError",
    "PATH_TERMINATED",
    "RAY_EPSILON",
    "PathSegment",
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "normalize",
    "cross",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
    "offset_ray_origin",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "random_cosine_direction",
    "build_onb_from_normal",
    "local_to_world",
    "sample_cosine_hemisphere",
    "CAMERA_STREAM",
    "seed_sampler",
    "next_float",
    "next_float2",
    "wang_hash",
]
