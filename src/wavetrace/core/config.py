"""Render configuration.

A RenderConfig is the single immutable set of feature toggles handed to a
render session. Every flag is evaluated at run time, so any combination can be
exercised against the same compiled kernels.

Example:
    >>> config = RenderConfig(antialiasing=False, cache_first_bounce=True)
    >>> config.primary_rays_deterministic
    True
    >>> config.with_options(sort_by_material=True).sort_by_material
    True
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class RenderConfig:
    """Feature toggles for the path tracing pipeline.

    Attributes:
        antialiasing: Jitter the primary ray inside its pixel each iteration.
        depth_of_field: Sample the camera lens disk and focus rays at the
            camera's focal distance.
        motion_blur: Give every primary ray a random shutter time so moving
            geometry is sampled along its path.
        cache_first_bounce: Reuse the depth-0 intersections computed on the
            first iteration. Only takes effect while primary rays are
            deterministic (see primary_rays_deterministic).
        sort_by_material: Reorder paths by material id before shading.
        compact_paths: Remove terminated paths from the active set after
            each bounce.
        ambient_light: Light escaping paths with the sky gradient instead of
            black.
        mesh_culling: Reject rays that miss a mesh's bounding box before
            testing its triangles.
    """

    antialiasing: bool = True
    depth_of_field: bool = False
    motion_blur: bool = False
    cache_first_bounce: bool = False
    sort_by_material: bool = False
    compact_paths: bool = True
    ambient_light: bool = True
    mesh_culling: bool = True

    @property
    def primary_rays_deterministic(self) -> bool:
        """True if every iteration generates identical primary rays."""
        return not (self.antialiasing or self.depth_of_field or self.motion_blur)

    @property
    def uses_first_bounce_cache(self) -> bool:
        """True if the depth-0 intersection cache is actually used."""
        return self.cache_first_bounce and self.primary_rays_deterministic

    def with_options(self, **changes: bool) -> "RenderConfig":
        """Return a copy of this config with some flags changed."""
        return replace(self, **changes)
