"""Scene-level primitive intersection testing.

This module provides scene-level ray intersection testing over every
primitive kind (spheres, boxes, meshes) and returns the closest hit with
material information. It also uploads a built Scene into the Taichi struct
fields the render kernels read.

The scan is brute force: every Geom is tested and the smallest positive t
wins. Meshes are the only primitives with an acceleration structure, a
single object-space bounding box.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from wavetrace.scene.intersection import intersect_scene
    >>> # Use intersect_scene(ray, geoms, num_geoms, triangles, culling)
    >>> # within a Taichi kernel
"""

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from wavetrace.core.ray import Ray
from wavetrace.geometry.box import hit_box
from wavetrace.geometry.geom import MISS_T, Geom, GeomType, HitRecord, make_miss_hit
from wavetrace.geometry.mesh import hit_mesh
from wavetrace.geometry.sphere import hit_sphere

if TYPE_CHECKING:
    from wavetrace.scene.manager import Scene

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Material id reported for a miss
NO_MATERIAL = -1

_FAR = 3.4e38


@ti.dataclass
class ShadeableIntersection:
    """Nearest hit of a path's ray against the scene.

    Attributes:
        t: World-space distance to the hit, or -1 on a miss.
        point: World-space hit point. Only valid if t > 0.
        normal: World-space unit surface normal. Only valid if t > 0.
        material_id: Material of the hit primitive, or -1 on a miss.
    """

    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


@ti.func
def make_miss_intersection() -> ShadeableIntersection:
    """Create a ShadeableIntersection indicating no intersection."""
    return ShadeableIntersection(
        t=MISS_T,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=NO_MATERIAL,
    )


@ti.func
def intersect_geom(geom: Geom, ray: Ray, triangles: ti.template(), culling: ti.i32) -> HitRecord:
    """Dispatch a ray to the intersection test of one primitive."""
    hit = make_miss_hit()
    if geom.kind == GeomType.SPHERE:
        hit = hit_sphere(geom, ray)
    elif geom.kind == GeomType.BOX:
        hit = hit_box(geom, ray)
    elif geom.kind == GeomType.MESH:
        hit = hit_mesh(geom, ray, triangles, culling)
    return hit


@ti.func
def intersect_scene(
    ray: Ray,
    geoms: ti.template(),
    num_geoms: ti.i32,
    triangles: ti.template(),
    culling: ti.i32,
) -> ShadeableIntersection:
    """Find the closest intersection of a ray with all scene primitives.

    Args:
        ray: The world-space ray.
        geoms: Field of Geom records.
        num_geoms: Number of valid entries in geoms.
        triangles: Field of Triangle records referenced by mesh Geoms.
        culling: 1 to enable the mesh bounding-box pre-test.

    Returns:
        The ShadeableIntersection of the nearest hit with t > 0, or a miss.
    """
    result = make_miss_intersection()
    closest = _FAR

    for i in range(num_geoms):
        geom = geoms[i]
        hit = intersect_geom(geom, ray, triangles, culling)
        if hit.t > 0.0 and hit.t < closest:
            closest = hit.t
            result.t = hit.t
            result.point = hit.point
            result.normal = hit.normal
            result.material_id = geom.material_id

    return result


# =============================================================================
# Scene Upload (Python-side)
# =============================================================================


def _padded(values: npt.ArrayLike, size: int, dtype=np.float32) -> np.ndarray:
    """Copy values into a zero array whose first dimension is size."""
    array = np.asarray(values, dtype=dtype)
    out = np.zeros((size,) + array.shape[1:], dtype=dtype)
    out[: array.shape[0]] = array
    return out


def upload_scene(scene: "Scene", geoms, triangles, materials) -> None:
    """Write a built Scene into device struct fields.

    Fields may be larger than the scene (they are allocated with at least
    one entry); unused entries are zeroed.

    Args:
        scene: The Scene produced by SceneManager.build().
        geoms: Geom struct field with at least scene.num_geoms entries.
        triangles: Triangle struct field with at least scene.num_triangles
            entries.
        materials: Material struct field with at least scene.num_materials
            entries.
    """
    n = geoms.shape[0]
    records = scene.geoms
    if records:
        geoms.kind.from_numpy(_padded([int(g.kind) for g in records], n, np.int32))
        geoms.material_id.from_numpy(_padded([g.material_id for g in records], n, np.int32))
        geoms.transform.from_numpy(_padded([g.transform for g in records], n))
        geoms.inverse_transform.from_numpy(_padded([g.inverse_transform for g in records], n))
        geoms.inverse_transpose.from_numpy(_padded([g.inverse_transpose for g in records], n))
        geoms.translation.from_numpy(_padded([g.translation for g in records], n))
        geoms.target.from_numpy(_padded([g.target for g in records], n))
        geoms.moving.from_numpy(_padded([int(g.moving) for g in records], n, np.int32))
        geoms.triangle_start.from_numpy(_padded([g.triangle_start for g in records], n, np.int32))
        geoms.triangle_end.from_numpy(_padded([g.triangle_end for g in records], n, np.int32))
        geoms.bbox_min.from_numpy(_padded([g.bbox_min for g in records], n))
        geoms.bbox_max.from_numpy(_padded([g.bbox_max for g in records], n))

    if scene.num_triangles > 0:
        n = triangles.shape[0]
        # scene.triangles has shape (T, 6, 3): p1, p2, p3, n1, n2, n3
        for slot, name in enumerate(("p1", "p2", "p3", "n1", "n2", "n3")):
            getattr(triangles, name).from_numpy(_padded(scene.triangles[:, slot, :], n))

    n = materials.shape[0]
    mats = scene.materials
    if mats:
        materials.color.from_numpy(_padded([m.color for m in mats], n))
        materials.emittance.from_numpy(_padded([m.emittance for m in mats], n))
        materials.specular_color.from_numpy(_padded([m.specular_color for m in mats], n))
        materials.reflectivity.from_numpy(_padded([m.reflectivity for m in mats], n))
        materials.roughness.from_numpy(_padded([m.roughness for m in mats], n))
        materials.refractive.from_numpy(_padded([int(m.refractive) for m in mats], n, np.int32))
        materials.ior.from_numpy(_padded([m.ior for m in mats], n))
