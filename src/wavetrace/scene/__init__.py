"""Scene module for scene construction and ray-scene queries.

This module handles scene representation and ray-scene queries:

Components:
    manager: SceneManager builder producing an immutable Scene
    intersection: Nearest-hit scan over all primitives and scene upload
    cornell_box: The Cornell box sample scene

Scene data is organized for Taichi kernels:
    - Geom, Triangle and Material struct fields
    - A single material_id space shared by every primitive kind
    - Mesh triangles stored contiguously, one range per mesh
"""

from .cornell_box import (
    BOX_SIZE,
    CornellBoxParams,
    create_cornell_box_scene,
)
from .intersection import (
    NO_MATERIAL,
    ShadeableIntersection,
    intersect_geom,
    intersect_scene,
    make_miss_intersection,
    upload_scene,
)
from .manager import (
    DEFAULT_MAX_DEPTH,
    GeomInfo,
    MaterialInfo,
    Scene,
    SceneManager,
)

__all__ = [
    "BOX_SIZE",
    "CornellBoxParams",
    "create_cornell_box_scene",
    "NO_MATERIAL",
    "ShadeableIntersection",
    "intersect_geom",
    "intersect_scene",
    "make_miss_intersection",
    "upload_scene",
    "DEFAULT_MAX_DEPTH",
    "GeomInfo",
    "MaterialInfo",
    "Scene",
    "SceneManager",
]
