"""Scene builder for materials, primitives and the camera.

This module provides a high-level scene construction API. A SceneManager
collects materials, transformed primitives (spheres, boxes, triangle meshes)
and the camera, validates them as they are added, and builds an immutable
Scene that a RenderSession uploads to the device.

The SceneManager maintains:
- A material_id space shared by every primitive kind
- Object-to-world transforms composed as T * Rx * Ry * Rz * S
- Optional motion targets for motion blur
- Mesh triangles baked in object space with their bounding box

Example:
    >>> from wavetrace.camera import Camera
    >>> from wavetrace.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> light = scene.add_light_material(color=(1.0, 1.0, 1.0), emittance=5.0)
    >>> red = scene.add_diffuse_material(color=(0.8, 0.1, 0.1))
    >>> scene.add_sphere(center=(0.0, 0.0, 0.0), radius=1.0, material_id=red)
    0
    >>> scene.set_camera(Camera((64, 64), (0.0, 0.0, 5.0), (0.0, 0.0, 0.0)))
    >>> built = scene.build()
"""

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from wavetrace.camera.perspective import Camera, compute_camera_basis
from wavetrace.geometry.geom import GeomType
from wavetrace.geometry.transform import build_transform, transform_matrices

# Default bounce budget of a scene
DEFAULT_MAX_DEPTH = 8

Vec3 = tuple[float, float, float]


@dataclass(frozen=True)
class MaterialInfo:
    """Host-side material record.

    Attributes:
        color: Diffuse albedo, also the emitted color of lights.
        emittance: Emitted radiance scale. Greater than 0 marks a light.
        specular_color: Tint of the metal and dielectric lobes.
        reflectivity: Probability of taking the metal lobe.
        roughness: Fuzz radius of the metal lobe.
        refractive: True for a dielectric.
        ior: Index of refraction of a dielectric.
    """

    color: Vec3
    emittance: float = 0.0
    specular_color: Vec3 = (1.0, 1.0, 1.0)
    reflectivity: float = 0.0
    roughness: float = 0.0
    refractive: bool = False
    ior: float = 1.5

    @property
    def is_emissive(self) -> bool:
        return self.emittance > 0.0


@dataclass(frozen=True)
class GeomInfo:
    """Host-side primitive record, mirroring the device Geom struct."""

    kind: GeomType
    material_id: int
    transform: npt.NDArray[np.float32]
    inverse_transform: npt.NDArray[np.float32]
    inverse_transpose: npt.NDArray[np.float32]
    translation: Vec3
    target: Vec3
    moving: bool
    triangle_start: int = 0
    triangle_end: int = 0
    bbox_min: Vec3 = (0.0, 0.0, 0.0)
    bbox_max: Vec3 = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Scene:
    """An immutable, validated scene ready for upload.

    Attributes:
        materials: Material records indexed by material_id.
        geoms: Primitive records in scan order.
        triangles: float32 array of shape (T, 6, 3) holding p1, p2, p3,
            n1, n2, n3 of every mesh triangle in object space.
        camera: The scene camera.
        max_depth: Bounce budget of every path.
    """

    materials: tuple[MaterialInfo, ...]
    geoms: tuple[GeomInfo, ...]
    triangles: npt.NDArray[np.float32]
    camera: Camera
    max_depth: int = DEFAULT_MAX_DEPTH

    @property
    def num_materials(self) -> int:
        return len(self.materials)

    @property
    def num_geoms(self) -> int:
        return len(self.geoms)

    @property
    def num_triangles(self) -> int:
        return int(self.triangles.shape[0])

    @property
    def resolution(self) -> tuple[int, int]:
        return self.camera.resolution

    @property
    def num_pixels(self) -> int:
        width, height = self.camera.resolution
        return width * height


def _check_unit_color(name: str, color: Vec3) -> None:
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(f"{name} component {i} = {component} is outside [0, 1]")


def _check_unit_interval(name: str, value: float) -> None:
    if value < 0.0 or value > 1.0:
        raise ValueError(f"{name} = {value} is outside [0, 1]")


class SceneManager:
    """Builder for Scene instances.

    Materials must be added before the primitives that use them. Every
    add_* method validates its arguments and raises ValueError on bad input.

    Attributes:
        materials: Materials added so far, indexed by material_id.
        geoms: Primitives added so far.

    Example:
        >>> scene = SceneManager()
        >>> white = scene.add_diffuse_material(color=(0.75, 0.75, 0.75))
        >>> gold = scene.add_metal_material(color=(0.8, 0.6, 0.2), roughness=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_box(center=(0, -1, 0), size=(4, 0.1, 4), material_id=white)
        0
        >>> scene.add_sphere((-1, 0, 0), 0.5, gold)
        1
        >>> scene.add_sphere((1, 0, 0), 0.5, glass)
        2
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.geoms: list[GeomInfo] = []
        self._triangles: list[npt.NDArray[np.float32]] = []
        self._num_triangles = 0
        self._camera: Camera | None = None
        self._max_depth = DEFAULT_MAX_DEPTH

    def clear(self) -> None:
        """Remove every material, primitive and the camera."""
        self.materials.clear()
        self.geoms.clear()
        self._triangles.clear()
        self._num_triangles = 0
        self._camera = None
        self._max_depth = DEFAULT_MAX_DEPTH

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(self, material: MaterialInfo) -> int:
        """Add a material record.

        Args:
            material: The material to add.

        Returns:
            The material_id of the new material.

        Raises:
            ValueError: If a color is outside [0, 1], emittance is negative,
                reflectivity or roughness is outside [0, 1], or a refractive
                material has an IOR below 1.
        """
        _check_unit_color("Color", material.color)
        _check_unit_color("Specular color", material.specular_color)
        if material.emittance < 0.0:
            raise ValueError(f"Emittance = {material.emittance} must not be negative")
        _check_unit_interval("Reflectivity", material.reflectivity)
        _check_unit_interval("Roughness", material.roughness)
        if material.refractive and material.ior < 1.0:
            raise ValueError(
                f"Index of refraction = {material.ior} is less than 1.0. "
                "IOR must be >= 1.0 for physically meaningful materials."
            )

        self.materials.append(material)
        return len(self.materials) - 1

    def add_diffuse_material(self, color: Vec3) -> int:
        """Add a Lambertian material with the given albedo."""
        return self.add_material(MaterialInfo(color=color))

    def add_light_material(self, color: Vec3, emittance: float) -> int:
        """Add an emissive material.

        Raises:
            ValueError: If emittance is not positive.
        """
        if emittance <= 0.0:
            raise ValueError(f"Light emittance = {emittance} must be positive")
        return self.add_material(MaterialInfo(color=color, emittance=emittance))

    def add_metal_material(self, color: Vec3, roughness: float = 0.0) -> int:
        """Add a fully reflective metal tinted by color."""
        return self.add_material(
            MaterialInfo(
                color=color,
                specular_color=color,
                reflectivity=1.0,
                roughness=roughness,
            )
        )

    def add_dielectric_material(self, ior: float = 1.5, tint: Vec3 = (1.0, 1.0, 1.0)) -> int:
        """Add a clear (or tinted) dielectric."""
        return self.add_material(
            MaterialInfo(color=tint, specular_color=tint, refractive=True, ior=ior)
        )

    def get_material_count(self) -> int:
        return len(self.materials)

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def _check_material_id(self, material_id: int) -> None:
        if material_id < 0 or material_id >= len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")

    def _add_geom(
        self,
        kind: GeomType,
        material_id: int,
        translation: Vec3,
        rotation: Vec3,
        scale: Vec3,
        target: Vec3 | None,
        **mesh_fields,
    ) -> int:
        self._check_material_id(material_id)
        matrix = build_transform(translation, rotation, scale)
        transform, inverse, inverse_transpose = transform_matrices(matrix)
        for array in (transform, inverse, inverse_transpose):
            array.flags.writeable = False
        info = GeomInfo(
            kind=kind,
            material_id=material_id,
            transform=transform,
            inverse_transform=inverse,
            inverse_transpose=inverse_transpose,
            translation=tuple(translation),
            target=tuple(target) if target is not None else tuple(translation),
            moving=target is not None,
            **mesh_fields,
        )
        self.geoms.append(info)
        return len(self.geoms) - 1

    def add_sphere(
        self,
        center: Vec3,
        radius: float,
        material_id: int,
        rotation: Vec3 = (0.0, 0.0, 0.0),
        target: Vec3 | None = None,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center of the sphere at shutter time 0.
            radius: The radius of the sphere.
            material_id: Material of the sphere.
            rotation: Euler rotation in degrees.
            target: Center at shutter time 1 for a moving sphere.

        Returns:
            The index of the added primitive.

        Raises:
            ValueError: If radius is not positive or material_id is invalid.
        """
        if radius <= 0.0:
            raise ValueError(f"Sphere radius = {radius} must be positive")
        diameter = 2.0 * radius
        return self._add_geom(
            GeomType.SPHERE, material_id, center, rotation, (diameter, diameter, diameter), target
        )

    def add_box(
        self,
        center: Vec3,
        size: Vec3,
        material_id: int,
        rotation: Vec3 = (0.0, 0.0, 0.0),
        target: Vec3 | None = None,
    ) -> int:
        """Add a box to the scene.

        Args:
            center: The center of the box at shutter time 0.
            size: Edge lengths along the box's local x, y and z axes.
            material_id: Material of the box.
            rotation: Euler rotation in degrees.
            target: Center at shutter time 1 for a moving box.

        Returns:
            The index of the added primitive.

        Raises:
            ValueError: If a size component is not positive or material_id
                is invalid.
        """
        if any(s <= 0.0 for s in size):
            raise ValueError(f"Box size components must be positive, got {size}")
        return self._add_geom(GeomType.BOX, material_id, center, rotation, size, target)

    def add_mesh(
        self,
        vertices: npt.ArrayLike,
        faces: npt.ArrayLike,
        material_id: int,
        normals: npt.ArrayLike | None = None,
        translation: Vec3 = (0.0, 0.0, 0.0),
        rotation: Vec3 = (0.0, 0.0, 0.0),
        scale: Vec3 = (1.0, 1.0, 1.0),
        target: Vec3 | None = None,
    ) -> int:
        """Add a triangle mesh to the scene.

        Args:
            vertices: Object-space vertex positions, shape (V, 3).
            faces: Vertex indices of each triangle, shape (F, 3).
            material_id: Material of the mesh.
            normals: Per-vertex normals, shape (V, 3). Flat face normals are
                used if omitted.
            translation: Translation at shutter time 0.
            rotation: Euler rotation in degrees.
            scale: Per-axis scale factors.
            target: Translation at shutter time 1 for a moving mesh.

        Returns:
            The index of the added primitive.

        Raises:
            ValueError: If the mesh has no faces, arrays are malformed, a face
                references a missing vertex, or material_id is invalid.
        """
        verts = np.asarray(vertices, dtype=np.float32)
        tris = np.asarray(faces, dtype=np.int64)
        if verts.ndim != 2 or verts.shape[1] != 3:
            raise ValueError(f"Mesh vertices must have shape (V, 3), got {verts.shape}")
        if tris.ndim != 2 or tris.shape[1] != 3 or tris.shape[0] == 0:
            raise ValueError(f"Mesh faces must have shape (F, 3) with F > 0, got {tris.shape}")
        if tris.min() < 0 or tris.max() >= verts.shape[0]:
            raise ValueError("Mesh faces reference vertices out of range")

        positions = verts[tris]  # (F, 3, 3)
        if normals is None:
            face_normals = np.cross(
                positions[:, 1] - positions[:, 0], positions[:, 2] - positions[:, 0]
            )
            lengths = np.linalg.norm(face_normals, axis=1, keepdims=True)
            face_normals = face_normals / np.where(lengths > 0.0, lengths, 1.0)
            vertex_normals = np.repeat(face_normals[:, None, :], 3, axis=1)
        else:
            norms = np.asarray(normals, dtype=np.float32)
            if norms.shape != verts.shape:
                raise ValueError(
                    f"Mesh normals must match vertices shape {verts.shape}, got {norms.shape}"
                )
            vertex_normals = norms[tris]

        used = verts[np.unique(tris)]
        baked = np.concatenate([positions, vertex_normals], axis=1).astype(np.float32)
        start = self._num_triangles
        end = start + baked.shape[0]

        index = self._add_geom(
            GeomType.MESH,
            material_id,
            translation,
            rotation,
            scale,
            target,
            triangle_start=start,
            triangle_end=end,
            bbox_min=tuple(float(c) for c in used.min(axis=0)),
            bbox_max=tuple(float(c) for c in used.max(axis=0)),
        )
        self._triangles.append(baked)
        self._num_triangles = end
        return index

    def get_primitive_count(self) -> int:
        return len(self.geoms)

    # =========================================================================
    # Camera and Build
    # =========================================================================

    def set_camera(self, camera: Camera) -> None:
        """Set the scene camera.

        Raises:
            ValueError: If the camera resolution or orientation is invalid.
        """
        compute_camera_basis(camera)
        self._camera = camera

    def set_max_depth(self, max_depth: int) -> None:
        """Set the bounce budget of every path.

        Raises:
            ValueError: If max_depth is less than 1.
        """
        if max_depth < 1:
            raise ValueError(f"max_depth = {max_depth} must be at least 1")
        self._max_depth = max_depth

    def build(self) -> Scene:
        """Freeze the current contents into a Scene.

        Raises:
            ValueError: If no camera has been set.
        """
        if self._camera is None:
            raise ValueError("A camera must be set before building the scene")

        if self._triangles:
            triangles = np.concatenate(self._triangles, axis=0)
        else:
            triangles = np.zeros((0, 6, 3), dtype=np.float32)
        triangles.flags.writeable = False

        return Scene(
            materials=tuple(self.materials),
            geoms=tuple(self.geoms),
            triangles=triangles,
            camera=self._camera,
            max_depth=self._max_depth,
        )
