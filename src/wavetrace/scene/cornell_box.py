"""Cornell box scene configuration.

This module provides a factory function to create the classic Cornell box scene,
a standard test scene used in computer graphics for evaluating global illumination
algorithms.

The Cornell box consists of:
- 5 thin box walls forming an open box (left, right, back, floor, ceiling)
- Left wall: red diffuse
- Right wall: green diffuse
- Back, floor, ceiling: white diffuse
- An emissive box light set into the ceiling
- 2 spheres (metal, glass) and a diffuse pyramid mesh

The box is 10 units on a side, centered on the y-axis with the floor at y = 0,
and the camera looks in through the open front along -z.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from wavetrace.scene.cornell_box import create_cornell_box_scene
    >>> scene = create_cornell_box_scene(resolution=(200, 200))
    >>> # Now render with RenderSession(config).initialize(scene)
"""

from dataclasses import dataclass

import numpy as np

from wavetrace.camera.perspective import Camera
from wavetrace.scene.manager import DEFAULT_MAX_DEPTH, Scene, SceneManager

# =============================================================================
# Cornell Box Parameters
# =============================================================================


@dataclass
class CornellBoxParams:
    """Parameters for configuring a Cornell box scene.

    Attributes:
        light_intensity: Emittance of the ceiling light.
        light_color: RGB color of the light (each component in [0, 1]).
        left_wall_color: RGB albedo of the left wall.
        right_wall_color: RGB albedo of the right wall.
        back_wall_color: RGB albedo of the back wall, floor and ceiling.

    Example:
        >>> params = CornellBoxParams()
        >>> params.light_intensity
        5.0
        >>> custom = CornellBoxParams(light_color=(1.0, 0.9, 0.8))  # Warm light
    """

    light_intensity: float = 5.0
    light_color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    left_wall_color: tuple[float, float, float] = (0.98, 0.2, 0.15)
    right_wall_color: tuple[float, float, float] = (0.35, 0.85, 0.35)
    back_wall_color: tuple[float, float, float] = (0.98, 0.98, 0.98)


# =============================================================================
# Cornell Box Constants
# =============================================================================

# Edge length of the box
BOX_SIZE = 10.0

# Thickness of the wall boxes
WALL_THICKNESS = 0.01

# Light box footprint and thickness
LIGHT_SIZE = 3.0
LIGHT_THICKNESS = 0.3

# Sphere materials
METAL_SPHERE_ALBEDO = (0.95, 0.93, 0.88)
METAL_SPHERE_ROUGHNESS = 0.05
GLASS_SPHERE_IOR = 1.5

# Pyramid mesh material
PYRAMID_ALBEDO = (0.85, 0.75, 0.35)

# Square pyramid with its base on y = 0 and apex at y = 1
PYRAMID_VERTICES = np.array(
    [
        [-0.5, 0.0, -0.5],
        [0.5, 0.0, -0.5],
        [0.5, 0.0, 0.5],
        [-0.5, 0.0, 0.5],
        [0.0, 1.0, 0.0],
    ],
    dtype=np.float32,
)
PYRAMID_FACES = np.array(
    [
        [0, 1, 2],
        [0, 2, 3],
        [0, 4, 1],
        [1, 4, 2],
        [2, 4, 3],
        [3, 4, 0],
    ],
    dtype=np.int32,
)


# =============================================================================
# Cornell Box Factory
# =============================================================================


def create_cornell_box_scene(
    resolution: tuple[int, int] = (400, 400),
    params: CornellBoxParams | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Scene:
    """Create a Cornell box scene with standard configuration.

    The coordinate system places the floor at y = 0 with:
    - X-axis: left to right (-5 to 5)
    - Y-axis: floor to ceiling (0 to 10)
    - Z-axis: back wall at z = -5, open toward +z

    Args:
        resolution: Image size in pixels (width, height).
        params: Optional CornellBoxParams for customizing light and wall colors.
            If None, uses default CornellBoxParams().
        max_depth: Bounce budget of every path.

    Returns:
        The built Scene.

    Example:
        >>> scene = create_cornell_box_scene()
        >>> scene.num_geoms
        9
    """
    if params is None:
        params = CornellBoxParams()

    half = BOX_SIZE / 2.0
    manager = SceneManager()

    # =========================================================================
    # Materials
    # =========================================================================

    light_mat = manager.add_light_material(
        color=params.light_color, emittance=params.light_intensity
    )
    white_mat = manager.add_diffuse_material(color=params.back_wall_color)
    red_mat = manager.add_diffuse_material(color=params.left_wall_color)
    green_mat = manager.add_diffuse_material(color=params.right_wall_color)
    metal_mat = manager.add_metal_material(
        color=METAL_SPHERE_ALBEDO, roughness=METAL_SPHERE_ROUGHNESS
    )
    glass_mat = manager.add_dielectric_material(ior=GLASS_SPHERE_IOR)
    pyramid_mat = manager.add_diffuse_material(color=PYRAMID_ALBEDO)

    # =========================================================================
    # Light and Walls
    # =========================================================================

    manager.add_box(
        center=(0.0, BOX_SIZE, 0.0),
        size=(LIGHT_SIZE, LIGHT_THICKNESS, LIGHT_SIZE),
        material_id=light_mat,
    )

    # Floor
    manager.add_box(
        center=(0.0, 0.0, 0.0),
        size=(BOX_SIZE, WALL_THICKNESS, BOX_SIZE),
        material_id=white_mat,
    )
    # Ceiling
    manager.add_box(
        center=(0.0, BOX_SIZE, 0.0),
        size=(BOX_SIZE, WALL_THICKNESS, BOX_SIZE),
        material_id=white_mat,
    )
    # Back wall
    manager.add_box(
        center=(0.0, half, -half),
        size=(BOX_SIZE, BOX_SIZE, WALL_THICKNESS),
        material_id=white_mat,
    )
    # Left wall
    manager.add_box(
        center=(-half, half, 0.0),
        size=(WALL_THICKNESS, BOX_SIZE, BOX_SIZE),
        material_id=red_mat,
    )
    # Right wall
    manager.add_box(
        center=(half, half, 0.0),
        size=(WALL_THICKNESS, BOX_SIZE, BOX_SIZE),
        material_id=green_mat,
    )

    # =========================================================================
    # Objects
    # =========================================================================

    manager.add_sphere(center=(-2.0, 1.5, -1.0), radius=1.5, material_id=metal_mat)
    manager.add_sphere(center=(1.0, 1.2, 1.5), radius=1.2, material_id=glass_mat)
    manager.add_mesh(
        PYRAMID_VERTICES,
        PYRAMID_FACES,
        material_id=pyramid_mat,
        translation=(2.5, 0.0, -2.0),
        rotation=(0.0, 30.0, 0.0),
        scale=(2.5, 3.0, 2.5),
    )

    # =========================================================================
    # Camera Setup
    # =========================================================================

    manager.set_camera(
        Camera(
            resolution=resolution,
            position=(0.0, half, 10.5),
            look_at=(0.0, half, 0.0),
            up=(0.0, 1.0, 0.0),
            fovy=45.0,
            lens_radius=0.2,
            focal_distance=10.5,
        )
    )
    manager.set_max_depth(max_depth)

    return manager.build()
