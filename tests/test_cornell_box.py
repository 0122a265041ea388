"""Unit tests for the Cornell box scene.

Tests cover:
- Scene creation and geometry counts
- Light and material assignments
- Wall and object placement
- Camera configuration
"""

import numpy as np
import pytest


@pytest.fixture
def cornell_box_scene():
    """Create a Cornell box scene for testing."""
    from wavetrace.scene.cornell_box import create_cornell_box_scene

    return create_cornell_box_scene(resolution=(32, 24))


class TestSceneCreation:
    """Tests for basic scene creation."""

    def test_returns_scene(self, cornell_box_scene):
        from wavetrace.scene.manager import Scene

        assert isinstance(cornell_box_scene, Scene)

    def test_counts(self, cornell_box_scene):
        assert cornell_box_scene.num_materials == 7
        assert cornell_box_scene.num_geoms == 9
        assert cornell_box_scene.num_triangles == 6

    def test_geometry_kinds(self, cornell_box_scene):
        from wavetrace.geometry.geom import GeomType

        kinds = [g.kind for g in cornell_box_scene.geoms]
        assert kinds.count(GeomType.BOX) == 6
        assert kinds.count(GeomType.SPHERE) == 2
        assert kinds.count(GeomType.MESH) == 1

    def test_resolution(self, cornell_box_scene):
        assert cornell_box_scene.resolution == (32, 24)
        assert cornell_box_scene.num_pixels == 32 * 24

    def test_max_depth(self):
        from wavetrace.scene.cornell_box import create_cornell_box_scene
        from wavetrace.scene.manager import DEFAULT_MAX_DEPTH

        assert create_cornell_box_scene().max_depth == DEFAULT_MAX_DEPTH
        assert create_cornell_box_scene(max_depth=3).max_depth == 3

    def test_nothing_moves(self, cornell_box_scene):
        assert not any(g.moving for g in cornell_box_scene.geoms)


class TestMaterials:
    """Tests for material assignments."""

    def test_light_is_first_and_only_emitter(self, cornell_box_scene):
        emissive = [i for i, m in enumerate(cornell_box_scene.materials) if m.is_emissive]
        assert emissive == [0]
        assert cornell_box_scene.geoms[0].material_id == 0

    def test_sphere_materials(self, cornell_box_scene):
        from wavetrace.geometry.geom import GeomType

        spheres = [g for g in cornell_box_scene.geoms if g.kind == GeomType.SPHERE]
        metal = cornell_box_scene.materials[spheres[0].material_id]
        glass = cornell_box_scene.materials[spheres[1].material_id]

        assert metal.reflectivity == 1.0
        assert not metal.refractive
        assert glass.refractive
        assert glass.ior == 1.5

    def test_custom_params(self):
        from wavetrace.scene.cornell_box import CornellBoxParams, create_cornell_box_scene

        params = CornellBoxParams(light_intensity=12.0, light_color=(1.0, 0.9, 0.8))
        scene = create_cornell_box_scene(params=params)

        assert scene.materials[0].emittance == 12.0
        assert scene.materials[0].color == (1.0, 0.9, 0.8)

    def test_wall_colors(self, cornell_box_scene):
        from wavetrace.scene.cornell_box import CornellBoxParams

        params = CornellBoxParams()
        colors = [m.color for m in cornell_box_scene.materials]
        assert params.left_wall_color in colors
        assert params.right_wall_color in colors
        assert params.back_wall_color in colors


class TestPlacement:
    """Tests for the placement of walls and objects."""

    def test_everything_inside_box(self, cornell_box_scene):
        from wavetrace.scene.cornell_box import BOX_SIZE

        half = BOX_SIZE / 2.0
        lo = np.array([-half, 0.0, -half]) - 1e-3
        hi = np.array([half, BOX_SIZE, half]) + 1e-3
        for geom in cornell_box_scene.geoms:
            center = np.array(geom.translation)
            assert np.all(center >= lo) and np.all(center <= hi)

    def test_pyramid_triangles(self, cornell_box_scene):
        from wavetrace.geometry.geom import GeomType
        from wavetrace.scene.cornell_box import PYRAMID_FACES

        mesh = next(g for g in cornell_box_scene.geoms if g.kind == GeomType.MESH)
        assert mesh.triangle_end - mesh.triangle_start == len(PYRAMID_FACES)
        assert mesh.bbox_min[1] == 0.0
        assert mesh.bbox_max[1] == 1.0


class TestCamera:
    """Tests for the camera setup."""

    def test_camera_looks_into_box(self, cornell_box_scene):
        from wavetrace.camera.perspective import compute_camera_basis
        from wavetrace.scene.cornell_box import BOX_SIZE

        camera = cornell_box_scene.camera
        assert camera.position[2] > BOX_SIZE / 2.0
        assert camera.look_at == (0.0, BOX_SIZE / 2.0, 0.0)

        basis = compute_camera_basis(camera)
        np.testing.assert_allclose(basis.view, [0.0, 0.0, -1.0], atol=1e-6)

    def test_focus_on_box_center(self, cornell_box_scene):
        camera = cornell_box_scene.camera
        distance = np.linalg.norm(np.subtract(camera.look_at, camera.position))
        assert camera.focal_distance == pytest.approx(distance)
        assert camera.lens_radius > 0.0
