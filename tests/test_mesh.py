"""Unit tests for triangle mesh intersection.

Tests cover:
- Moller-Trumbore triangle test
- Nearest triangle selection and normal orientation
- Interpolated vertex normals
- Bounding box culling
"""

import numpy as np
import pytest
import taichi as ti

TRIANGLE_VERTICES = np.array(
    [[-1.0, -1.0, 0.0], [1.0, -1.0, 0.0], [0.0, 1.0, 0.0]], dtype=np.float32
)


def _mesh_scene(camera, vertices, faces, **kwargs):
    from wavetrace.scene.manager import SceneManager

    manager = SceneManager()
    mat = manager.add_diffuse_material((0.5, 0.5, 0.5))
    manager.add_mesh(vertices, faces, mat, **kwargs)
    manager.set_camera(camera)
    return manager.build()


def _trace(fields, origin, direction, culling=1):
    from wavetrace.core.ray import make_ray
    from wavetrace.geometry.mesh import hit_mesh

    geoms, triangles, _ = fields
    t_val = ti.field(dtype=ti.f32, shape=())
    normal = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel(o: ti.math.vec3, d: ti.math.vec3, culling: ti.i32):
        record = hit_mesh(geoms[0], make_ray(o, d.normalized(), 0.0), triangles, culling)
        t_val[None] = record.t
        normal[None] = record.normal

    test_kernel(ti.math.vec3(origin), ti.math.vec3(direction), culling)
    return t_val[None], normal[None].to_numpy()


class TestIntersectTriangle:
    """Tests for the raw triangle test."""

    def test_barycentrics(self):
        from wavetrace.geometry.mesh import intersect_triangle

        result = ti.field(dtype=ti.f32, shape=4)

        @ti.kernel
        def test_kernel():
            hit, t, u, v = intersect_triangle(
                ti.math.vec3(0.0, 0.0, 3.0),
                ti.math.vec3(0.0, 0.0, -1.0),
                ti.math.vec3(-1.0, -1.0, 0.0),
                ti.math.vec3(1.0, -1.0, 0.0),
                ti.math.vec3(0.0, 1.0, 0.0),
            )
            result[0] = hit
            result[1] = t
            result[2] = u
            result[3] = v

        test_kernel()
        hit, t, u, v = result.to_numpy()
        assert hit == 1
        assert abs(t - 3.0) < 1e-5
        # (0, 0) = 0.25 * p1 + 0.25 * p2 + 0.5 * p3
        assert abs(u - 0.25) < 1e-5
        assert abs(v - 0.5) < 1e-5

    def test_parallel_ray_misses(self):
        from wavetrace.geometry.mesh import intersect_triangle

        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            hit, _, _, _ = intersect_triangle(
                ti.math.vec3(0.0, 0.0, 3.0),
                ti.math.vec3(1.0, 0.0, 0.0),
                ti.math.vec3(-1.0, -1.0, 0.0),
                ti.math.vec3(1.0, -1.0, 0.0),
                ti.math.vec3(0.0, 1.0, 0.0),
            )
            result[None] = hit

        test_kernel()
        assert result[None] == 0


class TestMeshIntersection:
    """Tests for hit_mesh."""

    def test_front_hit(self, test_camera, scene_fields):
        fields = scene_fields(_mesh_scene(test_camera, TRIANGLE_VERTICES, [[0, 1, 2]]))
        t, normal = _trace(fields, (0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
        assert abs(t - 5.0) < 1e-3
        np.testing.assert_allclose(normal, [0.0, 0.0, 1.0], atol=1e-5)

    def test_normal_faces_ray(self, test_camera, scene_fields):
        """Hitting the back of a triangle flips its normal toward the ray."""
        fields = scene_fields(_mesh_scene(test_camera, TRIANGLE_VERTICES, [[0, 1, 2]]))
        t, normal = _trace(fields, (0.0, 0.0, -5.0), (0.0, 0.0, 1.0))
        assert abs(t - 5.0) < 1e-3
        np.testing.assert_allclose(normal, [0.0, 0.0, -1.0], atol=1e-5)

    def test_miss_outside_triangle(self, test_camera, scene_fields):
        fields = scene_fields(_mesh_scene(test_camera, TRIANGLE_VERTICES, [[0, 1, 2]]))
        t, _ = _trace(fields, (0.9, 0.9, 5.0), (0.0, 0.0, -1.0))
        assert t == -1.0

    def test_nearest_of_two(self, test_camera, scene_fields):
        """Of two stacked triangles the nearer one is reported."""
        vertices = np.concatenate([TRIANGLE_VERTICES, TRIANGLE_VERTICES + [0.0, 0.0, 2.0]])
        fields = scene_fields(_mesh_scene(test_camera, vertices, [[0, 1, 2], [3, 4, 5]]))
        t, _ = _trace(fields, (0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
        assert abs(t - 3.0) < 1e-3

    def test_interpolated_normals(self, test_camera, scene_fields):
        """Vertex normals are blended with the hit's barycentric weights."""
        normals = np.array([[0.0, 0.0, 1.0], [0.0, 0.0, 1.0], [0.0, 1.0, 0.0]], dtype=np.float32)
        scene = _mesh_scene(test_camera, TRIANGLE_VERTICES, [[0, 1, 2]], normals=normals)
        t, normal = _trace(scene_fields(scene), (0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
        expected = np.array([0.0, 0.5, 0.5])
        np.testing.assert_allclose(normal, expected / np.linalg.norm(expected), atol=1e-4)

    def test_transformed_mesh(self, test_camera, scene_fields):
        """Translation and scale move the mesh in world space."""
        scene = _mesh_scene(
            test_camera,
            TRIANGLE_VERTICES,
            [[0, 1, 2]],
            translation=(0.0, 0.0, -2.0),
            scale=(2.0, 2.0, 2.0),
        )
        t, _ = _trace(scene_fields(scene), (1.5, -1.5, 5.0), (0.0, 0.0, -1.0))
        assert abs(t - 7.0) < 1e-3

    def test_bounding_box_rejects_before_triangles(self, test_camera, scene_fields):
        """With culling on, a ray missing the box never reaches the triangles."""
        fields = scene_fields(_mesh_scene(test_camera, TRIANGLE_VERTICES, [[0, 1, 2]]))
        geoms = fields[0]
        # Move the box away from the geometry it should enclose
        geoms.bbox_min[0] = [10.0, 10.0, 10.0]
        geoms.bbox_max[0] = [11.0, 11.0, 11.0]

        t_culled, _ = _trace(fields, (0.0, 0.0, 5.0), (0.0, 0.0, -1.0), culling=1)
        t_unculled, _ = _trace(fields, (0.0, 0.0, 5.0), (0.0, 0.0, -1.0), culling=0)
        assert t_culled == -1.0
        assert abs(t_unculled - 5.0) < 1e-3

    def test_flat_mesh_box_accepts_axis_parallel_ray(self, test_camera, scene_fields):
        """A zero-thickness bounding box still admits rays crossing it."""
        fields = scene_fields(_mesh_scene(test_camera, TRIANGLE_VERTICES, [[0, 1, 2]]))
        geoms = fields[0]
        assert geoms.bbox_min[0][2] == geoms.bbox_max[0][2] == 0.0
        t, _ = _trace(fields, (0.0, 0.0, 5.0), (0.0, 0.0, -1.0), culling=1)
        assert t > 0.0


@pytest.mark.parametrize("culling", [0, 1])
def test_pyramid_hit_both_culling_modes(test_camera, scene_fields, culling):
    """The Cornell box pyramid is hit from above regardless of culling."""
    from wavetrace.scene.cornell_box import PYRAMID_FACES, PYRAMID_VERTICES

    scene = _mesh_scene(test_camera, PYRAMID_VERTICES, PYRAMID_FACES)
    t, normal = _trace(scene_fields(scene), (0.0, 5.0, 0.1), (0.0, -1.0, 0.0), culling)
    assert abs(t - 4.2) < 1e-3
    assert normal[1] > 0.0
