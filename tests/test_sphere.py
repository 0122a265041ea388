"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside
- Ray missing sphere, and sphere behind the ray
- Ray starting inside sphere (far side hit)
- Transformed and moving spheres
"""

import numpy as np
import pytest
import taichi as ti


def _sphere_scene(camera, center=(0.0, 0.0, 0.0), radius=1.0, target=None):
    from wavetrace.scene.manager import SceneManager

    manager = SceneManager()
    mat = manager.add_diffuse_material((0.5, 0.5, 0.5))
    manager.add_sphere(center, radius, mat, target=target)
    manager.set_camera(camera)
    return manager.build()


@pytest.fixture
def trace_sphere(test_camera, scene_fields):
    """Return a function tracing one ray against a single sphere."""
    from wavetrace.core.ray import make_ray
    from wavetrace.geometry.sphere import hit_sphere

    def _trace(origin, direction, time=0.0, **sphere):
        geoms, _, _ = scene_fields(_sphere_scene(test_camera, **sphere))
        t_val = ti.field(dtype=ti.f32, shape=())
        point = ti.field(dtype=ti.math.vec3, shape=())
        normal = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(o: ti.math.vec3, d: ti.math.vec3, time: ti.f32):
            record = hit_sphere(geoms[0], make_ray(o, d.normalized(), time))
            t_val[None] = record.t
            point[None] = record.point
            normal[None] = record.normal

        test_kernel(ti.math.vec3(origin), ti.math.vec3(direction), time)
        return t_val[None], point[None].to_numpy(), normal[None].to_numpy()

    return _trace


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_direct_hit(self, trace_sphere):
        """Ray from z=5 toward a unit sphere at the origin hits at t=4."""
        t, point, normal = trace_sphere((0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
        assert abs(t - 4.0) < 1e-3
        np.testing.assert_allclose(point, [0.0, 0.0, 1.0], atol=1e-3)
        np.testing.assert_allclose(normal, [0.0, 0.0, 1.0], atol=1e-5)

    def test_hit_point_is_pulled_toward_origin(self, trace_sphere):
        """The reported point lies slightly outside the surface on the ray side."""
        t, point, _ = trace_sphere((0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
        assert t < 4.0
        assert point[2] > 1.0

    def test_miss(self, trace_sphere):
        """Ray offset to the side misses."""
        t, _, _ = trace_sphere((5.0, 0.0, 5.0), (0.0, 0.0, -1.0))
        assert t == -1.0

    def test_sphere_behind_ray(self, trace_sphere):
        """A sphere entirely behind the origin is not hit."""
        t, _, _ = trace_sphere((0.0, 0.0, 5.0), (0.0, 0.0, 1.0))
        assert t == -1.0

    def test_inside_hits_far_side(self, trace_sphere):
        """From the center the ray exits through the far side."""
        t, point, normal = trace_sphere((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert abs(t - 1.0) < 1e-3
        np.testing.assert_allclose(point, [0.0, 0.0, 1.0], atol=1e-3)
        # Geometric normal still points outward
        np.testing.assert_allclose(normal, [0.0, 0.0, 1.0], atol=1e-5)

    def test_translated_and_scaled(self, trace_sphere):
        """Sphere of radius 2 at (0, 3, 0) is hit at distance 8 from (0, 3, 10)."""
        t, point, normal = trace_sphere(
            (0.0, 3.0, 10.0), (0.0, 0.0, -1.0), center=(0.0, 3.0, 0.0), radius=2.0
        )
        assert abs(t - 8.0) < 1e-3
        np.testing.assert_allclose(point, [0.0, 3.0, 2.0], atol=1e-3)
        np.testing.assert_allclose(normal, [0.0, 0.0, 1.0], atol=1e-5)

    def test_oblique_normal(self, trace_sphere):
        """Hit normals are unit length and radial."""
        t, point, normal = trace_sphere((0.5, 0.5, 5.0), (0.0, 0.0, -1.0))
        assert t > 0.0
        assert abs(np.linalg.norm(normal) - 1.0) < 1e-5
        np.testing.assert_allclose(normal, point / np.linalg.norm(point), atol=1e-3)

    def test_moving_sphere_follows_time(self, trace_sphere):
        """A sphere moving from x=0 to x=4 is found at x=2 at time 0.5."""
        kwargs = {"target": (4.0, 0.0, 0.0)}
        t_start, _, _ = trace_sphere((2.0, 0.0, 5.0), (0.0, 0.0, -1.0), 0.0, **kwargs)
        t_mid, point, _ = trace_sphere((2.0, 0.0, 5.0), (0.0, 0.0, -1.0), 0.5, **kwargs)
        assert t_start == -1.0
        assert abs(t_mid - 4.0) < 1e-3
        np.testing.assert_allclose(point, [2.0, 0.0, 1.0], atol=1e-3)
