"""Pytest configuration for wavetrace tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture
def test_camera():
    """A small camera on the +z axis looking at the origin."""
    from wavetrace.camera.perspective import Camera

    return Camera(resolution=(4, 4), position=(0.0, 0.0, 5.0), look_at=(0.0, 0.0, 0.0))


@pytest.fixture
def scene_fields():
    """Factory uploading a Scene into freshly allocated struct fields.

    Returns a function scene -> (geoms, triangles, materials).
    """
    from wavetrace.geometry.geom import Geom, Triangle
    from wavetrace.materials.bsdf import Material
    from wavetrace.scene.intersection import upload_scene

    def _upload(scene):
        geoms = Geom.field(shape=max(1, scene.num_geoms))
        triangles = Triangle.field(shape=max(1, scene.num_triangles))
        materials = Material.field(shape=max(1, scene.num_materials))
        upload_scene(scene, geoms, triangles, materials)
        return geoms, triangles, materials

    return _upload
