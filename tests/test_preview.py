"""Tests for image export utilities."""

import numpy as np
import pytest
from PIL import Image


class TestSavePngFromArray:
    """Tests for save_png_from_array."""

    def test_writes_file(self, tmp_path):
        from wavetrace.preview.export import save_png_from_array

        rng = np.random.default_rng(0)
        image = rng.integers(0, 256, size=(5, 7, 3), dtype=np.uint8)

        path = save_png_from_array(image, tmp_path / "out.png")

        assert path.exists()
        with Image.open(path) as loaded:
            assert loaded.size == (7, 5)
            assert loaded.mode == "RGB"
            np.testing.assert_array_equal(np.asarray(loaded), image)

    def test_accepts_string_path(self, tmp_path):
        from wavetrace.preview.export import save_png_from_array

        path = save_png_from_array(np.zeros((2, 2, 3), dtype=np.uint8), str(tmp_path / "s.png"))
        assert path.exists()

    @pytest.mark.parametrize(
        "image",
        [
            np.zeros((4, 4), dtype=np.uint8),
            np.zeros((4, 4, 4), dtype=np.uint8),
            np.zeros((4, 4, 3), dtype=np.float32),
        ],
    )
    def test_rejects_bad_images(self, tmp_path, image):
        from wavetrace.preview.export import save_png_from_array

        with pytest.raises(ValueError):
            save_png_from_array(image, tmp_path / "bad.png")


class TestSavePng:
    """Tests for save_png from a renderer or session."""

    @pytest.fixture
    def renderer(self):
        from wavetrace.core.progressive import ProgressiveRenderer
        from wavetrace.scene.cornell_box import create_cornell_box_scene

        r = ProgressiveRenderer(create_cornell_box_scene(resolution=(6, 4), max_depth=2))
        r.render(2)
        yield r
        r.close()

    def test_png_matches_display_buffer(self, renderer, tmp_path):
        from wavetrace.preview.export import save_png

        path = save_png(renderer, tmp_path / "render.png")
        with Image.open(path) as loaded:
            np.testing.assert_array_equal(np.asarray(loaded), renderer.get_display_buffer())

    def test_png_from_session(self, renderer, tmp_path):
        from wavetrace.preview.export import save_png

        path = save_png(renderer.session, tmp_path / "session.png")
        with Image.open(path) as loaded:
            np.testing.assert_array_equal(
                np.asarray(loaded), renderer.session.get_display_buffer()
            )

    def test_png_with_gamma(self, renderer, tmp_path):
        from wavetrace.preview.export import image_to_uint8, save_png

        path = save_png(renderer, tmp_path / "gamma.png", gamma=2.2)
        expected = image_to_uint8(renderer.session.get_average_numpy(), gamma=2.2)
        with Image.open(path) as loaded:
            np.testing.assert_array_equal(np.asarray(loaded), expected)

    def test_save_before_render_fails(self, tmp_path):
        from wavetrace.core.errors import SessionStateError
        from wavetrace.core.progressive import ProgressiveRenderer
        from wavetrace.preview.export import save_png
        from wavetrace.scene.cornell_box import create_cornell_box_scene

        renderer = ProgressiveRenderer(create_cornell_box_scene(resolution=(4, 4), max_depth=1))
        try:
            with pytest.raises(SessionStateError):
                save_png(renderer, tmp_path / "empty.png")
        finally:
            renderer.close()
        assert not (tmp_path / "empty.png").exists()


class TestImageToUint8:
    """Tests for image_to_uint8."""

    def test_conversion(self):
        from wavetrace.preview.export import image_to_uint8

        image = np.array([[[0.0, 0.5, 1.0], [-1.0, 2.0, np.nan]]], dtype=np.float32)
        result = image_to_uint8(image)

        assert result.dtype == np.uint8
        assert result.tolist() == [[[0, 127, 255], [0, 255, 0]]]

    def test_gamma(self):
        from wavetrace.preview.export import image_to_uint8

        image = np.full((1, 1, 3), 0.25, dtype=np.float32)
        assert image_to_uint8(image, gamma=2.0)[0, 0, 0] == 127
