"""Tests for the progressive renderer.

This module tests:
- Sample accumulation across render() calls
- Progress callbacks and the generator interface
- Reset, frame numbering and image access
"""

import numpy as np
import pytest


@pytest.fixture
def renderer():
    """A small Cornell box renderer, closed after the test."""
    from wavetrace.core.progressive import ProgressiveRenderer
    from wavetrace.scene.cornell_box import create_cornell_box_scene

    scene = create_cornell_box_scene(resolution=(8, 8), max_depth=2)
    r = ProgressiveRenderer(scene)
    yield r
    r.close()


class TestProgressiveRendererInit:
    """Tests for renderer construction."""

    def test_dimensions_from_scene(self, renderer):
        assert renderer.width == 8
        assert renderer.height == 8

    def test_starts_empty(self, renderer):
        assert renderer.sample_count == 0
        assert renderer.frame == 0
        assert renderer.session.initialized

    def test_repr(self, renderer):
        assert repr(renderer) == "ProgressiveRenderer(width=8, height=8, samples=0, frame=0)"


class TestRender:
    """Tests for render()."""

    def test_render_accumulates_samples(self, renderer):
        renderer.render(5)
        assert renderer.sample_count == 5

        renderer.render(3, batch_size=2)
        assert renderer.sample_count == 8

    @pytest.mark.parametrize("num_samples", [0, -4])
    def test_render_with_non_positive_samples_does_nothing(self, renderer, num_samples):
        renderer.render(num_samples)
        assert renderer.sample_count == 0

    def test_invalid_batch_size(self, renderer):
        with pytest.raises(ValueError, match="batch_size"):
            renderer.render(4, batch_size=0)

    def test_iterations_continue_random_streams(self, renderer):
        """Two render() calls equal one call with the same total."""
        from wavetrace.core.progressive import ProgressiveRenderer
        from wavetrace.scene.cornell_box import create_cornell_box_scene

        renderer.render(2)
        renderer.render(2)

        other = ProgressiveRenderer(create_cornell_box_scene(resolution=(8, 8), max_depth=2))
        try:
            other.render(4, batch_size=4)
            np.testing.assert_allclose(
                renderer.session.get_image_numpy(), other.session.get_image_numpy(), rtol=1e-6
            )
        finally:
            other.close()


class TestProgressCallback:
    """Tests for progress callback functionality."""

    def test_callback_receives_progress(self, renderer):
        progress_values = []
        renderer.render(10, batch_size=4, callback=lambda c, t: progress_values.append((c, t)))

        assert progress_values == [(4, 10), (8, 10), (10, 10)]

    def test_callback_with_existing_samples(self, renderer):
        renderer.render(5)

        progress_values = []
        renderer.render(10, batch_size=5, callback=lambda c, t: progress_values.append((c, t)))

        assert progress_values == [(10, 15), (15, 15)]


class TestRenderProgressive:
    """Tests for the generator interface."""

    def test_yields_progress(self, renderer):
        progress_values = list(renderer.render_progressive(6, batch_size=2))
        assert progress_values == [(2, 6), (4, 6), (6, 6)]

    def test_zero_samples_yields_nothing(self, renderer):
        assert list(renderer.render_progressive(0)) == []

    def test_interruptible(self, renderer):
        for current, _ in renderer.render_progressive(20, batch_size=3):
            if current >= 6:
                break
        assert renderer.sample_count == 6


class TestReset:
    """Tests for reset()."""

    def test_reset_clears_samples_and_advances_frame(self, renderer):
        renderer.render(3)
        renderer.reset()

        assert renderer.sample_count == 0
        assert renderer.frame == 1
        np.testing.assert_array_equal(renderer.session.get_image_numpy(), 0.0)

    def test_reset_with_new_scene(self, renderer):
        from wavetrace.scene.cornell_box import create_cornell_box_scene

        renderer.reset(create_cornell_box_scene(resolution=(12, 6), max_depth=2))
        assert renderer.width == 12
        assert renderer.height == 6

        renderer.render(1)
        assert renderer.get_display_buffer().shape == (6, 12, 3)

    def test_frame_reaches_session(self, renderer):
        renderer.reset()
        renderer.reset()
        renderer.render(1)
        assert renderer.session.last_frame == 2


class TestImageAccess:
    """Tests for image retrieval."""

    def test_image_is_clamped(self, renderer):
        renderer.render(2)
        image = renderer.get_image_numpy()

        assert image.shape == (8, 8, 3)
        assert image.dtype == np.float32
        assert image.min() >= 0.0
        assert image.max() <= 1.0

    def test_gamma_brightens(self, renderer):
        renderer.render(2)
        linear = renderer.get_image_numpy()
        corrected = renderer.get_image_numpy(gamma=2.2)
        assert np.all(corrected >= linear - 1e-6)

    def test_display_buffer_matches_session(self, renderer):
        renderer.render(2)
        np.testing.assert_array_equal(
            renderer.get_display_buffer(), renderer.session.get_display_buffer()
        )

    def test_close_releases_session(self, renderer):
        renderer.close()
        assert not renderer.session.initialized
