"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around a RenderSession that supports:
- Progressive rendering that refines over time
- Batch rendering (several iterations between progress updates)
- Progress callbacks and a generator interface
- Easy reset and re-render functionality

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from wavetrace.core.progressive import ProgressiveRenderer
    >>> from wavetrace.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> renderer = ProgressiveRenderer(create_cornell_box_scene(resolution=(128, 128)))
    >>> renderer.render(16, batch_size=4)
    >>> display = renderer.get_display_buffer()
    >>> renderer.close()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from wavetrace.core.config import RenderConfig
from wavetrace.core.session import RenderSession
from wavetrace.scene.manager import Scene

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_iterations, total_target_iterations)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates one sample per pixel per iteration.

    The renderer owns a RenderSession and numbers iterations 1, 2, 3, ... so
    each call continues the random streams where the previous one stopped.

    Attributes:
        session: The underlying RenderSession.
    """

    def __init__(self, scene: Scene, config: RenderConfig | None = None) -> None:
        """Create a renderer and initialize its session.

        Args:
            scene: Scene to render.
            config: Feature toggles. Defaults to RenderConfig().
        """
        self._scene = scene
        self.session = RenderSession(config)
        self.session.initialize(scene)
        self._frame = 0

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._scene.resolution[0]

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._scene.resolution[1]

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return self.session.iterations

    @property
    def frame(self) -> int:
        """Index of the current frame, advanced by reset()."""
        return self._frame

    def reset(self, scene: Scene | None = None) -> None:
        """Discard accumulated samples and start a new frame.

        Args:
            scene: Optional replacement scene, e.g. after moving the camera.
        """
        if scene is not None:
            self._scene = scene
        self.session.teardown()
        self.session.initialize(self._scene)
        self._frame += 1
        logger.info("Renderer reset, starting frame %d", self._frame)

    def close(self) -> None:
        """Release the session's device buffers."""
        self.session.teardown()

    def _render_batch(self, batch: int) -> None:
        for _ in range(batch):
            self.session.render_iteration(self.session.iterations + 1, self._frame)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing image.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of iterations to add.
            batch_size: Number of iterations to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of iterations to add.
            batch_size: Number of iterations to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if num_samples <= 0:
            return
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            self._render_batch(batch)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the averaged image as a NumPy array.

        Values are clamped to [0, 1] and optionally gamma corrected. The
        array shape is (height, width, 3).

        Args:
            gamma: Gamma correction value. Default 1.0 (linear).
        """
        image = np.clip(self.session.get_average_numpy(), 0.0, 1.0)

        if gamma != 1.0:
            image = np.power(image, 1.0 / gamma)

        return image.astype(np.float32)

    def get_display_buffer(self) -> npt.NDArray[np.uint8]:
        """Get the running average as an 8-bit (height, width, 3) array."""
        return self.session.get_display_buffer()

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count}, frame={self.frame})"
        )
