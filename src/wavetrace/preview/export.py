"""Image export utilities for rendered images.

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from wavetrace.preview.export import save_png
    >>> from wavetrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(scene)
    >>> renderer.render(100)
    >>> save_png(renderer, "output.png")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from wavetrace.core.progressive import ProgressiveRenderer
    from wavetrace.core.session import RenderSession

logger = logging.getLogger(__name__)


def save_png(
    source: ProgressiveRenderer | RenderSession,
    filepath: str | Path,
    *,
    gamma: float = 1.0,
) -> Path:
    """Save the current running average as a PNG file.

    With the default gamma of 1.0 the file holds exactly the display buffer
    returned by the last render_iteration().

    Args:
        source: A ProgressiveRenderer or a RenderSession with at least one
            rendered iteration.
        filepath: Output file path (should end in .png).
        gamma: Gamma correction applied to the averaged image.

    Returns:
        The path written.
    """
    session = getattr(source, "session", source)
    if gamma == 1.0:
        image_uint8 = session.get_display_buffer()
    else:
        image_uint8 = image_to_uint8(session.get_average_numpy(), gamma=gamma)
    return save_png_from_array(image_uint8, filepath)


def save_png_from_array(image: npt.NDArray[np.uint8], filepath: str | Path) -> Path:
    """Save an 8-bit (H, W, 3) array as a PNG file.

    Raises:
        ValueError: If the array is not an (H, W, 3) uint8 image.
    """
    if image.ndim != 3 or image.shape[2] != 3 or image.dtype != np.uint8:
        raise ValueError(
            f"Expected a (H, W, 3) uint8 image, got shape {image.shape} and dtype {image.dtype}"
        )

    path = Path(filepath)
    pil_image = PILImage.fromarray(image)
    pil_image.save(path)
    logger.info("Saved %dx%d image to %s", image.shape[1], image.shape[0], path)
    return path


def image_to_uint8(
    image: npt.NDArray[np.floating],
    *,
    gamma: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to uint8 for display or export.

    Values are clamped to [0, 1], gamma corrected and truncated.
    """
    processed = np.clip(np.nan_to_num(image), 0.0, 1.0)
    if gamma != 1.0:
        processed = np.power(processed, 1.0 / gamma)
    return np.trunc(processed * 255.0).astype(np.uint8)
