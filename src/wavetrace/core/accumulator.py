"""Accumulation image and display conversion.

The accumulation image is a flat Vector field of width * height RGB sums
indexed by pixel_index = x + y * width, with y = 0 on the top row. Every
iteration adds one path color per pixel. Display values are the per-pixel
mean scaled to 8 bits.
"""

import numpy as np
import numpy.typing as npt
import taichi as ti


@ti.kernel
def gather_paths(paths: ti.template(), image: ti.template(), num_paths: ti.i32):
    """Add the color of every path in paths[0:num_paths] to its pixel."""
    for i in range(num_paths):
        path = paths[i]
        image[path.pixel_index] += path.color


def image_to_numpy(image, resolution: tuple[int, int]) -> npt.NDArray[np.float32]:
    """Copy a flat accumulation field to an (height, width, 3) float array."""
    width, height = resolution
    return image.to_numpy()[: width * height].reshape(height, width, 3)


def to_display_buffer(
    accumulated: npt.NDArray[np.floating], iterations: int
) -> npt.NDArray[np.uint8]:
    """Convert accumulated sums to an 8-bit image.

    Each channel becomes clip(trunc(sum / iterations * 255), 0, 255).

    Args:
        accumulated: Summed colors of shape (height, width, 3).
        iterations: Number of iterations summed so far.

    Returns:
        A uint8 array of shape (height, width, 3).

    Raises:
        ValueError: If iterations is not positive.
    """
    if iterations <= 0:
        raise ValueError(f"iterations must be positive, got {iterations}")
    averaged = np.nan_to_num(np.asarray(accumulated, dtype=np.float64) / iterations)
    scaled = np.trunc(averaged * 255.0)
    return np.clip(scaled, 0.0, 255.0).astype(np.uint8)
