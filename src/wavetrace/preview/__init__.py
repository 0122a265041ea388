"""Preview module for saving rendered images.

Components:
    export: PNG export via Pillow
"""

from .export import image_to_uint8, save_png, save_png_from_array

__all__ = [
    "image_to_uint8",
    "save_png",
    "save_png_from_array",
]
