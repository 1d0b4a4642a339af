"""Image output: gamma correction, quantization and file writers.

Components:
    export: Linear-to-8-bit conversion, PNG output and format selection
    ppm: Plain-text PPM (P3) writer
"""

from .export import compute_rmse, image_to_uint8, linear_to_gamma, save_image, save_png
from .ppm import save_ppm, write_ppm

__all__ = [
    "linear_to_gamma",
    "image_to_uint8",
    "save_png",
    "save_image",
    "compute_rmse",
    "write_ppm",
    "save_ppm",
]
