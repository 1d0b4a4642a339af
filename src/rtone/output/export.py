"""Image export utilities for rendered images.

This module turns the renderer's linear float image into 8-bit pixels and
writes it to disk. Pixel values are gamma corrected with gamma 2 (square
root), clamped below 1 and quantized as floor(256 * c), so every channel
lands in [0, 255].

Supported formats:
    - PPM (plain-text P3, see rtone.output.ppm)
    - PNG (8-bit via Pillow)

Example:
    >>> from rtone.output.export import image_to_uint8, save_image
    >>> from rtone.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)
    >>> save_image(image_to_uint8(renderer.get_image_numpy()), "output.png")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from rtone.output.ppm import save_ppm

logger = logging.getLogger(__name__)

# Largest value a channel is clamped to before quantization
MAX_INTENSITY = 0.999


def linear_to_gamma(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
    """Apply gamma 2 correction (square root) to a linear image.

    Negative values are clamped to zero first.
    """
    return np.sqrt(np.maximum(image, 0.0)).astype(np.float32)


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit pixels.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    corrected = linear_to_gamma(image)
    clamped = np.clip(corrected, 0.0, MAX_INTENSITY)
    return np.floor(256.0 * clamped).astype(np.uint8)


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an 8-bit RGB image as a PNG file.

    Raises:
        ValueError: If the array is not (H, W, 3) uint8.
        OSError: If the file cannot be written.
    """
    if image.ndim != 3 or image.shape[2] != 3 or image.dtype != np.uint8:
        raise ValueError(
            f"Expected a (H, W, 3) uint8 image, got shape {image.shape} dtype {image.dtype}"
        )

    pil_image = PILImage.fromarray(image)
    pil_image.save(filepath)
    logger.info("Wrote %dx%d PNG to %s", image.shape[1], image.shape[0], filepath)


def save_image(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an 8-bit RGB image, choosing the format from the file suffix.

    Args:
        image: 8-bit image array of shape (H, W, 3).
        filepath: Output path ending in .ppm or .png.

    Raises:
        ValueError: If the suffix is not a supported format.
        OSError: If the file cannot be written.
    """
    suffix = Path(filepath).suffix.lower()
    if suffix == ".ppm":
        save_ppm(image, filepath)
    elif suffix == ".png":
        save_png(image, filepath)
    else:
        raise ValueError(f"Unsupported image format '{suffix}', use .ppm or .png")


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
