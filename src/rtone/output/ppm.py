"""Plain-text PPM (P3) image writer.

Layout of the file:

    P3
    <width> <height>
    255
    r g b        (one line per pixel)

Rows are written top to bottom and pixels left to right.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)

MAX_COLOR_VALUE = 255


def _check_image(image: npt.NDArray[np.uint8]) -> None:
    if not isinstance(image, np.ndarray):
        raise ValueError(f"Expected a NumPy array, got {type(image).__name__}")
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")
    if image.dtype != np.uint8:
        raise ValueError(f"Expected a uint8 image, got dtype {image.dtype}")


def write_ppm(image: npt.NDArray[np.uint8], stream: TextIO) -> None:
    """Write an 8-bit RGB image to a text stream in P3 format.

    Args:
        image: Array of shape (H, W, 3) with dtype uint8, rows top to bottom.
        stream: Writable text stream.

    Raises:
        ValueError: If the array has the wrong shape or dtype.
    """
    _check_image(image)
    height, width = image.shape[:2]

    stream.write(f"P3\n{width} {height}\n{MAX_COLOR_VALUE}\n")
    for row in range(height):
        logger.debug("Scanlines remaining: %d", height - row)
        stream.writelines(f"{r} {g} {b}\n" for r, g, b in image[row].tolist())


def save_ppm(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an 8-bit RGB image as a P3 PPM file.

    Raises:
        ValueError: If the array has the wrong shape or dtype.
        OSError: If the file cannot be written.
    """
    _check_image(image)
    with open(filepath, "w", encoding="ascii") as stream:
        write_ppm(image, stream)
    logger.info("Wrote %dx%d PPM to %s", image.shape[1], image.shape[0], filepath)
