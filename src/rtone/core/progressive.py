"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Progressive rendering that refines over time
- Batch rendering (multiple SPP in one call)
- Progress callbacks for command line or UI updates
- Easy reset and re-render functionality

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from rtone.core.progressive import ProgressiveRenderer
    >>> from rtone.camera.pinhole import PinholeCamera, setup_camera
    >>>
    >>> setup_camera(PinholeCamera(aspect_ratio=16.0 / 9.0))
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)  # Render 100 SPP
    >>> renderer.save_image("image.ppm")
"""

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from rtone.core.integrator import (
    MAX_DEPTH,
    ShadingMode,
    clear_render_target,
    get_linear_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from rtone.output.export import image_to_uint8, save_image

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer keeps its own width, height, depth limit and shading mode
    and delegates to the global integrator buffers (which are Taichi fields).
    The camera and world must be set up before rendering.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum number of ray segments per path.
        shading: How primary ray hits are colored.
    """

    def __init__(
        self,
        width: int,
        height: int,
        max_depth: int = MAX_DEPTH,
        shading: ShadingMode = ShadingMode.MATERIAL,
    ) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            max_depth: Maximum number of ray segments per path.
            shading: How primary ray hits are colored.

        Raises:
            ValueError: If dimensions are invalid or max_depth is negative.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        setup_render_target(width, height)
        self._width = width
        self._height = height
        self.max_depth = max_depth
        self.shading = ShadingMode(shading)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Reset the accumulator for a new render.

        Clears the color buffer and sample count, allowing a fresh render
        without changing the image dimensions.
        """
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).
        """
        for _ in self.render_progressive(num_samples, batch_size, callback):
            pass

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.
            callback: Optional callback, called before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
        """
        if num_samples <= 0:
            return
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        start_samples = self.sample_count
        target_samples = start_samples + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, self.max_depth, self.shading)
            remaining -= batch

            current = self.sample_count
            logger.debug("Rendered %d/%d samples per pixel", current, target_samples)
            if callback is not None:
                callback(current, target_samples)
            yield (current, target_samples)

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the averaged linear image of shape (height, width, 3)."""
        return get_linear_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the image gamma corrected and quantized to 8 bits."""
        return image_to_uint8(self.get_image_numpy())

    def save_image(self, filepath: str | Path) -> None:
        """Save the rendered image as .ppm or .png.

        Raises:
            ValueError: If the file suffix is not supported.
            OSError: If the file cannot be written.
        """
        save_image(self.get_image_uint8(), filepath)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"max_depth={self.max_depth}, samples={self.sample_count})"
        )
