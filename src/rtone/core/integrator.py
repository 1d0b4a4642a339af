"""Path tracing integrator for Monte Carlo light transport.

This module implements the main rendering kernel: camera rays are traced
through the world, bouncing off surfaces according to their material, and
the attenuation along each path tints the sky color the path finally
escapes to. Samples are accumulated progressively into a running average
per pixel.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Bounded path length, exhausted paths contribute black
    - Sky gradient background as the only light source
    - Normal and flat shading modes for debugging geometry
    - Progressive sample accumulation for convergence

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from rtone.core.integrator import render_image, setup_render_target
    >>> from rtone.camera.pinhole import PinholeCamera, setup_camera
    >>>
    >>> setup_camera(PinholeCamera(aspect_ratio=16.0 / 9.0))
    >>> setup_render_target(400, 225)
    >>> render_image(num_samples=100)
"""

import logging
import math
from enum import IntEnum

import numpy as np
import taichi as ti
import taichi.math as tm

from rtone.camera.pinhole import get_ray_jittered
from rtone.core.ray import Ray, make_ray, unit_vector
from rtone.materials.scatter import scatter
from rtone.scene.world import hit_world

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum ray bounces (path length)
MAX_DEPTH = 50

# Ignore hits closer than this to the ray origin (avoids shadow acne)
T_MIN = 0.001
T_MAX = math.inf

# Sky gradient endpoints
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)

# Color of any hit in FLAT shading mode
FLAT_COLOR = vec3(0.996, 0.953, 0.78)


class ShadingMode(IntEnum):
    """How a primary ray hit is turned into a color."""

    MATERIAL = 0  # Full path tracing through the materials
    NORMAL = 1  # Visualize the surface normal
    FLAT = 2  # Constant color silhouette


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color accumulation buffer (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.
    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    to avoid Taichi kernel recompilation issues.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    logger.debug("Render target set to %dx%d", width, height)

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def reset_render_target() -> None:
    """Clear the buffers and mark the render target as not set up."""
    clear_render_target()
    _image_width[None] = 0
    _image_height[None] = 0
    _render_target_initialized[None] = 0


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_image_width[None]), int(_image_height[None])


# =============================================================================
# Ray Color
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky color seen along a direction.

    Blends white at the horizon (and below) into light blue straight up,
    linearly in the y component of the unit direction.
    """
    a = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - a) * SKY_HORIZON_COLOR + a * SKY_ZENITH_COLOR


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32) -> vec3:
    """Estimate the color carried back along a ray.

    Each bounce multiplies the path throughput by the material attenuation
    and uses up one unit of depth. A path that escapes returns the
    throughput times the background; absorbed or exhausted paths are black.

    Args:
        ray: The ray to trace.
        max_depth: Maximum number of ray segments. Zero or less gives black.

    Returns:
        The estimated color (RGB) for this path sample.
    """
    origin = ray.origin
    direction = ray.direction

    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            hit_record = hit_world(origin, direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                radiance = throughput * background_color(direction)
                active = 0
            else:
                srec = scatter(
                    hit_record.material_id,
                    direction,
                    hit_record.point,
                    hit_record.normal,
                    hit_record.front_face,
                )

                if srec.did_scatter == 0:
                    active = 0
                else:
                    throughput *= srec.attenuation
                    origin = srec.origin
                    direction = srec.direction

    return radiance


@ti.func
def shade(ray: Ray, max_depth: ti.i32, shading: ti.i32) -> vec3:
    """Color a camera ray according to the shading mode."""
    color = vec3(0.0, 0.0, 0.0)

    if shading == int(ShadingMode.MATERIAL):
        color = ray_color(ray, max_depth)
    else:
        hit_record = hit_world(ray.origin, ray.direction, T_MIN, T_MAX)
        if hit_record.hit == 0:
            color = background_color(ray.direction)
        elif shading == int(ShadingMode.NORMAL):
            color = 0.5 * (hit_record.normal + vec3(1.0, 1.0, 1.0))
        else:
            color = FLAT_COLOR

    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32, shading: ti.i32):
    """Render one sample per pixel and accumulate.

    Traces one jittered ray through each pixel and folds the result into
    the running average in the color buffer.
    """
    for i, j in ti.ndrange(width, height):
        ray = get_ray_jittered(i, j, width, height)
        color = shade(ray, max_depth, shading)

        # Clamp negative values (numerical errors)
        color = tm.max(color, vec3(0.0, 0.0, 0.0))

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _sample_count[i, j] += 1
        n = _sample_count[i, j]

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    shading: ti.i32,
) -> vec3:
    """Render a single sample for a specific pixel."""
    ray = get_ray_jittered(pixel_i, pixel_j, width, height)
    return shade(ray, max_depth, shading)


@ti.kernel
def _trace_ray(origin: vec3, direction: vec3, max_depth: ti.i32, shading: ti.i32) -> vec3:
    return shade(make_ray(origin, direction), max_depth, shading)


@ti.kernel
def _background(direction: vec3) -> vec3:
    return background_color(direction)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin,
    direction,
    max_depth: int = MAX_DEPTH,
    shading: ShadingMode = ShadingMode.MATERIAL,
) -> tuple[float, float, float]:
    """Trace a single ray through the world from Python.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction (x, y, z), any non-zero length.
        max_depth: Maximum number of ray segments.
        shading: How hits are colored.

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    color = _trace_ray(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        max_depth,
        int(shading),
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def sky_color(direction) -> tuple[float, float, float]:
    """Evaluate the background gradient for a direction from Python."""
    color = _background(vec3(direction[0], direction[1], direction[2]))
    return (float(color[0]), float(color[1]), float(color[2]))


def render_sample(
    pixel_i: int,
    pixel_j: int,
    max_depth: int = MAX_DEPTH,
    shading: ShadingMode = ShadingMode.MATERIAL,
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Maximum number of ray segments.
        shading: How hits are colored.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_i, pixel_j, width, height, max_depth, int(shading))

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(
    num_samples: int = 1,
    max_depth: int = MAX_DEPTH,
    shading: ShadingMode = ShadingMode.MATERIAL,
) -> None:
    """Render the image with the specified number of samples per pixel.

    Progressively accumulates samples into the color buffer. Can be called
    multiple times to add more samples for convergence.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Maximum number of ray segments per path.
        shading: How hits are colored.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    width, height = get_image_dimensions()

    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth, int(shading))


def get_total_samples() -> int:
    """Get the total number of samples rendered so far.

    Returns the sample count from pixel (0, 0), which should be the same
    for all pixels after calling render_image().

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_linear_image_numpy() -> np.ndarray:
    """Get the averaged linear image as a NumPy array.

    The array shape is (height, width, 3) with dtype float32, rows ordered
    top to bottom.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    width, height = get_image_dimensions()

    # Get raw image data (full buffer)
    full_image = _color_buffer.to_numpy()

    # Extract active region
    image = full_image[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (Taichi uses bottom-left origin, images use top-left)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)
