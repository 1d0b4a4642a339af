"""Pinhole camera model for perspective projection ray generation.

The camera maps normalized image-plane coordinates (u, v) in [0, 1] to rays
from its origin through a rectangular viewport placed ``focal_length`` in
front of it. The viewport height is either given directly or derived from a
vertical field of view; its width follows from the aspect ratio.

The default camera sits at the origin looking down -z with +y up. A
positioned camera is described with lookfrom / lookat / vup, from which an
orthonormal basis (u, v, w) is built:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The configuration is validated when the dataclass is created; the derived
viewport is written once to Taichi fields by setup_camera().

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtone.camera.pinhole import PinholeCamera, setup_camera, get_ray
    >>>
    >>> camera = PinholeCamera(aspect_ratio=16.0 / 9.0)
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti

from rtone.core.ray import Ray, make_ray
from rtone.core.sampling import random_float

# =============================================================================
# Camera Data Structures
# =============================================================================


def _unit(vector: npt.NDArray[np.float64], what: str) -> npt.NDArray[np.float64]:
    """Normalize a NumPy vector, rejecting zero length."""
    norm = float(np.linalg.norm(vector))
    if norm < 1e-12:
        raise ValueError(f"Camera {what} is degenerate (zero length)")
    return vector / norm


@dataclass
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        aspect_ratio: Width divided by height of the viewport.
        viewport_height: Height of the viewport in world units. Ignored when
            vfov is given.
        focal_length: Distance from the camera origin to the viewport.
        vfov: Optional vertical field of view in degrees.
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation.

    Raises:
        ValueError: If the configuration cannot produce a viewport.
    """

    aspect_ratio: float = 16.0 / 9.0
    viewport_height: float = 2.0
    focal_length: float = 1.0
    vfov: float | None = None
    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)

    def __post_init__(self) -> None:
        if not self.aspect_ratio > 0.0 or not math.isfinite(self.aspect_ratio):
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if not self.focal_length > 0.0:
            raise ValueError(f"focal_length must be positive, got {self.focal_length}")
        if self.vfov is None:
            if not self.viewport_height > 0.0:
                raise ValueError(
                    f"viewport_height must be positive, got {self.viewport_height}"
                )
        elif not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        # Builds (and thereby validates) the basis
        self.basis()

    @property
    def effective_viewport_height(self) -> float:
        """Viewport height after applying the field of view, if any."""
        if self.vfov is None:
            return self.viewport_height
        return 2.0 * math.tan(math.radians(self.vfov) / 2.0) * self.focal_length

    @property
    def viewport_width(self) -> float:
        """Viewport width derived from the aspect ratio."""
        return self.aspect_ratio * self.effective_viewport_height

    def basis(self):
        """Build the camera's orthonormal basis.

        Returns:
            A tuple (u, v, w) of float64 NumPy vectors.

        Raises:
            ValueError: If lookfrom == lookat or vup is parallel to the view.
        """
        lookfrom = np.array(self.lookfrom, dtype=np.float64)
        lookat = np.array(self.lookat, dtype=np.float64)
        vup = np.array(self.vup, dtype=np.float64)

        w = _unit(lookfrom - lookat, "view direction (lookfrom == lookat)")
        u = _unit(np.cross(vup, w), "right vector (vup parallel to view direction)")
        v = np.cross(w, u)
        return u, v, w


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors for ray computation
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())  # Lower-left of viewport


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: PinholeCamera) -> None:
    """Derive the viewport from a camera configuration.

    Must be called before rendering. Writes the camera origin, basis and
    viewport geometry to Taichi fields.

    Args:
        camera: Camera configuration.
    """
    u, v, w = camera.basis()
    origin = np.array(camera.lookfrom, dtype=np.float64)

    horizontal = camera.viewport_width * u
    vertical = camera.effective_viewport_height * v

    # Origin, forward by the focal length, then to the lower-left corner
    lower_left = origin - camera.focal_length * w - horizontal / 2.0 - vertical / 2.0

    _camera_origin[None] = origin.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (u, v).

    - u = 0: left edge of image, u = 1: right edge
    - v = 0: bottom edge of image, v = 1: top edge

    Args:
        u: Horizontal coordinate in [0, 1] (left to right).
        v: Vertical coordinate in [0, 1] (bottom to top).

    Returns:
        A Ray from the camera origin toward the viewport point. The direction
        is not normalized.
    """
    point_on_viewport = (
        _lower_left_corner[None] + u * _viewport_horizontal[None] + v * _viewport_vertical[None]
    )
    origin = _camera_origin[None]
    return make_ray(origin, point_on_viewport - origin)


@ti.func
def get_ray_jittered(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate a ray through a random point of a pixel's footprint.

    Averaging many such rays anti-aliases edges.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray with a uniform random sub-pixel offset.
    """
    jitter_u = random_float()
    jitter_v = random_float()

    u = (ti.cast(pixel_i, ti.f32) + jitter_u) / ti.cast(width, ti.f32)
    v = (ti.cast(pixel_j, ti.f32) + jitter_v) / ti.cast(height, ti.f32)

    return get_ray(u, v)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left.
    """
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info = {}
    for name, field in fields.items():
        value = field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
