"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    sampling: Random point and direction sampling
    integrator: Light transport (ray_color), render target and kernels
    progressive: Progressive sample accumulation wrapper

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    ray_at,
    reflect,
    reflectance,
    refract,
    unit_vector,
    vec3,
)
from .sampling import (
    random_float,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_on_hemisphere,
    random_unit_vector,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from rtone.core.integrator or rtone.core.progressive when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "near_zero",
    "reflect",
    "refract",
    "reflectance",
    "random_float",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_on_hemisphere",
    "random_in_unit_disk",
]
