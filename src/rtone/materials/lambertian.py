"""Lambertian (ideal diffuse) material implementation.

The scattered direction is the surface normal plus a random unit vector.
Because the random vector is uniform on the unit sphere, the resulting
directions are distributed proportionally to cos(theta) around the normal,
which is the Lambertian distribution. The attenuation is the albedo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtone.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(albedo, normal)
"""

import taichi as ti
import taichi.math as tm

from rtone.core.ray import near_zero
from rtone.core.sampling import random_unit_vector

vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3):
    """Sample a scattered direction for a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The unit surface normal at the hit point.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: normal + random unit vector, or the normal
          itself when that sum is degenerate. Not normalized.
        - attenuation: The albedo.
        - did_scatter: Always 1; diffuse surfaces never absorb.
    """
    scattered_direction = normal + random_unit_vector()

    # The random vector can cancel the normal almost exactly
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo, 1


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 512

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def validate_albedo(albedo: tuple[float, float, float]) -> None:
    """Check that an albedo has three components, each in [0, 1].

    Raises:
        ValueError: If the albedo is malformed or any component is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if not 0.0 <= component <= 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material storage.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_albedo(albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = [albedo[0], albedo[1], albedo[2]]
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in storage."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]
