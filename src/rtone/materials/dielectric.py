"""Dielectric (glass/water) material implementation.

Dielectrics never absorb: at each boundary the ray is either reflected or
refracted, and the attenuation is white.

Key physics:
    - Snell's law for refraction: eta * sin(theta) = eta' * sin(theta')
    - Total internal reflection when (eta / eta') * sin(theta) > 1
    - Schlick's approximation for the probability of reflection

Under total internal reflection the choice is deterministic; otherwise a
uniform random number is compared against the Schlick reflectance.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtone.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face
    >>> # )
"""

import math

import taichi as ti
import taichi.math as tm

from rtone.core.ray import reflect, reflectance, refract, unit_vector
from rtone.core.sampling import random_float

vec3 = tm.vec3


@ti.func
def refraction_ratio_for(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio eta / eta' for a ray crossing the boundary.

    Entering the material (front face) the ratio is 1 / ior, leaving it
    the ratio is ior.
    """
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Compute the scattered direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any non-zero length).
        normal: The unit surface normal, facing against the incoming ray.
        front_face: 1 if the ray hits from outside, 0 if from within.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The reflected or refracted unit direction.
        - attenuation: White (1, 1, 1).
        - did_scatter: Always 1.
    """
    ratio = refraction_ratio_for(ior, front_face)

    unit_direction = unit_vector(incident_direction)
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if ratio * sin_theta > 1.0:
        # Total internal reflection, no random draw
        scattered_direction = reflect(unit_direction, normal)
    else:
        if random_float() < reflectance(cos_theta, ratio):
            scattered_direction = reflect(unit_direction, normal)
        else:
            scattered_direction = refract(unit_direction, normal, ratio)

    return scattered_direction, vec3(1.0, 1.0, 1.0), 1


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 512

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material storage.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass). Values
            below 1 are allowed and model e.g. an air bubble in water
            (1.0 / 1.33).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If ior is not a positive finite number.
    """
    if not math.isfinite(ior) or ior <= 0.0:
        raise ValueError(f"Index of refraction must be positive and finite, got {ior}")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in storage."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the index of refraction for a dielectric material by index."""
    return dielectric_iors[material_idx]
