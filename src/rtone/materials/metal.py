"""Metal (specular reflective) material implementation.

Metals mirror the incoming direction about the surface normal,

    R = V - 2(V . N)N

and then perturb the result by ``fuzz`` times a random unit vector to model a
rough surface. Fuzzed directions that end up pointing into the surface are
absorbed, which is how grazing reflections on rough metal get culled.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtone.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from rtone.core.ray import reflect, unit_vector
from rtone.core.sampling import random_unit_vector
from rtone.materials.lambertian import validate_albedo

vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
):
    """Compute the scattered direction for a metal surface.

    Args:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: The roughness in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (any non-zero length).
        normal: The unit surface normal, facing against the incoming ray.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The fuzzed reflection (normalized), or zero
          when absorbed.
        - attenuation: The albedo.
        - did_scatter: 1 if the ray left the surface, 0 if absorbed.
    """
    reflected = reflect(unit_vector(incident_direction), normal)
    fuzzed = reflected + fuzz * random_unit_vector()

    did_scatter = 0
    scattered_direction = vec3(0.0, 0.0, 0.0)
    if tm.dot(fuzzed, normal) > 0.0:
        did_scatter = 1
        scattered_direction = unit_vector(fuzzed)

    return scattered_direction, albedo, did_scatter


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 512

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz factor into [0, 1]."""
    return min(max(float(fuzz), 0.0), 1.0)


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material storage.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
        fuzz: The roughness. Values outside [0, 1] are clamped into it.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_albedo(albedo)

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = [albedo[0], albedo[1], albedo[2]]
    metal_fuzzes[idx] = clamp_fuzz(fuzz)
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in storage."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    """Get the fuzz factor for a metal material by index."""
    return metal_fuzzes[material_idx]
