"""Material dispatch: one scatter entry point for every material variant.

The material set is closed (Lambertian, Metal, Dielectric), so dispatch is a
switch on the variant tag stored in the registry rather than an open-ended
call through a table. The scattered ray always starts at the hit point; the
integrator's t_min keeps it from re-hitting the surface it left.
"""

import taichi as ti
import taichi.math as tm

from rtone.materials.dielectric import get_dielectric_ior, scatter_dielectric
from rtone.materials.lambertian import get_lambertian_albedo, scatter_lambertian
from rtone.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from rtone.materials.registry import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

vec3 = tm.vec3


@ti.dataclass
class ScatterRecord:
    """Result of scattering a ray off a surface.

    Attributes:
        did_scatter: 1 if a scattered ray was produced, 0 if the ray was absorbed.
        attenuation: Per-channel color multiplier for the scattered ray.
        origin: Origin of the scattered ray (the hit point).
        direction: Direction of the scattered ray.
    """

    did_scatter: ti.i32
    attenuation: vec3
    origin: vec3
    direction: vec3


@ti.func
def scatter(
    material_id: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ScatterRecord:
    """Scatter a ray off the surface of the given material.

    Args:
        material_id: The unified material id of the struck surface.
        incident_direction: The incoming ray direction.
        hit_point: The intersection point.
        normal: The unit surface normal, facing against the incoming ray.
        front_face: 1 if the ray struck the outside of the surface.

    Returns:
        A ScatterRecord. Unknown material ids absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter = scatter_lambertian(albedo, normal)

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter = scatter_metal(
            albedo, fuzz, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered_direction, attenuation, did_scatter = scatter_dielectric(
            ior, incident_direction, normal, front_face
        )

    return ScatterRecord(
        did_scatter=did_scatter,
        attenuation=attenuation,
        origin=hit_point,
        direction=scattered_direction,
    )
