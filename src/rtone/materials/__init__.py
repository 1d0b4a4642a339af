"""Materials module.

Components:
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection with optional fuzz
    dielectric: Glass-like refraction with Schlick reflectance
    registry: Unified material ids mapping to (variant, index)
    scatter: Variant dispatch producing a ScatterRecord

Each variant provides a scatter_* Taichi function returning
(scattered_direction, attenuation, did_scatter), plus Python-side storage
functions (add_*, clear_*) that validate parameters at construction time.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
)
from .registry import (
    MAX_MATERIALS,
    MaterialType,
    clear_material_registry,
    get_material_count,
    get_material_type,
    get_material_type_index,
    register_material,
)
from .scatter import ScatterRecord, scatter

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "scatter_dielectric",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    # Registry and dispatch
    "MaterialType",
    "MAX_MATERIALS",
    "register_material",
    "clear_material_registry",
    "get_material_count",
    "get_material_type",
    "get_material_type_index",
    "ScatterRecord",
    "scatter",
]
