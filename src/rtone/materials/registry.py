"""Unified material id space shared by all material variants.

Materials form a closed set of variants. Each variant keeps its parameters
in its own Taichi fields (see lambertian, metal, dielectric); this module
maps a unified material id to the pair (variant tag, index into that
variant's fields), which is what the scatter dispatch switches on.

Ids are handed out in registration order and never reused until the
registry is cleared, so any number of spheres can share one material by id.
"""

from enum import IntEnum

import taichi as ti


class MaterialType(IntEnum):
    """Enumeration of the supported material variants.

    Used for material dispatch to determine which scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all variants
MAX_MATERIALS = 1024

# material_types[i] stores the MaterialType for material id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the variant-local index for material id i
# (e.g. if material id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_material_registry() -> None:
    """Forget all registered material ids."""
    num_materials[None] = 0


def register_material(material_type: MaterialType, type_index: int) -> int:
    """Assign a unified material id to a variant-local material.

    Args:
        material_type: The variant the material belongs to.
        type_index: The index returned by the variant's add_*_material().

    Returns:
        The new unified material id.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_types[material_id] = int(material_type)
    material_type_indices[material_id] = type_index
    num_materials[None] = material_id + 1
    return material_id


def get_material_count() -> int:
    """Get the number of registered material ids."""
    return int(num_materials[None])


def is_valid_material_id(material_id: int) -> bool:
    """Check whether a material id has been registered."""
    return 0 <= material_id < num_materials[None]


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material id.

    Args:
        material_id: The unified material id.

    Returns:
        The material type as an integer (see MaterialType).
        Returns -1 for invalid material ids.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the variant-local index for a given material id.

    Args:
        material_id: The unified material id.

    Returns:
        The index into the variant's parameter fields.
        Returns -1 for invalid material ids.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result
