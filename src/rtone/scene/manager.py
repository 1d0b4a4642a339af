"""Unified scene manager for coordinating spheres and materials.

This module provides a high-level scene building API on top of the world
storage and the material registries. It records every material and sphere
it adds on the Python side, so a scene can be inspected and exported to a
plain configuration (and rebuilt from one).

The SceneManager maintains:
- A unified material id space across all material types
- High-level methods for adding spheres with materials in one call
- Scene serialization/configuration support

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtone.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    >>> scene.add_sphere(center=(0, -100.5, -1), radius=100, material_id=ground)
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=ground)
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from rtone.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from rtone.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from rtone.materials.metal import (
    add_metal_material,
    clear_metal_materials,
    clamp_fuzz,
)
from rtone.materials.registry import (
    MAX_MATERIALS,
    MaterialType,
    clear_material_registry,
    get_material_count,
    is_valid_material_id,
    register_material,
)
from rtone.scene.world import (
    MAX_SPHERES,
    add_sphere,
    clear_world,
    get_sphere_count,
    validate_radius,
)

logger = logging.getLogger(__name__)


@dataclass
class MaterialInfo:
    """Python-side record of one registered material.

    Attributes:
        material_id: Id shared by all material variants.
        material_type: Which variant the material belongs to.
        type_index: Slot in that variant's parameter fields.
        params: The material parameters as stored.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Python-side record of one sphere in the world.

    Attributes:
        sphere_index: Slot in the world's sphere fields.
        center: Sphere center (x, y, z).
        radius: Sphere radius, negative for an inverted surface.
        material_id: Material the sphere is shaded with.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Plain description of a scene, suitable for JSON.

    Attributes:
        materials: List of material configurations, in material id order.
        spheres: Sphere entries with center, radius and material_id.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_triple(values) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"Expected 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Unified scene manager coordinating spheres and materials.

    Creating a SceneManager clears the world and every material registry;
    there is one active scene at a time.

    Attributes:
        materials: MaterialInfo records, indexed by material id.
        spheres: SphereInfo records in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> red_diffuse = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold_metal = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red_diffuse)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold_metal)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
    """

    def __init__(self) -> None:
        """Start from an empty world and empty material registries."""
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Reset the Taichi fields and the Python-side records."""
        clear_world()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_material_registry()
        self.materials.clear()
        self.spheres.clear()

    def clear(self) -> None:
        """Clear the entire scene (spheres and materials)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register(
        self, material_type: MaterialType, type_index: int, params: dict[str, Any]
    ) -> int:
        material_id = register_material(material_type, type_index)
        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Register a diffuse material.

        Args:
            albedo: The diffuse reflectance color as (R, G, B) in [0, 1].

        Returns:
            Id to pass to add_sphere.

        Raises:
            RuntimeError: If a material registry is full.
            ValueError: If any albedo component is outside [0, 1].
        """
        albedo = _as_triple(albedo)
        type_index = add_lambertian_material(albedo)
        return self._register(MaterialType.LAMBERTIAN, type_index, {"albedo": albedo})

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Register a reflective metal material.

        Args:
            albedo: The reflective color as (R, G, B) in [0, 1].
            fuzz: Blur of the reflection, clamped into [0, 1]. Default is
                0 (perfect mirror).

        Returns:
            Id to pass to add_sphere.

        Raises:
            RuntimeError: If a material registry is full.
            ValueError: If any albedo component is outside [0, 1].
        """
        albedo = _as_triple(albedo)
        type_index = add_metal_material(albedo, fuzz)
        return self._register(
            MaterialType.METAL, type_index, {"albedo": albedo, "fuzz": clamp_fuzz(fuzz)}
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a clear refractive material.

        Args:
            ior: Index of refraction, 1.5 for glass.

        Returns:
            Id to pass to add_sphere.

        Raises:
            RuntimeError: If a material registry is full.
            ValueError: If ior is not positive and finite.
        """
        type_index = add_dielectric_material(ior)
        return self._register(MaterialType.DIELECTRIC, type_index, {"ior": float(ior)})

    def get_material_count(self) -> int:
        """Number of registered materials."""
        return get_material_count()

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a given material ID (Python side).

        For kernel-side lookup, use rtone.materials.registry.get_material_type().
        """
        info = self.get_material_info(material_id)
        return info.material_type if info is not None else None

    # =========================================================================
    # Sphere Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: Sphere center as (x, y, z).
            radius: Sphere radius, negative for a hollow (inverted) surface.
            material_id: Id returned by one of the add_*_material methods.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the world is full.
            ValueError: If material_id is invalid or radius is zero.
        """
        if not is_valid_material_id(material_id):
            raise ValueError(f"Invalid material_id: {material_id}")

        center = _as_triple(center)
        sphere_index = add_sphere(center, radius, material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=center,
                radius=float(radius),
                material_id=material_id,
            )
        )
        return sphere_index

    def _check_new_sphere(self, center, radius: float) -> None:
        """Validate a sphere before its material is registered.

        A rejected sphere registers no material.
        """
        _as_triple(center)
        validate_radius(radius)
        if get_sphere_count() >= MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with its own diffuse material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        self._check_new_sphere(center, radius)
        material_id = self.add_lambertian_material(albedo)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with its own metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        self._check_new_sphere(center, radius)
        material_id = self.add_metal_material(albedo, fuzz)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with its own dielectric material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        self._check_new_sphere(center, radius)
        material_id = self.add_dielectric_material(ior)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def get_sphere_count(self) -> int:
        """Number of spheres in the world."""
        return get_sphere_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for mat in self.materials:
            mat_config: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                mat_config[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(mat_config)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with one described by a SceneConfig.

        Clears the current scene and loads the configuration. Materials are
        added first, in order, so sphere material ids keep their meaning.

        Raises:
            ValueError: If an entry has an unknown type or invalid parameters.
        """
        self.clear()

        for mat_config in config.materials:
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "lambertian":
                self.add_lambertian_material(mat_config.get("albedo", [0.5, 0.5, 0.5]))
            elif mat_type == "metal":
                self.add_metal_material(
                    mat_config.get("albedo", [0.8, 0.8, 0.8]),
                    mat_config.get("fuzz", 0.0),
                )
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for sphere_config in config.spheres:
            self.add_sphere(
                sphere_config.get("center", [0.0, 0.0, 0.0]),
                sphere_config.get("radius", 1.0),
                sphere_config.get("material_id", 0),
            )

        logger.debug(
            "Loaded scene with %d materials and %d spheres",
            len(self.materials),
            len(self.spheres),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with 'materials' and 'spheres' keys."""
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Sphere capacity of the world."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Capacity of the unified material registry."""
        return MAX_MATERIALS
