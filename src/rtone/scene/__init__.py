"""Scene module for world storage and scene building.

Components:
    world: Sphere storage in Taichi fields and the closest-hit query
    manager: Scene manager coordinating spheres and materials
    stages: Named scene setups, from a test pattern to the cover scene

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for sphere data
    - Materials referenced by unified id, shared between spheres
"""

from .manager import MaterialInfo, SceneConfig, SceneManager, SphereInfo
from .world import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_world,
    get_sphere_count,
    hit_world,
)

# Note: stages is NOT imported here since it depends on rtone.core.integrator,
# which itself imports rtone.scene.world. Import rtone.scene.stages directly.

__all__ = [
    # World
    "SceneHitRecord",
    "add_sphere",
    "clear_world",
    "get_sphere_count",
    "hit_world",
    "MAX_SPHERES",
    # Manager
    "SceneManager",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
]
