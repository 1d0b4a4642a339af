"""Pytest configuration for ray tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear the world, material registries and render target around each test."""
    # Import here to ensure Taichi is initialized first
    from rtone.core.integrator import reset_render_target
    from rtone.materials.dielectric import clear_dielectric_materials
    from rtone.materials.lambertian import clear_lambertian_materials
    from rtone.materials.metal import clear_metal_materials
    from rtone.materials.registry import clear_material_registry
    from rtone.scene.world import clear_world

    def _clear_all():
        clear_world()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_material_registry()
        reset_render_target()

    _clear_all()

    yield

    _clear_all()
