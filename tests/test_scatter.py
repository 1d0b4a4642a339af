"""Tests for the material registry and scatter dispatch."""

import numpy as np
import pytest
import taichi as ti


def _scatter(material_id, incident, point, normal, front_face=1):
    from rtone.materials.scatter import scatter, vec3

    did = ti.field(dtype=ti.i32, shape=())
    attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())
    origin = ti.Vector.field(3, dtype=ti.f32, shape=())
    direction = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(mid: ti.i32, d: vec3, p: vec3, n: vec3, ff: ti.i32):
        srec = scatter(mid, d, p, n, ff)
        did[None] = srec.did_scatter
        attenuation[None] = srec.attenuation
        origin[None] = srec.origin
        direction[None] = srec.direction

    test_kernel(material_id, vec3(*incident), vec3(*point), vec3(*normal), front_face)
    return {
        "did_scatter": did[None],
        "attenuation": attenuation[None].to_numpy(),
        "origin": origin[None].to_numpy(),
        "direction": direction[None].to_numpy(),
    }


class TestRegistry:
    """Tests for the unified material id registry."""

    def test_ids_are_sequential_across_variants(self):
        from rtone.materials.dielectric import add_dielectric_material
        from rtone.materials.lambertian import add_lambertian_material
        from rtone.materials.registry import (
            MaterialType,
            get_material_count,
            is_valid_material_id,
            register_material,
        )

        a = register_material(MaterialType.LAMBERTIAN, add_lambertian_material((0.5, 0.5, 0.5)))
        b = register_material(MaterialType.DIELECTRIC, add_dielectric_material(1.5))
        assert (a, b) == (0, 1)
        assert get_material_count() == 2
        assert is_valid_material_id(1)
        assert not is_valid_material_id(2)
        assert not is_valid_material_id(-1)

    def test_overflow(self):
        from rtone.materials.registry import (
            MAX_MATERIALS,
            MaterialType,
            num_materials,
            register_material,
        )

        num_materials[None] = MAX_MATERIALS
        with pytest.raises(RuntimeError):
            register_material(MaterialType.METAL, 0)


class TestScatterDispatch:
    """Tests for scatter() selecting the right variant."""

    def test_lambertian_starts_at_hit_point(self):
        from rtone.materials.lambertian import add_lambertian_material
        from rtone.materials.registry import MaterialType, register_material

        mid = register_material(MaterialType.LAMBERTIAN, add_lambertian_material((0.2, 0.4, 0.6)))
        point = (0.3, -0.2, -1.1)
        rec = _scatter(mid, (0.0, 0.0, -1.0), point, (0.0, 0.0, 1.0))

        assert rec["did_scatter"] == 1
        assert np.allclose(rec["origin"], point, atol=1e-6)
        assert np.allclose(rec["attenuation"], [0.2, 0.4, 0.6], atol=1e-6)

    def test_metal_mirror(self):
        from rtone.materials.metal import add_metal_material
        from rtone.materials.registry import MaterialType, register_material

        mid = register_material(MaterialType.METAL, add_metal_material((0.7, 0.7, 0.7), 0.0))
        rec = _scatter(mid, (0.0, -2.0, 0.0), (0.0, 0.0, 0.0), (0.0, 1.0, 0.0))

        assert rec["did_scatter"] == 1
        assert np.allclose(rec["direction"], [0.0, 1.0, 0.0], atol=1e-6)

    def test_dielectric_never_absorbs(self):
        from rtone.materials.dielectric import add_dielectric_material
        from rtone.materials.registry import MaterialType, register_material

        mid = register_material(MaterialType.DIELECTRIC, add_dielectric_material(1.5))
        rec = _scatter(mid, (0.3, -1.0, 0.0), (0.0, 0.0, 0.0), (0.0, 1.0, 0.0), front_face=1)

        assert rec["did_scatter"] == 1
        assert np.allclose(rec["attenuation"], 1.0)

    def test_unknown_material_absorbs(self):
        rec = _scatter(42, (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), (0.0, 0.0, 1.0))

        assert rec["did_scatter"] == 0
        assert np.allclose(rec["attenuation"], 0.0)
