"""Unit tests for the SceneManager.

Tests cover:
- Material registration (Lambertian, Metal, Dielectric)
- Material type tracking and lookup
- Sphere addition with materials
- Convenience methods (add_*_sphere)
- Scene serialization (to_config, from_config)
- Scene clearing
- Kernel-side material lookup and world intersection
"""

import pytest
import taichi as ti


@pytest.fixture
def fresh_scene():
    """Create a fresh SceneManager for each test."""
    from rtone.scene.manager import SceneManager

    scene = SceneManager()
    yield scene
    scene.clear()


class TestMaterialRegistration:
    """Tests for material registration."""

    def test_ids_are_shared_across_types(self, fresh_scene):
        assert fresh_scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3)) == 0
        assert fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3) == 1
        assert fresh_scene.add_dielectric_material(ior=1.5) == 2
        assert fresh_scene.add_lambertian_material(albedo=(0.1, 0.1, 0.1)) == 3
        assert fresh_scene.get_material_count() == 4

    def test_material_validation(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_lambertian_material(albedo=(1.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            fresh_scene.add_metal_material(albedo=(0.5, 0.5))
        with pytest.raises(ValueError):
            fresh_scene.add_dielectric_material(ior=0.0)
        assert fresh_scene.get_material_count() == 0

    def test_get_material_info(self, fresh_scene):
        from rtone.materials.registry import MaterialType

        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=3.0)

        info = fresh_scene.get_material_info(1)
        assert info is not None
        assert info.material_id == 1
        assert info.material_type == MaterialType.METAL
        assert info.type_index == 0
        assert info.params["albedo"] == (0.8, 0.6, 0.2)
        # Fuzz is stored clamped
        assert info.params["fuzz"] == 1.0

        assert fresh_scene.get_material_type_python(0) == MaterialType.LAMBERTIAN
        assert fresh_scene.get_material_info(5) is None
        assert fresh_scene.get_material_type_python(-1) is None

    def test_material_lookup_in_kernel(self, fresh_scene):
        from rtone.materials.registry import (
            MaterialType,
            get_material_type,
            get_material_type_index,
        )

        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))  # id=0, lambertian[0]
        fresh_scene.add_metal_material(albedo=(0.8, 0.8, 0.8))  # id=1, metal[0]
        fresh_scene.add_lambertian_material(albedo=(0.2, 0.2, 0.8))  # id=2, lambertian[1]
        fresh_scene.add_dielectric_material(ior=1.5)  # id=3, dielectric[0]

        types = ti.field(dtype=ti.i32, shape=5)
        indices = ti.field(dtype=ti.i32, shape=5)

        @ti.kernel
        def test_kernel():
            for i in range(5):
                # Last lookup uses an invalid id
                mid = i if i < 4 else 99
                types[i] = get_material_type(mid)
                indices[i] = get_material_type_index(mid)

        test_kernel()

        assert types.to_numpy().tolist() == [
            int(MaterialType.LAMBERTIAN),
            int(MaterialType.METAL),
            int(MaterialType.LAMBERTIAN),
            int(MaterialType.DIELECTRIC),
            -1,
        ]
        assert indices.to_numpy().tolist() == [0, 0, 1, 0, -1]


class TestSphereAddition:
    """Tests for adding spheres with materials."""

    def test_add_sphere_with_material(self, fresh_scene):
        mat_id = fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        assert fresh_scene.add_sphere((0, 0, -1), 0.5, mat_id) == 0
        assert fresh_scene.add_sphere((0, -100.5, -1), 100, mat_id) == 1
        assert fresh_scene.get_sphere_count() == 2
        assert fresh_scene.spheres[1].center == (0.0, -100.5, -1.0)

    @pytest.mark.parametrize("material_id", [-1, 1, 50])
    def test_add_sphere_invalid_material(self, fresh_scene, material_id):
        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="Invalid material_id"):
            fresh_scene.add_sphere((0, 0, -1), 0.5, material_id)
        assert fresh_scene.get_sphere_count() == 0

    def test_convenience_methods(self, fresh_scene):
        from rtone.materials.registry import MaterialType

        assert fresh_scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.1, 0.2, 0.5)) == (0, 0)
        assert fresh_scene.add_metal_sphere((1, 0, -1), 0.5, (0.8, 0.6, 0.2), 0.0) == (1, 1)
        assert fresh_scene.add_dielectric_sphere((-1, 0, -1), 0.5, 1.5) == (2, 2)

        types = [fresh_scene.get_material_type_python(i) for i in range(3)]
        assert types == [MaterialType.LAMBERTIAN, MaterialType.METAL, MaterialType.DIELECTRIC]

    @pytest.mark.parametrize("radius", [0.0, float("inf")])
    def test_rejected_sphere_registers_no_material(self, fresh_scene, radius):
        with pytest.raises(ValueError, match="radius"):
            fresh_scene.add_lambertian_sphere((0, 0, -1), radius, (0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="radius"):
            fresh_scene.add_metal_sphere((0, 0, -1), radius, (0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="radius"):
            fresh_scene.add_dielectric_sphere((0, 0, -1), radius)

        assert fresh_scene.get_material_count() == 0
        assert fresh_scene.get_sphere_count() == 0
        assert fresh_scene.to_config().materials == []

    def test_full_world_registers_no_material(self, fresh_scene):
        from rtone.scene.world import MAX_SPHERES, num_spheres

        num_spheres[None] = MAX_SPHERES
        with pytest.raises(RuntimeError):
            fresh_scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))
        assert fresh_scene.get_material_count() == 0

    def test_shared_material(self, fresh_scene):
        """A hollow glass bubble uses one material for both of its spheres."""
        glass = fresh_scene.add_dielectric_material(1.5)
        fresh_scene.add_sphere((-1, 0, -1), 0.5, glass)
        fresh_scene.add_sphere((-1, 0, -1), -0.4, glass)

        assert fresh_scene.get_material_count() == 1
        assert fresh_scene.get_sphere_count() == 2

    def test_clear_scene(self, fresh_scene):
        fresh_scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))
        fresh_scene.add_metal_sphere((1, 0, -1), 0.5, (0.5, 0.5, 0.5))
        fresh_scene.clear()

        assert fresh_scene.get_sphere_count() == 0
        assert fresh_scene.get_material_count() == 0
        assert fresh_scene.materials == []
        assert fresh_scene.spheres == []
        # Ids start over after a clear
        assert fresh_scene.add_dielectric_material(1.5) == 0

    def test_capacity_methods(self, fresh_scene):
        from rtone.materials.registry import MAX_MATERIALS
        from rtone.scene.world import MAX_SPHERES

        assert fresh_scene.get_max_spheres() == MAX_SPHERES
        assert fresh_scene.get_max_materials() == MAX_MATERIALS

    def test_world_hit_carries_material_id(self, fresh_scene):
        from rtone.scene.world import hit_world, vec3

        fresh_scene.add_lambertian_sphere((0, 0, -3), 0.5, (0.5, 0.5, 0.5))
        fresh_scene.add_metal_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))

        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            rec = hit_world(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 0.001, 1e30)
            result[None] = rec.material_id

        test_kernel()
        assert result[None] == 1


class TestSerialization:
    """Tests for scene configuration export and import."""

    def _build(self, scene):
        ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
        metal = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        glass = scene.add_dielectric_material(ior=1.5)
        scene.add_sphere((0, -100.5, -1), 100, ground)
        scene.add_sphere((1, 0, -1), 0.5, metal)
        scene.add_sphere((-1, 0, -1), -0.4, glass)

    def test_to_config(self, fresh_scene):
        self._build(fresh_scene)
        config = fresh_scene.to_config()

        assert config.materials[0] == {"type": "lambertian", "albedo": [0.8, 0.8, 0.0]}
        assert config.materials[1]["type"] == "metal"
        assert config.materials[1]["fuzz"] == 0.3
        assert config.materials[2] == {"type": "dielectric", "ior": 1.5}
        assert config.spheres[2] == {"center": [-1.0, 0.0, -1.0], "radius": -0.4, "material_id": 2}

    def test_dict_round_trip(self, fresh_scene):
        from rtone.scene.manager import SceneManager

        self._build(fresh_scene)
        data = fresh_scene.to_dict()

        other = SceneManager()
        other.from_dict(data)

        assert other.to_dict() == data
        assert other.get_sphere_count() == 3
        assert other.get_material_count() == 3

    def test_from_config_invalid_material_type(self, fresh_scene):
        from rtone.scene.manager import SceneConfig

        config = SceneConfig(materials=[{"type": "phosphorescent"}])
        with pytest.raises(ValueError, match="Unknown material type"):
            fresh_scene.from_config(config)
