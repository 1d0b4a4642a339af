"""Unit tests for the Lambertian material.

Tests cover:
- Scattered directions stay in the normal's hemisphere
- Attenuation equals albedo and the material never absorbs
- Material storage and albedo validation
"""

import numpy as np
import pytest
import taichi as ti

N_SAMPLES = 1000


class TestScatterLambertian:
    """Tests for scatter_lambertian."""

    def test_always_scatters_with_albedo(self):
        from rtone.materials.lambertian import scatter_lambertian, vec3

        directions = ti.Vector.field(3, dtype=ti.f32, shape=N_SAMPLES)
        attenuations = ti.Vector.field(3, dtype=ti.f32, shape=N_SAMPLES)
        scattered = ti.field(dtype=ti.i32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                d, att, did = scatter_lambertian(vec3(0.8, 0.3, 0.1), vec3(0.0, 1.0, 0.0))
                directions[i] = d
                attenuations[i] = att
                scattered[i] = did

        test_kernel()
        assert np.all(scattered.to_numpy() == 1)
        assert np.allclose(attenuations.to_numpy(), [0.8, 0.3, 0.1], atol=1e-6)
        # normal + unit vector never points below the surface
        assert np.all(directions.to_numpy()[:, 1] >= -1e-6)

    def test_directions_cluster_around_normal(self):
        """The mean scattered direction lines up with the normal."""
        from rtone.materials.lambertian import scatter_lambertian, vec3

        directions = ti.Vector.field(3, dtype=ti.f32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                d, att, did = scatter_lambertian(vec3(0.5, 0.5, 0.5), vec3(0.0, 0.0, 1.0))
                directions[i] = d

        test_kernel()
        mean = directions.to_numpy().mean(axis=0)
        assert abs(mean[0]) < 0.1
        assert abs(mean[1]) < 0.1
        assert mean[2] > 0.8


class TestLambertianStorage:
    """Tests for Lambertian material storage."""

    def test_add_and_read_back(self):
        from rtone.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_albedo,
            get_lambertian_material_count,
        )

        assert add_lambertian_material((0.1, 0.2, 0.3)) == 0
        assert add_lambertian_material((0.5, 0.5, 0.5)) == 1
        assert get_lambertian_material_count() == 2

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_lambertian_albedo(0)

        test_kernel()
        assert np.allclose(result[None].to_numpy(), [0.1, 0.2, 0.3], atol=1e-6)

    @pytest.mark.parametrize(
        "albedo",
        [(1.1, 0.5, 0.5), (0.5, -0.1, 0.5), (0.5, 0.5)],
    )
    def test_invalid_albedo_rejected(self, albedo):
        from rtone.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_material_count,
        )

        with pytest.raises(ValueError):
            add_lambertian_material(albedo)
        assert get_lambertian_material_count() == 0

    def test_boundary_albedo_accepted(self):
        from rtone.materials.lambertian import add_lambertian_material

        add_lambertian_material((0.0, 1.0, 0.0))
