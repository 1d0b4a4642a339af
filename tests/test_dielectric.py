"""Unit tests for the dielectric material.

Tests cover:
- Total internal reflection is deterministic
- Refraction at normal incidence and Schlick-weighted reflection
- Front and back face refraction ratios
- Material storage and index of refraction validation
"""

import math

import numpy as np
import pytest
import taichi as ti

N_SAMPLES = 2000


class TestScatterDielectric:
    """Tests for scatter_dielectric."""

    def test_total_internal_reflection_always_reflects(self):
        """Inside glass at 60 degrees, 1.5 * sin(60) > 1: every sample reflects."""
        from rtone.materials.dielectric import scatter_dielectric, vec3

        directions = ti.Vector.field(3, dtype=ti.f32, shape=N_SAMPLES)
        attenuations = ti.Vector.field(3, dtype=ti.f32, shape=N_SAMPLES)
        theta = math.radians(60.0)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                incident = vec3(ti.sin(theta), -ti.cos(theta), 0.0)
                d, att, did = scatter_dielectric(1.5, incident, vec3(0.0, 1.0, 0.0), 0)
                directions[i] = d
                attenuations[i] = att

        test_kernel()
        dirs = directions.to_numpy()
        expected = [math.sin(theta), math.cos(theta), 0.0]
        assert np.allclose(dirs, expected, atol=1e-5)
        assert np.allclose(attenuations.to_numpy(), 1.0)

    def test_normal_incidence_mostly_refracts(self):
        """Schlick gives r0 = 0.04 for glass: about 96% of rays pass straight."""
        from rtone.materials.dielectric import scatter_dielectric, vec3

        directions = ti.Vector.field(3, dtype=ti.f32, shape=N_SAMPLES)
        scattered = ti.field(dtype=ti.i32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                d, att, did = scatter_dielectric(
                    1.5, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1
                )
                directions[i] = d
                scattered[i] = did

        test_kernel()
        dirs = directions.to_numpy()
        assert np.all(scattered.to_numpy() == 1)
        refracted = dirs[:, 1] < 0.0
        assert 0.9 < refracted.mean() < 0.99
        assert np.allclose(dirs[refracted], [0.0, -1.0, 0.0], atol=1e-5)
        assert np.allclose(dirs[~refracted], [0.0, 1.0, 0.0], atol=1e-5)

    def test_refraction_ratio_by_face(self):
        from rtone.materials.dielectric import refraction_ratio_for

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = refraction_ratio_for(1.5, 1)
            result[1] = refraction_ratio_for(1.5, 0)

        test_kernel()
        assert abs(result[0] - 1.0 / 1.5) < 1e-6
        assert abs(result[1] - 1.5) < 1e-6

    def test_total_internal_reflection_draws_no_random_number(self, monkeypatch):
        """Count draws through random_float: none under TIR, one per sample otherwise."""
        from rtone.materials import dielectric
        from rtone.materials.dielectric import scatter_dielectric, vec3

        draws = ti.field(dtype=ti.i32, shape=())

        @ti.func
        def counting_random() -> ti.f32:
            draws[None] += 1
            return 0.5

        # Kernels compiled below resolve random_float to the counter
        monkeypatch.setattr(dielectric, "random_float", counting_random)
        theta = math.radians(60.0)

        @ti.kernel
        def inside_kernel():
            for _ in range(N_SAMPLES):
                incident = vec3(ti.sin(theta), -ti.cos(theta), 0.0)
                d, att, did = scatter_dielectric(1.5, incident, vec3(0.0, 1.0, 0.0), 0)

        @ti.kernel
        def outside_kernel():
            for _ in range(N_SAMPLES):
                incident = vec3(ti.sin(theta), -ti.cos(theta), 0.0)
                d, att, did = scatter_dielectric(1.5, incident, vec3(0.0, 1.0, 0.0), 1)

        inside_kernel()
        assert draws[None] == 0

        outside_kernel()
        assert draws[None] == N_SAMPLES


class TestDielectricStorage:
    """Tests for dielectric material storage."""

    def test_add_and_read_back(self):
        from rtone.materials.dielectric import (
            add_dielectric_material,
            get_dielectric_ior,
            get_dielectric_material_count,
        )

        idx = add_dielectric_material(1.33)
        assert get_dielectric_material_count() == 1

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_dielectric_ior(idx)

        test_kernel()
        assert abs(result[None] - 1.33) < 1e-6

    def test_ior_below_one_allowed(self):
        from rtone.materials.dielectric import add_dielectric_material

        add_dielectric_material(1.0 / 1.33)

    @pytest.mark.parametrize("ior", [0.0, -1.5, math.inf, math.nan])
    def test_invalid_ior_rejected(self, ior):
        from rtone.materials.dielectric import (
            add_dielectric_material,
            get_dielectric_material_count,
        )

        with pytest.raises(ValueError):
            add_dielectric_material(ior)
        assert get_dielectric_material_count() == 0
