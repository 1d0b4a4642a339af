"""Random sampling utilities for Monte Carlo ray tracing.

Used by anti-aliasing (sub-pixel jitter), diffuse scattering and metal fuzz.
All functions draw from Taichi's per-thread generators via ``ti.random``;
the stream is fixed by the ``random_seed`` passed to ``ti.init``, so a given
seed reproduces a render exactly on the same backend.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Retry cap for rejection sampling loops
MAX_REJECTION_TRIES = 100

# Points closer to the origin than this are rejected before normalizing
MIN_SAMPLE_LENGTH_SQUARED = 1e-12


@ti.func
def random_float() -> ti.f32:
    """Uniform random number in [0, 1)."""
    return ti.random(ti.f32)


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit ball.

    Uses rejection sampling; points too close to the origin are rejected too,
    so the result can be normalized safely.

    Returns:
        A random point p with 0 < |p| < 1.
    """
    p = vec3(0.0, 0.0, 1.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            candidate = vec3(
                random_float() * 2.0 - 1.0,
                random_float() * 2.0 - 1.0,
                random_float() * 2.0 - 1.0,
            )
            len_sq = tm.dot(candidate, candidate)
            if MIN_SAMPLE_LENGTH_SQUARED < len_sq and len_sq < 1.0:
                p = candidate
                found = True
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere."""
    p = random_in_unit_sphere()
    return p / ti.sqrt(tm.dot(p, p))


@ti.func
def random_on_hemisphere(normal: vec3) -> vec3:
    """Generate a random unit vector in the hemisphere around a normal.

    Args:
        normal: The surface normal defining the hemisphere orientation.

    Returns:
        A random unit vector with non-negative dot product with normal.
    """
    on_sphere = random_unit_vector()
    result = on_sphere
    if tm.dot(on_sphere, normal) < 0.0:
        result = -on_sphere
    return result


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            candidate = vec3(
                random_float() * 2.0 - 1.0,
                random_float() * 2.0 - 1.0,
                0.0,
            )
            if candidate.x * candidate.x + candidate.y * candidate.y < 1.0:
                p = candidate
                found = True
    return p
