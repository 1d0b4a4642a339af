"""Ray data structure and vector utilities.

This module provides the Ray dataclass and the vector operations the rest of
the tracer is built on. ``tm.vec3`` plays the role of Point3 and Color as well
as Vector3: arithmetic, negation, scaling and component-wise multiplication
are the Taichi vector operators, the helpers below add the geometric ones.

All functions are Taichi functions and run inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Component magnitude below which a vector counts as degenerate
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A half-line with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; call sites that need a unit direction normalize it.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    A zero-length input is a precondition violation. The assertion is
    checked when Taichi is initialized with ``debug=True``; none of the
    renderer's call sites can produce a zero vector here.

    Args:
        v: The input vector (must have non-zero length).

    Returns:
        A unit vector in the same direction as v.
    """
    len_sq = tm.dot(v, v)
    assert len_sq > 0.0, "unit_vector() of a zero-length vector"
    return v / ti.sqrt(len_sq)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is close to zero in every component.

    Used to detect degenerate scatter directions.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are below NEAR_ZERO_EPSILON in magnitude, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect a vector about a normal.

    Computes v - 2 * dot(v, n) * n. The normal should be unit length.

    Args:
        v: The incoming direction (pointing toward the surface).
        n: The surface normal.

    Returns:
        The mirrored direction.
    """
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, refraction_ratio: ti.f32) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The refracted ray is split into the part perpendicular to the normal,
    ratio * (uv + cos_theta * n), and the part parallel to it,
    -sqrt(|1 - |perp|^2|) * n. Callers must rule out total internal
    reflection first.

    Args:
        uv: The incoming direction (unit length).
        n: The surface normal (unit length, facing against uv).
        refraction_ratio: Ratio of refractive indices eta / eta'.

    Returns:
        The refracted direction.
    """
    cos_theta = tm.min(tm.dot(-uv, n), 1.0)
    r_out_perp = refraction_ratio * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - tm.dot(r_out_perp, r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def reflectance(cosine: ti.f32, refraction_ratio: ti.f32) -> ti.f32:
    """Schlick's approximation of Fresnel reflectance.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        refraction_ratio: Ratio of refractive indices.

    Returns:
        The approximate probability of reflection, in [0, 1].
    """
    r0 = (1.0 - refraction_ratio) / (1.0 + refraction_ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
