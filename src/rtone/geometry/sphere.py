"""Sphere primitive with robust ray-sphere intersection.

This module provides a Sphere dataclass, the HitRecord produced by an
intersection test, and the intersection function itself. Roots are computed
with the robust quadratic formula from Ray Tracing Gems to avoid catastrophic
cancellation when b^2 is nearly equal to 4ac.

A negative radius is allowed: the surface is the same, but the outward normal
(p - center) / radius points inward, which turns the sphere into a hollow
shell. Nesting one inside a glass sphere models a bubble.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtone.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Negative for an inverted surface.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The 3D intersection point. Only valid if hit == 1.
        normal: The unit surface normal, always pointing against the incoming
            ray. Only valid if hit == 1.
        front_face: 1 if the geometric outward normal already pointed against
            the ray (ray arrived from outside), 0 otherwise.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 - 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the negated linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of the discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = h + sign(h) * sqrt(discriminant) keeps the sum free of cancellation
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = h + sign_h * sqrt_d

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Fall back to the textbook formula for tangent rays
        t0 = (h - sqrt_d) / a
        t1 = (h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Substituting the ray into |P - center|^2 = radius^2 gives

        a*t^2 - 2*h*t + c = 0

    with
        a = dot(direction, direction)
        h = dot(direction, center - origin)   (half of -b)
        c = dot(center - origin, center - origin) - radius^2

    so the discriminant reduces to h^2 - a*c. The near root is taken if it
    lies strictly inside (t_min, t_max), otherwise the far root, otherwise
    the ray misses.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Lower bound of the valid parameter interval (exclusive).
        t_max: Upper bound of the valid parameter interval (exclusive).

    Returns:
        A HitRecord; check its hit field to determine if intersection occurred.
    """
    oc = sphere.center - ray_origin

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = t1
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction

            outward_normal = (hit_point - sphere.center) / sphere.radius

            # Orient the normal against the ray
            if tm.dot(ray_direction, outward_normal) > 0.0:
                is_front_face = 0
                hit_normal = -outward_normal
            else:
                is_front_face = 1
                hit_normal = outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius."""
    return Sphere(center=center, radius=radius)
