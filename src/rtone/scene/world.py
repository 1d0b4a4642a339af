"""World storage and scene-level intersection testing.

The world is the scene's hittable list: an ordered collection of spheres,
each tagged with the id of the material it shares with any number of other
spheres. ``hit_world`` tests a ray against every sphere and returns the
closest hit together with its material id.

Spheres are stored in Taichi fields (structure of arrays) so kernels can read
them directly. There is no acceleration structure; the closest-so-far sweep
over all spheres is the only scene-wide query.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtone.scene.world import add_sphere, clear_world, hit_world
    >>> clear_world()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use hit_world within a Taichi kernel
"""

import math

import taichi as ti
import taichi.math as tm

from rtone.geometry.sphere import HitRecord, Sphere, hit_sphere

vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-world intersection with material information.

    Attributes:
        hit: Whether the ray intersected any sphere (1 if hit, 0 if miss).
        t: The ray parameter of the closest intersection.
        point: The closest intersection point.
        normal: The unit surface normal, oriented against the incoming ray.
        front_face: 1 if the ray struck the outside of the surface, 0 otherwise.
        material_id: The material id of the struck sphere, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# Maximum number of spheres supported in the world
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_world() -> None:
    """Remove all spheres from the world.

    Resets the sphere count to zero; stale field data is overwritten as
    new spheres are added.
    """
    num_spheres[None] = 0


def validate_radius(radius: float) -> None:
    """Reject a zero or non-finite sphere radius.

    Raises:
        ValueError: If radius is zero or not finite.
    """
    if radius == 0.0 or not math.isfinite(radius):
        raise ValueError(f"Sphere radius must be finite and non-zero, got {radius}")


def add_sphere(center, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the world.

    Args:
        center: The center point of the sphere, as a vec3 or (x, y, z).
        radius: The radius of the sphere. Negative values make a hollow
            (inverted) surface; zero is rejected.
        material_id: The material id to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If radius is zero or not finite.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    validate_radius(radius)

    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = [center[0], center[1], center[2]]
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the world."""
    return int(num_spheres[None])


@ti.func
def _to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    """Attach a material id to a primitive hit record."""
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def hit_world(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the closest intersection of a ray with the world.

    Tests every sphere, shrinking the upper bound of the parameter interval
    to the nearest t found so far, so a farther sphere can never replace a
    nearer one.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Lower bound of the valid parameter interval (exclusive).
        t_max: Upper bound of the valid parameter interval (exclusive).

    Returns:
        The closest SceneHitRecord, or a miss record if nothing was hit.
    """
    closest_t = t_max
    result = _make_miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _to_scene_hit_record(rec, sphere_material_ids[i])

    return result
