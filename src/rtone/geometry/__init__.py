"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) and return a
HitRecord whose normal is oriented against the incoming ray.
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
]
