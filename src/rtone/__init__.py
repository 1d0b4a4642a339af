"""Progressive ray tracer built on Taichi kernels.

This package renders scenes of spheres by Monte Carlo ray tracing, with:
- Lambertian, metal (fuzzy) and dielectric (refractive) materials
- Stochastic anti-aliasing with progressive sample accumulation
- Gamma-corrected PPM and PNG output
- A set of named, progressively featured rendering stages

Subpackages:
    core: Ray and vector utilities, random sampling, integrator, progressive loop
    geometry: Sphere primitive and ray-sphere intersection
    materials: Material variants, the material registry and scatter dispatch
    scene: World storage, scene manager and rendering stages
    camera: Pinhole camera with ray generation
    output: Gamma/quantization and image file writers
"""

__version__ = "0.1.0"
