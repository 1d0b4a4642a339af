"""Named rendering stages, from a plain test pattern to the full cover scene.

Each stage builds its world in memory with a SceneManager and returns the
camera and render settings to use. The stages add one feature at a time:

    first-ppm          256x256 color ramp, no ray tracing
    gradient           empty world, sky gradient only
    ray-sphere         one sphere, flat silhouette
    ray-sphere-normal  one sphere, shaded by surface normal
    diffuse            Lambertian sphere on a ground sphere
    metal              diffuse center flanked by two fuzzy metal spheres
    dielectric         hollow glass sphere, diffuse center, metal sphere
    cover              many random small spheres and three large ones

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, random_seed=0)
    >>> from rtone.scene.stages import get_stage, render_stage
    >>> from rtone.output.export import save_image
    >>>
    >>> stage = get_stage("diffuse")
    >>> image = render_stage(stage, samples=10)
    >>> save_image(image, stage.output)
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, replace

import numpy as np
import numpy.typing as npt

from rtone.camera.pinhole import PinholeCamera, setup_camera
from rtone.core.integrator import MAX_DEPTH, ShadingMode
from rtone.core.progressive import ProgressCallback, ProgressiveRenderer
from rtone.scene.manager import SceneManager

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_WIDTH = 400
DEFAULT_ASPECT_RATIO = 16.0 / 9.0

GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0


@dataclass
class RenderSettings:
    """Image size and sampling parameters for a render.

    Attributes:
        image_width: Image width in pixels.
        aspect_ratio: Width divided by height.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Maximum number of ray segments per path.
        shading: How primary ray hits are colored.

    Raises:
        ValueError: If any setting is out of range.
    """

    image_width: int = DEFAULT_IMAGE_WIDTH
    aspect_ratio: float = DEFAULT_ASPECT_RATIO
    samples_per_pixel: int = 1
    max_depth: int = MAX_DEPTH
    shading: ShadingMode = ShadingMode.MATERIAL

    def __post_init__(self) -> None:
        if self.image_width < 1:
            raise ValueError(f"image_width must be at least 1, got {self.image_width}")
        if not self.aspect_ratio > 0.0 or not math.isfinite(self.aspect_ratio):
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")

    @property
    def image_height(self) -> int:
        """Image height derived from width and aspect ratio, at least 1."""
        return max(1, int(self.image_width / self.aspect_ratio))


# A scene builder fills the world and returns the camera and settings to use
SceneBuilder = Callable[[np.random.Generator], tuple[SceneManager, PinholeCamera, RenderSettings]]
PatternBuilder = Callable[[], npt.NDArray[np.uint8]]


@dataclass(frozen=True)
class Stage:
    """A named scene setup selectable from the command line.

    Exactly one of build (a traced scene) or pattern (an image computed
    directly, without tracing) is set.
    """

    name: str
    description: str
    output: str
    build: SceneBuilder | None = None
    pattern: PatternBuilder | None = None


# =============================================================================
# Scene Builders
# =============================================================================


def _default_camera() -> PinholeCamera:
    return PinholeCamera(aspect_ratio=DEFAULT_ASPECT_RATIO)


def first_ppm_pattern() -> npt.NDArray[np.uint8]:
    """256x256 ramp: red grows left to right, green grows top to bottom."""
    ramp = np.arange(256, dtype=np.uint8)
    image = np.zeros((256, 256, 3), dtype=np.uint8)
    image[:, :, 0] = ramp[np.newaxis, :]
    image[:, :, 1] = ramp[:, np.newaxis]
    return image


def create_gradient_scene(rng: np.random.Generator):
    scene = SceneManager()
    return scene, _default_camera(), RenderSettings()


def create_ray_sphere_scene(rng: np.random.Generator):
    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5))
    return scene, _default_camera(), RenderSettings(shading=ShadingMode.FLAT)


def create_ray_sphere_normal_scene(rng: np.random.Generator):
    scene, camera, _ = create_ray_sphere_scene(rng)
    return scene, camera, RenderSettings(shading=ShadingMode.NORMAL)


def create_diffuse_scene(rng: np.random.Generator):
    """A grey Lambertian sphere resting on a huge grey ground sphere."""
    scene = SceneManager()
    grey = scene.add_lambertian_material((0.5, 0.5, 0.5))
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, grey)
    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, grey)
    return scene, _default_camera(), RenderSettings(samples_per_pixel=100, max_depth=50)


def create_metal_scene(rng: np.random.Generator):
    """Diffuse center sphere between a lightly and a heavily fuzzed metal."""
    scene = SceneManager()
    scene.add_lambertian_sphere(GROUND_CENTER, GROUND_RADIUS, (0.8, 0.8, 0.0))
    scene.add_lambertian_sphere((0.0, 0.0, -1.2), 0.5, (0.1, 0.2, 0.5))
    scene.add_metal_sphere((-1.0, 0.0, -1.0), 0.5, (0.8, 0.8, 0.8), fuzz=0.3)
    scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, (0.8, 0.6, 0.2), fuzz=1.0)
    return scene, _default_camera(), RenderSettings(samples_per_pixel=100, max_depth=50)


def create_dielectric_scene(rng: np.random.Generator):
    """A hollow glass sphere: the inner negative radius flips its normals."""
    scene = SceneManager()
    scene.add_lambertian_sphere(GROUND_CENTER, GROUND_RADIUS, (0.8, 0.8, 0.0))
    scene.add_lambertian_sphere((0.0, 0.0, -1.2), 0.5, (0.1, 0.2, 0.5))

    glass = scene.add_dielectric_material(1.5)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), -0.4, glass)

    scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, (0.8, 0.6, 0.2), fuzz=0.0)
    return scene, _default_camera(), RenderSettings(samples_per_pixel=100, max_depth=50)


def create_cover_scene(rng: np.random.Generator):
    """The random spheres scene.

    A grid of small spheres with random materials (80% diffuse, 15% metal,
    5% glass) around three large spheres, viewed from a raised position.
    """
    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, (0.5, 0.5, 0.5))

    glass = scene.add_dielectric_material(1.5)
    keep_clear = np.array([4.0, 0.2, 0.0])

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random()])

            if np.linalg.norm(center - keep_clear) <= 0.9:
                continue

            if choose_mat < 0.8:
                albedo = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(tuple(center), 0.2, tuple(albedo))
            elif choose_mat < 0.95:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = rng.uniform(0.0, 0.5)
                scene.add_metal_sphere(tuple(center), 0.2, tuple(albedo), fuzz)
            else:
                scene.add_sphere(tuple(center), 0.2, glass)

    scene.add_sphere((0.0, 1.0, 0.0), 1.0, glass)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), fuzz=0.0)

    camera = PinholeCamera(
        aspect_ratio=DEFAULT_ASPECT_RATIO,
        vfov=20.0,
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
    )
    return scene, camera, RenderSettings(samples_per_pixel=50, max_depth=50)


# =============================================================================
# Stage Registry
# =============================================================================

STAGES: dict[str, Stage] = {
    stage.name: stage
    for stage in (
        Stage("first-ppm", "256x256 red/green ramp", "image.ppm", pattern=first_ppm_pattern),
        Stage("gradient", "White to blue sky", "gradient.ppm", build=create_gradient_scene),
        Stage("ray-sphere", "Flat sphere", "ray_sphere.ppm", build=create_ray_sphere_scene),
        Stage(
            "ray-sphere-normal",
            "Sphere colored by surface normal",
            "ray_sphere_normal.ppm",
            build=create_ray_sphere_normal_scene,
        ),
        Stage("diffuse", "Diffuse sphere on the ground", "diffuse.ppm", build=create_diffuse_scene),
        Stage("metal", "Diffuse and fuzzy metal spheres", "metal.ppm", build=create_metal_scene),
        Stage(
            "dielectric",
            "Hollow glass, diffuse and metal spheres",
            "dielectric.ppm",
            build=create_dielectric_scene,
        ),
        Stage("cover", "Random spheres cover scene", "cover.ppm", build=create_cover_scene),
    )
}


def list_stages() -> list[Stage]:
    """Get all stages, in order of increasing features."""
    return list(STAGES.values())


def get_stage(name: str) -> Stage:
    """Look up a stage by name.

    Raises:
        KeyError: If no stage has this name.
    """
    try:
        return STAGES[name]
    except KeyError:
        known = ", ".join(STAGES)
        raise KeyError(f"Unknown stage '{name}', expected one of: {known}") from None


def render_stage(
    stage: Stage,
    *,
    samples: int | None = None,
    width: int | None = None,
    seed: int = 0,
    callback: ProgressCallback | None = None,
    batch_size: int = 1,
) -> npt.NDArray[np.uint8]:
    """Build a stage's scene and render it to 8-bit pixels.

    Args:
        stage: The stage to render.
        samples: Override for the stage's samples per pixel.
        width: Override for the stage's image width; height follows.
        seed: Seed for scene generation (the random spheres stage). Sampling
            randomness is seeded separately by ti.init(random_seed=...).
        callback: Optional progress callback, see ProgressiveRenderer.render.
        batch_size: Samples per pixel rendered between callbacks.

    Returns:
        Image array of shape (height, width, 3) with dtype uint8, rows top
        to bottom.

    Raises:
        ValueError: If an override is out of range.
    """
    if stage.pattern is not None:
        logger.info("Stage %s: computing pattern", stage.name)
        return stage.pattern()

    scene, camera, settings = stage.build(np.random.default_rng(seed))
    if samples is not None:
        settings = replace(settings, samples_per_pixel=samples)
    if width is not None:
        settings = replace(settings, image_width=width)

    # Match the viewport to the rounded pixel grid
    camera = replace(camera, aspect_ratio=settings.image_width / settings.image_height)
    setup_camera(camera)

    logger.info(
        "Stage %s: %d spheres, %d materials, %dx%d at %d spp",
        stage.name,
        scene.get_sphere_count(),
        scene.get_material_count(),
        settings.image_width,
        settings.image_height,
        settings.samples_per_pixel,
    )

    renderer = ProgressiveRenderer(
        settings.image_width,
        settings.image_height,
        max_depth=settings.max_depth,
        shading=settings.shading,
    )
    renderer.render(settings.samples_per_pixel, batch_size=batch_size, callback=callback)
    return renderer.get_image_uint8()
