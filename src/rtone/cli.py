"""Command line entry point: render one of the named stages to a file.

Usage:
    rtone STAGE [options]
    rtone --list

Options:
    --output PATH       Output file, .ppm or .png (default: the stage's file)
    --samples N         Samples per pixel (default: the stage's setting)
    --width N           Image width in pixels (default: the stage's setting)
    --seed N            Seed for sampling and scene generation (default: 0)
    --arch {cpu,gpu}    Taichi backend (default: gpu, falling back to cpu)
    --batch-size N      Samples per progress update (default: 10)
    --quiet             Suppress progress output
    --verbose           Log at INFO level

Example:
    rtone diffuse --samples 20 --output diffuse.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="rtone",
        description="Render a named ray tracing stage to a PPM or PNG file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "stage",
        nargs="?",
        help="Name of the stage to render (see --list)",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List the available stages and exit",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output file path, .ppm or .png (default: the stage's file)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=None,
        help="Number of samples per pixel (default: the stage's setting)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Image width in pixels (default: the stage's setting)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed for sampling and scene generation (default: 0)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="gpu",
        help="Taichi backend; gpu falls back to cpu when unavailable (default: gpu)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at INFO level",
    )

    args = parser.parse_args(argv)
    if args.stage is None and not args.list:
        parser.error("a stage name is required unless --list is given")
    return args


def init_taichi(arch: str = "gpu", seed: int = 0, quiet: bool = False) -> None:
    """Initialize Taichi, falling back to the CPU backend if the GPU fails."""
    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu, random_seed=seed)
            if not quiet:
                print("Using GPU backend", file=sys.stderr)
            return
        except Exception:
            logger.warning("GPU backend unavailable, falling back to CPU")

    ti.init(arch=ti.cpu, random_seed=seed)
    if not quiet:
        print("Using CPU backend", file=sys.stderr)


def run(args: argparse.Namespace) -> int:
    """Render the selected stage. Taichi must already be initialized.

    Returns:
        Process exit code: 0 on success, 1 if an error was reported.
    """
    # Lazy imports to allow Taichi initialization first
    from rtone.output.export import save_image
    from rtone.scene.stages import get_stage, list_stages, render_stage

    if args.list:
        for stage in list_stages():
            print(f"{stage.name:<20} {stage.description}")
        return 0

    quiet = args.quiet
    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                file=sys.stderr,
                flush=True,
            )

    try:
        stage = get_stage(args.stage)
        output_file = Path(args.output if args.output is not None else stage.output)

        if not quiet:
            print(f"Rendering stage '{stage.name}': {stage.description}", file=sys.stderr)

        image = render_stage(
            stage,
            samples=args.samples,
            width=args.width,
            seed=args.seed,
            callback=progress_callback,
            batch_size=args.batch_size,
        )
        if not quiet and stage.pattern is None:
            print(file=sys.stderr)  # Newline after progress

        save_image(image, output_file)
    except KeyError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        return 1
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not quiet:
        total_time = time.time() - start_time
        print(f"Saved to: {output_file.absolute()}", file=sys.stderr)
        print(f"Total time: {total_time:.2f}s", file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    init_taichi(args.arch, args.seed, quiet=args.quiet)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
