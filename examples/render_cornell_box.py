#!/usr/bin/env python3
"""Render the Cornell box scene.

This script renders the sample Cornell box scene with the wavefront path
tracer. It builds the scene, runs a number of progressive iterations and
saves the averaged result as a PNG.

Usage:
    python -m examples.render_cornell_box [options]

Options:
    --width WIDTH             Image width in pixels (default: 400)
    --height HEIGHT           Image height in pixels (default: 400)
    --samples SAMPLES         Number of iterations, one sample per pixel each (default: 100)
    --max-depth DEPTH         Bounce budget of every path (default: 8)
    --output OUTPUT           Output file path (default: cornell_box.png)
    --batch-size SIZE         Iterations per progress update (default: 10)
    --[no-]antialiasing       Jitter primary rays inside their pixel (default: on)
    --[no-]depth-of-field     Sample the camera lens (default: off)
    --[no-]motion-blur        Sample shutter time for moving geometry (default: off)
    --[no-]cache-first-bounce Reuse depth-0 intersections (default: off)
    --[no-]sort-by-material   Sort paths by material before shading (default: off)
    --[no-]compact-paths      Drop terminated paths after each bounce (default: on)
    --[no-]ambient-light      Light escaping paths with the sky (default: on)
    --[no-]mesh-culling       Bounding box test before mesh triangles (default: on)
    --cpu                     Force the CPU backend
    --verbose                 Log per-bounce debug output
    --quiet                   Suppress progress output

Example:
    python -m examples.render_cornell_box --width 256 --height 256 --samples 50 --depth-of-field
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_cornell_box")

# Config flags exposed on the command line, in RenderConfig field order
CONFIG_FLAGS = (
    "antialiasing",
    "depth_of_field",
    "motion_blur",
    "cache_first_bounce",
    "sort_by_material",
    "compact_paths",
    "ambient_light",
    "mesh_culling",
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    from wavetrace.core.config import RenderConfig
    from wavetrace.scene.manager import DEFAULT_MAX_DEPTH

    defaults = RenderConfig()

    parser = argparse.ArgumentParser(
        description="Render the Cornell box scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=400, help="Image width in pixels (default: 400)")
    parser.add_argument("--height", type=int, default=400, help="Image height in pixels (default: 400)")
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of iterations, one sample per pixel each (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Bounce budget of every path (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="cornell_box.png",
        help="Output file path (default: cornell_box.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Iterations per progress update (default: 10)",
    )
    for name in CONFIG_FLAGS:
        parser.add_argument(
            "--" + name.replace("_", "-"),
            action=argparse.BooleanOptionalAction,
            default=getattr(defaults, name),
        )
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument("--verbose", action="store_true", help="Log per-bounce debug output")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace):
    """Build a RenderConfig from the parsed feature flags."""
    from wavetrace.core.config import RenderConfig

    return RenderConfig(**{name: getattr(args, name) for name in CONFIG_FLAGS})


def render_cornell_box(
    width: int = 400,
    height: int = 400,
    num_samples: int = 100,
    output_path: str = "cornell_box.png",
    batch_size: int = 10,
    max_depth: int = 8,
    config=None,
    quiet: bool = False,
) -> Path:
    """Render the Cornell box scene and save to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        num_samples: Number of iterations to accumulate.
        output_path: Output file path (PNG).
        batch_size: Number of iterations between progress updates.
        max_depth: Bounce budget of every path.
        config: RenderConfig with the feature toggles. Defaults to RenderConfig().
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from wavetrace.core.progressive import ProgressiveRenderer
    from wavetrace.preview.export import save_png
    from wavetrace.scene.cornell_box import create_cornell_box_scene

    if not quiet:
        print(f"Creating Cornell box scene ({width}x{height})...")

    scene = create_cornell_box_scene(resolution=(width, height), max_depth=max_depth)
    renderer = ProgressiveRenderer(scene, config)
    logger.info("Render config: %s", renderer.session.config)

    if not quiet:
        print(f"Rendering {num_samples} samples per pixel...")

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
                flush=True,
            )

    try:
        renderer.render(
            num_samples=num_samples,
            batch_size=batch_size,
            callback=progress_callback,
        )

        if not quiet:
            print()  # Newline after progress

        output_file = save_png(renderer, output_path)
    finally:
        renderer.close()

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cpu:
        ti.init(arch=ti.cpu)
    else:
        # Use GPU if available, fall back to CPU
        ti.init(arch=ti.gpu)

    from wavetrace.core.errors import RenderError

    try:
        render_cornell_box(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            output_path=args.output,
            batch_size=args.batch_size,
            max_depth=args.max_depth,
            config=config_from_args(args),
            quiet=args.quiet,
        )
        return 0
    except (RenderError, ValueError, OSError) as e:
        logger.error("Render failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
