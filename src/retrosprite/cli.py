"""
Command-Line Interface for RetroSprite

Usage:
    retrosprite input.png -o sprite.png
    retrosprite input.png --console gameboy --size 16x16 --quantize oklab-bayer-dither
    retrosprite walk.png --frames 4 --output-dir walk/

"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
import time

from . import __version__
from .batch import BatchProcessor
from .consoles import CONSOLES, DEFAULT_CONSOLE
from .options import DitherKernel, DownscaleStrategy, QuantizeStrategy
from .preprocess import PRESETS


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="retrosprite",
        description="RetroSprite - Convert images into retro console pixel-art sprites",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  retrosprite hero.png -o hero_nes.png
      Convert hero.png to a 32x32 NES sprite

  retrosprite hero.png -c gameboy -s 16x16 --quantize oklab-bayer-dither
      Game Boy sprite with ordered dithering

  retrosprite hero.png --downscale average --quantize legacy-histogram --no-outline --no-cleanup
      Classic pipeline (blurry downscale, histogram quantizer)

  retrosprite walk.png --frames 4 --output-dir walk/
      Split a horizontal strip into 4 frames and convert each

  retrosprite --batch art/ --output-dir sprites/ -c snes
      Batch process all PNGs in the art directory

Quantizers:
  oklab-nearest      - Perceptual nearest color (default)
  oklab-bayer-dither - Nearest color with 4x4 ordered dithering
  legacy-histogram   - Histogram-based, optional error diffusion (--dither-kernel)
        """
    )

    # Input
    parser.add_argument(
        "input",
        nargs="?",
        help="Input image file (PNG recommended)"
    )

    # Output
    parser.add_argument(
        "-o", "--output",
        help="Output file path (default: <input>_pixel.png); output directory with --frames"
    )

    # Target
    parser.add_argument(
        "-c", "--console",
        choices=list(CONSOLES),
        default=DEFAULT_CONSOLE,
        help=f"Target console (default: {DEFAULT_CONSOLE})"
    )

    parser.add_argument(
        "-s", "--size",
        help="Sprite size, e.g. 16x16 (default: console default)"
    )

    # Pipeline settings
    parser.add_argument(
        "--downscale",
        choices=[s.value for s in DownscaleStrategy],
        default=DownscaleStrategy.MODE.value,
        help="Downscale strategy (default: mode)"
    )

    parser.add_argument(
        "--quantize",
        choices=[s.value for s in QuantizeStrategy],
        default=QuantizeStrategy.OKLAB_NEAREST.value,
        help="Quantization strategy (default: oklab-nearest)"
    )

    parser.add_argument(
        "--dither-kernel",
        choices=[k.value for k in DitherKernel],
        default=DitherKernel.NONE.value,
        help="Error-diffusion kernel for legacy-histogram (default: none)"
    )

    parser.add_argument(
        "--dither-strength",
        type=float,
        default=0.3,
        help="Ordered dither strength (default: 0.3)"
    )

    parser.add_argument(
        "--no-outline",
        action="store_true",
        help="Don't darken the sprite outline"
    )

    parser.add_argument(
        "--no-cleanup",
        action="store_true",
        help="Don't remove orphan pixels"
    )

    parser.add_argument(
        "--darken",
        type=float,
        default=0.35,
        help="Outline darken factor in (0, 1) (default: 0.35)"
    )

    parser.add_argument(
        "--cleanup-threshold",
        type=int,
        default=3,
        help="Per-channel similarity threshold for orphan cleanup (default: 3)"
    )

    parser.add_argument(
        "--preprocess",
        choices=list(PRESETS),
        default="none",
        help="Pre-processing preset for the source image (default: none)"
    )

    # Sprite sheet
    parser.add_argument(
        "--frames",
        type=int,
        default=1,
        help="Treat input as a horizontal strip of N frames"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Threads used for sprite sheet frames (default: 1)"
    )

    # Batch processing
    parser.add_argument(
        "--batch",
        help="Batch process directory of images"
    )

    parser.add_argument(
        "--output-dir",
        help="Output directory for batch and sprite sheet processing"
    )

    parser.add_argument(
        "--pattern",
        default="*.png",
        help="File pattern for batch processing (default: *.png)"
    )

    # Preview
    parser.add_argument(
        "--preview-scale",
        type=int,
        help="Save an enlarged preview at this scale instead of the raw sprite"
    )

    parser.add_argument(
        "--grid",
        action="store_true",
        help="Draw a pixel grid on previews (scale >= 4)"
    )

    # Misc
    parser.add_argument(
        "--list-consoles",
        action="store_true",
        help="List available consoles and sprite sizes"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def pipeline_overrides(args) -> Dict[str, Any]:
    """Translate CLI flags into PipelineOptions fields."""
    return dict(
        downscale_strategy=args.downscale,
        quantize_strategy=args.quantize,
        dither_kernel=args.dither_kernel,
        dither_strength=args.dither_strength,
        apply_outline=not args.no_outline,
        apply_cleanup=not args.no_cleanup,
        outline_darken_factor=args.darken,
        cleanup_color_threshold=args.cleanup_threshold,
    )


def create_processor(args) -> BatchProcessor:
    """Build a BatchProcessor from parsed arguments."""
    return BatchProcessor(
        args.console,
        sprite_size=args.size,
        preprocess_preset=args.preprocess,
        preview_scale=args.preview_scale,
        show_grid=args.grid,
        workers=args.workers,
        **pipeline_overrides(args)
    )


def list_consoles() -> int:
    """Print the console table."""
    for key, profile in CONSOLES.items():
        sizes = ", ".join(profile.sprite_sizes)
        print(f"{key:8s} {profile.name}")
        print(f"         mode: {profile.palette_mode.value}, colors: {profile.color_count}")
        print(f"         sizes: {sizes} (default {profile.default_size})")
    return 0


def process_single(args) -> int:
    """Process a single image file."""
    if not args.input:
        print("Error: No input file specified", file=sys.stderr)
        return 1

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = input_path.with_name(f"{input_path.stem}_pixel.png")

    start_time = time.time()

    try:
        processor = create_processor(args)

        if args.verbose:
            print(f"Loading: {input_path}")
            print(f"Console: {processor.console.name}, sprite size: {processor.sprite_size}")
            print(f"Pipeline: {processor.options.downscale_strategy.value} downscale, "
                  f"{processor.options.quantize_strategy.value} quantize")

        processor.process_image(input_path, output_path)

        elapsed = time.time() - start_time
        if args.verbose:
            print(f"Exported: {output_path}")
            print(f"\nCompleted in {elapsed:.2f}s")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def process_batch(args) -> int:
    """Process a batch of images."""
    batch_dir = Path(args.batch)
    if not batch_dir.is_dir():
        print(f"Error: Batch directory not found: {batch_dir}", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir) if args.output_dir else batch_dir / "output"

    start_time = time.time()

    try:
        processor = create_processor(args)
        outputs = processor.process_directory(batch_dir, output_dir, pattern=args.pattern)

        elapsed = time.time() - start_time
        print(f"Processed {len(outputs)} files in {elapsed:.2f}s")
        print(f"Output directory: {output_dir}")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def process_sprite_sheet(args) -> int:
    """Process a sprite sheet."""
    if not args.input:
        print("Error: No input file specified", file=sys.stderr)
        return 1

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    if args.output and args.output_dir:
        print("Error: Use either -o/--output or --output-dir with --frames", file=sys.stderr)
        return 1

    if args.output_dir:
        output_dir = Path(args.output_dir)
    elif args.output:
        output_dir = Path(args.output)
    else:
        output_dir = input_path.parent / "frames"

    start_time = time.time()

    try:
        processor = create_processor(args)
        outputs = processor.process_sprite_sheet(input_path, args.frames, output_dir)

        elapsed = time.time() - start_time
        print(f"Processed {len(outputs)} frames in {elapsed:.2f}s")
        print(f"Output directory: {output_dir}")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Determine mode
    if args.list_consoles:
        return list_consoles()
    elif args.batch:
        return process_batch(args)
    elif args.frames != 1:
        return process_sprite_sheet(args)
    else:
        return process_single(args)


if __name__ == "__main__":
    sys.exit(main())
