#!/usr/bin/env python3
"""
RetroSprite Demo Script

This script demonstrates the full sprite pipeline by:
1. Creating synthetic high-resolution test art (no external images needed)
2. Converting it for every console profile
3. Comparing the enhanced and classic pipelines
4. Converting a small animation strip with a shared palette

Run with: python examples/demo.py
"""

import sys
from pathlib import Path
import numpy as np
import time

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from retrosprite import (
    CONSOLES, RasterBuffer, process_sheet, process_single,
    render_preview, save_raster
)
from retrosprite.preprocess import preprocess


def create_test_art_orb(size: int = 256) -> RasterBuffer:
    """
    Create a shaded orb with a soft, anti-aliased edge.

    Returns:
        RasterBuffer
    """
    yy, xx = np.mgrid[0:size, 0:size].astype(np.float64)
    center = size / 2
    radius = size / 2 - 8
    dist = np.sqrt((xx - center) ** 2 + (yy - center) ** 2)

    # Light from the top left
    shade = np.clip(1.2 - np.sqrt((xx - size * 0.35) ** 2 + (yy - size * 0.35) ** 2) / size, 0, 1)

    rgba = np.zeros((size, size, 4), dtype=np.uint8)
    rgba[:, :, 0] = (60 + 180 * shade).astype(np.uint8)
    rgba[:, :, 1] = (90 + 100 * shade).astype(np.uint8)
    rgba[:, :, 2] = (200 * shade).astype(np.uint8)
    rgba[:, :, 3] = (np.clip(radius - dist, 0, 1) * 255).astype(np.uint8)
    return RasterBuffer.from_rgba(rgba)


def create_test_art_character(size: int = 256, step: int = 0) -> RasterBuffer:
    """
    Create a simple character-like test sprite.

    Args:
        size: Image size in pixels
        step: Walk cycle step (moves the legs)

    Returns:
        RasterBuffer
    """
    rgba = np.zeros((size, size, 4), dtype=np.uint8)
    cx = size // 2

    # Body (rectangle)
    rgba[size // 4:size - size // 4, cx - size // 6:cx + size // 6] = [80, 120, 180, 255]

    # Legs
    swing = (step % 2) * size // 16
    leg_top = size - size // 4
    rgba[leg_top:size - 4, cx - size // 6 + swing:cx - size // 16 + swing] = [60, 60, 90, 255]
    rgba[leg_top:size - 4, cx + size // 16 - swing:cx + size // 6 - swing] = [60, 60, 90, 255]

    # Head (circle)
    yy, xx = np.mgrid[0:size, 0:size]
    head = (xx - cx) ** 2 + (yy - size // 6) ** 2 < (size // 8) ** 2
    rgba[head] = [220, 180, 150, 255]

    # Generation noise
    rng = np.random.default_rng(step)
    noise = rng.integers(-6, 7, size=(size, size, 3))
    rgb = rgba[:, :, :3].astype(np.int64) + noise
    rgba[:, :, :3] = np.clip(rgb, 0, 255).astype(np.uint8)
    return RasterBuffer.from_rgba(rgba)


def run_demo():
    """Run the demonstration."""
    print("=" * 60)
    print("RetroSprite - Demo")
    print("=" * 60)
    print()

    # Create output directory
    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)

    test_art = [
        ("orb", create_test_art_orb(256)),
        ("character", create_test_art_character(256)),
    ]

    total_start = time.time()

    for name, art in test_art:
        print(f"\n--- Processing: {name} ---")
        print(f"Input size: {art.width}x{art.height} pixels")
        art = preprocess(art, "standard")

        for key, console in CONSOLES.items():
            size = console.sprite_size()
            pipelines = [
                ("enhanced", console.options()),
                ("dithered", console.options(quantize_strategy="oklab-bayer-dither")),
                ("classic", console.options(
                    downscale_strategy="average",
                    quantize_strategy="legacy-histogram",
                    dither_kernel="floyd-steinberg",
                    apply_outline=False,
                    apply_cleanup=False,
                )),
            ]

            print(f"\n  {console.name} ({size}, {console.color_count} colors):")
            for label, options in pipelines:
                start = time.time()
                sprite = process_single(art, size, console.palette, options)
                elapsed = time.time() - start

                base = output_dir / f"{name}_{key}_{label}"
                save_raster(sprite, base.with_suffix(".png"))
                render_preview(sprite, show_grid=True).save(f"{base}_preview.png")

                colors = len({tuple(p) for p in sprite.rgba().reshape(-1, 4).tolist() if p[3] >= 10})
                print(f"    {label:9s} {elapsed*1000:7.1f}ms, {colors} colors used")

    # Animation strip
    print("\n--- Processing: walk cycle ---")
    frames = [create_test_art_character(128, step).rgba() for step in range(4)]
    strip = RasterBuffer.from_rgba(np.concatenate(frames, axis=1))
    nes = CONSOLES["nes"]

    start = time.time()
    sprites = process_sheet(strip, 4, nes.sprite_size("32x32"), nes.palette, nes.options(), workers=4)
    elapsed = time.time() - start

    for i, sprite in enumerate(sprites):
        save_raster(sprite, output_dir / f"walk_{i:04d}.png")
    print(f"  {len(sprites)} frames in {elapsed*1000:.1f}ms")

    total_time = time.time() - total_start

    print("\n" + "=" * 60)
    print(f"Demo complete! Total time: {total_time:.2f}s")
    print(f"Output files in: {output_dir}")
    print("=" * 60)

    return 0


if __name__ == "__main__":
    run_demo()
