"""
RetroSprite
===========

Deterministic conversion of images into retro console pixel-art sprites.

The pipeline reduces a source image (typically AI-generated art) to a small
sprite grid and a console palette, then cleans it up the way a pixel artist
would.

Key Features:
- Mode downscaling that keeps hard edges (or a classic averaging downscale)
- Perceptual OKLAB palette mapping with optional 4x4 Bayer dithering
- Histogram quantizer with Floyd-Steinberg, Atkinson, Stucki and Sierra
  error diffusion
- Hardware bit-depth reduction (SNES 15-bit color)
- Orphan pixel cleanup and darkened silhouette outlines
- Sprite strips processed frame by frame with a shared palette
- Numba JIT compiled per-pixel kernels

Example Usage:
    from retrosprite import get_console, load_raster, process_single, save_raster

    nes = get_console("nes")
    sprite = process_single(load_raster("hero.png"), nes.sprite_size("32x32"),
                            nes.palette, nes.options())
    save_raster(sprite, "hero_nes.png")
"""

__version__ = "1.0.0"
__author__ = "RetroSprite Team"

from .errors import (
    RetroSpriteError,
    InvalidDimensionsError,
    UnknownStrategyError,
    UnknownPaletteModeError,
    UnknownConsoleError,
)
from .raster import RasterBuffer, SpriteSize
from .palette import Palette
from .color import to_oklab, distance_squared, srgb_to_oklab
from .options import (
    PaletteMode,
    DownscaleStrategy,
    QuantizeStrategy,
    DitherKernel,
    PipelineOptions,
)
from .downscale import downscale
from .quantize import quantize, nearest_color_index, reduce_bit_depth
from .legacy import HistogramQuantizer
from .postprocess import cleanup_orphans, generate_outlines
from .pipeline import process_single, process_sheet, slice_frames
from .consoles import ConsoleProfile, CONSOLES, get_console
from .preprocess import preprocess
from .imaging import load_raster, save_raster, render_preview
from .batch import BatchProcessor

__all__ = [
    "RetroSpriteError",
    "InvalidDimensionsError",
    "UnknownStrategyError",
    "UnknownPaletteModeError",
    "UnknownConsoleError",
    "RasterBuffer",
    "SpriteSize",
    "Palette",
    "to_oklab",
    "distance_squared",
    "srgb_to_oklab",
    "PaletteMode",
    "DownscaleStrategy",
    "QuantizeStrategy",
    "DitherKernel",
    "PipelineOptions",
    "downscale",
    "quantize",
    "nearest_color_index",
    "reduce_bit_depth",
    "HistogramQuantizer",
    "cleanup_orphans",
    "generate_outlines",
    "process_single",
    "process_sheet",
    "slice_frames",
    "ConsoleProfile",
    "CONSOLES",
    "get_console",
    "preprocess",
    "load_raster",
    "save_raster",
    "render_preview",
    "BatchProcessor",
]
