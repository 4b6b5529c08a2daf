"""
Palette Quantization Module

Maps arbitrary colors onto a console palette:
1. OKLAB nearest - Perceptually closest palette entry
2. OKLAB + Bayer - Same search with a 4x4 ordered-dither offset on lightness
3. Legacy histogram - sRGB matching with optional error diffusion (see legacy.py)
4. Bit-depth reduction - Per-channel rounding for palettes defined by
   hardware bit depth instead of a color list (e.g. SNES 15-bit)

Pixels with alpha < 10 become (0, 0, 0, 0) in every mode, without a palette
lookup, so garbage RGB hidden under transparency never reaches the output.
"""

from typing import Optional
import numpy as np
from numba import njit

from .color import to_oklab, distance_squared
from .errors import UnknownStrategyError, UnknownPaletteModeError
from .legacy import HistogramQuantizer
from .options import PipelineOptions, PaletteMode, QuantizeStrategy
from .palette import Palette
from .raster import RasterBuffer, ALPHA_CUTOFF

# Standard 4x4 Bayer permutation
BAYER_ORDER = np.array([
    [0, 8, 2, 10],
    [12, 4, 14, 6],
    [3, 11, 1, 9],
    [15, 7, 13, 5],
], dtype=np.int64)

# Thresholds normalized to [-0.5, +0.5)
BAYER_4X4 = BAYER_ORDER / 16.0 - 0.5


@njit(cache=True, nogil=True)
def _nearest_index(lab, palette_lab: np.ndarray) -> int:
    """Linear scan for the closest palette entry; lowest index wins ties."""
    best_idx = 0
    best_dist = np.inf
    for j in range(palette_lab.shape[0]):
        d = distance_squared(lab, palette_lab[j])
        if d < best_dist:
            best_dist = d
            best_idx = j
    return best_idx


@njit(cache=True, nogil=True)
def _quantize_oklab_kernel(
    src: np.ndarray,
    dst: np.ndarray,
    palette_rgb: np.ndarray,
    palette_lab: np.ndarray,
    thresholds: np.ndarray,
    strength: float
):
    """
    Nearest-in-OKLAB quantization into dst.

    The pixel's lightness is offset by thresholds[y % 4, x % 4] * strength
    before the search. Only L is perturbed, so dithering never shifts hue.
    """
    h, w = src.shape[0], src.shape[1]
    for y in range(h):
        for x in range(w):
            a = src[y, x, 3]
            if a < ALPHA_CUTOFF:
                continue  # dst is already (0, 0, 0, 0)

            lab = to_oklab(src[y, x, 0], src[y, x, 1], src[y, x, 2])
            if strength != 0.0:
                lab = (lab[0] + thresholds[y % 4, x % 4] * strength, lab[1], lab[2])

            idx = _nearest_index(lab, palette_lab)
            dst[y, x, 0] = palette_rgb[idx, 0]
            dst[y, x, 1] = palette_rgb[idx, 1]
            dst[y, x, 2] = palette_rgb[idx, 2]
            dst[y, x, 3] = a


def nearest_color_index(r: int, g: int, b: int, palette: Palette) -> int:
    """
    Index of the palette entry perceptually closest to an sRGB color.

    Args:
        r, g, b: Channel values (0-255)
        palette: Target palette

    Returns:
        Palette index (lowest index on exact ties)
    """
    return int(_nearest_index(to_oklab(r, g, b), palette.oklab))


def quantize_oklab(src: RasterBuffer, palette: Palette) -> RasterBuffer:
    """
    Map every visible pixel to its nearest palette color in OKLAB.

    Args:
        src: Source raster
        palette: Target palette

    Returns:
        New RasterBuffer with palette RGB and the original alpha
    """
    return quantize_oklab_bayer(src, palette, strength=0.0)


def quantize_oklab_bayer(
    src: RasterBuffer,
    palette: Palette,
    strength: float = 0.3
) -> RasterBuffer:
    """
    OKLAB nearest search with 4x4 ordered dithering on lightness.

    Args:
        src: Source raster
        palette: Target palette
        strength: Scale of the Bayer offset added to L (0 disables dithering)

    Returns:
        New RasterBuffer with palette RGB and the original alpha
    """
    dst = np.zeros((src.height, src.width, 4), dtype=np.uint8)
    _quantize_oklab_kernel(
        src.rgba(),
        dst,
        palette.colors,
        palette.oklab,
        BAYER_4X4,
        float(strength)
    )
    return RasterBuffer.from_rgba(dst)


def reduce_bit_depth(src: RasterBuffer, bits: int = 5) -> RasterBuffer:
    """
    Round each RGB channel to the nearest value representable in `bits` bits.

    With L = 2**bits - 1 levels a channel c becomes
    round(round(c * L / 255) * 255 / L), so 5 bits maps 0..255 onto the 32
    values a 15-bit console can show. Alpha is kept.

    Args:
        src: Source raster
        bits: Bits per channel (1-8)

    Returns:
        New RasterBuffer
    """
    if not 1 <= bits <= 8:
        raise ValueError(f"bits must be in 1..8, got {bits}")

    levels = (1 << bits) - 1
    rgba = src.rgba()
    out = rgba.copy()

    channels = rgba[:, :, :3].astype(np.float64)
    steps = np.floor(channels * levels / 255.0 + 0.5)
    out[:, :, :3] = np.floor(steps * 255.0 / levels + 0.5).astype(np.uint8)

    out[rgba[:, :, 3] < ALPHA_CUTOFF] = 0
    return RasterBuffer.from_rgba(out)


def quantize(
    src: RasterBuffer,
    palette: Optional[Palette],
    options: Optional[PipelineOptions] = None
) -> RasterBuffer:
    """
    Quantize a raster according to the palette mode and strategy in options.

    Args:
        src: Source raster (any size, including empty)
        palette: Target palette (ignored for bit-depth reduction)
        options: Pipeline options (defaults to OKLAB nearest)

    Returns:
        New RasterBuffer

    Raises:
        UnknownPaletteModeError: If the palette mode is not implemented
        UnknownStrategyError: If the quantize strategy is not implemented
        ValueError: If a fixed-palette mode is used without a palette
    """
    options = options or PipelineOptions()

    if options.palette_mode == PaletteMode.BIT_DEPTH_REDUCE:
        return reduce_bit_depth(src, options.bit_depth)
    if options.palette_mode != PaletteMode.FIXED_PALETTE:
        raise UnknownPaletteModeError(f"Unknown palette mode: {options.palette_mode}")

    if palette is None:
        raise ValueError("fixed-palette quantization requires a palette")

    strategy = options.quantize_strategy
    if strategy == QuantizeStrategy.OKLAB_NEAREST:
        return quantize_oklab(src, palette)
    elif strategy == QuantizeStrategy.OKLAB_BAYER_DITHER:
        return quantize_oklab_bayer(src, palette, options.dither_strength)
    elif strategy == QuantizeStrategy.LEGACY_HISTOGRAM:
        quantizer = HistogramQuantizer(
            palette,
            kernel=options.dither_kernel,
            serpentine=options.serpentine,
            max_colors=options.max_colors
        )
        return quantizer.reduce(src)
    else:
        raise UnknownStrategyError(f"Unknown quantize strategy: {strategy}")
