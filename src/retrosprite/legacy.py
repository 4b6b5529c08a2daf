"""
Legacy Histogram Quantizer

Classic sRGB palette reduction kept for users who want traditional
error-diffused output:

1. Build a histogram of the visible colors
2. Optionally keep only the palette entries that the histogram uses most
3. Map each color to the nearest entry by luma-weighted sRGB distance
4. Optionally diffuse the quantization error with a classic kernel,
   scanning rows in serpentine order

Lower perceptual quality than OKLAB matching, but faster and familiar.
"""

from typing import Dict, Optional, Tuple, Union
import numpy as np
from numba import njit

from .options import DitherKernel, coerce_enum
from .palette import Palette
from .raster import RasterBuffer, ALPHA_CUTOFF

# Rec. 709 luma weights used by the distance metric
LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float64)

# (dx, dy, weight) triples; dx is mirrored on right-to-left rows
KERNELS: Dict[DitherKernel, Tuple[Tuple[int, int, float], ...]] = {
    DitherKernel.FLOYD_STEINBERG: (
        (1, 0, 7 / 16),
        (-1, 1, 3 / 16),
        (0, 1, 5 / 16),
        (1, 1, 1 / 16),
    ),
    DitherKernel.ATKINSON: (
        (1, 0, 1 / 8),
        (2, 0, 1 / 8),
        (-1, 1, 1 / 8),
        (0, 1, 1 / 8),
        (1, 1, 1 / 8),
        (0, 2, 1 / 8),
    ),
    DitherKernel.STUCKI: (
        (1, 0, 8 / 42),
        (2, 0, 4 / 42),
        (-2, 1, 2 / 42),
        (-1, 1, 4 / 42),
        (0, 1, 8 / 42),
        (1, 1, 4 / 42),
        (2, 1, 2 / 42),
        (-2, 2, 1 / 42),
        (-1, 2, 2 / 42),
        (0, 2, 4 / 42),
        (1, 2, 2 / 42),
        (2, 2, 1 / 42),
    ),
    DitherKernel.SIERRA: (
        (1, 0, 5 / 32),
        (2, 0, 3 / 32),
        (-2, 1, 2 / 32),
        (-1, 1, 4 / 32),
        (0, 1, 5 / 32),
        (1, 1, 4 / 32),
        (2, 1, 2 / 32),
        (-1, 2, 2 / 32),
        (0, 2, 3 / 32),
        (1, 2, 2 / 32),
    ),
    DitherKernel.SIERRA_LITE: (
        (1, 0, 2 / 4),
        (-1, 1, 1 / 4),
        (0, 1, 1 / 4),
    ),
}


@njit(cache=True, nogil=True)
def _nearest_weighted(r: float, g: float, b: float, palette: np.ndarray, weights: np.ndarray) -> int:
    """Index of the palette entry closest by weighted sRGB distance (lowest index on ties)."""
    best_idx = 0
    best_dist = np.inf
    for j in range(palette.shape[0]):
        dr = r - palette[j, 0]
        dg = g - palette[j, 1]
        db = b - palette[j, 2]
        d = weights[0] * dr * dr + weights[1] * dg * dg + weights[2] * db * db
        if d < best_dist:
            best_dist = d
            best_idx = j
    return best_idx


@njit(cache=True, nogil=True)
def _diffuse_kernel(
    src: np.ndarray,
    dst: np.ndarray,
    palette: np.ndarray,
    weights: np.ndarray,
    kernel: np.ndarray,
    serpentine: bool
):
    """
    Error-diffusion quantization into dst.

    Near-transparent pixels are skipped: they neither receive nor pass on
    error, and stay zeroed in dst.

    Args:
        src: (H, W, 4) uint8 source
        dst: (H, W, 4) uint8 zeroed output
        palette: (N, 3) float64 palette colors
        weights: Channel weights for the distance metric
        kernel: (K, 3) float64 rows of (dx, dy, weight)
        serpentine: Reverse the scan direction on odd rows
    """
    h, w = src.shape[0], src.shape[1]
    work = np.empty((h, w, 3), dtype=np.float64)
    for y in range(h):
        for x in range(w):
            for c in range(3):
                work[y, x, c] = src[y, x, c]

    for y in range(h):
        reverse = serpentine and (y % 2 == 1)
        for i in range(w):
            x = w - 1 - i if reverse else i
            if src[y, x, 3] < ALPHA_CUTOFF:
                continue

            r = min(max(work[y, x, 0], 0.0), 255.0)
            g = min(max(work[y, x, 1], 0.0), 255.0)
            b = min(max(work[y, x, 2], 0.0), 255.0)

            idx = _nearest_weighted(r, g, b, palette, weights)
            dst[y, x, 0] = np.uint8(palette[idx, 0])
            dst[y, x, 1] = np.uint8(palette[idx, 1])
            dst[y, x, 2] = np.uint8(palette[idx, 2])
            dst[y, x, 3] = src[y, x, 3]

            er = r - palette[idx, 0]
            eg = g - palette[idx, 1]
            eb = b - palette[idx, 2]

            for k in range(kernel.shape[0]):
                dx = int(kernel[k, 0])
                dy = int(kernel[k, 1])
                weight = kernel[k, 2]
                if reverse:
                    dx = -dx
                nx = x + dx
                ny = y + dy
                if nx < 0 or nx >= w or ny < 0 or ny >= h:
                    continue
                if src[ny, nx, 3] < ALPHA_CUTOFF:
                    continue
                work[ny, nx, 0] += er * weight
                work[ny, nx, 1] += eg * weight
                work[ny, nx, 2] += eb * weight


@njit(cache=True, nogil=True)
def _nearest_indices_kernel(
    colors: np.ndarray,
    palette: np.ndarray,
    weights: np.ndarray,
    out: np.ndarray
) -> None:
    for i in range(colors.shape[0]):
        out[i] = _nearest_weighted(
            colors[i, 0], colors[i, 1], colors[i, 2], palette, weights
        )


def nearest_indices(colors: np.ndarray, palette_rgb: np.ndarray) -> np.ndarray:
    """
    Nearest palette index for each color by luma-weighted sRGB distance.

    Args:
        colors: (N, 3) colors
        palette_rgb: (P, 3) palette

    Returns:
        (N,) int array; the lowest index wins ties
    """
    colors = np.ascontiguousarray(colors, dtype=np.float64)
    out = np.empty(colors.shape[0], dtype=np.int64)
    _nearest_indices_kernel(
        colors, np.ascontiguousarray(palette_rgb, dtype=np.float64), LUMA_WEIGHTS, out
    )
    return out


class HistogramQuantizer:
    """
    Histogram-driven palette quantizer with optional error diffusion.

    Example:
        quantizer = HistogramQuantizer(palette, kernel="floyd-steinberg")
        sprite = quantizer.reduce(raster)
    """

    def __init__(
        self,
        palette: Palette,
        kernel: Union[str, DitherKernel, None] = DitherKernel.NONE,
        serpentine: bool = True,
        max_colors: Optional[int] = None
    ):
        """
        Initialize the quantizer.

        Args:
            palette: Target palette
            kernel: Error-diffusion kernel, or None / "none" to disable
            serpentine: Alternate scan direction per row while diffusing
            max_colors: Keep only this many of the most used palette entries
        """
        self.palette = palette
        self.kernel = coerce_enum(DitherKernel, DitherKernel.NONE if kernel is None else kernel)
        self.serpentine = serpentine
        self.max_colors = max_colors

    @staticmethod
    def histogram(raster: RasterBuffer) -> Tuple[np.ndarray, np.ndarray]:
        """
        Count the visible (alpha >= 10) colors of a raster.

        Args:
            raster: Source raster

        Returns:
            Tuple of (colors, counts) where colors is (M, 3) uint8 sorted by
            packed RGB value and counts is (M,) int
        """
        rgba = raster.rgba().reshape(-1, 4)
        visible = rgba[rgba[:, 3] >= ALPHA_CUTOFF, :3].astype(np.uint32)
        packed = (visible[:, 0] << 16) | (visible[:, 1] << 8) | visible[:, 2]
        keys, counts = np.unique(packed, return_counts=True)
        colors = np.stack([(keys >> 16) & 0xFF, (keys >> 8) & 0xFF, keys & 0xFF], axis=1)
        return colors.astype(np.uint8), counts

    def select_palette(self, raster: RasterBuffer) -> Palette:
        """
        Restrict the palette to the entries the raster uses most.

        Usage is counted by mapping each histogram color to its nearest
        entry. Ties keep the lower palette index, and the kept entries stay
        in palette order.

        Args:
            raster: Source raster

        Returns:
            The full palette, or a subset of at most max_colors entries
        """
        if self.max_colors is None or self.max_colors >= len(self.palette):
            return self.palette

        colors, counts = self.histogram(raster)
        if colors.shape[0] == 0:
            return self.palette

        nearest = nearest_indices(colors, self.palette.colors)
        usage = np.bincount(nearest, weights=counts, minlength=len(self.palette))
        ranked = np.argsort(-usage, kind="stable")[:self.max_colors]
        return self.palette.subset(sorted(ranked.tolist()))

    def reduce(self, raster: RasterBuffer) -> RasterBuffer:
        """
        Quantize a raster onto the palette.

        Args:
            raster: Source raster

        Returns:
            New RasterBuffer whose visible pixels are palette colors with
            their original alpha; near-transparent pixels become (0,0,0,0)
        """
        palette = self.select_palette(raster)
        src = raster.rgba()
        dst = np.zeros((raster.height, raster.width, 4), dtype=np.uint8)

        if self.kernel == DitherKernel.NONE:
            self._reduce_direct(src, dst, palette)
        else:
            kernel = np.array(KERNELS[self.kernel], dtype=np.float64)
            _diffuse_kernel(
                src,
                dst,
                palette.colors.astype(np.float64),
                LUMA_WEIGHTS,
                kernel,
                self.serpentine
            )

        return RasterBuffer.from_rgba(dst)

    def _reduce_direct(self, src: np.ndarray, dst: np.ndarray, palette: Palette):
        """Map each unique visible color once, then scatter through the inverse index."""
        flat_src = src.reshape(-1, 4)
        flat_dst = dst.reshape(-1, 4)
        visible = flat_src[:, 3] >= ALPHA_CUTOFF
        if not np.any(visible):
            return

        rgb = flat_src[visible, :3].astype(np.uint32)
        packed = (rgb[:, 0] << 16) | (rgb[:, 1] << 8) | rgb[:, 2]
        keys, inverse = np.unique(packed, return_inverse=True)
        inverse = inverse.reshape(-1)
        unique_rgb = np.stack([(keys >> 16) & 0xFF, (keys >> 8) & 0xFF, keys & 0xFF], axis=1)

        mapped = palette.colors[nearest_indices(unique_rgb, palette.colors)]
        flat_dst[visible, :3] = mapped[inverse]
        flat_dst[visible, 3] = flat_src[visible, 3]
