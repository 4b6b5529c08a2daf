"""
Structural Cleanup Module

Two passes over an already-quantized raster:
1. Orphan cleanup - Recolor isolated off-color pixels (anti-aliasing fringe)
   with their most common neighbour color
2. Outline generation - Darken the 1px silhouette edge of the sprite

Both read the input and write a copy. Cleanup conventionally runs before
outlining, otherwise freshly darkened edge pixels can look like orphans.
"""

import numpy as np
from numba import njit

from .raster import RasterBuffer, ALPHA_CUTOFF


@njit(cache=True, nogil=True)
def _cleanup_orphans_kernel(src: np.ndarray, dst: np.ndarray, threshold: int):
    """
    Replace interior orphan pixels in dst.

    Border pixels are skipped so every 8-neighbour lookup stays in bounds.
    A pixel is an orphan when none of its 8 neighbours is within
    |dR| + |dG| + |dB| < 3 * threshold of it.
    """
    h, w = src.shape[0], src.shape[1]
    limit = 3 * threshold

    seen_r = np.empty(8, dtype=np.int64)
    seen_g = np.empty(8, dtype=np.int64)
    seen_b = np.empty(8, dtype=np.int64)
    seen_n = np.empty(8, dtype=np.int64)

    for y in range(1, h - 1):
        for x in range(1, w - 1):
            if src[y, x, 3] < ALPHA_CUTOFF:
                continue

            r = np.int64(src[y, x, 0])
            g = np.int64(src[y, x, 1])
            b = np.int64(src[y, x, 2])

            similar = 0
            for dy in range(-1, 2):
                for dx in range(-1, 2):
                    if dx == 0 and dy == 0:
                        continue
                    diff = (
                        abs(np.int64(src[y + dy, x + dx, 0]) - r)
                        + abs(np.int64(src[y + dy, x + dx, 1]) - g)
                        + abs(np.int64(src[y + dy, x + dx, 2]) - b)
                    )
                    if diff < limit:
                        similar += 1

            if similar > 0:
                continue

            # Most frequent opaque neighbour; first to reach a new maximum wins
            n_seen = 0
            best_count = 0
            best_r = r
            best_g = g
            best_b = b
            for dy in range(-1, 2):
                for dx in range(-1, 2):
                    if dx == 0 and dy == 0:
                        continue
                    if src[y + dy, x + dx, 3] < ALPHA_CUTOFF:
                        continue
                    nr = np.int64(src[y + dy, x + dx, 0])
                    ng = np.int64(src[y + dy, x + dx, 1])
                    nb = np.int64(src[y + dy, x + dx, 2])

                    slot = -1
                    for k in range(n_seen):
                        if seen_r[k] == nr and seen_g[k] == ng and seen_b[k] == nb:
                            slot = k
                            break
                    if slot < 0:
                        slot = n_seen
                        seen_r[slot] = nr
                        seen_g[slot] = ng
                        seen_b[slot] = nb
                        seen_n[slot] = 0
                        n_seen += 1
                    seen_n[slot] += 1

                    if seen_n[slot] > best_count:
                        best_count = seen_n[slot]
                        best_r = nr
                        best_g = ng
                        best_b = nb

            dst[y, x, 0] = best_r
            dst[y, x, 1] = best_g
            dst[y, x, 2] = best_b


@njit(cache=True, nogil=True)
def _outline_kernel(src: np.ndarray, dst: np.ndarray, keep: float):
    """Scale the RGB of opaque pixels that touch transparency or the border by `keep`."""
    h, w = src.shape[0], src.shape[1]
    for y in range(h):
        for x in range(w):
            if src[y, x, 3] < ALPHA_CUTOFF:
                continue

            edge = (
                x == 0 or y == 0 or x == w - 1 or y == h - 1
                or src[y, x - 1, 3] < ALPHA_CUTOFF
                or src[y, x + 1, 3] < ALPHA_CUTOFF
                or src[y - 1, x, 3] < ALPHA_CUTOFF
                or src[y + 1, x, 3] < ALPHA_CUTOFF
            )
            if edge:
                for c in range(3):
                    dst[y, x, c] = int(np.floor(src[y, x, c] * keep + 0.5))


def cleanup_orphans(raster: RasterBuffer, color_threshold: int = 3) -> RasterBuffer:
    """
    Remove isolated single pixels left over from anti-aliasing.

    Single pass: an orphan that only appears after another is fixed is left
    alone.

    Args:
        raster: Quantized raster
        color_threshold: Per-channel similarity threshold (>= 0)

    Returns:
        New RasterBuffer with orphans recolored (alpha unchanged)
    """
    if color_threshold < 0:
        raise ValueError(f"color_threshold must be >= 0, got {color_threshold}")

    src = raster.rgba()
    dst = src.copy()
    _cleanup_orphans_kernel(src, dst, int(color_threshold))
    return RasterBuffer.from_rgba(dst)


def generate_outlines(raster: RasterBuffer, darken_factor: float = 0.35) -> RasterBuffer:
    """
    Darken the 1px edge of the sprite silhouette.

    An opaque pixel is on the edge when one of its 4 neighbours is
    transparent (alpha < 10) or lies outside the raster. Its RGB becomes
    round(c * (1 - darken_factor)).

    Args:
        raster: Quantized raster
        darken_factor: Fraction of brightness removed, in (0, 1)

    Returns:
        New RasterBuffer (alpha unchanged)
    """
    if not 0.0 < darken_factor < 1.0:
        raise ValueError(f"darken_factor must be in (0, 1), got {darken_factor}")

    src = raster.rgba()
    dst = src.copy()
    _outline_kernel(src, dst, 1.0 - float(darken_factor))
    return RasterBuffer.from_rgba(dst)
