"""
Downscaling Module

Reduces a source raster to sprite-grid resolution. Both strategies split the
source into target_w x target_h cells using real-valued cell sizes, so cell
boundaries stay evenly distributed even when the source size is not a
multiple of the target size:

    cell x covers source columns [floor(x * cw), floor((x + 1) * cw))
    with cw = src_w / target_w  (same for rows)

Strategies:
1. Mode - Most common color per cell (edges and outlines stay crisp)
2. Average - Per-channel mean per cell (smooth, but edges turn to mud)
"""

from typing import Union, Tuple
import numpy as np
from numba import njit

from .errors import InvalidDimensionsError, UnknownStrategyError
from .options import DownscaleStrategy, coerce_enum
from .raster import RasterBuffer

# Channels are binned to their top 5 bits before counting
_BIN_SHIFT = 3
_BIN_BITS = 8 - _BIN_SHIFT


@njit(cache=True, nogil=True)
def _cell_bounds(index: int, cell: float, limit: int) -> Tuple[int, int]:
    """
    Source range [start, stop) covered by output cell `index`.

    When the target is larger than the source a cell can be empty; it then
    samples the single source pixel at its start (nearest-pixel).
    """
    start = int(np.floor(index * cell))
    stop = int(np.floor((index + 1) * cell))
    if start > limit - 1:
        start = limit - 1
    if stop > limit:
        stop = limit
    if stop <= start:
        stop = start + 1
    return start, stop


@njit(cache=True, nogil=True)
def _downscale_mode_kernel(src: np.ndarray, dst: np.ndarray):
    """
    Fill dst with the most frequent binned color of each source cell.

    A pixel becomes the cell result only when its bin count strictly exceeds
    the best so far, so on a tie the bin reached first in scan order wins.
    The written color is that pixel's actual RGBA, not the bin center.
    """
    src_h, src_w = src.shape[0], src.shape[1]
    dst_h, dst_w = dst.shape[0], dst.shape[1]
    cell_w = src_w / dst_w
    cell_h = src_h / dst_h

    counts = np.zeros(1 << (4 * _BIN_BITS), dtype=np.int32)
    touched = np.empty((int(cell_w) + 2) * (int(cell_h) + 2), dtype=np.int64)

    for y in range(dst_h):
        sy0, sy1 = _cell_bounds(y, cell_h, src_h)
        for x in range(dst_w):
            sx0, sx1 = _cell_bounds(x, cell_w, src_w)

            n_touched = 0
            best_count = 0
            best_r = 0
            best_g = 0
            best_b = 0
            best_a = 0

            for sy in range(sy0, sy1):
                for sx in range(sx0, sx1):
                    r = np.int64(src[sy, sx, 0])
                    g = np.int64(src[sy, sx, 1])
                    b = np.int64(src[sy, sx, 2])
                    a = np.int64(src[sy, sx, 3])
                    key = (
                        ((r >> _BIN_SHIFT) << (3 * _BIN_BITS))
                        | ((g >> _BIN_SHIFT) << (2 * _BIN_BITS))
                        | ((b >> _BIN_SHIFT) << _BIN_BITS)
                        | (a >> _BIN_SHIFT)
                    )

                    if counts[key] == 0:
                        touched[n_touched] = key
                        n_touched += 1
                    counts[key] += 1

                    if counts[key] > best_count:
                        best_count = counts[key]
                        best_r = r
                        best_g = g
                        best_b = b
                        best_a = a

            # Reset only the bins this cell used
            for i in range(n_touched):
                counts[touched[i]] = 0

            dst[y, x, 0] = best_r
            dst[y, x, 1] = best_g
            dst[y, x, 2] = best_b
            dst[y, x, 3] = best_a


@njit(cache=True, nogil=True)
def _downscale_average_kernel(src: np.ndarray, dst: np.ndarray):
    """Fill dst with the rounded per-channel mean (alpha included) of each cell."""
    src_h, src_w = src.shape[0], src.shape[1]
    dst_h, dst_w = dst.shape[0], dst.shape[1]
    cell_w = src_w / dst_w
    cell_h = src_h / dst_h

    for y in range(dst_h):
        sy0, sy1 = _cell_bounds(y, cell_h, src_h)
        for x in range(dst_w):
            sx0, sx1 = _cell_bounds(x, cell_w, src_w)

            sums = np.zeros(4, dtype=np.int64)
            count = 0
            for sy in range(sy0, sy1):
                for sx in range(sx0, sx1):
                    for c in range(4):
                        sums[c] += src[sy, sx, c]
                    count += 1

            for c in range(4):
                # Round half up
                dst[y, x, c] = int(np.floor(sums[c] / count + 0.5))


def downscale(
    src: RasterBuffer,
    target_w: int,
    target_h: int,
    strategy: Union[str, DownscaleStrategy] = DownscaleStrategy.MODE
) -> RasterBuffer:
    """
    Reduce a raster to target_w x target_h sprite pixels.

    Args:
        src: Source raster (must contain at least one pixel)
        target_w: Output width (>= 1)
        target_h: Output height (>= 1)
        strategy: "mode" or "average"

    Returns:
        New RasterBuffer of size target_w x target_h

    Raises:
        InvalidDimensionsError: If the target or source is empty
        UnknownStrategyError: If the strategy is not implemented
    """
    strategy = coerce_enum(DownscaleStrategy, strategy)

    if target_w < 1 or target_h < 1:
        raise InvalidDimensionsError(
            f"Downscale target must be at least 1x1, got {target_w}x{target_h}"
        )
    if src.is_empty:
        raise InvalidDimensionsError(
            f"Cannot downscale an empty {src.width}x{src.height} raster"
        )

    dst = np.zeros((target_h, target_w, 4), dtype=np.uint8)

    if strategy == DownscaleStrategy.MODE:
        _downscale_mode_kernel(src.rgba(), dst)
    elif strategy == DownscaleStrategy.AVERAGE:
        _downscale_average_kernel(src.rgba(), dst)
    else:
        raise UnknownStrategyError(f"Unknown downscale strategy: {strategy}")

    return RasterBuffer.from_rgba(dst)
