"""
Sprite Pipeline

Orchestrates the per-image stages:
1. Downscale to the sprite grid
2. Quantize to the palette
3. Orphan cleanup (optional)
4. Outline generation (optional)

and repeats them per frame for a horizontal sprite strip. Every stage is a
pure function that returns a new RasterBuffer, so frames can run on worker
threads. All frames share the same Palette value (and its precomputed OKLAB
table), which keeps the color mapping identical from frame to frame.

Example Usage:
    from retrosprite import Palette, PipelineOptions, SpriteSize, process_single

    palette = Palette([(255, 0, 0), (0, 0, 255)])
    sprite = process_single(raster, SpriteSize(32, 32), palette, PipelineOptions())
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple, Union

from .downscale import downscale
from .errors import InvalidDimensionsError
from .options import PipelineOptions
from .palette import Palette
from .postprocess import cleanup_orphans, generate_outlines
from .quantize import quantize
from .raster import RasterBuffer, SpriteSize


def _as_sprite_size(size: Union[SpriteSize, Tuple[int, int]]) -> SpriteSize:
    if not isinstance(size, SpriteSize):
        size = SpriteSize(*size)
    return size.validate()


def process_single(
    src: RasterBuffer,
    sprite_size: Union[SpriteSize, Tuple[int, int]],
    palette: Optional[Palette],
    options: Optional[PipelineOptions] = None
) -> RasterBuffer:
    """
    Convert one image into a sprite.

    Args:
        src: Decoded source raster
        sprite_size: Target sprite grid
        palette: Target palette (may be None in bit-depth-reduce mode)
        options: Pipeline options (defaults to the enhanced pipeline)

    Returns:
        New RasterBuffer of sprite_size

    Raises:
        InvalidDimensionsError: If the sprite size or source is empty
    """
    size = _as_sprite_size(sprite_size)
    options = options or PipelineOptions()

    sprite = downscale(src, size.width, size.height, options.downscale_strategy)
    sprite = quantize(sprite, palette, options)

    if options.apply_cleanup:
        sprite = cleanup_orphans(sprite, options.cleanup_color_threshold)
    if options.apply_outline:
        sprite = generate_outlines(sprite, options.outline_darken_factor)

    return sprite


def slice_frames(src: RasterBuffer, frame_count: int) -> List[RasterBuffer]:
    """
    Cut a horizontal strip into frame_count equal-width frames.

    Frame width is src.width // frame_count; leftover columns at the right
    edge are dropped.

    Args:
        src: Sprite strip
        frame_count: Number of frames (>= 1)

    Returns:
        List of frame rasters, left to right
    """
    if frame_count < 1:
        raise InvalidDimensionsError(f"frame_count must be >= 1, got {frame_count}")

    frame_w = src.width // frame_count
    if frame_w == 0:
        raise InvalidDimensionsError(
            f"Cannot cut {frame_count} frames from a raster {src.width}px wide"
        )

    return [src.crop_columns(i * frame_w, (i + 1) * frame_w) for i in range(frame_count)]


def process_sheet(
    src: RasterBuffer,
    frame_count: int,
    sprite_size: Union[SpriteSize, Tuple[int, int]],
    palette: Optional[Palette],
    options: Optional[PipelineOptions] = None,
    workers: int = 1
) -> List[RasterBuffer]:
    """
    Convert a horizontal sprite strip into one sprite per frame.

    Args:
        src: Decoded sprite strip
        frame_count: Number of equal-width frames in the strip
        sprite_size: Target sprite grid for every frame
        palette: Palette shared by all frames
        options: Pipeline options shared by all frames
        workers: Number of threads (1 = process sequentially)

    Returns:
        Sprites in frame order
    """
    size = _as_sprite_size(sprite_size)
    options = options or PipelineOptions()
    frames = slice_frames(src, frame_count)

    def run(frame: RasterBuffer) -> RasterBuffer:
        return process_single(frame, size, palette, options)

    if workers <= 1 or len(frames) == 1:
        return [run(frame) for frame in frames]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(run, frames))
