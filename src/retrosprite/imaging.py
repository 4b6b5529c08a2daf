"""
Image Ingestion and Rendering Module

Bridges Pillow images and RasterBuffers. The sprite pipeline itself never
touches files; this module is what the CLI and batch processor use to:
- Load any Pillow-readable image as straight-alpha RGBA
- Save sprites as PNG
- Render an enlarged preview with an optional pixel grid
"""

from pathlib import Path
from typing import Optional, Union
import numpy as np
from PIL import Image, ImageDraw

from .errors import InvalidDimensionsError
from .raster import RasterBuffer

# Grid line color, rgba(0, 0, 0, 0.15)
GRID_COLOR = (0, 0, 0, 38)

# Grid lines are only drawn when cells are at least this many pixels wide
MIN_GRID_SCALE = 4

PREVIEW_TARGET = 256


def raster_from_image(image: Image.Image) -> RasterBuffer:
    """
    Convert a Pillow image to a RasterBuffer.

    Args:
        image: Image in any mode

    Returns:
        RasterBuffer with RGBA pixels
    """
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return RasterBuffer.from_rgba(np.array(image, dtype=np.uint8))


def raster_to_image(raster: RasterBuffer) -> Image.Image:
    """Convert a RasterBuffer to an RGBA Pillow image."""
    if raster.is_empty:
        return Image.new("RGBA", (raster.width, raster.height))
    return Image.fromarray(raster.rgba().copy())


def load_raster(image_path: Union[str, Path]) -> RasterBuffer:
    """
    Load an image file as a RasterBuffer.

    Args:
        image_path: Path to the image (PNG recommended)

    Returns:
        RasterBuffer

    Raises:
        FileNotFoundError: If the file does not exist
    """
    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"Image not found: {image_path}")

    with Image.open(image_path) as img:
        return raster_from_image(img)


def save_raster(raster: RasterBuffer, output_path: Union[str, Path]) -> Path:
    """
    Save a RasterBuffer as an image file (format from the extension).

    Args:
        raster: Raster to save
        output_path: Output file path

    Returns:
        The output path
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    raster_to_image(raster).save(output_path)
    return output_path


def default_preview_scale(width: int, height: int) -> int:
    """Largest whole scale that fits the sprite in a 256px box (at least 1)."""
    return max(1, int(min(PREVIEW_TARGET / width, PREVIEW_TARGET / height)))


def render_preview(
    raster: RasterBuffer,
    scale: Optional[int] = None,
    show_grid: bool = False
) -> Image.Image:
    """
    Enlarge a sprite with nearest-neighbour scaling for display.

    Args:
        raster: Sprite raster
        scale: Pixels per sprite pixel (default fits a 256px box)
        show_grid: Overlay a faint pixel grid when scale >= 4

    Returns:
        RGBA Pillow image of size (width * scale, height * scale)
    """
    if raster.is_empty:
        raise InvalidDimensionsError("Cannot render an empty raster")

    if scale is None:
        scale = default_preview_scale(raster.width, raster.height)
    if scale < 1:
        raise ValueError(f"Preview scale must be >= 1, got {scale}")

    display_w = raster.width * scale
    display_h = raster.height * scale
    image = raster_to_image(raster).resize((display_w, display_h), Image.Resampling.NEAREST)

    if show_grid and scale >= MIN_GRID_SCALE:
        overlay = Image.new("RGBA", image.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        for x in range(raster.width + 1):
            px = min(x * scale, display_w - 1)
            draw.line([(px, 0), (px, display_h - 1)], fill=GRID_COLOR)
        for y in range(raster.height + 1):
            py = min(y * scale, display_h - 1)
            draw.line([(0, py), (display_w - 1, py)], fill=GRID_COLOR)
        image = Image.alpha_composite(image, overlay)

    return image
