"""
Raster Data Structures

This module provides:
- RasterBuffer: Immutable interleaved RGBA pixel buffer
- SpriteSize: Target sprite grid dimensions

Pixels are stored row-major as a flat uint8 array (R, G, B, A per pixel,
straight alpha). The array is marked read-only on construction, so every
stage of the pipeline has to allocate a fresh buffer for its output.
"""

from dataclasses import dataclass
from typing import Tuple
import numpy as np

from .errors import InvalidDimensionsError


# Alpha values below this are treated as fully transparent by every stage
ALPHA_CUTOFF = 10


@dataclass(frozen=True)
class SpriteSize:
    """Target output grid in sprite pixels."""

    width: int
    height: int

    def validate(self) -> "SpriteSize":
        """Raise InvalidDimensionsError if either dimension is not positive."""
        if self.width < 1 or self.height < 1:
            raise InvalidDimensionsError(
                f"Sprite size must be at least 1x1, got {self.width}x{self.height}"
            )
        return self

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True, eq=False)
class RasterBuffer:
    """
    Decoded RGBA image held in memory.

    Attributes:
        width: Width in pixels
        height: Height in pixels
        pixels: Flat read-only uint8 array of length width * height * 4
    """

    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self):
        """Copy the pixel data into a private read-only array and validate it."""
        if self.width < 0 or self.height < 0:
            raise InvalidDimensionsError(
                f"Raster dimensions must be non-negative, got {self.width}x{self.height}"
            )

        source = self.pixels
        if isinstance(source, (bytes, bytearray, memoryview)):
            data = np.frombuffer(bytes(source), dtype=np.uint8).copy()
        else:
            data = np.array(source, dtype=np.uint8).reshape(-1)

        expected = self.width * self.height * 4
        if data.size != expected:
            raise InvalidDimensionsError(
                f"Pixel buffer holds {data.size} bytes but a "
                f"{self.width}x{self.height} RGBA raster needs {expected}"
            )

        data.flags.writeable = False
        object.__setattr__(self, "pixels", data)

    @classmethod
    def from_rgba(cls, rgba: np.ndarray) -> "RasterBuffer":
        """
        Build a raster from an array of shape (H, W, 4).

        Args:
            rgba: RGBA image array

        Returns:
            New RasterBuffer holding a copy of the data
        """
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise InvalidDimensionsError("RGBA array must have shape (H, W, 4)")
        height, width = rgba.shape[:2]
        return cls(width, height, rgba)

    @classmethod
    def blank(cls, width: int, height: int) -> "RasterBuffer":
        """Create a fully transparent black raster."""
        return cls(width, height, np.zeros(max(width, 0) * max(height, 0) * 4, dtype=np.uint8))

    @property
    def size(self) -> Tuple[int, int]:
        """Get raster size as (width, height)."""
        return (self.width, self.height)

    @property
    def is_empty(self) -> bool:
        """True when the raster has no pixels."""
        return self.width == 0 or self.height == 0

    def rgba(self) -> np.ndarray:
        """Get a read-only (H, W, 4) view of the pixel data."""
        return self.pixels.reshape(self.height, self.width, 4)

    def to_bytes(self) -> bytes:
        """Get the interleaved RGBA bytes."""
        return self.pixels.tobytes()

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """Get the RGBA tuple at (x, y)."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} raster")
        idx = (y * self.width + x) * 4
        r, g, b, a = self.pixels[idx:idx + 4]
        return (int(r), int(g), int(b), int(a))

    def crop_columns(self, x0: int, x1: int) -> "RasterBuffer":
        """
        Extract the vertical strip of columns [x0, x1).

        Args:
            x0: First column (inclusive)
            x1: Last column (exclusive)

        Returns:
            New RasterBuffer with the same height
        """
        if not (0 <= x0 <= x1 <= self.width):
            raise InvalidDimensionsError(
                f"Column range [{x0}, {x1}) outside raster of width {self.width}"
            )
        return RasterBuffer.from_rgba(self.rgba()[:, x0:x1])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RasterBuffer):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and np.array_equal(self.pixels, other.pixels)
        )

    def __repr__(self) -> str:
        return f"RasterBuffer(width={self.width}, height={self.height})"
