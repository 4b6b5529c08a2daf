"""
Unit tests for rasters, options and downscaling.
"""

import sys
from pathlib import Path
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from retrosprite.raster import RasterBuffer, SpriteSize
from retrosprite.options import (
    PipelineOptions, DownscaleStrategy, QuantizeStrategy, DitherKernel, PaletteMode
)
from retrosprite.downscale import downscale
from retrosprite.errors import (
    InvalidDimensionsError, UnknownStrategyError, UnknownPaletteModeError
)


def solid(width, height, rgba):
    """Create a single-color raster."""
    data = np.empty((height, width, 4), dtype=np.uint8)
    data[:, :] = rgba
    return RasterBuffer.from_rgba(data)


class TestRasterBuffer(unittest.TestCase):
    """Tests for RasterBuffer."""

    def test_create_raster(self):
        """Test creation from bytes."""
        raster = RasterBuffer(2, 1, bytes([1, 2, 3, 4, 5, 6, 7, 8]))
        assert raster.size == (2, 1)
        assert raster.pixel(1, 0) == (5, 6, 7, 8)
        assert raster.to_bytes() == bytes([1, 2, 3, 4, 5, 6, 7, 8])

    def test_length_mismatch(self):
        """Test that a wrong buffer length is refused."""
        with self.assertRaises(InvalidDimensionsError):
            RasterBuffer(2, 2, bytes(15))
        with self.assertRaises(ValueError):
            RasterBuffer(2, 2, bytes(17))

    def test_pixels_read_only(self):
        """Test that pixel data cannot be mutated."""
        source = np.zeros((2, 2, 4), dtype=np.uint8)
        raster = RasterBuffer.from_rgba(source)
        source[0, 0] = 255
        assert raster.pixel(0, 0) == (0, 0, 0, 0)
        with self.assertRaises(ValueError):
            raster.pixels[0] = 1

    def test_empty_raster(self):
        """Test zero-area rasters."""
        raster = RasterBuffer(0, 0, b"")
        assert raster.is_empty
        assert raster.to_bytes() == b""

    def test_crop_columns(self):
        """Test column strips."""
        data = np.arange(3 * 2 * 4, dtype=np.uint8).reshape(2, 3, 4)
        strip = RasterBuffer.from_rgba(data).crop_columns(1, 3)
        assert strip.size == (2, 2)
        assert strip.pixel(0, 1) == tuple(data[1, 1].tolist())

    def test_sprite_size(self):
        """Test SpriteSize validation."""
        assert str(SpriteSize(16, 8)) == "16x8"
        with self.assertRaises(InvalidDimensionsError):
            SpriteSize(0, 8).validate()


class TestPipelineOptions(unittest.TestCase):
    """Tests for PipelineOptions."""

    def test_defaults(self):
        """Test the enhanced defaults."""
        options = PipelineOptions()
        assert options.palette_mode == PaletteMode.FIXED_PALETTE
        assert options.downscale_strategy == DownscaleStrategy.MODE
        assert options.quantize_strategy == QuantizeStrategy.OKLAB_NEAREST
        assert options.dither_strength == 0.3
        assert options.apply_outline and options.apply_cleanup
        assert options.outline_darken_factor == 0.35
        assert options.cleanup_color_threshold == 3

    def test_string_coercion(self):
        """Test that loosely written names resolve to enum members."""
        options = PipelineOptions(
            downscale_strategy="Average",
            quantize_strategy="oklab_bayer_dither",
            dither_kernel="FloydSteinberg",
        )
        assert options.downscale_strategy == DownscaleStrategy.AVERAGE
        assert options.quantize_strategy == QuantizeStrategy.OKLAB_BAYER_DITHER
        assert options.dither_kernel == DitherKernel.FLOYD_STEINBERG

    def test_unknown_names(self):
        """Test that unknown names are refused instead of defaulted."""
        with self.assertRaises(UnknownStrategyError):
            PipelineOptions(downscale_strategy="lanczos")
        with self.assertRaises(UnknownStrategyError):
            PipelineOptions(quantize_strategy="median-cut")
        with self.assertRaises(UnknownPaletteModeError):
            PipelineOptions(palette_mode="indexed")

    def test_ranges(self):
        """Test numeric validation."""
        with self.assertRaises(ValueError):
            PipelineOptions(outline_darken_factor=1.0)
        with self.assertRaises(ValueError):
            PipelineOptions(dither_strength=-0.1)
        with self.assertRaises(ValueError):
            PipelineOptions(cleanup_color_threshold=-1)
        with self.assertRaises(ValueError):
            PipelineOptions(bit_depth=9)

    def test_presets(self):
        """Test enhanced and classic constructors."""
        enhanced = PipelineOptions.enhanced(dithering=True)
        assert enhanced.quantize_strategy == QuantizeStrategy.OKLAB_BAYER_DITHER

        classic = PipelineOptions.classic("atkinson")
        assert classic.downscale_strategy == DownscaleStrategy.AVERAGE
        assert classic.quantize_strategy == QuantizeStrategy.LEGACY_HISTOGRAM
        assert classic.dither_kernel == DitherKernel.ATKINSON
        assert not classic.apply_outline and not classic.apply_cleanup

        changed = classic.replace(apply_outline=True)
        assert changed.apply_outline and not classic.apply_outline


class TestDownscale(unittest.TestCase):
    """Tests for the downscaler."""

    def test_same_size_is_identity(self):
        """Test mode downscale of an opaque image to its own size."""
        rng = np.random.default_rng(7)
        data = rng.integers(0, 256, size=(9, 11, 4), dtype=np.uint8)
        data[:, :, 3] = 255
        img = RasterBuffer.from_rgba(data)

        assert downscale(img, img.width, img.height, "mode") == img
        assert downscale(img, img.width, img.height, "average") == img

    def test_solid_color(self):
        """Test that a solid image stays solid."""
        img = solid(8, 6, (40, 90, 200, 255))
        for strategy in DownscaleStrategy:
            out = downscale(img, 3, 2, strategy)
            assert out.size == (3, 2)
            assert out == solid(3, 2, (40, 90, 200, 255))

    def test_mode_keeps_majority(self):
        """Test that the majority color wins over an odd pixel."""
        data = np.zeros((2, 2, 4), dtype=np.uint8)
        data[:, :] = (255, 0, 0, 255)
        data[1, 1] = (0, 0, 255, 255)
        out = downscale(RasterBuffer.from_rgba(data), 1, 1, "mode")
        assert out.pixel(0, 0) == (255, 0, 0, 255)

    def test_mode_tie_first_wins(self):
        """Test that the first color in scan order wins a tie."""
        data = np.array([[[10, 20, 30, 255], [200, 100, 0, 255]]], dtype=np.uint8)
        out = downscale(RasterBuffer.from_rgba(data), 1, 1, "mode")
        assert out.pixel(0, 0) == (10, 20, 30, 255)

    def test_mode_bins_near_shades(self):
        """Test that shades sharing the top 5 bits count as one color."""
        data = np.array([[
            [10, 10, 10, 255],
            [12, 12, 12, 255],
            [200, 0, 0, 255],
        ]], dtype=np.uint8)
        out = downscale(RasterBuffer.from_rgba(data), 1, 1, "mode")
        # The pixel that took the bin into the lead is written as is
        assert out.pixel(0, 0) == (12, 12, 12, 255)

    def test_average_rounds(self):
        """Test per-channel mean with rounding, alpha included."""
        data = np.array([[[0, 0, 0, 0], [255, 255, 255, 255]]], dtype=np.uint8)
        out = downscale(RasterBuffer.from_rgba(data), 1, 1, "average")
        assert out.pixel(0, 0) == (128, 128, 128, 128)

    def test_uneven_cells(self):
        """Test real-valued cell boundaries (5 columns into 2 cells)."""
        data = np.zeros((1, 5, 4), dtype=np.uint8)
        data[0, :2] = (255, 0, 0, 255)
        data[0, 2:] = (0, 255, 0, 255)
        out = downscale(RasterBuffer.from_rgba(data), 2, 1, "mode")
        assert out.pixel(0, 0) == (255, 0, 0, 255)
        assert out.pixel(1, 0) == (0, 255, 0, 255)

    def test_upscale_degrades_to_nearest(self):
        """Test a target larger than the source."""
        data = np.array([[[1, 2, 3, 255], [4, 5, 6, 255]]], dtype=np.uint8)
        out = downscale(RasterBuffer.from_rgba(data), 4, 2, "mode")
        assert out.size == (4, 2)
        assert out.pixel(0, 1) == (1, 2, 3, 255)
        assert out.pixel(3, 0) == (4, 5, 6, 255)

    def test_input_unchanged(self):
        """Test that downscaling returns a new buffer."""
        img = solid(4, 4, (9, 9, 9, 255))
        before = img.to_bytes()
        out = downscale(img, 2, 2)
        assert out is not img
        assert img.to_bytes() == before

    def test_invalid_dimensions(self):
        """Test empty targets and sources."""
        img = solid(4, 4, (0, 0, 0, 255))
        with self.assertRaises(InvalidDimensionsError):
            downscale(img, 0, 2)
        with self.assertRaises(InvalidDimensionsError):
            downscale(RasterBuffer(0, 0, b""), 2, 2)

    def test_unknown_strategy(self):
        """Test an unimplemented strategy name."""
        with self.assertRaises(UnknownStrategyError):
            downscale(solid(2, 2, (0, 0, 0, 255)), 1, 1, "bicubic")


if __name__ == "__main__":
    unittest.main()
