"""
Unit tests for image pre-processing.
"""

import sys
from pathlib import Path
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from retrosprite.raster import RasterBuffer
from retrosprite.preprocess import (
    PRESETS, preprocess, median_denoise, adjust_contrast, adjust_saturation,
    unsharp_mask, stabilize_colors
)


def speckled(value=120, speck=250):
    """Opaque gray field with one bright speck."""
    data = np.full((7, 7, 4), value, dtype=np.uint8)
    data[:, :, 3] = 255
    data[3, 3, :3] = speck
    return RasterBuffer.from_rgba(data)


class TestPreprocess(unittest.TestCase):
    """Tests for pre-processing filters."""

    def test_none_preset(self):
        """Test that the none preset returns the input."""
        img = speckled()
        assert preprocess(img, "none") is img

    def test_unknown_preset(self):
        with self.assertRaises(ValueError):
            preprocess(speckled(), "extreme")

    def test_presets_keep_shape_and_alpha(self):
        """Test every preset on a semi-transparent image."""
        rng = np.random.default_rng(2)
        data = rng.integers(0, 256, size=(9, 8, 4), dtype=np.uint8)
        img = RasterBuffer.from_rgba(data)
        for name in PRESETS:
            out = preprocess(img, name)
            assert out.size == img.size
            assert np.array_equal(out.rgba()[:, :, 3], data[:, :, 3])

    def test_median_removes_speck(self):
        """Test that denoising removes a single-pixel speck."""
        out = median_denoise(speckled(), 1)
        assert out.pixel(3, 3) == (120, 120, 120, 255)

    def test_contrast(self):
        """Test contrast around mid-grey."""
        data = np.array([[[100, 128, 200, 255]]], dtype=np.uint8)
        out = adjust_contrast(RasterBuffer.from_rgba(data), 1.5)
        assert out.pixel(0, 0) == (86, 128, 236, 255)

    def test_saturation_leaves_gray(self):
        """Test that saturation does not tint grays."""
        img = speckled(90, 90)
        assert adjust_saturation(img, 1.3) == img

    def test_sharpen_flat_is_noop(self):
        """Test that a flat image has nothing to sharpen."""
        img = speckled(90, 90)
        assert unsharp_mask(img, 2.0) == img

    def test_stabilize(self):
        """Test histogram equalization stretches the opaque range."""
        data = np.zeros((1, 3, 4), dtype=np.uint8)
        data[0, 0] = (50, 50, 50, 255)
        data[0, 1] = (60, 60, 60, 255)
        data[0, 2] = (0, 0, 0, 0)
        out = stabilize_colors(RasterBuffer.from_rgba(data))
        assert out.pixel(0, 0) == (0, 0, 0, 255)
        assert out.pixel(1, 0) == (255, 255, 255, 255)
        assert out.pixel(2, 0) == (0, 0, 0, 0)


if __name__ == "__main__":
    unittest.main()
