"""
Unit tests for post-processing and the sprite pipeline.
"""

import sys
from pathlib import Path
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from retrosprite.raster import RasterBuffer, SpriteSize
from retrosprite.palette import Palette
from retrosprite.options import PipelineOptions
from retrosprite.postprocess import cleanup_orphans, generate_outlines
from retrosprite.pipeline import process_single, process_sheet, slice_frames
from retrosprite.consoles import get_console
from retrosprite.errors import InvalidDimensionsError

RED_BLUE = Palette([(255, 0, 0), (0, 0, 255)])


def field(width, height, rgba, odd=None, odd_at=None):
    """Uniform raster with an optional single off-color pixel."""
    data = np.empty((height, width, 4), dtype=np.uint8)
    data[:, :] = rgba
    if odd is not None:
        x, y = odd_at
        data[y, x] = odd
    return RasterBuffer.from_rgba(data)


class TestCleanupOrphans(unittest.TestCase):
    """Tests for orphan pixel cleanup."""

    def test_isolated_pixel_replaced(self):
        """Test that an isolated pixel takes its neighbours' color."""
        img = field(5, 5, (100, 100, 100, 255), odd=(200, 50, 50, 255), odd_at=(2, 2))
        out = cleanup_orphans(img, 3)
        assert out.pixel(2, 2) == (100, 100, 100, 255)
        assert out == field(5, 5, (100, 100, 100, 255))

    def test_second_pass_is_noop(self):
        """Test that cleaning an already cleaned image changes nothing."""
        img = field(6, 5, (30, 60, 90, 255), odd=(250, 250, 0, 255), odd_at=(3, 2))
        once = cleanup_orphans(img, 3)
        assert once != img
        assert cleanup_orphans(once, 3) == once

    def test_border_untouched(self):
        """Test that border pixels are never treated as orphans."""
        img = field(4, 4, (10, 10, 10, 255), odd=(255, 255, 255, 255), odd_at=(0, 0))
        assert cleanup_orphans(img, 3) == img

    def test_similar_neighbour_keeps_pixel(self):
        """Test that a close shade is not an orphan."""
        img = field(3, 3, (100, 100, 100, 255), odd=(102, 101, 100, 255), odd_at=(1, 1))
        assert cleanup_orphans(img, 3) == img

    def test_alpha_untouched(self):
        """Test that cleanup changes RGB only."""
        img = field(3, 3, (0, 0, 200, 255), odd=(255, 0, 0, 128), odd_at=(1, 1))
        out = cleanup_orphans(img, 3)
        assert out.pixel(1, 1) == (0, 0, 200, 128)

    def test_most_frequent_neighbour(self):
        """Test majority voting among opaque neighbours."""
        data = np.zeros((3, 3, 4), dtype=np.uint8)
        data[:, :] = (0, 200, 0, 255)
        data[0, :] = (0, 0, 200, 255)
        data[1, 1] = (200, 0, 0, 255)
        out = cleanup_orphans(RasterBuffer.from_rgba(data), 3)
        assert out.pixel(1, 1) == (0, 200, 0, 255)

    def test_transparent_neighbours_ignored(self):
        """Test a pixel surrounded by transparency keeps its color."""
        img = field(3, 3, (0, 0, 0, 0), odd=(200, 0, 0, 255), odd_at=(1, 1))
        assert cleanup_orphans(img, 3) == img

    def test_input_unchanged(self):
        img = field(5, 5, (100, 100, 100, 255), odd=(200, 50, 50, 255), odd_at=(2, 2))
        before = img.to_bytes()
        cleanup_orphans(img, 3)
        assert img.to_bytes() == before

    def test_negative_threshold(self):
        with self.assertRaises(ValueError):
            cleanup_orphans(field(3, 3, (0, 0, 0, 255)), -1)


class TestGenerateOutlines(unittest.TestCase):
    """Tests for outline generation."""

    def test_border_darkened(self):
        """Test that boundary pixels darken and interior pixels do not."""
        img = field(3, 3, (200, 100, 50, 255))
        out = generate_outlines(img, 0.35)
        assert out.pixel(1, 1) == (200, 100, 50, 255)
        assert out.pixel(0, 0) == (130, 65, 33, 255)
        assert out.pixel(2, 1) == (130, 65, 33, 255)

    def test_transparency_edges(self):
        """Test that pixels next to transparency are outline pixels."""
        img = field(5, 5, (0, 0, 0, 0))
        data = img.rgba().copy()
        data[1:4, 1:4] = (100, 200, 40, 255)
        out = generate_outlines(RasterBuffer.from_rgba(data), 0.5)
        assert out.pixel(2, 2) == (100, 200, 40, 255)
        assert out.pixel(1, 2) == (50, 100, 20, 255)
        assert out.pixel(0, 0) == (0, 0, 0, 0)

    def test_monotonic_darkening(self):
        """Test that no channel gets brighter and alpha never changes."""
        rng = np.random.default_rng(4)
        data = rng.integers(0, 256, size=(8, 8, 4), dtype=np.uint8)
        img = RasterBuffer.from_rgba(data)
        out = generate_outlines(img, 0.35).rgba()
        assert np.all(out[:, :, :3] <= data[:, :, :3])
        assert np.array_equal(out[:, :, 3], data[:, :, 3])

    def test_invalid_factor(self):
        img = field(2, 2, (1, 1, 1, 255))
        with self.assertRaises(ValueError):
            generate_outlines(img, 0.0)
        with self.assertRaises(ValueError):
            generate_outlines(img, 1.0)


class TestProcessSingle(unittest.TestCase):
    """Tests for the single image pipeline."""

    def test_red_scenario(self):
        """Test a 4x4 red source reduced to a 2x2 sprite."""
        src = field(4, 4, (255, 0, 0, 255))
        options = PipelineOptions(apply_outline=False, apply_cleanup=False)
        out = process_single(src, SpriteSize(2, 2), RED_BLUE, options)
        assert out.size == (2, 2)
        assert out == field(2, 2, (255, 0, 0, 255))

    def test_stages_in_order(self):
        """Test that the default pipeline outlines the sprite."""
        src = field(8, 8, (255, 0, 0, 255))
        out = process_single(src, (4, 4), RED_BLUE)
        assert out.pixel(0, 0) == (166, 0, 0, 255)
        assert out.pixel(1, 1) == (255, 0, 0, 255)

    def test_classic_pipeline(self):
        """Test the average / histogram pipeline."""
        src = field(6, 6, (10, 20, 230, 255))
        out = process_single(src, SpriteSize(3, 3), RED_BLUE, PipelineOptions.classic())
        assert out == field(3, 3, (0, 0, 255, 255))

    def test_bit_depth_console(self):
        """Test a bit-depth console without a palette."""
        snes = get_console("snes")
        src = field(4, 4, (128, 128, 128, 255))
        out = process_single(src, SpriteSize(2, 2), None, snes.options(apply_outline=False))
        assert out.pixel(1, 1) == (132, 132, 132, 255)

    def test_invalid_sprite_size(self):
        src = field(4, 4, (255, 0, 0, 255))
        with self.assertRaises(InvalidDimensionsError):
            process_single(src, SpriteSize(0, 2), RED_BLUE)
        with self.assertRaises(InvalidDimensionsError):
            process_single(src, (2, 0), RED_BLUE)

    def test_input_unchanged(self):
        src = field(4, 4, (255, 0, 0, 255))
        before = src.to_bytes()
        process_single(src, SpriteSize(2, 2), RED_BLUE)
        assert src.to_bytes() == before


class TestProcessSheet(unittest.TestCase):
    """Tests for sprite strip processing."""

    def test_slice_frames(self):
        """Test equal-width slicing with the remainder dropped."""
        data = np.zeros((2, 10, 4), dtype=np.uint8)
        data[:, :, 0] = np.arange(10)
        frames = slice_frames(RasterBuffer.from_rgba(data), 3)
        assert [f.size for f in frames] == [(3, 2)] * 3
        assert frames[2].pixel(0, 0)[0] == 6
        assert frames[2].pixel(2, 0)[0] == 8

    def test_slice_errors(self):
        src = field(4, 2, (0, 0, 0, 255))
        with self.assertRaises(InvalidDimensionsError):
            slice_frames(src, 0)
        with self.assertRaises(InvalidDimensionsError):
            slice_frames(src, 5)

    def test_cross_frame_consistency(self):
        """Test that every frame of a solid strip maps to the same color."""
        nes = get_console("nes")
        src = field(24, 8, (30, 200, 40, 255))
        frames = process_sheet(src, 3, SpriteSize(4, 4), nes.palette, nes.options())
        assert len(frames) == 3

        colors = []
        for frame in frames:
            rgba = frame.rgba().reshape(-1, 4)
            visible = {tuple(p[:3]) for p in rgba.tolist() if p[3] >= 10}
            colors.append(visible)
        assert colors[0] == colors[1] == colors[2]
        assert frames[0] == frames[1] == frames[2]

    def test_threaded_matches_sequential(self):
        """Test that worker threads produce the same frames."""
        rng = np.random.default_rng(12)
        data = rng.integers(0, 256, size=(16, 64, 4), dtype=np.uint8)
        src = RasterBuffer.from_rgba(data)
        palette = get_console("c64").palette

        sequential = process_sheet(src, 4, SpriteSize(8, 8), palette)
        threaded = process_sheet(src, 4, SpriteSize(8, 8), palette, workers=4)
        assert sequential == threaded


if __name__ == "__main__":
    unittest.main()
