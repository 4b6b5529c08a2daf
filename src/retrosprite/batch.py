"""
Batch Processing

File-level helpers around the sprite pipeline for single images, sprite
strips and whole directories, all with one console profile and one set of
options.

Example Usage:
    processor = BatchProcessor("nes", sprite_size="32x32", preprocess_preset="standard")
    processor.process_image("hero.png", "hero_nes.png")
    processor.process_sprite_sheet("walk.png", frame_count=4, output_dir="walk/")
"""

from pathlib import Path
from typing import List, Optional, Union

from .consoles import ConsoleProfile, get_console
from .imaging import load_raster, render_preview, save_raster
from .pipeline import process_sheet, process_single
from .preprocess import preprocess
from .raster import RasterBuffer, SpriteSize


class BatchProcessor:
    """
    Batch processing for images and sprite sheets.

    Use this for processing sprite sheets or multiple images
    with consistent settings.
    """

    def __init__(
        self,
        console: Union[str, ConsoleProfile] = "nes",
        sprite_size: Union[str, SpriteSize, None] = None,
        preprocess_preset: str = "none",
        preview_scale: Optional[int] = None,
        show_grid: bool = False,
        workers: int = 1,
        **option_overrides
    ):
        """
        Initialize the batch processor.

        Args:
            console: Console key or profile
            sprite_size: Size key (e.g. "16x16"), SpriteSize, or None for the
                console default
            preprocess_preset: Pre-processing preset applied to every source
            preview_scale: If set, save enlarged previews instead of raw sprites
            show_grid: Draw a pixel grid on previews
            workers: Threads used for sprite sheet frames
            **option_overrides: PipelineOptions fields
        """
        self.console = console if isinstance(console, ConsoleProfile) else get_console(console)
        if isinstance(sprite_size, SpriteSize):
            self.sprite_size = sprite_size.validate()
        else:
            self.sprite_size = self.console.sprite_size(sprite_size)
        self.preprocess_preset = preprocess_preset
        self.preview_scale = preview_scale
        self.show_grid = show_grid
        self.workers = workers
        self.options = self.console.options(**option_overrides)

    def _load(self, image_path: Union[str, Path]) -> RasterBuffer:
        return preprocess(load_raster(image_path), self.preprocess_preset)

    def _save(self, sprite: RasterBuffer, output_path: Union[str, Path]) -> Path:
        if self.preview_scale is not None:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            render_preview(sprite, self.preview_scale, self.show_grid).save(output_path)
            return output_path
        return save_raster(sprite, output_path)

    def convert(self, raster: RasterBuffer) -> RasterBuffer:
        """Run the pipeline on an already-loaded raster."""
        return process_single(raster, self.sprite_size, self.console.palette, self.options)

    def process_image(
        self,
        image_path: Union[str, Path],
        output_path: Union[str, Path]
    ) -> str:
        """
        Convert one image file and save the sprite.

        Args:
            image_path: Source image
            output_path: Output file path

        Returns:
            Output file path
        """
        sprite = self.convert(self._load(image_path))
        return str(self._save(sprite, output_path))

    def process_sprite_sheet(
        self,
        image_path: Union[str, Path],
        frame_count: int,
        output_dir: Union[str, Path]
    ) -> List[str]:
        """
        Process a horizontal sprite strip and save each frame.

        Args:
            image_path: Path to sprite strip
            frame_count: Number of equal-width frames
            output_dir: Output directory

        Returns:
            List of output file paths (frame_0000.png, ...)
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        frames = process_sheet(
            self._load(image_path),
            frame_count,
            self.sprite_size,
            self.console.palette,
            self.options,
            workers=self.workers
        )

        outputs = []
        for i, frame in enumerate(frames):
            outputs.append(str(self._save(frame, output_dir / f"frame_{i:04d}.png")))

        return outputs

    def process_directory(
        self,
        input_dir: Union[str, Path],
        output_dir: Union[str, Path],
        pattern: str = "*.png"
    ) -> List[str]:
        """
        Process all images in a directory.

        Args:
            input_dir: Input directory
            output_dir: Output directory
            pattern: Glob pattern for input files

        Returns:
            List of output file paths
        """
        input_dir = Path(input_dir)
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        outputs = []

        for image_path in sorted(input_dir.glob(pattern)):
            output_path = output_dir / f"{image_path.stem}_{self.console.key}.png"
            outputs.append(self.process_image(image_path, output_path))

        return outputs
