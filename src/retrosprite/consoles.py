"""
Console Profiles

Named retro-console targets: the palette (or hardware bit depth) and the
sprite sizes that make sense for each machine.

Quantization modes:
- fixed-palette: NES, Game Boy, Commodore 64, Sega Genesis
- bit-depth-reduce: SNES (15-bit color, 5 bits per channel)
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .errors import InvalidDimensionsError, UnknownConsoleError
from .options import PaletteMode, PipelineOptions
from .palette import Palette
from .raster import SpriteSize


# NES PPU output, FirebrandX "Smooth" palette, indices $00-$3F.
# Mirrored blacks and duplicate entries are dropped by Palette.unique.
NES_PALETTE_FULL: List[Tuple[int, int, int]] = [
    # $00-$0F
    (101, 101, 101), (0, 45, 105), (7, 12, 135), (65, 0, 121),
    (100, 3, 79), (110, 0, 13), (95, 11, 0), (61, 31, 0),
    (18, 51, 0), (0, 63, 0), (0, 63, 0), (0, 56, 16),
    (0, 42, 82), (0, 0, 0), (0, 0, 0), (0, 0, 0),
    # $10-$1F
    (174, 174, 174), (15, 100, 188), (38, 64, 229), (100, 40, 210),
    (150, 35, 163), (168, 32, 78), (162, 49, 7), (120, 72, 0),
    (64, 98, 0), (12, 114, 0), (0, 117, 20), (0, 111, 78),
    (0, 93, 153), (0, 0, 0), (0, 0, 0), (0, 0, 0),
    # $20-$2F
    (254, 254, 255), (93, 179, 255), (114, 143, 255), (172, 121, 255),
    (222, 115, 244), (243, 114, 170), (238, 130, 100), (200, 155, 59),
    (145, 180, 32), (94, 196, 34), (66, 199, 82), (61, 193, 147),
    (69, 175, 222), (78, 78, 78), (0, 0, 0), (0, 0, 0),
    # $30-$3F
    (254, 254, 255), (188, 223, 255), (198, 210, 255), (221, 201, 255),
    (240, 198, 252), (248, 197, 222), (246, 204, 191), (233, 216, 170),
    (211, 227, 158), (191, 234, 159), (179, 235, 180), (176, 232, 210),
    (180, 224, 238), (184, 184, 184), (0, 0, 0), (0, 0, 0),
]

# Original DMG green shades, darkest first
GAMEBOY_PALETTE: List[Tuple[int, int, int]] = [
    (15, 56, 15), (48, 98, 48), (139, 172, 15), (155, 188, 15),
]

# Commodore 64 "Pepto" palette, VIC-II color order
C64_PALETTE: List[Tuple[int, int, int]] = [
    (0, 0, 0), (255, 255, 255), (104, 55, 43), (112, 164, 178),
    (111, 61, 134), (88, 141, 67), (53, 40, 121), (184, 199, 111),
    (111, 79, 37), (67, 57, 0), (154, 103, 89), (68, 68, 68),
    (108, 108, 108), (154, 210, 132), (108, 94, 181), (149, 149, 149),
]


def channel_levels(bits: int) -> List[int]:
    """Evenly spaced 8-bit values representable with `bits` bits per channel."""
    top = (1 << bits) - 1
    return [int(i * 255 / top + 0.5) for i in range(top + 1)]


def full_rgb_palette(bits: int) -> List[Tuple[int, int, int]]:
    """Every color of a machine with `bits` bits per channel (e.g. 3 -> 512 colors)."""
    levels = channel_levels(bits)
    return [(r, g, b) for r in levels for g in levels for b in levels]


def _sizes(*names: str) -> Dict[str, SpriteSize]:
    sizes = {}
    for name in names:
        w, h = name.split("x")
        sizes[name] = SpriteSize(int(w), int(h))
    return sizes


@dataclass(frozen=True)
class ConsoleProfile:
    """
    A target console: palette definition and sprite sizes.

    Attributes:
        key: Registry key ("nes", "snes", ...)
        name: Display name
        palette_mode: Fixed palette or bit-depth reduction
        palette: Palette for fixed-palette consoles, None otherwise
        bit_depth: Bits per channel for bit-depth-reduce consoles
        sprite_sizes: Named sprite sizes ("16x16" -> SpriteSize)
        default_size: Key into sprite_sizes
    """

    key: str
    name: str
    palette_mode: PaletteMode
    palette: Optional[Palette] = None
    bit_depth: int = 8
    sprite_sizes: Dict[str, SpriteSize] = field(default_factory=dict)
    default_size: str = "32x32"

    def sprite_size(self, name: Optional[str] = None) -> SpriteSize:
        """
        Resolve a named sprite size.

        Args:
            name: Size key, or None for the console default

        Returns:
            SpriteSize

        Raises:
            InvalidDimensionsError: If the size is not offered by this console
        """
        key = name or self.default_size
        if key not in self.sprite_sizes:
            choices = ", ".join(self.sprite_sizes)
            raise InvalidDimensionsError(
                f"Unknown sprite size {key!r} for {self.name} (expected one of: {choices})"
            )
        return self.sprite_sizes[key]

    def options(self, **overrides) -> PipelineOptions:
        """PipelineOptions with this console's palette mode and bit depth."""
        settings = dict(palette_mode=self.palette_mode)
        if self.palette_mode == PaletteMode.BIT_DEPTH_REDUCE:
            settings["bit_depth"] = self.bit_depth
        settings.update(overrides)
        return PipelineOptions(**settings)

    @property
    def color_count(self) -> int:
        """Number of colors the console can show."""
        if self.palette is not None:
            return len(self.palette)
        return (1 << self.bit_depth) ** 3


CONSOLES: Dict[str, ConsoleProfile] = {
    profile.key: profile
    for profile in (
        ConsoleProfile(
            key="nes",
            name="Nintendo Entertainment System",
            palette_mode=PaletteMode.FIXED_PALETTE,
            palette=Palette.unique(NES_PALETTE_FULL),
            sprite_sizes=_sizes("8x8", "16x16", "32x32", "64x64"),
            default_size="32x32",
        ),
        ConsoleProfile(
            key="gameboy",
            name="Game Boy",
            palette_mode=PaletteMode.FIXED_PALETTE,
            palette=Palette(GAMEBOY_PALETTE),
            sprite_sizes=_sizes("8x8", "8x16", "16x16", "32x32"),
            default_size="16x16",
        ),
        ConsoleProfile(
            key="c64",
            name="Commodore 64",
            palette_mode=PaletteMode.FIXED_PALETTE,
            palette=Palette(C64_PALETTE),
            sprite_sizes=_sizes("12x21", "24x21", "48x42"),
            default_size="24x21",
        ),
        ConsoleProfile(
            key="genesis",
            name="Sega Genesis",
            palette_mode=PaletteMode.FIXED_PALETTE,
            palette=Palette(full_rgb_palette(3)),
            sprite_sizes=_sizes("16x16", "32x32", "64x64"),
            default_size="32x32",
        ),
        ConsoleProfile(
            key="snes",
            name="Super Nintendo",
            palette_mode=PaletteMode.BIT_DEPTH_REDUCE,
            bit_depth=5,
            sprite_sizes=_sizes("16x16", "32x32", "64x64"),
            default_size="32x32",
        ),
    )
}

DEFAULT_CONSOLE = "nes"


def get_console(key: str) -> ConsoleProfile:
    """
    Look up a console profile.

    Args:
        key: Console key (case-insensitive)

    Returns:
        ConsoleProfile

    Raises:
        UnknownConsoleError: If no profile has this key
    """
    profile = CONSOLES.get(key.lower())
    if profile is None:
        choices = ", ".join(CONSOLES)
        raise UnknownConsoleError(f"Unknown console: {key!r} (expected one of: {choices})")
    return profile
