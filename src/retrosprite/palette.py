"""
Palette Module

A Palette is an ordered, immutable set of unique RGB colors. Its OKLAB
coordinates are computed once when the palette is built and travel with it,
so every frame of a sheet (and every worker thread) reads the same table.
"""

from typing import Iterable, Iterator, List, Sequence, Tuple
import numpy as np

from .color import srgb_to_oklab

Color = Tuple[int, int, int]


class Palette:
    """
    Fixed target palette with precomputed OKLAB coordinates.

    Attributes:
        colors: Read-only uint8 array of shape (N, 3)
        oklab: Read-only float64 array of shape (N, 3)
    """

    __slots__ = ("_colors", "_oklab")

    def __init__(self, colors: Iterable[Sequence[int]]):
        """
        Build a palette from RGB triples.

        Args:
            colors: Ordered RGB colors (0-255 per channel)

        Raises:
            ValueError: If the palette is empty, malformed or has duplicates
        """
        rows = [tuple(int(c) for c in color) for color in colors]
        if not rows:
            raise ValueError("Palette needs at least one color")
        for row in rows:
            if len(row) != 3:
                raise ValueError(f"Palette colors must be RGB triples, got {row}")
            if any(c < 0 or c > 255 for c in row):
                raise ValueError(f"Palette channel out of range 0-255: {row}")
        if len(set(rows)) != len(rows):
            raise ValueError("Palette colors must be unique (use Palette.unique)")

        rgb = np.array(rows, dtype=np.uint8)
        lab = srgb_to_oklab(rgb)
        rgb.flags.writeable = False
        lab.flags.writeable = False

        self._colors = rgb
        self._oklab = lab

    @property
    def colors(self) -> np.ndarray:
        """Get the RGB table."""
        return self._colors

    @property
    def oklab(self) -> np.ndarray:
        """Get the OKLAB table, one row per palette entry."""
        return self._oklab

    @classmethod
    def unique(cls, colors: Iterable[Sequence[int]]) -> "Palette":
        """Build a palette, dropping repeated colors but keeping first-seen order."""
        seen = set()
        ordered: List[Color] = []
        for color in colors:
            key = tuple(int(c) for c in color)
            if key not in seen:
                seen.add(key)
                ordered.append(key)
        return cls(ordered)

    def __len__(self) -> int:
        return self.colors.shape[0]

    def __iter__(self) -> Iterator[Color]:
        for r, g, b in self.colors.tolist():
            yield (r, g, b)

    def __getitem__(self, index: int) -> Color:
        r, g, b = self.colors[index].tolist()
        return (r, g, b)

    def __contains__(self, color: object) -> bool:
        row = np.asarray(color)
        if row.shape != (3,):
            return False
        return bool(np.any(np.all(self._colors == row, axis=1)))

    def subset(self, indices: Sequence[int]) -> "Palette":
        """Return a new palette holding the given entries in the given order."""
        return Palette(self.colors[list(indices)].tolist())

    def __repr__(self) -> str:
        return f"Palette({len(self)} colors)"
