"""
Exception types raised by the sprite pipeline.

Each error also derives from the built-in exception that describes the same
condition, so callers catching ``ValueError`` or ``KeyError`` keep working.
"""


class RetroSpriteError(Exception):
    """Base class for all retrosprite errors."""


class InvalidDimensionsError(RetroSpriteError, ValueError):
    """Raster or sprite dimensions are zero or disagree with the pixel data."""


class UnknownStrategyError(RetroSpriteError, ValueError):
    """A downscale, quantize or dither strategy name is not implemented."""


class UnknownPaletteModeError(RetroSpriteError, ValueError):
    """A palette mode name is not implemented."""


class UnknownConsoleError(RetroSpriteError, KeyError):
    """No console profile is registered under the requested key."""

    def __str__(self) -> str:
        # KeyError would otherwise quote the message
        return str(self.args[0]) if self.args else ""
