"""
Color Space Module

Handles:
- sRGB to Linear conversion (piecewise sRGB transfer function)
- sRGB to OKLAB conversion for perceptual color matching
- Squared OKLAB distance for nearest-palette search

Color Space Background:
- Euclidean distance in sRGB over-weights green, so the "nearest" color in a
  small retro palette is often visibly wrong
- OKLAB is built so that Euclidean distance tracks perceived difference
- Only relative ordering matters for nearest search, so distances stay squared
"""

from typing import Tuple
import numpy as np
from numba import njit


@njit(cache=True, nogil=True)
def _srgb_to_linear_component(c: float) -> float:
    """
    Convert a single sRGB component to Linear.

    The sRGB standard uses a piecewise function:
    - Linear below threshold (0.04045)
    - Gamma curve above threshold

    Args:
        c: sRGB value normalized to [0, 1]

    Returns:
        Linear value
    """
    if c <= 0.04045:
        return c / 12.92
    else:
        return ((c + 0.055) / 1.055) ** 2.4


@njit(cache=True, nogil=True)
def to_oklab(r: int, g: int, b: int) -> Tuple[float, float, float]:
    """
    Convert one 8-bit sRGB color to OKLAB.

    Args:
        r, g, b: Channel values (0-255)

    Returns:
        (L, a, b) with L in [0, 1]
    """
    lr = _srgb_to_linear_component(r / 255.0)
    lg = _srgb_to_linear_component(g / 255.0)
    lb = _srgb_to_linear_component(b / 255.0)

    # LMS responses are non-negative for in-gamut input, so a plain power is safe
    l_ = (0.4122214708 * lr + 0.5363325363 * lg + 0.0514459929 * lb) ** (1.0 / 3.0)
    m_ = (0.2119034982 * lr + 0.6806995451 * lg + 0.1073969566 * lb) ** (1.0 / 3.0)
    s_ = (0.0883024619 * lr + 0.2817188376 * lg + 0.6299787005 * lb) ** (1.0 / 3.0)

    return (
        0.2104542553 * l_ + 0.7936177850 * m_ - 0.0040720468 * s_,
        1.9779984951 * l_ - 2.4285922050 * m_ + 0.4505937099 * s_,
        0.0259040371 * l_ + 0.7827717662 * m_ - 0.8086757660 * s_,
    )


@njit(cache=True, nogil=True)
def distance_squared(lab1, lab2) -> float:
    """
    Squared Euclidean distance between two OKLAB triples.

    Args:
        lab1: (L, a, b) tuple or array
        lab2: (L, a, b) tuple or array

    Returns:
        Squared distance (no square root)
    """
    dl = lab1[0] - lab2[0]
    da = lab1[1] - lab2[1]
    db = lab1[2] - lab2[2]
    return dl * dl + da * da + db * db


@njit(cache=True, nogil=True)
def srgb_to_oklab(colors: np.ndarray) -> np.ndarray:
    """
    Convert an array of sRGB colors to OKLAB.

    Args:
        colors: Array of shape (N, 3) or (N, 4) with uint8 sRGB values

    Returns:
        Array of shape (N, 3) with float64 OKLAB values
    """
    n = colors.shape[0]
    result = np.empty((n, 3), dtype=np.float64)

    for i in range(n):
        lab = to_oklab(colors[i, 0], colors[i, 1], colors[i, 2])
        result[i, 0] = lab[0]
        result[i, 1] = lab[1]
        result[i, 2] = lab[2]

    return result
