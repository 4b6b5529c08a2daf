"""
Pipeline Configuration

Strategy enums and the PipelineOptions value that selects them. Every enum
accepts its value string in any case and with "-", "_" or no separator, so
"floyd-steinberg", "FloydSteinberg" and "FLOYD_STEINBERG" all resolve to the
same member.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Type, TypeVar, Union

from .errors import UnknownStrategyError, UnknownPaletteModeError


def _normalize(name: str) -> str:
    return name.lower().replace("-", "").replace("_", "").replace(" ", "")


class _OptionEnum(Enum):
    """Enum that resolves loosely formatted value strings."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = _normalize(value)
            for member in cls:
                if _normalize(member.value) == key or _normalize(member.name) == key:
                    return member
        return None


class PaletteMode(_OptionEnum):
    """How the target palette is defined."""
    FIXED_PALETTE = "fixed-palette"        # Explicit color list
    BIT_DEPTH_REDUCE = "bit-depth-reduce"  # Per-channel truncation (e.g. SNES 15-bit)


class DownscaleStrategy(_OptionEnum):
    """Available downscale algorithms."""
    MODE = "mode"          # Most common color per cell, keeps hard edges
    AVERAGE = "average"    # Per-channel mean, smooth but blurry


class QuantizeStrategy(_OptionEnum):
    """Available fixed-palette quantizers."""
    OKLAB_NEAREST = "oklab-nearest"
    OKLAB_BAYER_DITHER = "oklab-bayer-dither"
    LEGACY_HISTOGRAM = "legacy-histogram"


class DitherKernel(_OptionEnum):
    """Error-diffusion kernels for the legacy histogram quantizer."""
    NONE = "none"
    FLOYD_STEINBERG = "floyd-steinberg"
    ATKINSON = "atkinson"
    STUCKI = "stucki"
    SIERRA = "sierra"
    SIERRA_LITE = "sierra-lite"


E = TypeVar("E", bound=Enum)


def coerce_enum(
    enum_cls: Type[E],
    value: Union[str, E],
    error_cls: Type[Exception] = UnknownStrategyError,
) -> E:
    """
    Convert a string (or member) into an enum member.

    Args:
        enum_cls: Target enum class
        value: Member or value string
        error_cls: Exception raised for unknown names

    Returns:
        The matching member
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(m.value for m in enum_cls)
        raise error_cls(
            f"Unknown {enum_cls.__name__}: {value!r} (expected one of: {choices})"
        ) from None


@dataclass(frozen=True)
class PipelineOptions:
    """
    Options for one pipeline run.

    Attributes:
        palette_mode: Fixed palette or per-channel bit-depth reduction
        downscale_strategy: Mode or average downscale
        quantize_strategy: Fixed-palette quantizer
        dither_strength: Bayer perturbation scale on OKLAB lightness
        apply_outline: Darken the sprite silhouette edge
        apply_cleanup: Replace orphan pixels with their neighbours' color
        outline_darken_factor: Fraction removed from outline RGB, in (0, 1)
        cleanup_color_threshold: Per-channel similarity threshold for orphans
        dither_kernel: Error-diffusion kernel (legacy quantizer only)
        serpentine: Alternate scan direction per row during error diffusion
        max_colors: Restrict the legacy quantizer to the N most used entries
        bit_depth: Bits per channel for bit-depth reduction (1-8)
    """

    palette_mode: PaletteMode = PaletteMode.FIXED_PALETTE
    downscale_strategy: DownscaleStrategy = DownscaleStrategy.MODE
    quantize_strategy: QuantizeStrategy = QuantizeStrategy.OKLAB_NEAREST
    dither_strength: float = 0.3
    apply_outline: bool = True
    apply_cleanup: bool = True
    outline_darken_factor: float = 0.35
    cleanup_color_threshold: int = 3
    dither_kernel: DitherKernel = DitherKernel.NONE
    serpentine: bool = True
    max_colors: Optional[int] = None
    bit_depth: int = 5

    def __post_init__(self):
        """Coerce strategy names to enums and validate numeric ranges."""
        object.__setattr__(
            self, "palette_mode",
            coerce_enum(PaletteMode, self.palette_mode, UnknownPaletteModeError)
        )
        object.__setattr__(
            self, "downscale_strategy",
            coerce_enum(DownscaleStrategy, self.downscale_strategy)
        )
        object.__setattr__(
            self, "quantize_strategy",
            coerce_enum(QuantizeStrategy, self.quantize_strategy)
        )
        kernel = DitherKernel.NONE if self.dither_kernel is None else self.dither_kernel
        object.__setattr__(self, "dither_kernel", coerce_enum(DitherKernel, kernel))

        if self.dither_strength < 0:
            raise ValueError(f"dither_strength must be >= 0, got {self.dither_strength}")
        if not 0.0 < self.outline_darken_factor < 1.0:
            raise ValueError(
                f"outline_darken_factor must be in (0, 1), got {self.outline_darken_factor}"
            )
        if self.cleanup_color_threshold < 0:
            raise ValueError(
                f"cleanup_color_threshold must be >= 0, got {self.cleanup_color_threshold}"
            )
        if self.max_colors is not None and self.max_colors < 1:
            raise ValueError(f"max_colors must be >= 1, got {self.max_colors}")
        if not 1 <= self.bit_depth <= 8:
            raise ValueError(f"bit_depth must be in 1..8, got {self.bit_depth}")

    @classmethod
    def enhanced(cls, dithering: bool = False, **overrides) -> "PipelineOptions":
        """
        Mode downscale, OKLAB quantization and both cleanup passes.

        Args:
            dithering: Use Bayer ordered dithering instead of plain nearest
            **overrides: Any other PipelineOptions field

        Returns:
            PipelineOptions
        """
        strategy = (
            QuantizeStrategy.OKLAB_BAYER_DITHER if dithering
            else QuantizeStrategy.OKLAB_NEAREST
        )
        settings = dict(
            downscale_strategy=DownscaleStrategy.MODE,
            quantize_strategy=strategy,
        )
        settings.update(overrides)
        return cls(**settings)

    @classmethod
    def classic(
        cls,
        dither_kernel: Union[str, DitherKernel, None] = None,
        **overrides
    ) -> "PipelineOptions":
        """
        Average downscale and histogram quantization, no post-processing.

        Args:
            dither_kernel: Optional error-diffusion kernel
            **overrides: Any other PipelineOptions field

        Returns:
            PipelineOptions
        """
        settings = dict(
            downscale_strategy=DownscaleStrategy.AVERAGE,
            quantize_strategy=QuantizeStrategy.LEGACY_HISTOGRAM,
            dither_kernel=dither_kernel,
            apply_outline=False,
            apply_cleanup=False,
        )
        settings.update(overrides)
        return cls(**settings)

    def replace(self, **changes) -> "PipelineOptions":
        """Return a copy with some fields changed (validated again)."""
        return replace(self, **changes)
