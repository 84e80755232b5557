"""Value types shared by the kernel, mappers, scheduler and controller."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class ColorScheme(str, Enum):
    CLASSIC = "classic"
    FIRE = "fire"
    OCEAN = "ocean"
    RAINBOW = "rainbow"
    GRAYSCALE = "grayscale"


@dataclass(frozen=True)
class ComplexNumber:
    real: float
    imaginary: float


@dataclass(frozen=True)
class FractalBounds:
    """Axis-aligned viewport onto the complex plane."""

    min_real: float
    max_real: float
    min_imaginary: float
    max_imaginary: float

    @property
    def real_range(self) -> float:
        return self.max_real - self.min_real

    @property
    def imaginary_range(self) -> float:
        return self.max_imaginary - self.min_imaginary

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.min_real, self.max_real, self.min_imaginary, self.max_imaginary)


@dataclass(frozen=True)
class FractalConfig:
    """Everything one render request needs."""

    bounds: FractalBounds
    max_iterations: int
    width: int
    height: int
    color_scheme: ColorScheme = ColorScheme.CLASSIC

    def __post_init__(self):
        object.__setattr__(self, "color_scheme", ColorScheme(self.color_scheme))

    @property
    def total_pixels(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class RenderPoint:
    x: int
    y: int
    iterations: float


@dataclass(frozen=True)
class ColorRGB:
    r: int
    g: int
    b: int


BLACK = ColorRGB(0, 0, 0)


def validate_bounds(bounds: FractalBounds) -> FractalBounds:
    values = bounds.as_tuple()
    if not all(math.isfinite(v) for v in values):
        raise ValueError(f"Bounds must be finite, got {values}.")
    if not bounds.min_real < bounds.max_real:
        raise ValueError(f"min_real ({bounds.min_real}) must be < max_real ({bounds.max_real}).")
    if not bounds.min_imaginary < bounds.max_imaginary:
        raise ValueError(
            f"min_imaginary ({bounds.min_imaginary}) must be < max_imaginary ({bounds.max_imaginary})."
        )
    return bounds


def validate_config(config: FractalConfig) -> FractalConfig:
    """Reject configs the mapper and scheduler cannot render sensibly."""
    validate_bounds(config.bounds)
    if config.max_iterations <= 0:
        raise ValueError("max_iterations must be positive.")
    if config.width <= 0 or config.height <= 0:
        raise ValueError(f"width/height must be positive, got {config.width}x{config.height}.")
    return config
