from __future__ import annotations

from typing import Tuple

from mandelview.model import ComplexNumber, FractalBounds

# Classic full-set framing that scale 1.0 refers to.
BASE_VIEW_WIDTH = 3.5
BASE_VIEW_HEIGHT = 2.5

def default_bounds() -> FractalBounds:
    return FractalBounds(min_real=-2.5, max_real=1.0, min_imaginary=-1.25, max_imaginary=1.25)

def pixel_to_complex(px: float, py: float, width: int, height: int, bounds: FractalBounds) -> ComplexNumber:
    real = bounds.min_real + (px / width) * (bounds.max_real - bounds.min_real)
    imaginary = bounds.min_imaginary + (py / height) * (bounds.max_imaginary - bounds.min_imaginary)
    return ComplexNumber(real, imaginary)

def complex_to_pixel(c: ComplexNumber, width: int, height: int, bounds: FractalBounds) -> Tuple[float, float]:
    x = ((c.real - bounds.min_real) / (bounds.max_real - bounds.min_real)) * width
    y = ((c.imaginary - bounds.min_imaginary) / (bounds.max_imaginary - bounds.min_imaginary)) * height
    return x, y

def zoom_bounds(center_x: float, center_y: float, scale: float) -> FractalBounds:
    """Base viewport shrunk by ``scale`` and centred on ``(center_x, center_y)``.

    float64 runs out of mantissa somewhere past 1e15x; beyond that the
    rendered frame degrades into blocks and nothing here tries to stop it.
    """
    if scale <= 0:
        raise ValueError("scale must be > 0")
    half_w = BASE_VIEW_WIDTH / scale / 2
    half_h = BASE_VIEW_HEIGHT / scale / 2
    return FractalBounds(
        min_real=center_x - half_w,
        max_real=center_x + half_w,
        min_imaginary=center_y - half_h,
        max_imaginary=center_y + half_h,
    )

def bounds_center(bounds: FractalBounds) -> Tuple[float, float]:
    return (
        (bounds.min_real + bounds.max_real) / 2,
        (bounds.min_imaginary + bounds.max_imaginary) / 2,
    )

def translate_bounds(bounds: FractalBounds, d_real: float, d_imag: float) -> FractalBounds:
    return FractalBounds(
        min_real=bounds.min_real + d_real,
        max_real=bounds.max_real + d_real,
        min_imaginary=bounds.min_imaginary + d_imag,
        max_imaginary=bounds.max_imaginary + d_imag,
    )

def center_bounds(bounds: FractalBounds, center_x: float, center_y: float) -> FractalBounds:
    """Move ``bounds`` so its midpoint is ``(center_x, center_y)``; the extent is unchanged."""
    cx, cy = bounds_center(bounds)
    return translate_bounds(bounds, center_x - cx, center_y - cy)

def zoom_level(bounds: FractalBounds) -> int:
    """Magnification relative to a 4-unit-wide view, rounded for display."""
    return round(4 / (bounds.max_real - bounds.min_real))

def format_zoom(level: float) -> str:
    if level >= 1_000_000:
        return f"{level / 1_000_000:.1f}M"
    if level >= 1_000:
        return f"{level / 1_000:.1f}K"
    return str(level)

def format_coordinate(value: float) -> str:
    if abs(value) < 0.001:
        return f"{value:.3e}"
    return f"{value:.6f}"
