# kernel.py
"""Escape-time iteration for the Mandelbrot map ``z <- z*z + c``.

The scalar loop is compiled with numba so that both single-point queries and
whole scanline spans run the same machine code. Escape is tested on the
squared magnitude against 4.0 (radius 2) to avoid a square root per step.
"""

from __future__ import annotations

import math
from typing import Union

import numpy as np
from numba import njit

from mandelview.model import ComplexNumber, FractalBounds

ESCAPE_RADIUS_SQUARED = 4.0


@njit(cache=False)
def _escape_time(c_real, c_imag, max_iterations, smooth):
    zr = 0.0
    zi = 0.0
    n = 0
    while n < max_iterations:
        zr_next = zr * zr - zi * zi + c_real
        zi = 2.0 * zr * zi + c_imag
        zr = zr_next
        mag_sq = zr * zr + zi * zi
        if mag_sq > ESCAPE_RADIUS_SQUARED:
            if smooth:
                # only valid once |z| > 2
                return n + 1.0 - math.log2(math.log2(math.sqrt(mag_sq)))
            return float(n)
        n += 1
    return float(max_iterations)


@njit(cache=False)
def _escape_span(y, start_x, end_x, width, height,
                 min_real, max_real, min_imag, max_imag,
                 max_iterations, smooth):
    out = np.empty(end_x - start_x, dtype=np.float64)
    c_imag = min_imag + (y / height) * (max_imag - min_imag)
    for i in range(end_x - start_x):
        x = start_x + i
        c_real = min_real + (x / width) * (max_real - min_real)
        out[i] = _escape_time(c_real, c_imag, max_iterations, smooth)
    return out


def mandelbrot_iterations(c: ComplexNumber, max_iterations: int) -> int:
    """Discrete escape count, or ``max_iterations`` for points that never escape."""
    return int(_escape_time(float(c.real), float(c.imaginary), int(max_iterations), False))


def smooth_mandelbrot_iterations(c: ComplexNumber, max_iterations: int) -> float:
    """Continuous escape count ``n + 1 - log2(log2|z|)``; ``max_iterations`` if no escape."""
    return float(_escape_time(float(c.real), float(c.imaginary), int(max_iterations), True))


def iterate(c: ComplexNumber, max_iterations: int, smooth: bool = False) -> Union[int, float]:
    """``int`` escape count, or the smooth ``float`` value when ``smooth`` is set."""
    if smooth:
        return smooth_mandelbrot_iterations(c, max_iterations)
    return mandelbrot_iterations(c, max_iterations)


def escape_span(
    y: int,
    start_x: int,
    end_x: int,
    width: int,
    height: int,
    bounds: FractalBounds,
    max_iterations: int,
    smooth: bool = True,
) -> np.ndarray:
    """Iteration values for columns ``[start_x, end_x)`` of scanline ``y``.

    Column ``x`` maps to the complex point ``pixel_to_complex(x, y, ...)``.
    """
    if end_x <= start_x:
        return np.empty(0, dtype=np.float64)
    return _escape_span(
        int(y), int(start_x), int(end_x), int(width), int(height),
        float(bounds.min_real), float(bounds.max_real),
        float(bounds.min_imaginary), float(bounds.max_imaginary),
        int(max_iterations), bool(smooth),
    )
