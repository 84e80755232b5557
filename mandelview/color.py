# color.py

import math
from typing import Callable, Dict, List, Tuple, Union

from mandelview.model import BLACK, ColorRGB, ColorScheme

def _channel(value: float) -> int:
    return min(255, max(0, int(math.floor(value))))

def _rgb(r: float, g: float, b: float) -> ColorRGB:
    return ColorRGB(_channel(r), _channel(g), _channel(b))

def classic(t: float) -> ColorRGB:
    r = 255 * math.sin(math.pi * t * 3) ** 2
    g = 255 * math.sin(math.pi * t * 5 + math.pi / 3) ** 2
    b = 255 * math.sin(math.pi * t * 7 + 2 * math.pi / 3) ** 2
    return _rgb(r, g, b)

def fire(t: float) -> ColorRGB:
    """black -> red -> orange -> yellow -> white over quarters of ``t``."""
    if t < 0.25:
        return _rgb(255 * t * 4, 0, 0)
    if t < 0.5:
        return _rgb(255, 165 * (t - 0.25) * 4, 0)
    if t < 0.75:
        intensity = (t - 0.5) * 4
        return _rgb(255, 165 + 90 * intensity, 255 * intensity)
    return _rgb(255, 255, 255)

def ocean(t: float) -> ColorRGB:
    return _rgb(255 * t ** 3, 255 * t ** 1.5, 255 * (0.3 + 0.7 * t))

def hsv_to_rgb(h: float, s: float, v: float) -> ColorRGB:
    """Standard six-sector conversion; ``h`` in degrees [0, 360), ``s``/``v`` in [0, 1]."""
    c = v * s
    x = c * (1 - abs(((h / 60) % 2) - 1))
    m = v - c
    if 0 <= h < 60:
        r, g, b = c, x, 0.0
    elif 60 <= h < 120:
        r, g, b = x, c, 0.0
    elif 120 <= h < 180:
        r, g, b = 0.0, c, x
    elif 180 <= h < 240:
        r, g, b = 0.0, x, c
    elif 240 <= h < 300:
        r, g, b = x, 0.0, c
    elif 300 <= h < 360:
        r, g, b = c, 0.0, x
    else:
        r, g, b = 0.0, 0.0, 0.0
    return _rgb((r + m) * 255, (g + m) * 255, (b + m) * 255)

def rainbow(t: float) -> ColorRGB:
    return hsv_to_rgb(t * 360, 1.0, 1.0)

def grayscale(t: float) -> ColorRGB:
    level = 255 * t
    return _rgb(level, level, level)

_PALETTES: Dict[ColorScheme, Callable[[float], ColorRGB]] = {
    ColorScheme.CLASSIC: classic,
    ColorScheme.FIRE: fire,
    ColorScheme.OCEAN: ocean,
    ColorScheme.RAINBOW: rainbow,
    ColorScheme.GRAYSCALE: grayscale,
}

def color_for(iterations: float, max_iterations: int, scheme: Union[ColorScheme, str] = ColorScheme.CLASSIC) -> ColorRGB:
    """
    Returns the palette color for a (possibly fractional) iteration count.
    Points that reached max_iterations are inside the set and always black.
    Unrecognised scheme names fall back to the classic palette.
    """
    if iterations >= max_iterations:
        return BLACK
    palette = _PALETTES.get(scheme, classic)
    # smooth counts dip below zero for points far outside the set
    return palette(max(0.0, iterations / max_iterations))

def available_color_schemes() -> List[Tuple[ColorScheme, str]]:
    return [(scheme, scheme.value.capitalize()) for scheme in ColorScheme]
