import math

import pytest

from mandelview.coords import default_bounds, pixel_to_complex
from mandelview.kernel import escape_span, iterate, mandelbrot_iterations, smooth_mandelbrot_iterations
from mandelview.model import ComplexNumber


def _reference_orbit(c, max_iterations):
    """Plain-Python escape loop returning (count, squared magnitude at escape)."""
    z = 0j
    point = complex(c.real, c.imaginary)
    for n in range(max_iterations):
        z = z * z + point
        m = z.real * z.real + z.imag * z.imag
        if m > 4:
            return n, m
    return max_iterations, None


@pytest.mark.parametrize("c", [
    ComplexNumber(3.0, 0.0),
    ComplexNumber(0.0, -2.5),
    ComplexNumber(-2.01, 0.5),
    ComplexNumber(1.5, 1.5),
])
def test_points_outside_radius_two_escape_on_first_step(c):
    assert mandelbrot_iterations(c, 100) == 0
    assert mandelbrot_iterations(c, 100) < 100


@pytest.mark.parametrize("n", [1, 10, 500])
def test_origin_never_escapes(n):
    origin = ComplexNumber(0.0, 0.0)
    assert mandelbrot_iterations(origin, n) == n
    assert smooth_mandelbrot_iterations(origin, n) == float(n)


def test_discrete_matches_reference_orbit():
    for i in range(40):
        c = ComplexNumber(-2.0 + i * 0.06, 0.37)
        n, _ = _reference_orbit(c, 200)
        assert mandelbrot_iterations(c, 200) == n


def test_smooth_value_lies_between_discrete_and_next_count_near_boundary():
    checked = 0
    for i in range(60):
        c = ComplexNumber(-0.75 + i * 0.01, 0.12 + i * 0.004)
        n, m = _reference_orbit(c, 300)
        smooth = smooth_mandelbrot_iterations(c, 300)
        if m is None:
            assert smooth == 300.0
            continue
        assert smooth == pytest.approx(n + 1 - math.log2(math.log2(math.sqrt(m))))
        if m <= 16:
            assert n <= smooth < n + 1
            checked += 1
    assert checked > 0


def test_iterate_dispatches_on_mode():
    c = ComplexNumber(0.3, 0.5)
    assert iterate(c, 50) == mandelbrot_iterations(c, 50)
    assert iterate(c, 50, smooth=True) == smooth_mandelbrot_iterations(c, 50)
    assert isinstance(iterate(c, 50), int)
    assert isinstance(iterate(c, 50, smooth=True), float)


def test_escape_span_matches_per_pixel_mapping():
    bounds = default_bounds()
    width, height, y = 40, 30, 11
    values = escape_span(y, 5, 25, width, height, bounds, 80, smooth=True)
    assert len(values) == 20
    for offset, value in enumerate(values):
        c = pixel_to_complex(5 + offset, y, width, height, bounds)
        assert value == pytest.approx(smooth_mandelbrot_iterations(c, 80))


def test_escape_span_empty_range():
    assert len(escape_span(0, 4, 4, 10, 10, default_bounds(), 10)) == 0
