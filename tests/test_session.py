import asyncio
from dataclasses import replace

import numpy as np
import pytest

from mandelview.coords import default_bounds, pixel_to_complex
from mandelview.model import ColorScheme, FractalConfig
from mandelview.presets import get_preset_by_id
from mandelview.renderers.progressive import FractalRenderer, RenderOutcome
from mandelview.renderers.surface import ImageSurface
from mandelview.session import ViewSession, apply_gesture


def _session():
    config = FractalConfig(default_bounds(), 120, 64, 48, ColorScheme.RAINBOW)
    return ViewSession(config, FractalRenderer(ImageSurface(64, 48)))


def _fresh_pixels(config):
    renderer = FractalRenderer(ImageSurface(config.width, config.height))
    asyncio.run(renderer.render(config))
    return renderer.pixels


def test_wheel_burst_paints_only_the_last_view():
    session = _session()

    async def scenario():
        session.request_render()
        first = session.wheel(-1, 10, 10)
        await asyncio.sleep(0)
        session.wheel(-1, 10, 10)
        session.wheel(-1, 12, 9)
        outcome = await session.settle()
        return await first, outcome

    first, last = asyncio.run(scenario())
    assert first is RenderOutcome.CANCELLED
    assert last is RenderOutcome.COMPLETED
    assert session.controller.state.scale == pytest.approx(1.1 ** 3)
    assert np.array_equal(session.renderer.pixels, _fresh_pixels(session.config))


def test_drag_replaces_bounds():
    session = _session()
    before = session.config.bounds

    async def scenario():
        session.pointer_down(10, 10)
        task = session.pointer_move(26, 10)
        session.pointer_up()
        assert session.pointer_move(40, 40) is None
        return await task

    assert asyncio.run(scenario()) is RenderOutcome.COMPLETED
    assert session.config.bounds.min_real == pytest.approx(before.min_real - 16 / 64 * 3.5)


def test_resize_rebuilds_controller_for_new_canvas():
    session = _session()

    async def scenario():
        session.wheel(-1, 5, 5)
        session.resize(32, 24)
        return await session.settle()

    assert asyncio.run(scenario()) is RenderOutcome.COMPLETED
    assert (session.config.width, session.config.height) == (32, 24)
    assert session.controller.canvas_width == 32
    assert session.controller.state.scale == pytest.approx(1.1)


def test_apply_preset_switches_view():
    session = _session()
    preset = get_preset_by_id("seahorse-valley")
    preset = replace(preset, canvas_width=40, canvas_height=30)

    async def scenario():
        session.apply_preset(preset)
        return await session.settle()

    assert asyncio.run(scenario()) is RenderOutcome.COMPLETED
    assert session.config.bounds == preset.bounds
    assert session.config.color_scheme is ColorScheme.OCEAN


def test_replayed_events_drive_the_session():
    session = _session()
    events = [
        {"type": "touch_start", "touches": [[30, 20]]},
        {"type": "touch_move", "touches": [[20, 20]]},
        {"type": "touch_end"},
        {"type": "wheel", "delta_y": -3, "x": 32, "y": 24},
        {"type": "reset"},
    ]

    async def scenario():
        for event in events:
            apply_gesture(session, event)
        return await session.settle()

    assert asyncio.run(scenario()) is RenderOutcome.COMPLETED
    assert session.config.bounds == default_bounds()
    c = pixel_to_complex(32, 24, 64, 48, session.config.bounds)
    assert c.real == pytest.approx(-0.75)


def test_unknown_event_type_is_rejected():
    with pytest.raises(ValueError):
        apply_gesture(_session(), {"type": "pinch"})


def test_parameter_changes_supersede_and_keep_view():
    session = _session()
    bounds = session.config.bounds

    async def scenario():
        first = session.request_render()
        await asyncio.sleep(0)
        session.set_max_iterations(40)
        session.set_color_scheme("Fire")
        outcome = await session.settle()
        return await first, outcome

    first, last = asyncio.run(scenario())
    assert first is RenderOutcome.CANCELLED
    assert last is RenderOutcome.COMPLETED
    assert session.config.bounds == bounds
    assert session.config.max_iterations == 40
    assert session.config.color_scheme is ColorScheme.FIRE
    assert np.array_equal(session.renderer.pixels, _fresh_pixels(session.config))


def test_set_center_keeps_extent_and_zoom():
    session = _session()

    async def scenario():
        session.wheel(-1, 32, 24)
        session.set_center(-0.1, 0.65)
        return await session.settle()

    assert asyncio.run(scenario()) is RenderOutcome.COMPLETED
    bounds = session.config.bounds
    assert bounds.real_range == pytest.approx(3.5 / 1.1)
    assert bounds.imaginary_range == pytest.approx(2.5 / 1.1)
    assert ((bounds.min_real + bounds.max_real) / 2, (bounds.min_imaginary + bounds.max_imaginary) / 2) == pytest.approx((-0.1, 0.65))
    assert (session.controller.state.center_x, session.controller.state.center_y) == pytest.approx((-0.1, 0.65))
    assert session.controller.state.scale == pytest.approx(1.1)


def test_invalid_parameter_changes_are_rejected():
    session = _session()
    with pytest.raises(ValueError):
        session.set_max_iterations(0)
    with pytest.raises(ValueError):
        session.set_color_scheme("sepia")
    assert session.config.max_iterations == 120


def test_replayed_parameter_events():
    session = _session()
    events = [
        {"type": "max_iterations", "value": 64},
        {"type": "color_scheme", "value": "grayscale"},
        {"type": "center", "x": 0.3, "y": -0.2},
    ]

    async def scenario():
        for event in events:
            apply_gesture(session, event)
        return await session.settle()

    assert asyncio.run(scenario()) is RenderOutcome.COMPLETED
    assert session.config.max_iterations == 64
    assert session.config.color_scheme is ColorScheme.GRAYSCALE
    c = pixel_to_complex(32, 24, 64, 48, session.config.bounds)
    assert (c.real, c.imaginary) == pytest.approx((0.3, -0.2))
