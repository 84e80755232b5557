"""The caller side of the engine: one view, its gestures, and its renders."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Dict, List, Optional, Union

from mandelview.coords import bounds_center, center_bounds, default_bounds
from mandelview.model import ColorScheme, FractalBounds, FractalConfig, validate_bounds, validate_config
from mandelview.presets import FractalPreset, preset_to_config
from mandelview.renderers.progressive import FractalRenderer, ProgressCallback, RenderOutcome
from mandelview.util.logging_setup import get_logger
from mandelview.zoompan import ZoomPanController


class ViewSession:
    """Owns the current config and turns gesture events into superseding renders.

    Bounds are replaced wholesale on every gesture; the render scheduler sees
    each replacement as a new request and abandons the previous one.
    Handlers that schedule work need a running event loop.
    """

    def __init__(self, config: FractalConfig, renderer: FractalRenderer, on_progress: Optional[ProgressCallback] = None):
        self._config = validate_config(config)
        self._renderer = renderer
        self._on_progress = on_progress
        self._controller = ZoomPanController(config.width, config.height, config.bounds)
        self._tasks: List[asyncio.Task] = []
        self._log = get_logger("session")

    @property
    def config(self) -> FractalConfig:
        return self._config

    @property
    def controller(self) -> ZoomPanController:
        return self._controller

    @property
    def renderer(self) -> FractalRenderer:
        return self._renderer

    def request_render(self) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(
            self._renderer.render(self._config, self._on_progress)
        )
        self._tasks.append(task)
        return task

    def _adopt(self, bounds: Optional[FractalBounds]) -> Optional[asyncio.Task]:
        if bounds is None:
            return None
        self._config = replace(self._config, bounds=validate_bounds(bounds))
        return self.request_render()

    def pointer_down(self, px: float, py: float) -> None:
        self._controller.pointer_down(px, py)

    def pointer_move(self, px: float, py: float) -> Optional[asyncio.Task]:
        return self._adopt(self._controller.pointer_move(px, py, self._config.bounds))

    def pointer_up(self) -> None:
        self._controller.pointer_up()

    def wheel(self, delta_y: float, px: float, py: float) -> asyncio.Task:
        return self._adopt(self._controller.wheel(delta_y, px, py, self._config.bounds))

    def touch_start(self, touches) -> None:
        self._controller.touch_start(touches)

    def touch_move(self, touches) -> Optional[asyncio.Task]:
        return self._adopt(self._controller.touch_move(touches, self._config.bounds))

    def touch_end(self) -> None:
        self._controller.touch_end()

    def reset(self, bounds: Optional[FractalBounds] = None) -> asyncio.Task:
        bounds = bounds or default_bounds()
        self._controller.reset(bounds)
        return self._adopt(bounds)

    def resize(self, width: int, height: int) -> asyncio.Task:
        self._config = validate_config(replace(self._config, width=width, height=height))
        self._controller = ZoomPanController(width, height, self._config.bounds)
        return self.request_render()

    def set_max_iterations(self, max_iterations: int) -> asyncio.Task:
        self._config = validate_config(replace(self._config, max_iterations=int(max_iterations)))
        return self.request_render()

    def set_color_scheme(self, scheme: Union[ColorScheme, str]) -> asyncio.Task:
        if not isinstance(scheme, ColorScheme):
            scheme = ColorScheme(str(scheme).lower())
        self._config = replace(self._config, color_scheme=scheme)
        return self.request_render()

    def set_center(self, center_x: float, center_y: float) -> asyncio.Task:
        """Move the view to a new centre, keeping its extent (and zoom)."""
        bounds = center_bounds(self._config.bounds, center_x, center_y)
        self._controller.recenter(*bounds_center(bounds))
        return self._adopt(bounds)

    def apply_preset(self, preset: FractalPreset) -> asyncio.Task:
        self._config = preset_to_config(preset)
        self._controller = ZoomPanController(self._config.width, self._config.height, self._config.bounds)
        self._log.info("Applied preset %s", preset.id)
        return self.request_render()

    async def settle(self) -> Optional[RenderOutcome]:
        """Wait for every scheduled render; return the outcome of the newest."""
        if not self._tasks:
            return None
        outcomes = await asyncio.gather(*self._tasks)
        self._tasks.clear()
        return outcomes[-1]


def apply_gesture(session: ViewSession, event: Dict[str, Any]) -> None:
    """Feed one recorded gesture event (as found in a replay script) to a session."""
    kind = event.get("type")
    if kind == "pointer_down":
        session.pointer_down(float(event["x"]), float(event["y"]))
    elif kind == "pointer_move":
        session.pointer_move(float(event["x"]), float(event["y"]))
    elif kind == "pointer_up":
        session.pointer_up()
    elif kind == "wheel":
        session.wheel(float(event["delta_y"]), float(event["x"]), float(event["y"]))
    elif kind == "touch_start":
        session.touch_start([tuple(t) for t in event.get("touches", [])])
    elif kind == "touch_move":
        session.touch_move([tuple(t) for t in event.get("touches", [])])
    elif kind == "touch_end":
        session.touch_end()
    elif kind == "reset":
        session.reset()
    elif kind == "resize":
        session.resize(int(event["width"]), int(event["height"]))
    elif kind == "max_iterations":
        session.set_max_iterations(int(event["value"]))
    elif kind == "color_scheme":
        session.set_color_scheme(str(event["value"]))
    elif kind == "center":
        session.set_center(float(event["x"]), float(event["y"]))
    else:
        raise ValueError(f"Unknown gesture event type: {kind!r}")
