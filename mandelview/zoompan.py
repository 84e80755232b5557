"""Gesture handling: pointer drags pan the view, wheel steps zoom at the cursor.

The transitions are plain functions from one :class:`ZoomPanState` to the
next; :class:`ZoomPanController` holds the current state and canvas size for
callers that prefer an object. Neither touches pixels: every handler that
changes the view returns a fresh :class:`FractalBounds` for the caller to
adopt (and re-render) wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

from mandelview.coords import BASE_VIEW_WIDTH, bounds_center, pixel_to_complex, translate_bounds, zoom_bounds
from mandelview.model import FractalBounds

ZOOM_IN_FACTOR = 1.1
ZOOM_OUT_FACTOR = 0.9

Touch = Tuple[float, float]


@dataclass(frozen=True)
class ZoomPanState:
    center_x: float
    center_y: float
    scale: float = 1.0
    dragging: bool = False
    last_pointer_x: float = 0.0
    last_pointer_y: float = 0.0

    @classmethod
    def from_bounds(cls, bounds: FractalBounds) -> "ZoomPanState":
        cx, cy = bounds_center(bounds)
        # scale is measured against the fixed base view, not the starting view
        return cls(center_x=cx, center_y=cy, scale=BASE_VIEW_WIDTH / bounds.real_range)


def pointer_down(state: ZoomPanState, px: float, py: float) -> ZoomPanState:
    return replace(state, dragging=True, last_pointer_x=px, last_pointer_y=py)


def pointer_move(
    state: ZoomPanState,
    px: float,
    py: float,
    bounds: FractalBounds,
    canvas_width: int,
    canvas_height: int,
) -> Tuple[ZoomPanState, Optional[FractalBounds]]:
    """Pan so the content follows the pointer. Returns ``(state, None)`` when not dragging."""
    if not state.dragging:
        return state, None
    d_real = -((px - state.last_pointer_x) / canvas_width) * bounds.real_range
    d_imag = -((py - state.last_pointer_y) / canvas_height) * bounds.imaginary_range
    new_state = replace(
        state,
        center_x=state.center_x + d_real,
        center_y=state.center_y + d_imag,
        last_pointer_x=px,
        last_pointer_y=py,
    )
    return new_state, translate_bounds(bounds, d_real, d_imag)


def pointer_up(state: ZoomPanState) -> ZoomPanState:
    return replace(state, dragging=False)


def zoom_at(
    state: ZoomPanState,
    px: float,
    py: float,
    factor: float,
    bounds: FractalBounds,
    canvas_width: int,
    canvas_height: int,
) -> Tuple[ZoomPanState, FractalBounds]:
    """Scale by ``factor`` keeping the complex point under ``(px, py)`` on that pixel."""
    anchor = pixel_to_complex(px, py, canvas_width, canvas_height, bounds)
    scale = state.scale * factor
    # extent at the new scale, then shift the centre so the anchor keeps its
    # fractional position across the canvas
    extent = zoom_bounds(0.0, 0.0, scale)
    fx = px / canvas_width
    fy = py / canvas_height
    center_x = anchor.real + (0.5 - fx) * extent.real_range
    center_y = anchor.imaginary + (0.5 - fy) * extent.imaginary_range
    new_state = replace(state, center_x=center_x, center_y=center_y, scale=scale)
    return new_state, zoom_bounds(center_x, center_y, scale)


def wheel(
    state: ZoomPanState,
    delta_y: float,
    px: float,
    py: float,
    bounds: FractalBounds,
    canvas_width: int,
    canvas_height: int,
) -> Tuple[ZoomPanState, FractalBounds]:
    # positive delta (scrolling away) zooms out
    factor = ZOOM_OUT_FACTOR if delta_y > 0 else ZOOM_IN_FACTOR
    return zoom_at(state, px, py, factor, bounds, canvas_width, canvas_height)


def reset(default_bounds: FractalBounds) -> ZoomPanState:
    cx, cy = bounds_center(default_bounds)
    return ZoomPanState(center_x=cx, center_y=cy, scale=1.0)


def recenter(state: ZoomPanState, center_x: float, center_y: float) -> ZoomPanState:
    return replace(state, center_x=center_x, center_y=center_y)


class ZoomPanController:
    def __init__(self, canvas_width: int, canvas_height: int, initial_bounds: FractalBounds):
        if canvas_width <= 0 or canvas_height <= 0:
            raise ValueError("canvas dimensions must be positive.")
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self._state = ZoomPanState.from_bounds(initial_bounds)

    @property
    def state(self) -> ZoomPanState:
        return self._state

    def is_dragging(self) -> bool:
        return self._state.dragging

    def pointer_down(self, px: float, py: float) -> None:
        self._state = pointer_down(self._state, px, py)

    def pointer_move(self, px: float, py: float, bounds: FractalBounds) -> Optional[FractalBounds]:
        self._state, new_bounds = pointer_move(
            self._state, px, py, bounds, self.canvas_width, self.canvas_height
        )
        return new_bounds

    def pointer_up(self) -> None:
        self._state = pointer_up(self._state)

    def zoom(self, px: float, py: float, factor: float, bounds: FractalBounds) -> FractalBounds:
        self._state, new_bounds = zoom_at(
            self._state, px, py, factor, bounds, self.canvas_width, self.canvas_height
        )
        return new_bounds

    def wheel(self, delta_y: float, px: float, py: float, bounds: FractalBounds) -> FractalBounds:
        self._state, new_bounds = wheel(
            self._state, delta_y, px, py, bounds, self.canvas_width, self.canvas_height
        )
        return new_bounds

    # Pinch is not supported: anything other than exactly one touch is ignored.

    def touch_start(self, touches: Sequence[Touch]) -> None:
        if len(touches) == 1:
            self.pointer_down(*touches[0])

    def touch_move(self, touches: Sequence[Touch], bounds: FractalBounds) -> Optional[FractalBounds]:
        if len(touches) == 1 and self._state.dragging:
            return self.pointer_move(touches[0][0], touches[0][1], bounds)
        return None

    def touch_end(self) -> None:
        self.pointer_up()

    def reset(self, default_bounds: FractalBounds) -> None:
        self._state = reset(default_bounds)

    def recenter(self, center_x: float, center_y: float) -> None:
        self._state = recenter(self._state, center_x, center_y)
