"""Incremental, cancellable rendering of one frame onto an :class:`ImageSurface`.

A frame is computed scanline by scanline. Each scanline is split into column
chunks that can be evaluated independently (inline, or on a
``concurrent.futures`` executor); all chunks of a row are gathered before
any of its pixels are colored. Every ``CHECKPOINT_ROWS`` rows the back buffer
is flushed to the surface, progress is reported and control is handed back
to the event loop.

Each request is tagged with a generation number. Starting a new request (or
calling :meth:`FractalRenderer.cancel`) makes every older generation stale;
a stale render notices at the top of its next scanline (or as soon as the
chunks of the current scanline come back from the executor) and stops
without writing that row. Preview passes follow the same rule. The new
request waits for the old one to release the buffer before writing.
"""

from __future__ import annotations

import asyncio
import math
from concurrent.futures import Executor
from dataclasses import replace
from enum import Enum
from typing import Callable, List, Optional

import numpy as np
from PIL import Image

from mandelview.color import color_for
from mandelview.kernel import escape_span
from mandelview.model import FractalBounds, FractalConfig, RenderPoint, validate_config
from mandelview.renderers.surface import ImageSurface, SurfaceError
from mandelview.util.logging_setup import get_logger

ProgressCallback = Callable[[float], None]

CHECKPOINT_ROWS = 10
MAX_CHUNK_COLUMNS = 1000
DEFAULT_PREVIEW_SCALE = 0.25


class RenderState(Enum):
    IDLE = "idle"
    RENDERING = "rendering"


class RenderOutcome(Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def chunk_size(total_pixels: int) -> int:
    return max(1, min(MAX_CHUNK_COLUMNS, total_pixels // 100))


def evaluate_chunk(
    y: int,
    start_x: int,
    end_x: int,
    width: int,
    height: int,
    bounds: FractalBounds,
    max_iterations: int,
    smooth: bool,
) -> List[RenderPoint]:
    """Escape values for one chunk of one scanline. Picklable for process pools."""
    values = escape_span(y, start_x, end_x, width, height, bounds, max_iterations, smooth)
    return [RenderPoint(x, y, float(v)) for x, v in zip(range(start_x, end_x), values)]


class FractalRenderer:
    def __init__(self, surface: ImageSurface, *, executor: Optional[Executor] = None):
        ctx = surface.get_context() if surface is not None else None
        if ctx is None:
            raise SurfaceError("Could not get a drawing context for the surface.")
        self._surface = surface
        self._ctx = ctx
        self._executor = executor
        self._pixels = np.zeros((surface.height, surface.width, 4), dtype=np.uint8)
        self._generation = 0
        self._state = RenderState.IDLE
        self._active: Optional[asyncio.Event] = None
        self._log = get_logger("render")

    @property
    def surface(self) -> ImageSurface:
        return self._surface

    @property
    def pixels(self) -> np.ndarray:
        """The back buffer (height x width x RGBA). Read it only between renders."""
        return self._pixels

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def state(self) -> RenderState:
        return self._state

    def is_rendering(self) -> bool:
        return self._state is RenderState.RENDERING

    def cancel(self) -> None:
        """Make any in-flight render stale without starting a new one."""
        self._generation += 1
        if self._active is not None:
            self._log.info("Cancel requested (generation now %s)", self._generation)

    def clear(self) -> None:
        self._ctx.rectangle([(0, 0), (self._surface.width, self._surface.height)], fill=(0, 0, 0, 0))

    async def render(
        self,
        config: FractalConfig,
        on_progress: Optional[ProgressCallback] = None,
        smooth: bool = True,
    ) -> RenderOutcome:
        validate_config(config)
        generation = self._next_generation()
        if not await self._acquire(generation):
            self._log.info("[Render %s] superseded before start", generation)
            return RenderOutcome.CANCELLED
        try:
            return await self._render_rows(config, generation, on_progress, smooth)
        finally:
            self._release()

    async def render_preview(self, config: FractalConfig, scale: float = DEFAULT_PREVIEW_SCALE) -> RenderOutcome:
        """Fast low-resolution pass, upscaled without smoothing onto the surface."""
        validate_config(config)
        if scale <= 0:
            raise ValueError("preview scale must be > 0")
        preview_config = replace(
            config,
            width=max(1, math.floor(config.width * scale)),
            height=max(1, math.floor(config.height * scale)),
        )
        generation = self._next_generation()
        if not await self._acquire(generation):
            return RenderOutcome.CANCELLED
        try:
            aux = ImageSurface(preview_config.width, preview_config.height)
            outcome = await self._render_rows(preview_config, generation, None, False, target=aux)
            if outcome is RenderOutcome.CANCELLED or generation != self._generation:
                return RenderOutcome.CANCELLED
            self._ensure_size(config.width, config.height)
            upscaled = aux.image.resize((config.width, config.height), Image.Resampling.NEAREST)
            self._pixels[...] = np.asarray(upscaled, dtype=np.uint8)
            self._surface.put_image_data(self._pixels)
            self._log.info(
                "[Render %s] preview %sx%s -> %sx%s",
                generation, preview_config.width, preview_config.height, config.width, config.height,
            )
            return RenderOutcome.COMPLETED
        finally:
            self._release()

    def _next_generation(self) -> int:
        self._generation += 1
        if self._active is not None:
            self._log.info("[Render %s] superseding in-flight render", self._generation)
        return self._generation

    async def _acquire(self, generation: int) -> bool:
        # only the newest generation may claim the buffer, so at most one
        # waiter proceeds once the active render releases it
        while self._active is not None:
            await self._active.wait()
            if generation != self._generation:
                return False
        if generation != self._generation:
            return False
        self._active = asyncio.Event()
        self._state = RenderState.RENDERING
        return True

    def _release(self) -> None:
        done = self._active
        self._active = None
        self._state = RenderState.IDLE
        if done is not None:
            done.set()

    def _ensure_size(self, width: int, height: int) -> None:
        if self._surface.width != width or self._surface.height != height:
            self._log.debug("Resizing surface %sx%s -> %sx%s", self._surface.width, self._surface.height, width, height)
            self._surface.resize(width, height)
            ctx = self._surface.get_context()
            if ctx is None:
                raise SurfaceError("Lost the drawing context while resizing.")
            self._ctx = ctx
        if self._pixels.shape != (height, width, 4):
            self._pixels = np.zeros((height, width, 4), dtype=np.uint8)

    async def _render_rows(
        self,
        config: FractalConfig,
        generation: int,
        on_progress: Optional[ProgressCallback],
        smooth: bool,
        target: Optional[ImageSurface] = None,
    ) -> RenderOutcome:
        """Paint ``config`` row by row onto ``target`` (the renderer's own surface by default).

        Staleness is always judged against this renderer's generation, so an
        auxiliary pass stops as soon as the request that owns it is superseded.
        """
        if target is None:
            self._ensure_size(config.width, config.height)
            target, pixels = self._surface, self._pixels
        else:
            pixels = np.zeros((config.height, config.width, 4), dtype=np.uint8)
        width, height = config.width, config.height
        total = config.total_pixels
        chunk = chunk_size(total)
        processed = 0

        self._log.info(
            "[Render %s] start %sx%s iter=%s scheme=%s smooth=%s chunk=%s",
            generation, width, height, config.max_iterations, config.color_scheme.value, smooth, chunk,
        )

        for y in range(height):
            if generation != self._generation:
                self._log.info("[Render %s] cancelled at row %s/%s", generation, y, height)
                return RenderOutcome.CANCELLED

            points = await self._evaluate_row(config, y, chunk, smooth)
            # pooled chunks suspend mid-row; a newer request may have arrived meanwhile
            if generation != self._generation:
                self._log.info("[Render %s] cancelled during row %s/%s", generation, y, height)
                return RenderOutcome.CANCELLED

            for point in points:
                color = color_for(point.iterations, config.max_iterations, config.color_scheme)
                pixels[point.y, point.x] = (color.r, color.g, color.b, 255)
            processed += width

            if y % CHECKPOINT_ROWS == 0 or y == height - 1:
                target.put_image_data(pixels)
                if on_progress is not None:
                    on_progress(processed / total)
                self._log.debug("[Render %s] row %s/%s", generation, y + 1, height)
                await asyncio.sleep(0)

        if generation != self._generation:
            self._log.info("[Render %s] cancelled after last row", generation)
            return RenderOutcome.CANCELLED

        target.put_image_data(pixels)
        if on_progress is not None:
            on_progress(1.0)
        self._log.info("[Render %s] done", generation)
        return RenderOutcome.COMPLETED

    async def _evaluate_row(self, config: FractalConfig, y: int, chunk: int, smooth: bool) -> List[RenderPoint]:
        spans = [(start, min(start + chunk, config.width)) for start in range(0, config.width, chunk)]
        args = (config.width, config.height, config.bounds, config.max_iterations, smooth)
        if self._executor is None:
            results = [evaluate_chunk(y, start, end, *args) for start, end in spans]
        else:
            loop = asyncio.get_running_loop()
            results = await asyncio.gather(
                *(loop.run_in_executor(self._executor, evaluate_chunk, y, start, end, *args) for start, end in spans)
            )
        return [point for points in results for point in points]
