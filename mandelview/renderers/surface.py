from __future__ import annotations

from typing import Optional

import numpy as np
from PIL import Image, ImageDraw


class SurfaceError(RuntimeError):
    """Raised when a drawable surface cannot be obtained."""


class ImageSurface:
    """Visible RGBA drawing target backed by a Pillow image.

    The renderer keeps its own back buffer and copies it here at every
    checkpoint, so readers of :attr:`image` only ever see whole scanlines.
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise SurfaceError(f"Surface size must be positive, got {width}x{height}.")
        self.image = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        self._closed = False

    @property
    def width(self) -> int:
        return self.image.size[0]

    @property
    def height(self) -> int:
        return self.image.size[1]

    def get_context(self) -> Optional[ImageDraw.ImageDraw]:
        if self._closed:
            return None
        return ImageDraw.Draw(self.image)

    def resize(self, width: int, height: int) -> None:
        # like a canvas, resizing discards the current contents
        if width <= 0 or height <= 0:
            raise SurfaceError(f"Surface size must be positive, got {width}x{height}.")
        self.image = Image.new("RGBA", (width, height), (0, 0, 0, 0))

    def put_image_data(self, pixels: np.ndarray) -> None:
        if pixels.shape != (self.height, self.width, 4):
            raise ValueError(f"Pixel data shape {pixels.shape} does not match surface {self.width}x{self.height}.")
        self.image.paste(Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8)), (0, 0))

    def to_array(self) -> np.ndarray:
        return np.array(self.image, dtype=np.uint8)

    def save(self, path: str) -> None:
        self.image.save(path, format="PNG", optimize=True)

    def close(self) -> None:
        self._closed = True
