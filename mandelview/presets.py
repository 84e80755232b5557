from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from mandelview.model import ColorScheme, FractalBounds, FractalConfig, validate_config
from mandelview.util.logging_setup import get_logger


@dataclass(frozen=True)
class FractalPreset:
    """A named view: bounds, depth, palette and the canvas it was framed for."""

    id: str
    name: str
    description: str
    bounds: FractalBounds
    max_iterations: int
    color_scheme: ColorScheme
    canvas_width: int = 800
    canvas_height: int = 600

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["color_scheme"] = ColorScheme(self.color_scheme).value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FractalPreset":
        b = data["bounds"]
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            description=str(data.get("description", "")),
            bounds=FractalBounds(
                min_real=float(b["min_real"]),
                max_real=float(b["max_real"]),
                min_imaginary=float(b["min_imaginary"]),
                max_imaginary=float(b["max_imaginary"]),
            ),
            max_iterations=int(data["max_iterations"]),
            color_scheme=ColorScheme(data["color_scheme"]),
            canvas_width=int(data.get("canvas_width", 800)),
            canvas_height=int(data.get("canvas_height", 600)),
        )


BUILTIN_PRESETS = (
    FractalPreset("overview", "Overview", "Classic Mandelbrot set overview",
                  FractalBounds(-2.5, 1.5, -1.5, 1.5), 100, ColorScheme.CLASSIC),
    FractalPreset("seahorse-valley", "Seahorse Valley", "Beautiful seahorse-like structures",
                  FractalBounds(-0.76, -0.74, 0.09, 0.11), 200, ColorScheme.OCEAN),
    FractalPreset("lightning", "Lightning", "Electric lightning-like patterns",
                  FractalBounds(-1.2515, -1.2495, 0.0195, 0.0215), 300, ColorScheme.FIRE),
    FractalPreset("spiral", "Spiral Galaxy", "Spiral patterns resembling galaxies",
                  FractalBounds(-0.17, -0.15, 1.03, 1.05), 250, ColorScheme.RAINBOW),
    FractalPreset("elephant-valley", "Elephant Valley", "Elephant-like bulbous structures",
                  FractalBounds(0.24, 0.26, -0.01, 0.01), 150, ColorScheme.FIRE),
    FractalPreset("feather", "Feather", "Delicate feather-like fractals",
                  FractalBounds(-0.236, -0.234, 0.826, 0.828), 400, ColorScheme.CLASSIC),
)


def get_preset_by_id(preset_id: str, extra: Optional[List[FractalPreset]] = None) -> Optional[FractalPreset]:
    for preset in list(BUILTIN_PRESETS) + list(extra or []):
        if preset.id == preset_id:
            return preset
    return None


def preset_to_config(preset: FractalPreset) -> FractalConfig:
    return validate_config(FractalConfig(
        bounds=preset.bounds,
        max_iterations=preset.max_iterations,
        width=preset.canvas_width,
        height=preset.canvas_height,
        color_scheme=preset.color_scheme,
    ))


def preset_from_config(preset_id: str, name: str, config: FractalConfig, description: str = "") -> FractalPreset:
    return FractalPreset(
        id=preset_id,
        name=name,
        description=description,
        bounds=config.bounds,
        max_iterations=config.max_iterations,
        color_scheme=config.color_scheme,
        canvas_width=config.width,
        canvas_height=config.height,
    )


class PresetStore:
    """Custom presets kept as a JSON array in a single file."""

    def __init__(self, path: str):
        self.path = path
        self._log = get_logger("presets")

    def load_all(self) -> List[FractalPreset]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, list):
                raise ValueError("Preset file must hold a JSON array.")
            return [FractalPreset.from_dict(item) for item in raw]
        except (OSError, ValueError, KeyError, TypeError):
            self._log.exception("Error loading custom presets from %s", self.path)
            return []

    def _write(self, presets: List[FractalPreset]) -> None:
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump([p.to_dict() for p in presets], f, indent=2)

    def save(self, preset: FractalPreset) -> None:
        presets = self.load_all()
        for i, existing in enumerate(presets):
            if existing.id == preset.id:
                presets[i] = preset
                break
        else:
            presets.append(preset)
        self._write(presets)
        self._log.info("Saved preset %s -> %s", preset.id, self.path)

    def delete(self, preset_id: str) -> bool:
        presets = self.load_all()
        kept = [p for p in presets if p.id != preset_id]
        if len(kept) == len(presets):
            return False
        self._write(kept)
        self._log.info("Deleted preset %s from %s", preset_id, self.path)
        return True

    def all_presets(self) -> List[FractalPreset]:
        return list(BUILTIN_PRESETS) + self.load_all()
