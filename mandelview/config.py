import json
from typing import Any, Dict, List, Optional

from mandelview.coords import default_bounds
from mandelview.model import ColorScheme, FractalBounds, FractalConfig, validate_config
from mandelview.presets import FractalPreset, get_preset_by_id

_BOUND_KEYS = ("min_real", "max_real", "min_imaginary", "max_imaginary")

def default_config_dict() -> Dict[str, Any]:
    b = default_bounds()
    return {
        "bounds": list(b.as_tuple()),
        "max_iterations": 100,
        "width": 800,
        "height": 600,
        "color_scheme": ColorScheme.CLASSIC.value,
    }

def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    if not config_path:
        return default_config_dict()
    with open(config_path, "r", encoding="utf-8") as f:
        cfg = json.load(f)
    if not isinstance(cfg, dict):
        raise ValueError("Config JSON must be an object.")
    return cfg

def _parse_bounds(value: Any) -> FractalBounds:
    if isinstance(value, dict):
        missing = [k for k in _BOUND_KEYS if k not in value]
        if missing:
            raise ValueError(f"bounds is missing: {', '.join(missing)}")
        return FractalBounds(*(float(value[k]) for k in _BOUND_KEYS))
    if isinstance(value, (list, tuple)) and len(value) == 4:
        return FractalBounds(*(float(v) for v in value))
    raise ValueError("bounds must be [min_real, max_real, min_imaginary, max_imaginary] or an object with those keys.")

def normalise_config(cfg: Dict[str, Any], presets: Optional[List[FractalPreset]] = None) -> FractalConfig:
    """Turn a loosely typed config mapping into a validated FractalConfig.

    A ``preset`` key seeds every field from that built-in preset; explicit
    keys in ``cfg`` still win. ``presets`` adds custom presets to the lookup.
    """
    merged: Dict[str, Any] = {}
    preset_id = cfg.get("preset")
    if preset_id:
        preset = get_preset_by_id(str(preset_id), presets)
        if preset is None:
            raise ValueError(f"Unknown preset: {preset_id}")
        merged.update({
            "bounds": list(preset.bounds.as_tuple()),
            "max_iterations": preset.max_iterations,
            "width": preset.canvas_width,
            "height": preset.canvas_height,
            "color_scheme": preset.color_scheme.value,
        })
    merged.update({k: v for k, v in cfg.items() if k != "preset"})

    required = ["bounds", "max_iterations", "width", "height"]
    for r in required:
        if r not in merged:
            raise ValueError(f"Missing config field: {r}")

    scheme = str(merged.get("color_scheme", ColorScheme.CLASSIC.value)).lower()
    try:
        color_scheme = ColorScheme(scheme)
    except ValueError:
        raise ValueError(
            f"color_scheme must be one of: {', '.join(s.value for s in ColorScheme)}"
        ) from None

    return validate_config(FractalConfig(
        bounds=_parse_bounds(merged["bounds"]),
        max_iterations=int(merged["max_iterations"]),
        width=int(merged["width"]),
        height=int(merged["height"]),
        color_scheme=color_scheme,
    ))

def config_to_dict(config: FractalConfig) -> Dict[str, Any]:
    return {
        "bounds": list(config.bounds.as_tuple()),
        "max_iterations": config.max_iterations,
        "width": config.width,
        "height": config.height,
        "color_scheme": config.color_scheme.value,
    }
