from __future__ import annotations

import argparse
import asyncio
import json
from concurrent.futures import ProcessPoolExecutor
from contextlib import nullcontext
from dataclasses import replace
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from mandelview.config import config_to_dict, load_config, normalise_config
from mandelview.coords import bounds_center, center_bounds, format_coordinate, format_zoom, zoom_level
from mandelview.model import ColorScheme, FractalConfig
from mandelview.presets import PresetStore, preset_from_config
from mandelview.renderers.progressive import DEFAULT_PREVIEW_SCALE, FractalRenderer, RenderOutcome
from mandelview.renderers.surface import ImageSurface
from mandelview.session import ViewSession, apply_gesture
from mandelview.util.logging_setup import get_logger, logging_session, parse_level, worker_initialiser
from mandelview.util.manifest import build_manifest, write_manifest

def _size(value: str):
    try:
        w, h = value.lower().split("x")
        return int(w), int(h)
    except ValueError:
        raise argparse.ArgumentTypeError("size must look like 800x600") from None

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mandelview", description="Progressive Mandelbrot renderer with gesture replay and presets.")
    p.add_argument("--config", type=str, default=None, help="Path to config JSON. If omitted, the default full-set view is used.")
    p.add_argument("--store", type=str, default="presets.json", help="Custom preset file.")
    p.add_argument("--workers", type=int, default=0, help="Process pool size for chunk evaluation (0 = evaluate inline).")
    p.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level.")
    p.add_argument("--log-file", type=str, default="mandelview.log", help="Log file path (rotating). Set empty to disable file logging.")
    p.add_argument("--manifest", type=str, default="artifacts/run.json", help="Where to write the run manifest after a render.")

    view = argparse.ArgumentParser(add_help=False)
    view.add_argument("--preset", type=str, default=None,
                      help="Start from a built-in or stored preset. Replaces the view read from --config; the flags below still override it.")
    view.add_argument("--scheme", type=str, default=None, choices=[s.value for s in ColorScheme], help="Color scheme.")
    view.add_argument("--iterations", type=int, default=None, help="Maximum iterations per pixel.")
    view.add_argument("--size", type=_size, default=None, help="Canvas size, e.g. 800x600.")
    view.add_argument("--bounds", type=float, nargs=4, default=None,
                      metavar=("MIN_RE", "MAX_RE", "MIN_IM", "MAX_IM"), help="Viewport on the complex plane.")
    view.add_argument("--center", type=float, nargs=2, default=None, metavar=("RE", "IM"),
                      help="Move the view to this centre, keeping its extent.")

    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("render", parents=[view], help="Render one frame to a PNG file.")
    r.add_argument("--output", type=str, default="mandelbrot.png", help="Output PNG path.")
    r.add_argument("--preview", action="store_true", help="Fast low-resolution pass, upscaled.")
    r.add_argument("--preview-scale", type=float, default=DEFAULT_PREVIEW_SCALE, help="Resolution factor for --preview.")
    r.add_argument("--no-smooth", action="store_true", help="Use discrete escape counts (banded colors).")

    rp = sub.add_parser("replay", parents=[view], help="Apply a recorded gesture script and save the final frame.")
    rp.add_argument("script", type=str, help="JSON file: a list of gesture events, or {\"events\": [...]}.")
    rp.add_argument("--output", type=str, default="replay.png", help="Output PNG path.")

    sub.add_parser("info", parents=[view], help="Print zoom level and centre of the configured view.")

    ps = sub.add_parser("presets", help="Manage presets.")
    psub = ps.add_subparsers(dest="preset_cmd", required=True)
    psub.add_parser("list", help="List built-in and stored presets.")
    s = psub.add_parser("save", parents=[view], help="Store the configured view as a preset.")
    s.add_argument("id", type=str)
    s.add_argument("name", type=str)
    s.add_argument("--description", type=str, default="")
    d = psub.add_parser("delete", help="Remove a stored preset.")
    d.add_argument("id", type=str)

    return p

def _resolve_config(args, store: PresetStore) -> FractalConfig:
    cfg: Dict[str, Any] = load_config(args.config)
    if getattr(args, "preset", None):
        # the command-line preset wins over the file; a "preset" key inside the
        # file is the way to seed from a preset and override parts of it
        if args.config:
            get_logger().info("--preset %s replaces the view from %s", args.preset, args.config)
        cfg = {"preset": args.preset}
    if getattr(args, "scheme", None):
        cfg["color_scheme"] = args.scheme
    if getattr(args, "iterations", None) is not None:
        cfg["max_iterations"] = args.iterations
    if getattr(args, "size", None):
        cfg["width"], cfg["height"] = args.size
    if getattr(args, "bounds", None):
        cfg["bounds"] = list(args.bounds)
    config = normalise_config(cfg, store.load_all())
    if getattr(args, "center", None):
        config = replace(config, bounds=center_bounds(config.bounds, *args.center))
    return config

def _load_script(path: str) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    events = raw.get("events") if isinstance(raw, dict) else raw
    if not isinstance(events, list):
        raise ValueError("Gesture script must be a list of events or an object with an 'events' list.")
    return events

def _executor(workers: int, queue, level: int):
    if workers <= 0:
        return nullcontext(None)
    return ProcessPoolExecutor(max_workers=workers, initializer=worker_initialiser, initargs=(queue, level))

def _describe(config: FractalConfig) -> str:
    cx, cy = bounds_center(config.bounds)
    return "zoom {}x centre ({}, {}) iter={} scheme={}".format(
        format_zoom(zoom_level(config.bounds)), format_coordinate(cx), format_coordinate(cy),
        config.max_iterations, config.color_scheme.value,
    )

async def _replay(config: FractalConfig, renderer: FractalRenderer, events, on_progress):
    session = ViewSession(config, renderer, on_progress)
    session.request_render()
    for event in events:
        apply_gesture(session, event)
        # give the in-flight render a checkpoint between gestures
        await asyncio.sleep(float(event.get("delay", 0)))
    outcome = await session.settle()
    return session.config, outcome

def _presets(args, store: PresetStore) -> int:
    if args.preset_cmd == "list":
        for preset in store.all_presets():
            print(f"{preset.id:<18} {preset.name:<18} {preset.color_scheme.value:<10} {preset.description}")
        return 0
    if args.preset_cmd == "save":
        config = _resolve_config(args, store)
        store.save(preset_from_config(args.id, args.name, config, args.description))
        return 0
    if args.preset_cmd == "delete":
        if not store.delete(args.id):
            get_logger().warning("No stored preset with id %s", args.id)
            return 1
        return 0
    raise RuntimeError("Unknown presets command.")

def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    log_level = parse_level(args.log_level)
    log_file = args.log_file if args.log_file and args.log_file.strip() else None

    with logging_session(level=log_level, log_file=log_file) as queue:
        logger = get_logger()
        store = PresetStore(args.store)

        if args.cmd == "presets":
            return _presets(args, store)

        config = _resolve_config(args, store)

        if args.cmd == "info":
            print(_describe(config))
            return 0

        if args.cmd not in ("render", "replay"):
            raise RuntimeError("Unknown command.")

        surface = ImageSurface(config.width, config.height)
        with _executor(args.workers, queue, log_level) as pool, \
                tqdm(total=100, unit="%", desc=args.cmd, disable=None) as bar:
            renderer = FractalRenderer(surface, executor=pool)

            def on_progress(fraction: float) -> None:
                # a superseding render restarts from zero
                target = int(round(fraction * 100))
                if target < bar.n:
                    bar.reset(total=100)
                bar.update(target - bar.n)

            if args.cmd == "render":
                if args.preview:
                    outcome = asyncio.run(renderer.render_preview(config, args.preview_scale))
                else:
                    outcome = asyncio.run(renderer.render(config, on_progress, smooth=not args.no_smooth))
            else:
                config, outcome = asyncio.run(_replay(config, renderer, _load_script(args.script), on_progress))

        if outcome is not RenderOutcome.COMPLETED:
            logger.error("Render did not complete (%s)", outcome)
            return 1

        surface.save(args.output)
        logger.info("Frame written: %s (%s)", args.output, _describe(config))

        if args.manifest:
            manifest = build_manifest(
                command=args.cmd,
                config=config_to_dict(config),
                outcome={"result": outcome.value, "output": args.output, "workers": args.workers},
            )
            write_manifest(args.manifest, manifest)
            logger.info("Run manifest written: %s", args.manifest)
        return 0

if __name__ == "__main__":
    raise SystemExit(main())
