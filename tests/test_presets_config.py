import json

import pytest

from mandelview.config import config_to_dict, default_config_dict, load_config, normalise_config
from mandelview.coords import default_bounds
from mandelview.model import ColorScheme, FractalBounds, FractalConfig
from mandelview.presets import (
    BUILTIN_PRESETS,
    FractalPreset,
    PresetStore,
    get_preset_by_id,
    preset_from_config,
    preset_to_config,
)


def test_builtin_presets_are_renderable():
    ids = [p.id for p in BUILTIN_PRESETS]
    assert ids == ["overview", "seahorse-valley", "lightning", "spiral", "elephant-valley", "feather"]
    for preset in BUILTIN_PRESETS:
        config = preset_to_config(preset)
        assert (config.width, config.height) == (800, 600)


def test_lookup_by_id():
    assert get_preset_by_id("lightning").color_scheme is ColorScheme.FIRE
    assert get_preset_by_id("nope") is None


def test_store_upserts_and_deletes(tmp_path):
    store = PresetStore(str(tmp_path / "sub" / "presets.json"))
    assert store.load_all() == []

    config = FractalConfig(FractalBounds(-1.0, 0.0, -0.5, 0.5), 64, 320, 240, ColorScheme.OCEAN)
    store.save(preset_from_config("mine", "Mine", config, "first"))
    store.save(preset_from_config("mine", "Mine v2", config))
    store.save(preset_from_config("other", "Other", config))

    stored = store.load_all()
    assert [p.name for p in stored] == ["Mine v2", "Other"]
    assert stored[0].bounds == config.bounds
    assert stored[0].color_scheme is ColorScheme.OCEAN
    assert [p.id for p in store.all_presets()][:6] == [p.id for p in BUILTIN_PRESETS]

    assert store.delete("mine") is True
    assert store.delete("mine") is False
    assert [p.id for p in store.load_all()] == ["other"]


def test_corrupt_store_yields_no_presets(tmp_path):
    path = tmp_path / "presets.json"
    path.write_text("{not json", encoding="utf-8")
    assert PresetStore(str(path)).load_all() == []


def test_preset_round_trips_through_dict():
    preset = get_preset_by_id("feather")
    assert FractalPreset.from_dict(json.loads(json.dumps(preset.to_dict()))) == preset


def test_default_config():
    config = normalise_config(load_config(None))
    assert config.bounds == default_bounds()
    assert config.max_iterations == 100
    assert config.color_scheme is ColorScheme.CLASSIC


def test_load_config_requires_object(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_preset_seeds_config_and_explicit_keys_win():
    config = normalise_config({"preset": "spiral", "width": 100, "height": 80, "color_scheme": "Grayscale"})
    assert config.bounds == get_preset_by_id("spiral").bounds
    assert config.max_iterations == 250
    assert (config.width, config.height) == (100, 80)
    assert config.color_scheme is ColorScheme.GRAYSCALE


def test_custom_presets_join_lookup():
    custom = preset_from_config("c1", "C1", normalise_config(default_config_dict()))
    assert normalise_config({"preset": "c1"}, [custom]).bounds == default_bounds()
    with pytest.raises(ValueError):
        normalise_config({"preset": "c1"})


def test_bounds_accept_mapping():
    cfg = default_config_dict()
    cfg["bounds"] = {"min_real": -1, "max_real": 1, "min_imaginary": -1, "max_imaginary": 1}
    assert normalise_config(cfg).bounds == FractalBounds(-1.0, 1.0, -1.0, 1.0)


@pytest.mark.parametrize("patch,message", [
    ({"bounds": [1, 0, -1, 1]}, "min_real"),
    ({"bounds": [0, 1, 2]}, "bounds must be"),
    ({"bounds": {"min_real": 0}}, "missing"),
    ({"width": 0}, "positive"),
    ({"max_iterations": -5}, "max_iterations"),
    ({"color_scheme": "sepia"}, "color_scheme"),
])
def test_invalid_configs_are_rejected(patch, message):
    cfg = default_config_dict()
    cfg.update(patch)
    with pytest.raises(ValueError, match=message):
        normalise_config(cfg)


def test_missing_field():
    cfg = default_config_dict()
    del cfg["height"]
    with pytest.raises(ValueError, match="height"):
        normalise_config(cfg)


def test_config_to_dict_round_trip():
    config = normalise_config({"preset": "lightning"})
    assert normalise_config(config_to_dict(config)) == config
