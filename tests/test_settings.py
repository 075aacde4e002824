"""Unit tests for EngineSettings persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from axisstats.render.render_state import AggregationMode
from axisstats.scaling.policy import ScalePolicy, ScaleSpec, WeightSource
from axisstats.settings import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_WORKERS,
    SCHEMA_VERSION,
    EngineSettings,
    EngineSettingsData,
)


def _write(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "engine_settings.json"
    settings = EngineSettings.load(settings_path=path)
    assert settings.data == EngineSettingsData()
    assert not path.exists()


def test_create_if_missing_writes_defaults(tmp_path: Path) -> None:
    path = tmp_path / "sub" / "engine_settings.json"
    EngineSettings.load(settings_path=path, create_if_missing=True)
    assert json.loads(path.read_text(encoding="utf-8")) == EngineSettingsData().to_json_dict()


def test_save_load_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "engine_settings.json"
    settings = EngineSettings(path=path)
    settings.data.max_workers = 2
    settings.data.chunk_size = 128
    settings.set_default_scales(
        ScaleSpec(ScalePolicy.LOG),
        ScaleSpec(ScalePolicy.SORT_DESCENDING, WeightSource.ITEM_COUNT),
    )
    settings.save()

    loaded = EngineSettings.load(settings_path=path)
    assert loaded.max_workers == 2
    assert loaded.chunk_size == 128
    assert loaded.data.default_y_scale == "Sort Rec (R)"
    x_scale, y_scale = loaded.get_default_scales()
    assert x_scale.policy is ScalePolicy.LOG
    assert y_scale.weight_source is WeightSource.ITEM_COUNT


def test_invalid_json_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "engine_settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert EngineSettings.load(settings_path=path).data == EngineSettingsData()


def test_non_dict_json_gives_defaults(tmp_path: Path) -> None:
    path = _write(tmp_path / "engine_settings.json", [1, 2, 3])
    assert EngineSettings.load(settings_path=path).data == EngineSettingsData()


def test_unknown_keys_and_bad_values_are_ignored(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = _write(
        tmp_path / "engine_settings.json",
        {
            "schema_version": SCHEMA_VERSION,
            "max_workers": "many",
            "chunk_size": 0,
            "default_x_scale": "Spiral",
            "default_y_scale": "Sort",
            "colour": "blue",
        },
    )
    with caplog.at_level("WARNING", logger="axisstats"):
        data = EngineSettings.load(settings_path=path).data
    assert data.max_workers == DEFAULT_MAX_WORKERS
    assert data.chunk_size == DEFAULT_CHUNK_SIZE
    assert data.default_x_scale == "Linear"
    assert data.default_y_scale == "Sort"
    assert any("colour" in r.getMessage() for r in caplog.records)


def test_schema_mismatch_resets_to_defaults(tmp_path: Path) -> None:
    path = _write(tmp_path / "engine_settings.json", {"schema_version": 99, "max_workers": 8})
    assert EngineSettings.load(settings_path=path).max_workers == DEFAULT_MAX_WORKERS


def test_schema_mismatch_can_keep_values(tmp_path: Path) -> None:
    path = _write(tmp_path / "engine_settings.json", {"schema_version": 99, "max_workers": 8})
    settings = EngineSettings.load(settings_path=path, reset_on_version_mismatch=False)
    assert settings.max_workers == 8
    assert settings.data.schema_version == SCHEMA_VERSION


def test_save_without_path_raises() -> None:
    with pytest.raises(ValueError):
        EngineSettings().save()


def test_default_render_state_uses_default_scales() -> None:
    settings = EngineSettings(data=EngineSettingsData(default_x_scale="Equal", default_y_scale="Log"))
    state = settings.default_render_state("host", "port", mode=AggregationMode.ENTROPY, value_field="status")
    assert state.x_scale == ScaleSpec(ScalePolicy.EQUAL_RANK)
    assert state.y_scale == ScaleSpec(ScalePolicy.LOG)
    assert state.mode is AggregationMode.ENTROPY
    assert state.value_field == "status"


def test_default_settings_path_uses_app_name() -> None:
    path = EngineSettings.default_settings_path(app_name="axisstats-test")
    assert path.name == "engine_settings.json"
    assert "axisstats-test" in str(path)
