"""
Engine settings persistence for axisstats (platformdirs + JSON).

Persisted items (schema v1):
- max_workers: size of the per-pass accumulation thread pool
- chunk_size: records counted between two cancellation checks
- default_x_scale / default_y_scale: legacy scale labels ("Linear", "Sort (R)", ...)

Behavior:
- If settings file missing or unreadable -> defaults are used
- If schema_version mismatches:
  - default: reset to defaults
  - optional: keep loaded but update version
- Unknown keys and invalid values are ignored with warnings
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from platformdirs import user_config_dir

from axisstats.errors import UnsupportedScalePolicyError
from axisstats.render.render_state import AggregationMode, RenderState
from axisstats.scaling.policy import ScaleSpec
from axisstats.utils.logging import get_logger

logger = get_logger(__name__)

# Increment when you make a breaking change to the on-disk JSON schema.
SCHEMA_VERSION: int = 1

DEFAULT_MAX_WORKERS = 4
DEFAULT_CHUNK_SIZE = 4096


@dataclass
class EngineSettingsData:
    """
    JSON-serializable settings payload.

    Scales are stored by their legacy label so settings files stay readable.
    """
    schema_version: int = SCHEMA_VERSION
    max_workers: int = DEFAULT_MAX_WORKERS
    chunk_size: int = DEFAULT_CHUNK_SIZE
    default_x_scale: str = "Linear"
    default_y_scale: str = "Linear"

    def to_json_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "schema_version": self.schema_version,
            "max_workers": self.max_workers,
            "chunk_size": self.chunk_size,
            "default_x_scale": self.default_x_scale,
            "default_y_scale": self.default_y_scale,
        }

    @classmethod
    def from_json_dict(cls, d: Dict[str, Any]) -> "EngineSettingsData":
        """
        Tolerant loader:
        - ignores unknown keys
        - replaces missing or invalid values with defaults
        """
        schema_version = int(d.get("schema_version", -1))
        max_workers = _positive_int(d, "max_workers", DEFAULT_MAX_WORKERS)
        chunk_size = _positive_int(d, "chunk_size", DEFAULT_CHUNK_SIZE)
        default_x_scale = _scale_label(d, "default_x_scale")
        default_y_scale = _scale_label(d, "default_y_scale")

        known_keys = {"schema_version", "max_workers", "chunk_size", "default_x_scale", "default_y_scale"}
        for key in d.keys():
            if key not in known_keys:
                logger.warning(f"Unknown key '{key}' in engine settings, ignoring")

        return cls(
            schema_version=schema_version,
            max_workers=max_workers,
            chunk_size=chunk_size,
            default_x_scale=default_x_scale,
            default_y_scale=default_y_scale,
        )


def _positive_int(d: Dict[str, Any], key: str, default: int) -> int:
    if key not in d:
        return default
    try:
        value = int(d[key])
    except (TypeError, ValueError):
        logger.warning(f"Invalid {key}={d[key]!r} in engine settings, using {default}")
        return default
    if value < 1:
        logger.warning(f"{key} must be >= 1, got {value}, using {default}")
        return default
    return value


def _scale_label(d: Dict[str, Any], key: str) -> str:
    label = d.get(key, "Linear")
    try:
        return ScaleSpec.from_label(str(label)).label
    except UnsupportedScalePolicyError:
        logger.warning(f"Unknown scale {label!r} for {key} in engine settings, using 'Linear'")
        return "Linear"


class EngineSettings:
    """
    Manager for loading/saving EngineSettingsData to disk.
    """

    def __init__(self, *, path: Optional[Path] = None, data: Optional[EngineSettingsData] = None):
        self.path = path
        self.data = data if data is not None else EngineSettingsData()

    # -----------------------------
    # Construction / persistence
    # -----------------------------
    @staticmethod
    def default_settings_path(
        app_name: str = "axisstats",
        filename: str = "engine_settings.json",
        app_author: str | None = None,
    ) -> Path:
        """
        Determine OS-appropriate per-user settings path.

        macOS:   ~/Library/Application Support/axisstats/engine_settings.json
        Linux:   ~/.config/axisstats/engine_settings.json
        Windows: %APPDATA%\\axisstats\\engine_settings.json
        """
        return Path(user_config_dir(app_name, app_author)) / filename

    @classmethod
    def load(
        cls,
        *,
        settings_path: Optional[Path] = None,
        app_name: str = "axisstats",
        filename: str = "engine_settings.json",
        app_author: str | None = None,
        schema_version: int = SCHEMA_VERSION,
        reset_on_version_mismatch: bool = True,
        create_if_missing: bool = False,
    ) -> "EngineSettings":
        """
        Load settings from disk.

        If file doesn't exist or is unreadable -> defaults.
        If schema mismatch:
          - reset_on_version_mismatch=True -> defaults
          - else -> keep loaded but overwrite schema_version

        If create_if_missing=True and file is missing -> immediately write defaults.
        """
        path = settings_path or cls.default_settings_path(app_name=app_name, filename=filename, app_author=app_author)
        default_data = EngineSettingsData(schema_version=schema_version)

        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"Engine settings file not found at {path}, using defaults")
            settings = cls(path=path, data=default_data)
            if create_if_missing:
                settings.save()
            return settings
        except OSError as e:
            logger.warning(f"Error reading engine settings from {path}: {e}, using defaults")
            return cls(path=path, data=default_data)

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Engine settings file at {path} is not valid JSON: {e}, using defaults")
            return cls(path=path, data=default_data)
        if not isinstance(parsed, dict):
            logger.warning(f"Engine settings file at {path} does not contain a dict, using defaults")
            return cls(path=path, data=default_data)

        loaded = EngineSettingsData.from_json_dict(parsed)
        if int(loaded.schema_version) != int(schema_version):
            if reset_on_version_mismatch:
                logger.warning(
                    f"Engine settings schema version mismatch: loaded={loaded.schema_version}, "
                    f"expected={schema_version}, resetting to defaults"
                )
                return cls(path=path, data=default_data)
            loaded.schema_version = int(schema_version)
        return cls(path=path, data=loaded)

    def save(self) -> None:
        """Write settings to disk."""
        if self.path is None:
            raise ValueError("EngineSettings has no path to save to")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            json_str = json.dumps(self.data.to_json_dict(), indent=2)
            self.path.write_text(json_str, encoding="utf-8")
            logger.info(f"Saved engine settings to {self.path}")
        except OSError as e:
            logger.error(f"Error saving engine settings to {self.path}: {e}")
            raise

    @property
    def max_workers(self) -> int:
        return self.data.max_workers

    @property
    def chunk_size(self) -> int:
        return self.data.chunk_size

    def get_default_scales(self) -> tuple[ScaleSpec, ScaleSpec]:
        """Default (x, y) scale specs."""
        return (
            ScaleSpec.from_label(self.data.default_x_scale),
            ScaleSpec.from_label(self.data.default_y_scale),
        )

    def set_default_scales(self, x_scale: ScaleSpec, y_scale: ScaleSpec) -> None:
        self.data.default_x_scale = x_scale.label
        self.data.default_y_scale = y_scale.label

    def default_render_state(
        self,
        x_axis: str,
        y_axis: Optional[str] = None,
        mode: AggregationMode = AggregationMode.SUM,
        **kwargs: Any,
    ) -> RenderState:
        """RenderState for the given axes using the configured default scales."""
        x_scale, y_scale = self.get_default_scales()
        return RenderState(
            x_axis=x_axis,
            y_axis=y_axis,
            x_scale=x_scale,
            y_scale=y_scale,
            mode=mode,
            **kwargs,
        )
