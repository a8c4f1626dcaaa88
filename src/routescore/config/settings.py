# src/routescore/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/routescore/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `DIRECTIONS_API_KEY`, `ROUTESCORE_LOG_LEVEL`)
- an external YAML file via `ROUTESCORE_CONFIG_PATH`

Design rule:
- Tuning knobs live in YAML; the core functions receive them explicitly
  (`ScoringPolicy`, `speed_kmh`) and never read settings on their own.
"""

from __future__ import annotations

import copy
import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from routescore.core.env import load_dotenv_if_present
from routescore.scoring.route_score import DelayBand, ScoringPolicy


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `routescore.config`."""
    text = resources.files("routescore.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "RouteScore"
    timezone: str = "Asia/Kolkata"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"


class EtaSettings(BaseModel):
    default_speed_kmh: float = Field(40, gt=0)


class DelayBandSettings(BaseModel):
    above_pct: float
    penalty: int = Field(..., ge=0)


class ScoringSettings(BaseModel):
    base_score: int = 100
    warning_penalty: int = Field(5, ge=0)
    turn_penalty_high: int = Field(2, ge=0)
    delay_bands: list[DelayBandSettings] = Field(
        default_factory=lambda: [
            DelayBandSettings(above_pct=50, penalty=30),
            DelayBandSettings(above_pct=20, penalty=15),
            DelayBandSettings(above_pct=10, penalty=5),
        ]
    )

    @model_validator(mode="after")
    def _validate_band_order(self) -> "ScoringSettings":
        thresholds = [b.above_pct for b in self.delay_bands]
        if thresholds != sorted(thresholds, reverse=True):
            raise ValueError("scoring.delay_bands must be ordered by above_pct, highest first")
        return self

    def policy(self) -> ScoringPolicy:
        """Return the immutable policy object the scorer consumes."""
        return ScoringPolicy(
            base_score=self.base_score,
            warning_penalty=self.warning_penalty,
            turn_penalty_high=self.turn_penalty_high,
            delay_bands=tuple(DelayBand(above_pct=b.above_pct, penalty=b.penalty) for b in self.delay_bands),
        )


class NearestSettings(BaseModel):
    limit: int = Field(10, ge=1)


class DirectionsSettings(BaseModel):
    base_url: str = "https://maps.googleapis.com/maps/api/directions/json"
    api_key: str | None = None
    alternatives: bool = True
    departure_time: str = "now"
    traffic_model: str = "best_guess"


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    eta: EtaSettings = Field(default_factory=EtaSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    nearest: NearestSettings = Field(default_factory=NearestSettings)
    directions: DirectionsSettings = Field(default_factory=DirectionsSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: the whitelist is kept small on purpose; scoring knobs come from YAML only.
    """
    data = dict(data)
    log_level = os.getenv("ROUTESCORE_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    speed = os.getenv("ROUTESCORE_DEFAULT_SPEED_KMH")
    if speed:
        data.setdefault("eta", {})["default_speed_kmh"] = float(speed)

    api_key = os.getenv("DIRECTIONS_API_KEY")
    if api_key:
        data.setdefault("directions", {})["api_key"] = api_key

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("ROUTESCORE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def _logging_config() -> dict[str, Any]:
    return _read_package_yaml("logging.yaml")


def get_logging_config() -> dict[str, Any]:
    """Return a fresh copy of the packaged logging config (safe to mutate)."""
    return copy.deepcopy(_logging_config())
