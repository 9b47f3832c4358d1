"""Configuration loading and saving (TOML)."""

from __future__ import annotations

import logging
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from device_session.constants import (
    AUDIO_SAMPLE_RATE,
    CONFIG_FILE,
    DEFAULT_PIPELINE_BACKEND,
    SIMULATED_DEVICES,
    WEB_DEFAULT_HOST,
    WEB_DEFAULT_PORT,
)

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Audio pipeline configuration."""

    backend: str = DEFAULT_PIPELINE_BACKEND  # "simulated" | "sounddevice"
    stage_enabled: bool = True  # processing stage state when the pipeline starts
    revert_on_toggle: bool = True  # simulated backend only
    sample_rate: int = AUDIO_SAMPLE_RATE


@dataclass
class DevicesConfig:
    """Device selection configuration."""

    preferred: str | None = None  # device id to select after initialization
    simulated: list[str] = field(default_factory=lambda: list(SIMULATED_DEVICES))


@dataclass
class WebConfig:
    """Web API configuration."""

    enabled: bool = False
    host: str = WEB_DEFAULT_HOST
    port: int = WEB_DEFAULT_PORT


@dataclass
class AppConfig:
    """Root application configuration."""

    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    devices: DevicesConfig = field(default_factory=DevicesConfig)
    web: WebConfig = field(default_factory=WebConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> AppConfig:
        """Load config from TOML file, falling back to defaults."""
        config_path = path or CONFIG_FILE
        config = cls()

        if not config_path.exists():
            logger.info("No config file found at %s, using defaults", config_path)
            return config

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            config = _merge_config(config, data)
            logger.info("Loaded config from %s", config_path)
        except (OSError, tomllib.TOMLDecodeError):
            logger.exception("Failed to load config from %s, using defaults", config_path)
            config = cls()

        return config

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        config_path = path or CONFIG_FILE
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = _strip_none(asdict(self))
        with open(config_path, "wb") as f:
            tomli_w.dump(data, f)
        logger.info("Saved config to %s", config_path)


def _merge_config(config: AppConfig, data: dict[str, Any]) -> AppConfig:
    """Merge a TOML dict into an AppConfig, preserving defaults for missing keys."""
    sections = {
        "pipeline": config.pipeline,
        "devices": config.devices,
        "web": config.web,
    }
    for name, section in sections.items():
        values = data.get(name)
        if not isinstance(values, dict):
            continue
        for key, val in values.items():
            if hasattr(section, key):
                setattr(section, key, val)
            else:
                logger.warning("Ignoring unknown config key %s.%s", name, key)

    return config


def _strip_none(d: dict[str, Any]) -> dict[str, Any]:
    """Recursively remove None values from a dict (TOML has no null)."""
    result: dict[str, Any] = {}
    for k, v in d.items():
        if isinstance(v, dict):
            result[k] = _strip_none(v)
        elif v is not None:
            result[k] = v
    return result
