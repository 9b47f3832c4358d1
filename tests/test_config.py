"""Tests for configuration loading and saving."""

from __future__ import annotations

from pathlib import Path

from device_session.config import AppConfig
from device_session.constants import SIMULATED_DEVICES


class TestAppConfig:
    def test_default_config(self) -> None:
        config = AppConfig()
        assert config.pipeline.backend == "simulated"
        assert config.pipeline.stage_enabled is True
        assert config.pipeline.revert_on_toggle is True
        assert config.devices.preferred is None
        assert config.devices.simulated == SIMULATED_DEVICES
        assert config.web.enabled is False

    def test_save_and_load(self, tmp_path: Path) -> None:
        config = AppConfig()
        config.pipeline.backend = "sounddevice"
        config.devices.preferred = "ALSA:USB Headset"
        config.web.port = 9000

        config_path = tmp_path / "config.toml"
        config.save(config_path)

        loaded = AppConfig.load(config_path)
        assert loaded.pipeline.backend == "sounddevice"
        assert loaded.devices.preferred == "ALSA:USB Headset"
        assert loaded.web.port == 9000

    def test_unset_preferred_device_round_trips(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.toml"
        AppConfig().save(config_path)

        assert "preferred" not in config_path.read_text()
        assert AppConfig.load(config_path).devices.preferred is None

    def test_load_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        config = AppConfig.load(tmp_path / "nonexistent.toml")
        assert config.pipeline.backend == "simulated"

    def test_partial_config_preserves_defaults(self, tmp_path: Path) -> None:
        config_path = tmp_path / "partial.toml"
        config_path.write_text('[pipeline]\nrevert_on_toggle = false\n')

        loaded = AppConfig.load(config_path)
        assert loaded.pipeline.revert_on_toggle is False
        assert loaded.pipeline.backend == "simulated"  # default preserved
        assert loaded.web.port == AppConfig().web.port  # default preserved

    def test_unknown_keys_ignored(self, tmp_path: Path) -> None:
        config_path = tmp_path / "extra.toml"
        config_path.write_text('[web]\nport = 8123\ncolour = "blue"\n')

        loaded = AppConfig.load(config_path)
        assert loaded.web.port == 8123
        assert not hasattr(loaded.web, "colour")

    def test_broken_file_returns_defaults(self, tmp_path: Path) -> None:
        config_path = tmp_path / "broken.toml"
        config_path.write_text("[pipeline\nbackend = ")

        loaded = AppConfig.load(config_path)
        assert loaded.pipeline.backend == "simulated"
