"""
Tests for Configuration Module

Tests for shotplan/core/config.py
"""

import json

import pytest

from shotplan.core.config import (
    PlanningConfig,
    RenderConfig,
    ShotplanConfig,
    apply_env_overrides,
    load_config,
    parse_durations,
)
from shotplan.core.constants import DEFAULT_ALLOWED_DURATIONS, ReferenceMode
from shotplan.core.exceptions import ConfigurationError, InvalidConfigError


class TestShotplanConfig:
    """Tests for ShotplanConfig class."""

    def test_default_config(self):
        """Test default configuration creation."""
        config = ShotplanConfig()

        assert config.planning.allowed_durations == list(DEFAULT_ALLOWED_DURATIONS)
        assert config.planning.duration_tolerance == 0.10
        assert config.planning.reference_mode is ReferenceMode.AI
        assert config.render.max_concurrent_shots == 4
        assert config.log_level == "INFO"

    def test_config_from_dict(self, sample_config):
        """Test creating config from dictionary."""
        config = ShotplanConfig.from_dict(sample_config)

        assert config.planning.allowed_durations == [2, 4, 6, 8]
        assert config.planning.duration_tolerance == 0.05
        assert config.planning.reference_mode is ReferenceMode.START_END
        assert config.render.max_concurrent_shots == 2
        assert config.render.aspect_ratio == "9:16"
        assert config.log_level == "DEBUG"
        assert "studio-model" in config.video_profiles

    def test_config_to_dict(self, sample_config):
        """Test converting config to dictionary."""
        config_dict = ShotplanConfig.from_dict(sample_config).to_dict()

        assert config_dict["planning"]["reference_mode"] == "2F"
        assert config_dict["render"]["max_retries"] == 1
        assert ShotplanConfig.from_dict(config_dict).to_dict() == config_dict


class TestPlanningConfig:
    """Tests for PlanningConfig validation."""

    def test_empty_durations(self):
        with pytest.raises(InvalidConfigError):
            PlanningConfig.from_dict({"allowed_durations": []})

    def test_negative_duration(self):
        with pytest.raises(InvalidConfigError):
            PlanningConfig.from_dict({"allowed_durations": [4, -2]})

    def test_tolerance_out_of_range(self):
        with pytest.raises(InvalidConfigError):
            PlanningConfig.from_dict({"duration_tolerance": 1.5})

    def test_unknown_reference_mode(self):
        with pytest.raises(InvalidConfigError):
            PlanningConfig.from_dict({"reference_mode": "3F"})


class TestRenderConfig:
    """Tests for RenderConfig validation."""

    def test_zero_concurrency(self):
        with pytest.raises(InvalidConfigError):
            RenderConfig.from_dict({"max_concurrent_shots": 0})

    def test_negative_retries(self):
        with pytest.raises(InvalidConfigError):
            RenderConfig.from_dict({"max_retries": -1})


class TestLoadConfig:
    """Tests for config loading."""

    def test_load_config_from_file(self, temp_dir, sample_config):
        """Test loading config from JSON file."""
        config_path = temp_dir / "shotplan.json"

        with open(config_path, 'w') as f:
            json.dump(sample_config, f)

        config = load_config(config_path)

        assert config.planning.allowed_durations == [2, 4, 6, 8]

    def test_load_config_missing_file(self, temp_dir):
        """Test loading config from non-existent file returns default."""
        config = load_config(temp_dir / "nonexistent.json")

        assert config.planning.allowed_durations == list(DEFAULT_ALLOWED_DURATIONS)

    def test_load_config_invalid_json(self, temp_dir):
        config_path = temp_dir / "broken.json"
        config_path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_config(config_path)


class TestEnvOverrides:
    """Tests for apply_env_overrides()."""

    def test_overrides_applied(self, temp_dir, monkeypatch):
        monkeypatch.setenv("SHOTPLAN_ALLOWED_DURATIONS", "5, 10")
        monkeypatch.setenv("SHOTPLAN_DURATION_TOLERANCE", "0.2")
        monkeypatch.setenv("SHOTPLAN_REFERENCE_MODE", "1F")
        monkeypatch.setenv("SHOTPLAN_MAX_CONCURRENT_SHOTS", "8")
        monkeypatch.setenv("SHOTPLAN_LOG_LEVEL", "debug")

        config = apply_env_overrides(ShotplanConfig(), env_file=temp_dir / ".env")

        assert config.planning.allowed_durations == [5, 10]
        assert config.planning.duration_tolerance == 0.2
        assert config.planning.reference_mode is ReferenceMode.SINGLE_FRAME
        assert config.render.max_concurrent_shots == 8
        assert config.log_level == "DEBUG"

    def test_env_file(self, temp_dir, monkeypatch):
        """Test values are read from a .env file."""
        monkeypatch.delenv("SHOTPLAN_ALLOWED_DURATIONS", raising=False)
        env_file = temp_dir / ".env"
        env_file.write_text("SHOTPLAN_ALLOWED_DURATIONS=4,8,12\n", encoding="utf-8")

        try:
            config = apply_env_overrides(ShotplanConfig(), env_file=env_file)
        finally:
            monkeypatch.delenv("SHOTPLAN_ALLOWED_DURATIONS", raising=False)

        assert config.planning.allowed_durations == [4, 8, 12]

    def test_invalid_value(self, temp_dir, monkeypatch):
        monkeypatch.setenv("SHOTPLAN_MAX_CONCURRENT_SHOTS", "many")

        with pytest.raises(InvalidConfigError):
            apply_env_overrides(ShotplanConfig(), env_file=temp_dir / ".env")

    def test_parse_durations(self):
        assert parse_durations("2, 4.5,,8") == [2, 4.5, 8]
