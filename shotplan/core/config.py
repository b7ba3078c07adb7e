"""
Shotplan Configuration Management

Centralized configuration with JSON loading, .env overrides and validation.
Reconciliation tolerance and tie policy live here rather than in code.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .constants import (
    DEFAULT_ALLOWED_DURATIONS,
    DEFAULT_ASPECT_RATIO,
    DEFAULT_DURATION_TOLERANCE,
    DEFAULT_MAX_CONCURRENT_SHOTS,
    ReferenceMode,
)
from .exceptions import ConfigurationError, InvalidConfigError

ENV_PREFIX = "SHOTPLAN_"


@dataclass
class PlanningConfig:
    """Scene-level planning policy."""
    allowed_durations: List[float] = field(default_factory=lambda: list(DEFAULT_ALLOWED_DURATIONS))
    duration_tolerance: float = DEFAULT_DURATION_TOLERANCE
    prefer_shorter_on_tie: bool = True
    reference_mode: ReferenceMode = ReferenceMode.AI

    def validate(self) -> None:
        if not self.allowed_durations:
            raise InvalidConfigError("allowed_durations must not be empty")
        if any(d <= 0 for d in self.allowed_durations):
            raise InvalidConfigError(
                "allowed_durations must be positive",
                {"allowed_durations": self.allowed_durations}
            )
        if not 0 <= self.duration_tolerance < 1:
            raise InvalidConfigError(
                f"duration_tolerance must be in [0, 1): {self.duration_tolerance}"
            )

    @classmethod
    def from_dict(cls, data: dict) -> 'PlanningConfig':
        try:
            mode = ReferenceMode(data.get('reference_mode', ReferenceMode.AI.value))
        except ValueError:
            raise InvalidConfigError(f"Unknown reference_mode: {data.get('reference_mode')}")
        config = cls(
            allowed_durations=list(data.get('allowed_durations', DEFAULT_ALLOWED_DURATIONS)),
            duration_tolerance=float(data.get('duration_tolerance', DEFAULT_DURATION_TOLERANCE)),
            prefer_shorter_on_tie=bool(data.get('prefer_shorter_on_tie', True)),
            reference_mode=mode,
        )
        config.validate()
        return config

    def to_dict(self) -> Dict[str, Any]:
        return {
            'allowed_durations': list(self.allowed_durations),
            'duration_tolerance': self.duration_tolerance,
            'prefer_shorter_on_tie': self.prefer_shorter_on_tie,
            'reference_mode': self.reference_mode.value,
        }


@dataclass
class RenderConfig:
    """Per-shot render orchestration settings."""
    max_concurrent_shots: int = DEFAULT_MAX_CONCURRENT_SHOTS
    max_retries: int = 2
    retry_base_delay: float = 5.0
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    resolution: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'RenderConfig':
        config = cls(
            max_concurrent_shots=int(data.get('max_concurrent_shots', DEFAULT_MAX_CONCURRENT_SHOTS)),
            max_retries=int(data.get('max_retries', 2)),
            retry_base_delay=float(data.get('retry_base_delay', 5.0)),
            aspect_ratio=data.get('aspect_ratio', DEFAULT_ASPECT_RATIO),
            resolution=data.get('resolution'),
        )
        if config.max_concurrent_shots < 1:
            raise InvalidConfigError("max_concurrent_shots must be at least 1")
        if config.max_retries < 0:
            raise InvalidConfigError("max_retries must not be negative")
        return config

    def to_dict(self) -> Dict[str, Any]:
        return {
            'max_concurrent_shots': self.max_concurrent_shots,
            'max_retries': self.max_retries,
            'retry_base_delay': self.retry_base_delay,
            'aspect_ratio': self.aspect_ratio,
            'resolution': self.resolution,
        }


@dataclass
class ShotplanConfig:
    """Main configuration class for the shot planning engine."""

    planning: PlanningConfig = field(default_factory=PlanningConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    log_level: str = "INFO"

    # Custom capability profiles, keyed by profile id (raw dicts)
    video_profiles: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> 'ShotplanConfig':
        """Create ShotplanConfig from dictionary."""
        config = cls()
        if 'planning' in data:
            config.planning = PlanningConfig.from_dict(data['planning'])
        if 'render' in data:
            config.render = RenderConfig.from_dict(data['render'])
        config.log_level = data.get('log_level', config.log_level)
        config.video_profiles = dict(data.get('video_profiles', {}))
        return config

    def to_dict(self) -> Dict[str, Any]:
        return {
            'planning': self.planning.to_dict(),
            'render': self.render.to_dict(),
            'log_level': self.log_level,
            'video_profiles': dict(self.video_profiles),
        }


def load_config(config_path: Optional[Path] = None) -> ShotplanConfig:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to configuration file. If None, uses config/shotplan.json.

    Returns:
        Loaded ShotplanConfig instance (defaults when the file is absent)
    """
    config_path = Path(config_path) if config_path else Path("config/shotplan.json")

    if not config_path.exists():
        return ShotplanConfig()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid JSON in config file: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to load config: {e}")

    return ShotplanConfig.from_dict(data)


def parse_durations(raw: str) -> List[float]:
    values = []
    for part in raw.split(','):
        part = part.strip()
        if not part:
            continue
        value = float(part)
        values.append(int(value) if value.is_integer() else value)
    return values


def apply_env_overrides(config: ShotplanConfig, env_file: Optional[Path] = None) -> ShotplanConfig:
    """
    Apply SHOTPLAN_* environment variables on top of a loaded config.

    A .env file is read first (without overriding variables already set).

    Recognized variables:
        SHOTPLAN_ALLOWED_DURATIONS   comma-separated seconds
        SHOTPLAN_DURATION_TOLERANCE  fraction of target, e.g. 0.1
        SHOTPLAN_REFERENCE_MODE      1F, 2F or AI
        SHOTPLAN_MAX_CONCURRENT_SHOTS
        SHOTPLAN_LOG_LEVEL
    """
    load_dotenv(env_file, override=False)

    try:
        raw = os.environ.get(f"{ENV_PREFIX}ALLOWED_DURATIONS")
        if raw:
            config.planning.allowed_durations = parse_durations(raw)

        raw = os.environ.get(f"{ENV_PREFIX}DURATION_TOLERANCE")
        if raw:
            config.planning.duration_tolerance = float(raw)

        raw = os.environ.get(f"{ENV_PREFIX}REFERENCE_MODE")
        if raw:
            config.planning.reference_mode = ReferenceMode(raw.strip())

        raw = os.environ.get(f"{ENV_PREFIX}MAX_CONCURRENT_SHOTS")
        if raw:
            config.render.max_concurrent_shots = int(raw)
    except ValueError as e:
        raise InvalidConfigError(f"Invalid {ENV_PREFIX}* environment value: {e}")

    raw = os.environ.get(f"{ENV_PREFIX}LOG_LEVEL")
    if raw:
        config.log_level = raw.strip().upper()

    config.planning.validate()
    if config.render.max_concurrent_shots < 1:
        raise InvalidConfigError("max_concurrent_shots must be at least 1")
    return config
