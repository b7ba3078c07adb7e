"""
Shotplan Core Module

Contains core systems including configuration, constants, exceptions, logging and retry.
"""

from .config import ShotplanConfig, PlanningConfig, RenderConfig, load_config, apply_env_overrides
from .constants import *
from .exceptions import *
from .logging_config import setup_logging, get_logger, LogLevel

__all__ = [
    'ShotplanConfig',
    'PlanningConfig',
    'RenderConfig',
    'load_config',
    'apply_env_overrides',
    'setup_logging',
    'get_logger',
    'LogLevel',
]
