"""
Shotplan Models

Immutable records for shots, continuity groups and prompt sets.
"""

from .shot import Shot, ContinuityGroup, total_duration
from .prompts import PromptSet

__all__ = [
    'Shot',
    'ContinuityGroup',
    'PromptSet',
    'total_duration',
]
