"""
Shotplan Custom Exceptions

Custom exception classes for error handling throughout the shot planning engine.
"""

from typing import List, Optional


class ShotplanError(Exception):
    """Base exception for all Shotplan errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(ShotplanError):
    """Raised when there's an issue with configuration."""
    pass


class MissingConfigError(ConfigurationError):
    """Raised when a required configuration is missing."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""
    pass


# =============================================================================
# PLANNING ERRORS
# =============================================================================

class PlanningError(ShotplanError):
    """Base exception for shot planning errors."""
    pass


class SceneInvariantError(PlanningError):
    """Raised when a replacement shot list would break a scene invariant."""

    def __init__(self, scene_id: str, violations: List[str]):
        message = f"Scene '{scene_id}' rejected shot list: {'; '.join(violations)}"
        super().__init__(message, {"scene_id": scene_id, "violations": violations})
        self.scene_id = scene_id
        self.violations = violations


class ShotProposalError(PlanningError):
    """Raised when the shot-proposal generator returns a malformed payload."""
    pass


# =============================================================================
# GENERATION ERRORS
# =============================================================================

class GenerationError(ShotplanError):
    """Base exception for external generator failures."""
    pass


class IncompleteGenerationError(GenerationError):
    """
    Raised when a prompt batch cannot be reconciled with the scene's shot list.

    Covers missing, duplicate and unknown shot ids, and shots missing a field
    that must be freshly generated. The whole batch is rejected.
    """

    def __init__(
        self,
        scene_id: str,
        missing_ids: Optional[List[str]] = None,
        duplicate_ids: Optional[List[str]] = None,
        unknown_ids: Optional[List[str]] = None,
        field_errors: Optional[List[str]] = None
    ):
        self.scene_id = scene_id
        self.missing_ids = list(missing_ids or [])
        self.duplicate_ids = list(duplicate_ids or [])
        self.unknown_ids = list(unknown_ids or [])
        self.field_errors = list(field_errors or [])

        parts = []
        if self.missing_ids:
            parts.append(f"missing shots {', '.join(self.missing_ids)}")
        if self.duplicate_ids:
            parts.append(f"duplicate shots {', '.join(self.duplicate_ids)}")
        if self.unknown_ids:
            parts.append(f"unknown shots {', '.join(self.unknown_ids)}")
        if self.field_errors:
            parts.append("; ".join(self.field_errors))

        message = f"Incomplete prompt generation for scene '{scene_id}': " + "; ".join(parts)
        super().__init__(message, {
            "scene_id": scene_id,
            "missing_ids": self.missing_ids,
            "duplicate_ids": self.duplicate_ids,
            "unknown_ids": self.unknown_ids,
            "field_errors": self.field_errors,
        })


class ShotGenerationError(GenerationError):
    """Raised when a single shot cannot be generated."""

    def __init__(self, scene_id: str, shot_id: str, reason: str):
        message = f"shot generation failed for scene {scene_id}, shot {shot_id}: {reason}"
        super().__init__(message, {"scene_id": scene_id, "shot_id": shot_id, "reason": reason})
        self.scene_id = scene_id
        self.shot_id = shot_id
        self.reason = reason

    def __str__(self):
        return self.message


# =============================================================================
# VIDEO PROFILE ERRORS
# =============================================================================

class UnknownProfileError(ShotplanError):
    """Raised when a capability profile is not registered."""

    def __init__(self, profile_id: str, available: List[str] = None):
        message = f"Unknown video capability profile: '{profile_id}'"
        super().__init__(message, {"profile_id": profile_id, "available": available or []})
        self.profile_id = profile_id
