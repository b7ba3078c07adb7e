"""
Shotplan - Shot Planning Reconciliation Engine

Turns an AI-proposed shot list for a scene into a consistent plan:
durations from a discrete allowed set that sum to the scene target,
continuity groups that only span shots able to hand off frames, a
prompt-inheritance contract for linked shots, and provider-shaped
video-generation payloads per capability profile.

Version: 0.1.0
"""

__version__ = "0.1.0"
__project__ = "Shotplan"

from .core import (
    ShotplanConfig,
    PlanningConfig,
    RenderConfig,
    load_config,
    setup_logging,
    get_logger,
)
from .core.constants import FrameTopology, ReferenceMode, ContinuityRole
from .models import Shot, ContinuityGroup, PromptSet
from .planning import (
    Scene,
    DurationReconciler,
    ContinuityGrouper,
    PromptInheritanceResolver,
    merge_inherited_prompts,
)
from .video import CapabilityProfile, FrameSet, build_video_payload, get_profile
from .pipelines import ShotPlanningPipeline, ShotRenderPipeline, SceneRequest, ScenePlan

__all__ = [
    "__version__",
    "ShotplanConfig",
    "PlanningConfig",
    "RenderConfig",
    "load_config",
    "setup_logging",
    "get_logger",
    "FrameTopology",
    "ReferenceMode",
    "ContinuityRole",
    "Shot",
    "ContinuityGroup",
    "PromptSet",
    "Scene",
    "DurationReconciler",
    "ContinuityGrouper",
    "PromptInheritanceResolver",
    "merge_inherited_prompts",
    "CapabilityProfile",
    "FrameSet",
    "build_video_payload",
    "get_profile",
    "ShotPlanningPipeline",
    "ShotRenderPipeline",
    "SceneRequest",
    "ScenePlan",
]
