"""
Shotplan Pipelines

Async orchestration around the pure planning stages.

- ShotPlanningPipeline: proposals -> durations -> groups -> prompts -> inheritance
- ShotRenderPipeline: frames and video submissions per shot, in continuity order
"""

from .base_pipeline import (
    BasePipeline,
    PipelineResult,
    PipelineStatus,
    PipelineStep,
)
from .planning_pipeline import (
    ShotPlanningPipeline,
    SceneRequest,
    ScenePlan,
    build_anchor_set,
    build_prompt_request,
)
from .render_pipeline import (
    ShotRenderPipeline,
    RenderStatus,
    RenderUnit,
    ShotRenderResult,
    SceneRenderReport,
)

__all__ = [
    'BasePipeline',
    'PipelineResult',
    'PipelineStatus',
    'PipelineStep',
    'ShotPlanningPipeline',
    'SceneRequest',
    'ScenePlan',
    'build_anchor_set',
    'build_prompt_request',
    'ShotRenderPipeline',
    'RenderStatus',
    'RenderUnit',
    'ShotRenderResult',
    'SceneRenderReport',
]
