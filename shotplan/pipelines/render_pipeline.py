"""
Shotplan Render Pipeline

Renders a planned scene against one capability profile: frame images
first, then the video submission for each shot.

Scheduling:
- members of a continuity group render in shot order; each waits for its
  predecessor's closing frame, which becomes its own opening frame
- ungrouped shots and separate groups render concurrently, bounded by
  max_concurrent_shots
- a failed group member marks the rest of its group skipped; nothing
  outside the group is affected
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from shotplan.core.config import RenderConfig
from shotplan.core.constants import FrameSlot, FrameTopology
from shotplan.core.exceptions import ShotGenerationError
from shotplan.core.logging_config import get_logger, get_scene_logger
from shotplan.core.retry import RetryConfig, retry_async_call
from shotplan.generators.interfaces import (
    FrameImageGenerator,
    FrameImageRequest,
    VideoResult,
    VideoSubmitter,
)
from shotplan.models.shot import Shot
from shotplan.pipelines.base_pipeline import BasePipeline, PipelineStatus, PipelineStep
from shotplan.pipelines.planning_pipeline import ScenePlan
from shotplan.video.capability_profiles import CapabilityProfile
from shotplan.video.frame_payload_adapter import FrameSet, build_video_payload

logger = get_logger("pipelines.render")


class RenderStatus(Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ShotRenderResult:
    """Outcome of rendering one shot."""
    shot_id: str
    position: int
    status: RenderStatus
    frames: FrameSet = field(default_factory=FrameSet)
    video: Optional[VideoResult] = None
    requested_duration: Optional[float] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == RenderStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'shot_id': self.shot_id,
            'position': self.position,
            'status': self.status.value,
            'image_url': self.frames.image_url,
            'start_frame_url': self.frames.start_frame_url,
            'end_frame_url': self.frames.end_frame_url,
            'video_url': self.video.video_url if self.video else None,
            'actual_duration': self.video.actual_duration if self.video else None,
            'requested_duration': self.requested_duration,
            'error': self.error,
        }


@dataclass
class SceneRenderReport:
    """Per-shot outcomes for a scene, in shot order."""
    scene_id: str
    profile_id: str
    results: List[ShotRenderResult] = field(default_factory=list)

    def _with_status(self, status: RenderStatus) -> List[ShotRenderResult]:
        return [r for r in self.results if r.status == status]

    @property
    def completed(self) -> List[ShotRenderResult]:
        return self._with_status(RenderStatus.COMPLETED)

    @property
    def failed(self) -> List[ShotRenderResult]:
        return self._with_status(RenderStatus.FAILED)

    @property
    def skipped(self) -> List[ShotRenderResult]:
        return self._with_status(RenderStatus.SKIPPED)

    @property
    def success(self) -> bool:
        return all(r.success for r in self.results)

    def get(self, shot_id: str) -> ShotRenderResult:
        for result in self.results:
            if result.shot_id == shot_id:
                return result
        raise KeyError(shot_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scene_id': self.scene_id,
            'profile_id': self.profile_id,
            'success': self.success,
            'results': [r.to_dict() for r in self.results],
        }


@dataclass
class RenderUnit:
    """Shots that must render one after another (a group, or one ungrouped shot)."""
    shots: List[Shot]
    group_id: Optional[str] = None


class ShotRenderPipeline(BasePipeline[ScenePlan, SceneRenderReport]):
    """
    Renders frames and videos for a planned scene.

    Example:
        pipeline = ShotRenderPipeline(frame_generator, video_submitter, get_profile("veo-3.1"))
        report = await pipeline.render_scene(plan)
    """

    def __init__(
        self,
        frame_generator: FrameImageGenerator,
        video_submitter: VideoSubmitter,
        profile: CapabilityProfile,
        config: Optional[RenderConfig] = None,
        retry_config: Optional[RetryConfig] = None
    ):
        self.frame_generator = frame_generator
        self.video_submitter = video_submitter
        self.profile = profile
        self.config = config or RenderConfig()
        self.retry_config = retry_config or RetryConfig.from_render_config(self.config)
        self._semaphore: Optional[asyncio.Semaphore] = None
        super().__init__("shot_render")

    def _define_steps(self) -> None:
        self._steps = [
            PipelineStep("schedule_units", "Split the scene into render units"),
            PipelineStep("render_units", "Render frames and videos"),
        ]

    async def _execute_step(
        self,
        step: PipelineStep,
        input_data: Any,
        context: Dict[str, Any]
    ) -> Any:
        if step.name == "schedule_units":
            context['plan'] = input_data
            return self._schedule_units(input_data)
        elif step.name == "render_units":
            return await self._render_units(input_data, context['plan'])
        raise ValueError(f"Unknown step: {step.name}")

    def _schedule_units(self, plan: ScenePlan) -> List[RenderUnit]:
        scene = plan.scene
        units = [
            RenderUnit([scene.get_shot(shot_id) for shot_id in group.shot_ids], group.group_id)
            for group in scene.groups
        ]
        units.extend(RenderUnit([shot]) for shot in scene.ungrouped_shots())
        get_scene_logger("pipelines.render", scene.scene_id).info(
            f"{len(units)} render unit(s) for {len(scene.shots)} shot(s)"
        )
        return units

    async def _render_units(self, units: List[RenderUnit], plan: ScenePlan) -> SceneRenderReport:
        self._semaphore = asyncio.Semaphore(self.config.max_concurrent_shots)
        unit_results = await asyncio.gather(*(self._render_unit(unit, plan) for unit in units))

        results = [r for batch in unit_results for r in batch]
        results.sort(key=lambda r: r.position)
        report = SceneRenderReport(plan.scene_id, self.profile.profile_id, results)
        get_scene_logger("pipelines.render", plan.scene_id).info(
            f"{len(report.completed)} completed, "
            f"{len(report.failed)} failed, {len(report.skipped)} skipped"
        )
        return report

    async def _render_unit(self, unit: RenderUnit, plan: ScenePlan) -> List[ShotRenderResult]:
        results = []
        inherited_frame: Optional[str] = None
        failed_shot: Optional[str] = None

        for shot in unit.shots:
            if failed_shot or self.cancelled:
                reason = f"{failed_shot} failed earlier in {unit.group_id}" if failed_shot else "cancelled"
                results.append(ShotRenderResult(
                    shot.shot_id, shot.position, RenderStatus.SKIPPED, error=reason
                ))
                continue

            try:
                async with self._semaphore:
                    result = await self._render_shot(shot, plan, inherited_frame)
            except ShotGenerationError as e:
                logger.error(str(e))
                results.append(ShotRenderResult(
                    shot.shot_id, shot.position, RenderStatus.FAILED, error=str(e)
                ))
                if unit.group_id:
                    failed_shot = shot.shot_id
                continue

            results.append(result)
            inherited_frame = result.frames.closing_url(shot.frame_topology)

        return results

    async def _render_shot(
        self,
        shot: Shot,
        plan: ScenePlan,
        inherited_frame: Optional[str]
    ) -> ShotRenderResult:
        """
        Render one shot.

        Raises:
            ShotGenerationError: wrapping whatever stopped the shot
        """
        try:
            frames = await self._generate_frames(shot, plan, inherited_frame)
            prompt_set = plan.prompt_for(shot.shot_id)

            payload = build_video_payload(
                shot,
                prompt_set,
                frames,
                self.profile,
                aspect_ratio=plan.aspect_ratio or self.config.aspect_ratio,
                resolution=self.config.resolution,
                task_uuid=str(uuid.uuid4())
            )
            if not payload.success:
                raise ShotGenerationError(plan.scene_id, shot.shot_id, str(payload.error))

            video = await retry_async_call(
                self.video_submitter.submit,
                payload.payload,
                self.profile,
                config=self.retry_config,
                operation=f"submit_video {shot.shot_id}"
            )
        except ShotGenerationError:
            raise
        except Exception as e:
            raise ShotGenerationError(plan.scene_id, shot.shot_id, str(e)) from e

        logger.info(f"Shot {shot.shot_id} rendered: {video.video_url}")
        return ShotRenderResult(
            shot.shot_id,
            shot.position,
            RenderStatus.COMPLETED,
            frames=frames,
            video=video,
            requested_duration=payload.duration,
        )

    async def _generate_frames(
        self,
        shot: Shot,
        plan: ScenePlan,
        inherited_frame: Optional[str]
    ) -> FrameSet:
        prompt_set = plan.prompt_for(shot.shot_id)

        if shot.frame_topology is FrameTopology.SINGLE:
            image = inherited_frame or await self._generate_frame(
                shot, plan, FrameSlot.IMAGE, prompt_set.image_prompt
            )
            return FrameSet(image_url=image)

        if shot.frame_topology is FrameTopology.START_END:
            start = inherited_frame or await self._generate_frame(
                shot, plan, FrameSlot.START, prompt_set.start_frame_prompt
            )
            end = await self._generate_frame(
                shot, plan, FrameSlot.END, prompt_set.end_frame_prompt, reference_image_url=start
            )
            return FrameSet(start_frame_url=start, end_frame_url=end)

        raise ValueError(f"Unhandled frame topology: {shot.frame_topology}")

    async def _generate_frame(
        self,
        shot: Shot,
        plan: ScenePlan,
        slot: FrameSlot,
        prompt: Optional[str],
        reference_image_url: Optional[str] = None
    ) -> str:
        if not prompt:
            raise ShotGenerationError(plan.scene_id, shot.shot_id, f"no {slot.value} frame prompt")

        style = plan.anchors.style
        request = FrameImageRequest(
            scene_id=plan.scene_id,
            shot_id=shot.shot_id,
            slot=slot,
            prompt=prompt,
            aspect_ratio=plan.aspect_ratio or self.config.aspect_ratio,
            negative_prompt=style.negative_style if style else None,
            reference_image_url=reference_image_url,
            reference_tags=list(shot.reference_tags),
        )
        return await retry_async_call(
            self.frame_generator.generate_frame,
            request,
            config=self.retry_config,
            operation=f"generate_frame {shot.shot_id}/{slot.value}"
        )

    async def render_scene(self, plan: ScenePlan) -> SceneRenderReport:
        """
        Run the pipeline and return the report.

        Individual shot failures are recorded in the report, not raised.
        """
        result = await self.run(plan)
        if result.success:
            return result.output
        if result.status == PipelineStatus.CANCELLED:
            return SceneRenderReport(plan.scene_id, self.profile.profile_id)
        result.raise_for_status()
        raise RuntimeError(result.error)
