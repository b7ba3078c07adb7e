"""
Shotplan Planning Pipeline

Plans one scene end to end:
1. propose_shots        - external proposal generator, normalized to Shots
2. reconcile_durations  - snap and rescale against the allowed set and target
3. group_continuity     - publish shots on the Scene, derive continuity groups
4. generate_prompts     - external batch prompt generator, scoped by groups
5. resolve_inheritance  - enforce the inheritance contract, merge inherited prompts

Steps run strictly in order; each consumes the previous step's output.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from shotplan.core.config import PlanningConfig
from shotplan.core.constants import DEFAULT_ASPECT_RATIO
from shotplan.core.exceptions import PlanningError
from shotplan.core.logging_config import get_scene_logger
from shotplan.core.retry import PLANNING_RETRY_CONFIG, RetryConfig, retry_async_call
from shotplan.generators.interfaces import (
    PromptBatchGenerator,
    PromptBatchRequest,
    SceneContext,
    ShotPromptInput,
    ShotProposalGenerator,
)
from shotplan.generators.schemas import parse_prompt_batch, parse_shot_proposals
from shotplan.models.prompts import PromptSet
from shotplan.models.shot import Shot
from shotplan.pipelines.base_pipeline import BasePipeline, PipelineStatus, PipelineStep
from shotplan.planning.anchors import (
    AnchorSet,
    build_character_anchors,
    build_location_anchors,
    build_style_anchor,
)
from shotplan.planning.continuity_grouper import GroupingResult
from shotplan.planning.duration_reconciler import DurationReconciler, DurationReport
from shotplan.planning.prompt_inheritance import (
    PromptCorrection,
    PromptInheritanceResolver,
    merge_inherited_prompts,
    pending_inheritance,
)
from shotplan.planning.proposals import normalize_proposals
from shotplan.planning.scene import Scene


def _scene_log(scene_id: str):
    return get_scene_logger("pipelines.planning", scene_id)


@dataclass
class SceneRequest:
    """What the caller knows about a scene before planning it."""
    scene_id: str
    target_duration: float
    scene_name: str = ""
    description: str = ""
    script_excerpt: str = ""
    shot_count: Optional[int] = None
    characters: List[Dict[str, Any]] = field(default_factory=list)
    locations: List[Dict[str, Any]] = field(default_factory=list)
    art_style: Optional[str] = None
    world_description: Optional[str] = None
    art_style_image_url: Optional[str] = None
    aspect_ratio: str = DEFAULT_ASPECT_RATIO

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SceneRequest':
        return cls(
            scene_id=data['scene_id'],
            target_duration=float(data['target_duration']),
            scene_name=data.get('scene_name', ''),
            description=data.get('description', ''),
            script_excerpt=data.get('script_excerpt', ''),
            shot_count=data.get('shot_count'),
            characters=list(data.get('characters', [])),
            locations=list(data.get('locations', [])),
            art_style=data.get('art_style'),
            world_description=data.get('world_description'),
            art_style_image_url=data.get('art_style_image_url'),
            aspect_ratio=data.get('aspect_ratio', DEFAULT_ASPECT_RATIO),
        )


@dataclass
class ScenePlan:
    """A fully planned scene: shots, groups, prompts and how they were corrected."""
    scene: Scene
    prompt_sets: List[PromptSet]
    duration_report: DurationReport
    grouping: GroupingResult
    corrections: List[PromptCorrection] = field(default_factory=list)
    anchors: AnchorSet = field(default_factory=AnchorSet)
    aspect_ratio: str = DEFAULT_ASPECT_RATIO

    @property
    def scene_id(self) -> str:
        return self.scene.scene_id

    @property
    def shots(self) -> List[Shot]:
        return self.scene.shots

    def prompt_for(self, shot_id: str) -> PromptSet:
        for prompt_set in self.prompt_sets:
            if prompt_set.shot_id == shot_id:
                return prompt_set
        raise KeyError(shot_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scene': self.scene.to_dict(),
            'prompt_sets': [p.to_dict() for p in self.prompt_sets],
            'duration_report': self.duration_report.to_dict(),
            'dropped_runs': [
                {'shot_positions': d.shot_positions, 'reason': d.reason}
                for d in self.grouping.dropped
            ],
            'corrections': [c.to_dict() for c in self.corrections],
            'anchors': self.anchors.to_dict(),
            'aspect_ratio': self.aspect_ratio,
        }


def build_anchor_set(request: SceneRequest) -> AnchorSet:
    return AnchorSet(
        characters=build_character_anchors(request.characters),
        locations=build_location_anchors(request.locations),
        style=build_style_anchor(
            request.art_style, request.world_description, request.art_style_image_url
        ),
    )


def build_prompt_request(scene: Scene, anchors: AnchorSet, request: SceneRequest) -> PromptBatchRequest:
    """Describe every shot's role and pending inheritance for the prompt generator."""
    roles = scene.roles()
    links = pending_inheritance(scene)
    inputs = []
    for shot in scene.shots:
        link = links.get(shot.shot_id)
        inputs.append(ShotPromptInput(
            shot=shot,
            role=roles[shot.shot_id],
            inherits_from=link.source_shot_id if link else None,
            inherited_slot=link.slot if link else None,
        ))
    return PromptBatchRequest(
        scene_id=scene.scene_id,
        shots=inputs,
        groups=scene.groups,
        anchors=anchors,
        scene_name=scene.name,
        aspect_ratio=request.aspect_ratio,
    )


class ShotPlanningPipeline(BasePipeline[SceneRequest, ScenePlan]):
    """
    Orchestrates planning for one scene.

    Example:
        pipeline = ShotPlanningPipeline(proposal_generator, prompt_generator)
        plan = await pipeline.plan_scene(SceneRequest("scene-1", target_duration=20))
    """

    def __init__(
        self,
        proposal_generator: ShotProposalGenerator,
        prompt_generator: PromptBatchGenerator,
        config: Optional[PlanningConfig] = None,
        retry_config: Optional[RetryConfig] = None
    ):
        self.proposal_generator = proposal_generator
        self.prompt_generator = prompt_generator
        self.config = config or PlanningConfig()
        self.retry_config = retry_config or PLANNING_RETRY_CONFIG
        self.reconciler = DurationReconciler.from_config(self.config)
        self.resolver = PromptInheritanceResolver()
        super().__init__("shot_planning")

    def _define_steps(self) -> None:
        self._steps = [
            PipelineStep("propose_shots", "Request and normalize shot proposals"),
            PipelineStep("reconcile_durations", "Snap and rescale shot durations"),
            PipelineStep("group_continuity", "Derive continuity groups"),
            PipelineStep("generate_prompts", "Request the scene's prompt batch"),
            PipelineStep("resolve_inheritance", "Enforce and merge prompt inheritance"),
        ]

    async def _execute_step(
        self,
        step: PipelineStep,
        input_data: Any,
        context: Dict[str, Any]
    ) -> Any:
        if step.name == "propose_shots":
            return await self._propose_shots(input_data, context)
        elif step.name == "reconcile_durations":
            return self._reconcile_durations(input_data, context)
        elif step.name == "group_continuity":
            return self._group_continuity(input_data, context)
        elif step.name == "generate_prompts":
            return await self._generate_prompts(input_data, context)
        elif step.name == "resolve_inheritance":
            return self._resolve_inheritance(input_data, context)
        raise ValueError(f"Unknown step: {step.name}")

    async def _propose_shots(self, request: SceneRequest, context: Dict[str, Any]) -> List[Shot]:
        anchors = build_anchor_set(request)
        context['request'] = request
        context['anchors'] = anchors

        scene_context = SceneContext(
            scene_id=request.scene_id,
            target_duration=request.target_duration,
            allowed_durations=list(self.reconciler.allowed),
            reference_mode=self.config.reference_mode,
            scene_name=request.scene_name,
            description=request.description,
            script_excerpt=request.script_excerpt,
            shot_count=request.shot_count,
            anchors=anchors,
        )
        raw = await retry_async_call(
            self.proposal_generator.propose_shots,
            scene_context,
            config=self.retry_config,
            operation=f"propose_shots {request.scene_id}"
        )
        proposals = parse_shot_proposals(raw)
        shots = normalize_proposals(
            proposals,
            request.scene_id,
            self.config.reference_mode,
            expected_count=request.shot_count
        )
        _scene_log(request.scene_id).info(f"{len(shots)} shot(s) proposed")
        return shots

    def _reconcile_durations(self, shots: List[Shot], context: Dict[str, Any]) -> List[Shot]:
        request: SceneRequest = context['request']
        report = self.reconciler.reconcile(shots, request.target_duration)
        context['duration_report'] = report
        return report.shots

    def _group_continuity(self, shots: List[Shot], context: Dict[str, Any]) -> Scene:
        request: SceneRequest = context['request']
        scene = Scene(
            request.scene_id,
            request.target_duration,
            name=request.scene_name,
            reference_mode=self.config.reference_mode
        )
        context['grouping'] = scene.replace_shots(shots)
        context['scene'] = scene
        return scene

    async def _generate_prompts(self, scene: Scene, context: Dict[str, Any]) -> List[PromptSet]:
        request = build_prompt_request(scene, context['anchors'], context['request'])
        raw = await retry_async_call(
            self.prompt_generator.generate_prompts,
            request,
            config=self.retry_config,
            operation=f"generate_prompts {scene.scene_id}"
        )
        return parse_prompt_batch(raw)

    def _resolve_inheritance(self, prompt_sets: List[PromptSet], context: Dict[str, Any]) -> ScenePlan:
        scene: Scene = context['scene']
        resolution = self.resolver.resolve(scene, prompt_sets)
        merged = merge_inherited_prompts(scene, resolution.prompt_sets)
        _scene_log(scene.scene_id).info(
            f"{len(merged)} prompt set(s) resolved with {len(resolution.corrections)} correction(s)"
        )

        return ScenePlan(
            scene=scene,
            prompt_sets=merged,
            duration_report=context['duration_report'],
            grouping=context['grouping'],
            corrections=resolution.corrections,
            anchors=context['anchors'],
            aspect_ratio=context['request'].aspect_ratio,
        )

    async def plan_scene(self, request: SceneRequest) -> ScenePlan:
        """
        Run the pipeline and return the plan.

        Raises:
            The typed error of the step that failed, or PlanningError if cancelled.
        """
        result = await self.run(request)
        if result.success:
            return result.output
        if result.status == PipelineStatus.CANCELLED:
            raise PlanningError(f"Planning cancelled for scene {request.scene_id}")
        result.raise_for_status()
        raise PlanningError(result.error or f"Planning failed for scene {request.scene_id}")
