"""
Shotplan Prompt Inheritance Resolver

Enforces the prompt-inheritance contract on a generated prompt batch.

A linked shot never gets a freshly generated opening prompt: its opening
slot (image prompt for a single shot, start frame prompt for a start-end
shot) is left empty at generation time and later filled by copying the
predecessor's closing prompt. Only the motion prompt, and the end frame
prompt for start-end shots, are generated fresh.

Field-shape drift is corrected and logged. Structural problems (missing,
duplicate or unknown shots, or a missing fresh field) reject the whole batch.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence

from shotplan.core.constants import ContinuityRole, FrameSlot, FrameTopology
from shotplan.core.exceptions import IncompleteGenerationError
from shotplan.core.logging_config import get_logger
from shotplan.models.prompts import PromptSet
from shotplan.models.shot import Shot
from shotplan.planning.scene import Scene

logger = get_logger("planning.inheritance")


@dataclass
class PromptCorrection:
    """A field the resolver rewrote."""
    shot_id: str
    field: str
    reason: str
    previous_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shot_id": self.shot_id,
            "field": self.field,
            "reason": self.reason,
            "previous_value": self.previous_value,
        }


@dataclass
class InheritanceResolution:
    """Resolved prompt sets in scene order plus the corrections applied."""
    prompt_sets: List[PromptSet]
    corrections: List[PromptCorrection] = field(default_factory=list)

    @property
    def corrected(self) -> bool:
        return bool(self.corrections)


@dataclass(frozen=True)
class InheritanceLink:
    """A linked shot's opening slot and the shot it inherits from."""
    shot_id: str
    source_shot_id: str
    slot: FrameSlot


_SLOT_FIELDS = {
    FrameSlot.IMAGE: "image_prompt",
    FrameSlot.START: "start_frame_prompt",
    FrameSlot.END: "end_frame_prompt",
}


def _opening_slot(topology: FrameTopology) -> FrameSlot:
    if topology is FrameTopology.SINGLE:
        return FrameSlot.IMAGE
    if topology is FrameTopology.START_END:
        return FrameSlot.START
    raise ValueError(f"Unhandled frame topology: {topology}")


def _unused_slots(topology: FrameTopology) -> List[FrameSlot]:
    if topology is FrameTopology.SINGLE:
        return [FrameSlot.START, FrameSlot.END]
    if topology is FrameTopology.START_END:
        return [FrameSlot.IMAGE]
    raise ValueError(f"Unhandled frame topology: {topology}")


def pending_inheritance(scene: Scene) -> Dict[str, InheritanceLink]:
    """Which shots inherit their opening slot, and from whom."""
    links = {}
    for group in scene.groups:
        for previous_id, shot_id in zip(group.shot_ids, group.shot_ids[1:]):
            shot = scene.get_shot(shot_id)
            links[shot_id] = InheritanceLink(
                shot_id=shot_id,
                source_shot_id=previous_id,
                slot=_opening_slot(shot.frame_topology)
            )
    return links


class PromptInheritanceResolver:
    """
    Validates and corrects a prompt batch against a scene's continuity groups.

    Example:
        resolver = PromptInheritanceResolver()
        resolution = resolver.resolve(scene, prompt_sets)
        merged = merge_inherited_prompts(scene, resolution.prompt_sets)
    """

    def resolve(self, scene: Scene, prompt_sets: Sequence[PromptSet]) -> InheritanceResolution:
        """
        Resolve a generated batch for the scene.

        Raises:
            IncompleteGenerationError: on missing, duplicate or unknown shot
                ids, or when a shot lacks a field it must generate fresh
        """
        shots = scene.shots
        by_id = self._index(scene.scene_id, shots, prompt_sets)
        roles = scene.roles()
        links = pending_inheritance(scene)

        resolved: List[PromptSet] = []
        corrections: List[PromptCorrection] = []
        field_errors: List[str] = []

        for shot in shots:
            prompt_set = by_id[shot.shot_id]
            prompt_set, shot_corrections = self._correct(
                shot, prompt_set, roles[shot.shot_id], links.get(shot.shot_id), by_id
            )
            corrections.extend(shot_corrections)
            field_errors.extend(self._missing_fields(shot, prompt_set, roles[shot.shot_id]))
            resolved.append(prompt_set)

        if field_errors:
            raise IncompleteGenerationError(scene.scene_id, field_errors=field_errors)

        for correction in corrections:
            logger.warning(
                f"Corrected {correction.field} on {correction.shot_id}: {correction.reason}"
            )
        logger.info(
            f"Resolved {len(resolved)} prompt set(s) for scene {scene.scene_id} "
            f"with {len(corrections)} correction(s)"
        )
        return InheritanceResolution(prompt_sets=resolved, corrections=corrections)

    def _index(
        self,
        scene_id: str,
        shots: Sequence[Shot],
        prompt_sets: Sequence[PromptSet]
    ) -> Dict[str, PromptSet]:
        expected = [shot.shot_id for shot in shots]
        expected_set = set(expected)

        by_id: Dict[str, PromptSet] = {}
        duplicates: List[str] = []
        unknown: List[str] = []
        for prompt_set in prompt_sets:
            if prompt_set.shot_id not in expected_set:
                unknown.append(prompt_set.shot_id)
            elif prompt_set.shot_id in by_id:
                if prompt_set.shot_id not in duplicates:
                    duplicates.append(prompt_set.shot_id)
            else:
                by_id[prompt_set.shot_id] = prompt_set

        missing = [shot_id for shot_id in expected if shot_id not in by_id]
        if missing or duplicates or unknown:
            raise IncompleteGenerationError(
                scene_id,
                missing_ids=missing,
                duplicate_ids=duplicates,
                unknown_ids=unknown
            )
        return by_id

    def _correct(
        self,
        shot: Shot,
        prompt_set: PromptSet,
        role: ContinuityRole,
        link: Optional[InheritanceLink],
        by_id: Dict[str, PromptSet]
    ):
        corrections = []

        def clear(slot_field: str, reason: str) -> None:
            nonlocal prompt_set
            value = getattr(prompt_set, slot_field)
            if value is not None:
                corrections.append(PromptCorrection(shot.shot_id, slot_field, reason, value))
                prompt_set = replace(prompt_set, **{slot_field: None})

        # Slots that belong to the other topology
        for slot in _unused_slots(shot.frame_topology):
            clear(_SLOT_FIELDS[slot], f"not used by a {shot.frame_topology.value} shot")

        # Opening slot of a linked shot is inherited, never generated
        if role is ContinuityRole.LINKED:
            slot_field = _SLOT_FIELDS[link.slot]
            source = by_id[link.source_shot_id]
            already_merged = (
                prompt_set.is_inherited
                and getattr(prompt_set, slot_field) is not None
                and getattr(prompt_set, slot_field) == source.end_frame_prompt
            )
            if not already_merged:
                clear(slot_field, f"inherited from {link.source_shot_id}")
                if prompt_set.is_inherited:
                    prompt_set = replace(prompt_set, is_inherited=False)
        elif prompt_set.is_inherited:
            corrections.append(PromptCorrection(shot.shot_id, "is_inherited", "shot is not linked"))
            prompt_set = replace(prompt_set, is_inherited=False)

        # Continuity notes belong to group openers only
        if role is ContinuityRole.GROUP_OPENER:
            if prompt_set.continuity_notes is None and prompt_set.end_frame_prompt is not None:
                corrections.append(PromptCorrection(
                    shot.shot_id, "continuity_notes", "missing on group opener, taken from end frame"
                ))
                prompt_set = replace(prompt_set, continuity_notes=prompt_set.end_frame_prompt)
        else:
            clear("continuity_notes", "only group openers carry continuity notes")

        return prompt_set, corrections

    def _missing_fields(self, shot: Shot, prompt_set: PromptSet, role: ContinuityRole) -> List[str]:
        linked = role is ContinuityRole.LINKED
        required = ["video_motion_prompt"]

        if shot.frame_topology is FrameTopology.SINGLE:
            if not linked:
                required.append("image_prompt")
        elif shot.frame_topology is FrameTopology.START_END:
            required.append("end_frame_prompt")
            if not linked:
                required.append("start_frame_prompt")
        else:
            raise ValueError(f"Unhandled frame topology: {shot.frame_topology}")

        return [
            f"shot {shot.shot_id} missing {name}"
            for name in required
            if getattr(prompt_set, name) is None
        ]


def merge_inherited_prompts(scene: Scene, prompt_sets: Sequence[PromptSet]) -> List[PromptSet]:
    """
    Fill each linked shot's opening slot with its predecessor's closing prompt.

    Groups are walked in order so every member sees its predecessor's final
    prompts. The returned list keeps the input order.

    Raises:
        IncompleteGenerationError: if a shot or a predecessor's closing prompt is missing
    """
    by_id = {prompt_set.shot_id: prompt_set for prompt_set in prompt_sets}
    missing = [shot.shot_id for shot in scene.shots if shot.shot_id not in by_id]
    if missing:
        raise IncompleteGenerationError(scene.scene_id, missing_ids=missing)

    for link in pending_inheritance(scene).values():
        source_shot = scene.get_shot(link.source_shot_id)
        closing = by_id[link.source_shot_id].closing_prompt(source_shot.frame_topology)
        if closing is None:
            raise IncompleteGenerationError(
                scene.scene_id,
                field_errors=[f"shot {link.source_shot_id} has no closing prompt to hand off"]
            )
        target = by_id[link.shot_id].with_slot(link.slot, closing)
        by_id[link.shot_id] = replace(target, is_inherited=True)
        logger.debug(f"{link.shot_id} inherits {link.slot.value} prompt from {link.source_shot_id}")

    return [by_id[prompt_set.shot_id] for prompt_set in prompt_sets]
