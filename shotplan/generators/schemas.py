"""
Generator Output Schemas

Pydantic models for the raw payloads returned by the shot-proposal and
prompt-batch generators, plus the parsing helpers that turn them into
engine records.

Generators speak camelCase JSON (shotType, isLinkedToPrevious, imagePrompts,
videoPrompt, ...); snake_case field names are accepted too.
"""

import json
import re
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shotplan.core.constants import FrameTopology
from shotplan.core.exceptions import GenerationError, ShotProposalError
from shotplan.core.logging_config import get_logger
from shotplan.models.prompts import PromptSet

logger = get_logger("generators.schemas")

RawPayload = Union[str, bytes, dict, list]


def extract_json(text: str) -> Optional[Any]:
    """Extract JSON from text, handling markdown code blocks."""
    # Try to find JSON in code blocks
    fence_match = re.search(r'```(?:json)?\s*([\s\S]*?)```', text)
    if fence_match:
        try:
            return json.loads(fence_match.group(1).strip())
        except json.JSONDecodeError:
            pass

    # Try parsing the whole text as JSON
    try:
        return json.loads(text.strip())
    except json.JSONDecodeError:
        pass

    # Try finding a JSON object
    object_match = re.search(r'\{[\s\S]*\}', text)
    if object_match:
        try:
            return json.loads(object_match.group(0))
        except json.JSONDecodeError:
            pass

    return None


def _decode(raw: RawPayload) -> Any:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        return extract_json(raw)
    return raw


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# =============================================================================
# SHOT PROPOSALS
# =============================================================================

class ShotProposal(BaseModel):
    """One shot as proposed by the shot-proposal generator."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    description: str = ""
    frame_topology: FrameTopology = Field(alias="shotType")
    camera_shot: str = Field(default="", alias="cameraShot")
    reference_tags: List[str] = Field(default_factory=list, alias="referenceTags")
    duration: float = Field(gt=0)
    is_linked_to_previous: bool = Field(default=False, alias="isLinkedToPrevious")
    is_first_in_group: bool = Field(default=False, alias="isFirstInGroup")

    @field_validator("frame_topology", mode="before")
    @classmethod
    def _parse_topology(cls, value: Any) -> FrameTopology:
        if isinstance(value, FrameTopology):
            return value
        return FrameTopology.from_label(value)


class ShotProposalBatch(BaseModel):
    """Proposal generator output: the scene's shots in order."""
    shots: List[ShotProposal] = Field(default_factory=list)


def parse_shot_proposals(raw: RawPayload) -> List[ShotProposal]:
    """
    Validate a raw proposal payload.

    Accepts JSON text (optionally fenced), a {"shots": [...]} dict or a bare list.

    Raises:
        ShotProposalError: if the payload is not valid JSON or fails validation
    """
    data = _decode(raw)
    if data is None:
        raise ShotProposalError("Shot proposal payload is not valid JSON")
    if isinstance(data, list):
        data = {"shots": data}
    if not isinstance(data, dict):
        raise ShotProposalError(
            f"Shot proposal payload must be an object or list, got {type(data).__name__}"
        )

    try:
        batch = ShotProposalBatch.model_validate(data)
    except ValidationError as e:
        raise ShotProposalError(
            f"Shot proposal payload failed validation: {e.error_count()} error(s)",
            {"errors": e.errors(include_url=False, include_context=False)}
        )
    return batch.shots


# =============================================================================
# PROMPT BATCH
# =============================================================================

class ImagePrompts(BaseModel):
    """Frame prompts for one shot; unused slots are null."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    single: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None

    @field_validator("single", "start", "end", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        return _blank_to_none(value)


class ShotPromptOutput(BaseModel):
    """One shot's entry in the prompt-batch generator output."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    shot_id: str = Field(alias="shotId", min_length=1)
    image_prompts: ImagePrompts = Field(default_factory=ImagePrompts, alias="imagePrompts")
    video_prompt: Optional[str] = Field(default=None, alias="videoPrompt")
    visual_continuity_notes: Optional[str] = Field(default=None, alias="visualContinuityNotes")

    @field_validator("shot_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("video_prompt", "visual_continuity_notes", mode="before")
    @classmethod
    def _normalize_text(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def to_prompt_set(self) -> PromptSet:
        return PromptSet(
            shot_id=self.shot_id,
            image_prompt=self.image_prompts.single,
            start_frame_prompt=self.image_prompts.start,
            end_frame_prompt=self.image_prompts.end,
            video_motion_prompt=self.video_prompt,
            continuity_notes=self.visual_continuity_notes,
        )


class PromptBatchOutput(BaseModel):
    shots: List[ShotPromptOutput] = Field(default_factory=list)


def parse_prompt_batch(raw: RawPayload) -> List[PromptSet]:
    """
    Validate a raw prompt-batch payload and convert it to PromptSets.

    Shot coverage (missing, duplicate, unknown ids) is not checked here;
    PromptInheritanceResolver does that against the scene.

    Raises:
        GenerationError: if the payload is not valid JSON or fails validation
    """
    data = _decode(raw)
    if data is None:
        raise GenerationError("Prompt batch payload is not valid JSON")
    if isinstance(data, list):
        data = {"shots": data}
    if not isinstance(data, dict):
        raise GenerationError(
            f"Prompt batch payload must be an object or list, got {type(data).__name__}"
        )

    try:
        batch = PromptBatchOutput.model_validate(data)
    except ValidationError as e:
        raise GenerationError(
            f"Prompt batch payload failed validation: {e.error_count()} error(s)",
            {"errors": e.errors(include_url=False, include_context=False)}
        )

    logger.debug(f"Parsed prompt batch with {len(batch.shots)} shot(s)")
    return [item.to_prompt_set() for item in batch.shots]
