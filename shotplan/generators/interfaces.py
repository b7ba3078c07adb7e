"""
Shotplan Generator Interfaces

Abstract request/response contracts for the external generators the
engine drives. Implementations wrap whatever model or provider sits behind
them; the engine only sees these types.

Each request carries its scene context explicitly.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from shotplan.core.constants import ContinuityRole, FrameSlot, ReferenceMode
from shotplan.models.shot import ContinuityGroup, Shot
from shotplan.planning.anchors import AnchorSet


# =============================================================================
# REQUESTS
# =============================================================================

@dataclass
class SceneContext:
    """Everything the proposal generator needs to break a scene into shots."""
    scene_id: str
    target_duration: float
    allowed_durations: List[float]
    reference_mode: ReferenceMode = ReferenceMode.AI
    scene_name: str = ""
    description: str = ""
    script_excerpt: str = ""
    shot_count: Optional[int] = None
    anchors: AnchorSet = field(default_factory=AnchorSet)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scene_id": self.scene_id,
            "target_duration": self.target_duration,
            "allowed_durations": list(self.allowed_durations),
            "reference_mode": self.reference_mode.value,
            "scene_name": self.scene_name,
            "description": self.description,
            "script_excerpt": self.script_excerpt,
            "shot_count": self.shot_count,
            "anchors": self.anchors.to_dict(),
        }


@dataclass
class ShotPromptInput:
    """One shot in a prompt batch request."""
    shot: Shot
    role: ContinuityRole
    inherits_from: Optional[str] = None
    inherited_slot: Optional[FrameSlot] = None

    @property
    def is_linked(self) -> bool:
        return self.role is ContinuityRole.LINKED

    def to_dict(self) -> Dict[str, Any]:
        data = self.shot.to_dict()
        data.update({
            "frame_type": self.shot.frame_topology.wire_label,
            "role": self.role.value,
            "inherits_from": self.inherits_from,
            "inherited_slot": self.inherited_slot.value if self.inherited_slot else None,
        })
        return data


@dataclass
class PromptBatchRequest:
    """A whole scene's prompt generation request, scoped by continuity groups."""
    scene_id: str
    shots: List[ShotPromptInput]
    groups: List[ContinuityGroup] = field(default_factory=list)
    anchors: AnchorSet = field(default_factory=AnchorSet)
    scene_name: str = ""
    aspect_ratio: str = "16:9"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scene_id": self.scene_id,
            "scene_name": self.scene_name,
            "aspect_ratio": self.aspect_ratio,
            "shots": [s.to_dict() for s in self.shots],
            "groups": [g.to_dict() for g in self.groups],
            "anchors": self.anchors.to_dict(),
        }


@dataclass
class FrameImageRequest:
    """Request for one frame image of one shot."""
    scene_id: str
    shot_id: str
    slot: FrameSlot
    prompt: str
    aspect_ratio: str = "16:9"
    negative_prompt: Optional[str] = None
    # Image the frame must stay consistent with (e.g. the start frame when rendering an end frame)
    reference_image_url: Optional[str] = None
    reference_tags: List[str] = field(default_factory=list)


@dataclass
class VideoResult:
    """Outcome of a video submission."""
    video_url: str
    actual_duration: Optional[float] = None
    job_id: Optional[str] = None
    thumbnail_url: Optional[str] = None
    cost: Optional[float] = None


# =============================================================================
# GENERATORS
# =============================================================================

class ShotProposalGenerator(ABC):
    """Proposes a scene's shots."""

    @abstractmethod
    async def propose_shots(self, context: SceneContext) -> Any:
        """
        Return the raw proposal payload.

        JSON text (optionally in a markdown fence), a {"shots": [...]} dict,
        or a list of shot objects.
        """
        pass


class PromptBatchGenerator(ABC):
    """Writes the prompts for a whole scene in one call."""

    @abstractmethod
    async def generate_prompts(self, request: PromptBatchRequest) -> Any:
        """Return the raw prompt batch payload for every shot in the request."""
        pass


class FrameImageGenerator(ABC):
    """Renders a single frame image."""

    @abstractmethod
    async def generate_frame(self, request: FrameImageRequest) -> str:
        """Return the URL of the generated image."""
        pass


class VideoSubmitter(ABC):
    """Submits a provider payload and waits for the clip."""

    @abstractmethod
    async def submit(self, payload: Dict[str, Any], profile: Any) -> VideoResult:
        pass
