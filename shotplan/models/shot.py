"""
Shot and continuity group records.

Shots are immutable; every planning stage returns new Shot instances via
dataclasses.replace so a scene's list can only change as a whole.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from shotplan.core.constants import DEFAULT_TRANSITION_TYPE, FrameTopology


@dataclass(frozen=True)
class Shot:
    """One filmable unit within a scene."""
    shot_id: str
    position: int  # 1-based order within the scene
    frame_topology: FrameTopology
    duration: float
    is_linked_to_previous: bool = False
    is_first_in_group: bool = False

    # Opaque descriptive fields
    name: str = ""
    description: str = ""
    camera_shot: str = ""
    reference_tags: Tuple[str, ...] = ()

    @property
    def can_open_group(self) -> bool:
        """A group opener must have a closing frame to hand off."""
        return self.frame_topology.has_closing_frame

    def with_duration(self, duration: float) -> 'Shot':
        return replace(self, duration=duration)

    def with_flags(self, is_linked_to_previous: bool, is_first_in_group: bool) -> 'Shot':
        return replace(
            self,
            is_linked_to_previous=is_linked_to_previous,
            is_first_in_group=is_first_in_group
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shot_id": self.shot_id,
            "position": self.position,
            "frame_topology": self.frame_topology.value,
            "duration": self.duration,
            "is_linked_to_previous": self.is_linked_to_previous,
            "is_first_in_group": self.is_first_in_group,
            "name": self.name,
            "description": self.description,
            "camera_shot": self.camera_shot,
            "reference_tags": list(self.reference_tags),
        }


@dataclass(frozen=True)
class ContinuityGroup:
    """An ordered run of shots whose visual state flows via frame hand-off."""
    group_id: str
    scene_id: str
    group_number: int
    shot_positions: Tuple[int, ...]
    shot_ids: Tuple[str, ...]
    transition_type: str = DEFAULT_TRANSITION_TYPE
    description: Optional[str] = None

    @property
    def opener_id(self) -> str:
        return self.shot_ids[0]

    def __len__(self) -> int:
        return len(self.shot_ids)

    def predecessor_of(self, shot_id: str) -> Optional[str]:
        """Previous member of the group, or None for the opener."""
        index = self.shot_ids.index(shot_id)
        return self.shot_ids[index - 1] if index > 0 else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group_id": self.group_id,
            "scene_id": self.scene_id,
            "group_number": self.group_number,
            "shot_positions": list(self.shot_positions),
            "shot_ids": list(self.shot_ids),
            "transition_type": self.transition_type,
            "description": self.description,
        }


def total_duration(shots: List[Shot]) -> float:
    return sum(shot.duration for shot in shots)
