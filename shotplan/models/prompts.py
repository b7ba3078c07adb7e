"""
Per-shot prompt records.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from shotplan.core.constants import FrameSlot, FrameTopology


@dataclass(frozen=True)
class PromptSet:
    """
    Prompt strings needed downstream for one shot.

    Exactly one of image_prompt or (start_frame_prompt, end_frame_prompt)
    is populated, matching the shot's frame topology. A linked shot's
    opening slot stays None until merge_inherited_prompts() copies the
    predecessor's closing prompt into it.
    """
    shot_id: str
    image_prompt: Optional[str] = None
    start_frame_prompt: Optional[str] = None
    end_frame_prompt: Optional[str] = None
    video_motion_prompt: Optional[str] = None
    continuity_notes: Optional[str] = None
    is_inherited: bool = False

    def opening_slot(self, topology: FrameTopology) -> FrameSlot:
        if topology is FrameTopology.SINGLE:
            return FrameSlot.IMAGE
        if topology is FrameTopology.START_END:
            return FrameSlot.START
        raise ValueError(f"Unhandled frame topology: {topology}")

    def get_slot(self, slot: FrameSlot) -> Optional[str]:
        if slot is FrameSlot.IMAGE:
            return self.image_prompt
        if slot is FrameSlot.START:
            return self.start_frame_prompt
        if slot is FrameSlot.END:
            return self.end_frame_prompt
        raise ValueError(f"Unhandled frame slot: {slot}")

    def with_slot(self, slot: FrameSlot, value: Optional[str]) -> 'PromptSet':
        if slot is FrameSlot.IMAGE:
            return replace(self, image_prompt=value)
        if slot is FrameSlot.START:
            return replace(self, start_frame_prompt=value)
        if slot is FrameSlot.END:
            return replace(self, end_frame_prompt=value)
        raise ValueError(f"Unhandled frame slot: {slot}")

    def opening_prompt(self, topology: FrameTopology) -> Optional[str]:
        return self.get_slot(self.opening_slot(topology))

    def closing_prompt(self, topology: FrameTopology) -> Optional[str]:
        """Closing visual state; only start-end shots have a distinct one."""
        if topology is FrameTopology.SINGLE:
            return None
        if topology is FrameTopology.START_END:
            return self.end_frame_prompt
        raise ValueError(f"Unhandled frame topology: {topology}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shot_id": self.shot_id,
            "image_prompt": self.image_prompt,
            "start_frame_prompt": self.start_frame_prompt,
            "end_frame_prompt": self.end_frame_prompt,
            "video_motion_prompt": self.video_motion_prompt,
            "continuity_notes": self.continuity_notes,
            "is_inherited": self.is_inherited,
        }
