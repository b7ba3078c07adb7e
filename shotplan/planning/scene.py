"""
Scene state for the planning engine.

A Scene owns its ordered shots and the continuity groups derived from them.
Shots can only be replaced as a whole: the new list is validated, grouped
and flag-aligned before the scene publishes it, so a rejected replacement
leaves the previous state untouched.
"""

from typing import Any, Dict, List, Optional, Sequence

from shotplan.core.constants import ContinuityRole, ReferenceMode
from shotplan.core.exceptions import SceneInvariantError
from shotplan.core.logging_config import get_logger
from shotplan.models.shot import ContinuityGroup, Shot, total_duration
from shotplan.planning.continuity_grouper import (
    ContinuityGrouper,
    GroupingResult,
    align_flags_with_groups,
    continuity_roles,
    predecessor_map,
)

logger = get_logger("planning.scene")


def validate_shot_list(shots: Sequence[Shot]) -> List[str]:
    """Return every invariant violation in a candidate shot list."""
    violations = []

    seen = set()
    for shot in shots:
        if shot.shot_id in seen:
            violations.append(f"duplicate shot id {shot.shot_id}")
        seen.add(shot.shot_id)

    positions = sorted(shot.position for shot in shots)
    if positions != list(range(1, len(shots) + 1)):
        violations.append(f"positions must be exactly 1..{len(shots)}, got {positions}")

    for shot in shots:
        if shot.is_first_in_group and not shot.can_open_group:
            violations.append(
                f"shot {shot.shot_id} opens a group but is {shot.frame_topology.value}"
            )
        if shot.duration <= 0:
            violations.append(f"shot {shot.shot_id} has non-positive duration {shot.duration}")

    return violations


class Scene:
    """
    One scene's shot plan.

    Example:
        scene = Scene("scene-1", target_duration=20)
        result = scene.replace_shots(shots)
        for group in scene.groups:
            ...
    """

    def __init__(
        self,
        scene_id: str,
        target_duration: float,
        name: str = "",
        reference_mode: ReferenceMode = ReferenceMode.AI
    ):
        self.scene_id = scene_id
        self.target_duration = target_duration
        self.name = name
        self.reference_mode = reference_mode

        self._shots: List[Shot] = []
        self._grouping = GroupingResult()

    @property
    def shots(self) -> List[Shot]:
        return list(self._shots)

    @property
    def groups(self) -> List[ContinuityGroup]:
        return list(self._grouping.groups)

    @property
    def grouping(self) -> GroupingResult:
        return self._grouping

    @property
    def total_duration(self) -> float:
        return total_duration(self._shots)

    def replace_shots(self, shots: Sequence[Shot]) -> GroupingResult:
        """
        Atomically replace the scene's shots.

        Raises:
            SceneInvariantError: if the list breaks an invariant; the
                previous shots and groups are kept.
        """
        violations = validate_shot_list(shots)
        if violations:
            raise SceneInvariantError(self.scene_id, violations)

        ordered = sorted(shots, key=lambda s: s.position)
        grouping = ContinuityGrouper(self.scene_id).group(ordered, self.reference_mode)
        aligned = align_flags_with_groups(ordered, grouping.groups)

        self._shots = aligned
        self._grouping = grouping
        logger.debug(
            f"Scene {self.scene_id}: {len(aligned)} shot(s), {len(grouping.groups)} group(s)"
        )
        return grouping

    def get_shot(self, shot_id: str) -> Optional[Shot]:
        for shot in self._shots:
            if shot.shot_id == shot_id:
                return shot
        return None

    def role_of(self, shot_id: str) -> ContinuityRole:
        roles = continuity_roles(self._shots, self._grouping.groups)
        if shot_id not in roles:
            raise KeyError(shot_id)
        return roles[shot_id]

    def roles(self) -> Dict[str, ContinuityRole]:
        return continuity_roles(self._shots, self._grouping.groups)

    def predecessor_of(self, shot_id: str) -> Optional[Shot]:
        """The shot a linked shot inherits its opening frame from."""
        previous_id = predecessor_map(self._grouping.groups).get(shot_id)
        return self.get_shot(previous_id) if previous_id else None

    def group_of(self, shot_id: str) -> Optional[ContinuityGroup]:
        for group in self._grouping.groups:
            if shot_id in group.shot_ids:
                return group
        return None

    def ungrouped_shots(self) -> List[Shot]:
        positions = set(self._grouping.ungrouped_positions)
        return [shot for shot in self._shots if shot.position in positions]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scene_id": self.scene_id,
            "name": self.name,
            "target_duration": self.target_duration,
            "reference_mode": self.reference_mode.value,
            "total_duration": self.total_duration,
            "shots": [shot.to_dict() for shot in self._shots],
            "groups": [group.to_dict() for group in self._grouping.groups],
            "ungrouped_positions": list(self._grouping.ungrouped_positions),
        }
