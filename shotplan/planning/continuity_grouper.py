"""
Shotplan Continuity Grouper

Converts per-shot continuity flags into validated, ordered continuity groups
with a single left-to-right scan.

A group is emitted only when:
- it has at least two members
- its first member is start-end (it produces a closing frame to hand off)
- every later member is linked to a predecessor that has a closing frame

Runs that fail these rules are dropped and logged, never raised: upstream
proposals are allowed to be slightly inconsistent.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from shotplan.core.constants import ContinuityRole, DEFAULT_TRANSITION_TYPE, ReferenceMode
from shotplan.core.logging_config import get_logger
from shotplan.models.shot import ContinuityGroup, Shot

logger = get_logger("planning.continuity")


@dataclass
class DroppedRun:
    """A candidate run the grouper discarded, and why."""
    shot_positions: List[int]
    reason: str


@dataclass
class GroupingResult:
    """Groups emitted for a scene plus the shots left outside any group."""
    groups: List[ContinuityGroup] = field(default_factory=list)
    ungrouped_positions: List[int] = field(default_factory=list)
    dropped: List[DroppedRun] = field(default_factory=list)

    @property
    def grouped_positions(self) -> List[int]:
        return [p for g in self.groups for p in g.shot_positions]


class ContinuityGrouper:
    """Builds continuity groups for one scene."""

    def __init__(self, scene_id: str, transition_type: str = DEFAULT_TRANSITION_TYPE):
        self.scene_id = scene_id
        self.transition_type = transition_type
        self._groups: List[ContinuityGroup] = []
        self._dropped: List[DroppedRun] = []

    def group(
        self,
        shots: Sequence[Shot],
        reference_mode: ReferenceMode = ReferenceMode.AI
    ) -> GroupingResult:
        """
        Scan shots in order and emit valid continuity groups.

        Args:
            shots: Scene shots in position order
            reference_mode: 1F mode never produces groups

        Returns:
            GroupingResult
        """
        self._groups = []
        self._dropped = []
        shots = sorted(shots, key=lambda s: s.position)

        if reference_mode is ReferenceMode.SINGLE_FRAME:
            logger.debug(f"Scene {self.scene_id}: 1F mode, no continuity groups")
            return GroupingResult(ungrouped_positions=[s.position for s in shots])

        current: Optional[List[Shot]] = None

        for shot in shots:
            if shot.is_first_in_group:
                self._close(current)
                current = [shot]
            elif shot.is_linked_to_previous and current:
                predecessor = current[-1]
                if predecessor.frame_topology.has_closing_frame:
                    current.append(shot)
                else:
                    # No closing frame to inherit: the run ends at the predecessor
                    self._close(current)
                    current = None
                    self._dropped.append(DroppedRun(
                        [shot.position],
                        f"predecessor {predecessor.position} has no closing frame"
                    ))
                    logger.info(
                        f"Scene {self.scene_id}: shot {shot.position} left ungrouped, "
                        f"predecessor {predecessor.position} is single-frame"
                    )
            else:
                if shot.is_linked_to_previous:
                    logger.debug(
                        f"Scene {self.scene_id}: shot {shot.position} linked with no open group"
                    )
                self._close(current)
                current = None

        self._close(current)

        grouped = {p for g in self._groups for p in g.shot_positions}
        result = GroupingResult(
            groups=list(self._groups),
            ungrouped_positions=[s.position for s in shots if s.position not in grouped],
            dropped=list(self._dropped)
        )
        logger.info(
            f"Scene {self.scene_id}: {len(result.groups)} continuity group(s), "
            f"{len(grouped)} shot(s) grouped, {len(result.dropped)} run(s) dropped"
        )
        return result

    def _close(self, members: Optional[List[Shot]]) -> None:
        if not members:
            return

        positions = [s.position for s in members]
        if len(members) < 2:
            self._dropped.append(DroppedRun(positions, "fewer than 2 members"))
            logger.debug(f"Scene {self.scene_id}: discarded lone opener {positions[0]}")
            return

        group_number = len(self._groups) + 1
        self._groups.append(ContinuityGroup(
            group_id=f"{self.scene_id}-group-{group_number}",
            scene_id=self.scene_id,
            group_number=group_number,
            shot_positions=tuple(positions),
            shot_ids=tuple(s.shot_id for s in members),
            transition_type=self.transition_type,
            description=f"Continuity group with {len(members)} shots"
        ))


def group_continuity(
    shots: Sequence[Shot],
    scene_id: str,
    reference_mode: ReferenceMode = ReferenceMode.AI
) -> GroupingResult:
    """Convenience wrapper around ContinuityGrouper."""
    return ContinuityGrouper(scene_id).group(shots, reference_mode)


def continuity_roles(shots: Sequence[Shot], groups: Sequence[ContinuityGroup]) -> Dict[str, ContinuityRole]:
    """Role of every shot as determined by the emitted groups."""
    roles = {shot.shot_id: ContinuityRole.STANDALONE for shot in shots}
    for group in groups:
        for index, shot_id in enumerate(group.shot_ids):
            roles[shot_id] = ContinuityRole.GROUP_OPENER if index == 0 else ContinuityRole.LINKED
    return roles


def predecessor_map(groups: Sequence[ContinuityGroup]) -> Dict[str, str]:
    """Map each linked shot id to the shot id it inherits from."""
    mapping = {}
    for group in groups:
        for previous, current in zip(group.shot_ids, group.shot_ids[1:]):
            mapping[current] = previous
    return mapping


def align_flags_with_groups(shots: Sequence[Shot], groups: Sequence[ContinuityGroup]) -> List[Shot]:
    """
    Rewrite continuity flags so they describe exactly the emitted groups.

    Flags on shots dropped by the grouper are cleared, so downstream
    inheritance never points at a run that was discarded.
    """
    roles = continuity_roles(shots, groups)
    aligned = []
    for shot in shots:
        role = roles[shot.shot_id]
        if role is ContinuityRole.GROUP_OPENER:
            flags = (False, True)
        elif role is ContinuityRole.LINKED:
            flags = (True, False)
        elif role is ContinuityRole.STANDALONE:
            flags = (False, False)
        else:
            raise ValueError(f"Unhandled continuity role: {role}")

        if (shot.is_linked_to_previous, shot.is_first_in_group) != flags:
            logger.debug(
                f"Shot {shot.shot_id}: flags realigned to linked={flags[0]}, first={flags[1]}"
            )
            shot = shot.with_flags(*flags)
        aligned.append(shot)
    return aligned
