"""
Shot proposal normalization.

Turns validated proposal payloads into Shot records: assigns ids and
positions, then enforces the scene's reference mode on frame topology and
continuity flags.
"""

from typing import List, Optional, Sequence

from shotplan.core.constants import FrameTopology, ReferenceMode
from shotplan.core.logging_config import get_logger
from shotplan.generators.schemas import ShotProposal
from shotplan.models.shot import Shot

logger = get_logger("planning.proposals")


def make_shot_id(scene_id: str, position: int) -> str:
    return f"{scene_id}-shot-{position}"


def normalize_proposals(
    proposals: Sequence[ShotProposal],
    scene_id: str,
    reference_mode: ReferenceMode = ReferenceMode.AI,
    expected_count: Optional[int] = None
) -> List[Shot]:
    """
    Convert proposals into ordered shots for a scene.

    Reference mode enforcement:
        1F: every shot single, continuity flags cleared
        2F: every shot start-end, flags kept
        AI: topology kept; a single shot cannot open a group, so that flag is cleared

    Args:
        proposals: Validated proposals in scene order
        scene_id: Owning scene, used to derive shot ids
        reference_mode: Frame-topology policy for the scene
        expected_count: Shot count requested from the generator, if any

    Returns:
        List of Shot with positions 1..n
    """
    if expected_count is not None and len(proposals) != expected_count:
        logger.warning(
            f"Scene {scene_id}: expected {expected_count} shot(s), "
            f"generator proposed {len(proposals)}"
        )

    shots = []
    corrected = 0
    for position, proposal in enumerate(proposals, start=1):
        topology = proposal.frame_topology
        linked = proposal.is_linked_to_previous
        first = proposal.is_first_in_group

        if reference_mode is ReferenceMode.SINGLE_FRAME:
            if topology is not FrameTopology.SINGLE or linked or first:
                corrected += 1
            topology = FrameTopology.SINGLE
            linked = first = False
        elif reference_mode is ReferenceMode.START_END:
            if topology is not FrameTopology.START_END:
                corrected += 1
            topology = FrameTopology.START_END
        elif reference_mode is ReferenceMode.AI:
            if first and topology is FrameTopology.SINGLE:
                logger.warning(
                    f"Scene {scene_id}: shot {position} is single-frame and cannot open "
                    "a continuity group, clearing flag"
                )
                first = False
        else:
            raise ValueError(f"Unhandled reference mode: {reference_mode}")

        shots.append(Shot(
            shot_id=make_shot_id(scene_id, position),
            position=position,
            frame_topology=topology,
            duration=proposal.duration,
            is_linked_to_previous=linked,
            is_first_in_group=first,
            name=proposal.name,
            description=proposal.description,
            camera_shot=proposal.camera_shot,
            reference_tags=tuple(proposal.reference_tags),
        ))

    if corrected:
        logger.warning(
            f"Scene {scene_id}: {corrected} shot(s) adjusted to match "
            f"{reference_mode.value} reference mode"
        )
    return shots
