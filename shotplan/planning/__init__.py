"""
Shotplan Planning

Pure, synchronous planning stages: duration reconciliation, continuity
grouping, prompt inheritance and the scene state they operate on.
"""

from .duration_reconciler import (
    DurationReconciler,
    DurationReport,
    DurationAdjustment,
    snap_duration,
)
from .continuity_grouper import (
    ContinuityGrouper,
    GroupingResult,
    DroppedRun,
    group_continuity,
    align_flags_with_groups,
    continuity_roles,
    predecessor_map,
)
from .scene import Scene, validate_shot_list
from .prompt_inheritance import (
    PromptInheritanceResolver,
    InheritanceResolution,
    InheritanceLink,
    PromptCorrection,
    merge_inherited_prompts,
    pending_inheritance,
)
from .anchors import (
    AnchorSet,
    CharacterAnchor,
    LocationAnchor,
    StyleAnchor,
    build_character_anchors,
    build_location_anchors,
    build_style_anchor,
)
from .proposals import normalize_proposals, make_shot_id

__all__ = [
    'DurationReconciler',
    'DurationReport',
    'DurationAdjustment',
    'snap_duration',
    'ContinuityGrouper',
    'GroupingResult',
    'DroppedRun',
    'group_continuity',
    'align_flags_with_groups',
    'continuity_roles',
    'predecessor_map',
    'Scene',
    'validate_shot_list',
    'PromptInheritanceResolver',
    'InheritanceResolution',
    'InheritanceLink',
    'PromptCorrection',
    'merge_inherited_prompts',
    'pending_inheritance',
    'AnchorSet',
    'CharacterAnchor',
    'LocationAnchor',
    'StyleAnchor',
    'build_character_anchors',
    'build_location_anchors',
    'build_style_anchor',
    'normalize_proposals',
    'make_shot_id',
]
