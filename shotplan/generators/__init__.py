"""
Shotplan Generators

Contracts and output schemas for the external generators.
"""

from .interfaces import (
    SceneContext,
    ShotPromptInput,
    PromptBatchRequest,
    FrameImageRequest,
    VideoResult,
    ShotProposalGenerator,
    PromptBatchGenerator,
    FrameImageGenerator,
    VideoSubmitter,
)
from .schemas import (
    ShotProposal,
    ShotProposalBatch,
    ShotPromptOutput,
    PromptBatchOutput,
    extract_json,
    parse_shot_proposals,
    parse_prompt_batch,
)

__all__ = [
    'SceneContext',
    'ShotPromptInput',
    'PromptBatchRequest',
    'FrameImageRequest',
    'VideoResult',
    'ShotProposalGenerator',
    'PromptBatchGenerator',
    'FrameImageGenerator',
    'VideoSubmitter',
    'ShotProposal',
    'ShotProposalBatch',
    'ShotPromptOutput',
    'PromptBatchOutput',
    'extract_json',
    'parse_shot_proposals',
    'parse_prompt_batch',
]
