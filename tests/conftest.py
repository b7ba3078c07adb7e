"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import asyncio
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from shotplan.core.constants import FrameTopology
from shotplan.core.retry import RetryConfig
from shotplan.generators.interfaces import (
    FrameImageGenerator,
    FrameImageRequest,
    PromptBatchGenerator,
    PromptBatchRequest,
    SceneContext,
    ShotProposalGenerator,
    VideoResult,
    VideoSubmitter,
)
from shotplan.models.shot import Shot
from shotplan.video.capability_profiles import reset_profiles

SINGLE = FrameTopology.SINGLE
START_END = FrameTopology.START_END


def make_shot(
    position: int,
    topology: FrameTopology = START_END,
    duration: float = 4,
    linked: bool = False,
    first: bool = False,
    scene_id: str = "scene-1"
) -> Shot:
    return Shot(
        shot_id=f"{scene_id}-shot-{position}",
        position=position,
        frame_topology=topology,
        duration=duration,
        is_linked_to_previous=linked,
        is_first_in_group=first,
    )


# =============================================================================
# FAKE GENERATORS
# =============================================================================

class FakeProposalGenerator(ShotProposalGenerator):
    """Returns a fixed payload and records every context it was given."""

    def __init__(self, payload: Any):
        self.payload = payload
        self.contexts: List[SceneContext] = []

    async def propose_shots(self, context: SceneContext) -> Any:
        self.contexts.append(context)
        return self.payload


class FakePromptGenerator(PromptBatchGenerator):
    """
    Writes prompts that follow the inheritance contract for every shot in
    the request, unless a fixed payload is given.
    """

    def __init__(self, payload: Any = None, reverse: bool = False):
        self.payload = payload
        self.reverse = reverse
        self.requests: List[PromptBatchRequest] = []

    async def generate_prompts(self, request: PromptBatchRequest) -> Any:
        self.requests.append(request)
        if self.payload is not None:
            return self.payload

        shots = []
        for item in request.shots:
            shot = item.shot
            prompts = {"single": None, "start": None, "end": None}
            if shot.frame_topology is SINGLE:
                if not item.is_linked:
                    prompts["single"] = f"{shot.shot_id} image"
            else:
                prompts["end"] = f"{shot.shot_id} end"
                if not item.is_linked:
                    prompts["start"] = f"{shot.shot_id} start"
            shots.append({
                "shotId": shot.shot_id,
                "imagePrompts": prompts,
                "videoPrompt": f"{shot.shot_id} motion",
                "visualContinuityNotes": (
                    f"{shot.shot_id} notes" if item.role.value == "group_opener" else None
                ),
            })
        if self.reverse:
            shots.reverse()
        return {"shots": shots}


class FakeFrameGenerator(FrameImageGenerator):
    """Returns deterministic URLs; fails for the listed shot ids."""

    def __init__(self, fail_on: Optional[set] = None):
        self.fail_on = fail_on or set()
        self.requests: List[FrameImageRequest] = []

    async def generate_frame(self, request: FrameImageRequest) -> str:
        self.requests.append(request)
        if request.shot_id in self.fail_on:
            raise RuntimeError(f"image backend rejected {request.shot_id}")
        return f"https://img.test/{request.shot_id}/{request.slot.value}.png"


class FakeVideoSubmitter(VideoSubmitter):
    """Records payloads and tracks how many submissions overlap."""

    def __init__(self, fail_on: Optional[set] = None, delay: float = 0.0):
        self.fail_on = fail_on or set()
        self.delay = delay
        self.payloads: List[Dict[str, Any]] = []
        self.active = 0
        self.max_active = 0

    async def submit(self, payload: Dict[str, Any], profile: Any) -> VideoResult:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            self.payloads.append(payload)
            prompt = payload["positivePrompt"]
            if any(prompt.startswith(shot_id + " ") for shot_id in self.fail_on):
                raise RuntimeError("provider timeout")
            return VideoResult(
                video_url=f"https://video.test/{payload['taskUUID']}.mp4",
                actual_duration=payload["duration"],
                job_id=payload["taskUUID"],
            )
        finally:
            self.active -= 1


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Sample configuration for testing."""
    return {
        "planning": {
            "allowed_durations": [2, 4, 6, 8],
            "duration_tolerance": 0.05,
            "prefer_shorter_on_tie": True,
            "reference_mode": "2F",
        },
        "render": {
            "max_concurrent_shots": 2,
            "max_retries": 1,
            "aspect_ratio": "9:16",
        },
        "log_level": "DEBUG",
        "video_profiles": {
            "studio-model": {
                "model": "studio:1@0",
                "durations": [4, 8],
                "resolutions": ["720p"],
                "supports_last_frame": True,
            }
        },
    }


@pytest.fixture
def grouped_shots() -> List[Shot]:
    """Shot 1 standalone, shots 2-4 a start-end continuity run."""
    return [
        make_shot(1, SINGLE, 4),
        make_shot(2, START_END, 4, first=True),
        make_shot(3, START_END, 6, linked=True),
        make_shot(4, SINGLE, 6, linked=True),
    ]


@pytest.fixture
def proposal_payload() -> Dict[str, Any]:
    """Raw proposal output for a four-shot scene."""
    return {
        "shots": [
            {
                "name": "Shot 1.1: Arrival",
                "description": "Wide view of the market at dawn",
                "shotType": "1F",
                "cameraShot": "Wide Shot",
                "referenceTags": ["@Mira", "@Market"],
                "duration": 3,
                "isLinkedToPrevious": False,
                "isFirstInGroup": False,
            },
            {
                "name": "Shot 1.2: The stall",
                "description": "Mira walks to the spice stall",
                "shotType": "2F",
                "cameraShot": "Tracking Shot",
                "referenceTags": ["@Mira"],
                "duration": 7,
                "isLinkedToPrevious": False,
                "isFirstInGroup": True,
            },
            {
                "name": "Shot 1.3: Haggling",
                "description": "Mira leans in over the counter",
                "shotType": "2F",
                "cameraShot": "Medium Shot",
                "referenceTags": ["@Mira"],
                "duration": 12,
                "isLinkedToPrevious": True,
                "isFirstInGroup": False,
            },
            {
                "name": "Shot 1.4: The deal",
                "description": "Close on the coins changing hands",
                "shotType": "1F",
                "cameraShot": "Close-Up",
                "referenceTags": [],
                "duration": 9,
                "isLinkedToPrevious": True,
                "isFirstInGroup": False,
            },
        ]
    }


@pytest.fixture
def shot_factory():
    """Build Shot records with scene-1 ids."""
    return make_shot


@pytest.fixture
def proposal_generator(proposal_payload) -> FakeProposalGenerator:
    return FakeProposalGenerator(proposal_payload)


@pytest.fixture
def prompt_generator() -> FakePromptGenerator:
    return FakePromptGenerator()


@pytest.fixture
def frame_generator() -> FakeFrameGenerator:
    return FakeFrameGenerator()


@pytest.fixture
def video_submitter() -> FakeVideoSubmitter:
    return FakeVideoSubmitter()


@pytest.fixture
def no_retry() -> RetryConfig:
    return RetryConfig(max_retries=0, base_delay=0.0, jitter=False)


@pytest.fixture(autouse=True)
def restore_profiles():
    """Keep registry changes from leaking between tests."""
    yield
    reset_profiles()
