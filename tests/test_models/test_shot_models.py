"""
Tests for Shot and Prompt Models

Tests for shotplan/models/shot.py and shotplan/models/prompts.py
"""

import dataclasses

import pytest

from shotplan.core.constants import FrameSlot, FrameTopology
from shotplan.models.prompts import PromptSet
from shotplan.models.shot import ContinuityGroup, Shot, total_duration

SINGLE = FrameTopology.SINGLE
START_END = FrameTopology.START_END


class TestShot:
    """Tests for Shot."""

    def test_shot_is_immutable(self, shot_factory):
        shot = shot_factory(1)

        with pytest.raises(dataclasses.FrozenInstanceError):
            shot.duration = 8

    def test_with_duration(self, shot_factory):
        shot = shot_factory(1, duration=4)
        longer = shot.with_duration(8)

        assert longer.duration == 8
        assert shot.duration == 4
        assert longer.shot_id == shot.shot_id

    def test_with_flags(self, shot_factory):
        shot = shot_factory(2).with_flags(True, False)

        assert shot.is_linked_to_previous is True
        assert shot.is_first_in_group is False

    def test_can_open_group(self, shot_factory):
        assert shot_factory(1, START_END).can_open_group is True
        assert shot_factory(1, SINGLE).can_open_group is False

    def test_to_dict(self, shot_factory):
        data = shot_factory(3, SINGLE, duration=6, linked=True).to_dict()

        assert data["shot_id"] == "scene-1-shot-3"
        assert data["frame_topology"] == "single"
        assert data["is_linked_to_previous"] is True
        assert data["reference_tags"] == []

    def test_total_duration(self, grouped_shots):
        assert total_duration(grouped_shots) == 20


class TestContinuityGroup:
    """Tests for ContinuityGroup."""

    @pytest.fixture
    def group(self):
        return ContinuityGroup(
            group_id="scene-1-group-1",
            scene_id="scene-1",
            group_number=1,
            shot_positions=(2, 3, 4),
            shot_ids=("scene-1-shot-2", "scene-1-shot-3", "scene-1-shot-4"),
        )

    def test_opener_and_length(self, group):
        assert group.opener_id == "scene-1-shot-2"
        assert len(group) == 3

    def test_predecessor_of(self, group):
        assert group.predecessor_of("scene-1-shot-4") == "scene-1-shot-3"
        assert group.predecessor_of("scene-1-shot-2") is None

    def test_to_dict(self, group):
        data = group.to_dict()

        assert data["shot_positions"] == [2, 3, 4]
        assert data["transition_type"] == "flow"


class TestPromptSet:
    """Tests for PromptSet."""

    def test_slots(self):
        prompt_set = PromptSet("a", start_frame_prompt="open", end_frame_prompt="close")

        assert prompt_set.get_slot(FrameSlot.START) == "open"
        assert prompt_set.opening_prompt(START_END) == "open"
        assert prompt_set.closing_prompt(START_END) == "close"

    def test_single_shot_has_no_closing_prompt(self):
        prompt_set = PromptSet("a", image_prompt="still")

        assert prompt_set.opening_prompt(SINGLE) == "still"
        assert prompt_set.closing_prompt(SINGLE) is None

    def test_with_slot(self):
        prompt_set = PromptSet("a").with_slot(FrameSlot.IMAGE, "filled")

        assert prompt_set.image_prompt == "filled"
        assert prompt_set.opening_slot(SINGLE) is FrameSlot.IMAGE
        assert prompt_set.opening_slot(START_END) is FrameSlot.START

    def test_to_dict(self):
        data = PromptSet("a", video_motion_prompt="pan", is_inherited=True).to_dict()

        assert data["video_motion_prompt"] == "pan"
        assert data["is_inherited"] is True
        assert data["image_prompt"] is None
