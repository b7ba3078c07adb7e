"""
Tests for Scene Module

Tests for shotplan/planning/scene.py
"""

import pytest

from shotplan.core.constants import ContinuityRole, FrameTopology, ReferenceMode
from shotplan.core.exceptions import SceneInvariantError
from shotplan.planning.scene import Scene, validate_shot_list

SINGLE = FrameTopology.SINGLE
START_END = FrameTopology.START_END


class TestValidateShotList:
    """Tests for validate_shot_list()."""

    def test_valid_list(self, grouped_shots):
        assert validate_shot_list(grouped_shots) == []

    def test_duplicate_ids(self, shot_factory):
        shot = shot_factory(1)
        violations = validate_shot_list([shot, shot])

        assert any("duplicate shot id" in v for v in violations)

    def test_position_gap(self, shot_factory):
        violations = validate_shot_list([shot_factory(1), shot_factory(3)])

        assert any("positions must be exactly 1..2" in v for v in violations)

    def test_single_frame_opener(self, shot_factory):
        violations = validate_shot_list([shot_factory(1, SINGLE, first=True)])

        assert violations == ["shot scene-1-shot-1 opens a group but is single"]

    def test_non_positive_duration(self, shot_factory):
        violations = validate_shot_list([shot_factory(1, duration=0)])

        assert any("non-positive duration" in v for v in violations)


class TestScene:
    """Tests for Scene."""

    def test_new_scene_is_empty(self):
        scene = Scene("scene-1", target_duration=20)

        assert scene.shots == []
        assert scene.groups == []
        assert scene.total_duration == 0

    def test_replace_shots(self, grouped_shots):
        scene = Scene("scene-1", target_duration=20)
        result = scene.replace_shots(grouped_shots)

        assert [s.position for s in scene.shots] == [1, 2, 3, 4]
        assert len(scene.groups) == 1
        assert result.groups == scene.groups
        assert scene.total_duration == 20

    def test_replace_sorts_by_position(self, grouped_shots):
        scene = Scene("scene-1", target_duration=20)
        scene.replace_shots(list(reversed(grouped_shots)))

        assert [s.position for s in scene.shots] == [1, 2, 3, 4]

    def test_rejected_replacement_keeps_state(self, grouped_shots, shot_factory):
        """Test a failed replacement leaves the previous shots and groups intact."""
        scene = Scene("scene-1", target_duration=20)
        scene.replace_shots(grouped_shots)

        with pytest.raises(SceneInvariantError) as exc_info:
            scene.replace_shots([shot_factory(1), shot_factory(1)])

        assert exc_info.value.scene_id == "scene-1"
        assert exc_info.value.violations
        assert scene.shots == grouped_shots
        assert scene.groups[0].shot_positions == (2, 3, 4)

    def test_flags_realigned_on_publish(self, shot_factory):
        """Test published shots carry flags matching the emitted groups."""
        scene = Scene("scene-1", target_duration=20)
        scene.replace_shots([
            shot_factory(1, START_END, first=True),
            shot_factory(2, SINGLE, linked=True),
            shot_factory(3, START_END, linked=True),
        ])

        shot = scene.get_shot("scene-1-shot-3")
        assert shot.is_linked_to_previous is False
        assert shot.is_first_in_group is False
        assert scene.role_of("scene-1-shot-3") == ContinuityRole.STANDALONE

    def test_single_frame_mode_scene(self, grouped_shots):
        scene = Scene("scene-1", 20, reference_mode=ReferenceMode.SINGLE_FRAME)
        scene.replace_shots(grouped_shots)

        assert scene.groups == []
        assert all(not s.is_linked_to_previous and not s.is_first_in_group for s in scene.shots)

    def test_lookups(self, grouped_shots):
        scene = Scene("scene-1", target_duration=20)
        scene.replace_shots(grouped_shots)

        assert scene.get_shot("missing") is None
        assert scene.role_of("scene-1-shot-2") == ContinuityRole.GROUP_OPENER
        assert scene.predecessor_of("scene-1-shot-4").shot_id == "scene-1-shot-3"
        assert scene.predecessor_of("scene-1-shot-2") is None
        assert scene.group_of("scene-1-shot-3").group_id == "scene-1-group-1"
        assert scene.group_of("scene-1-shot-1") is None
        assert [s.shot_id for s in scene.ungrouped_shots()] == ["scene-1-shot-1"]

    def test_role_of_unknown_shot(self, grouped_shots):
        scene = Scene("scene-1", target_duration=20)
        scene.replace_shots(grouped_shots)

        with pytest.raises(KeyError):
            scene.role_of("scene-1-shot-9")

    def test_shots_property_is_a_copy(self, grouped_shots):
        scene = Scene("scene-1", target_duration=20)
        scene.replace_shots(grouped_shots)

        scene.shots.clear()

        assert len(scene.shots) == 4

    def test_to_dict(self, grouped_shots):
        scene = Scene("scene-1", target_duration=20, name="Market")
        scene.replace_shots(grouped_shots)
        data = scene.to_dict()

        assert data["scene_id"] == "scene-1"
        assert data["name"] == "Market"
        assert data["reference_mode"] == "AI"
        assert len(data["shots"]) == 4
        assert data["groups"][0]["shot_ids"] == ["scene-1-shot-2", "scene-1-shot-3", "scene-1-shot-4"]
        assert data["ungrouped_positions"] == [1]
