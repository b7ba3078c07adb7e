"""
Tests for the command line entry point

Tests for shotplan/__main__.py
"""

import json
import logging

import pytest

from shotplan.__main__ import main


@pytest.fixture(autouse=True)
def reset_logging():
    """main() installs handlers on the package logger; remove them afterwards."""
    yield
    root = logging.getLogger("shotplan")
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


@pytest.fixture
def proposal_file(temp_dir, proposal_payload):
    path = temp_dir / "proposals.json"
    path.write_text(json.dumps(proposal_payload), encoding="utf-8")
    return path


class TestPlanCommand:
    """Tests for the plan subcommand."""

    def test_plan(self, proposal_file, capsys):
        exit_code = main(["plan", str(proposal_file), "--target", "20"])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert [s["duration"] for s in output["scene"]["shots"]] == [2, 4, 8, 6]
        assert output["scene"]["groups"][0]["shot_positions"] == [2, 3, 4]
        assert output["duration_report"]["within_tolerance"] is True
        assert output["dropped_runs"] == []

    def test_plan_options(self, proposal_file, capsys):
        exit_code = main([
            "plan", str(proposal_file),
            "--target", "30",
            "--allowed", "5,10",
            "--mode", "1F",
            "--scene-id", "scene-9",
        ])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        shots = output["scene"]["shots"]
        assert shots[0]["shot_id"] == "scene-9-shot-1"
        assert all(s["duration"] in (5, 10) for s in shots)
        assert all(s["frame_topology"] == "single" for s in shots)
        assert output["scene"]["groups"] == []

    def test_fenced_input(self, temp_dir, proposal_payload, capsys):
        path = temp_dir / "reply.md"
        path.write_text(f"Shots:\n```json\n{json.dumps(proposal_payload)}\n```\n", encoding="utf-8")

        assert main(["plan", str(path), "-t", "20"]) == 0

    def test_missing_file(self, temp_dir, capsys):
        exit_code = main(["plan", str(temp_dir / "absent.json"), "--target", "20"])

        assert exit_code == 1
        assert "Error" in capsys.readouterr().err

    def test_malformed_proposals(self, temp_dir, capsys):
        path = temp_dir / "bad.json"
        path.write_text('{"shots": [{"shotType": "2F"}]}', encoding="utf-8")

        assert main(["plan", str(path), "--target", "20"]) == 1

    def test_bad_config_file(self, temp_dir, proposal_file, capsys):
        config_path = temp_dir / "shotplan.json"
        config_path.write_text("{broken", encoding="utf-8")

        exit_code = main(["--config", str(config_path), "plan", str(proposal_file), "--target", "20"])

        assert exit_code == 2
        assert "Configuration error" in capsys.readouterr().err


class TestProfilesCommand:
    """Tests for the profiles subcommand."""

    def test_list_profiles(self, capsys):
        assert main(["profiles"]) == 0

        out = capsys.readouterr().out
        assert "veo-3.1" in out
        assert "google:3@2" in out

    def test_custom_profiles_from_config(self, temp_dir, sample_config, capsys):
        config_path = temp_dir / "shotplan.json"
        config_path.write_text(json.dumps(sample_config), encoding="utf-8")

        assert main(["--config", str(config_path), "profiles"]) == 0
        assert "studio-model" in capsys.readouterr().out
