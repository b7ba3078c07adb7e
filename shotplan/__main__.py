"""
Shotplan Main Entry Point

Offline planning tools:
    python -m shotplan plan proposals.json --target 20
    python -m shotplan profiles
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from shotplan.core.config import apply_env_overrides, load_config, parse_durations
from shotplan.core.constants import ReferenceMode
from shotplan.core.exceptions import ShotplanError
from shotplan.core.logging_config import LogLevel, get_logger, setup_logging
from shotplan.generators.schemas import parse_shot_proposals
from shotplan.planning.duration_reconciler import DurationReconciler
from shotplan.planning.proposals import normalize_proposals
from shotplan.planning.scene import Scene
from shotplan.video.capability_profiles import list_profiles, load_profiles


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shotplan",
        description="Shotplan - shot planning reconciliation engine"
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    plan = subparsers.add_parser("plan", help="Reconcile and group a shot proposal file")
    plan.add_argument("file", type=str, help="Proposal JSON (or fenced JSON text)")
    plan.add_argument("--target", "-t", type=float, required=True, help="Scene target duration in seconds")
    plan.add_argument("--allowed", type=str, help="Comma-separated allowed durations")
    plan.add_argument(
        "--mode",
        choices=[mode.value for mode in ReferenceMode],
        help="Reference mode (default from config)"
    )
    plan.add_argument("--scene-id", type=str, default="scene-1", help="Scene id for generated shot ids")

    subparsers.add_parser("profiles", help="List capability profiles")

    return parser


def run_plan(args, config) -> int:
    logger = get_logger("main")

    if args.allowed:
        config.planning.allowed_durations = parse_durations(args.allowed)
    if args.mode:
        config.planning.reference_mode = ReferenceMode(args.mode)
    config.planning.validate()

    path = Path(args.file)
    raw = path.read_text(encoding="utf-8")
    proposals = parse_shot_proposals(raw)
    logger.info(f"Loaded {len(proposals)} proposal(s) from {path}")

    mode = config.planning.reference_mode
    shots = normalize_proposals(proposals, args.scene_id, mode)
    report = DurationReconciler.from_config(config.planning).reconcile(shots, args.target)

    scene = Scene(args.scene_id, args.target, reference_mode=mode)
    grouping = scene.replace_shots(report.shots)

    output = {
        "scene": scene.to_dict(),
        "duration_report": report.to_dict(),
        "dropped_runs": [
            {"shot_positions": d.shot_positions, "reason": d.reason}
            for d in grouping.dropped
        ],
    }
    print(json.dumps(output, indent=2))
    return 0


def run_profiles(args, config) -> int:
    for profile in list_profiles():
        frames = "first+last" if profile.supports_last_frame else "first"
        durations = ",".join(f"{d:g}" for d in profile.durations)
        print(
            f"{profile.profile_id:<24} {profile.model:<30} "
            f"durations={durations:<20} frames={frames:<10} "
            f"resolutions={','.join(profile.resolutions)}"
        )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the shotplan CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = apply_env_overrides(load_config(Path(args.config) if args.config else None))
    except ShotplanError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if args.debug:
        log_level = LogLevel.DEBUG
    elif args.verbose:
        log_level = LogLevel.INFO
    else:
        log_level = LogLevel.from_name(config.log_level)
    setup_logging(level=log_level, verbose=args.verbose or args.debug)

    logger = get_logger("main")

    try:
        load_profiles(config.video_profiles)
        if args.command == "plan":
            return run_plan(args, config)
        if args.command == "profiles":
            return run_profiles(args, config)
    except ShotplanError as e:
        logger.error(str(e))
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"Invalid input: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
