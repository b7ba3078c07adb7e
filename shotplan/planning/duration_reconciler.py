"""
Shotplan Duration Reconciler

Normalizes proposed per-shot durations against a discrete allowed-duration
set and a scene-level target total.

Steps:
1. Snap every proposal to the nearest allowed value
2. Stop if the total is already within tolerance of the target
3. Otherwise rescale proportionally, reserving budget for the shots still to place
4. The last shot absorbs whatever remains, snapped to an allowed value
5. If the total still misses the band and the target is reachable, step
   single shots to neighbouring allowed values, then fall back to the
   reachable total closest to the target when stepping stalls

Set membership is enforced strictly. Closeness of the total to the target
is best-effort: residual drift is logged, never raised.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from shotplan.core.config import PlanningConfig
from shotplan.core.constants import DEFAULT_DURATION_TOLERANCE
from shotplan.core.exceptions import InvalidConfigError
from shotplan.core.logging_config import get_logger
from shotplan.models.shot import Shot, total_duration

logger = get_logger("planning.duration")

_EPSILON = 1e-9


def snap_duration(
    value: float,
    allowed: Sequence[float],
    prefer_shorter: bool = True
) -> float:
    """
    Return the allowed duration closest to value.

    Ties go to the shorter candidate unless prefer_shorter is False.
    """
    candidates = sorted(set(allowed))
    if not candidates:
        raise InvalidConfigError("Cannot snap against an empty duration set")

    best = candidates[0]
    best_diff = abs(best - value)
    for candidate in candidates[1:]:
        diff = abs(candidate - value)
        if diff < best_diff - _EPSILON:
            best, best_diff = candidate, diff
        elif abs(diff - best_diff) <= _EPSILON and not prefer_shorter:
            best, best_diff = candidate, diff
    return best


@dataclass
class DurationAdjustment:
    """How one shot's duration changed during reconciliation."""
    shot_id: str
    proposed: float
    snapped: float
    final: float
    reason: str  # 'snap', 'rescale', 'clamp', 'absorb', 'balance'

    @property
    def changed(self) -> bool:
        return self.final != self.proposed


@dataclass
class DurationReport:
    """Result of reconciling a scene's durations."""
    shots: List[Shot]
    target: float
    realized_total: float
    tolerance: float
    rescaled: bool = False
    feasible: bool = True
    adjustments: List[DurationAdjustment] = field(default_factory=list)

    @property
    def deviation(self) -> float:
        return self.realized_total - self.target

    @property
    def within_tolerance(self) -> bool:
        return abs(self.deviation) <= self.target * self.tolerance + _EPSILON

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "realized_total": self.realized_total,
            "tolerance": self.tolerance,
            "rescaled": self.rescaled,
            "feasible": self.feasible,
            "within_tolerance": self.within_tolerance,
            "adjustments": [
                {
                    "shot_id": a.shot_id,
                    "proposed": a.proposed,
                    "snapped": a.snapped,
                    "final": a.final,
                    "reason": a.reason,
                }
                for a in self.adjustments
            ],
        }


class DurationReconciler:
    """
    Reconciles shot durations against an allowed set and a target total.

    Pure and synchronous; holds only its policy.
    """

    def __init__(
        self,
        allowed_durations: Sequence[float],
        tolerance: float = DEFAULT_DURATION_TOLERANCE,
        prefer_shorter_on_tie: bool = True
    ):
        if not allowed_durations:
            raise InvalidConfigError("allowed_durations must not be empty")
        if any(d <= 0 for d in allowed_durations):
            raise InvalidConfigError(
                "allowed_durations must be positive",
                {"allowed_durations": list(allowed_durations)}
            )
        self.allowed = sorted(set(allowed_durations))
        self.tolerance = tolerance
        self.prefer_shorter_on_tie = prefer_shorter_on_tie

    @classmethod
    def from_config(cls, config: PlanningConfig) -> 'DurationReconciler':
        return cls(
            allowed_durations=config.allowed_durations,
            tolerance=config.duration_tolerance,
            prefer_shorter_on_tie=config.prefer_shorter_on_tie
        )

    @property
    def min_allowed(self) -> float:
        return self.allowed[0]

    @property
    def max_allowed(self) -> float:
        return self.allowed[-1]

    def snap(self, value: float) -> float:
        return snap_duration(value, self.allowed, self.prefer_shorter_on_tie)

    def is_feasible(self, shot_count: int, target: float) -> bool:
        """Whether the allowed set can reach the target with this many shots at all."""
        return (
            self.min_allowed * shot_count <= target + _EPSILON
            and self.max_allowed * shot_count >= target - _EPSILON
        )

    def _within(self, total: float, target: float) -> bool:
        return abs(total - target) <= target * self.tolerance + _EPSILON

    def _neighbour(self, current: float, up: bool) -> Optional[float]:
        """Next allowed value above (or below) current, if any."""
        if up:
            larger = [d for d in self.allowed if d > current + _EPSILON]
            return larger[0] if larger else None
        smaller = [d for d in self.allowed if d < current - _EPSILON]
        return smaller[-1] if smaller else None

    def _closest_reachable(self, durations: List[float], target: float) -> List[float]:
        """
        Reassign allowed values so the total lands as close to target as the
        allowed set permits, changing as few shots as possible.

        Walks the shots keeping, for every reachable running total, the
        assignment with the fewest changed shots.
        """
        states: Dict[float, Tuple[int, Tuple[float, ...]]] = {0.0: (0, ())}
        for current in durations:
            extended: Dict[float, Tuple[int, Tuple[float, ...]]] = {}
            for total, (changes, chosen) in states.items():
                for value in self.allowed:
                    key = round(total + value, 6)
                    cost = changes + (0 if abs(value - current) <= _EPSILON else 1)
                    if key not in extended or cost < extended[key][0]:
                        extended[key] = (cost, chosen + (value,))
            states = extended

        best = min(states, key=lambda total: (abs(total - target), states[total][0], total))
        return list(states[best][1])

    def _balance(self, shots: List[Shot], target: float) -> Tuple[List[Shot], Set[int]]:
        """
        Move shots to other allowed values until the total is within tolerance.

        Single shots are stepped to neighbouring values first, each step
        strictly shrinking the gap. Growing favors the shortest shot,
        shrinking favors the longest. When no single step helps and the band
        is still missed, the closest reachable total is searched for directly.
        """
        durations = [shot.duration for shot in shots]

        while not self._within(sum(durations), target):
            deficit = target - sum(durations)
            growing = deficit > 0
            best = None
            for index, current in enumerate(durations):
                step = self._neighbour(current, up=growing)
                if step is None:
                    continue
                gap = abs(deficit - (step - current))
                if gap >= abs(deficit) - _EPSILON:
                    continue
                key = (gap, current if growing else -current, index)
                if best is None or key < best[0]:
                    best = (key, index, step)

            if best is None:
                break
            _, index, step = best
            durations[index] = step

        if not self._within(sum(durations), target):
            closest = self._closest_reachable(durations, target)
            if abs(sum(closest) - target) < abs(sum(durations) - target) - _EPSILON:
                logger.debug(f"Stepping stalled at {sum(durations)}s, reassigned to {sum(closest)}s")
                durations = closest

        touched = {
            index for index, (shot, d) in enumerate(zip(shots, durations))
            if abs(shot.duration - d) > _EPSILON
        }
        return [shot.with_duration(d) for shot, d in zip(shots, durations)], touched

    def reconcile(self, shots: Sequence[Shot], target: float) -> DurationReport:
        """
        Reconcile the shots' durations against the target total.

        Args:
            shots: Ordered shots carrying proposed durations
            target: Scene target duration in seconds

        Returns:
            DurationReport with adjusted shots and the realized total
        """
        if target <= 0:
            raise InvalidConfigError(f"Scene target duration must be positive: {target}")

        shots = list(shots)
        if not shots:
            return DurationReport(shots=[], target=target, realized_total=0, tolerance=self.tolerance)

        feasible = self.is_feasible(len(shots), target)
        if not feasible:
            logger.warning(
                f"Target {target}s is infeasible for {len(shots)} shots with "
                f"allowed durations {self.min_allowed}s-{self.max_allowed}s"
            )

        # Step 1: snap pass
        proposed = [shot.duration for shot in shots]
        snapped_values = [self.snap(value) for value in proposed]
        snapped = [shot.with_duration(value) for shot, value in zip(shots, snapped_values)]
        for shot, before, after in zip(shots, proposed, snapped_values):
            if before != after:
                logger.debug(f"Snapped {shot.shot_id}: {before}s -> {after}s")

        # Step 2: tolerance check
        snapped_total = total_duration(snapped)
        report = DurationReport(
            shots=snapped,
            target=target,
            realized_total=snapped_total,
            tolerance=self.tolerance,
            feasible=feasible,
            adjustments=[
                DurationAdjustment(shot.shot_id, p, s, s, "snap")
                for shot, p, s in zip(shots, proposed, snapped_values)
            ]
        )

        if report.within_tolerance:
            logger.debug(f"Snapped total {snapped_total}s within tolerance of {target}s")
            return report

        if len(shots) == 1:
            logger.warning(
                f"Single-shot scene: {snapped_total}s vs target {target}s, rescale skipped"
            )
            return report

        # Steps 3-4: proportional rescale with last-shot absorption
        logger.info(
            f"Duration mismatch: total {snapped_total}s vs target {target}s, rescaling"
        )
        scale = target / snapped_total
        rescaled: List[Shot] = []
        adjustments: List[DurationAdjustment] = []
        accumulated = 0.0
        count = len(snapped)

        for index, shot in enumerate(snapped):
            if index == count - 1:
                remaining = target - accumulated
                final = self.snap(remaining)
                reason = "absorb"
            else:
                scaled = shot.duration * scale
                still_to_place = count - index - 1
                ceiling = min(
                    target - accumulated - self.min_allowed * still_to_place,
                    self.max_allowed
                )
                options = [d for d in self.allowed if d <= ceiling + _EPSILON]
                if options:
                    final = snap_duration(scaled, options, self.prefer_shorter_on_tie)
                    reason = "rescale"
                else:
                    final = self.min_allowed
                    reason = "clamp"
                accumulated += final

            if final != shot.duration:
                logger.debug(f"Rescaled {shot.shot_id}: {shot.duration}s -> {final}s ({reason})")
            rescaled.append(shot.with_duration(final))
            adjustments.append(
                DurationAdjustment(shot.shot_id, proposed[index], snapped_values[index], final, reason)
            )

        if feasible and not self._within(total_duration(rescaled), target):
            rescaled, touched = self._balance(rescaled, target)
            for index in touched:
                adjustments[index].final = rescaled[index].duration
                adjustments[index].reason = "balance"
            if touched:
                logger.info(f"Balanced {len(touched)} shot(s) to close the remaining gap")

        report = DurationReport(
            shots=rescaled,
            target=target,
            realized_total=total_duration(rescaled),
            tolerance=self.tolerance,
            rescaled=True,
            feasible=feasible,
            adjustments=adjustments
        )

        if report.within_tolerance:
            logger.info(f"Duration rescale complete: {snapped_total}s -> {report.realized_total}s (target {target}s)")
        else:
            logger.warning(
                f"Duration still outside tolerance after rescale: {report.realized_total}s "
                f"vs target {target}s (+/-{self.tolerance:.0%})"
            )
        return report
