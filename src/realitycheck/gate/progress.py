"""Trend classification over stop attempts and workspace fingerprints.

Only two failure shapes are detected: a flat workspace across repeated failed
attempts, and a workspace that oscillates between a few states. Everything
else is treated as progress.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from realitycheck.gate.limits import consecutive_failures
from realitycheck.ledger.models import StopAttempt, WorkspaceFingerprint

NO_CHANGE_RECOMMENDATION = (
    "No progress detected: the workspace did not change across repeated failed attempts. "
    "Consider asking the user for clarification."
)
OSCILLATION_RECOMMENDATION = (
    "Possible loop detected: work appears to be undone and redone between attempts."
)
NO_CONVERGENCE_RECOMMENDATION = (
    "Multiple attempts without success. Consider a different approach."
)


class ProgressTrend(str, Enum):
    IMPROVING = "improving"
    STAGNANT = "stagnant"
    REGRESSING = "regressing"


@dataclass(slots=True, frozen=True)
class ProgressPolicy:
    """Thresholds of the trend heuristic.

    `regression_divisor` splits oscillation from plain stagnation: fewer
    distinct fingerprints than `streak / regression_divisor` counts as
    regressing.
    """

    no_progress_threshold: int = 5
    regression_divisor: float = 2.0


@dataclass(slots=True, frozen=True)
class ProgressAnalysis:
    trend: ProgressTrend
    consecutive_failures: int
    total_attempts: int
    unique_fingerprints: int
    recommendation: str | None = None


def analyze_progress(
    attempts: Sequence[StopAttempt],
    fingerprints: Sequence[WorkspaceFingerprint],
    policy: ProgressPolicy,
) -> ProgressAnalysis:
    """Classify the session trajectory as improving, stagnant or regressing."""

    streak = consecutive_failures(attempts)
    recent = fingerprints[-policy.no_progress_threshold :] if policy.no_progress_threshold else []
    unique = len({fingerprint.hash for fingerprint in recent})

    trend = ProgressTrend.IMPROVING
    recommendation: str | None = None
    if streak >= policy.no_progress_threshold and streak > 0:
        if unique <= 1:
            trend = ProgressTrend.STAGNANT
            recommendation = NO_CHANGE_RECOMMENDATION
        elif unique < streak / policy.regression_divisor:
            trend = ProgressTrend.REGRESSING
            recommendation = OSCILLATION_RECOMMENDATION
        else:
            trend = ProgressTrend.STAGNANT
            recommendation = NO_CONVERGENCE_RECOMMENDATION

    return ProgressAnalysis(
        trend=trend,
        consecutive_failures=streak,
        total_attempts=len(attempts),
        unique_fingerprints=unique,
        recommendation=recommendation,
    )
