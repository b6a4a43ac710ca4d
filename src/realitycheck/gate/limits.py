"""Retry budget enforcement over the stop attempt log."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from realitycheck.ledger.models import StopAttempt, StopVerdict


@dataclass(slots=True, frozen=True)
class LimitPolicy:
    """Attempt budgets after which the gate stops insisting."""

    max_consecutive_failures: int = 20
    max_total_attempts: int = 50


@dataclass(slots=True, frozen=True)
class LimitCheckResult:
    """Budget check outcome; counters are filled even when not exceeded."""

    exceeded: bool
    consecutive_failures: int
    total_attempts: int
    reason: str | None = None


def consecutive_failures(attempts: Sequence[StopAttempt]) -> int:
    """Length of the unbroken run of `incomplete` verdicts ending at the newest attempt."""

    streak = 0
    for attempt in reversed(attempts):
        if attempt.verdict is not StopVerdict.INCOMPLETE:
            break
        streak += 1
    return streak


def check_limits(attempts: Sequence[StopAttempt], policy: LimitPolicy) -> LimitCheckResult:
    """Decide whether the consecutive or total attempt budget is used up."""

    streak = consecutive_failures(attempts)
    total = len(attempts)

    if streak >= policy.max_consecutive_failures:
        return LimitCheckResult(
            exceeded=True,
            consecutive_failures=streak,
            total_attempts=total,
            reason=(
                f"Consecutive failures ({streak}) exceeded limit "
                f"({policy.max_consecutive_failures})"
            ),
        )
    if total >= policy.max_total_attempts:
        return LimitCheckResult(
            exceeded=True,
            consecutive_failures=streak,
            total_attempts=total,
            reason=f"Total attempts ({total}) exceeded limit ({policy.max_total_attempts})",
        )
    return LimitCheckResult(exceeded=False, consecutive_failures=streak, total_attempts=total)
