from __future__ import annotations

from datetime import UTC, datetime, timedelta

import allure

from realitycheck.gate.limits import LimitPolicy, check_limits, consecutive_failures
from realitycheck.ledger.models import StopAttempt, StopVerdict

pytestmark = [
    allure.epic("Stop Gate"),
    allure.feature("Retry Budgets"),
]

_START = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _attempts(*verdicts: StopVerdict) -> list[StopAttempt]:
    return [
        StopAttempt(
            id=f"a{index}",
            timestamp=_START + timedelta(minutes=index),
            verdict=verdict,
            reason=f"attempt {index}",
        )
        for index, verdict in enumerate(verdicts)
    ]


def test_streak_counts_only_trailing_incomplete_attempts() -> None:
    attempts = _attempts(
        StopVerdict.INCOMPLETE,
        StopVerdict.COMPLETE,
        StopVerdict.INCOMPLETE,
        StopVerdict.INCOMPLETE,
    )

    assert consecutive_failures(attempts) == 2


def test_blocked_and_error_verdicts_break_the_streak() -> None:
    assert consecutive_failures(_attempts(StopVerdict.INCOMPLETE, StopVerdict.BLOCKED)) == 0
    assert (
        consecutive_failures(
            _attempts(StopVerdict.INCOMPLETE, StopVerdict.ERROR, StopVerdict.INCOMPLETE),
        )
        == 1
    )


def test_empty_history_is_within_limits() -> None:
    result = check_limits([], LimitPolicy())

    assert not result.exceeded
    assert result.consecutive_failures == 0
    assert result.total_attempts == 0
    assert result.reason is None


def test_consecutive_failure_limit_is_inclusive() -> None:
    policy = LimitPolicy(max_consecutive_failures=3, max_total_attempts=50)

    below = check_limits(_attempts(*[StopVerdict.INCOMPLETE] * 2), policy)
    at_limit = check_limits(_attempts(*[StopVerdict.INCOMPLETE] * 3), policy)

    assert not below.exceeded
    assert at_limit.exceeded
    assert at_limit.reason == "Consecutive failures (3) exceeded limit (3)"


def test_total_attempt_limit_counts_every_verdict() -> None:
    policy = LimitPolicy(max_consecutive_failures=20, max_total_attempts=4)
    attempts = _attempts(
        StopVerdict.COMPLETE,
        StopVerdict.BLOCKED,
        StopVerdict.ERROR,
        StopVerdict.INCOMPLETE,
    )

    result = check_limits(attempts, policy)

    assert result.exceeded
    assert result.consecutive_failures == 1
    assert result.reason == "Total attempts (4) exceeded limit (4)"


def test_consecutive_limit_reported_before_total_limit() -> None:
    policy = LimitPolicy(max_consecutive_failures=2, max_total_attempts=2)

    result = check_limits(_attempts(StopVerdict.INCOMPLETE, StopVerdict.INCOMPLETE), policy)

    assert result.reason is not None
    assert result.reason.startswith("Consecutive failures")
