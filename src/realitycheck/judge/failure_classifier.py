"""Deterministic classification of judge invocation failures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

JUDGE_FAILURE_CLASSIFIER_VERSION = 1


class JudgeFailureClass(str, Enum):
    """Why the judge could not produce a usable verdict."""

    SPAWN_FAILED = "spawn_failed"
    TIMEOUT = "timeout"
    NONZERO_EXIT = "nonzero_exit"
    INVALID_JSON = "invalid_json"
    INVALID_SCHEMA = "invalid_schema"
    BILLING_OR_QUOTA = "billing_or_quota"
    ACCESS_OR_AUTH = "access_or_auth"
    MODEL_NOT_AVAILABLE = "model_not_available"


_BILLING_OR_QUOTA_PATTERNS: tuple[str, ...] = (
    "quota",
    "billing",
    "credit balance",
    "insufficient",
    "usage limit",
)
_ACCESS_OR_AUTH_PATTERNS: tuple[str, ...] = (
    "unauthorized",
    "forbidden",
    "invalid api key",
    "authentication",
    "please run /login",
    "not logged in",
)
_MODEL_NOT_AVAILABLE_PATTERNS: tuple[str, ...] = (
    "model not found",
    "unknown model",
    "invalid model",
    "model is not available",
    "not_found_error",
)


@dataclass(slots=True, frozen=True)
class JudgeFailure:
    """Normalized failure description carried by fail-open verdicts."""

    failure_class: JudgeFailureClass
    message: str
    matched_pattern: str | None = None

    def to_log_details(self) -> dict[str, object]:
        return {
            "classifier_version": JUDGE_FAILURE_CLASSIFIER_VERSION,
            "failure_class": self.failure_class.value,
            "matched_pattern": self.matched_pattern,
        }


def classify_exit_failure(*, exit_code: int, stdout: str, stderr: str) -> JudgeFailure:
    """Classify a non-zero judge exit from its output streams."""

    haystack = f"{stderr}\n{stdout}".lower()
    message = f"Judge process exited with code {exit_code}: {_preview(stderr or stdout)}"

    for failure_class, patterns in (
        (JudgeFailureClass.BILLING_OR_QUOTA, _BILLING_OR_QUOTA_PATTERNS),
        (JudgeFailureClass.ACCESS_OR_AUTH, _ACCESS_OR_AUTH_PATTERNS),
        (JudgeFailureClass.MODEL_NOT_AVAILABLE, _MODEL_NOT_AVAILABLE_PATTERNS),
    ):
        pattern = _first_match(haystack, patterns)
        if pattern is not None:
            return JudgeFailure(
                failure_class=failure_class,
                message=message,
                matched_pattern=pattern,
            )

    return JudgeFailure(failure_class=JudgeFailureClass.NONZERO_EXIT, message=message)


def _first_match(haystack: str, patterns: tuple[str, ...]) -> str | None:
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None


def _preview(value: str, *, limit: int = 500) -> str:
    compact = value.strip()
    if len(compact) <= limit:
        return compact
    return compact[:limit] + "..."
