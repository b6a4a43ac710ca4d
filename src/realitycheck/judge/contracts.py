"""Verdict contract returned by the judge process."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from realitycheck.judge.failure_classifier import JudgeFailure

VERDICT_JSON_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "pass": {"type": "boolean"},
        "reason": {"type": "string"},
        "missingItems": {"type": "array", "items": {"type": "string"}},
        "questionsForUser": {"type": "array", "items": {"type": "string"}},
        "forwardProgress": {"type": "boolean"},
        "convergenceEstimate": {"type": "number"},
        "suggestedNextSteps": {"type": "array", "items": {"type": "string"}},
        "unnecessaryQuestion": {"type": "boolean"},
        "autonomyInstructionDetected": {"type": "boolean"},
    },
    "required": [
        "pass",
        "reason",
        "missingItems",
        "questionsForUser",
        "forwardProgress",
        "suggestedNextSteps",
    ],
}


class VerdictValidationError(ValueError):
    """Raised when a judge payload does not match the verdict schema."""


@dataclass(slots=True, frozen=True)
class Verdict:
    """Judge decision on whether the session may stop."""

    passed: bool
    reason: str
    missing_items: tuple[str, ...] = ()
    questions_for_user: tuple[str, ...] = ()
    forward_progress: bool = True
    suggested_next_steps: tuple[str, ...] = ()
    convergence_estimate: float | None = None
    unnecessary_question: bool = False
    autonomy_instruction_detected: bool = False
    judge_failure: JudgeFailure | None = field(default=None, compare=False)

    @property
    def judge_available(self) -> bool:
        return self.judge_failure is None


def verdict_schema_text() -> str:
    """Compact schema string passed on the judge command line."""

    return json.dumps(VERDICT_JSON_SCHEMA, separators=(",", ":"))


def parse_verdict(payload: object) -> Verdict:
    """Validate a decoded judge payload and convert it into a `Verdict`."""

    if not isinstance(payload, dict):
        raise VerdictValidationError(
            f"verdict must be a JSON object, got {type(payload).__name__}",
        )

    convergence = payload.get("convergenceEstimate")
    if convergence is not None and (
        isinstance(convergence, bool) or not isinstance(convergence, int | float)
    ):
        raise VerdictValidationError("verdict.convergenceEstimate must be a number")

    return Verdict(
        passed=_require_bool(payload, "pass"),
        reason=_require_str(payload, "reason"),
        missing_items=_require_str_list(payload, "missingItems"),
        questions_for_user=_require_str_list(payload, "questionsForUser"),
        forward_progress=_require_bool(payload, "forwardProgress"),
        suggested_next_steps=_require_str_list(payload, "suggestedNextSteps"),
        convergence_estimate=float(convergence) if convergence is not None else None,
        unnecessary_question=_optional_bool(payload, "unnecessaryQuestion"),
        autonomy_instruction_detected=_optional_bool(payload, "autonomyInstructionDetected"),
    )


def fail_open_verdict(failure: JudgeFailure) -> Verdict:
    """Allowing verdict used whenever the judge machinery itself fails."""

    return Verdict(
        passed=True,
        reason=f"Judge evaluation failed - allowing stop. Error: {failure.message}",
        forward_progress=True,
        judge_failure=failure,
    )


def _require_bool(payload: dict[str, Any], key: str) -> bool:
    value = payload.get(key)
    if not isinstance(value, bool):
        raise VerdictValidationError(f"verdict.{key} must be a boolean")
    return value


def _optional_bool(payload: dict[str, Any], key: str) -> bool:
    value = payload.get(key, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise VerdictValidationError(f"verdict.{key} must be a boolean")
    return value


def _require_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise VerdictValidationError(f"verdict.{key} must be a string")
    return value


def _require_str_list(payload: dict[str, Any], key: str) -> tuple[str, ...]:
    value = payload.get(key)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise VerdictValidationError(f"verdict.{key} must be an array of strings")
    return tuple(value)
