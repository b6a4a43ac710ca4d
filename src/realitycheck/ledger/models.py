"""Domain models for the task ledger and their JSON document mapping."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

LEDGER_SCHEMA_VERSION = 1


class LedgerSchemaError(ValueError):
    """Raised when a persisted ledger document does not match the schema."""


class DirectiveKind(str, Enum):
    """How a directive was captured."""

    INITIAL = "initial"
    FOLLOWUP = "followup"
    CLARIFICATION = "clarification"


class DirectiveStatus(str, Enum):
    """Directive lifecycle states."""

    ACTIVE = "active"
    SUPERSEDED = "superseded"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class StopVerdict(str, Enum):
    """Outcome recorded for one stop attempt."""

    COMPLETE = "complete"
    INCOMPLETE = "incomplete"
    BLOCKED = "blocked"
    ERROR = "error"


@dataclass(slots=True)
class Directive:
    """A captured user instruction the session is expected to satisfy."""

    id: str
    raw_text: str
    kind: DirectiveKind
    status: DirectiveStatus
    created_at: datetime
    normalized_intent: str | None = None
    completed_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class CriterionResult:
    """Per-criterion evaluation outcome attached to a stop attempt."""

    criterion_id: str
    passed: bool
    notes: str | None = None


@dataclass(slots=True, frozen=True)
class StopAttemptDraft:
    """Stop attempt payload before identity and timestamp are assigned."""

    verdict: StopVerdict
    reason: str
    fingerprint_before: str | None = None
    fingerprint_after: str | None = None
    criteria_evaluated: tuple[CriterionResult, ...] | None = None


@dataclass(slots=True, frozen=True)
class StopAttempt:
    """Immutable record of one completion evaluation."""

    id: str
    timestamp: datetime
    verdict: StopVerdict
    reason: str
    fingerprint_before: str | None = None
    fingerprint_after: str | None = None
    criteria_evaluated: tuple[CriterionResult, ...] | None = None

    @property
    def fingerprint_changed(self) -> bool | None:
        """Whether the workspace changed across this attempt, if both hashes are known."""

        if self.fingerprint_before is None or self.fingerprint_after is None:
            return None
        return self.fingerprint_before != self.fingerprint_after


@dataclass(slots=True, frozen=True)
class WorkspaceFingerprint:
    """Content hash of the workspace change-state."""

    hash: str
    timestamp: datetime
    after_action: str | None = None


@dataclass(slots=True, frozen=True)
class Baseline:
    """Change-state captured at session start."""

    branch: str
    commit_hash: str
    is_dirty: bool
    captured_at: datetime


@dataclass(slots=True)
class Ledger:
    """Aggregate root persisted as a single JSON document."""

    session_id: str
    created_at: datetime
    updated_at: datetime
    directives: list[Directive] = field(default_factory=list)
    stop_attempts: list[StopAttempt] = field(default_factory=list)
    fingerprints: list[WorkspaceFingerprint] = field(default_factory=list)
    baseline: Baseline | None = None
    version: int = LEDGER_SCHEMA_VERSION

    def copy(self) -> Ledger:
        """Detached copy safe to hand out to readers."""

        return replace(
            self,
            directives=[replace(directive) for directive in self.directives],
            stop_attempts=list(self.stop_attempts),
            fingerprints=list(self.fingerprints),
        )


def utc_now() -> datetime:
    """Current UTC timestamp."""

    return datetime.now(tz=UTC)


def ledger_to_dict(ledger: Ledger) -> dict[str, Any]:
    """Serialize a ledger into its JSON document form."""

    return {
        "version": ledger.version,
        "session_id": ledger.session_id,
        "created_at": _to_iso(ledger.created_at),
        "updated_at": _to_iso(ledger.updated_at),
        "directives": [_directive_to_dict(item) for item in ledger.directives],
        "stop_attempts": [_attempt_to_dict(item) for item in ledger.stop_attempts],
        "fingerprints": [_fingerprint_to_dict(item) for item in ledger.fingerprints],
        "baseline": _baseline_to_dict(ledger.baseline) if ledger.baseline else None,
    }


def ledger_from_dict(raw: object) -> Ledger:
    """Deserialize and validate a ledger document."""

    if not isinstance(raw, dict):
        raise LedgerSchemaError("ledger must be a JSON object")
    version = raw.get("version")
    if version != LEDGER_SCHEMA_VERSION:
        raise LedgerSchemaError(
            f"ledger.version must be {LEDGER_SCHEMA_VERSION}, got {version!r}",
        )
    raw_baseline = raw.get("baseline")
    return Ledger(
        session_id=_require_str(raw, "session_id", "ledger"),
        created_at=_require_datetime(raw, "created_at", "ledger"),
        updated_at=_require_datetime(raw, "updated_at", "ledger"),
        directives=[
            _directive_from_dict(item)
            for item in _require_list(raw, "directives", "ledger")
        ],
        stop_attempts=[
            _attempt_from_dict(item)
            for item in _require_list(raw, "stop_attempts", "ledger")
        ],
        fingerprints=[
            _fingerprint_from_dict(item)
            for item in _require_list(raw, "fingerprints", "ledger")
        ],
        baseline=_baseline_from_dict(raw_baseline) if raw_baseline is not None else None,
    )


def _directive_to_dict(directive: Directive) -> dict[str, Any]:
    return {
        "id": directive.id,
        "raw_text": directive.raw_text,
        "normalized_intent": directive.normalized_intent,
        "kind": directive.kind.value,
        "status": directive.status.value,
        "created_at": _to_iso(directive.created_at),
        "completed_at": _to_iso(directive.completed_at) if directive.completed_at else None,
    }


def _directive_from_dict(raw: object) -> Directive:
    context = "directive"
    if not isinstance(raw, dict):
        raise LedgerSchemaError(f"{context} must be a JSON object")
    status = _require_enum(raw, "status", DirectiveStatus, context)
    completed_at = _optional_datetime(raw, "completed_at", context)
    if (status is DirectiveStatus.COMPLETED) != (completed_at is not None):
        raise LedgerSchemaError(
            "directive.completed_at must be set exactly when status is 'completed'",
        )
    return Directive(
        id=_require_str(raw, "id", context),
        raw_text=_require_str(raw, "raw_text", context),
        normalized_intent=_optional_str(raw, "normalized_intent", context),
        kind=_require_enum(raw, "kind", DirectiveKind, context),
        status=status,
        created_at=_require_datetime(raw, "created_at", context),
        completed_at=completed_at,
    )


def _attempt_to_dict(attempt: StopAttempt) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": attempt.id,
        "timestamp": _to_iso(attempt.timestamp),
        "verdict": attempt.verdict.value,
        "reason": attempt.reason,
        "fingerprint_before": attempt.fingerprint_before,
        "fingerprint_after": attempt.fingerprint_after,
        "criteria_evaluated": None,
    }
    if attempt.criteria_evaluated is not None:
        payload["criteria_evaluated"] = [
            {"criterion_id": item.criterion_id, "passed": item.passed, "notes": item.notes}
            for item in attempt.criteria_evaluated
        ]
    return payload


def _attempt_from_dict(raw: object) -> StopAttempt:
    context = "stop_attempt"
    if not isinstance(raw, dict):
        raise LedgerSchemaError(f"{context} must be a JSON object")
    criteria: tuple[CriterionResult, ...] | None = None
    raw_criteria = raw.get("criteria_evaluated")
    if raw_criteria is not None:
        if not isinstance(raw_criteria, list):
            raise LedgerSchemaError(f"{context}.criteria_evaluated must be an array")
        criteria = tuple(_criterion_from_dict(item) for item in raw_criteria)
    return StopAttempt(
        id=_require_str(raw, "id", context),
        timestamp=_require_datetime(raw, "timestamp", context),
        verdict=_require_enum(raw, "verdict", StopVerdict, context),
        reason=_require_str(raw, "reason", context),
        fingerprint_before=_optional_str(raw, "fingerprint_before", context),
        fingerprint_after=_optional_str(raw, "fingerprint_after", context),
        criteria_evaluated=criteria,
    )


def _criterion_from_dict(raw: object) -> CriterionResult:
    context = "criteria_evaluated[]"
    if not isinstance(raw, dict):
        raise LedgerSchemaError(f"{context} must be a JSON object")
    passed = raw.get("passed")
    if not isinstance(passed, bool):
        raise LedgerSchemaError(f"{context}.passed must be a boolean")
    return CriterionResult(
        criterion_id=_require_str(raw, "criterion_id", context),
        passed=passed,
        notes=_optional_str(raw, "notes", context),
    )


def _fingerprint_to_dict(fingerprint: WorkspaceFingerprint) -> dict[str, Any]:
    return {
        "hash": fingerprint.hash,
        "timestamp": _to_iso(fingerprint.timestamp),
        "after_action": fingerprint.after_action,
    }


def _fingerprint_from_dict(raw: object) -> WorkspaceFingerprint:
    context = "fingerprint"
    if not isinstance(raw, dict):
        raise LedgerSchemaError(f"{context} must be a JSON object")
    return WorkspaceFingerprint(
        hash=_require_str(raw, "hash", context),
        timestamp=_require_datetime(raw, "timestamp", context),
        after_action=_optional_str(raw, "after_action", context),
    )


def _baseline_to_dict(baseline: Baseline) -> dict[str, Any]:
    return {
        "branch": baseline.branch,
        "commit_hash": baseline.commit_hash,
        "is_dirty": baseline.is_dirty,
        "captured_at": _to_iso(baseline.captured_at),
    }


def _baseline_from_dict(raw: object) -> Baseline:
    context = "baseline"
    if not isinstance(raw, dict):
        raise LedgerSchemaError(f"{context} must be a JSON object")
    is_dirty = raw.get("is_dirty")
    if not isinstance(is_dirty, bool):
        raise LedgerSchemaError(f"{context}.is_dirty must be a boolean")
    return Baseline(
        branch=_require_str(raw, "branch", context),
        commit_hash=_require_str(raw, "commit_hash", context),
        is_dirty=is_dirty,
        captured_at=_require_datetime(raw, "captured_at", context),
    )


def _to_iso(value: datetime) -> str:
    return value.isoformat()


def _from_iso(value: str, *, context: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as error:
        raise LedgerSchemaError(f"{context} is not an ISO-8601 timestamp: {value!r}") from error
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def _require_str(raw: dict[str, Any], key: str, context: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str):
        raise LedgerSchemaError(f"{context}.{key} must be a string")
    return value


def _optional_str(raw: dict[str, Any], key: str, context: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise LedgerSchemaError(f"{context}.{key} must be a string or null")
    return value


def _require_list(raw: dict[str, Any], key: str, context: str) -> list[Any]:
    value = raw.get(key)
    if not isinstance(value, list):
        raise LedgerSchemaError(f"{context}.{key} must be an array")
    return value


def _require_datetime(raw: dict[str, Any], key: str, context: str) -> datetime:
    return _from_iso(_require_str(raw, key, context), context=f"{context}.{key}")


def _optional_datetime(raw: dict[str, Any], key: str, context: str) -> datetime | None:
    value = _optional_str(raw, key, context)
    if value is None:
        return None
    return _from_iso(value, context=f"{context}.{key}")


def _require_enum(raw: dict[str, Any], key: str, enum_type: type[Enum], context: str) -> Any:
    value = raw.get(key)
    try:
        return enum_type(value)
    except ValueError as error:
        allowed = ", ".join(member.value for member in enum_type)
        raise LedgerSchemaError(
            f"{context}.{key} must be one of [{allowed}], got {value!r}",
        ) from error
