"""Ledger repository: load, mutate and persist the task ledger document."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from uuid import uuid4

from realitycheck.ledger.backends import LedgerBackend
from realitycheck.ledger.models import (
    Baseline,
    Directive,
    DirectiveKind,
    DirectiveStatus,
    Ledger,
    LedgerSchemaError,
    StopAttempt,
    StopAttemptDraft,
    WorkspaceFingerprint,
    ledger_from_dict,
    ledger_to_dict,
    utc_now,
)

logger = logging.getLogger(__name__)


class LedgerError(RuntimeError):
    """Base class for ledger contract violations."""


class LedgerNotInitializedError(LedgerError):
    """Raised when the store is used before `initialize()`."""

    def __init__(self) -> None:
        super().__init__("Ledger not initialized. Call initialize() first.")


class DirectiveNotFoundError(LedgerError):
    """Raised when a directive id does not exist in the ledger."""

    def __init__(self, directive_id: str) -> None:
        super().__init__(f"Directive not found: {directive_id}")
        self.directive_id = directive_id


class LedgerStore:
    """Durable task ledger with synchronous write-through persistence.

    Every mutating call updates the in-process aggregate and immediately
    rewrites the whole document through the backend before returning.
    """

    def __init__(self, backend: LedgerBackend, *, archive_corrupted: bool = True) -> None:
        self.backend = backend
        self.archive_corrupted = archive_corrupted
        self._ledger: Ledger | None = None

    def initialize(self) -> None:
        """Load the persisted ledger, or create a fresh one if missing or invalid."""

        self.backend.ensure_location()
        loaded = self._load_existing()
        self._ledger = loaded if loaded is not None else _empty_ledger()
        self._persist()

    def _load_existing(self) -> Ledger | None:
        try:
            text = self.backend.read()
            if text is None:
                return None
            return ledger_from_dict(json.loads(text))
        except (UnicodeDecodeError, json.JSONDecodeError, LedgerSchemaError) as error:
            logger.warning("Ledger document is invalid: %s", error)
            if self.archive_corrupted:
                self._archive_corrupted()
            return None

    def _archive_corrupted(self) -> None:
        suffix = f"corrupted.{utc_now().strftime('%Y%m%dT%H%M%S%fZ')}"
        try:
            location = self.backend.archive(suffix)
        except OSError as error:
            logger.warning("Failed to archive corrupted ledger: %s", error)
            return
        logger.warning("Archived corrupted ledger to %s", location)

    def _persist(self) -> None:
        ledger = self._require()
        ledger.updated_at = utc_now()
        self.backend.write(json.dumps(ledger_to_dict(ledger), ensure_ascii=False, indent=2))

    def _require(self) -> Ledger:
        if self._ledger is None:
            raise LedgerNotInitializedError
        return self._ledger

    def add_directive(
        self,
        raw_text: str,
        kind: DirectiveKind,
        normalized_intent: str | None = None,
    ) -> Directive:
        """Append a new active directive."""

        ledger = self._require()
        directive = Directive(
            id=str(uuid4()),
            raw_text=raw_text,
            normalized_intent=normalized_intent,
            kind=kind,
            status=DirectiveStatus.ACTIVE,
            created_at=utc_now(),
        )
        ledger.directives.append(directive)
        self._persist()
        return replace(directive)

    def update_directive_status(self, directive_id: str, status: DirectiveStatus) -> None:
        """Transition one directive; `completed` stamps the completion time."""

        ledger = self._require()
        for directive in ledger.directives:
            if directive.id == directive_id:
                break
        else:
            raise DirectiveNotFoundError(directive_id)

        directive.status = status
        directive.completed_at = utc_now() if status is DirectiveStatus.COMPLETED else None
        self._persist()

    def record_stop_attempt(self, draft: StopAttemptDraft) -> StopAttempt:
        """Append an immutable stop attempt with fresh identity and timestamp."""

        ledger = self._require()
        attempt = StopAttempt(
            id=str(uuid4()),
            timestamp=utc_now(),
            verdict=draft.verdict,
            reason=draft.reason,
            fingerprint_before=draft.fingerprint_before,
            fingerprint_after=draft.fingerprint_after,
            criteria_evaluated=draft.criteria_evaluated,
        )
        ledger.stop_attempts.append(attempt)
        self._persist()
        return attempt

    def record_fingerprint(self, hash_value: str, after_action: str | None = None) -> None:
        ledger = self._require()
        ledger.fingerprints.append(
            WorkspaceFingerprint(hash=hash_value, timestamp=utc_now(), after_action=after_action),
        )
        self._persist()

    def set_baseline(self, baseline: Baseline) -> None:
        ledger = self._require()
        ledger.baseline = baseline
        self._persist()

    def reset(self) -> None:
        """Replace the whole ledger with a fresh one under a new session id."""

        self._require()
        self._ledger = _empty_ledger()
        self._persist()

    def directives(self) -> list[Directive]:
        return [replace(directive) for directive in self._require().directives]

    def active_directives(self) -> list[Directive]:
        return [
            replace(directive)
            for directive in self._require().directives
            if directive.status is DirectiveStatus.ACTIVE
        ]

    def stop_attempts(self) -> list[StopAttempt]:
        return list(self._require().stop_attempts)

    def fingerprints(self) -> list[WorkspaceFingerprint]:
        return list(self._require().fingerprints)

    def latest_fingerprint(self) -> str | None:
        fingerprints = self._require().fingerprints
        return fingerprints[-1].hash if fingerprints else None

    def baseline(self) -> Baseline | None:
        return self._require().baseline

    def session_id(self) -> str:
        return self._require().session_id

    def snapshot(self) -> Ledger:
        """Detached copy of the whole aggregate."""

        return self._require().copy()


def _empty_ledger() -> Ledger:
    now = utc_now()
    return Ledger(session_id=str(uuid4()), created_at=now, updated_at=now)
