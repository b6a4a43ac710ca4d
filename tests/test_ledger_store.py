from __future__ import annotations

import json
from datetime import UTC, datetime

import allure
import pytest

from realitycheck.ledger.backends import FileLedgerBackend, MemoryLedgerBackend
from realitycheck.ledger.models import (
    LEDGER_SCHEMA_VERSION,
    Baseline,
    CriterionResult,
    DirectiveKind,
    DirectiveStatus,
    LedgerSchemaError,
    StopAttemptDraft,
    StopVerdict,
    ledger_from_dict,
)
from realitycheck.ledger.store import (
    DirectiveNotFoundError,
    LedgerNotInitializedError,
    LedgerStore,
)

pytestmark = [
    allure.epic("Task Ledger"),
    allure.feature("Persistence"),
]


def _populate(store: LedgerStore) -> None:
    first = store.add_directive("Add a login form", DirectiveKind.INITIAL, "login form")
    store.add_directive("Also add a logout button", DirectiveKind.FOLLOWUP)
    store.update_directive_status(first.id, DirectiveStatus.COMPLETED)
    store.record_stop_attempt(
        StopAttemptDraft(
            verdict=StopVerdict.INCOMPLETE,
            reason="Logout button missing.",
            fingerprint_before="aaaa",
            fingerprint_after="bbbb",
            criteria_evaluated=(CriterionResult(criterion_id="c1", passed=False, notes="no"),),
        ),
    )
    store.record_fingerprint("bbbb", "npm test")
    store.set_baseline(
        Baseline(
            branch="main",
            commit_hash="0123456789abcdef",
            is_dirty=False,
            captured_at=datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC),
        ),
    )


def test_initialize_creates_empty_ledger_and_persists_it(memory_backend) -> None:
    store = LedgerStore(memory_backend)
    store.initialize()

    assert store.directives() == []
    assert store.stop_attempts() == []
    assert store.fingerprints() == []
    assert store.baseline() is None
    assert memory_backend.writes == 1
    document = json.loads(memory_backend.text)
    assert document["version"] == LEDGER_SCHEMA_VERSION
    assert document["session_id"] == store.session_id()


def test_initialize_twice_keeps_collections(memory_backend) -> None:
    store = LedgerStore(memory_backend)
    store.initialize()
    _populate(store)
    before = store.snapshot()

    store.initialize()
    after = store.snapshot()

    assert after.session_id == before.session_id
    assert after.directives == before.directives
    assert after.stop_attempts == before.stop_attempts
    assert after.fingerprints == before.fingerprints


def test_round_trip_through_file_reproduces_every_field(tmp_path) -> None:
    path = tmp_path / ".claude" / "realitycheck" / "task_ledger.json"
    store = LedgerStore(FileLedgerBackend(path))
    store.initialize()
    _populate(store)

    reloaded = LedgerStore(FileLedgerBackend(path))
    reloaded.initialize()

    original = store.snapshot()
    restored = reloaded.snapshot()
    assert restored.session_id == original.session_id
    assert restored.created_at == original.created_at
    assert restored.directives == original.directives
    assert restored.stop_attempts == original.stop_attempts
    assert restored.fingerprints == original.fingerprints
    assert restored.baseline == original.baseline


def test_every_mutation_is_written_through(ledger, memory_backend) -> None:
    writes = memory_backend.writes

    directive = ledger.add_directive("Ship it", DirectiveKind.INITIAL)
    ledger.update_directive_status(directive.id, DirectiveStatus.ABANDONED)
    ledger.record_fingerprint("cafe")

    assert memory_backend.writes == writes + 3
    persisted = ledger_from_dict(json.loads(memory_backend.text))
    assert persisted.directives[0].status is DirectiveStatus.ABANDONED
    assert persisted.fingerprints[0].hash == "cafe"


def test_completed_at_tracks_completed_status(ledger) -> None:
    directive = ledger.add_directive("Write docs", DirectiveKind.INITIAL)

    ledger.update_directive_status(directive.id, DirectiveStatus.COMPLETED)
    completed = ledger.directives()[0]
    assert completed.completed_at is not None

    ledger.update_directive_status(directive.id, DirectiveStatus.ACTIVE)
    reopened = ledger.directives()[0]
    assert reopened.completed_at is None
    assert ledger.active_directives() == [reopened]


def test_update_unknown_directive_raises(ledger) -> None:
    with pytest.raises(DirectiveNotFoundError, match="Directive not found: nope"):
        ledger.update_directive_status("nope", DirectiveStatus.COMPLETED)


def test_operations_before_initialize_raise() -> None:
    store = LedgerStore(MemoryLedgerBackend())

    with pytest.raises(LedgerNotInitializedError):
        store.add_directive("x", DirectiveKind.INITIAL)
    with pytest.raises(LedgerNotInitializedError):
        store.stop_attempts()


def test_stop_attempts_get_identity_timestamp_and_keep_order(ledger) -> None:
    first = ledger.record_stop_attempt(StopAttemptDraft(StopVerdict.INCOMPLETE, "one"))
    second = ledger.record_stop_attempt(StopAttemptDraft(StopVerdict.COMPLETE, "two"))

    assert first.id != second.id
    assert first.timestamp <= second.timestamp
    assert [attempt.reason for attempt in ledger.stop_attempts()] == ["one", "two"]


def test_returned_directives_are_detached(ledger) -> None:
    ledger.add_directive("Refactor", DirectiveKind.INITIAL)

    copy = ledger.directives()[0]
    copy.status = DirectiveStatus.COMPLETED

    assert ledger.directives()[0].status is DirectiveStatus.ACTIVE


def test_corrupted_file_is_archived_and_replaced(tmp_path) -> None:
    path = tmp_path / "task_ledger.json"
    path.write_text("{not json", "utf-8")

    store = LedgerStore(FileLedgerBackend(path))
    store.initialize()

    archived = list(tmp_path.glob("task_ledger.corrupted.*.json"))
    assert len(archived) == 1
    assert archived[0].read_text("utf-8") == "{not json"
    assert store.directives() == []
    assert json.loads(path.read_text("utf-8"))["session_id"] == store.session_id()


def test_undecodable_file_is_archived_and_replaced(tmp_path) -> None:
    path = tmp_path / "task_ledger.json"
    path.write_bytes(b"\xff\xfe{not utf8")

    store = LedgerStore(FileLedgerBackend(path))
    store.initialize()

    archived = list(tmp_path.glob("task_ledger.corrupted.*.json"))
    assert len(archived) == 1
    assert archived[0].read_bytes() == b"\xff\xfe{not utf8"
    assert store.directives() == []
    assert json.loads(path.read_text("utf-8"))["session_id"] == store.session_id()


def test_schema_violation_is_treated_as_corruption() -> None:
    backend = MemoryLedgerBackend(json.dumps({"version": 1, "session_id": "s"}))

    store = LedgerStore(backend)
    store.initialize()

    assert len(backend.archived) == 1
    assert store.session_id() != "s"


def test_corrupted_document_is_overwritten_when_archiving_disabled(tmp_path) -> None:
    path = tmp_path / "task_ledger.json"
    path.write_text("[]", "utf-8")

    store = LedgerStore(FileLedgerBackend(path), archive_corrupted=False)
    store.initialize()

    assert list(tmp_path.glob("*.corrupted.*")) == []
    assert store.directives() == []
    assert json.loads(path.read_text("utf-8"))["session_id"] == store.session_id()


def test_completed_directive_without_timestamp_fails_validation() -> None:
    raw = {
        "version": 1,
        "session_id": "s",
        "created_at": "2026-01-01T00:00:00+00:00",
        "updated_at": "2026-01-01T00:00:00+00:00",
        "directives": [
            {
                "id": "d1",
                "raw_text": "x",
                "kind": "initial",
                "status": "completed",
                "created_at": "2026-01-01T00:00:00+00:00",
            },
        ],
        "stop_attempts": [],
        "fingerprints": [],
        "baseline": None,
    }

    with pytest.raises(LedgerSchemaError):
        ledger_from_dict(raw)


def test_reset_starts_new_session(ledger) -> None:
    _populate(ledger)
    previous = ledger.session_id()

    ledger.reset()

    assert ledger.session_id() != previous
    assert ledger.directives() == []
    assert ledger.stop_attempts() == []
    assert ledger.fingerprints() == []
    assert ledger.baseline() is None
