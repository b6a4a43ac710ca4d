"""Task ledger persistence."""

from realitycheck.ledger.backends import FileLedgerBackend, LedgerBackend, MemoryLedgerBackend
from realitycheck.ledger.models import (
    LEDGER_SCHEMA_VERSION,
    Baseline,
    CriterionResult,
    Directive,
    DirectiveKind,
    DirectiveStatus,
    Ledger,
    LedgerSchemaError,
    StopAttempt,
    StopAttemptDraft,
    StopVerdict,
    WorkspaceFingerprint,
)
from realitycheck.ledger.store import (
    DirectiveNotFoundError,
    LedgerError,
    LedgerNotInitializedError,
    LedgerStore,
)

__all__ = [
    "LEDGER_SCHEMA_VERSION",
    "Baseline",
    "CriterionResult",
    "Directive",
    "DirectiveKind",
    "DirectiveNotFoundError",
    "DirectiveStatus",
    "FileLedgerBackend",
    "Ledger",
    "LedgerBackend",
    "LedgerError",
    "LedgerNotInitializedError",
    "LedgerSchemaError",
    "LedgerStore",
    "MemoryLedgerBackend",
    "StopAttempt",
    "StopAttemptDraft",
    "StopVerdict",
    "WorkspaceFingerprint",
]
