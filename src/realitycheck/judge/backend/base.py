"""Judge capability interface."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from realitycheck.judge.contracts import Verdict
from realitycheck.ledger.models import Directive, StopAttempt
from realitycheck.workspace.models import DiffSummary


@dataclass(slots=True)
class JudgeContext:
    """Evidence handed to the judge for one stop evaluation."""

    directives: list[Directive]
    fingerprint: str
    diff: DiffSummary | None = None
    last_message: str | None = None
    stop_attempts: list[StopAttempt] = field(default_factory=list)


class Judge(Protocol):
    """Semantic completion check; implementations must never raise."""

    def evaluate(self, context: JudgeContext) -> Verdict:
        """Return the verdict for `context`."""
