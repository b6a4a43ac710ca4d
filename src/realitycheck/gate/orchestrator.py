"""Stop gate: decides whether the agent may end its turn."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from realitycheck.config import Settings
from realitycheck.gate.limits import LimitPolicy, check_limits
from realitycheck.gate.models import LastMessageSource, StopDecision
from realitycheck.gate.progress import ProgressPolicy, ProgressTrend, analyze_progress
from realitycheck.judge.backend.base import Judge, JudgeContext
from realitycheck.judge.contracts import Verdict
from realitycheck.ledger.models import (
    Directive,
    DirectiveStatus,
    StopAttemptDraft,
    StopVerdict,
)
from realitycheck.ledger.store import LedgerStore
from realitycheck.workspace.models import WorkspaceProbe

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class GatePolicy:
    """Knobs consumed by the stop gate."""

    limits: LimitPolicy = LimitPolicy()
    progress: ProgressPolicy = ProgressPolicy()
    include_diff: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> GatePolicy:
        return cls(
            limits=LimitPolicy(
                max_consecutive_failures=settings.limits.max_consecutive_failures,
                max_total_attempts=settings.limits.max_total_attempts,
            ),
            progress=ProgressPolicy(
                no_progress_threshold=settings.limits.no_progress_threshold,
            ),
            include_diff=settings.git.enabled and settings.git.include_diff,
        )


@dataclass(slots=True, frozen=True)
class StopRequest:
    """One stop evaluation request from the agent host."""

    stop_hook_active: bool = False


class StopGate:
    """Sequences limit, progress and judge checks and records the outcome.

    Checks run in order: no active directives, exhausted budgets, stagnation,
    recursion guard, then the judge. The budget, stagnation and judge paths
    each record exactly one stop attempt; the other two write nothing.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        ledger: LedgerStore,
        judge: Judge,
        workspace: WorkspaceProbe,
        transcript: LastMessageSource,
        policy: GatePolicy,
    ) -> None:
        self.ledger = ledger
        self.judge = judge
        self.workspace = workspace
        self.transcript = transcript
        self.policy = policy

    def decide(self, request: StopRequest) -> StopDecision:
        active = self.ledger.active_directives()
        if not active:
            logger.debug("No active directives; allowing stop")
            return StopDecision.allow()

        attempts = self.ledger.stop_attempts()
        limits = check_limits(attempts, self.policy.limits)
        if limits.exceeded:
            logger.info("Attempt limits exceeded: %s", limits.reason)
            self.ledger.record_stop_attempt(
                StopAttemptDraft(
                    verdict=StopVerdict.COMPLETE,
                    reason=(
                        f"Limits exceeded: {limits.reason}. "
                        "Allowing stop to prevent infinite loop."
                    ),
                ),
            )
            return StopDecision.allow()

        progress = analyze_progress(
            attempts,
            self.ledger.fingerprints(),
            self.policy.progress,
        )
        if (
            progress.trend is ProgressTrend.STAGNANT
            and progress.consecutive_failures >= self.policy.progress.no_progress_threshold
        ):
            recommendation = progress.recommendation or "No progress detected."
            logger.info(
                "Stagnation detected after %d failed attempts", progress.consecutive_failures,
            )
            self.ledger.record_stop_attempt(
                StopAttemptDraft(verdict=StopVerdict.BLOCKED, reason=recommendation),
            )
            return StopDecision.block(recommendation)

        if request.stop_hook_active:
            logger.debug("Stop hook already active; allowing stop to avoid recursion")
            return StopDecision.allow()

        return self._judge(active)

    def _judge(self, directives: list[Directive]) -> StopDecision:
        fingerprint_before = self.ledger.latest_fingerprint()
        fingerprint = self.workspace.fingerprint()
        diff = self.workspace.current_diff() if self.policy.include_diff else None

        verdict = self.judge.evaluate(
            JudgeContext(
                directives=directives,
                fingerprint=fingerprint,
                diff=diff,
                last_message=self.transcript.last_assistant_message(),
                stop_attempts=self.ledger.stop_attempts(),
            ),
        )
        if not verdict.judge_available:
            logger.warning(
                "Judge unavailable; failing open for %d directive(s)",
                len(directives),
            )

        self.ledger.record_stop_attempt(
            StopAttemptDraft(
                verdict=StopVerdict.COMPLETE if verdict.passed else StopVerdict.INCOMPLETE,
                reason=verdict.reason,
                fingerprint_before=fingerprint_before,
                fingerprint_after=fingerprint,
            ),
        )

        if verdict.passed:
            for directive in directives:
                self.ledger.update_directive_status(directive.id, DirectiveStatus.COMPLETED)
            return StopDecision.allow()
        return StopDecision.block(format_block_reason(verdict))


def format_block_reason(verdict: Verdict) -> str:
    """Render a failing verdict as feedback for the agent."""

    parts = [f"Task incomplete: {verdict.reason}"]
    for title, items in (
        ("Missing items", verdict.missing_items),
        ("Suggested next steps", verdict.suggested_next_steps),
        ("Questions for user", verdict.questions_for_user),
    ):
        if items:
            parts.append(f"{title}:\n" + "\n".join(f"- {item}" for item in items))
    return "\n\n".join(parts)
