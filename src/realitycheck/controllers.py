"""Controllers for realitycheck CLI commands."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from realitycheck.gate.models import StopDecision
from realitycheck.hooks.handlers import (
    JudgeFactory,
    default_judge_factory,
    handle_post_tool_use,
    handle_prompt_submit,
    handle_session_start,
    handle_stop,
    load_settings,
    open_ledger,
)
from realitycheck.judge.backend.base import JudgeContext
from realitycheck.judge.backend.cli_judge import CliJudge
from realitycheck.ledger.models import Directive, DirectiveKind, DirectiveStatus, utc_now
from realitycheck.ledger.store import LedgerError

logger = logging.getLogger(__name__)

HOOK_EVENTS: tuple[str, ...] = ("stop", "prompt-submit", "post-tool-use", "session-start")
SMOKE_DIRECTIVE = "Reply with a verdict for this smoke check."


@dataclass(slots=True)
class HookCommand:
    """CLI input for one hook invocation."""

    event: str
    payload_text: str


@dataclass(slots=True)
class LedgerShowCommand:
    """CLI input for ledger summary."""

    project_dir: Path
    recent_attempts: int = 5


@dataclass(slots=True)
class LedgerResetCommand:
    """CLI input for ledger reset."""

    project_dir: Path


@dataclass(slots=True)
class JudgeSmokeCommand:
    """CLI input for a one-shot judge check."""

    project_dir: Path
    executable: str | None = None
    timeout_seconds: int | None = None


@dataclass(slots=True)
class JudgeSmokeResult:
    """Smoke-check report to render in CLI."""

    lines: list[str]
    success: bool


class HookCliController:
    """Decodes hook payloads and dispatches them to the handlers."""

    def __init__(self, judge_factory: JudgeFactory = default_judge_factory) -> None:
        self.judge_factory = judge_factory

    def run(self, command: HookCommand) -> dict[str, Any] | None:
        raw = _decode_payload(command.payload_text)
        if command.event == "stop":
            return self._stop(raw).to_hook_output()
        if command.event not in HOOK_EVENTS:
            raise ValueError(f"Unsupported hook event: {command.event!r}")
        try:
            return self._observe(command.event, raw)
        except (LedgerError, OSError) as error:
            logger.exception("%s hook failed: %s", command.event, error)
            return None

    def _observe(self, event: str, raw: object) -> dict[str, Any] | None:
        if event == "prompt-submit":
            return handle_prompt_submit(raw)
        if event == "post-tool-use":
            handle_post_tool_use(raw)
            return None
        return handle_session_start(raw)

    def _stop(self, raw: object) -> StopDecision:
        try:
            return handle_stop(raw, judge_factory=self.judge_factory)
        except (LedgerError, OSError) as error:
            logger.exception("Stop gate failed, allowing stop: %s", error)
            return StopDecision.allow()


class LedgerCliController:
    """Inspection and maintenance of the on-disk ledger."""

    def show(self, command: LedgerShowCommand) -> list[str]:
        settings = load_settings(command.project_dir)
        ledger = open_ledger(settings, command.project_dir).snapshot()

        active = [d for d in ledger.directives if d.status is DirectiveStatus.ACTIVE]
        lines = [
            f"Ledger: {settings.ledger_path(command.project_dir)}",
            f"Session: {ledger.session_id}",
            f"Updated: {ledger.updated_at.isoformat()}",
            (
                f"Directives: total={len(ledger.directives)} active={len(active)} "
                f"stop_attempts={len(ledger.stop_attempts)} "
                f"fingerprints={len(ledger.fingerprints)}"
            ),
        ]
        if ledger.baseline is not None:
            baseline = ledger.baseline
            lines.append(
                f"Baseline: branch={baseline.branch} commit={baseline.commit_hash[:12]} "
                f"dirty={str(baseline.is_dirty).lower()}",
            )
        for directive in ledger.directives:
            lines.append(
                f"- [{directive.status.value}] {directive.kind.value}: "
                f"{_one_line(directive.raw_text)}",
            )
        recent = ledger.stop_attempts[-command.recent_attempts :]
        if recent:
            lines.append(f"Recent stop attempts ({len(recent)} of {len(ledger.stop_attempts)}):")
            lines.extend(
                f"- {attempt.timestamp.strftime('%H:%M:%S')} {attempt.verdict.value}: "
                f"{_one_line(attempt.reason)}"
                for attempt in recent
            )
        return lines

    def reset(self, command: LedgerResetCommand) -> list[str]:
        settings = load_settings(command.project_dir)
        store = open_ledger(settings, command.project_dir)
        previous = store.session_id()
        store.reset()
        return [
            f"Ledger reset: {settings.ledger_path(command.project_dir)}",
            f"Previous session: {previous}",
            f"New session: {store.session_id()}",
        ]


class JudgeCliController:
    """Direct judge checks that do not touch the ledger."""

    def smoke(self, command: JudgeSmokeCommand) -> JudgeSmokeResult:
        try:
            settings = load_settings(command.project_dir)
        except ValueError as error:
            return JudgeSmokeResult(lines=["Judge smoke check:", str(error)], success=False)

        if command.executable is not None:
            settings.judge.executable = command.executable
        if command.timeout_seconds is not None:
            settings.judge.timeout_seconds = command.timeout_seconds
        judge = CliJudge.from_settings(settings.judge, project_dir=command.project_dir)

        verdict = judge.evaluate(
            JudgeContext(
                directives=[
                    Directive(
                        id="smoke",
                        raw_text=SMOKE_DIRECTIVE,
                        kind=DirectiveKind.INITIAL,
                        status=DirectiveStatus.ACTIVE,
                        created_at=utc_now(),
                    ),
                ],
                fingerprint="smoke",
            ),
        )
        lines = [
            "Judge smoke check:",
            f"executable={settings.judge.executable} model={settings.judge.model_id}",
        ]
        if verdict.judge_failure is not None:
            failure = verdict.judge_failure
            lines.append(f"status=failed_open class={failure.failure_class.value}")
            lines.append(failure.message)
            return JudgeSmokeResult(lines=lines, success=False)

        lines.append(f"status=answered pass={str(verdict.passed).lower()}")
        lines.append(f"reason={_one_line(verdict.reason)}")
        return JudgeSmokeResult(lines=lines, success=True)


def _decode_payload(payload_text: str) -> object:
    if not payload_text.strip():
        return None
    try:
        return json.loads(payload_text)
    except json.JSONDecodeError as error:
        logger.error("Hook input is not valid JSON: %s", error)
        return None


def _one_line(text: str, limit: int = 120) -> str:
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[: limit - 3] + "..."
