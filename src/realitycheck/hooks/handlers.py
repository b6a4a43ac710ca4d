"""Hook event handlers wiring the gate to the agent host.

Environmental problems (bad input, bad config, unreadable ledger) never break
the agent session: the stop handler answers "approve", the others answer
nothing, and the error is logged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from realitycheck.config import LOG_LEVELS, Settings
from realitycheck.gate.models import StopDecision
from realitycheck.gate.orchestrator import GatePolicy, StopGate, StopRequest
from realitycheck.hooks.inputs import (
    HookInputError,
    parse_post_tool_use_input,
    parse_prompt_submit_input,
    parse_session_start_input,
    parse_stop_input,
)
from realitycheck.judge.backend.base import Judge
from realitycheck.judge.backend.cli_judge import CliJudge
from realitycheck.ledger.backends import FileLedgerBackend
from realitycheck.ledger.models import Baseline, DirectiveKind, utc_now
from realitycheck.ledger.store import LedgerError, LedgerStore
from realitycheck.workspace.commands import CommandExpander
from realitycheck.workspace.git import GitWorkspace
from realitycheck.workspace.transcript import TranscriptFile

logger = logging.getLogger(__name__)

JudgeFactory = Callable[[Settings, Path], Judge]

GATE_ACTIVE_CONTEXT = (
    "[RealityCheck Active] This session is monitored by RealityCheck. When you complete "
    "the task and attempt to stop, a quality gate will verify that all user requirements "
    "have been met. Focus on fully completing the requested work before stopping."
)


def load_settings(project_dir: Path) -> Settings:
    """Settings for `project_dir`; applies the configured log level unless one is set."""

    settings = Settings.load(project_dir)
    package_logger = logging.getLogger("realitycheck")
    if package_logger.level == logging.NOTSET:
        package_logger.setLevel(LOG_LEVELS[settings.debug.log_level])
    return settings


def open_ledger(settings: Settings, project_dir: Path) -> LedgerStore:
    """Initialized file-backed ledger for `project_dir`."""

    store = LedgerStore(
        FileLedgerBackend(settings.ledger_path(project_dir)),
        archive_corrupted=settings.storage.archive_corrupted,
    )
    store.initialize()
    return store


def _open_project(project_dir: Path, event_name: str) -> tuple[Settings, LedgerStore] | None:
    try:
        settings = load_settings(project_dir)
        return settings, open_ledger(settings, project_dir)
    except (ValueError, LedgerError, OSError) as error:
        logger.error("Skipping %s hook: %s", event_name, error)
        return None


def default_judge_factory(settings: Settings, project_dir: Path) -> Judge:
    return CliJudge.from_settings(settings.judge, project_dir=project_dir)


def handle_stop(raw: object, *, judge_factory: JudgeFactory = default_judge_factory) -> StopDecision:
    """Run the stop gate for one Stop hook payload."""

    try:
        hook = parse_stop_input(raw)
    except HookInputError as error:
        logger.error("Invalid Stop hook input, allowing stop: %s", error)
        return StopDecision.allow()

    project_dir = hook.context.cwd
    opened = _open_project(project_dir, "Stop")
    if opened is None:
        return StopDecision.allow()
    settings, ledger = opened

    gate = StopGate(
        ledger=ledger,
        judge=judge_factory(settings, project_dir),
        workspace=GitWorkspace(project_dir),
        transcript=TranscriptFile(hook.context.transcript_path),
        policy=GatePolicy.from_settings(settings),
    )
    decision = gate.decide(StopRequest(stop_hook_active=hook.stop_hook_active))
    logger.info("Stop decision for session %s: %s", hook.context.session_id, decision.kind.value)
    return decision


def classify_directive_kind(prompt: str, *, is_first: bool) -> DirectiveKind:
    """First prompt is `initial`, a trailing question mark is `clarification`."""

    if is_first:
        return DirectiveKind.INITIAL
    if prompt.strip().endswith("?"):
        return DirectiveKind.CLARIFICATION
    return DirectiveKind.FOLLOWUP


def handle_prompt_submit(raw: object) -> dict[str, Any] | None:
    """Record the submitted prompt as a directive; announce the gate on the first one."""

    try:
        hook = parse_prompt_submit_input(raw)
    except HookInputError as error:
        logger.error("Invalid UserPromptSubmit hook input: %s", error)
        return None

    project_dir = hook.context.cwd
    opened = _open_project(project_dir, "UserPromptSubmit")
    if opened is None:
        return None
    settings, ledger = opened
    is_first = not ledger.directives()

    text, intent = hook.prompt, None
    expanded = CommandExpander(project_dir).expand(hook.prompt)
    if expanded is not None:
        text, intent = expanded.expanded_text, expanded.summary
    ledger.add_directive(text, classify_directive_kind(hook.prompt, is_first=is_first), intent)

    if not is_first:
        return None
    if settings.git.enabled and settings.git.capture_baseline:
        _capture_baseline(ledger, GitWorkspace(project_dir))
    return _additional_context("UserPromptSubmit", GATE_ACTIVE_CONTEXT)


def _capture_baseline(ledger: LedgerStore, workspace: GitWorkspace) -> None:
    status = workspace.status()
    if not status.is_repo or status.head_commit is None or status.branch is None:
        logger.debug("Workspace is not a usable git repository; skipping baseline")
        return
    ledger.set_baseline(
        Baseline(
            branch=status.branch,
            commit_hash=status.head_commit,
            is_dirty=status.is_dirty,
            captured_at=utc_now(),
        ),
    )
    ledger.record_fingerprint(workspace.fingerprint(), "initial")


def handle_post_tool_use(raw: object) -> None:
    """Record a workspace fingerprint after shell commands, when enabled."""

    try:
        hook = parse_post_tool_use_input(raw)
    except HookInputError as error:
        logger.debug("Ignoring invalid PostToolUse hook input: %s", error)
        return
    if hook.tool_name != "Bash":
        return

    project_dir = hook.context.cwd
    try:
        settings = load_settings(project_dir)
        if not settings.performance.fingerprint_on_tool_use:
            return
        ledger = open_ledger(settings, project_dir)
    except (ValueError, LedgerError, OSError) as error:
        logger.error("Skipping PostToolUse hook: %s", error)
        return
    ledger.record_fingerprint(
        GitWorkspace(project_dir).fingerprint(),
        _extract_command(hook.tool_input),
    )


def _extract_command(tool_input: object) -> str | None:
    if not isinstance(tool_input, dict):
        return None
    for key in ("command", "cmd"):
        value = tool_input.get(key)
        if isinstance(value, str):
            return value
    return None


def handle_session_start(raw: object) -> dict[str, Any] | None:
    """Initialize the ledger; remind the agent of open directives after clear/resume."""

    try:
        hook = parse_session_start_input(raw)
    except HookInputError as error:
        logger.error("Invalid SessionStart hook input: %s", error)
        return None

    opened = _open_project(hook.context.cwd, "SessionStart")
    if opened is None:
        return None
    _, ledger = opened
    active = ledger.active_directives()
    if not active:
        return None

    if hook.source == "clear":
        listing = "\n".join(
            f"{index}. {directive.normalized_intent or directive.raw_text}"
            for index, directive in enumerate(active, start=1)
        )
        return _additional_context(
            "SessionStart",
            "[RealityCheck Context Restored]\n"
            "The conversation was cleared, but RealityCheck has preserved the following "
            f"active directives:\n\n{listing}\n\n"
            "Continue working toward completing these requirements. "
            "The quality gate remains active.",
        )

    attempts = ledger.stop_attempts()
    if hook.source == "resume" and attempts:
        last = attempts[-1]
        return _additional_context(
            "SessionStart",
            "[RealityCheck Session Resumed]\n"
            f"Previous session had {len(active)} active directive(s) and "
            f"{len(attempts)} stop attempt(s).\n"
            f"Last verdict: {last.verdict.value} - {last.reason}\n\n"
            "Continue working on the pending requirements.",
        )
    return None


def _additional_context(event_name: str, text: str) -> dict[str, Any]:
    return {
        "hookSpecificOutput": {
            "hookEventName": event_name,
            "additionalContext": text,
        },
    }
