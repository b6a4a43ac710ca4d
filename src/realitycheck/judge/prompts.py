"""Prompt construction for the completion judge."""

from __future__ import annotations

from collections.abc import Sequence

from realitycheck.ledger.models import Directive, StopAttempt
from realitycheck.workspace.models import DiffSummary

MAX_PATCH_CHARS = 10_000
MAX_MESSAGE_CHARS = 2_000
HISTORY_WINDOW = 5

JUDGE_SYSTEM_PROMPT = """\
You are RealityCheck, a strict task completion judge for coding agents.
Your role is to determine whether an agent has FULLY completed the user's requested task.

## Your Job

Analyze the provided evidence (directives, diff, agent's last message, stop history) and determine:
1. Has every active directive been completed?
2. Is there evidence of actual work (not just claims)?
3. Are there any obvious gaps or issues?
4. Is the agent stopping to ask an unnecessary question?

## Autonomy Detection

First, scan the directives for autonomy instructions, for example:
- "don't ask me to confirm" / "don't ask for confirmation"
- "just do it" / "go ahead and do it"
- "work autonomously" / "use your judgment"
- "don't wait for approval" / "proceed without asking"

If autonomy instructions are present, be STRICT about blocking unnecessary questions.

## Failure Patterns to Detect

1. Premature termination: abandoned todo items, "Done!" without changes, giving up at an obstacle.
2. Silent fallbacks and placeholders: TODO/FIXME in core functionality, mock data where a real
   implementation is needed, placeholder text, hardcoded values where dynamic ones are needed.
3. Incomplete implementation: missing edge cases, missing error handling for I/O, partial features.
4. Code quality failures: syntax errors, missing imports or dependencies, type errors.
5. Requirement drift: mid-task user feedback not incorporated, original requirements forgotten.
6. Hallucination: references to APIs, functions, files or settings that do not exist.
7. Unnecessary confirmation seeking when autonomy instructions are present.

## Verification Checklist

For each directive verify that the code compiles, imports resolve, requested tests were actually
run, every requested item is addressed, no TODO/FIXME remains in core functionality, I/O has error
handling, and the changes match what was requested.

## Judgment Rules

1. Be STRICT: partial completion is NOT completion.
2. Require evidence: claims without file changes are a FAIL.
3. Every active directive must be satisfied.
4. Mid-task feedback is binding.
5. When in doubt, block.

## Response Format

Respond with a JSON object:
- pass: boolean, true ONLY if all directives are fully complete
- reason: string, clear explanation of the verdict
- missingItems: string[], specific incomplete items
- questionsForUser: string[], clarifying questions if requirements are ambiguous
- forwardProgress: boolean, true if meaningful progress was made since the last attempt
- convergenceEstimate: number (optional), estimated 0-100 completion
- suggestedNextSteps: string[], concrete actions to complete the task
- unnecessaryQuestion: boolean, true if the agent stops to ask a question it should answer itself
- autonomyInstructionDetected: boolean, true if directives contain autonomy instructions

If autonomyInstructionDetected is true AND the agent's final message asks a question with a
reasonable answer, set unnecessaryQuestion=true and pass=false.

Be concise but specific. Focus on actionable feedback."""


def build_judge_prompt(
    directives: Sequence[Directive],
    diff: DiffSummary | None,
    last_message: str | None,
    stop_attempts: Sequence[StopAttempt],
    fingerprint: str,
) -> str:
    """Render the evaluation prompt; output depends only on the arguments."""

    lines: list[str] = []
    lines.extend(_directive_section(directives))
    lines.extend(_changes_section(diff))
    lines.extend(_message_section(last_message))
    lines.extend(_history_section(stop_attempts))
    lines.extend(
        [
            "## Current Workspace Fingerprint",
            "",
            f"Hash: {fingerprint}",
            "",
            "## Your Task",
            "",
            "Evaluate whether all active directives have been fully completed.",
            "Respond with a JSON object following the schema described in your instructions.",
            "Be strict - only pass if the task is genuinely complete.",
        ],
    )
    return "\n".join(lines)


def _directive_section(directives: Sequence[Directive]) -> list[str]:
    lines = ["## Active Directives", ""]
    if not directives:
        lines.append("No active directives.")
    for index, directive in enumerate(directives, start=1):
        lines.append(f"{index}. [{directive.kind.value.upper()}] {directive.raw_text}")
        if directive.normalized_intent:
            lines.append(f"   Intent: {directive.normalized_intent}")
    lines.append("")
    return lines


def _changes_section(diff: DiffSummary | None) -> list[str]:
    lines = ["## Changes Made", ""]
    if diff is None:
        lines.extend(["No git diff available (not a git repository or no changes).", ""])
        return lines

    lines.append(
        f"Summary: {len(diff.files)} files changed, "
        f"+{diff.total_additions}/-{diff.total_deletions}",
    )
    lines.append("")
    lines.append("Files:")
    lines.extend(
        f"  - {item.path} (+{item.additions}/-{item.deletions})" for item in diff.files
    )
    lines.append("")
    if diff.patch and len(diff.patch) < MAX_PATCH_CHARS:
        lines.extend(["Patch:", "```diff", diff.patch, "```"])
    elif diff.patch:
        lines.append("(Patch omitted: exceeds 10KB size limit)")
    lines.append("")
    return lines


def _message_section(last_message: str | None) -> list[str]:
    lines = ["## Agent's Final Message", ""]
    if not last_message:
        lines.append("No assistant message available.")
    elif len(last_message) > MAX_MESSAGE_CHARS:
        lines.append(last_message[:MAX_MESSAGE_CHARS] + "\n... (truncated)")
    else:
        lines.append(last_message)
    lines.append("")
    return lines


def _history_section(stop_attempts: Sequence[StopAttempt]) -> list[str]:
    lines = ["## Previous Stop Attempts", ""]
    if not stop_attempts:
        lines.extend(["This is the first stop attempt.", ""])
        return lines

    recent = stop_attempts[-HISTORY_WINDOW:]
    lines.append(f"Showing last {len(recent)} of {len(stop_attempts)} attempts:")
    lines.append("")
    for attempt in recent:
        time_text = attempt.timestamp.strftime("%H:%M:%S")
        lines.append(f"- [{time_text}] {attempt.verdict.value.upper()}: {attempt.reason}")
        changed = attempt.fingerprint_changed
        if changed is not None:
            lines.append(f"  Fingerprint: {'CHANGED' if changed else 'UNCHANGED'}")
    lines.append("")
    return lines
