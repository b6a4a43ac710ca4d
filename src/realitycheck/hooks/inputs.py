"""Typed hook payloads decoded from the agent host's stdin JSON."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any


class HookInputError(ValueError):
    """Raised when a hook payload is missing fields or has wrong types."""


@dataclass(slots=True, frozen=True)
class HookContext:
    """Fields shared by every hook event."""

    session_id: str
    transcript_path: Path
    cwd: Path


@dataclass(slots=True, frozen=True)
class StopHookInput:
    context: HookContext
    stop_hook_active: bool = False


@dataclass(slots=True, frozen=True)
class PromptSubmitInput:
    context: HookContext
    prompt: str


@dataclass(slots=True, frozen=True)
class PostToolUseInput:
    context: HookContext
    tool_name: str
    tool_input: Any = None


@dataclass(slots=True, frozen=True)
class SessionStartInput:
    context: HookContext
    source: str | None = None


SESSION_START_SOURCES = frozenset({"startup", "resume", "clear", "compact"})


def parse_stop_input(raw: object) -> StopHookInput:
    payload = _require_event(raw, "Stop")
    active = payload.get("stop_hook_active", False)
    if not isinstance(active, bool):
        raise HookInputError("stop_hook_active must be a boolean")
    return StopHookInput(context=_context(payload), stop_hook_active=active)


def parse_prompt_submit_input(raw: object) -> PromptSubmitInput:
    payload = _require_event(raw, "UserPromptSubmit")
    return PromptSubmitInput(context=_context(payload), prompt=_require_str(payload, "prompt"))


def parse_post_tool_use_input(raw: object) -> PostToolUseInput:
    payload = _require_event(raw, "PostToolUse")
    return PostToolUseInput(
        context=_context(payload),
        tool_name=_require_str(payload, "tool_name"),
        tool_input=payload.get("tool_input"),
    )


def parse_session_start_input(raw: object) -> SessionStartInput:
    payload = _require_event(raw, "SessionStart")
    source = payload.get("source")
    if source is not None and source not in SESSION_START_SOURCES:
        raise HookInputError(f"Unsupported session start source: {source!r}")
    return SessionStartInput(context=_context(payload), source=source)


def _require_event(raw: object, event_name: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise HookInputError("hook input must be a JSON object")
    name = raw.get("hook_event_name")
    if name is not None and name != event_name:
        raise HookInputError(f"Expected hook_event_name {event_name!r}, got {name!r}")
    return raw


def _context(payload: dict[str, Any]) -> HookContext:
    return HookContext(
        session_id=_require_str(payload, "session_id"),
        transcript_path=Path(_require_str(payload, "transcript_path")),
        cwd=Path(_require_str(payload, "cwd")),
    )


def _require_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise HookInputError(f"{key} must be a string")
    return value
