"""Reader for agent session transcripts stored as JSON Lines."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_ROLES = frozenset({"user", "assistant", "system"})


@dataclass(slots=True, frozen=True)
class ToolUse:
    name: str
    input: Any


@dataclass(slots=True, frozen=True)
class TranscriptMessage:
    """One conversation message with its text content flattened."""

    role: str
    content: str
    timestamp: str | None = None
    tool_use: ToolUse | None = None


def read_transcript(path: Path, *, last_n: int | None = None) -> list[TranscriptMessage]:
    """Parse a transcript file; malformed lines and non-message entries are skipped."""

    if not path.is_file():
        return []

    messages: list[TranscriptMessage] = []
    for line in path.read_text("utf-8", errors="replace").splitlines():
        if not line.strip():
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            continue
        message = _to_message(entry)
        if message is not None:
            messages.append(message)

    if last_n is not None and last_n > 0:
        return messages[-last_n:]
    return messages


def last_assistant_message(path: Path, *, window: int = 20) -> str | None:
    """Text of the newest assistant message within the last `window` messages."""

    for message in reversed(read_transcript(path, last_n=window)):
        if message.role == "assistant":
            return message.content or None
    return None


class TranscriptFile:
    """Last-message source bound to one transcript path."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def last_assistant_message(self) -> str | None:
        return last_assistant_message(self.path)


def _to_message(entry: object) -> TranscriptMessage | None:
    if not isinstance(entry, dict):
        return None
    message = entry.get("message")
    if not isinstance(message, dict):
        return None
    role = message.get("role")
    if role not in _ROLES:
        return None
    content = message.get("content")
    timestamp = entry.get("timestamp")
    return TranscriptMessage(
        role=role,
        content=_text_content(content),
        timestamp=timestamp if isinstance(timestamp, str) else None,
        tool_use=_tool_use(content),
    )


def _text_content(content: object) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(
            block["text"]
            for block in content
            if isinstance(block, dict)
            and block.get("type") == "text"
            and isinstance(block.get("text"), str)
        )
    return ""


def _tool_use(content: object) -> ToolUse | None:
    if not isinstance(content, list):
        return None
    for block in content:
        if isinstance(block, dict) and block.get("type") == "tool_use":
            return ToolUse(name=str(block.get("name", "")), input=block.get("input"))
    return None
