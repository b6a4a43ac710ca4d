from __future__ import annotations

import json
from pathlib import Path

import allure

from realitycheck.workspace.transcript import (
    TranscriptFile,
    last_assistant_message,
    read_transcript,
)

pytestmark = [
    allure.epic("Workspace Collaborators"),
    allure.feature("Transcript Reader"),
]


def _write_transcript(path: Path, entries: list[object]) -> Path:
    lines = [entry if isinstance(entry, str) else json.dumps(entry) for entry in entries]
    path.write_text("\n".join(lines) + "\n", "utf-8")
    return path


def _message(role: str, content: object, timestamp: str | None = None) -> dict[str, object]:
    entry: dict[str, object] = {"type": role, "message": {"role": role, "content": content}}
    if timestamp is not None:
        entry["timestamp"] = timestamp
    return entry


def test_read_transcript_skips_malformed_and_non_message_lines(tmp_path) -> None:
    path = _write_transcript(
        tmp_path / "session.jsonl",
        [
            _message("user", "Add a parser", "2026-03-01T10:00:00Z"),
            "{broken json",
            {"type": "summary", "summary": "not a message"},
            "",
            _message(
                "assistant",
                [
                    {"type": "text", "text": "Working on it."},
                    {"type": "tool_use", "name": "Bash", "input": {"command": "pytest"}},
                    {"type": "text", "text": "Tests pass."},
                ],
            ),
        ],
    )

    messages = read_transcript(path)

    assert [message.role for message in messages] == ["user", "assistant"]
    assert messages[0].timestamp == "2026-03-01T10:00:00Z"
    assert messages[1].content == "Working on it.\nTests pass."
    assert messages[1].tool_use is not None
    assert messages[1].tool_use.name == "Bash"
    assert messages[1].tool_use.input == {"command": "pytest"}


def test_read_transcript_limits_to_last_n(tmp_path) -> None:
    path = _write_transcript(
        tmp_path / "session.jsonl",
        [_message("user", f"prompt {index}") for index in range(5)],
    )

    assert [m.content for m in read_transcript(path, last_n=2)] == ["prompt 3", "prompt 4"]


def test_missing_transcript_is_empty(tmp_path) -> None:
    assert read_transcript(tmp_path / "absent.jsonl") == []
    assert last_assistant_message(tmp_path / "absent.jsonl") is None


def test_last_assistant_message_returns_newest_text(tmp_path) -> None:
    path = _write_transcript(
        tmp_path / "session.jsonl",
        [
            _message("assistant", "First answer."),
            _message("user", "More please"),
            _message("assistant", [{"type": "text", "text": "Second answer."}]),
            _message("user", "Thanks"),
        ],
    )

    assert TranscriptFile(path).last_assistant_message() == "Second answer."


def test_assistant_message_without_text_is_absent(tmp_path) -> None:
    path = _write_transcript(
        tmp_path / "session.jsonl",
        [_message("assistant", [{"type": "tool_use", "name": "Read", "input": {}}])],
    )

    assert last_assistant_message(path) is None
