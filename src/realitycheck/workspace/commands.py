"""Expansion of custom slash commands defined under `.claude/commands/`."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# Commands handled by the agent host itself; they have no definition file.
BUILTIN_COMMANDS = frozenset(
    {
        "bug",
        "clear",
        "compact",
        "config",
        "cost",
        "doctor",
        "help",
        "init",
        "login",
        "logout",
        "mcp",
        "memory",
        "model",
        "permissions",
        "pr-comments",
        "resume",
        "status",
        "terminal-setup",
        "vim",
    },
)

_FILE_REFERENCE = re.compile(r"@([^\s,;:'\"<>()\[\]{}]+)")
_NUMBERED_PLACEHOLDER = re.compile(r"\$(\d+)")


@dataclass(slots=True, frozen=True)
class ExpandedCommand:
    expanded_text: str
    summary: str
    original_command: str
    referenced_files: list[Path] = field(default_factory=list)


def parse_slash_command(prompt: str) -> tuple[str, list[str]] | None:
    """Split `/name arg ...` into the command name and its arguments."""

    trimmed = prompt.strip()
    if not trimmed.startswith("/"):
        return None
    parts = trimmed[1:].split()
    if not parts:
        return None
    return parts[0], parts[1:]


def find_command_file(commands_dir: Path, name: str) -> Path | None:
    """Locate `<name>.md`, `<name>`, or `a/b.md` for a namespaced `a:b`."""

    if not commands_dir.is_dir():
        return None
    candidates = [commands_dir / f"{name}.md", commands_dir / name]
    if ":" in name:
        candidates.append(commands_dir / f"{name.replace(':', '/')}.md")
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def substitute_arguments(content: str, args: list[str]) -> str:
    """Fill `$ARGUMENTS` and `$1..$n`; placeholders without an argument become empty."""

    result = content.replace("$ARGUMENTS", " ".join(args))

    def _positional(match: re.Match[str]) -> str:
        index = int(match.group(1)) - 1
        return args[index] if 0 <= index < len(args) else ""

    return _NUMBERED_PLACEHOLDER.sub(_positional, result)


def inline_file_references(content: str, project_dir: Path) -> tuple[str, list[Path]]:
    """Replace `@path` references to readable files with their contents."""

    files: list[Path] = []

    def _inline(match: re.Match[str]) -> str:
        reference = match.group(1)
        path = Path(reference)
        if not path.is_absolute():
            path = (project_dir / path).resolve()
        if not path.is_file():
            return match.group(0)
        try:
            text = path.read_text("utf-8")
        except (OSError, UnicodeDecodeError) as error:
            logger.debug("Could not inline %s: %s", path, error)
            return match.group(0)
        files.append(path)
        return f'<file path="{reference}">\n{text}\n</file>'

    return _FILE_REFERENCE.sub(_inline, content), files


def command_summary(raw_content: str, name: str) -> str:
    lines = raw_content.splitlines()
    first_line = lines[0].strip() if lines else ""
    if first_line.startswith("#"):
        return first_line.lstrip("#").strip()
    return f"Command: {name}"


class CommandExpander:
    """Resolves custom slash commands from the project, then the user directory."""

    def __init__(self, project_dir: Path, *, user_commands_dir: Path | None = None) -> None:
        self.project_dir = project_dir
        self.search_dirs = [
            project_dir / ".claude" / "commands",
            user_commands_dir if user_commands_dir is not None else Path.home() / ".claude" / "commands",
        ]

    def expand(self, prompt: str) -> ExpandedCommand | None:
        """Expanded command text, or `None` for plain prompts, built-ins and unknown commands."""

        parsed = parse_slash_command(prompt)
        if parsed is None:
            return None
        name, args = parsed
        if name in BUILTIN_COMMANDS:
            return None

        command_file = next(
            (
                found
                for found in (find_command_file(directory, name) for directory in self.search_dirs)
                if found is not None
            ),
            None,
        )
        if command_file is None:
            logger.debug("No definition found for slash command /%s", name)
            return None

        try:
            raw_content = command_file.read_text("utf-8")
        except (OSError, UnicodeDecodeError) as error:
            logger.warning("Could not read slash command %s: %s", command_file, error)
            return None
        expanded, files = inline_file_references(
            substitute_arguments(raw_content, args),
            self.project_dir,
        )
        return ExpandedCommand(
            expanded_text=expanded,
            summary=command_summary(raw_content, name),
            original_command=prompt,
            referenced_files=files,
        )
