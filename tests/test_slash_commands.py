from __future__ import annotations

from pathlib import Path

import allure
import pytest

from realitycheck.workspace.commands import (
    CommandExpander,
    command_summary,
    parse_slash_command,
    substitute_arguments,
)

pytestmark = [
    allure.epic("Workspace Collaborators"),
    allure.feature("Slash Commands"),
]


def _command(directory: Path, relative: str, content: str) -> None:
    path = directory / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, "utf-8")


@pytest.fixture()
def user_dir(tmp_path) -> Path:
    return tmp_path / "home" / ".claude" / "commands"


@pytest.fixture()
def project(tmp_path) -> Path:
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    return project_dir


def test_parse_slash_command() -> None:
    assert parse_slash_command("  /fix-tests unit  slow ") == ("fix-tests", ["unit", "slow"])
    assert parse_slash_command("fix the tests") is None
    assert parse_slash_command("/") is None


def test_arguments_are_substituted_and_unused_placeholders_dropped() -> None:
    content = "Fix $1 tests in $2 ($ARGUMENTS), not $3."

    assert substitute_arguments(content, ["unit", "api"]) == "Fix unit tests in api (unit api), not ."


def test_summary_comes_from_heading_or_command_name() -> None:
    assert command_summary("## Fix failing tests\nbody", "fix-tests") == "Fix failing tests"
    assert command_summary("Do the thing", "thing") == "Command: thing"
    assert command_summary("", "empty") == "Command: empty"


def test_project_command_is_expanded_with_file_references(project, user_dir) -> None:
    (project / "NOTES.md").write_text("flaky: test_io", "utf-8")
    _command(
        project / ".claude" / "commands",
        "fix-tests.md",
        "# Fix failing tests\nFix the $1 suite. See @NOTES.md and @missing.md.\n",
    )

    expanded = CommandExpander(project, user_commands_dir=user_dir).expand("/fix-tests unit")

    assert expanded is not None
    assert expanded.summary == "Fix failing tests"
    assert expanded.original_command == "/fix-tests unit"
    assert "Fix the unit suite." in expanded.expanded_text
    assert '<file path="NOTES.md">\nflaky: test_io\n</file>' in expanded.expanded_text
    assert "@missing.md" in expanded.expanded_text
    assert expanded.referenced_files == [(project / "NOTES.md").resolve()]


def test_namespaced_command_resolves_to_nested_file(project, user_dir) -> None:
    _command(project / ".claude" / "commands", "db/migrate.md", "Run migrations for $ARGUMENTS")

    expanded = CommandExpander(project, user_commands_dir=user_dir).expand("/db:migrate users")

    assert expanded is not None
    assert expanded.expanded_text == "Run migrations for users"
    assert expanded.summary == "Command: db:migrate"


def test_user_command_is_used_when_project_has_none(project, user_dir) -> None:
    _command(user_dir, "review", "# Review the diff\n")

    expanded = CommandExpander(project, user_commands_dir=user_dir).expand("/review")

    assert expanded is not None
    assert expanded.summary == "Review the diff"


@pytest.mark.parametrize("prompt", ["/clear", "/unknown-command", "plain prompt"])
def test_builtin_unknown_and_plain_prompts_are_not_expanded(project, user_dir, prompt: str) -> None:
    _command(project / ".claude" / "commands", "clear.md", "# Shadowed built-in\n")

    assert CommandExpander(project, user_commands_dir=user_dir).expand(prompt) is None
