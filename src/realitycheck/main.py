"""CLI entrypoint for realitycheck."""

import json
import logging
import sys
from pathlib import Path

import rich_click as click

from realitycheck import __version__
from realitycheck.config import LOG_LEVELS
from realitycheck.controllers import (
    HOOK_EVENTS,
    HookCliController,
    HookCommand,
    JudgeCliController,
    JudgeSmokeCommand,
    LedgerCliController,
    LedgerResetCommand,
    LedgerShowCommand,
)

click.rich_click.USE_MARKDOWN = True
HOOK_CONTROLLER = HookCliController()
LEDGER_CONTROLLER = LedgerCliController()
JUDGE_CONTROLLER = JudgeCliController()

_PROJECT_DIR_OPTION = click.option(
    "--project-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=Path(),
    show_default=True,
    help="Project root holding the realitycheck config and ledger.",
)


@click.group()
@click.version_option(version=__version__, prog_name="realitycheck")
@click.option(
    "--log-level",
    type=click.Choice(tuple(LOG_LEVELS), case_sensitive=False),
    envvar="REALITYCHECK_LOG_LEVEL",
    default=None,
    help="Diagnostics verbosity; defaults to debug.logLevel from the config. Logs go to stderr.",
)
def realitycheck(log_level: str | None) -> None:
    """Completion quality gate for agent sessions."""

    _configure_logging(log_level)


@realitycheck.command("hook")
@click.argument("event", type=click.Choice(HOOK_EVENTS))
def hook(event: str) -> None:
    """Handle one agent host hook event: JSON on stdin, JSON response on stdout."""

    output = HOOK_CONTROLLER.run(HookCommand(event=event, payload_text=sys.stdin.read()))
    if output is not None:
        click.echo(json.dumps(output, ensure_ascii=False))


@realitycheck.group()
def ledger() -> None:
    """Task ledger commands."""


@ledger.command("show")
@_PROJECT_DIR_OPTION
@click.option(
    "--recent-attempts",
    type=click.IntRange(min=1, max=100),
    default=5,
    show_default=True,
    help="How many latest stop attempts to display.",
)
def ledger_show(project_dir: Path, recent_attempts: int) -> None:
    """Show directives and recent stop attempts."""

    _emit_lines(
        LEDGER_CONTROLLER.show(
            LedgerShowCommand(project_dir=project_dir, recent_attempts=recent_attempts),
        ),
    )


@ledger.command("reset")
@_PROJECT_DIR_OPTION
def ledger_reset(project_dir: Path) -> None:
    """Start a fresh ledger session, dropping all recorded state."""

    _emit_lines(LEDGER_CONTROLLER.reset(LedgerResetCommand(project_dir=project_dir)))


@realitycheck.command("judge-smoke")
@_PROJECT_DIR_OPTION
@click.option(
    "--executable",
    default=None,
    help="Judge command line to run instead of the configured one.",
)
@click.option(
    "--timeout-seconds",
    type=click.IntRange(min=5, max=120),
    default=None,
    help="Override the configured judge timeout.",
)
def judge_smoke(project_dir: Path, executable: str | None, timeout_seconds: int | None) -> None:
    """Run the judge once against a synthetic directive."""

    result = JUDGE_CONTROLLER.smoke(
        JudgeSmokeCommand(
            project_dir=project_dir,
            executable=executable,
            timeout_seconds=timeout_seconds,
        ),
    )
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Judge smoke check failed.")


def _configure_logging(level_name: str | None) -> None:
    # stdout carries the hook response
    logging.basicConfig(
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if level_name is not None:
        logging.getLogger("realitycheck").setLevel(LOG_LEVELS[level_name.lower()])


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    realitycheck()
