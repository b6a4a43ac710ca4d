"""Subprocess-based judge that shells out to the agent CLI in print mode."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path

from realitycheck.config import JudgeSettings
from realitycheck.judge.backend.base import JudgeContext
from realitycheck.judge.contracts import (
    Verdict,
    VerdictValidationError,
    fail_open_verdict,
    parse_verdict,
    verdict_schema_text,
)
from realitycheck.judge.failure_classifier import (
    JudgeFailure,
    JudgeFailureClass,
    classify_exit_failure,
)
from realitycheck.judge.output import JudgeOutputError, extract_verdict_payload
from realitycheck.judge.prompts import JUDGE_SYSTEM_PROMPT, build_judge_prompt

logger = logging.getLogger(__name__)


class JudgeRunError(RuntimeError):
    """Judge invocation error with a normalized failure class."""

    def __init__(
        self,
        message: str,
        *,
        failure_class: JudgeFailureClass,
        matched_pattern: str | None = None,
    ) -> None:
        super().__init__(message)
        self.failure_class = failure_class
        self.matched_pattern = matched_pattern

    def to_failure(self) -> JudgeFailure:
        return JudgeFailure(
            failure_class=self.failure_class,
            message=str(self),
            matched_pattern=self.matched_pattern,
        )


@dataclass(slots=True)
class JudgeRunResult:
    """Captured outcome of one judge process."""

    exit_code: int
    stdout: str
    stderr: str


class CliJudge:
    """Run the judge as an isolated, tool-less, single-turn CLI process."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        executable: str,
        model: str,
        timeout_seconds: int,
        project_dir: Path,
        max_output_tokens: int | None = None,
    ) -> None:
        self.executable = executable
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.project_dir = project_dir
        self.max_output_tokens = max_output_tokens

    @classmethod
    def from_settings(cls, settings: JudgeSettings, *, project_dir: Path) -> CliJudge:
        return cls(
            executable=settings.executable,
            model=settings.model_id,
            timeout_seconds=settings.timeout_seconds,
            project_dir=project_dir,
            max_output_tokens=settings.max_output_tokens,
        )

    def evaluate(self, context: JudgeContext) -> Verdict:
        """Ask the judge for a verdict; any failure yields an allowing verdict."""

        try:
            prompt = build_judge_prompt(
                context.directives,
                context.diff,
                context.last_message,
                context.stop_attempts,
                context.fingerprint,
            )
            result = self.run(prompt)
            return self._parse(result)
        except JudgeRunError as error:
            failure = error.to_failure()
        except Exception as error:  # noqa: BLE001
            logger.exception("Judge evaluation raised unexpectedly")
            failure = JudgeFailure(
                failure_class=JudgeFailureClass.SPAWN_FAILED,
                message=f"Unexpected error: {error}",
            )

        logger.warning(
            "Judge unavailable (%s): %s %s",
            failure.failure_class.value,
            failure.message,
            failure.to_log_details(),
        )
        return fail_open_verdict(failure)

    def run(self, prompt: str) -> JudgeRunResult:
        """Spawn the judge process and wait for it under the timeout."""

        run_args = self.build_run_args(prompt)
        env = os.environ.copy()
        if self.max_output_tokens is not None:
            env["CLAUDE_CODE_MAX_OUTPUT_TOKENS"] = str(self.max_output_tokens)

        try:
            process = subprocess.Popen(  # noqa: S603
                run_args,
                cwd=self.project_dir,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError as error:
            raise JudgeRunError(
                f"Failed to spawn judge process: command not found: {run_args[0]}",
                failure_class=JudgeFailureClass.SPAWN_FAILED,
            ) from error
        except OSError as error:
            raise JudgeRunError(
                f"Failed to spawn judge process: {error}",
                failure_class=JudgeFailureClass.SPAWN_FAILED,
            ) from error

        try:
            stdout, stderr = process.communicate(timeout=self.timeout_seconds)
        except subprocess.TimeoutExpired as error:
            _terminate_process(process)
            raise JudgeRunError(
                f"Judge process timed out after {self.timeout_seconds}s",
                failure_class=JudgeFailureClass.TIMEOUT,
            ) from error

        return JudgeRunResult(exit_code=process.returncode, stdout=stdout, stderr=stderr)

    def build_run_args(self, prompt: str) -> list[str]:
        head = shlex.split(self.executable)
        if not head:
            raise JudgeRunError(
                "Judge executable is empty.",
                failure_class=JudgeFailureClass.SPAWN_FAILED,
            )
        return [
            *head,
            "-p",
            "--tools",
            "",
            "--max-turns",
            "1",
            "--output-format",
            "json",
            "--json-schema",
            verdict_schema_text(),
            "--model",
            self.model,
            "--system-prompt",
            JUDGE_SYSTEM_PROMPT,
            "--setting-sources",
            "default",
            prompt,
        ]

    def _parse(self, result: JudgeRunResult) -> Verdict:
        if result.exit_code != 0:
            failure = classify_exit_failure(
                exit_code=result.exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
            )
            raise JudgeRunError(
                failure.message,
                failure_class=failure.failure_class,
                matched_pattern=failure.matched_pattern,
            )
        try:
            payload = extract_verdict_payload(result.stdout)
        except JudgeOutputError as error:
            raise JudgeRunError(
                str(error),
                failure_class=JudgeFailureClass.INVALID_JSON,
            ) from error
        try:
            return parse_verdict(payload)
        except VerdictValidationError as error:
            raise JudgeRunError(
                f"Invalid verdict format from judge: {error}",
                failure_class=JudgeFailureClass.INVALID_SCHEMA,
            ) from error


def _terminate_process(process: subprocess.Popen[str]) -> None:
    try:
        process.terminate()
    except OSError:
        return
    try:
        process.communicate(timeout=2)
    except subprocess.TimeoutExpired:
        try:
            process.kill()
        except OSError:
            return
        process.communicate(timeout=2)
