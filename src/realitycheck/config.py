"""Runtime configuration for the stop gate."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_LOCATIONS: tuple[str, ...] = (
    ".claude/realitycheck.config.json",
    "realitycheck.config.json",
)
JUDGE_MODELS: dict[str, str] = {
    "opus": "claude-opus-4-5-20250514",
    "sonnet": "claude-sonnet-4-20250514",
    "haiku": "claude-haiku-3-5-20241022",
}
LOG_LEVELS: dict[str, int] = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


@dataclass(slots=True)
class JudgeSettings:
    """External judge process settings."""

    model: str = "opus"
    timeout_seconds: int = 30
    max_output_tokens: int = 4096
    executable: str = "claude"

    @property
    def model_id(self) -> str:
        """Concrete model id; unknown aliases are passed through verbatim."""

        return JUDGE_MODELS.get(self.model, self.model)


@dataclass(slots=True)
class LimitSettings:
    """Retry budgets and loop detection thresholds."""

    max_consecutive_failures: int = 20
    max_total_attempts: int = 50
    no_progress_threshold: int = 5


@dataclass(slots=True)
class StorageSettings:
    """Where the ledger lives."""

    directory: Path = Path(".claude/realitycheck")
    ledger_filename: str = "task_ledger.json"
    archive_corrupted: bool = True


@dataclass(slots=True)
class GitSettings:
    """Baseline and diff collection."""

    enabled: bool = True
    capture_baseline: bool = True
    include_diff: bool = True


@dataclass(slots=True)
class PerformanceSettings:
    fingerprint_on_tool_use: bool = False


@dataclass(slots=True)
class DebugSettings:
    log_level: str = "info"


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    judge: JudgeSettings = field(default_factory=JudgeSettings)
    limits: LimitSettings = field(default_factory=LimitSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    git: GitSettings = field(default_factory=GitSettings)
    performance: PerformanceSettings = field(default_factory=PerformanceSettings)
    debug: DebugSettings = field(default_factory=DebugSettings)

    @classmethod
    def load(cls, project_dir: Path) -> Settings:
        """Load the project config file (if any), then apply environment overrides.

        A config file that cannot be read or fails validation is reported and
        ignored; the gate then runs on defaults.
        """

        settings = cls()
        for location in CONFIG_LOCATIONS:
            config_path = project_dir / location
            if not config_path.exists():
                continue
            try:
                candidate = cls.from_mapping(json.loads(config_path.read_text("utf-8")))
                candidate.validate()
            except (OSError, ValueError, TypeError) as error:
                logger.warning("Failed to load config from %s: %s", config_path, error)
                continue
            settings = candidate
            break

        settings.apply_env()
        settings.validate()
        return settings

    @classmethod
    def from_mapping(cls, raw: object) -> Settings:
        """Build settings from a parsed config document with camelCase or snake_case keys."""

        if not isinstance(raw, dict):
            raise TypeError("config must be a JSON object")
        judge = _section(raw, "judge")
        limits = _section(raw, "limits")
        storage = _section(raw, "storage")
        git = _section(raw, "git")
        performance = _section(raw, "performance")
        debug = _section(raw, "debug")
        defaults = cls()
        return cls(
            judge=JudgeSettings(
                model=_get(judge, "model", str, defaults.judge.model),
                timeout_seconds=_get(
                    judge,
                    "timeout_seconds",
                    int,
                    defaults.judge.timeout_seconds,
                ),
                max_output_tokens=_get(
                    judge,
                    "max_output_tokens",
                    int,
                    defaults.judge.max_output_tokens,
                ),
                executable=_get(judge, "executable", str, defaults.judge.executable),
            ),
            limits=LimitSettings(
                max_consecutive_failures=_get(
                    limits,
                    "max_consecutive_failures",
                    int,
                    defaults.limits.max_consecutive_failures,
                ),
                max_total_attempts=_get(
                    limits,
                    "max_total_attempts",
                    int,
                    defaults.limits.max_total_attempts,
                ),
                no_progress_threshold=_get(
                    limits,
                    "no_progress_threshold",
                    int,
                    defaults.limits.no_progress_threshold,
                ),
            ),
            storage=StorageSettings(
                directory=Path(
                    _get(storage, "directory", str, str(defaults.storage.directory)),
                ),
                ledger_filename=_get(
                    storage,
                    "ledger_filename",
                    str,
                    defaults.storage.ledger_filename,
                ),
                archive_corrupted=_get(
                    storage,
                    "archive_corrupted",
                    bool,
                    defaults.storage.archive_corrupted,
                ),
            ),
            git=GitSettings(
                enabled=_get(git, "enabled", bool, defaults.git.enabled),
                capture_baseline=_get(
                    git,
                    "capture_baseline",
                    bool,
                    defaults.git.capture_baseline,
                ),
                include_diff=_get(git, "include_diff", bool, defaults.git.include_diff),
            ),
            performance=PerformanceSettings(
                fingerprint_on_tool_use=_get(
                    performance,
                    "fingerprint_on_tool_use",
                    bool,
                    defaults.performance.fingerprint_on_tool_use,
                ),
            ),
            debug=DebugSettings(
                log_level=_get(debug, "log_level", str, defaults.debug.log_level),
            ),
        )

    def apply_env(self) -> None:
        """Override values from `REALITYCHECK_*` environment variables."""

        self.judge.model = os.getenv("REALITYCHECK_JUDGE_MODEL", self.judge.model)
        self.judge.timeout_seconds = int(
            os.getenv("REALITYCHECK_JUDGE_TIMEOUT_SECONDS", str(self.judge.timeout_seconds)),
        )
        self.judge.executable = (
            os.getenv("REALITYCHECK_CLAUDE_EXECUTABLE", "").strip() or self.judge.executable
        )
        self.limits.max_consecutive_failures = int(
            os.getenv(
                "REALITYCHECK_MAX_CONSECUTIVE_FAILURES",
                str(self.limits.max_consecutive_failures),
            ),
        )
        self.limits.max_total_attempts = int(
            os.getenv("REALITYCHECK_MAX_TOTAL_ATTEMPTS", str(self.limits.max_total_attempts)),
        )
        self.limits.no_progress_threshold = int(
            os.getenv(
                "REALITYCHECK_NO_PROGRESS_THRESHOLD",
                str(self.limits.no_progress_threshold),
            ),
        )
        storage_dir = os.getenv("REALITYCHECK_STORAGE_DIR", "").strip()
        if storage_dir:
            self.storage.directory = Path(storage_dir)
        self.git.include_diff = _env_bool("REALITYCHECK_INCLUDE_DIFF", self.git.include_diff)
        log_level = os.getenv("REALITYCHECK_LOG_LEVEL", self.debug.log_level)
        self.debug.log_level = log_level.strip().lower()

    def validate(self) -> None:
        """Raise configuration error if any value is out of range."""

        _check_range("judge.timeout_seconds", self.judge.timeout_seconds, 5, 120)
        _check_range("judge.max_output_tokens", self.judge.max_output_tokens, 1000, 16000)
        if not self.judge.executable.strip():
            raise ValueError("judge.executable must not be empty.")
        if not self.judge.model.strip():
            raise ValueError("judge.model must not be empty.")
        _check_range(
            "limits.max_consecutive_failures",
            self.limits.max_consecutive_failures,
            1,
            100,
        )
        _check_range("limits.max_total_attempts", self.limits.max_total_attempts, 1, 200)
        _check_range("limits.no_progress_threshold", self.limits.no_progress_threshold, 1, 50)
        if not self.storage.ledger_filename.strip():
            raise ValueError("storage.ledger_filename must not be empty.")
        if self.debug.log_level not in LOG_LEVELS:
            raise ValueError(
                f"debug.log_level must be one of {sorted(LOG_LEVELS)}, "
                f"got {self.debug.log_level!r}",
            )

    def storage_path(self, project_dir: Path) -> Path:
        return project_dir / self.storage.directory

    def ledger_path(self, project_dir: Path) -> Path:
        return self.storage_path(project_dir) / self.storage.ledger_filename


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if not isinstance(value, dict):
        raise TypeError(f"config.{name} must be an object")
    return value


def _get(section: dict[str, Any], key: str, expected: type, default: Any) -> Any:
    camel = _camel_case(key)
    value = section.get(key, section.get(camel, default))
    # bool is an int subclass; keep "true" out of integer fields
    if isinstance(value, bool) and expected is not bool:
        raise TypeError(f"config value {key!r} must be {expected.__name__}")
    if not isinstance(value, expected):
        raise TypeError(f"config value {key!r} must be {expected.__name__}")
    return value


def _camel_case(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}.")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
