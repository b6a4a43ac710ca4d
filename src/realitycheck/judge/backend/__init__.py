"""Judge backend implementations."""

from realitycheck.judge.backend.base import Judge, JudgeContext
from realitycheck.judge.backend.cli_judge import CliJudge, JudgeRunError, JudgeRunResult
from realitycheck.judge.backend.static_judge import StaticJudge

__all__ = [
    "CliJudge",
    "Judge",
    "JudgeContext",
    "JudgeRunError",
    "JudgeRunResult",
    "StaticJudge",
]
