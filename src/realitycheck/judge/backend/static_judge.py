"""Deterministic in-process judge for tests and dry runs."""

from __future__ import annotations

from collections.abc import Callable

from realitycheck.judge.backend.base import JudgeContext
from realitycheck.judge.contracts import Verdict, fail_open_verdict
from realitycheck.judge.failure_classifier import JudgeFailure


class StaticJudge:
    """Return a fixed verdict (or one computed from the context) and record every call."""

    def __init__(self, verdict: Verdict | Callable[[JudgeContext], Verdict]) -> None:
        self._verdict = verdict
        self.calls: list[JudgeContext] = []

    @classmethod
    def failing(cls, failure: JudgeFailure) -> StaticJudge:
        """Judge that behaves like an unavailable oracle."""

        return cls(fail_open_verdict(failure))

    def evaluate(self, context: JudgeContext) -> Verdict:
        self.calls.append(context)
        if callable(self._verdict):
            return self._verdict(context)
        return self._verdict
