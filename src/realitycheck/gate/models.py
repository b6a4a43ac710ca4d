"""Decision types produced by the stop gate."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class DecisionKind(str, Enum):
    ALLOW = "allow"
    BLOCK = "block"


@dataclass(slots=True, frozen=True)
class StopDecision:
    """Either allow the agent to stop, or block it with a reason."""

    kind: DecisionKind
    reason: str | None = None

    @classmethod
    def allow(cls) -> StopDecision:
        return cls(kind=DecisionKind.ALLOW)

    @classmethod
    def block(cls, reason: str) -> StopDecision:
        return cls(kind=DecisionKind.BLOCK, reason=reason)

    @property
    def allowed(self) -> bool:
        return self.kind is DecisionKind.ALLOW

    def to_hook_output(self) -> dict[str, str]:
        """Hook response payload understood by the agent host."""

        if self.kind is DecisionKind.BLOCK:
            return {"decision": "block", "reason": self.reason or ""}
        return {"decision": "approve"}


class LastMessageSource(Protocol):
    def last_assistant_message(self) -> str | None:
        """Text of the agent's latest message, if any."""
