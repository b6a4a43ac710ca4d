"""Stop gate: limit enforcement, progress analysis and decision orchestration."""

from realitycheck.gate.limits import LimitCheckResult, LimitPolicy, check_limits
from realitycheck.gate.models import DecisionKind, StopDecision
from realitycheck.gate.orchestrator import GatePolicy, StopGate, StopRequest, format_block_reason
from realitycheck.gate.progress import (
    ProgressAnalysis,
    ProgressPolicy,
    ProgressTrend,
    analyze_progress,
)

__all__ = [
    "DecisionKind",
    "GatePolicy",
    "LimitCheckResult",
    "LimitPolicy",
    "ProgressAnalysis",
    "ProgressPolicy",
    "ProgressTrend",
    "StopDecision",
    "StopGate",
    "StopRequest",
    "analyze_progress",
    "check_limits",
    "format_block_reason",
]
