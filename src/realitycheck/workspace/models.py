"""Workspace change-state types consumed by the gate."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(slots=True, frozen=True)
class DiffFile:
    """One changed file with line counts."""

    path: str
    additions: int
    deletions: int
    status: str = "modified"


@dataclass(slots=True, frozen=True)
class DiffSummary:
    """Uncommitted change summary of the workspace."""

    files: tuple[DiffFile, ...]
    summary: str = ""
    patch: str | None = None

    @property
    def total_additions(self) -> int:
        return sum(item.additions for item in self.files)

    @property
    def total_deletions(self) -> int:
        return sum(item.deletions for item in self.files)


@dataclass(slots=True)
class WorkspaceStatus:
    """Version-control status snapshot."""

    is_repo: bool
    head_commit: str | None = None
    branch: str | None = None
    dirty_files: list[str] = field(default_factory=list)
    untracked_files: list[str] = field(default_factory=list)

    @property
    def is_dirty(self) -> bool:
        return bool(self.dirty_files or self.untracked_files)


class WorkspaceProbe(Protocol):
    """Source of workspace fingerprints and diffs."""

    def fingerprint(self) -> str:
        """Content hash of the current change-state."""

    def current_diff(self) -> DiffSummary | None:
        """Summary of uncommitted changes, or `None` when unavailable."""
