"""Workspace collaborators: change-state probe, transcript reader, slash commands."""

from realitycheck.workspace.commands import CommandExpander, ExpandedCommand
from realitycheck.workspace.git import GitWorkspace
from realitycheck.workspace.models import DiffFile, DiffSummary, WorkspaceProbe, WorkspaceStatus
from realitycheck.workspace.transcript import TranscriptFile, last_assistant_message

__all__ = [
    "CommandExpander",
    "DiffFile",
    "DiffSummary",
    "ExpandedCommand",
    "GitWorkspace",
    "TranscriptFile",
    "WorkspaceProbe",
    "WorkspaceStatus",
    "last_assistant_message",
]
