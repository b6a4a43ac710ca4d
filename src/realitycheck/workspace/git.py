"""Git-backed workspace probe: status, fingerprint and diff summary."""

from __future__ import annotations

import hashlib
import logging
import subprocess
from pathlib import Path

from realitycheck.workspace.models import DiffFile, DiffSummary, WorkspaceStatus

logger = logging.getLogger(__name__)

FINGERPRINT_LENGTH = 16
MAX_PATCH_CHARS = 50_000
GIT_TIMEOUT_SECONDS = 15
_NON_GIT_MARKER_FILES: tuple[str, ...] = (
    "pyproject.toml",
    "setup.cfg",
    "package.json",
    "tsconfig.json",
)


class GitCommandError(RuntimeError):
    """A git invocation failed or is unavailable."""


class GitWorkspace:
    """Reads workspace change-state through the git CLI."""

    def __init__(self, project_dir: Path) -> None:
        self.project_dir = project_dir

    def is_repo(self) -> bool:
        try:
            self._git("rev-parse", "--git-dir")
        except GitCommandError:
            return False
        return True

    def status(self) -> WorkspaceStatus:
        if not self.is_repo():
            return WorkspaceStatus(is_repo=False)
        try:
            head_commit = self._git("rev-parse", "HEAD").strip()
            branch = self._git("rev-parse", "--abbrev-ref", "HEAD").strip()
            porcelain = self._git("status", "--porcelain")
        except GitCommandError as error:
            logger.debug("git status failed: %s", error)
            return WorkspaceStatus(is_repo=True)

        status = WorkspaceStatus(is_repo=True, head_commit=head_commit, branch=branch)
        for line in porcelain.splitlines():
            if not line.strip():
                continue
            code, path = line[:2], line[3:]
            if code == "??":
                status.untracked_files.append(path)
            else:
                status.dirty_files.append(path)
        return status

    def fingerprint(self) -> str:
        """Short sha256 over the working-tree diff and porcelain status."""

        try:
            diff = self._git("diff", "HEAD")
            porcelain = self._git("status", "--porcelain")
        except GitCommandError:
            return self._non_git_fingerprint()
        combined = f"{diff}\n---STATUS---\n{porcelain}"
        return _short_hash(combined)

    def _non_git_fingerprint(self) -> str:
        mtimes: list[str] = []
        for name in _NON_GIT_MARKER_FILES:
            path = self.project_dir / name
            if path.is_file():
                mtimes.append(f"{name}:{path.stat().st_mtime_ns}")
        return _short_hash(",".join(mtimes))

    def current_diff(self) -> DiffSummary | None:
        """Uncommitted changes against HEAD, or `None` outside a usable repo."""

        if not self.is_repo():
            return None
        try:
            stat = self._git("diff", "--stat", "HEAD")
            numstat = self._git("diff", "--numstat", "HEAD")
            patch = self._git("diff", "HEAD")
        except GitCommandError as error:
            logger.debug("git diff failed: %s", error)
            return None

        if len(patch) > MAX_PATCH_CHARS:
            patch = patch[:MAX_PATCH_CHARS] + "\n... (diff truncated)"
        return DiffSummary(
            files=tuple(_parse_numstat(numstat)),
            summary=stat,
            patch=patch or None,
        )

    def _git(self, *args: str) -> str:
        try:
            completed = subprocess.run(  # noqa: S603
                ["git", *args],  # noqa: S607
                cwd=self.project_dir,
                check=False,
                capture_output=True,
                text=True,
                timeout=GIT_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.TimeoutExpired) as error:
            raise GitCommandError(f"git {' '.join(args)} failed: {error}") from error
        if completed.returncode != 0:
            raise GitCommandError(
                f"git {' '.join(args)} exited with {completed.returncode}: "
                f"{completed.stderr.strip()}",
            )
        return completed.stdout


def _parse_numstat(numstat: str) -> list[DiffFile]:
    files: list[DiffFile] = []
    for line in numstat.splitlines():
        parts = line.split("\t")
        if len(parts) < 3:
            continue
        additions, deletions, path = parts[0], parts[1], parts[2]
        # binary files report "-" counts
        files.append(
            DiffFile(
                path=path,
                additions=int(additions) if additions.isdigit() else 0,
                deletions=int(deletions) if deletions.isdigit() else 0,
            ),
        )
    return files


def _short_hash(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
