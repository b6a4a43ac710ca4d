from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import allure
import pytest

from realitycheck.workspace.git import FINGERPRINT_LENGTH, GitWorkspace

pytestmark = [
    allure.epic("Workspace Collaborators"),
    allure.feature("Git Probe"),
    pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed"),
]


def _git(repo: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True)  # noqa: S603, S607


@pytest.fixture()
def repo(tmp_path) -> Path:
    _git(tmp_path, "init", "-q", "-b", "main")
    _git(tmp_path, "config", "user.email", "dev@example.com")
    _git(tmp_path, "config", "user.name", "Dev")
    (tmp_path / "app.py").write_text("print('hello')\n", "utf-8")
    _git(tmp_path, "add", "app.py")
    _git(tmp_path, "commit", "-q", "-m", "initial")
    return tmp_path


def test_status_reports_branch_commit_and_changes(repo) -> None:
    (repo / "app.py").write_text("print('changed')\n", "utf-8")
    (repo / "new.txt").write_text("new\n", "utf-8")

    status = GitWorkspace(repo).status()

    assert status.is_repo
    assert status.branch == "main"
    assert status.head_commit is not None
    assert len(status.head_commit) == 40
    assert status.dirty_files == ["app.py"]
    assert status.untracked_files == ["new.txt"]
    assert status.is_dirty


def test_fingerprint_changes_with_working_tree(repo) -> None:
    workspace = GitWorkspace(repo)
    clean = workspace.fingerprint()

    assert len(clean) == FINGERPRINT_LENGTH
    assert workspace.fingerprint() == clean

    (repo / "app.py").write_text("print('changed')\n", "utf-8")

    assert workspace.fingerprint() != clean


def test_current_diff_summarizes_uncommitted_changes(repo) -> None:
    (repo / "app.py").write_text("print('changed')\nprint('more')\n", "utf-8")

    diff = GitWorkspace(repo).current_diff()

    assert diff is not None
    assert [(item.path, item.additions, item.deletions) for item in diff.files] == [
        ("app.py", 2, 1),
    ]
    assert diff.total_additions == 2
    assert "1 file changed" in diff.summary
    assert diff.patch is not None
    assert "+print('more')" in diff.patch


def test_outside_repository(tmp_path) -> None:
    workspace = GitWorkspace(tmp_path)

    assert not workspace.is_repo()
    assert not workspace.status().is_repo
    assert workspace.current_diff() is None
    assert len(workspace.fingerprint()) == FINGERPRINT_LENGTH
