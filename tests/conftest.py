"""Test fixtures and utilities."""

import subprocess
from pathlib import Path
from typing import Callable

import click.testing
import pytest

from repodeck.models import CommitInfo
from repodeck.vcs.protocol import HeadInfo, RepoHandle


def git(repo: Path, *args: str) -> str:
    """Run git in repo and return stripped stdout."""
    result = subprocess.run(
        ["git", *args], cwd=repo, check=True, capture_output=True, text=True
    )
    return result.stdout.strip()


def init_repo(path: Path) -> Path:
    """Create an empty repository on branch main with a test identity."""
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init")
    git(path, "symbolic-ref", "HEAD", "refs/heads/main")
    git(path, "config", "user.email", "test@example.com")
    git(path, "config", "user.name", "Test User")
    git(path, "config", "commit.gpgsign", "false")
    return path


def commit_file(repo: Path, name: str, content: str, message: str) -> str:
    """Write, stage and commit one file. Returns the commit id."""
    (repo / name).write_text(content)
    git(repo, "add", name)
    git(repo, "commit", "-m", message)
    return git(repo, "rev-parse", "HEAD")


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch):
    """Keep user config and REPODECK_* variables out of tests."""
    for name in (
        "REPODECK_MAX_WORKERS",
        "REPODECK_SCAN_POLICY",
        "REPODECK_HISTORY_LIMIT",
        "REPODECK_GIT",
        "REPODECK_GIT_TIMEOUT",
        "REPODECK_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("REPODECK_CONFIG", str(tmp_path / "no-such-config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")


@pytest.fixture
def make_repo() -> Callable[[Path], Path]:
    """Factory for empty repositories."""
    return init_repo


@pytest.fixture
def empty_repo(tmp_path: Path) -> Path:
    """Repository with no commits."""
    return init_repo(tmp_path / "empty")


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Repository with a single commit adding a.txt."""
    repo = init_repo(tmp_path / "repo")
    commit_file(repo, "a.txt", "hello\n", "Initial commit")
    return repo


@pytest.fixture
def tracked_repo(tmp_path: Path) -> tuple[Path, Path]:
    """
    A clone tracking origin/main.

    Returns:
        Tuple of (origin, clone)
    """
    origin = init_repo(tmp_path / "origin")
    commit_file(origin, "a.txt", "hello\n", "Initial commit")

    clone = tmp_path / "clone"
    subprocess.run(
        ["git", "clone", str(origin), str(clone)], check=True, capture_output=True
    )
    git(clone, "config", "user.email", "test@example.com")
    git(clone, "config", "user.name", "Test User")
    git(clone, "config", "commit.gpgsign", "false")
    return origin, clone


@pytest.fixture
def runner() -> click.testing.CliRunner:
    """Click CliRunner for testing CLI commands."""
    return click.testing.CliRunner()


class FakeBackend:
    """
    In-memory VcsBackend for exercising probes and managers without git.

    Attributes are set directly by tests; every opened and closed path is
    recorded.
    """

    def __init__(self, head=None, entries=None, upstream=None, counts=(0, 0)):
        self.head_info = head or HeadInfo(branch_name="main", tip="a" * 40)
        self.entries = entries or []
        self.upstream = upstream
        self.counts = counts
        self.commits: list[str] = []
        self.stashes = []
        self.opened: list[Path] = []
        self.closed: list[Path] = []
        self.consumed = 0
        self.walk_closed = False
        self.fail_on: dict[str, Exception] = {}

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise self.fail_on[operation]

    def open(self, path):
        self._maybe_fail("open")
        self.opened.append(Path(path))
        return RepoHandle(path=Path(path), git_dir=Path(path) / ".git")

    def close(self, handle):
        self.closed.append(handle.path)

    def head(self, handle):
        self._maybe_fail("head")
        return self.head_info

    def status(self, handle, include_untracked=True):
        self._maybe_fail("status")
        return list(self.entries)

    def upstream_of(self, handle, branch_name):
        self._maybe_fail("upstream_of")
        return self.upstream

    def ahead_behind(self, handle, local, upstream):
        self._maybe_fail("ahead_behind")
        return self.counts

    def walk_commits(self, handle, start):
        try:
            for commit_id in self.commits:
                self.consumed += 1
                yield commit_id
        finally:
            self.walk_closed = True

    def commit_metadata(self, handle, ref):
        self._maybe_fail("commit_metadata")
        return CommitInfo(id=ref, short_id=ref[:7], message=f"msg {ref}", author="A", timestamp=0)

    def stash_list(self, handle):
        return list(self.stashes)

    def stash_save(self, handle, message, include_untracked):
        self._maybe_fail("stash_save")

    def stash_apply(self, handle, index):
        self._maybe_fail("stash_apply")

    def stash_pop(self, handle, index):
        self._maybe_fail("stash_pop")

    def stash_drop(self, handle, index):
        self._maybe_fail("stash_drop")


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Fake backend on branch main with a clean tree."""
    return FakeBackend()
