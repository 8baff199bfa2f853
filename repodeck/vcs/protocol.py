"""VCS abstraction layer for repository inspection."""

import subprocess
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Protocol

from repodeck.models import CommitInfo, StashInfo, StatusFlag


@dataclass
class RepoHandle:
    """
    An open backend session for one repository.

    Valid only for the duration of a single probe, history read or stash
    operation.
    """

    path: Path
    git_dir: Path
    processes: list[subprocess.Popen[str]] = field(default_factory=list, repr=False)


@dataclass(frozen=True)
class HeadInfo:
    """What HEAD points at."""

    branch_name: Optional[str]
    tip: Optional[str]
    detached: bool = False

    @property
    def unborn(self) -> bool:
        return self.tip is None


@dataclass(frozen=True)
class RawStatusEntry:
    """Backend-reported change flags for one path."""

    path: str
    flags: StatusFlag
    rename_origin: Optional[str] = None


@dataclass(frozen=True)
class UpstreamRef:
    """Resolved upstream of a local branch."""

    name: str
    tip: str


class VcsBackend(Protocol):
    """Version control backend protocol used by the probes and managers."""

    def open(self, path: Path) -> RepoHandle:
        """
        Open the repository rooted at path.

        Raises:
            NotFoundError: If path does not exist or is not a repository root
        """

    def close(self, handle: RepoHandle) -> None:
        """Release the session and anything it still holds."""

    def head(self, handle: RepoHandle) -> HeadInfo:
        """Read HEAD."""

    def status(self, handle: RepoHandle, include_untracked: bool = True) -> list[RawStatusEntry]:
        """Per-path change flags, in backend order."""

    def upstream_of(self, handle: RepoHandle, branch_name: str) -> Optional[UpstreamRef]:
        """Upstream of a local branch, or None if not configured or unresolvable."""

    def ahead_behind(self, handle: RepoHandle, local: str, upstream: str) -> tuple[int, int]:
        """Commits reachable only from local, and only from upstream."""

    def walk_commits(self, handle: RepoHandle, start: str) -> Iterator[str]:
        """Lazily yield commit ids reachable from start, most recent first."""

    def commit_metadata(self, handle: RepoHandle, ref: str) -> CommitInfo:
        """Read one commit."""

    def stash_list(self, handle: RepoHandle) -> list[StashInfo]:
        """Stash entries, index 0 most recent."""

    def stash_save(
        self, handle: RepoHandle, message: Optional[str], include_untracked: bool
    ) -> None:
        """Stash index and worktree changes."""

    def stash_apply(self, handle: RepoHandle, index: int) -> None:
        """Apply a stash entry, keeping it."""

    def stash_pop(self, handle: RepoHandle, index: int) -> None:
        """Apply a stash entry and drop it only if the apply succeeded."""

    def stash_drop(self, handle: RepoHandle, index: int) -> None:
        """Remove a stash entry without applying it."""


@contextmanager
def open_session(backend: VcsBackend, path: Path) -> Iterator[RepoHandle]:
    """
    Open a backend session that is released on every exit path.

    Args:
        backend: Backend to open the repository with
        path: Repository root

    Yields:
        RepoHandle for the repository
    """
    handle = backend.open(path)
    try:
        yield handle
    finally:
        backend.close(handle)
