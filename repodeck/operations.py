"""Caller-facing operations, one backend session per call."""

from pathlib import Path
from typing import Optional

from repodeck.cancel import CancelToken
from repodeck.config import Config, ScanPolicy, get_config
from repodeck.history import read_history
from repodeck.models import BranchInfo, CommitInfo, RepositoryInfo, RepoStatus, ScanReport, StashInfo
from repodeck.probes.repo import read_branch_info, read_repo_status
from repodeck.scanner import RepositoryScanner
from repodeck.stash import StashManager
from repodeck.vcs.git import GitBackend
from repodeck.vcs.protocol import VcsBackend


def make_backend(config: Optional[Config] = None) -> VcsBackend:
    """Build the git backend described by config."""
    config = config or get_config()
    return GitBackend(git_binary=config.git_binary, timeout=config.git_timeout)


def scan_report(
    root_path: str,
    config: Optional[Config] = None,
    token: Optional[CancelToken] = None,
    policy: Optional[ScanPolicy] = None,
    backend: Optional[VcsBackend] = None,
) -> ScanReport:
    """
    Scan root_path and return repositories plus any isolated failures.

    Args:
        root_path: Directory to scan
        config: Configuration (loaded when None)
        token: Cancellation token
        policy: Overrides config.scan_policy
        backend: Overrides the configured git backend
    """
    config = config or get_config()
    scanner = RepositoryScanner(
        backend or make_backend(config),
        max_workers=config.max_workers,
        policy=policy or config.scan_policy,
    )
    return scanner.scan(Path(root_path), token)


def scan_repositories(
    root_path: str,
    config: Optional[Config] = None,
    token: Optional[CancelToken] = None,
    policy: Optional[ScanPolicy] = None,
    backend: Optional[VcsBackend] = None,
) -> list[RepositoryInfo]:
    """Scan root_path and return repositories sorted by name."""
    return scan_report(root_path, config, token, policy, backend).repositories


def get_repo_status(path: str, backend: Optional[VcsBackend] = None) -> RepoStatus:
    return read_repo_status(Path(path), backend or make_backend())


def get_branch_info(path: str, backend: Optional[VcsBackend] = None) -> BranchInfo:
    return read_branch_info(Path(path), backend or make_backend())


def get_commit_history(
    path: str,
    limit: int,
    backend: Optional[VcsBackend] = None,
    token: Optional[CancelToken] = None,
) -> list[CommitInfo]:
    return read_history(Path(path), backend or make_backend(), limit, token)


def get_stash_list(path: str, backend: Optional[VcsBackend] = None) -> list[StashInfo]:
    return StashManager(backend or make_backend()).list(Path(path))


def stash_save(
    path: str,
    message: Optional[str] = None,
    include_untracked: bool = False,
    backend: Optional[VcsBackend] = None,
) -> None:
    StashManager(backend or make_backend()).save(Path(path), message, include_untracked)


def stash_apply(path: str, index: int, backend: Optional[VcsBackend] = None) -> None:
    StashManager(backend or make_backend()).apply(Path(path), index)


def stash_pop(path: str, index: int, backend: Optional[VcsBackend] = None) -> None:
    StashManager(backend or make_backend()).pop(Path(path), index)


def stash_drop(path: str, index: int, backend: Optional[VcsBackend] = None) -> None:
    StashManager(backend or make_backend()).drop(Path(path), index)
