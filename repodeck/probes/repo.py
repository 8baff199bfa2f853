"""Single-repository probes: snapshot, status and branch info."""

import logging
from pathlib import Path
from typing import Optional

from repodeck.cancel import CancelToken, check
from repodeck.classify import classify_entries
from repodeck.divergence import compute_divergence
from repodeck.models import BranchInfo, RepositoryInfo, RepoStatus
from repodeck.vcs.protocol import HeadInfo, VcsBackend, open_session

logger = logging.getLogger(__name__)

DETACHED_BRANCH = "HEAD"


def branch_label(head: HeadInfo) -> Optional[str]:
    """Shorthand of HEAD: branch name, "HEAD" when detached, None when unborn."""
    if head.unborn:
        return None
    return head.branch_name or DETACHED_BRANCH


def probe_repository(
    path: Path,
    backend: VcsBackend,
    token: Optional[CancelToken] = None,
) -> RepositoryInfo:
    """
    Build a dashboard snapshot of one repository.

    Args:
        path: Repository root
        backend: VCS backend (a fresh session is opened and released here)
        token: Cancellation token checked between backend calls

    Returns:
        RepositoryInfo

    Raises:
        NotFoundError: If path is not a repository
        BackendError: If the backend fails reading HEAD or status
        CancelledError: If the token was cancelled
    """
    path = Path(path)
    check(token, "probe", str(path))

    with open_session(backend, path) as handle:
        check(token, "probe", str(path))
        head = backend.head(handle)

        check(token, "probe", str(path))
        status = classify_entries(backend.status(handle, include_untracked=True))

        check(token, "probe", str(path))
        divergence = compute_divergence(backend, handle, head)

    info = RepositoryInfo(
        path=str(path),
        name=path.name or str(path),
        branch=branch_label(head),
        has_changes=status.has_changes(),
        staged_count=len(status.staged),
        unstaged_count=len(status.unstaged),
        untracked_count=len(status.untracked),
        conflicted_count=len(status.conflicted),
        ahead=divergence.ahead,
        behind=divergence.behind,
    )
    logger.debug(f"Probed {path}: branch={info.branch} changes={status.total_count()}")
    return info


def read_repo_status(path: Path, backend: VcsBackend) -> RepoStatus:
    """
    Read the classified working-tree/index status of one repository.

    Raises:
        NotFoundError: If path is not a repository
        BackendError: If git status fails
    """
    with open_session(backend, Path(path)) as handle:
        return classify_entries(backend.status(handle, include_untracked=True))


def read_branch_info(path: Path, backend: VcsBackend) -> BranchInfo:
    """
    Read the current branch, its upstream and divergence.

    Detached and unborn HEAD both report current="HEAD" with no upstream.

    Raises:
        NotFoundError: If path is not a repository
        BackendError: If HEAD cannot be read
    """
    with open_session(backend, Path(path)) as handle:
        head = backend.head(handle)
        divergence = compute_divergence(backend, handle, head)

    return BranchInfo(
        current=branch_label(head) or DETACHED_BRANCH,
        ahead=divergence.ahead,
        behind=divergence.behind,
        upstream=divergence.upstream,
    )
