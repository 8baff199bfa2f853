"""Bounded commit history reachable from HEAD."""

import logging
from itertools import islice
from pathlib import Path
from typing import Optional

from repodeck.cancel import CancelToken, check
from repodeck.errors import InvalidInputError
from repodeck.models import CommitInfo
from repodeck.vcs.protocol import VcsBackend, open_session

logger = logging.getLogger(__name__)


def validate_limit(limit: object) -> int:
    """
    Check that limit is a positive integer.

    Raises:
        InvalidInputError: If limit is not an int (bools excluded) or is < 1
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidInputError(
            f"History limit must be a positive integer, got {limit!r}", operation="history"
        )
    return limit


def read_history(
    path: Path,
    backend: VcsBackend,
    limit: int,
    token: Optional[CancelToken] = None,
) -> list[CommitInfo]:
    """
    Read up to limit commits reachable from HEAD, most recent first.

    The commit walk is lazy: it is stopped after limit entries, so large
    histories are never listed in full.

    Args:
        path: Repository root
        backend: VCS backend
        limit: Maximum number of commits (positive)
        token: Cancellation token checked before each commit

    Returns:
        List of at most limit CommitInfo, in walk order

    Raises:
        InvalidInputError: If limit is invalid or HEAD has no commits
        NotFoundError: If path is not a repository
        BackendError: If the walk or a commit read fails
    """
    limit = validate_limit(limit)
    path = Path(path)

    with open_session(backend, path) as handle:
        head = backend.head(handle)
        if head.tip is None:
            raise InvalidInputError("HEAD has no commits", operation="history", path=str(path))

        commits: list[CommitInfo] = []
        walk = backend.walk_commits(handle, head.tip)
        try:
            for ref in islice(walk, limit):
                check(token, "history", str(path))
                commits.append(backend.commit_metadata(handle, ref))
        finally:
            close = getattr(walk, "close", None)
            if close is not None:
                close()

    logger.debug(f"Read {len(commits)} commits from {path} (limit {limit})")
    return commits
