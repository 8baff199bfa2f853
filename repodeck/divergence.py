"""Ahead/behind computation against a branch's upstream."""

import logging
from dataclasses import dataclass
from typing import Optional

from repodeck.errors import BackendError
from repodeck.vcs.protocol import HeadInfo, RepoHandle, UpstreamRef, VcsBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Divergence:
    """Commit counts relative to upstream."""

    ahead: int = 0
    behind: int = 0
    upstream: Optional[str] = None


NO_DIVERGENCE = Divergence()


def resolve_upstream(
    backend: VcsBackend, handle: RepoHandle, head: HeadInfo
) -> Optional[UpstreamRef]:
    """
    Resolve the upstream of the checked-out branch.

    Returns None for detached or unborn HEAD, missing upstream config, or
    an upstream that does not resolve.
    """
    if head.unborn or head.detached or not head.branch_name:
        return None
    try:
        return backend.upstream_of(handle, head.branch_name)
    except BackendError as e:
        logger.debug(f"Upstream lookup failed for {handle.path}: {e}")
        return None


def compute_divergence(backend: VcsBackend, handle: RepoHandle, head: HeadInfo) -> Divergence:
    """
    Count commits only on the local branch (ahead) and only on upstream (behind).

    Divergence is best-effort metadata: every failure yields (0, 0).

    Args:
        backend: VCS backend
        handle: Open repository session
        head: Current HEAD

    Returns:
        Divergence with counts and the upstream name when one is configured
    """
    upstream = resolve_upstream(backend, handle, head)
    if upstream is None or head.tip is None:
        return NO_DIVERGENCE

    try:
        ahead, behind = backend.ahead_behind(handle, head.tip, upstream.tip)
    except BackendError as e:
        logger.debug(f"Ahead/behind failed for {handle.path}: {e}")
        return Divergence(upstream=upstream.name)

    logger.debug(f"{handle.path}: {ahead} ahead, {behind} behind {upstream.name}")
    return Divergence(ahead=ahead, behind=behind, upstream=upstream.name)
