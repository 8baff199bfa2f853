"""VCS abstraction layer."""

from repodeck.vcs.git import GitBackend
from repodeck.vcs.protocol import (
    HeadInfo,
    RawStatusEntry,
    RepoHandle,
    UpstreamRef,
    VcsBackend,
    open_session,
)

__all__ = [
    "VcsBackend",
    "RepoHandle",
    "HeadInfo",
    "RawStatusEntry",
    "UpstreamRef",
    "open_session",
    "GitBackend",
]
