"""Status classification into dashboard categories (pure, no I/O)."""

from typing import Iterable

from repodeck.models import RepoStatus, StatusCategory, StatusFlag, StatusItem
from repodeck.vcs.protocol import RawStatusEntry

STAGED_FLAGS = (
    StatusFlag.INDEX_NEW
    | StatusFlag.INDEX_MODIFIED
    | StatusFlag.INDEX_DELETED
    | StatusFlag.INDEX_RENAMED
    | StatusFlag.INDEX_TYPECHANGE
)

# WT_NEW is untracked, not unstaged
UNSTAGED_FLAGS = (
    StatusFlag.WT_MODIFIED
    | StatusFlag.WT_DELETED
    | StatusFlag.WT_RENAMED
    | StatusFlag.WT_TYPECHANGE
)


def categories_for(flags: StatusFlag) -> frozenset[StatusCategory]:
    """
    Categories a path with the given flags belongs to.

    A path may be in several categories, e.g. staged and unstaged when only
    part of its changes are in the index.

    Args:
        flags: Backend change flags

    Returns:
        Set of categories (empty for an unchanged path)
    """
    categories = set()
    if flags & STAGED_FLAGS:
        categories.add(StatusCategory.STAGED)
    if flags & UNSTAGED_FLAGS:
        categories.add(StatusCategory.UNSTAGED)
    if flags & StatusFlag.WT_NEW:
        categories.add(StatusCategory.UNTRACKED)
    if flags & StatusFlag.CONFLICTED:
        categories.add(StatusCategory.CONFLICTED)
    return frozenset(categories)


def classify_entries(entries: Iterable[RawStatusEntry]) -> RepoStatus:
    """
    Split backend status entries into staged/unstaged/untracked/conflicted.

    Input order is preserved within each list.

    Args:
        entries: Raw per-path status from the backend

    Returns:
        RepoStatus with one StatusItem per membership
    """
    status = RepoStatus()
    buckets = {
        StatusCategory.STAGED: status.staged,
        StatusCategory.UNSTAGED: status.unstaged,
        StatusCategory.UNTRACKED: status.untracked,
        StatusCategory.CONFLICTED: status.conflicted,
    }

    for entry in entries:
        categories = categories_for(entry.flags)
        if not categories:
            continue
        item = StatusItem(
            path=entry.path,
            flags=entry.flags,
            categories=categories,
            old_path=entry.rename_origin,
        )
        for category, bucket in buckets.items():
            if category in categories:
                bucket.append(item)

    return status
