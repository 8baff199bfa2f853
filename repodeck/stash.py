"""Stash lifecycle: list, save, apply, pop, drop."""

import logging
from pathlib import Path
from typing import Optional

from repodeck.errors import InvalidInputError, NotFoundError, RepodeckError
from repodeck.models import StashInfo
from repodeck.vcs.protocol import RepoHandle, VcsBackend, open_session

logger = logging.getLogger(__name__)


class StashManager:
    """
    Stash operations on one repository at a time.

    Each call opens and releases its own backend session. Stash indices are
    positions in the current list and are invalid after save/apply/pop/drop;
    callers must list again before reusing one.
    """

    def __init__(self, backend: VcsBackend):
        self.backend = backend

    def _resolve(self, handle: RepoHandle, index: int, operation: str) -> StashInfo:
        """Validate index against the current stash list."""
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise InvalidInputError(
                f"Stash index must be a non-negative integer, got {index!r}",
                operation=operation,
                path=str(handle.path),
            )
        stashes = self.backend.stash_list(handle)
        if index >= len(stashes):
            raise NotFoundError(
                f"No stash entry at index {index} ({len(stashes)} entries)",
                operation=operation,
                path=str(handle.path),
            )
        return stashes[index]

    def list(self, path: Path) -> list[StashInfo]:
        """
        List stash entries, index 0 being the most recent.

        Raises:
            NotFoundError: If path is not a repository
            BackendError: If the stash cannot be read
        """
        with open_session(self.backend, Path(path)) as handle:
            stashes = self.backend.stash_list(handle)
        logger.debug(f"{path}: {len(stashes)} stash entries")
        return stashes

    def save(
        self,
        path: Path,
        message: Optional[str] = None,
        include_untracked: bool = False,
    ) -> None:
        """
        Stash the index and worktree changes, reverting to HEAD.

        Args:
            path: Repository root
            message: Stash message (backend default when None or empty)
            include_untracked: Also stash and remove untracked files

        Raises:
            NothingToStashError: If there are no local changes
            BackendError: If the backend refuses (e.g. no commits yet)
        """
        with open_session(self.backend, Path(path)) as handle:
            self.backend.stash_save(handle, message or None, include_untracked)
        logger.debug(f"{path}: stash saved (include_untracked={include_untracked})")

    def apply(self, path: Path, index: int) -> None:
        """
        Apply a stash entry and keep it.

        Raises:
            InvalidInputError: If index is negative or not an int
            NotFoundError: If no entry exists at index
            StashConflictError: If the changes conflict with the working tree
        """
        with open_session(self.backend, Path(path)) as handle:
            entry = self._resolve(handle, index, "stash_apply")
            self.backend.stash_apply(handle, index)
        logger.debug(f"{path}: applied stash {entry.id}")

    def pop(self, path: Path, index: int) -> None:
        """
        Apply a stash entry, then drop it.

        If the apply fails the entry is kept. The list is re-read after a
        failure to confirm that; nothing is retried.

        Raises:
            InvalidInputError: If index is negative or not an int
            NotFoundError: If no entry exists at index
            StashConflictError: If the changes conflict with the working tree
        """
        with open_session(self.backend, Path(path)) as handle:
            entry = self._resolve(handle, index, "stash_pop")
            try:
                self.backend.stash_pop(handle, index)
            except RepodeckError as e:
                try:
                    remaining = {stash.id for stash in self.backend.stash_list(handle)}
                except RepodeckError as list_error:
                    logger.debug(f"{path}: could not re-list stashes after pop: {list_error}")
                    raise e
                if entry.id in remaining:
                    logger.debug(f"{path}: pop failed, stash {entry.id} kept")
                else:
                    logger.error(f"{path}: pop failed and stash {entry.id} is gone")
                    e.message += f" (stash {entry.id} was dropped)"
                raise
        logger.debug(f"{path}: popped stash {entry.id}")

    def drop(self, path: Path, index: int) -> None:
        """
        Remove a stash entry without applying it.

        Raises:
            InvalidInputError: If index is negative or not an int
            NotFoundError: If no entry exists at index
        """
        with open_session(self.backend, Path(path)) as handle:
            entry = self._resolve(handle, index, "stash_drop")
            self.backend.stash_drop(handle, index)
        logger.debug(f"{path}: dropped stash {entry.id}")
