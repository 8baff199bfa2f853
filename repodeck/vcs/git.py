"""Git backend implementation driving the git command line."""

import logging
import subprocess
from pathlib import Path
from typing import Iterator, Optional

from repodeck.errors import (
    BackendError,
    NothingToStashError,
    NotFoundError,
    StashConflictError,
)
from repodeck.models import CommitInfo, StashInfo, StatusFlag
from repodeck.probes.tools import (
    SubprocessError,
    run_command,
    run_command_output_cwd,
    stream_command_lines,
)
from repodeck.vcs.protocol import HeadInfo, RawStatusEntry, RepoHandle, UpstreamRef

logger = logging.getLogger(__name__)

SHORT_ID_LENGTH = 7

INDEX_FLAGS = {
    "A": StatusFlag.INDEX_NEW,
    "C": StatusFlag.INDEX_NEW,
    "M": StatusFlag.INDEX_MODIFIED,
    "D": StatusFlag.INDEX_DELETED,
    "R": StatusFlag.INDEX_RENAMED,
    "T": StatusFlag.INDEX_TYPECHANGE,
}

WORKTREE_FLAGS = {
    "A": StatusFlag.WT_NEW,  # intent-to-add
    "M": StatusFlag.WT_MODIFIED,
    "D": StatusFlag.WT_DELETED,
    "R": StatusFlag.WT_RENAMED,
    "T": StatusFlag.WT_TYPECHANGE,
}

CONFLICT_MARKERS = (
    "CONFLICT",
    "would be overwritten",
    "already exists, no checkout",
    "could not restore untracked files",
)


def xy_to_flags(xy: str) -> StatusFlag:
    """
    Convert a porcelain v2 XY code into status flags.

    Args:
        xy: Two-character code, index state then worktree state ("." = unchanged)

    Returns:
        Combined StatusFlag
    """
    flags = StatusFlag.NONE
    if len(xy) != 2:
        return flags
    flags |= INDEX_FLAGS.get(xy[0], StatusFlag.NONE)
    flags |= WORKTREE_FLAGS.get(xy[1], StatusFlag.NONE)
    return flags


def parse_porcelain_v2(output: str) -> list[RawStatusEntry]:
    """
    Parse `git status --porcelain=v2 -z` output.

    Args:
        output: NUL-separated status records

    Returns:
        Status entries in the order git reported them
    """
    entries: list[RawStatusEntry] = []
    tokens = output.split("\0")
    i = 0
    while i < len(tokens):
        record = tokens[i]
        i += 1
        if not record:
            continue

        kind = record[0]
        if kind == "1":
            # 1 XY sub mH mI mW hH hI path
            parts = record.split(" ", 8)
            if len(parts) == 9:
                entries.append(RawStatusEntry(path=parts[8], flags=xy_to_flags(parts[1])))
        elif kind == "2":
            # 2 XY sub mH mI mW hH hI Xscore path NUL origPath
            parts = record.split(" ", 9)
            origin = tokens[i] if i < len(tokens) else None
            i += 1
            if len(parts) == 10:
                entries.append(
                    RawStatusEntry(
                        path=parts[9],
                        flags=xy_to_flags(parts[1]),
                        rename_origin=origin or None,
                    )
                )
        elif kind == "u":
            # u XY sub m1 m2 m3 mW h1 h2 h3 path
            parts = record.split(" ", 10)
            if len(parts) == 11:
                entries.append(RawStatusEntry(path=parts[10], flags=StatusFlag.CONFLICTED))
        elif kind == "?":
            entries.append(RawStatusEntry(path=record[2:], flags=StatusFlag.WT_NEW))
        else:
            logger.debug(f"Ignoring status record: {record!r}")

    return entries


class GitBackend:
    """Git implementation of the VcsBackend protocol."""

    def __init__(self, git_binary: str = "git", timeout: Optional[float] = None):
        """
        Initialize backend.

        Args:
            git_binary: git executable name or path
            timeout: Seconds before any single git command is killed (None or 0 for no limit)
        """
        self.git_binary = git_binary
        self.timeout = timeout or None

    def _cmd(self, *args: str) -> list[str]:
        return [self.git_binary, *args]

    def _output(self, handle: RepoHandle, operation: str, *args: str) -> str:
        try:
            return run_command_output_cwd(self._cmd(*args), cwd=handle.path, timeout=self.timeout)
        except SubprocessError as e:
            raise BackendError(
                f"git {args[0]} failed",
                operation=operation,
                path=str(handle.path),
                stderr=e.stderr or str(e),
            ) from e

    def _probe(self, handle: RepoHandle, *args: str) -> Optional[str]:
        """Run a query whose non-zero exit means 'no answer'."""
        try:
            result = run_command(
                self._cmd(*args), cwd=handle.path, check=False, timeout=self.timeout
            )
        except SubprocessError as e:
            raise BackendError(
                f"git {args[0]} failed", path=str(handle.path), stderr=str(e)
            ) from e
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def _stash_ref(self, handle: RepoHandle) -> Optional[str]:
        return self._probe(handle, "rev-parse", "-q", "--verify", "refs/stash")

    def _run_stash(self, handle: RepoHandle, operation: str, *args: str) -> None:
        try:
            result = run_command(
                self._cmd("stash", *args), cwd=handle.path, check=False, timeout=self.timeout
            )
        except SubprocessError as e:
            raise BackendError(
                f"git stash {args[0]} failed", operation=operation, path=str(handle.path)
            ) from e

        if result.returncode == 0:
            logger.debug(f"git stash {' '.join(args)} succeeded in {handle.path}")
            return

        output = f"{result.stdout}\n{result.stderr}"
        logger.error(f"git stash {' '.join(args)} failed in {handle.path}: {output.strip()}")
        if any(marker in output for marker in CONFLICT_MARKERS):
            raise StashConflictError(
                "Stash entry conflicts with the working tree",
                operation=operation,
                path=str(handle.path),
                stderr=output.strip(),
            )
        raise BackendError(
            f"git stash {args[0]} failed",
            operation=operation,
            path=str(handle.path),
            stderr=output.strip(),
        )

    def open(self, path: Path) -> RepoHandle:
        """
        Open the repository rooted at path.

        Args:
            path: Repository root directory

        Returns:
            RepoHandle for the session

        Raises:
            NotFoundError: If path is missing or not a repository root
        """
        path = Path(path)
        if not path.is_dir():
            raise NotFoundError("Repository path does not exist", operation="open", path=str(path))

        try:
            output = run_command_output_cwd(
                self._cmd("rev-parse", "--show-toplevel", "--absolute-git-dir"),
                cwd=path,
                timeout=self.timeout,
            )
        except SubprocessError as e:
            if e.returncode is None:
                # git missing or timed out, not an answer about the path
                raise BackendError(
                    "git rev-parse failed", operation="open", path=str(path), stderr=str(e)
                ) from e
            logger.debug(f"Not a git repository: {path}: {e}")
            raise NotFoundError("Not a git repository", operation="open", path=str(path)) from e

        lines = output.splitlines()
        if len(lines) != 2:
            raise NotFoundError("Not a git repository", operation="open", path=str(path))

        toplevel, git_dir = Path(lines[0]), Path(lines[1])
        if toplevel.resolve() != path.resolve():
            raise NotFoundError("Path is not a repository root", operation="open", path=str(path))

        logger.debug(f"Opened git repository: {path}")
        return RepoHandle(path=path, git_dir=git_dir)

    def close(self, handle: RepoHandle) -> None:
        """Terminate any commit walk still running for this session."""
        for proc in list(handle.processes):
            if proc.poll() is None:
                proc.terminate()
                try:
                    proc.wait(timeout=5)
                except subprocess.TimeoutExpired:
                    proc.kill()
                    proc.wait()
        handle.processes.clear()

    def head(self, handle: RepoHandle) -> HeadInfo:
        tip = self._probe(handle, "rev-parse", "-q", "--verify", "HEAD^{commit}")
        branch = self._probe(handle, "symbolic-ref", "-q", "--short", "HEAD")
        return HeadInfo(branch_name=branch or None, tip=tip or None, detached=branch is None)

    def status(self, handle: RepoHandle, include_untracked: bool = True) -> list[RawStatusEntry]:
        untracked = "--untracked-files=all" if include_untracked else "--untracked-files=no"
        output = self._output(
            handle, "status", "status", "--porcelain=v2", "-z", untracked
        )
        return parse_porcelain_v2(output)

    def upstream_of(self, handle: RepoHandle, branch_name: str) -> Optional[UpstreamRef]:
        spec = f"{branch_name}@{{upstream}}"
        name = self._probe(handle, "rev-parse", "--abbrev-ref", "--symbolic-full-name", spec)
        if not name:
            return None
        tip = self._probe(handle, "rev-parse", "-q", "--verify", f"{spec}^{{commit}}")
        if not tip:
            logger.debug(f"Upstream {name} of {branch_name} does not resolve to a commit")
            return None
        return UpstreamRef(name=name, tip=tip)

    def ahead_behind(self, handle: RepoHandle, local: str, upstream: str) -> tuple[int, int]:
        output = self._output(
            handle, "ahead_behind", "rev-list", "--left-right", "--count", f"{local}...{upstream}"
        )
        parts = output.split()
        if len(parts) != 2:
            raise BackendError(
                f"Unexpected rev-list output: {output!r}",
                operation="ahead_behind",
                path=str(handle.path),
            )
        return int(parts[0]), int(parts[1])

    def walk_commits(self, handle: RepoHandle, start: str) -> Iterator[str]:
        try:
            for line in stream_command_lines(
                self._cmd("rev-list", start), cwd=handle.path, processes=handle.processes
            ):
                if line:
                    yield line
        except SubprocessError as e:
            raise BackendError(
                "git rev-list failed",
                operation="walk_commits",
                path=str(handle.path),
                stderr=e.stderr or str(e),
            ) from e

    def commit_metadata(self, handle: RepoHandle, ref: str) -> CommitInfo:
        output = self._output(
            handle, "commit_metadata", "show", "-s", "--format=%H%x00%an%x00%ct%x00%B", ref
        )
        parts = output.split("\0", 3)
        if len(parts) != 4:
            raise BackendError(
                f"Unexpected commit format for {ref}",
                operation="commit_metadata",
                path=str(handle.path),
            )
        commit_id, author, timestamp, message = parts
        return CommitInfo(
            id=commit_id,
            short_id=commit_id[:SHORT_ID_LENGTH],
            message=message.rstrip("\n"),
            author=author or "Unknown",
            timestamp=int(timestamp),
        )

    def stash_list(self, handle: RepoHandle) -> list[StashInfo]:
        output = self._output(handle, "stash_list", "stash", "list", "--format=%H%x00%gs")
        stashes: list[StashInfo] = []
        for line in output.split("\n"):
            if not line:
                continue
            stash_id, _, message = line.partition("\0")
            stashes.append(StashInfo(index=len(stashes), message=message, id=stash_id))
        return stashes

    def stash_save(
        self, handle: RepoHandle, message: Optional[str], include_untracked: bool
    ) -> None:
        before = self._stash_ref(handle)

        args = ["push"]
        if include_untracked:
            args.append("--include-untracked")
        if message:
            args += ["-m", message]
        self._run_stash(handle, "stash_save", *args)

        if self._stash_ref(handle) == before:
            raise NothingToStashError(operation="stash_save", path=str(handle.path))

    def stash_apply(self, handle: RepoHandle, index: int) -> None:
        self._run_stash(handle, "stash_apply", "apply", f"stash@{{{index}}}")

    def stash_pop(self, handle: RepoHandle, index: int) -> None:
        # git keeps the entry when the apply step fails
        self._run_stash(handle, "stash_pop", "pop", f"stash@{{{index}}}")

    def stash_drop(self, handle: RepoHandle, index: int) -> None:
        self._run_stash(handle, "stash_drop", "drop", f"stash@{{{index}}}")
