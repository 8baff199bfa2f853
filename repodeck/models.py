"""Value types returned by repodeck operations."""

from dataclasses import dataclass, field
from enum import Enum, Flag, auto
from typing import Optional

from repodeck.errors import RepodeckError


class StatusFlag(Flag):
    """Per-path change flags reported by the backend."""

    NONE = 0
    INDEX_NEW = auto()
    INDEX_MODIFIED = auto()
    INDEX_DELETED = auto()
    INDEX_RENAMED = auto()
    INDEX_TYPECHANGE = auto()
    WT_NEW = auto()
    WT_MODIFIED = auto()
    WT_DELETED = auto()
    WT_RENAMED = auto()
    WT_TYPECHANGE = auto()
    CONFLICTED = auto()

    def names(self) -> list[str]:
        """Names of the individual flags set, in declaration order."""
        return [
            member.name.lower()
            for member in type(self)
            if member.value and member.name and member in self
        ]


class StatusCategory(str, Enum):
    """Dashboard category a path belongs to."""

    STAGED = "staged"
    UNSTAGED = "unstaged"
    UNTRACKED = "untracked"
    CONFLICTED = "conflicted"


@dataclass(frozen=True)
class StatusItem:
    """One changed path. May belong to several categories at once."""

    path: str
    flags: StatusFlag
    categories: frozenset[StatusCategory] = frozenset()
    old_path: Optional[str] = None


@dataclass
class RepoStatus:
    """Status split into the four dashboard categories."""

    staged: list[StatusItem] = field(default_factory=list)
    unstaged: list[StatusItem] = field(default_factory=list)
    untracked: list[StatusItem] = field(default_factory=list)
    conflicted: list[StatusItem] = field(default_factory=list)

    def total_count(self) -> int:
        return len(self.staged) + len(self.unstaged) + len(self.untracked) + len(self.conflicted)

    def has_changes(self) -> bool:
        return self.total_count() > 0


@dataclass
class RepositoryInfo:
    """Dashboard snapshot of one repository. Recomputed on every scan."""

    path: str
    name: str
    branch: Optional[str]
    has_changes: bool
    staged_count: int
    unstaged_count: int
    untracked_count: int
    conflicted_count: int
    ahead: int
    behind: int


@dataclass
class BranchInfo:
    """Current branch and its divergence from upstream."""

    current: str
    ahead: int = 0
    behind: int = 0
    upstream: Optional[str] = None


@dataclass(frozen=True)
class CommitInfo:
    """Commit metadata as read from the backend."""

    id: str
    short_id: str
    message: str
    author: str
    timestamp: int


@dataclass(frozen=True)
class StashInfo:
    """
    One stash entry.

    `index` is a position in the current stash list, not an identity:
    it is invalid after any apply/pop/drop/save until re-listed. `id` is
    the stable content id.
    """

    index: int
    message: str
    id: str


@dataclass
class ScanFailure:
    """A repository that could not be probed during an isolating scan."""

    path: str
    error: RepodeckError


@dataclass
class ScanReport:
    """Scan result including per-repository failures."""

    root: str
    repositories: list[RepositoryInfo] = field(default_factory=list)
    failures: list[ScanFailure] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failures)
