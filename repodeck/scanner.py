"""Repository discovery and concurrent probing under a root directory."""

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Callable, Optional

from repodeck.cancel import CancelToken, check
from repodeck.config import ScanPolicy, default_max_workers
from repodeck.errors import (
    CancelledError,
    FilesystemError,
    InvalidInputError,
    NotFoundError,
    RepodeckError,
)
from repodeck.models import RepositoryInfo, ScanFailure, ScanReport
from repodeck.probes.repo import probe_repository
from repodeck.vcs.protocol import VcsBackend

logger = logging.getLogger(__name__)

REPOSITORY_MARKER = ".git"


def is_repository_root(path: Path) -> bool:
    """Check for a .git directory (gitfiles of worktrees/submodules don't count)."""
    return (path / REPOSITORY_MARKER).is_dir()


def discover_repositories(root: Path, token: Optional[CancelToken] = None) -> list[Path]:
    """
    Find repository roots under root.

    Hidden directories are visited and ignore files are not honoured.
    Descent stops at each repository root, so repositories nested inside
    another repository's working tree are not reported. Symlinked
    directories are not followed. Unreadable directories are skipped.

    Args:
        root: Directory to walk
        token: Cancellation token checked at each directory

    Returns:
        Repository roots in walk order (siblings sorted by name)

    Raises:
        CancelledError: If the token was cancelled
    """

    def _on_error(error: OSError) -> None:
        logger.warning(f"Skipping unreadable directory {error.filename}: {error.strerror}")

    roots: list[Path] = []
    for dirpath, dirnames, _ in os.walk(root, topdown=True, onerror=_on_error):
        check(token, "scan", dirpath)
        current = Path(dirpath)
        if is_repository_root(current):
            roots.append(current)
            dirnames[:] = []
            continue
        dirnames.sort()

    logger.debug(f"Discovered {len(roots)} repositories under {root}")
    return roots


def _probe(path: Path, backend: VcsBackend, token: CancelToken) -> RepositoryInfo:
    try:
        return probe_repository(path, backend, token)
    except OSError as e:
        raise FilesystemError(str(e), operation="probe", path=str(path)) from e


class RepositoryScanner:
    """Discovers repositories and probes them on a thread pool."""

    def __init__(
        self,
        backend: VcsBackend,
        max_workers: Optional[int] = None,
        policy: ScanPolicy = ScanPolicy.ABORT,
    ):
        """
        Initialize scanner.

        Args:
            backend: VCS backend shared by all probes (each opens its own session)
            max_workers: Thread pool size (defaults to the CPU count)
            policy: ABORT raises the first failure; ISOLATE skips and reports it
        """
        self.backend = backend
        self.max_workers = max_workers or default_max_workers()
        self.policy = policy

    def scan(self, root: Path, token: Optional[CancelToken] = None) -> ScanReport:
        """
        Scan root for repositories and probe each one.

        Args:
            root: Directory to scan
            token: Caller's cancellation token

        Returns:
            ScanReport with repositories sorted by name and any isolated failures

        Raises:
            NotFoundError: If root does not exist
            InvalidInputError: If root is not a directory
            RepodeckError: Under ABORT, the failure of the earliest-discovered
                failing repository
            CancelledError: If the caller's token was cancelled
        """
        root = Path(root)
        if not root.exists():
            raise NotFoundError("Scan root does not exist", operation="scan", path=str(root))
        if not root.is_dir():
            raise InvalidInputError("Scan root is not a directory", operation="scan", path=str(root))

        scan_token = CancelToken(parent=token)
        paths = discover_repositories(root, scan_token)
        report = ScanReport(root=str(root))

        if len(paths) <= 1:
            for path in paths:
                self._collect(report, path, partial(_probe, path, self.backend, scan_token))
        else:
            workers = min(self.max_workers, len(paths))
            logger.debug(f"Probing {len(paths)} repositories with {workers} workers")
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures: list[Future[RepositoryInfo]] = [
                    executor.submit(_probe, path, self.backend, scan_token) for path in paths
                ]
                try:
                    for path, future in zip(paths, futures):
                        self._collect(report, path, future.result)
                except RepodeckError:
                    scan_token.cancel()
                    for pending in futures:
                        pending.cancel()
                    raise

        report.repositories.sort(key=lambda info: (info.name, info.path))
        if report.failures:
            logger.warning(
                f"Scan of {root}: {len(report.repositories)} ok, {len(report.failures)} failed"
            )
        else:
            logger.debug(f"Scan of {root}: {len(report.repositories)} repositories")
        return report

    def _collect(
        self, report: ScanReport, path: Path, result: Callable[[], RepositoryInfo]
    ) -> None:
        try:
            report.repositories.append(result())
        except CancelledError:
            raise
        except RepodeckError as e:
            if self.policy is ScanPolicy.ABORT:
                logger.error(f"Aborting scan: {path}: {e}")
                raise
            logger.warning(f"Skipping repository {path}: {e}")
            report.failures.append(ScanFailure(path=str(path), error=e))


def scan_repositories(
    root: Path,
    backend: VcsBackend,
    max_workers: Optional[int] = None,
    policy: ScanPolicy = ScanPolicy.ABORT,
    token: Optional[CancelToken] = None,
) -> list[RepositoryInfo]:
    """
    Scan root and return the repositories sorted by name.

    Under ISOLATE, failed repositories are omitted (and logged).
    """
    scanner = RepositoryScanner(backend, max_workers=max_workers, policy=policy)
    return scanner.scan(root, token).repositories
