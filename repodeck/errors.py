"""Repodeck exception hierarchy with exit codes and serialisable payloads."""

from typing import Any, Optional

# Exit code constants
EXIT_SUCCESS = 0  # Operation succeeded
EXIT_ERROR = 1  # Generic error / backend failure
EXIT_NOT_FOUND = 2  # Path, repository or stash entry missing
EXIT_CANCELLED = 3  # Operation cancelled
EXIT_PARTIAL = 4  # Partial success (some repositories failed)
EXIT_USAGE = 5  # Invalid usage / arguments


class RepodeckError(Exception):
    """Base exception for all Repodeck errors."""

    kind = "error"

    def __init__(
        self,
        message: str,
        exit_code: int = EXIT_ERROR,
        operation: Optional[str] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code
        self.operation = operation
        self.path = str(path) if path is not None else None

    def __str__(self) -> str:
        context = [part for part in (self.operation, self.path) if part]
        if not context:
            return self.message
        return f"{self.message} ({': '.join(context)})"

    def to_dict(self) -> dict[str, Any]:
        """
        Serialise the error for JSON consumers.

        Returns:
            Dict with kind, message, operation and path
        """
        return {
            "kind": self.kind,
            "message": self.message,
            "operation": self.operation,
            "path": self.path,
        }


class NotFoundError(RepodeckError):
    """Root path, repository or stash entry does not exist."""

    kind = "not_found"
    exit_code = EXIT_NOT_FOUND

    def __init__(
        self,
        message: str = "Not found",
        operation: Optional[str] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message, exit_code=self.exit_code, operation=operation, path=path)


class BackendError(RepodeckError):
    """
    The version-control backend reported a failure.

    Carries the backend's stderr for diagnostics.
    """

    kind = "backend"
    exit_code = EXIT_ERROR

    def __init__(
        self,
        message: str = "Backend error",
        operation: Optional[str] = None,
        path: Optional[str] = None,
        stderr: str = "",
    ):
        super().__init__(message, exit_code=self.exit_code, operation=operation, path=path)
        self.stderr = stderr

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["stderr"] = self.stderr
        return payload


class StashConflictError(BackendError):
    """Applying a stash entry conflicted with the working tree."""

    kind = "stash_conflict"


class NothingToStashError(RepodeckError):
    """No local changes to save."""

    kind = "nothing_to_stash"
    exit_code = EXIT_ERROR

    def __init__(
        self,
        message: str = "No local changes to save",
        operation: Optional[str] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message, exit_code=self.exit_code, operation=operation, path=path)


class InvalidInputError(RepodeckError):
    """Malformed caller arguments or missing branch context."""

    kind = "invalid_input"
    exit_code = EXIT_USAGE

    def __init__(
        self,
        message: str = "Invalid input",
        operation: Optional[str] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message, exit_code=self.exit_code, operation=operation, path=path)


class FilesystemError(RepodeckError):
    """Filesystem access failure during a walk or auxiliary file I/O."""

    kind = "io"
    exit_code = EXIT_ERROR

    def __init__(
        self,
        message: str = "Filesystem error",
        operation: Optional[str] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message, exit_code=self.exit_code, operation=operation, path=path)


class ConfigError(RepodeckError):
    """Configuration errors (invalid values)."""

    kind = "config"
    exit_code = EXIT_USAGE

    def __init__(self, message: str = "Configuration error"):
        super().__init__(message, exit_code=self.exit_code)


class CancelledError(RepodeckError):
    """Operation stopped by a cancellation token."""

    kind = "cancelled"
    exit_code = EXIT_CANCELLED

    def __init__(
        self,
        message: str = "Operation cancelled",
        operation: Optional[str] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message, exit_code=self.exit_code, operation=operation, path=path)
