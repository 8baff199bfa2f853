"""Cooperative cancellation for scans and history walks."""

import threading
from typing import Optional

from repodeck.errors import CancelledError


class CancelToken:
    """
    Thread-safe cancellation flag shared by a scan and its probes.

    Checked at each directory-walk step and each backend call boundary;
    in-flight git commands are not interrupted.
    """

    def __init__(self, parent: Optional["CancelToken"] = None) -> None:
        """
        Initialize token.

        Args:
            parent: Token whose cancellation also cancels this one
        """
        self._event = threading.Event()
        self._parent = parent

    def cancel(self) -> None:
        """Request cancellation (does not propagate to the parent)."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def raise_if_cancelled(self, operation: str, path: Optional[str] = None) -> None:
        """
        Raise CancelledError if cancellation was requested.

        Args:
            operation: Operation name for the error context
            path: Path being processed (optional)

        Raises:
            CancelledError: If cancel() was called
        """
        if self.cancelled:
            raise CancelledError(operation=operation, path=path)


def check(token: Optional[CancelToken], operation: str, path: Optional[str] = None) -> None:
    """Check an optional token."""
    if token is not None:
        token.raise_if_cancelled(operation, path)
