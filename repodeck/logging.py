"""Logging configuration."""

import logging
import sys

PACKAGE_LOGGER = "repodeck"

LOG_FORMAT = "%(name)s: %(levelname)s: %(message)s"
# Probes run on a thread pool; the thread name ties interleaved lines to one repository.
VERBOSE_LOG_FORMAT = "%(name)s [%(threadName)s]: %(levelname)s: %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging for repodeck.

    Logs go to stderr, not mixed with CLI output (--json). Scan warnings
    about skipped directories and repositories are shown by default.

    Args:
        verbose: If True, log at DEBUG level with thread names; otherwise WARNING.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format=VERBOSE_LOG_FORMAT if verbose else LOG_FORMAT,
        stream=sys.stderr,
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the repodeck namespace.

    Args:
        name: Logger name (e.g., "cli" or "repodeck.cli")

    Returns:
        Logger instance
    """
    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
