"""JSON renderer with stable schema and versioning."""

import json
from typing import Any

from repodeck.errors import RepodeckError
from repodeck.models import (
    BranchInfo,
    CommitInfo,
    RepositoryInfo,
    RepoStatus,
    ScanReport,
    StashInfo,
    StatusItem,
)

JSON_VERSION = 1


def _dumps(output: dict[str, Any]) -> str:
    return json.dumps(output, sort_keys=True)


def repository_to_dict(info: RepositoryInfo) -> dict[str, Any]:
    return {
        "path": info.path,
        "name": info.name,
        "branch": info.branch,
        "has_changes": info.has_changes,
        "staged_count": info.staged_count,
        "unstaged_count": info.unstaged_count,
        "untracked_count": info.untracked_count,
        "conflicted_count": info.conflicted_count,
        "ahead": info.ahead,
        "behind": info.behind,
    }


def status_item_to_dict(item: StatusItem) -> dict[str, Any]:
    return {
        "path": item.path,
        "status": item.flags.names(),
        "categories": sorted(category.value for category in item.categories),
        "old_path": item.old_path,
    }


def render_scan_json(report: ScanReport) -> str:
    """
    Render a scan report as JSON.

    Schema version 1:
      {
        "command": "scan",
        "version": 1,
        "root": "<path>",
        "partial": bool,
        "repositories": [ {path, name, branch, has_changes, *_count, ahead, behind} ],
        "failures": [ {path, error: {kind, message, operation, path}} ]
      }

    Args:
        report: ScanReport to render

    Returns:
        JSON string with stable key ordering
    """
    output = {
        "command": "scan",
        "version": JSON_VERSION,
        "root": report.root,
        "partial": report.partial,
        "repositories": [repository_to_dict(info) for info in report.repositories],
        "failures": [
            {"path": failure.path, "error": failure.error.to_dict()} for failure in report.failures
        ],
    }
    return _dumps(output)


def render_status_json(path: str, status: RepoStatus) -> str:
    """
    Render classified status as JSON.

    Schema version 1:
      {
        "command": "status",
        "version": 1,
        "path": "<path>",
        "total_count": int,
        "has_changes": bool,
        "staged": [ {path, status: [flag...], categories: [...], old_path} ],
        "unstaged": [ ... ],
        "untracked": [ ... ],
        "conflicted": [ ... ]
      }
    """
    output = {
        "command": "status",
        "version": JSON_VERSION,
        "path": path,
        "total_count": status.total_count(),
        "has_changes": status.has_changes(),
        "staged": [status_item_to_dict(item) for item in status.staged],
        "unstaged": [status_item_to_dict(item) for item in status.unstaged],
        "untracked": [status_item_to_dict(item) for item in status.untracked],
        "conflicted": [status_item_to_dict(item) for item in status.conflicted],
    }
    return _dumps(output)


def render_branch_json(path: str, branch: BranchInfo) -> str:
    output = {
        "command": "branch",
        "version": JSON_VERSION,
        "path": path,
        "branch": {
            "current": branch.current,
            "ahead": branch.ahead,
            "behind": branch.behind,
            "upstream": branch.upstream,
        },
    }
    return _dumps(output)


def render_history_json(path: str, commits: list[CommitInfo]) -> str:
    output = {
        "command": "log",
        "version": JSON_VERSION,
        "path": path,
        "commits": [
            {
                "id": commit.id,
                "short_id": commit.short_id,
                "message": commit.message,
                "author": commit.author,
                "timestamp": commit.timestamp,
            }
            for commit in commits
        ],
    }
    return _dumps(output)


def render_stash_json(path: str, stashes: list[StashInfo]) -> str:
    output = {
        "command": "stash",
        "version": JSON_VERSION,
        "path": path,
        "stashes": [
            {"index": stash.index, "message": stash.message, "id": stash.id} for stash in stashes
        ],
    }
    return _dumps(output)


def render_error_json(command: str, error: RepodeckError) -> str:
    """
    Render an error as JSON.

    Errors are data: the payload carries kind, message, operation and path
    so callers can render a specific message.
    """
    output = {
        "command": command,
        "version": JSON_VERSION,
        "error": error.to_dict(),
    }
    return _dumps(output)
