"""Text renderer for terminal output."""

from datetime import datetime, timezone

from repodeck.models import BranchInfo, CommitInfo, RepoStatus, ScanReport, StashInfo, StatusItem


def format_timestamp(timestamp: int) -> str:
    """
    Format epoch seconds for human-readable output.

    Returns:
        Formatted datetime string (e.g., "2026-01-22 10:41:12 UTC")
    """
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S %Z")
    except (OverflowError, OSError, ValueError):
        return str(timestamp)


def render_table(headers: list[str], rows: list[list[str]]) -> str:
    """
    Render rows as a left-aligned table with a dashed header rule.

    Args:
        headers: Column titles
        rows: Cell values, one list per row

    Returns:
        Formatted table string
    """
    col_widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    separator = "  "
    lines = []

    header_line = separator.join(f"{headers[i]:<{col_widths[i]}}" for i in range(len(headers)))
    lines.append(header_line.rstrip())

    separator_line = separator.join("-" * col_widths[i] for i in range(len(headers)))
    lines.append(separator_line)

    for row in rows:
        row_line = separator.join(f"{str(row[i]):<{col_widths[i]}}" for i in range(len(row)))
        lines.append(row_line.rstrip())

    return "\n".join(lines)


def render_scan_text(report: ScanReport) -> str:
    """
    Render a scan as a repository table, followed by failures if any.

    Columns: NAME, BRANCH, STAGED, UNSTAGED, UNTRACKED, AHEAD, BEHIND, PATH
    """
    if not report.repositories and not report.failures:
        return f"No repositories found under {report.root}"

    lines = []
    if report.repositories:
        headers = ["NAME", "BRANCH", "STAGED", "UNSTAGED", "UNTRACKED", "AHEAD", "BEHIND", "PATH"]
        rows = [
            [
                info.name,
                info.branch or "(no commits)",
                str(info.staged_count),
                str(info.unstaged_count),
                str(info.untracked_count),
                str(info.ahead),
                str(info.behind),
                info.path,
            ]
            for info in report.repositories
        ]
        lines.append(render_table(headers, rows))

    if report.failures:
        lines.append("")
        lines.append(f"FAILED ({len(report.failures)}):")
        for failure in report.failures:
            lines.append(f"  {failure.path}: {failure.error.message}")

    return "\n".join(lines)


def _status_line(item: StatusItem) -> str:
    flags = ",".join(item.flags.names())
    if item.old_path:
        return f"    {item.old_path} -> {item.path} ({flags})"
    return f"    {item.path} ({flags})"


def render_status_text(status: RepoStatus) -> str:
    """Render classified status grouped by category."""
    if not status.has_changes():
        return "Working tree clean"

    lines = []
    for title, items in (
        ("STAGED", status.staged),
        ("UNSTAGED", status.unstaged),
        ("UNTRACKED", status.untracked),
        ("CONFLICTED", status.conflicted),
    ):
        if not items:
            continue
        lines.append(f"  {title} ({len(items)}):")
        lines.extend(_status_line(item) for item in items)

    return "\n".join(lines)


def render_branch_text(branch: BranchInfo) -> str:
    lines = [f"Branch: {branch.current}"]
    if branch.upstream:
        lines.append(f"Upstream: {branch.upstream}")
        lines.append(f"Ahead: {branch.ahead}  Behind: {branch.behind}")
    else:
        lines.append("Upstream: none")
    return "\n".join(lines)


def render_history_text(commits: list[CommitInfo]) -> str:
    """
    Render commits one per line.

    Format: <short_id>  <date>  <author>  <subject>
    """
    if not commits:
        return "No commits"
    lines = []
    for commit in commits:
        subject = commit.message.splitlines()[0] if commit.message else ""
        lines.append(
            f"{commit.short_id}  {format_timestamp(commit.timestamp)}  {commit.author}  {subject}"
        )
    return "\n".join(lines)


def render_stash_text(stashes: list[StashInfo]) -> str:
    if not stashes:
        return "No stash entries"
    headers = ["INDEX", "ID", "MESSAGE"]
    rows = [[str(stash.index), stash.id[:7], stash.message] for stash in stashes]
    return render_table(headers, rows)
