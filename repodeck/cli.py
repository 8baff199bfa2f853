"""Repodeck CLI entrypoint."""

import signal
import sys
import threading
from pathlib import Path
from typing import NoReturn, Optional

import click

from repodeck import __version__
from repodeck.cancel import CancelToken
from repodeck.config import Config, ScanPolicy, get_config
from repodeck.errors import EXIT_PARTIAL, EXIT_SUCCESS, RepodeckError
from repodeck.logging import get_logger, setup_logging
from repodeck.render.json import (
    render_branch_json,
    render_error_json,
    render_history_json,
    render_scan_json,
    render_stash_json,
    render_status_json,
)
from repodeck.render.text import (
    render_branch_text,
    render_history_text,
    render_scan_text,
    render_stash_text,
    render_status_text,
)

logger = get_logger(__name__)

_scan_token: Optional[CancelToken] = None


def _handle_interrupt(signum: int, frame: object) -> None:
    """Handle SIGINT (Ctrl+C) by cancelling the running scan."""
    logger.info("Interrupted by user")
    if _scan_token is not None and not _scan_token.cancelled:
        _scan_token.cancel()
        return
    raise KeyboardInterrupt


def _fail(command: str, error: RepodeckError, json_output: bool) -> NoReturn:
    """Report an error and exit with its code."""
    if json_output:
        click.echo(render_error_json(command, error))
    else:
        click.echo(f"Error: {error}", err=True)
        stderr = getattr(error, "stderr", "")
        if stderr:
            click.echo(stderr.strip(), err=True)
    sys.exit(error.exit_code)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ~/.config/repodeck/config)",
)
@click.version_option(version=__version__)
@click.pass_context
def repodeck(ctx: click.Context, verbose: bool, config_path: Optional[Path]) -> None:
    """Repodeck - status of every Git repository under a directory."""
    try:
        ctx.obj = get_config(config_path)
    except RepodeckError as e:
        raise click.ClickException(str(e)) from e
    # debug comes from REPODECK_DEBUG or the config file's debug key
    setup_logging(verbose=verbose or ctx.obj.debug.enabled)


@repodeck.command()
@click.argument("root", type=click.Path(path_type=Path))
@click.option("--json", "json_output", is_flag=True, help="JSON output")
@click.option(
    "--isolate/--abort",
    "isolate",
    default=None,
    help="Skip repositories that fail to probe, or stop at the first (default: from config)",
)
@click.option("--workers", type=int, help="Override concurrency limit")
@click.pass_obj
def scan(
    config: Config,
    root: Path,
    json_output: bool,
    isolate: Optional[bool],
    workers: Optional[int],
) -> None:
    """
    Scan ROOT for Git repositories and summarise each one.

    Hidden directories are included and .gitignore is not honoured.
    Repositories nested inside another repository are not reported.

    \b
    Exit codes:
      0: All repositories probed
      4: Partial result (--isolate and some repositories failed)
      non-zero: Scan failed (see error kind)
    """
    from repodeck.operations import scan_report

    global _scan_token

    policy = None
    if isolate is not None:
        policy = ScanPolicy.ISOLATE if isolate else ScanPolicy.ABORT
    if workers is not None:
        if workers < 1:
            raise click.BadParameter("must be >= 1", param_hint="--workers")
        config.max_workers = workers

    _scan_token = CancelToken()
    # signal handlers can only be installed from the main thread
    install_handler = threading.current_thread() is threading.main_thread()
    previous = signal.signal(signal.SIGINT, _handle_interrupt) if install_handler else None
    try:
        report = scan_report(str(root), config=config, token=_scan_token, policy=policy)
    except RepodeckError as e:
        _fail("scan", e, json_output)
    finally:
        if install_handler:
            signal.signal(signal.SIGINT, previous)
        _scan_token = None

    if json_output:
        click.echo(render_scan_json(report))
    else:
        click.echo(render_scan_text(report))

    sys.exit(EXIT_PARTIAL if report.partial else EXIT_SUCCESS)


@repodeck.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--json", "json_output", is_flag=True, help="JSON output")
@click.pass_obj
def status(config: Config, path: Path, json_output: bool) -> None:
    """Show staged, unstaged, untracked and conflicted paths of PATH."""
    from repodeck.operations import get_repo_status, make_backend

    try:
        repo_status = get_repo_status(str(path), backend=make_backend(config))
    except RepodeckError as e:
        _fail("status", e, json_output)

    if json_output:
        click.echo(render_status_json(str(path), repo_status))
    else:
        click.echo(render_status_text(repo_status))


@repodeck.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--json", "json_output", is_flag=True, help="JSON output")
@click.pass_obj
def branch(config: Config, path: Path, json_output: bool) -> None:
    """Show the current branch of PATH and its divergence from upstream."""
    from repodeck.operations import get_branch_info, make_backend

    try:
        info = get_branch_info(str(path), backend=make_backend(config))
    except RepodeckError as e:
        _fail("branch", e, json_output)

    if json_output:
        click.echo(render_branch_json(str(path), info))
    else:
        click.echo(render_branch_text(info))


@repodeck.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.option("-n", "--limit", type=int, help="Maximum commits (default: from config)")
@click.option("--json", "json_output", is_flag=True, help="JSON output")
@click.pass_obj
def log(config: Config, path: Path, limit: Optional[int], json_output: bool) -> None:
    """Show recent commits reachable from HEAD of PATH."""
    from repodeck.operations import get_commit_history, make_backend

    try:
        commits = get_commit_history(
            str(path),
            limit if limit is not None else config.history_limit,
            backend=make_backend(config),
        )
    except RepodeckError as e:
        _fail("log", e, json_output)

    if json_output:
        click.echo(render_history_json(str(path), commits))
    else:
        click.echo(render_history_text(commits))


@repodeck.group()
def stash() -> None:
    """
    Manage stash entries.

    Indices are positions in the current list and change after every
    save/apply/pop/drop. Run 'repodeck stash list' before reusing one.
    """


@stash.command("list")
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--json", "json_output", is_flag=True, help="JSON output")
@click.pass_obj
def stash_list(config: Config, path: Path, json_output: bool) -> None:
    """List stash entries of PATH (index 0 is the most recent)."""
    from repodeck.operations import get_stash_list, make_backend

    try:
        stashes = get_stash_list(str(path), backend=make_backend(config))
    except RepodeckError as e:
        _fail("stash", e, json_output)

    if json_output:
        click.echo(render_stash_json(str(path), stashes))
    else:
        click.echo(render_stash_text(stashes))


@stash.command("save")
@click.argument("path", type=click.Path(path_type=Path))
@click.option("-m", "--message", help="Stash message")
@click.option("-u", "--include-untracked", is_flag=True, help="Also stash untracked files")
@click.option("--json", "json_output", is_flag=True, help="JSON errors")
@click.pass_obj
def stash_save(
    config: Config,
    path: Path,
    message: Optional[str],
    include_untracked: bool,
    json_output: bool,
) -> None:
    """Stash local changes of PATH."""
    from repodeck.operations import make_backend
    from repodeck.operations import stash_save as save

    try:
        save(str(path), message, include_untracked, backend=make_backend(config))
    except RepodeckError as e:
        _fail("stash", e, json_output)

    if not json_output:
        click.echo("Saved working directory and index state")


@stash.command("apply")
@click.argument("path", type=click.Path(path_type=Path))
@click.argument("index", type=int, default=0)
@click.option("--json", "json_output", is_flag=True, help="JSON errors")
@click.pass_obj
def stash_apply(config: Config, path: Path, index: int, json_output: bool) -> None:
    """Apply stash entry INDEX of PATH, keeping it."""
    from repodeck.operations import make_backend
    from repodeck.operations import stash_apply as apply

    try:
        apply(str(path), index, backend=make_backend(config))
    except RepodeckError as e:
        _fail("stash", e, json_output)

    if not json_output:
        click.echo(f"Applied stash@{{{index}}}")


@stash.command("pop")
@click.argument("path", type=click.Path(path_type=Path))
@click.argument("index", type=int, default=0)
@click.option("--json", "json_output", is_flag=True, help="JSON errors")
@click.pass_obj
def stash_pop(config: Config, path: Path, index: int, json_output: bool) -> None:
    """
    Apply stash entry INDEX of PATH and drop it.

    The entry is kept if applying it conflicts.
    """
    from repodeck.operations import make_backend
    from repodeck.operations import stash_pop as pop

    try:
        pop(str(path), index, backend=make_backend(config))
    except RepodeckError as e:
        _fail("stash", e, json_output)

    if not json_output:
        click.echo(f"Popped stash@{{{index}}}")


@stash.command("drop")
@click.argument("path", type=click.Path(path_type=Path))
@click.argument("index", type=int, default=0)
@click.option("--json", "json_output", is_flag=True, help="JSON errors")
@click.pass_obj
def stash_drop(config: Config, path: Path, index: int, json_output: bool) -> None:
    """Drop stash entry INDEX of PATH without applying it."""
    from repodeck.operations import make_backend
    from repodeck.operations import stash_drop as drop

    try:
        drop(str(path), index, backend=make_backend(config))
    except RepodeckError as e:
        _fail("stash", e, json_output)

    if not json_output:
        click.echo(f"Dropped stash@{{{index}}}")
