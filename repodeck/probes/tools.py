"""Subprocess execution utilities."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

# Read-only commands must not take index.lock while other probes run, and
# error text is matched in English.
GIT_ENV = {"GIT_OPTIONAL_LOCKS": "0", "LC_ALL": "C", "GIT_TERMINAL_PROMPT": "0"}

# git prints paths as raw bytes; undecodable ones round-trip like os.fsdecode
OUTPUT_ENCODING = "utf-8"
OUTPUT_ERRORS = "surrogateescape"


class SubprocessError(Exception):
    """Raised when subprocess fails."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


def _command_env() -> dict[str, str]:
    env = dict(os.environ)
    env.update(GIT_ENV)
    return env


def run_command(
    cmd: list[str],
    cwd: Optional[Path] = None,
    check: bool = True,
    timeout: Optional[float] = None,
) -> subprocess.CompletedProcess[str]:
    """
    Run a subprocess command and capture its output.

    Args:
        cmd: Command and arguments as list (safe, no shell injection)
        cwd: Working directory (optional)
        check: Raise exception on non-zero exit
        timeout: Seconds before the command is killed (None for no limit)

    Returns:
        CompletedProcess with results

    Raises:
        SubprocessError: If the command is missing, times out, or fails and check=True
    """
    logger.debug(f"Running: {' '.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding=OUTPUT_ENCODING,
            errors=OUTPUT_ERRORS,
            check=False,
            cwd=cwd,
            env=_command_env(),
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise SubprocessError(f"Command not found: {cmd[0]}") from e
    except subprocess.TimeoutExpired as e:
        error_msg = f"Command timed out after {timeout}s: {' '.join(cmd)}"
        logger.error(error_msg)
        raise SubprocessError(error_msg) from e

    if check and result.returncode != 0:
        error_msg = f"Command failed: {' '.join(cmd)}"
        if result.stderr:
            error_msg += f"\n{result.stderr.strip()}"
        logger.error(error_msg)
        raise SubprocessError(error_msg, returncode=result.returncode, stderr=result.stderr)

    logger.debug(f"Exit code: {result.returncode}")
    return result


def run_command_output_cwd(
    cmd: list[str],
    cwd: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Run command in specific directory and return stdout.

    Args:
        cmd: Command and arguments as list
        cwd: Working directory (optional)
        timeout: Seconds before the command is killed (None for no limit)

    Returns:
        stdout as string (stripped of trailing newlines)

    Raises:
        SubprocessError: If command fails
    """
    result = run_command(cmd, cwd=cwd, check=True, timeout=timeout)
    return result.stdout.rstrip("\n")


def stream_command_lines(
    cmd: list[str],
    cwd: Optional[Path] = None,
    processes: Optional[list[subprocess.Popen[str]]] = None,
) -> Iterator[str]:
    """
    Run a command and yield its stdout line by line as it is produced.

    The process is terminated as soon as the consumer stops iterating, so
    callers can stop a long listing early without reading all of it.

    Args:
        cmd: Command and arguments as list
        cwd: Working directory (optional)
        processes: Registry the live process is added to while streaming

    Yields:
        Output lines without the trailing newline

    Raises:
        SubprocessError: If the command cannot start or exits non-zero
    """
    logger.debug(f"Streaming: {' '.join(cmd)}")

    try:
        proc = subprocess.Popen(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding=OUTPUT_ENCODING,
            errors=OUTPUT_ERRORS,
            env=_command_env(),
        )
    except FileNotFoundError as e:
        raise SubprocessError(f"Command not found: {cmd[0]}") from e

    if processes is not None:
        processes.append(proc)

    finished = False
    try:
        assert proc.stdout is not None
        for line in proc.stdout:
            yield line.rstrip("\n")
        finished = True
    finally:
        if not finished and proc.poll() is None:
            proc.terminate()
        returncode = proc.wait()
        stderr = proc.stderr.read() if proc.stderr else ""
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()
        if processes is not None and proc in processes:
            processes.remove(proc)

    if returncode != 0:
        error_msg = f"Command failed: {' '.join(cmd)}"
        if stderr:
            error_msg += f"\n{stderr.strip()}"
        logger.error(error_msg)
        raise SubprocessError(error_msg, returncode=returncode, stderr=stderr)
