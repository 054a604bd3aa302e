"""Subprocess execution with Result-based error handling.

All external tools (the release build command, `zip`) are started through
`run`, which captures output and returns a structured error instead of
raising.

Usage:
    match run(["zip", "-q", "-r", "out.zip", "bin"], cwd=release_dir):
        case Ok(_):
            ...
        case Err(error):
            console.error(f"{error.command_line} exited with {error.returncode}")
"""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from relpack.core.result import Err, Ok, Result

__all__ = ["ProcessError", "format_command", "run"]


def format_command(cmd: Sequence[str]) -> str:
    """Render argv as a copy-pasteable shell command line."""
    return shlex.join(cmd)


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: Exit code, or -1 if the process could not be started.
        stdout: Standard output (may be empty).
        stderr: Standard error, or the OS error when the start failed.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def command_line(self) -> str:
        return format_command(self.command)

    @property
    def output(self) -> str:
        """Combined stdout and stderr, in that order."""
        parts = [p.strip() for p in (self.stdout, self.stderr) if p and p.strip()]
        return "\n".join(parts)


def run(
    cmd: Sequence[str],
    cwd: Path,
    env: dict[str, str] | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    argv = list(cmd)
    try:
        proc = subprocess.run(
            argv,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(argv),
                returncode=-1,
                stdout="",
                stderr=str(e),
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(argv),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)
