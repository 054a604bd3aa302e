"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relpack.core.errors import ErrorCode
from relpack.core.release_errors import (
    ArchiveFailed,
    AssemblyFailed,
    ConfigInvalid,
    ConfigNotFound,
    CopyFailed,
    OverlayFailed,
    PermissionChangeFailed,
    ReleaseError,
    UncaughtFault,
)

if TYPE_CHECKING:
    from relpack.output.console import ConsoleProtocol

__all__ = ["format_release_error", "print_release_error", "release_error_exit_code"]

_INDENT = "    "


def _indent_block(text: str) -> str:
    lines = text.strip().splitlines() or [""]
    return "\n".join(f"{_INDENT}{line}" for line in lines)


def format_release_error(error: ReleaseError) -> str:
    """Render a release error as a human-readable, multi-line message."""
    match error:
        case ConfigNotFound(path=path):
            return (
                f"You are missing a release config file ({path}). "
                "Run `relpack init` first"
            )
        case ConfigInvalid(reason=reason):
            return f"Failed to load config:\n{_INDENT}{reason}"
        case AssemblyFailed(reason=reason, command=command, exit_code=exit_code, output=output):
            message = f"Failed to assemble release: {reason}"
            if command is not None:
                message += f"\n{_INDENT}$ {command}"
                if exit_code is not None:
                    message += f" (exit {exit_code})"
            if output.strip():
                message += "\n" + _indent_block(output)
            return message
        case OverlayFailed(path=path, cause=cause):
            return f"Failed to apply overlay {path}\n{_INDENT}{cause}"
        case PermissionChangeFailed(path=path, cause=cause):
            return f"Failed to change mode of a file {path}\n{_INDENT}{cause}"
        case CopyFailed(source=source, destination=destination, cause=cause):
            return (
                f"Failed to copy file: {cause}\n"
                f"{_INDENT}source: {source}\n"
                f"{_INDENT}destination: {destination}"
            )
        case ArchiveFailed(command=command, exit_code=exit_code, output=output):
            return (
                f"Zip packaging exited with code {exit_code}:\n"
                f"{_INDENT}$ {command}\n"
                f"{_INDENT}{output.strip()}"
            )
        case UncaughtFault(message=message, trace=trace):
            return f"Release failed: {message}\n{trace.rstrip()}"


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    console.error(format_release_error(error))


def release_error_exit_code(error: ReleaseError) -> int:
    """Get exit code for a release error."""
    match error:
        case ConfigNotFound() | ConfigInvalid():
            return int(ErrorCode.RELEASE_ERROR)
        case AssemblyFailed() | OverlayFailed() | PermissionChangeFailed():
            return int(ErrorCode.RELEASE_ERROR)
        case CopyFailed() | ArchiveFailed() | UncaughtFault():
            return int(ErrorCode.RELEASE_ERROR)
