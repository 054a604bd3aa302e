from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ConfigNotFound:
    path: Path


@dataclass(frozen=True, slots=True)
class ConfigInvalid:
    reason: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class AssemblyFailed:
    reason: str
    command: str | None = None
    exit_code: int | None = None
    output: str = ""


@dataclass(frozen=True, slots=True)
class OverlayFailed:
    path: Path
    cause: str


@dataclass(frozen=True, slots=True)
class PermissionChangeFailed:
    path: Path
    cause: str


@dataclass(frozen=True, slots=True)
class CopyFailed:
    source: Path
    destination: Path
    cause: str


@dataclass(frozen=True, slots=True)
class ArchiveFailed:
    command: str
    exit_code: int
    output: str


@dataclass(frozen=True, slots=True)
class UncaughtFault:
    message: str
    trace: str


ReleaseError = (
    ConfigNotFound
    | ConfigInvalid
    | AssemblyFailed
    | OverlayFailed
    | PermissionChangeFailed
    | CopyFailed
    | ArchiveFailed
    | UncaughtFault
)


def os_error_cause(error: OSError) -> str:
    """Short human description of an OSError (e.g. 'permission denied')."""
    if error.strerror:
        return error.strerror.lower()
    return str(error)
