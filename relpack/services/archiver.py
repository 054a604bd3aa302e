"""Zip archivers.

Both archivers share one contract: archive the `includes` (paths relative
to `cwd`, directories recursively) into `destination`, leaving out every
file whose relative path matches one of the `excludes` globs. As with
zip's `-x`, a `*` in an exclusion also matches `/`.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Protocol
from zipfile import ZIP_DEFLATED, ZipFile

from relpack.core.config import ArchiverKind
from relpack.core.release_errors import ArchiveFailed, os_error_cause
from relpack.core.result import Err, Ok, Result
from relpack.output.console import ConsoleProtocol
from relpack.platform.process import format_command, run

__all__ = [
    "Archiver",
    "BuiltinZipArchiver",
    "ZipCommandArchiver",
    "archiver_for",
    "is_excluded",
    "zip_command",
]

# zip's exit status for "nothing to do"
ZIP_NOTHING_TO_DO = 12


class Archiver(Protocol):
    def compress(
        self,
        cwd: Path,
        destination: Path,
        includes: Sequence[str],
        excludes: Sequence[str],
    ) -> Result[None, ArchiveFailed]: ...


def zip_command(
    destination: Path,
    includes: Sequence[str],
    excludes: Sequence[str],
    *,
    executable: str = "zip",
) -> list[str]:
    """Build `zip -q -r <destination> <includes...> -x <excludes...>`."""
    cmd = [executable, "-q", "-r", str(destination), *includes]
    if excludes:
        cmd += ["-x", *excludes]
    return cmd


def is_excluded(relative: str, excludes: Sequence[str]) -> bool:
    return any(fnmatchcase(relative, pattern) for pattern in excludes)


class ZipCommandArchiver:
    """Shell out to the `zip` utility. No timeout is applied."""

    def __init__(self, *, console: ConsoleProtocol, executable: str = "zip") -> None:
        self._console = console
        self._executable = executable

    def compress(
        self,
        cwd: Path,
        destination: Path,
        includes: Sequence[str],
        excludes: Sequence[str],
    ) -> Result[None, ArchiveFailed]:
        cmd = zip_command(destination, includes, excludes, executable=self._executable)
        self._console.debug(f"$ {format_command(cmd)}")

        result = run(cmd, cwd=cwd)
        if isinstance(result, Err):
            error = result.error
            return Err(
                ArchiveFailed(
                    command=error.command_line,
                    exit_code=error.returncode,
                    output=error.output,
                )
            )
        return Ok(None)


class BuiltinZipArchiver:
    """In-process equivalent of ZipCommandArchiver built on zipfile.

    Directory entries are stored and permission bits are preserved, so the
    bootstrap stays executable after extraction.
    """

    def __init__(self, *, console: ConsoleProtocol) -> None:
        self._console = console

    def _collect(
        self, cwd: Path, includes: Sequence[str], excludes: Sequence[str]
    ) -> list[tuple[Path, str]]:
        entries: list[tuple[Path, str]] = []
        for name in includes:
            path = cwd / name
            if path.is_dir():
                # zip -r follows symlinked directories as well
                for dirpath, dirnames, filenames in os.walk(path, followlinks=True):
                    dirnames.sort()
                    current = Path(dirpath)
                    entries.append((current, current.relative_to(cwd).as_posix()))
                    for filename in sorted(filenames):
                        child = current / filename
                        rel = child.relative_to(cwd).as_posix()
                        if is_excluded(rel, excludes):
                            continue
                        if child.is_file():
                            entries.append((child, rel))
                        else:
                            self._console.warning(
                                f"zip warning: could not open for reading: {rel}"
                            )
            elif path.is_file():
                if not is_excluded(Path(name).as_posix(), excludes):
                    entries.append((path, Path(name).as_posix()))
            else:
                self._console.warning(f"zip warning: name not matched: {name}")
        return entries

    def compress(
        self,
        cwd: Path,
        destination: Path,
        includes: Sequence[str],
        excludes: Sequence[str],
    ) -> Result[None, ArchiveFailed]:
        command = f"(builtin) {format_command(zip_command(destination, includes, excludes))}"
        self._console.debug(f"$ {command}")

        entries = self._collect(cwd, includes, excludes)
        if not entries:
            return Err(
                ArchiveFailed(
                    command=command,
                    exit_code=ZIP_NOTHING_TO_DO,
                    output="zip error: Nothing to do!",
                )
            )

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            # ZIP cannot store timestamps before 1980; build tools sometimes
            # emit files with mtime=0.
            with ZipFile(destination, "w", compression=ZIP_DEFLATED, strict_timestamps=False) as zf:
                for src, arc in entries:
                    zf.write(src, arcname=arc)
        except OSError as e:
            return Err(ArchiveFailed(command=command, exit_code=-1, output=os_error_cause(e)))
        return Ok(None)


def archiver_for(kind: ArchiverKind, *, console: ConsoleProtocol) -> Archiver:
    match kind:
        case ArchiverKind.zip:
            return ZipCommandArchiver(console=console)
        case ArchiverKind.builtin:
            return BuiltinZipArchiver(console=console)
