"""Filesystem helpers."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

__all__ = ["atomic_copy_file", "make_executable", "EXECUTABLE_MODE"]

EXECUTABLE_MODE = 0o755


def atomic_copy_file(source: Path, destination: Path) -> None:
    """Copy source to destination atomically using temp file + replace.

    The temp file is created next to the destination, so the copy works
    across filesystems and readers never see a partially written file.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{destination.name}.",
        suffix=".tmp",
        dir=str(destination.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "wb") as handle, source.open("rb") as src:
            shutil.copyfileobj(src, handle)
            handle.flush()
            os.fsync(handle.fileno())
        shutil.copymode(source, tmp_path)
        os.replace(tmp_path, destination)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def make_executable(path: Path) -> None:
    """Force rwxr-xr-x on path regardless of its current mode."""
    os.chmod(path, EXECUTABLE_MODE)
