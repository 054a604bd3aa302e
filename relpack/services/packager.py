"""Lambda package creation.

The archive is built in a private temporary directory and only then copied
to `releases/<version>/<name>.zip`, so a failed run never leaves a partial
package at the final path.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from relpack.core.release import PackageResult, ReleaseDescriptor
from relpack.core.release_errors import CopyFailed, ReleaseError, os_error_cause
from relpack.core.result import Err, Ok, Result
from relpack.output.console import ConsoleProtocol
from relpack.platform.files import atomic_copy_file
from relpack.services.archiver import Archiver

__all__ = ["package_release", "package_targets", "package_exclusions"]


def package_targets(release: ReleaseDescriptor) -> list[str]:
    """Top-level entries of the output directory that go into the package."""
    return [
        release.erts_dirname,
        "bin",
        "lib",
        "releases",
        "bootstrap",
    ]


def package_exclusions(release: ReleaseDescriptor) -> list[str]:
    """Leftovers of earlier release builds, relative to the output directory."""
    patterns = [
        release.version_path / "*.tar.gz",
        release.version_path / "*.zip",
        release.bin_path / "*.run",
    ]
    return [p.relative_to(release.output_dir).as_posix() for p in patterns]


def package_release(
    release: ReleaseDescriptor,
    archiver: Archiver,
    *,
    console: ConsoleProtocol,
) -> Result[PackageResult, ReleaseError]:
    """Archive the release output and place it at the release's package path."""
    targets = package_targets(release)
    exclusions = package_exclusions(release)
    final_path = release.package_path

    with tempfile.TemporaryDirectory(prefix="relpack-") as tmp:
        tmp_package = Path(tmp) / release.package_name

        archived = archiver.compress(release.output_dir, tmp_package, targets, exclusions)
        if isinstance(archived, Err):
            return archived
        console.debug(f"Successfully built zip package: {tmp_package}")

        try:
            atomic_copy_file(tmp_package, final_path)
        except OSError as e:
            return Err(
                CopyFailed(
                    source=tmp_package,
                    destination=final_path,
                    cause=os_error_cause(e),
                )
            )

    return Ok(PackageResult(path=final_path, targets=tuple(targets), exclusions=tuple(exclusions)))
