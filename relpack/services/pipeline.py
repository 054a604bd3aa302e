"""Release pipeline controller.

Runs assemble → apply overlays → package, stopping at the first failure.
Nothing is retried; rerunning the whole pipeline is the recovery path.
"""

from __future__ import annotations

import traceback
from enum import StrEnum

from relpack.core.config import ReleaseConfig
from relpack.core.release import PackageResult
from relpack.core.release_errors import ReleaseError, UncaughtFault
from relpack.core.result import Err, Result
from relpack.output.console import ConsoleProtocol
from relpack.services.archiver import Archiver
from relpack.services.assembler import ReleaseAssembler
from relpack.services.overlays import apply_platform_overlays
from relpack.services.packager import package_release

__all__ = ["ReleasePipeline", "Stage"]


class Stage(StrEnum):
    pending = "pending"
    assembling = "assembling"
    applying_overlays = "applying overlays"
    packaging = "packaging"
    done = "done"


class ReleasePipeline:
    def __init__(
        self,
        *,
        console: ConsoleProtocol,
        assembler: ReleaseAssembler,
        archiver: Archiver,
    ) -> None:
        self._console = console
        self._assembler = assembler
        self._archiver = archiver
        self.stage = Stage.pending

    def run(self, config: ReleaseConfig) -> Result[PackageResult, ReleaseError]:
        """Build the Lambda package for config.

        Exceptions escaping any stage are returned as UncaughtFault so the
        caller handles every failure the same way.
        """
        try:
            return self._run(config)
        except Exception as e:  # noqa: BLE001
            return Err(
                UncaughtFault(
                    message=f"{type(e).__name__}: {e} (while {self.stage})",
                    trace=traceback.format_exc(),
                )
            )

    def _run(self, config: ReleaseConfig) -> Result[PackageResult, ReleaseError]:
        self.stage = Stage.assembling
        self._console.info("Assembling release..")
        assembled = self._assembler.assemble(config)
        if isinstance(assembled, Err):
            return assembled
        release = assembled.value
        self._console.debug(
            f"release {release.name} {release.version} (erts {release.erts_version}) "
            f"at {release.output_dir}"
        )

        self.stage = Stage.applying_overlays
        self._console.info("Applying lambda specific overlays..")
        overlaid = apply_platform_overlays(release, console=self._console)
        if isinstance(overlaid, Err):
            return overlaid

        self.stage = Stage.packaging
        self._console.info("Packaging release..")
        packaged = package_release(overlaid.value, self._archiver, console=self._console)
        if isinstance(packaged, Err):
            return packaged

        self.stage = Stage.done
        return packaged
