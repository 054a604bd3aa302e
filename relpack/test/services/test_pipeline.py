"""End-to-end tests for relpack.services.pipeline."""

from __future__ import annotations

import stat
import zipfile
from pathlib import Path

from relpack.core.config import ReleaseConfig
from relpack.core.release import ReleaseDescriptor
from relpack.core.release_errors import AssemblyFailed, ReleaseError, UncaughtFault
from relpack.core.result import Err, Ok, Result
from relpack.output.console import MockConsole, Style
from relpack.services.archiver import BuiltinZipArchiver
from relpack.services.assembler import CommandAssembler
from relpack.services.pipeline import ReleasePipeline, Stage


def _config(project_root: Path) -> ReleaseConfig:
    return ReleaseConfig(
        project_root=project_root,
        config_path=project_root / "rel" / "config.toml",
        environment="prod",
        name="myapp",
        output_dir=Path("rel") / "myapp",
    )


def _pipeline(console: MockConsole) -> ReleasePipeline:
    return ReleasePipeline(
        console=console,
        assembler=CommandAssembler(console=console),
        archiver=BuiltinZipArchiver(console=console),
    )


def _top_level(path: Path) -> set[str]:
    with zipfile.ZipFile(path) as zf:
        return {name.split("/", 1)[0] for name in zf.namelist()}


class TestReleasePipeline:
    def test_builds_lambda_package(self, tmp_path: Path, release_tree: ReleaseDescriptor) -> None:
        out = release_tree.output_dir
        (out / "scratch.log").write_text("left behind", encoding="utf-8")
        (out / "releases" / "2.0.0" / "myapp.tar.gz").write_bytes(b"old tarball")
        (out / "bin" / "myapp-2.0.0.run").write_text("installer", encoding="utf-8")
        console = MockConsole()
        pipeline = _pipeline(console)

        result = pipeline.run(_config(tmp_path))

        package = out / "releases" / "2.0.0" / "myapp.zip"
        assert isinstance(result, Ok)
        assert result.value.path == package
        assert pipeline.stage == Stage.done
        assert _top_level(package) == {"erts-11.0", "bin", "lib", "releases", "bootstrap"}
        with zipfile.ZipFile(package) as zf:
            names = zf.namelist()
            bootstrap_mode = zf.getinfo("bootstrap").external_attr >> 16
        assert "releases/2.0.0/myapp.tar.gz" not in names
        assert "bin/myapp-2.0.0.run" not in names
        assert "bin/myapp" in names
        assert stat.S_IMODE(bootstrap_mode) == 0o755
        infos = [o.message for o in console.outputs if o.style == Style.INFO]
        assert infos == [
            "info: Assembling release..",
            "info: Applying lambda specific overlays..",
            "info: Packaging release..",
        ]

    def test_rerun_replaces_package(self, tmp_path: Path, release_tree: ReleaseDescriptor) -> None:
        package = release_tree.output_dir / "releases" / "2.0.0" / "myapp.zip"

        first = _pipeline(MockConsole()).run(_config(tmp_path))
        assert isinstance(first, Ok)
        with zipfile.ZipFile(package) as zf:
            first_names = sorted(zf.namelist())

        second = _pipeline(MockConsole()).run(_config(tmp_path))
        assert isinstance(second, Ok)
        with zipfile.ZipFile(package) as zf:
            second_names = sorted(zf.namelist())

        # the previous package is excluded, never nested
        assert first_names == second_names
        assert sorted(p.name for p in package.parent.glob("*.zip")) == ["myapp.zip"]

    def test_stops_at_first_failure(self, tmp_path: Path) -> None:
        console = MockConsole()
        pipeline = _pipeline(console)

        result = pipeline.run(_config(tmp_path))

        assert isinstance(result, Err)
        assert isinstance(result.error, AssemblyFailed)
        assert pipeline.stage == Stage.assembling
        assert not console.find("Packaging release..")
        assert not (tmp_path / "rel" / "myapp" / "bootstrap").exists()

    def test_unexpected_exception_becomes_uncaught_fault(self, tmp_path: Path) -> None:
        class _Exploding:
            def assemble(self, config: ReleaseConfig) -> Result[ReleaseDescriptor, ReleaseError]:
                raise RuntimeError("boom")

        console = MockConsole()
        pipeline = ReleasePipeline(
            console=console,
            assembler=_Exploding(),
            archiver=BuiltinZipArchiver(console=console),
        )

        result = pipeline.run(_config(tmp_path))

        assert isinstance(result, Err)
        error = result.error
        assert isinstance(error, UncaughtFault)
        assert error.message == "RuntimeError: boom (while assembling)"
        assert "Traceback" in error.trace
        assert "RuntimeError: boom" in error.trace
