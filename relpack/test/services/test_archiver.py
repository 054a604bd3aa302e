"""Tests for relpack.services.archiver."""

from __future__ import annotations

import shutil
import stat
import zipfile
from pathlib import Path

import pytest

from relpack.core.config import ArchiverKind
from relpack.core.release_errors import ArchiveFailed
from relpack.core.result import Err, Ok, Result
from relpack.output.console import MockConsole
from relpack.platform.process import ProcessError
from relpack.services.archiver import (
    BuiltinZipArchiver,
    ZipCommandArchiver,
    archiver_for,
    is_excluded,
    zip_command,
)


def _tree(root: Path) -> Path:
    (root / "bin").mkdir(parents=True)
    (root / "bin" / "app").write_text("run", encoding="utf-8")
    (root / "bin" / "app.run").write_text("installer", encoding="utf-8")
    (root / "releases" / "1.0.0").mkdir(parents=True)
    (root / "releases" / "1.0.0" / "app.rel").write_text("rel", encoding="utf-8")
    (root / "releases" / "1.0.0" / "old.tar.gz").write_bytes(b"tar")
    (root / "releases" / "1.0.0" / "app.zip").write_bytes(b"zip")
    (root / "bootstrap").write_text("#!/bin/sh\n", encoding="utf-8")
    (root / "bootstrap").chmod(0o755)
    (root / "scratch.log").write_text("not packaged", encoding="utf-8")
    return root


EXCLUDES = ["releases/1.0.0/*.tar.gz", "releases/1.0.0/*.zip", "bin/*.run"]


def _linked_dep(root: Path, vendor: Path) -> None:
    (vendor / "ebin").mkdir(parents=True)
    (vendor / "ebin" / "dep.beam").write_bytes(b"beam")
    (root / "lib").mkdir()
    (root / "lib" / "dep-1.0").symlink_to(vendor, target_is_directory=True)


def test_zip_command_layout() -> None:
    cmd = zip_command(Path("/tmp/x/app.zip"), ["bin", "lib"], ["bin/*.run"])
    assert cmd == ["zip", "-q", "-r", "/tmp/x/app.zip", "bin", "lib", "-x", "bin/*.run"]


def test_zip_command_without_excludes() -> None:
    assert zip_command(Path("a.zip"), ["bin"], []) == ["zip", "-q", "-r", "a.zip", "bin"]


@pytest.mark.parametrize(
    ("path", "excluded"),
    [
        ("releases/1.0.0/old.tar.gz", True),
        ("releases/1.0.0/app.zip", True),
        ("releases/1.0.0/nested/deep.zip", True),
        ("releases/1.0.0/app.rel", False),
        ("releases/2.0.0/app.zip", False),
        ("bin/app.run", True),
        ("bin/app", False),
    ],
)
def test_is_excluded(path: str, excluded: bool) -> None:
    assert is_excluded(path, EXCLUDES) is excluded


def test_archiver_for() -> None:
    console = MockConsole()
    assert isinstance(archiver_for(ArchiverKind.zip, console=console), ZipCommandArchiver)
    assert isinstance(archiver_for(ArchiverKind.builtin, console=console), BuiltinZipArchiver)


class TestBuiltinZipArchiver:
    def test_includes_targets_and_honours_exclusions(self, tmp_path: Path) -> None:
        root = _tree(tmp_path / "out")
        dest = tmp_path / "pkg" / "app.zip"

        result = BuiltinZipArchiver(console=MockConsole()).compress(
            root, dest, ["bin", "releases", "bootstrap"], EXCLUDES
        )

        assert result == Ok(None)
        with zipfile.ZipFile(dest) as zf:
            names = set(zf.namelist())
            mode = zf.getinfo("bootstrap").external_attr >> 16
        assert names == {
            "bin/",
            "bin/app",
            "releases/",
            "releases/1.0.0/",
            "releases/1.0.0/app.rel",
            "bootstrap",
        }
        assert stat.S_IMODE(mode) == 0o755

    def test_missing_target_is_warned_and_skipped(self, tmp_path: Path) -> None:
        root = _tree(tmp_path / "out")
        console = MockConsole()

        result = BuiltinZipArchiver(console=console).compress(
            root, tmp_path / "app.zip", ["lib", "bin"], []
        )

        assert isinstance(result, Ok)
        assert console.find("name not matched: lib")

    def test_follows_symlinked_directories(self, tmp_path: Path) -> None:
        root = _tree(tmp_path / "out")
        _linked_dep(root, tmp_path / "vendor" / "dep")
        dest = tmp_path / "app.zip"

        result = BuiltinZipArchiver(console=MockConsole()).compress(root, dest, ["lib"], [])

        assert result == Ok(None)
        with zipfile.ZipFile(dest) as zf:
            assert zf.read("lib/dep-1.0/ebin/dep.beam") == b"beam"
            assert "lib/dep-1.0/ebin/" in zf.namelist()

    def test_broken_symlink_is_warned_and_skipped(self, tmp_path: Path) -> None:
        root = _tree(tmp_path / "out")
        (root / "bin" / "stale").symlink_to(tmp_path / "gone")
        console = MockConsole()
        dest = tmp_path / "app.zip"

        result = BuiltinZipArchiver(console=console).compress(root, dest, ["bin"], [])

        assert result == Ok(None)
        assert console.find("could not open for reading: bin/stale")
        with zipfile.ZipFile(dest) as zf:
            assert "bin/stale" not in zf.namelist()

    def test_nothing_to_do(self, tmp_path: Path) -> None:
        root = tmp_path / "empty"
        root.mkdir()
        dest = tmp_path / "app.zip"

        result = BuiltinZipArchiver(console=MockConsole()).compress(root, dest, ["bin"], [])

        assert isinstance(result, Err)
        assert result.error.exit_code == 12
        assert not dest.exists()


class TestZipCommandArchiver:
    def test_runs_zip_in_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import relpack.services.archiver as archiver_mod

        calls: list[tuple[list[str], Path]] = []

        def fake_run(cmd: list[str], cwd: Path) -> Result[str, ProcessError]:
            calls.append((cmd, cwd))
            return Ok("")

        monkeypatch.setattr(archiver_mod, "run", fake_run)
        console = MockConsole()

        result = ZipCommandArchiver(console=console).compress(
            tmp_path, tmp_path / "t" / "a.zip", ["bin", "bootstrap"], ["bin/*.run"]
        )

        assert result == Ok(None)
        dest = str(tmp_path / "t" / "a.zip")
        assert calls == [
            (["zip", "-q", "-r", dest, "bin", "bootstrap", "-x", "bin/*.run"], tmp_path)
        ]
        assert console.find("$ zip -q -r")

    def test_non_zero_exit(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import relpack.services.archiver as archiver_mod

        def fake_run(cmd: list[str], cwd: Path) -> Result[str, ProcessError]:
            return Err(ProcessError(tuple(cmd), 18, "", "zip warning: could not open for reading"))

        monkeypatch.setattr(archiver_mod, "run", fake_run)

        result = ZipCommandArchiver(console=MockConsole()).compress(
            tmp_path, tmp_path / "a.zip", ["bin"], []
        )

        assert result == Err(
            ArchiveFailed(
                command=f"zip -q -r {tmp_path / 'a.zip'} bin",
                exit_code=18,
                output="zip warning: could not open for reading",
            )
        )

    def test_missing_executable(self, tmp_path: Path) -> None:
        result = ZipCommandArchiver(
            console=MockConsole(), executable="relpack-no-such-zip"
        ).compress(tmp_path, tmp_path / "a.zip", ["bin"], [])

        assert isinstance(result, Err)
        assert result.error.exit_code == -1

    @pytest.mark.skipif(shutil.which("zip") is None, reason="zip utility not installed")
    def test_real_zip_matches_builtin_entries(self, tmp_path: Path) -> None:
        root = _tree(tmp_path / "out")
        _linked_dep(root, tmp_path / "vendor" / "dep")
        targets = ["bin", "lib", "releases", "bootstrap"]
        console = MockConsole()

        cmd_dest = tmp_path / "cmd" / "app.zip"
        cmd_dest.parent.mkdir()
        builtin_dest = tmp_path / "builtin" / "app.zip"

        by_command = ZipCommandArchiver(console=console)
        builtin = BuiltinZipArchiver(console=console)
        assert by_command.compress(root, cmd_dest, targets, EXCLUDES) == Ok(None)
        assert builtin.compress(root, builtin_dest, targets, EXCLUDES) == Ok(None)

        with zipfile.ZipFile(cmd_dest) as a, zipfile.ZipFile(builtin_dest) as b:
            assert set(a.namelist()) == set(b.namelist())
