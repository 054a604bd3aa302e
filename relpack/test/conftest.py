"""Shared fixtures: an assembled OTP release tree on disk."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from relpack.core.release import ReleaseDescriptor

MakeTree = Callable[..., ReleaseDescriptor]


def make_release_tree(
    output_dir: Path,
    *,
    name: str = "myapp",
    version: str = "2.0.0",
    erts_version: str = "11.0",
    start_erl: bool = True,
) -> ReleaseDescriptor:
    """Lay out the directories a release build leaves behind."""
    (output_dir / "bin").mkdir(parents=True)
    launcher = output_dir / "bin" / name
    launcher.write_text("#!/bin/sh\necho start\n", encoding="utf-8")
    launcher.chmod(0o755)

    ebin = output_dir / "lib" / f"{name}-{version}" / "ebin"
    ebin.mkdir(parents=True)
    (ebin / f"{name}.app").write_text("{application, myapp, []}.\n", encoding="utf-8")

    version_dir = output_dir / "releases" / version
    version_dir.mkdir(parents=True)
    (version_dir / f"{name}.rel").write_text("{release, {}}.\n", encoding="utf-8")
    (version_dir / "sys.config").write_text("[].\n", encoding="utf-8")
    if start_erl:
        (output_dir / "releases" / "start_erl.data").write_text(
            f"{erts_version} {version}\n", encoding="utf-8"
        )

    erts_bin = output_dir / f"erts-{erts_version}" / "bin"
    erts_bin.mkdir(parents=True)
    (erts_bin / "beam.smp").write_bytes(b"\x7fELF")

    return ReleaseDescriptor(
        name=name,
        version=version,
        erts_version=erts_version,
        output_dir=output_dir.resolve(),
        overlay_vars={
            "release_name": name,
            "release_version": version,
            "erts_vsn": erts_version,
        },
    )


@pytest.fixture
def release_tree(tmp_path: Path) -> ReleaseDescriptor:
    return make_release_tree(tmp_path / "rel" / "myapp")


@pytest.fixture
def make_tree() -> MakeTree:
    return make_release_tree
