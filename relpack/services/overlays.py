"""Overlay application.

Overlays are files written into the release output after assembly. The
Lambda bootstrap script is always applied first so that user overlays
targeting the same destination win.
"""

from __future__ import annotations

import shutil
from collections.abc import Mapping, Sequence
from dataclasses import replace
from pathlib import Path

from relpack.core.release import (
    CopyOverlay,
    OverlaySpec,
    ReleaseDescriptor,
    TemplateOverlay,
    render_template,
)
from relpack.core.release_errors import (
    OverlayFailed,
    PermissionChangeFailed,
    ReleaseError,
    os_error_cause,
)
from relpack.core.result import Err, Ok, Result
from relpack.output.console import ConsoleProtocol
from relpack.platform.files import make_executable

__all__ = [
    "BOOTSTRAP_DESTINATION",
    "BOOTSTRAP_TEMPLATE",
    "apply_overlays",
    "apply_platform_overlays",
    "platform_overlays",
]

BOOTSTRAP_TEMPLATE = Path(__file__).resolve().parents[1] / "templates" / "bootstrap"
BOOTSTRAP_DESTINATION = "bootstrap"


def platform_overlays() -> tuple[OverlaySpec, ...]:
    return (TemplateOverlay(source=BOOTSTRAP_TEMPLATE, destination=BOOTSTRAP_DESTINATION),)


def _resolve_destination(
    output_dir: Path, destination: str, overlay_vars: Mapping[str, str]
) -> Result[Path, ReleaseError]:
    rendered = render_template(destination, overlay_vars)
    root = output_dir.resolve()
    target = (root / rendered).resolve()
    if target == root or not target.is_relative_to(root):
        return Err(
            OverlayFailed(
                path=root / rendered,
                cause="destination is outside the release output directory",
            )
        )
    return Ok(target)


def _write_template(
    source: Path, target: Path, overlay_vars: Mapping[str, str]
) -> Result[Path, ReleaseError]:
    try:
        content = source.read_text(encoding="utf-8")
    except OSError as e:
        return Err(OverlayFailed(path=source, cause=os_error_cause(e)))
    except UnicodeDecodeError:
        return Err(OverlayFailed(path=source, cause="template is not valid UTF-8 text"))

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(render_template(content, overlay_vars), encoding="utf-8", newline="")
    except OSError as e:
        return Err(OverlayFailed(path=target, cause=os_error_cause(e)))
    return Ok(target)


def _copy(source: Path, target: Path) -> Result[Path, ReleaseError]:
    if not source.exists():
        return Err(OverlayFailed(path=source, cause="no such file or directory"))
    try:
        if source.is_dir():
            shutil.copytree(source, target, dirs_exist_ok=True)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy(source, target)
    except shutil.Error as e:
        return Err(OverlayFailed(path=target, cause=str(e)))
    except OSError as e:
        return Err(OverlayFailed(path=target, cause=os_error_cause(e)))
    return Ok(target)


def apply_overlays(
    output_dir: Path,
    overlays: Sequence[OverlaySpec],
    overlay_vars: Mapping[str, str],
) -> Result[list[Path], ReleaseError]:
    """Apply overlays in order, stopping at the first failure.

    Later overlays overwrite earlier ones at the same destination. Files
    written before a failure are left in place.

    Returns:
        Ok(list of written paths) or Err(OverlayFailed).
    """
    applied: list[Path] = []
    for overlay in overlays:
        target = _resolve_destination(output_dir, overlay.destination, overlay_vars)
        if isinstance(target, Err):
            return target

        match overlay:
            case TemplateOverlay(source=source):
                written = _write_template(source, target.value, overlay_vars)
            case CopyOverlay(source=source):
                written = _copy(source, target.value)

        if isinstance(written, Err):
            return written
        applied.append(written.value)
    return Ok(applied)


def apply_platform_overlays(
    release: ReleaseDescriptor, *, console: ConsoleProtocol
) -> Result[ReleaseDescriptor, ReleaseError]:
    """Write the bootstrap plus configured overlays and mark bootstrap executable.

    Returns:
        Ok(descriptor with the platform overlay prepended), or the first error.
    """
    overlays = platform_overlays() + tuple(release.overlays)

    applied = apply_overlays(release.output_dir, overlays, release.overlay_vars)
    if isinstance(applied, Err):
        return applied
    for path in applied.value:
        console.debug(f"overlay written: {path}")

    # overlay writes do not carry file modes over
    bootstrap = release.bootstrap_path
    try:
        make_executable(bootstrap)
    except OSError as e:
        return Err(PermissionChangeFailed(path=bootstrap, cause=os_error_cause(e)))

    return Ok(replace(release, overlays=overlays))
