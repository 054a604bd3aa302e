"""Release descriptor and overlay types.

A release descriptor is what the assembler hands to the rest of the
pipeline: identity, runtime version, output tree and the overlays still to
be applied to that tree.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

__all__ = [
    "CopyOverlay",
    "TemplateOverlay",
    "OverlaySpec",
    "ReleaseDescriptor",
    "PackageResult",
    "render_template",
]


_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


@dataclass(frozen=True, slots=True)
class CopyOverlay:
    """Copy `source` verbatim to `destination` (relative to the output dir)."""

    source: Path
    destination: str


@dataclass(frozen=True, slots=True)
class TemplateOverlay:
    """Render `source` with the overlay vars and write it to `destination`."""

    source: Path
    destination: str


OverlaySpec = CopyOverlay | TemplateOverlay


def _empty_vars() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class ReleaseDescriptor:
    """One assembled build of the application."""

    name: str
    version: str
    erts_version: str
    output_dir: Path
    overlays: tuple[OverlaySpec, ...] = ()
    overlay_vars: Mapping[str, str] = field(default_factory=_empty_vars)

    @property
    def releases_path(self) -> Path:
        return self.output_dir / "releases"

    @property
    def version_path(self) -> Path:
        """Directory holding this version's release metadata."""
        return self.releases_path / self.version

    @property
    def bin_path(self) -> Path:
        return self.output_dir / "bin"

    @property
    def erts_dirname(self) -> str:
        return f"erts-{self.erts_version}"

    @property
    def bootstrap_path(self) -> Path:
        return self.output_dir / "bootstrap"

    @property
    def package_name(self) -> str:
        return f"{self.name}.zip"

    @property
    def package_path(self) -> Path:
        """Final archive location, unique per (name, version)."""
        return self.version_path / self.package_name


@dataclass(frozen=True, slots=True)
class PackageResult:
    """Outcome of a successful packaging step."""

    path: Path
    targets: tuple[str, ...]
    exclusions: tuple[str, ...]


def render_template(content: str, overlay_vars: Mapping[str, str]) -> str:
    """Substitute `{{ key }}` placeholders with values from overlay_vars.

    Unknown keys are left untouched so shell syntax such as `${HOME}` and
    literal braces survive rendering.
    """

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in overlay_vars:
            return str(overlay_vars[key])
        return match.group(0)

    return _PLACEHOLDER.sub(_replace, content)
