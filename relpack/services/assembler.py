"""Release assembly.

Building the release itself (dependency resolution, compiling, copying the
runtime) is the job of the project's own release tool. The assembler runs
that tool when a build command is configured, then inspects the output tree
and describes it as a `ReleaseDescriptor`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from relpack.core.config import BUILD_ENVIRONMENT_VAR, ReleaseConfig
from relpack.core.release import ReleaseDescriptor, render_template
from relpack.core.release_errors import AssemblyFailed, ReleaseError, os_error_cause
from relpack.core.result import Err, Ok, Result
from relpack.output.console import ConsoleProtocol
from relpack.platform.process import format_command, run

__all__ = [
    "CommandAssembler",
    "ReleaseAssembler",
    "StartErlData",
    "build_argv",
    "default_overlay_vars",
    "describe_release",
    "read_start_erl_data",
]


class ReleaseAssembler(Protocol):
    def assemble(self, config: ReleaseConfig) -> Result[ReleaseDescriptor, ReleaseError]: ...


@dataclass(frozen=True, slots=True)
class StartErlData:
    """Contents of `releases/start_erl.data`: `<erts_vsn> <release_vsn>`."""

    erts_version: str
    release_version: str


def read_start_erl_data(output_dir: Path) -> Result[StartErlData | None, ReleaseError]:
    path = output_dir / "releases" / "start_erl.data"
    if not path.is_file():
        return Ok(None)
    try:
        fields = path.read_text(encoding="utf-8").split()
    except (OSError, UnicodeDecodeError) as e:
        cause = os_error_cause(e) if isinstance(e, OSError) else str(e)
        return Err(AssemblyFailed(f"cannot read {path}: {cause}"))
    if len(fields) != 2:
        return Err(AssemblyFailed(f"malformed {path}: expected '<erts_vsn> <release_vsn>'"))
    return Ok(StartErlData(erts_version=fields[0], release_version=fields[1]))


def _discover_erts_version(output_dir: Path) -> Result[str, ReleaseError]:
    found = sorted(p.name for p in output_dir.glob("erts-*") if p.is_dir())
    if not found:
        return Err(
            AssemblyFailed(
                f"no erts-* runtime directory in {output_dir} "
                "(the release must include the runtime)"
            )
        )
    if len(found) > 1:
        return Err(
            AssemblyFailed(
                f"several runtime directories in {output_dir}: {', '.join(found)}; "
                "set release.erts_version"
            )
        )
    return Ok(found[0].removeprefix("erts-"))


def _check_version(kind: str, value: str) -> Result[str, ReleaseError]:
    if value in {".", ".."} or "/" in value or "\\" in value:
        return Err(AssemblyFailed(f"invalid {kind} {value!r}: must not contain path separators"))
    return Ok(value)


def default_overlay_vars(
    *,
    name: str,
    version: str,
    erts_version: str,
    output_dir: Path,
    environment: str,
    build_environment: str,
) -> dict[str, str]:
    return {
        "release_name": name,
        "release_version": version,
        "erts_vsn": erts_version,
        "output_dir": str(output_dir),
        "env": environment,
        "build_env": build_environment,
    }


def build_argv(config: ReleaseConfig) -> list[str]:
    """Build command argv with its `{{ env }}` style placeholders rendered."""
    build_vars = {
        "env": config.environment,
        "build_env": config.build_environment,
        "release_name": config.name,
    }
    return [render_template(arg, build_vars) for arg in config.build_command]


def describe_release(config: ReleaseConfig) -> Result[ReleaseDescriptor, ReleaseError]:
    """Describe the assembled tree at the configured output directory."""
    output_dir = config.resolved_output_dir
    if not output_dir.is_dir():
        return Err(AssemblyFailed(f"release output directory not found: {output_dir}"))

    start_erl = read_start_erl_data(output_dir)
    if isinstance(start_erl, Err):
        return start_erl
    start = start_erl.value

    version = config.version or (start.release_version if start else None)
    if version is None:
        return Err(
            AssemblyFailed(
                "cannot determine release version: set release.version "
                "or provide releases/start_erl.data"
            )
        )

    if config.erts_version:
        erts_version = config.erts_version
    elif start is not None:
        erts_version = start.erts_version
    else:
        discovered = _discover_erts_version(output_dir)
        if isinstance(discovered, Err):
            return discovered
        erts_version = discovered.value

    for kind, value in (("release version", version), ("erts version", erts_version)):
        checked = _check_version(kind, value)
        if isinstance(checked, Err):
            return checked

    version_path = output_dir / "releases" / version
    if not version_path.is_dir():
        return Err(AssemblyFailed(f"release version directory not found: {version_path}"))

    erts_path = output_dir / f"erts-{erts_version}"
    if not erts_path.is_dir():
        return Err(AssemblyFailed(f"runtime directory not found: {erts_path}"))

    overlay_vars = default_overlay_vars(
        name=config.name,
        version=version,
        erts_version=erts_version,
        output_dir=output_dir,
        environment=config.environment,
        build_environment=config.build_environment,
    )
    overlay_vars.update(config.overlay_vars)

    return Ok(
        ReleaseDescriptor(
            name=config.name,
            version=version,
            erts_version=erts_version,
            output_dir=output_dir,
            overlays=config.overlays,
            overlay_vars=overlay_vars,
        )
    )


class CommandAssembler:
    """Run the configured build command, then describe its output."""

    def __init__(self, *, console: ConsoleProtocol) -> None:
        self._console = console

    def assemble(self, config: ReleaseConfig) -> Result[ReleaseDescriptor, ReleaseError]:
        if config.build_command:
            command = build_argv(config)
            self._console.debug(f"$ {format_command(command)}")
            env = dict(os.environ)
            env[BUILD_ENVIRONMENT_VAR] = config.build_environment
            result = run(command, cwd=config.project_root, env=env)
            if isinstance(result, Err):
                error = result.error
                return Err(
                    AssemblyFailed(
                        "build command failed",
                        command=error.command_line,
                        exit_code=error.returncode,
                        output=error.output,
                    )
                )
        else:
            self._console.debug("no build command configured; using existing release output")

        return describe_release(config)
