from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from relpack.core.config import Verbosity
from relpack.core.errors import ErrorCode
from relpack.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    project_root: Path
    console: ConsoleProtocol


def build_context(project_dir: Path, verbosity: Verbosity = Verbosity.NORMAL) -> CLIContext:
    try:
        root = project_dir.expanduser().resolve()
    except OSError as e:
        typer.echo(f"error: invalid --project-dir: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.RELEASE_ERROR))

    if not root.is_dir():
        typer.echo(f"error: project directory not found: {root}", err=True)
        raise typer.Exit(code=int(ErrorCode.RELEASE_ERROR))

    return CLIContext(project_root=root, console=RichConsole(verbosity))
