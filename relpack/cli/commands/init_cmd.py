"""Init command - write a starter rel/config.toml."""

from __future__ import annotations

import re
from pathlib import Path

import typer

from relpack.cli.context import build_context
from relpack.core.config import config_path_for
from relpack.core.errors import ErrorCode
from relpack.core.release import render_template
from relpack.core.release_errors import os_error_cause
from relpack.output.console import Style

CONFIG_TEMPLATE = Path(__file__).resolve().parents[2] / "templates" / "config.toml"
# mix application names, which release names follow
RELEASE_NAME_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def init(
    name: str | None = typer.Option(
        None, "--name", help="Release name (default: project directory name)", show_default=False
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config"),
    project_dir: Path = typer.Option(Path("."), "--project-dir", help="Project root"),
) -> None:
    """Create rel/config.toml for the project."""
    ctx = build_context(project_dir)
    path = config_path_for(ctx.project_root)

    if path.exists() and not force:
        ctx.console.error(f"{path} already exists")
        ctx.console.print("hint: pass --force to overwrite it", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.RELEASE_ERROR))

    release_name = name or ctx.project_root.name
    if not RELEASE_NAME_PATTERN.fullmatch(release_name):
        ctx.console.error(f"invalid release name {release_name!r}")
        ctx.console.print(
            "hint: use letters, digits and underscores (pass --name to choose one)", Style.DIM
        )
        raise typer.Exit(code=int(ErrorCode.RELEASE_ERROR))

    content = render_template(
        CONFIG_TEMPLATE.read_text(encoding="utf-8"),
        {"release_name": release_name},
    )

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        ctx.console.error(f"cannot write {path}: {os_error_cause(e)}")
        raise typer.Exit(code=int(ErrorCode.RELEASE_ERROR)) from None
    ctx.console.success(str(path))
