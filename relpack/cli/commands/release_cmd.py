"""Release command - build a Lambda deployment package."""

from __future__ import annotations

from pathlib import Path

import typer

from relpack.cli.commands._helpers import unwrap_or_exit, verbosity_from_flags
from relpack.cli.context import build_context
from relpack.core.config import ArchiverKind, load_release_config
from relpack.services.archiver import archiver_for
from relpack.services.assembler import CommandAssembler
from relpack.services.pipeline import ReleasePipeline


def release(
    env: str | None = typer.Option(
        None,
        "--env",
        help="Release environment (default: $RELPACK_ENV, then release.default_environment)",
        show_default=False,
    ),
    no_build: bool = typer.Option(
        False, "--no-build", help="Skip the build command and package the existing output"
    ),
    archiver: ArchiverKind | None = typer.Option(
        None, "--archiver", help="Override the configured archiver", show_default=False
    ),
    config: Path | None = typer.Option(
        None, "--config", help="Config file (default: rel/config.toml)", show_default=False
    ),
    project_dir: Path = typer.Option(Path("."), "--project-dir", help="Project root"),
    verbose: bool = typer.Option(False, "--verbose", help="Print debug output"),
    quiet: bool = typer.Option(False, "--quiet", help="Only print warnings and errors"),
    silent: bool = typer.Option(False, "--silent", help="Only print errors"),
) -> None:
    """Build a release package suitable for AWS Lambda deployment.

    Assembles the release, applies the Lambda bootstrap overlay and writes
    releases/<version>/<name>.zip inside the release output directory.
    Upgrade releases are not supported.
    """
    verbosity = verbosity_from_flags(verbose=verbose, quiet=quiet, silent=silent)
    ctx = build_context(project_dir, verbosity)

    config_path = None
    if config is not None:
        config_path = config.expanduser()
        if not config_path.is_absolute():
            config_path = ctx.project_root / config_path

    ctx.console.debug("Loading configuration..")
    release_config = unwrap_or_exit(
        load_release_config(
            ctx.project_root,
            config_path=config_path,
            environment=env,
            verbosity=verbosity,
            archiver=archiver,
            skip_build=no_build,
        ),
        ctx,
    )
    ctx.console.debug(f"environment: {release_config.environment}")

    pipeline = ReleasePipeline(
        console=ctx.console,
        assembler=CommandAssembler(console=ctx.console),
        archiver=archiver_for(release_config.archiver, console=ctx.console),
    )
    result = unwrap_or_exit(pipeline.run(release_config), ctx)
    ctx.console.success(str(result.path))
