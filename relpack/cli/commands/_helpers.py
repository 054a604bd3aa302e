"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import typer

from relpack.core.config import Verbosity
from relpack.core.release_errors import ReleaseError
from relpack.core.result import Err, Ok, Result
from relpack.output.errors import print_release_error, release_error_exit_code

if TYPE_CHECKING:
    from relpack.cli.context import CLIContext


T = TypeVar("T")


def unwrap_or_exit[T](result: Result[T, ReleaseError], ctx: CLIContext) -> T:
    """Return the Ok value, or print the error and exit non-zero.

    Replaces the pattern:
        match result:
            case Err(e):
                print_release_error(e, ctx.console)
                raise typer.Exit(code=release_error_exit_code(e))
            case Ok(value):
                ...
    """
    match result:
        case Ok(value):
            return value
        case Err(error):
            print_release_error(error, ctx.console)
            raise typer.Exit(code=release_error_exit_code(error))


def verbosity_from_flags(*, verbose: bool, quiet: bool, silent: bool) -> Verbosity:
    """Map --verbose/--quiet/--silent to a level; the quietest flag wins."""
    if silent:
        return Verbosity.SILENT
    if quiet:
        return Verbosity.QUIET
    if verbose:
        return Verbosity.VERBOSE
    return Verbosity.NORMAL
