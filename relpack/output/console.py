"""Console output abstraction.

Services print through `ConsoleProtocol` so they never depend on Rich
directly. Output is gated by `Verbosity`:

- errors are always printed
- warnings from `quiet` up
- info, success and plain messages from `normal` up
- debug messages (e.g. external command lines) only at `verbose`
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

from relpack.core.config import Verbosity

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DEBUG = auto()
    DIM = auto()

    def __str__(self) -> str:
        return self.name.lower()


_THRESHOLDS: dict[Style, Verbosity] = {
    Style.ERROR: Verbosity.SILENT,
    Style.WARNING: Verbosity.QUIET,
    Style.DEFAULT: Verbosity.NORMAL,
    Style.SUCCESS: Verbosity.NORMAL,
    Style.INFO: Verbosity.NORMAL,
    Style.DIM: Verbosity.NORMAL,
    Style.DEBUG: Verbosity.VERBOSE,
}


def _enabled(verbosity: Verbosity, style: Style) -> bool:
    return verbosity >= _THRESHOLDS[style]


class ConsoleProtocol(Protocol):
    """Protocol for console output."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        """Print a message with optional styling."""
        ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def debug(self, message: str) -> None:
        """Print a diagnostic message, shown only at verbose level."""
        ...


class RichConsole:
    """Console implementation using Rich.

    Messages are escaped before printing so paths, tracebacks and tool
    output containing `[...]` are not parsed as Rich markup.
    """

    def __init__(self, verbosity: Verbosity = Verbosity.NORMAL) -> None:
        from rich.console import Console

        self.verbosity = verbosity
        self._console = Console()
        self._err_console = Console(stderr=True)
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow",
            Style.INFO: "cyan",
            Style.DEBUG: "dim",
            Style.DIM: "dim",
        }

    def _emit(self, prefix: str, message: str, style: Style) -> None:
        from rich.markup import escape

        if not _enabled(self.verbosity, style):
            return
        target = self._err_console if style == Style.ERROR else self._console
        target.print(f"{prefix}{escape(message)}", highlight=False)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        from rich.markup import escape

        if not _enabled(self.verbosity, style):
            return
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._console.print(escape(message), style=rich_style, highlight=False)
        else:
            self._console.print(escape(message), highlight=False)

    def success(self, message: str) -> None:
        self._emit("[green]OK[/green] ", message, Style.SUCCESS)

    def error(self, message: str) -> None:
        self._emit("[red bold]error:[/red bold] ", message, Style.ERROR)

    def warning(self, message: str) -> None:
        self._emit("[yellow]warning:[/yellow] ", message, Style.WARNING)

    def info(self, message: str) -> None:
        self._emit("[cyan]info:[/cyan] ", message, Style.INFO)

    def debug(self, message: str) -> None:
        self._emit("[dim]debug:[/dim] ", message, Style.DEBUG)


@dataclass
class OutputRecord:
    """A single output record for MockConsole."""

    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console that captures output for tests.

    Defaults to verbose so debug lines are captured too.
    """

    verbosity: Verbosity = Verbosity.VERBOSE
    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def _record(self, message: str, style: Style) -> None:
        if _enabled(self.verbosity, style):
            self.outputs.append(OutputRecord(message, style))

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._record(message, style)

    def success(self, message: str) -> None:
        self._record(f"OK {message}", Style.SUCCESS)

    def error(self, message: str) -> None:
        self._record(f"error: {message}", Style.ERROR)

    def warning(self, message: str) -> None:
        self._record(f"warning: {message}", Style.WARNING)

    def info(self, message: str) -> None:
        self._record(f"info: {message}", Style.INFO)

    def debug(self, message: str) -> None:
        self._record(f"debug: {message}", Style.DEBUG)

    # Test helpers

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        """Find all outputs containing a substring."""
        return [o for o in self.outputs if substring in o.message]

    def count(self, style: Style) -> int:
        return sum(1 for o in self.outputs if o.style == style)
