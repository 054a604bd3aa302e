"""Result type for explicit error handling.

Every pipeline stage returns a Result instead of raising, so the controller
can short-circuit on the first failure and format it in one place.

Usage:
    match load_release_config(root):
        case Ok(config):
            ...
        case Err(error):
            console.error(format_release_error(error))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful result carrying a value."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed result carrying an error value."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
