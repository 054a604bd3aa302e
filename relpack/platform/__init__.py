"""Platform abstraction layer."""

from .files import EXECUTABLE_MODE, atomic_copy_file, make_executable
from .process import ProcessError, format_command, run

__all__ = [
    # files
    "EXECUTABLE_MODE",
    "atomic_copy_file",
    "make_executable",
    # process
    "ProcessError",
    "format_command",
    "run",
]
