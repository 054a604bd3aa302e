"""Exit codes for CLI commands.

Every release failure maps to the same non-zero status. Scripts and CI jobs
only need to distinguish "package built" from "nothing usable was produced".
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. Values must remain stable."""

    OK = 0
    RELEASE_ERROR = 1
