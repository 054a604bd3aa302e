"""Core domain types and logic."""

from .config import ArchiverKind, ReleaseConfig, Verbosity, load_release_config
from .errors import ErrorCode
from .release import (
    CopyOverlay,
    OverlaySpec,
    PackageResult,
    ReleaseDescriptor,
    TemplateOverlay,
    render_template,
)
from .result import Err, Ok, Result

__all__ = [
    # config
    "ArchiverKind",
    "ReleaseConfig",
    "Verbosity",
    "load_release_config",
    # errors
    "ErrorCode",
    # release
    "CopyOverlay",
    "OverlaySpec",
    "PackageResult",
    "ReleaseDescriptor",
    "TemplateOverlay",
    "render_template",
    # result
    "Err",
    "Ok",
    "Result",
]
