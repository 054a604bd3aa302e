"""Release pipeline services."""

from .archiver import Archiver, BuiltinZipArchiver, ZipCommandArchiver, archiver_for
from .assembler import CommandAssembler, ReleaseAssembler, describe_release
from .overlays import apply_overlays, apply_platform_overlays
from .packager import package_release
from .pipeline import ReleasePipeline, Stage

__all__ = [
    # archiver
    "Archiver",
    "BuiltinZipArchiver",
    "ZipCommandArchiver",
    "archiver_for",
    # assembler
    "CommandAssembler",
    "ReleaseAssembler",
    "describe_release",
    # overlays
    "apply_overlays",
    "apply_platform_overlays",
    # packager
    "package_release",
    # pipeline
    "ReleasePipeline",
    "Stage",
]
