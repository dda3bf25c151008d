"""FFMPEG command building and process execution."""

from .command_builder import (
    CommandBuilder,
    Filter,
    FilterChain,
    FilterGraph,
    FFMPEGCommand,
    OutputMapping,
    build_headers_str,
)
from .process_manager import (
    ProcessResult,
    ProcessSession,
    ProgressInfo,
    ProgressParser,
    launch_command,
)

__all__ = [
    "CommandBuilder",
    "Filter",
    "FilterChain",
    "FilterGraph",
    "FFMPEGCommand",
    "OutputMapping",
    "build_headers_str",
    "ProcessResult",
    "ProcessSession",
    "ProgressInfo",
    "ProgressParser",
    "launch_command",
]
