"""Exception types raised by ffthumbs."""

from enum import IntEnum
from typing import Optional


class FFThumbsError(Exception):
    """Base class for all ffthumbs errors."""


class ConfigError(FFThumbsError):
    """Raised when a generator configuration is missing or unusable."""


class ValidationErrorType(IntEnum):
    """Which output validation rule was violated."""
    NO_OUTPUTS = 0
    QUALITY = 1
    SNAPSHOT_INTERVAL = 2
    OUTPUT_TYPE = 3
    SCALE = 4
    SPRITE_DIMS = 5
    SCALE_BEHAVIOR = 6


class ValidationError(FFThumbsError):
    """An output configuration violates one validation rule."""

    def __init__(self, type: ValidationErrorType, msg: str):
        super().__init__(msg)
        self.type = type
        self.msg = msg

    def __str__(self) -> str:
        return self.msg


class BinaryNotFoundError(FFThumbsError):
    """The ffmpeg executable could not be located."""


class BinaryVersionError(FFThumbsError):
    """The ffmpeg executable is too old or reports an unreadable version."""


class ProcessError(FFThumbsError):
    """An ffmpeg process failed to start or exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        return_code: Optional[int] = None,
        stderr: str = "",
        command: str = "",
    ):
        super().__init__(message)
        self.return_code = return_code
        self.stderr = stderr
        self.command = command


class ProcessCancelledError(ProcessError):
    """The ffmpeg process was killed because its request was cancelled."""


class PoolClosedError(FFThumbsError):
    """A request was submitted to a worker pool that has been closed."""
