"""
ffthumbs: thumbnails and sprites from videos with ffmpeg

Compiles any number of outputs (thumbnails or sprite sheets, each with its
own snapshot interval and scaling) into one ffmpeg filter graph and runs
generation requests on a bounded worker pool.

Example usage:
    from datetime import timedelta
    from ffthumbs import Config, Generator, GenerateRequest, OutputConfig, ScaleConfig

    gen = Generator(Config(outputs=[
        OutputConfig(snapshot_interval=timedelta(seconds=7),
                     scale=ScaleConfig(320, 180)),
    ]))
    gen.generate(GenerateRequest(media_url="video.mp4"))
"""

__version__ = "1.0.0"

from .config import (
    DEFAULT_FILENAME,
    Config,
    OutputConfig,
    OutputType,
    ScaleBehavior,
    ScaleConfig,
    SpriteDimensions,
    SpritesConfig,
    is_same_output_filters,
    is_same_scale_config,
)
from .errors import (
    BinaryNotFoundError,
    BinaryVersionError,
    ConfigError,
    FFThumbsError,
    PoolClosedError,
    ProcessCancelledError,
    ProcessError,
    ValidationError,
    ValidationErrorType,
)
from .executor.process_manager import ProgressInfo
from .generator import GenerateRequest, GenerateResult, Generator
from .graph import build_complex_filters
from .validator import validate_outputs

__all__ = [
    "DEFAULT_FILENAME",
    "Config",
    "OutputConfig",
    "OutputType",
    "ScaleBehavior",
    "ScaleConfig",
    "SpriteDimensions",
    "SpritesConfig",
    "is_same_output_filters",
    "is_same_scale_config",
    "BinaryNotFoundError",
    "BinaryVersionError",
    "ConfigError",
    "FFThumbsError",
    "PoolClosedError",
    "ProcessCancelledError",
    "ProcessError",
    "ValidationError",
    "ValidationErrorType",
    "ProgressInfo",
    "GenerateRequest",
    "GenerateResult",
    "Generator",
    "build_complex_filters",
    "validate_outputs",
]
