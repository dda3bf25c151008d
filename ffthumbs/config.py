"""Output and generator configuration."""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from enum import IntEnum
from typing import Callable, Optional

# Output default filename, resolved by ffmpeg per emitted frame
DEFAULT_FILENAME = "%04d.jpg"

# Concurrency used when the configured value is not positive
DEFAULT_CONCURRENCY = 2


class ScaleBehavior(IntEnum):
    """How frames are fitted into the target resolution.

    Only meaningful when both width and height are fixed positive values.
    """
    # Plain scale, aspect ratio is not preserved
    NONE = 0
    # Shrink to fit keeping aspect ratio, then pad with black bars
    FILL_TO_KEEP_ASPECT_RATIO = 1
    # Grow to fill keeping aspect ratio, then crop to the exact size
    CROP_TO_FIT = 2


class OutputType(IntEnum):
    """Kind of artifact produced by an output."""
    # One image per snapshot interval
    THUMBS = 0
    # Snapshots tiled into grid images
    SPRITES = 1


@dataclass
class ScaleConfig:
    """Output resolution.

    Width or height may be -1 to derive it from the other dimension
    respecting the source aspect ratio.
    """
    width: int = -1
    height: int = -1
    behavior: ScaleBehavior = ScaleBehavior.NONE

    def is_fixed_resolution(self) -> bool:
        return self.width > 0 and self.height > 0

    def key(self) -> tuple[int, int, int]:
        """Grouping key shared by outputs with identical scaling."""
        return (int(self.behavior), self.width, self.height)


@dataclass
class SpriteDimensions:
    """Sprite grid size."""
    columns: int = 1
    rows: int = 1


@dataclass
class SpritesConfig:
    """Sprite output settings, used when the output type is SPRITES."""
    dimensions: SpriteDimensions = field(default_factory=SpriteDimensions)


@dataclass
class OutputConfig:
    """A single output stream of thumbnails or sprites."""
    type: OutputType = OutputType.THUMBS
    snapshot_interval: timedelta = timedelta(seconds=1)
    scale: ScaleConfig = field(default_factory=ScaleConfig)
    sprites: SpritesConfig = field(default_factory=SpritesConfig)
    # 0 = ffmpeg default, otherwise 1-31 (q:v, lower is better)
    quality: int = 0
    # Can be overridden per request with GenerateRequest.output_dst
    dst_path: str = DEFAULT_FILENAME

    # Assigned by the filter graph compiler
    index: int = field(default=-1, init=False, compare=False)
    in_name: str = field(default="", init=False, compare=False, repr=False)
    out_name: str = field(default="", init=False, compare=False, repr=False)


@dataclass
class Config:
    """Generator configuration."""
    outputs: list[OutputConfig] = field(default_factory=list)
    # Path to ffmpeg binary, searched in PATH when empty
    ffmpeg_path: Optional[str] = None
    # Max concurrent ffmpeg processes for generate_async
    concurrency: int = DEFAULT_CONCURRENCY
    # Headers passed to ffmpeg when the media is a network URL
    headers: dict[str, str] = field(default_factory=dict)
    logger: Optional[logging.Logger] = None
    disable_progress_logs: bool = False
    # Called with a ProgressInfo for every progress block ffmpeg reports
    progress_callback: Optional[Callable] = None


def is_same_scale_config(
    c1: Optional[ScaleConfig],
    c2: Optional[ScaleConfig],
) -> bool:
    """Check whether two scale configurations are equal."""
    if c1 is None and c2 is None:
        return True
    if c1 is None or c2 is None:
        return False
    return (
        c1.width == c2.width
        and c1.height == c2.height
        and c1.behavior == c2.behavior
    )


def is_same_output_filters(
    c1: Optional[OutputConfig],
    c2: Optional[OutputConfig],
) -> bool:
    """Check whether two outputs can share select and scale filters."""
    if c1 is None and c2 is None:
        return True
    if c1 is None or c2 is None:
        return False
    return (
        is_same_scale_config(c1.scale, c2.scale)
        and c1.snapshot_interval == c2.snapshot_interval
    )
