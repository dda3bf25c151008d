"""File based generator settings.

Outputs can be described in a YAML file instead of code::

    concurrency: 2
    headers:
      Authorization: Bearer token
    outputs:
      - type: thumbs
        interval: 6.5          # seconds
        width: 320
        height: 180
        behavior: fill
        dst: thumbs/%04d.jpg
      - type: sprites
        interval: 10
        width: 160
        height: -1
        columns: 8
        rows: 8
        quality: 5
        dst: sprites/%04d.jpg

Field types are checked here; the output rules (interval, scale,
sprite dimensions, quality) are enforced by the validator when the
generator is built.
"""

import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ValidationError as PydanticValidationError, field_validator

from .config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_FILENAME,
    Config,
    OutputConfig,
    OutputType,
    ScaleBehavior,
    ScaleConfig,
    SpriteDimensions,
    SpritesConfig,
)
from .errors import ConfigError

logger = logging.getLogger("ffthumbs")

OUTPUT_TYPES: dict[str, OutputType] = {
    "thumbs": OutputType.THUMBS,
    "thumbnails": OutputType.THUMBS,
    "sprites": OutputType.SPRITES,
}

SCALE_BEHAVIORS: dict[str, ScaleBehavior] = {
    "none": ScaleBehavior.NONE,
    "fill": ScaleBehavior.FILL_TO_KEEP_ASPECT_RATIO,
    "fill_to_keep_aspect_ratio": ScaleBehavior.FILL_TO_KEEP_ASPECT_RATIO,
    "crop": ScaleBehavior.CROP_TO_FIT,
    "crop_to_fit": ScaleBehavior.CROP_TO_FIT,
}


def _lookup(table: dict, value: Union[str, int], what: str):
    if isinstance(value, int):
        return value
    key = str(value).strip().lower().replace("-", "_")
    if key not in table:
        raise ValueError(
            f"unknown {what} {value!r}, expected one of: {', '.join(table)}"
        )
    return table[key]


class OutputSettings(BaseModel):
    """One output as written in a settings file."""
    type: Union[str, int] = OutputType.THUMBS
    # Snapshot interval in seconds
    interval: float = 1.0
    width: int = -1
    height: int = -1
    behavior: Union[str, int] = ScaleBehavior.NONE
    columns: int = 1
    rows: int = 1
    quality: int = 0
    dst: str = DEFAULT_FILENAME

    @field_validator("type")
    @classmethod
    def _check_type(cls, value):
        return _lookup(OUTPUT_TYPES, value, "output type")

    @field_validator("behavior")
    @classmethod
    def _check_behavior(cls, value):
        return _lookup(SCALE_BEHAVIORS, value, "scale behavior")

    def to_output_config(self) -> OutputConfig:
        return OutputConfig(
            type=self.type,
            snapshot_interval=timedelta(seconds=self.interval),
            scale=ScaleConfig(
                width=self.width,
                height=self.height,
                behavior=self.behavior,
            ),
            sprites=SpritesConfig(
                dimensions=SpriteDimensions(columns=self.columns, rows=self.rows),
            ),
            quality=self.quality,
            dst_path=self.dst,
        )


class GeneratorSettings(BaseModel):
    """Top level settings file."""
    ffmpeg_path: Optional[str] = None
    concurrency: int = DEFAULT_CONCURRENCY
    headers: dict[str, str] = {}
    disable_progress_logs: bool = False
    outputs: list[OutputSettings] = []

    def to_config(self) -> Config:
        return Config(
            outputs=[o.to_output_config() for o in self.outputs],
            ffmpeg_path=self.ffmpeg_path,
            concurrency=self.concurrency,
            headers=dict(self.headers),
            disable_progress_logs=self.disable_progress_logs,
        )


def load_settings(path: Union[str, Path]) -> GeneratorSettings:
    """Load generator settings from a YAML file.

    Raises:
        ConfigError: If the file cannot be read or does not match the schema.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read settings file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"settings file {path} must contain a mapping")

    try:
        settings = GeneratorSettings.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(f"invalid settings in {path}: {e}") from e

    logger.debug("Loaded %d output(s) from %s", len(settings.outputs), path)
    return settings
