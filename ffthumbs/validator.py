"""Validation of output configurations before filter graph compilation."""

from datetime import timedelta
from typing import Sequence

from .config import OutputConfig, OutputType, ScaleBehavior
from .errors import ValidationError, ValidationErrorType

_MIN_SNAPSHOT_INTERVAL = timedelta(milliseconds=1)


def _known(enum_cls, value) -> bool:
    try:
        enum_cls(value)
    except ValueError:
        return False
    return True


def validate_outputs(outputs: Sequence[OutputConfig]) -> None:
    """Validate outputs, raising on the first violated rule.

    Args:
        outputs: Output configurations in generator order.

    Raises:
        ValidationError: Typed with the rule that failed.
    """
    if not outputs:
        raise ValidationError(
            ValidationErrorType.NO_OUTPUTS,
            "at least one output should be provided",
        )

    for idx, output in enumerate(outputs):
        if output.quality != 0 and not 1 <= output.quality <= 31:
            raise ValidationError(
                ValidationErrorType.QUALITY,
                f"output {idx} has wrong quality, valid values are 1-31, "
                f"got {output.quality}",
            )

        if output.snapshot_interval < _MIN_SNAPSHOT_INTERVAL:
            raise ValidationError(
                ValidationErrorType.SNAPSHOT_INTERVAL,
                f"output {idx} snapshot interval is less than one millisecond",
            )

        scale = output.scale
        if scale.width < 0 and scale.height < 0:
            raise ValidationError(
                ValidationErrorType.SCALE,
                f"output {idx} scale has both negative width and height",
            )
        if scale.width == 0:
            raise ValidationError(
                ValidationErrorType.SCALE,
                f"output {idx} scale width cannot be zero",
            )
        if scale.height == 0:
            raise ValidationError(
                ValidationErrorType.SCALE,
                f"output {idx} scale height cannot be zero",
            )

        if output.type == OutputType.SPRITES:
            dims = output.sprites.dimensions
            if dims.rows < 1:
                raise ValidationError(
                    ValidationErrorType.SPRITE_DIMS,
                    f"output {idx} sprite rows dimension is less than 1",
                )
            if dims.columns < 1:
                raise ValidationError(
                    ValidationErrorType.SPRITE_DIMS,
                    f"output {idx} sprite columns dimension is less than 1",
                )
        elif not _known(OutputType, output.type):
            raise ValidationError(
                ValidationErrorType.OUTPUT_TYPE,
                f"output {idx} has unknown type: {output.type}",
            )

        if not _known(ScaleBehavior, scale.behavior):
            raise ValidationError(
                ValidationErrorType.SCALE_BEHAVIOR,
                f"output {idx} has unknown scale behavior: {scale.behavior}",
            )
