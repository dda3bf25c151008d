"""Tests for config comparison helpers."""

from datetime import timedelta

import pytest

from ffthumbs.config import (
    OutputConfig,
    OutputType,
    ScaleBehavior,
    ScaleConfig,
    SpriteDimensions,
    SpritesConfig,
    is_same_output_filters,
    is_same_scale_config,
)


class TestIsSameScaleConfig:
    """Tests for is_same_scale_config."""

    def test_both_none(self):
        assert is_same_scale_config(None, None)

    def test_one_none(self):
        scale = ScaleConfig(320, 180)
        assert not is_same_scale_config(scale, None)
        assert not is_same_scale_config(None, scale)

    def test_equal_fields(self):
        a = ScaleConfig(320, 180, ScaleBehavior.CROP_TO_FIT)
        b = ScaleConfig(320, 180, ScaleBehavior.CROP_TO_FIT)
        assert is_same_scale_config(a, b)

    @pytest.mark.parametrize("other", [
        ScaleConfig(160, 180, ScaleBehavior.CROP_TO_FIT),
        ScaleConfig(320, -1, ScaleBehavior.CROP_TO_FIT),
        ScaleConfig(320, 180, ScaleBehavior.FILL_TO_KEEP_ASPECT_RATIO),
    ])
    def test_any_field_differs(self, other):
        scale = ScaleConfig(320, 180, ScaleBehavior.CROP_TO_FIT)
        assert not is_same_scale_config(scale, other)


class TestIsSameOutputFilters:
    """Tests for is_same_output_filters."""

    def output(self, seconds=5, width=320, height=180,
               behavior=ScaleBehavior.NONE, **kwargs):
        return OutputConfig(
            snapshot_interval=timedelta(seconds=seconds),
            scale=ScaleConfig(width, height, behavior),
            **kwargs,
        )

    def test_both_none(self):
        assert is_same_output_filters(None, None)

    def test_one_none(self):
        assert not is_same_output_filters(self.output(), None)
        assert not is_same_output_filters(None, self.output())

    def test_same_interval_and_scale(self):
        assert is_same_output_filters(self.output(), self.output())

    def test_type_quality_and_destination_are_ignored(self):
        sprites = self.output(
            type=OutputType.SPRITES,
            sprites=SpritesConfig(SpriteDimensions(columns=4, rows=4)),
            quality=3,
            dst_path="sprites/%04d.jpg",
        )
        assert is_same_output_filters(self.output(), sprites)

    def test_interval_differs(self):
        assert not is_same_output_filters(self.output(seconds=5), self.output(seconds=6))

    def test_width_differs(self):
        assert not is_same_output_filters(self.output(), self.output(width=160))

    def test_height_differs(self):
        assert not is_same_output_filters(self.output(), self.output(height=-1))

    def test_behavior_differs(self):
        other = self.output(behavior=ScaleBehavior.FILL_TO_KEEP_ASPECT_RATIO)
        assert not is_same_output_filters(self.output(), other)
