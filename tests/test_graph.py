"""Tests for the filter graph compiler."""

from datetime import timedelta

import pytest

from ffthumbs.config import (
    OutputConfig,
    OutputType,
    ScaleBehavior,
    ScaleConfig,
    SpriteDimensions,
    SpritesConfig,
)
from ffthumbs.errors import ValidationError, ValidationErrorType
from ffthumbs.graph import (
    build_complex_filters,
    build_scale_chain,
    format_interval,
    group_outputs,
)

SELECT_6_5 = r"[0:v]select=bitor(gte(t-prev_selected_t\,6.5)\,isnan(prev_selected_t))"


def thumbs(ms=6500, width=320, height=180, behavior=ScaleBehavior.NONE):
    return OutputConfig(
        type=OutputType.THUMBS,
        snapshot_interval=timedelta(milliseconds=ms),
        scale=ScaleConfig(width, height, behavior),
    )


def sprites(ms=6500, width=320, height=180, columns=8, rows=8,
            behavior=ScaleBehavior.NONE):
    return OutputConfig(
        type=OutputType.SPRITES,
        snapshot_interval=timedelta(milliseconds=ms),
        scale=ScaleConfig(width, height, behavior),
        sprites=SpritesConfig(SpriteDimensions(columns=columns, rows=rows)),
    )


class TestFormatInterval:
    """Tests for interval rendering."""

    def test_fractional_seconds(self):
        assert format_interval(timedelta(milliseconds=6500)) == "6.5"

    def test_whole_seconds_have_no_trailing_zero(self):
        assert format_interval(timedelta(seconds=7)) == "7"

    def test_millisecond(self):
        assert format_interval(timedelta(milliseconds=1)) == "0.001"

    def test_large_interval_is_not_scientific(self):
        assert format_interval(timedelta(hours=1000)) == "3600000"

    def test_microsecond_precision(self):
        interval = timedelta(seconds=1, microseconds=250)
        assert format_interval(interval) == "1.00025"


class TestScaleChain:
    """Tests for scale, pad and crop filters."""

    def test_plain_scale(self):
        chain = build_scale_chain(ScaleConfig(320, -1, ScaleBehavior.NONE))
        assert chain.to_string() == "scale=320:-1"

    def test_fill_keeps_aspect_ratio_and_pads(self):
        chain = build_scale_chain(
            ScaleConfig(320, 180, ScaleBehavior.FILL_TO_KEEP_ASPECT_RATIO)
        )
        assert chain.to_string() == (
            "scale=320:180:force_original_aspect_ratio=decrease,"
            "pad=320:180:-1:-1:color=black"
        )

    def test_crop_to_fit(self):
        chain = build_scale_chain(ScaleConfig(320, 180, ScaleBehavior.CROP_TO_FIT))
        assert chain.to_string() == (
            "scale=320:180:force_original_aspect_ratio=increase,crop=320:180"
        )

    def test_fill_without_fixed_height_is_plain_scale(self):
        chain = build_scale_chain(
            ScaleConfig(320, -1, ScaleBehavior.FILL_TO_KEEP_ASPECT_RATIO)
        )
        assert chain.to_string() == "scale=320:-1"

    def test_crop_without_fixed_width_is_plain_scale(self):
        chain = build_scale_chain(ScaleConfig(-1, 180, ScaleBehavior.CROP_TO_FIT))
        assert chain.to_string() == "scale=-1:180"


class TestBuildComplexFilters:
    """Tests for build_complex_filters."""

    def test_single_thumbs_output(self):
        outputs = [thumbs()]
        graph = build_complex_filters(outputs)
        assert graph == SELECT_6_5 + ",scale=320:180[thumbs-0-out]"
        assert outputs[0].index == 0
        assert outputs[0].out_name == "thumbs-0-out"

    def test_fill_with_derived_dimension_has_no_pad(self):
        outputs = [thumbs(height=-1, behavior=ScaleBehavior.FILL_TO_KEEP_ASPECT_RATIO)]
        graph = build_complex_filters(outputs)
        assert "pad=" not in graph
        assert graph == SELECT_6_5 + ",scale=320:-1[thumbs-0-out]"

    def test_single_sprites_output(self):
        outputs = [sprites(columns=4, rows=2)]
        graph = build_complex_filters(outputs)
        assert graph == SELECT_6_5 + ",scale=320:180,tile=4x2[sprites-0-out]"
        assert outputs[0].out_name == "sprites-0-out"

    def test_shared_thumbs_use_one_split(self):
        """Same interval and scale share select and scale stages."""
        behavior = ScaleBehavior.FILL_TO_KEEP_ASPECT_RATIO
        outputs = [thumbs(behavior=behavior), thumbs(behavior=behavior)]
        graph = build_complex_filters(outputs)

        assert graph == (
            SELECT_6_5
            + ",scale=320:180:force_original_aspect_ratio=decrease,"
            "pad=320:180:-1:-1:color=black,"
            "split=2[thumbs-0-out][thumbs-1-out]"
        )
        assert graph.count("select=") == 1
        assert graph.count("scale=") == 1
        assert graph.count("pad=") == 1

    def test_different_scales_get_independent_stages(self):
        outputs = [thumbs(width=320, height=180), thumbs(width=160, height=90)]
        graph = build_complex_filters(outputs)

        assert graph.count("select=") == 2
        assert graph.count("scale=") == 2
        assert "split" not in graph
        assert graph == (
            SELECT_6_5 + ",scale=320:180[thumbs-0-out];"
            + SELECT_6_5 + ",scale=160:90[thumbs-1-out]"
        )

    def test_different_intervals_get_independent_stages(self):
        outputs = [thumbs(ms=1000), thumbs(ms=2000)]
        graph = build_complex_filters(outputs)
        assert graph.count("select=") == 2
        assert r"gte(t-prev_selected_t\,1)" in graph
        assert r"gte(t-prev_selected_t\,2)" in graph

    def test_shared_sprites_are_tiled_after_split(self):
        outputs = [sprites(columns=8, rows=8), sprites(columns=4, rows=4)]
        graph = build_complex_filters(outputs)

        assert graph == (
            SELECT_6_5 + ",scale=320:180,split=2[sprites-0][sprites-1];"
            "[sprites-0]tile=8x8[sprites-0-out];"
            "[sprites-1]tile=4x4[sprites-1-out]"
        )
        assert outputs[0].in_name == "sprites-0"
        assert outputs[1].out_name == "sprites-1-out"

    def test_mixed_group(self):
        outputs = [thumbs(), sprites(columns=5, rows=5)]
        graph = build_complex_filters(outputs)

        assert graph == (
            SELECT_6_5 + ",scale=320:180,split=2[thumbs-0-out][sprites-1];"
            "[sprites-1]tile=5x5[sprites-1-out]"
        )
        assert not graph.endswith(";")
        assert ";;" not in graph

    def test_tile_one_by_one(self):
        graph = build_complex_filters([sprites(columns=1, rows=1)])
        assert "tile=1x1" in graph

    def test_node_names_are_unique(self):
        outputs = [
            thumbs(), thumbs(), sprites(), thumbs(ms=1000),
            sprites(ms=1000, width=-1), thumbs(width=640, height=360),
        ]
        build_complex_filters(outputs)
        names = [o.out_name for o in outputs]
        assert len(set(names)) == len(names)
        assert [o.index for o in outputs] == list(range(len(outputs)))

    def test_compilation_is_deterministic(self):
        def make():
            return [
                sprites(ms=1000), thumbs(), thumbs(ms=1000),
                thumbs(width=-1, height=90), sprites(),
            ]

        first_outputs, second_outputs = make(), make()
        first = build_complex_filters(first_outputs)
        second = build_complex_filters(second_outputs)

        assert first == second
        assert [o.out_name for o in first_outputs] == [o.out_name for o in second_outputs]
        assert build_complex_filters(first_outputs) == first

    def test_groups_follow_first_appearance(self):
        outputs = [thumbs(ms=2000), thumbs(ms=1000), thumbs(ms=2000)]
        graph = build_complex_filters(outputs)
        statements = graph.split(";")

        assert len(statements) == 2
        assert statements[0].endswith("split=2[thumbs-0-out][thumbs-2-out]")
        assert statements[1].endswith("[thumbs-1-out]")

    def test_invalid_outputs_raise_before_compiling(self):
        outputs = [thumbs(), sprites(rows=0)]
        with pytest.raises(ValidationError) as exc_info:
            build_complex_filters(outputs)
        assert exc_info.value.type == ValidationErrorType.SPRITE_DIMS
        assert outputs[0].out_name == ""

    def test_no_outputs(self):
        with pytest.raises(ValidationError) as exc_info:
            build_complex_filters([])
        assert exc_info.value.type == ValidationErrorType.NO_OUTPUTS


class TestGroupOutputs:
    """Tests for output grouping."""

    def test_groups_by_interval_then_scale(self):
        a, b, c, d = thumbs(), sprites(), thumbs(width=160), thumbs(ms=100)
        groups = group_outputs([a, b, c, d])

        assert list(groups) == [timedelta(milliseconds=6500), timedelta(milliseconds=100)]
        by_scale = groups[timedelta(milliseconds=6500)]
        assert list(by_scale.values()) == [[a, b], [c]]

    def test_behavior_is_part_of_the_key(self):
        groups = group_outputs([
            thumbs(behavior=ScaleBehavior.NONE),
            thumbs(behavior=ScaleBehavior.CROP_TO_FIT),
        ])
        assert len(groups[timedelta(milliseconds=6500)]) == 2
