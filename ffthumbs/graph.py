"""Compile output configurations into a single ffmpeg -filter_complex graph.

Outputs are grouped by snapshot interval and then by scale settings.
Every group shares one select + scale computation; groups with more than
one member fan out through a ``split`` filter, sprite members are tiled
afterwards in their own statements::

    [0:v]select=...,scale=320:180,split=2[thumbs-0-out][sprites-1];
    [sprites-1]tile=8x8[sprites-1-out]

Group order follows the order outputs first appear in, so compiling the
same list twice yields the same graph and the same node names.
"""

from datetime import timedelta
from typing import Sequence

from .config import OutputConfig, OutputType, ScaleBehavior, ScaleConfig
from .executor.command_builder import Filter, FilterChain, FilterGraph
from .validator import validate_outputs

# Video stream of the first (and only) input
INPUT_LABEL = "0:v"

_MICROSECOND = timedelta(microseconds=1)

OutputGroups = dict[timedelta, dict[tuple[int, int, int], list[OutputConfig]]]


def format_interval(interval: timedelta) -> str:
    """Render an interval in seconds, truncated to microseconds.

    Uses the shortest representation that round-trips, without trailing
    zeros, e.g. ``6.5``, ``7`` or ``0.001``.
    """
    seconds = (interval // _MICROSECOND) / 1_000_000
    text = repr(seconds)
    if text.endswith(".0"):
        text = text[:-2]
    return text


def build_select_filter(interval: timedelta) -> Filter:
    """Select a frame once ``interval`` has passed since the last selected one."""
    expr = (
        f"bitor(gte(t-prev_selected_t\\,{format_interval(interval)})"
        f"\\,isnan(prev_selected_t))"
    )
    return Filter("select", args=[expr], inputs=[INPUT_LABEL])


def build_scale_chain(scale: ScaleConfig) -> FilterChain:
    """Build scale (and pad or crop) filters for a scale configuration."""
    chain = FilterChain()
    width, height = scale.width, scale.height

    # pad and crop need a fixed target size
    behavior = scale.behavior if scale.is_fixed_resolution() else ScaleBehavior.NONE

    if behavior == ScaleBehavior.FILL_TO_KEEP_ASPECT_RATIO:
        chain.add_filter(
            "scale", [width, height],
            {"force_original_aspect_ratio": "decrease"},
        )
        chain.add_filter("pad", [width, height, -1, -1], {"color": "black"})
    elif behavior == ScaleBehavior.CROP_TO_FIT:
        chain.add_filter(
            "scale", [width, height],
            {"force_original_aspect_ratio": "increase"},
        )
        chain.add_filter("crop", [width, height])
    else:
        chain.add_filter("scale", [width, height])

    return chain


def build_tile_filter(output: OutputConfig) -> Filter:
    dims = output.sprites.dimensions
    return Filter("tile", args=[f"{dims.columns}x{dims.rows}"])


def group_outputs(outputs: Sequence[OutputConfig]) -> OutputGroups:
    """Group outputs by snapshot interval and then by scale settings."""
    groups: OutputGroups = {}
    for output in outputs:
        by_scale = groups.setdefault(output.snapshot_interval, {})
        by_scale.setdefault(output.scale.key(), []).append(output)
    return groups


def assign_node_names(output: OutputConfig) -> None:
    """Set the graph labels an output is fed from and mapped by."""
    if output.type == OutputType.SPRITES:
        output.in_name = f"sprites-{output.index}"
        output.out_name = f"sprites-{output.index}-out"
    else:
        output.in_name = ""
        output.out_name = f"thumbs-{output.index}-out"


def _build_group(graph: FilterGraph, members: list[OutputConfig]) -> None:
    for output in members:
        assign_node_names(output)

    head = members[0]
    chain = FilterChain()
    chain.add(build_select_filter(head.snapshot_interval))
    chain.extend(build_scale_chain(head.scale))

    if len(members) == 1:
        if head.type == OutputType.SPRITES:
            chain.add(build_tile_filter(head))
        chain.last.outputs.append(head.out_name)
        graph.add(chain)
        return

    split = Filter("split", args=[len(members)])
    sprites = []
    for output in members:
        if output.type == OutputType.SPRITES:
            split.outputs.append(output.in_name)
            sprites.append(output)
        else:
            split.outputs.append(output.out_name)
    chain.add(split)
    graph.add(chain)

    for output in sprites:
        tile = build_tile_filter(output)
        tile.inputs.append(output.in_name)
        tile.outputs.append(output.out_name)
        graph.add(FilterChain([tile]))


def build_complex_filters(outputs: Sequence[OutputConfig]) -> str:
    """Build the ffmpeg -filter_complex argument for the given outputs.

    Each output gets ``index`` set to its position and its graph node
    names assigned, ready to be used in ``-map`` arguments.

    Raises:
        ValidationError: If the outputs are invalid; nothing is compiled.
    """
    validate_outputs(outputs)

    for idx, output in enumerate(outputs):
        output.index = idx

    graph = FilterGraph()
    for by_scale in group_outputs(outputs).values():
        for members in by_scale.values():
            _build_group(graph, members)

    return graph.to_string()
