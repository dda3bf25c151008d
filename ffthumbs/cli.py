"""Command line entry point: ``ffthumbs -i video.mp4 --dst thumbs/%04d.jpg``."""

import argparse
import logging
import os
import queue
import sys
import time
from datetime import timedelta
from pathlib import Path
from typing import Optional

from .config import (
    DEFAULT_CONCURRENCY,
    Config,
    OutputConfig,
    ScaleConfig,
    SpriteDimensions,
    SpritesConfig,
)
from .errors import FFThumbsError
from .generator import GenerateRequest, Generator
from .settings import OUTPUT_TYPES, SCALE_BEHAVIORS, load_settings

logger = logging.getLogger("ffthumbs")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ffthumbs",
        description="Generate thumbnails and sprites from videos with ffmpeg.",
    )
    parser.add_argument("-i", "--input", dest="inputs", action="append",
                        required=True,
                        help="Media path or URL (repeat for several inputs)")
    parser.add_argument("--config", type=Path, default=None,
                        help="YAML settings file describing the outputs; "
                             "output options below are ignored when set")
    parser.add_argument("--interval", type=float, default=7.0,
                        help="Snapshot interval in seconds (default: 7)")
    parser.add_argument("--width", type=int, default=320,
                        help="Thumbnail width, -1 to keep aspect ratio")
    parser.add_argument("--height", type=int, default=180,
                        help="Thumbnail height, -1 to keep aspect ratio")
    parser.add_argument("--behavior", choices=sorted(SCALE_BEHAVIORS),
                        default="none", help="Scale behavior")
    parser.add_argument("--type", dest="output_type",
                        choices=sorted(OUTPUT_TYPES), default="thumbs",
                        help="Output type")
    parser.add_argument("--rows", type=int, default=8, help="Sprite rows")
    parser.add_argument("--cols", type=int, default=8, help="Sprite columns")
    parser.add_argument("--quality", type=int, default=0,
                        help="JPEG quality 1-31, lower is better (0 = ffmpeg default)")
    parser.add_argument("--dst", default="thumbs/%04d.jpg",
                        help="Output destination pattern")
    parser.add_argument("--concurrency", type=int, default=None,
                        help="Max concurrent ffmpeg processes (default: 2); "
                             "overrides the settings file value")
    parser.add_argument("--ffmpeg", dest="ffmpeg_path", default=None,
                        help="Path to ffmpeg binary (default: search PATH)")
    parser.add_argument("--header", dest="headers", action="append", default=[],
                        metavar="'NAME: VALUE'",
                        help="HTTP header for network inputs (repeatable)")
    parser.add_argument("--no-progress", action="store_true",
                        help="Disable ffmpeg progress logs")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    return parser


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"invalid header {value!r}, expected 'Name: Value'")
        headers[name.strip()] = content.strip()
    return headers


def config_from_args(args: argparse.Namespace) -> Config:
    """Build a generator config from parsed command line arguments."""
    if args.config is not None:
        config = load_settings(args.config).to_config()
        if args.ffmpeg_path:
            config.ffmpeg_path = args.ffmpeg_path
    else:
        config = Config(
            outputs=[
                OutputConfig(
                    type=OUTPUT_TYPES[args.output_type],
                    snapshot_interval=timedelta(seconds=args.interval),
                    scale=ScaleConfig(
                        width=args.width,
                        height=args.height,
                        behavior=SCALE_BEHAVIORS[args.behavior],
                    ),
                    sprites=SpritesConfig(
                        dimensions=SpriteDimensions(
                            columns=args.cols, rows=args.rows,
                        ),
                    ),
                    quality=args.quality,
                    dst_path=args.dst,
                ),
            ],
            ffmpeg_path=args.ffmpeg_path,
            concurrency=DEFAULT_CONCURRENCY,
        )

    if args.concurrency is not None:
        config.concurrency = args.concurrency
    config.headers.update(_parse_headers(args.headers))
    if args.no_progress:
        config.disable_progress_logs = True
    return config


def input_dir_names(media_urls: list[str]) -> list[str]:
    """One sub directory name per input, named after its stem.

    Inputs sharing a stem get a numeric suffix so they never write to the
    same place, e.g. ``video``, ``video-2``.
    """
    names = []
    seen: dict[str, int] = {}
    for media_url in media_urls:
        stem = Path(media_url.rstrip("/")).stem or "input"
        name = stem
        while name in seen:
            seen[stem] += 1
            name = f"{stem}-{seen[stem]}"
        seen.setdefault(stem, 1)
        seen.setdefault(name, 1)
        names.append(name)
    return names


def input_destinations(
    generator: Generator,
    subdir: Optional[str] = None,
) -> dict[int, str]:
    """Destinations for one input, inside ``subdir`` when given."""
    destinations = {}
    for output in generator.outputs:
        dst = output.dst_path
        if subdir:
            dst = os.path.join(os.path.dirname(dst), subdir, os.path.basename(dst))
        destinations[output.index] = dst
    return destinations


def _make_dirs(destinations: dict[int, str]) -> None:
    for dst in destinations.values():
        directory = os.path.dirname(dst)
        if directory:
            os.makedirs(directory, exist_ok=True)


def run(args: argparse.Namespace) -> int:
    config = config_from_args(args)
    generator = Generator(config)

    if len(args.inputs) > 1:
        subdirs = input_dir_names(args.inputs)
    else:
        subdirs = [None]
    requests = []
    for media_url, subdir in zip(args.inputs, subdirs):
        destinations = input_destinations(generator, subdir)
        _make_dirs(destinations)
        requests.append(GenerateRequest(media_url=media_url, output_dst=destinations))

    start = time.monotonic()

    if len(requests) == 1:
        try:
            generator.generate(requests[0])
        except FFThumbsError as e:
            logger.error("Generation failed for %s: %s", requests[0].media_url, e)
            return 1
        logger.info("Done in %.2fs", time.monotonic() - start)
        return 0

    done: queue.Queue = queue.Queue()
    with generator:
        for req in requests:
            req.done_queue = done
            generator.generate_async(req)

    failed = 0
    for _ in requests:
        res = done.get()
        if res.error is not None:
            failed += 1
            logger.error(
                "Request %d (%s) failed after %.2fs: %s",
                res.request.request_id, res.request.media_url,
                res.duration, res.error,
            )
        else:
            logger.info(
                "Request %d (%s) processed in %.2fs",
                res.request.request_id, res.request.media_url, res.duration,
            )

    logger.info("Done in %.2fs, %d of %d failed",
                time.monotonic() - start, failed, len(requests))
    return 1 if failed else 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return run(args)
    except (FFThumbsError, ValueError) as e:
        logger.error("%s", e)
        return 2
    except OSError as e:
        logger.error("Cannot prepare outputs: %s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
