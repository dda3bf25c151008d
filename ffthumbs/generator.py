"""Thumbnail and sprite generation on top of a compiled filter graph."""

import copy
import itertools
import logging
import queue
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .binaries import get_verified_ffmpeg_path
from .config import DEFAULT_FILENAME, Config, OutputConfig
from .errors import ConfigError
from .executor.command_builder import CommandBuilder
from .executor.process_manager import ProcessSession
from .graph import build_complex_filters
from .pool import WorkerPool

logger = logging.getLogger("ffthumbs")


@dataclass
class GenerateRequest:
    """A request to generate all configured outputs for one media file."""
    # Local path or network URL of the media
    media_url: str
    # Output index => destination path, overrides OutputConfig.dst_path
    output_dst: dict[int, str] = field(default_factory=dict)
    # Kills the ffmpeg process when set
    cancel_event: Optional[threading.Event] = None
    # Receives exactly one GenerateResult when the request is processed
    # asynchronously
    done_queue: Optional[queue.Queue] = None
    # Seconds after which cancel_event is set, no deadline when None
    timeout: Optional[float] = None
    # Extra attributes attached to every log record of this request
    log_extra: dict = field(default_factory=dict)

    # Assigned by Generator.generate_async
    request_id: int = field(default=0, init=False)


@dataclass
class GenerateResult:
    """Outcome of an asynchronously processed request."""
    request: GenerateRequest
    error: Optional[Exception]
    # Seconds spent processing the request
    duration: float

    @property
    def success(self) -> bool:
        return self.error is None


class Generator:
    """Generates thumbnails and sprites with ffmpeg.

    The filter graph is compiled once from the configured outputs; every
    request reuses it and only swaps the input and destinations.
    """

    def __init__(self, config: Optional[Config]):
        """Initialize the generator.

        Args:
            config: Generator configuration. Outputs are copied, later
                changes to the config do not affect this generator.

        Raises:
            ConfigError: If config is None.
            BinaryNotFoundError: If ffmpeg cannot be found.
            BinaryVersionError: If ffmpeg is too old.
            ValidationError: If the outputs are invalid.
        """
        if config is None:
            raise ConfigError("no config passed")

        self.ffmpeg_path = get_verified_ffmpeg_path(config.ffmpeg_path)
        self.logger = config.logger or logger

        outputs = [copy.deepcopy(output) for output in config.outputs]
        for output in outputs:
            if not output.dst_path:
                output.dst_path = DEFAULT_FILENAME

        self._filter_graph = build_complex_filters(outputs)
        self._outputs: tuple[OutputConfig, ...] = tuple(outputs)
        self._headers = dict(config.headers)
        self._progress_enabled = not config.disable_progress_logs
        self._progress_callback = config.progress_callback

        self._pool = WorkerPool(config.concurrency, name="ffthumbs")

        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()

        self._outstanding = 0
        self._outstanding_cond = threading.Condition()

        self.logger.debug("Compiled filter graph: %s", self._filter_graph)

    @property
    def filter_graph(self) -> str:
        """The -filter_complex argument shared by all requests."""
        return self._filter_graph

    @property
    def outputs(self) -> tuple[OutputConfig, ...]:
        return self._outputs

    @property
    def concurrency(self) -> int:
        return self._pool.capacity

    def set_concurrency(self, concurrency: int) -> None:
        """Set how many ffmpeg processes may run at once.

        Non-positive values fall back to 2. Requests already running are
        not affected.
        """
        self._pool.tune(concurrency)

    def build_args(self, req: GenerateRequest) -> list[str]:
        """Build the full ffmpeg argument list for a request."""
        builder = CommandBuilder(self.ffmpeg_path)
        builder.global_options("-y")
        builder.log_level("error")
        builder.headers(self._headers)
        builder.input(req.media_url)
        builder.complex_filter(self._filter_graph)
        builder.no_vsync()

        for output in self._outputs:
            dst = req.output_dst.get(output.index, output.dst_path)
            builder.map_output(output.out_name, dst, output.quality)

        if self._progress_enabled:
            builder.progress("pipe:1")

        return builder.build_args()

    def generate(self, req: GenerateRequest) -> None:
        """Generate outputs for a request, blocking until ffmpeg exits.

        Raises:
            ProcessError: If ffmpeg fails to start or exits non-zero.
            ProcessCancelledError: If the request was cancelled.
        """
        with self._track():
            self._execute(req)

    def generate_async(self, req: GenerateRequest) -> int:
        """Submit a request to the worker pool.

        Blocks only while the pool is at capacity, never until the request
        finishes. When ``req.done_queue`` is set, exactly one
        GenerateResult is put on it.

        Returns:
            The request id, strictly increasing per generator.

        Raises:
            PoolClosedError: If the generator has been closed.
        """
        with self._id_lock:
            req.request_id = next(self._ids)

        self._begin()
        try:
            self._pool.submit(self._handle_request, req)
        except Exception:
            self._end()
            raise

        return req.request_id

    def wait(self) -> None:
        """Block until every submitted request (sync or async) has finished."""
        with self._outstanding_cond:
            while self._outstanding:
                self._outstanding_cond.wait()

    def close(self) -> None:
        """Stop accepting async requests; in-flight ones still complete."""
        self._pool.close()

    def __enter__(self) -> "Generator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wait()
        self.close()

    def _handle_request(self, req: GenerateRequest) -> None:
        start = time.monotonic()
        error: Optional[Exception] = None
        try:
            self._execute(req)
        except Exception as e:
            error = e

        try:
            if req.done_queue is not None:
                req.done_queue.put(GenerateResult(
                    request=req,
                    error=error,
                    duration=time.monotonic() - start,
                ))
            elif error is not None:
                self.logger.warning(
                    "Request %d failed with no result queue attached: %s",
                    req.request_id, error,
                    extra=self._log_extra(req),
                )
        finally:
            self._end()

    def _execute(self, req: GenerateRequest) -> None:
        cancel_event = req.cancel_event
        timer = None
        if req.timeout is not None:
            if cancel_event is None:
                cancel_event = threading.Event()
            timer = threading.Timer(req.timeout, cancel_event.set)
            timer.daemon = True
            timer.start()

        session = ProcessSession(
            self.build_args(req),
            cancel_event=cancel_event,
            parse_progress=self._progress_enabled,
            progress_callback=self._progress_callback,
            log=self.logger,
            log_extra=self._log_extra(req),
        )
        try:
            result = session.run()
        finally:
            if timer is not None:
                timer.cancel()

        result.raise_for_status()

    def _log_extra(self, req: GenerateRequest) -> dict:
        extra = dict(req.log_extra)
        if req.request_id > 0:
            extra["request_id"] = req.request_id
        return extra

    def _begin(self) -> None:
        with self._outstanding_cond:
            self._outstanding += 1

    def _end(self) -> None:
        with self._outstanding_cond:
            self._outstanding -= 1
            if not self._outstanding:
                self._outstanding_cond.notify_all()

    @contextmanager
    def _track(self) -> Iterator[None]:
        self._begin()
        try:
            yield
        finally:
            self._end()
