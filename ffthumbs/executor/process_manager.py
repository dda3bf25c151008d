"""Process management for FFMPEG execution."""

import logging
import os
import re
import shlex
import subprocess
import threading
import time
from dataclasses import dataclass, field
from typing import IO, Callable, Optional

from ..errors import ProcessCancelledError, ProcessError

logger = logging.getLogger("ffthumbs")

PROGRESS_PATTERN = re.compile(r"progress=([\w.]+)")
OUT_TIME_PATTERN = re.compile(r"out_time=([^ ]+)")
SPEED_PATTERN = re.compile(r"speed=([^ ]+)")

# How often the cancel watcher re-checks whether the process is still alive
_CANCEL_POLL_INTERVAL = 0.05


@dataclass
class ProcessResult:
    """Result of an FFMPEG process execution."""
    success: bool
    return_code: int
    stdout: str
    stderr: str
    command: str
    duration: Optional[float] = None
    error_message: Optional[str] = None
    cancelled: bool = False

    def raise_for_status(self) -> None:
        """Raise ProcessError if the process did not succeed."""
        if self.success:
            return
        error_cls = ProcessCancelledError if self.cancelled else ProcessError
        raise error_cls(
            self.error_message or "ffmpeg failed",
            return_code=self.return_code,
            stderr=self.stderr,
            command=self.command,
        )


@dataclass
class ProgressInfo:
    """Progress information during FFMPEG execution."""
    progress: str = ""
    time: str = ""
    speed: str = ""


@dataclass
class ProgressParser:
    """Parse ``-progress`` output line by line.

    Every line is matched against the progress, out_time and speed patterns
    independently. A line carrying a progress token closes a block and
    yields an event with the latest time and speed seen so far.
    """
    current: ProgressInfo = field(default_factory=ProgressInfo)

    def feed(self, line: str) -> Optional[ProgressInfo]:
        changed = False

        match = PROGRESS_PATTERN.search(line)
        if match:
            self.current.progress = match.group(1)
            changed = True

        match = OUT_TIME_PATTERN.search(line)
        if match:
            self.current.time = match.group(1).strip()

        match = SPEED_PATTERN.search(line)
        if match:
            self.current.speed = match.group(1).strip()

        if not changed:
            return None
        return ProgressInfo(
            progress=self.current.progress,
            time=self.current.time,
            speed=self.current.speed,
        )


class ProcessSession:
    """A single ffmpeg invocation.

    Stderr is always collected on a background thread. Stdout is either
    parsed for progress blocks, captured, or discarded so the process can
    never stall on a full pipe. When ``cancel_event`` is set while the
    process runs, the process is killed and the result is marked cancelled.
    """

    def __init__(
        self,
        args: list[str],
        cancel_event: Optional[threading.Event] = None,
        parse_progress: bool = False,
        capture_stdout: bool = False,
        progress_callback: Optional[Callable[[ProgressInfo], None]] = None,
        log: Optional[logging.Logger] = None,
        log_extra: Optional[dict] = None,
    ):
        self.args = list(args)
        self.cancel_event = cancel_event
        self.parse_progress = parse_progress
        self.capture_stdout = capture_stdout
        self.progress_callback = progress_callback
        self.logger = log or logger
        self.log_extra = log_extra or {}
        self.name = os.path.basename(self.args[0])
        self.command = shlex.join(self.args)
        self._cancelled = False

    def run(self) -> ProcessResult:
        """Run the process to completion and return its result."""
        if self.cancel_event is not None and self.cancel_event.is_set():
            return self._failure("Cancelled before start", cancelled=True)

        self.logger.debug(
            "Launching %s: %s", self.name, self.command, extra=self.log_extra
        )

        need_stdout = self.parse_progress or self.capture_stdout
        start = time.monotonic()
        try:
            process = subprocess.Popen(
                self.args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE if need_stdout else subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            self.logger.error(
                "%s start failed: %s", self.name, e, extra=self.log_extra
            )
            return self._failure(str(e))

        stderr_lines: list[str] = []
        stderr_thread = threading.Thread(
            target=_drain, args=(process.stderr, stderr_lines), daemon=True
        )
        stderr_thread.start()

        finished = threading.Event()
        watcher = None
        if self.cancel_event is not None:
            watcher = threading.Thread(
                target=self._watch_cancel, args=(process, finished), daemon=True
            )
            watcher.start()

        stdout_lines: list[str] = []
        if need_stdout:
            self._read_stdout(process.stdout, stdout_lines)

        return_code = process.wait()
        duration = time.monotonic() - start
        finished.set()

        stderr_thread.join()
        if watcher is not None:
            watcher.join()

        stderr = "".join(stderr_lines)
        result = ProcessResult(
            success=return_code == 0 and not self._cancelled,
            return_code=return_code,
            stdout="".join(stdout_lines),
            stderr=stderr,
            command=self.command,
            duration=duration,
            cancelled=self._cancelled,
        )

        if self._cancelled:
            result.error_message = f"{self.name} was cancelled"
        elif not result.success:
            result.error_message = _parse_error(stderr)

        if result.success:
            self.logger.info(
                "%s command finished in %.3fs", self.name, duration,
                extra=self.log_extra,
            )
        else:
            self.logger.error(
                "%s run failed (exit code %s): %s\n%s",
                self.name, return_code, result.error_message, stderr,
                extra=self.log_extra,
            )

        return result

    def _read_stdout(self, stream: IO[str], lines: list[str]) -> None:
        parser = ProgressParser()
        for line in stream:
            if self.capture_stdout:
                lines.append(line)
            if not self.parse_progress:
                continue

            info = parser.feed(line)
            if info is None:
                continue

            self.logger.info(
                "Progress update: progress=%s time=%s speed=%s",
                info.progress, info.time, info.speed,
                extra=self.log_extra,
            )
            if self.progress_callback:
                try:
                    self.progress_callback(info)
                except Exception:
                    self.logger.exception(
                        "Progress callback failed", extra=self.log_extra
                    )
        stream.close()

    def _watch_cancel(
        self,
        process: subprocess.Popen,
        finished: threading.Event,
    ) -> None:
        while not finished.is_set():
            if self.cancel_event.wait(_CANCEL_POLL_INTERVAL):
                if process.poll() is None:
                    self._cancelled = True
                    process.kill()
                return

    def _failure(self, message: str, cancelled: bool = False) -> ProcessResult:
        return ProcessResult(
            success=False,
            return_code=-1,
            stdout="",
            stderr=message,
            command=self.command,
            duration=0.0,
            error_message=message,
            cancelled=cancelled,
        )


def _drain(stream: IO[str], lines: list[str]) -> None:
    for line in stream:
        lines.append(line)
    stream.close()


def _parse_error(stderr: str) -> str:
    """Extract meaningful error message from ffmpeg stderr."""
    lines = stderr.strip().split("\n")

    # Look for common error patterns
    error_patterns = [
        r"Error.*",
        r"Invalid.*",
        r"No such file.*",
        r".*not found.*",
        r"Permission denied.*",
        r"Discarding.*",
    ]

    for line in reversed(lines):
        for pattern in error_patterns:
            if re.search(pattern, line, re.IGNORECASE):
                return line.strip()

    # Return last non-empty line if no pattern matched
    for line in reversed(lines):
        if line.strip():
            return line.strip()

    return "Unknown error"


def launch_command(
    path: str,
    args: list[str],
    cancel_event: Optional[threading.Event] = None,
    need_stdout: bool = False,
    log: Optional[logging.Logger] = None,
) -> ProcessResult:
    """Run a command to completion, optionally capturing its stdout.

    Args:
        path: Executable to run.
        args: Arguments passed after the executable.
        cancel_event: Kills the process when set.
        need_stdout: Capture stdout into the result instead of discarding it.
        log: Logger to use, defaults to the ffthumbs logger.

    Returns:
        ProcessResult with execution details.
    """
    session = ProcessSession(
        [path, *args],
        cancel_event=cancel_event,
        capture_stdout=need_stdout,
        log=log,
    )
    return session.run()
