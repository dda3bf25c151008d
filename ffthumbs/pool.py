"""Fixed-capacity worker pool with blocking admission."""

import logging
import threading
from typing import Any, Callable

from .config import DEFAULT_CONCURRENCY
from .errors import PoolClosedError

logger = logging.getLogger("ffthumbs")


class WorkerPool:
    """Run tasks on worker threads, at most ``capacity`` at a time.

    ``submit`` blocks while the pool is full and returns as soon as the
    task is admitted; it never waits for the task to finish. Capacity can
    be changed with ``tune`` at any time: tasks already running are left
    alone and the new value applies to the next admissions.
    """

    def __init__(self, capacity: int = DEFAULT_CONCURRENCY, name: str = "ffthumbs"):
        self.name = name
        self._capacity = _normalize(capacity)
        self._running = 0
        self._closed = False
        self._spawned = 0
        self._cond = threading.Condition()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def running(self) -> int:
        """Number of tasks currently admitted and not yet finished."""
        with self._cond:
            return self._running

    @property
    def closed(self) -> bool:
        return self._closed

    def tune(self, capacity: int) -> None:
        """Change the pool capacity, non-positive values fall back to the default."""
        with self._cond:
            self._capacity = _normalize(capacity)
            self._cond.notify_all()
        logger.debug("Worker pool %s capacity set to %d", self.name, self._capacity)

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        """Run ``fn(*args)`` on a worker, blocking until a slot is free.

        Raises:
            PoolClosedError: If the pool is (or gets) closed while waiting.
        """
        with self._cond:
            while not self._closed and self._running >= self._capacity:
                self._cond.wait()
            if self._closed:
                raise PoolClosedError(f"worker pool {self.name} is closed")
            self._running += 1
            self._spawned += 1
            worker_name = f"{self.name}-worker-{self._spawned}"

        thread = threading.Thread(
            target=self._run, args=(fn, args), name=worker_name, daemon=True
        )
        try:
            thread.start()
        except RuntimeError:
            self._release()
            raise

    def join(self) -> None:
        """Block until every admitted task has finished."""
        with self._cond:
            while self._running:
                self._cond.wait()

    def close(self) -> None:
        """Reject further submissions; running tasks complete normally."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def _run(self, fn: Callable[..., Any], args: tuple) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception("Worker pool %s task failed", self.name)
        finally:
            self._release()

    def _release(self) -> None:
        with self._cond:
            self._running -= 1
            self._cond.notify_all()


def _normalize(capacity: int) -> int:
    return capacity if capacity > 0 else DEFAULT_CONCURRENCY
