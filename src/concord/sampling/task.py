from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor

_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


def shared_executor() -> Executor:
    """Process-wide worker pool for asynchronous sampling."""

    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(thread_name_prefix="concord-sampler")
        return _executor


class PendingScore:
    """Handle on one in-flight sampling operation.

    Exposes only a readiness check and a one-shot :meth:`take`; a taken
    handle is spent and cannot be read again.
    """

    def __init__(self, future: Future[float]) -> None:
        self._future = future
        self._taken = False

    @classmethod
    def submit(cls, executor: Executor, fn: Callable[[], float]) -> PendingScore:
        return cls(executor.submit(fn))

    def is_ready(self) -> bool:
        return not self._taken and self._future.done()

    def take(self) -> float:
        """Return the score, re-raising any exception from the worker."""

        if self._taken:
            raise RuntimeError("pending score was already taken")
        if not self._future.done():
            raise RuntimeError("pending score is not ready")
        self._taken = True
        return float(self._future.result())
