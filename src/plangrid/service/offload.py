# SPDX-License-Identifier: MIT

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from copy import deepcopy
from types import TracebackType
from typing import Any, Callable, Mapping, Optional, Self, Sequence, TypeVar

from plangrid.configuration import Configuration
from plangrid.model.view import ViewFilters
from plangrid.service.filter import apply_filters, search_plans

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = TypeVar("P", bound=Mapping[str, Any])

DEFAULT_TIMEOUT_SECONDS = 30.0


class OffloadError(Exception):
    """Raised when an offloaded task does not produce a result."""

    pass


class WorkerTimeoutError(OffloadError):
    """Raised when an offloaded task exceeds the pool timeout."""

    pass


class WorkerFailedError(OffloadError):
    """Raised when an offloaded task raises or the pool is not running."""

    pass


class PlanWorkerPool:
    """
    Small thread pool for batch plan transformations off the caller's path.

    Every task is bounded by `timeout` seconds. The pool has an explicit
    lifecycle: `start()` before use, `shutdown()` when done, or use it as a
    context manager. Tasks receive snapshots, never live index state.
    """

    def __init__(
        self, max_workers: int = 2, timeout: float = DEFAULT_TIMEOUT_SECONDS
    ) -> None:
        if max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        self.max_workers = max_workers
        self.timeout = timeout
        self._executor: Optional[ThreadPoolExecutor] = None

    @classmethod
    def from_configuration(cls, config: Configuration) -> "PlanWorkerPool":
        return cls(timeout=config["worker_timeout_seconds"])

    @property
    def running(self) -> bool:
        return self._executor is not None

    def start(self) -> None:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="plangrid-worker"
            )

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.shutdown()

    def run(self, function: Callable[..., T], *args: Any) -> T:
        if self._executor is None:
            raise WorkerFailedError("worker pool is not running")

        future: Future[T] = self._executor.submit(function, *args)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError as e:
            future.cancel()
            raise WorkerTimeoutError(
                f"{getattr(function, '__name__', 'task')} timed out after {self.timeout}s"
            ) from e
        except Exception as e:
            raise WorkerFailedError(
                f"{getattr(function, '__name__', 'task')} failed: {e}"
            ) from e


def filter_plans(
    plans: Sequence[P],
    filters: Optional[ViewFilters],
    pool: Optional[PlanWorkerPool] = None,
    tz: str = "local",
) -> list[P]:
    """
    Filter plans on the pool when one is given, synchronously otherwise.

    With a pool the result is always a deep copy of the matching plans,
    including when a pool timeout or failure falls back to the synchronous
    path. Without a pool the caller's own plan objects are returned.
    """
    if pool is None:
        return apply_filters(plans, filters, tz)
    try:
        return pool.run(apply_filters, deepcopy(list(plans)), filters, tz)
    except OffloadError as e:
        logger.warning("offloaded filtering failed, filtering synchronously: %s", e)
        return deepcopy(apply_filters(plans, filters, tz))


def search(
    plans: Sequence[P], query: str, pool: Optional[PlanWorkerPool] = None
) -> list[P]:
    """Search plans on the pool when one is given, synchronously otherwise.

    Copies are returned exactly as for `filter_plans`.
    """
    if pool is None:
        return search_plans(plans, query)
    try:
        return pool.run(search_plans, deepcopy(list(plans)), query)
    except OffloadError as e:
        logger.warning("offloaded search failed, searching synchronously: %s", e)
        return deepcopy(search_plans(plans, query))
