# SPDX-License-Identifier: MIT

import logging
import time
from types import TracebackType
from typing import Any, Callable, Mapping, Optional, Self, Sequence, TypeVar, cast

import pendulum

from plangrid.cache.bounded import BoundedCache, lru_cache
from plangrid.cache.hashing import content_hash
from plangrid.configuration import Configuration
from plangrid.model.plan import Plan
from plangrid.model.view import DerivedView, ViewCacheStats, ViewFilters, ViewType
from plangrid.service.filter import apply_filters
from plangrid.time import date_key, to_epoch_ms, to_pendulum

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_VIEW_CACHE_SIZE = 100
DEFAULT_COMPUTATION_CACHE_SIZE = 200
DEFAULT_SLOW_THRESHOLD_MS = 16.0

_MISSING = object()


def plans_fingerprint(plans: Sequence[Mapping[str, Any]]) -> list[tuple[Any, ...]]:
    """Identity and timestamps of each plan, which is all a view key depends on."""
    return [(plan.get("id"), plan.get("start"), plan.get("end")) for plan in plans]


def find_overlap_clusters(plans: Sequence[Plan], tz: str = "local") -> list[list[Plan]]:
    """
    Single left-to-right scan grouping each unclaimed plan with the later
    unclaimed plans overlapping it.

    A plan claimed by an earlier cluster never seeds or joins a later one, so
    a chain A-B-C where only A-B and B-C overlap yields [A, B] and leaves C
    alone. Plans without both a start and an end are ignored. Only clusters of
    two or more plans are returned.
    """
    bounded = []
    for plan in plans:
        start = to_pendulum(plan.get("start"), tz)
        end = to_pendulum(plan.get("end"), tz)
        if start is not None and end is not None:
            bounded.append((plan, to_epoch_ms(start), to_epoch_ms(end)))

    clusters: list[list[Plan]] = []
    claimed: set[int] = set()
    for position, (plan, start_ms, end_ms) in enumerate(bounded):
        if position in claimed:
            continue
        claimed.add(position)
        cluster = [plan]
        for other_position in range(position + 1, len(bounded)):
            if other_position in claimed:
                continue
            other, other_start_ms, other_end_ms = bounded[other_position]
            if start_ms < other_end_ms and other_start_ms < end_ms:
                cluster.append(other)
                claimed.add(other_position)
        if len(cluster) > 1:
            clusters.append(cluster)
    return clusters


class DerivedViewCache:
    """
    Memoizes grouped views of an arbitrary plan list.

    Views are keyed by a content hash of plan ids and timestamps, the date
    range, the filters and the view granularity, and kept in an LRU cache
    without expiry. A second, larger LRU cache backs `memoize()` for any
    other expensive sub-computation.
    """

    def __init__(
        self,
        view_cache_size: int = DEFAULT_VIEW_CACHE_SIZE,
        computation_cache_size: int = DEFAULT_COMPUTATION_CACHE_SIZE,
        slow_threshold_ms: float = DEFAULT_SLOW_THRESHOLD_MS,
        tz: str = "local",
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.tz = tz
        self.slow_threshold_ms = slow_threshold_ms
        self._timer = timer
        self._view_cache: BoundedCache[DerivedView] = lru_cache(view_cache_size)
        self._computation_cache: BoundedCache[Any] = lru_cache(computation_cache_size)
        self.computations = 0

    @classmethod
    def from_configuration(cls, config: Configuration) -> "DerivedViewCache":
        return cls(
            view_cache_size=config["view_cache_size"],
            computation_cache_size=config["computation_cache_size"],
            slow_threshold_ms=config["slow_computation_ms"],
            tz=config["timezone"],
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.clear()

    def view_key(
        self,
        plans: Sequence[Plan],
        start: pendulum.DateTime,
        end: pendulum.DateTime,
        filters: Optional[ViewFilters],
        granularity: str,
    ) -> str:
        return content_hash(
            plans_fingerprint(plans), start, end, dict(filters or {}), granularity
        )

    def compute(
        self,
        plans: Sequence[Plan],
        start: Any,
        end: Any,
        filters: Optional[ViewFilters] = None,
        granularity: str = "week",
    ) -> DerivedView:
        """
        Return the grouped view of `plans` between `start` and `end` inclusive.

        Args:
            plans: Raw plans; plans without a start are ignored
            start: Range start (instant, inclusive)
            end: Range end (instant, inclusive)
            filters: Optional tag, time-of-day and text filters
            granularity: View granularity, part of the cache key

        Returns:
            The cached view if an identical request was seen, else a fresh one
        """
        range_start = to_pendulum(start, self.tz)
        range_end = to_pendulum(end, self.tz)
        if range_start is None or range_end is None:
            raise ValueError("start and end are required")

        key = self.view_key(plans, range_start, range_end, filters, granularity)
        cached = self._view_cache.get(key)
        if cached is not None:
            return cached

        started = self._timer()
        view = self.__build_view(plans, range_start, range_end, filters)
        self.computations += 1
        self._view_cache.set(key, view)

        elapsed_ms = (self._timer() - started) * 1000
        if elapsed_ms > self.slow_threshold_ms:
            logger.warning(
                "heavy view computation: %.1fms for %d plans; consider moving it off the critical path",
                elapsed_ms,
                len(plans),
            )
        return view

    def __build_view(
        self,
        plans: Sequence[Plan],
        start: pendulum.DateTime,
        end: pendulum.DateTime,
        filters: Optional[ViewFilters],
    ) -> DerivedView:
        in_range: list[Plan] = []
        for plan in plans:
            plan_start = to_pendulum(plan.get("start"), self.tz)
            if plan_start is not None and start <= plan_start <= end:
                in_range.append(plan)

        filtered_plans = apply_filters(in_range, filters, self.tz)

        by_date: dict[str, list[Plan]] = {}
        by_hour: dict[int, list[Plan]] = {}
        total_duration_ms = 0
        for plan in filtered_plans:
            plan_start = cast(pendulum.DateTime, to_pendulum(plan.get("start"), self.tz))
            by_date.setdefault(date_key(plan_start, self.tz), []).append(plan)
            by_hour.setdefault(plan_start.in_tz(self.tz).hour, []).append(plan)

            plan_end = to_pendulum(plan.get("end"), self.tz)
            if plan_end is not None:
                total_duration_ms += to_epoch_ms(plan_end) - to_epoch_ms(plan_start)

        return {
            "filtered_plans": filtered_plans,
            "by_date": by_date,
            "by_hour": by_hour,
            "total_duration_ms": total_duration_ms,
            "overlap_clusters": find_overlap_clusters(filtered_plans, self.tz),
        }

    def calendar_range(
        self, view_date: Any, view_type: ViewType = "week"
    ) -> tuple[pendulum.DateTime, pendulum.DateTime]:
        """
        Inclusive bounds of the day or the Sunday-to-Saturday week holding `view_date`.
        """
        anchor = to_pendulum(view_date, self.tz)
        if anchor is None:
            raise ValueError("view_date is required")
        day = anchor.in_tz(self.tz).start_of("day")

        match view_type:
            case "day":
                return day, day.end_of("day")
            case "week":
                # isoweekday: Monday=1 .. Sunday=7
                week_start = day.subtract(days=day.isoweekday() % 7)
                return week_start, week_start.add(days=6).end_of("day")
        raise ValueError(f"unknown view type: {view_type}")

    def compute_calendar_view(
        self,
        plans: Sequence[Plan],
        view_date: Any,
        view_type: ViewType = "week",
        filters: Optional[ViewFilters] = None,
    ) -> DerivedView:
        start, end = self.calendar_range(view_date, view_type)
        return self.compute(plans, start, end, filters, view_type)

    def memoize(
        self,
        compute: Callable[[], T],
        dependencies: Sequence[Any] = (),
        cache_key: Optional[str] = None,
    ) -> T:
        """Run `compute` once per key; the key defaults to a hash of `dependencies`."""
        key = cache_key if cache_key is not None else content_hash(list(dependencies))
        cached = self._computation_cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cast(T, cached)

        result = compute()
        self._computation_cache.set(key, result)
        return result

    def stats(self) -> ViewCacheStats:
        view_cache_size = len(self._view_cache)
        computation_cache_size = len(self._computation_cache)
        return {
            "view_cache_size": view_cache_size,
            "computation_cache_size": computation_cache_size,
            "total_cache_size": view_cache_size + computation_cache_size,
        }

    def clear_view_cache(self) -> None:
        self._view_cache.clear()

    def clear_computation_cache(self) -> None:
        self._computation_cache.clear()

    def clear(self) -> None:
        self.clear_view_cache()
        self.clear_computation_cache()
