# SPDX-License-Identifier: MIT

import itertools
import logging
import time
from types import TracebackType
from typing import Any, Iterable, Mapping, Optional, Self

from plangrid.cache.bounded import (
    DEFAULT_QUERY_CACHE_SIZE,
    DEFAULT_TTL_SECONDS,
    BoundedCache,
    Clock,
    query_cache,
)
from plangrid.configuration import Configuration
from plangrid.model.entity_id import EntityId
from plangrid.model.index import Bucket, IndexStats, PlanIndexes
from plangrid.model.plan import NormalizedPlan
from plangrid.service.filter import search_plans
from plangrid.time import (
    MILLISECONDS_PER_MINUTE,
    date_key,
    day_key_of,
    hour_of_day,
    iterate_day_keys,
    month_key,
    to_epoch_ms,
    to_pendulum,
    year_key,
)

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_DURATION_MS = 30 * MILLISECONDS_PER_MINUTE

# Rough per-entry weights for get_stats()["memory_usage"]
PLAN_BYTES = 500
INDEX_KEY_BYTES = 100
CACHE_ENTRY_BYTES = 1000


class EventIndex:
    """
    Canonical store of normalized plans plus six derived index dimensions.

    Plans are keyed by id; each plan id is a member of exactly the day, month,
    year, start-hour, tag and recurrence buckets its current record maps to.
    Query results are cached in an insertion-ordered TTL cache which is
    cleared wholesale on every mutation.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        cache_ttl: float = DEFAULT_TTL_SECONDS,
        max_cache_size: int = DEFAULT_QUERY_CACHE_SIZE,
        tz: str = "local",
        clock: Clock = time.monotonic,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.chunk_size = chunk_size
        self.tz = tz
        self._plans: dict[EntityId, NormalizedPlan] = {}
        self._sequence: dict[EntityId, int] = {}
        self._counter = itertools.count()
        self._indexes: PlanIndexes = {
            "by_date": {},
            "by_month": {},
            "by_year": {},
            "by_hour": {},
            "by_tag": {},
            "by_recurrence": {},
        }
        self._cache: BoundedCache[list[NormalizedPlan]] = query_cache(
            max_cache_size, cache_ttl, clock
        )
        self.last_update = 0

    @classmethod
    def from_configuration(
        cls, config: Configuration, clock: Clock = time.monotonic
    ) -> "EventIndex":
        return cls(
            chunk_size=config["chunk_size"],
            cache_ttl=config["cache_ttl_seconds"],
            max_cache_size=config["query_cache_size"],
            tz=config["timezone"],
            clock=clock,
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

    def __len__(self) -> int:
        return len(self._plans)

    def __contains__(self, plan_id: object) -> bool:
        return plan_id in self._plans

    @property
    def indexes(self) -> PlanIndexes:
        return self._indexes

    def add_plans(self, plans: Iterable[Mapping[str, Any]]) -> None:
        started = time.perf_counter()
        plan_list = list(plans)

        try:
            for offset in range(0, len(plan_list), self.chunk_size):
                self.__process_chunk(plan_list[offset : offset + self.chunk_size])
        finally:
            self.__touch()
            self._cache.clear()

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug("added %d plans in %.2fms", len(plan_list), elapsed_ms)

    def __process_chunk(self, chunk: list[Mapping[str, Any]]) -> None:
        for plan in chunk:
            normalized = self.normalize_plan(plan)
            if normalized is None:
                continue
            self.__store(normalized)

    def normalize_plan(self, plan: Any) -> Optional[NormalizedPlan]:
        """
        Convert an input plan into its indexed form.

        Returns None, without raising, for anything that cannot be indexed:
        non-mappings, a missing or empty id, a missing or unparsable start.
        An unusable end falls back to start + 30 minutes.
        """
        if not isinstance(plan, Mapping):
            logger.debug("skipping non-mapping plan record: %r", plan)
            return None

        plan_id = plan.get("id")
        if plan_id is None or plan_id == "":
            logger.debug("skipping plan without id")
            return None

        start = to_pendulum(plan.get("start"), self.tz)
        if start is None:
            logger.debug("skipping plan %s without a usable start", plan_id)
            return None
        start_time = to_epoch_ms(start)

        end = to_pendulum(plan.get("end"), self.tz)
        end_time = to_epoch_ms(end) if end is not None else start_time + DEFAULT_DURATION_MS

        tags = plan.get("tags") or []
        if isinstance(tags, str):
            tags = [tags]
        elif not isinstance(tags, list | tuple | set | frozenset):
            logger.debug("ignoring malformed tags on plan %s", plan_id)
            tags = []

        recurrence_id = plan.get("recurrence_id")
        return {
            "id": str(plan_id),
            "title": plan.get("title"),
            "start_time": start_time,
            "end_time": end_time,
            "date_key": date_key(start, self.tz),
            "color": plan.get("color"),
            "location": plan.get("location"),
            "description": plan.get("description"),
            # Deduplicate tags
            "tags": list(dict.fromkeys(str(tag) for tag in tags)),
            "recurrence_id": str(recurrence_id) if recurrence_id else None,
        }

    def __store(self, plan: NormalizedPlan) -> None:
        previous = self._plans.get(plan["id"])
        if previous is not None:
            self.__remove_from_indexes(previous)
        else:
            self._sequence[plan["id"]] = next(self._counter)
        self._plans[plan["id"]] = plan
        self.__add_to_indexes(plan)

    def __index_keys(self, plan: NormalizedPlan) -> list[tuple[Bucket, str]]:
        keys: list[tuple[Bucket, str]] = [
            (self._indexes["by_date"], plan["date_key"]),
            (self._indexes["by_month"], month_key(plan["date_key"])),
            (self._indexes["by_year"], year_key(plan["date_key"])),
            (self._indexes["by_hour"], str(hour_of_day(plan["start_time"], self.tz))),
        ]
        for tag in plan["tags"]:
            keys.append((self._indexes["by_tag"], tag))
        if plan["recurrence_id"]:
            keys.append((self._indexes["by_recurrence"], plan["recurrence_id"]))
        return keys

    def __add_to_indexes(self, plan: NormalizedPlan) -> None:
        for index, key in self.__index_keys(plan):
            index.setdefault(key, set()).add(plan["id"])

    def __remove_from_indexes(self, plan: NormalizedPlan) -> None:
        for index, key in self.__index_keys(plan):
            ids = index.get(key)
            if ids is None:
                continue
            ids.discard(plan["id"])
            if not ids:
                del index[key]

    def update_plan(self, plan: Mapping[str, Any]) -> bool:
        """
        Replace a plan's record and every index membership.

        Returns False and leaves the index unchanged if the plan cannot be
        normalized.
        """
        normalized = self.normalize_plan(plan)
        if normalized is None:
            return False

        self.__store(normalized)
        self.__touch()
        self._cache.clear()
        return True

    def remove_plan(self, plan_id: EntityId) -> bool:
        plan = self._plans.get(plan_id)
        if plan is None:
            return False

        self.__remove_from_indexes(plan)
        del self._plans[plan_id]
        del self._sequence[plan_id]
        self.__touch()
        self._cache.clear()
        return True

    def get_plan(self, plan_id: EntityId) -> Optional[NormalizedPlan]:
        return self._plans.get(plan_id)

    def get_plans_by_date_range(self, start: Any, end: Any) -> list[NormalizedPlan]:
        start_key = day_key_of(start, self.tz)
        end_key = day_key_of(end, self.tz)
        if start_key is None or end_key is None:
            return []

        cache_key = f"range:{start_key}:{end_key}"
        cached = self.__cached(cache_key)
        if cached is not None:
            return cached

        ids: set[EntityId] = set()
        for day in iterate_day_keys(start_key, end_key):
            ids.update(self._indexes["by_date"].get(day, ()))

        return self.__resolve_and_cache(cache_key, ids)

    def get_plans_by_date(self, date: Any) -> list[NormalizedPlan]:
        day = day_key_of(date, self.tz)
        if day is None:
            return []
        return self.__bucket_query(f"date:{day}", self._indexes["by_date"], day)

    def get_plans_by_month(self, year: int, month: int) -> list[NormalizedPlan]:
        key = f"{year:04d}-{month:02d}"
        return self.__bucket_query(f"month:{key}", self._indexes["by_month"], key)

    def get_plans_by_year(self, year: int) -> list[NormalizedPlan]:
        key = f"{year:04d}"
        return self.__bucket_query(f"year:{key}", self._indexes["by_year"], key)

    def get_plans_by_tag(self, tag: str) -> list[NormalizedPlan]:
        return self.__bucket_query(f"tag:{tag}", self._indexes["by_tag"], tag)

    def get_plans_by_recurrence(self, recurrence_id: str) -> list[NormalizedPlan]:
        return self.__bucket_query(
            f"recurrence:{recurrence_id}",
            self._indexes["by_recurrence"],
            recurrence_id,
        )

    def get_plans_by_time_range(
        self, start_hour: int, end_hour: int, date: Any = None
    ) -> list[NormalizedPlan]:
        """Plans whose start hour lies in [start_hour, end_hour), optionally on one day."""
        day: Optional[str] = None
        if date is not None:
            day = day_key_of(date, self.tz)
            if day is None:
                return []

        cache_key = f"time:{start_hour}:{end_hour}:{day or 'all'}"
        cached = self.__cached(cache_key)
        if cached is not None:
            return cached

        ids: set[EntityId] = set()
        for hour in range(max(start_hour, 0), min(end_hour, 24)):
            ids.update(self._indexes["by_hour"].get(str(hour), ()))
        if day is not None:
            ids &= self._indexes["by_date"].get(day, set())

        return self.__resolve_and_cache(cache_key, ids)

    def search_plans(self, query: str) -> list[NormalizedPlan]:
        cache_key = f"search:{query.lower()}"
        cached = self.__cached(cache_key)
        if cached is not None:
            return cached

        result = self.__sorted(search_plans(list(self._plans.values()), query))
        self._cache.set(cache_key, list(result))
        return result

    def __bucket_query(
        self, cache_key: str, index: Bucket, key: str
    ) -> list[NormalizedPlan]:
        cached = self.__cached(cache_key)
        if cached is not None:
            return cached
        return self.__resolve_and_cache(cache_key, index.get(key, set()))

    def __resolve_and_cache(
        self, cache_key: str, ids: Iterable[EntityId]
    ) -> list[NormalizedPlan]:
        result = self.__sorted(
            [self._plans[plan_id] for plan_id in ids if plan_id in self._plans]
        )
        self._cache.set(cache_key, list(result))
        return result

    def __cached(self, cache_key: str) -> Optional[list[NormalizedPlan]]:
        # Callers get their own list; the cached one is never handed out.
        cached = self._cache.get(cache_key)
        return list(cached) if cached is not None else None

    def __sorted(self, plans: list[NormalizedPlan]) -> list[NormalizedPlan]:
        # Ties on start_time fall back to first-insertion order.
        return sorted(
            plans,
            key=lambda plan: (plan["start_time"], self._sequence[plan["id"]]),
        )

    def __touch(self) -> None:
        self.last_update = int(time.time() * 1000)

    def get_stats(self) -> IndexStats:
        index_sizes = {name: len(index) for name, index in self._indexes.items()}
        cache_stats = self._cache.stats()
        return {
            "total_plans": len(self._plans),
            "cache_size": cache_stats["size"],
            "index_sizes": {
                "by_date": index_sizes["by_date"],
                "by_month": index_sizes["by_month"],
                "by_year": index_sizes["by_year"],
                "by_hour": index_sizes["by_hour"],
                "by_tag": index_sizes["by_tag"],
                "by_recurrence": index_sizes["by_recurrence"],
            },
            "last_update": self.last_update,
            "memory_usage": self.__estimate_memory_usage(index_sizes),
            "cache_hits": cache_stats["hits"],
            "cache_misses": cache_stats["misses"],
        }

    def __estimate_memory_usage(self, index_sizes: dict[str, int]) -> int:
        return (
            len(self._plans) * PLAN_BYTES
            + sum(index_sizes.values()) * INDEX_KEY_BYTES
            + len(self._cache) * CACHE_ENTRY_BYTES
        )

    def sweep_cache(self) -> int:
        """Drop expired query results without waiting for them to be read."""
        return self._cache.sweep_expired()

    def clear(self) -> None:
        self._plans.clear()
        self._sequence.clear()
        for index in self._indexes.values():
            index.clear()
        self._cache.clear()
        self.__touch()
