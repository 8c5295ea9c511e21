# SPDX-License-Identifier: MIT

from typing import TypeAlias, TypedDict

from plangrid.model.entity_id import EntityId

Bucket: TypeAlias = dict[str, set[EntityId]]


class PlanIndexes(TypedDict):
    by_date: Bucket
    by_month: Bucket
    by_year: Bucket
    by_hour: Bucket
    by_tag: Bucket
    by_recurrence: Bucket


class IndexSizes(TypedDict):
    by_date: int
    by_month: int
    by_year: int
    by_hour: int
    by_tag: int
    by_recurrence: int


class IndexStats(TypedDict):
    total_plans: int
    cache_size: int
    index_sizes: IndexSizes
    last_update: int
    memory_usage: int
    cache_hits: int
    cache_misses: int
