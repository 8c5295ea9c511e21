# SPDX-License-Identifier: MIT

from typing import Literal, NotRequired, Optional, TypedDict

from plangrid.model.plan import Plan

ViewType = Literal["day", "week"]


class HourRange(TypedDict):
    start: int
    end: int


class ViewFilters(TypedDict):
    tags: NotRequired[Optional[list[str]]]
    time_range: NotRequired[Optional[HourRange]]
    search_query: NotRequired[Optional[str]]


class DerivedView(TypedDict):
    filtered_plans: list[Plan]
    by_date: dict[str, list[Plan]]
    by_hour: dict[int, list[Plan]]
    total_duration_ms: int
    overlap_clusters: list[list[Plan]]


class ViewCacheStats(TypedDict):
    view_cache_size: int
    computation_cache_size: int
    total_cache_size: int
