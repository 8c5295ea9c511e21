# SPDX-License-Identifier: MIT

from typing import Any, Mapping, Optional, Sequence, TypeVar

from plangrid.model.view import HourRange, ViewFilters
from plangrid.time import from_epoch_ms, to_pendulum

P = TypeVar("P", bound=Mapping[str, Any])

SEARCH_FIELDS = ("title", "description", "location")


def plan_start_hour(plan: Mapping[str, Any], tz: str = "local") -> Optional[int]:
    """Hour of day the plan starts at, for input plans and normalized plans alike."""
    if "start_time" in plan:
        return from_epoch_ms(plan["start_time"], tz).hour
    start = to_pendulum(plan.get("start"), tz)
    if start is None:
        return None
    return start.in_tz(tz).hour


def matches_tags(plan: Mapping[str, Any], tags: Optional[Sequence[str]]) -> bool:
    """True if no tag filter is set or the plan carries ANY of the tags."""
    if not tags:
        return True
    plan_tags = plan.get("tags") or []
    if isinstance(plan_tags, str):
        plan_tags = [plan_tags]
    return any(tag in plan_tags for tag in tags)


def matches_time_range(
    plan: Mapping[str, Any], time_range: Optional[HourRange], tz: str = "local"
) -> bool:
    """True if no range is set or the start hour lies within it (both ends inclusive)."""
    if time_range is None:
        return True
    hour = plan_start_hour(plan, tz)
    if hour is None:
        return False
    return time_range["start"] <= hour <= time_range["end"]


def matches_search(plan: Mapping[str, Any], query: Optional[str]) -> bool:
    """Case-insensitive substring match across title, description and location."""
    if not query:
        return True
    query_lower = query.lower()
    for field in SEARCH_FIELDS:
        value = plan.get(field)
        if value is not None and query_lower in str(value).lower():
            return True
    return False


def apply_filters(
    plans: Sequence[P], filters: Optional[ViewFilters], tz: str = "local"
) -> list[P]:
    """
    Restrict plans by tag, then time-of-day, then text. Input order is kept.

    Args:
        plans: Input plans or normalized plans
        filters: Optional filter set; missing or empty entries are ignored
        tz: Time zone used to read the start hour

    Returns:
        The plans passing every configured filter
    """
    if not filters:
        return list(plans)

    tags = filters.get("tags")
    time_range = filters.get("time_range")
    search_query = filters.get("search_query")

    return [
        plan
        for plan in plans
        if matches_tags(plan, tags)
        and matches_time_range(plan, time_range, tz)
        and matches_search(plan, search_query)
    ]


def search_plans(plans: Sequence[P], query: str) -> list[P]:
    return [plan for plan in plans if matches_search(plan, query)]
