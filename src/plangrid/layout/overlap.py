# SPDX-License-Identifier: MIT

import math
from datetime import timedelta
from typing import Any, Optional, Sequence

import pendulum

from plangrid.configuration import GRID_INTERVALS
from plangrid.model.layout import (
    LayoutedItem,
    LayoutSlot,
    OverlapPartner,
    OverlapReport,
    TaskPosition,
)
from plangrid.time import (
    MILLISECONDS_PER_MINUTE,
    MINUTES_PER_DAY,
    date_key_from_epoch_ms,
    to_epoch_ms,
    to_pendulum,
)

MIN_HEIGHT_PERCENT = 0.5
DEFAULT_MIN_DURATION_MINUTES = 15
DEFAULT_MAX_DURATION_MINUTES = 480


def interval_bounds(item: Any) -> Optional[tuple[int, int]]:
    """
    Read an item's [start, end) interval in epoch milliseconds.

    Normalized plans are read from start_time/end_time, anything else from
    start/end. A missing end collapses the interval onto its start. Returns
    None if the item has no usable start.
    """
    if not hasattr(item, "get"):
        return None
    if item.get("start_time") is not None:
        start_ms = int(item["start_time"])
        end_ms = item.get("end_time")
        return start_ms, int(end_ms) if end_ms is not None else start_ms

    start = to_pendulum(item.get("start"), "UTC")
    if start is None:
        return None
    end = to_pendulum(item.get("end"), "UTC")
    start_ms = to_epoch_ms(start)
    return start_ms, to_epoch_ms(end) if end is not None else start_ms


def intervals_overlap(first: tuple[int, int], second: tuple[int, int]) -> bool:
    return first[0] < second[1] and second[0] < first[1]


def _is_same_item(candidate: Any, other: Any) -> bool:
    if candidate is other:
        return True
    candidate_id = candidate.get("id") if hasattr(candidate, "get") else None
    other_id = other.get("id") if hasattr(other, "get") else None
    return candidate_id is not None and candidate_id == other_id


def detect_time_conflicts(candidate: Any, existing: Sequence[Any]) -> list[Any]:
    """
    Return every item of `existing` whose half-open interval intersects the candidate's.

    The candidate itself, or any item sharing its id, is never reported.
    """
    candidate_bounds = interval_bounds(candidate)
    if candidate_bounds is None:
        return []

    conflicts = []
    for other in existing:
        if _is_same_item(candidate, other):
            continue
        other_bounds = interval_bounds(other)
        if other_bounds is not None and intervals_overlap(candidate_bounds, other_bounds):
            conflicts.append(other)
    return conflicts


def _connected_groups(conflicts: list[list[int]]) -> list[int]:
    """Label each position with the smallest position of its overlap component."""
    parents = list(range(len(conflicts)))

    def find(position: int) -> int:
        while parents[position] != position:
            parents[position] = parents[parents[position]]
            position = parents[position]
        return position

    for position, neighbours in enumerate(conflicts):
        for neighbour in neighbours:
            root_a, root_b = find(position), find(neighbour)
            if root_a != root_b:
                parents[max(root_a, root_b)] = min(root_a, root_b)

    return [find(position) for position in range(len(conflicts))]


def assign_task_columns(
    items: Sequence[Any], cluster_wide: bool = False
) -> list[LayoutSlot]:
    """
    Pack items into the lowest free column, in ascending start order.

    Each item's conflicts are taken against the whole input, but only columns
    of conflicting items that were already placed are considered taken, so
    items sharing a column never overlap.

    By default `total_columns` is per item: one more than its own conflict
    count. With `cluster_wide`, every item of a connected overlap group
    reports the group's highest column + 1 instead, so siblings agree.

    Items without a usable start are left out of the result.
    """
    bounded = [
        (item, bounds)
        for item in items
        if (bounds := interval_bounds(item)) is not None
    ]
    bounded.sort(key=lambda entry: entry[1][0])

    conflicts: list[list[int]] = [
        [
            other_position
            for other_position, (_, other_bounds) in enumerate(bounded)
            if other_position != position and intervals_overlap(bounds, other_bounds)
        ]
        for position, (_, bounds) in enumerate(bounded)
    ]

    columns: list[int] = []
    for position in range(len(bounded)):
        taken = {
            columns[other_position]
            for other_position in conflicts[position]
            if other_position < position
        }
        column = 0
        while column in taken:
            column += 1
        columns.append(column)

    totals = [max(1, len(item_conflicts) + 1) for item_conflicts in conflicts]
    if cluster_wide:
        groups = _connected_groups(conflicts)
        widest: dict[int, int] = {}
        for position, group in enumerate(groups):
            widest[group] = max(widest.get(group, 1), columns[position] + 1)
        totals = [widest[group] for group in groups]

    return [
        {"item": item, "column": columns[position], "total_columns": totals[position]}
        for position, (item, _) in enumerate(bounded)
    ]


def _validate_grid_interval(grid_interval: int) -> None:
    if grid_interval not in GRID_INTERVALS:
        raise ValueError(
            f"grid_interval must be one of {GRID_INTERVALS}, got {grid_interval}"
        )


def calculate_task_position(
    task: Any,
    day_start: Any,
    grid_interval: int,
    column: Optional[int] = None,
    total_columns: Optional[int] = None,
) -> TaskPosition:
    """
    Geometry of a task inside a day column, in percent.

    `top` and `height` are relative to a 1440-minute day beginning at
    `day_start`; the interval is clipped to that day and never drawn shorter
    than 0.5%. With column info the column width is split evenly, otherwise
    the task spans the full width.
    """
    _validate_grid_interval(grid_interval)
    day_start_datetime = to_pendulum(day_start)
    if day_start_datetime is None:
        raise ValueError("day_start is required")

    top = 0.0
    height = MIN_HEIGHT_PERCENT
    start_minutes = 0.0
    bounds = interval_bounds(task)
    if bounds is not None:
        day_start_ms = to_epoch_ms(day_start_datetime)
        start_minutes = min(
            max((bounds[0] - day_start_ms) / MILLISECONDS_PER_MINUTE, 0), MINUTES_PER_DAY
        )
        end_minutes = min(
            max((bounds[1] - day_start_ms) / MILLISECONDS_PER_MINUTE, start_minutes),
            MINUTES_PER_DAY,
        )
        top = start_minutes / MINUTES_PER_DAY * 100
        height = max((end_minutes - start_minutes) / MINUTES_PER_DAY * 100, MIN_HEIGHT_PERCENT)

    left = 0.0
    width = 100.0
    if column is not None and total_columns:
        width = 100 / total_columns
        left = column * width

    return {
        "top": top,
        "height": height,
        "left": left,
        "width": width,
        "grid_row": int(start_minutes // grid_interval),
    }


def calculate_time_from_position(
    y: float,
    container_height: float,
    grid_interval: int,
    day_start: Any = None,
    tz: str = "local",
) -> pendulum.DateTime:
    """
    Map a vertical offset in a day column back to a wall-clock instant.

    The offset is snapped to the nearest multiple of `grid_interval` minutes
    and clamped so the result stays inside the day.
    """
    _validate_grid_interval(grid_interval)
    minutes = 0.0
    if container_height > 0:
        minutes = y / container_height * MINUTES_PER_DAY

    snapped = math.floor(minutes / grid_interval + 0.5) * grid_interval
    snapped = max(0, min(snapped, MINUTES_PER_DAY - grid_interval))

    base = to_pendulum(day_start, tz)
    if base is None:
        base = pendulum.today(tz)
    return base.add(minutes=snapped)


def constrain_task_duration(
    start: Any,
    end: Any,
    min_minutes: int = DEFAULT_MIN_DURATION_MINUTES,
    max_minutes: int = DEFAULT_MAX_DURATION_MINUTES,
) -> tuple[pendulum.DateTime, pendulum.DateTime]:
    """
    Clamp a dragged interval's duration into [min_minutes, max_minutes].

    The end is moved to keep the start fixed. If that pushes the end past the
    start's next midnight, the end is pinned to that midnight and the start is
    moved back by the clamped duration instead.
    """
    if min_minutes > max_minutes:
        raise ValueError("min_minutes must not exceed max_minutes")
    start_datetime = to_pendulum(start)
    end_datetime = to_pendulum(end)
    if start_datetime is None or end_datetime is None:
        raise ValueError("start and end are required")

    duration_minutes = (end_datetime - start_datetime).total_seconds() / 60
    duration = timedelta(minutes=min(max(duration_minutes, min_minutes), max_minutes))

    constrained_end = start_datetime + duration
    day_end = start_datetime.start_of("day").add(days=1)
    if constrained_end > day_end:
        return day_end - duration, day_end
    return start_datetime, constrained_end


def group_overlapping_plans(items: Sequence[Any], tz: str = "local") -> list[list[Any]]:
    """
    Group items into connected overlap components, per calendar day of their start.

    Unlike a claimed single pass, chains are merged: if A overlaps B and B
    overlaps C, all three share a group even when A and C do not touch.
    Groups are ordered by day, then by start; each group is sorted by start.
    """
    by_day: dict[str, list[tuple[Any, tuple[int, int]]]] = {}
    for item in items:
        bounds = interval_bounds(item)
        if bounds is None:
            continue
        by_day.setdefault(date_key_from_epoch_ms(bounds[0], tz), []).append((item, bounds))

    groups: list[list[Any]] = []
    for day in sorted(by_day):
        day_items = sorted(by_day[day], key=lambda entry: entry[1][0])
        current: list[Any] = []
        current_end: Optional[int] = None
        for item, (start_ms, end_ms) in day_items:
            if current_end is not None and start_ms < current_end:
                current.append(item)
                current_end = max(current_end, end_ms)
                continue
            if current:
                groups.append(current)
            current = [item]
            current_end = end_ms
        if current:
            groups.append(current)
    return groups


def calculate_plan_overlaps(items: Sequence[Any]) -> list[OverlapReport]:
    """For each item, every overlapping partner with overlap length and share of the item."""
    bounded = [
        (item, bounds)
        for item in items
        if (bounds := interval_bounds(item)) is not None
    ]

    reports: list[OverlapReport] = []
    for position, (item, bounds) in enumerate(bounded):
        own_minutes = (bounds[1] - bounds[0]) / MILLISECONDS_PER_MINUTE
        partners: list[OverlapPartner] = []
        for other_position, (other, other_bounds) in enumerate(bounded):
            if other_position == position or not intervals_overlap(bounds, other_bounds):
                continue
            overlap_minutes = (
                min(bounds[1], other_bounds[1]) - max(bounds[0], other_bounds[0])
            ) / MILLISECONDS_PER_MINUTE
            partners.append(
                {
                    "id": str(other.get("id", other_position)),
                    "overlap_minutes": overlap_minutes,
                    "overlap_percentage": (
                        overlap_minutes / own_minutes * 100 if own_minutes > 0 else 0.0
                    ),
                }
            )
        reports.append({"id": str(item.get("id", position)), "overlaps": partners})
    return reports


def layout_day(
    items: Sequence[Any],
    day_start: Any,
    grid_interval: int,
    cluster_wide: bool = False,
) -> list[LayoutedItem]:
    """Column assignment plus geometry for the items of one day column."""
    return [
        {
            "item": slot["item"],
            "column": slot["column"],
            "total_columns": slot["total_columns"],
            "position": calculate_task_position(
                slot["item"],
                day_start,
                grid_interval,
                slot["column"],
                slot["total_columns"],
            ),
        }
        for slot in assign_task_columns(items, cluster_wide)
    ]
