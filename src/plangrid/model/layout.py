# SPDX-License-Identifier: MIT

from typing import Any, TypedDict


class LayoutSlot(TypedDict):
    item: Any
    column: int
    total_columns: int


class TaskPosition(TypedDict):
    """Geometry in percent of a 1440-minute day and of the day column width."""

    top: float
    height: float
    left: float
    width: float
    grid_row: int


class LayoutedItem(TypedDict):
    item: Any
    column: int
    total_columns: int
    position: TaskPosition


class OverlapPartner(TypedDict):
    id: str
    overlap_minutes: float
    overlap_percentage: float


class OverlapReport(TypedDict):
    id: str
    overlaps: list[OverlapPartner]
