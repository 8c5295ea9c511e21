# SPDX-License-Identifier: MIT

from typing import NotRequired, Optional, TypedDict

import pendulum

from plangrid.model.entity_id import EntityId


class Plan(TypedDict):
    id: EntityId
    title: NotRequired[Optional[str]]
    start: NotRequired[Optional[pendulum.DateTime]]
    end: NotRequired[Optional[pendulum.DateTime]]
    tags: NotRequired[Optional[list[str]]]
    location: NotRequired[Optional[str]]
    description: NotRequired[Optional[str]]
    color: NotRequired[Optional[str]]
    # Lookup key into the recurrence index only; never owns the series.
    recurrence_id: NotRequired[Optional[str]]


class NormalizedPlan(TypedDict):
    id: EntityId
    title: Optional[str]
    start_time: int
    end_time: int
    date_key: str
    color: Optional[str]
    location: Optional[str]
    description: Optional[str]
    tags: list[str]
    recurrence_id: Optional[str]
