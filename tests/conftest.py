"""Shared fixtures for plangrid tests."""

from typing import Any, Optional

import pendulum
import pytest

from plangrid.index.event_index import EventIndex


class FakeClock:
    """Manually advanced monotonic clock, in seconds."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_plan(
    plan_id: str,
    start: Optional[str],
    end: Optional[str] = None,
    **fields: Any,
) -> dict[str, Any]:
    plan: dict[str, Any] = {"id": plan_id, "title": fields.pop("title", plan_id)}
    plan["start"] = pendulum.parse(start, tz="UTC") if start is not None else None
    if end is not None:
        plan["end"] = pendulum.parse(end, tz="UTC")
    plan.update(fields)
    return plan


@pytest.fixture
def make_plan():
    """Factory for input plans with UTC timestamps given as ISO strings."""
    return build_plan


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def index(fake_clock: FakeClock) -> EventIndex:
    return EventIndex(tz="UTC", clock=fake_clock)
