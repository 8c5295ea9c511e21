"""Unit tests for DerivedViewCache."""

import logging

import pendulum
import pytest

from plangrid.configuration import get_default_configuration
from plangrid.derived.view_cache import DerivedViewCache, find_overlap_clusters
from plangrid.layout.overlap import group_overlapping_plans

WEEK_START = pendulum.datetime(2024, 6, 16, tz="UTC")
WEEK_END = pendulum.datetime(2024, 6, 22, tz="UTC").end_of("day")


@pytest.fixture
def view_cache() -> DerivedViewCache:
    return DerivedViewCache(tz="UTC")


@pytest.fixture
def week_plans(make_plan):
    return [
        make_plan(
            "standup",
            "2024-06-17T09:00:00",
            "2024-06-17T10:00:00",
            tags=["work"],
            title="Standup",
        ),
        make_plan(
            "review",
            "2024-06-17T09:30:00",
            "2024-06-17T11:00:00",
            tags=["work", "code"],
            title="Code review",
            location="Room 2",
        ),
        make_plan(
            "gym", "2024-06-19T18:00:00", "2024-06-19T19:00:00", tags=["health"], title="Gym"
        ),
        make_plan("next-week", "2024-06-24T09:00:00", "2024-06-24T10:00:00"),
    ]


def ids(plans):
    return [plan["id"] for plan in plans]


class TestCompute:
    def test_total_duration(self, view_cache, make_plan):
        plans = [
            make_plan("a", "2024-06-17T09:00:00", "2024-06-17T10:00:00"),
            make_plan("b", "2024-06-18T09:00:00", "2024-06-18T10:30:00"),
        ]

        view = view_cache.compute(plans, WEEK_START, WEEK_END)

        assert view["total_duration_ms"] == 9_000_000

    def test_groups_by_date_and_hour(self, view_cache, week_plans):
        view = view_cache.compute(week_plans, WEEK_START, WEEK_END)

        assert ids(view["filtered_plans"]) == ["standup", "review", "gym"]
        assert {day: ids(plans) for day, plans in view["by_date"].items()} == {
            "2024-06-17": ["standup", "review"],
            "2024-06-19": ["gym"],
        }
        assert {hour: ids(plans) for hour, plans in view["by_hour"].items()} == {
            9: ["standup", "review"],
            18: ["gym"],
        }

    def test_range_is_inclusive(self, view_cache, make_plan):
        plans = [
            make_plan("at-start", "2024-06-16T00:00:00", "2024-06-16T01:00:00"),
            make_plan("at-end", "2024-06-22T12:00:00", "2024-06-22T13:00:00"),
        ]

        view = view_cache.compute(plans, WEEK_START, pendulum.datetime(2024, 6, 22, 12, tz="UTC"))

        assert ids(view["filtered_plans"]) == ["at-start", "at-end"]

    def test_plans_without_start_are_ignored(self, view_cache, make_plan):
        view = view_cache.compute([make_plan("a", None)], WEEK_START, WEEK_END)

        assert view["filtered_plans"] == []
        assert view["total_duration_ms"] == 0

    def test_range_is_required(self, view_cache, week_plans):
        with pytest.raises(ValueError):
            view_cache.compute(week_plans, None, WEEK_END)


class TestFilters:
    def test_tags_match_any(self, view_cache, week_plans):
        view = view_cache.compute(
            week_plans, WEEK_START, WEEK_END, {"tags": ["code", "health"]}
        )

        assert ids(view["filtered_plans"]) == ["review", "gym"]

    def test_time_range_includes_both_ends(self, view_cache, week_plans):
        view = view_cache.compute(
            week_plans, WEEK_START, WEEK_END, {"time_range": {"start": 10, "end": 18}}
        )

        assert ids(view["filtered_plans"]) == ["gym"]

    def test_search_covers_location(self, view_cache, week_plans):
        view = view_cache.compute(
            week_plans, WEEK_START, WEEK_END, {"search_query": "room 2"}
        )

        assert ids(view["filtered_plans"]) == ["review"]


class TestViewCaching:
    def test_identical_request_is_not_recomputed(self, view_cache, week_plans):
        first = view_cache.compute(week_plans, WEEK_START, WEEK_END, {"tags": ["work"]})
        second = view_cache.compute(
            list(week_plans), WEEK_START, WEEK_END, {"tags": ["work"]}
        )

        assert second is first
        assert view_cache.computations == 1

    def test_key_depends_on_filters_and_timestamps(self, view_cache, week_plans):
        view_cache.compute(week_plans, WEEK_START, WEEK_END)
        view_cache.compute(week_plans, WEEK_START, WEEK_END, {"tags": ["work"]})

        moved = [dict(plan) for plan in week_plans]
        moved[0]["end"] = moved[0]["end"].add(minutes=15)
        view = view_cache.compute(moved, WEEK_START, WEEK_END)

        assert view_cache.computations == 3
        assert view["total_duration_ms"] == (75 + 90 + 60) * 60 * 1000

    def test_slow_computation_is_logged(self, week_plans, caplog):
        ticks = iter([0.0, 0.05])
        view_cache = DerivedViewCache(tz="UTC", timer=lambda: next(ticks))

        with caplog.at_level(logging.WARNING, logger="plangrid.derived.view_cache"):
            view_cache.compute(week_plans, WEEK_START, WEEK_END)

        assert "heavy view computation" in caplog.text

    def test_stats_and_clear(self, view_cache, week_plans):
        view_cache.compute(week_plans, WEEK_START, WEEK_END)
        view_cache.memoize(lambda: 42, ["answer"])

        assert view_cache.stats() == {
            "view_cache_size": 1,
            "computation_cache_size": 1,
            "total_cache_size": 2,
        }

        view_cache.clear()
        assert view_cache.stats()["total_cache_size"] == 0


class TestOverlapClusters:
    def test_claimed_plans_do_not_seed_clusters(self, make_plan):
        plans = [
            make_plan("a", "2024-06-17T09:00:00", "2024-06-17T10:00:00"),
            make_plan("b", "2024-06-17T09:30:00", "2024-06-17T11:00:00"),
            make_plan("c", "2024-06-17T10:30:00", "2024-06-17T11:30:00"),
        ]

        clusters = find_overlap_clusters(plans, "UTC")

        assert [ids(cluster) for cluster in clusters] == [["a", "b"]]
        assert [ids(group) for group in group_overlapping_plans(plans, "UTC")] == [
            ["a", "b", "c"]
        ]

    def test_single_plans_are_not_clusters(self, view_cache, week_plans):
        view = view_cache.compute(week_plans, WEEK_START, WEEK_END)

        assert [ids(cluster) for cluster in view["overlap_clusters"]] == [
            ["standup", "review"]
        ]


class TestCalendarRange:
    def test_week_runs_sunday_to_saturday(self, view_cache):
        start, end = view_cache.calendar_range(pendulum.datetime(2024, 6, 19, 15, tz="UTC"))

        assert start == WEEK_START
        assert end == WEEK_END

    def test_sunday_starts_its_own_week(self, view_cache):
        start, _ = view_cache.calendar_range(WEEK_START.add(hours=8), "week")

        assert start == WEEK_START

    def test_day(self, view_cache):
        start, end = view_cache.calendar_range(pendulum.datetime(2024, 6, 19, 15, tz="UTC"), "day")

        assert start == pendulum.datetime(2024, 6, 19, tz="UTC")
        assert end == pendulum.datetime(2024, 6, 19, tz="UTC").end_of("day")

    def test_unknown_view_type(self, view_cache):
        with pytest.raises(ValueError):
            view_cache.calendar_range(WEEK_START, "month")

    def test_calendar_view(self, view_cache, week_plans):
        view = view_cache.compute_calendar_view(week_plans, "2024-06-17", "week")

        assert ids(view["filtered_plans"]) == ["standup", "review", "gym"]


class TestMemoize:
    def test_same_dependencies_compute_once(self, view_cache):
        calls = []

        def compute():
            calls.append(1)
            return None

        assert view_cache.memoize(compute, ["a", 1]) is None
        assert view_cache.memoize(compute, ["a", 1]) is None
        view_cache.memoize(compute, ["a", 2])

        assert len(calls) == 2

    def test_explicit_key(self, view_cache):
        view_cache.memoize(lambda: "first", cache_key="k")

        assert view_cache.memoize(lambda: "second", cache_key="k") == "first"

    def test_from_configuration(self):
        config = get_default_configuration()
        config["view_cache_size"] = 5
        config["timezone"] = "UTC"

        view_cache = DerivedViewCache.from_configuration(config)

        assert view_cache.tz == "UTC"
        assert view_cache._view_cache.max_size == 5
