"""Unit tests for column packing, day geometry and overlap grouping."""

import pendulum
import pytest

from plangrid.layout.overlap import (
    assign_task_columns,
    calculate_plan_overlaps,
    calculate_task_position,
    calculate_time_from_position,
    constrain_task_duration,
    detect_time_conflicts,
    group_overlapping_plans,
    interval_bounds,
    intervals_overlap,
    layout_day,
)

DAY_START = pendulum.datetime(2024, 6, 15, tz="UTC")


def ids(items):
    return [item["id"] for item in items]


class TestDetectTimeConflicts:
    def test_overlap_is_symmetric(self, make_plan):
        first = make_plan("a", "2024-06-15T09:00:00", "2024-06-15T10:00:00")
        second = make_plan("b", "2024-06-15T09:30:00", "2024-06-15T10:30:00")

        assert detect_time_conflicts(first, [second]) == [second]
        assert detect_time_conflicts(second, [first]) == [first]

    def test_touching_intervals_do_not_conflict(self, make_plan):
        first = make_plan("a", "2024-06-15T09:00:00", "2024-06-15T10:00:00")
        second = make_plan("b", "2024-06-15T10:00:00", "2024-06-15T11:00:00")

        assert detect_time_conflicts(first, [second]) == []

    def test_candidate_is_never_its_own_conflict(self, make_plan):
        plan = make_plan("a", "2024-06-15T09:00:00", "2024-06-15T10:00:00")
        copy = dict(plan)

        assert detect_time_conflicts(plan, [plan, copy]) == []

    def test_missing_end_collapses_to_start(self, make_plan):
        point = make_plan("a", "2024-06-15T09:00:00")

        assert interval_bounds(point)[0] == interval_bounds(point)[1]
        assert interval_bounds({"title": "no start"}) is None


class TestAssignTaskColumns:
    def test_lowest_free_column(self, make_plan):
        plans = [
            make_plan("a", "2024-06-15T09:00:00", "2024-06-15T10:00:00"),
            make_plan("b", "2024-06-15T09:30:00", "2024-06-15T10:30:00"),
            make_plan("c", "2024-06-15T12:00:00", "2024-06-15T13:00:00"),
        ]

        slots = assign_task_columns(plans)

        assert [slot["column"] for slot in slots] == [0, 1, 0]
        assert [slot["total_columns"] for slot in slots] == [2, 2, 1]

    def test_input_order_does_not_matter(self, make_plan):
        plans = [
            make_plan("c", "2024-06-15T12:00:00", "2024-06-15T13:00:00"),
            make_plan("b", "2024-06-15T09:30:00", "2024-06-15T10:30:00"),
            make_plan("a", "2024-06-15T09:00:00", "2024-06-15T10:00:00"),
        ]

        slots = assign_task_columns(plans)

        assert ids(slot["item"] for slot in slots) == ["a", "b", "c"]
        assert [slot["column"] for slot in slots] == [0, 1, 0]

    def test_per_item_and_cluster_wide_totals(self, make_plan):
        plans = [
            make_plan("long", "2024-06-15T09:00:00", "2024-06-15T12:00:00"),
            make_plan("morning", "2024-06-15T09:00:00", "2024-06-15T10:00:00"),
            make_plan("late", "2024-06-15T11:00:00", "2024-06-15T12:00:00"),
        ]

        per_item = assign_task_columns(plans)
        cluster_wide = assign_task_columns(plans, cluster_wide=True)

        assert [slot["column"] for slot in per_item] == [0, 1, 1]
        assert [slot["total_columns"] for slot in per_item] == [3, 2, 2]
        assert [slot["total_columns"] for slot in cluster_wide] == [2, 2, 2]

    def test_shared_columns_never_overlap(self, make_plan):
        plans = [
            make_plan(str(n), f"2024-06-15T{8 + n % 5:02d}:{(n * 17) % 60:02d}:00")
            for n in range(20)
        ]
        for plan in plans:
            plan["end"] = plan["start"].add(minutes=45 + (int(plan["id"]) * 13) % 90)

        slots = assign_task_columns(plans)

        for position, slot in enumerate(slots):
            for other in slots[position + 1 :]:
                if slot["column"] == other["column"]:
                    assert not intervals_overlap(
                        interval_bounds(slot["item"]), interval_bounds(other["item"])
                    )

    def test_items_without_start_are_left_out(self, make_plan):
        slots = assign_task_columns(
            [make_plan("a", "2024-06-15T09:00:00"), make_plan("b", None)]
        )

        assert ids(slot["item"] for slot in slots) == ["a"]


class TestTaskPosition:
    def test_first_hour_of_day(self, make_plan):
        task = make_plan("a", "2024-06-15T00:00:00", "2024-06-15T01:00:00")

        position = calculate_task_position(task, DAY_START, 30)

        assert position["top"] == 0
        assert position["height"] == pytest.approx(4.1667, abs=1e-4)
        assert position["left"] == 0
        assert position["width"] == 100
        assert position["grid_row"] == 0

    def test_column_split(self, make_plan):
        task = make_plan("a", "2024-06-15T12:00:00", "2024-06-15T13:00:00")

        position = calculate_task_position(task, DAY_START, 60, column=1, total_columns=3)

        assert position["top"] == pytest.approx(50)
        assert position["width"] == pytest.approx(100 / 3)
        assert position["left"] == pytest.approx(100 / 3)
        assert position["grid_row"] == 12

    def test_clipped_to_day(self, make_plan):
        task = make_plan("a", "2024-06-14T23:00:00", "2024-06-15T01:00:00")

        position = calculate_task_position(task, DAY_START, 15)

        assert position["top"] == 0
        assert position["height"] == pytest.approx(100 * 60 / 1440)

    def test_minimum_height(self, make_plan):
        task = make_plan("a", "2024-06-15T09:00:00", "2024-06-15T09:00:00")

        assert calculate_task_position(task, DAY_START, 15)["height"] == 0.5

    def test_unknown_grid_interval(self, make_plan):
        with pytest.raises(ValueError):
            calculate_task_position(make_plan("a", "2024-06-15T09:00:00"), DAY_START, 20)


class TestTimeFromPosition:
    def test_snaps_to_nearest_grid_line(self):
        assert calculate_time_from_position(300, 1440, 30, DAY_START) == DAY_START.add(hours=5)
        assert calculate_time_from_position(310, 1440, 30, DAY_START) == DAY_START.add(hours=5)
        assert calculate_time_from_position(320, 1440, 30, DAY_START) == DAY_START.add(
            hours=5, minutes=30
        )

    def test_clamped_inside_day(self):
        assert calculate_time_from_position(-10, 1440, 30, DAY_START) == DAY_START
        assert calculate_time_from_position(1440, 1440, 60, DAY_START) == DAY_START.add(
            hours=23
        )


class TestConstrainTaskDuration:
    def test_short_interval_is_extended(self):
        start = DAY_START.add(hours=9)

        result = constrain_task_duration(start, start.add(minutes=5))

        assert result == (start, start.add(minutes=15))

    def test_long_interval_is_shortened(self):
        start = DAY_START.add(hours=9)

        result = constrain_task_duration(start, start.add(hours=10))

        assert result == (start, start.add(hours=8))

    def test_end_pinned_to_midnight(self):
        start = DAY_START.add(hours=23, minutes=50)

        result = constrain_task_duration(start, start.add(minutes=5))

        midnight = DAY_START.add(days=1)
        assert result == (midnight.subtract(minutes=15), midnight)

    def test_invalid_bounds(self):
        with pytest.raises(ValueError):
            constrain_task_duration(DAY_START, DAY_START.add(hours=1), 60, 30)


class TestGrouping:
    def test_chains_are_merged(self, make_plan):
        plans = [
            make_plan("a", "2024-06-15T09:00:00", "2024-06-15T10:00:00"),
            make_plan("b", "2024-06-15T09:30:00", "2024-06-15T11:00:00"),
            make_plan("c", "2024-06-15T10:30:00", "2024-06-15T11:30:00"),
            make_plan("d", "2024-06-15T14:00:00", "2024-06-15T15:00:00"),
            make_plan("e", "2024-06-16T09:15:00", "2024-06-16T09:45:00"),
        ]

        groups = group_overlapping_plans(plans, "UTC")

        assert [ids(group) for group in groups] == [["a", "b", "c"], ["d"], ["e"]]

    def test_overlap_report(self, make_plan):
        plans = [
            make_plan("a", "2024-06-15T09:00:00", "2024-06-15T10:00:00"),
            make_plan("b", "2024-06-15T09:30:00", "2024-06-15T11:30:00"),
        ]

        reports = calculate_plan_overlaps(plans)

        assert reports[0]["overlaps"] == [
            {"id": "b", "overlap_minutes": 30.0, "overlap_percentage": 50.0}
        ]
        assert reports[1]["overlaps"][0]["overlap_percentage"] == pytest.approx(25.0)


class TestLayoutDay:
    def test_geometry_follows_columns(self, index, make_plan):
        index.add_plans(
            [
                make_plan("a", "2024-06-15T09:00:00", "2024-06-15T10:00:00"),
                make_plan("b", "2024-06-15T09:30:00", "2024-06-15T10:30:00"),
            ]
        )

        items = layout_day(index.get_plans_by_date("2024-06-15"), DAY_START, 30)

        assert [item["column"] for item in items] == [0, 1]
        assert [item["position"]["left"] for item in items] == [0, 50]
        assert items[0]["position"]["grid_row"] == 18
