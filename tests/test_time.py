"""Unit tests for timestamp coercion and day keys."""

import datetime

import pendulum

from plangrid.time import (
    date_key,
    day_key_of,
    epoch_ms_to_display_str,
    from_epoch_ms,
    hour_of_day,
    iterate_day_keys,
    month_key,
    to_epoch_ms,
    to_pendulum,
    year_key,
)


class TestToPendulum:
    def test_passes_pendulum_through(self):
        value = pendulum.datetime(2024, 6, 15, 10, tz="UTC")

        assert to_pendulum(value) is value

    def test_naive_datetime_is_read_in_zone(self):
        value = datetime.datetime(2024, 6, 15, 10, 0)

        result = to_pendulum(value, "UTC")

        assert result == pendulum.datetime(2024, 6, 15, 10, tz="UTC")

    def test_epoch_milliseconds(self):
        assert to_pendulum(0) == pendulum.datetime(1970, 1, 1, tz="UTC")

    def test_iso_string(self):
        result = to_pendulum("2024-06-15T10:30:00", "UTC")

        assert result == pendulum.datetime(2024, 6, 15, 10, 30, tz="UTC")

    def test_unusable_values_yield_none(self):
        assert to_pendulum(None) is None
        assert to_pendulum(True) is None
        assert to_pendulum("not a date", "UTC") is None
        assert to_pendulum({"start": 1}) is None

    def test_out_of_range_epoch_values_yield_none(self):
        assert to_pendulum(10**20) is None
        assert to_pendulum(float("nan")) is None
        assert to_pendulum(float("inf")) is None
        assert to_pendulum(-(10**400)) is None


class TestDayKeys:
    def test_date_key_uses_zone(self):
        late_evening = pendulum.datetime(2024, 6, 15, 23, 30, tz="UTC")

        assert date_key(late_evening, "UTC") == "2024-06-15"
        assert date_key(late_evening, "Europe/Berlin") == "2024-06-16"

    def test_month_and_year_keys(self):
        assert month_key("2024-06-15") == "2024-06"
        assert year_key("2024-06-15") == "2024"

    def test_day_key_of_plain_date_is_not_shifted(self):
        assert day_key_of(datetime.date(2024, 6, 15), "Pacific/Auckland") == "2024-06-15"

    def test_day_key_of_string_and_datetime(self):
        assert day_key_of("2024-06-15", "UTC") == "2024-06-15"
        assert (
            day_key_of(pendulum.datetime(2024, 6, 15, 8, tz="UTC"), "UTC")
            == "2024-06-15"
        )

    def test_day_key_of_garbage(self):
        assert day_key_of("someday", "UTC") is None

    def test_iterate_day_keys_crosses_leap_day(self):
        assert iterate_day_keys("2024-02-28", "2024-03-01") == [
            "2024-02-28",
            "2024-02-29",
            "2024-03-01",
        ]

    def test_iterate_day_keys_reversed_is_empty(self):
        assert iterate_day_keys("2024-06-16", "2024-06-15") == []


class TestEpochMilliseconds:
    def test_round_trip(self):
        value = pendulum.datetime(2024, 6, 15, 10, 15, tz="UTC")

        assert from_epoch_ms(to_epoch_ms(value), "UTC") == value

    def test_hour_of_day(self):
        epoch_ms = to_epoch_ms(pendulum.datetime(2024, 6, 15, 22, 5, tz="UTC"))

        assert hour_of_day(epoch_ms, "UTC") == 22

    def test_display(self):
        epoch_ms = to_epoch_ms(pendulum.datetime(2024, 6, 15, 9, 5, tz="UTC"))

        assert epoch_ms_to_display_str(epoch_ms, "UTC") == "2024-06-15 09:05"
