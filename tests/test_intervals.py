"""Tests for interval kinds, their fire predicates, and their parsers."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from chatloop.scheduler.intervals import (
    DailyAt,
    EveryHourAt,
    EveryMinuteChange,
    EveryNHours,
    InvalidIntervalError,
    interval_from_args,
    parse_interval,
    parse_schedule,
)


def at(hour, minute, second=0, day=15):
    return datetime(2024, 5, day, hour, minute, second)


# ── Fire predicates ──────────────────────────────────────────────────


class TestEveryHourAt:
    def test_waits_for_matching_minute(self):
        interval = EveryHourAt(minute=27)
        assert interval.should_fire(None, at(10, 26)) is False
        assert interval.should_fire(None, at(10, 27)) is True

    def test_once_per_hour(self):
        interval = EveryHourAt(minute=27)
        fired = at(10, 27, 0)

        assert interval.should_fire(fired, at(10, 27, 45)) is False
        assert interval.should_fire(fired, at(10, 28)) is False
        assert interval.should_fire(fired, at(11, 26)) is False
        assert interval.should_fire(fired, at(11, 27)) is True

    def test_same_hour_on_another_day_fires(self):
        interval = EveryHourAt(minute=27)
        assert interval.should_fire(at(10, 27, day=14), at(10, 27, day=15)) is True


class TestDailyAt:
    def test_fires_at_time(self):
        interval = DailyAt(hour=9, minute=30)
        assert interval.should_fire(None, at(9, 29)) is False
        assert interval.should_fire(None, at(9, 30)) is True
        assert interval.should_fire(None, at(10, 30)) is False

    def test_once_per_day(self):
        interval = DailyAt(hour=9, minute=30)
        fired = at(9, 30, 0)

        assert interval.should_fire(fired, at(9, 30, 59)) is False
        assert interval.should_fire(fired, at(9, 30, day=16)) is True


class TestEveryNHours:
    def test_never_fired_fires_immediately(self):
        assert EveryNHours(hours=3).should_fire(None, at(10, 0)) is True

    def test_counts_whole_hours(self):
        interval = EveryNHours(hours=3)
        fired = at(10, 0)

        assert interval.should_fire(fired, fired + timedelta(hours=2, minutes=59, seconds=59)) is False
        assert interval.should_fire(fired, fired + timedelta(hours=3)) is True


class TestEveryMinuteChange:
    def test_fires_on_minute_change(self):
        interval = EveryMinuteChange()
        assert interval.should_fire(None, at(10, 0)) is True
        assert interval.should_fire(at(10, 0, 5), at(10, 0, 59)) is False
        assert interval.should_fire(at(10, 0, 59), at(10, 1, 0)) is True


# ── Construction / validation ────────────────────────────────────────


class TestTypedValidation:
    @pytest.mark.parametrize("factory", [
        lambda: EveryHourAt(minute=60),
        lambda: EveryHourAt(minute=-1),
        lambda: DailyAt(hour=24, minute=0),
        lambda: DailyAt(hour=9, minute="30"),
        lambda: EveryNHours(hours=0),
        lambda: EveryNHours(hours=True),
    ])
    def test_bad_values_rejected(self, factory):
        with pytest.raises(InvalidIntervalError):
            factory()


class TestParseInterval:
    def test_daily_without_minutes_rejected(self):
        with pytest.raises(InvalidIntervalError, match="daily"):
            parse_interval({"interval_type": "daily", "options": {"hours": 9}})

    def test_hourly_with_hour_field_rejected(self):
        with pytest.raises(InvalidIntervalError):
            parse_interval({"interval_type": "hourly", "options": {"minutes": 5, "hours": 1}})

    def test_hours_with_minutes_rejected(self):
        with pytest.raises(InvalidIntervalError):
            parse_interval({"interval_type": "hours", "options": {"hours": 2, "minutes": 0}})

    def test_minute_takes_no_options(self):
        assert parse_interval({"interval_type": "minute"}) == EveryMinuteChange()
        assert parse_interval({"interval_type": "minute", "options": {}}) == EveryMinuteChange()
        with pytest.raises(InvalidIntervalError):
            parse_interval({"interval_type": "minute", "options": {"minutes": 1}})

    def test_unknown_type_rejected(self):
        with pytest.raises(InvalidIntervalError, match="weekly"):
            parse_interval({"interval_type": "weekly", "options": {}})

    def test_non_mapping_rejected(self):
        with pytest.raises(InvalidIntervalError):
            parse_interval("daily")

    def test_valid_mappings(self):
        assert parse_interval({"interval_type": "hourly", "options": {"minutes": 27}}) == EveryHourAt(27)
        assert parse_interval({"interval_type": "daily", "options": {"hours": 9, "minutes": 30}}) == DailyAt(9, 30)
        assert parse_interval({"interval_type": "hours", "options": {"hours": 3}}) == EveryNHours(3)

    def test_typed_spec_passes_through(self):
        spec = DailyAt(hour=8, minute=0)
        assert parse_interval(spec) is spec


class TestIntervalFromArgs:
    def test_builds_each_kind(self):
        assert interval_from_args("hourly", 15) == EveryHourAt(15)
        assert interval_from_args("daily", 9, 30) == DailyAt(9, 30)
        assert interval_from_args("hours", 4) == EveryNHours(4)
        assert interval_from_args("minute") == EveryMinuteChange()

    def test_wrong_argument_count(self):
        with pytest.raises(InvalidIntervalError, match="Expected 2 arguments, got 1"):
            interval_from_args("daily", 9)

    def test_unknown_kind(self):
        with pytest.raises(InvalidIntervalError):
            interval_from_args("yearly", 1)


class TestParseSchedule:
    def test_parses_all_kinds(self):
        assert parse_schedule("hourly:15, daily:9:30, hours:3, minute") == [
            EveryHourAt(15), DailyAt(9, 30), EveryNHours(3), EveryMinuteChange(),
        ]

    def test_empty(self):
        assert parse_schedule("") == []
        assert parse_schedule(" , ") == []

    def test_bad_entry_is_named(self):
        with pytest.raises(InvalidIntervalError, match="daily:9"):
            parse_schedule("hourly:5, daily:9")

    def test_non_numeric_value(self):
        with pytest.raises(InvalidIntervalError, match="hourly:xx"):
            parse_schedule("hourly:xx")
