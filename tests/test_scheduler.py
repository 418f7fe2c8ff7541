"""Tests for the interval scheduler polling and firing behaviour."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from chatloop.scheduler import (
    DailyAt,
    EveryHourAt,
    EveryMinuteChange,
    EveryNHours,
    IntervalScheduler,
    InvalidIntervalError,
)


class FakeClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **delta):
        self.now += timedelta(**delta)


def _mock_scheduler():
    scheduler = MagicMock()
    scheduler.running = False
    return scheduler


def _make(intervals, trigger=None, clock=None, scheduler=None):
    return IntervalScheduler(
        intervals,
        trigger if trigger is not None else MagicMock(),
        scheduler=scheduler if scheduler is not None else _mock_scheduler(),
        clock=clock if clock is not None else FakeClock(datetime(2024, 5, 15, 10, 0)),
    )


# ── Setup ────────────────────────────────────────────────────────────


class TestSetup:
    def test_registers_one_second_polling_job(self):
        scheduler = _mock_scheduler()
        sched = _make([EveryMinuteChange()], scheduler=scheduler)

        scheduler.add_job.assert_called_once()
        args, kwargs = scheduler.add_job.call_args
        assert args[0] == sched.check_intervals
        assert kwargs["trigger"].interval == timedelta(seconds=1)
        assert kwargs["max_instances"] == 1
        assert kwargs["coalesce"] is True
        scheduler.start.assert_called_once()

    def test_running_scheduler_is_not_restarted(self):
        scheduler = _mock_scheduler()
        scheduler.running = True

        _make([EveryMinuteChange()], scheduler=scheduler)

        scheduler.start.assert_not_called()

    def test_invalid_interval_prevents_polling(self):
        scheduler = _mock_scheduler()

        with pytest.raises(InvalidIntervalError, match="daily"):
            _make(
                [EveryMinuteChange(), {"interval_type": "daily", "options": {"hours": 9}}],
                scheduler=scheduler,
            )

        scheduler.add_job.assert_not_called()

    def test_raw_mappings_are_accepted(self):
        sched = _make([{"interval_type": "hours", "options": {"hours": 2}}])
        assert sched.entries[0].interval == EveryNHours(2)
        assert sched.entries[0].last_fired is None


# ── Firing ───────────────────────────────────────────────────────────


class TestFiring:
    def test_hourly_fires_once_per_hour(self):
        clock = FakeClock(datetime(2024, 5, 15, 10, 26, 58))
        trigger = MagicMock()
        sched = _make([EveryHourAt(minute=27)], trigger=trigger, clock=clock)

        assert sched.check_intervals() == 0
        clock.advance(seconds=2)   # 10:27:00
        assert sched.check_intervals() == 1
        for _ in range(59):        # rest of minute 27
            clock.advance(seconds=1)
            sched.check_intervals()
        assert trigger.call_count == 1

        clock.advance(hours=1)     # 11:27:59
        assert sched.check_intervals() == 1
        assert trigger.call_count == 2

    def test_every_n_hours_fires_on_first_tick(self):
        clock = FakeClock(datetime(2024, 5, 15, 10, 0))
        trigger = MagicMock()
        sched = _make([EveryNHours(hours=2)], trigger=trigger, clock=clock)

        sched.check_intervals()
        clock.advance(hours=1, minutes=59)
        sched.check_intervals()
        clock.advance(minutes=1)
        sched.check_intervals()

        assert trigger.call_count == 2

    def test_each_due_entry_fires_separately(self):
        clock = FakeClock(datetime(2024, 5, 15, 9, 30, 0))
        trigger = MagicMock()
        sched = _make(
            [DailyAt(hour=9, minute=30), EveryHourAt(minute=30), EveryMinuteChange()],
            trigger=trigger,
            clock=clock,
        )

        assert sched.check_intervals() == 3
        assert trigger.call_count == 3
        assert all(entry.last_fired == clock.now for entry in sched.entries)

    def test_minute_change_fires_every_minute(self):
        clock = FakeClock(datetime(2024, 5, 15, 10, 0, 30))
        trigger = MagicMock()
        sched = _make([EveryMinuteChange()], trigger=trigger, clock=clock)

        for _ in range(180):
            sched.check_intervals()
            clock.advance(seconds=1)

        # 10:00, 10:01, 10:02, 10:03
        assert trigger.call_count == 4

    def test_raising_trigger_still_marks_entry_fired(self):
        clock = FakeClock(datetime(2024, 5, 15, 10, 0))
        trigger = MagicMock(side_effect=RuntimeError("boom"))
        sched = _make([EveryMinuteChange()], trigger=trigger, clock=clock)

        assert sched.check_intervals() == 1
        assert sched.entries[0].last_fired == clock.now
        assert sched.check_intervals() == 0


# ── Termination ──────────────────────────────────────────────────────


class TestTerminate:
    def test_no_firing_after_terminate(self):
        clock = FakeClock(datetime(2024, 5, 15, 10, 0))
        trigger = MagicMock()
        scheduler = _mock_scheduler()
        sched = _make([EveryMinuteChange()], trigger=trigger, clock=clock, scheduler=scheduler)

        sched.terminate()
        clock.advance(hours=5)

        assert sched.check_intervals() == 0
        trigger.assert_not_called()
        assert sched.terminated is True
        scheduler.remove_job.assert_called_once()

    def test_terminate_is_idempotent(self):
        scheduler = _mock_scheduler()
        sched = _make([EveryMinuteChange()], scheduler=scheduler)

        sched.terminate()
        sched.terminate()

        assert scheduler.remove_job.call_count == 1

    def test_injected_scheduler_is_not_shut_down(self):
        scheduler = _mock_scheduler()
        scheduler.running = True
        sched = _make([EveryMinuteChange()], scheduler=scheduler)

        sched.terminate()

        scheduler.shutdown.assert_not_called()

    def test_terminate_from_trigger_stops_current_tick(self):
        clock = FakeClock(datetime(2024, 5, 15, 10, 0))
        calls = []

        def trigger():
            calls.append(clock.now)
            sched.terminate()

        sched = _make([EveryMinuteChange(), EveryMinuteChange()], trigger=trigger, clock=clock)

        assert sched.check_intervals() == 1
        assert len(calls) == 1
        assert sched.entries[1].last_fired is None

    def test_owned_scheduler_is_shut_down(self):
        with patch("chatloop.scheduler.core.AsyncIOScheduler") as scheduler_cls:
            owned = scheduler_cls.return_value
            owned.running = False

            async def scenario():
                return IntervalScheduler([EveryMinuteChange()], MagicMock())

            sched = asyncio.run(scenario())
            owned.start.assert_called_once()

            owned.running = True
            sched.terminate()

        owned.shutdown.assert_called_once_with(wait=False)

    def test_outside_event_loop_uses_background_scheduler(self):
        sched = IntervalScheduler([EveryMinuteChange()], MagicMock())
        try:
            assert isinstance(sched.scheduler, BackgroundScheduler)
            assert sched.scheduler.running
            assert sched.scheduler.get_job(sched._job_id) is not None
        finally:
            sched.terminate()

        assert not sched.scheduler.running

    def test_real_background_scheduler_job_lifecycle(self):
        background = BackgroundScheduler()
        try:
            sched = IntervalScheduler([EveryMinuteChange()], MagicMock(), scheduler=background)
            assert background.get_job(sched._job_id) is not None

            sched.terminate()
            assert background.get_job(sched._job_id) is None
        finally:
            background.shutdown(wait=False)
