"""
Scheduler
=========

Interval-based callbacks: hourly, daily, every N hours, and on every
minute change.

This module provides:
- IntervalScheduler: Polls intervals and fires a trigger
- The interval kinds and the helpers that build them
"""

from chatloop.scheduler.core import IntervalScheduler, ScheduleEntry
from chatloop.scheduler.intervals import (
    DailyAt,
    EveryHourAt,
    EveryMinuteChange,
    EveryNHours,
    IntervalSpec,
    InvalidIntervalError,
    interval_from_args,
    parse_interval,
    parse_schedule,
)

__all__ = [
    "DailyAt",
    "EveryHourAt",
    "EveryMinuteChange",
    "EveryNHours",
    "IntervalScheduler",
    "IntervalSpec",
    "InvalidIntervalError",
    "ScheduleEntry",
    "interval_from_args",
    "parse_interval",
    "parse_schedule",
]
