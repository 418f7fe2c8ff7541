"""
Schedule Intervals
==================

The interval kinds the scheduler understands, and how to build them from
arguments, raw mappings, or a configuration string.

    kind      class               fires when
    ------    -----------------   -------------------------------------------
    hourly    EveryHourAt(m)      clock minute == m, once per clock hour
    daily     DailyAt(h, m)       clock time == h:m, once per day
    hours     EveryNHours(n)      >= n whole hours since the last firing
    minute    EveryMinuteChange   the clock minute changed since the last firing

An interval that never fired counts its elapsed time from the Unix epoch,
so ``EveryNHours`` fires on the very first tick.

Raw mapping form:
    {"interval_type": "daily", "options": {"hours": 9, "minutes": 30}}

Configuration string form (comma separated):
    "hourly:15, daily:9:30, hours:3, minute"
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Union


class InvalidIntervalError(ValueError):
    """Raised for an interval whose shape or values don't match its kind."""


def _check_int(value: Any, field_name: str, low: int, high: int | None = None) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidIntervalError(f"{field_name} must be an integer, got {value!r}")
    if value < low or (high is not None and value > high):
        upper = f"..{high}" if high is not None else " or more"
        raise InvalidIntervalError(f"{field_name} must be {low}{upper}, got {value}")


def _hour_slot(moment: datetime) -> datetime:
    return moment.replace(minute=0, second=0, microsecond=0)


def _minute_slot(moment: datetime) -> datetime:
    return moment.replace(second=0, microsecond=0)


@dataclass(frozen=True)
class EveryHourAt:
    """Every hour at ``minute`` past."""
    minute: int

    kind = "hourly"

    def __post_init__(self):
        _check_int(self.minute, "minute", 0, 59)

    def should_fire(self, last_fired: datetime | None, now: datetime) -> bool:
        if now.minute != self.minute:
            return False
        return last_fired is None or _hour_slot(last_fired) != _hour_slot(now)


@dataclass(frozen=True)
class DailyAt:
    """Once a day at ``hour``:``minute``."""
    hour: int
    minute: int

    kind = "daily"

    def __post_init__(self):
        _check_int(self.hour, "hour", 0, 23)
        _check_int(self.minute, "minute", 0, 59)

    def should_fire(self, last_fired: datetime | None, now: datetime) -> bool:
        if now.hour != self.hour or now.minute != self.minute:
            return False
        return last_fired is None or last_fired.date() != now.date()


@dataclass(frozen=True)
class EveryNHours:
    """Every ``hours`` hours, counted from the previous firing."""
    hours: int

    kind = "hours"

    def __post_init__(self):
        _check_int(self.hours, "hours", 1)

    def should_fire(self, last_fired: datetime | None, now: datetime) -> bool:
        if last_fired is None:
            last_fired = datetime.fromtimestamp(0, tz=now.tzinfo)
        elapsed_hours = int((now - last_fired).total_seconds() // 3600)
        return elapsed_hours >= self.hours


@dataclass(frozen=True)
class EveryMinuteChange:
    """Whenever the clock minute rolls over."""

    kind = "minute"

    def should_fire(self, last_fired: datetime | None, now: datetime) -> bool:
        return last_fired is None or _minute_slot(last_fired) != _minute_slot(now)


IntervalSpec = Union[EveryHourAt, DailyAt, EveryNHours, EveryMinuteChange]

INTERVAL_TYPES = (EveryHourAt, DailyAt, EveryNHours, EveryMinuteChange)

# Exact option keys each kind must carry in raw form
_OPTION_KEYS = {
    "hourly": {"minutes"},
    "daily": {"hours", "minutes"},
    "hours": {"hours"},
    "minute": set(),
}

_ARG_COUNTS = {"hourly": 1, "daily": 2, "hours": 1, "minute": 0}


def interval_from_args(kind: str, *args: int) -> IntervalSpec:
    """
    Build an interval from its kind and positional values.

    Example:
        interval_from_args("daily", 9, 30)   # DailyAt(hour=9, minute=30)

    Raises:
        InvalidIntervalError: Unknown kind, wrong argument count, or bad values
    """
    if kind not in _ARG_COUNTS:
        raise InvalidIntervalError(f"Unknown interval type: {kind!r}")

    expected = _ARG_COUNTS[kind]
    if len(args) != expected:
        plural = "argument" if expected == 1 else "arguments"
        raise InvalidIntervalError(
            f"Invalid arguments for {kind!r}. Expected {expected} {plural}, got {len(args)}"
        )

    if kind == "hourly":
        return EveryHourAt(minute=args[0])
    if kind == "daily":
        return DailyAt(hour=args[0], minute=args[1])
    if kind == "hours":
        return EveryNHours(hours=args[0])
    return EveryMinuteChange()


def _from_mapping(raw: Mapping[str, Any]) -> IntervalSpec:
    kind = raw.get("interval_type")
    if kind not in _OPTION_KEYS:
        raise InvalidIntervalError(f"unknown interval_type {kind!r}")

    options = raw.get("options")
    if options is None:
        options = {}
    if not isinstance(options, Mapping):
        raise InvalidIntervalError(f"options for {kind!r} must be a mapping")

    expected = _OPTION_KEYS[kind]
    if set(options) != expected:
        wanted = ", ".join(sorted(expected)) or "no options"
        raise InvalidIntervalError(f"{kind!r} takes exactly: {wanted}")

    if kind == "hourly":
        return EveryHourAt(minute=options["minutes"])
    if kind == "daily":
        return DailyAt(hour=options["hours"], minute=options["minutes"])
    if kind == "hours":
        return EveryNHours(hours=options["hours"])
    return EveryMinuteChange()


def parse_interval(raw: "IntervalSpec | Mapping[str, Any]") -> IntervalSpec:
    """
    Validate an interval given as a typed spec or a raw mapping.

    Raises:
        InvalidIntervalError: With a message naming the offending spec
    """
    if isinstance(raw, INTERVAL_TYPES):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidIntervalError(f"Invalid schedule interval: {raw!r}")

    try:
        return _from_mapping(raw)
    except InvalidIntervalError as e:
        raise InvalidIntervalError(f"Invalid schedule interval {dict(raw)!r}: {e}") from None


def parse_schedule(text: str) -> list[IntervalSpec]:
    """
    Parse the configuration form, e.g. ``"hourly:15, daily:9:30, minute"``.

    Empty text gives an empty list.

    Raises:
        InvalidIntervalError: Naming the first entry that doesn't parse
    """
    intervals = []
    for entry in text.split(","):
        entry = entry.strip()
        if not entry:
            continue

        kind, *values = [part.strip() for part in entry.split(":")]
        try:
            args = [int(value) for value in values]
            intervals.append(interval_from_args(kind.lower(), *args))
        except (ValueError, InvalidIntervalError) as e:
            raise InvalidIntervalError(f"Invalid schedule entry {entry!r}: {e}") from None

    return intervals


def describe(interval: IntervalSpec) -> str:
    """Short human-readable form, used in logs."""
    if isinstance(interval, EveryHourAt):
        return f"hourly at :{interval.minute:02d}"
    if isinstance(interval, DailyAt):
        return f"daily at {interval.hour:02d}:{interval.minute:02d}"
    if isinstance(interval, EveryNHours):
        return f"every {interval.hours}h"
    return "every minute"
