"""
Interval Scheduler
==================

Fires a callback whenever one of a set of intervals comes due.

Polling is handled by APScheduler: a single job on a 1-second
``IntervalTrigger`` calls ``check_intervals``, which compares every entry's
interval against the clock and its last firing time. Constructed inside a
running event loop the job runs on an ``AsyncIOScheduler``; from plain
synchronous code it runs on a ``BackgroundScheduler`` thread.

Entry lifecycle:
    idle (never fired) ──fires──► armed (last_fired = t) ──fires──► armed ...

Example:
    scheduler = IntervalScheduler(
        [EveryHourAt(minute=0), {"interval_type": "daily", "options": {"hours": 9, "minutes": 0}}],
        trigger=lambda: print("tick"),
    )
    ...
    scheduler.terminate()

All intervals are validated before the polling job exists; one bad spec
aborts construction with an InvalidIntervalError naming it.
"""

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger

from chatloop.scheduler.intervals import IntervalSpec, describe, parse_interval
from chatloop.utils.logger import Logger

logger = Logger("Scheduler")

TriggerFunction = Callable[[], None]


def _default_scheduler() -> BaseScheduler:
    """AsyncIOScheduler inside a running event loop, BackgroundScheduler otherwise."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return BackgroundScheduler()
    return AsyncIOScheduler()


@dataclass
class ScheduleEntry:
    """An interval and when it last fired (None until the first firing)."""
    interval: IntervalSpec
    last_fired: datetime | None = None


class IntervalScheduler:
    """
    Polls a set of intervals once a second and fires a trigger callback.

    The trigger is called once per firing entry, so two entries coming due
    on the same tick produce two calls.
    """

    POLL_SECONDS = 1

    def __init__(
        self,
        intervals: Iterable["IntervalSpec | Mapping[str, Any]"],
        trigger: TriggerFunction,
        *,
        scheduler: BaseScheduler | None = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Validate the intervals and start polling.

        Args:
            intervals: Typed interval specs or raw mappings
            trigger: Zero-argument callback invoked on every firing
            scheduler: APScheduler instance to poll on; by default one owned
                (and shut down) by this object: an AsyncIOScheduler when
                called inside a running event loop, a BackgroundScheduler
                thread otherwise
            clock: Returns the current time

        Raises:
            InvalidIntervalError: If any interval is malformed
        """
        self.entries = [ScheduleEntry(interval=parse_interval(raw)) for raw in intervals]
        self.trigger = trigger
        self._clock = clock

        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler if scheduler is not None else _default_scheduler()
        self._job_id = f"interval_poll_{uuid.uuid4().hex[:8]}"
        self._terminated = False

        self._start()

    @property
    def terminated(self) -> bool:
        return self._terminated

    def _start(self) -> None:
        self.scheduler.add_job(
            self.check_intervals,
            trigger=IntervalTrigger(seconds=self.POLL_SECONDS),
            id=self._job_id,
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )
        if not self.scheduler.running:
            self.scheduler.start()

        logger.info(
            f"Scheduler started with {len(self.entries)} intervals: "
            + ", ".join(describe(entry.interval) for entry in self.entries)
        )

    def terminate(self) -> None:
        """Stop polling. Safe to call more than once."""
        if self._terminated:
            return
        self._terminated = True

        try:
            self.scheduler.remove_job(self._job_id)
        except JobLookupError:
            pass  # Scheduler already dropped it

        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)

        logger.info("Scheduler stopped")

    def check_intervals(self) -> int:
        """
        Run one polling tick.

        Returns:
            Number of entries that fired
        """
        if self._terminated:
            return 0

        now = self._clock()
        fired = 0

        for entry in self.entries:
            # terminate() may run mid-tick, from the trigger or another thread
            if self._terminated:
                break
            if not entry.interval.should_fire(entry.last_fired, now):
                continue

            logger.debug(f"Interval due: {describe(entry.interval)}")
            try:
                self.trigger()
            except Exception as e:
                logger.error(f"Trigger failed for {describe(entry.interval)}", e)

            entry.last_fired = now
            fired += 1

        return fired
