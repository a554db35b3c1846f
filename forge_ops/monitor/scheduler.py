"""Scheduled quick checks and the daily briefing."""

from __future__ import annotations

import asyncio
import datetime
from collections.abc import Awaitable, Callable
from zoneinfo import ZoneInfo

import structlog

from forge_ops.core.config import ScheduleConfig
from forge_ops.monitor.aggregator import BriefingAggregator
from forge_ops.monitor.dispatcher import NotificationDispatcher
from forge_ops.monitor.sentinel import QuickSentinel

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime.datetime]


def _utc_clock() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class CycleScheduler:
    """Background tasks driving both cycle types.

    - Quick cycle every ``quick_interval_secs``.
    - Full cycle once per calendar day, during ``briefing_hour`` in the
      configured timezone.

    A cycle type never overlaps with itself: a trigger that arrives while
    the previous run of the same type is in progress is skipped.

    Usage::

        scheduler = CycleScheduler(aggregator, sentinel, dispatcher, config)
        await scheduler.start()
        # ...
        await scheduler.stop()
    """

    def __init__(
        self,
        aggregator: BriefingAggregator,
        sentinel: QuickSentinel,
        dispatcher: NotificationDispatcher,
        config: ScheduleConfig,
        clock: Clock = _utc_clock,
    ) -> None:
        self._aggregator = aggregator
        self._sentinel = sentinel
        self._dispatcher = dispatcher
        self._config = config
        self._tz = ZoneInfo(config.timezone)
        self._clock = clock
        self._full_lock = asyncio.Lock()
        self._quick_lock = asyncio.Lock()
        self._tasks: list[asyncio.Task[None]] = []
        self._running = False
        self._last_briefing_date: datetime.date | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def last_briefing_date(self) -> datetime.date | None:
        return self._last_briefing_date

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._tasks = [
            asyncio.create_task(self._quick_loop()),
            asyncio.create_task(self._daily_loop()),
        ]
        logger.info(
            "scheduler_started",
            quick_interval_secs=self._config.quick_interval_secs,
            briefing_hour=self._config.briefing_hour,
            timezone=self._config.timezone,
        )

    async def stop(self) -> None:
        self._running = False
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        logger.info("scheduler_stopped")

    # ── Cycle entry points ──────────────────────────────────────

    async def run_full_now(self) -> bool:
        """Run one full cycle and deliver the briefing. False if skipped."""
        return await self._exclusive(self._full_lock, "full", self._full_cycle)

    async def run_quick_now(self) -> bool:
        """Run one quick cycle. False if skipped."""
        return await self._exclusive(
            self._quick_lock, "quick", self._sentinel.run_quick_cycle,
        )

    async def _full_cycle(self) -> None:
        report = await self._aggregator.run_full_cycle()
        await self._dispatcher.send_report(report)
        self._last_briefing_date = self._local_now().date()

    async def _exclusive(
        self,
        lock: asyncio.Lock,
        cycle: str,
        fn: Callable[[], Awaitable[None]],
    ) -> bool:
        if lock.locked():
            logger.warning("cycle_skipped_overlap", cycle=cycle)
            return False
        async with lock:
            await fn()
        return True

    def _local_now(self) -> datetime.datetime:
        return self._clock().astimezone(self._tz)

    def briefing_due(self) -> bool:
        """True during the briefing hour if today's briefing was not sent yet."""
        now = self._local_now()
        return (
            now.hour == self._config.briefing_hour
            and self._last_briefing_date != now.date()
        )

    # ── Internal loops ──────────────────────────────────────────

    async def _quick_loop(self) -> None:
        while self._running:
            try:
                await self.run_quick_now()
            except asyncio.CancelledError:
                return
            except Exception:
                logger.exception("quick_cycle_loop_error")
            await asyncio.sleep(self._config.quick_interval_secs)

    async def _daily_loop(self) -> None:
        while self._running:
            try:
                if self.briefing_due():
                    await self.run_full_now()
            except asyncio.CancelledError:
                return
            except Exception:
                logger.exception("daily_briefing_loop_error")
            await asyncio.sleep(self._config.tick_secs)
