import asyncio
import enum
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from healthz_pinger.scheduler.cron import CronSchedule

SEPARATOR = "-" * 60

TickCallback = Callable[[], Awaitable[None]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SchedulerState(enum.Enum):
    IDLE = "idle"
    ARMED = "armed"


class CronScheduler:
    """
    Fires an async callback on every boundary of a cron cadence.

    Lifecycle:
        scheduler = CronScheduler(CronSchedule.parse("0 * * * *"))
        scheduler.start(on_tick)
        ...
        await scheduler.stop()

    The first tick happens at the next boundary after `start`, never
    immediately. Ticks are serialized: the following boundary is computed
    only after the current callback returns.

    Cadences are evaluated in UTC by default. UTC has no DST jumps, so each
    real hour boundary is crossed exactly once, including local fall-back nights.
    """

    def __init__(
        self,
        schedule: CronSchedule,
        clock: Optional[Callable[[], datetime]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.schedule = schedule
        self._clock = clock or _utc_now
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self.state = SchedulerState.IDLE
        self.next_fire: Optional[datetime] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def running(self) -> bool:
        return self.state is SchedulerState.ARMED

    def start(self, on_tick: TickCallback) -> None:
        if self.running:
            return
        self.state = SchedulerState.ARMED
        self.next_fire = self.schedule.next_after(self._clock())
        self._task = asyncio.create_task(self._loop(on_tick), name="healthz-scheduler")
        self.logger.info(
            "Scheduler armed with cadence '%s', waiting for next tick at %s",
            self.schedule.expression,
            self.next_fire.isoformat(),
        )

    async def stop(self) -> None:
        if self._task is None:
            self.state = SchedulerState.IDLE
            return
        self.state = SchedulerState.IDLE
        task, self._task = self._task, None
        if task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.logger.info("Scheduler stopped")

    # -- core loop -------------------------------------------------------------

    async def _loop(self, on_tick: TickCallback) -> None:
        while self.running:
            delay = (self.next_fire - self._clock()).total_seconds()
            if delay > 0:
                # Woken early or not yet due: sleep again towards the same boundary
                await self._sleep(delay)
                continue

            self.logger.info(SEPARATOR)
            try:
                await on_tick()
            except Exception:
                self.logger.exception("Scheduled tick failed")

            if not self.running:
                break
            self.next_fire = self.schedule.next_after(max(self.next_fire, self._clock()))
            self.logger.debug("Next tick at %s", self.next_fire.isoformat())
