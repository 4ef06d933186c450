"""Monitor scheduler — runs one probing cycle per wall-clock interval.

Each wake is computed from the wall clock (next interval boundary plus a
small offset), never from the previous wake, so slow cycles do not pile up
and check timestamps cluster just after each minute boundary.
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timedelta, timezone

from .clock import Clock, SystemClock, sleep_until
from .errors import PersistenceFailure
from .models import SUCCESS_STATUS, ProbeOutcome, Target
from .prober import Prober
from .recorder import Recorder
from .store import MonitorStore

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class MonitorScheduler:
    """Owns the background loop and everything a cycle needs."""

    def __init__(
        self,
        store: MonitorStore,
        prober: Prober,
        recorder: Recorder | None = None,
        clock: Clock | None = None,
        interval: float = 60.0,
        wake_offset: float = 2.0,
        max_concurrency: int = 10,
        success_status: int = SUCCESS_STATUS,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if not 0 <= wake_offset < interval:
            raise ValueError("wake_offset must be within [0, interval)")
        self.store = store
        self.prober = prober
        self.recorder = recorder or Recorder(store)
        self.clock = clock or SystemClock()
        self.interval = interval
        self.wake_offset = wake_offset
        self.max_concurrency = max(1, max_concurrency)
        self.success_status = success_status
        self.last_failed = 0
        self.cycles_run = 0
        self.last_cycle_at: datetime | None = None
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def next_wake(self, now: datetime) -> datetime:
        """Next interval boundary + offset strictly after ``now``."""
        elapsed = (now - _EPOCH).total_seconds()
        boundary = math.floor(elapsed / self.interval) * self.interval
        wake = boundary + self.wake_offset
        if wake <= elapsed:
            wake += self.interval
        return _EPOCH + timedelta(seconds=wake)

    async def start(self) -> None:
        """Start the background loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop(), name="monitor-scheduler")
        logger.info(
            "Monitor scheduler started (interval=%ss, offset=%ss, concurrency=%d)",
            self.interval, self.wake_offset, self.max_concurrency,
        )

    async def stop(self) -> None:
        """Stop the background loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Monitor scheduler stopped")

    async def _run_loop(self) -> None:
        while self._running:
            wake = self.next_wake(self.clock.now())
            await sleep_until(self.clock, wake)
            if not self._running:
                break
            try:
                await self.run_cycle()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Monitor cycle failed")

    async def run_cycle(self) -> list[ProbeOutcome]:
        """Probe every registered target once and record the outcomes."""
        observed_at = self.clock.now()
        loop = asyncio.get_event_loop()

        try:
            targets = await loop.run_in_executor(None, self.store.list_targets)
        except PersistenceFailure:
            logger.exception("Could not load targets — skipping cycle")
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def probe_and_record(target: Target) -> ProbeOutcome:
            async with semaphore:
                outcome = await self.prober.probe(target)
            await loop.run_in_executor(None, self.recorder.record, outcome, observed_at)
            return outcome

        outcomes = list(await asyncio.gather(*(probe_and_record(t) for t in targets)))

        self.cycles_run += 1
        self.last_cycle_at = observed_at
        self.last_failed = sum(1 for o in outcomes if not o.is_success(self.success_status))
        logger.info(
            "Cycle at %s: %d targets probed, %d not OK",
            observed_at.isoformat(), len(outcomes), self.last_failed,
        )
        return outcomes
