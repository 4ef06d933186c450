"""Clock abstraction so scheduling and truncation can run on simulated time."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...

    async def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Wall clock in UTC backed by asyncio.sleep."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


async def sleep_until(clock: Clock, when: datetime) -> None:
    """Sleep until ``when`` according to ``clock`` (returns at once if it has passed)."""
    delay = (when - clock.now()).total_seconds()
    await clock.sleep(max(0.0, delay))
