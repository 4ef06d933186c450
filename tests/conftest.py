"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from src.monitor.store import MonitorStore


class FakeClock:
    """Simulated clock: ``sleep`` advances time instead of waiting."""

    def __init__(self, now: datetime) -> None:
        self._now = now
        self.wakes: list[datetime] = []

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs: float) -> None:
        self._now += timedelta(**kwargs)

    def set(self, now: datetime) -> None:
        self._now = now

    async def sleep(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)
        self.wakes.append(self._now)
        await asyncio.sleep(0)


@pytest.fixture
def t0() -> datetime:
    return datetime(2025, 3, 14, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(t0: datetime) -> FakeClock:
    return FakeClock(t0)


@pytest.fixture
def store(tmp_path: Path) -> MonitorStore:
    """MonitorStore backed by a temp SQLite file."""
    return MonitorStore(db_path=tmp_path / "test_monitor.db")
