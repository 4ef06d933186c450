"""Uptime time-series — bucketing, gap-filling and incident extraction.

All functions are pure: they take raw CheckResults (in any order) and an
explicit ``now`` so they can be exercised with simulated time.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timezone

from .models import SUCCESS_STATUS, Bucket, BucketUnit, CheckResult, Incident


def _as_utc(ts: datetime) -> datetime:
    # astimezone() would read a naive value as host-local time
    if ts.tzinfo is None or ts.utcoffset() is None:
        raise ValueError(f"Timestamp must be timezone-aware: {ts!r}")
    return ts.astimezone(timezone.utc)


def truncate(ts: datetime, unit: BucketUnit) -> datetime:
    """Truncate to the top of the hour, or to midnight UTC for day buckets.

    ``ts`` must be timezone-aware; naive values raise ValueError.
    """
    ts = _as_utc(ts).replace(minute=0, second=0, microsecond=0)
    if unit is BucketUnit.DAY:
        ts = ts.replace(hour=0)
    return ts


def truncate_minute(ts: datetime) -> datetime:
    """Minute slot used as the recording idempotency key."""
    return _as_utc(ts).replace(second=0, microsecond=0)


def uptime_pct(successes: int, total: int) -> int:
    """Floor of successes * 100 / total (2 of 3 → 66)."""
    return successes * 100 // total


def window_start(now: datetime, unit: BucketUnit, count: int) -> datetime:
    """Start of the oldest bucket in a ``count``-long series ending at ``now``."""
    return truncate(now, unit) - unit.width * (count - 1)


def aggregate(
    results: Iterable[CheckResult],
    unit: BucketUnit,
    limit: int,
    success_status: int = SUCCESS_STATUS,
) -> list[Bucket]:
    """Group results into buckets, ascending, keeping the most recent ``limit``.

    Every returned bucket has at least one contributing check, so its
    percentage is always numeric.
    """
    totals: dict[datetime, int] = defaultdict(int)
    successes: dict[datetime, int] = defaultdict(int)
    for r in results:
        start = truncate(r.observed_at, unit)
        totals[start] += 1
        if r.status == success_status:
            successes[start] += 1

    buckets = [
        Bucket(start=start, uptime_pct=uptime_pct(successes[start], totals[start]))
        for start in sorted(totals)
    ]
    return buckets[-limit:] if limit > 0 else []


def fill_gaps(
    buckets: list[Bucket],
    unit: BucketUnit,
    count: int,
    now: datetime,
) -> list[Bucket]:
    """Pad a series to exactly ``count`` entries, most recent first.

    Missing buckets between ``truncate(now)`` and ``count - 1`` widths back are
    synthesized with ``uptime_pct=None``; existing buckets are never touched.
    """
    if len(buckets) == count:
        return sorted(buckets, key=lambda b: b.start, reverse=True)

    present = {b.start for b in buckets}
    latest = truncate(now, unit)
    filled = list(buckets)
    for i in range(count):
        start = latest - unit.width * i
        if start not in present:
            filled.append(Bucket(start=start, uptime_pct=None))
            present.add(start)

    filled.sort(key=lambda b: b.start, reverse=True)
    return filled[:count]


def build_series(
    results: Iterable[CheckResult],
    unit: BucketUnit,
    now: datetime,
    count: int | None = None,
    success_status: int = SUCCESS_STATUS,
) -> list[Bucket]:
    """Aggregate then gap-fill: the fixed-length series handed to consumers."""
    count = count or unit.default_count
    buckets = aggregate(results, unit, count, success_status)
    return fill_gaps(buckets, unit, count, now)


def extract_incidents(
    results: Iterable[CheckResult],
    success_status: int = SUCCESS_STATUS,
) -> list[Incident]:
    """Every non-success check, oldest first."""
    failing = [r for r in results if r.status != success_status]
    failing.sort(key=lambda r: r.observed_at)
    return [Incident(observed_at=r.observed_at, status=r.status) for r in failing]
