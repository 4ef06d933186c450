"""Monitor data models — targets, raw results and derived series entries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

FAILURE_STATUS = 0  # sentinel for transport failures (timeout, DNS, refused, TLS)
SUCCESS_STATUS = 200


class BucketUnit(str, Enum):
    HOUR = "hour"
    DAY = "day"

    @property
    def width(self) -> timedelta:
        return timedelta(hours=1) if self is BucketUnit.HOUR else timedelta(days=1)

    @property
    def default_count(self) -> int:
        """Series length shown for this unit (24 hours / 30 days)."""
        return 24 if self is BucketUnit.HOUR else 30


@dataclass(frozen=True)
class Target:
    """A monitored endpoint."""

    alias: str
    url: str
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"alias": self.alias, "url": self.url, "created_at": self.created_at}


@dataclass(frozen=True)
class CheckResult:
    """One observed outcome of probing a target."""

    target_alias: str
    observed_at: datetime
    status: int


@dataclass(frozen=True)
class Bucket:
    """Uptime percentage for one hour or day. ``uptime_pct`` is None for "no data"."""

    start: datetime
    uptime_pct: int | None

    @property
    def has_data(self) -> bool:
        return self.uptime_pct is not None

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.start.isoformat(), "uptime_pct": self.uptime_pct}


@dataclass(frozen=True)
class Incident:
    """A single failing check."""

    observed_at: datetime
    status: int

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.observed_at.isoformat(), "status": self.status}


@dataclass
class ProbeOutcome:
    """Result of a single probe. ``error`` is set when the transport failed."""

    target_alias: str
    status: int
    latency_ms: float = 0.0
    error: str = ""

    def is_success(self, success_status: int = SUCCESS_STATUS) -> bool:
        return self.status == success_status

    def to_dict(self) -> dict[str, Any]:
        return {
            "target_alias": self.target_alias,
            "status": self.status,
            "latency_ms": self.latency_ms,
            "error": self.error,
        }
