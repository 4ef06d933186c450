"""Query side — the contract consumed by the API and CLI."""

from __future__ import annotations

from typing import Any

from .clock import Clock, SystemClock
from .models import SUCCESS_STATUS, Bucket, BucketUnit, Target
from .store import MonitorStore
from .uptime import build_series, extract_incidents, window_start


class UptimeService:
    """Builds overview and detail views from the store."""

    def __init__(
        self,
        store: MonitorStore,
        clock: Clock | None = None,
        success_status: int = SUCCESS_STATUS,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.success_status = success_status

    def series(self, alias: str, unit: BucketUnit, count: int | None = None) -> list[Bucket]:
        """Fixed-length series for one target, most recent bucket first."""
        count = count or unit.default_count
        now = self.clock.now()
        results = self.store.query_check_results(alias, since=window_start(now, unit, count), unit=unit)
        return build_series(results, unit, now, count, self.success_status)

    def get_overview(self) -> list[dict[str, Any]]:
        """Every target with its 24-entry hourly series."""
        return [
            {
                "target": target.to_dict(),
                "hourly": [b.to_dict() for b in self.series(target.alias, BucketUnit.HOUR)],
            }
            for target in self.store.list_targets()
        ]

    def get_target_detail(self, alias: str) -> dict[str, Any] | None:
        """Hourly + daily series and incident list for one target, or None if unknown."""
        target = self.store.get_target(alias)
        if target is None:
            return None

        incidents = extract_incidents(self.store.query_check_results(alias), self.success_status)
        return {
            "target": target.to_dict(),
            "hourly": [b.to_dict() for b in self.series(alias, BucketUnit.HOUR)],
            "daily": [b.to_dict() for b in self.series(alias, BucketUnit.DAY)],
            "incidents": [i.to_dict() for i in incidents],
        }

    def register_target(self, alias: str, url: str) -> Target:
        return self.store.insert_target(alias, url)

    def delete_target(self, alias: str) -> bool:
        return self.store.delete_target(alias)
