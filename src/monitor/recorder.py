"""Recorder — persists probe outcomes once per (target, minute slot)."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from .errors import PersistenceFailure
from .models import ProbeOutcome
from .store import MonitorStore

logger = logging.getLogger(__name__)


class Recorder:
    def __init__(self, store: MonitorStore) -> None:
        self.store = store

    def record(self, outcome: ProbeOutcome, observed_at: datetime) -> bool:
        """Append one result. Returns False for a duplicate slot, a deleted target or a store error."""
        try:
            written = self.store.append_check_result(
                outcome.target_alias, observed_at, outcome.status,
            )
        except PersistenceFailure:
            logger.exception("Failed to record result for %s", outcome.target_alias)
            return False

        if not written:
            logger.debug(
                "Result for %s at %s not written (slot taken or target gone)",
                outcome.target_alias, observed_at.isoformat(),
            )
        return written

    def record_all(self, outcomes: Iterable[ProbeOutcome], observed_at: datetime) -> int:
        """Record a batch; returns the number of rows written."""
        return sum(1 for o in outcomes if self.record(o, observed_at))
