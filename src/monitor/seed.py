"""Seed targets from a YAML file at startup.

Expected format::

    targets:
      - alias: example
        url: https://example.com

Targets already in the store are left alone; malformed entries are skipped.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .errors import ValidationFailure
from .store import MonitorStore

logger = logging.getLogger(__name__)


def load_seed_targets(store: MonitorStore, path: Path | str) -> int:
    """Register every target listed in ``path`` that is not yet known. Returns how many were added."""
    path = Path(path)
    if not path.exists():
        logger.debug("Targets file not found: %s", path)
        return 0

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to parse %s: %s", path, e)
        return 0

    if not isinstance(raw, dict):
        logger.error("Expected a mapping with a 'targets' list in %s", path)
        return 0
    entries = raw.get("targets") or []
    if not isinstance(entries, list):
        logger.error("'targets' in %s must be a list, got %s", path, type(entries).__name__)
        return 0

    added = 0
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed target entry: %r", entry)
            continue
        alias = str(entry.get("alias", "")).strip()
        if alias and store.get_target(alias) is not None:
            continue
        try:
            store.insert_target(alias, str(entry.get("url", "")))
            added += 1
        except ValidationFailure as e:
            logger.warning("Skipping target entry %r: %s", alias, e)

    logger.info("Seeded %d targets from %s", added, path)
    return added
