"""SQLite storage for monitored targets and their check results.

Targets are a registry keyed by alias; check results are an append-only log
with one row per (target, minute slot). Deleting a target cascades to its
results.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from pydantic import HttpUrl, TypeAdapter, ValidationError

from .errors import FatalFailure, PersistenceFailure, ValidationFailure
from .models import BucketUnit, CheckResult, Target
from .uptime import truncate, truncate_minute

logger = logging.getLogger(__name__)

DB_PATH = Path(__file__).parent.parent.parent / "data" / "monitor.db"

MAX_ALIAS_LENGTH = 75

_url_adapter = TypeAdapter(HttpUrl)


def _iso(ts: datetime) -> str:
    # Fixed-width UTC strings so lexical order matches time order in SQL.
    return ts.astimezone(timezone.utc).isoformat(timespec="microseconds")


def validate_target(alias: str, url: str) -> tuple[str, str]:
    """Normalize and validate a registration. Raises ValidationFailure."""
    alias = (alias or "").strip()
    url = (url or "").strip()
    if not alias:
        raise ValidationFailure("Target alias is required")
    if len(alias) > MAX_ALIAS_LENGTH:
        raise ValidationFailure(f"Target alias must be at most {MAX_ALIAS_LENGTH} characters")
    try:
        _url_adapter.validate_python(url)
    except ValidationError as e:
        raise ValidationFailure(f"Invalid URL {url!r}: is your website a reachable URL?") from e
    return alias, url


class MonitorStore:
    """SQLite-backed registry of targets + append-only check result log."""

    def __init__(self, db_path: Path | str | None = None) -> None:
        self._db_path = Path(db_path) if db_path else DB_PATH
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_db()
        except (OSError, sqlite3.Error) as e:
            raise FatalFailure(f"Cannot open monitor store at {self._db_path}: {e}") from e

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self._db_path))
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS targets (
                    alias      TEXT PRIMARY KEY,
                    url        TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS check_results (
                    id           INTEGER PRIMARY KEY AUTOINCREMENT,
                    target_alias TEXT NOT NULL
                                 REFERENCES targets(alias) ON DELETE CASCADE,
                    observed_at  TEXT NOT NULL,
                    slot         TEXT NOT NULL,
                    status       INTEGER NOT NULL,
                    UNIQUE (target_alias, slot)
                );

                CREATE INDEX IF NOT EXISTS idx_results_target
                    ON check_results (target_alias, observed_at);
            """)

    # ── Targets ──────────────────────────────────────────────────────────

    def list_targets(self) -> list[Target]:
        """All registered targets, oldest registration first."""
        try:
            with self._conn() as conn:
                rows = conn.execute(
                    "SELECT alias, url, created_at FROM targets ORDER BY created_at, alias"
                ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Failed to list targets: {e}") from e
        return [Target(alias=r["alias"], url=r["url"], created_at=r["created_at"]) for r in rows]

    def get_target(self, alias: str) -> Target | None:
        try:
            with self._conn() as conn:
                row = conn.execute(
                    "SELECT alias, url, created_at FROM targets WHERE alias = ?", (alias,)
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Failed to read target {alias}: {e}") from e
        return Target(alias=row["alias"], url=row["url"], created_at=row["created_at"]) if row else None

    def insert_target(self, alias: str, url: str) -> Target:
        """Register a new target. Raises ValidationFailure on bad input or duplicate alias."""
        alias, url = validate_target(alias, url)
        if self.get_target(alias) is not None:
            raise ValidationFailure(f"Target '{alias}' already exists")

        created_at = _iso(datetime.now(timezone.utc))
        try:
            with self._conn() as conn:
                conn.execute(
                    "INSERT INTO targets (alias, url, created_at) VALUES (?, ?, ?)",
                    (alias, url, created_at),
                )
        except sqlite3.IntegrityError as e:
            # Lost a race with a concurrent registration of the same alias
            raise ValidationFailure(f"Target '{alias}' already exists") from e
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Failed to insert target {alias}: {e}") from e

        logger.info("Registered target %s -> %s", alias, url)
        return Target(alias=alias, url=url, created_at=created_at)

    def delete_target(self, alias: str) -> bool:
        """Delete a target and all of its check results."""
        try:
            with self._conn() as conn:
                conn.execute("DELETE FROM check_results WHERE target_alias = ?", (alias,))
                cursor = conn.execute("DELETE FROM targets WHERE alias = ?", (alias,))
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Failed to delete target {alias}: {e}") from e

        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted target %s", alias)
        return deleted

    # ── Check results ────────────────────────────────────────────────────

    def append_check_result(self, alias: str, observed_at: datetime, status: int) -> bool:
        """Append one result; no-op if the (alias, minute slot) row already exists.

        Returns True when a row was written. An alias that no longer exists
        is dropped and reported as False.
        """
        try:
            with self._conn() as conn:
                cursor = conn.execute(
                    "INSERT OR IGNORE INTO check_results "
                    "(target_alias, observed_at, slot, status) VALUES (?, ?, ?, ?)",
                    (alias, _iso(observed_at), _iso(truncate_minute(observed_at)), status),
                )
        except sqlite3.IntegrityError:
            logger.debug("Dropping result for deleted target %s", alias)
            return False
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Failed to append result for {alias}: {e}") from e
        return cursor.rowcount > 0

    def query_check_results(
        self,
        alias: str,
        since: datetime | None = None,
        unit: BucketUnit | None = None,
    ) -> list[CheckResult]:
        """Results for a target at or after ``since``.

        With ``unit``, ``since`` is first truncated to the bucket boundary so
        the oldest bucket is complete. Row order is not guaranteed.
        """
        sql = "SELECT target_alias, observed_at, status FROM check_results WHERE target_alias = ?"
        params: list[str] = [alias]
        if since is not None:
            if unit is not None:
                since = truncate(since, unit)
            sql += " AND observed_at >= ?"
            params.append(_iso(since))

        try:
            with self._conn() as conn:
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Failed to query results for {alias}: {e}") from e

        return [
            CheckResult(
                target_alias=r["target_alias"],
                observed_at=datetime.fromisoformat(r["observed_at"]),
                status=r["status"],
            )
            for r in rows
        ]

    def count_check_results(self, alias: str) -> int:
        try:
            with self._conn() as conn:
                row = conn.execute(
                    "SELECT COUNT(*) AS n FROM check_results WHERE target_alias = ?", (alias,)
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Failed to count results for {alias}: {e}") from e
        return int(row["n"])

    def close(self) -> None:
        """No-op — connections are created per-call."""
        pass
