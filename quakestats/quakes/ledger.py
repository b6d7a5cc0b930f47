from __future__ import annotations
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .errors import LedgerUnavailable, LedgerWriteFailed
from .settings import SCHEMA_VERSION

logger = logging.getLogger(__name__)

POSTED_MARKER = "posted"

LEDGER_SQL = """
CREATE TABLE IF NOT EXISTS ledger (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    written_at TEXT NOT NULL
);
"""

META_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS meta (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""


class PublicationLedger:
    """Durable record of which week keys have been published.

    Backed by a single sqlite file held open for the whole run with an exclusive
    lock, so a second process cannot open the same ledger concurrently. Presence
    of a key is the only thing that matters; values are opaque markers.
    """

    def __init__(self, db_path: Path, lock_timeout: float = 1.0):
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path, timeout=lock_timeout, isolation_level=None)
        except (OSError, sqlite3.Error) as e:
            raise LedgerUnavailable(f"Cannot open ledger at {self.db_path}: {e}") from e
        try:
            self._conn.execute("PRAGMA locking_mode=EXCLUSIVE")
            self._conn.execute("PRAGMA synchronous=FULL")
            # take the exclusive lock now; it is held until close()
            self._conn.execute("BEGIN EXCLUSIVE")
            self._conn.execute(LEDGER_SQL)
            self._conn.execute(META_TABLE_SQL)
            self._conn.execute(
                "INSERT INTO meta(key,value) VALUES('schema_version', ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (str(SCHEMA_VERSION),),
            )
            self._conn.execute("COMMIT")
        except sqlite3.Error as e:
            self._conn.close()
            raise LedgerUnavailable(f"Cannot initialise ledger at {self.db_path}: {e}") from e
        self._closed = False
        logger.debug(f"Opened ledger {self.db_path}")

    def close(self):
        if self._closed:
            return
        try:
            self.sync()
        finally:
            self._conn.close()
            self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def get(self, key: str) -> Optional[str]:
        try:
            row = self._conn.execute("SELECT value FROM ledger WHERE key=?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise LedgerUnavailable(f"Cannot read ledger key {key!r}: {e}") from e
        return row[0] if row else None

    def set(self, key: str, value: str):
        try:
            self._conn.execute(
                "INSERT INTO ledger(key, value, written_at) VALUES (?,?,?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value, written_at=excluded.written_at",
                (key, value, datetime.now(timezone.utc).isoformat(timespec='seconds')),
            )
        except sqlite3.Error as e:
            raise LedgerWriteFailed(f"Cannot write ledger key {key!r}: {e}") from e

    def sync(self):
        try:
            if self._conn.in_transaction:
                self._conn.execute("COMMIT")
        except sqlite3.Error as e:
            raise LedgerWriteFailed(f"Cannot commit ledger {self.db_path}: {e}") from e

    def was_published(self, week_key: str) -> bool:
        return self.get(week_key) is not None

    def mark_published(self, week_key: str):
        """Record ``week_key`` as delivered. Call only after a confirmed publish."""
        self.set(week_key, POSTED_MARKER)
        self.sync()
        logger.info(f"Marked {week_key} as published")


__all__ = ["PublicationLedger", "POSTED_MARKER"]
