"""
SQLite-backed record source for the PWA directory.

Schema
──────
table: pwas
  id               TEXT PRIMARY KEY
  name             TEXT NOT NULL
  lighthouse_score INTEGER
  created          TEXT NOT NULL  (ISO-8601 UTC)
  updated          TEXT NOT NULL  (ISO-8601 UTC)
  data             TEXT NOT NULL  (Pwa serialised as JSON)
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Protocol

from pwa.models import Pwa, as_utc

logger = logging.getLogger(__name__)

#: Largest value SQLite accepts as a bound integer parameter.
SQLITE_MAX_INT = 2**63 - 1

#: Sort name → ORDER BY clause. ``newest`` is the fallback for unknown names.
SORT_ORDERS: dict[str, str] = {
    "newest":  "created DESC, id ASC",
    "updated": "updated DESC, id ASC",
    "score":   "lighthouse_score IS NULL, lighthouse_score DESC, created DESC",
    "name":    "name COLLATE NOCASE ASC, id ASC",
}


class StoreError(Exception):
    """Raised when the record source cannot answer a query."""


class PwaNotFoundError(StoreError):
    """Raised when a single-record lookup matches nothing."""

    def __init__(self, pwa_id: str) -> None:
        super().__init__(f"PWA not found: {pwa_id}")
        self.pwa_id = pwa_id


class RecordSource(Protocol):
    """Read interface the listing endpoint consumes."""

    def find(self, pwa_id: str) -> Pwa: ...

    def list(
        self,
        skip: Optional[int] = None,
        limit: int = 100,
        sort: str = "newest",
    ) -> list[Pwa]: ...


class PwaStore:
    """Record source backed by a single SQLite file."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)

    @contextmanager
    def _connect(self):
        """Yield a connected sqlite3.Connection, creating the file/dir if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(str(exc)) from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create the pwas table if it doesn't exist yet."""
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS pwas (
                    id               TEXT PRIMARY KEY,
                    name             TEXT NOT NULL,
                    lighthouse_score INTEGER,
                    created          TEXT NOT NULL,
                    updated          TEXT NOT NULL,
                    data             TEXT NOT NULL
                )
                """
            )
        logger.info("PWA store initialised at %s", self.db_path)

    def save(self, pwa: Pwa) -> None:
        """Insert or replace a record.

        Args:
            pwa: The record to persist; an existing row with the same id
                is overwritten.
        """
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO pwas "
                "(id, name, lighthouse_score, created, updated, data) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    pwa.id,
                    pwa.name,
                    pwa.lighthouse_score,
                    as_utc(pwa.created).isoformat(),
                    as_utc(pwa.updated).isoformat(),
                    pwa.model_dump_json(by_alias=True),
                ),
            )
        logger.debug("Saved PWA id=%s", pwa.id)

    def find(self, pwa_id: str) -> Pwa:
        """Fetch a single record by id.

        Raises:
            PwaNotFoundError: If no row has this id.
            StoreError: On database errors.
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data FROM pwas WHERE id = ?", (pwa_id,)
            ).fetchone()

        if row is None:
            raise PwaNotFoundError(pwa_id)
        return Pwa.model_validate_json(row["data"])

    def list(
        self,
        skip: Optional[int] = None,
        limit: int = 100,
        sort: str = "newest",
    ) -> list[Pwa]:
        """Return one page of records in *sort* order.

        Args:
            skip: Rows to skip; None or negative means start at the first row.
            limit: Maximum number of rows to return; non-positive returns none.
            sort: One of ``SORT_ORDERS``; unknown names sort as ``newest``.

        Returns:
            A list of Pwa objects.
        """
        order = SORT_ORDERS.get(sort)
        if order is None:
            logger.warning("Unknown sort %r, falling back to 'newest'", sort)
            order = SORT_ORDERS["newest"]
        offset = min(max(skip or 0, 0), SQLITE_MAX_INT)
        limit = min(max(limit, 0), SQLITE_MAX_INT)

        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT data FROM pwas ORDER BY {order} LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()

        return [Pwa.model_validate_json(row["data"]) for row in rows]
