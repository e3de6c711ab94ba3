"""
SQLite Document Store
~~~~~~~~~~~~~~~~~~~~~

Durable DocumentStore backed by a single SQLite table. Bodies are
stored as JSON; datetimes are tagged so they come back as native
timestamps. Blocking SQLite calls run in a worker thread.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sqlite3
import threading
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from action_ledger.exceptions import DocumentNotFoundError, StoreUnavailableError
from action_ledger.store.base import DocumentStore, Write, WriteOp

__all__ = ["SqliteDocumentStore"]

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    collection   TEXT NOT NULL,
    document_id  TEXT NOT NULL,
    body         TEXT NOT NULL,
    updated_at   TEXT NOT NULL,
    PRIMARY KEY (collection, document_id)
)
"""

_TIMESTAMP_TAG = "__timestamp__"


def _default_db_path() -> str:
    """Return the default SQLite database path."""
    home = os.path.expanduser("~")
    ledger_dir = os.path.join(home, ".action_ledger")
    os.makedirs(ledger_dir, exist_ok=True)
    return os.path.join(ledger_dir, "store.db")


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_TIMESTAMP_TAG: value.isoformat()}
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_encode(v) for v in value]
    return value


def _decode_hook(obj: dict[str, Any]) -> Any:
    if len(obj) == 1 and _TIMESTAMP_TAG in obj:
        return datetime.fromisoformat(obj[_TIMESTAMP_TAG])
    return obj


def _dumps(body: dict[str, Any]) -> str:
    return json.dumps(_encode(body))


def _loads(raw: str) -> dict[str, Any]:
    return json.loads(raw, object_hook=_decode_hook)


class SqliteDocumentStore(DocumentStore):
    """
    DocumentStore persisted to a SQLite file.

    ``commit`` executes every write inside one SQLite transaction, so a
    batch is applied completely or not at all.
    """

    def __init__(self, db_path: str | None = None) -> None:
        self._db_path = db_path or _default_db_path()
        directory = os.path.dirname(self._db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._clock_lock = threading.Lock()
        self._last_now: datetime | None = None
        self._init_db()

    @property
    def db_path(self) -> str:
        return self._db_path

    def _init_db(self) -> None:
        """Create the documents table if it doesn't exist."""
        conn = self._get_conn()
        try:
            conn.execute(_CREATE_TABLE_SQL)
            conn.commit()
        finally:
            conn.close()

    def _get_conn(self) -> sqlite3.Connection:
        """Get a new SQLite connection."""
        try:
            return sqlite3.connect(self._db_path)
        except sqlite3.OperationalError as exc:
            raise StoreUnavailableError(
                f"Cannot open document store at {self._db_path}: {exc}"
            ) from exc

    # ── Sync implementations ─────────────────────────────────────

    def _get_sync(self, collection: str, document_id: str) -> dict[str, Any] | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT body FROM documents WHERE collection = ? AND document_id = ?",
                (collection, document_id),
            ).fetchone()
            return _loads(row[0]) if row else None
        finally:
            conn.close()

    def _commit_sync(self, writes: Sequence[Write]) -> None:
        conn = self._get_conn()
        stamp = datetime.now(UTC).isoformat()
        try:
            for write in writes:
                if write.op == WriteOp.SET:
                    conn.execute(
                        """INSERT OR REPLACE INTO documents
                           (collection, document_id, body, updated_at)
                           VALUES (?, ?, ?, ?)""",
                        (write.collection, write.document_id, _dumps(write.data), stamp),
                    )
                elif write.op == WriteOp.UPDATE:
                    row = conn.execute(
                        "SELECT body FROM documents "
                        "WHERE collection = ? AND document_id = ?",
                        (write.collection, write.document_id),
                    ).fetchone()
                    if row is None:
                        raise DocumentNotFoundError(
                            f"Cannot update missing document {write.path}"
                        )
                    body = _loads(row[0])
                    body.update(write.data)
                    conn.execute(
                        "UPDATE documents SET body = ?, updated_at = ? "
                        "WHERE collection = ? AND document_id = ?",
                        (_dumps(body), stamp, write.collection, write.document_id),
                    )
                else:
                    conn.execute(
                        "DELETE FROM documents WHERE collection = ? AND document_id = ?",
                        (write.collection, write.document_id),
                    )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.debug("Committed %d write(s) to %s", len(writes), self._db_path)

    def _query_sync(
        self,
        collection: str,
        order_by: str | None,
        descending: bool,
        limit: int | None,
    ) -> list[tuple[str, dict[str, Any]]]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT document_id, body FROM documents WHERE collection = ?",
                (collection,),
            ).fetchall()
        finally:
            conn.close()

        docs = [(row[0], _loads(row[1])) for row in rows]
        if order_by:
            present = [d for d in docs if d[1].get(order_by) is not None]
            missing = [d for d in docs if d[1].get(order_by) is None]
            present.sort(key=lambda d: d[1][order_by], reverse=descending)
            docs = present + missing
        if limit is not None:
            docs = docs[:limit]
        return docs

    # ── Async API ────────────────────────────────────────────────

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._get_sync, collection, document_id)

    async def set(self, collection: str, document_id: str, body: dict[str, Any]) -> None:
        await self.commit([Write.set(collection, document_id, body)])

    async def update(
        self, collection: str, document_id: str, fields: dict[str, Any]
    ) -> None:
        await self.commit([Write.update(collection, document_id, fields)])

    async def delete(self, collection: str, document_id: str) -> None:
        await self.commit([Write.delete(collection, document_id)])

    async def commit(self, writes: Sequence[Write]) -> None:
        await asyncio.to_thread(self._commit_sync, list(writes))

    async def query(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        return await asyncio.to_thread(
            self._query_sync, collection, order_by, descending, limit
        )

    async def now(self) -> datetime:
        """Return the current UTC time, strictly increasing per store."""
        with self._clock_lock:
            now = datetime.now(UTC)
            if self._last_now is not None and now <= self._last_now:
                now = self._last_now + timedelta(microseconds=1)
            self._last_now = now
            return now
