"""
In-Memory Document Store
~~~~~~~~~~~~~~~~~~~~~~~~

Process-local DocumentStore used by tests and by ledgers configured
with the ``memory`` backend. Bodies are deep-copied on the way in and
out so callers can never mutate stored state by reference.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from action_ledger.exceptions import DocumentNotFoundError, StoreUnavailableError
from action_ledger.store.base import DocumentStore, Write, WriteOp

__all__ = ["MemoryDocumentStore"]

logger = logging.getLogger(__name__)

_Key = tuple[str, str]


class MemoryDocumentStore(DocumentStore):
    """
    Dict-backed document store with all-or-nothing batch commits.

    Set ``online = False`` to make every call raise
    ``StoreUnavailableError``, as a real client does when offline.
    """

    def __init__(self) -> None:
        self._docs: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()
        self._last_now: datetime | None = None
        self.online = True

    def _check_online(self) -> None:
        if not self.online:
            raise StoreUnavailableError("Document store is unreachable")

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        self._check_online()
        async with self._lock:
            body = self._docs.get(collection, {}).get(document_id)
            return copy.deepcopy(body) if body is not None else None

    async def set(self, collection: str, document_id: str, body: dict[str, Any]) -> None:
        await self.commit([Write.set(collection, document_id, body)])

    async def update(
        self, collection: str, document_id: str, fields: dict[str, Any]
    ) -> None:
        await self.commit([Write.update(collection, document_id, fields)])

    async def delete(self, collection: str, document_id: str) -> None:
        await self.commit([Write.delete(collection, document_id)])

    async def commit(self, writes: Sequence[Write]) -> None:
        """
        Stage every write against a private view, then publish at once.

        A failing write leaves the store untouched.
        """
        self._check_online()
        async with self._lock:
            staged: dict[_Key, dict[str, Any] | None] = {}
            for write in writes:
                key = (write.collection, write.document_id)
                current = (
                    staged[key]
                    if key in staged
                    else self._docs.get(write.collection, {}).get(write.document_id)
                )
                if write.op == WriteOp.SET:
                    staged[key] = copy.deepcopy(write.data)
                elif write.op == WriteOp.UPDATE:
                    if current is None:
                        raise DocumentNotFoundError(
                            f"Cannot update missing document {write.path}"
                        )
                    merged = copy.deepcopy(current)
                    merged.update(copy.deepcopy(write.data))
                    staged[key] = merged
                else:
                    staged[key] = None

            for (collection, document_id), body in staged.items():
                if body is None:
                    self._docs.get(collection, {}).pop(document_id, None)
                else:
                    self._docs.setdefault(collection, {})[document_id] = body
        logger.debug("Committed %d write(s)", len(writes))

    async def query(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        self._check_online()
        async with self._lock:
            rows = [
                (doc_id, copy.deepcopy(body))
                for doc_id, body in self._docs.get(collection, {}).items()
            ]
        if order_by:
            present = [r for r in rows if r[1].get(order_by) is not None]
            missing = [r for r in rows if r[1].get(order_by) is None]
            present.sort(key=lambda r: r[1][order_by], reverse=descending)
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def now(self) -> datetime:
        """Return the current UTC time, strictly increasing per store."""
        self._check_online()
        now = datetime.now(UTC)
        if self._last_now is not None and now <= self._last_now:
            now = self._last_now + timedelta(microseconds=1)
        self._last_now = now
        return now

    def dump(self, collection: str) -> dict[str, dict[str, Any]]:
        """Return a deep copy of one collection, keyed by document id."""
        return copy.deepcopy(self._docs.get(collection, {}))

    def clear(self) -> None:
        """Remove every document."""
        self._docs.clear()
