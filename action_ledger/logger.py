"""
Action Logger
~~~~~~~~~~~~~

Appends immutable entries to the action log. Writing an audit record
must never break the mutation it describes: every failure is reported
to the operational log and turned into a ``None`` return.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from action_ledger.core.action import classify
from action_ledger.core.entry import ActionDetails, LogEntry
from action_ledger.exceptions import (
    ActionLedgerError,
    LogWriteFailedError,
    StoreUnavailableError,
)
from action_ledger.observability.metrics import MetricsCollector
from action_ledger.resolver import CollectionResolver
from action_ledger.snapshot import normalize
from action_ledger.store.base import DocumentStore

__all__ = ["ActionLogger"]

logger = logging.getLogger(__name__)


class ActionLogger:
    """
    Writes LogEntry documents into the log collection.

    The action kind, entity and target id are resolved here, once, and
    stored with the entry so the rollback engine never has to guess
    them from the tag later.
    """

    def __init__(
        self,
        store: DocumentStore,
        resolver: CollectionResolver,
        collection: str,
        open_ended_patterns: Sequence[str] = (),
        anonymous_actor: str = "anonymous",
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._collection = collection
        self._open_ended_patterns = tuple(open_ended_patterns)
        self._anonymous_actor = anonymous_actor
        self._metrics = metrics
        self._exporters: list[Any] = []

    @property
    def collection(self) -> str:
        return self._collection

    def add_exporter(self, exporter: Any) -> None:
        """Add an exporter to receive every written entry."""
        self._exporters.append(exporter)

    async def log(
        self,
        action_tag: str,
        details: Mapping[str, Any] | None = None,
        actor_id: str | None = None,
        target_id: str | None = None,
    ) -> str | None:
        """
        Record one action.

        Args:
            action_tag: Tag classifying the action, e.g. ``"add_subject"``.
            details: Optional ``before`` / ``after`` / ``meta`` bag.
                Normalized before storage.
            actor_id: Who performed the action. Defaults to the
                anonymous actor.
            target_id: Id of the affected document. Derived from the
                snapshots when omitted.

        Returns:
            The new log entry id, or None if the entry could not be written.
        """
        try:
            entry = await self._write(action_tag, details, actor_id, target_id)
        except LogWriteFailedError as exc:
            logger.error(
                "Failed to log action '%s' (store may be offline): %s",
                action_tag,
                exc,
            )
            self._count("log_failures")
            return None
        except Exception:
            logger.exception("Unexpected error while logging action '%s'", action_tag)
            self._count("log_failures")
            return None

        self._count("logged_actions")
        self._export(entry)
        logger.info("Action logged: %s (%s)", action_tag, entry.id)
        return entry.id

    async def _write(
        self,
        action_tag: str,
        details: Mapping[str, Any] | None,
        actor_id: str | None,
        target_id: str | None,
    ) -> LogEntry:
        if not action_tag:
            raise LogWriteFailedError("Action tag must be a non-empty string")
        if details is not None and not isinstance(details, Mapping):
            raise LogWriteFailedError(
                f"Details must be a mapping, got {type(details).__name__}"
            )

        clean = ActionDetails.from_dict(normalize(details or {}))
        kind = classify(action_tag, self._open_ended_patterns)
        route = self._resolver.find(action_tag)
        if target_id is None and route is not None:
            target_id = route.target_id_for(kind, clean.before, clean.after)

        try:
            entry = LogEntry(
                id=self._store.new_id(),
                action_tag=action_tag,
                timestamp=await self._store.now(),
                actor_id=actor_id or self._anonymous_actor,
                details=clean,
                kind=kind,
                entity=route.entity if route else None,
                target_id=target_id,
            )
            await self._store.set(self._collection, entry.id, entry.to_document())
        except ActionLedgerError as exc:
            raise LogWriteFailedError(str(exc)) from exc
        return entry

    async def get(self, log_id: str) -> LogEntry | None:
        """
        Load one entry by id.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """
        body = await self._store.get(self._collection, log_id)
        if body is None:
            return None
        return LogEntry.from_document(log_id, body)

    async def recent(self, limit: int = 100) -> list[LogEntry]:
        """
        Return the newest entries first.

        Returns an empty list when the store is unreachable.
        """
        try:
            rows = await self._store.query(
                self._collection, order_by="timestamp", descending=True, limit=limit
            )
        except StoreUnavailableError as exc:
            logger.warning("Store is offline, returning no log entries: %s", exc)
            return []
        return [LogEntry.from_document(doc_id, body) for doc_id, body in rows]

    def _export(self, entry: LogEntry) -> None:
        for exporter in self._exporters:
            try:
                exporter.export(entry)
            except Exception as exc:
                logger.error(
                    "Exporter %s failed: %s",
                    type(exporter).__name__,
                    exc,
                )

    def _count(self, name: str) -> None:
        if self._metrics is not None:
            self._metrics.increment(name)
