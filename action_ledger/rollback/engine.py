"""
Rollback Engine
~~~~~~~~~~~~~~~

Undoes one logged action. A rollback request runs through::

    Loaded -> Classified -> ComputedInverse -> Applied -> Logged

and stops at ``Rejected`` (not reversible, unsupported, missing data)
or ``ApplyFailed`` (the atomic batch did not commit). Every failure is
recorded as a ``rollback_action_failed`` entry and re-raised; every
success is recorded as a ``rollback_action`` entry referencing the
original.

Rollbacks overwrite unconditionally with the logged snapshot. Changes
made to the same documents after the original action are lost.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from fnmatch import fnmatchcase

from action_ledger.core.action import (
    ROLLBACK_FAILED_TAG,
    ROLLBACK_TAG,
    ActionKind,
    classify,
)
from action_ledger.core.entry import LogEntry, RollbackSummary
from action_ledger.exceptions import (
    BatchCommitFailedError,
    LogNotFoundError,
    NotReversibleError,
    StoreUnavailableError,
    UnsupportedActionError,
)
from action_ledger.logger import ActionLogger
from action_ledger.observability.metrics import MetricsCollector
from action_ledger.resolver import CollectionResolver
from action_ledger.rollback.handlers.base_handler import InversePlan
from action_ledger.rollback.registry import InverseRegistry
from action_ledger.store.base import DocumentStore

__all__ = ["RollbackEngine"]

logger = logging.getLogger(__name__)


def _describe(exc: BaseException) -> str:
    message = exc.args[0] if exc.args else str(exc)
    return f"{type(exc).__name__}: {message}"


class RollbackEngine:
    """
    Computes and applies the inverse of a logged action.

    No in-process locking: each rollback maps to one atomic batch.
    Concurrent rollbacks of the same entry must be serialized by the
    caller.
    """

    def __init__(
        self,
        store: DocumentStore,
        action_logger: ActionLogger,
        resolver: CollectionResolver,
        registry: InverseRegistry | None = None,
        open_ended_patterns: Sequence[str] = (),
        actor_id: str = "system_rollback",
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._store = store
        self._logger = action_logger
        self._resolver = resolver
        self._registry = registry or InverseRegistry.default()
        self._open_ended_patterns = tuple(open_ended_patterns)
        self._actor_id = actor_id
        self._metrics = metrics

    async def rollback(self, log_id: str, actor_id: str | None = None) -> RollbackSummary:
        """
        Roll back the action recorded under ``log_id``.

        Args:
            log_id: Id of the log entry to reverse.
            actor_id: Who requested the rollback.

        Returns:
            Summary of what was deleted and restored.

        Raises:
            LogNotFoundError: The entry does not exist.
            NotReversibleError: The entry is a rollback or open-ended.
            UnsupportedActionError: No inverse or collection is known.
            MissingTargetIdError: The affected document id is unknown.
            MissingRestoreDataError: A required snapshot is missing.
            BatchCommitFailedError: The inverse writes did not commit.
            StoreUnavailableError: The store could not be reached.
        """
        actor = actor_id or self._actor_id
        entry: LogEntry | None = None

        try:
            entry = await self._load(log_id)
            entry = self._classify(entry)
            logger.info("Attempting rollback for action %s (%s)", entry.action_tag, log_id)
            collection, plan = self._compute_inverse(entry)
            await self._apply(entry, plan)
        except Exception as exc:
            logger.error("Rollback failed for Log ID %s: %s", log_id, exc)
            await self._record_failure(log_id, entry, exc, actor)
            raise

        summary = RollbackSummary(
            original_log_id=log_id,
            original_action=entry.action_tag,
            collection=collection,
            deleted_ids=plan.deleted_ids,
            restored_ids=plan.restored_ids,
            skipped_count=plan.skipped_count,
        )
        summary.rollback_log_id = await self._logger.log(
            ROLLBACK_TAG, {"meta": summary.to_meta()}, actor
        )
        self._count("rollbacks")
        logger.info(
            "Rollback successful for Log ID %s, action %s (%d write(s))",
            log_id,
            entry.action_tag,
            summary.write_count,
        )
        return summary

    async def _load(self, log_id: str) -> LogEntry:
        entry = await self._logger.get(log_id)
        if entry is None:
            raise LogNotFoundError(
                f"Log entry with ID {log_id} not found", log_id=log_id
            )
        return entry

    def _classify(self, entry: LogEntry) -> LogEntry:
        """Settle the entry's kind and reject irreversible actions."""
        tag = entry.action_tag
        kind = entry.kind or classify(tag, self._open_ended_patterns)
        open_ended = any(fnmatchcase(tag, pattern) for pattern in self._open_ended_patterns)
        if kind.is_reversible() and not open_ended:
            return dataclasses.replace(entry, kind=kind)

        if tag == ROLLBACK_TAG or kind == ActionKind.ROLLBACK:
            raise NotReversibleError(
                f"Cannot roll back a rollback action (Log ID: {entry.id})",
                log_id=entry.id,
                action_tag=tag,
                reason="Rolling back a rollback could mask or compound history.",
            )
        if tag == ROLLBACK_FAILED_TAG or kind == ActionKind.ROLLBACK_FAILED:
            raise NotReversibleError(
                f"Cannot roll back a failed rollback record (Log ID: {entry.id})",
                log_id=entry.id,
                action_tag=tag,
                reason="A failed rollback changed nothing, so there is nothing to undo.",
            )
        if kind == ActionKind.OPEN_ENDED or open_ended:
            raise NotReversibleError(
                f"Action '{tag}' affects an open-ended set of documents",
                log_id=entry.id,
                action_tag=tag,
                reason=(
                    f"'{tag}' affects future dates and cannot be automatically "
                    "rolled back."
                ),
            )
        # OTHER: reversible only through an exact-tag handler.
        return dataclasses.replace(entry, kind=kind)

    def _compute_inverse(self, entry: LogEntry) -> tuple[str, InversePlan]:
        try:
            handler = self._registry.get_handler(entry.action_tag, entry.kind)
            route = self._resolver.resolve(entry.action_tag)
        except UnsupportedActionError as exc:
            exc.log_id = entry.id
            raise
        plan = handler.plan(entry, route)
        logger.debug(
            "Computed %d inverse write(s) for %s via %s",
            len(plan.writes),
            entry.id,
            handler.__class__.__name__,
        )
        return route.collection, plan

    async def _apply(self, entry: LogEntry, plan: InversePlan) -> None:
        try:
            await self._store.commit(plan.writes)
        except StoreUnavailableError:
            raise
        except Exception as exc:
            raise BatchCommitFailedError(
                f"Rollback batch for {entry.action_tag} failed to commit: {exc}",
                log_id=entry.id,
                action_tag=entry.action_tag,
            ) from exc

    async def _record_failure(
        self,
        log_id: str,
        entry: LogEntry | None,
        exc: BaseException,
        actor: str,
    ) -> None:
        self._count("rollback_failures")
        await self._logger.log(
            ROLLBACK_FAILED_TAG,
            {
                "meta": {
                    "originalLogId": log_id,
                    "originalAction": entry.action_tag if entry else None,
                    "error": _describe(exc),
                }
            },
            actor,
        )

    def _count(self, name: str) -> None:
        if self._metrics is not None:
            self._metrics.increment(name)
