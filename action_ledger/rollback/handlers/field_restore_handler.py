"""
Field Restore Handler
~~~~~~~~~~~~~~~~~~~~~

Reverses bulk actions (batch_update_*, reset_*) recorded as lists of
per-document records::

    "before": [{"id": "mon-1", "subjectId": "math"}, ...]

Each record becomes a field-level update at that document's address
restoring every recorded field. Records without a usable id are
skipped and counted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from action_ledger.core.action import ActionKind
from action_ledger.core.entry import LogEntry
from action_ledger.exceptions import MissingRestoreDataError
from action_ledger.resolver import EntityRoute
from action_ledger.rollback.handlers.base_handler import BaseInverseHandler, InversePlan
from action_ledger.snapshot import denormalize

__all__ = ["FieldRestoreHandler"]

logger = logging.getLogger(__name__)

RECORD_ID_FIELD = "id"


class FieldRestoreHandler(BaseInverseHandler):
    """Undo a bulk update or reset one document at a time."""

    @property
    def kinds(self) -> tuple[ActionKind, ...]:
        return (ActionKind.BATCH_UPDATE, ActionKind.RESET)

    def plan(self, entry: LogEntry, route: EntityRoute) -> InversePlan:
        before = entry.details.before
        after = entry.details.after
        if not isinstance(before, list):
            raise MissingRestoreDataError(
                f"Rollback for {entry.action_tag} requires 'before' details to be "
                f"a list of document records (Log ID: {entry.id})",
                log_id=entry.id,
                action_tag=entry.action_tag,
            )
        if entry.kind == ActionKind.BATCH_UPDATE and not isinstance(after, list | None):
            raise MissingRestoreDataError(
                f"Rollback for {entry.action_tag} requires 'after' details to be "
                f"a list of document records (Log ID: {entry.id})",
                log_id=entry.id,
                action_tag=entry.action_tag,
            )

        plan = InversePlan()
        for record in before:
            doc_id = self._record_id(record)
            if doc_id is None:
                plan.skipped_count += 1
                continue
            fields = {
                key: denormalize(value)
                for key, value in record.items()
                if key != RECORD_ID_FIELD
            }
            if not fields:
                plan.skipped_count += 1
                continue
            plan.update(route.collection, doc_id, fields)

        if plan.skipped_count:
            logger.warning(
                "Rollback of %s skipped %d record(s) without a usable id or fields",
                entry.id,
                plan.skipped_count,
            )
        if not plan.writes:
            logger.warning("Rollback of %s: no documents needed reverting", entry.id)
        return plan

    @staticmethod
    def _record_id(record: Any) -> str | None:
        if not isinstance(record, Mapping):
            return None
        value = record.get(RECORD_ID_FIELD)
        if isinstance(value, str) and value:
            return value
        return None
