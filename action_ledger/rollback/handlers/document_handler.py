"""
Document Inverse Handlers
~~~~~~~~~~~~~~~~~~~~~~~~~

Reverse actions that touched exactly one document:

- add_*: delete the created document.
- update_* / upsert_*: restore ``before``, or delete when there was none.
- delete_*: recreate the document from ``before``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from action_ledger.core.action import ActionKind
from action_ledger.core.entry import LogEntry
from action_ledger.exceptions import MissingRestoreDataError
from action_ledger.resolver import EntityRoute
from action_ledger.rollback.handlers.base_handler import BaseInverseHandler, InversePlan
from action_ledger.snapshot import to_document_body

__all__ = ["CreateInverseHandler", "UpdateInverseHandler", "DeleteInverseHandler"]

logger = logging.getLogger(__name__)


class CreateInverseHandler(BaseInverseHandler):
    """Undo a creation by deleting the created document."""

    @property
    def kinds(self) -> tuple[ActionKind, ...]:
        return (ActionKind.ADD,)

    def plan(self, entry: LogEntry, route: EntityRoute) -> InversePlan:
        target = self.target_id(entry, route, ActionKind.ADD)
        plan = InversePlan()
        plan.delete(route.collection, target)
        return plan


class UpdateInverseHandler(BaseInverseHandler):
    """
    Undo an update or upsert.

    An empty ``before`` means the action created the document, so the
    inverse deletes it. Otherwise the whole body is overwritten with
    ``before``; fields added since are dropped.
    """

    @property
    def kinds(self) -> tuple[ActionKind, ...]:
        return (ActionKind.UPDATE, ActionKind.UPSERT)

    def plan(self, entry: LogEntry, route: EntityRoute) -> InversePlan:
        kind = entry.kind or ActionKind.UPDATE
        target = self.target_id(entry, route, kind)
        before = entry.details.before
        plan = InversePlan()

        if self.is_empty(before):
            logger.debug("No prior state for %s, rollback deletes %s", entry.id, target)
            plan.delete(route.collection, target)
            return plan

        if not isinstance(before, Mapping):
            raise MissingRestoreDataError(
                f"Rollback of {entry.action_tag} needs 'before' to be a document "
                f"snapshot (Log ID: {entry.id})",
                log_id=entry.id,
                action_tag=entry.action_tag,
            )
        plan.set(route.collection, target, to_document_body(before))
        return plan


class DeleteInverseHandler(BaseInverseHandler):
    """Undo a deletion by recreating the document from ``before``."""

    @property
    def kinds(self) -> tuple[ActionKind, ...]:
        return (ActionKind.DELETE,)

    def plan(self, entry: LogEntry, route: EntityRoute) -> InversePlan:
        before = entry.details.before
        if self.is_empty(before) or not isinstance(before, Mapping):
            raise MissingRestoreDataError(
                f"Cannot determine data to restore for rollback of "
                f"{entry.action_tag} (Log ID: {entry.id})",
                log_id=entry.id,
                action_tag=entry.action_tag,
            )
        target = self.target_id(entry, route, ActionKind.DELETE)
        plan = InversePlan()
        plan.set(route.collection, target, to_document_body(before))
        return plan
