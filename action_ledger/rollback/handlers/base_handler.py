"""
Base Inverse Handler
~~~~~~~~~~~~~~~~~~~~

Abstract base class for handlers that compute the compensating writes
which undo one logged action.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from action_ledger.core.action import ActionKind
from action_ledger.core.entry import LogEntry
from action_ledger.exceptions import MissingTargetIdError
from action_ledger.resolver import EntityRoute
from action_ledger.store.base import Write

__all__ = ["BaseInverseHandler", "InversePlan"]


@dataclass
class InversePlan:
    """
    The writes that undo one action, plus what they touch.

    Attributes:
        writes: Writes to commit as one atomic batch.
        deleted_ids: Ids of documents the plan deletes.
        restored_ids: Ids of documents the plan overwrites or patches.
        skipped_count: Bulk records that carried no usable id.
    """

    writes: list[Write] = field(default_factory=list)
    deleted_ids: list[str] = field(default_factory=list)
    restored_ids: list[str] = field(default_factory=list)
    skipped_count: int = 0

    def delete(self, collection: str, document_id: str) -> None:
        self.writes.append(Write.delete(collection, document_id))
        self.deleted_ids.append(document_id)

    def set(self, collection: str, document_id: str, body: dict[str, Any]) -> None:
        self.writes.append(Write.set(collection, document_id, body))
        self.restored_ids.append(document_id)

    def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        self.writes.append(Write.update(collection, document_id, fields))
        self.restored_ids.append(document_id)


class BaseInverseHandler(ABC):
    """
    Abstract base class for inverse handlers.

    Each handler declares the action kinds it reverses and turns a log
    entry into an InversePlan. Handlers only compute; they never touch
    the store, so every validation error surfaces before any write.
    """

    @property
    @abstractmethod
    def kinds(self) -> tuple[ActionKind, ...]:
        """Action kinds this handler reverses."""
        ...

    @abstractmethod
    def plan(self, entry: LogEntry, route: EntityRoute) -> InversePlan:
        """
        Compute the writes that undo ``entry``.

        Args:
            entry: The log entry being rolled back.
            route: The collection the entry's action applied to.

        Returns:
            The plan to commit.

        Raises:
            MissingTargetIdError: If the affected document id is unknown.
            MissingRestoreDataError: If a required snapshot is missing.
        """
        ...

    def can_handle(self, kind: ActionKind) -> bool:
        """Check if this handler reverses the given kind."""
        return kind in self.kinds

    def target_id(self, entry: LogEntry, route: EntityRoute, kind: ActionKind) -> str:
        """
        Return the id stored with the entry, or derive it from the snapshots.

        Raises:
            MissingTargetIdError: If neither yields an id.
        """
        target = entry.target_id or route.target_id_for(
            kind, entry.details.before, entry.details.after
        )
        if not target:
            raise MissingTargetIdError(
                f"Cannot determine document ID for rollback of "
                f"{entry.action_tag} (Log ID: {entry.id})",
                log_id=entry.id,
                action_tag=entry.action_tag,
            )
        return target

    @staticmethod
    def is_empty(snapshot: Any) -> bool:
        return snapshot is None or (isinstance(snapshot, Mapping) and not snapshot)

    def __repr__(self) -> str:
        kinds = [k.value for k in self.kinds]
        return f"<{self.__class__.__name__} kinds={kinds!r}>"
