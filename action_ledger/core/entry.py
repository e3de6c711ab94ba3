"""
Log Entry Data Models
~~~~~~~~~~~~~~~~~~~~~

The at-rest schema of the action log and the summary produced by a
successful rollback.

A stored entry is a document of the shape::

    {
        "actionTag": "update_subject",
        "timestamp": <store timestamp>,
        "actorId": "teacher-7",
        "kind": "update",
        "entity": "subject",
        "targetId": "s1",
        "details": {"before": {...}, "after": {...}, "meta": {...}},
    }

``kind``, ``entity`` and ``targetId`` are resolved when the action is
logged. Entries written without them are still readable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from action_ledger.core.action import ActionKind

__all__ = ["ActionDetails", "LogEntry", "RollbackSummary"]

_DETAIL_KEYS = ("before", "after", "meta")


@dataclass(frozen=True)
class ActionDetails:
    """
    The details bag of a log entry.

    Attributes:
        before: Snapshot prior to the action, None if it created something.
        after: Snapshot following the action, None if it deleted something.
        meta: Free-form auxiliary data.
        extra: Any other keys the caller logged alongside.
    """

    before: Any = None
    after: Any = None
    meta: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> ActionDetails:
        if not isinstance(data, dict):
            return cls()
        meta = data.get("meta")
        return cls(
            before=data.get("before"),
            after=data.get("after"),
            meta=meta if isinstance(meta, dict) else {},
            extra={k: v for k, v in data.items() if k not in _DETAIL_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data["before"] = self.before
        data["after"] = self.after
        data["meta"] = dict(self.meta)
        return data


@dataclass(frozen=True)
class LogEntry:
    """
    Immutable record of one performed action.

    Attributes:
        id: Store-assigned document id.
        action_tag: Tag classifying the action, e.g. ``"add_event"``.
        timestamp: Store-assigned creation time.
        actor_id: Who performed the action.
        details: Before/after snapshots and metadata.
        kind: Classification resolved at logging time.
        entity: Entity name of the collection route, if one matched.
        target_id: Id of the affected document, if it could be determined.
    """

    id: str
    action_tag: str
    timestamp: datetime | None
    actor_id: str
    details: ActionDetails = field(default_factory=ActionDetails)
    kind: ActionKind | None = None
    entity: str | None = None
    target_id: str | None = None

    def to_document(self) -> dict[str, Any]:
        """Serialize to the at-rest document body (without the id)."""
        return {
            "actionTag": self.action_tag,
            "timestamp": self.timestamp,
            "actorId": self.actor_id,
            "kind": self.kind.value if self.kind else None,
            "entity": self.entity,
            "targetId": self.target_id,
            "details": self.details.to_dict(),
        }

    @classmethod
    def from_document(cls, doc_id: str, body: dict[str, Any]) -> LogEntry:
        """Build an entry from a stored document body."""
        raw_kind = body.get("kind")
        try:
            kind = ActionKind(raw_kind) if raw_kind else None
        except ValueError:
            kind = None
        return cls(
            id=doc_id,
            action_tag=body.get("actionTag", ""),
            timestamp=body.get("timestamp"),
            actor_id=body.get("actorId", ""),
            details=ActionDetails.from_dict(body.get("details")),
            kind=kind,
            entity=body.get("entity"),
            target_id=body.get("targetId"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dictionary."""
        data = self.to_document()
        data["id"] = self.id
        data["timestamp"] = self.timestamp.isoformat() if self.timestamp else None
        return data


@dataclass
class RollbackSummary:
    """
    What a successful rollback changed.

    Only ids, paths and counts are kept so the follow-up log entry
    stays small.
    """

    original_log_id: str
    original_action: str
    collection: str = ""
    deleted_ids: list[str] = field(default_factory=list)
    restored_ids: list[str] = field(default_factory=list)
    skipped_count: int = 0
    rollback_log_id: str | None = None

    @property
    def write_count(self) -> int:
        return len(self.deleted_ids) + len(self.restored_ids)

    def to_meta(self) -> dict[str, Any]:
        """Render as the ``meta`` payload of a ``rollback_action`` entry."""
        meta: dict[str, Any] = {
            "originalLogId": self.original_log_id,
            "originalAction": self.original_action,
            "collection": self.collection,
            "deletedDocIds": list(self.deleted_ids),
            "restoredDocIds": list(self.restored_ids),
            "deletedCount": len(self.deleted_ids),
            "restoredCount": len(self.restored_ids),
        }
        if self.skipped_count:
            meta["skippedCount"] = self.skipped_count
        return meta
