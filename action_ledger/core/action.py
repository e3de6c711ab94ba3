"""
Action Kinds
~~~~~~~~~~~~

The closed set of action kinds the ledger understands, and the
classifier that maps an action tag onto one of them.

The kind is decided once, when an action is logged, and stored with
the entry. Each kind implies exactly one reversal strategy.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from fnmatch import fnmatchcase

__all__ = [
    "ActionKind",
    "ROLLBACK_TAG",
    "ROLLBACK_FAILED_TAG",
    "classify",
]

ROLLBACK_TAG = "rollback_action"
ROLLBACK_FAILED_TAG = "rollback_action_failed"


class ActionKind(StrEnum):
    """
    Classification of a logged action.

    - ADD: an entity was created; reversed by deleting it.
    - UPDATE / UPSERT: an entity changed or was created-or-replaced;
      reversed by restoring ``before`` (or deleting when there was none).
    - DELETE: an entity was removed; reversed by recreating it.
    - BATCH_UPDATE / RESET: many same-kind documents changed; reversed
      field by field from per-document records.
    - OPEN_ENDED: effect reaches documents that were never enumerated.
    - ROLLBACK / ROLLBACK_FAILED: entries written by the rollback engine.
    - OTHER: anything the ledger has no inverse for.
    """

    ADD = "add"
    UPDATE = "update"
    UPSERT = "upsert"
    DELETE = "delete"
    BATCH_UPDATE = "batch_update"
    RESET = "reset"
    OPEN_ENDED = "open_ended"
    ROLLBACK = "rollback"
    ROLLBACK_FAILED = "rollback_failed"
    OTHER = "other"

    def is_reversible(self) -> bool:
        """Return True if a bundled inverse exists for this kind."""
        return self not in (
            ActionKind.OPEN_ENDED,
            ActionKind.ROLLBACK,
            ActionKind.ROLLBACK_FAILED,
            ActionKind.OTHER,
        )


# Longer prefixes first so "batch_update_" is never read as "update_".
_PREFIXES: tuple[tuple[str, ActionKind], ...] = (
    ("batch_update_", ActionKind.BATCH_UPDATE),
    ("reset_", ActionKind.RESET),
    ("add_", ActionKind.ADD),
    ("update_", ActionKind.UPDATE),
    ("upsert_", ActionKind.UPSERT),
    ("delete_", ActionKind.DELETE),
)


def classify(tag: str, open_ended_patterns: Iterable[str] = ()) -> ActionKind:
    """
    Map an action tag to its ActionKind.

    Matching is case-sensitive. Rollback tags are checked first, then
    the open-ended patterns (glob syntax), then the prefix table.

    Args:
        tag: The action tag, e.g. ``"update_subject"``.
        open_ended_patterns: Glob patterns naming open-ended actions.

    Returns:
        The matching ActionKind, ``ActionKind.OTHER`` if none matches.
    """
    if tag == ROLLBACK_TAG:
        return ActionKind.ROLLBACK
    if tag == ROLLBACK_FAILED_TAG:
        return ActionKind.ROLLBACK_FAILED
    if any(fnmatchcase(tag, pattern) for pattern in open_ended_patterns):
        return ActionKind.OPEN_ENDED
    for prefix, kind in _PREFIXES:
        if tag.startswith(prefix):
            return kind
    return ActionKind.OTHER
