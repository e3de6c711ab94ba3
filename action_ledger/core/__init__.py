"""Action Ledger core data models."""

from action_ledger.core.action import ActionKind, classify
from action_ledger.core.entry import ActionDetails, LogEntry, RollbackSummary

__all__ = [
    "ActionKind",
    "classify",
    "ActionDetails",
    "LogEntry",
    "RollbackSummary",
]
