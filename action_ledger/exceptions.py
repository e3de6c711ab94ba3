"""
Action Ledger Custom Exceptions
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

All custom exception classes for Action Ledger, organized by domain.
Every distinct failure mode has its own exception type.

**Rollback errors**

Every rollback error carries the ``log_id`` of the entry being reversed
and the ``action_tag`` it was recorded under (``None`` when the entry
could not be loaded).
"""

__all__ = [
    # Base
    "ActionLedgerError",
    # Config
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigValidationError",
    # Store
    "StoreError",
    "StoreUnavailableError",
    "DocumentNotFoundError",
    # Logging
    "LogWriteFailedError",
    # Rollback
    "RollbackError",
    "LogNotFoundError",
    "MissingTargetIdError",
    "MissingRestoreDataError",
    "UnsupportedActionError",
    "NotReversibleError",
    "BatchCommitFailedError",
]


# ── Formatting Helper ────────────────────────────────────────────────────────

_SEPARATOR = "─" * 52


def _format_structured_error(
    title: str,
    what_happened: str,
    how_to_fix: str,
) -> str:
    """Build a rich, structured error message."""
    lines = [
        f"  {title}",
        f"  {_SEPARATOR}",
        "  What happened:",
        *[f"    {line}" for line in what_happened.strip().splitlines()],
        "",
        "  How to fix:",
        *[f"    {line}" for line in how_to_fix.strip().splitlines()],
    ]
    return "\n".join(lines)


# ── Base Exception ───────────────────────────────────────────────────────────


class ActionLedgerError(Exception):
    """Base exception for all Action Ledger errors."""

    def __init__(self, message: str = "", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


# ── Config Exceptions ────────────────────────────────────────────────────────


class ConfigError(ActionLedgerError):
    """Base exception for configuration-related errors."""


class ConfigFileNotFoundError(ConfigError):
    """Raised when a configuration file cannot be found at the specified path."""


class ConfigValidationError(ConfigError):
    """Raised when configuration values fail validation."""


# ── Store Exceptions ─────────────────────────────────────────────────────────


class StoreError(ActionLedgerError):
    """Base exception for document store errors."""


class StoreUnavailableError(StoreError):
    """Raised when the document store cannot be reached."""


class DocumentNotFoundError(StoreError):
    """Raised when a field-level update targets a document that does not exist."""


# ── Logging Exceptions ───────────────────────────────────────────────────────


class LogWriteFailedError(ActionLedgerError):
    """
    Raised internally when an audit entry cannot be written.

    Never escapes ``ActionLogger.log``: the logger reports it to the
    operational log and returns ``None`` instead.
    """


# ── Rollback Exceptions ──────────────────────────────────────────────────────


class RollbackError(ActionLedgerError):
    """Base exception for rollback errors."""

    def __init__(
        self,
        message: str = "",
        log_id: str | None = None,
        action_tag: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.log_id = log_id
        self.action_tag = action_tag
        super().__init__(message, details)


class LogNotFoundError(RollbackError):
    """Raised when the log entry to roll back does not exist."""


class MissingTargetIdError(RollbackError):
    """Raised when the id of the document to reverse cannot be determined."""


class MissingRestoreDataError(RollbackError):
    """Raised when an entry lacks the ``before`` snapshot needed to restore state."""


class UnsupportedActionError(RollbackError):
    """Raised when no inverse is known for an action tag."""


class NotReversibleError(RollbackError):
    """
    Raised when an action is deliberately excluded from automatic rollback.

    Covers rollbacks of rollbacks and actions whose effect reaches an
    open-ended set of documents.
    """

    def __init__(
        self,
        message: str = "Action is not reversible",
        log_id: str | None = None,
        action_tag: str | None = None,
        reason: str = "",
        details: dict | None = None,
        how_to_fix: str = "",
    ) -> None:
        self.reason = reason
        self.how_to_fix = how_to_fix or (
            "1. Inspect the log entry and reverse its effect manually\n"
            "2. Record the manual correction as a new action so it is audited"
        )
        super().__init__(message, log_id, action_tag, details)

    def __str__(self) -> str:
        what = self.reason or self.args[0]
        if self.action_tag:
            what = f'Action "{self.action_tag}" (log {self.log_id}): {what}'
        return _format_structured_error(
            title=f"NotReversibleError: {self.args[0]}",
            what_happened=what,
            how_to_fix=self.how_to_fix,
        )


class BatchCommitFailedError(RollbackError):
    """Raised when the atomic batch of inverse writes fails to commit."""
