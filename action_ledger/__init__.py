"""
action-ledger: Action log and compensating rollback for document stores.

Every mutation performed by a higher-level feature is recorded as an
immutable log entry carrying enough state to build its inverse. An
administrator can later undo one past action; the ledger computes the
compensating writes and applies them as one atomic batch, or fails
loudly when the action cannot be safely reversed.

Quick Start::

    from action_ledger import ActionLedger

    ledger = ActionLedger.default()

    log_id = await ledger.log(
        "update_subject",
        {"before": {"id": "s1", "name": "Math"}, "after": {"id": "s1", "name": "Maths"}},
        actor_id="teacher-7",
    )
    await ledger.rollback(log_id, actor_id="admin-1")

:license: Apache-2.0
"""

from action_ledger.core.action import ActionKind
from action_ledger.core.entry import ActionDetails, LogEntry, RollbackSummary
from action_ledger.core.ledger import ActionLedger
from action_ledger.logger import ActionLogger
from action_ledger.resolver import CollectionResolver, EntityRoute
from action_ledger.rollback.engine import RollbackEngine
from action_ledger.rollback.handlers.base_handler import (
    BaseInverseHandler,
    InversePlan,
)
from action_ledger.snapshot import UNDEFINED, denormalize, normalize
from action_ledger.store.base import DocumentStore, Write, WriteOp
from action_ledger.store.memory import MemoryDocumentStore
from action_ledger.store.sqlite import SqliteDocumentStore

__version__ = "0.1.0"
__license__ = "Apache-2.0"

__all__ = [
    # Main class
    "ActionLedger",
    # Components
    "ActionLogger",
    "RollbackEngine",
    "CollectionResolver",
    "EntityRoute",
    # Data models
    "ActionKind",
    "ActionDetails",
    "LogEntry",
    "RollbackSummary",
    # Snapshots
    "UNDEFINED",
    "normalize",
    "denormalize",
    # Stores
    "DocumentStore",
    "MemoryDocumentStore",
    "SqliteDocumentStore",
    "Write",
    "WriteOp",
    # Extension bases
    "BaseInverseHandler",
    "InversePlan",
    # Version
    "__version__",
]
