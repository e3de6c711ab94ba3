"""Action Ledger rollback system: inverse computation and atomic restore."""

from action_ledger.rollback.engine import RollbackEngine
from action_ledger.rollback.handlers import (
    BaseInverseHandler,
    CreateInverseHandler,
    DeleteInverseHandler,
    FieldRestoreHandler,
    InversePlan,
    UpdateInverseHandler,
)
from action_ledger.rollback.registry import InverseRegistry

__all__ = [
    "RollbackEngine",
    "InverseRegistry",
    "BaseInverseHandler",
    "InversePlan",
    "CreateInverseHandler",
    "UpdateInverseHandler",
    "DeleteInverseHandler",
    "FieldRestoreHandler",
]
