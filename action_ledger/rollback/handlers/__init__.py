"""Inverse handlers package."""

from action_ledger.rollback.handlers.base_handler import BaseInverseHandler, InversePlan
from action_ledger.rollback.handlers.document_handler import (
    CreateInverseHandler,
    DeleteInverseHandler,
    UpdateInverseHandler,
)
from action_ledger.rollback.handlers.field_restore_handler import FieldRestoreHandler

__all__ = [
    "BaseInverseHandler",
    "InversePlan",
    "CreateInverseHandler",
    "UpdateInverseHandler",
    "DeleteInverseHandler",
    "FieldRestoreHandler",
]
