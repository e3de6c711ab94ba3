"""Document store boundary and bundled backends."""

from action_ledger.store.base import DocumentStore, Write, WriteOp
from action_ledger.store.memory import MemoryDocumentStore
from action_ledger.store.sqlite import SqliteDocumentStore

__all__ = [
    "DocumentStore",
    "Write",
    "WriteOp",
    "MemoryDocumentStore",
    "SqliteDocumentStore",
]
