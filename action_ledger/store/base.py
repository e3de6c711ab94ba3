"""
Document Store Boundary
~~~~~~~~~~~~~~~~~~~~~~~

Abstract interface to the multi-collection document store the ledger
sits in front of. The ledger needs only a handful of operations:
single-document reads and writes, an atomic multi-document commit,
and a store-assigned clock.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

__all__ = ["DocumentStore", "Write", "WriteOp"]


class WriteOp(StrEnum):
    """Kind of write inside an atomic batch."""

    SET = "set"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Write:
    """
    One document write inside an atomic batch.

    Attributes:
        op: SET replaces the whole body, UPDATE merges fields into an
            existing document, DELETE removes it.
        collection: Slash-separated collection path.
        document_id: Id of the document inside the collection.
        data: Body for SET, partial fields for UPDATE, unused for DELETE.
    """

    op: WriteOp
    collection: str
    document_id: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.document_id}"

    @classmethod
    def set(cls, collection: str, document_id: str, data: dict[str, Any]) -> Write:
        return cls(WriteOp.SET, collection, document_id, dict(data))

    @classmethod
    def update(cls, collection: str, document_id: str, data: dict[str, Any]) -> Write:
        return cls(WriteOp.UPDATE, collection, document_id, dict(data))

    @classmethod
    def delete(cls, collection: str, document_id: str) -> Write:
        return cls(WriteOp.DELETE, collection, document_id)


class DocumentStore(ABC):
    """
    Abstract base class for document store clients.

    Every method may raise ``StoreUnavailableError`` when the store
    cannot be reached. Implementations impose no timeout or retry
    policy of their own.
    """

    @abstractmethod
    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """Return a copy of the document body, or None if it does not exist."""
        ...

    @abstractmethod
    async def set(self, collection: str, document_id: str, body: dict[str, Any]) -> None:
        """Create or replace a document."""
        ...

    @abstractmethod
    async def update(
        self, collection: str, document_id: str, fields: dict[str, Any]
    ) -> None:
        """
        Merge fields into an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist.
        """
        ...

    @abstractmethod
    async def delete(self, collection: str, document_id: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""
        ...

    @abstractmethod
    async def commit(self, writes: Sequence[Write]) -> None:
        """Apply every write, or none of them."""
        ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Return ``(document_id, body)`` pairs from one collection."""
        ...

    @abstractmethod
    async def now(self) -> datetime:
        """Return the store-assigned current time."""
        ...

    def new_id(self) -> str:
        """Generate a fresh document id."""
        return uuid.uuid4().hex
