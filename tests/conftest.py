"""Shared fixtures for Action Ledger tests."""

from __future__ import annotations

import pytest

from action_ledger import ActionLedger, MemoryDocumentStore
from action_ledger.config.loader import load_config_from_dict


@pytest.fixture
def store() -> MemoryDocumentStore:
    """Create an empty in-memory document store."""
    return MemoryDocumentStore()


@pytest.fixture
def ledger(store: MemoryDocumentStore) -> ActionLedger:
    """Create a default ActionLedger over the in-memory store."""
    return ActionLedger(config=load_config_from_dict({}), store=store)


@pytest.fixture
def sample_subject() -> dict:
    return {"id": "s1", "name": "Math", "teacher": "Tanaka"}


@pytest.fixture
def sample_slots() -> list[dict]:
    """Per-slot records as a bulk timetable edit logs them."""
    return [
        {"id": "Monday-1", "subjectId": "math"},
        {"id": "Monday-2", "subjectId": None},
        {"id": "Tuesday-1", "subjectId": "art"},
    ]
