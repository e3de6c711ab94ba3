"""
ActionLedger: Main Ledger Class
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

The primary entry point for Action Ledger. Assembles the store,
resolver, logger and rollback engine from one configuration and
exposes the API entity controllers call.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from action_ledger.config.loader import load_config, load_config_from_dict
from action_ledger.config.schema import LedgerConfig
from action_ledger.core.entry import LogEntry, RollbackSummary
from action_ledger.logger import ActionLogger
from action_ledger.observability.exporters.stdout_exporter import StdoutExporter
from action_ledger.observability.metrics import LedgerMetrics, MetricsCollector
from action_ledger.resolver import CollectionResolver
from action_ledger.rollback.engine import RollbackEngine
from action_ledger.rollback.handlers.base_handler import BaseInverseHandler
from action_ledger.rollback.registry import InverseRegistry
from action_ledger.store.base import DocumentStore
from action_ledger.store.memory import MemoryDocumentStore
from action_ledger.store.sqlite import SqliteDocumentStore

__all__ = ["ActionLedger"]

logger = logging.getLogger(__name__)


class ActionLedger:
    """
    Action log and compensating-rollback engine.

    Usage::

        ledger = ActionLedger.default()
        log_id = await ledger.log(
            "add_subject", {"after": {"id": "s1", "name": "Math"}}, "teacher-7"
        )
        await ledger.rollback(log_id, "admin-1")
    """

    def __init__(
        self,
        config: LedgerConfig | None = None,
        store: DocumentStore | None = None,
    ) -> None:
        self._config = config or load_config_from_dict({})
        self._store = store or self._build_store()
        self._metrics = MetricsCollector()
        self._resolver = CollectionResolver.from_config(self._config.collections)
        self._registry = InverseRegistry.default()

        patterns = self._config.rollback.open_ended_patterns
        self._logger = ActionLogger(
            self._store,
            self._resolver,
            self._config.collections.logs_path,
            open_ended_patterns=patterns,
            anonymous_actor=self._config.logging.anonymous_actor,
            metrics=self._metrics,
        )
        self._engine = RollbackEngine(
            self._store,
            self._logger,
            self._resolver,
            registry=self._registry,
            open_ended_patterns=patterns,
            actor_id=self._config.rollback.actor_id,
            metrics=self._metrics,
        )
        self._setup_exporters()

    @classmethod
    def from_config(cls, path: str, store: DocumentStore | None = None) -> ActionLedger:
        """Create a ledger from a YAML configuration file."""
        return cls(config=load_config(path), store=store)

    @classmethod
    def default(cls, store: DocumentStore | None = None) -> ActionLedger:
        """Create a ledger with default configuration."""
        return cls(store=store)

    def _build_store(self) -> DocumentStore:
        if self._config.store.backend == "sqlite":
            return SqliteDocumentStore(self._config.store.db_path)
        return MemoryDocumentStore()

    def _setup_exporters(self) -> None:
        for name in self._config.logging.exporters:
            if name == "stdout":
                self._logger.add_exporter(StdoutExporter())

    # ── Public API ───────────────────────────────────────────────

    @property
    def config(self) -> LedgerConfig:
        return self._config

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def resolver(self) -> CollectionResolver:
        return self._resolver

    async def log(
        self,
        action_tag: str,
        details: Mapping[str, Any] | None = None,
        actor_id: str | None = None,
        target_id: str | None = None,
    ) -> str | None:
        """Record an action. Returns the entry id, or None if logging failed."""
        return await self._logger.log(action_tag, details, actor_id, target_id)

    async def rollback(self, log_id: str, actor_id: str | None = None) -> RollbackSummary:
        """Undo the action recorded under ``log_id``."""
        return await self._engine.rollback(log_id, actor_id)

    async def get_entry(self, log_id: str) -> LogEntry | None:
        """Load a single log entry."""
        return await self._logger.get(log_id)

    async def recent(self, limit: int = 100) -> list[LogEntry]:
        """Return the most recent log entries, newest first."""
        return await self._logger.recent(limit)

    def add_exporter(self, exporter: Any) -> None:
        """Add an exporter that receives every written log entry."""
        self._logger.add_exporter(exporter)

    def register_inverse(self, action_tag: str, handler: BaseInverseHandler) -> None:
        """Override the inverse computation for one exact action tag."""
        self._registry.register_for_type(action_tag, handler)

    def get_metrics(self) -> LedgerMetrics:
        """Return current ledger counters."""
        return self._metrics.to_ledger_metrics()

    def __repr__(self) -> str:
        return (
            f"<ActionLedger store={type(self._store).__name__} "
            f"logs={self._logger.collection!r} routes={len(self._resolver.routes)}>"
        )
