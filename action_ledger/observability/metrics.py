"""
Metrics
~~~~~~~

Counters for logged actions and rollbacks.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

__all__ = ["LedgerMetrics", "MetricsCollector"]


@dataclass
class LedgerMetrics:
    """Point-in-time snapshot of ledger counters."""

    logged_actions: int = 0
    log_failures: int = 0
    rollbacks: int = 0
    rollback_failures: int = 0

    def to_prometheus(self) -> str:
        """Render as Prometheus text exposition format."""
        lines = [
            f"action_ledger_logged_actions {self.logged_actions}",
            f"action_ledger_log_failures {self.log_failures}",
            f"action_ledger_rollbacks {self.rollbacks}",
            f"action_ledger_rollback_failures {self.rollback_failures}",
        ]
        return "\n".join(lines) + "\n"


class MetricsCollector:
    """Thread-safe counter tracking for ledger operations."""

    def __init__(self) -> None:
        self._counters: dict[str, int] = {
            "logged_actions": 0,
            "log_failures": 0,
            "rollbacks": 0,
            "rollback_failures": 0,
        }
        self._lock = threading.RLock()

    def increment(self, name: str, amount: int = 1) -> None:
        """Increment a counter. Unknown names are ignored."""
        with self._lock:
            if name in self._counters:
                self._counters[name] += amount

    def to_ledger_metrics(self) -> LedgerMetrics:
        with self._lock:
            return LedgerMetrics(**self._counters)

    def reset(self) -> None:
        """Reset all metrics."""
        with self._lock:
            for key in self._counters:
                self._counters[key] = 0
