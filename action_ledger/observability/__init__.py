"""Action Ledger observability: metrics and exporters."""

from action_ledger.observability.exporters import StdoutExporter
from action_ledger.observability.metrics import LedgerMetrics, MetricsCollector

__all__ = [
    "LedgerMetrics",
    "MetricsCollector",
    "StdoutExporter",
]
