"""Log entry exporters."""

from action_ledger.observability.exporters.stdout_exporter import StdoutExporter

__all__ = ["StdoutExporter"]
