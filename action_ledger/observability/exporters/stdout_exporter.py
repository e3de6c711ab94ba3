"""
Stdout Exporter
~~~~~~~~~~~~~~~

Streams written log entries as JSON lines, one entry per line.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterable
from typing import TextIO

from action_ledger.core.action import ActionKind
from action_ledger.core.entry import LogEntry

__all__ = ["StdoutExporter"]


class StdoutExporter:
    """
    Writes each log entry to a text stream as JSON.

    Args:
        stream: Target stream. Defaults to ``sys.stdout`` at write time.
        pretty: Indent the JSON instead of writing one line per entry.
        kinds: Only export entries of these kinds, e.g.
            ``[ActionKind.ROLLBACK, ActionKind.ROLLBACK_FAILED]``.
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        pretty: bool = False,
        kinds: Iterable[ActionKind] | None = None,
    ) -> None:
        self._stream = stream
        self._indent = 2 if pretty else None
        self._kinds = frozenset(kinds) if kinds is not None else None

    def accepts(self, entry: LogEntry) -> bool:
        return self._kinds is None or entry.kind in self._kinds

    def export(self, entry: LogEntry) -> None:
        if not self.accepts(entry):
            return
        stream = self._stream or sys.stdout
        stream.write(json.dumps(entry.to_dict(), indent=self._indent, default=str) + "\n")
        stream.flush()
