"""
Snapshot Normalizer
~~~~~~~~~~~~~~~~~~~

Converts entity state into a storage-safe form for log entries and
back again when a snapshot is restored into the document store.

``normalize`` turns every temporal value into a canonical ISO-8601
string (millisecond precision, ``Z`` suffix) and every ``UNDEFINED``
into ``None``. ``denormalize`` turns every string matching that
canonical pattern back into a timezone-aware ``datetime``; strings that
fit the pattern but name an impossible date stay strings.

Known limitation: a plain string that happens to match the canonical
timestamp pattern is re-hydrated as a timestamp too. The log format
carries no type tags, so the two cases cannot be told apart.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

__all__ = [
    "UNDEFINED",
    "ISO_TIMESTAMP_RE",
    "normalize",
    "denormalize",
    "to_document_body",
    "format_timestamp",
    "parse_timestamp",
]

ISO_TIMESTAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z")

_ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class _Undefined:
    """Marker for a field that was never assigned."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED: Any = _Undefined()


def format_timestamp(value: datetime | date) -> str:
    """
    Render a date or datetime as a canonical ISO-8601 UTC string.

    Naive datetimes are taken to be UTC. Plain dates become midnight UTC.
    Sub-millisecond precision is truncated.
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=UTC)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    else:
        value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """
    Parse a canonical ISO-8601 string into an aware UTC datetime.

    Raises:
        ValueError: If the string is not a canonical timestamp or names
            a calendar date that does not exist.
    """
    if not ISO_TIMESTAMP_RE.fullmatch(value):
        raise ValueError(f"Not a canonical timestamp: {value!r}")
    return datetime.strptime(value, _ISO_FORMAT).replace(tzinfo=UTC)


def normalize(value: Any) -> Any:
    """
    Return a storage-safe deep copy of ``value``.

    Mappings become dicts with string keys, sequences and sets become
    lists, models and dataclasses are dumped to dicts, enums collapse
    to their value. Anything else that is not a JSON scalar is
    rendered with ``str()``.
    """
    if value is UNDEFINED or value is None:
        return None
    if isinstance(value, Enum):
        return normalize(value.value)
    if isinstance(value, bool | int | float | str):
        return value
    if isinstance(value, datetime | date):
        return format_timestamp(value)
    if isinstance(value, BaseModel):
        return normalize(value.model_dump())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return normalize(dataclasses.asdict(value))
    if isinstance(value, Mapping):
        return {str(k): normalize(v) for k, v in value.items()}
    if isinstance(value, list | tuple | set | frozenset):
        return [normalize(v) for v in value]
    return str(value)


def denormalize(value: Any) -> Any:
    """
    Return a deep copy of ``value`` with canonical timestamp strings
    converted back into aware ``datetime`` objects.
    """
    if isinstance(value, str):
        if ISO_TIMESTAMP_RE.fullmatch(value):
            try:
                return parse_timestamp(value)
            except ValueError:
                return value
        return value
    if isinstance(value, Mapping):
        return {k: denormalize(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [denormalize(v) for v in value]
    return value


def to_document_body(snapshot: Mapping[str, Any]) -> dict[str, Any]:
    """
    Denormalize a snapshot for writing back as a document body.

    The top-level ``id`` field is dropped: the store owns the id through
    the document's address, not through a field inside the body.
    """
    body = denormalize(dict(snapshot))
    body.pop("id", None)
    return body
