"""
Default Configuration
~~~~~~~~~~~~~~~~~~~~~

Sensible defaults for Action Ledger when no config file is provided.
"""

from __future__ import annotations

__all__ = ["DEFAULT_CONFIG", "DEFAULT_ROUTES"]

# Order matters: the first route whose keyword appears in a tag wins.
DEFAULT_ROUTES: list[dict] = [
    {
        "entity": "subject",
        "keywords": ["subject"],
        "path": "subjects",
    },
    {
        "entity": "event",
        "keywords": ["event"],
        "path": "events",
    },
    {
        "entity": "fixed_timetable",
        "keywords": ["fixed_timetable", "fixed_slot"],
        "path": "fixedTimetable",
    },
    {
        "entity": "general_announcement",
        "keywords": ["general_announcement"],
        "path": "generalAnnouncements",
        "id_fields": ["id", "date"],
    },
    {
        "entity": "daily_announcement",
        "keywords": ["announcement"],
        "path": "dailyAnnouncements",
        "id_fields": ["id"],
    },
    {
        "entity": "settings",
        "keywords": ["settings"],
        "path": "settings",
        "default_document_id": "timetable",
    },
]

DEFAULT_CONFIG: dict = {
    "version": "1.0",
    "store": {
        "backend": "memory",
        "db_path": None,
    },
    "collections": {
        "root": "classes/{class_id}",
        "class_id": "defaultClass",
        "logs": "logs",
        "routes": DEFAULT_ROUTES,
    },
    "rollback": {
        "open_ended_patterns": ["*_future", "*_future_*"],
        "actor_id": "system_rollback",
    },
    "logging": {
        "anonymous_actor": "anonymous",
        "exporters": [],
    },
}
