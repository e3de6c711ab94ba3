"""
Configuration Schema
~~~~~~~~~~~~~~~~~~~~

Pydantic models for validating Action Ledger configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

__all__ = [
    "LedgerConfig",
    "StoreConfig",
    "RouteConfig",
    "CollectionsConfig",
    "RollbackConfig",
    "LoggingConfig",
]

_BACKENDS = ("memory", "sqlite")
_EXPORTERS = ("stdout",)


class StoreConfig(BaseModel):
    """Document store backend selection."""

    backend: str = "memory"
    db_path: str | None = None

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Only the bundled backends are accepted."""
        if v not in _BACKENDS:
            raise ValueError(f"Unknown store backend: {v!r}")
        return v


class RouteConfig(BaseModel):
    """Maps action tags containing a keyword to one entity collection."""

    entity: str
    keywords: list[str] = Field(min_length=1)
    path: str
    id_fields: list[str] = Field(default_factory=lambda: ["id"], min_length=1)
    default_document_id: str | None = None


class CollectionsConfig(BaseModel):
    """Collection layout of the document store."""

    root: str = "classes/{class_id}"
    class_id: str = "defaultClass"
    logs: str = "logs"
    routes: list[RouteConfig] = Field(default_factory=list)

    def resolve_path(self, relative: str) -> str:
        """Join a relative collection path onto the configured root."""
        root = self.root.format(class_id=self.class_id).strip("/")
        relative = relative.strip("/")
        return f"{root}/{relative}" if root else relative

    @property
    def logs_path(self) -> str:
        return self.resolve_path(self.logs)


class RollbackConfig(BaseModel):
    """Rollback engine configuration."""

    open_ended_patterns: list[str] = Field(default_factory=list)
    actor_id: str = "system_rollback"


class LoggingConfig(BaseModel):
    """Action logger configuration."""

    anonymous_actor: str = "anonymous"
    exporters: list[str] = Field(default_factory=list)

    @field_validator("exporters")
    @classmethod
    def validate_exporters(cls, v: list[str]) -> list[str]:
        for name in v:
            if name not in _EXPORTERS:
                raise ValueError(f"Unknown exporter: {name!r}")
        return v


class LedgerConfig(BaseModel):
    """
    Root configuration model for Action Ledger.

    Validated on load with clear error messages for invalid values.
    """

    version: str = "1.0"
    store: StoreConfig = Field(default_factory=StoreConfig)
    collections: CollectionsConfig = Field(default_factory=CollectionsConfig)
    rollback: RollbackConfig = Field(default_factory=RollbackConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
