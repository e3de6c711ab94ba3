"""
Collection Resolver
~~~~~~~~~~~~~~~~~~~

Maps an action tag to the storage collection it applies to, using an
ordered table of keyword routes injected at construction time.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from action_ledger.config.schema import CollectionsConfig, RouteConfig
from action_ledger.core.action import ActionKind
from action_ledger.exceptions import UnsupportedActionError

__all__ = ["CollectionResolver", "EntityRoute"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntityRoute:
    """
    A resolved collection for one entity kind.

    Attributes:
        entity: Entity name, e.g. ``"subject"``.
        keywords: Substrings of an action tag that select this route.
        collection: Full collection path in the store.
        id_fields: Snapshot fields naming the document id, tried in order.
        default_document_id: Id used when the snapshot carries none
            (singleton documents such as settings).
    """

    entity: str
    keywords: tuple[str, ...]
    collection: str
    id_fields: tuple[str, ...] = ("id",)
    default_document_id: str | None = None

    def matches(self, tag: str) -> bool:
        return any(keyword in tag for keyword in self.keywords)

    def target_id(self, *snapshots: Any) -> str | None:
        """
        Return the document id carried by the snapshots.

        Each id field is tried across every snapshot before the next
        field is consulted, so ``("id", "date")`` prefers ``before.id``
        and ``after.id`` over either ``date``. Falls back to
        ``default_document_id``.
        """
        for field_name in self.id_fields:
            for snapshot in snapshots:
                if isinstance(snapshot, Mapping):
                    value = snapshot.get(field_name)
                    if value is not None and value != "":
                        return str(value)
        return self.default_document_id

    def target_id_for(self, kind: ActionKind, before: Any, after: Any) -> str | None:
        """
        Return the id of the document an action of ``kind`` affected.

        Creations read ``after``, deletions read ``before``, updates try
        ``before`` then ``after``. Bulk and irreversible kinds have no
        single target.
        """
        if kind == ActionKind.ADD:
            return self.target_id(after)
        if kind == ActionKind.DELETE:
            return self.target_id(before)
        if kind in (ActionKind.UPDATE, ActionKind.UPSERT):
            return self.target_id(before, after)
        return None


class CollectionResolver:
    """
    Ordered keyword table from action tags to collections.

    The first route with a keyword contained in the tag wins, so more
    specific keywords (``general_announcement``) must come before the
    general ones (``announcement``). Unmatched tags are an error; the
    resolver never guesses.
    """

    def __init__(self, routes: Iterable[EntityRoute]) -> None:
        self._routes: list[EntityRoute] = list(routes)

    @classmethod
    def from_config(cls, config: CollectionsConfig) -> CollectionResolver:
        return cls(cls._route_from_config(config, r) for r in config.routes)

    @staticmethod
    def _route_from_config(config: CollectionsConfig, route: RouteConfig) -> EntityRoute:
        return EntityRoute(
            entity=route.entity,
            keywords=tuple(route.keywords),
            collection=config.resolve_path(route.path),
            id_fields=tuple(route.id_fields),
            default_document_id=route.default_document_id,
        )

    def find(self, tag: str) -> EntityRoute | None:
        """Return the matching route, or None."""
        for route in self._routes:
            if route.matches(tag):
                return route
        return None

    def resolve(self, tag: str) -> EntityRoute:
        """
        Resolve an action tag to its route.

        Raises:
            UnsupportedActionError: If no route matches.
        """
        route = self.find(tag)
        if route is None:
            logger.debug("No collection route for action %s", tag)
            raise UnsupportedActionError(
                f"No collection is mapped for action type: {tag}",
                action_tag=tag,
            )
        return route

    def resolve_collection(self, tag: str) -> str:
        """Resolve an action tag straight to its collection path."""
        return self.resolve(tag).collection

    @property
    def routes(self) -> list[EntityRoute]:
        """Return all routes in match order."""
        return list(self._routes)
