"""
Inverse Registry
~~~~~~~~~~~~~~~~

Maps action kinds (and, for overrides, exact action tags) to the
handlers that compute their inverse.
"""

from __future__ import annotations

import logging

from action_ledger.core.action import ActionKind
from action_ledger.exceptions import UnsupportedActionError
from action_ledger.rollback.handlers import (
    BaseInverseHandler,
    CreateInverseHandler,
    DeleteInverseHandler,
    FieldRestoreHandler,
    UpdateInverseHandler,
)

__all__ = ["InverseRegistry"]

logger = logging.getLogger(__name__)


class InverseRegistry:
    """
    Registry mapping action kinds to inverse handlers.

    Handlers registered for an exact tag take precedence over handlers
    matched by kind. Among kind handlers the first registered wins.
    """

    def __init__(self) -> None:
        self._handlers: list[BaseInverseHandler] = []
        self._custom_handlers: dict[str, BaseInverseHandler] = {}

    @classmethod
    def default(cls) -> InverseRegistry:
        """Create a registry with the bundled handlers registered."""
        registry = cls()
        registry.register(CreateInverseHandler())
        registry.register(UpdateInverseHandler())
        registry.register(DeleteInverseHandler())
        registry.register(FieldRestoreHandler())
        return registry

    def register(self, handler: BaseInverseHandler) -> None:
        """Register a handler for the kinds it declares."""
        self._handlers.append(handler)
        logger.debug(
            "Registered inverse handler %s for %s",
            handler.__class__.__name__,
            [k.value for k in handler.kinds],
        )

    def register_for_type(self, action_tag: str, handler: BaseInverseHandler) -> None:
        """Register a handler for one exact action tag."""
        self._custom_handlers[action_tag] = handler

    def get_handler(self, action_tag: str, kind: ActionKind) -> BaseInverseHandler:
        """
        Get the handler that reverses an action.

        Raises:
            UnsupportedActionError: If no handler is registered.
        """
        if action_tag in self._custom_handlers:
            return self._custom_handlers[action_tag]

        for handler in self._handlers:
            if handler.can_handle(kind):
                return handler

        raise UnsupportedActionError(
            f"Unsupported action type for automatic rollback: {action_tag}",
            action_tag=action_tag,
        )

    def has_handler(self, action_tag: str, kind: ActionKind) -> bool:
        """Check if a handler exists for the given action."""
        if action_tag in self._custom_handlers:
            return True
        return any(h.can_handle(kind) for h in self._handlers)

    @property
    def handlers(self) -> list[BaseInverseHandler]:
        """Return all kind handlers."""
        return list(self._handlers)

    def clear(self) -> None:
        """Remove all registered handlers."""
        self._handlers.clear()
        self._custom_handlers.clear()
