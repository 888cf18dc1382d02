"""Exceptions raised by the order lifecycle package.

Read-path functions are total: ``RoleNotApplicable`` is the only error they
raise. Everything else here belongs to the write path (action handlers and
stores).
"""

from __future__ import annotations


class OrderLifecycleError(Exception):
    """Base class for all package errors."""


class RoleNotApplicable(OrderLifecycleError):
    """The viewer has no role on this order (or the role is unknown).

    Callers must deny access instead of guessing a role.
    """

    def __init__(self, order_id: str | None, role: str | None, viewer_id: str | None = None) -> None:
        self.order_id = order_id
        self.role = role
        self.viewer_id = viewer_id
        super().__init__(
            f"role {role!r} not applicable to order {order_id!r} (viewer={viewer_id!r})"
        )


class InvalidTransition(OrderLifecycleError):
    """A status write would move the order in a direction the lifecycle forbids."""

    def __init__(self, order_id: str, prev_state: str | None, next_state: str) -> None:
        self.order_id = order_id
        self.prev_state = prev_state
        self.next_state = next_state
        super().__init__(f"order {order_id!r}: {prev_state!r} -> {next_state!r} is not allowed")


class ActionNotPermitted(OrderLifecycleError):
    """The requested write is not allowed for the order's current state."""


class OrderNotFound(OrderLifecycleError):
    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"order {order_id!r} not found")


class OrderStoreError(OrderLifecycleError):
    """The order store could not complete a read or write (transient, retryable)."""
