"""Order record store protocol.

This module defines the boundary to the document store holding one record
per order. Concrete implementations adapt a specific database to it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Mapping, Protocol

if TYPE_CHECKING:
    from order_lifecycle.core.domain.types import Order


class OrderStore(Protocol):
    """Document-store boundary.

    Reads return immutable ``Order`` snapshots. Writes are field-level partial
    updates addressed by dotted paths in stored (camelCase) form, e.g.
    ``{"status": "shipped", "shippingDetails.shippedAt": "..."}``; concurrent
    writers resolve last-write-wins per field.

    Failures to reach the store raise ``OrderStoreError``.
    """

    def get(self, order_id: str) -> Order | None:
        """Point lookup by order id."""

    def query(
        self,
        *,
        buyer_id: str | None = None,
        seller_id: str | None = None,
        statuses: Iterable[str] | None = None,
    ) -> list[Order]:
        """Orders matching all given filters, newest purchase first."""

    def create(self, record: Mapping[str, Any]) -> Order:
        """Insert a new order document and return its snapshot."""

    def update(self, order_id: str, fields: Mapping[str, Any]) -> None:
        """Apply a partial field update; raises OrderNotFound for unknown ids."""
