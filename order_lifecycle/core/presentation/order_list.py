"""Order lists for a viewer.

Queries the store for the viewer's side of the marketplace and evaluates each
snapshot independently. Query results are treated as an unordered batch; the
list keeps the store's newest-first order only for display.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from order_lifecycle.core.domain.errors import RoleNotApplicable

if TYPE_CHECKING:
    from order_lifecycle.core.engine import OrderLifecycleEngine, OrderView
    from order_lifecycle.core.ports.order_store import OrderStore

LOGGER = logging.getLogger(__name__)


def build_order_list(
    store: OrderStore,
    engine: OrderLifecycleEngine,
    *,
    viewer_id: str,
    role: str,
    statuses: Iterable[str] | None = None,
    fallback_to_all: bool = False,
) -> list[OrderView]:
    """Evaluate the viewer's orders as ``role`` (buyer or seller).

    ``fallback_to_all`` is a display convenience: when the status-filtered
    query is empty, show the viewer's unfiltered orders instead of an empty
    screen. It never changes how an order is evaluated.
    """
    if role == "buyer":
        query = {"buyer_id": viewer_id}
    elif role == "seller":
        query = {"seller_id": viewer_id}
    else:
        raise RoleNotApplicable(order_id=None, role=role, viewer_id=viewer_id)

    wanted = None if statuses is None else tuple(statuses)
    orders = store.query(**query, statuses=wanted)

    if not orders and wanted is not None and fallback_to_all:
        LOGGER.info(
            "No orders for status filter; showing all",
            extra={"viewer_id": viewer_id, "role": role, "statuses": list(wanted)},
        )
        orders = store.query(**query)

    return [engine.evaluate(order, role) for order in orders]
