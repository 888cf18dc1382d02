"""Status normalizer.

Maps a raw order record to its canonical lifecycle state. Every consumer
(role projector, timeline reconstructor, action resolver) starts from the
value returned here and never branches on the raw ``status`` field.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, cast

from order_lifecycle.core.domain.types import LIFECYCLE_STATES, LifecycleState, Order

LOGGER = logging.getLogger(__name__)

DEFAULT_STATE: LifecycleState = "pending"


def normalize(record: Order | Mapping[str, Any]) -> LifecycleState:
    """Return the canonical lifecycle state of ``record``.

    A missing status is ``pending``. An unrecognized status also fails closed
    to ``pending``: any other choice could expose an action the record cannot
    support.
    """
    if isinstance(record, Order):
        raw = record.status
        order_id = record.id
    else:
        raw = record.get("status")
        order_id = record.get("id")

    if raw is None:
        return DEFAULT_STATE

    status = str(raw)
    if status in LIFECYCLE_STATES:
        return cast(LifecycleState, status)

    LOGGER.warning(
        "Unrecognized order status; treating as pending",
        extra={"order_id": order_id, "status": raw},
    )
    return DEFAULT_STATE
