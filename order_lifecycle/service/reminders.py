"""Delivery-confirmation reminder scheduling.

A shipped order whose receipt is not yet confirmed gets a buyer reminder one
interval after shipment and then once per interval; after the escalation
delay the admin is told once. The decision is a pure function of the
snapshot, ``now`` and the policy; the action handlers perform the writes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from order_lifecycle.core.domain.normalizer import normalize
from order_lifecycle.core.domain.timeline import resolve_step_time

if TYPE_CHECKING:
    from order_lifecycle.core.config.engine_config import ReminderPolicy
    from order_lifecycle.core.domain.types import Order


@dataclass(frozen=True, slots=True)
class ReminderDecision:
    order_id: str
    remind_buyer: bool
    escalate_to_admin: bool

    @property
    def any(self) -> bool:
        return self.remind_buyer or self.escalate_to_admin


def plan_delivery_reminder(order: Order, now: datetime, policy: ReminderPolicy) -> ReminderDecision:
    """Decide which reminders are due for ``order`` at ``now``."""
    idle = ReminderDecision(order_id=order.id, remind_buyer=False, escalate_to_admin=False)

    if not policy.enabled or normalize(order) != "shipped":
        return idle

    # Same anchor the buyer sees on the "shipped" step.
    shipped_at = resolve_step_time(order, 3, "buyer", state="shipped")
    if not isinstance(shipped_at, datetime):
        return idle

    since_shipment = now - shipped_at
    reminder = order.delivery_reminder
    last_sent = reminder.last_sent_at if reminder is not None else None
    admin_notified = reminder.admin_notified if reminder is not None else False

    remind_buyer = since_shipment >= policy.interval and (
        last_sent is None or now - last_sent >= policy.interval
    )
    escalate = since_shipment >= policy.admin_escalation_after and not admin_notified

    return ReminderDecision(order_id=order.id, remind_buyer=remind_buyer, escalate_to_admin=escalate)
