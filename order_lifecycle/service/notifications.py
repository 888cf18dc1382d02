"""Notification content for lifecycle events.

One template per (recipient role, event). The event key is the new lifecycle
status for status-advancing writes, or one of the non-status events
(``receipt_uploaded``, ``delivery_reminder``, ``delivery_escalation``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from order_lifecycle.core.domain.types import LIFECYCLE_STATES
from order_lifecycle.core.ports.notifier import Notification

if TYPE_CHECKING:
    from order_lifecycle.core.config.engine_config import EngineConfig
    from order_lifecycle.core.domain.types import Order


_HIGH_PRIORITY_STATUSES = frozenset({"approved", "delivered", "completed"})
_MEDIUM_PRIORITY_STATUSES = frozenset({"shipped", "pending"})


def status_priority(status: str) -> str:
    if status in _HIGH_PRIORITY_STATUSES:
        return "high"
    if status in _MEDIUM_PRIORITY_STATUSES:
        return "medium"
    return "low"


@dataclass(frozen=True, slots=True)
class _Template:
    title: str
    message: str
    priority: str | None = None  # None: derived from the status


_TEMPLATES: dict[tuple[str, str], _Template] = {
    ("seller", "pending"): _Template("New order received", 'A buyer ordered "{title}". Waiting for payment review.'),
    ("admin", "receipt_uploaded"): _Template("Payment receipt uploaded", 'Payment proof uploaded for order {order_id} ("{title}").', "high"),
    ("buyer", "approved"): _Template("Payment approved", 'Your payment for "{title}" has been approved.'),
    ("seller", "approved"): _Template("Payment received", 'Payment for "{title}" is confirmed. Please prepare shipment.'),
    ("buyer", "rejected"): _Template("Order cancelled", 'Your order "{title}" was cancelled: the payment was rejected.', "high"),
    ("seller", "rejected"): _Template("Order cancelled", 'The order for "{title}" was cancelled: the payment was rejected.', "high"),
    ("buyer", "shipped"): _Template("Order shipped", 'Your order "{title}" is on its way.'),
    ("seller", "delivered"): _Template("Delivery confirmed", 'The buyer confirmed receipt of "{title}". Platform payout is pending.'),
    ("seller", "clearlot_paid"): _Template("Payout sent", 'The platform has paid you for "{title}".', "high"),
    ("buyer", "completed"): _Template("Order completed", 'Your order "{title}" is complete.'),
    ("seller", "completed"): _Template("Order completed", 'The order for "{title}" is complete.'),
    ("buyer", "delivery_reminder"): _Template("Please confirm receipt", 'Your order "{title}" was shipped. Please confirm once it arrives.', "high"),
    ("admin", "delivery_escalation"): _Template("Buyer has not confirmed receipt", 'Order {order_id} ("{title}") was shipped but receipt is still unconfirmed.', "high"),
}


def has_template(recipient_role: str, event: str) -> bool:
    return (recipient_role, event) in _TEMPLATES


def recipient_id_for(order: Order, recipient_role: str, config: EngineConfig) -> str:
    if recipient_role == "buyer":
        return order.buyer_id
    if recipient_role == "seller":
        return order.seller_id
    return config.admin_recipient_id


def build_notification(
    order: Order,
    recipient_role: str,
    event: str,
    config: EngineConfig,
) -> Notification:
    """Render the notification for ``event`` addressed to ``recipient_role``.

    Raises KeyError when no template exists for the pair.
    """
    template = _TEMPLATES[(recipient_role, event)]
    title = order.offer_title or f"order {order.id}"

    return Notification(
        order_id=order.id,
        recipient_id=recipient_id_for(order, recipient_role, config),
        recipient_role=recipient_role,
        title=template.title,
        message=template.message.format(title=title, order_id=order.id),
        priority=template.priority or status_priority(event),
        status=event if event in LIFECYCLE_STATES else None,
    )
