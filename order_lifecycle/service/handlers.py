"""Order action handlers (write path).

Each handler validates the requested write against the current snapshot,
applies it as one partial update through the order store, sends one
notification per affected counterparty, and returns the freshly re-fetched
and re-evaluated ``OrderView`` for the acting role. Derived state is never
patched locally.

Store failures propagate (``OrderStoreError``) so the caller can show a
retryable error. Notification delivery is best-effort: a failure is logged and
published as ``NotificationFailedEvent`` and never undoes the store write.
"""

# pylint: disable=too-many-arguments
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from order_lifecycle.core.domain.actions import actions_for
from order_lifecycle.core.domain.errors import (
    ActionNotPermitted,
    InvalidTransition,
    OrderNotFound,
)
from order_lifecycle.core.domain.normalizer import normalize
from order_lifecycle.core.domain.order_state_machine import is_valid_transition
from order_lifecycle.core.domain.types import DeliveryDetails, Order
from order_lifecycle.core.events.events import (
    NotificationFailedEvent,
    OrderStatusTransitionEvent,
)
from order_lifecycle.service.notifications import build_notification
from order_lifecycle.service.reminders import plan_delivery_reminder

if TYPE_CHECKING:
    from order_lifecycle.core.config.engine_config import EngineConfig
    from order_lifecycle.core.engine import OrderLifecycleEngine, OrderView
    from order_lifecycle.core.events.event_bus import EventBus
    from order_lifecycle.core.ports.clock import Clock
    from order_lifecycle.core.ports.notifier import Notification, Notifier
    from order_lifecycle.core.ports.order_store import OrderStore

LOGGER = logging.getLogger(__name__)

# Delivery address can be edited until the seller ships.
_DELIVERY_EDITABLE_STATES = frozenset({"pending", "approved"})


class OrderActionHandlers:
    """Buyer, seller and admin actions on orders."""

    def __init__(
        self,
        *,
        store: OrderStore,
        notifier: Notifier,
        engine: OrderLifecycleEngine,
        event_bus: EventBus,
        clock: Clock,
        config: EngineConfig,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._engine = engine
        self._event_bus = event_bus
        self._clock = clock
        self._config = config

    # ------------------------------------------------------------------
    # Buyer actions
    # ------------------------------------------------------------------

    def place_order(self, record: Mapping[str, Any]) -> OrderView:
        """Create a new order in ``pending``; the seller is notified."""
        document = dict(record)
        requested = document.get("status")
        if requested is not None and requested != "pending":
            raise InvalidTransition(str(document.get("id")), None, str(requested))

        now = self._clock.now()
        document["status"] = "pending"
        document.setdefault("paymentApprovalStatus", "pending")
        document.setdefault("purchaseDate", now)
        document.setdefault("hasRating", False)

        order = self._store.create(document)
        self._emit_transition(order.id, "buyer", None, "pending")
        self._notify(order.id, ("seller",), "pending")
        return self._view(order.id, "buyer")

    def upload_payment_receipt(
        self,
        order_id: str,
        *,
        receipt_preview: str,
        receipt_file: str | None = None,
        amount: float | None = None,
    ) -> OrderView:
        """Attach payment proof to a pending order; the admin is notified."""
        order = self._load(order_id)
        if normalize(order) != "pending":
            raise ActionNotPermitted(f"order {order_id!r}: payment proof can only be uploaded while pending")

        fields: dict[str, Any] = {
            "paymentDetails.receiptPreview": receipt_preview,
            "paymentDetails.timestamp": self._clock.now(),
            "paymentApprovalStatus": "pending",
        }
        if receipt_file is not None:
            fields["paymentDetails.receiptFile"] = receipt_file
        if amount is not None:
            fields["paymentDetails.amount"] = amount

        self._store.update(order_id, fields)
        self._notify(order_id, ("admin",), "receipt_uploaded")
        return self._view(order_id, "buyer")

    def confirm_delivery(self, order_id: str) -> OrderView:
        """Buyer confirms receipt: shipped -> delivered; the seller is notified."""
        order = self._load(order_id)
        now = self._clock.now()

        fields: dict[str, Any] = {
            "shippingDetails.deliveryConfirmedAt": now,
            "shippingDetails.deliveryConfirmedBy": order.buyer_id,
        }
        if order.shipping_details is None or order.shipping_details.delivered_at is None:
            fields["shippingDetails.deliveredAt"] = now

        self._write_status(order, "delivered", "buyer", fields, required_state="shipped")
        self._notify(order_id, ("seller",), "delivered")
        return self._view(order_id, "buyer")

    def update_delivery_details(self, order_id: str, details: DeliveryDetails | Mapping[str, Any]) -> OrderView:
        """Replace the delivery address; only before the order ships."""
        order = self._load(order_id)
        if normalize(order) not in _DELIVERY_EDITABLE_STATES:
            raise ActionNotPermitted(
                f"order {order_id!r}: delivery details are read-only once the order has shipped"
            )

        validated = details if isinstance(details, DeliveryDetails) else DeliveryDetails.model_validate(details)
        self._store.update(order_id, {"deliveryDetails": validated})
        return self._view(order_id, "buyer")

    def record_rating(self, order_id: str, *, rater_role: str, rating_id: str) -> OrderView:
        """Mark the order as rated. Only offered while ``rate_counterparty`` is permitted."""
        order = self._load(order_id)
        permitted = {action.kind for action in actions_for(order, rater_role)}
        if "rate_counterparty" not in permitted:
            raise ActionNotPermitted(f"order {order_id!r}: {rater_role} cannot rate this order now")

        self._store.update(order_id, {"hasRating": True, "ratingId": rating_id})
        return self._view(order_id, rater_role)

    # ------------------------------------------------------------------
    # Seller actions
    # ------------------------------------------------------------------

    def mark_shipped(
        self,
        order_id: str,
        *,
        photos: Iterable[str],
        tracking_number: str | None = None,
        remarks: str | None = None,
    ) -> OrderView:
        """Seller uploads shipment evidence: approved -> shipped; the buyer is notified."""
        photo_list = [photo for photo in photos if photo]
        if not photo_list:
            raise ActionNotPermitted(f"order {order_id!r}: shipment evidence needs at least one photo")

        order = self._load(order_id)
        fields: dict[str, Any] = {
            "shippingDetails.shippedAt": self._clock.now(),
            "shippingDetails.photos": photo_list,
            "shippingApprovalStatus": "pending",
        }
        if tracking_number is not None:
            fields["shippingDetails.trackingNumber"] = tracking_number
        if remarks is not None:
            fields["shippingDetails.remarks"] = remarks

        self._write_status(order, "shipped", "seller", fields, required_state="approved")
        self._notify(order_id, ("buyer",), "shipped")
        return self._view(order_id, "seller")

    # ------------------------------------------------------------------
    # Admin actions
    # ------------------------------------------------------------------

    def approve_payment(self, order_id: str, *, admin_notes: str | None = None) -> OrderView:
        order = self._load(order_id)
        fields: dict[str, Any] = {
            "paymentApprovalStatus": "approved",
            "paymentDetails.approvedAt": self._clock.now(),
            "paymentDetails.approvedBy": self._config.admin_recipient_id,
        }
        if admin_notes is not None:
            fields["paymentDetails.adminNotes"] = admin_notes

        self._write_status(order, "approved", "admin", fields, required_state="pending")
        self._notify(order_id, ("buyer", "seller"), "approved")
        return self._view(order_id, "admin")

    def reject_payment(self, order_id: str, *, admin_notes: str | None = None) -> OrderView:
        order = self._load(order_id)
        fields: dict[str, Any] = {"paymentApprovalStatus": "rejected"}
        if admin_notes is not None:
            fields["paymentDetails.adminNotes"] = admin_notes

        self._write_status(order, "rejected", "admin", fields, required_state="pending")
        self._notify(order_id, ("buyer", "seller"), "rejected")
        return self._view(order_id, "admin")

    def approve_shipment(self, order_id: str) -> OrderView:
        """Accept the seller's shipment evidence. Informational; the status is unchanged."""
        order = self._load(order_id)
        if normalize(order) != "shipped":
            raise ActionNotPermitted(f"order {order_id!r}: only shipped orders have evidence to approve")

        self._store.update(
            order_id,
            {
                "shippingApprovalStatus": "approved",
                "shippingDetails.approvedAt": self._clock.now(),
                "shippingDetails.approvedBy": self._config.admin_recipient_id,
            },
        )
        return self._view(order_id, "admin")

    def record_platform_payout(self, order_id: str, *, receipt_url: str) -> OrderView:
        """Platform paid the seller: delivered -> clearlot_paid; the seller is notified."""
        order = self._load(order_id)
        fields = {
            "platformPayout.receiptUrl": receipt_url,
            "platformPayout.paidAt": self._clock.now(),
        }
        self._write_status(order, "clearlot_paid", "admin", fields, required_state="delivered")
        self._notify(order_id, ("seller",), "clearlot_paid")
        return self._view(order_id, "admin")

    def complete_order(self, order_id: str) -> OrderView:
        order = self._load(order_id)
        self._write_status(order, "completed", "admin", {})
        self._notify(order_id, ("buyer", "seller"), "completed")
        return self._view(order_id, "admin")

    # ------------------------------------------------------------------
    # Scheduled
    # ------------------------------------------------------------------

    def send_delivery_reminders(self) -> list[Notification]:
        """Send due delivery-confirmation reminders for all shipped orders."""
        policy = self._config.reminders
        if not policy.enabled:
            return []

        now = self._clock.now()
        sent: list[Notification] = []

        for order in self._store.query(statuses=("shipped",)):
            decision = plan_delivery_reminder(order, now, policy)
            if not decision.any:
                continue

            fields: dict[str, Any] = {}
            if decision.remind_buyer:
                count = order.delivery_reminder.reminder_count if order.delivery_reminder else 0
                fields["deliveryReminder.lastReminderSent"] = now
                fields["deliveryReminder.reminderCount"] = count + 1
            if decision.escalate_to_admin:
                fields["deliveryReminder.adminNotified"] = True
            self._store.update(order.id, fields)

            if decision.remind_buyer:
                sent.extend(self._notify(order.id, ("buyer",), "delivery_reminder"))
            if decision.escalate_to_admin:
                sent.extend(self._notify(order.id, ("admin",), "delivery_escalation"))

        LOGGER.info("Delivery reminders processed", extra={"sent": len(sent)})
        return sent

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self, order_id: str) -> Order:
        order = self._store.get(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def _view(self, order_id: str, role: str) -> OrderView:
        return self._engine.evaluate(self._load(order_id), role)

    def _write_status(
        self,
        order: Order,
        next_state: str,
        actor_role: str,
        fields: Mapping[str, Any],
        *,
        required_state: str | None = None,
    ) -> None:
        prev_state = normalize(order)
        if required_state is not None and prev_state != required_state:
            raise InvalidTransition(order.id, prev_state, next_state)
        if not is_valid_transition(prev_state, next_state):
            raise InvalidTransition(order.id, prev_state, next_state)

        self._store.update(order.id, {**fields, "status": next_state})
        self._emit_transition(order.id, actor_role, prev_state, next_state)

    def _emit_transition(self, order_id: str, actor_role: str, prev_state: str | None, next_state: str) -> None:
        LOGGER.info(
            "Order status changed",
            extra={
                "order_id": order_id,
                "actor_role": actor_role,
                "prev_state": prev_state,
                "next_state": next_state,
            },
        )
        self._event_bus.emit(
            OrderStatusTransitionEvent(
                ts=self._clock.now().isoformat(),
                order_id=order_id,
                actor_role=actor_role,
                prev_state=prev_state,
                next_state=next_state,
            )
        )

    def _notify(self, order_id: str, recipient_roles: Iterable[str], event: str) -> list[Notification]:
        order = self._load(order_id)
        sent: list[Notification] = []

        for role in recipient_roles:
            notification = build_notification(order, role, event, self._config)
            try:
                self._notifier.send(notification)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                # Delivery is best-effort; the store write stands.
                LOGGER.exception(
                    "Notification delivery failed",
                    extra={"order_id": order_id, "recipient_id": notification.recipient_id},
                )
                self._event_bus.emit(
                    NotificationFailedEvent(
                        ts=self._clock.now().isoformat(),
                        order_id=order_id,
                        recipient_id=notification.recipient_id,
                        error=repr(exc),
                    )
                )
                continue
            sent.append(notification)

        return sent
