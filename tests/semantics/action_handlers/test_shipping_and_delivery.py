"""
Semantic test: shipment, delivery confirmation, payout and rating.

Invariant:
Seller and buyer writes move the order forward one lifecycle step at a time,
stamp the step's timestamp field, and the returned view reflects the fresh
snapshot (display step, timeline and actions) for the acting role.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from order_lifecycle.adapters.event_notifier import EventBusNotifier
from order_lifecycle.adapters.memory_store import InMemoryOrderStore
from order_lifecycle.core.config.engine_config import EngineConfig
from order_lifecycle.core.domain.errors import ActionNotPermitted, InvalidTransition
from order_lifecycle.core.engine import OrderLifecycleEngine
from order_lifecycle.core.events.event_bus import EventBus
from order_lifecycle.core.events.events import NotificationDispatchedEvent
from order_lifecycle.core.events.sinks.memory_recorder import MemoryRecorderSink
from order_lifecycle.core.ports.clock import FixedClock
from order_lifecycle.service.handlers import OrderActionHandlers

NOW = datetime(2024, 5, 3, 4, 0, tzinfo=timezone.utc)

APPROVED_ORDER = {
    "id": "o-1",
    "buyerId": "b-1",
    "sellerId": "s-1",
    "status": "approved",
    "paymentApprovalStatus": "approved",
    "purchaseDate": "2024-05-01T02:00:00Z",
    "paymentDetails": {"approvedAt": "2024-05-02T02:00:00Z"},
    "deliveryDetails": {
        "district": "Kwun Tong",
        "address1": "1 Hoi Bun Road",
        "contactPersonName": "Chan Tai Man",
        "contactPersonPhone": "+852 5555 0000",
    },
}


def _handlers():
    store = InMemoryOrderStore([APPROVED_ORDER])
    recorder = MemoryRecorderSink()
    bus = EventBus([recorder])
    clock = FixedClock(NOW)
    handlers = OrderActionHandlers(
        store=store,
        notifier=EventBusNotifier(bus, clock),
        engine=OrderLifecycleEngine(event_bus=bus),
        event_bus=bus,
        clock=clock,
        config=EngineConfig(),
    )
    return handlers, store, recorder, clock


def _last_notification(recorder: MemoryRecorderSink) -> NotificationDispatchedEvent:
    return recorder.of_type(NotificationDispatchedEvent)[-1]


def test_mark_shipped_requires_photo_evidence() -> None:
    handlers, store, _, _ = _handlers()

    with pytest.raises(ActionNotPermitted):
        handlers.mark_shipped("o-1", photos=[])

    assert store.get("o-1").status == "approved"


def test_mark_shipped_advances_and_notifies_buyer() -> None:
    handlers, store, recorder, _ = _handlers()

    view = handlers.mark_shipped("o-1", photos=["https://files/box.jpg"], tracking_number="SF123")

    assert view.role == "seller"
    assert view.state == "shipped"
    assert view.display_step.step == 3
    assert view.timeline.at(3) == NOW
    assert [a.kind for a in view.actions] == ["view_shipment_status"]

    order = store.get("o-1")
    assert order.shipping_details.photos == ("https://files/box.jpg",)
    assert order.shipping_details.tracking_number == "SF123"
    assert order.shipping_approval_status == "pending"

    assert _last_notification(recorder).recipient_id == "b-1"
    assert _last_notification(recorder).status == "shipped"


def test_cannot_ship_twice() -> None:
    handlers, _, _, _ = _handlers()
    handlers.mark_shipped("o-1", photos=["p.jpg"])

    with pytest.raises(InvalidTransition):
        handlers.mark_shipped("o-1", photos=["p2.jpg"])


def test_confirm_delivery_completes_buyer_view() -> None:
    handlers, store, recorder, clock = _handlers()
    handlers.mark_shipped("o-1", photos=["p.jpg"])
    clock.advance(timedelta(days=1))

    view = handlers.confirm_delivery("o-1")

    assert view.role == "buyer"
    assert view.display_step.step == 5
    assert view.display_step.is_terminal
    assert [a.kind for a in view.actions] == ["rate_counterparty"]

    order = store.get("o-1")
    assert order.status == "delivered"
    assert order.shipping_details.delivered_at == NOW + timedelta(days=1)
    assert order.shipping_details.delivery_confirmed_by == "b-1"

    assert _last_notification(recorder).recipient_id == "s-1"


def test_confirm_delivery_requires_shipped_order() -> None:
    handlers, _, _, _ = _handlers()

    with pytest.raises(InvalidTransition):
        handlers.confirm_delivery("o-1")


def test_shipment_approval_does_not_change_status() -> None:
    handlers, store, _, _ = _handlers()
    handlers.mark_shipped("o-1", photos=["p.jpg"])

    view = handlers.approve_shipment("o-1")

    assert view.state == "shipped"
    assert store.get("o-1").shipping_approval_status == "approved"


def test_payout_then_completion() -> None:
    handlers, store, recorder, clock = _handlers()
    handlers.mark_shipped("o-1", photos=["p.jpg"])
    handlers.confirm_delivery("o-1")
    clock.advance(timedelta(hours=3))

    handlers.record_platform_payout("o-1", receipt_url="https://files/payout.pdf")
    order = store.get("o-1")
    assert order.status == "clearlot_paid"
    assert order.platform_payout.paid_at == NOW + timedelta(hours=3)
    assert _last_notification(recorder).recipient_id == "s-1"

    handlers.complete_order("o-1")
    seller_view = OrderLifecycleEngine(event_bus=EventBus()).evaluate(store.get("o-1"), "seller")
    assert seller_view.display_step.step == 6
    assert [a.kind for a in seller_view.actions] == ["rate_counterparty"]


def test_payout_requires_delivered_order() -> None:
    handlers, _, _, _ = _handlers()

    with pytest.raises(InvalidTransition):
        handlers.record_platform_payout("o-1", receipt_url="https://files/payout.pdf")


def test_rating_is_recorded_once() -> None:
    handlers, store, _, _ = _handlers()
    handlers.mark_shipped("o-1", photos=["p.jpg"])
    handlers.confirm_delivery("o-1")

    view = handlers.record_rating("o-1", rater_role="buyer", rating_id="r-1")

    assert view.actions == ()
    assert store.get("o-1").has_rating
    assert store.get("o-1").rating_id == "r-1"

    with pytest.raises(ActionNotPermitted):
        handlers.record_rating("o-1", rater_role="buyer", rating_id="r-2")


def test_delivery_details_editable_until_shipped() -> None:
    handlers, store, _, _ = _handlers()
    new_address = {
        "district": "Sha Tin",
        "address1": "2 On Kwan Street",
        "contactPersonName": "Chan Tai Man",
        "contactPersonPhone": "+852 5555 0000",
    }

    handlers.update_delivery_details("o-1", new_address)
    assert store.get("o-1").delivery_details.district == "Sha Tin"

    handlers.mark_shipped("o-1", photos=["p.jpg"])
    with pytest.raises(ActionNotPermitted):
        handlers.update_delivery_details("o-1", new_address)
