"""
Semantic test: step times fall back through candidate fields.

Invariant:
Each step uses the first present candidate field for its role, then the
purchase date; a step with nothing to show resolves to the UNKNOWN marker,
which is a normal value and never an error.
"""

from __future__ import annotations

from datetime import datetime, timezone

from order_lifecycle.core.domain.projector import project
from order_lifecycle.core.domain.timeline import UNKNOWN, raw_step_time, reconstruct_timeline, resolve_step_time
from order_lifecycle.core.domain.types import Order

APPROVED_AT = datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)


def _order(**fields) -> Order:
    record = {"id": "o-1", "buyerId": "b-1", "sellerId": "s-1"}
    record.update(fields)
    return Order.from_record(record)


def test_delivered_without_shipping_details_falls_back_to_payment_approval() -> None:
    order = _order(status="delivered", paymentDetails={"approvedAt": "2024-01-02T10:00:00Z"})

    assert project("delivered", "buyer").step == 5
    assert resolve_step_time(order, 4, "buyer") == APPROVED_AT
    assert resolve_step_time(order, 5, "buyer") == APPROVED_AT


def test_missing_purchase_date_is_unknown() -> None:
    timeline = reconstruct_timeline(_order(status="pending"), "buyer")

    assert len(timeline.steps) == 1
    assert timeline.steps[0].value == UNKNOWN
    assert not timeline.steps[0].is_known
    assert timeline.steps[0].source is None


def test_purchase_date_is_last_resort_anchor() -> None:
    order = _order(status="approved", purchaseDate="2024-01-01T08:00:00Z")

    value, source = raw_step_time(order, 2, "buyer")

    assert value == datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)
    assert source == "purchaseDate"


def test_buyer_completed_step_uses_delivery_time_only_while_delivered() -> None:
    shipping = {
        "deliveredAt": "2024-01-04T09:00:00Z",
        "deliveryConfirmedAt": "2024-01-05T18:00:00Z",
    }
    payment = {"approvedAt": "2024-01-02T10:00:00Z"}

    delivered = _order(status="delivered", paymentDetails=payment, shippingDetails=shipping)
    completed = _order(status="completed", paymentDetails=payment, shippingDetails=shipping)

    assert resolve_step_time(delivered, 5, "buyer") == datetime(2024, 1, 4, 9, 0, tzinfo=timezone.utc)
    assert resolve_step_time(completed, 5, "buyer") == datetime(2024, 1, 5, 18, 0, tzinfo=timezone.utc)


def test_seller_payout_steps_use_delivery_confirmation() -> None:
    order = _order(
        status="completed",
        paymentDetails={"approvedAt": "2024-01-02T10:00:00Z"},
        shippingDetails={"deliveryConfirmedAt": "2024-01-05T18:00:00Z"},
    )
    confirmed = datetime(2024, 1, 5, 18, 0, tzinfo=timezone.utc)

    assert resolve_step_time(order, 5, "seller") == confirmed
    assert resolve_step_time(order, 6, "seller") == confirmed


def test_step_outside_role_range_is_unknown() -> None:
    order = _order(status="completed", purchaseDate="2024-01-01T08:00:00Z")

    assert resolve_step_time(order, 6, "buyer") == UNKNOWN
    assert resolve_step_time(order, 0, "seller") == UNKNOWN


def test_unparseable_timestamp_is_treated_as_absent() -> None:
    order = _order(
        status="shipped",
        paymentDetails={"approvedAt": "2024-01-02T10:00:00Z"},
        shippingDetails={"shippedAt": "not-a-date"},
    )
    timeline = reconstruct_timeline(order, "buyer")

    assert timeline.at(3) == APPROVED_AT
    assert timeline.anomalies == ()


def test_store_timestamp_objects_are_accepted() -> None:
    order = _order(
        status="approved",
        paymentDetails={"approvedAt": {"seconds": 1704189600, "nanoseconds": 0}},
    )

    assert resolve_step_time(order, 2, "seller") == APPROVED_AT


def test_rejected_order_has_empty_timeline() -> None:
    order = _order(status="rejected", purchaseDate="2024-01-01T08:00:00Z")
    timeline = reconstruct_timeline(order, "seller")

    assert timeline.steps == ()
    assert timeline.anomalies == ()


def test_out_of_range_store_timestamp_is_treated_as_absent() -> None:
    order = _order(
        status="approved",
        purchaseDate={"seconds": 1e18, "nanoseconds": 0},
        paymentDetails={"approvedAt": "2024-01-02T10:00:00Z"},
    )

    assert order.purchase_date is None
    assert resolve_step_time(order, 1, "buyer") == UNKNOWN
    assert resolve_step_time(order, 2, "buyer") == APPROVED_AT


def test_admin_export_timestamp_objects_are_accepted() -> None:
    order = _order(
        status="approved",
        paymentDetails={"approvedAt": {"_seconds": 1704189600, "_nanoseconds": 0}},
    )

    assert order.payment_details.approved_at == APPROVED_AT
    assert resolve_step_time(order, 2, "seller") == APPROVED_AT
