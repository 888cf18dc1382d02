"""Schema conformance tests for the order snapshot model.

Validates that the Order model accepts the documents the JSON Schema
accepts, dumps back into schema-valid documents, and rejects every document
the schema rejects for the constraints both sides declare.
"""

# pylint: disable=line-too-long,missing-function-docstring
# pylint: disable=redefined-outer-name,global-statement
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from jsonschema import ValidationError as JsonSchemaValidationError
from jsonschema import validate as jsonschema_validate
from pydantic import ValidationError as PydanticValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from order_lifecycle.core.domain.types import Order

SCHEMA_REGISTRY = Registry()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def load_schema(name: str) -> dict:
    """
    Load JSON schema from the package's schema directory.
    """
    global SCHEMA_REGISTRY

    root = Path(__file__).parent.parent.parent.parent
    schema_path = root / "order_lifecycle" / "core" / "schemas" / name

    with schema_path.open("r", encoding="utf-8") as f:
        schema = json.load(f)

    schema_id = schema.get("$id")
    if isinstance(schema_id, str) and schema_id:
        resource = Resource.from_contents(schema, default_specification=DRAFT202012)
        SCHEMA_REGISTRY = SCHEMA_REGISTRY.with_resource(schema_id, resource)

    return schema


def assert_pydantic_then_schema_ok(data: dict[str, Any], schema: dict[str, Any]) -> dict:
    """
    Validate with Pydantic first, then validate both the input and the
    re-dumped document with JSON Schema. Returns the dumped document.
    """
    jsonschema_validate(instance=data, schema=schema, registry=SCHEMA_REGISTRY)
    order = Order.from_record(data)
    instance = order.to_record()
    jsonschema_validate(instance=instance, schema=schema, registry=SCHEMA_REGISTRY)
    return instance


def assert_schema_invalid_but_pydantic_rejects(data: dict[str, Any], schema: dict[str, Any]) -> None:
    """
    If the schema rejects a document, the model must reject it too.
    """
    with pytest.raises(JsonSchemaValidationError):
        jsonschema_validate(instance=data, schema=schema, registry=SCHEMA_REGISTRY)

    with pytest.raises(PydanticValidationError):
        Order.from_record(data)


def make_order(**overrides) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": "o-1",
        "buyerId": "b-1",
        "sellerId": "s-1",
        "status": "shipped",
        "purchaseDate": "2024-01-01T08:00:00+00:00",
    }
    data.update(overrides)
    return data


def make_delivery_details(**overrides) -> dict[str, Any]:
    data = {
        "district": "Kwun Tong",
        "address1": "1 Hoi Bun Road",
        "contactPersonName": "Chan Tai Man",
        "contactPersonPhone": "+852 5555 0000",
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module", autouse=True)
def _load_common_schema() -> None:
    load_schema("common.schema.json")


@pytest.fixture(scope="module")
def order_schema() -> dict:
    return load_schema("order.schema.json")


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------

def test_order_valid_minimal(order_schema):
    instance = assert_pydantic_then_schema_ok(make_order(), order_schema)

    assert instance["buyerId"] == "b-1"
    assert instance["hasRating"] is False


def test_order_valid_with_all_sub_objects(order_schema):
    data = make_order(
        offerId="offer-9",
        offerTitle="Pallet of sneakers",
        quantity=10,
        totalAmount=1200.0,
        finalAmount=1150.0,
        paymentApprovalStatus="approved",
        shippingApprovalStatus="pending",
        paymentDetails={
            "method": "fps",
            "receiptPreview": "https://files/r.png",
            "amount": 1150.0,
            "timestamp": "2024-01-01T09:00:00+00:00",
            "approvedAt": "2024-01-02T10:00:00+00:00",
            "approvedBy": "admin",
        },
        shippingDetails={
            "shippedAt": "2024-01-03T10:00:00+00:00",
            "photos": ["https://files/box.jpg"],
            "trackingNumber": "SF123",
        },
        deliveryDetails=make_delivery_details(subdivision="Ngau Tau Kok"),
        platformPayout={"receiptUrl": "https://files/payout.pdf"},
        deliveryReminder={"lastReminderSent": "2024-01-03T11:00:00+00:00", "reminderCount": 1, "adminNotified": False},
    )
    instance = assert_pydantic_then_schema_ok(data, order_schema)

    assert instance["shippingDetails"]["photos"] == ["https://files/box.jpg"]
    assert instance["deliveryDetails"]["contactPersonName"] == "Chan Tai Man"


def test_order_unknown_status_is_kept_raw(order_schema):
    instance = assert_pydantic_then_schema_ok(make_order(status="disputed"), order_schema)

    assert instance["status"] == "disputed"


def test_order_tolerates_unknown_fields(order_schema):
    data = make_order(legacyFlag=True)

    jsonschema_validate(instance=data, schema=order_schema, registry=SCHEMA_REGISTRY)
    assert "legacyFlag" not in Order.from_record(data).to_record()


def test_order_party_ids_required(order_schema):
    for field in ("id", "buyerId", "sellerId"):
        bad = make_order()
        bad.pop(field)
        assert_schema_invalid_but_pydantic_rejects(bad, order_schema)


def test_order_party_ids_min_length(order_schema):
    assert_schema_invalid_but_pydantic_rejects(make_order(buyerId=""), order_schema)
    assert_schema_invalid_but_pydantic_rejects(make_order(sellerId=""), order_schema)
    assert_schema_invalid_but_pydantic_rejects(make_order(offerId=""), order_schema)


def test_order_approval_status_enum(order_schema):
    assert_schema_invalid_but_pydantic_rejects(make_order(paymentApprovalStatus="maybe"), order_schema)
    assert_schema_invalid_but_pydantic_rejects(make_order(shippingApprovalStatus="done"), order_schema)


def test_order_non_negative_amounts(order_schema):
    assert_schema_invalid_but_pydantic_rejects(make_order(quantity=-1), order_schema)
    assert_schema_invalid_but_pydantic_rejects(make_order(totalAmount=-0.5), order_schema)
    assert_schema_invalid_but_pydantic_rejects(make_order(finalAmount=-10.0), order_schema)


def test_order_delivery_details_required_fields(order_schema):
    for field in ("district", "address1", "contactPersonName", "contactPersonPhone"):
        details = make_delivery_details()
        details.pop(field)
        assert_schema_invalid_but_pydantic_rejects(make_order(deliveryDetails=details), order_schema)

    assert_schema_invalid_but_pydantic_rejects(
        make_order(deliveryDetails=make_delivery_details(district="")), order_schema
    )


def test_order_reminder_count_non_negative(order_schema):
    bad = make_order(deliveryReminder={"reminderCount": -1})
    assert_schema_invalid_but_pydantic_rejects(bad, order_schema)
