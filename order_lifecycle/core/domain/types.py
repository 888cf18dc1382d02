"""Core order record models.

This module defines the canonical Pydantic models for an order snapshot as it
is read from the document store. Snapshots are immutable; every engine
function receives one and never changes it.

The store writes the record piecemeal (buyer, seller and admin each patch
their own sub-objects), so every sub-object and nearly every timestamp is
optional. Field names are snake_case in Python and camelCase in the stored
document.
"""

# pylint: disable=missing-class-docstring
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


LifecycleState = Literal[
    "pending",
    "approved",
    "shipped",
    "delivered",
    "clearlot_paid",
    "completed",
    "rejected",
]
Role = Literal["buyer", "seller", "admin"]
ApprovalStatus = Literal["pending", "approved", "rejected"]

LIFECYCLE_STATES: tuple[str, ...] = (
    "pending",
    "approved",
    "shipped",
    "delivered",
    "clearlot_paid",
    "completed",
    "rejected",
)
ROLES: tuple[str, ...] = ("buyer", "seller", "admin")


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def _coerce_timestamp(value: Any) -> datetime | None:
    """Parse a stored timestamp; unusable values are treated as absent.

    Accepted forms:
    - ISO-8601 strings (a trailing "Z" is allowed)
    - document-store timestamp objects: {"seconds": int, "nanoseconds": int},
      or {"_seconds": int, "_nanoseconds": int} as written by admin exports
    - datetime instances

    Naive values are interpreted as UTC.
    """
    if value is None or value == "":
        return None

    parsed: datetime | None = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            parsed = None
    elif isinstance(value, dict) and ("seconds" in value or "_seconds" in value):
        prefix = "" if "seconds" in value else "_"
        try:
            seconds = float(value[f"{prefix}seconds"]) + float(value.get(f"{prefix}nanoseconds", 0)) / 1e9
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            # OSError: out of range for the platform's time_t.
            parsed = None

    if parsed is None:
        LOGGER.warning("Ignoring unparseable timestamp", extra={"value": repr(value)})
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


Timestamp = Annotated[datetime | None, BeforeValidator(_coerce_timestamp)]


def _raw_status(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


RawStatus = Annotated[str | None, BeforeValidator(_raw_status)]


# ---------------------------------------------------------------------------
# Sub-objects
# ---------------------------------------------------------------------------


class _RecordModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class PaymentDetails(_RecordModel):
    """Buyer payment proof plus the admin approval stamp."""

    method: str | None = None
    receipt_preview: str | None = None
    receipt_file: str | None = None
    amount: float | None = None

    # Upload time of the receipt.
    timestamp: Timestamp = None
    approved_at: Timestamp = None
    approved_by: str | None = None
    admin_notes: str | None = None


class ShippingDetails(_RecordModel):
    """Shipment evidence and delivery confirmation.

    Populated incrementally; fields may be missing even when the order status
    has already moved past the step they describe.
    """

    shipped_at: Timestamp = None
    delivered_at: Timestamp = None
    delivery_confirmed_at: Timestamp = None
    delivery_confirmed_by: str | None = None

    photos: tuple[str, ...] = Field(default_factory=tuple)
    tracking_number: str | None = None
    remarks: str | None = None

    approved_at: Timestamp = None
    approved_by: str | None = None


class DeliveryDetails(_RecordModel):
    """Buyer-supplied delivery address."""

    district: str = Field(..., min_length=1)
    subdivision: str | None = None
    address1: str = Field(..., min_length=1)
    address2: str | None = None
    contact_person_name: str = Field(..., min_length=1)
    contact_person_phone: str = Field(..., min_length=1)
    remarks: str | None = None


class PlatformPayout(_RecordModel):
    receipt_url: str | None = None
    paid_at: Timestamp = None


class DeliveryReminderState(_RecordModel):
    last_sent_at: Timestamp = Field(default=None, alias="lastReminderSent")
    reminder_count: int = Field(default=0, ge=0)
    admin_notified: bool = False


# ---------------------------------------------------------------------------
# Order snapshot
# ---------------------------------------------------------------------------


class Order(_RecordModel):
    """Immutable snapshot of one order record.

    ``status`` is kept raw (non-string values as their string form): an
    unknown or missing value must survive loading so that the status
    normalizer can fail closed on it.
    """

    id: str = Field(..., min_length=1)
    buyer_id: str = Field(..., min_length=1)
    seller_id: str = Field(..., min_length=1)
    offer_id: str | None = Field(default=None, min_length=1)

    status: RawStatus = None
    payment_approval_status: ApprovalStatus | None = None
    shipping_approval_status: ApprovalStatus | None = None

    payment_details: PaymentDetails | None = None
    shipping_details: ShippingDetails | None = None
    delivery_details: DeliveryDetails | None = None
    platform_payout: PlatformPayout | None = None
    delivery_reminder: DeliveryReminderState | None = None

    has_rating: bool = False
    rating_id: str | None = None

    purchase_date: Timestamp = None

    offer_title: str | None = None
    quantity: int | None = Field(default=None, ge=0)
    total_amount: float | None = Field(default=None, ge=0)
    final_amount: float | None = Field(default=None, ge=0)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Order:
        """Build a snapshot from a raw (camelCase) store document."""
        return cls.model_validate(record)

    def to_record(self) -> dict[str, Any]:
        """Dump the snapshot back into store document form."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def party_ids(self) -> tuple[str, str]:
        return (self.buyer_id, self.seller_id)
