"""Timeline reconstruction.

Resolves one display timestamp per reached step from a sparse, piecemeal
written order record. For every (role, step) an ordered candidate list of
record fields is tried; the first present field wins, ``purchaseDate`` is the
last-resort anchor, and a step with nothing at all resolves to ``UNKNOWN``.

The resolved sequence is then made monotonically non-decreasing: a step whose
recorded time lies before the time already resolved for an earlier step is
clamped forward to that time and reported as a ``TimelineAnomaly``. Clamping
is forward-only; an earlier step is never moved.

Everything here is a pure function of the snapshot. No clock is read.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Final, Literal

from order_lifecycle.core.domain.normalizer import normalize
from order_lifecycle.core.domain.projector import project, step_definitions

if TYPE_CHECKING:
    from order_lifecycle.core.domain.types import Order


UNKNOWN: Final = "unknown"

StepTimeValue = datetime | Literal["unknown"]


# ---------------------------------------------------------------------------
# Candidate fields
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Candidate:
    """A record field that may supply a step's timestamp.

    ``field`` is the stored (camelCase, dotted) path, ``attrs`` the attribute
    chain on the snapshot model. ``states`` restricts the candidate to some
    lifecycle states (None = always eligible).
    """

    field: str
    attrs: tuple[str, ...]
    states: frozenset[str] | None = None

    def read(self, order: Order, state: str) -> datetime | None:
        if self.states is not None and state not in self.states:
            return None
        value: object = order
        for attr in self.attrs:
            value = getattr(value, attr, None)
            if value is None:
                return None
        return value if isinstance(value, datetime) else None


PURCHASE_DATE = Candidate("purchaseDate", ("purchase_date",))
PAYMENT_APPROVED_AT = Candidate("paymentDetails.approvedAt", ("payment_details", "approved_at"))
SHIPPED_AT = Candidate("shippingDetails.shippedAt", ("shipping_details", "shipped_at"))
DELIVERED_AT = Candidate("shippingDetails.deliveredAt", ("shipping_details", "delivered_at"))
DELIVERY_CONFIRMED_AT = Candidate(
    "shippingDetails.deliveryConfirmedAt",
    ("shipping_details", "delivery_confirmed_at"),
)
# The buyer's "completed" step shows the delivery time while the order is
# still in the delivered state.
DELIVERED_AT_WHILE_DELIVERED = Candidate(
    "shippingDetails.deliveredAt",
    ("shipping_details", "delivered_at"),
    states=frozenset({"delivered"}),
)

_SHARED_CANDIDATES: dict[int, tuple[Candidate, ...]] = {
    1: (PURCHASE_DATE,),
    2: (PAYMENT_APPROVED_AT,),
    3: (SHIPPED_AT, PAYMENT_APPROVED_AT),
    4: (DELIVERED_AT, DELIVERY_CONFIRMED_AT, PAYMENT_APPROVED_AT),
}

BUYER_CANDIDATES: dict[int, tuple[Candidate, ...]] = {
    **_SHARED_CANDIDATES,
    5: (DELIVERED_AT_WHILE_DELIVERED, DELIVERY_CONFIRMED_AT, PAYMENT_APPROVED_AT),
}

SELLER_CANDIDATES: dict[int, tuple[Candidate, ...]] = {
    **_SHARED_CANDIDATES,
    5: (DELIVERY_CONFIRMED_AT, PAYMENT_APPROVED_AT),
    6: (DELIVERY_CONFIRMED_AT, PAYMENT_APPROVED_AT),
}

ROLE_CANDIDATES: dict[str, dict[int, tuple[Candidate, ...]]] = {
    "buyer": BUYER_CANDIDATES,
    "seller": SELLER_CANDIDATES,
    "admin": BUYER_CANDIDATES,
}

FALLBACK_CANDIDATES: tuple[Candidate, ...] = (PURCHASE_DATE,)


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StepTime:
    """Resolved display time of one step.

    ``recorded`` is what the winning candidate held; ``value`` is what is
    displayed (differs only when ``corrected``).
    """

    step: int
    value: StepTimeValue
    recorded: StepTimeValue
    source: str | None
    corrected: bool = False

    @property
    def is_known(self) -> bool:
        return self.value != UNKNOWN


@dataclass(frozen=True, slots=True)
class TimelineAnomaly:
    """A recorded step time that preceded an earlier step's time."""

    order_id: str
    role: str
    step: int
    source: str | None
    recorded_at: datetime
    clamped_to: datetime


@dataclass(frozen=True, slots=True)
class Timeline:
    order_id: str
    role: str
    steps: tuple[StepTime, ...]
    anomalies: tuple[TimelineAnomaly, ...]

    def at(self, step: int) -> StepTimeValue:
        for entry in self.steps:
            if entry.step == step:
                return entry.value
        return UNKNOWN


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def raw_step_time(
    order: Order,
    step: int,
    role: str,
    *,
    state: str | None = None,
) -> tuple[StepTimeValue, str | None]:
    """Resolve a step's time from its candidate list, without correction.

    Returns (value, source field). Falls back to ``purchaseDate`` and then to
    ``UNKNOWN``.
    """
    step_definitions(role)  # RoleNotApplicable for unknown roles
    canonical = normalize(order) if state is None else state

    candidates = ROLE_CANDIDATES[role].get(step, ())
    for candidate in (*candidates, *FALLBACK_CANDIDATES):
        value = candidate.read(order, canonical)
        if value is not None:
            return (value, candidate.field)

    return (UNKNOWN, None)


def _resolve_chain(
    order: Order,
    role: str,
    state: str,
    upto_step: int,
) -> tuple[list[StepTime], list[TimelineAnomaly]]:
    entries: list[StepTime] = []
    anomalies: list[TimelineAnomaly] = []

    # Latest time resolved so far for an earlier step (forward clamp anchor).
    anchor: datetime | None = None

    for step in range(1, upto_step + 1):
        recorded, source = raw_step_time(order, step, role, state=state)

        if not isinstance(recorded, datetime):
            entries.append(StepTime(step=step, value=UNKNOWN, recorded=UNKNOWN, source=None))
            continue

        if anchor is not None and recorded < anchor:
            anomalies.append(
                TimelineAnomaly(
                    order_id=order.id,
                    role=role,
                    step=step,
                    source=source,
                    recorded_at=recorded,
                    clamped_to=anchor,
                )
            )
            entries.append(
                StepTime(step=step, value=anchor, recorded=recorded, source=source, corrected=True)
            )
            continue

        anchor = recorded
        entries.append(StepTime(step=step, value=recorded, recorded=recorded, source=source))

    return (entries, anomalies)


def resolve_step_time(
    order: Order,
    step: int,
    role: str,
    *,
    state: str | None = None,
) -> StepTimeValue:
    """Return the display time of ``step`` for ``role``.

    Steps before ``step`` are resolved first so that the monotonicity
    correction can apply. Steps outside the role's list resolve to UNKNOWN.
    """
    total = len(step_definitions(role))
    if step < 1 or step > total:
        return UNKNOWN

    canonical = normalize(order) if state is None else state
    entries, _ = _resolve_chain(order, role, canonical, step)
    return entries[-1].value


def reconstruct_timeline(
    order: Order,
    role: str,
    *,
    state: str | None = None,
) -> Timeline:
    """Resolve times for every reached step (1 .. current display step).

    Rejected orders have an empty timeline. A reached step with nothing to
    show is kept with ``UNKNOWN``.
    """
    canonical = normalize(order) if state is None else state
    display = project(canonical, role)

    if display.is_cancelled:
        return Timeline(order_id=order.id, role=role, steps=(), anomalies=())

    entries, anomalies = _resolve_chain(order, role, canonical, display.step)
    return Timeline(
        order_id=order.id,
        role=role,
        steps=tuple(entries),
        anomalies=tuple(anomalies),
    )
