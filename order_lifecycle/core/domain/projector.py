"""Role projector.

Buyer and seller experience different milestones of the same transaction:
the buyer's view ends once receipt is confirmed, while the seller also sees
the platform payout step. Admin observes with the buyer's framing.

Role differences are encoded as lookup tables keyed by role (step lists) and
by (role, state) (display step), not as branches.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from order_lifecycle.core.domain.errors import RoleNotApplicable

if TYPE_CHECKING:
    from order_lifecycle.core.domain.types import LifecycleState, Order, Role


@dataclass(frozen=True, slots=True)
class StepDefinition:
    """One milestone in a role's step list."""

    number: int
    key: str
    label: str
    description: str
    icon: str


@dataclass(frozen=True, slots=True)
class DisplayStep:
    """Role-specific projection of a canonical lifecycle state.

    ``step`` is 1-based into the role's step list; 0 is the synthetic
    cancelled step used for rejected orders.
    """

    role: str
    state: str
    step: int
    total_steps: int

    key: str
    label: str
    icon: str

    is_terminal: bool
    is_cancelled: bool

    @property
    def progress(self) -> float:
        if self.total_steps <= 0:
            return 0.0
        return self.step / self.total_steps


@dataclass(frozen=True, slots=True)
class StepState:
    definition: StepDefinition
    reached: bool
    current: bool


# ---------------------------------------------------------------------------
# Step tables
# ---------------------------------------------------------------------------

_AWAITING_PAYMENT = StepDefinition(1, "awaiting_payment", "Awaiting payment", "Waiting for payment confirmation", "icon-clock")
_PAID = StepDefinition(2, "paid", "Paid", "Payment confirmed, ready for shipping", "icon-check-circle")
_SHIPPED = StepDefinition(3, "shipped", "Shipped", "Package has been shipped", "icon-truck")
_DELIVERED = StepDefinition(4, "delivered", "Delivered", "Package delivered to buyer", "icon-package")

BUYER_STEPS: tuple[StepDefinition, ...] = (
    _AWAITING_PAYMENT,
    _PAID,
    _SHIPPED,
    _DELIVERED,
    StepDefinition(5, "completed", "Completed", "Order completed successfully", "icon-check-circle"),
)

SELLER_STEPS: tuple[StepDefinition, ...] = (
    _AWAITING_PAYMENT,
    _PAID,
    _SHIPPED,
    _DELIVERED,
    StepDefinition(5, "awaiting_payout", "Awaiting platform payout", "Waiting for the platform to pay the seller", "icon-banknote"),
    StepDefinition(6, "completed", "Completed", "Order completed successfully", "icon-check-circle"),
)

CANCELLED_STEP = StepDefinition(0, "cancelled", "Cancelled", "Order was rejected", "icon-x-circle")

ROLE_STEPS: dict[str, tuple[StepDefinition, ...]] = {
    "buyer": BUYER_STEPS,
    "seller": SELLER_STEPS,
    # Admin is an observer here and reuses the buyer framing.
    "admin": BUYER_STEPS,
}

_BUYER_STATE_STEP: dict[str, int] = {
    "pending": 1,
    "approved": 2,
    "shipped": 3,
    # Receipt confirmed: the remaining payout step is invisible to the buyer.
    "delivered": 5,
    "clearlot_paid": 5,
    "completed": 5,
}

ROLE_STATE_STEP: dict[str, dict[str, int]] = {
    "buyer": _BUYER_STATE_STEP,
    "seller": {
        "pending": 1,
        "approved": 2,
        "shipped": 3,
        "delivered": 5,
        "clearlot_paid": 6,
        "completed": 6,
    },
    "admin": _BUYER_STATE_STEP,
}


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def step_definitions(role: Role | str) -> tuple[StepDefinition, ...]:
    """Return the ordered step list for ``role``."""
    steps = ROLE_STEPS.get(role)
    if steps is None:
        raise RoleNotApplicable(order_id=None, role=role)
    return steps


def project(state: LifecycleState | str, role: Role | str) -> DisplayStep:
    """Project a canonical state onto ``role``'s step list."""
    steps = step_definitions(role)
    total = len(steps)

    if state == "rejected":
        return DisplayStep(
            role=role,
            state=state,
            step=CANCELLED_STEP.number,
            total_steps=total,
            key=CANCELLED_STEP.key,
            label=CANCELLED_STEP.label,
            icon=CANCELLED_STEP.icon,
            is_terminal=True,
            is_cancelled=True,
        )

    # Canonical states always map; anything else is shown as the first step.
    number = ROLE_STATE_STEP[role].get(state, 1)
    definition = steps[number - 1]

    return DisplayStep(
        role=role,
        state=state,
        step=number,
        total_steps=total,
        key=definition.key,
        label=definition.label,
        icon=definition.icon,
        is_terminal=number == total,
        is_cancelled=False,
    )


def step_states(display: DisplayStep) -> tuple[StepState, ...]:
    """Mark each step of the role's list as reached and/or current.

    Reaching a step never depends on timestamp availability.
    """
    if display.is_cancelled:
        return (StepState(definition=CANCELLED_STEP, reached=True, current=True),)

    return tuple(
        StepState(
            definition=definition,
            reached=definition.number <= display.step,
            current=definition.number == display.step,
        )
        for definition in step_definitions(display.role)
    )


def resolve_viewer_role(order: Order, viewer_id: str | None, *, is_admin: bool = False) -> Role:
    """Return the role ``viewer_id`` plays on ``order``.

    A party to the order gets its party role even if it also has admin rights.
    """
    if viewer_id is not None and viewer_id == order.buyer_id:
        return "buyer"
    if viewer_id is not None and viewer_id == order.seller_id:
        return "seller"
    if is_admin:
        return "admin"
    raise RoleNotApplicable(order_id=order.id, role=None, viewer_id=viewer_id)
