"""Action resolver.

Returns the actions the viewing role may take on an order right now, each
bound to the single display step it is attached to. Bindings are a table
keyed by (role, state) plus an optional record condition; an action whose
precondition does not hold is omitted, never returned disabled.

The resolver is read-only. Executing an action is the job of the action
handlers, which write to the store and then re-evaluate the fresh snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from order_lifecycle.core.domain.normalizer import normalize
from order_lifecycle.core.domain.projector import step_definitions

if TYPE_CHECKING:
    from order_lifecycle.core.domain.types import Order


ActionKind = Literal[
    "view_uploaded_receipt",
    "begin_shipment_upload",
    "view_shipment_status",
    "confirm_delivery",
    "rate_counterparty",
]


@dataclass(frozen=True, slots=True)
class PermittedAction:
    step: int
    kind: str
    enabled: bool = True


@dataclass(frozen=True, slots=True)
class ActionBinding:
    role: str
    states: frozenset[str]
    step: int
    kind: ActionKind
    # Only offered while the order has not been rated.
    requires_unrated: bool = False

    def applies(self, order: Order, role: str, state: str) -> bool:
        if self.role != role or state not in self.states:
            return False
        if self.requires_unrated and order.has_rating:
            return False
        return True


ACTION_BINDINGS: tuple[ActionBinding, ...] = (
    ActionBinding("buyer", frozenset({"pending"}), 1, "view_uploaded_receipt"),
    ActionBinding("seller", frozenset({"approved"}), 3, "begin_shipment_upload"),
    ActionBinding("seller", frozenset({"shipped"}), 3, "view_shipment_status"),
    ActionBinding("buyer", frozenset({"shipped"}), 3, "view_shipment_status"),
    ActionBinding("buyer", frozenset({"shipped"}), 4, "confirm_delivery"),
    ActionBinding("buyer", frozenset({"delivered", "completed"}), 5, "rate_counterparty", requires_unrated=True),
    ActionBinding("seller", frozenset({"completed"}), 6, "rate_counterparty", requires_unrated=True),
)


def _check_one_action_per_step(bindings: tuple[ActionBinding, ...]) -> None:
    seen: set[tuple[str, str, int]] = set()
    for binding in bindings:
        for state in binding.states:
            key = (binding.role, state, binding.step)
            if key in seen:
                raise ValueError(f"more than one action bound to {key}")
            seen.add(key)


_check_one_action_per_step(ACTION_BINDINGS)


def actions_for(
    order: Order,
    role: str,
    *,
    state: str | None = None,
) -> tuple[PermittedAction, ...]:
    """Return the permitted actions for ``role`` on ``order``, ordered by step."""
    step_definitions(role)  # RoleNotApplicable for unknown roles
    canonical = normalize(order) if state is None else state

    actions = [
        PermittedAction(step=binding.step, kind=binding.kind)
        for binding in ACTION_BINDINGS
        if binding.applies(order, role, canonical)
    ]
    actions.sort(key=lambda action: action.step)
    return tuple(actions)
