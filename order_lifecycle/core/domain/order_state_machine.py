"""
Order lifecycle state machine definitions.

This module defines the terminal order states and the allowed status writes
between them. It is passive and validation-only: the read path never consults
it (snapshots are taken as they are), only the action handlers use it before
writing a new status to the store.

Status only ever moves forward through

    pending < approved < shipped < delivered < clearlot_paid < completed

and ``rejected`` can only be reached from ``pending``.
"""

from __future__ import annotations

# Terminal order states: once reached, the status is never written again.
ORDER_TERMINAL_STATES: frozenset[str] = frozenset(
    {
        "completed",
        "rejected",
    }
)

# Forward rank of the non-failure states.
ORDER_FORWARD_SEQUENCE: tuple[str, ...] = (
    "pending",
    "approved",
    "shipped",
    "delivered",
    "clearlot_paid",
    "completed",
)


# Allowed order state transitions.
#
# Key   : previous state (or None if the order does not exist yet)
# Value : set of allowed next states
#
# Notes:
# - Forward skips are allowed (e.g. an admin completing a delivered order
#   without a separate payout step, or a buyer confirming receipt straight
#   to completed).
# - Repeated states are not transitions and are rejected.
ORDER_ALLOWED_TRANSITIONS: dict[str | None, frozenset[str]] = {
    None: frozenset({"pending"}),

    "pending": frozenset(
        {
            "approved",
            "shipped",
            "delivered",
            "clearlot_paid",
            "completed",
            "rejected",
        }
    ),

    "approved": frozenset(
        {
            "shipped",
            "delivered",
            "clearlot_paid",
            "completed",
        }
    ),

    "shipped": frozenset(
        {
            "delivered",
            "clearlot_paid",
            "completed",
        }
    ),

    "delivered": frozenset(
        {
            "clearlot_paid",
            "completed",
        }
    ),

    "clearlot_paid": frozenset(
        {
            "completed",
        }
    ),
}


def is_terminal_state(state: str) -> bool:
    """Return True if the given state is terminal."""
    return state in ORDER_TERMINAL_STATES


def is_valid_transition(prev_state: str | None, next_state: str) -> bool:
    """Return True if the transition prev_state -> next_state is allowed."""
    allowed = ORDER_ALLOWED_TRANSITIONS.get(prev_state)
    if allowed is None:
        return False
    return next_state in allowed


def forward_rank(state: str) -> int:
    """Position of ``state`` in the forward sequence, -1 for rejected/unknown."""
    try:
        return ORDER_FORWARD_SEQUENCE.index(state)
    except ValueError:
        return -1
