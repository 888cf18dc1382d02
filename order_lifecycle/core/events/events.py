"""
Domain event models.

These events represent immutable facts observed while evaluating or writing
orders. They are consumed by loggers, recorders, and the audit job.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TimelineAnomalyEvent:
    """A step time was recorded before an earlier step and was clamped forward."""

    order_id: str
    role: str
    step: int
    source: str | None
    recorded_at: str
    clamped_to: str


@dataclass(frozen=True, slots=True)
class OrderStatusTransitionEvent:
    ts: str
    order_id: str
    actor_role: str
    prev_state: str | None
    next_state: str


@dataclass(frozen=True, slots=True)
class NotificationDispatchedEvent:
    ts: str
    order_id: str
    recipient_id: str
    recipient_role: str
    title: str
    message: str
    priority: str
    status: str | None


@dataclass(frozen=True, slots=True)
class NotificationFailedEvent:
    ts: str
    order_id: str
    recipient_id: str
    error: str
