"""Notification side-channel protocol.

Write-only and fire-and-forget: action handlers send one notification per
state-advancing action to the counterparty, after the store write succeeded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class Notification:
    order_id: str
    recipient_id: str
    recipient_role: str

    title: str
    message: str
    priority: str  # low | medium | high

    # Lifecycle status the notification refers to, if any.
    status: str | None = None


class Notifier(Protocol):
    def send(self, notification: Notification) -> None:
        """Deliver a notification. May raise; callers treat delivery as best-effort."""
