"""Notifier that publishes notifications on the domain event bus.

Stands in for the real notification side-channel: sinks registered on the
bus (logging, JSON lines recorder) decide what "delivery" means.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from order_lifecycle.core.events.events import NotificationDispatchedEvent

if TYPE_CHECKING:
    from order_lifecycle.core.events.event_bus import EventBus
    from order_lifecycle.core.ports.clock import Clock
    from order_lifecycle.core.ports.notifier import Notification


class EventBusNotifier:
    def __init__(self, event_bus: EventBus, clock: Clock) -> None:
        self._event_bus = event_bus
        self._clock = clock

    def send(self, notification: Notification) -> None:
        self._event_bus.emit(
            NotificationDispatchedEvent(
                ts=self._clock.now().isoformat(),
                order_id=notification.order_id,
                recipient_id=notification.recipient_id,
                recipient_role=notification.recipient_role,
                title=notification.title,
                message=notification.message,
                priority=notification.priority,
                status=notification.status,
            )
        )
