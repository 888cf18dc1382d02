"""
Event bus without delivery.

Used where evaluation must not produce observable side effects (tests, pure
list rendering). Events are still tallied so callers can assert on counts.
"""
from __future__ import annotations

from order_lifecycle.core.events.event_bus import EventBus, EventSink


class NullEventBus(EventBus):
    """EventBus with no sinks; later registrations are ignored."""

    def __init__(self) -> None:
        super().__init__(sinks=())

    def register(self, sink: EventSink) -> None:
        return
