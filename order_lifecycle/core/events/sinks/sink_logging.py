"""
Logging event sink.
"""
from __future__ import annotations

import logging
from typing import Any

from order_lifecycle.core.events.events import NotificationFailedEvent, TimelineAnomalyEvent
from order_lifecycle.core.events.sinks.file_recorder import event_record

# Events that point at data-quality or delivery problems.
_WARNING_EVENTS: tuple[type, ...] = (TimelineAnomalyEvent, NotificationFailedEvent)


class LoggingEventSink:
    """Logs domain events using the standard logging module."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def on_event(self, event: Any) -> None:
        level = logging.WARNING if isinstance(event, _WARNING_EVENTS) else logging.INFO
        self._logger.log(level, "domain_event", extra={"event": event_record(event)})
