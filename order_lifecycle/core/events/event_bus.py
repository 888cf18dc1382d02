"""
Synchronous domain event bus.

Events are dispatched to every registered sink in registration order, on the
caller's thread. The bus also keeps a per-event-type tally, which batch jobs
(the data-quality audit) read back as a summary.
"""
from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Protocol


class EventSink(Protocol):
    def on_event(self, event: Any) -> None:
        """Consume a domain event."""


class EventBus:
    """Dispatches events to registered sinks."""

    def __init__(self, sinks: Iterable[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks) if sinks is not None else []
        self._counts: Counter[str] = Counter()
        self._closed = False

    def register(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def emit(self, event: Any) -> None:
        """Emit an event to all sinks."""
        self._counts[type(event).__name__] += 1
        for sink in self._sinks:
            sink.on_event(event)

    def counts(self) -> dict[str, int]:
        """Number of emitted events per event class name."""
        return dict(self._counts)

    def close(self) -> None:
        """Finalize all sinks that expose a close() method."""
        if self._closed:
            return

        for sink in self._sinks:
            close_fn = getattr(sink, "close", None)
            if callable(close_fn):
                close_fn()

        self._closed = True
