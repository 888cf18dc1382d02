"""Offline data-quality audit over an orders export.

Evaluates every order for the buyer and the seller, records the timeline
anomalies found along the way and reports how much of the export resolves
cleanly. Used to track how often records are written out of order or with
missing timestamps.
"""

from __future__ import annotations

import argparse
import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from order_lifecycle.adapters.memory_store import InMemoryOrderStore
from order_lifecycle.core.domain.types import LIFECYCLE_STATES, Order
from order_lifecycle.core.engine import OrderLifecycleEngine
from order_lifecycle.core.events.event_bus import EventBus
from order_lifecycle.core.events.events import TimelineAnomalyEvent
from order_lifecycle.core.events.sinks.file_recorder import FileRecorderSink
from order_lifecycle.core.events.sinks.memory_recorder import MemoryRecorderSink
from order_lifecycle.core.events.sinks.sink_logging import LoggingEventSink
from order_lifecycle.runtime.prometheus_metrics import PrometheusMetricsClient

LOGGER = logging.getLogger(__name__)

AUDIT_ROLES = ("buyer", "seller")


@dataclass(slots=True)
class AuditSummary:
    orders: int = 0
    skipped_documents: int = 0
    views: int = 0
    unrecognized_statuses: int = 0
    anomalies: Counter[str] = field(default_factory=Counter)
    unknown_step_times: Counter[str] = field(default_factory=Counter)
    states: Counter[str] = field(default_factory=Counter)

    def as_dict(self) -> dict[str, object]:
        return {
            "orders": self.orders,
            "skipped_documents": self.skipped_documents,
            "views": self.views,
            "unrecognized_statuses": self.unrecognized_statuses,
            "anomalies": dict(self.anomalies),
            "unknown_step_times": dict(self.unknown_step_times),
            "states": dict(self.states),
        }


def audit_orders(orders: Iterable[Order], engine: OrderLifecycleEngine) -> AuditSummary:
    """Evaluate each order for every audited role and tally what was found."""
    summary = AuditSummary()

    for order in orders:
        summary.orders += 1
        if order.status is not None and order.status not in LIFECYCLE_STATES:
            summary.unrecognized_statuses += 1

        for role in AUDIT_ROLES:
            view = engine.evaluate(order, role)
            summary.views += 1
            summary.states[view.state] += 1
            summary.anomalies[role] += len(view.timeline.anomalies)
            summary.unknown_step_times[role] += sum(1 for entry in view.timeline.steps if not entry.is_known)

    return summary


def _print_summary(summary: AuditSummary, recorded: int) -> None:
    print("=" * 60)
    print("Order timeline audit")
    print(f"Orders scanned           : {summary.orders}")
    print(f"Documents skipped        : {summary.skipped_documents}")
    print(f"Views evaluated          : {summary.views}")
    print(f"Unrecognized statuses    : {summary.unrecognized_statuses}")
    for role in AUDIT_ROLES:
        print(f"Anomalies ({role:<6})       : {summary.anomalies[role]}")
        print(f"Unknown times ({role:<6})   : {summary.unknown_step_times[role]}")
    print(f"Anomaly events recorded  : {recorded}")
    print("=" * 60)


def _push_metrics(summary: AuditSummary) -> None:
    metrics = PrometheusMetricsClient()
    if not metrics.is_enabled():
        return

    try:
        metrics.set_gauge(
            name="order_audit_orders_total",
            value=float(summary.orders),
            labels={},
            documentation="Orders scanned by the last audit run",
        )
        metrics.set_gauge(
            name="order_audit_skipped_documents",
            value=float(summary.skipped_documents),
            labels={},
            documentation="Export documents that could not be loaded as orders",
        )
        metrics.set_gauge(
            name="order_audit_unrecognized_statuses",
            value=float(summary.unrecognized_statuses),
            labels={},
        )
        for role in AUDIT_ROLES:
            metrics.set_gauge(
                name="order_audit_timeline_anomalies",
                value=float(summary.anomalies[role]),
                labels={"role": role},
            )
            metrics.set_gauge(
                name="order_audit_unknown_step_times",
                value=float(summary.unknown_step_times[role]),
                labels={"role": role},
            )
        metrics.push_all(job="order_lifecycle_audit")
    except Exception:  # pylint: disable=broad-exception-caught
        LOGGER.exception("Prometheus push failed")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser("audit order timelines")

    parser.add_argument("--orders", type=Path, required=True, help="Path to the orders JSON export.")
    parser.add_argument(
        "--events-out",
        type=Path,
        default=None,
        help="Write anomaly events as JSON lines to this file.",
    )
    parser.add_argument(
        "--summary-out",
        type=Path,
        default=None,
        help="Also write the summary as JSON to this file.",
    )

    args = parser.parse_args(argv)

    store = InMemoryOrderStore.from_json_file(args.orders)

    recorder = MemoryRecorderSink()
    bus = EventBus([recorder, LoggingEventSink(logging.getLogger("order_lifecycle.events"))])
    if args.events_out is not None:
        bus.register(FileRecorderSink(args.events_out))

    try:
        summary = audit_orders(store.query(), OrderLifecycleEngine(event_bus=bus))
        summary.skipped_documents = store.skipped_documents
    finally:
        bus.close()

    recorded = len(recorder.of_type(TimelineAnomalyEvent))
    _print_summary(summary, recorded)

    if args.summary_out is not None:
        args.summary_out.parent.mkdir(parents=True, exist_ok=True)
        args.summary_out.write_text(json.dumps(summary.as_dict(), indent=2), encoding="utf-8")

    _push_metrics(summary)


if __name__ == "__main__":
    main()
