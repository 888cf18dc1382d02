from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from order_lifecycle.adapters.memory_store import InMemoryOrderStore
from order_lifecycle.core.config.engine_config import EngineConfig
from order_lifecycle.core.domain.errors import RoleNotApplicable
from order_lifecycle.core.engine import OrderLifecycleEngine
from order_lifecycle.core.events.event_bus import EventBus
from order_lifecycle.core.events.sinks.file_recorder import FileRecorderSink
from order_lifecycle.core.events.sinks.sink_logging import LoggingEventSink
from order_lifecycle.core.presentation.formatting import TimeFormatter
from order_lifecycle.core.presentation.order_list import build_order_list
from order_lifecycle.core.presentation.rendering import render_order_view

# Exit codes
EXIT_NOT_FOUND = 4
EXIT_ACCESS_DENIED = 3

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_config(path: Path | None) -> EngineConfig:
    if path is None:
        return EngineConfig()
    if not path.exists():
        raise FileNotFoundError(path)
    return EngineConfig.from_json_file(path)


def _build_event_bus(record_path: Path | None) -> EventBus:
    bus = EventBus([LoggingEventSink(logging.getLogger("order_lifecycle.events"))])
    if record_path is not None:
        bus.register(FileRecorderSink(record_path))
    return bus


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Evaluate orders from a JSON export and print the viewer's rendered lifecycle view"
    )

    parser.add_argument(
        "--orders",
        type=Path,
        required=True,
        help="Path to the orders JSON export.",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional engine config JSON (timezone, locale, ...).",
    )

    parser.add_argument(
        "--viewer-id",
        default=None,
        help="Id of the user looking at the order(s).",
    )

    parser.add_argument(
        "--admin",
        action="store_true",
        help="Viewer has platform admin rights.",
    )

    parser.add_argument(
        "--order-id",
        default=None,
        help="Evaluate a single order.",
    )

    parser.add_argument(
        "--list-as",
        choices=("buyer", "seller"),
        default=None,
        help="Evaluate the viewer's order list from this side of the marketplace.",
    )

    parser.add_argument(
        "--status",
        nargs="*",
        default=None,
        help="Status filter for --list-as.",
    )

    parser.add_argument(
        "--fallback-to-all",
        action="store_true",
        help="With --status: show all of the viewer's orders when the filter matches none.",
    )

    parser.add_argument(
        "--record-events",
        type=Path,
        default=None,
        help="Append domain events (timeline anomalies) as JSON lines to this file.",
    )

    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if (args.order_id is None) == (args.list_as is None):
        print("Error: exactly one of --order-id or --list-as must be specified.", file=sys.stderr)
        sys.exit(2)

    config = _load_config(args.config)
    formatter = TimeFormatter(config)
    store = InMemoryOrderStore.from_json_file(args.orders)
    bus = _build_event_bus(args.record_events)
    engine = OrderLifecycleEngine(event_bus=bus)

    output: Any
    try:
        if args.order_id is not None:
            order = store.get(args.order_id)
            if order is None:
                print(f"Error: order {args.order_id!r} not found.", file=sys.stderr)
                sys.exit(EXIT_NOT_FOUND)
            view = engine.evaluate_for_viewer(order, args.viewer_id, is_admin=args.admin)
            output = render_order_view(view, formatter)
        else:
            if args.viewer_id is None:
                print("Error: --list-as requires --viewer-id.", file=sys.stderr)
                sys.exit(2)
            views = build_order_list(
                store,
                engine,
                viewer_id=args.viewer_id,
                role=args.list_as,
                statuses=args.status,
                fallback_to_all=args.fallback_to_all,
            )
            output = [render_order_view(view, formatter) for view in views]
    except RoleNotApplicable as exc:
        print(f"Access denied: {exc}", file=sys.stderr)
        sys.exit(EXIT_ACCESS_DENIED)
    finally:
        bus.close()

    print(json.dumps(output, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
