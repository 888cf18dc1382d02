"""JSON-compatible rendering of an ``OrderView``.

The rendering layer is responsible purely for layout; this module only turns
engine output into plain data with formatted times. "Time unknown" is a
normal value here, never an error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from order_lifecycle.core.domain.timeline import UNKNOWN

if TYPE_CHECKING:
    from order_lifecycle.core.engine import OrderView
    from order_lifecycle.core.presentation.formatting import TimeFormatter


def render_order_view(view: OrderView, formatter: TimeFormatter) -> dict[str, Any]:
    display = view.display_step
    times = {entry.step: entry for entry in view.timeline.steps}

    steps: list[dict[str, Any]] = []
    for state in view.steps:
        number = state.definition.number
        entry = times.get(number)
        item: dict[str, Any] = {
            "step": number,
            "key": state.definition.key,
            "label": state.definition.label,
            "icon": state.definition.icon,
            "reached": state.reached,
            "current": state.current,
            "time": None,
        }
        if entry is not None:
            item["time"] = str(formatter.format(entry.value))
            item["time_known"] = entry.value != UNKNOWN
            item["corrected"] = entry.corrected
        steps.append(item)

    return {
        "order_id": view.order_id,
        "role": view.role,
        "state": view.state,
        "display_step": {
            "step": display.step,
            "total_steps": display.total_steps,
            "key": display.key,
            "label": display.label,
            "icon": display.icon,
            "terminal": display.is_terminal,
            "cancelled": display.is_cancelled,
            "progress": round(display.progress, 4),
        },
        "steps": steps,
        "actions": [
            {"step": action.step, "kind": action.kind, "enabled": action.enabled}
            for action in view.actions
        ],
        "anomalies": len(view.timeline.anomalies),
    }
