"""Order lifecycle pipeline.

raw snapshot -> normalize -> {project, reconstruct timeline, resolve actions}

``build_order_view`` is the pure pipeline: the same snapshot and role always
give an equal ``OrderView``. ``OrderLifecycleEngine`` wraps it and publishes
the timeline anomalies it finds (logging and domain events) for offline
data-quality review. Every new snapshot is evaluated from scratch; nothing is
cached between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from order_lifecycle.core.domain.actions import PermittedAction, actions_for
from order_lifecycle.core.domain.normalizer import normalize
from order_lifecycle.core.domain.projector import (
    DisplayStep,
    StepState,
    project,
    resolve_viewer_role,
    step_states,
)
from order_lifecycle.core.domain.timeline import Timeline, reconstruct_timeline
from order_lifecycle.core.events.events import TimelineAnomalyEvent

if TYPE_CHECKING:
    from order_lifecycle.core.domain.types import Order
    from order_lifecycle.core.events.event_bus import EventBus

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OrderView:
    """Everything the rendering layer needs for one order and one viewer role."""

    order_id: str
    role: str
    state: str

    display_step: DisplayStep
    steps: tuple[StepState, ...]
    timeline: Timeline
    actions: tuple[PermittedAction, ...]


def build_order_view(order: Order, role: str) -> OrderView:
    """Run the full pipeline for ``role``. Pure and deterministic.

    Rejected orders short-circuit to the cancelled step with an empty
    timeline and no actions.
    """
    state = normalize(order)
    display = project(state, role)

    if display.is_cancelled:
        return OrderView(
            order_id=order.id,
            role=role,
            state=state,
            display_step=display,
            steps=step_states(display),
            timeline=Timeline(order_id=order.id, role=role, steps=(), anomalies=()),
            actions=(),
        )

    return OrderView(
        order_id=order.id,
        role=role,
        state=state,
        display_step=display,
        steps=step_states(display),
        timeline=reconstruct_timeline(order, role, state=state),
        actions=actions_for(order, role, state=state),
    )


class OrderLifecycleEngine:
    """Evaluates snapshots and reports timeline anomalies."""

    def __init__(self, event_bus: EventBus) -> None:
        self._event_bus = event_bus

    def evaluate(self, order: Order, role: str) -> OrderView:
        view = build_order_view(order, role)
        self._publish_anomalies(view)
        return view

    def evaluate_for_viewer(
        self,
        order: Order,
        viewer_id: str | None,
        *,
        is_admin: bool = False,
    ) -> OrderView:
        """Evaluate with the role the viewer plays; RoleNotApplicable for non-parties."""
        role = resolve_viewer_role(order, viewer_id, is_admin=is_admin)
        return self.evaluate(order, role)

    def _publish_anomalies(self, view: OrderView) -> None:
        for anomaly in view.timeline.anomalies:
            LOGGER.warning(
                "Step time precedes earlier step; clamped forward",
                extra={
                    "order_id": anomaly.order_id,
                    "role": anomaly.role,
                    "step": anomaly.step,
                    "source": anomaly.source,
                    "recorded_at": anomaly.recorded_at.isoformat(),
                    "clamped_to": anomaly.clamped_to.isoformat(),
                },
            )
            self._event_bus.emit(
                TimelineAnomalyEvent(
                    order_id=anomaly.order_id,
                    role=anomaly.role,
                    step=anomaly.step,
                    source=anomaly.source,
                    recorded_at=anomaly.recorded_at.isoformat(),
                    clamped_to=anomaly.clamped_to.isoformat(),
                )
            )
