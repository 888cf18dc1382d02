"""Public API for the order_lifecycle package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Order Snapshot Types
# ----------------------------------------------------------------------
from order_lifecycle.core.domain.types import (
    LIFECYCLE_STATES,
    DeliveryDetails,
    LifecycleState,
    Order,
    PaymentDetails,
    Role,
    ShippingDetails,
)
from order_lifecycle.core.domain.errors import (
    ActionNotPermitted,
    InvalidTransition,
    OrderLifecycleError,
    OrderNotFound,
    OrderStoreError,
    RoleNotApplicable,
)

# ----------------------------------------------------------------------
# Resolution Pipeline
# ----------------------------------------------------------------------
from order_lifecycle.core.domain.normalizer import normalize
from order_lifecycle.core.domain.projector import DisplayStep, project, resolve_viewer_role
from order_lifecycle.core.domain.timeline import UNKNOWN, Timeline, reconstruct_timeline, resolve_step_time
from order_lifecycle.core.domain.actions import PermittedAction, actions_for
from order_lifecycle.core.engine import OrderLifecycleEngine, OrderView, build_order_view

# ----------------------------------------------------------------------
# Config and Presentation
# ----------------------------------------------------------------------
from order_lifecycle.core.config.engine_config import EngineConfig, ReminderPolicy
from order_lifecycle.core.presentation.formatting import TimeFormatter
from order_lifecycle.core.presentation.rendering import render_order_view

# ----------------------------------------------------------------------
# Ports and Write Path
# ----------------------------------------------------------------------
from order_lifecycle.core.ports.clock import Clock, FixedClock, SystemClock
from order_lifecycle.core.ports.notifier import Notification, Notifier
from order_lifecycle.core.ports.order_store import OrderStore
from order_lifecycle.service.handlers import OrderActionHandlers

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Snapshot types
    "Order",
    "PaymentDetails",
    "ShippingDetails",
    "DeliveryDetails",
    "LifecycleState",
    "Role",
    "LIFECYCLE_STATES",

    # Errors
    "OrderLifecycleError",
    "RoleNotApplicable",
    "InvalidTransition",
    "ActionNotPermitted",
    "OrderNotFound",
    "OrderStoreError",

    # Pipeline
    "normalize",
    "project",
    "resolve_viewer_role",
    "DisplayStep",
    "resolve_step_time",
    "reconstruct_timeline",
    "Timeline",
    "UNKNOWN",
    "actions_for",
    "PermittedAction",
    "build_order_view",
    "OrderView",
    "OrderLifecycleEngine",

    # Config / presentation
    "EngineConfig",
    "ReminderPolicy",
    "TimeFormatter",
    "render_order_view",

    # Ports / write path
    "Clock",
    "SystemClock",
    "FixedClock",
    "Notification",
    "Notifier",
    "OrderStore",
    "OrderActionHandlers",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("order-lifecycle")
except PackageNotFoundError:
    __version__ = "0.0.0"
