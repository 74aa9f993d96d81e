"""
Order status state machine.

    pending -> confirmed -> preparing -> shipped -> delivered
       |           |            |
       +-----------+------------+--> cancelled

``delivered`` and ``cancelled`` are terminal. Transitions are pure: they take
an OrderSnapshot and return a new one, leaving persistence to OrderService.
"""

from dataclasses import replace
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from marketplace.ordering.domain.models.order import Order
from marketplace.ordering.domain.snapshots import OrderSnapshot


PENDING = Order.STATUS_PENDING
CONFIRMED = Order.STATUS_CONFIRMED
PREPARING = Order.STATUS_PREPARING
SHIPPED = Order.STATUS_SHIPPED
DELIVERED = Order.STATUS_DELIVERED
CANCELLED = Order.STATUS_CANCELLED

ALL_STATUSES = (PENDING, CONFIRMED, PREPARING, SHIPPED, DELIVERED, CANCELLED)

TRANSITIONS: Dict[str, FrozenSet[str]] = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({PREPARING, CANCELLED}),
    PREPARING: frozenset({SHIPPED, CANCELLED}),
    SHIPPED: frozenset({DELIVERED}),
    DELIVERED: frozenset(),
    CANCELLED: frozenset(),
}

CANCELLABLE_STATUSES = frozenset({PENDING, CONFIRMED, PREPARING})
TRACKABLE_STATUSES = frozenset({CONFIRMED, PREPARING})

# Timestamp written when an order enters each status
TIMESTAMP_FIELDS = {
    CONFIRMED: "confirmed_at",
    SHIPPED: "shipped_at",
    DELIVERED: "delivered_at",
    CANCELLED: "cancelled_at",
}

# Snapshot fields a transition may change
MUTABLE_FIELDS = (
    "status",
    "confirmed_at",
    "shipped_at",
    "delivered_at",
    "cancelled_at",
    "tracking_number",
    "carrier",
    "cancellation_reason",
)


class InvalidTransitionError(Exception):
    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot change order status from '{current}' to '{target}'")
        self.current = current
        self.target = target


def is_terminal(status: str) -> bool:
    return not TRANSITIONS.get(status)


def is_valid_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def transition(
    order: OrderSnapshot,
    target: str,
    at: datetime,
    tracking_number: Optional[str] = None,
    carrier: Optional[str] = None,
    cancellation_reason: Optional[str] = None,
) -> OrderSnapshot:
    """
    Move ``order`` to ``target`` and stamp the matching lifecycle timestamp.

    Tracking details are only recorded on the way to ``shipped`` and a
    reason only on the way to ``cancelled``.

    Raises:
        InvalidTransitionError: If the pair is not in TRANSITIONS
    """
    if not is_valid_transition(order.status, target):
        raise InvalidTransitionError(order.status, target)

    changes = {"status": target}
    timestamp_field = TIMESTAMP_FIELDS.get(target)
    if timestamp_field:
        changes[timestamp_field] = at

    if target == SHIPPED:
        if tracking_number:
            changes["tracking_number"] = tracking_number
        if carrier:
            changes["carrier"] = carrier
    elif target == CANCELLED and cancellation_reason is not None:
        changes["cancellation_reason"] = cancellation_reason

    return replace(order, **changes)


def ship_with_tracking(order: OrderSnapshot, at: datetime, tracking_number: str, carrier: str) -> OrderSnapshot:
    """
    Ship ``order`` with its carrier details in one step.

    Unlike a plain status update this is allowed straight from confirmed,
    so a supplier can skip the preparing stage when handing over tracking.

    Raises:
        InvalidTransitionError: If the order is not in TRACKABLE_STATUSES
    """
    if order.status not in TRACKABLE_STATUSES:
        raise InvalidTransitionError(order.status, SHIPPED)

    return replace(
        order,
        status=SHIPPED,
        shipped_at=at,
        tracking_number=tracking_number,
        carrier=carrier,
    )


def changed_fields(before: OrderSnapshot, after: OrderSnapshot) -> Dict[str, object]:
    """Mutable fields whose value differs between two snapshots of one order."""
    return {name: getattr(after, name) for name in MUTABLE_FIELDS if getattr(before, name) != getattr(after, name)}
