"""
Order status state machine.

The transition table is the single source of truth for which status
changes are legal. Anything not listed is rejected and leaves the
order untouched.
"""
from typing import FrozenSet

from core.results import ServiceError
from .models import OrderStatus

TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.RETURNED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.RETURNED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.RETURNED: frozenset(),
}

# Cancelling gives the units back to the catalog
RESTOCK_ON = frozenset({OrderStatus.CANCELLED})


def _label(status: str) -> str:
    try:
        return OrderStatus(status).label
    except ValueError:
        return str(status)


class InvalidTransitionError(ServiceError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Invalid status transition from {_label(current)} to {_label(requested)}"
        )


def allowed_transitions(current: str) -> FrozenSet[OrderStatus]:
    return TRANSITIONS.get(current, frozenset())


def can_transition(current: str, requested: str) -> bool:
    return requested in allowed_transitions(current)


def ensure_transition(current: str, requested: str) -> None:
    """
    Raises:
        InvalidTransitionError: If `requested` is not reachable from `current`
    """
    if not can_transition(current, requested):
        raise InvalidTransitionError(current, requested)


def is_terminal(status: str) -> bool:
    return not allowed_transitions(status)
