"""
Route status state machine.

Scheduled and InProgress are open states and may move to any status.
Completed and Cancelled are terminal.
"""

from typing import Any

from route_service.app.core.exceptions import InvalidStatus, InvalidStatusTransition
from route_service.app.models.route_enums import RouteStatus, TERMINAL_STATUSES

ALLOWED_TRANSITIONS = {
    RouteStatus.SCHEDULED: frozenset(RouteStatus),
    RouteStatus.IN_PROGRESS: frozenset(RouteStatus),
    RouteStatus.COMPLETED: frozenset(),
    RouteStatus.CANCELLED: frozenset(),
}


def parse_status(value: Any) -> RouteStatus:
    """
    Coerce a raw value into a RouteStatus.

    Raises:
        InvalidStatus: If the value is not a member of the status set
    """
    if isinstance(value, RouteStatus):
        return value
    try:
        return RouteStatus(value)
    except ValueError:
        raise InvalidStatus(value, [s.value for s in RouteStatus])


def ensure_transition(current: RouteStatus, target: RouteStatus) -> None:
    """Raise InvalidStatusTransition unless current -> target is allowed."""
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransition(current.value, target.value)


def releases_assignment(target: RouteStatus) -> bool:
    """True when moving to target frees the driver and vehicle."""
    return target in TERMINAL_STATUSES
