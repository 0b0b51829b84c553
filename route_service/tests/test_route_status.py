"""
Route status state machine tests.
"""

import pytest

from route_service.app.core.exceptions import InvalidStatus, InvalidStatusTransition
from route_service.app.models.route_enums import RouteStatus
from route_service.app.services.route_status import parse_status, ensure_transition, releases_assignment


@pytest.mark.parametrize("raw,expected", [
    ("Scheduled", RouteStatus.SCHEDULED),
    ("InProgress", RouteStatus.IN_PROGRESS),
    ("Completed", RouteStatus.COMPLETED),
    ("Cancelled", RouteStatus.CANCELLED),
    (RouteStatus.CANCELLED, RouteStatus.CANCELLED),
])
def test_parse_valid_status(raw, expected):
    assert parse_status(raw) is expected


@pytest.mark.parametrize("raw", ["planned", "in_progress", "completed", "", None, 3])
def test_parse_rejects_other_values(raw):
    with pytest.raises(InvalidStatus) as exc_info:
        parse_status(raw)
    assert exc_info.value.status_code == 400
    assert "Scheduled" in exc_info.value.details["allowed"]


@pytest.mark.parametrize("current", [RouteStatus.SCHEDULED, RouteStatus.IN_PROGRESS])
@pytest.mark.parametrize("target", list(RouteStatus))
def test_open_states_accept_any_target(current, target):
    ensure_transition(current, target)


@pytest.mark.parametrize("current", [RouteStatus.COMPLETED, RouteStatus.CANCELLED])
@pytest.mark.parametrize("target", list(RouteStatus))
def test_terminal_states_are_final(current, target):
    with pytest.raises(InvalidStatusTransition):
        ensure_transition(current, target)


def test_only_terminal_targets_release_assignment():
    assert releases_assignment(RouteStatus.COMPLETED)
    assert releases_assignment(RouteStatus.CANCELLED)
    assert not releases_assignment(RouteStatus.SCHEDULED)
    assert not releases_assignment(RouteStatus.IN_PROGRESS)
