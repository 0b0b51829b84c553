"""
Route-related enumerations.
"""

import enum


class RouteStatus(str, enum.Enum):
    """Route status enumeration."""
    SCHEDULED = "Scheduled"  # Created, driver and vehicle reserved
    IN_PROGRESS = "InProgress"  # Driver is on the road
    COMPLETED = "Completed"  # Arrived, driver and vehicle released
    CANCELLED = "Cancelled"  # Called off, driver and vehicle released


ACTIVE_STATUSES = (RouteStatus.SCHEDULED, RouteStatus.IN_PROGRESS)
TERMINAL_STATUSES = (RouteStatus.COMPLETED, RouteStatus.CANCELLED)
