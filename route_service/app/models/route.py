"""
Route database model.

A route is a trip between two locations, assigned to a driver and a vehicle
owned by the Driver and Vehicle services.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum
from sqlalchemy.sql import func
from route_service.app.db.session import Base
from route_service.app.models.route_enums import RouteStatus


class Route(Base):
    """
    Route model.

    driver_id and vehicle_id are not foreign keys: both entities live in other
    services and are only validated by a live lookup at creation time.
    """
    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Assignment (owned by collaborating services)
    driver_id = Column(Integer, nullable=False, index=True)
    vehicle_id = Column(Integer, nullable=False, index=True)

    # Trip details
    start_location = Column(String(255), nullable=False)
    end_location = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)

    # Status
    status = Column(
        Enum(
            RouteStatus,
            name="route_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        default=RouteStatus.SCHEDULED,
        nullable=False,
        index=True,
    )

    # Schedule (wall clock, stored without timezone)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)

    # Optimistic lock counter
    version = Column(Integer, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Route(id={self.id}, driver_id={self.driver_id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
