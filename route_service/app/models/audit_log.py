"""
Route Audit Log Database Model.

Tracks route lifecycle events and collaborator sync failures so that
partial-failure states can be reconstructed after the fact.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from route_service.app.db.session import Base


class RouteAuditLog(Base):
    """
    Audit log model for route lifecycle events.

    Events logged:
    - ROUTE_CREATED / ROUTE_UPDATED / ROUTE_DELETED
    - ROUTE_STATUS_CHANGED
    - ROUTE_CREATION_COMPENSATED
    - PARTY_SYNC_FAILED
    """
    __tablename__ = "route_audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Route the event refers to (plain column, rows outlive deleted routes)
    route_id = Column(Integer, index=True, nullable=True)

    # What happened
    action = Column(String(100), nullable=False, index=True)

    # Who triggered it (None for anonymous/internal calls)
    actor_id = Column(Integer, index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<RouteAuditLog(id={self.id}, action='{self.action}', route_id={self.route_id})>"
