"""
Audit logging service for route lifecycle events.

Provides a durable trail of route changes and collaborator sync failures.
"""

import logging
from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from route_service.app.models.audit_log import RouteAuditLog

logger = logging.getLogger(__name__)


class AuditAction:
    """Standardized audit action constants."""
    ROUTE_CREATED = "ROUTE_CREATED"
    ROUTE_UPDATED = "ROUTE_UPDATED"
    ROUTE_DELETED = "ROUTE_DELETED"
    ROUTE_STATUS_CHANGED = "ROUTE_STATUS_CHANGED"
    ROUTE_CREATION_COMPENSATED = "ROUTE_CREATION_COMPENSATED"
    PARTY_SYNC_FAILED = "PARTY_SYNC_FAILED"


async def log_event(
    db: AsyncSession,
    action: str,
    route_id: Optional[int] = None,
    actor_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> RouteAuditLog:
    """
    Log a route event to the audit log.

    Args:
        db: Database session
        action: Action being recorded (use AuditAction constants)
        route_id: Route the event refers to
        actor_id: ID of the requester, if known
        metadata: Additional context as JSON

    Returns:
        Created RouteAuditLog instance
    """
    audit_log = RouteAuditLog(
        route_id=route_id,
        action=action,
        actor_id=actor_id,
        meta_data=metadata
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    logger.debug("Audit %s route=%s meta=%s", action, route_id, metadata)
    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    route_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[RouteAuditLog]:
    """Retrieve audit entries, newest first, optionally filtered by route and action."""
    query = select(RouteAuditLog)

    if route_id is not None:
        query = query.where(RouteAuditLog.route_id == route_id)
    if action:
        query = query.where(RouteAuditLog.action == action)

    query = query.order_by(desc(RouteAuditLog.timestamp), desc(RouteAuditLog.id)).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
