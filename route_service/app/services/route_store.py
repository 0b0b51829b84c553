"""
Route persistence service.

Single-row operations over the routes table. Each call commits its own
change; multi-step consistency is the orchestrator's job.
"""

from typing import Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm.exc import StaleDataError

from route_service.app.core.exceptions import RouteNotFound, StaleRoute
from route_service.app.models.route import Route
from route_service.app.models.route_enums import RouteStatus


async def create_route(db: AsyncSession, **fields) -> Route:
    """
    Insert a new route.

    Args:
        db: Database session
        **fields: Column values; status defaults to Scheduled

    Returns:
        Created route with server-assigned fields loaded
    """
    fields.setdefault("status", RouteStatus.SCHEDULED)
    route = Route(**fields)

    db.add(route)
    await db.commit()
    await db.refresh(route)

    return route


async def get_route(db: AsyncSession, route_id: int) -> Optional[Route]:
    """Fetch a route by ID, or None."""
    result = await db.execute(
        select(Route).where(Route.id == route_id)
    )
    return result.scalar_one_or_none()


async def list_routes(db: AsyncSession) -> list[Route]:
    """List every route, oldest first."""
    result = await db.execute(select(Route).order_by(Route.id))
    return list(result.scalars().all())


async def list_routes_by_statuses(
    db: AsyncSession,
    statuses: Iterable[RouteStatus]
) -> list[Route]:
    """
    List routes whose status is one of the given statuses.

    Args:
        db: Database session
        statuses: Statuses to match

    Returns:
        Matching routes (order not guaranteed beyond ID order)
    """
    wanted = [RouteStatus(s) for s in statuses]
    if not wanted:
        return []

    result = await db.execute(
        select(Route).where(Route.status.in_(wanted)).order_by(Route.id)
    )
    return list(result.scalars().all())


async def update_route(
    db: AsyncSession,
    route_id: int,
    expected_version: Optional[int] = None,
    **fields
) -> Route:
    """
    Apply a partial update to a route.

    Args:
        db: Database session
        route_id: Route to update
        expected_version: If given, the update is rejected unless it matches
        **fields: Column values to set

    Returns:
        Updated route

    Raises:
        RouteNotFound: If the route does not exist
        StaleRoute: If the route changed since it was read
    """
    route = await get_route(db, route_id)
    if not route:
        raise RouteNotFound(route_id)

    if expected_version is not None and route.version != expected_version:
        raise StaleRoute(route_id, expected_version, route.version)

    for field, value in fields.items():
        setattr(route, field, value)

    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise StaleRoute(route_id, expected_version)

    await db.refresh(route)
    return route


async def delete_route(db: AsyncSession, route_id: int) -> None:
    """
    Delete a route unconditionally.

    Raises:
        RouteNotFound: If the route does not exist
    """
    route = await get_route(db, route_id)
    if not route:
        raise RouteNotFound(route_id)

    await db.delete(route)
    await db.commit()
