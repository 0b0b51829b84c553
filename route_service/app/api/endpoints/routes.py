"""
Route API Endpoints.

Thin HTTP layer over the route orchestrator: input shape is validated by
the schemas, failures surface as typed AppExceptions handled globally.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from route_service.app.core.config import settings
from route_service.app.core.dependencies import get_current_user, ensure_route_access
from route_service.app.db.session import get_db
from route_service.app.schemas.route import (
    RouteCreate, RouteUpdate, RouteStatusUpdate,
    RouteResponse, RouteEnvelope, RouteListEnvelope
)
from route_service.app.services import route_store
from route_service.app.services.party_client import PartyClient, get_driver_client, get_vehicle_client
from route_service.app.services.route_orchestrator import RouteOrchestrator

router = APIRouter(prefix="/routes", tags=["Routes"])


async def get_orchestrator(
    db: AsyncSession = Depends(get_db),
    drivers: PartyClient = Depends(get_driver_client),
    vehicles: PartyClient = Depends(get_vehicle_client),
    current_user: Optional[dict] = Depends(get_current_user)
) -> RouteOrchestrator:
    return RouteOrchestrator(
        db=db,
        drivers=drivers,
        vehicles=vehicles,
        revert_driver_on_sync_failure=settings.revert_driver_on_sync_failure,
        actor_id=current_user.get("user_id") if current_user else None
    )


@router.get("", response_model=RouteListEnvelope)
async def list_routes(db: AsyncSession = Depends(get_db)):
    """List all routes."""
    routes = await route_store.list_routes(db)
    return RouteListEnvelope(
        message="Routes retrieved successfully",
        data=[RouteResponse.from_route(r) for r in routes]
    )


@router.get("/active", response_model=RouteListEnvelope)
async def list_active_routes(orchestrator: RouteOrchestrator = Depends(get_orchestrator)):
    """List routes that are Scheduled or InProgress, with driver and vehicle details."""
    routes = await orchestrator.list_active_routes()
    return RouteListEnvelope(
        message="Active routes retrieved successfully",
        data=[await orchestrator.present(r) for r in routes]
    )


@router.post("", response_model=RouteEnvelope, status_code=status.HTTP_201_CREATED)
async def create_route(
    route_data: RouteCreate,
    orchestrator: RouteOrchestrator = Depends(get_orchestrator)
):
    """
    Create a route.

    Validates:
    - Driver exists and is available
    - Vehicle exists and is available

    Actions:
    - Persist route as Scheduled
    - Driver -> on_duty, vehicle -> InUse (route is removed again if this fails)
    """
    route = await orchestrator.create_route(route_data)
    return RouteEnvelope(
        message="Route created successfully",
        data=await orchestrator.present(route)
    )


@router.get("/{route_id}", response_model=RouteEnvelope)
async def get_route(
    route_id: int = Path(..., description="Route ID"),
    current_user: Optional[dict] = Depends(get_current_user),
    orchestrator: RouteOrchestrator = Depends(get_orchestrator)
):
    """Fetch one route. Drivers may only read their own routes."""
    route = await orchestrator.get_route(route_id)
    ensure_route_access(route, current_user)

    return RouteEnvelope(
        message="Route retrieved successfully",
        data=await orchestrator.present(route)
    )


@router.put("/{route_id}", response_model=RouteEnvelope)
async def update_route(
    route_data: RouteUpdate,
    route_id: int = Path(..., description="Route ID"),
    orchestrator: RouteOrchestrator = Depends(get_orchestrator)
):
    """Update locations, start time or notes."""
    route = await orchestrator.update_route(route_id, route_data)
    return RouteEnvelope(
        message="Route updated successfully",
        data=RouteResponse.from_route(route)
    )


@router.api_route("/{route_id}/status", methods=["PUT", "POST"], response_model=RouteEnvelope)
async def update_route_status(
    status_data: RouteStatusUpdate,
    route_id: int = Path(..., description="Route ID"),
    orchestrator: RouteOrchestrator = Depends(get_orchestrator)
):
    """
    Transition a route's status.

    Completed and Cancelled release the driver and vehicle first; the route
    is not changed if that fails. Completed also sets end_time.
    """
    route = await orchestrator.transition_status(route_id, status_data.status, status_data.version)
    return RouteEnvelope(
        message="Route status updated successfully",
        data=await orchestrator.present(route)
    )


@router.delete("/{route_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_route(
    route_id: int = Path(..., description="Route ID"),
    orchestrator: RouteOrchestrator = Depends(get_orchestrator)
):
    """Delete a route. The driver and vehicle are left as they are."""
    await orchestrator.delete_route(route_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
