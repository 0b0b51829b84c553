"""
Route lifecycle orchestration.

Coordinates the route store with the Driver and Vehicle services:

Create:
    1. Driver must exist and be "available"
    2. Vehicle must exist and be "available"
    3. Route is persisted as Scheduled
    4. Driver -> on_duty (assigned_vehicle set), vehicle -> InUse
    5. If step 4 fails the route is deleted again (compensation)

Status transition:
    Completed/Cancelled release the driver and vehicle first; if that
    fails the route is left untouched. Completed also stamps end_time.

Collaborator calls are sequential: driver first, then vehicle, so the
reported failure is always deterministic.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from route_service.app.core.exceptions import (
    DriverNotFound, DriverUnavailable, VehicleNotFound, VehicleUnavailable,
    VehicleServiceUnavailable, StatusSyncFailed, DriverFetchFailed,
    VehicleFetchFailed, DriverUpdateFailed, VehicleUpdateFailed,
    RouteNotFound, StaleRoute
)
from route_service.app.models.route import Route
from route_service.app.models.route_enums import RouteStatus, ACTIVE_STATUSES
from route_service.app.schemas.route import RouteCreate, RouteUpdate, RouteResponse
from route_service.app.services import route_store
from route_service.app.services.audit import log_event, AuditAction
from route_service.app.services.party_client import PartyClient, PartyRequestError
from route_service.app.services.route_status import parse_status, ensure_transition, releases_assignment

logger = logging.getLogger(__name__)

DRIVER_AVAILABLE = "available"
DRIVER_ON_DUTY = "on_duty"
VEHICLE_AVAILABLE = "Available"
VEHICLE_IN_USE = "InUse"


def _is_available(record: Dict[str, Any]) -> bool:
    return str(record.get("status") or "").lower() == DRIVER_AVAILABLE


class RouteOrchestrator:
    """Sequences route persistence with driver/vehicle state changes."""

    def __init__(
        self,
        db: AsyncSession,
        drivers: PartyClient,
        vehicles: PartyClient,
        revert_driver_on_sync_failure: bool = False,
        actor_id: Optional[int] = None
    ):
        self.db = db
        self.drivers = drivers
        self.vehicles = vehicles
        self.revert_driver_on_sync_failure = revert_driver_on_sync_failure
        self.actor_id = actor_id
        # Latest collaborator records seen during this request, by id
        self._known_drivers: Dict[int, Optional[Dict[str, Any]]] = {}
        self._known_vehicles: Dict[int, Optional[Dict[str, Any]]] = {}

    async def _audit(self, action: str, route_id: Optional[int], **metadata) -> None:
        await log_event(
            db=self.db,
            action=action,
            route_id=route_id,
            actor_id=self.actor_id,
            metadata=metadata
        )

    # Create

    async def _check_driver(self, driver_id: int) -> Dict[str, Any]:
        try:
            driver = await self.drivers.fetch(driver_id)
        except PartyRequestError as e:
            logger.error("Failed to fetch driver: stage=create.fetch_driver driver_id=%s error=%s", driver_id, e)
            raise DriverNotFound(driver_id)

        if driver is None:
            logger.info("Driver lookup returned no record: driver_id=%s", driver_id)
            raise DriverNotFound(driver_id)

        if not _is_available(driver):
            raise DriverUnavailable(driver_id, driver.get("status"))

        return driver

    async def _check_vehicle(self, vehicle_id: int) -> Dict[str, Any]:
        try:
            vehicle = await self.vehicles.fetch(vehicle_id)
        except PartyRequestError as e:
            if e.is_not_found:
                logger.info("Vehicle not found: vehicle_id=%s", vehicle_id)
                raise VehicleNotFound(vehicle_id)
            logger.error("Vehicle service unavailable: stage=create.fetch_vehicle vehicle_id=%s error=%s", vehicle_id, e)
            raise VehicleServiceUnavailable(vehicle_id)

        if vehicle is None:
            raise VehicleNotFound(vehicle_id)

        if not _is_available(vehicle):
            raise VehicleUnavailable(vehicle_id, vehicle.get("status"))

        return vehicle

    async def create_route(self, data: RouteCreate) -> Route:
        """
        Create a route and reserve its driver and vehicle.

        Raises:
            DriverNotFound, DriverUnavailable, VehicleNotFound,
            VehicleServiceUnavailable, VehicleUnavailable, StatusSyncFailed
        """
        driver = await self._check_driver(data.driver_id)
        vehicle = await self._check_vehicle(data.vehicle_id)

        route = await route_store.create_route(
            self.db,
            driver_id=data.driver_id,
            vehicle_id=data.vehicle_id,
            start_location=data.start_location,
            end_location=data.end_location,
            start_time=data.start_time,
            notes=data.notes,
            status=RouteStatus.SCHEDULED
        )
        route_id = route.id

        assigned_driver = {**driver, "status": DRIVER_ON_DUTY, "assigned_vehicle": str(data.vehicle_id)}
        assigned_vehicle = {**vehicle, "status": VEHICLE_IN_USE}

        driver_updated = False
        try:
            await self.drivers.update(data.driver_id, assigned_driver)
            driver_updated = True
            logger.info("Driver %s set to %s for route %s", data.driver_id, DRIVER_ON_DUTY, route_id)

            await self.vehicles.update(data.vehicle_id, assigned_vehicle)
            logger.info("Vehicle %s set to %s for route %s", data.vehicle_id, VEHICLE_IN_USE, route_id)
        except PartyRequestError as e:
            stage = "create.update_vehicle" if driver_updated else "create.update_driver"
            logger.error(
                "Failed to update driver or vehicle status: stage=%s route_id=%s driver_id=%s vehicle_id=%s error=%s",
                stage, route_id, data.driver_id, data.vehicle_id, e
            )
            details = await self._compensate_creation(route_id, data, driver, driver_updated, stage, e)
            raise StatusSyncFailed(details=details)

        await self._audit(
            AuditAction.ROUTE_CREATED, route_id,
            driver_id=data.driver_id, vehicle_id=data.vehicle_id
        )
        self._known_drivers[data.driver_id] = assigned_driver
        self._known_vehicles[data.vehicle_id] = assigned_vehicle
        return route

    async def _compensate_creation(
        self,
        route_id: int,
        data: RouteCreate,
        previous_driver: Dict[str, Any],
        driver_updated: bool,
        stage: str,
        error: PartyRequestError
    ) -> Dict[str, Any]:
        await route_store.delete_route(self.db, route_id)
        logger.warning("Route %s deleted after failed status sync", route_id)

        driver_reverted = False
        if driver_updated and self.revert_driver_on_sync_failure:
            try:
                await self.drivers.update(data.driver_id, previous_driver)
                driver_reverted = True
                logger.info("Driver %s restored after failed vehicle update", data.driver_id)
            except PartyRequestError as e:
                logger.error(
                    "Failed to restore driver: stage=create.revert_driver route_id=%s driver_id=%s error=%s",
                    route_id, data.driver_id, e
                )

        sync_state = {
            "stage": stage,
            "driver_id": data.driver_id,
            "vehicle_id": data.vehicle_id,
            "driver_left_on_duty": driver_updated and not driver_reverted
        }
        await self._audit(AuditAction.ROUTE_CREATION_COMPENSATED, route_id, error=str(error), **sync_state)
        return {"route_id": route_id, **sync_state}

    # Status transition

    async def _sync_failure(self, route: Route, stage: str, error: Exception) -> None:
        logger.error(
            "Collaborator sync failed: stage=%s route_id=%s driver_id=%s vehicle_id=%s error=%s",
            stage, route.id, route.driver_id, route.vehicle_id, error
        )
        await self._audit(
            AuditAction.PARTY_SYNC_FAILED, route.id,
            stage=stage, driver_id=route.driver_id, vehicle_id=route.vehicle_id, error=str(error)
        )

    async def _release_assignment(self, route: Route) -> None:
        """Return driver and vehicle to available. Raises before anything local changes."""
        try:
            driver = await self.drivers.fetch(route.driver_id)
            if driver is None:
                raise PartyRequestError(self.drivers.name, route.driver_id, "no record in response")
        except PartyRequestError as e:
            await self._sync_failure(route, "status.fetch_driver", e)
            raise DriverFetchFailed(route.driver_id)

        try:
            vehicle = await self.vehicles.fetch(route.vehicle_id)
            if vehicle is None:
                raise PartyRequestError(self.vehicles.name, route.vehicle_id, "no record in response")
        except PartyRequestError as e:
            await self._sync_failure(route, "status.fetch_vehicle", e)
            raise VehicleFetchFailed(route.vehicle_id)

        released_driver = {**driver, "status": DRIVER_AVAILABLE, "assigned_vehicle": None}
        released_vehicle = {**vehicle, "status": VEHICLE_AVAILABLE}

        try:
            await self.drivers.update(route.driver_id, released_driver)
        except PartyRequestError as e:
            await self._sync_failure(route, "status.update_driver", e)
            raise DriverUpdateFailed(route.driver_id)
        self._known_drivers[route.driver_id] = released_driver

        try:
            await self.vehicles.update(route.vehicle_id, released_vehicle)
        except PartyRequestError as e:
            # Driver is already released at this point
            await self._sync_failure(route, "status.update_vehicle", e)
            raise VehicleUpdateFailed(route.vehicle_id)
        self._known_vehicles[route.vehicle_id] = released_vehicle

    async def transition_status(
        self,
        route_id: int,
        target: Any,
        expected_version: Optional[int] = None
    ) -> Route:
        """
        Move a route to a new status.

        Raises:
            InvalidStatus, RouteNotFound, StaleRoute, InvalidStatusTransition,
            DriverFetchFailed, VehicleFetchFailed, DriverUpdateFailed,
            VehicleUpdateFailed
        """
        target = parse_status(target)

        route = await route_store.get_route(self.db, route_id)
        if not route:
            raise RouteNotFound(route_id)

        if expected_version is not None and route.version != expected_version:
            raise StaleRoute(route_id, expected_version, route.version)

        previous = route.status
        ensure_transition(previous, target)

        if releases_assignment(target):
            await self._release_assignment(route)

        fields = {"status": target}
        if target == RouteStatus.COMPLETED:
            fields["end_time"] = datetime.utcnow().replace(microsecond=0)

        route = await route_store.update_route(
            self.db, route_id, expected_version=expected_version, **fields
        )

        await self._audit(
            AuditAction.ROUTE_STATUS_CHANGED, route_id,
            previous=previous.value, current=target.value
        )
        return route

    # Plain CRUD

    async def update_route(self, route_id: int, data: RouteUpdate) -> Route:
        """Apply a field update; status and assignment are not editable here."""
        update_data = data.model_dump(exclude_unset=True, exclude={"version"})
        route = await route_store.update_route(
            self.db, route_id, expected_version=data.version, **update_data
        )
        await self._audit(AuditAction.ROUTE_UPDATED, route_id, fields=sorted(update_data))
        return route

    async def delete_route(self, route_id: int) -> None:
        """Delete unconditionally; the driver and vehicle are not touched."""
        await route_store.delete_route(self.db, route_id)
        await self._audit(AuditAction.ROUTE_DELETED, route_id)

    # Reads and presentation

    async def get_route(self, route_id: int) -> Route:
        route = await route_store.get_route(self.db, route_id)
        if not route:
            raise RouteNotFound(route_id)
        return route

    async def list_active_routes(self) -> List[Route]:
        return await route_store.list_routes_by_statuses(self.db, ACTIVE_STATUSES)

    async def _lookup(
        self,
        client: PartyClient,
        known: Dict[int, Optional[Dict[str, Any]]],
        party_id: int
    ) -> Optional[Dict[str, Any]]:
        """Best-effort record lookup for display; failures yield None."""
        if party_id not in known:
            try:
                known[party_id] = await client.fetch(party_id)
            except PartyRequestError as e:
                logger.warning("Could not load %s %s for display: %s", client.name, party_id, e)
                known[party_id] = None
        return known[party_id]

    async def present(self, route: Route) -> RouteResponse:
        """Render a route with its driver and vehicle records attached."""
        driver = await self._lookup(self.drivers, self._known_drivers, route.driver_id)
        vehicle = await self._lookup(self.vehicles, self._known_vehicles, route.vehicle_id)
        return RouteResponse.from_route(route, driver=driver, vehicle=vehicle)
