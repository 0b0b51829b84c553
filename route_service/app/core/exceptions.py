"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
Orchestration failures are raised as typed exceptions so the API layer
never has to guess the status code.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from typing import Any, Dict

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None, error_code: str = "ERR_NOT_FOUND_001"):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class RouteNotFound(ResourceNotFoundError):
    def __init__(self, route_id: Any = None):
        super().__init__("Route", route_id, error_code="ERR_ROUTE_NOT_FOUND")


class DriverNotFound(ResourceNotFoundError):
    def __init__(self, driver_id: Any = None):
        super().__init__("Driver", driver_id, error_code="ERR_DRIVER_NOT_FOUND")


class VehicleNotFound(ResourceNotFoundError):
    def __init__(self, vehicle_id: Any = None):
        super().__init__("Vehicle", vehicle_id, error_code="ERR_VEHICLE_NOT_FOUND")


class ConflictError(AppException):
    """Raised when a collaborator entity is not in the state the operation requires."""

    def __init__(self, message: str, error_code: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class DriverUnavailable(ConflictError):
    def __init__(self, driver_id: Any, current_status: Any = None):
        super().__init__(
            message="Driver not available",
            error_code="ERR_DRIVER_UNAVAILABLE",
            details={"driver_id": driver_id, "status": current_status}
        )


class VehicleUnavailable(ConflictError):
    def __init__(self, vehicle_id: Any, current_status: Any = None):
        super().__init__(
            message="Vehicle is not available",
            error_code="ERR_VEHICLE_UNAVAILABLE",
            details={"vehicle_id": vehicle_id, "status": current_status}
        )


class InvalidStatus(AppException):
    def __init__(self, value: Any, allowed: list):
        super().__init__(
            message=f"Invalid route status: {value}",
            error_code="ERR_INVALID_STATUS",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"status": value, "allowed": allowed}
        )


class InvalidStatusTransition(AppException):
    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Cannot move route from {current} to {target}",
            error_code="ERR_INVALID_TRANSITION",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"current": current, "target": target}
        )


class StaleRoute(AppException):
    """Raised when a route was modified by someone else since it was read."""

    def __init__(self, route_id: Any, expected_version: Any = None, current_version: Any = None):
        super().__init__(
            message="Route was modified concurrently, reload and retry",
            error_code="ERR_STALE_ROUTE",
            status_code=status.HTTP_409_CONFLICT,
            details={
                "route_id": route_id,
                "expected_version": expected_version,
                "current_version": current_version
            }
        )


class UpstreamUnavailable(AppException):
    """Raised when a collaborating service is unreachable or errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status_code,
            details=details
        )


class VehicleServiceUnavailable(UpstreamUnavailable):
    def __init__(self, vehicle_id: Any):
        super().__init__(
            message="Vehicle service unavailable",
            error_code="ERR_VEHICLE_SERVICE_UNAVAILABLE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"vehicle_id": vehicle_id}
        )


class StatusSyncFailed(UpstreamUnavailable):
    def __init__(self, details: Dict[str, Any] = None):
        super().__init__(
            message="Failed to update driver or vehicle status",
            error_code="ERR_STATUS_SYNC_FAILED",
            details=details
        )


class DriverFetchFailed(UpstreamUnavailable):
    def __init__(self, driver_id: Any):
        super().__init__("Failed to fetch driver", "ERR_DRIVER_FETCH_FAILED", details={"driver_id": driver_id})


class VehicleFetchFailed(UpstreamUnavailable):
    def __init__(self, vehicle_id: Any):
        super().__init__("Failed to fetch vehicle", "ERR_VEHICLE_FETCH_FAILED", details={"vehicle_id": vehicle_id})


class DriverUpdateFailed(UpstreamUnavailable):
    def __init__(self, driver_id: Any):
        super().__init__("Failed to update driver status", "ERR_DRIVER_UPDATE_FAILED", details={"driver_id": driver_id})


class VehicleUpdateFailed(UpstreamUnavailable):
    def __init__(self, vehicle_id: Any):
        super().__init__("Failed to update vehicle status", "ERR_VEHICLE_UPDATE_FAILED", details={"vehicle_id": vehicle_id})


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": jsonable_encoder(exc.details)
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        405: "ERR_METHOD_NOT_ALLOWED",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors, reported as 400."""
    logger.info("Validation failed for %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_encoder(exc.errors())
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.error(
        "Unhandled exception on %s %s: %s: %s",
        request.method, request.url.path, type(exc).__name__, exc,
        exc_info=exc
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
