"""
Route Pydantic schemas.

Defines request and response models for route management.
"""

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, List
from route_service.app.core.config import settings
from route_service.app.models.route_enums import RouteStatus

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def normalize_timestamp(value: Optional[datetime]) -> Optional[datetime]:
    """Drop timezone (keeping the wall clock value) and sub-second precision."""
    if value is None:
        return None
    return value.replace(tzinfo=None, microsecond=0)


def format_timestamp(value: Optional[datetime], offset_hours: int = 0) -> Optional[str]:
    """Render as "YYYY-MM-DD HH:MM:SS"; aware values are taken as UTC first."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return (value + timedelta(hours=offset_hours)).strftime(TIMESTAMP_FORMAT)


class DriverSummary(BaseModel):
    """Driver as reported by the Driver Service."""
    id: int
    license_number: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    status: Optional[str] = None


class VehicleSummary(BaseModel):
    """Vehicle as reported by the Vehicle Service."""
    id: int
    type: Optional[str] = None
    plate_number: Optional[str] = None
    status: Optional[str] = None


def summarize(model, record: Optional[Dict[str, Any]]):
    """Build a summary from a collaborator record; None if it does not fit."""
    if not record:
        return None
    try:
        return model.model_validate(record)
    except ValidationError:
        return None


class RouteCreate(BaseModel):
    """Schema for creating a new route."""
    driver_id: int = Field(..., description="Driver ID in the Driver Service")
    vehicle_id: int = Field(..., description="Vehicle ID in the Vehicle Service")
    start_location: str = Field(..., min_length=1, max_length=255)
    end_location: str = Field(..., min_length=1, max_length=255)
    start_time: datetime = Field(..., description="Planned departure, e.g. 2025-06-10 08:00:00")
    notes: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def _normalize_start_time(cls, value: datetime) -> datetime:
        return normalize_timestamp(value)


class RouteUpdate(BaseModel):
    """
    Schema for updating route details.

    Status changes go through the status endpoint so that the driver and
    vehicle stay in sync; driver and vehicle cannot be reassigned.
    """
    start_location: Optional[str] = Field(None, min_length=1, max_length=255)
    end_location: Optional[str] = Field(None, min_length=1, max_length=255)
    start_time: Optional[datetime] = None
    notes: Optional[str] = None
    version: Optional[int] = Field(None, ge=1, description="Expected current version")

    class Config:
        extra = "forbid"

    @field_validator("start_time")
    @classmethod
    def _normalize_start_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return normalize_timestamp(value)

    @model_validator(mode="after")
    def _required_fields_not_null(self):
        for field in ("start_location", "end_location", "start_time"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class RouteStatusUpdate(BaseModel):
    """Schema for a status transition request."""
    status: str = Field(..., description="Scheduled, InProgress, Completed or Cancelled")
    version: Optional[int] = Field(None, ge=1, description="Expected current version")


class RouteResponse(BaseModel):
    """
    Schema for route response.

    Timestamps are pre-rendered as "YYYY-MM-DD HH:MM:SS". created_at and
    updated_at carry the display offset; stored values are untouched.
    driver and vehicle are the collaborator records when they could be
    obtained, otherwise null.
    """
    id: int
    driver_id: int
    driver: Optional[DriverSummary] = None
    vehicle_id: int
    vehicle: Optional[VehicleSummary] = None
    start_location: str
    end_location: str
    status: RouteStatus
    start_time: str
    end_time: Optional[str]
    notes: Optional[str]
    version: int
    created_at: Optional[str]
    updated_at: Optional[str]

    @classmethod
    def from_route(
        cls,
        route,
        driver: Optional[Dict[str, Any]] = None,
        vehicle: Optional[Dict[str, Any]] = None
    ) -> "RouteResponse":
        offset = settings.display_utc_offset_hours
        return cls(
            id=route.id,
            driver_id=route.driver_id,
            driver=summarize(DriverSummary, driver),
            vehicle_id=route.vehicle_id,
            vehicle=summarize(VehicleSummary, vehicle),
            start_location=route.start_location,
            end_location=route.end_location,
            status=route.status,
            start_time=format_timestamp(route.start_time),
            end_time=format_timestamp(route.end_time),
            notes=route.notes,
            version=route.version,
            created_at=format_timestamp(route.created_at, offset),
            updated_at=format_timestamp(route.updated_at, offset),
        )


class RouteEnvelope(BaseModel):
    """Single route wrapped in the standard success envelope."""
    status: str = "success"
    message: str
    data: RouteResponse


class RouteListEnvelope(BaseModel):
    """Route list wrapped in the standard success envelope."""
    status: str = "success"
    message: str
    data: List[RouteResponse]
