"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from src.domain.entities import (
    Coordinate,
    DriverRef,
    Group,
    RideRequest,
    TimeWindow,
    TrafficSample,
    Violation,
    Waypoint,
)
from src.domain.enums import RideStatus, TrafficTier, ViolationCode, WaypointType


# ── Requests ──────────────────────────────────────────────────────────


class CoordinateIn(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)


class RideIn(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)
    pickup: Optional[CoordinateIn] = None
    dropoff: Optional[CoordinateIn] = None
    scheduled_time: str = Field(..., description="Time of day, HH:MM")
    status: RideStatus = RideStatus.PENDING
    pickup_label: str = ""
    dropoff_label: str = ""

    @field_validator("scheduled_time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        TimeWindow.parse(value)
        return value

    def to_domain(self) -> RideRequest:
        return RideRequest(
            id=self.id,
            pickup=self.pickup.to_domain() if self.pickup else None,
            dropoff=self.dropoff.to_domain() if self.dropoff else None,
            scheduled_time=TimeWindow.parse(self.scheduled_time),
            status=self.status,
            pickup_label=self.pickup_label,
            dropoff_label=self.dropoff_label,
        )


class TrafficIn(BaseModel):
    congestion_level: float = Field(..., ge=0, le=1)
    average_speed_kph: Optional[float] = Field(None, gt=0)

    def to_domain(self) -> TrafficSample:
        return TrafficSample(self.congestion_level, self.average_speed_kph)


class DriverIn(BaseModel):
    id: str
    is_available: bool = True

    def to_domain(self) -> DriverRef:
        return DriverRef(self.id, self.is_available)


class ConfigOverrides(BaseModel):
    """Per-request threshold overrides; unset fields keep server defaults."""

    max_time_window_seconds: Optional[int] = None
    max_pickup_distance_meters: Optional[float] = None
    max_direction_deviation_degrees: Optional[float] = None
    min_efficiency_gain: Optional[float] = None
    min_group_size: Optional[int] = None
    max_group_size_absolute: Optional[int] = None
    heavy_traffic_threshold: Optional[float] = None
    medium_traffic_threshold: Optional[float] = None
    heavy_group_size: Optional[int] = None
    medium_group_size: Optional[int] = None
    light_group_size: Optional[int] = None
    average_speed_kph: Optional[float] = None


class PlanRequest(BaseModel):
    rides: list[RideIn]
    traffic: Optional[TrafficIn] = None
    departure_time: Optional[datetime] = None
    config: Optional[ConfigOverrides] = None


class ValidateRequest(BaseModel):
    rides: list[RideIn]
    driver: Optional[DriverIn] = None
    config: Optional[ConfigOverrides] = None


# ── Responses ─────────────────────────────────────────────────────────


class ViolationResponse(BaseModel):
    code: ViolationCode
    message: str
    ride_ids: list[str] = []
    details: list[dict[str, Any]] = []

    @classmethod
    def from_domain(cls, v: Violation) -> ViolationResponse:
        return cls(
            code=v.code,
            message=v.message,
            ride_ids=list(v.ride_ids),
            details=[dict(d) for d in v.details],
        )


class WaypointResponse(BaseModel):
    type: WaypointType
    ride_id: str
    lat: float
    lng: float
    estimated_arrival: Optional[datetime] = None

    @classmethod
    def from_domain(cls, wp: Waypoint) -> WaypointResponse:
        return cls(
            type=wp.type,
            ride_id=wp.ride_id,
            lat=wp.coordinate.lat,
            lng=wp.coordinate.lng,
            estimated_arrival=wp.estimated_arrival,
        )


class GroupResponse(BaseModel):
    id: str
    member_ids: list[str]
    waypoints: list[WaypointResponse]
    total_distance_meters: float
    total_duration_seconds: float
    efficiency_fraction: float

    @classmethod
    def from_domain(cls, g: Group) -> GroupResponse:
        return cls(
            id=g.id,
            member_ids=list(g.member_ids),
            waypoints=[WaypointResponse.from_domain(w) for w in g.waypoints],
            total_distance_meters=round(g.total_distance_m, 1),
            total_duration_seconds=round(g.total_duration_s, 1),
            efficiency_fraction=round(g.efficiency_fraction, 4),
        )


class LeftoverResponse(BaseModel):
    ride_id: str
    violation: Optional[ViolationResponse] = None


class PlanResponse(BaseModel):
    groups: list[GroupResponse]
    leftovers: list[LeftoverResponse]
    max_group_size: int
    traffic_tier: TrafficTier
    assumed_light_traffic: bool


class ValidationResponse(BaseModel):
    ok: bool
    violations: list[ViolationResponse] = []


class ConfigResponse(BaseModel):
    max_time_window_seconds: int
    max_pickup_distance_meters: float
    max_direction_deviation_degrees: float
    min_efficiency_gain: float
    min_group_size: int
    max_group_size_absolute: int
    heavy_traffic_threshold: float
    medium_traffic_threshold: float
    heavy_group_size: int
    medium_group_size: int
    light_group_size: int
    average_speed_kph: float


class HealthResponse(BaseModel):
    status: str = "ok"
