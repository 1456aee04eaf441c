"""
Domain value objects and entities.

Everything handed to the engine is immutable (frozen dataclasses).  The
engine never edits a ``RideRequest`` in place; groups refer to their
members and new ``Group`` objects are derived with ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .enums import RideStatus, ViolationCode, WaypointType


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float


@dataclass(frozen=True)
class TimeWindow:
    """A scheduled time of day.  Compared by minute of day, never by date."""

    hour: int
    minute: int

    @classmethod
    def parse(cls, value: str) -> TimeWindow:
        """Build from ``"HH:MM"`` (seconds, if present, are ignored)."""
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"Expected HH:MM, got {value!r}")
        hour, minute = int(parts[0]), int(parts[1])
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            raise ValueError(f"Time of day out of range: {value!r}")
        return cls(hour, minute)

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute

    def seconds_apart(self, other: TimeWindow) -> int:
        return abs(self.minutes - other.minutes) * 60

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class TrafficSample:
    congestion_level: float
    average_speed_kph: Optional[float] = None


@dataclass(frozen=True)
class DriverRef:
    id: str
    is_available: bool = True


@dataclass(frozen=True)
class Violation:
    """
    A structured, enumerable constraint failure.

    ``details`` carries measured values (e.g. offending pairs with their
    time difference or distance) for callers that want to explain it.
    """

    code: ViolationCode
    message: str
    ride_ids: tuple[str, ...] = ()
    details: tuple[dict[str, Any], ...] = ()


# ── Entities ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RideRequest:
    id: str
    pickup: Optional[Coordinate]
    dropoff: Optional[Coordinate]
    scheduled_time: TimeWindow
    status: RideStatus = RideStatus.PENDING
    pickup_label: str = ""
    dropoff_label: str = ""

    @property
    def has_coordinates(self) -> bool:
        return self.pickup is not None and self.dropoff is not None


@dataclass(frozen=True)
class Waypoint:
    type: WaypointType
    ride_id: str
    coordinate: Coordinate
    estimated_arrival: Optional[datetime] = None


@dataclass(frozen=True)
class Group:
    """
    A shared trip.  ``waypoints`` and the totals stay empty until the route
    optimizer has run; the validator inspects ``members`` only.
    """

    id: str
    members: tuple[RideRequest, ...]
    waypoints: tuple[Waypoint, ...] = ()
    total_distance_m: float = 0.0
    total_duration_s: float = 0.0
    efficiency_fraction: float = 0.0

    @property
    def member_ids(self) -> tuple[str, ...]:
        return tuple(r.id for r in self.members)

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class CompatibilityMetrics:
    distance_m: float
    time_diff_s: float
    direction_delta_deg: float
    efficiency_gain: float


@dataclass(frozen=True)
class CompatibilityResult:
    is_compatible: bool
    score: float
    metrics: CompatibilityMetrics
    failed_rules: tuple[str, ...] = field(default=())
