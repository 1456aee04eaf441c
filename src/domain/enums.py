"""Domain enumerations."""

import enum


class RideStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Statuses a ride may hold when a group containing it is admitted.
GROUPABLE_STATUSES: frozenset[RideStatus] = frozenset(
    {RideStatus.PENDING, RideStatus.CONFIRMED}
)


class WaypointType(str, enum.Enum):
    PICKUP = "PICKUP"
    DROPOFF = "DROPOFF"


class TrafficTier(str, enum.Enum):
    HEAVY = "HEAVY"
    MEDIUM = "MEDIUM"
    LIGHT = "LIGHT"


class ViolationCode(str, enum.Enum):
    # Group validator
    INVALID_RIDE_STATUS = "INVALID_RIDE_STATUS"
    INSUFFICIENT_RIDES = "INSUFFICIENT_RIDES"
    GROUP_TOO_LARGE = "GROUP_TOO_LARGE"
    DRIVER_UNAVAILABLE = "DRIVER_UNAVAILABLE"
    SCHEDULE_CONFLICT = "SCHEDULE_CONFLICT"
    DISTANCE_CONSTRAINT_VIOLATION = "DISTANCE_CONSTRAINT_VIOLATION"

    # Input filtering / clustering
    MISSING_COORDINATES = "MISSING_COORDINATES"
    NO_COMPATIBLE_RIDES = "NO_COMPATIBLE_RIDES"
    DUPLICATE_RIDE = "DUPLICATE_RIDE"
