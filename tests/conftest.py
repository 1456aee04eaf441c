"""
Shared test fixtures.

Coordinates are around Mumbai (19.0 N, 72.8 E), where 0.001 degrees of
latitude is roughly 111 m.  ``ride()`` builds requests going due north
unless told otherwise.
"""

from __future__ import annotations

from typing import Optional

import pytest

from src.domain.entities import Coordinate, Group, RideRequest, TimeWindow
from src.domain.enums import RideStatus
from src.domain.policy import GroupingConfig

ORIGIN = (19.0, 72.8)
NORTH = (19.1, 72.8)  # ~11.1 km north of ORIGIN


def ride(
    ride_id: str,
    pickup: Optional[tuple[float, float]] = ORIGIN,
    dropoff: Optional[tuple[float, float]] = NORTH,
    time: str = "08:00",
    status: RideStatus = RideStatus.PENDING,
) -> RideRequest:
    return RideRequest(
        id=ride_id,
        pickup=Coordinate(*pickup) if pickup else None,
        dropoff=Coordinate(*dropoff) if dropoff else None,
        scheduled_time=TimeWindow.parse(time),
        status=status,
        pickup_label=f"{ride_id} pickup",
        dropoff_label=f"{ride_id} dropoff",
    )


def group_of(*rides: RideRequest, group_id: str = "g-test") -> Group:
    return Group(id=group_id, members=tuple(rides))


def northbound(n: int, start: str = "08:00", step_m: float = 100.0) -> list[RideRequest]:
    """*n* rides with pickups *step_m* apart, one minute apart, all going north."""
    hour, minute = (int(p) for p in start.split(":"))
    rides = []
    for i in range(n):
        total = hour * 60 + minute + i
        rides.append(
            ride(
                f"r{i + 1}",
                pickup=(ORIGIN[0] + i * step_m / 111_195, ORIGIN[1]),
                time=f"{total // 60:02d}:{total % 60:02d}",
            )
        )
    return rides


@pytest.fixture
def config() -> GroupingConfig:
    return GroupingConfig()
