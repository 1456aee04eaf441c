"""
Great-circle geometry using the Haversine formula.

Assumption
----------
Distances are straight-line over the sphere, not road distances.  Road
distances, if wanted, are resolved by the caller before the engine runs.
Malformed coordinates (NaN, out of range) are rejected upstream; every
function here is total.

Complexity: O(1) per call.
"""

from __future__ import annotations

import math

from .entities import Coordinate

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Return the great-circle distance in **metres** between two points."""
    lat1_r, lat2_r = math.radians(a.lat), math.radians(b.lat)
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)

    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def bearing_deg(a: Coordinate, b: Coordinate) -> float:
    """Initial bearing from *a* to *b* in degrees, ``[0, 360)``; 0 is north."""
    lat1_r, lat2_r = math.radians(a.lat), math.radians(b.lat)
    dlng = math.radians(b.lng - a.lng)

    x = math.sin(dlng) * math.cos(lat2_r)
    y = math.cos(lat1_r) * math.sin(lat2_r) - math.sin(lat1_r) * math.cos(
        lat2_r
    ) * math.cos(dlng)

    return (math.degrees(math.atan2(x, y)) + 360.0) % 360.0


def bearing_delta_deg(b1: float, b2: float) -> float:
    """Smallest angle between two bearings, ``[0, 180]``."""
    delta = abs(b1 - b2) % 360.0
    return min(delta, 360.0 - delta)


class DistanceCache:
    """
    Memoised ``haversine_m`` for a single batch.

    Create one per engine call and pass it down; an instance must not
    outlive the batch it was created for.
    """

    def __init__(self) -> None:
        self._store: dict[tuple[Coordinate, Coordinate], float] = {}
        self.hits = 0
        self.misses = 0

    def distance(self, a: Coordinate, b: Coordinate) -> float:
        key = (a, b)
        cached = self._store.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        value = haversine_m(a, b)
        self._store[key] = value
        self._store[(b, a)] = value
        return value

    def __len__(self) -> int:
        return len(self._store)


def distance_m(
    a: Coordinate, b: Coordinate, cache: DistanceCache | None = None
) -> float:
    """Distance through *cache* when one is supplied."""
    if cache is None:
        return haversine_m(a, b)
    return cache.distance(a, b)
