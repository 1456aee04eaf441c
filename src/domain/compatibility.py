"""
Pairwise Compatibility Checker
==============================

Two requests may share a vehicle when **all** of these hold:

* scheduled times differ by at most ``max_time_window_seconds``
* pickups are at most ``max_pickup_distance_meters`` apart
* travel directions (pickup -> dropoff bearing) differ by at most
  ``max_direction_deviation_degrees``
* the shared trip saves at least ``min_efficiency_gain`` of the distance
  the two riders would drive alone

Efficiency gain
---------------
The combined distance is a fixed reference chain
``pickup1 -> pickup2 -> dropoff2 -> dropoff1``, not the optimised route.
It is a cheap O(1) filter so clustering stays O(N^2); the route optimizer
computes the real tour for admitted groups later, so the two figures can
differ.

Score
-----
Mean of four sub-scores, each ``1 - actual / threshold`` clamped to
``[0, 1]`` (efficiency uses the gain itself).  Ranking only, never an
admission gate.  Incompatible pairs score 0.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .entities import CompatibilityMetrics, CompatibilityResult, RideRequest
from .geo import DistanceCache, bearing_deg, bearing_delta_deg, distance_m
from .policy import GroupingConfig


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def travel_direction(ride: RideRequest) -> float:
    """Bearing from a ride's pickup to its dropoff."""
    return bearing_deg(ride.pickup, ride.dropoff)


def efficiency_gain(
    r1: RideRequest,
    r2: RideRequest,
    cache: Optional[DistanceCache] = None,
) -> float:
    """Fraction of solo distance saved by the reference shared chain."""
    individual = distance_m(r1.pickup, r1.dropoff, cache) + distance_m(
        r2.pickup, r2.dropoff, cache
    )
    if individual <= 0:
        return 0.0

    combined = (
        distance_m(r1.pickup, r2.pickup, cache)
        + distance_m(r2.pickup, r2.dropoff, cache)
        + distance_m(r2.dropoff, r1.dropoff, cache)
    )
    return (individual - combined) / individual


def compatibility_score(
    metrics: CompatibilityMetrics, config: GroupingConfig
) -> float:
    distance_score = _clamp(
        1 - metrics.distance_m / config.max_pickup_distance_meters
    )
    if config.max_time_window_seconds > 0:
        time_score = _clamp(
            1 - metrics.time_diff_s / config.max_time_window_seconds
        )
    else:
        time_score = 1.0 if metrics.time_diff_s == 0 else 0.0
    direction_score = _clamp(
        1 - metrics.direction_delta_deg / config.max_direction_deviation_degrees
    )
    efficiency_score = _clamp(metrics.efficiency_gain)

    return (distance_score + time_score + direction_score + efficiency_score) / 4


def check(
    r1: RideRequest,
    r2: RideRequest,
    config: GroupingConfig,
    cache: Optional[DistanceCache] = None,
) -> CompatibilityResult:
    """
    Evaluate whether *r1* and *r2* can share a trip.

    Both requests must carry pickup and dropoff coordinates; the clustering
    filter guarantees that before calling.
    """
    metrics = CompatibilityMetrics(
        distance_m=distance_m(r1.pickup, r2.pickup, cache),
        time_diff_s=float(r1.scheduled_time.seconds_apart(r2.scheduled_time)),
        direction_delta_deg=bearing_delta_deg(
            travel_direction(r1), travel_direction(r2)
        ),
        efficiency_gain=efficiency_gain(r1, r2, cache),
    )

    failed: list[str] = []
    if metrics.time_diff_s > config.max_time_window_seconds:
        failed.append("time_window")
    if metrics.distance_m > config.max_pickup_distance_meters:
        failed.append("pickup_distance")
    if metrics.direction_delta_deg > config.max_direction_deviation_degrees:
        failed.append("direction")
    if metrics.efficiency_gain < config.min_efficiency_gain:
        failed.append("efficiency")

    compatible = not failed
    return CompatibilityResult(
        is_compatible=compatible,
        score=compatibility_score(metrics, config) if compatible else 0.0,
        metrics=metrics,
        failed_rules=tuple(failed),
    )


def is_distance_compatible(
    r1: RideRequest,
    r2: RideRequest,
    config: GroupingConfig,
    cache: Optional[DistanceCache] = None,
) -> bool:
    """Pickup-distance rule on its own."""
    return (
        distance_m(r1.pickup, r2.pickup, cache)
        <= config.max_pickup_distance_meters
    )


def rank_candidates(
    ride: RideRequest,
    candidates: Iterable[RideRequest],
    config: GroupingConfig,
    cache: Optional[DistanceCache] = None,
) -> list[tuple[RideRequest, CompatibilityResult]]:
    """
    Compatible candidates for *ride*, best score first (ties by id).

    Complexity: O(M log M) for M candidates.
    """
    ranked: list[tuple[RideRequest, CompatibilityResult]] = []
    for candidate in candidates:
        if candidate.id == ride.id:
            continue
        result = check(ride, candidate, config, cache)
        if result.is_compatible:
            ranked.append((candidate, result))

    ranked.sort(key=lambda item: (-item[1].score, item[0].id))
    return ranked
