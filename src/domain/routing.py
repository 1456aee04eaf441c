"""
Route Optimizer
===============

Orders a group's ``2k`` stops (one pickup and one dropoff per rider):

1. **Distance matrix** -- all pairwise great-circle distances.
2. **Seed**            -- nearest-neighbour tour from the first pickup.
   A dropoff is only a candidate once its rider has been picked up.
3. **2-opt**           -- for ``size = 2 .. min(5, n - 2)`` reverse
   ``route[i .. i + size]`` and keep the first reversal that shortens the
   tour, then restart from ``size = 2``.  Reversals that would put any
   rider's dropoff before their pickup are skipped, never repaired.
4. Stop when a full pass finds no improving reversal.

Tours are open paths (the vehicle does not return to the first stop).

Timing
------
Each leg takes ``distance / (speed_kph * 1000 / 3600)`` seconds; arrival
estimates accumulate from the departure time.

Complexity
----------
Matrix O(n^2); one 2-opt pass tries O(4n) reversals at O(n) each.  With
``n <= 8`` the whole optimisation is a few hundred operations.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from .entities import Coordinate, Group, Waypoint
from .enums import WaypointType
from .geo import DistanceCache, distance_m

MAX_REVERSAL_SIZE = 5
_EPSILON = 1e-9


class RouteConstraintError(RuntimeError):
    """Raised when an optimised route breaks precedence or load rules."""


@dataclass(frozen=True)
class RoutePlan:
    waypoints: tuple[Waypoint, ...]
    total_distance_m: float
    total_duration_s: float
    seed_distance_m: float = 0.0


def build_stops(group: Group) -> list[Waypoint]:
    """Pickup then dropoff for each member, in member order."""
    stops: list[Waypoint] = []
    for ride in group.members:
        stops.append(Waypoint(WaypointType.PICKUP, ride.id, ride.pickup))
        stops.append(Waypoint(WaypointType.DROPOFF, ride.id, ride.dropoff))
    return stops


def distance_matrix(
    points: Sequence[Coordinate], cache: Optional[DistanceCache] = None
) -> list[list[float]]:
    n = len(points)
    matrix = [[0.0] * n for _ in range(n)]
    for i in range(n):
        for j in range(i + 1, n):
            d = distance_m(points[i], points[j], cache)
            matrix[i][j] = d
            matrix[j][i] = d
    return matrix


def route_length(route: Sequence[int], matrix: list[list[float]]) -> float:
    return sum(matrix[a][b] for a, b in zip(route[:-1], route[1:]))


def respects_precedence(route: Sequence[int], stops: Sequence[Waypoint]) -> bool:
    picked: set[str] = set()
    for idx in route:
        stop = stops[idx]
        if stop.type == WaypointType.PICKUP:
            picked.add(stop.ride_id)
        elif stop.ride_id not in picked:
            return False
    return True


def nearest_neighbor(
    matrix: list[list[float]], stops: Sequence[Waypoint]
) -> list[int]:
    """Greedy seed tour from stop 0; ties go to the lower index."""
    n = len(stops)
    if n == 0:
        return []

    route = [0]
    visited = {0}
    picked = {stops[0].ride_id}

    while len(route) < n:
        current = route[-1]
        nearest: Optional[int] = None
        for j in range(n):
            if j in visited:
                continue
            if stops[j].type == WaypointType.DROPOFF and stops[j].ride_id not in picked:
                continue
            if nearest is None or matrix[current][j] < matrix[current][nearest]:
                nearest = j

        # A pickup is always reachable while stops remain, so never None.
        assert nearest is not None
        route.append(nearest)
        visited.add(nearest)
        if stops[nearest].type == WaypointType.PICKUP:
            picked.add(stops[nearest].ride_id)

    return route


def two_opt(
    route: Sequence[int],
    matrix: list[list[float]],
    stops: Sequence[Waypoint],
) -> list[int]:
    """Bounded first-improvement 2-opt that never breaks precedence."""
    best = list(route)
    best_length = route_length(best, matrix)
    n = len(best)

    improved = True
    while improved:
        improved = False
        for size in range(2, min(MAX_REVERSAL_SIZE, n - 2) + 1):
            for i in range(n - size):
                candidate = best[:i] + best[i : i + size + 1][::-1] + best[i + size + 1 :]
                if not respects_precedence(candidate, stops):
                    continue
                length = route_length(candidate, matrix)
                if length < best_length - _EPSILON:
                    best, best_length = candidate, length
                    improved = True
                    break
            if improved:
                break

    return best


def route_violations(
    waypoints: Sequence[Waypoint], capacity: Optional[int] = None
) -> list[str]:
    """
    Problems with an ordered route: each rider picked up exactly once
    before being dropped off exactly once, and (when *capacity* is given)
    never more than *capacity* riders on board.
    """
    problems: list[str] = []
    onboard: set[str] = set()
    picked: set[str] = set()
    dropped: set[str] = set()

    for position, wp in enumerate(waypoints):
        if wp.type == WaypointType.PICKUP:
            if wp.ride_id in picked:
                problems.append(f"ride {wp.ride_id} picked up twice")
            picked.add(wp.ride_id)
            onboard.add(wp.ride_id)
            if capacity is not None and len(onboard) > capacity:
                problems.append(
                    f"load {len(onboard)} exceeds capacity {capacity} "
                    f"at stop {position}"
                )
        else:
            if wp.ride_id not in picked:
                problems.append(f"ride {wp.ride_id} dropped off before pickup")
            if wp.ride_id in dropped:
                problems.append(f"ride {wp.ride_id} dropped off twice")
            dropped.add(wp.ride_id)
            onboard.discard(wp.ride_id)

    for ride_id in sorted(picked - dropped):
        problems.append(f"ride {ride_id} never dropped off")

    return problems


def _timed(
    ordered: Sequence[Waypoint],
    matrix_route: Sequence[int],
    matrix: list[list[float]],
    departure_time: Optional[datetime],
    average_speed_kph: float,
) -> tuple[list[Waypoint], float]:
    speed_mps = average_speed_kph * 1000 / 3600
    elapsed = 0.0
    timed: list[Waypoint] = []

    for position, wp in enumerate(ordered):
        if position > 0:
            leg = matrix[matrix_route[position - 1]][matrix_route[position]]
            elapsed += leg / speed_mps
        arrival = (
            departure_time + timedelta(seconds=elapsed)
            if departure_time is not None
            else None
        )
        timed.append(Waypoint(wp.type, wp.ride_id, wp.coordinate, arrival))

    return timed, elapsed


def optimize(
    group: Group,
    departure_time: Optional[datetime] = None,
    average_speed_kph: float = 40.0,
    cache: Optional[DistanceCache] = None,
    capacity: Optional[int] = None,
) -> RoutePlan:
    """Compute a near-optimal, precedence-safe stop order for *group*."""
    stops = build_stops(group)
    if not stops:
        return RoutePlan((), 0.0, 0.0)

    matrix = distance_matrix([s.coordinate for s in stops], cache)
    seed = nearest_neighbor(matrix, stops)
    seed_length = route_length(seed, matrix)
    route = two_opt(seed, matrix, stops)

    if sorted(route) != list(range(len(stops))):
        raise RouteConstraintError(
            f"route for group {group.id} is not a permutation of its stops"
        )

    ordered = [stops[i] for i in route]
    problems = route_violations(ordered, capacity)
    if problems:
        raise RouteConstraintError(
            f"route for group {group.id} is invalid: {'; '.join(problems)}"
        )

    waypoints, duration = _timed(
        ordered, route, matrix, departure_time, average_speed_kph
    )
    return RoutePlan(
        waypoints=tuple(waypoints),
        total_distance_m=route_length(route, matrix),
        total_duration_s=duration,
        seed_distance_m=seed_length,
    )


def stop_positions(waypoints: Sequence[Waypoint]) -> dict[str, tuple[int, int]]:
    """ride id -> (pickup index, dropoff index)."""
    pickups: dict[str, int] = {}
    dropoffs: dict[str, int] = {}
    for idx, wp in enumerate(waypoints):
        if wp.type == WaypointType.PICKUP:
            pickups[wp.ride_id] = idx
        else:
            dropoffs[wp.ride_id] = idx
    return {rid: (pickups[rid], dropoffs[rid]) for rid in pickups if rid in dropoffs}
