"""
Batch Grouping Service
======================

Single entry point for a batch of pending ride requests.

Pipeline per call
-----------------
1. Cluster the batch (compatibility checks + traffic-adaptive size).
2. Optimise each group's stop order.  Groups are independent, so with
   ``route_workers > 1`` they run on a thread pool; output order always
   follows cluster order.
3. Attach route metrics (distance, duration, efficiency).
4. Validate each group; members of a rejected group become leftovers
   annotated with the group's last violation.

The service keeps no state between calls.  The distance cache is created
per call and dropped with it, so disjoint batches can be planned from
several threads at once.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Sequence

from src.domain.clustering import cluster
from src.domain.entities import Group, RideRequest, TrafficSample, Violation
from src.domain.enums import TrafficTier
from src.domain.geo import DistanceCache, distance_m
from src.domain.policy import GroupingConfig
from src.domain.routing import RoutePlan, optimize
from src.domain.traffic import traffic_tier
from src.domain.validation import validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Leftover:
    ride_id: str
    violation: Optional[Violation] = None


@dataclass(frozen=True)
class BatchPlan:
    groups: list[Group]
    leftovers: list[Leftover]
    max_group_size: int
    traffic_tier: TrafficTier
    assumed_light_traffic: bool = False

    @property
    def grouped_ride_ids(self) -> list[str]:
        return [rid for g in self.groups for rid in g.member_ids]


def efficiency_fraction(
    group: Group, route_distance_m: float, cache: Optional[DistanceCache] = None
) -> float:
    """Share of solo driving distance saved by the shared route."""
    direct = sum(distance_m(r.pickup, r.dropoff, cache) for r in group.members)
    if direct <= 0:
        return 0.0
    return (direct - route_distance_m) / direct


class GroupingEngine:
    """High-level API used by the HTTP layer and by batch callers."""

    def __init__(
        self, config: Optional[GroupingConfig] = None, route_workers: int = 1
    ):
        self.config = config or GroupingConfig()
        self.route_workers = max(1, route_workers)

    def average_speed_kph(self, traffic: Optional[TrafficSample]) -> float:
        if traffic is not None and (traffic.average_speed_kph or 0) > 0:
            return traffic.average_speed_kph
        return self.config.average_speed_kph

    def _route_all(
        self,
        groups: Sequence[Group],
        departure_time: Optional[datetime],
        speed_kph: float,
    ) -> list[RoutePlan]:
        def run(group: Group) -> RoutePlan:
            # Per-group cache: groups share no stops, and threads share nothing.
            return optimize(
                group,
                departure_time=departure_time,
                average_speed_kph=speed_kph,
                cache=DistanceCache(),
                capacity=self.config.max_group_size_absolute,
            )

        if self.route_workers == 1 or len(groups) < 2:
            return [run(g) for g in groups]

        with ThreadPoolExecutor(max_workers=self.route_workers) as pool:
            return list(pool.map(run, groups))

    def plan(
        self,
        requests: Sequence[RideRequest],
        traffic: Optional[TrafficSample] = None,
        departure_time: Optional[datetime] = None,
    ) -> BatchPlan:
        """Group, route and validate one batch."""
        cache = DistanceCache()
        clustered = cluster(requests, traffic, self.config, cache)

        speed = self.average_speed_kph(traffic)
        routes = self._route_all(clustered.groups, departure_time, speed)

        accepted: list[Group] = []
        rejected: list[Leftover] = []
        for group, route in zip(clustered.groups, routes):
            routed = replace(
                group,
                waypoints=route.waypoints,
                total_distance_m=route.total_distance_m,
                total_duration_s=route.total_duration_s,
                efficiency_fraction=efficiency_fraction(
                    group, route.total_distance_m, cache
                ),
            )
            report = validate(routed, config=self.config, cache=cache)
            if report.ok:
                accepted.append(routed)
                continue

            logger.warning(
                "Group %s rejected: %s",
                group.id,
                ", ".join(code.value for code in report.codes),
            )
            rejected.extend(
                Leftover(rid, report.last_violation) for rid in group.member_ids
            )

        leftovers = [
            Leftover(r.id, clustered.reasons.get(r.id)) for r in clustered.leftovers
        ] + rejected

        logger.info(
            "Grouping batch: %d rides -> %d groups, %d leftovers "
            "(max size %d, %d distance lookups cached)",
            len(requests),
            len(accepted),
            len(leftovers),
            clustered.max_group_size,
            len(cache),
        )

        return BatchPlan(
            groups=accepted,
            leftovers=leftovers,
            max_group_size=clustered.max_group_size,
            traffic_tier=traffic_tier(traffic, self.config),
            assumed_light_traffic=traffic is None,
        )
