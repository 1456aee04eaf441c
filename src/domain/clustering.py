"""
Greedy Clustering Engine
========================

1. **Filter**       -- only PENDING requests with both coordinates take
   part; the rest become leftovers with a reason.
2. **Sort**         -- by scheduled minute of day, then id.
3. **First fit**    -- walk the sorted list once; append each request to
   the earliest-created open group that has room (traffic-adaptive size)
   and whose every member is pairwise compatible with it, else open a
   new group.
4. **Re-split**     -- run the same first-fit inside each multi-member
   group using the pickup-distance rule alone.
5. **Discard**      -- singletons are returned as leftovers.

The earliest eligible group always wins, not the best-scoring one, so the
result depends only on the input and is reproducible call to call.

Complexity
----------
Let N = eligible requests, G = open groups, k = max group size.

* Sort:        O(N log N)
* First fit:   O(N x G x k) compatibility checks, each O(1)
* Worst case:  O(N^2)      -- every request incompatible with every other

**Note:** greedy first fit does NOT minimise the number of leftovers.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from .compatibility import check, is_distance_compatible
from .entities import Group, RideRequest, TrafficSample, Violation
from .enums import RideStatus, ViolationCode
from .geo import DistanceCache
from .policy import GroupingConfig
from .traffic import max_group_size

logger = logging.getLogger(__name__)

_GROUP_NAMESPACE = uuid.UUID("5b8f6c1e-3f0a-4c57-9d43-0c6a0f3b7e21")

PairRule = Callable[[RideRequest, RideRequest], bool]


@dataclass(frozen=True)
class ClusterResult:
    groups: list[Group]
    leftovers: list[RideRequest]
    reasons: dict[str, Violation] = field(default_factory=dict)
    max_group_size: int = 0


def group_id_for(members: Sequence[RideRequest]) -> str:
    """Stable id derived from the ordered member ids."""
    return str(uuid.uuid5(_GROUP_NAMESPACE, "|".join(r.id for r in members)))


def sort_key(ride: RideRequest) -> tuple[int, str]:
    return ride.scheduled_time.minutes, ride.id


def first_fit(
    rides: Sequence[RideRequest], limit: int, compatible: PairRule
) -> list[list[RideRequest]]:
    """
    Greedy first-fit partition of *rides* (already ordered).

    A ride joins the earliest group with fewer than *limit* members whose
    every member satisfies ``compatible(member, ride)``.
    """
    groups: list[list[RideRequest]] = []
    for ride in rides:
        for group in groups:
            if len(group) >= limit:
                continue
            if all(compatible(member, ride) for member in group):
                group.append(ride)
                break
        else:
            groups.append([ride])
    return groups


def _screen(
    requests: Sequence[RideRequest],
) -> tuple[list[RideRequest], list[RideRequest], dict[str, Violation]]:
    eligible: list[RideRequest] = []
    rejected: list[RideRequest] = []
    reasons: dict[str, Violation] = {}
    seen: set[str] = set()

    for ride in requests:
        if not ride.has_coordinates:
            violation = Violation(
                ViolationCode.MISSING_COORDINATES,
                "Ride is missing pickup or dropoff coordinates",
                (ride.id,),
            )
        elif ride.status != RideStatus.PENDING:
            violation = Violation(
                ViolationCode.INVALID_RIDE_STATUS,
                f"Only PENDING rides can be grouped (got {ride.status.value})",
                (ride.id,),
            )
        elif ride.id in seen:
            violation = Violation(
                ViolationCode.DUPLICATE_RIDE,
                "Ride appears more than once in the batch",
                (ride.id,),
            )
        else:
            seen.add(ride.id)
            eligible.append(ride)
            continue

        logger.debug("Ride %s not eligible: %s", ride.id, violation.code.value)
        rejected.append(ride)
        reasons.setdefault(ride.id, violation)

    return eligible, rejected, reasons


def _unmatched(ride: RideRequest) -> Violation:
    return Violation(
        ViolationCode.NO_COMPATIBLE_RIDES,
        "No compatible rides found",
        (ride.id,),
    )


def cluster(
    requests: Sequence[RideRequest],
    traffic: Optional[TrafficSample],
    config: GroupingConfig,
    cache: Optional[DistanceCache] = None,
) -> ClusterResult:
    """
    Partition *requests* into groups of ``min_group_size`` up to the
    traffic-adaptive maximum.  Returned groups carry members only.
    """
    cache = cache if cache is not None else DistanceCache()
    limit = max_group_size(traffic, config)

    eligible, leftovers, reasons = _screen(requests)

    if len(eligible) < config.min_group_size:
        for ride in eligible:
            leftovers.append(ride)
            reasons[ride.id] = _unmatched(ride)
        return ClusterResult([], leftovers, reasons, limit)

    ordered = sorted(eligible, key=sort_key)

    time_groups = first_fit(
        ordered,
        limit,
        lambda a, b: check(a, b, config, cache).is_compatible,
    )

    distance_groups: list[list[RideRequest]] = []
    for members in time_groups:
        if len(members) == 1:
            distance_groups.append(members)
            continue
        distance_groups.extend(
            first_fit(
                members,
                limit,
                lambda a, b: is_distance_compatible(a, b, config, cache),
            )
        )

    groups: list[Group] = []
    for members in distance_groups:
        if len(members) < config.min_group_size:
            for ride in members:
                leftovers.append(ride)
                reasons[ride.id] = _unmatched(ride)
            continue
        groups.append(Group(id=group_id_for(members), members=tuple(members)))

    logger.debug(
        "Clustered %d eligible rides into %d groups (limit=%d, leftovers=%d)",
        len(eligible),
        len(groups),
        limit,
        len(leftovers),
    )
    return ClusterResult(groups, leftovers, reasons, limit)
