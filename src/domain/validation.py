"""
Group Validator
===============

Final admission gate for a candidate group.  State can change between
clustering and admission, so statuses and pairwise constraints are
re-checked here.  Every failed check yields one ``Violation``; the
group itself is never modified.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Optional

from .entities import DriverRef, Group, Violation
from .enums import GROUPABLE_STATUSES, ViolationCode
from .geo import DistanceCache, distance_m
from .policy import GroupingConfig


@dataclass(frozen=True)
class ValidationReport:
    ok: bool
    violations: tuple[Violation, ...] = ()

    @property
    def codes(self) -> tuple[ViolationCode, ...]:
        return tuple(v.code for v in self.violations)

    @property
    def last_violation(self) -> Optional[Violation]:
        return self.violations[-1] if self.violations else None


def _schedule_conflicts(group: Group, config: GroupingConfig) -> list[dict]:
    conflicts = []
    for a, b in combinations(group.members, 2):
        diff = a.scheduled_time.seconds_apart(b.scheduled_time)
        if diff > config.max_time_window_seconds:
            conflicts.append(
                {"ride1": a.id, "ride2": b.id, "time_diff_seconds": diff}
            )
    return conflicts


def _distance_violations(
    group: Group, config: GroupingConfig, cache: Optional[DistanceCache]
) -> list[dict]:
    violations = []
    for a, b in combinations(group.members, 2):
        if a.pickup is None or b.pickup is None:
            continue
        d = distance_m(a.pickup, b.pickup, cache)
        if d > config.max_pickup_distance_meters:
            violations.append({"ride1": a.id, "ride2": b.id, "distance_m": d})
    return violations


def _pair_ids(pairs: list[dict]) -> tuple[str, ...]:
    ids: list[str] = []
    for pair in pairs:
        for rid in (pair["ride1"], pair["ride2"]):
            if rid not in ids:
                ids.append(rid)
    return tuple(ids)


def validate(
    group: Group,
    driver: Optional[DriverRef] = None,
    config: Optional[GroupingConfig] = None,
    cache: Optional[DistanceCache] = None,
) -> ValidationReport:
    config = config or GroupingConfig()
    violations: list[Violation] = []

    bad_status = [r.id for r in group.members if r.status not in GROUPABLE_STATUSES]
    if bad_status:
        violations.append(
            Violation(
                ViolationCode.INVALID_RIDE_STATUS,
                "Some rides have invalid status for grouping",
                tuple(bad_status),
            )
        )

    if driver is not None and not driver.is_available:
        violations.append(
            Violation(
                ViolationCode.DRIVER_UNAVAILABLE,
                f"Driver {driver.id} is not available",
            )
        )

    if group.size < config.min_group_size:
        violations.append(
            Violation(
                ViolationCode.INSUFFICIENT_RIDES,
                f"At least {config.min_group_size} rides are required for grouping",
                group.member_ids,
            )
        )

    if group.size > config.max_group_size_absolute:
        violations.append(
            Violation(
                ViolationCode.GROUP_TOO_LARGE,
                f"A group may hold at most {config.max_group_size_absolute} rides",
                group.member_ids,
            )
        )

    conflicts = _schedule_conflicts(group, config)
    if conflicts:
        violations.append(
            Violation(
                ViolationCode.SCHEDULE_CONFLICT,
                "Schedule conflicts detected between rides",
                _pair_ids(conflicts),
                tuple(conflicts),
            )
        )

    too_far = _distance_violations(group, config, cache)
    if too_far:
        violations.append(
            Violation(
                ViolationCode.DISTANCE_CONSTRAINT_VIOLATION,
                "Some rides exceed maximum allowed pickup distance",
                _pair_ids(too_far),
                tuple(too_far),
            )
        )

    return ValidationReport(ok=not violations, violations=tuple(violations))
