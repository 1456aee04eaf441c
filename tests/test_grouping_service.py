"""End-to-end tests for the batch grouping service."""

from datetime import datetime

import pytest

from src.domain.entities import TrafficSample, Violation
from src.domain.enums import RideStatus, TrafficTier, ViolationCode
from src.domain.routing import stop_positions
from src.domain.validation import ValidationReport
from src.services import grouping as grouping_service
from src.services.grouping import GroupingEngine, efficiency_fraction
from tests.conftest import group_of, northbound, ride

DEPARTURE = datetime(2026, 1, 5, 8, 0)


class TestPlan:
    def setup_method(self):
        self.engine = GroupingEngine()

    def test_pair_is_routed_and_measured(self):
        a = ride("a", time="08:00")
        b = ride("b", pickup=(19.0018, 72.8), dropoff=(19.1, 72.801), time="08:05")

        plan = self.engine.plan([a, b], TrafficSample(0.2), DEPARTURE)

        assert len(plan.groups) == 1
        group = plan.groups[0]
        assert group.member_ids == ("a", "b")
        assert len(group.waypoints) == 4
        assert group.total_distance_m > 0
        assert group.total_duration_s > 0
        assert 0 < group.efficiency_fraction < 1
        assert group.waypoints[0].estimated_arrival == DEPARTURE
        assert plan.leftovers == []
        assert plan.traffic_tier == TrafficTier.LIGHT

    def test_heavy_traffic(self):
        plan = self.engine.plan(northbound(4), TrafficSample(0.9))
        assert plan.max_group_size == 2
        assert [g.size for g in plan.groups] == [2, 2]
        assert plan.traffic_tier == TrafficTier.HEAVY

    def test_no_traffic_assumes_light(self):
        plan = self.engine.plan(northbound(4))
        assert plan.assumed_light_traffic
        assert plan.max_group_size == 4

    def test_leftovers_carry_reasons(self):
        rides = [
            ride("a", time="08:00"),
            ride("b", time="08:30"),
            ride("c", status=RideStatus.CANCELLED),
            ride("d", dropoff=None),
        ]
        plan = self.engine.plan(rides)

        reasons = {left.ride_id: left.violation.code for left in plan.leftovers}
        assert reasons == {
            "a": ViolationCode.NO_COMPATIBLE_RIDES,
            "b": ViolationCode.NO_COMPATIBLE_RIDES,
            "c": ViolationCode.INVALID_RIDE_STATUS,
            "d": ViolationCode.MISSING_COORDINATES,
        }

    def test_precedence_in_every_group(self):
        for group in self.engine.plan(northbound(8), TrafficSample(0.6)).groups:
            for pickup_idx, dropoff_idx in stop_positions(group.waypoints).values():
                assert pickup_idx < dropoff_idx

    def test_idempotent(self):
        rides = northbound(6)
        assert self.engine.plan(rides, None, DEPARTURE) == self.engine.plan(
            rides, None, DEPARTURE
        )

    def test_parallel_routing_matches_sequential(self):
        rides = northbound(8)
        traffic = TrafficSample(0.9)
        sequential = GroupingEngine(route_workers=1).plan(rides, traffic, DEPARTURE)
        parallel = GroupingEngine(route_workers=4).plan(rides, traffic, DEPARTURE)
        assert parallel == sequential

    def test_traffic_speed_overrides_default(self):
        rides = northbound(2)
        slow = self.engine.plan(rides, TrafficSample(0.1, average_speed_kph=20))
        default = self.engine.plan(rides, TrafficSample(0.1))
        assert slow.groups[0].total_duration_s == pytest.approx(
            default.groups[0].total_duration_s * 2
        )

    def test_rejected_group_members_become_leftovers(self, monkeypatch):
        violation = Violation(ViolationCode.DRIVER_UNAVAILABLE, "no driver")
        monkeypatch.setattr(
            grouping_service,
            "validate",
            lambda group, **kwargs: ValidationReport(False, (violation,)),
        )

        plan = self.engine.plan(northbound(2))

        assert plan.groups == []
        assert [(left.ride_id, left.violation) for left in plan.leftovers] == [
            ("r1", violation),
            ("r2", violation),
        ]

    def test_batch_info_logged(self, caplog):
        with caplog.at_level("INFO", logger="src.services.grouping"):
            self.engine.plan(northbound(2))
        assert "1 groups" in caplog.text


class TestEfficiencyFraction:
    def test_shared_route_saves_distance(self):
        group = group_of(ride("a"), ride("b"))
        # both trips are identical, so a shared route covers one trip
        assert efficiency_fraction(group, 11_119.5) == pytest.approx(0.5, rel=1e-3)

    def test_zero_direct_distance(self):
        group = group_of(ride("a", dropoff=(19.0, 72.8)), ride("b", dropoff=(19.0, 72.8)))
        assert efficiency_fraction(group, 0.0) == 0.0
