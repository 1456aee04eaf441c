"""Unit tests for pairwise compatibility rules and scoring."""

import pytest

from src.domain.compatibility import (
    check,
    compatibility_score,
    efficiency_gain,
    is_distance_compatible,
    rank_candidates,
)
from src.domain.entities import CompatibilityMetrics
from src.domain.policy import GroupingConfig, narrow_config
from tests.conftest import ORIGIN, ride


class TestCheck:
    def test_nearby_same_direction_is_compatible(self, config):
        a = ride("a", time="08:00")
        b = ride("b", pickup=(19.0018, 72.8), dropoff=(19.1, 72.801), time="08:05")

        result = check(a, b, config)

        assert result.is_compatible
        assert result.metrics.time_diff_s == 300
        assert result.metrics.distance_m == pytest.approx(200, abs=5)
        assert result.metrics.direction_delta_deg < 5
        assert result.metrics.efficiency_gain > 0.4
        assert 0 < result.score <= 1
        assert result.failed_rules == ()

    def test_time_window_exceeded(self, config):
        result = check(ride("a", time="08:00"), ride("b", time="08:20"), config)
        assert not result.is_compatible
        assert result.metrics.time_diff_s == 1200
        assert result.failed_rules == ("time_window",)
        assert result.score == 0.0

    def test_time_window_boundary_is_inclusive(self, config):
        assert check(ride("a", time="08:00"), ride("b", time="08:15"), config).is_compatible

    def test_time_compared_by_minute_of_day(self, config):
        result = check(ride("a", time="23:55"), ride("b", time="00:05"), config)
        assert result.metrics.time_diff_s == (23 * 60 + 50) * 60

    def test_pickups_too_far_apart(self, config):
        far = (ORIGIN[0] - 0.06, ORIGIN[1])  # ~6.7 km south
        result = check(ride("a"), ride("b", pickup=far), config)
        assert "pickup_distance" in result.failed_rules

    def test_narrow_config_uses_2km(self):
        b = ride("b", pickup=(ORIGIN[0] + 0.027, ORIGIN[1]))  # ~3 km north
        assert check(ride("a"), b, GroupingConfig()).is_compatible
        assert not check(ride("a"), b, narrow_config()).is_compatible

    def test_opposite_directions_rejected(self, config):
        south = (18.9, 72.8)
        result = check(ride("a"), ride("b", dropoff=south), config)
        assert "direction" in result.failed_rules

    def test_low_efficiency_rejected(self, config):
        # Same pickup and heading, but b's trip is only ~100 m long.
        short = (ORIGIN[0] + 0.0009, ORIGIN[1])
        result = check(ride("a"), ride("b", dropoff=short), config)
        assert result.failed_rules == ("efficiency",)
        assert result.metrics.efficiency_gain < 0.2


class TestEfficiencyGain:
    def test_identical_trips_save_half(self):
        assert efficiency_gain(ride("a"), ride("b")) == pytest.approx(0.5)

    def test_zero_length_trips(self):
        a = ride("a", dropoff=ORIGIN)
        b = ride("b", dropoff=ORIGIN)
        assert efficiency_gain(a, b) == 0.0


class TestScore:
    def test_perfect_pair_scores_by_gain(self, config):
        metrics = CompatibilityMetrics(0.0, 0.0, 0.0, 0.5)
        assert compatibility_score(metrics, config) == pytest.approx(0.875)

    def test_sub_scores_clamped(self, config):
        metrics = CompatibilityMetrics(99_999.0, 99_999.0, 179.0, -1.0)
        assert compatibility_score(metrics, config) == 0.0


class TestDistanceRule:
    def test_within_threshold(self, config):
        assert is_distance_compatible(ride("a"), ride("b", time="12:00"), config)

    def test_beyond_threshold(self, config):
        far = ride("b", pickup=(ORIGIN[0] + 0.1, ORIGIN[1]))
        assert not is_distance_compatible(ride("a"), far, config)


class TestRankCandidates:
    def test_best_first_and_incompatible_dropped(self, config):
        base = ride("base")
        close = ride("close", time="08:01")
        later = ride("later", time="08:12")
        too_late = ride("too-late", time="09:00")

        ranked = rank_candidates(base, [later, too_late, close, base], config)

        assert [r.id for r, _ in ranked] == ["close", "later"]
        assert ranked[0][1].score > ranked[1][1].score
