"""Configuration validation and traffic-adaptive sizing."""

import pytest

from src.config import Settings
from src.domain.entities import TrafficSample
from src.domain.enums import TrafficTier
from src.domain.policy import (
    ConfigurationError,
    GROUP_SIZE_CEILING,
    GroupingConfig,
    default_config,
    narrow_config,
)
from src.domain.traffic import max_group_size, traffic_tier


class TestGroupingConfig:
    def test_defaults(self):
        cfg = default_config()
        assert cfg.max_time_window_seconds == 900
        assert cfg.max_pickup_distance_meters == 5000
        assert cfg.max_direction_deviation_degrees == 30
        assert cfg.min_efficiency_gain == 0.2
        assert (cfg.min_group_size, cfg.max_group_size_absolute) == (2, 4)
        assert cfg.average_speed_kph == 40

    def test_narrow_preset(self):
        assert narrow_config().max_pickup_distance_meters == 2000

    def test_min_above_max_rejected(self):
        with pytest.raises(ConfigurationError):
            GroupingConfig(min_group_size=4, max_group_size_absolute=3)

    def test_inverted_traffic_thresholds_rejected(self):
        with pytest.raises(ConfigurationError):
            GroupingConfig(heavy_traffic_threshold=0.4, medium_traffic_threshold=0.6)

    def test_absolute_size_above_four_rejected(self):
        with pytest.raises(ConfigurationError, match="max_group_size_absolute"):
            GroupingConfig(max_group_size_absolute=6, light_group_size=6)

    def test_settings_cannot_raise_group_ceiling(self):
        settings = Settings(max_group_size_absolute=5, light_group_size=5)
        with pytest.raises(ConfigurationError):
            settings.grouping_config()

    def test_ceiling_is_four(self):
        assert GROUP_SIZE_CEILING == 4

    def test_tier_size_outside_bounds_rejected(self):
        with pytest.raises(ConfigurationError):
            GroupingConfig(light_group_size=5)

    def test_non_positive_speed_rejected(self):
        with pytest.raises(ConfigurationError):
            GroupingConfig(average_speed_kph=0)

    def test_is_a_value_error(self):
        assert issubclass(ConfigurationError, ValueError)


class TestTrafficSizer:
    @pytest.mark.parametrize(
        "congestion, size, tier",
        [
            (0.95, 2, TrafficTier.HEAVY),
            (0.8, 2, TrafficTier.HEAVY),
            (0.79, 3, TrafficTier.MEDIUM),
            (0.5, 3, TrafficTier.MEDIUM),
            (0.49, 4, TrafficTier.LIGHT),
            (0.0, 4, TrafficTier.LIGHT),
        ],
    )
    def test_tiers(self, config, congestion, size, tier):
        sample = TrafficSample(congestion_level=congestion)
        assert max_group_size(sample, config) == size
        assert traffic_tier(sample, config) == tier

    def test_missing_sample_means_light_traffic(self, config, caplog):
        with caplog.at_level("INFO", logger="src.domain.traffic"):
            assert max_group_size(None, config) == 4
        assert "assuming light traffic" in caplog.text

    def test_custom_sizes(self):
        cfg = GroupingConfig(heavy_group_size=3, medium_group_size=3, light_group_size=3)
        assert max_group_size(TrafficSample(0.1), cfg) == 3
