"""
Grouping configuration.

All tunable thresholds live on ``GroupingConfig`` so behaviour can be
changed without touching the algorithms.  The object is validated once at
construction; an invalid combination is a caller bug and raises
``ConfigurationError`` instead of being discovered mid-batch.
"""

from __future__ import annotations

from dataclasses import dataclass


# Hard limit on riders sharing one vehicle, whatever the configuration.
GROUP_SIZE_CEILING = 4


class ConfigurationError(ValueError):
    """Raised when grouping thresholds are inconsistent."""


@dataclass(frozen=True)
class GroupingConfig:
    # --- Pairwise compatibility ---
    max_time_window_seconds: int = 900
    max_pickup_distance_meters: float = 5000.0
    max_direction_deviation_degrees: float = 30.0
    min_efficiency_gain: float = 0.2

    # --- Group size ---
    min_group_size: int = 2
    max_group_size_absolute: int = 4

    # --- Traffic tiers (congestion level in [0, 1]) ---
    heavy_traffic_threshold: float = 0.8
    medium_traffic_threshold: float = 0.5
    heavy_group_size: int = 2
    medium_group_size: int = 3
    light_group_size: int = 4

    # --- Route timing ---
    average_speed_kph: float = 40.0

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.max_time_window_seconds < 0:
            raise ConfigurationError("max_time_window_seconds must be >= 0")

        if self.max_pickup_distance_meters <= 0:
            raise ConfigurationError("max_pickup_distance_meters must be > 0")

        if not 0 < self.max_direction_deviation_degrees <= 180:
            raise ConfigurationError(
                "max_direction_deviation_degrees must be in (0, 180]"
            )

        if not 0 <= self.min_efficiency_gain <= 1:
            raise ConfigurationError("min_efficiency_gain must be in [0, 1]")

        if self.min_group_size < 2:
            raise ConfigurationError("min_group_size must be >= 2")

        if self.max_group_size_absolute > GROUP_SIZE_CEILING:
            raise ConfigurationError(
                f"max_group_size_absolute must be <= {GROUP_SIZE_CEILING}"
            )

        if self.min_group_size > self.max_group_size_absolute:
            raise ConfigurationError(
                "min_group_size must be <= max_group_size_absolute"
            )

        if not (
            0 <= self.medium_traffic_threshold
            <= self.heavy_traffic_threshold
            <= 1
        ):
            raise ConfigurationError(
                "traffic thresholds must satisfy 0 <= medium <= heavy <= 1"
            )

        for name in ("heavy_group_size", "medium_group_size", "light_group_size"):
            size = getattr(self, name)
            if not self.min_group_size <= size <= self.max_group_size_absolute:
                raise ConfigurationError(
                    f"{name}={size} outside "
                    f"[{self.min_group_size}, {self.max_group_size_absolute}]"
                )

        if self.average_speed_kph <= 0:
            raise ConfigurationError("average_speed_kph must be > 0")


def default_config() -> GroupingConfig:
    return GroupingConfig()


def narrow_config() -> GroupingConfig:
    """Tighter pickup radius (2 km) for dense urban batches."""
    return GroupingConfig(max_pickup_distance_meters=2000.0)
