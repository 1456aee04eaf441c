"""Centralised application settings loaded from environment / .env file."""

from pydantic_settings import BaseSettings

from src.domain.policy import GroupingConfig


class Settings(BaseSettings):
    # Compatibility thresholds
    max_time_window_seconds: int = 900  # 15 min between scheduled times
    max_pickup_distance_meters: float = 5000.0  # 2000 for dense areas
    max_direction_deviation_degrees: float = 30.0
    min_efficiency_gain: float = 0.2  # 20 % distance saved at minimum

    # Group size
    min_group_size: int = 2
    max_group_size_absolute: int = 4

    # Traffic tiers
    heavy_traffic_threshold: float = 0.8
    medium_traffic_threshold: float = 0.5
    heavy_group_size: int = 2
    medium_group_size: int = 3
    light_group_size: int = 4

    # Route timing
    average_speed_kph: float = 40.0
    route_workers: int = 1  # threads used to optimise groups in parallel

    # API
    api_rate_limit: str = "100/minute"

    model_config = {"env_file": ".env", "extra": "ignore"}

    def grouping_config(self, **overrides) -> GroupingConfig:
        """Build a validated ``GroupingConfig``; raises ``ConfigurationError``."""
        values = {
            "max_time_window_seconds": self.max_time_window_seconds,
            "max_pickup_distance_meters": self.max_pickup_distance_meters,
            "max_direction_deviation_degrees": self.max_direction_deviation_degrees,
            "min_efficiency_gain": self.min_efficiency_gain,
            "min_group_size": self.min_group_size,
            "max_group_size_absolute": self.max_group_size_absolute,
            "heavy_traffic_threshold": self.heavy_traffic_threshold,
            "medium_traffic_threshold": self.medium_traffic_threshold,
            "heavy_group_size": self.heavy_group_size,
            "medium_group_size": self.medium_group_size,
            "light_group_size": self.light_group_size,
            "average_speed_kph": self.average_speed_kph,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return GroupingConfig(**values)


settings = Settings()
