"""
Traffic-adaptive group sizing.

Heavier congestion means every extra stop costs more time, so groups get
smaller:

    congestion >= heavy threshold   -> heavy_group_size  (default 2)
    congestion >= medium threshold  -> medium_group_size (default 3)
    otherwise                       -> light_group_size  (default 4)

Traffic samples are supplied by the caller; nothing here fetches them.
"""

from __future__ import annotations

import logging
from typing import Optional

from .entities import TrafficSample
from .enums import TrafficTier
from .policy import GroupingConfig

logger = logging.getLogger(__name__)


def traffic_tier(
    traffic: Optional[TrafficSample], config: GroupingConfig
) -> TrafficTier:
    if traffic is None:
        return TrafficTier.LIGHT
    if traffic.congestion_level >= config.heavy_traffic_threshold:
        return TrafficTier.HEAVY
    if traffic.congestion_level >= config.medium_traffic_threshold:
        return TrafficTier.MEDIUM
    return TrafficTier.LIGHT


def max_group_size(
    traffic: Optional[TrafficSample], config: GroupingConfig
) -> int:
    """Largest group allowed under *traffic*.  ``None`` means light traffic."""
    if traffic is None:
        logger.info(
            "No traffic sample supplied - assuming light traffic "
            "(max group size %d)",
            config.light_group_size,
        )

    tier = traffic_tier(traffic, config)
    size = {
        TrafficTier.HEAVY: config.heavy_group_size,
        TrafficTier.MEDIUM: config.medium_group_size,
        TrafficTier.LIGHT: config.light_group_size,
    }[tier]
    return min(size, config.max_group_size_absolute)
