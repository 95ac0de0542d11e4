"""
Distance strategies used to find the nearest field worker.

Contract:
- Input: two (latitude, longitude) pairs in decimal degrees
- Output: a non-negative float; only the ordering matters to callers
- Pure functions, no state

"planar" is Euclidean distance over raw degrees (cheap, and what the
assignment rule has always used). "haversine" is great-circle distance in
meters and can be switched on via DISTANCE_STRATEGY without touching the
assignment engine.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging
import math

from app.core.settings import settings

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371000


class DistanceStrategy(ABC):
    """Abstract distance between two coordinates."""

    name: str = "abstract"

    @abstractmethod
    def distance(self, lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        raise NotImplementedError


class PlanarDistance(DistanceStrategy):
    """Euclidean distance on raw lat/lon degrees."""

    name = "planar"

    def distance(self, lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        return math.hypot(lat2 - lat1, lon2 - lon1)


class HaversineDistance(DistanceStrategy):
    """Great-circle distance in meters."""

    name = "haversine"

    def distance(self, lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        phi1 = math.radians(lat1)
        phi2 = math.radians(lat2)
        delta_phi = math.radians(lat2 - lat1)
        delta_lambda = math.radians(lon2 - lon1)
        a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
        return EARTH_RADIUS_METERS * c


_STRATEGIES: Dict[str, DistanceStrategy] = {
    PlanarDistance.name: PlanarDistance(),
    HaversineDistance.name: HaversineDistance(),
}


def get_distance_strategy(name: Optional[str] = None) -> DistanceStrategy:
    """
    Resolve a distance strategy by name (defaults to settings.DISTANCE_STRATEGY).

    Unknown names fall back to planar with a warning.
    """
    strategy_name = (name or settings.DISTANCE_STRATEGY or PlanarDistance.name).lower()
    strategy = _STRATEGIES.get(strategy_name)
    if strategy is None:
        logger.warning(f"Unknown distance strategy '{strategy_name}', falling back to planar")
        return _STRATEGIES[PlanarDistance.name]
    return strategy
