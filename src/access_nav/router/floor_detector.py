# floor_detector.py
# Infers which floor of a building the user is on.
# Sensors are swappable: a barometer / Wi-Fi / BLE implementation only needs
# to subclass FloorSensor.

import logging
import time
from typing import Callable, Dict, List, Optional

from .geo_utils import haversine_distance
from .models import BuildingPlan, GeoPoint, Hotspot
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Sensors
# ---------------------------------------------------------------------------

class FloorSensor:
    """Capability that may or may not know the current floor."""

    def detect(self, building: BuildingPlan, position: GeoPoint) -> Optional[str]:
        """Return a floor id of building, or None when this sensor has no opinion."""
        raise NotImplementedError


class HotspotFloorSensor(FloorSensor):
    """
    Matches the position against calibrated per-floor hotspots.

    A hotspot matches when the position lies within radius * meters_per_degree
    metres of it; the nearest matching hotspot decides the floor.

    Args:
        hotspots: floor id → list of Hotspot.
        config:   NavConfig instance for the degree → metre factor.
    """

    def __init__(self, hotspots: Dict[str, List[Hotspot]], config: Optional[NavConfig] = None) -> None:
        self.hotspots = hotspots
        self.config = config or NavConfig()

    def detect(self, building: BuildingPlan, position: GeoPoint) -> Optional[str]:
        best_floor: Optional[str] = None
        min_dist = float("inf")
        for floor in building.floors:
            for spot in self.hotspots.get(floor.id, []):
                d = haversine_distance(position.latitude, position.longitude, spot.latitude, spot.longitude)
                if d < spot.radius * self.config.meters_per_degree and d < min_dist:
                    min_dist = d
                    best_floor = floor.id
        return best_floor


class ClockCycleFloorSensor(FloorSensor):
    """
    Low-confidence stand-in for real floor sensing: rotates through the
    building's floors, one per period_s seconds of wall-clock time.

    Args:
        period_s: Seconds spent on each floor.
        clock:    Time source returning seconds (defaults to time.time).
    """

    def __init__(self, period_s: float = 60.0, clock: Optional[Callable[[], float]] = None) -> None:
        self.period_s = period_s
        self.clock = clock or time.time

    def detect(self, building: BuildingPlan, position: GeoPoint) -> Optional[str]:
        if not building.floors:
            return None
        slot = int(self.clock() // self.period_s) % len(building.floors)
        return building.floors[slot].id


# ---------------------------------------------------------------------------
# Detector
# ---------------------------------------------------------------------------

class FloorDetector:
    """
    Asks the primary sensor, then the fallback, then defaults to the
    building's first floor.

    Args:
        primary:  Main sensor (usually HotspotFloorSensor).
        fallback: Optional sensor consulted when primary has no answer.
    """

    def __init__(self, primary: FloorSensor, fallback: Optional[FloorSensor] = None) -> None:
        self.primary = primary
        self.fallback = fallback

    def detect_floor(self, building: Optional[BuildingPlan], position: GeoPoint) -> Optional[str]:
        """
        Most likely floor id for position.

        Returns:
            A floor id of building. None only when the building is unknown or
            has no floors.
        """
        if building is None or not building.floors:
            logger.warning("[FloorDetector] No building floors to choose from.")
            return None

        floor_id = self.primary.detect(building, position)
        if floor_id is None and self.fallback is not None:
            floor_id = self.fallback.detect(building, position)
            if floor_id is not None:
                logger.debug(f"[FloorDetector] Fallback sensor chose {floor_id}")
        return floor_id or building.floors[0].id
