# floor_plan.py
# Building catalog store and the GPS ↔ floor-plan pixel mapping.
# The store is an explicit context object: nothing here is module-global.

import json
import logging
import math
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

import cv2
import numpy as np

from .models import (
    AccessibilityFeature,
    AccessibleRoute,
    BuildingPlan,
    Floor,
    GeoPoint,
    IndoorPosition,
)
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Catalog loading
# ---------------------------------------------------------------------------

def load_building_catalog(path: str) -> List[BuildingPlan]:
    """
    Load building plans from a JSON file (a list of building objects).

    Returns:
        List of BuildingPlan; empty if the file is missing or malformed.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        buildings = [BuildingPlan.from_dict(b) for b in data]
    except (OSError, KeyError, TypeError, ValueError) as e:
        logger.error(f"[FloorPlan] Failed to load building catalog from {path}: {e}")
        return []
    logger.info(f"[FloorPlan] Loaded {len(buildings)} buildings from {path}.")
    return buildings


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class FloorPlanStore:
    """
    Holds building plans plus per-floor pixel calibration.

    The image-dimension cache is written once per floor (first measurement)
    and read thereafter; concurrent measurement of the same floor is
    last-writer-wins.

    Args:
        buildings: Initial catalog.
        config:    NavConfig instance for default image dimensions.
    """

    def __init__(self, buildings: Iterable[BuildingPlan] = (), config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self._buildings: Dict[str, BuildingPlan] = {}
        self._dimensions: Dict[str, Tuple[int, int]] = {}
        self._offsets: Dict[str, Tuple[int, int]] = {}
        for building in buildings:
            self.add_building(building)

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def add_building(self, building: BuildingPlan) -> None:
        self._buildings[building.id] = building

    @property
    def buildings(self) -> List[BuildingPlan]:
        return list(self._buildings.values())

    def get_building(self, building_id: str) -> Optional[BuildingPlan]:
        return self._buildings.get(building_id)

    def get_floor(self, building_id: str, floor_id: str) -> Optional[Floor]:
        building = self.get_building(building_id)
        if building is None:
            return None
        for floor in building.floors:
            if floor.id == floor_id:
                return floor
        return None

    # ------------------------------------------------------------------
    # Pixel calibration
    # ------------------------------------------------------------------

    def set_floor_image_dimensions(self, floor_id: str, width: int, height: int) -> None:
        self._dimensions[floor_id] = (int(width), int(height))

    def get_floor_image_dimensions(self, floor_id: str) -> Tuple[int, int]:
        """(width, height) in pixels; the configured default until measured."""
        return self._dimensions.get(
            floor_id,
            (self.config.default_image_width, self.config.default_image_height),
        )

    def measure_floor_image(self, floor_id: str, image_path: str) -> Optional[Tuple[int, int]]:
        """
        Read a floor-plan image and cache its pixel size.

        Returns:
            (width, height), or None if the image could not be read.
        """
        img = cv2.imread(image_path)
        if img is None:
            logger.warning(f"[FloorPlan] Could not read floor image {image_path}; keeping defaults.")
            return None
        height, width = img.shape[:2]
        self.set_floor_image_dimensions(floor_id, width, height)
        logger.info(f"[FloorPlan] Floor {floor_id} image measured: {width}x{height}")
        return width, height

    def set_floor_offset(self, floor_id: str, offset_x: int, offset_y: int) -> None:
        """Local pixel calibration added after the affine mapping."""
        self._offsets[floor_id] = (int(offset_x), int(offset_y))

    def get_floor_offset(self, floor_id: str) -> Tuple[int, int]:
        return self._offsets.get(floor_id, (0, 0))

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def add_accessibility_feature(
        self,
        building_id: str,
        floor_id: str,
        feature_type: str,
        title: str,
        coordinate: GeoPoint,
        description: Optional[str] = None,
    ) -> Optional[AccessibilityFeature]:
        """Attach a new feature to a floor. Returns None if the floor is unknown."""
        floor = self.get_floor(building_id, floor_id)
        if floor is None:
            logger.warning(f"[FloorPlan] Cannot add feature: unknown floor {building_id}/{floor_id}")
            return None
        feature = AccessibilityFeature(
            id=f"feature-{uuid.uuid4().hex[:12]}",
            type=feature_type,
            title=title,
            coordinate=coordinate,
            description=description,
        )
        floor.features.append(feature)
        return feature

    def add_accessible_route(
        self,
        building_id: str,
        floor_id: str,
        name: str,
        points: List[GeoPoint],
        description: Optional[str] = None,
    ) -> Optional[AccessibleRoute]:
        """Attach a new accessible route to a floor. Returns None if the floor is unknown."""
        floor = self.get_floor(building_id, floor_id)
        if floor is None:
            logger.warning(f"[FloorPlan] Cannot add route: unknown floor {building_id}/{floor_id}")
            return None
        route = AccessibleRoute(
            id=f"route-{uuid.uuid4().hex[:12]}",
            name=name,
            points=list(points),
            description=description,
        )
        floor.routes.append(route)
        return route


# ---------------------------------------------------------------------------
# Mapper
# ---------------------------------------------------------------------------

class FloorPlanMapper:
    """
    Affine GPS ↔ pixel transform per building/floor.

    Latitude grows northward while image Y grows downward, so Y is inverted.
    Per-floor offsets are added by the forward mapping and subtracted by the
    inverse, keeping the pair symmetric.

    Args:
        store:  FloorPlanStore with the catalog and calibration.
        config: NavConfig instance (defaults to the store's).
    """

    def __init__(self, store: FloorPlanStore, config: Optional[NavConfig] = None) -> None:
        self.store = store
        self.config = config or store.config

    @staticmethod
    def _bounds(building: BuildingPlan) -> Tuple[float, float, float, float]:
        """(min_lat, min_lon, height_deg, width_deg) of the reference rectangle."""
        ref = building.reference_coordinates
        width = abs(ref.top_right.longitude - ref.top_left.longitude)
        height = abs(ref.top_left.latitude - ref.bottom_left.latitude)
        min_lat = min(ref.top_left.latitude, ref.bottom_left.latitude)
        min_lon = min(ref.top_left.longitude, ref.top_right.longitude)
        return min_lat, min_lon, height, width

    def coordinate_to_floor_position(
        self, coordinate: GeoPoint, building_id: str, floor_id: str
    ) -> Optional[IndoorPosition]:
        """
        Map a GPS coordinate onto a floor plan.

        Out-of-bounds fixes are not an error: they map to the floor's pixel
        centre with out_of_bounds=True.

        Returns:
            IndoorPosition, or None if the building or floor is unknown.
        """
        building = self.store.get_building(building_id)
        floor = self.store.get_floor(building_id, floor_id)
        if building is None or floor is None:
            logger.warning(f"[FloorPlan] Unknown building/floor: {building_id}/{floor_id}")
            return None

        min_lat, min_lon, height, width = self._bounds(building)
        img_w, img_h = self.store.get_floor_image_dimensions(floor_id)
        margin = self.config.bounds_margin_deg

        outside = (
            coordinate.latitude < min_lat - margin
            or coordinate.latitude > min_lat + height + margin
            or coordinate.longitude < min_lon - margin
            or coordinate.longitude > min_lon + width + margin
        )
        if outside or width == 0 or height == 0:
            logger.warning(f"[FloorPlan] Coordinate outside building {building_id}: {coordinate}")
            return IndoorPosition(
                building_id=building_id,
                floor_id=floor_id,
                x=_round_half_up(img_w / 2),
                y=_round_half_up(img_h / 2),
                coordinate=coordinate,
                out_of_bounds=True,
            )

        norm_lat, norm_lon = np.clip(
            [(coordinate.latitude - min_lat) / height, (coordinate.longitude - min_lon) / width],
            0.0, 1.0,
        )
        offset_x, offset_y = self.store.get_floor_offset(floor_id)
        return IndoorPosition(
            building_id=building_id,
            floor_id=floor_id,
            x=_round_half_up(float(norm_lon) * img_w) + offset_x,
            y=_round_half_up((1.0 - float(norm_lat)) * img_h) + offset_y,
            coordinate=coordinate,
        )

    def floor_position_to_coordinate(self, position: IndoorPosition) -> Optional[GeoPoint]:
        """
        Inverse of coordinate_to_floor_position for in-range pixels (no clamping).

        Returns:
            GeoPoint, or None if the building is unknown.
        """
        building = self.store.get_building(position.building_id)
        if building is None:
            logger.warning(f"[FloorPlan] Unknown building: {position.building_id}")
            return None

        min_lat, min_lon, height, width = self._bounds(building)
        img_w, img_h = self.store.get_floor_image_dimensions(position.floor_id)
        offset_x, offset_y = self.store.get_floor_offset(position.floor_id)

        norm_lon = (position.x - offset_x) / img_w
        norm_lat = 1.0 - (position.y - offset_y) / img_h
        return GeoPoint(
            latitude=min_lat + norm_lat * height,
            longitude=min_lon + norm_lon * width,
        )
