# navigator.py
# Public entry point for the navigation system.
# Owns no business logic, it delegates to the specialist modules.

import logging
from concurrent.futures import Executor
from typing import Dict, Iterable, List, Optional, Tuple

from ..tts.announcer import AnnouncementSink
from .feature_finder import FeatureFinder, FeatureResult
from .floor_detector import ClockCycleFloorSensor, FloorDetector, FloorSensor, HotspotFloorSensor
from .floor_plan import FloorPlanMapper, FloorPlanStore, load_building_catalog
from .gpx_parser import load_route_documents
from .models import (
    BuildingPlan,
    GeoPoint,
    Hotspot,
    IndoorPosition,
    NavigationRoute,
    SessionState,
    TickResult,
    Track,
    Waypoint,
)
from .nav_config import NavConfig
from .nav_logger import NavLogger
from .route_engine import RouteEngine
from .route_tracker import RouteTracker

logger = logging.getLogger(__name__)


class NavigationSystem:
    """
    High-level navigation facade.

    Typical lifecycle:
        nav = NavigationSystem([gpx_text], buildings, FLOOR_HOTSPOTS)
        nav.start_navigation(GeoPoint(-1.93094, 30.15287), GeoPoint(-1.93062, 30.15294))

        # GPS loop:
        result = nav.update(GeoPoint(lat, lon))

    Feature usage:
        nav.navigate_to_nearest(my_position, "elevator")

    Args:
        documents:      GPX document texts with the recorded accessible tracks.
        buildings:      Building catalog.
        hotspots:       floor_id → calibration hotspots for floor detection.
        config:         Optional NavConfig; defaults to NavConfig().
        announcer:      Sink for spoken cues (optional).
        executor:       Optional executor for route computation.
        floor_fallback: Sensor used when no hotspot matches; defaults to
                        ClockCycleFloorSensor.
    """

    def __init__(
        self,
        documents: Iterable[str] = (),
        buildings: Iterable[BuildingPlan] = (),
        hotspots: Optional[Dict[str, List[Hotspot]]] = None,
        config: Optional[NavConfig] = None,
        announcer: Optional[AnnouncementSink] = None,
        executor: Optional[Executor] = None,
        floor_fallback: Optional[FloorSensor] = None,
    ) -> None:
        self.config = config or NavConfig()
        self.announcer = announcer

        # Load route documents once at startup
        self._document = load_route_documents(documents)

        # Specialist modules
        self._store    = FloorPlanStore(buildings, self.config)
        self._mapper   = FloorPlanMapper(self._store, self.config)
        self._detector = FloorDetector(
            HotspotFloorSensor(hotspots or {}, self.config),
            floor_fallback or ClockCycleFloorSensor(self.config.floor_cycle_period_s),
        )
        self._engine   = RouteEngine(self._document.tracks, self.config)
        self._finder   = FeatureFinder(self._document.waypoints)
        self._tracker  = RouteTracker(
            self._engine,
            announcer=announcer,
            config=self.config,
            waypoints=self._document.waypoints,
            executor=executor,
        )
        self._logger   = NavLogger(self.config)

        self._building_id: Optional[str] = None
        self._saved_route: Optional[NavigationRoute] = None

    @classmethod
    def from_files(
        cls,
        gpx_paths: Iterable[str],
        catalog_path: Optional[str] = None,
        **kwargs,
    ) -> "NavigationSystem":
        """Build a system from GPX files and an optional JSON building catalog."""
        documents = []
        for path in gpx_paths:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    documents.append(f.read())
            except OSError as e:
                logger.error(f"[Nav] Cannot read GPX file {path}: {e}")
        buildings = load_building_catalog(catalog_path) if catalog_path else []
        return cls(documents, buildings, **kwargs)

    # ------------------------------------------------------------------
    # Navigation control
    # ------------------------------------------------------------------

    def start_navigation(
        self, origin: GeoPoint, destination: GeoPoint, destination_name: Optional[str] = None
    ) -> Tuple[bool, str]:
        """
        Calculate a route and begin tracking.

        Args:
            origin:           Starting coordinate.
            destination:      Target coordinate.
            destination_name: Spoken/display name of the target.

        Returns:
            (success, message)
        """
        logger.info(f"[Nav] Calculating route: {origin} → {destination}")
        if not self._tracker.start(origin, destination, destination_name):
            msg = "Navigation already in progress."
            logger.warning(f"[Nav] {msg}")
            return False, msg

        route = self._tracker.route
        if route is None:
            return True, "Calculating route..."

        self._save_route(route)
        first_instruction = route.steps[0].instruction
        logger.info(f"[Nav] Route ready — {len(route.steps)} steps. First: {first_instruction}")
        return True, f"Route ready. {len(route.steps)} steps."

    def select_destination(
        self, origin: GeoPoint, destination: GeoPoint, destination_name: Optional[str] = None
    ) -> Tuple[bool, str]:
        """Replace whatever session exists with a new one to destination."""
        if self._tracker.state == SessionState.NAVIGATING:
            self._tracker.cancel()
        elif self._tracker.state == SessionState.ARRIVED:
            self._tracker.reset()
        return self.start_navigation(origin, destination, destination_name)

    def stop_navigation(self) -> TickResult:
        """Forcibly end the current navigation session."""
        result = self._tracker.cancel()
        self._saved_route = None
        logger.info("[Nav] Navigation stopped by user.")
        return result

    def finish_navigation(self) -> None:
        """Acknowledge arrival so a new navigation can start."""
        self._tracker.reset()
        self._saved_route = None

    # ------------------------------------------------------------------
    # Feature navigation
    # ------------------------------------------------------------------

    def navigate_to_waypoint(self, origin: GeoPoint, name: str) -> Tuple[bool, str, Optional[Waypoint]]:
        """
        Navigate to a recorded waypoint by name.

        Returns:
            (success, message, waypoint); waypoint is None when not found.
        """
        waypoint = self._finder.find_by_name(name)
        if waypoint is None:
            msg = f"No waypoint named '{name}'."
            logger.warning(f"[Nav] {msg}")
            return False, msg, None

        success, msg = self.select_destination(origin, waypoint, waypoint.display_name)
        return success, msg, waypoint

    def navigate_to_nearest(
        self,
        origin: GeoPoint,
        category: str,
        radius_m: Optional[float] = None,
    ) -> Tuple[bool, str, Optional[FeatureResult]]:
        """
        Find the nearest feature of a category and navigate to it.

        Args:
            origin:    Current position.
            category:  'elevator', 'entrance', 'exit', 'parking', 'ramp',
                       'restroom', 'wheelchair'
            radius_m:  Only search within this distance (None = unlimited).

        Returns:
            (success, message, feature_result)
        """
        feature = self._finder.find_nearest(origin, category, radius_m=radius_m)
        if not feature:
            msg = f"No '{category}' feature found nearby."
            logger.warning(f"[Nav] {msg}")
            return False, msg, None

        logger.info(f"[Nav] Target: {feature}")
        success, msg = self.select_destination(origin, feature.waypoint, feature.waypoint.display_name)
        return success, msg, feature

    def find_nearby(
        self,
        position: GeoPoint,
        category: str,
        radius_m: Optional[float] = None,
    ) -> List[FeatureResult]:
        """All features of the category, nearest first (does not navigate)."""
        return self._finder.find_all(position, category, radius_m)

    def list_feature_categories(self) -> List[str]:
        return self._finder.list_categories()

    # ------------------------------------------------------------------
    # Buildings
    # ------------------------------------------------------------------

    def enter_building(self, building_id: str) -> bool:
        """Attach indoor positions to subsequent updates."""
        if self._store.get_building(building_id) is None:
            logger.warning(f"[Nav] Unknown building: {building_id}")
            return False
        self._building_id = building_id
        logger.info(f"[Nav] Entered building {building_id}.")
        return True

    def leave_building(self) -> None:
        self._building_id = None

    def locate(self, position: GeoPoint, building_id: Optional[str] = None) -> Optional[IndoorPosition]:
        """
        Floor and pixel position of a fix inside a building.

        Returns:
            IndoorPosition, or None if no building is given/entered or known.
        """
        building_id = building_id or self._building_id
        if building_id is None:
            return None
        building = self._store.get_building(building_id)
        floor_id = self._detector.detect_floor(building, position)
        if floor_id is None:
            return None
        return self._mapper.coordinate_to_floor_position(position, building_id, floor_id)

    # ------------------------------------------------------------------
    # GPS update: call this on every position fix
    # ------------------------------------------------------------------

    def update(self, position: Optional[GeoPoint], now: Optional[float] = None) -> TickResult:
        """
        Process a new GPS position and return the current navigation status.

        Args:
            position: Current geographic coordinate, or None without a fix.
            now:      Sample time in seconds (defaults to the tracker clock).

        Returns:
            TickResult with state, message, step and announcement info.
        """
        result = self._tracker.tick(position, now)

        route = self._tracker.route
        if route is not None and route is not self._saved_route:
            self._save_route(route)

        if position is not None and self._building_id is not None:
            result.indoor_position = self.locate(position)

        self._logger.log_event(result, position)
        return result

    # ------------------------------------------------------------------
    # Convenience read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._tracker.state

    @property
    def is_active(self) -> bool:
        return self._tracker.is_active

    @property
    def route(self) -> Optional[NavigationRoute]:
        return self._tracker.route

    @property
    def current_building(self) -> Optional[BuildingPlan]:
        return self._store.get_building(self._building_id) if self._building_id else None

    @property
    def tracks(self) -> Tuple[Track, ...]:
        return self._document.tracks

    @property
    def waypoints(self) -> Tuple[Waypoint, ...]:
        return self._document.waypoints

    @property
    def floor_plans(self) -> FloorPlanStore:
        return self._store

    @property
    def remaining_steps(self) -> int:
        route = self._tracker.route
        session = self._tracker.session
        if route is None or session is None:
            return 0
        return len(route.steps) - session.current_step_index - 1

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _save_route(self, route: NavigationRoute) -> None:
        self._saved_route = route
        self._logger.save_route(route)
