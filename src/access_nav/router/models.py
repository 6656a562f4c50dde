# models.py
# Shared data structures and enums used across all modules.

from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set, Tuple


# ---------------------------------------------------------------------------
# Coordinates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GeoPoint:
    """Immutable WGS84 coordinate in decimal degrees."""
    latitude: float
    longitude: float

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}

    @staticmethod
    def from_dict(d: dict) -> "GeoPoint":
        return GeoPoint(float(d["latitude"]), float(d["longitude"]))


@dataclass(frozen=True)
class TrackPoint(GeoPoint):
    """A recorded GPS fix. Optional fields stay None when the document omits them."""
    elevation: Optional[float] = None
    time: Optional[str] = None
    speed: Optional[float] = None
    hdop: Optional[float] = None        # horizontal dilution of precision


@dataclass(frozen=True)
class NearestPoint:
    """Result of a nearest-point search."""
    point: GeoPoint
    distance: float                     # metres
    index: int                          # position in the searched sequence


# ---------------------------------------------------------------------------
# Route-description documents
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Track:
    """A previously recorded accessible path. May be empty."""
    name: str
    points: Tuple[TrackPoint, ...] = ()


@dataclass(frozen=True)
class Waypoint(GeoPoint):
    """A named point of interest. The name doubles as a semantic tag."""
    name: str = ""
    description: Optional[str] = None
    time: Optional[str] = None
    type: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ")


@dataclass(frozen=True)
class GPXMetadata:
    name: Optional[str] = None
    time: Optional[str] = None


@dataclass(frozen=True)
class ParsedRouteDocument:
    """Immutable parser output."""
    tracks: Tuple[Track, ...] = ()
    waypoints: Tuple[Waypoint, ...] = ()
    metadata: GPXMetadata = field(default_factory=GPXMetadata)

    def merge(self, other: "ParsedRouteDocument") -> "ParsedRouteDocument":
        """Concatenate tracks and waypoints; the first document's metadata wins."""
        return ParsedRouteDocument(
            tracks=self.tracks + other.tracks,
            waypoints=self.waypoints + other.waypoints,
            metadata=self.metadata,
        )


# ---------------------------------------------------------------------------
# Buildings and floor plans
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReferenceCoordinates:
    """Four GPS corners approximating the building's rectangle."""
    top_left: GeoPoint
    top_right: GeoPoint
    bottom_left: GeoPoint
    bottom_right: GeoPoint

    @staticmethod
    def from_dict(d: dict) -> "ReferenceCoordinates":
        return ReferenceCoordinates(
            top_left=GeoPoint.from_dict(d["topLeft"]),
            top_right=GeoPoint.from_dict(d["topRight"]),
            bottom_left=GeoPoint.from_dict(d["bottomLeft"]),
            bottom_right=GeoPoint.from_dict(d["bottomRight"]),
        )


@dataclass
class AccessibilityFeature:
    id: str
    type: str                            # "elevator" | "ramp" | "restroom" | "entrance" ...
    title: str
    coordinate: GeoPoint
    description: Optional[str] = None

    @staticmethod
    def from_dict(d: dict) -> "AccessibilityFeature":
        return AccessibilityFeature(
            id=d["id"],
            type=d["type"],
            title=d["title"],
            coordinate=GeoPoint.from_dict(d["coordinate"]),
            description=d.get("description"),
        )


@dataclass
class AccessibleRoute:
    id: str
    name: str
    points: List[GeoPoint]
    description: Optional[str] = None

    @staticmethod
    def from_dict(d: dict) -> "AccessibleRoute":
        return AccessibleRoute(
            id=d["id"],
            name=d["name"],
            points=[GeoPoint.from_dict(p) for p in d.get("points", [])],
            description=d.get("description"),
        )


@dataclass
class Floor:
    id: str
    level: int
    name: str = ""
    features: List[AccessibilityFeature] = field(default_factory=list)
    routes: List[AccessibleRoute] = field(default_factory=list)
    floor_plan_uri: Optional[str] = None
    pixels_per_meter: float = 20.0

    @staticmethod
    def from_dict(d: dict) -> "Floor":
        return Floor(
            id=d["id"],
            level=int(d["level"]),
            name=d.get("name", ""),
            features=[AccessibilityFeature.from_dict(f) for f in d.get("features", [])],
            routes=[AccessibleRoute.from_dict(r) for r in d.get("routes", [])],
            floor_plan_uri=d.get("floorPlanUri"),
            pixels_per_meter=float(d.get("scale", {}).get("pixelsPerMeter", 20.0)),
        )


@dataclass
class BuildingPlan:
    id: str
    name: str
    reference_coordinates: ReferenceCoordinates
    floors: List[Floor] = field(default_factory=list)
    description: Optional[str] = None

    @staticmethod
    def from_dict(d: dict) -> "BuildingPlan":
        return BuildingPlan(
            id=d["id"],
            name=d.get("name", d["id"]),
            reference_coordinates=ReferenceCoordinates.from_dict(d["referenceCoordinates"]),
            floors=[Floor.from_dict(f) for f in d.get("floors", [])],
            description=d.get("description"),
        )


@dataclass(frozen=True)
class IndoorPosition:
    """A position in floor-plan pixel space. Derived per tick, never persisted."""
    building_id: str
    floor_id: str
    x: int
    y: int
    coordinate: Optional[GeoPoint] = None
    out_of_bounds: bool = False         # True → degraded floor-centre fallback

    def to_dict(self) -> dict:
        return {
            "building_id": self.building_id,
            "floor_id": self.floor_id,
            "x": self.x,
            "y": self.y,
            "out_of_bounds": self.out_of_bounds,
        }


@dataclass(frozen=True)
class Hotspot:
    """Floor calibration point. radius is in degrees."""
    latitude: float
    longitude: float
    radius: float


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RouteStep:
    """A single straight leg with its spoken instruction."""
    start_point: GeoPoint
    end_point: GeoPoint
    distance: float                     # metres
    bearing: float                      # degrees [0, 360)
    instruction: str

    def to_dict(self) -> dict:
        return {
            "start_point": self.start_point.to_dict(),
            "end_point": self.end_point.to_dict(),
            "distance": round(self.distance, 2),
            "bearing": round(self.bearing, 1),
            "instruction": self.instruction,
        }


@dataclass(frozen=True)
class NavigationRoute:
    """Immutable once computed; recomputation yields a new instance."""
    origin: GeoPoint
    destination: GeoPoint
    total_distance: float               # metres
    estimated_time_seconds: float
    steps: Tuple[RouteStep, ...]
    is_accessible_route: bool = False
    track_segment: Tuple[GeoPoint, ...] = ()
    legs: Tuple["NavigationRoute", ...] = ()

    def to_dict(self) -> dict:
        return {
            "origin": self.origin.to_dict(),
            "destination": self.destination.to_dict(),
            "total_distance": round(self.total_distance, 2),
            "estimated_time_seconds": round(self.estimated_time_seconds, 1),
            "is_accessible_route": self.is_accessible_route,
            "step_count": len(self.steps),
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass(frozen=True)
class AccessibilityAnnouncement:
    waypoint_id: str
    announcement: str
    feature_type: str = "feature"


# ---------------------------------------------------------------------------
# Navigation status
# ---------------------------------------------------------------------------

class SessionState(Enum):
    IDLE        = "idle"
    NAVIGATING  = "navigating"
    ARRIVED     = "arrived"
    CANCELLED   = "cancelled"


@dataclass
class NavigationSession:
    """Runtime-only state of the single active navigation."""
    destination: GeoPoint
    destination_name: Optional[str] = None
    origin: Optional[GeoPoint] = None
    route: Optional[NavigationRoute] = None
    current_step_index: int = 0
    announced_waypoint_ids: Set[str] = field(default_factory=set)
    last_announcement: Optional[str] = None
    last_announcement_time: Optional[float] = None
    cancelled: bool = False
    pending: Optional[Future] = None    # in-flight route computation


@dataclass
class TickResult:
    """Returned by RouteTracker.tick() on every position sample."""
    state: SessionState
    message: str
    step_index: int = 0
    announcement: Optional[str] = None
    announcement_kind: Optional[str] = None     # "arrival" | "turn" | "feature"
    instruction: Optional[str] = None           # new step's instruction when the step advanced
    distance_to_destination: Optional[float] = None
    indoor_position: Optional[IndoorPosition] = None

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "message": self.message,
            "step_index": self.step_index,
            "announcement": self.announcement,
            "announcement_kind": self.announcement_kind,
            "instruction": self.instruction,
            "distance_to_destination": self.distance_to_destination,
            "indoor_position": self.indoor_position.to_dict() if self.indoor_position else None,
        }
