# feature_finder.py
# Finds accessibility features (elevators, ramps, restrooms ...) among the
# waypoints of the loaded route documents. Waypoint names are semantic tags,
# e.g. "elevator_wheelchair_accessible", so categories match by substring.
#
# Usage:
#   finder = FeatureFinder(doc.waypoints)
#   result = finder.find_nearest(GeoPoint(-1.9306, 30.1529), category="elevator")
#   if result:
#       nav.start_navigation(my_position, result.waypoint)

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .geo_utils import haversine_distance
from .models import GeoPoint, Waypoint

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Feature categories → name keywords
# ---------------------------------------------------------------------------

# Checked in order; the first category with a matching keyword wins
CATEGORY_MAP: Dict[str, List[str]] = {
    "elevator":   ["elevator", "lift"],
    "ramp":       ["ramp"],
    "restroom":   ["restroom", "bathroom", "toilet"],
    "entrance":   ["entrance"],
    "exit":       ["exit"],
    "wheelchair": ["wheelchair"],
    "parking":    ["parking"],
}

GENERIC_FEATURE = "feature"


def infer_feature_type(name: str) -> str:
    """Category of a waypoint name by substring match, or 'feature'."""
    lowered = (name or "").lower()
    for category, keywords in CATEGORY_MAP.items():
        if any(k in lowered for k in keywords):
            return category
    return GENERIC_FEATURE


def describe_feature(feature_type: str, name: str, description: Optional[str] = None) -> str:
    """Spoken sentence announcing a nearby feature."""
    if feature_type == "elevator":
        text = f"Elevator nearby. {name}."
    elif feature_type == "ramp":
        text = f"Accessible ramp nearby. {name}."
    elif feature_type == "restroom":
        text = f"Accessible restroom nearby. {name}."
    elif feature_type in ("entrance", "exit"):
        text = f"Accessible {feature_type} nearby. {name}."
    elif feature_type == "wheelchair":
        text = f"Wheelchair accessible feature nearby. {name}."
    else:
        text = f"Accessibility feature nearby. {name}."
    if description:
        text += f" {description}"
    return text


def waypoint_id(point: GeoPoint) -> str:
    """Stable identity of a waypoint for announcement dedup."""
    return f"{point.latitude:.6f},{point.longitude:.6f}"


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass
class FeatureResult:
    """A waypoint that matched a category query."""
    waypoint: Waypoint
    category: str
    distance_m: float          # distance from the user (metres)

    def __str__(self) -> str:
        return f"{self.waypoint.display_name} ({self.category}) — {int(self.distance_m)} m away"


# ---------------------------------------------------------------------------
# Main class
# ---------------------------------------------------------------------------

class FeatureFinder:
    """
    Queries the merged waypoint pool by accessibility category.

    Args:
        waypoints: Waypoints of the loaded route documents.
    """

    def __init__(self, waypoints: Iterable[Waypoint] = ()) -> None:
        self.waypoints: Tuple[Waypoint, ...] = tuple(waypoints)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find_nearest(
        self,
        position: GeoPoint,
        category: str,
        radius_m: Optional[float] = None,
    ) -> Optional[FeatureResult]:
        """
        Closest waypoint of the category.

        Returns:
            FeatureResult, or None if nothing matches.
        """
        results = self.find_all(position, category, radius_m)
        return results[0] if results else None

    def find_all(
        self,
        position: GeoPoint,
        category: str,
        radius_m: Optional[float] = None,
    ) -> List[FeatureResult]:
        """
        All waypoints of the category, nearest first.

        Args:
            position:  Current position.
            category:  A CATEGORY_MAP key.
            radius_m:  Distance filter in metres. None = unlimited.
        """
        category = category.lower().strip()
        if category not in CATEGORY_MAP:
            logger.warning(f"[FeatureFinder] Unknown category: '{category}'")
            logger.info(f"[FeatureFinder] Valid categories: {self.list_categories()}")
            return []

        results: List[FeatureResult] = []
        for wp in self.waypoints:
            if infer_feature_type(wp.name) != category:
                continue
            dist = haversine_distance(position.latitude, position.longitude, wp.latitude, wp.longitude)
            if radius_m is not None and dist > radius_m:
                continue
            results.append(FeatureResult(waypoint=wp, category=category, distance_m=dist))

        results.sort(key=lambda r: r.distance_m)
        logger.info(f"[FeatureFinder] {len(results)} '{category}' features found.")
        return results

    def find_by_name(self, name: str) -> Optional[Waypoint]:
        """Exact name match, ignoring case and '_' vs ' '."""
        key = name.replace("_", " ").strip().lower()
        for wp in self.waypoints:
            if wp.display_name.strip().lower() == key:
                return wp
        return None

    def list_categories(self) -> List[str]:
        return sorted(CATEGORY_MAP.keys())
