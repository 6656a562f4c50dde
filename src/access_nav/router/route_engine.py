# route_engine.py
# Builds walking routes that prefer previously recorded accessible tracks,
# tracks step progress and phrases the spoken cues.
# Returns immutable NavigationRoute objects.

import logging
from dataclasses import replace
from typing import AbstractSet, Iterable, Optional, Sequence, Tuple

import numpy as np

from .feature_finder import describe_feature, infer_feature_type, waypoint_id
from .geo_utils import (
    bearing,
    distance,
    get_direction_name,
    get_turn_instruction,
    haversine_many,
    nearest_point,
)
from .models import (
    AccessibilityAnnouncement,
    GeoPoint,
    NavigationRoute,
    RouteStep,
    Track,
    Waypoint,
)
from .nav_config import NavConfig

logger = logging.getLogger(__name__)

TO_TRACK_SUFFIX = " to reach the accessible route"
ALONG_TRACK_SUFFIX = " along the accessible route"
TO_DESTINATION_SUFFIX = " to reach your destination"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _describe_distance(meters: float) -> str:
    if meters < 10:
        return "a few steps"
    if meters < 100:
        return f"about {int(meters / 10 + 0.5) * 10} meters"
    return f"about {int(meters / 100 + 0.5) * 100} meters"


def generate_step_instruction(distance_m: float, bearing_deg: float, is_first: bool) -> str:
    """'Head north for about 30 meters' / 'Continue east for a few steps'."""
    verb = "Head" if is_first else "Continue"
    return f"{verb} {get_direction_name(bearing_deg)} for {_describe_distance(distance_m)}"


def _relabel(route: NavigationRoute, suffix: str) -> NavigationRoute:
    steps = tuple(replace(s, instruction=s.instruction + suffix) for s in route.steps)
    return replace(route, steps=steps)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class RouteEngine:
    """
    Route composition and progress logic.

    The track pool is flattened once into numpy arrays, so the nearest
    track point scan over every recorded point is a single vector operation.

    Args:
        tracks: Recorded accessible tracks (from the parsed documents).
        config: NavConfig instance.
    """

    def __init__(self, tracks: Iterable[Track] = (), config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self.set_tracks(tracks)

    def set_tracks(self, tracks: Iterable[Track]) -> None:
        """Replace the track pool."""
        self.tracks: Tuple[Track, ...] = tuple(tracks)
        lats, lons, owners, indices = [], [], [], []
        for t_idx, track in enumerate(self.tracks):
            for p_idx, point in enumerate(track.points):
                lats.append(point.latitude)
                lons.append(point.longitude)
                owners.append(t_idx)
                indices.append(p_idx)
        self._lats = np.asarray(lats, dtype=float)
        self._lons = np.asarray(lons, dtype=float)
        self._owners = np.asarray(owners, dtype=int)
        self._indices = np.asarray(indices, dtype=int)

    # ------------------------------------------------------------------
    # Route construction
    # ------------------------------------------------------------------

    def calculate_route(self, origin: GeoPoint, destination: GeoPoint) -> NavigationRoute:
        """One-leg direct route."""
        dist = distance(origin, destination)
        brg = bearing(origin, destination)
        step = RouteStep(
            start_point=origin,
            end_point=destination,
            distance=dist,
            bearing=brg,
            instruction=generate_step_instruction(dist, brg, is_first=True),
        )
        return NavigationRoute(
            origin=origin,
            destination=destination,
            total_distance=dist,
            estimated_time_seconds=dist / self.config.walking_speed_mps,
            steps=(step,),
        )

    def calculate_complex_route(
        self, origin: GeoPoint, destination: GeoPoint, waypoints: Sequence[GeoPoint] = ()
    ) -> NavigationRoute:
        """Multi-leg route through waypoints in the given order; one step per pair of distinct points."""
        if not waypoints:
            return self.calculate_route(origin, destination)

        points = [origin, *waypoints, destination]
        steps = []
        total = 0.0
        for start, end in zip(points, points[1:]):
            dist = distance(start, end)
            if dist == 0.0:
                # repeated point, no heading to give
                continue
            brg = bearing(start, end)
            steps.append(RouteStep(
                start_point=start,
                end_point=end,
                distance=dist,
                bearing=brg,
                instruction=generate_step_instruction(dist, brg, is_first=not steps),
            ))
            total += dist

        if not steps:
            return self.calculate_route(origin, destination)

        return NavigationRoute(
            origin=origin,
            destination=destination,
            total_distance=total,
            estimated_time_seconds=total / self.config.walking_speed_mps,
            steps=tuple(steps),
        )

    def _nearest_track_point(self, position: GeoPoint) -> Optional[Tuple[int, int, float]]:
        """(track index, point index, metres) of the pool point nearest position."""
        if self._lats.size == 0:
            return None
        dists = haversine_many(position.latitude, position.longitude, self._lats, self._lons)
        if np.all(np.isnan(dists)):
            return None
        k = int(np.nanargmin(dists))
        return int(self._owners[k]), int(self._indices[k]), float(dists[k])

    def calculate_accessible_route(self, origin: GeoPoint, destination: GeoPoint) -> NavigationRoute:
        """
        Route that follows the recorded track nearest the user.

        Legs: origin → nearest track point, along the track to the point
        nearest the destination, then on to the destination. Falls back to
        the direct route (is_accessible_route=False) when no track has points.
        """
        nearest = self._nearest_track_point(origin)
        if nearest is None:
            logger.warning("[RouteEngine] No accessible track available; using direct route.")
            return self.calculate_route(origin, destination)

        track_idx, start_idx, dist_to_track = nearest
        track = self.tracks[track_idx]
        end_idx = nearest_point(destination, track.points).index

        if start_idx <= end_idx:
            segment = tuple(track.points[start_idx:end_idx + 1])
        else:
            segment = tuple(reversed(track.points[end_idx:start_idx + 1]))

        to_track = _relabel(self.calculate_route(origin, segment[0]), TO_TRACK_SUFFIX)
        along = _relabel(
            self.calculate_complex_route(segment[0], segment[-1], segment[1:-1]),
            ALONG_TRACK_SUFFIX,
        )
        to_dest = _relabel(self.calculate_route(segment[-1], destination), TO_DESTINATION_SUFFIX)
        legs = (to_track, along, to_dest)
        # a leg that collapses to a point (origin on the track, one-point
        # segment) has no heading; its zero-length step is left out
        steps = tuple(step for leg in legs for step in leg.steps if step.distance > 0.0)
        if not steps:
            steps = self.calculate_route(origin, destination).steps

        logger.info(
            f"[RouteEngine] Following track '{track.name}' "
            f"(points {start_idx}→{end_idx}, {dist_to_track:.0f} m from user)."
        )
        return NavigationRoute(
            origin=origin,
            destination=destination,
            total_distance=sum(leg.total_distance for leg in legs),
            estimated_time_seconds=sum(leg.estimated_time_seconds for leg in legs),
            steps=steps,
            is_accessible_route=True,
            track_segment=segment,
            legs=legs,
        )

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def update_current_step(self, position: GeoPoint, route: NavigationRoute, current_index: int) -> int:
        """
        Step index after this position sample. Never decreases.

        Advances by one when the position is within step_advance_threshold_m
        of the current step's end, or jumps to a later step whose end is
        nearer than the current step's end and within the same radius.
        """
        last = len(route.steps) - 1
        if last < 0 or current_index >= last:
            return current_index
        current_index = max(current_index, 0)

        threshold = self.config.step_advance_threshold_m
        current_end = distance(position, route.steps[current_index].end_point)

        best_index: Optional[int] = None
        best_dist = current_end
        for j in range(current_index + 1, last + 1):
            d = distance(position, route.steps[j].end_point)
            if d < threshold and d < best_dist:
                best_index, best_dist = j, d

        if best_index is not None:
            return min(best_index, last)
        if current_end < threshold:
            return current_index + 1
        return current_index

    def has_reached_destination(self, position: GeoPoint, destination: GeoPoint) -> bool:
        return distance(position, destination) < self.config.arrival_threshold_m

    # ------------------------------------------------------------------
    # Announcements
    # ------------------------------------------------------------------

    def generate_turn_announcement(
        self, position: GeoPoint, route: NavigationRoute, step_index: int
    ) -> Optional[str]:
        """
        Upcoming-turn cue, or None when no cue is warranted.

        The turn is the bearing change from the current step to the next;
        cues are given in the 100 / 50 / 20 m bands before the next step
        starts. On the last step, cues announce the approaching destination.
        """
        if not route.steps:
            return None
        step_index = max(step_index, 0)
        far, mid, near, minimum = self.config.turn_announcement_distances_m

        if step_index >= len(route.steps) - 1:
            d = distance(position, route.destination)
            if self.config.destination_near_m < d <= self.config.destination_approach_m:
                return f"Your destination is {int(self.config.destination_approach_m)} meters ahead."
            if d <= self.config.destination_near_m:
                return "Your destination is just ahead."
            return None

        current = route.steps[step_index]
        nxt = route.steps[step_index + 1]
        d = distance(position, nxt.start_point)
        if d > far or d <= minimum:
            return None

        turn = get_turn_instruction(nxt.bearing - current.bearing)
        if turn == "Go straight":
            return None

        direction = get_direction_name(nxt.bearing)
        if d > mid:
            return f"In {int(far)} meters, {turn.lower()}, towards {direction}."
        if d > near:
            return f"In {int(mid)} meters, {turn.lower()}, towards {direction}."
        return f"{turn} now, towards {direction}."

    def generate_accessibility_announcement(
        self,
        position: GeoPoint,
        waypoints: Iterable[GeoPoint],
        already_announced: AbstractSet[str],
    ) -> Optional[AccessibilityAnnouncement]:
        """
        Announcement for the nearest not-yet-announced waypoint within
        feature_announcement_radius_m. The caller records the returned
        waypoint_id in already_announced.
        """
        best: Optional[GeoPoint] = None
        best_dist = float("inf")
        for wp in waypoints:
            if waypoint_id(wp) in already_announced:
                continue
            d = distance(position, wp)
            if d <= self.config.feature_announcement_radius_m and d < best_dist:
                best, best_dist = wp, d

        if best is None:
            return None

        if isinstance(best, Waypoint):
            name, description = best.display_name, best.description
            feature_type = infer_feature_type(best.name)
        else:
            name, description, feature_type = "Point of interest", None, "feature"

        direction = get_direction_name(bearing(position, best))
        text = describe_feature(feature_type, name)
        text += f" {int(best_dist + 0.5)} meters {direction} of you."
        if description:
            text += f" {description}"

        return AccessibilityAnnouncement(
            waypoint_id=waypoint_id(best),
            announcement=text,
            feature_type=feature_type,
        )
