# route_tracker.py
# State machine that tracks a user's position against an active route.
# Call start() once per destination, then tick() on every position sample.

import logging
import time
from concurrent.futures import Executor
from typing import Callable, Iterable, Optional, Tuple

from ..tts.announcer import AnnouncementSink
from .geo_utils import distance
from .models import (
    GeoPoint,
    NavigationRoute,
    NavigationSession,
    SessionState,
    TickResult,
    Waypoint,
)
from .nav_config import NavConfig
from .route_engine import RouteEngine

logger = logging.getLogger(__name__)

ARRIVAL_MESSAGE = "You have arrived at your destination."


class RouteTracker:
    """
    Owns the single active navigation session.

    States: IDLE → NAVIGATING → ARRIVED → IDLE (via reset()), and
    NAVIGATING → IDLE via cancel().

    Route computation can run on an executor so it never blocks a tick; the
    finished route is installed by the next tick. A session dropped by
    cancel() simply ignores its pending result.

    Usage:
        tracker = RouteTracker(engine, announcer, config, waypoints)
        tracker.start(origin, destination)

        # Inside the position loop:
        result = tracker.tick(current_position)

    Args:
        engine:    RouteEngine used for routes and cues.
        announcer: Sink for spoken output (optional).
        config:    NavConfig instance.
        waypoints: Waypoint pool for nearby-feature announcements.
        executor:  Optional executor for route computation; inline if None.
        clock:     Seconds source for the announcement cooldown.
    """

    def __init__(
        self,
        engine: RouteEngine,
        announcer: Optional[AnnouncementSink] = None,
        config: Optional[NavConfig] = None,
        waypoints: Iterable[Waypoint] = (),
        executor: Optional[Executor] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.engine = engine
        self.announcer = announcer
        self.config = config or engine.config
        self.waypoints: Tuple[Waypoint, ...] = tuple(waypoints)
        self.executor = executor
        self.clock = clock or time.monotonic
        self._state = SessionState.IDLE
        self._session: Optional[NavigationSession] = None

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Optional[NavigationSession]:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._state == SessionState.NAVIGATING

    @property
    def route(self) -> Optional[NavigationRoute]:
        return self._session.route if self._session else None

    @property
    def is_computing(self) -> bool:
        return self._session is not None and self._session.pending is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, origin: GeoPoint, destination: GeoPoint, destination_name: Optional[str] = None) -> bool:
        """
        Begin navigating to destination.

        Returns:
            True when navigating to destination afterwards (including the
            no-op repeat for the same destination), False when rejected.
        """
        if self._state == SessionState.NAVIGATING:
            if self._session is not None and self._session.destination == destination:
                logger.debug("[Tracker] Already navigating to this destination.")
                return True
            logger.warning("[Tracker] Another navigation is active; cancel it first.")
            return False
        if self._state != SessionState.IDLE:
            logger.warning(f"[Tracker] Cannot start from state {self._state.name}; reset first.")
            return False

        session = NavigationSession(destination=destination, destination_name=destination_name, origin=origin)
        if self.executor is not None:
            session.pending = self.executor.submit(self.engine.calculate_accessible_route, origin, destination)
        else:
            session.route = self._compute(origin, destination)
            self._speak(session.route.steps[0].instruction)

        self._session = session
        self._state = SessionState.NAVIGATING
        logger.info(f"[Tracker] Navigation started to {destination_name or destination}.")
        return True

    def cancel(self) -> TickResult:
        """Stop navigating, silence pending speech and return to IDLE."""
        if self._state != SessionState.NAVIGATING or self._session is None:
            return TickResult(state=self._state, message="Navigation is not active.")

        if self.announcer is not None:
            try:
                self.announcer.cancel_all()
            except Exception as e:
                logger.error(f"[Tracker] Failed to cancel announcements: {e}")

        session, self._session = self._session, None
        session.cancelled = True
        if session.pending is not None and not session.pending.done():
            # a running computation still finishes; its result is never read
            session.pending.cancel()
            logger.warning("[Tracker] Discarding in-flight route computation.")
        self._state = SessionState.IDLE
        logger.info("[Tracker] Navigation cancelled.")
        return TickResult(
            state=SessionState.CANCELLED,
            message="Navigation cancelled.",
            step_index=session.current_step_index,
        )

    def reset(self) -> None:
        """Return to IDLE after arrival."""
        if self._state == SessionState.NAVIGATING:
            logger.warning("[Tracker] reset() during navigation; use cancel().")
            return
        self._session = None
        self._state = SessionState.IDLE

    # ------------------------------------------------------------------
    # Core method: call on every position sample
    # ------------------------------------------------------------------

    def tick(self, position: Optional[GeoPoint], now: Optional[float] = None) -> TickResult:
        """
        Advance the session with one position sample.

        Args:
            position: Current fix, or None when no fix is available.
            now:      Sample time in seconds (defaults to the tracker clock).

        Returns:
            TickResult describing state, step and any announcement made.
        """
        if self._state != SessionState.NAVIGATING or self._session is None:
            return TickResult(state=self._state, message="Navigation is not active.")

        session = self._session
        if position is None:
            return TickResult(
                state=self._state,
                message="Waiting for a position fix.",
                step_index=session.current_step_index,
            )

        now = self.clock() if now is None else now
        dist_left = distance(position, session.destination)

        # 1. Arrival, even while the route is still being computed
        if self.engine.has_reached_destination(position, session.destination):
            return self._arrive(session, dist_left, now)

        if not self._install_pending(session):
            return TickResult(
                state=self._state,
                message="Calculating route...",
                step_index=session.current_step_index,
                distance_to_destination=dist_left,
            )
        route = session.route

        # 2. Step progress
        instruction = None
        new_index = self.engine.update_current_step(position, route, session.current_step_index)
        if new_index != session.current_step_index:
            session.current_step_index = new_index
            instruction = route.steps[new_index].instruction
            self._speak(instruction)

        result = TickResult(
            state=self._state,
            message=route.steps[session.current_step_index].instruction,
            step_index=session.current_step_index,
            instruction=instruction,
            distance_to_destination=dist_left,
        )

        # 3. At most one cue per cooldown window: turn first, else nearby feature
        last = session.last_announcement_time
        if last is not None and now - last <= self.config.announcement_cooldown_s:
            return result

        turn = self.engine.generate_turn_announcement(position, route, session.current_step_index)
        if turn and turn != session.last_announcement:
            self._announce(session, turn, now)
            result.announcement, result.announcement_kind = turn, "turn"
            return result

        feature = self.engine.generate_accessibility_announcement(
            position, self.waypoints, session.announced_waypoint_ids
        )
        if feature is not None:
            session.announced_waypoint_ids.add(feature.waypoint_id)
            self._announce(session, feature.announcement, now)
            result.announcement, result.announcement_kind = feature.announcement, "feature"
        return result

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _compute(self, origin: GeoPoint, destination: GeoPoint) -> NavigationRoute:
        route = self.engine.calculate_accessible_route(origin, destination)
        if not route.is_accessible_route:
            logger.warning("[Tracker] No accessible route found, using direct path.")
        return route

    def _arrive(self, session: NavigationSession, dist_left: float, now: float) -> TickResult:
        self._state = SessionState.ARRIVED
        if session.route is not None:
            session.current_step_index = max(session.current_step_index, len(session.route.steps) - 1)
        elif session.pending is not None:
            session.pending.cancel()
            session.pending = None
            logger.info("[Tracker] Arrived before the route was ready; discarding computation.")
        self._announce(session, ARRIVAL_MESSAGE, now)
        logger.info("[Tracker] Destination reached.")
        return TickResult(
            state=self._state,
            message=ARRIVAL_MESSAGE,
            step_index=session.current_step_index,
            announcement=ARRIVAL_MESSAGE,
            announcement_kind="arrival",
            distance_to_destination=dist_left,
        )

    def _install_pending(self, session: NavigationSession) -> bool:
        """True once the session has a route."""
        if session.route is not None:
            return True
        future = session.pending
        if future is None or not future.done():
            return False

        session.pending = None
        try:
            session.route = future.result()
        except Exception as e:
            logger.error(f"[Tracker] Route computation failed ({e}); using direct route.")
            session.route = self.engine.calculate_route(session.origin, session.destination)
        logger.info(f"[Tracker] Route ready — {len(session.route.steps)} steps.")
        self._speak(session.route.steps[0].instruction)
        return True

    def _announce(self, session: NavigationSession, text: str, now: float) -> None:
        session.last_announcement = text
        session.last_announcement_time = now
        self._speak(text)

    def _speak(self, text: str) -> None:
        if self.announcer is None:
            return
        try:
            self.announcer.speak(text)
        except Exception as e:
            logger.error(f"[Tracker] Announcement failed: {e}")
