import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from access_nav.router.models import GeoPoint, SessionState, Waypoint
from access_nav.router.route_engine import RouteEngine
from access_nav.router.route_tracker import ARRIVAL_MESSAGE, RouteTracker
from access_nav.tts.announcer import ConsoleAnnouncer


ORIGIN = GeoPoint(0.001, 0.0002)
DESTINATION = GeoPoint(0.003, 0.0002)


@pytest.fixture
def tracker(engine, console):
    return RouteTracker(engine, console)


class FixedTurnEngine(RouteEngine):
    """Always has the same turn to announce."""

    def generate_turn_announcement(self, position, route, step_index):
        return "Turn left now, towards west."


class BlockingEngine(RouteEngine):
    """Route computation waits until released."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.release = threading.Event()

    def calculate_accessible_route(self, origin, destination):
        self.release.wait(timeout=5)
        return super().calculate_accessible_route(origin, destination)


class FailingEngine(RouteEngine):
    def calculate_accessible_route(self, origin, destination):
        raise RuntimeError("boom")


class BrokenAnnouncer(ConsoleAnnouncer):
    def speak(self, text):
        raise RuntimeError("no audio device")

    def cancel_all(self):
        raise RuntimeError("no audio device")


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

def test_start_from_idle(tracker, console):
    assert tracker.state == SessionState.IDLE
    assert tracker.start(ORIGIN, DESTINATION)
    assert tracker.state == SessionState.NAVIGATING
    assert tracker.route.is_accessible_route
    assert console.history == [tracker.route.steps[0].instruction]


def test_start_same_destination_is_noop(tracker):
    tracker.start(ORIGIN, DESTINATION)
    route = tracker.route
    assert tracker.start(ORIGIN, DESTINATION)
    assert tracker.route is route


def test_start_other_destination_is_rejected(tracker):
    tracker.start(ORIGIN, DESTINATION)
    assert not tracker.start(ORIGIN, GeoPoint(0.004, 0.0))
    assert tracker.session.destination == DESTINATION


def test_tick_without_session(tracker):
    result = tracker.tick(ORIGIN)
    assert result.state == SessionState.IDLE
    assert result.announcement is None


def test_tick_without_position_is_noop(tracker, console):
    tracker.start(ORIGIN, DESTINATION)
    result = tracker.tick(None, now=0.0)
    assert result.state == SessionState.NAVIGATING
    assert result.step_index == 0
    assert result.announcement is None
    assert len(console.history) == 1


def test_step_advance_speaks_instruction(tracker, console):
    tracker.start(ORIGIN, DESTINATION)
    result = tracker.tick(GeoPoint(0.001, 0.0), now=0.0)
    assert result.step_index == 1
    assert result.instruction == tracker.route.steps[1].instruction
    assert console.history[-1] == result.instruction


def test_arrival(tracker, console):
    tracker.start(ORIGIN, DESTINATION)
    result = tracker.tick(DESTINATION, now=0.0)
    assert result.state == SessionState.ARRIVED
    assert result.announcement == ARRIVAL_MESSAGE
    assert result.announcement_kind == "arrival"
    assert result.step_index == len(tracker.route.steps) - 1
    assert console.history[-1] == ARRIVAL_MESSAGE


def test_arrived_requires_reset(tracker):
    tracker.start(ORIGIN, DESTINATION)
    tracker.tick(DESTINATION, now=0.0)
    assert not tracker.start(ORIGIN, GeoPoint(0.004, 0.0))

    tracker.reset()
    assert tracker.state == SessionState.IDLE
    assert tracker.start(ORIGIN, GeoPoint(0.004, 0.0))


def test_reset_is_ignored_while_navigating(tracker):
    tracker.start(ORIGIN, DESTINATION)
    tracker.reset()
    assert tracker.state == SessionState.NAVIGATING


def test_cancel(tracker, console):
    tracker.start(ORIGIN, DESTINATION)
    result = tracker.cancel()
    assert result.state == SessionState.CANCELLED
    assert tracker.state == SessionState.IDLE
    assert tracker.session is None
    assert console.cancel_count == 1

    after = tracker.tick(ORIGIN)
    assert after.state == SessionState.IDLE
    assert after.announcement is None


def test_cancel_without_session(tracker, console):
    assert tracker.cancel().state == SessionState.IDLE
    assert console.cancel_count == 0


# ---------------------------------------------------------------------------
# Announcement rules
# ---------------------------------------------------------------------------

def test_feature_announcements_respect_cooldown(console):
    waypoints = [
        Waypoint(0.0005, 0.0001, name="elevator_east"),
        Waypoint(0.0005, -0.0002, name="restroom_west"),
    ]
    tracker = RouteTracker(RouteEngine(), console, waypoints=waypoints)
    tracker.start(GeoPoint(0, 0), GeoPoint(0.002, 0))
    here = GeoPoint(0.0005, 0.0)

    first = tracker.tick(here, now=100.0)
    assert first.announcement_kind == "feature"
    assert first.announcement.startswith("Elevator nearby. elevator east.")

    assert tracker.tick(here, now=105.0).announcement is None

    second = tracker.tick(here, now=111.0)
    assert second.announcement.startswith("Accessible restroom nearby. restroom west.")

    assert tracker.tick(here, now=122.0).announcement is None
    assert tracker.session.announced_waypoint_ids == {"0.000500,0.000100", "0.000500,-0.000200"}


def test_turn_wins_and_identical_turn_is_suppressed(console):
    waypoints = [Waypoint(0.0005, 0.0001, name="ramp_east")]
    tracker = RouteTracker(FixedTurnEngine(), console, waypoints=waypoints)
    tracker.start(GeoPoint(0, 0), GeoPoint(0.002, 0))
    here = GeoPoint(0.0005, 0.0)

    first = tracker.tick(here, now=0.0)
    assert first.announcement_kind == "turn"

    # Same turn text again: the nearby feature gets the slot instead
    second = tracker.tick(here, now=11.0)
    assert second.announcement_kind == "feature"

    third = tracker.tick(here, now=22.0)
    assert third.announcement_kind == "turn"


def test_announcer_failures_do_not_break_navigation(engine):
    tracker = RouteTracker(engine, BrokenAnnouncer())
    assert tracker.start(ORIGIN, DESTINATION)
    assert tracker.tick(GeoPoint(0.001, 0.0), now=0.0).step_index == 1
    assert tracker.cancel().state == SessionState.CANCELLED


# ---------------------------------------------------------------------------
# Background route computation
# ---------------------------------------------------------------------------

def test_route_computed_on_executor(straight_track, console):
    engine = BlockingEngine([straight_track])
    with ThreadPoolExecutor(max_workers=1) as executor:
        tracker = RouteTracker(engine, console, executor=executor)
        assert tracker.start(ORIGIN, DESTINATION)
        assert tracker.is_computing
        assert tracker.tick(ORIGIN, now=0.0).message == "Calculating route..."

        engine.release.set()
        tracker.session.pending.result(timeout=5)
        tracker.tick(ORIGIN, now=1.0)

        assert not tracker.is_computing
        assert tracker.route.is_accessible_route
        assert console.history[0] == tracker.route.steps[0].instruction


def test_cancelled_computation_is_discarded(straight_track, console):
    engine = BlockingEngine([straight_track])
    other = GeoPoint(0.004, 0.0)
    with ThreadPoolExecutor(max_workers=1) as executor:
        tracker = RouteTracker(engine, console, executor=executor)
        tracker.start(ORIGIN, DESTINATION)
        stale = tracker.session.pending
        tracker.cancel()

        assert tracker.start(ORIGIN, other)
        engine.release.set()
        tracker.session.pending.result(timeout=5)
        tracker.tick(ORIGIN, now=0.0)

        assert tracker.route.destination == other
        assert stale.done()


def test_failed_computation_falls_back_to_direct_route(console):
    with ThreadPoolExecutor(max_workers=1) as executor:
        tracker = RouteTracker(FailingEngine(), console, executor=executor)
        tracker.start(ORIGIN, DESTINATION)
        with pytest.raises(RuntimeError):
            tracker.session.pending.result(timeout=5)
        tracker.tick(ORIGIN, now=0.0)

        assert not tracker.route.is_accessible_route
        assert len(tracker.route.steps) == 1


def test_arrival_while_route_is_computing(straight_track, console):
    engine = BlockingEngine([straight_track])
    with ThreadPoolExecutor(max_workers=1) as executor:
        tracker = RouteTracker(engine, console, executor=executor)
        tracker.start(ORIGIN, DESTINATION)
        assert tracker.is_computing

        result = tracker.tick(GeoPoint(0.00302, 0.0002), now=0.0)
        engine.release.set()

    assert result.state == SessionState.ARRIVED
    assert result.announcement_kind == "arrival"
    assert result.distance_to_destination < 5
    assert not tracker.is_computing
    assert tracker.route is None
    assert console.history == [ARRIVAL_MESSAGE]
    assert tracker.tick(DESTINATION).message == "Navigation is not active."
