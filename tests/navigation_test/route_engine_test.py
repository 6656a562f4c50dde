import pytest

from access_nav.router.geo_utils import distance
from access_nav.router.models import GeoPoint, Track, TrackPoint, Waypoint
from access_nav.router.nav_config import NavConfig
from access_nav.router.route_engine import (
    ALONG_TRACK_SUFFIX,
    TO_DESTINATION_SUFFIX,
    TO_TRACK_SUFFIX,
    RouteEngine,
    generate_step_instruction,
)


# User ~22 m east of track point 2, destination ~22 m east of track point 4
ORIGIN = GeoPoint(0.001, 0.0002)
DESTINATION = GeoPoint(0.003, 0.0002)


# ---------------------------------------------------------------------------
# Instructions and simple routes
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("dist, brg, first, text", [
    (5, 0, True, "Head north for a few steps"),
    (34, 90, False, "Continue east for about 30 meters"),
    (250, 180, True, "Head south for about 300 meters"),
])
def test_step_instruction(dist, brg, first, text):
    assert generate_step_instruction(dist, brg, first) == text


def test_direct_route(config):
    route = RouteEngine(config=config).calculate_route(GeoPoint(0, 0), GeoPoint(0.001, 0))
    assert len(route.steps) == 1
    assert route.total_distance == pytest.approx(111.19, abs=0.01)
    assert route.estimated_time_seconds == pytest.approx(route.total_distance / 1.4)
    assert route.steps[0].instruction == "Head north for about 100 meters"
    assert not route.is_accessible_route


def test_complex_route():
    engine = RouteEngine()
    waypoints = [GeoPoint(0.001, 0), GeoPoint(0.001, 0.001)]
    route = engine.calculate_complex_route(GeoPoint(0, 0), GeoPoint(0, 0.001), waypoints)
    assert len(route.steps) == 3
    assert route.steps[0].instruction.startswith("Head north")
    assert route.steps[1].instruction.startswith("Continue east")
    assert route.steps[2].instruction.startswith("Continue south")
    assert route.total_distance == pytest.approx(sum(s.distance for s in route.steps))


def test_complex_route_without_waypoints_is_direct():
    engine = RouteEngine()
    a, b = GeoPoint(0, 0), GeoPoint(0.001, 0)
    assert engine.calculate_complex_route(a, b) == engine.calculate_route(a, b)


# ---------------------------------------------------------------------------
# Accessible routes
# ---------------------------------------------------------------------------

def test_accessible_route_has_three_legs(engine, straight_track):
    route = engine.calculate_accessible_route(ORIGIN, DESTINATION)
    points = straight_track.points

    assert route.is_accessible_route
    assert len(route.legs) == 3
    assert route.track_segment == (points[1], points[2], points[3])

    to_track, along, to_dest = route.legs
    assert len(to_track.steps) == 1
    assert len(along.steps) == 2
    assert along.steps[0].end_point == points[2]
    assert len(to_dest.steps) == 1

    assert route.steps == to_track.steps + along.steps + to_dest.steps
    assert route.total_distance == pytest.approx(sum(leg.total_distance for leg in route.legs))
    assert route.estimated_time_seconds == pytest.approx(route.total_distance / 1.4)


def test_accessible_route_instructions(engine):
    route = engine.calculate_accessible_route(ORIGIN, DESTINATION)
    to_track, along, to_dest = route.legs
    assert to_track.steps[0].instruction == "Head west for about 20 meters" + TO_TRACK_SUFFIX
    assert all(s.instruction.endswith(ALONG_TRACK_SUFFIX) for s in along.steps)
    assert to_dest.steps[0].instruction.endswith(TO_DESTINATION_SUFFIX)


def test_accessible_route_reversed(engine, straight_track):
    route = engine.calculate_accessible_route(DESTINATION, ORIGIN)
    points = straight_track.points
    assert route.track_segment == (points[3], points[2], points[1])
    assert route.legs[1].steps[0].instruction.startswith("Head south")


def test_accessible_route_picks_nearest_track(straight_track):
    far = Track(name="Far", points=(GeoPoint(1.0, 1.0), GeoPoint(1.001, 1.0)))
    engine = RouteEngine([far, straight_track])
    route = engine.calculate_accessible_route(ORIGIN, DESTINATION)
    assert route.track_segment[0] == straight_track.points[1]


@pytest.mark.parametrize("tracks", [(), (Track(name="Empty"),)])
def test_accessible_route_falls_back_to_direct(tracks):
    route = RouteEngine(tracks).calculate_accessible_route(ORIGIN, DESTINATION)
    assert not route.is_accessible_route
    assert len(route.steps) == 1
    assert route.legs == ()


# Three points along the equator, ~111 m apart
EQUATOR = Track(name="Equator", points=tuple(TrackPoint(0.0, lon) for lon in (0.0, 0.001, 0.002)))


def _coords(point):
    return point.latitude, point.longitude


def _assert_continuous(route):
    assert _coords(route.steps[0].start_point) == _coords(route.origin)
    for step, nxt in zip(route.steps, route.steps[1:]):
        assert _coords(step.end_point) == _coords(nxt.start_point)
    assert _coords(route.steps[-1].end_point) == _coords(route.destination)


@pytest.mark.parametrize("tracks, origin, destination", [
    ("straight", ORIGIN, DESTINATION),
    ("straight", DESTINATION, ORIGIN),
    ("equator", GeoPoint(0.0, 0.0007), GeoPoint(0.0, 0.0013)),
    ("equator", GeoPoint(0.0, 0.0), GeoPoint(0.0, 0.0021)),
])
def test_accessible_route_steps_are_continuous(straight_track, tracks, origin, destination):
    track = straight_track if tracks == "straight" else EQUATOR
    route = RouteEngine([track]).calculate_accessible_route(origin, destination)
    _assert_continuous(route)
    assert all(step.distance > 0 for step in route.steps)


def test_single_point_segment_leaves_no_zero_length_step():
    engine = RouteEngine([EQUATOR])
    route = engine.calculate_accessible_route(GeoPoint(0.0, 0.0007), GeoPoint(0.0, 0.0013))

    assert route.track_segment == (EQUATOR.points[1],)
    assert [s.bearing for s in route.steps] == [pytest.approx(90.0), pytest.approx(90.0)]
    assert route.steps[0].instruction.endswith(TO_TRACK_SUFFIX)
    assert route.steps[1].instruction.endswith(TO_DESTINATION_SUFFIX)
    # Walking straight east towards the shared track point: no turn to call
    assert engine.generate_turn_announcement(GeoPoint(0.0, 0.00095), route, 0) is None


def test_origin_on_track_starts_along_the_track():
    route = RouteEngine([EQUATOR]).calculate_accessible_route(GeoPoint(0.0, 0.0), GeoPoint(0.0, 0.0021))
    assert len(route.legs) == 3
    assert len(route.steps) == 3
    assert route.steps[0].instruction == "Head east for about 100 meters" + ALONG_TRACK_SUFFIX
    assert route.total_distance == pytest.approx(sum(s.distance for s in route.steps))


def test_destination_on_track_point_of_origin():
    here = GeoPoint(0.0, 0.001)
    route = RouteEngine([EQUATOR]).calculate_accessible_route(here, here)
    assert len(route.steps) == 1
    assert route.total_distance == 0


def test_complex_route_skips_repeated_points():
    engine = RouteEngine()
    waypoints = [GeoPoint(0.001, 0), GeoPoint(0.001, 0)]
    route = engine.calculate_complex_route(GeoPoint(0, 0), GeoPoint(0.002, 0), waypoints)
    assert len(route.steps) == 2
    assert route.steps[1].instruction.startswith("Continue north")
    _assert_continuous(route)


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

@pytest.fixture
def route(engine):
    return engine.calculate_accessible_route(ORIGIN, DESTINATION)


def test_step_stays_when_far_from_step_end(engine, route):
    assert engine.update_current_step(ORIGIN, route, 0) == 0


def test_step_advances_near_step_end(engine, route):
    assert engine.update_current_step(GeoPoint(0.001, 0.0), route, 0) == 1


def test_step_jumps_forward(engine, route):
    assert engine.update_current_step(GeoPoint(0.003, 0.0), route, 0) == 2


def test_step_never_goes_back(engine, route):
    assert engine.update_current_step(ORIGIN, route, 2) == 2


def test_step_stays_on_last(engine, route):
    last = len(route.steps) - 1
    assert engine.update_current_step(DESTINATION, route, last) == last


def test_step_index_is_monotonic_along_a_walk(engine, route):
    walk = [ORIGIN, GeoPoint(0.001, 0.0), GeoPoint(0.0015, 0.0), ORIGIN,
            GeoPoint(0.002, 0.0), GeoPoint(0.003, 0.0), DESTINATION]
    index = 0
    for position in walk:
        new_index = engine.update_current_step(position, route, index)
        assert new_index >= index
        index = new_index
    assert index == len(route.steps) - 1


def test_arrival_threshold_is_strict():
    a, b = GeoPoint(0.0, 0.0), GeoPoint(0.000045, 0.0)
    exact = RouteEngine(config=NavConfig(arrival_threshold_m=distance(a, b)))
    assert not exact.has_reached_destination(a, b)
    assert not RouteEngine().has_reached_destination(a, b)      # ~5.004 m
    assert RouteEngine().has_reached_destination(a, GeoPoint(0.00004, 0.0))


# ---------------------------------------------------------------------------
# Announcements
# ---------------------------------------------------------------------------

@pytest.fixture
def turn_route():
    # North for ~111 m, then east
    engine = RouteEngine()
    return engine, engine.calculate_complex_route(
        GeoPoint(0.0, 0.0), GeoPoint(0.001, 0.001), [GeoPoint(0.001, 0.0)]
    )


@pytest.mark.parametrize("lat, text", [
    (0.0003, "In 100 meters, turn sharp right, towards east."),
    (0.0006, "In 50 meters, turn sharp right, towards east."),
    (0.0009, "Turn sharp right now, towards east."),
])
def test_turn_announcement_bands(turn_route, lat, text):
    engine, route = turn_route
    assert engine.generate_turn_announcement(GeoPoint(lat, 0.0), route, 0) == text


@pytest.mark.parametrize("lat", [-0.001, 0.001])
def test_no_turn_announcement_outside_bands(turn_route, lat):
    engine, route = turn_route
    assert engine.generate_turn_announcement(GeoPoint(lat, 0.0), route, 0) is None


def test_no_turn_announcement_for_straight_continuation():
    engine = RouteEngine()
    route = engine.calculate_complex_route(GeoPoint(0, 0), GeoPoint(0.002, 0), [GeoPoint(0.001, 0)])
    assert engine.generate_turn_announcement(GeoPoint(0.0009, 0.0), route, 0) is None


@pytest.mark.parametrize("lat, text", [
    (0.0, None),
    (0.0006, "Your destination is 50 meters ahead."),
    (0.00095, "Your destination is just ahead."),
])
def test_destination_cues_on_last_step(lat, text):
    engine = RouteEngine()
    route = engine.calculate_route(GeoPoint(0, 0), GeoPoint(0.001, 0))
    assert engine.generate_turn_announcement(GeoPoint(lat, 0.0), route, 0) == text


def test_accessibility_announcement():
    engine = RouteEngine()
    elevator = Waypoint(0.0001, 0.0, name="elevator_main", description="Goes to all floors")
    announcement = engine.generate_accessibility_announcement(GeoPoint(0, 0), [elevator], set())

    assert announcement.waypoint_id == "0.000100,0.000000"
    assert announcement.feature_type == "elevator"
    assert announcement.announcement == (
        "Elevator nearby. elevator main. 11 meters north of you. Goes to all floors"
    )


def test_accessibility_announcement_is_not_repeated():
    engine = RouteEngine()
    ramp = Waypoint(0.0001, 0.0, name="ramp_side")
    announced = set()
    first = engine.generate_accessibility_announcement(GeoPoint(0, 0), [ramp], announced)
    announced.add(first.waypoint_id)
    assert engine.generate_accessibility_announcement(GeoPoint(0, 0), [ramp], announced) is None


def test_accessibility_announcement_picks_nearest_in_radius():
    engine = RouteEngine()
    near = Waypoint(0.0001, 0.0, name="restroom_a")
    nearer = Waypoint(0.0, -0.00005, name="entrance_b")
    far = Waypoint(0.001, 0.0, name="exit_c")
    announcement = engine.generate_accessibility_announcement(GeoPoint(0, 0), [far, near, nearer], set())
    assert announcement.feature_type == "entrance"
    assert engine.generate_accessibility_announcement(GeoPoint(0, 0), [far], set()) is None
