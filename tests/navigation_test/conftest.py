import pytest

from access_nav.router.floor_detector import ClockCycleFloorSensor
from access_nav.router.models import (
    BuildingPlan,
    Floor,
    GeoPoint,
    ReferenceCoordinates,
    Track,
    TrackPoint,
)
from access_nav.router.nav_config import NavConfig
from access_nav.router.navigator import NavigationSystem
from access_nav.router.route_engine import RouteEngine
from access_nav.router.sample_data import FLOOR_HOTSPOTS, LEADERSHIP_CENTER_GPX, sample_buildings
from access_nav.tts.announcer import ConsoleAnnouncer


@pytest.fixture
def config():
    return NavConfig()


@pytest.fixture
def straight_track():
    # Five points heading north along the prime meridian, ~111 m apart
    return Track(
        name="Corridor",
        points=tuple(TrackPoint(latitude=i * 0.001, longitude=0.0) for i in range(5)),
    )


@pytest.fixture
def engine(straight_track, config):
    return RouteEngine([straight_track], config)


@pytest.fixture
def example_building():
    """Rectangle with topLeft=(-1.9308, 30.1525) and bottomRight=(-1.9304, 30.1533)."""
    return BuildingPlan(
        id="example",
        name="Example Hall",
        reference_coordinates=ReferenceCoordinates(
            top_left=GeoPoint(-1.9308, 30.1525),
            top_right=GeoPoint(-1.9308, 30.1533),
            bottom_left=GeoPoint(-1.9304, 30.1525),
            bottom_right=GeoPoint(-1.9304, 30.1533),
        ),
        floors=[Floor(id="example-ground", level=1, name="Ground Floor")],
    )


@pytest.fixture
def console():
    return ConsoleAnnouncer()


@pytest.fixture
def sample_system(console):
    return NavigationSystem(
        [LEADERSHIP_CENTER_GPX],
        sample_buildings(),
        FLOOR_HOTSPOTS,
        announcer=console,
        floor_fallback=ClockCycleFloorSensor(clock=lambda: 0.0),
    )
