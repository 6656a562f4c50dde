# sample_data.py
# Bundled demo data: the Leadership Center building catalog, its floor
# hotspots and a recorded accessible-route GPX document.
# Used by main.py and as realistic fixtures in the tests.

from typing import Dict, List

from .models import BuildingPlan, Hotspot


# ---------------------------------------------------------------------------
# Recorded accessible route (OsmAnd export)
# ---------------------------------------------------------------------------

LEADERSHIP_CENTER_GPX = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<gpx version="1.1" creator="OsmAnd Maps 4.9.4 (4947)" xmlns="https://www.topografix.com/GPX/1/1" xmlns:osmand="https://osmand.net/docs/technical/osmand-file-formats/osmand-gpx">
    <metadata>
        <name>2025-03-01_14-16_Sat</name>
        <time>2025-03-01T12:18:20Z</time>
    </metadata>
    <wpt lat="-1.9309295" lon="30.1528764">
        <time>2025-03-01T12:20:11Z</time>
        <name>entrance_main_wheelchair_accessible</name>
        <desc>Learning commons ground floor</desc>
        <type></type>
    </wpt>
    <wpt lat="-1.930834" lon="30.1528907">
        <time>2025-03-01T12:24:57Z</time>
        <name>facility_restroom_wheelchair_accessible</name>
        <desc>Restroom beside wellness centre</desc>
        <type></type>
        <extensions>
            <osmand:color>#EECC22FF</osmand:color>
        </extensions>
    </wpt>
    <wpt lat="-1.9306162" lon="30.1529425">
        <time>2025-03-01T13:50:47Z</time>
        <name>elevator_wheelchair_accessible</name>
        <desc>Leadership Center ground floor elevator, can go two floors up</desc>
    </wpt>
    <trk>
        <name>Leadership Center Path</name>
        <trkseg>
            <trkpt lat="-1.9309453" lon="30.1528755">
                <ele>1558.5</ele>
                <time>2025-03-01T12:16:18Z</time>
                <hdop>4.7</hdop>
                <extensions>
                    <osmand:speed>1.5</osmand:speed>
                </extensions>
            </trkpt>
            <trkpt lat="-1.9308423" lon="30.1528791">
                <ele>1552.1</ele>
                <time>2025-03-01T12:18:20Z</time>
                <hdop>32.4</hdop>
            </trkpt>
            <trkpt lat="-1.9307301" lon="30.1528912">
                <ele>1552.4</ele>
                <time>2025-03-01T12:19:02Z</time>
                <hdop>6.1</hdop>
            </trkpt>
            <trkpt lat="-1.9306221" lon="30.1529017">
                <ele>1552.6</ele>
                <time>2025-03-01T12:19:41Z</time>
                <hdop>5.2</hdop>
            </trkpt>
            <trkpt lat="-1.9306162" lon="30.1529425">
                <ele>1552.9</ele>
                <time>2025-03-01T12:20:03Z</time>
                <hdop>4.9</hdop>
            </trkpt>
        </trkseg>
    </trk>
</gpx>"""


# ---------------------------------------------------------------------------
# Building catalog (same shape as a JSON catalog file)
# ---------------------------------------------------------------------------

LEADERSHIP_CENTER: Dict = {
    "id": "building-1",
    "name": "Leadership Center",
    "description": "ALU Leadership Center with accessible facilities",
    "referenceCoordinates": {
        "topLeft":     {"latitude": -1.9302162, "longitude": 30.1525425},
        "topRight":    {"latitude": -1.9302162, "longitude": 30.1533425},
        "bottomLeft":  {"latitude": -1.9310162, "longitude": 30.1525425},
        "bottomRight": {"latitude": -1.9310162, "longitude": 30.1533425},
    },
    "floors": [
        {
            "id": "leadership-floor-ground",
            "level": 1,
            "name": "Ground Floor",
            "floorPlanUri": "floorplans/leadership_center_ground.png",
            "scale": {"pixelsPerMeter": 20},
            "features": [
                {
                    "id": "elevator-ground",
                    "type": "elevator",
                    "title": "Main Elevator",
                    "description": "Accessible elevator to all floors",
                    "coordinate": {"latitude": -1.9306162, "longitude": 30.1529425},
                },
                {
                    "id": "restroom-ground",
                    "type": "restroom",
                    "title": "Accessible Restroom",
                    "description": "Ground floor accessible restroom near Wellness Center",
                    "coordinate": {"latitude": -1.9305162, "longitude": 30.1531425},
                },
                {
                    "id": "entrance-main",
                    "type": "entrance",
                    "title": "Main Entrance",
                    "description": "Main accessible entrance to the Leadership Center",
                    "coordinate": {"latitude": -1.9303162, "longitude": 30.1529425},
                },
                {
                    "id": "ramp-main",
                    "type": "ramp",
                    "title": "Main Entrance Ramp",
                    "description": "Wheelchair accessible ramp at main entrance",
                    "coordinate": {"latitude": -1.9303662, "longitude": 30.1528425},
                },
            ],
            "routes": [
                {
                    "id": "route-entrance-elevator-ground",
                    "name": "Entrance to Elevator",
                    "description": "Accessible route from main entrance to elevator",
                    "points": [
                        {"latitude": -1.9303162, "longitude": 30.1529425},
                        {"latitude": -1.9304162, "longitude": 30.1529425},
                        {"latitude": -1.9306162, "longitude": 30.1529425},
                    ],
                },
            ],
        },
        {
            "id": "leadership-floor-first",
            "level": 2,
            "name": "First Floor",
            "floorPlanUri": "floorplans/leadership_center_first.png",
            "scale": {"pixelsPerMeter": 20},
            "features": [
                {
                    "id": "elevator-first",
                    "type": "elevator",
                    "title": "Main Elevator",
                    "description": "Accessible elevator to all floors",
                    "coordinate": {"latitude": -1.9306162, "longitude": 30.1529425},
                },
            ],
            "routes": [],
        },
        {
            "id": "leadership-floor-second",
            "level": 3,
            "name": "Second Floor",
            "floorPlanUri": "floorplans/leadership_center_second.png",
            "scale": {"pixelsPerMeter": 20},
            "features": [],
            "routes": [],
        },
    ],
}


# Radii are in degrees
FLOOR_HOTSPOTS: Dict[str, List[Hotspot]] = {
    "leadership-floor-ground": [
        Hotspot(-1.930795, 30.152860, 0.0001),   # main entrance
        Hotspot(-1.930638, 30.153087, 0.0001),   # restroom
        Hotspot(-1.930647, 30.153170, 0.0001),   # elevator
    ],
    "leadership-floor-first": [
        Hotspot(-1.930656, 30.153010, 0.0001),   # computer lab
        Hotspot(-1.930582, 30.152950, 0.0001),   # study room
    ],
    "leadership-floor-second": [
        Hotspot(-1.930727, 30.153055, 0.0003),
        Hotspot(-1.930700, 30.152990, 0.0002),   # reading area
    ],
}


def sample_buildings() -> List[BuildingPlan]:
    """Fresh catalog objects; callers may mutate them."""
    return [BuildingPlan.from_dict(LEADERSHIP_CENTER)]
