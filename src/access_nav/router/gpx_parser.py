# gpx_parser.py
# Reads GPX 1.1 route-description documents into ParsedRouteDocument.
# Depends only on: models, errors: nothing else from this project.

import logging
import xml.sax as sax
from typing import Dict, Iterable, List, Optional

from .errors import RouteDocumentError
from .models import GPXMetadata, ParsedRouteDocument, Track, TrackPoint, Waypoint

logger = logging.getLogger(__name__)

# Some exporters abbreviate <name> to <n>
_NAME_TAGS = frozenset({"name", "n"})
_TEXT_TAGS = frozenset({"name", "n", "desc", "time", "type", "ele", "hdop", "speed"})


def _local(qname: str) -> str:
    """Strip a namespace prefix: 'osmand:speed' → 'speed'."""
    return qname.rsplit(":", 1)[-1]


def _to_float(value: Optional[str]) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# SAX content handler
# ---------------------------------------------------------------------------

class GPXHandler(sax.ContentHandler):
    """Stream-parse a GPX document and collect tracks, waypoints and metadata."""

    def __init__(self) -> None:
        super().__init__()
        self.tracks: List[Track] = []
        self.waypoints: List[Waypoint] = []
        self.metadata = GPXMetadata()

        self._meta: Optional[Dict[str, str]] = None
        self._wpt: Optional[Dict[str, Optional[str]]] = None
        self._trk_name: Optional[str] = None
        self._trk_points: Optional[List[TrackPoint]] = None
        self._trkpt: Optional[Dict[str, Optional[str]]] = None
        self._in_extensions = False
        self._text: List[str] = []

    # ------------------------------------------------------------------
    # SAX callbacks
    # ------------------------------------------------------------------

    def startElement(self, name: str, attrs) -> None:  # type: ignore[override]
        tag = _local(name)
        self._text = []

        if tag == "metadata":
            self._meta = {}
        elif tag == "wpt":
            self._wpt = {"lat": attrs.get("lat"), "lon": attrs.get("lon")}
        elif tag == "trk":
            self._trk_name = None
            self._trk_points = []
        elif tag == "trkpt" and self._trk_points is not None:
            self._trkpt = {"lat": attrs.get("lat"), "lon": attrs.get("lon")}
        elif tag == "extensions":
            self._in_extensions = True

    def characters(self, content: str) -> None:
        self._text.append(content)

    def endElement(self, name: str) -> None:  # type: ignore[override]
        tag = _local(name)
        text = "".join(self._text).strip()
        self._text = []

        if tag == "extensions":
            self._in_extensions = False
        elif tag == "metadata" and self._meta is not None:
            self.metadata = GPXMetadata(name=self._meta.get("name"), time=self._meta.get("time"))
            self._meta = None
        elif tag == "wpt" and self._wpt is not None:
            self._finish_waypoint()
        elif tag == "trkpt" and self._trkpt is not None:
            self._finish_track_point()
        elif tag == "trk" and self._trk_points is not None:
            self.tracks.append(Track(
                name=self._trk_name or "Unnamed Track",
                points=tuple(self._trk_points),
            ))
            self._trk_points = None
        elif tag in _TEXT_TAGS:
            self._store_text(tag, text)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _store_text(self, tag: str, text: str) -> None:
        """Route a leaf element's text to whichever element is open."""
        if self._in_extensions:
            # Only the OsmAnd speed extension is understood
            if tag == "speed" and self._trkpt is not None:
                self._trkpt["speed"] = text
            return
        if tag in _NAME_TAGS:
            tag = "name"

        if self._trkpt is not None:
            self._trkpt.setdefault(tag, text)
        elif self._wpt is not None:
            self._wpt.setdefault(tag, text)
        elif self._trk_points is not None:
            if tag == "name" and self._trk_name is None:
                self._trk_name = text
        elif self._meta is not None:
            self._meta.setdefault(tag, text)

    def _finish_waypoint(self) -> None:
        wpt, self._wpt = self._wpt, None
        lat, lon = _to_float(wpt.get("lat")), _to_float(wpt.get("lon"))
        if lat is None or lon is None:
            logger.warning(f"[GPXParser] Skipping waypoint without valid lat/lon: {wpt}")
            return
        name = wpt.get("name")
        if not name:
            logger.warning(f"[GPXParser] Skipping unnamed waypoint at {lat}, {lon}")
            return
        self.waypoints.append(Waypoint(
            latitude=lat,
            longitude=lon,
            name=name,
            description=wpt.get("desc") or None,
            time=wpt.get("time") or None,
            type=wpt.get("type") or None,
        ))

    def _finish_track_point(self) -> None:
        pt, self._trkpt = self._trkpt, None
        lat, lon = _to_float(pt.get("lat")), _to_float(pt.get("lon"))
        if lat is None or lon is None:
            logger.warning(f"[GPXParser] Skipping track point without valid lat/lon: {pt}")
            return
        self._trk_points.append(TrackPoint(
            latitude=lat,
            longitude=lon,
            elevation=_to_float(pt.get("ele")),
            time=pt.get("time") or None,
            speed=_to_float(pt.get("speed")),
            hdop=_to_float(pt.get("hdop")),
        ))

    def result(self) -> ParsedRouteDocument:
        return ParsedRouteDocument(
            tracks=tuple(self.tracks),
            waypoints=tuple(self.waypoints),
            metadata=self.metadata,
        )


# ---------------------------------------------------------------------------
# Public loaders
# ---------------------------------------------------------------------------

def parse_gpx(content: str) -> ParsedRouteDocument:
    """
    Parse GPX text.

    Args:
        content: The document text.

    Returns:
        ParsedRouteDocument; missing sections give empty tuples.

    Raises:
        RouteDocumentError: If the document is not well-formed XML.
    """
    handler = GPXHandler()
    try:
        sax.parseString(content.lstrip().encode("utf-8"), handler)
    except sax.SAXParseException as e:
        raise RouteDocumentError(e.getMessage(), e.getLineNumber(), e.getColumnNumber()) from e
    doc = handler.result()
    logger.debug(f"[GPXParser] Parsed {len(doc.tracks)} tracks and {len(doc.waypoints)} waypoints.")
    return doc


def parse_gpx_file(path: str) -> ParsedRouteDocument:
    """
    Parse a GPX file from disk.

    Raises:
        RouteDocumentError: If the file cannot be read or is not well-formed.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise RouteDocumentError(f"Cannot read {path}: {e}") from e
    return parse_gpx(content)


def load_route_documents(contents: Iterable[str]) -> ParsedRouteDocument:
    """
    Parse several GPX texts and merge them into one working pool.

    Documents that fail to parse are logged and skipped, so the result is
    whatever remains (possibly empty).
    """
    merged = ParsedRouteDocument()
    first = True
    for i, content in enumerate(contents):
        try:
            doc = parse_gpx(content)
        except RouteDocumentError as e:
            logger.error(f"[GPXParser] Document #{i} skipped: {e}")
            continue
        merged = doc if first else merged.merge(doc)
        first = False
    if not merged.tracks:
        logger.warning("[GPXParser] No tracks loaded; routes will fall back to direct paths.")
    logger.info(f"[GPXParser] Ready — {len(merged.tracks)} tracks, {len(merged.waypoints)} waypoints.")
    return merged
