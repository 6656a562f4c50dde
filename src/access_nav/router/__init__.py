from .errors import NavigationDataError, RouteDocumentError
from .models import GeoPoint, IndoorPosition, NavigationRoute, SessionState, TickResult
from .nav_config import NavConfig
from .navigator import NavigationSystem

__all__ = [
    "GeoPoint",
    "IndoorPosition",
    "NavConfig",
    "NavigationDataError",
    "NavigationRoute",
    "NavigationSystem",
    "RouteDocumentError",
    "SessionState",
    "TickResult",
]
